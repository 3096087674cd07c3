"""
Redemption Proof (QR payload)

Issued once at purchase time. The proof is the string a QR scanner yields:
unpadded base64url of the JSON document
    {ticketId, eventId, userId, validationCode, issuedAt}

The validation code comes from `secrets`, so it is not derivable from any
public ticket field. Verification is a pure comparison against the stored
ticket; current status is checked by the caller.
"""

import base64
import binascii
from datetime import datetime
import secrets
from typing import Any, Optional

import attrs
import orjson


VALIDATION_CODE_BYTES = 16


@attrs.frozen
class RedemptionProof:
    ticket_id: int
    event_id: str
    user_id: str
    validation_code: str
    issued_at: str

    @classmethod
    def issue(
        cls, *, ticket_id: int, event_id: str, user_id: str, issued_at: datetime
    ) -> 'RedemptionProof':
        return cls(
            ticket_id=ticket_id,
            event_id=event_id,
            user_id=user_id,
            validation_code=secrets.token_hex(VALIDATION_CODE_BYTES),
            issued_at=issued_at.isoformat(),
        )

    def encode(self) -> str:
        document = orjson.dumps(
            {
                'ticketId': self.ticket_id,
                'eventId': self.event_id,
                'userId': self.user_id,
                'validationCode': self.validation_code,
                'issuedAt': self.issued_at,
            }
        )
        return base64.urlsafe_b64encode(document).rstrip(b'=').decode('ascii')

    @classmethod
    def decode(cls, presented: Any) -> Optional['RedemptionProof']:
        """Return None for anything that is not a well-formed proof."""
        if not isinstance(presented, str) or not presented:
            return None
        padded = presented + '=' * (-len(presented) % 4)
        try:
            document = orjson.loads(base64.urlsafe_b64decode(padded.encode('ascii')))
        except (binascii.Error, UnicodeEncodeError, ValueError):
            return None
        if not isinstance(document, dict):
            return None

        ticket_id = document.get('ticketId')
        fields = [document.get(key) for key in ('eventId', 'userId', 'validationCode')]
        if isinstance(ticket_id, bool) or not isinstance(ticket_id, int):
            return None
        if not all(isinstance(field, str) for field in fields):
            return None

        event_id, user_id, validation_code = fields
        return cls(
            ticket_id=ticket_id,
            event_id=event_id,
            user_id=user_id,
            validation_code=validation_code,
            issued_at=str(document.get('issuedAt', '')),
        )


def verify_redemption_proof(
    *,
    ticket_id: int,
    event_id: str,
    user_id: Optional[str],
    validation_code: Optional[str],
    presented: Any,
) -> bool:
    """Exact match on ticketId, eventId, userId and validationCode. Never raises."""
    if user_id is None or validation_code is None:
        return False
    proof = RedemptionProof.decode(presented)
    if proof is None:
        return False

    # Evaluate every comparison so timing does not reveal which field differed
    matches = [
        proof.ticket_id == ticket_id,
        secrets.compare_digest(proof.event_id.encode(), event_id.encode()),
        secrets.compare_digest(proof.user_id.encode(), user_id.encode()),
        secrets.compare_digest(proof.validation_code.encode(), validation_code.encode()),
    ]
    return all(matches)
