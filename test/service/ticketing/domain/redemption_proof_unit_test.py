"""
Unit tests for the redemption proof (QR payload)

Decoding never raises, and verification is an exact match on ticket, event,
holder and validation code.
"""

from datetime import datetime, timezone

import pytest

from ticket_inventory.service.ticketing.domain.value_object.redemption_proof import (
    RedemptionProof,
    verify_redemption_proof,
)


ISSUED_AT = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def proof() -> RedemptionProof:
    return RedemptionProof.issue(
        ticket_id=42, event_id='evt-1', user_id='user-1', issued_at=ISSUED_AT
    )


def _verify(proof: RedemptionProof, presented, **overrides) -> bool:
    stored = {
        'ticket_id': proof.ticket_id,
        'event_id': proof.event_id,
        'user_id': proof.user_id,
        'validation_code': proof.validation_code,
        **overrides,
    }
    return verify_redemption_proof(presented=presented, **stored)


@pytest.mark.unit
class TestRedemptionProof:
    def test_validation_codes_are_unique(self) -> None:
        codes = {
            RedemptionProof.issue(
                ticket_id=1, event_id='evt-1', user_id='user-1', issued_at=ISSUED_AT
            ).validation_code
            for _ in range(50)
        }

        assert len(codes) == 50

    def test_encode_is_url_safe(self, proof: RedemptionProof) -> None:
        encoded = proof.encode()

        assert '=' not in encoded
        assert '+' not in encoded and '/' not in encoded

    def test_decode_restores_fields(self, proof: RedemptionProof) -> None:
        assert RedemptionProof.decode(proof.encode()) == proof

    @pytest.mark.parametrize(
        'presented',
        [None, '', 42, 'not base64 at all!', 'bm90IGpzb24', 'WzEsMiwzXQ'],
    )
    def test_decode_garbage(self, presented) -> None:
        # 'bm90IGpzb24' is "not json", 'WzEsMiwzXQ' is "[1,2,3]"
        assert RedemptionProof.decode(presented) is None

    def test_verify_issued_proof(self, proof: RedemptionProof) -> None:
        assert _verify(proof, proof.encode())

    @pytest.mark.parametrize(
        'overrides',
        [
            {'ticket_id': 43},
            {'event_id': 'evt-2'},
            {'user_id': 'user-2'},
            {'validation_code': 'f' * 32},
            {'user_id': None},
            {'validation_code': None},
        ],
    )
    def test_verify_rejects_mismatch(self, proof: RedemptionProof, overrides: dict) -> None:
        assert not _verify(proof, proof.encode(), **overrides)

    def test_verify_rejects_garbage(self, proof: RedemptionProof) -> None:
        assert not _verify(proof, 'garbage')
