"""
Bearer token verification

Tokens are issued by the identity service; this service only verifies them
against the shared secret and rebuilds the caller from the claims (no DB query).
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.exception.exceptions import AuthenticationError
from ticket_inventory.service.ticketing.domain.enum.user_role import UserRole
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal


class JwtAuth:
    def __init__(self) -> None:
        self.secret = settings.SECRET_KEY.get_secret_value()
        self.algorithm = settings.ALGORITHM
        self.token_expire_days = 7

    def create_jwt_token(self, principal: Principal) -> str:
        """Mint a token the way the identity service does (used by tools and tests)."""
        now = datetime.now(timezone.utc)
        payload = {
            'sub': principal.user_id,
            'user_id': principal.user_id,
            'role': principal.role.value,
            'iat': now,
            'exp': now + timedelta(days=self.token_expire_days),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError as e:
            raise AuthenticationError('Invalid token') from e

    def get_principal_from_jwt(self, token: Optional[str]) -> Principal:
        if not token:
            raise AuthenticationError('Not authenticated')

        payload = self.decode_jwt_token(token)

        # The identity service signs {id, username, email, role}
        user_id = next(
            (payload[claim] for claim in ('sub', 'user_id', 'id') if payload.get(claim) is not None),
            None,
        )
        role = payload.get('role')
        if user_id in (None, '') or not role:
            raise AuthenticationError('Invalid token')

        try:
            user_role = UserRole(role)
        except ValueError as e:
            raise AuthenticationError(f'Unknown role: {role}') from e

        return Principal(user_id=str(user_id), role=user_role)
