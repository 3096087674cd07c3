from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from opentelemetry import trace

from ticket_inventory.platform.config.di import Container
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal
from ticket_inventory.service.ticketing.driving_adapter.http_controller.auth.jwt_auth import (
    JwtAuth,
)


bearer_scheme = HTTPBearer(auto_error=False)


@inject
async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
) -> Principal:
    """
    Get the caller from the bearer token (stateless, no DB query)

    Missing and invalid tokens both end as 401 with `WWW-Authenticate: Bearer`.
    Role checks live in the use cases, so every entry point enforces them.
    """
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span('auth.get_current_principal') as span:
        token = credentials.credentials if credentials else None
        principal = jwt_auth.get_principal_from_jwt(token)
        span.set_attribute('user.id', principal.user_id)
        span.set_attribute('user.role', principal.role.value)
        return principal
