"""API key authentication resolving the caller's privileges."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from concept_dictionary.core.audit import log_auth_event
from concept_dictionary.core.config import settings
from concept_dictionary.core.privileges import UserContext

logger = logging.getLogger(__name__)

# API Key header security scheme
api_key_header = APIKeyHeader(
    name=settings.api_key_header,
    auto_error=False,  # Don't auto-error, we handle it manually
)


def get_user_context(
    request: Request,
    api_key: Annotated[str | None, Security(api_key_header)],
) -> UserContext:
    """Resolve the UserContext for the current request.

    When auth is enabled:
    - Missing API key returns 401
    - Unknown API key returns 403
    - A known key yields the user and privileges configured for it

    When auth is disabled the system context (all privileges) is used.

    Raises:
        HTTPException: 401 if missing key, 403 if invalid key
    """
    if not settings.auth_enabled:
        return UserContext.system()

    client_ip = request.client.host if request.client else None

    if api_key is None:
        logger.warning("Missing API key in request")
        log_auth_event(False, ip_address=client_ip, reason="missing api key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    grant = settings.api_keys.get(api_key)
    if grant is None:
        logger.warning("Invalid API key attempt")
        log_auth_event(False, ip_address=client_ip, reason="invalid api key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    log_auth_event(True, user_id=grant.username, ip_address=client_ip)
    return UserContext.with_privileges(grant.username, grant.privileges)


# Dependency for protected endpoints
RequireUser = Annotated[UserContext, Depends(get_user_context)]
