# src/odata_proxy/security/dependency.py
from typing import Optional
import logging
import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from ..config import ProxyConfig, get_config

logger = logging.getLogger(__name__)

REALM = "odata"

_basic = HTTPBasic(auto_error=False, realm=REALM)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing credentials.",
        headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
    )


def credentials_match(credentials: HTTPBasicCredentials, config: ProxyConfig) -> bool:
    """Constant-time check of both username and password."""
    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"),
        (config.odata_user or "").encode("utf-8"),
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"),
        (config.odata_password or "").encode("utf-8"),
    )
    return user_ok and password_ok


async def require_basic_auth(
    request: Request,
    config: ProxyConfig = Depends(get_config),
) -> Optional[str]:
    """
    Enforce HTTP Basic auth on /odata/* routes.

    Returns the authenticated username, or None when no inbound credentials
    are configured (auth skipped; a warning is logged at startup).
    """
    if not config.auth_enabled:
        return None

    credentials = await _basic(request)
    if credentials is None:
        raise _unauthorized()

    if not credentials_match(credentials, config):
        logger.warning("Rejected credentials for user %r on %s", credentials.username, request.url.path)
        raise _unauthorized()

    return credentials.username
