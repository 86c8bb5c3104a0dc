"""Authentication dependencies for API endpoints."""

import secrets
from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..utils.request_helpers import extract_api_key, get_client_ip

logger = structlog.get_logger(__name__)
security = HTTPBearer(auto_error=False)


async def verify_api_key(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Verify API key authentication.

    When no API key is configured the API is open and this returns None.
    """
    expected = settings.api_key
    if not expected:
        return None

    api_key = extract_api_key(request)
    if not api_key:
        logger.warning("No API key provided in request", client_ip=get_client_ip(request))
        raise HTTPException(
            status_code=401,
            detail="API key required. Provide it in x-api-key header or Authorization header.",
        )

    if not secrets.compare_digest(api_key, expected):
        logger.warning("Invalid API key provided", client_ip=get_client_ip(request))
        raise HTTPException(status_code=401, detail="Invalid API key")

    return api_key
