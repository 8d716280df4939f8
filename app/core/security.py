"""API key protection for the wizard endpoints."""

import logging
import secrets

from fastapi import Depends
from fastapi import HTTPException
from fastapi.security import APIKeyHeader

from app.core.config import settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key")


async def verify_api_key(key: str = Depends(api_key_header)) -> bool:
    """Checks the 'X-API-Key' header against the configured service key.

    Raises:
        HTTPException: 403 when the key does not match, or when no key is
                       configured on the server (every request is denied).
    """
    if not settings.api_key:
        logger.critical("CRITICAL: no API_KEY is configured on the server; wizard requests are denied.")
        raise HTTPException(status_code=403, detail="Invalid API Key")

    if not secrets.compare_digest(key.encode(), settings.api_key.encode()):
        logger.warning("Rejected request with invalid API key")
        raise HTTPException(status_code=403, detail="Invalid API Key")
    return True
