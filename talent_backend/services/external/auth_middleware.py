"""
Authentication dependency for the profile API.

Only development tokens are supported: the subject id is the part of the
bearer token after the configured DEV_TOKEN_PREFIX.
"""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from talent_backend.infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

security = HTTPBearer(
    scheme_name="Bearer Authentication",
    description="Development bearer token: <DEV_TOKEN_PREFIX><subject id>",
)


async def get_current_subject(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """
    Dependency to get the subject id of the authenticated caller.

    Raises:
        HTTPException: If the token is empty or not a development token
    """
    token = credentials.credentials
    prefix = settings.dev_token_prefix

    if not token or not token.startswith(prefix) or len(token) == len(prefix):
        logger.warning("Authentication failed: missing or unrecognised token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject_id = token[len(prefix):]
    logger.debug(f"Authenticated subject {subject_id}")
    return subject_id
