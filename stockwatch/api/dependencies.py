"""
API Dependencies

Common dependencies used across API endpoints.
"""
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stockwatch.core.security import decode_access_token
from stockwatch.services.quote_service import QuoteService

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """
    Get the authenticated caller from the JWT bearer token.

    Only the signature, expiry and ``sub`` claim are checked; there is no
    user store behind this API.

    Returns:
        Decoded token claims

    Raises:
        HTTPException: If the token is missing or invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise credentials_exception

    return payload


def get_quote_service(request: Request) -> QuoteService:
    """
    Get the quote service built during application startup.

    Raises:
        HTTPException: If the service has not been initialized
    """
    service = getattr(request.app.state, "quote_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Quote service not initialized"
        )
    return service
