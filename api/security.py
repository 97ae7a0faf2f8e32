"""
Bearer Token Verification

SECURITY BOUNDARY - Verify the caller's shared secret.
No retries. No logging of token values.
"""

import hmac
from typing import Optional

from fastapi import HTTPException, Request, status


def check_bearer_token(authorization: Optional[str], expected_token: Optional[str]) -> None:
    """
    Verify an Authorization header against the configured token.

    No configured token means insecure mode: every caller is accepted.

    Raises:
        HTTPException(401): Header missing or not a Bearer credential
        HTTPException(403): Token does not match
    """
    if not expected_token:
        return

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
        )

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header must be 'Bearer <token>'",
        )

    # Compare (constant-time to prevent timing attacks)
    if not hmac.compare_digest(token.encode("utf-8"), expected_token.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid token",
        )


async def require_bearer_token(request: Request) -> None:
    """FastAPI dependency applying check_bearer_token with the gateway's token."""
    check_bearer_token(
        request.headers.get("Authorization"),
        request.app.state.gateway_config.auth_token,
    )
