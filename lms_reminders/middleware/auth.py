"""Shared-secret bearer authentication for the guarded cron trigger."""
from fastapi import HTTPException, Request, status
import hmac


async def verify_cron_secret(request: Request) -> None:
    """
    Require `Authorization: Bearer <CRON_SECRET>`.

    With no CRON_SECRET configured every request is rejected.

    Raises:
        HTTPException: 401 when the header is missing or does not match
    """
    expected = request.app.state.settings.cron_secret
    auth_header = request.headers.get("authorization") or ""

    if not expected or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header[7:]  # Remove "Bearer " prefix
    if not hmac.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
