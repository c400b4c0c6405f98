"""Request authentication and error translation shared by the routers."""

import logging

from fastapi import HTTPException, Request

from ..errors import (
    ExamNotEditableError,
    ExamNotFoundError,
    GatewayError,
    NotAProfessorError,
    WizardNotFoundError,
    WizardStateError,
)
from ..gateway import Gateway
from ..models import AuthContext

logger = logging.getLogger(__name__)


def create_auth_dependency(gateway: Gateway):
    """Build the dependency that resolves the caller from the session token."""

    async def get_current_user(request: Request) -> AuthContext:
        """Get current user from session token"""
        session_token = request.cookies.get("session_token")

        if not session_token:
            auth_header = request.headers.get("Authorization")
            if auth_header and auth_header.startswith("Bearer "):
                session_token = auth_header.split(" ")[1]

        if not session_token:
            raise HTTPException(status_code=401, detail="Not authenticated")

        try:
            auth = await gateway.current_user(session_token)
        except GatewayError as e:
            logger.error(f"Session lookup failed: {e}")
            raise HTTPException(status_code=503, detail="Session store unavailable")

        if auth is None:
            raise HTTPException(status_code=401, detail="Invalid session")
        return auth

    return get_current_user


def to_http_error(e: Exception) -> HTTPException:
    """Map a service exception onto an HTTP error."""
    if isinstance(e, NotAProfessorError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, (ExamNotFoundError, WizardNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (ExamNotEditableError, WizardStateError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, GatewayError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, (IndexError, KeyError)):
        return HTTPException(status_code=404, detail=str(e).strip("'\""))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))

    logger.exception(f"Unhandled error: {e}")
    return HTTPException(status_code=500, detail=str(e))
