from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.config import Settings
from booking_api.core.db import session_scope
from booking_api.core.errors import AuthError, ForbiddenError
from booking_api.core.security import decode_access_token
from booking_api.services.payment_gateway import RazorpayClient

optional_bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    # Exit code may run after the response is sent; write routes commit themselves
    async with session_scope(request.app.state.session_maker) as session:
        yield session


def get_payment_gateway(request: Request) -> RazorpayClient:
    return request.app.state.payment_gateway


def require_admin(credentials: HTTPAuthorizationCredentials | None, settings: Settings) -> str:
    """Return the admin username for a valid bearer token, else raise AuthError/ForbiddenError."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise AuthError()
    subject = decode_access_token(credentials.credentials, settings)
    if not subject:
        raise AuthError("Invalid or expired token")
    if subject != settings.admin_username:
        raise ForbiddenError()
    return subject


async def get_current_admin(
    settings: Settings = Depends(get_settings),
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> str:
    return require_admin(credentials, settings)
