import logging

from fastapi import APIRouter, Depends

from booking_api.api.deps import get_current_admin, get_settings
from booking_api.api.schemas.auth import AccessToken, LoginRequest
from booking_api.core.config import Settings
from booking_api.core.errors import AuthError, FeatureDisabledError
from booking_api.core.security import create_access_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AccessToken)
async def login(
    body: LoginRequest,
    settings: Settings = Depends(get_settings),
) -> AccessToken:
    if not settings.admin_login_enabled:
        raise FeatureDisabledError("Admin login is not configured")
    if body.username != settings.admin_username or not verify_password(
        body.password, settings.admin_password_hash
    ):
        logger.warning("Failed admin login for username=%s", body.username)
        raise AuthError("Invalid username or password")
    return AccessToken(
        access_token=create_access_token(settings.admin_username, settings),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me")
async def me(admin: str = Depends(get_current_admin)) -> dict:
    return {"username": admin}
