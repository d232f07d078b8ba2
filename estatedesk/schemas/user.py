from datetime import datetime

from pydantic import Field

from estatedesk.models.user import Role
from estatedesk.schemas.camel_model import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserCreate(CamelModel):
    email: str = Field(min_length=5, max_length=255, pattern=EMAIL_PATTERN)
    full_name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class UserRead(CamelModel):
    id: int
    email: str
    full_name: str
    role: Role
    is_active: bool
    last_login_at: datetime | None = None

    created_at: datetime
    updated_at: datetime


class UserLogin(CamelModel):
    email: str = Field(min_length=5, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=255)


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    session_id: str
    expires_in: int


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(min_length=20, max_length=4096)


class LogoutResponse(CamelModel):
    success: bool = True
    revoked_sessions: int = 1


class SessionRead(CamelModel):
    session_id: str
    device_type: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime
    last_activity_at: datetime
    expires_at: datetime
    is_current: bool = False


class PasswordResetRequest(CamelModel):
    email: str = Field(min_length=5, max_length=255, pattern=EMAIL_PATTERN)


class PasswordResetValidateResponse(CamelModel):
    valid: bool = True
    remaining_minutes: int


class PasswordResetConfirm(CamelModel):
    token: str = Field(min_length=16, max_length=255)
    new_password: str = Field(min_length=1, max_length=255)


class MessageResponse(CamelModel):
    message: str
