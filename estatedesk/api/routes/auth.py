from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from estatedesk.api.deps import AuthContextDep, ClientDep, CurrentUserDep, SessionDep
from estatedesk.core.config import settings
from estatedesk.models.user import User
from estatedesk.services import auth as auth_service
from estatedesk.services import password_reset, sessions
from estatedesk.services.auth import LoginResult
from estatedesk.schemas.user import (
    LogoutResponse,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetValidateResponse,
    RefreshTokenRequest,
    SessionRead,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserRead,
)

router = APIRouter(prefix="/auth", tags=["auth"])

RESET_REQUESTED_MESSAGE = "If an account exists for this email, a reset link has been sent."


def _token_response(result: LoginResult) -> TokenResponse:
    return TokenResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        session_id=result.session_id,
        expires_in=int(settings.ACCESS_TOKEN_MINUTES) * 60,
    )


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(payload: UserCreate, session: SessionDep) -> User:
    return auth_service.register(
        session,
        email=payload.email,
        full_name=payload.full_name,
        password=payload.password,
    )


@router.post("/login", response_model=TokenResponse)
def login_user(payload: UserLogin, session: SessionDep, client: ClientDep) -> TokenResponse:
    result = auth_service.login(session, email=payload.email, password=payload.password, client=client)
    return _token_response(result)


@router.post("/refresh", response_model=TokenResponse)
def refresh_tokens(payload: RefreshTokenRequest, session: SessionDep) -> TokenResponse:
    return _token_response(auth_service.refresh(session, payload.refresh_token))


@router.post("/logout", response_model=LogoutResponse)
def logout(context: AuthContextDep, session: SessionDep) -> LogoutResponse:
    auth_service.logout(session, context.auth_session)
    return LogoutResponse()


@router.post("/logout-all", response_model=LogoutResponse)
def logout_all(
    context: AuthContextDep,
    session: SessionDep,
    keep_current: Annotated[bool, Query(alias="keepCurrent")] = False,
) -> LogoutResponse:
    keep = context.auth_session.session_id if keep_current else None
    revoked = auth_service.logout_all(session, context.user.id, keep_session_id=keep)
    return LogoutResponse(revoked_sessions=revoked)


@router.get("/me", response_model=UserRead)
def get_me(current_user: CurrentUserDep) -> User:
    return current_user


@router.get("/sessions", response_model=list[SessionRead])
def list_sessions(context: AuthContextDep, session: SessionDep) -> list[SessionRead]:
    current_id = context.auth_session.session_id
    return [
        SessionRead.model_validate(item).model_copy(update={"is_current": item.session_id == current_id})
        for item in sessions.list_active(session, context.user.id)
    ]


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_session(session_id: str, context: AuthContextDep, session: SessionDep) -> None:
    sessions.revoke_for_user(session, context.user.id, session_id)


@router.post("/password-reset/request", response_model=MessageResponse)
def request_password_reset(payload: PasswordResetRequest, session: SessionDep) -> MessageResponse:
    password_reset.request_reset(session, payload.email)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.get("/password-reset/validate", response_model=PasswordResetValidateResponse)
def validate_password_reset(
    session: SessionDep,
    token: Annotated[str, Query(min_length=16, max_length=255)],
) -> PasswordResetValidateResponse:
    remaining = password_reset.validate_token(session, token)
    return PasswordResetValidateResponse(remaining_minutes=remaining)


@router.post("/password-reset/confirm", response_model=MessageResponse)
def confirm_password_reset(payload: PasswordResetConfirm, session: SessionDep) -> MessageResponse:
    password_reset.confirm_reset(session, payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset. Please sign in again.")
