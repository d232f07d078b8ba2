from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Callable

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from estatedesk.core.errors import Forbidden
from estatedesk.core.rbac import has_permission
from estatedesk.db.session import get_session
from estatedesk.models.auth_session import AuthSession
from estatedesk.models.user import Role, User
from estatedesk.services import auth as auth_service
from estatedesk.services.sessions import ClientInfo

security_logger = logging.getLogger("security")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

SessionDep = Annotated[Session, Depends(get_session)]
TokenDep = Annotated[str, Depends(oauth2_scheme)]


@dataclass
class AuthContext:
    user: User
    auth_session: AuthSession
    token: str


def get_auth_context(session: SessionDep, token: TokenDep) -> AuthContext:
    user, auth_session = auth_service.authenticate(session, token)
    return AuthContext(user=user, auth_session=auth_session, token=token)


AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]


def get_current_user(context: AuthContextDep) -> User:
    return context.user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


def client_info(request: Request) -> ClientInfo:
    forwarded = request.headers.get("x-forwarded-for")
    ip_address = forwarded.split(",")[0].strip() if forwarded else None
    if not ip_address and request.client is not None:
        ip_address = request.client.host
    return ClientInfo(ip_address=ip_address, user_agent=request.headers.get("user-agent"))


ClientDep = Annotated[ClientInfo, Depends(client_info)]


def require_permission(permission: str) -> Callable[[User], User]:
    def dependency(current_user: CurrentUserDep) -> User:
        if not has_permission(current_user.role, permission):
            raise Forbidden(f"Missing permission: {permission}")
        return current_user

    return dependency


def require_roles(*roles: Role) -> Callable[[User], User]:
    allowed = frozenset(roles)

    def dependency(current_user: CurrentUserDep) -> User:
        if current_user.role not in allowed:
            raise Forbidden("Insufficient role")
        return current_user

    return dependency
