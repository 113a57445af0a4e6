from typing import Iterable, Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from storefront.api.deps import get_current_user, get_optional_user, get_session_manager
from storefront.core.config import settings
from storefront.core.errors import Forbidden
from storefront.db.models import Role, User
from storefront.schemas import LoginPayload, MessageRead, RegisterPayload, UserRead
from storefront.services.sessions import REFRESH_COOKIE, CookieDirective, SessionManager

router = APIRouter()  # main.py mounts at /api/auth


def apply_cookies(response: Response, directives: Iterable[CookieDirective]) -> None:
    for d in directives:
        options = {"httponly": True, "secure": settings.is_production, "samesite": "strict"}
        if d.max_age:
            response.set_cookie(d.name, d.value, max_age=d.max_age, **options)
        else:
            response.delete_cookie(d.name, **options)


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def signup(
    payload: RegisterPayload,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
    caller: Optional[User] = Depends(get_optional_user),
):
    caller_is_admin = caller is not None and caller.role == Role.admin
    # elevated roles are granted by an existing admin, never self-assigned
    if payload.role == Role.admin and not caller_is_admin:
        raise Forbidden("Only admins can create admin accounts")

    session = sessions.register(payload.name, str(payload.email), payload.password, payload.role)
    # an admin provisioning an account keeps their own session cookies
    if not caller_is_admin:
        apply_cookies(response, sessions.session_cookies(session.tokens))
    return session.user


@router.post("/login", response_model=UserRead)
def login(payload: LoginPayload, response: Response, sessions: SessionManager = Depends(get_session_manager)):
    session = sessions.authenticate(str(payload.email), payload.password)
    apply_cookies(response, sessions.session_cookies(session.tokens))
    return session.user


@router.post("/logout", response_model=MessageRead)
def logout(
    response: Response,
    refresh_token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    sessions: SessionManager = Depends(get_session_manager),
):
    sessions.revoke(refresh_token)
    apply_cookies(response, sessions.cleared_cookies())
    return {"message": "Logged out successfully"}


@router.post("/refresh-token", response_model=MessageRead)
def refresh_token(
    response: Response,
    refresh_token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    sessions: SessionManager = Depends(get_session_manager),
):
    access = sessions.refresh(refresh_token)
    apply_cookies(response, [sessions.access_cookie(access)])
    return {"message": "Token refreshed successfully"}


@router.get("/profile", response_model=UserRead)
def profile(user: User = Depends(get_current_user)):
    return user
