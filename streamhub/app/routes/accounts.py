"""API routes for sign-up, sign-in and the current session."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from ..errors import AuthError
from ..schemas.accounts import LoginRequest, RegisterRequest, RegisterResponse, UserOut
from ..schemas.catalog import SubscriptionOut
from ..services.accounts import get_account_service
from .dependencies import get_app_config, get_session_user, read_session_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest) -> RegisterResponse:
    result = get_account_service().sign_up(
        payload.email,
        payload.password,
        payload.full_name,
        payload.plan_key,
    )
    return RegisterResponse(
        user=UserOut.from_user(result.user),
        subscription=SubscriptionOut.from_subscription(result.subscription),
        plan_name=result.plan.name,
    )


@router.post("/login", response_model=UserOut)
def login(payload: LoginRequest, response: Response) -> UserOut:
    service = get_account_service()
    session = service.sign_in(payload.email, payload.password)
    user = service.current_user(session.token)
    if user is None:
        raise AuthError("This account has no profile yet.")

    config = get_app_config()
    response.set_cookie(
        key=config.session_cookie_name,
        value=session.token,
        httponly=True,
        samesite="lax",
        secure=config.session_cookie_secure,
        max_age=config.jwt_exp_minutes * 60,
        path="/",
    )
    return UserOut.from_user(user)


@router.post("/logout")
def logout(
    response: Response,
    session_token: Optional[str] = Depends(read_session_token),
):
    config = get_app_config()
    response.delete_cookie(
        config.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=config.session_cookie_secure,
    )
    get_account_service().sign_out(session_token)
    return {"ok": True}


@router.get("/me", response_model=UserOut)
def read_current_user(current_user=Depends(get_session_user)) -> UserOut:
    return UserOut.from_user(current_user)


__all__ = ["router"]
