# backend/app/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, Response, status

from backend.app.api import deps
from backend.app.core.config import settings
from backend.app.core.exceptions import InvalidSessionError
from backend.app.schemas.account import (
    AccountResponse,
    ApiKeyRequest,
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    SecretResponse,
)
from backend.app.services.auth_service import AuthResult, AuthService

router = APIRouter()


def _set_session_cookie(response: Response, token: str) -> None:
    # HttpOnly: page scripts never see the token
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_lifetime_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        message=result.message,
        user=AccountResponse.model_validate(result.account),
        session_id=result.session_token,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(deps.auth_rate_limit)],
)
async def register(
    user_in: RegisterRequest,
    response: Response,
    service: AuthService = Depends(deps.get_auth_service),
):
    result = await service.register(user_in.email, user_in.password)
    _set_session_cookie(response, result.session_token)
    return _auth_response(result)


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(deps.auth_rate_limit)],
)
async def login(
    credentials: LoginRequest,
    response: Response,
    service: AuthService = Depends(deps.get_auth_service),
):
    result = await service.login(credentials.email, credentials.password)
    _set_session_cookie(response, result.session_token)
    return _auth_response(result)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    current: deps.CurrentAccount = Depends(deps.require_session),
    service: AuthService = Depends(deps.get_auth_service),
):
    await service.logout(current.session_token)
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def me(current: deps.CurrentAccount = Depends(deps.require_session)):
    return MeResponse(user=AccountResponse.model_validate(current))


@router.get("/api-key", response_model=SecretResponse, response_model_exclude_none=True)
async def get_api_key(
    current: deps.CurrentAccount = Depends(deps.require_session),
    service: AuthService = Depends(deps.get_auth_service),
):
    secret = await service.get_secret(current.id)
    return SecretResponse(has_secret=secret is not None, secret=secret)


@router.put("/api-key", response_model=MessageResponse)
async def put_api_key(
    key_in: ApiKeyRequest,
    current: deps.CurrentAccount = Depends(deps.require_session),
    service: AuthService = Depends(deps.get_auth_service),
):
    if not await service.update_secret(current.id, key_in.api_key):
        # Account was removed after the session check
        raise InvalidSessionError()
    return MessageResponse(message="API key updated successfully")
