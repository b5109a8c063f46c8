from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from core.errors import (
    AuthProviderError,
    DuplicateRegistration,
    EmailNotConfirmed,
    GatewayError,
    InvalidCredentials,
    ValidationFailed,
    map_auth_error,
)
from schemas.admin import MessageResponse
from schemas.auth import (
    PasswordStrengthRequest,
    PasswordStrengthResponse,
    SessionDisplay,
    SignUpRequest,
    SignUpResponse,
    Token,
)
from services.security import get_session_context, require_user
from services.session import SessionContext
from services.validation import password_strength, validate_sign_up


router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def _auth_http_error(exc: GatewayError) -> HTTPException:
    detail = map_auth_error(exc)
    if isinstance(exc, (InvalidCredentials, EmailNotConfirmed)):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
    if isinstance(exc, DuplicateRegistration):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    if isinstance(exc, AuthProviderError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


@router.post("/auth/sign-up", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpRequest, context: SessionContext = Depends(get_session_context)) -> SignUpResponse:
    try:
        phone = validate_sign_up(payload.password, payload.confirm_password, payload.phone)
    except ValidationFailed as exc:
        logger.info("auth.sign_up_rejected", extra={"email": str(payload.email), "reason": exc.message})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)

    try:
        result = await context.sign_up(str(payload.email), payload.password, payload.full_name.strip(), phone)
    except GatewayError as exc:
        logger.warning("auth.sign_up_failed", extra={"email": str(payload.email), "error": exc.message})
        raise _auth_http_error(exc)

    return SignUpResponse(
        access_token=result.session.access_token,
        user_id=result.session.user.id,
        profile_found=result.profile_found,
        profile=result.profile,
    )


@router.post("/auth/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    context: SessionContext = Depends(get_session_context),
) -> Token:
    username = (form_data.username or "").strip()
    logger.info("auth.login_attempt", extra={"email": username})
    try:
        session = await context.sign_in(username, form_data.password)
    except GatewayError as exc:
        logger.warning("auth.login_failed", extra={"email": username, "error": exc.message})
        raise _auth_http_error(exc)
    logger.info("auth.login_success", extra={"user_id": session.user.id})
    return Token(access_token=session.access_token)


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(context: SessionContext = Depends(require_user)) -> MessageResponse:
    try:
        await context.sign_out()
    except GatewayError as exc:
        logger.exception("auth.logout_failed")
        raise _auth_http_error(exc)
    return MessageResponse(message="ok")


@router.post("/auth/password-strength", response_model=PasswordStrengthResponse)
async def check_password_strength(payload: PasswordStrengthRequest) -> PasswordStrengthResponse:
    strength = password_strength(payload.password)
    return PasswordStrengthResponse(score=strength.score, tier=strength.tier, valid=strength.valid)


@router.get("/users/me", response_model=SessionDisplay)
async def read_users_me(context: SessionContext = Depends(get_session_context)) -> SessionDisplay:
    return SessionDisplay(
        user=context.user,
        profile=context.profile,
        is_admin=context.is_admin,
        loading=context.state.loading,
    )
