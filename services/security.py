from __future__ import annotations

import hmac
import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer

from core import messages
from core.config import settings
from db.gateway import Gateway, get_gateway
from services.session import SessionContext


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)
api_key_header = APIKeyHeader(name="apikey", auto_error=False)
logger = logging.getLogger(__name__)


async def require_api_key(api_key: Optional[str] = Security(api_key_header)) -> None:
    if not api_key or not hmac.compare_digest(api_key, settings.gateway_api_key):
        logger.warning("auth.api_key_rejected", extra={"present": bool(api_key)})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=messages.API_KEY_INVALID)


async def get_session_context(
    token: Optional[str] = Depends(oauth2_scheme),
    gateway: Gateway = Depends(get_gateway),
) -> AsyncIterator[SessionContext]:
    # Subscribed for the whole request, unsubscribed on teardown
    async with SessionContext(gateway) as context:
        await context.initialize(token)
        yield context


async def require_user(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    if context.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=messages.AUTH_SESSION_INVALID,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return context


async def require_admin(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    # Anonymous callers and missing profiles get the same static denial
    if not context.is_admin:
        logger.info("auth.admin_denied", extra={"user_id": context.user.id if context.user else None})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=messages.ACCESS_DENIED)
    return context
