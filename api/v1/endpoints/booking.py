from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from core import messages
from core.errors import GatewayError, ValidationFailed
from schemas.booking import AppointmentListResponse, BookingForm, BookingRequest, BookingResponse
from services import appointments as appointment_service
from services.security import get_session_context, require_user
from services.session import SessionContext


router = APIRouter(tags=["booking"])
logger = logging.getLogger(__name__)

StatusFilter = Literal["all", "pending", "confirmed", "completed", "cancelled"]


@router.get("/appointments/form", response_model=BookingForm)
async def booking_form(context: SessionContext = Depends(get_session_context)) -> BookingForm:
    return appointment_service.blank_form(context.profile)


@router.post("/appointments", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    payload: BookingRequest,
    context: SessionContext = Depends(get_session_context),
) -> BookingResponse:
    if context.user is None:
        # The client sends the visitor to sign in instead of submitting
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=messages.AUTH_REQUIRED_TO_BOOK,
            headers={"WWW-Authenticate": "Bearer"},
        )
    logger.info("appointments.create.request", extra={"user_id": context.user.id, "date": str(payload.appointment_date)})
    try:
        appointment = await appointment_service.submit_booking(context.gateway, context.user.id, payload)
    except ValidationFailed as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    except GatewayError as exc:
        logger.exception("appointments.create.error")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message or messages.BOOKING_FAILED)

    return BookingResponse(
        message=messages.BOOKING_SUCCESS,
        appointment=appointment,
        form=appointment_service.blank_form(context.profile),
    )


@router.get("/appointments/mine", response_model=AppointmentListResponse)
async def my_appointments(
    status_filter: StatusFilter = Query(default="all", alias="status"),
    search: Optional[str] = Query(default=None),
    context: SessionContext = Depends(require_user),
) -> AppointmentListResponse:
    try:
        loaded = await appointment_service.list_appointments(context.gateway, user_id=context.user.id)
    except GatewayError:
        logger.exception("appointments.mine.load_failed", extra={"user_id": context.user.id})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=messages.APPOINTMENTS_LOAD_FAILED)
    return AppointmentListResponse(
        appointments=appointment_service.filter_appointments(loaded, search=search, status=status_filter),
        counts=appointment_service.status_counts(loaded),
        total=len(loaded),
    )
