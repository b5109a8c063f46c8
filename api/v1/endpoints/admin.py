from __future__ import annotations

import logging
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from core import messages
from core.config import settings
from core.errors import GatewayError, ValidationFailed
from db.gateway import Gateway, eq, get_gateway
from models.appointment import Appointment
from models.catalog import Product, Service
from schemas.admin import (
    AdminAppointmentList,
    AdminAppointmentView,
    AppointmentDetailsUpdate,
    MessageResponse,
    ProductWrite,
    ServiceUpdate,
    ServiceWrite,
    UploadResponse,
)
from services import appointments as appointment_service
from services import catalog
from services.calendar_view import MonthCalendar, load_day, load_month
from services.security import require_admin
from services.session import SessionContext
from services.stats import DashboardStats, load_dashboard_stats
from services.workflow import ActorNotAuthorized, TransitionNotAllowed, WorkflowAction


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

StatusFilter = Literal["all", "pending", "confirmed", "completed", "cancelled"]


def _require_confirmation(confirm: bool) -> None:
    if not confirm:
        raise HTTPException(status_code=400, detail=messages.DELETE_CONFIRMATION_REQUIRED)


async def _load_appointment(gateway: Gateway, appointment_id: str) -> Appointment:
    try:
        appointment = await appointment_service.get_appointment(gateway, appointment_id)
    except GatewayError:
        logger.exception("appointments.get.error", extra={"appointment_id": appointment_id})
        raise HTTPException(status_code=502, detail=messages.APPOINTMENTS_LOAD_FAILED)
    if appointment is None:
        raise HTTPException(status_code=404, detail=messages.APPOINTMENT_NOT_FOUND)
    return appointment


# ---------------- Dashboard ----------------


@router.get("/dashboard-stats", response_model=DashboardStats)
async def dashboard_stats(gateway: Gateway = Depends(get_gateway)) -> DashboardStats:
    try:
        return await load_dashboard_stats(gateway)
    except GatewayError:
        # One message whichever of the concurrent queries failed
        logger.exception("dashboard.stats.error")
        raise HTTPException(status_code=502, detail=messages.STATS_LOAD_FAILED)


# ---------------- Appointments ----------------


@router.get("/appointments", response_model=AdminAppointmentList)
async def list_appointments(
    search: Optional[str] = None,
    status_filter: StatusFilter = Query(default="all", alias="status"),
    gateway: Gateway = Depends(get_gateway),
) -> AdminAppointmentList:
    try:
        loaded = await appointment_service.list_appointments(gateway)
    except GatewayError:
        logger.exception("appointments.list.error")
        raise HTTPException(status_code=502, detail=messages.APPOINTMENTS_LOAD_FAILED)
    filtered = appointment_service.filter_appointments(loaded, search=search, status=status_filter)
    return AdminAppointmentList(appointments=[AdminAppointmentView.of(a) for a in filtered], total=len(loaded))


@router.get("/appointments/{appointment_id}", response_model=AdminAppointmentView)
async def appointment_details(appointment_id: str, gateway: Gateway = Depends(get_gateway)) -> AdminAppointmentView:
    return AdminAppointmentView.of(await _load_appointment(gateway, appointment_id))


@router.patch("/appointments/{appointment_id}/details", response_model=AdminAppointmentView)
async def update_appointment_details(
    appointment_id: str,
    payload: AppointmentDetailsUpdate,
    gateway: Gateway = Depends(get_gateway),
) -> AdminAppointmentView:
    await _load_appointment(gateway, appointment_id)
    patch = payload.model_dump(exclude_unset=True)
    try:
        if patch:
            await gateway.update("appointments", patch, [eq("id", appointment_id)])
    except GatewayError:
        logger.exception("appointments.details.error", extra={"appointment_id": appointment_id})
        raise HTTPException(status_code=502, detail=messages.APPOINTMENT_UPDATE_FAILED)
    return AdminAppointmentView.of(await _load_appointment(gateway, appointment_id))


@router.post("/appointments/{appointment_id}/{action}", response_model=AdminAppointmentView)
async def change_appointment_status(
    appointment_id: str,
    action: WorkflowAction,
    context: SessionContext = Depends(require_admin),
) -> AdminAppointmentView:
    appointment = await _load_appointment(context.gateway, appointment_id)
    try:
        updated = await appointment_service.transition(
            context.gateway, appointment, action, actor_is_admin=context.is_admin
        )
    except ActorNotAuthorized as exc:
        raise HTTPException(status_code=403, detail=exc.message)
    except TransitionNotAllowed as exc:
        logger.info(
            "appointments.status.rejected",
            extra={"appointment_id": appointment_id, "from": exc.current.value, "to": exc.target.value},
        )
        raise HTTPException(status_code=409, detail=exc.message)
    except GatewayError:
        logger.exception("appointments.status.error", extra={"appointment_id": appointment_id})
        raise HTTPException(status_code=502, detail=messages.APPOINTMENT_UPDATE_FAILED)
    if updated is None:
        raise HTTPException(status_code=404, detail=messages.APPOINTMENT_NOT_FOUND)
    return AdminAppointmentView.of(updated)


@router.delete("/appointments/{appointment_id}", response_model=MessageResponse)
async def delete_appointment(
    appointment_id: str,
    confirm: bool = False,
    gateway: Gateway = Depends(get_gateway),
) -> MessageResponse:
    _require_confirmation(confirm)
    try:
        deleted = await gateway.delete("appointments", [eq("id", appointment_id)])
    except GatewayError:
        logger.exception("appointments.delete.error", extra={"appointment_id": appointment_id})
        raise HTTPException(status_code=502, detail=messages.APPOINTMENT_DELETE_FAILED)
    if not deleted:
        raise HTTPException(status_code=404, detail=messages.APPOINTMENT_NOT_FOUND)
    logger.info("appointments.delete.success", extra={"appointment_id": appointment_id})
    return MessageResponse(message=messages.APPOINTMENT_DELETED)


# ---------------- Calendar ----------------


@router.get("/calendar", response_model=MonthCalendar)
async def month_calendar(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    gateway: Gateway = Depends(get_gateway),
) -> MonthCalendar:
    today = date.today()
    try:
        return await load_month(gateway, year or today.year, month or today.month)
    except GatewayError:
        logger.exception("calendar.month.error", extra={"year": year, "month": month})
        raise HTTPException(status_code=502, detail=messages.APPOINTMENTS_LOAD_FAILED)


@router.get("/calendar/days/{day}", response_model=List[Appointment])
async def day_appointments(day: date, gateway: Gateway = Depends(get_gateway)) -> List[Appointment]:
    try:
        return await load_day(gateway, day)
    except GatewayError:
        logger.exception("calendar.day.error", extra={"day": day.isoformat()})
        raise HTTPException(status_code=502, detail=messages.APPOINTMENTS_LOAD_FAILED)


# ---------------- Services ----------------


@router.get("/services", response_model=List[Service])
async def list_all_services(gateway: Gateway = Depends(get_gateway)) -> List[Service]:
    try:
        return await catalog.list_services(gateway, active_only=False)
    except GatewayError:
        logger.exception("services.list.error")
        raise HTTPException(status_code=502, detail=messages.DATA_LOAD_FAILED)


@router.post("/services", response_model=Service, status_code=201)
async def create_service(payload: ServiceWrite, gateway: Gateway = Depends(get_gateway)) -> Service:
    try:
        return await catalog.create_service(gateway, payload)
    except ValidationFailed as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except GatewayError:
        logger.exception("services.create.error")
        raise HTTPException(status_code=502, detail=messages.SERVICE_SAVE_FAILED)


@router.put("/services/{service_id}", response_model=Service)
async def update_service(service_id: str, payload: ServiceUpdate, gateway: Gateway = Depends(get_gateway)) -> Service:
    try:
        service = await catalog.update_service(gateway, service_id, payload)
    except ValidationFailed as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except GatewayError:
        logger.exception("services.update.error", extra={"service_id": service_id})
        raise HTTPException(status_code=502, detail=messages.SERVICE_SAVE_FAILED)
    if service is None:
        raise HTTPException(status_code=404, detail=messages.SERVICE_NOT_FOUND)
    return service


@router.delete("/services/{service_id}", response_model=MessageResponse)
async def delete_service(service_id: str, confirm: bool = False, gateway: Gateway = Depends(get_gateway)) -> MessageResponse:
    _require_confirmation(confirm)
    try:
        deleted = await catalog.delete_service(gateway, service_id)
    except GatewayError:
        logger.exception("services.delete.error", extra={"service_id": service_id})
        raise HTTPException(status_code=502, detail=messages.SERVICE_DELETE_FAILED)
    if not deleted:
        raise HTTPException(status_code=404, detail=messages.SERVICE_NOT_FOUND)
    return MessageResponse(message="ok")


# ---------------- Products (portfolio) ----------------


@router.get("/products", response_model=List[Product])
async def list_all_products(gateway: Gateway = Depends(get_gateway)) -> List[Product]:
    try:
        return await catalog.list_products(gateway)
    except GatewayError:
        logger.exception("products.list.error")
        raise HTTPException(status_code=502, detail=messages.DATA_LOAD_FAILED)


@router.post("/products", response_model=Product, status_code=201)
async def create_product(payload: ProductWrite, gateway: Gateway = Depends(get_gateway)) -> Product:
    try:
        return await catalog.create_product(gateway, payload)
    except ValidationFailed as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except GatewayError:
        logger.exception("products.create.error")
        raise HTTPException(status_code=502, detail=messages.PRODUCT_SAVE_FAILED)


@router.put("/products/{product_id}", response_model=Product)
async def update_product(product_id: str, payload: ProductWrite, gateway: Gateway = Depends(get_gateway)) -> Product:
    try:
        product = await catalog.update_product(gateway, product_id, payload)
    except ValidationFailed as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except GatewayError:
        logger.exception("products.update.error", extra={"product_id": product_id})
        raise HTTPException(status_code=502, detail=messages.PRODUCT_SAVE_FAILED)
    if product is None:
        raise HTTPException(status_code=404, detail=messages.PRODUCT_NOT_FOUND)
    return product


@router.post("/products/{product_id}/toggle-featured", response_model=Product)
async def toggle_featured(product_id: str, gateway: Gateway = Depends(get_gateway)) -> Product:
    try:
        product = await catalog.get_product(gateway, product_id)
        if product is None:
            raise HTTPException(status_code=404, detail=messages.PRODUCT_NOT_FOUND)
        updated = await catalog.toggle_featured(gateway, product)
    except GatewayError:
        logger.exception("products.featured.error", extra={"product_id": product_id})
        raise HTTPException(status_code=502, detail=messages.PRODUCT_FEATURED_FAILED)
    if updated is None:
        raise HTTPException(status_code=404, detail=messages.PRODUCT_NOT_FOUND)
    return updated


@router.delete("/products/{product_id}", response_model=MessageResponse)
async def delete_product(product_id: str, confirm: bool = False, gateway: Gateway = Depends(get_gateway)) -> MessageResponse:
    _require_confirmation(confirm)
    try:
        deleted = await catalog.delete_product(gateway, product_id)
    except GatewayError:
        logger.exception("products.delete.error", extra={"product_id": product_id})
        raise HTTPException(status_code=502, detail=messages.PRODUCT_DELETE_FAILED)
    if not deleted:
        raise HTTPException(status_code=404, detail=messages.PRODUCT_NOT_FOUND)
    return MessageResponse(message=messages.PRODUCT_DELETED)


@router.post("/uploads", response_model=UploadResponse, status_code=201)
async def upload_image(file: UploadFile = File(...), gateway: Gateway = Depends(get_gateway)) -> UploadResponse:
    # One byte past the limit is enough to reject the file
    data = await file.read(settings.max_image_bytes + 1)
    try:
        path, public_url = await catalog.upload_product_image(
            gateway,
            bucket=settings.portfolio_bucket,
            filename=file.filename,
            content_type=file.content_type,
            data=data,
            max_bytes=settings.max_image_bytes,
        )
    except ValidationFailed as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except GatewayError:
        logger.exception("uploads.error", extra={"filename": file.filename})
        raise HTTPException(status_code=502, detail=messages.IMAGE_UPLOAD_FAILED)
    return UploadResponse(path=path, public_url=public_url)
