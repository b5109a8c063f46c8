from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core import messages
from core.config import settings
from core.errors import GatewayError
from db.gateway import Gateway, get_gateway
from models.catalog import Category, Product, Service
from schemas.catalog import StoreInfo
from services import catalog


router = APIRouter(tags=["public"])
logger = logging.getLogger(__name__)


@router.get("/categories", response_model=List[Category])
async def list_categories(gateway: Gateway = Depends(get_gateway)) -> List[Category]:
    try:
        return await catalog.list_categories(gateway)
    except GatewayError:
        logger.exception("catalog.categories.load_failed")
        raise HTTPException(status_code=502, detail=messages.DATA_LOAD_FAILED)


@router.get("/products", response_model=List[Product])
async def list_products(
    category_id: Optional[str] = Query(default=None),
    gateway: Gateway = Depends(get_gateway),
) -> List[Product]:
    try:
        return await catalog.list_products(gateway, category_id=category_id or None)
    except GatewayError:
        logger.exception("catalog.products.load_failed", extra={"category_id": category_id})
        raise HTTPException(status_code=502, detail=messages.DATA_LOAD_FAILED)


@router.get("/products/featured", response_model=List[Product])
async def list_featured_products(gateway: Gateway = Depends(get_gateway)) -> List[Product]:
    try:
        return await catalog.list_featured_products(gateway, limit=settings.featured_limit)
    except GatewayError:
        logger.exception("catalog.featured.load_failed")
        raise HTTPException(status_code=502, detail=messages.DATA_LOAD_FAILED)


@router.get("/services", response_model=List[Service])
async def list_services(gateway: Gateway = Depends(get_gateway)) -> List[Service]:
    try:
        return await catalog.list_services(gateway, active_only=True)
    except GatewayError:
        logger.exception("services.load_failed")
        raise HTTPException(status_code=502, detail=messages.DATA_LOAD_FAILED)


@router.get("/store-info", response_model=StoreInfo)
async def store_info() -> StoreInfo:
    return StoreInfo(
        address=settings.store_address,
        maps_url=settings.store_maps_url,
        whatsapp_url=settings.store_whatsapp_url,
        instagram_url=settings.store_instagram_url,
    )
