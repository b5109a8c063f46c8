from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from core import messages
from core.errors import ValidationFailed
from db.gateway import Gateway, Order, eq, in_, utcnow
from models.base import EmbeddedRef
from models.catalog import Category, Product, Service
from schemas.admin import ProductWrite, ServiceUpdate, ServiceWrite
from services.validation import validate_image


logger = logging.getLogger(__name__)

NEWEST_FIRST = (Order("created_at", descending=True),)
PRODUCT_IMAGE_PREFIX = "products"


# ---------------- Catalog (read) ----------------

async def list_categories(gateway: Gateway) -> List[Category]:
    rows = await gateway.select("categories", order=[Order("display_order")])
    return [Category(**row) for row in rows]


async def _embed_categories(gateway: Gateway, rows: List[Dict[str, Any]]) -> List[Product]:
    category_ids = {row["category_id"] for row in rows if row.get("category_id")}
    by_id: Dict[str, Dict[str, Any]] = {}
    if category_ids:
        categories = await gateway.select("categories", [in_("id", sorted(category_ids))], columns=["name", "slug"])
        by_id = {c["id"]: c for c in categories}
    products = []
    for row in rows:
        category = by_id.get(row.get("category_id") or "")
        embedded = EmbeddedRef(name=category["name"], slug=category.get("slug")) if category else None
        products.append(Product(**{**row, "categories": embedded}))
    return products


async def list_products(gateway: Gateway, category_id: Optional[str] = None) -> List[Product]:
    """All products, or only those of one category (a fresh query either way)."""
    filters = [eq("category_id", category_id)] if category_id else []
    rows = await gateway.select("products", filters, order=NEWEST_FIRST)
    return await _embed_categories(gateway, rows)


async def list_featured_products(gateway: Gateway, limit: int) -> List[Product]:
    rows = await gateway.select("products", [eq("is_featured", True)], limit=limit)
    return [Product(**row) for row in rows]


async def list_services(gateway: Gateway, *, active_only: bool = True) -> List[Service]:
    filters = [eq("is_active", True)] if active_only else []
    rows = await gateway.select("services", filters, order=[Order("name")])
    return [Service(**row) for row in rows]


# ---------------- Services (admin) ----------------

def build_service_row(payload: ServiceWrite) -> Dict[str, Any]:
    if not payload.name.strip():
        raise ValidationFailed(messages.SERVICE_NAME_REQUIRED)
    # Updates only touch the fields the caller sent
    row = payload.model_dump(exclude_unset=isinstance(payload, ServiceUpdate))
    # A null flag means "leave it as is", the stored column is never null
    if row.get("is_active", False) is None:
        del row["is_active"]
    row["name"] = payload.name.strip()
    return row


async def create_service(gateway: Gateway, payload: ServiceWrite) -> Service:
    row = build_service_row(payload)
    row["is_active"] = True
    stored = await gateway.insert("services", row)
    logger.info("services.create.success", extra={"service_id": stored["id"]})
    return Service(**stored)


async def update_service(gateway: Gateway, service_id: str, payload: ServiceUpdate) -> Optional[Service]:
    row = build_service_row(payload)
    row["updated_at"] = utcnow()
    matched = await gateway.update("services", row, [eq("id", service_id)])
    if not matched:
        return None
    stored = await gateway.select_one("services", [eq("id", service_id)])
    return Service(**stored) if stored else None


async def delete_service(gateway: Gateway, service_id: str) -> bool:
    return bool(await gateway.delete("services", [eq("id", service_id)]))


# ---------------- Products (admin) ----------------

def parse_price(raw: Union[str, float, None]) -> float:
    try:
        price = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationFailed(messages.PRODUCT_PRICE_INVALID)
    if price != price or price <= 0:
        raise ValidationFailed(messages.PRODUCT_PRICE_INVALID)
    return price


def build_product_row(payload: ProductWrite) -> Dict[str, Any]:
    if not payload.title.strip() or payload.price in (None, ""):
        raise ValidationFailed(messages.PRODUCT_REQUIRED_FIELDS)
    if not payload.image_url:
        raise ValidationFailed(messages.PRODUCT_IMAGE_REQUIRED)
    return {
        "title": payload.title.strip(),
        "description": payload.description or None,
        "category_id": payload.category_id or None,
        "price": parse_price(payload.price),
        "image_url": payload.image_url,
        "is_featured": payload.is_featured,
    }


async def get_product(gateway: Gateway, product_id: str) -> Optional[Product]:
    row = await gateway.select_one("products", [eq("id", product_id)])
    return Product(**row) if row else None


async def create_product(gateway: Gateway, payload: ProductWrite) -> Product:
    stored = await gateway.insert("products", build_product_row(payload))
    logger.info("products.create.success", extra={"product_id": stored["id"]})
    return Product(**stored)


async def update_product(gateway: Gateway, product_id: str, payload: ProductWrite) -> Optional[Product]:
    matched = await gateway.update("products", build_product_row(payload), [eq("id", product_id)])
    if not matched:
        return None
    return await get_product(gateway, product_id)


async def toggle_featured(gateway: Gateway, product: Product) -> Optional[Product]:
    await gateway.update("products", {"is_featured": not product.is_featured}, [eq("id", product.id)])
    return await get_product(gateway, product.id)


async def delete_product(gateway: Gateway, product_id: str) -> bool:
    return bool(await gateway.delete("products", [eq("id", product_id)]))


def make_upload_path(filename: Optional[str], *, now_ms: Optional[int] = None) -> str:
    ext = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else "bin"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{PRODUCT_IMAGE_PREFIX}/{uuid4().hex[:12]}-{stamp}.{ext}"


async def upload_product_image(
    gateway: Gateway,
    *,
    bucket: str,
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
    max_bytes: int,
) -> tuple[str, str]:
    validate_image(content_type, len(data), max_bytes)
    path = await gateway.upload(bucket, make_upload_path(filename), data, content_type or "application/octet-stream")
    return path, gateway.get_public_url(bucket, path)
