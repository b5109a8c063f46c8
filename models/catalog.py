from __future__ import annotations

from typing import Optional

from .base import EmbeddedRef, GatewayModel


class Category(GatewayModel):
    name: str
    slug: str
    description: Optional[str] = None
    display_order: int = 0


class Product(GatewayModel):
    title: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    price: float
    image_url: str
    is_featured: bool = False
    categories: Optional[EmbeddedRef] = None


class Service(GatewayModel):
    name: str
    description: Optional[str] = None
    price_small: float = 0
    price_medium: float = 0
    price_large: float = 0
    duration_minutes: int = 60
    icon: str = "heart"
    is_active: bool = True
