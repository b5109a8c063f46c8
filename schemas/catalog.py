from __future__ import annotations

from pydantic import BaseModel


class StoreInfo(BaseModel):
    address: str
    maps_url: str
    whatsapp_url: str
    instagram_url: str
