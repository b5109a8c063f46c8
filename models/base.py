from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class GatewayModel(BaseModel):
    """A row read from (or written to) a gateway table."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        # JSON mode: dates become ISO strings, as the gateway stores them
        return self.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})


class EmbeddedRef(BaseModel):
    name: str
    slug: Optional[str] = None
