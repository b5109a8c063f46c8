from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from db.gateway import Gateway, build_gateway, eq


CATEGORIES: List[Dict[str, Any]] = [
    {"name": "Rações", "slug": "racoes", "description": "Alimentação para cães e gatos", "display_order": 0},
    {"name": "Acessórios", "slug": "acessorios", "description": "Coleiras, guias e roupinhas", "display_order": 1},
    {"name": "Brinquedos", "slug": "brinquedos", "description": None, "display_order": 2},
    {"name": "Higiene", "slug": "higiene", "description": "Shampoos e tapetes", "display_order": 3},
]

SERVICES: List[Dict[str, Any]] = [
    {"name": "Banho", "price_small": 40.0, "price_medium": 55.0, "price_large": 70.0, "duration_minutes": 60, "icon": "bath"},
    {"name": "Tosa", "price_small": 50.0, "price_medium": 65.0, "price_large": 85.0, "duration_minutes": 90, "icon": "scissors"},
    {"name": "Banho e Tosa", "price_small": 80.0, "price_medium": 100.0, "price_large": 130.0, "duration_minutes": 120, "icon": "sparkles"},
    {"name": "Consulta veterinária", "price_small": 120.0, "price_medium": 120.0, "price_large": 120.0, "duration_minutes": 30, "icon": "stethoscope"},
]


async def _insert_missing(gateway: Gateway, table: str, key: str, rows: List[Dict[str, Any]]) -> int:
    created = 0
    for row in rows:
        if await gateway.select_one(table, [eq(key, row[key])]):
            continue
        await gateway.insert(table, {**row, **({"is_active": True} if table == "services" else {})})
        created += 1
    return created


async def seed_catalog() -> Dict[str, int]:
    gateway = build_gateway()
    try:
        return {
            "categories": await _insert_missing(gateway, "categories", "slug", CATEGORIES),
            "services": await _insert_missing(gateway, "services", "name", SERVICES),
        }
    finally:
        await gateway.close()


if __name__ == "__main__":
    print("Seeded catalog:", asyncio.run(seed_catalog()))
