from __future__ import annotations

from fastapi import APIRouter, Depends

from api.v1.endpoints import admin as admin_endpoints
from api.v1.endpoints import auth as auth_endpoints
from api.v1.endpoints import booking as booking_endpoints
from api.v1.endpoints import public as public_endpoints
from api.v1.endpoints import storage as storage_endpoints
from services.security import require_api_key


api_router = APIRouter()

# Everything except public blob URLs needs the platform's public API key
keyed_router = APIRouter(dependencies=[Depends(require_api_key)])
keyed_router.include_router(auth_endpoints.router)
keyed_router.include_router(public_endpoints.router)
keyed_router.include_router(booking_endpoints.router)
keyed_router.include_router(admin_endpoints.router)

api_router.include_router(keyed_router)
api_router.include_router(storage_endpoints.router)
