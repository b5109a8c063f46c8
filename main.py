from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.config import dictConfig
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.v1.router import api_router
from core.config import settings
from core.errors import GatewayError
from db.gateway import build_gateway, get_gateway


def configure_logging() -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "level": "INFO",
                }
            },
            "root": {"handlers": ["console"], "level": "INFO"},
            "loggers": {
                "api": {"level": "INFO", "propagate": True},
                "services": {"level": "INFO", "propagate": True},
                "db": {"level": "INFO", "propagate": True},
            },
        }
    )


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("app.startup", extra={"environment": settings.environment})
    if get_gateway not in app.dependency_overrides:
        try:
            await build_gateway().ensure_indexes()
        except GatewayError:
            # Retried on the first sign-up or sign-in
            logger.exception("app.startup.indexes_failed")
    yield
    # Tests swap the gateway out; only close the real one if it was built
    if get_gateway not in app.dependency_overrides and build_gateway.cache_info().currsize:
        await build_gateway().close()
        build_gateway.cache_clear()
    logger.info("app.shutdown")


def create_app() -> FastAPI:
    app = FastAPI(title="Pet Shop API", version="0.1.0", lifespan=lifespan)

    origins_env = settings.allowed_origins.strip()
    allow_all_origins = origins_env in {"*", '"*"'}
    if allow_all_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        allowed_origins = [o.strip() for o in origins_env.split(",") if o.strip()]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/")
    async def root_health() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("Application initialized")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.environment == "development")
