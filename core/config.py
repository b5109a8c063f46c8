from __future__ import annotations

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings


load_dotenv()


class AppSettings(BaseSettings):
    # Persistence gateway: both values are mandatory, startup aborts without them
    gateway_url: str = Field(validation_alias=AliasChoices("GATEWAY_URL", "MONGO_URI"))
    gateway_api_key: str = Field(validation_alias=AliasChoices("GATEWAY_API_KEY"))
    # Accept GATEWAY_DB_NAME (preferred) or MONGO_DB_NAME (legacy)
    database_name: str = Field(
        default="petshop",
        validation_alias=AliasChoices("GATEWAY_DB_NAME", "MONGO_DB_NAME"),
    )
    auto_provision_profiles: bool = Field(default=True, alias="AUTO_PROVISION_PROFILES")

    # Public URLs for stored blobs
    public_base_url: str = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")
    portfolio_bucket: str = Field(default="portfolio", alias="PORTFOLIO_BUCKET")
    max_image_bytes: int = Field(default=5 * 1024 * 1024, alias="MAX_IMAGE_BYTES")

    # Auth / JWT
    jwt_secret_key: str = Field(default="dev-secret", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Sign-up waits for the auto-provisioned profile
    profile_poll_attempts: int = Field(default=10, alias="PROFILE_POLL_ATTEMPTS")
    profile_poll_delay_ms: int = Field(default=500, alias="PROFILE_POLL_DELAY_MS")

    featured_limit: int = Field(default=6, alias="FEATURED_LIMIT")

    allowed_origins: str = Field(default="http://localhost:5173", alias="ALLOWED_ORIGINS")

    environment: Literal["development", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    # Location page
    store_address: str = Field(default="Plano Diretor Sul - Palmas, TO", alias="STORE_ADDRESS")
    store_maps_url: str = Field(
        default="https://maps.app.goo.gl/hZVKg9jXLoBqcC3j8", alias="STORE_MAPS_URL"
    )
    store_whatsapp_url: str = Field(default="https://wa.me/5511999999999", alias="STORE_WHATSAPP_URL")
    store_instagram_url: str = Field(default="https://instagram.com/petshop", alias="STORE_INSTAGRAM_URL")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
