# storefront/config.py
from fastapi import Request
from pydantic_settings import BaseSettings
from typing import ClassVar, List, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    # One connection per logical store
    ORDERS_DATABASE_URL: Optional[str] = "sqlite:///./storefront_orders.db"
    PRODUCTS_DATABASE_URL: Optional[str] = "sqlite:///./storefront_products.db"
    USERS_DATABASE_URL: Optional[str] = "sqlite:///./storefront_users.db"

    # Identity provider token verification (shared secret or JWKS)
    IDENTITY_JWT_SECRET: Optional[str] = None
    IDENTITY_JWKS_URL: Optional[str] = None
    IDENTITY_ISSUER: Optional[str] = None
    IDENTITY_AUDIENCE: Optional[str] = None
    IDENTITY_ALGORITHMS: List[str] = ["RS256", "HS256"]
    IDENTITY_WEBHOOK_SECRET: Optional[str] = None

    FRONTEND_URL: Optional[str] = None
    DEFAULT_CURRENCY: str = "INR"

    # Mounts the /api/test* diagnostic routes
    DEBUG_ROUTES: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
