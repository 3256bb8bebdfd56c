# storefront/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import Settings, settings as default_settings
from storefront.database import DatabaseRouter
from storefront.responses import register_error_handlers
from storefront.utils.identity import IdentityVerifier

load_dotenv()

# Routers
from storefront.routes.health import router as health_router
from storefront.routes.orders import router as orders_router
from storefront.routes.products import router as products_router
from storefront.routes.cart import router as cart_router
from storefront.routes.addresses import router as addresses_router
from storefront.routes.users import router as users_router
from storefront.routes.wishlist import router as wishlist_router
from storefront.routes.webhooks import router as webhooks_router
from storefront.routes.debug import router as debug_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.databases.init_db()
    yield
    app.state.databases.dispose()


def create_app(
    settings: Optional[Settings] = None,
    databases: Optional[DatabaseRouter] = None,
    identity: Optional[IdentityVerifier] = None,
) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(title="Storefront API", version="1.0.0", lifespan=lifespan)

    # Store handles and the identity verifier are injected, never imported by services
    app.state.settings = settings
    app.state.databases = databases or DatabaseRouter.from_settings(settings)
    app.state.identity = identity or IdentityVerifier.from_settings(settings)

    # CORS Configuration
    origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    if settings.FRONTEND_URL:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Debug routes first so /api/products/debug wins over /api/products/{id_or_slug}
    if settings.DEBUG_ROUTES:
        logger.warning("Diagnostic routes are enabled")
        app.include_router(debug_router)

    # Register routers
    app.include_router(health_router)
    app.include_router(orders_router)
    app.include_router(products_router)
    app.include_router(cart_router)
    app.include_router(addresses_router)
    app.include_router(users_router)
    app.include_router(wishlist_router)
    app.include_router(webhooks_router)

    @app.get("/")
    def read_root():
        return {"message": "Storefront API is running"}

    return app


app = create_app()
