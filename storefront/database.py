# storefront/database.py
import logging
from typing import Dict, Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.errors import DatabaseNotConfiguredError

logger = logging.getLogger(__name__)

ORDERS = "orders"
PRODUCTS = "products"
USERS = "users"
STORES = (ORDERS, PRODUCTS, USERS)

# Each store has its own metadata since the tables live in separate databases
OrdersBase = declarative_base()
ProductsBase = declarative_base()
UsersBase = declarative_base()

BASES = {ORDERS: OrdersBase, PRODUCTS: ProductsBase, USERS: UsersBase}

# Key used for the users store in health reports
HEALTH_KEYS = {ORDERS: "orders", PRODUCTS: "products", USERS: "user"}


def normalize_url(url: str) -> str:
    # Hosted providers hand out postgres:// while SQLAlchemy needs postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def make_engine(url: str) -> Engine:
    url = normalize_url(url)
    if "sqlite" in url:
        connect_args = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases must share one connection to stay visible
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(url, connect_args=connect_args)
    return create_engine(url, pool_pre_ping=True)


class DatabaseRouter:
    """Named handles to the orders, products and users stores."""

    def __init__(self, urls: Dict[str, Optional[str]]):
        self._engines: Dict[str, Engine] = {}
        self._sessions: Dict[str, sessionmaker] = {}
        for store in STORES:
            url = urls.get(store)
            if not url:
                logger.warning("No database URL configured for store '%s'", store)
                continue
            engine = make_engine(url)
            self._engines[store] = engine
            self._sessions[store] = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_settings(cls, settings) -> "DatabaseRouter":
        return cls({
            ORDERS: settings.ORDERS_DATABASE_URL,
            PRODUCTS: settings.PRODUCTS_DATABASE_URL,
            USERS: settings.USERS_DATABASE_URL,
        })

    def is_configured(self, store: str) -> bool:
        return store in self._engines

    def engine(self, store: str) -> Engine:
        if store not in self._engines:
            raise DatabaseNotConfiguredError(store)
        return self._engines[store]

    def session(self, store: str) -> Session:
        if store not in self._sessions:
            raise DatabaseNotConfiguredError(store)
        return self._sessions[store]()

    def init_db(self) -> None:
        import storefront.models  # noqa: F401

        for store, engine in self._engines.items():
            BASES[store].metadata.create_all(bind=engine)

    def dispose(self) -> None:
        for engine in self._engines.values():
            engine.dispose()

    def check_connections(self) -> Dict[str, bool]:
        """Probe every store with a trivial read; one failure never hides the others."""
        from storefront.models.order import Order
        from storefront.models.product import Product
        from storefront.models.users import UserProfile

        probes = {ORDERS: Order.id, PRODUCTS: Product.id, USERS: UserProfile.id}
        status = {}
        for store in STORES:
            key = HEALTH_KEYS[store]
            try:
                db = self.session(store)
                try:
                    db.execute(select(probes[store]).limit(1))
                finally:
                    db.close()
                status[key] = True
            except Exception as e:
                logger.error("Health check failed for '%s' database: %s", store, e)
                status[key] = False
        return status


def get_router(request: Request) -> DatabaseRouter:
    return request.app.state.databases


def _session_dependency(store: str):
    def _get_db(request: Request) -> Iterator[Session]:
        db = get_router(request).session(store)
        try:
            yield db
        finally:
            db.close()
    _get_db.__name__ = f"get_{store}_db"
    return _get_db


get_orders_db = _session_dependency(ORDERS)
get_products_db = _session_dependency(PRODUCTS)
get_users_db = _session_dependency(USERS)
