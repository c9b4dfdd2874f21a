import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from rental_api.core.config import settings
from rental_api.core.database import Database
from rental_api.core.errors import register_error_handlers
from rental_api.api.routes.auth import router as auth_router
from rental_api.api.routes.categories import router as categories_router
from rental_api.api.routes.items import router as items_router
from rental_api.api.routes.customers import router as customers_router
from rental_api.api.routes.rentals import router as rentals_router
from rental_api.api.routes.maintenance import router as maintenance_router
from rental_api.api.routes.finances import router as finances_router
from rental_api.api.routes.dashboard import router as dashboard_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the API. With no database given, one is opened from DATABASE_URL at
    startup and disposed at shutdown; a database passed in stays owned by the
    caller.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = database is None
        app.state.db = database or Database(settings.DATABASE_URL)
        logger.info("Rental API starting (env=%s)", settings.ENV)
        try:
            yield
        finally:
            if owned:
                app.state.db.dispose()

    # 1) Create the app FIRST
    app = FastAPI(title="Rental Inventory Backend", lifespan=lifespan)
    if database is not None:
        # Usable before startup runs (e.g. TestClient without a with-block)
        app.state.db = database

    # 2) Add CORS Middleware BEFORE routes
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # 3) Include routers AFTER app is created
    app.include_router(auth_router)
    app.include_router(categories_router)
    app.include_router(items_router)
    app.include_router(customers_router)
    app.include_router(rentals_router)
    app.include_router(maintenance_router)
    app.include_router(finances_router)
    app.include_router(dashboard_router)

    # 4) Health check endpoints
    @app.get("/health")
    def health():
        return {"ok": True, "service": "rental-api"}

    @app.get("/db-health")
    def db_health(request: Request):
        db = request.app.state.db.session()
        try:
            db.execute(text("select 1"))
            return {"ok": True, "db": "connected"}
        finally:
            db.close()

    return app


app = create_app()
