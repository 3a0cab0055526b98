import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fleet_venue.config import settings
from fleet_venue.database import check_db_connection
from fleet_venue.utils.exceptions import AppException
from fleet_venue.middleware.error_handler import (
    app_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    store_error_handler,
    generic_exception_handler,
)

from fleet_venue.api.v1 import auth
from fleet_venue.api.v1 import users
from fleet_venue.api.v1 import modules
from fleet_venue.api.v1 import employees
from fleet_venue.api.v1 import vehicles
from fleet_venue.api.v1 import assignments
from fleet_venue.api.v1 import licenses
from fleet_venue.api.v1 import fuel_loads
from fleet_venue.api.v1 import maintenance
from fleet_venue.api.v1 import catalogs
from fleet_venue.api.v1 import rooms
from fleet_venue.api.v1 import reservations
from fleet_venue.api.v1 import reports

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Fleet & Event Venue Administration API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # ─── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Exception Handlers ───────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ─── Routers ──────────────────────────────────────────────────────────────
    PREFIX = "/api/v1"
    app.include_router(auth.router,         prefix=PREFIX, tags=["Auth"])
    app.include_router(users.router,        prefix=PREFIX, tags=["Users"])
    app.include_router(modules.router,      prefix=PREFIX, tags=["Users"])
    app.include_router(employees.router,    prefix=PREFIX, tags=["Employees"])
    app.include_router(vehicles.router,     prefix=PREFIX, tags=["Vehicles"])
    app.include_router(assignments.router,  prefix=PREFIX, tags=["Assignments"])
    app.include_router(licenses.router,     prefix=PREFIX, tags=["Licenses"])
    app.include_router(fuel_loads.router,   prefix=PREFIX, tags=["Fuel Loads"])
    app.include_router(maintenance.router,  prefix=PREFIX, tags=["Maintenance"])
    app.include_router(catalogs.router,     prefix=PREFIX, tags=["Catalogs"])
    app.include_router(rooms.router,        prefix=PREFIX, tags=["Rooms"])
    app.include_router(reservations.router, prefix=PREFIX, tags=["Reservations"])
    app.include_router(reports.router,      prefix=PREFIX, tags=["Reports"])

    # ─── Startup ──────────────────────────────────────────────────────────────
    @app.on_event("startup")
    def on_startup():
        ok = check_db_connection()
        if ok:
            logger.info("DB connected")
        else:
            logger.error("DB connection FAILED")

    # ─── Health ───────────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fleet_venue.main:app", host=settings.APP_HOST, port=settings.APP_PORT,
                reload=settings.is_development)
