"""
Pavilo Billing Buddy – FastAPI application entry point.

Run with:
    uvicorn pavilo.main:app --reload --host 0.0.0.0 --port 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from pavilo.api.catalog_routes import catalog_router
from pavilo.api.invoice_routes import invoice_router
from pavilo.api.plan_routes import plan_router
from pavilo.api.routes import router
from pavilo.core.config import settings
from pavilo.core.database import create_db_and_tables
from pavilo.core.exceptions import SerializationError
from pavilo.core.logging import setup_logging
from pavilo.core.storage import get_storage
from pavilo.services.preferences import AppPreferences


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown hooks."""
    setup_logging()
    logger.info("Starting Pavilo backend …")
    if settings.STORAGE_BACKEND == "sql":
        create_db_and_tables()
        logger.info("Database tables ready")
    app.state.preferences = AppPreferences.from_storage(get_storage())
    yield
    logger.info("Pavilo backend shut down")


app = FastAPI(
    title="Pavilo Billing Buddy API",
    description="Billing, inventory and payment tracking for small shops",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS – allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(catalog_router)
app.include_router(invoice_router)
app.include_router(plan_router)


@app.exception_handler(SerializationError)
async def unreadable_stored_data(request: Request, exc: SerializationError):
    """Writes over stored data that could not be read are refused with 409."""
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.get("/")
def root():
    return {"message": "Pavilo Billing Buddy API", "docs": "/docs"}
