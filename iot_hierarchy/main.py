from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import iot_hierarchy.api.routes as routes_module

from .domain.interfaces import Repository
from .services.store import HierarchyStore
from .storage.json_repo import JsonFileRepository
from .storage.sqlite_repo import SQLiteRepository


logger = logging.getLogger(__name__)


def build_repository() -> Repository:
    if settings.storage_backend.lower() == "sqlite":
        return SQLiteRepository(settings.sqlite_path)
    # default to the JSON document
    return JsonFileRepository(settings.data_path)


# --- Singletons ---
store = HierarchyStore(build_repository())


def get_store() -> HierarchyStore:
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s (storage=%s)", settings.app_name, settings.storage_backend)

    await store.open()

    try:
        yield
    finally:
        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s %s %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # malformed or incomplete payloads are client errors, same as bad references
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Make the dependency function in routes resolve to the real one
app.dependency_overrides[routes_module.get_store] = get_store

app.include_router(api_router, prefix="/api")


@app.get("/")
async def index():
    return {
        "message": f"Welcome to the {settings.app_name}",
        "endpoints": {
            "organizations": "/api/organizations",
            "sites": "/api/sites",
            "measuringPoints": "/api/measuring-points",
            "boards": "/api/boards",
            "sensors": "/api/sensors",
            "stats": "/api/stats",
        },
    }
