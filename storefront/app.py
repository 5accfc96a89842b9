"""
FastAPI application entry point for the storefront backend.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storefront.catalog import SeedCatalog, build_seed_catalog
from storefront.config import Settings, get_settings
from storefront.errors import StoreError
from storefront.routes import root_router, router

logger = logging.getLogger(__name__)


async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def catch_unexpected_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    seed_catalog: Optional[SeedCatalog] = None, settings: Optional[Settings] = None
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Storefront Backend (FastAPI)", version="0.1.0")
    app.state.seed_catalog = seed_catalog or build_seed_catalog()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(catch_unexpected_errors)
    app.add_exception_handler(StoreError, handle_store_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(root_router)
    # StaticFiles errors on a missing directory instead of returning 404.
    os.makedirs(settings.public_path, exist_ok=True)
    app.mount(
        "/",
        StaticFiles(directory=settings.public_path, check_dir=False),
        name="public",
    )
    return app


app = create_app()
