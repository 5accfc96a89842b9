"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.auth import AdminAuth
from storefront.catalog import ProductCatalog, SeedCatalog
from storefront.config import get_settings
from storefront.db import create_session_factory
from storefront.preorders import FilePreorderLedger, PreorderLedger, SqlPreorderLedger
from storefront.record_store import JsonRecordStore
from storefront.uploads import UploadManager

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

_record_store: JsonRecordStore | None = None
_catalog: ProductCatalog | None = None
_preorder_ledger: PreorderLedger | None = None
_upload_manager: UploadManager | None = None
_auth: AdminAuth | None = None


def get_record_store() -> JsonRecordStore:
    """
    Return a singleton store so every file shares one set of write locks.
    """
    global _record_store
    if _record_store:
        return _record_store
    _record_store = JsonRecordStore()
    return _record_store


def get_catalog() -> ProductCatalog:
    global _catalog
    if _catalog:
        return _catalog
    settings = get_settings()
    _catalog = ProductCatalog(get_record_store(), settings.products_path)
    return _catalog


def get_preorder_ledger() -> PreorderLedger:
    """
    Use the SQL store when DATABASE_URL is configured, the JSON file otherwise.
    """
    global _preorder_ledger
    if _preorder_ledger:
        return _preorder_ledger

    settings = get_settings()
    if settings.database_url:
        _preorder_ledger = SqlPreorderLedger(
            create_session_factory(settings.database_url)
        )
        logger.info("Preorders: SQL database")
    else:
        _preorder_ledger = FilePreorderLedger(
            get_record_store(), settings.preorders_path
        )
        logger.info("Preorders: JSON file %s", settings.preorders_path)
    return _preorder_ledger


def get_upload_manager() -> UploadManager:
    global _upload_manager
    if _upload_manager:
        return _upload_manager
    settings = get_settings()
    _upload_manager = UploadManager(
        settings.upload_path,
        url_prefix=f"{settings.api_prefix}/uploads",
        max_bytes=settings.max_upload_bytes,
    )
    return _upload_manager


def get_auth() -> AdminAuth:
    global _auth
    if _auth:
        return _auth
    settings = get_settings()
    _auth = AdminAuth(
        secret=settings.jwt_secret,
        username=settings.admin_username,
        password=settings.admin_password,
        ttl_seconds=settings.token_ttl_seconds,
    )
    return _auth


def get_seed_catalog(request: Request) -> SeedCatalog:
    return request.app.state.seed_catalog


def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AdminAuth = Depends(get_auth),
) -> dict:
    """Gate admin routes; the decoded claims land on ``request.state.user``."""
    claims = auth.verify(credentials.credentials if credentials else None)
    request.state.user = claims
    return claims


def reset_clients() -> None:
    """Drop cached clients so the next request rebuilds them from settings."""
    global _record_store, _catalog, _preorder_ledger, _upload_manager, _auth
    _record_store = None
    _catalog = None
    _preorder_ledger = None
    _upload_manager = None
    _auth = None
