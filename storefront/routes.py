"""
HTTP routes for the storefront API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from storefront.auth import AdminAuth
from storefront.catalog import ProductCatalog, SeedCatalog
from storefront.config import Settings, get_settings
from storefront.dependencies import (
    get_auth,
    get_catalog,
    get_preorder_ledger,
    get_seed_catalog,
    get_upload_manager,
    require_admin,
)
from storefront.errors import StoreError, ValidationError
from storefront.preorders import PreorderLedger
from storefront.schemas import (
    AdminPreordersResponse,
    FeaturedUpdate,
    FileListResponse,
    LoginRequest,
    MessageResponse,
    PreorderRequest,
    PreorderResponse,
    ProductResponse,
    StatsResponse,
    TokenResponse,
    UploadResponse,
)
from storefront.uploads import UploadManager, resolve_file

logger = logging.getLogger(__name__)

router = APIRouter()
# Routes served outside the API prefix.
root_router = APIRouter()

admin = [Depends(require_admin)]


@router.get("/test")
def health_check():
    return {"message": "Backend is working!"}


@router.post("/admin/login", response_model=TokenResponse)
def admin_login(payload: LoginRequest, auth: AdminAuth = Depends(get_auth)):
    return TokenResponse(token=auth.login(payload.username, payload.password))


# ----- Products -----


@router.get("/products", response_model=list[dict])
def list_products(catalog: ProductCatalog = Depends(get_catalog)):
    return catalog.list_persisted()


@router.get("/products/featured", response_model=list[dict])
def list_featured_products(catalog: ProductCatalog = Depends(get_catalog)):
    featured = catalog.list_featured()
    logger.info("Found %d featured products", len(featured))
    return featured


@router.patch(
    "/products/{product_id}", response_model=ProductResponse, dependencies=admin
)
def set_product_featured(
    product_id: str,
    payload: FeaturedUpdate,
    catalog: ProductCatalog = Depends(get_catalog),
):
    product = catalog.set_featured(product_id, payload.featured)
    return ProductResponse(product=product)


@router.get("/admin/products", response_model=list[dict], dependencies=admin)
def list_admin_products(catalog: ProductCatalog = Depends(get_catalog)):
    return catalog.list_persisted()


@router.post("/admin/products", response_model=ProductResponse, dependencies=admin)
async def create_product(
    name: str | None = Form(None),
    price: str | None = Form(None),
    product_type: str | None = Form(None, alias="type"),
    featured: str | None = Form(None),
    downloadLink: str | None = Form(None),
    image: UploadFile | None = File(None),
    catalog: ProductCatalog = Depends(get_catalog),
    uploads: UploadManager = Depends(get_upload_manager),
):
    stored = None
    if image is not None and image.filename:
        stored = uploads.store(await image.read(), image.filename, image.content_type)

    try:
        product = catalog.create(
            name=name,
            price=price,
            product_type=product_type,
            featured=featured,
            download_link=downloadLink,
            image_path=f"/uploads/{stored.filename}" if stored else None,
        )
    except StoreError:
        if stored:
            uploads.delete(stored.filename)
        raise
    return ProductResponse(product=product)


# ----- Preorders -----


def _submit_preorder(payload: PreorderRequest, ledger: PreorderLedger) -> PreorderResponse:
    preorder_id = ledger.create(
        name=payload.name,
        email=payload.email,
        message=payload.message,
        product_id=payload.productId,
        product_name=payload.productName,
    )
    return PreorderResponse(id=preorder_id)


@router.post("/preorder", response_model=PreorderResponse)
def submit_preorder(
    payload: PreorderRequest, ledger: PreorderLedger = Depends(get_preorder_ledger)
):
    return _submit_preorder(payload, ledger)


@router.post("/admin/preorder", response_model=PreorderResponse, dependencies=admin)
def admin_submit_preorder(
    payload: PreorderRequest, ledger: PreorderLedger = Depends(get_preorder_ledger)
):
    return _submit_preorder(payload, ledger)


@router.get(
    "/admin/preorders", response_model=AdminPreordersResponse, dependencies=admin
)
def list_preorders(ledger: PreorderLedger = Depends(get_preorder_ledger)):
    return ledger.list_admin_view().as_response()


@router.get("/admin/stats", response_model=StatsResponse, dependencies=admin)
def admin_stats(
    ledger: PreorderLedger = Depends(get_preorder_ledger),
    seed_catalog: SeedCatalog = Depends(get_seed_catalog),
):
    return ledger.stats(seed_catalog).as_dict()


# ----- Files -----


@router.post("/admin/upload", response_model=UploadResponse, dependencies=admin)
async def upload_file(
    file: UploadFile | None = File(None),
    uploads: UploadManager = Depends(get_upload_manager),
):
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")
    stored = uploads.store(await file.read(), file.filename, file.content_type)
    return UploadResponse(
        url=stored.url,
        filename=stored.filename,
        originalName=stored.originalName,
        size=stored.size,
    )


@router.get("/admin/files", response_model=FileListResponse, dependencies=admin)
@router.get("/admin/uploads", response_model=FileListResponse, dependencies=admin)
def list_files(uploads: UploadManager = Depends(get_upload_manager)):
    return FileListResponse(files=[stored.as_dict() for stored in uploads.list_files()])


@router.delete(
    "/admin/files/{filename}", response_model=MessageResponse, dependencies=admin
)
@router.delete(
    "/admin/uploads/{filename}", response_model=MessageResponse, dependencies=admin
)
def delete_file(filename: str, uploads: UploadManager = Depends(get_upload_manager)):
    uploads.delete(filename)
    return MessageResponse(message="File deleted")


@router.get("/uploads/{filename}")
def download_upload(filename: str, uploads: UploadManager = Depends(get_upload_manager)):
    return FileResponse(uploads.resolve(filename))


@router.get("/epubs/{filename}")
def download_epub(filename: str, settings: Settings = Depends(get_settings)):
    path = resolve_file(settings.epub_path, filename)
    return FileResponse(path, media_type="application/epub+zip")


@root_router.post("/create-checkout-session")
def create_checkout_session():
    """Placeholder until a payment provider is wired in."""
    return {"id": "mock_session_id"}
