"""
Product catalog: the fixed seed set plus admin-created products on disk.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from storefront.errors import NotFoundError, StorageError, ValidationError
from storefront.record_store import JsonRecordStore

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "/images/placeholder.jpg"
DEFAULT_IMAGE = "/images/default.jpg"


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: int
    image: str
    type: str
    featured: bool = False
    preorderGoal: Optional[int] = None
    preorders: int = 0
    downloadLink: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SeedCatalog:
    """Immutable in-memory catalog built once per process."""

    products: tuple[Product, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.products)

    def list_seed(self) -> list[dict]:
        return [product.as_dict() for product in self.products]


def build_seed_catalog(rng: Optional[random.Random] = None) -> SeedCatalog:
    """
    Build the seed catalog: 13 albums, 8 novels, 200 art PDFs and 100 shirts.

    Album preorder counts are drawn from ``rng`` once, here.
    """
    rng = rng or random.Random()
    products: list[Product] = []
    for i in range(13):
        products.append(
            Product(
                id=f"album-{i + 1}",
                name=f"Album {i + 1}",
                price=1000,
                image=PLACEHOLDER_IMAGE,
                type="album",
                featured=i < 3,
                preorderGoal=100,
                preorders=rng.randrange(100),
            )
        )
    for i in range(8):
        products.append(
            Product(
                id=f"novel-{i + 1}",
                name=f"Novel {i + 1}",
                price=1500,
                image=PLACEHOLDER_IMAGE,
                type="novel",
                featured=i == 0,
            )
        )
    for i in range(200):
        products.append(
            Product(
                id=f"art-{i + 1}",
                name=f"Art PDF {i + 1}",
                price=500,
                image=PLACEHOLDER_IMAGE,
                type="art",
                featured=i == 41,
            )
        )
    for i in range(100):
        products.append(
            Product(
                id=f"tshirt-{i + 1}",
                name=f"T-shirt {i + 1}",
                price=2500,
                image=PLACEHOLDER_IMAGE,
                type="tshirt",
                featured=i < 2,
            )
        )
    return SeedCatalog(products=tuple(products))


def to_minor_units(price: Any) -> int:
    """Convert a decimal major-unit price (e.g. ``"19.99"``) to cents."""
    try:
        value = Decimal(str(price).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Price must be a number")
    if not value.is_finite():
        raise ValidationError("Price must be a number")
    return int((value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _is_true(value: Any) -> bool:
    return value is True or value == "true"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ProductCatalog:
    """Admin-created products persisted as a JSON array."""

    def __init__(self, store: JsonRecordStore, path: str):
        self.store = store
        self.path = path

    def list_persisted(self) -> list[dict]:
        return [product for product in self.store.read(self.path) if isinstance(product, dict)]

    def list_featured(self) -> list[dict]:
        return [product for product in self.list_persisted() if product.get("featured") is True]

    def create(
        self,
        *,
        name: Optional[str],
        price: Any,
        product_type: Optional[str],
        featured: Any = None,
        download_link: Optional[str] = None,
        image_path: Optional[str] = None,
    ) -> dict:
        if _is_blank(name) or _is_blank(price) or _is_blank(product_type):
            raise ValidationError("Name, price, and type are required")

        product = Product(
            id=f"{product_type}-{int(time.time() * 1000)}",
            name=name,
            price=to_minor_units(price),
            type=product_type,
            image=image_path or DEFAULT_IMAGE,
            featured=_is_true(featured),
            downloadLink=download_link or "",
            preorderGoal=None,
            preorders=0,
        ).as_dict()

        with self.store.transaction(self.path) as products:
            products.append(product)
            if not self.store.write(self.path, products):
                raise StorageError("Failed to create product")
        logger.info("Created product %s", product["id"])
        return product

    def set_featured(self, product_id: str, featured: Any) -> dict:
        with self.store.transaction(self.path) as products:
            if not self.store.exists(self.path):
                raise NotFoundError("Products file not found")
            for index, product in enumerate(products):
                if isinstance(product, dict) and product.get("id") == product_id:
                    break
            else:
                raise NotFoundError("Product not found")

            updated = {**products[index], "featured": featured}
            products[index] = updated
            if not self.store.write(self.path, products):
                raise StorageError("Failed to update product")
        return updated
