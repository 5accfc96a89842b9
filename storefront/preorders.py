"""
Preorder ledger: append-only preorder submissions.

Two backends share one interface: ``FilePreorderLedger`` keeps records in a
JSON file for local development and ``SqlPreorderLedger`` keeps them in the
``preorders`` table. Both produce the same record shape, so the admin views and
stats below are computed the same way for either.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront.catalog import SeedCatalog
from storefront.db import PreorderRow
from storefront.errors import StorageError, ValidationError
from storefront.record_store import JsonRecordStore

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime) -> str:
    """Format as ``2024-01-31T12:00:00.000Z``."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def new_preorder(
    *,
    name: Optional[str],
    email: Optional[str],
    message: Optional[str] = None,
    product_id: Optional[str] = None,
    product_name: Optional[str] = None,
) -> dict:
    """Validate a submission and build the stored record."""
    if not name or not email:
        raise ValidationError("Name and email are required")
    now = utc_now()
    return {
        "id": int(now.timestamp() * 1000),
        "name": name,
        "email": email,
        "message": message or None,
        "productId": product_id or None,
        "productName": product_name or None,
        "created_at": iso_timestamp(now),
    }


def _parse_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return None


@dataclass
class PreorderAdminView:
    """Normalized rows and the admin-UI items, built from one read."""

    rows: list[dict] = field(default_factory=list)
    items: list[dict] = field(default_factory=list)

    @property
    def totalPreorders(self) -> int:
        return len(self.rows)

    def as_response(self) -> dict:
        return {"totalPreorders": self.totalPreorders, "items": self.items}


def project_preorders(records: Iterable[dict]) -> PreorderAdminView:
    rows = [
        {
            "id": _parse_id(record.get("id")),
            "name": record.get("name"),
            "email": record.get("email"),
            "message": record.get("message") or None,
            "productId": record.get("productId") or None,
            "productName": record.get("productName"),
            "created_at": record.get("created_at"),
        }
        for record in records
        if isinstance(record, dict)
    ]
    items = [
        {
            "title": row["productName"] or "Unknown Product",
            "user": row["name"] or row["email"] or "Anonymous",
            "date": row["created_at"],
            "email": row["email"],
            "message": row["message"] or "",
            "productId": row["productId"],
        }
        for row in rows
    ]
    return PreorderAdminView(rows=rows, items=items)


@dataclass
class StoreStats:
    totalProducts: int
    totalPreorders: int
    today: int

    def as_dict(self) -> dict:
        return {
            "totalProducts": self.totalProducts,
            "totalPreorders": self.totalPreorders,
            "visitors": {"total": self.totalPreorders, "today": self.today},
        }


def today_prefix() -> str:
    return utc_now().strftime("%Y-%m-%d")


def count_created_on(records: Iterable[dict], day: str) -> int:
    return sum(
        1
        for record in records
        if isinstance(record, dict)
        and isinstance(record.get("created_at"), str)
        and record["created_at"].startswith(day)
    )


class PreorderLedger(Protocol):
    """Interface shared by the file and SQL preorder stores."""

    def create(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        message: Optional[str] = None,
        product_id: Optional[str] = None,
        product_name: Optional[str] = None,
    ) -> int:
        ...

    def list_all(self) -> list[dict]:
        ...

    def list_admin_view(self) -> PreorderAdminView:
        ...

    def stats(self, seed_catalog: SeedCatalog) -> StoreStats:
        ...


class FilePreorderLedger:
    """Preorders kept as a JSON array on disk."""

    def __init__(self, store: JsonRecordStore, path: str):
        self.store = store
        self.path = path

    def create(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        message: Optional[str] = None,
        product_id: Optional[str] = None,
        product_name: Optional[str] = None,
    ) -> int:
        record = new_preorder(
            name=name,
            email=email,
            message=message,
            product_id=product_id,
            product_name=product_name,
        )
        with self.store.transaction(self.path) as preorders:
            preorders.append(record)
            if not self.store.write(self.path, preorders):
                raise StorageError("Failed to save preorder")
        logger.info("Saved preorder %s", record["id"])
        return record["id"]

    def list_all(self) -> list[dict]:
        return self.store.read(self.path)

    def list_admin_view(self) -> PreorderAdminView:
        return project_preorders(self.list_all())

    def stats(self, seed_catalog: SeedCatalog) -> StoreStats:
        preorders = self.list_all()
        return StoreStats(
            totalProducts=len(seed_catalog),
            totalPreorders=len(preorders),
            today=count_created_on(preorders, today_prefix()),
        )


class SqlPreorderLedger:
    """Preorders kept in the ``preorders`` table."""

    def __init__(self, session_factory: sessionmaker):
        self.Session = session_factory

    def create(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        message: Optional[str] = None,
        product_id: Optional[str] = None,
        product_name: Optional[str] = None,
    ) -> int:
        record = new_preorder(
            name=name,
            email=email,
            message=message,
            product_id=product_id,
            product_name=product_name,
        )
        try:
            with self.Session() as session:
                session.add(PreorderRow(**record))
                session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Preorder insert failed: %s", exc)
            raise StorageError("Database insert failed")
        logger.info("Inserted preorder %s", record["id"])
        return record["id"]

    def list_all(self) -> list[dict]:
        with self.Session() as session:
            rows = session.execute(
                select(PreorderRow).order_by(PreorderRow.id.asc(), PreorderRow.row_id.asc())
            ).scalars()
            return [row.as_dict() for row in rows]

    def list_admin_view(self) -> PreorderAdminView:
        return project_preorders(self.list_all())

    def stats(self, seed_catalog: SeedCatalog) -> StoreStats:
        with self.Session() as session:
            total = session.execute(select(func.count(PreorderRow.row_id))).scalar_one()
            today = session.execute(
                select(func.count(PreorderRow.row_id)).where(
                    PreorderRow.created_at.like(f"{today_prefix()}%")
                )
            ).scalar_one()
        return StoreStats(
            totalProducts=len(seed_catalog),
            totalPreorders=total,
            today=today,
        )

    def import_records(self, records: Iterable[dict], *, dry_run: bool = False) -> int:
        """Copy JSON-store records into the table, skipping known ids."""
        imported = 0
        seen: set[int] = set()
        with self.Session() as session:
            for record in project_preorders(records).rows:
                if record["id"] is None or not record["name"] or not record["email"]:
                    logger.warning("Skipping malformed preorder: %s", record)
                    continue
                if record["id"] in seen:
                    continue
                seen.add(record["id"])
                known = session.execute(
                    select(PreorderRow.row_id).where(PreorderRow.id == record["id"]).limit(1)
                ).first()
                if known is not None:
                    continue
                if not record["created_at"]:
                    record["created_at"] = iso_timestamp(utc_now())
                imported += 1
                if not dry_run:
                    session.add(PreorderRow(**record))
            if not dry_run:
                session.commit()
        return imported
