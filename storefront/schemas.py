"""
Pydantic schemas for the storefront API.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    token: str


class FeaturedUpdate(BaseModel):
    featured: Any = None


class ProductResponse(BaseModel):
    success: bool = True
    product: dict


# name/email are validated by the ledger so a missing field is a 400.
class PreorderRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    productId: Optional[str] = None
    productName: Optional[str] = None


class PreorderResponse(BaseModel):
    success: bool = True
    id: int


# Items echo stored values, which older files may hold as non-strings.
class AdminPreorderItem(BaseModel):
    title: Any
    user: Any
    date: Any = None
    email: Any = None
    message: Any = ""
    productId: Any = None


class AdminPreordersResponse(BaseModel):
    totalPreorders: int
    items: list[AdminPreorderItem]


class VisitorStats(BaseModel):
    total: int
    today: int


class StatsResponse(BaseModel):
    totalProducts: int
    totalPreorders: int
    visitors: VisitorStats


class UploadResponse(BaseModel):
    success: bool = True
    url: str
    filename: str
    originalName: Optional[str] = None
    size: int


class FileInfo(BaseModel):
    filename: str
    url: str
    size: int
    created: Optional[str] = None


class FileListResponse(BaseModel):
    files: list[FileInfo]


class MessageResponse(BaseModel):
    success: bool = True
    message: str
