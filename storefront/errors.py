"""
Error types raised by storefront components.

Each error carries the HTTP status it maps to; the app renders them as
``{"error": message}``.
"""

from __future__ import annotations


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Missing or malformed input."""

    status_code = 400


class UnauthorizedError(StoreError):
    """No credential, or the wrong one."""

    status_code = 401


class ForbiddenError(StoreError):
    """Credential present but invalid or expired."""

    status_code = 403


class NotFoundError(StoreError):
    status_code = 404


class ConfigError(StoreError):
    """Server is missing required configuration."""

    status_code = 500


class StorageError(StoreError):
    """A write to the backing store failed."""

    status_code = 500
