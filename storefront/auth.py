"""
Admin authentication with HS256 bearer tokens.

There is a single admin identity from settings. Tokens are stateless and carry
only the username, so they stay valid until they expire.
"""

from __future__ import annotations

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from storefront.errors import ConfigError, ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


class AdminAuth:
    def __init__(
        self,
        secret: Optional[str],
        username: str = "admin",
        password: str = "password123",
        ttl_seconds: int = 3600,
    ):
        self.secret = secret
        self.username = username
        self.password = password
        self.ttl_seconds = ttl_seconds

    def login(self, username: Optional[str], password: Optional[str]) -> str:
        if not self.secret:
            raise ConfigError("Server configuration error: JWT_SECRET not set")
        user_ok = hmac.compare_digest((username or "").encode(), self.username.encode())
        pass_ok = hmac.compare_digest((password or "").encode(), self.password.encode())
        if not (user_ok and pass_ok):
            logger.warning("Rejected admin login for %r", username)
            raise UnauthorizedError("Invalid credentials")
        payload = {
            "username": username,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds),
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: Optional[str]) -> dict:
        if not token:
            raise UnauthorizedError("Access token required")
        if not self.secret:
            raise ForbiddenError("Invalid or expired token")
        try:
            return jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except jwt.InvalidTokenError:
            raise ForbiddenError("Invalid or expired token")
