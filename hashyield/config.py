"""Runtime settings read from the environment and overridden by CLI flags."""

import logging
import os
import secrets
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

logger = logging.getLogger("config")

DEFAULT_ADMIN_KEY = "admin-test-key-do-not-use-in-production"
DEFAULT_DB_PATH = "data/hashyield.db"
DEFAULT_KYC_FEE = Decimal("10.00")
TOKEN_COOKIE = "token"
COOKIE_MAX_AGE = 86400  # 24 hours


@dataclass
class Settings:
    env: str = "development"
    db_path: str = DEFAULT_DB_PATH
    admin_key: str = DEFAULT_ADMIN_KEY
    jwt_secret: str = ""
    cookie_domain: Optional[str] = None
    kyc_fee: Decimal = field(default=DEFAULT_KYC_FEE)

    def __post_init__(self):
        if self.is_production and self.admin_key in ("", DEFAULT_ADMIN_KEY):
            raise ValueError(
                "HASHYIELD_ADMIN_KEY must be set to a private value in production"
            )
        if not self.jwt_secret:
            logger.warning(
                "No JWT secret configured; generated ephemeral secret "
                "(tokens will invalidate on restart)"
            )
            self.jwt_secret = secrets.token_hex(32)

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        values = {
            "env": os.environ.get("HASHYIELD_ENV", "development"),
            "db_path": os.environ.get("HASHYIELD_DB_PATH", DEFAULT_DB_PATH),
            "admin_key": os.environ.get("HASHYIELD_ADMIN_KEY", DEFAULT_ADMIN_KEY),
            "jwt_secret": os.environ.get("HASHYIELD_JWT_SECRET", ""),
            "cookie_domain": os.environ.get("HASHYIELD_COOKIE_DOMAIN") or None,
            "kyc_fee": Decimal(os.environ.get("HASHYIELD_KYC_FEE", str(DEFAULT_KYC_FEE))),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def cookie_options(self) -> dict:
        """Keyword arguments for Response.set_cookie() on the auth token."""
        return {
            "httponly": True,
            "secure": self.is_production,
            "samesite": "none" if self.is_production else "lax",
            "domain": self.cookie_domain if self.is_production else None,
            "path": "/",
            "max_age": COOKIE_MAX_AGE,
        }
