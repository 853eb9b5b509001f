"""
auth.py - Password + JWT authentication and the request caller.

Supports two credential sources:
  1. Session: POST /api/auth/login → JWT, returned in the body and set as an
     HTTP-only `token` cookie. Sent back as `Authorization: Bearer <jwt>` or
     via the cookie.
  2. Admin key: X-API-Key header equal to the configured admin key.

resolve_caller() checks the bearer header first, then X-API-Key, then the
cookie, so explicit headers win over a stale browser session. The result
is an explicit Caller value that routers hand to the services; nothing
about the current user lives in global state.
"""

import hashlib
import hmac
import logging
import re
import secrets
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

import jwt as pyjwt

from hashyield.errors import AuthenticationError, ConflictError, ForbiddenError, ValidationError

if TYPE_CHECKING:
    from hashyield.config import Settings
    from hashyield.storage import UserRepo
    from hashyield.storage.records import Miner, User

logger = logging.getLogger("auth")

JWT_TTL = 86400  # 24 hours
JWT_ALGORITHM = "HS256"
PBKDF2_ITERATIONS = 200_000
MIN_PASSWORD_LENGTH = 8

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")


@dataclass(frozen=True)
class Caller:
    """The authenticated principal behind a request."""

    user_id: Optional[int]
    role: str
    miner_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def owns(self, miner_id: int) -> bool:
        return self.is_admin or (self.miner_id is not None and self.miner_id == miner_id)


ADMIN_KEY_CALLER = Caller(user_id=None, role="admin")


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = encoded.split("$")
        rounds = int(iterations)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        logger.warning("Unreadable password hash; treating as mismatch")
        return False
    if algorithm != "pbkdf2_sha256" or rounds < 1:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, rounds)
    return hmac.compare_digest(digest.hex(), digest_hex)


class AuthService:
    """Account signup, login and credential resolution."""

    def __init__(self, users: "UserRepo", settings: "Settings"):
        self._users = users
        self._settings = settings

    # -------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------

    def issue_jwt(self, user: "User", miner_id: Optional[int] = None) -> str:
        now = int(time.time())
        payload = {
            "sub": str(user.id),
            "role": user.role,
            "miner_id": miner_id,
            "iat": now,
            "exp": now + JWT_TTL,
        }
        return pyjwt.encode(payload, self._settings.jwt_secret, algorithm=JWT_ALGORITHM)

    def decode_jwt(self, token: str) -> Optional[dict]:
        try:
            return pyjwt.decode(token, self._settings.jwt_secret, algorithms=[JWT_ALGORITHM])
        except pyjwt.ExpiredSignatureError:
            logger.debug("Rejected expired token")
            return None
        except pyjwt.InvalidTokenError:
            return None

    # -------------------------------------------------------------------
    # Signup / login
    # -------------------------------------------------------------------

    @staticmethod
    def _check_credentials(email: str, username: str, password: str):
        if not EMAIL_RE.match(email or ""):
            raise ValidationError("A valid email address is required")
        if not USERNAME_RE.match(username or ""):
            raise ValidationError("Username must be 3-32 letters, digits, '.', '_' or '-'")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    async def _check_unique(self, email: str, username: str):
        if await self._users.get_by_email(email):
            raise ConflictError("Email is already registered")
        if await self._users.get_by_username(username):
            raise ConflictError("Username is already taken")

    async def signup_miner(self, data: dict) -> Tuple["User", "Miner"]:
        email = (data.get("email") or "").strip().lower()
        username = (data.get("username") or "").strip()
        password = data.get("password") or ""
        self._check_credentials(email, username, password)
        firstname = (data.get("firstname") or "").strip()
        lastname = (data.get("lastname") or "").strip()
        if not firstname or not lastname:
            raise ValidationError("firstname and lastname are required")
        age = data.get("age") or 0
        if age and not 18 <= int(age) <= 120:
            raise ValidationError("Miners must be at least 18 years old")
        await self._check_unique(email, username)
        user, miner = await self._users.create_miner_account(
            email=email,
            username=username,
            password_hash=hash_password(password),
            firstname=firstname,
            lastname=lastname,
            country=(data.get("country") or "").strip(),
            age=int(age),
            phone=(data.get("phone") or "").strip(),
            wallet_address=(data.get("wallet_address") or "").strip(),
        )
        logger.info("Registered miner %d user=%s", miner.id, user.username)
        return user, miner

    async def signup_admin(self, data: dict, admin_key: str) -> "User":
        if not admin_key or not hmac.compare_digest(admin_key, self._settings.admin_key):
            raise ForbiddenError("A valid admin key is required to create admin accounts")
        email = (data.get("email") or "").strip().lower()
        username = (data.get("username") or "").strip()
        password = data.get("password") or ""
        self._check_credentials(email, username, password)
        await self._check_unique(email, username)
        user = await self._users.create_user(email, username, hash_password(password), "admin")
        logger.info("Registered admin user=%s", user.username)
        return user

    async def login(self, email: str, password: str) -> Tuple["User", Optional["Miner"], str]:
        user = await self._users.get_by_email((email or "").strip())
        encoded = await self._users.get_password_hash(user.id) if user else None
        if user is None or not encoded or not verify_password(password or "", encoded):
            logger.warning("Failed login for %s", email)
            raise AuthenticationError("Invalid email or password")
        miner = await self._users.get_miner_by_user(user.id) if user.role == "miner" else None
        if miner is not None and not miner.is_active:
            raise ForbiddenError("Miner account is deactivated")
        token = self.issue_jwt(user, miner.id if miner else None)
        logger.info("User %d logged in role=%s", user.id, user.role)
        return user, miner, token

    async def profile(self, caller: Caller) -> dict:
        if caller.user_id is None:
            return {"user": None, "role": caller.role, "miner": None}
        user = await self._users.get(caller.user_id)
        if user is None:
            raise AuthenticationError("Account no longer exists")
        miner = await self._users.get_miner_by_user(user.id) if user.role == "miner" else None
        return {
            "user": user.to_dict(),
            "role": user.role,
            "miner": miner.to_dict() if miner else None,
        }

    # -------------------------------------------------------------------
    # Credential resolution
    # -------------------------------------------------------------------

    async def resolve_caller(self, authorization: str = "", x_api_key: str = "",
                             cookie_token: str = "") -> Optional[Caller]:
        """Resolve bearer JWT, admin key or cookie JWT to a Caller. None if no valid credentials."""
        if authorization.startswith("Bearer "):
            caller = await self._from_token(authorization[7:])
            if caller:
                return caller

        if x_api_key and hmac.compare_digest(x_api_key, self._settings.admin_key):
            return ADMIN_KEY_CALLER

        if cookie_token:
            return await self._from_token(cookie_token)
        return None

    async def _from_token(self, token: str) -> Optional[Caller]:
        claims = self.decode_jwt(token)
        if not claims:
            return None
        user = await self._users.get(int(claims["sub"]))
        if user is None:
            return None
        return Caller(user_id=user.id, role=user.role, miner_id=claims.get("miner_id"))


def require_admin(caller: Caller) -> Caller:
    if not caller.is_admin:
        raise ForbiddenError("Admin access required")
    return caller


def require_miner(caller: Caller) -> Caller:
    if caller.role != "miner" or caller.miner_id is None:
        raise ForbiddenError("Miner account required")
    return caller
