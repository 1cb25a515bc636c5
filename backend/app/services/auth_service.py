"""
Shutterfeed Backend — Authentication Service
=============================================

What:  Password hashing, bearer-token issuing/verification, and the FastAPI
       dependency that turns an Authorization header into a user id.
Who:   UserService (register/login), every route that needs a caller.

Tokens:
    Signed with itsdangerous' URLSafeTimedSerializer using SECRET_KEY.
    The payload is just {"uid": "<user id>"}; the signature timestamp gives
    expiry (TOKEN_MAX_AGE, 24h by default). Tokens are stateless: logout
    records an activity but does not revoke anything server-side.

Passwords:
    bcrypt with a configurable work factor (BCRYPT_ROUNDS). bcrypt only
    looks at the first 72 bytes, so longer passwords are refused up front
    rather than silently truncated.
"""

import logging
import uuid
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.exceptions import AuthenticationError, ValidationError
from app.models.user import User

logger = logging.getLogger(__name__)

TOKEN_SALT = "shutterfeed-auth-token"
BCRYPT_MAX_BYTES = 72


class AuthService:

    # ── Passwords ─────────────────────────────────────────────────────────

    def hash_password(self, password: str) -> str:
        raw = password.encode("utf-8")
        if len(raw) > BCRYPT_MAX_BYTES:
            raise ValidationError(
                message=f"Password must be at most {BCRYPT_MAX_BYTES} bytes long",
                field="password",
            )
        salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        return bcrypt.hashpw(raw, salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        raw = password.encode("utf-8")
        if len(raw) > BCRYPT_MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash (e.g. hand-edited row)
            logger.warning("Stored password hash could not be parsed")
            return False

    # ── Tokens ────────────────────────────────────────────────────────────

    def _serializer(self) -> URLSafeTimedSerializer:
        return URLSafeTimedSerializer(settings.secret_key, salt=TOKEN_SALT)

    def issue_token(self, user_id: uuid.UUID) -> str:
        return self._serializer().dumps({"uid": str(user_id)})

    def verify_token(self, token: str) -> uuid.UUID:
        """
        Return the user id carried by `token`.

        Raises:
            AuthenticationError: expired, tampered, or malformed token
        """
        try:
            payload = self._serializer().loads(token, max_age=settings.token_max_age)
        except SignatureExpired:
            raise AuthenticationError(message="Session expired. Please log in again.")
        except BadSignature:
            raise AuthenticationError(message="Invalid authentication token")

        try:
            return uuid.UUID(payload["uid"])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError(message="Invalid authentication token")


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()

# auto_error=False: a missing header must come back as our 401 JSON shape,
# not FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> uuid.UUID:
    """
    FastAPI dependency: authenticated caller's id.

    Shares the request's session (FastAPI caches dependencies per request),
    so the existence check costs one primary-key lookup.

    Raises:
        AuthenticationError: no token, bad token, or the account is gone
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Authentication required")

    user_id = auth_service.verify_token(credentials.credentials)
    if await db.get(User, user_id) is None:
        raise AuthenticationError(message="Account no longer exists")
    return user_id
