# grantkeeper/adapters/outbound/security/credentials_manager.py (async version)

import asyncio
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from grantkeeper.adapters.configuration.config import settings
from grantkeeper.domain.exceptions import InvalidCredentialsError


class CredentialsManager:
    """
    Secret hashing for confidential clients and JWT verification for the
    callers of the notification API.
    """

    crypt_context = CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.BCRYPT_ROUNDS,
    )

    @staticmethod
    def generate_client_id() -> str:
        return secrets.token_urlsafe(16)

    @staticmethod
    def generate_client_secret() -> str:
        return secrets.token_urlsafe(32)

    @classmethod
    async def hash_secret(cls, secret: str) -> str:
        """
        Generate secure secret hash for storage in the database.
        bcrypt runs in a worker thread.
        """
        return await asyncio.to_thread(cls.crypt_context.hash, secret)

    @classmethod
    async def verify_secret(cls, plain_secret: str, hashed_secret: Optional[str]) -> bool:
        """
        Compare plain text secret with stored hash.
        """
        if not plain_secret or not hashed_secret:
            return False
        try:
            return await asyncio.to_thread(cls.crypt_context.verify, plain_secret, hashed_secret)
        except ValueError:
            # Stored value is not a recognised hash
            return False

    @staticmethod
    def verify_admin_token(token: Optional[str]) -> None:
        """Check a bearer token against the configured admin token."""
        if not token or not hmac.compare_digest(token.encode(), settings.ADMIN_TOKEN.encode()):
            raise InvalidCredentialsError("Invalid admin token")

    @classmethod
    async def create_access_token(cls, subject: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT with 'sub' equal to subject, as issued by the identity
        layer in front of the notification API.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.CALLER_TOKEN_EXPIRE_MINUTES)

        expire = datetime.now(timezone.utc) + expires_delta
        payload = {
            "sub": str(subject),
            "exp": int(expire.timestamp()),
            "type": "access",
        }

        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @classmethod
    async def verify_access_token(cls, token: str) -> int:
        """
        Decode a caller JWT and return its subject as a user id.

        Raises:
            InvalidCredentialsError: If the token is invalid, expired or its
                subject is not a numeric user id
        """
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError as e:
            raise InvalidCredentialsError("Invalid or expired token") from e

        if payload.get("type", "access") != "access":
            raise InvalidCredentialsError("Invalid token: incorrect type")

        try:
            return int(payload.get("sub"))
        except (TypeError, ValueError) as e:
            raise InvalidCredentialsError("Invalid token: 'sub' is not a user id") from e
