"""
Security utilities for the gallery service

Provides password hashing, JWT signing/verification and one-time token helpers.
"""

import asyncio
import secrets
import hashlib
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone
import bcrypt
import jwt

from gallery_service.utils.config import JWTConfig

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


class SecurityUtils:
    """Security utilities class"""

    def __init__(self, config: JWTConfig):
        self.access_secret = config.jwt_secret
        self.refresh_secret = config.jwt_refresh_secret
        self.algorithm = config.jwt_algorithm
        self.access_token_ttl = timedelta(minutes=config.jwt_access_token_expire_minutes)
        self.refresh_token_ttl = timedelta(days=config.jwt_refresh_token_expire_days)

    @staticmethod
    def _sync_hash_password(password: str) -> str:
        """Synchronous bcrypt hash (CPU-bound)"""
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    @staticmethod
    def _sync_verify_password(password: str, hashed_password: str) -> bool:
        """Synchronous bcrypt verify (CPU-bound)"""
        try:
            return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))
        except ValueError as e:
            logger.warning(f"Stored password hash is malformed: {e}")
            return False

    async def hash_password(self, password: str) -> str:
        """Hash password using bcrypt in thread pool to avoid blocking"""
        return await asyncio.to_thread(self._sync_hash_password, password)

    async def verify_password(self, password: str, hashed_password: str) -> bool:
        """Verify password against hash in thread pool to avoid blocking"""
        if not hashed_password:
            return False
        return await asyncio.to_thread(self._sync_verify_password, password, hashed_password)

    def _encode(self, payload: Dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload_copy = payload.copy()
        payload_copy["iat"] = now
        payload_copy["exp"] = now + ttl
        # Unique id so two tokens minted in the same second never collide
        payload_copy["jti"] = secrets.token_hex(8)
        return jwt.encode(payload_copy, secret, algorithm=self.algorithm)

    def _decode(self, token: str, secret: str) -> Optional[Dict[str, Any]]:
        try:
            return jwt.decode(token, secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token has expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            return None

    def generate_access_token(self, payload: Dict[str, Any]) -> str:
        """
        Generate short-lived access token

        Args:
            payload: Claims ({email, sub, role})

        Returns:
            JWT token string
        """
        return self._encode(payload, self.access_secret, self.access_token_ttl)

    def generate_refresh_token(self, payload: Dict[str, Any]) -> str:
        """
        Generate refresh token signed with the refresh secret

        Args:
            payload: Claims ({email, sub, role})

        Returns:
            JWT token string
        """
        return self._encode(payload, self.refresh_secret, self.refresh_token_ttl)

    def verify_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Decode an access token; None if the signature or expiry is invalid"""
        return self._decode(token, self.access_secret)

    def verify_refresh_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Decode a refresh token; None if the signature or expiry is invalid"""
        return self._decode(token, self.refresh_secret)

    @staticmethod
    def generate_one_time_token() -> str:
        """High-entropy token for email verification and password reset links"""
        return secrets.token_hex(32)

    @staticmethod
    def hash_token(token: str) -> str:
        """
        Deterministic one-way digest of a one-time token

        Only this digest is persisted; the raw value goes to the user.
        """
        return hashlib.sha256(token.encode('utf-8')).hexdigest()
