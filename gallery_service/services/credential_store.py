"""
Credential Store
User records: password hashing, one-time tokens and refresh-token bookkeeping
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from motor.motor_asyncio import AsyncIOMotorCollection

from gallery_service.models.user import (
    EMAIL_VERIFICATION_LIFETIME,
    PASSWORD_RESET_LIFETIME,
    PRIVATE_FIELDS,
    PUBLIC_PROFILE_FIELDS,
    REFRESH_TOKEN_LIFETIME,
    UserRole,
    new_user_document,
    public_profile,
)
from gallery_service.utils.database import parse_object_id
from gallery_service.utils.exceptions import ConflictError
from gallery_service.utils.security import SecurityUtils

logger = logging.getLogger(__name__)

SAFE_PROJECTION = {field: 0 for field in PRIVATE_FIELDS}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CredentialStore:
    """Owns the users collection"""

    def __init__(self, collection: AsyncIOMotorCollection, security: SecurityUtils):
        self.collection = collection
        self.security = security

    # Lookups

    async def find_by_id(self, user_id) -> Optional[Dict[str, Any]]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return await self.collection.find_one({"_id": oid})

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"email": email.strip().lower()})

    async def find_by_email_or_username(self, email: str, username: str) -> Optional[Dict[str, Any]]:
        """Single combined lookup used for duplicate checks and login"""
        return await self.collection.find_one({
            "$or": [{"email": email.strip().lower()}, {"username": username}]
        })

    async def public_profiles(self, user_ids: Iterable) -> Dict[Any, Dict[str, Any]]:
        """Resolve user references to public identities, keyed by ObjectId"""
        ids = list({oid for oid in user_ids if oid is not None})
        if not ids:
            return {}
        projection = {field: 1 for field in PUBLIC_PROFILE_FIELDS}
        cursor = self.collection.find({"_id": {"$in": ids}}, projection)
        users = await cursor.to_list(length=len(ids))
        return {user["_id"]: public_profile(user) for user in users}

    # Creation and passwords

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.USER,
        is_email_verified: bool = False
    ) -> Dict[str, Any]:
        """
        Persist a new user; the password is hashed before it is stored

        Raises:
            ConflictError: If the unique email or username index rejects the insert
        """
        password_hash = await self.security.hash_password(password)
        document = new_user_document(
            username=username,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_email_verified=is_email_verified
        )
        try:
            result = await self.collection.insert_one(document)
        except DuplicateKeyError as e:
            if "email" in str(e):
                raise ConflictError("Email already registered") from e
            raise ConflictError("Username already taken") from e

        document["_id"] = result.inserted_id
        logger.info(f"User created with ID: {result.inserted_id}")
        return document

    async def verify_password(self, user: Dict[str, Any], password: str) -> bool:
        return await self.security.verify_password(password, user.get("password_hash", ""))

    async def set_password(self, user_id, new_password: str) -> bool:
        password_hash = await self.security.hash_password(new_password)
        result = await self.collection.update_one(
            {"_id": parse_object_id(user_id)},
            {"$set": {"password_hash": password_hash, "updated_at": _now()}}
        )
        return result.matched_count == 1

    async def record_login(self, user_id) -> None:
        now = _now()
        await self.collection.update_one(
            {"_id": parse_object_id(user_id)},
            {"$set": {"last_login": now, "updated_at": now}}
        )

    # One-time tokens

    async def _issue_token(self, user_id, token_field: str, expires_field: str, lifetime) -> str:
        raw_token = self.security.generate_one_time_token()
        await self.collection.update_one(
            {"_id": parse_object_id(user_id)},
            {"$set": {
                token_field: self.security.hash_token(raw_token),
                expires_field: _now() + lifetime,
            }}
        )
        return raw_token

    async def issue_email_verification_token(self, user_id) -> str:
        """Store the hash of a fresh verification token (24h) and return the raw value"""
        return await self._issue_token(
            user_id, "email_verification_token", "email_verification_expires",
            EMAIL_VERIFICATION_LIFETIME
        )

    async def issue_password_reset_token(self, user_id) -> str:
        """Store the hash of a fresh reset token (10 min) and return the raw value"""
        return await self._issue_token(
            user_id, "password_reset_token", "password_reset_expires",
            PASSWORD_RESET_LIFETIME
        )

    async def consume_password_reset_token(self, raw_token: str, new_password: str) -> Optional[Dict[str, Any]]:
        """
        Set a new password if the reset token matches and has not expired

        Matching, expiry check and clearing the token happen in one update,
        so a token can be used at most once.

        Returns:
            The updated user, or None if the token is unknown or expired
        """
        password_hash = await self.security.hash_password(new_password)
        now = _now()
        return await self.collection.find_one_and_update(
            {
                "password_reset_token": self.security.hash_token(raw_token),
                "password_reset_expires": {"$gt": now},
            },
            {"$set": {
                "password_hash": password_hash,
                "password_reset_token": None,
                "password_reset_expires": None,
                "updated_at": now,
            }},
            projection=SAFE_PROJECTION,
            return_document=ReturnDocument.AFTER
        )

    async def consume_email_verification_token(self, raw_token: str) -> Optional[Dict[str, Any]]:
        """Mark the email verified if the token matches and has not expired"""
        now = _now()
        return await self.collection.find_one_and_update(
            {
                "email_verification_token": self.security.hash_token(raw_token),
                "email_verification_expires": {"$gt": now},
            },
            {"$set": {
                "is_email_verified": True,
                "email_verification_token": None,
                "email_verification_expires": None,
                "updated_at": now,
            }},
            projection=SAFE_PROJECTION,
            return_document=ReturnDocument.AFTER
        )

    # Refresh tokens

    async def add_refresh_token(self, user_id, token: str) -> None:
        """Prune refresh tokens older than 7 days, then append the new one"""
        oid = parse_object_id(user_id)
        now = _now()
        await self.collection.update_one(
            {"_id": oid},
            {"$pull": {"refresh_tokens": {"created_at": {"$lte": now - REFRESH_TOKEN_LIFETIME}}}}
        )
        await self.collection.update_one(
            {"_id": oid},
            {"$push": {"refresh_tokens": {"token": token, "created_at": now}}}
        )

    async def consume_refresh_token(self, user_id, token: str) -> Optional[Dict[str, Any]]:
        """
        Atomically remove a refresh token from the active list

        Returns:
            The user as it was before removal, or None if the token was not
            active (already rotated, logged out, or never issued)
        """
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return await self.collection.find_one_and_update(
            {"_id": oid, "refresh_tokens.token": token},
            {"$pull": {"refresh_tokens": {"token": token}}},
            return_document=ReturnDocument.BEFORE
        )

    async def revoke_refresh_token(self, user_id, token: str) -> bool:
        oid = parse_object_id(user_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$pull": {"refresh_tokens": {"token": token}}}
        )
        return result.modified_count == 1

    # Profile administration

    async def get_safe(self, user_id) -> Optional[Dict[str, Any]]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return await self.collection.find_one({"_id": oid}, SAFE_PROJECTION)

    async def update_fields(self, user_id, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {**fields, "updated_at": _now()}},
            projection=SAFE_PROJECTION,
            return_document=ReturnDocument.AFTER
        )

    async def list_active(self, page: int, limit: int) -> Tuple[List[Dict[str, Any]], int]:
        query = {"is_active": True}
        cursor = (
            self.collection.find(query, SAFE_PROJECTION)
            .sort("created_at", -1)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        users = await cursor.to_list(length=limit)
        total = await self.collection.count_documents(query)
        return users, total

    async def deactivate(self, user_id) -> bool:
        """Soft delete: the record and its data are kept"""
        oid = parse_object_id(user_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$set": {"is_active": False, "updated_at": _now()}}
        )
        return result.matched_count == 1
