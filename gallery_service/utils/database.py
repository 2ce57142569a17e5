"""
Database Connection Utilities
MongoDB client lifecycle, collections and indexes for users and images
"""

import logging
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel

from gallery_service.utils.config import DatabaseConfig

logger = logging.getLogger(__name__)

USER_INDEXES = [
    IndexModel([("username", ASCENDING)], unique=True, name="username_unique"),
    IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
    IndexModel([("password_reset_token", ASCENDING)], sparse=True, name="password_reset_token"),
    IndexModel([("email_verification_token", ASCENDING)], sparse=True, name="email_verification_token"),
]

IMAGE_INDEXES = [
    IndexModel([("uploaded_by", ASCENDING)], name="uploaded_by"),
    IndexModel([("category", ASCENDING)], name="category"),
    IndexModel([("tags", ASCENDING)], name="tags"),
    IndexModel([("created_at", DESCENDING)], name="created_at_desc"),
    IndexModel(
        [("title", TEXT), ("description", TEXT), ("tags", TEXT)],
        name="image_text_search"
    ),
]


def parse_object_id(value) -> Optional[ObjectId]:
    """Parse a document id; None when the value is not a valid ObjectId"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


class MongoDatabase:
    """Owns the Motor client for the lifetime of the application"""

    def __init__(self, config: DatabaseConfig, client: Optional[AsyncIOMotorClient] = None):
        self.config = config
        self.client = client or AsyncIOMotorClient(
            config.mongodb_uri,
            serverSelectionTimeoutMS=config.mongodb_timeout_ms,
            tz_aware=True
        )
        self.db: AsyncIOMotorDatabase = self.client[config.mongodb_db_name]

    @property
    def users(self) -> AsyncIOMotorCollection:
        return self.db["users"]

    @property
    def images(self) -> AsyncIOMotorCollection:
        return self.db["images"]

    async def connect(self):
        """Verify connectivity and make sure indexes exist"""
        try:
            await self.ping()
            await self.users.create_indexes(USER_INDEXES)
            await self.images.create_indexes(IMAGE_INDEXES)
            logger.info(f"MongoDB connected: database '{self.config.mongodb_db_name}'")
        except Exception as e:
            logger.error(f"Failed to initialize MongoDB: {e}")
            raise

    async def ping(self) -> bool:
        await self.client.admin.command("ping")
        return True

    def close(self):
        """Close the client; Motor's close() is not async"""
        self.client.close()
        logger.info("MongoDB connection closed")
