"""
Catalog Service
Image records: upload, query/pagination, likes, counters, ownership-checked edits and statistics
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from gallery_service.models.image import new_image_document, normalize_tags, serialize_image
from gallery_service.services.credential_store import CredentialStore
from gallery_service.utils.database import parse_object_id
from gallery_service.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from gallery_service.utils.media_client import MediaClient, MediaUploadError

logger = logging.getLogger(__name__)

# Records marked for deletion are invisible to every read path
NOT_PENDING = {"deletion_pending": {"$ne": True}}
PUBLIC = {"is_public": True, **NOT_PENDING}

UPDATABLE_FIELDS = ("title", "description", "category", "tags", "is_public")
NULLABLE_FIELDS = ("description",)


def build_pagination(total: int, page: int, limit: int) -> Dict[str, int]:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def split_tags(tags: Optional[str]) -> List[str]:
    """Comma-separated tag filter to a normalized list"""
    if not tags:
        return []
    return normalize_tags(tags.split(","))


class CatalogService:
    """Owns the images collection"""

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        credential_store: CredentialStore,
        media_client: MediaClient
    ):
        self.collection = collection
        self.credentials = credential_store
        self.media = media_client

    async def _serialize_many(self, images: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        profiles = await self.credentials.public_profiles(image["uploaded_by"] for image in images)
        return [serialize_image(image, profiles) for image in images]

    async def _serialize_one(self, image: Dict[str, Any]) -> Dict[str, Any]:
        user_ids = [image["uploaded_by"]] + [like["user"] for like in image.get("likes") or []]
        profiles = await self.credentials.public_profiles(user_ids)
        return serialize_image(image, profiles)

    async def _get_visible(self, image_id: str) -> Dict[str, Any]:
        oid = parse_object_id(image_id)
        image = await self.collection.find_one({"_id": oid, **NOT_PENDING}) if oid else None
        if not image:
            raise NotFoundError("Image not found")
        return image

    async def _get_owned(self, image_id: str, user_id: str, action: str) -> Dict[str, Any]:
        image = await self._get_visible(image_id)
        if str(image["uploaded_by"]) != str(user_id):
            raise ForbiddenError(f"You can only {action} your own images")
        return image

    async def create(
        self,
        metadata: Dict[str, Any],
        data: bytes,
        owner_id: str,
        file_size: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Upload the file to the media host and persist the image record

        Args:
            metadata: title, category and optional description, tags, is_public
            data: Raw file content
            owner_id: Uploading user
            file_size: Size reported by the client; defaults to len(data)

        Raises:
            BadRequestError: If the media host rejects the upload (nothing is persisted)
        """
        try:
            upload = await self.media.upload(data)
        except MediaUploadError as e:
            logger.error(f"Image upload for user {owner_id} failed: {e}")
            raise BadRequestError("Failed to upload image") from e

        document = new_image_document(
            title=metadata["title"],
            category=metadata["category"],
            description=metadata.get("description"),
            tags=metadata.get("tags"),
            is_public=metadata.get("is_public", True),
            image_url=upload.url,
            public_id=upload.public_id,
            uploaded_by=parse_object_id(owner_id),
            file_size=file_size if file_size is not None else len(data),
            width=upload.width,
            height=upload.height,
            format=upload.format
        )
        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id

        logger.info(f"Image {result.inserted_id} created by user {owner_id}")
        return await self._serialize_one(document)

    async def find_all(
        self,
        page: int = 1,
        limit: int = 12,
        category: Optional[str] = None,
        tags: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        user_id: Optional[str] = None,
        requesting_user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        List public images with filtering, sorting and pagination

        Only public records are listed, even for their owner.
        requesting_user_id is accepted for symmetry with find_one.
        """
        query: Dict[str, Any] = dict(PUBLIC)

        if category:
            query["category"] = category

        tag_list = split_tags(tags)
        if tag_list:
            query["tags"] = {"$in": tag_list}

        if search:
            query["$text"] = {"$search": search}

        if user_id:
            owner = parse_object_id(user_id)
            if owner is None:
                raise BadRequestError("Invalid user id")
            query["uploaded_by"] = owner

        if not sort_by or sort_by.startswith("$"):
            raise BadRequestError("Invalid sort field")
        direction = 1 if sort_order == "asc" else -1

        cursor = (
            self.collection.find(query)
            .sort([(sort_by, direction), ("_id", direction)])
            .skip((page - 1) * limit)
            .limit(limit)
        )
        images = await cursor.to_list(length=limit)
        total = await self.collection.count_documents(query)

        return {
            "images": await self._serialize_many(images),
            "pagination": build_pagination(total, page, limit),
        }

    async def find_one(self, image_id: str, requesting_user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch one image and count the view

        Every successful read increments views, including the owner's.

        Raises:
            NotFoundError: Unknown id
            ForbiddenError: Private image and requester is not the owner
        """
        image = await self._get_visible(image_id)

        if not image.get("is_public") and (
            not requesting_user_id or str(image["uploaded_by"]) != str(requesting_user_id)
        ):
            raise ForbiddenError("Access denied to private image")

        updated = await self.collection.find_one_and_update(
            {"_id": image["_id"], **NOT_PENDING},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER
        )
        if not updated:
            raise NotFoundError("Image not found")

        return await self._serialize_one(updated)

    async def update(self, image_id: str, patch: Dict[str, Any], requesting_user_id: str) -> Dict[str, Any]:
        image = await self._get_owned(image_id, requesting_user_id, "update")

        changes = {
            k: v for k, v in patch.items()
            if k in UPDATABLE_FIELDS and (v is not None or k in NULLABLE_FIELDS)
        }
        if "tags" in changes:
            changes["tags"] = normalize_tags(changes["tags"])
        changes["updated_at"] = datetime.now(timezone.utc)

        updated = await self.collection.find_one_and_update(
            {"_id": image["_id"], "uploaded_by": image["uploaded_by"], **NOT_PENDING},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
        if not updated:
            raise NotFoundError("Image not found")

        logger.info(f"Image {image_id} updated by owner")
        return await self._serialize_one(updated)

    async def remove(self, image_id: str, requesting_user_id: str) -> None:
        """
        Delete the remote asset, then the local record

        The record is first marked deletion_pending. If the remote delete
        fails the mark is cleared and the error propagates; if the local
        delete fails afterwards the marked record stays hidden until
        purge_pending_deletions() removes it.
        """
        image = await self._get_owned(image_id, requesting_user_id, "delete")

        await self.collection.update_one(
            {"_id": image["_id"]},
            {"$set": {"deletion_pending": True}}
        )

        try:
            await self.media.delete(image["public_id"])
        except MediaUploadError as e:
            await self.collection.update_one(
                {"_id": image["_id"]},
                {"$set": {"deletion_pending": False}}
            )
            logger.error(f"Remote delete of image {image_id} failed; record kept: {e}")
            raise BadRequestError("Failed to delete image") from e

        await self.collection.delete_one({"_id": image["_id"]})
        logger.info(f"Image {image_id} deleted by owner")

    async def purge_pending_deletions(self) -> int:
        """Finish deletions whose local delete did not complete"""
        purged = 0
        cursor = self.collection.find({"deletion_pending": True}, {"public_id": 1})
        for image in await cursor.to_list(length=None):
            try:
                await self.media.delete(image["public_id"])
            except MediaUploadError as e:
                logger.warning(f"Pending deletion of image {image['_id']} still failing: {e}")
                continue
            await self.collection.delete_one({"_id": image["_id"]})
            purged += 1

        if purged:
            logger.info(f"Purged {purged} images pending deletion")
        return purged

    async def like_image(self, image_id: str, user_id: str) -> Dict[str, Any]:
        """
        Toggle the user's like

        Each direction is a single guarded update, so concurrent toggles
        from different users never lose each other's likes.
        """
        image = await self._get_visible(image_id)
        if not image.get("is_public") and str(image["uploaded_by"]) != str(user_id):
            raise ForbiddenError("Access denied to private image")

        uid = parse_object_id(user_id)
        projection = {"likes": 1}

        liked = await self.collection.find_one_and_update(
            {"_id": image["_id"], "likes.user": {"$ne": uid}, **NOT_PENDING},
            {"$push": {"likes": {"user": uid, "liked_at": datetime.now(timezone.utc)}}},
            projection=projection,
            return_document=ReturnDocument.AFTER
        )
        if liked:
            return {"liked": True, "likes_count": len(liked.get("likes") or [])}

        unliked = await self.collection.find_one_and_update(
            {"_id": image["_id"], "likes.user": uid, **NOT_PENDING},
            {"$pull": {"likes": {"user": uid}}},
            projection=projection,
            return_document=ReturnDocument.AFTER
        )
        if unliked:
            return {"liked": False, "likes_count": len(unliked.get("likes") or [])}

        raise NotFoundError("Image not found")

    async def download_image(self, image_id: str) -> Dict[str, Any]:
        image = await self._get_visible(image_id)
        if not image.get("is_public"):
            raise ForbiddenError("Cannot download private image")

        updated = await self.collection.find_one_and_update(
            {"_id": image["_id"], **NOT_PENDING},
            {"$inc": {"downloads": 1}},
            projection={"image_url": 1, "downloads": 1},
            return_document=ReturnDocument.AFTER
        )
        if not updated:
            raise NotFoundError("Image not found")

        return {"download_url": updated["image_url"], "downloads": updated["downloads"]}

    async def get_user_images(self, user_id: str, page: int = 1, limit: int = 12) -> Dict[str, Any]:
        """Owner's own listing, private images included"""
        owner = parse_object_id(user_id)
        if owner is None:
            raise BadRequestError("Invalid user id")

        query = {"uploaded_by": owner, **NOT_PENDING}
        cursor = (
            self.collection.find(query)
            .sort([("created_at", -1), ("_id", -1)])
            .skip((page - 1) * limit)
            .limit(limit)
        )
        images = await cursor.to_list(length=limit)
        total = await self.collection.count_documents(query)

        return {
            "images": await self._serialize_many(images),
            "pagination": build_pagination(total, page, limit),
        }

    async def get_image_stats(self) -> Dict[str, int]:
        pipeline = [
            {"$match": PUBLIC},
            {"$group": {
                "_id": None,
                "total_images": {"$sum": 1},
                "total_downloads": {"$sum": "$downloads"},
                "total_views": {"$sum": "$views"},
            }},
        ]
        rows = await self.collection.aggregate(pipeline).to_list(length=1)
        totals = rows[0] if rows else {}
        return {
            "total_images": totals.get("total_images", 0),
            "total_downloads": totals.get("total_downloads", 0),
            "total_views": totals.get("total_views", 0),
        }

    async def get_categories(self) -> List[str]:
        categories = await self.collection.distinct("category", PUBLIC)
        return sorted(categories)

    async def get_trending_tags(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Top tags by usage over public images; equal counts sort by tag name"""
        pipeline = [
            {"$match": PUBLIC},
            {"$unwind": "$tags"},
            {"$group": {"_id": "$tags", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        rows = await self.collection.aggregate(pipeline).to_list(length=limit)
        return [{"name": row["_id"], "count": row["count"]} for row in rows]

    async def owner_totals(self, user_id: ObjectId) -> Dict[str, int]:
        """Images owned, likes received, downloads and views across a user's images"""
        pipeline = [
            {"$match": {"uploaded_by": user_id, **NOT_PENDING}},
            {"$group": {
                "_id": None,
                "total_images": {"$sum": 1},
                "total_likes": {"$sum": {"$size": {"$ifNull": ["$likes", []]}}},
                "total_downloads": {"$sum": "$downloads"},
                "total_views": {"$sum": "$views"},
            }},
        ]
        rows = await self.collection.aggregate(pipeline).to_list(length=1)
        totals = rows[0] if rows else {}
        return {
            "total_images": totals.get("total_images", 0),
            "total_likes": totals.get("total_likes", 0),
            "total_downloads": totals.get("total_downloads", 0),
            "total_views": totals.get("total_views", 0),
        }
