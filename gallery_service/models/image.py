"""
Image Models
Document shape and response serialization for image records
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from bson import ObjectId


class ImageCategory(str, Enum):
    """Closed set of catalog categories"""
    NATURE = "nature"
    TECHNOLOGY = "technology"
    PEOPLE = "people"
    ARCHITECTURE = "architecture"
    ANIMALS = "animals"
    FOOD = "food"
    TRAVEL = "travel"
    ART = "art"
    OTHER = "other"


def normalize_tags(tags: Optional[Iterable[str]]) -> list:
    """Trim and lowercase tags, dropping blanks and duplicates (order kept)"""
    seen = []
    for tag in tags or []:
        tag = tag.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def new_image_document(
    title: str,
    category: str,
    image_url: str,
    public_id: str,
    uploaded_by: ObjectId,
    file_size: int,
    width: int,
    height: int,
    format: str,
    description: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
    is_public: bool = True
) -> Dict[str, Any]:
    """Build an image document ready for insertion"""
    now = datetime.now(timezone.utc)
    return {
        "title": title.strip(),
        "description": description.strip() if description else None,
        "image_url": image_url,
        "public_id": public_id,
        "category": ImageCategory(category).value,
        "tags": normalize_tags(tags),
        "uploaded_by": uploaded_by,
        "likes": [],
        "downloads": 0,
        "views": 0,
        "is_public": is_public,
        "file_size": file_size,
        "dimensions": {"width": width, "height": height},
        "format": format,
        "deletion_pending": False,
        "created_at": now,
        "updated_at": now,
    }


def serialize_image(
    image: Dict[str, Any],
    profiles: Optional[Dict[ObjectId, Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """
    Convert an image document into a response payload

    Args:
        image: Raw document
        profiles: Public profiles keyed by user id, used to resolve the owner
            and likers; unresolved references are rendered as bare ids

    Returns:
        dict: JSON-ready image with likes_count derived from likes
    """
    profiles = profiles or {}
    likes = image.get("likes") or []
    owner_id = image.get("uploaded_by")

    data = {k: v for k, v in image.items() if k not in ("_id", "deletion_pending")}
    data["id"] = str(image["_id"])
    data["uploaded_by"] = profiles.get(owner_id) or {"id": str(owner_id)}
    data["likes"] = [
        {
            "user": profiles.get(like["user"]) or {"id": str(like["user"])},
            "liked_at": like.get("liked_at"),
        }
        for like in likes
    ]
    data["likes_count"] = len(likes)
    return data
