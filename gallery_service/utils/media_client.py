"""
Media Host Client
Cloudinary adapter: upload, delete and URL generation for image assets
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Any, Dict

import cloudinary
import cloudinary.uploader
import cloudinary.utils
from cloudinary.exceptions import Error as CloudinaryError

from gallery_service.utils.config import MediaConfig

logger = logging.getLogger(__name__)


class MediaUploadError(Exception):
    """Raised when the media host rejects or fails a request"""
    pass


@dataclass
class UploadResult:
    """Stored-asset descriptor returned by the media host"""
    url: str
    public_id: str
    width: int
    height: int
    format: str
    bytes: int = 0


class MediaClient:
    """Thin wrapper around the Cloudinary SDK; SDK calls run in a worker thread"""

    def __init__(self, config: MediaConfig):
        self.config = config
        cloudinary.config(
            cloud_name=config.cloudinary_cloud_name,
            api_key=config.cloudinary_api_key,
            api_secret=config.cloudinary_api_secret,
            secure=True
        )

    def _upload_options(self) -> Dict[str, Any]:
        max_edge = self.config.media_max_dimension
        return {
            "folder": self.config.media_folder,
            "resource_type": "image",
            "timeout": self.config.media_timeout,
            "transformation": [
                {"quality": "auto", "fetch_format": "auto"},
                {"width": max_edge, "height": max_edge, "crop": "limit"},
            ],
        }

    async def upload(self, data: bytes) -> UploadResult:
        """
        Upload raw image bytes

        Args:
            data: File content

        Returns:
            UploadResult: URL, public id, dimensions and format

        Raises:
            MediaUploadError: If the upload fails for any reason
        """
        if not data:
            raise MediaUploadError("Empty file")

        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload, io.BytesIO(data), **self._upload_options()
            )
        except (CloudinaryError, OSError) as e:
            logger.error(f"Media upload failed: {e}")
            raise MediaUploadError(f"Upload failed: {e}") from e

        try:
            upload = UploadResult(
                url=result["secure_url"],
                public_id=result["public_id"],
                width=int(result.get("width") or 0),
                height=int(result.get("height") or 0),
                format=result.get("format") or "",
                bytes=int(result.get("bytes") or 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Media host returned an unexpected upload response: {e}")
            raise MediaUploadError("Upload failed: malformed response") from e

        logger.info(f"Uploaded media asset {upload.public_id} ({upload.width}x{upload.height} {upload.format})")
        return upload

    async def delete(self, public_id: str) -> Dict[str, Any]:
        """Delete an asset; an already-missing asset counts as deleted"""
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                resource_type="image",
                timeout=self.config.media_timeout
            )
        except (CloudinaryError, OSError) as e:
            logger.error(f"Media delete failed for {public_id}: {e}")
            raise MediaUploadError(f"Delete failed: {e}") from e

        outcome = result.get("result")
        if outcome not in ("ok", "not found"):
            raise MediaUploadError(f"Delete failed: {outcome}")

        logger.info(f"Deleted media asset {public_id} ({outcome})")
        return result

    def url_for(self, public_id: str, **options) -> str:
        """Build a delivery URL, optionally with transformation options"""
        url, _ = cloudinary.utils.cloudinary_url(public_id, secure=True, **options)
        return url
