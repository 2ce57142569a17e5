"""
Image Routes
Upload, catalog browsing, likes, downloads and statistics
"""

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from typing import Annotated, Optional
import logging

from gallery_service.schemas.image import ImageCreateSchema, ImageQuerySchema, ImageUpdateSchema
from gallery_service.utils.dependencies import CurrentUser, OptionalUser, Services
from gallery_service.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def upload_image(
    current_user: CurrentUser,
    services: Services,
    image: UploadFile = File(...),
    title: str = Form(...),
    category: str = Form(...),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    is_public: bool = Form(True)
):
    """
    Upload a new image

    Multipart form: the file under "image", metadata as form fields,
    tags as a comma-separated list
    """
    if image.content_type not in ALLOWED_CONTENT_TYPES:
        raise BadRequestError("Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed.")

    try:
        metadata = ImageCreateSchema(
            title=title,
            category=category,
            description=description,
            tags=tags,
            is_public=is_public
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e

    data = await image.read()
    if not data:
        raise BadRequestError("No image file provided")
    if len(data) > MAX_UPLOAD_BYTES:
        raise BadRequestError("File too large. Maximum size is 10MB.")

    return await services.catalog.create(
        metadata.model_dump(mode="json"),
        data,
        current_user["id"],
        file_size=len(data)
    )


@router.get("", response_model=dict)
async def list_images(
    services: Services,
    current_user: OptionalUser,
    query: Annotated[ImageQuerySchema, Query()]
):
    """Public catalog with filtering, sorting and pagination"""
    return await services.catalog.find_all(
        page=query.page,
        limit=query.limit,
        category=query.category.value if query.category else None,
        tags=query.tags,
        search=query.search,
        sort_by=query.sort_by,
        sort_order=query.sort_order,
        user_id=query.user_id,
        requesting_user_id=current_user["id"] if current_user else None
    )


@router.get("/my-images", response_model=dict)
async def my_images(
    current_user: CurrentUser,
    services: Services,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100)
):
    """Current user's images, private ones included"""
    return await services.catalog.get_user_images(current_user["id"], page, limit)


@router.get("/stats", response_model=dict)
async def image_stats(services: Services):
    return await services.catalog.get_image_stats()


@router.get("/categories", response_model=list)
async def categories(services: Services):
    return await services.catalog.get_categories()


@router.get("/trending-tags", response_model=list)
async def trending_tags(services: Services, limit: int = Query(10, ge=1, le=100)):
    return await services.catalog.get_trending_tags(limit)


@router.get("/{image_id}", response_model=dict)
async def get_image(image_id: str, services: Services, current_user: OptionalUser):
    """Fetch one image; counts as a view"""
    return await services.catalog.find_one(
        image_id,
        current_user["id"] if current_user else None
    )


@router.patch("/{image_id}", response_model=dict)
async def update_image(
    image_id: str,
    image_data: ImageUpdateSchema,
    current_user: CurrentUser,
    services: Services
):
    return await services.catalog.update(
        image_id,
        image_data.model_dump(mode="json", exclude_unset=True),
        current_user["id"]
    )


@router.delete("/{image_id}", response_model=dict)
async def delete_image(image_id: str, current_user: CurrentUser, services: Services):
    await services.catalog.remove(image_id, current_user["id"])
    return {"message": "Image deleted successfully"}


@router.post("/{image_id}/like", response_model=dict)
async def like_image(image_id: str, current_user: CurrentUser, services: Services):
    """Toggle the current user's like"""
    return await services.catalog.like_image(image_id, current_user["id"])


@router.post("/{image_id}/download", response_model=dict)
async def download_image(image_id: str, services: Services):
    return await services.catalog.download_image(image_id)
