"""
Pytest fixtures for gallery service tests
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from typing import Any, Dict, List

from bson import ObjectId


def make_cursor(results: List[Dict[str, Any]]):
    """Mock Motor cursor: chainable sort/skip/limit and an awaitable to_list"""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=results)
    return cursor


@pytest.fixture
def mock_collection():
    """Mock Motor collection"""
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)
    collection.distinct = AsyncMock(return_value=[])
    collection.find.return_value = make_cursor([])
    collection.aggregate.return_value = make_cursor([])
    return collection


@pytest.fixture
def jwt_config():
    """JWT configuration with distinct test secrets"""
    from gallery_service.utils.config import JWTConfig
    return JWTConfig(
        jwt_secret="test-access-secret",
        jwt_refresh_secret="test-refresh-secret",
        jwt_access_token_expire_minutes=15,
        jwt_refresh_token_expire_days=7
    )


@pytest.fixture
def security(jwt_config, monkeypatch):
    """SecurityUtils with cheap bcrypt rounds"""
    from gallery_service.utils import security as security_module
    monkeypatch.setattr(security_module, "BCRYPT_ROUNDS", 4)
    return security_module.SecurityUtils(jwt_config)


@pytest.fixture
def app_config():
    from gallery_service.utils.config import AppConfig
    return AppConfig(
        environment="test",
        frontend_url="https://gallery.example.com/",
        platform_name="Speceal",
        support_email="support@example.com"
    )


@pytest.fixture
def mock_smtp_config():
    """Mock SMTP configuration"""
    config = MagicMock()
    config.smtp_host = "localhost"
    config.smtp_port = 1025
    config.smtp_use_tls = False
    config.smtp_timeout = 10
    config.smtp_username = None
    config.smtp_password = None
    config.default_from_email = "noreply@test.com"
    config.default_from_name = "Test Platform"
    return config


@pytest.fixture
def mock_media_config():
    """Mock media host configuration"""
    config = MagicMock()
    config.cloudinary_cloud_name = "demo"
    config.cloudinary_api_key = "key"
    config.cloudinary_api_secret = "secret"
    config.media_folder = "speceal"
    config.media_timeout = 60
    config.media_max_dimension = 2000
    return config


@pytest.fixture
def user_id() -> ObjectId:
    return ObjectId()


@pytest.fixture
def sample_user(user_id) -> Dict[str, Any]:
    """Stored user document"""
    now = datetime.now(timezone.utc)
    return {
        "_id": user_id,
        "username": "alice",
        "email": "alice@x.com",
        "password_hash": "$2b$04$hash",
        "first_name": "Alice",
        "last_name": "Smith",
        "avatar": None,
        "role": "user",
        "is_email_verified": False,
        "refresh_tokens": [],
        "password_reset_token": None,
        "password_reset_expires": None,
        "email_verification_token": None,
        "email_verification_expires": None,
        "last_login": None,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def sample_image(user_id) -> Dict[str, Any]:
    """Stored image document owned by sample_user"""
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(),
        "title": "Sunset",
        "description": "Evening sky",
        "image_url": "https://res.cloudinary.com/demo/image/upload/speceal/sunset.jpg",
        "public_id": "speceal/sunset",
        "category": "nature",
        "tags": ["sky", "sunset"],
        "uploaded_by": user_id,
        "likes": [],
        "downloads": 0,
        "views": 0,
        "is_public": True,
        "file_size": 2048,
        "dimensions": {"width": 800, "height": 600},
        "format": "jpg",
        "deletion_pending": False,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def mock_services():
    """Service container with mocked services for route tests"""
    from gallery_service.utils.config import AppConfig
    services = MagicMock()
    services.app_config = AppConfig()
    services.auth = AsyncMock()
    services.catalog = AsyncMock()
    services.profiles = AsyncMock()
    services.database = AsyncMock()
    return services


@pytest.fixture
def client(mock_services):
    """TestClient with mocked services installed on the app"""
    from fastapi.testclient import TestClient
    from gallery_service.main import app

    app.state.services = mock_services
    yield TestClient(app, raise_server_exceptions=False)
    app.state.services = None
