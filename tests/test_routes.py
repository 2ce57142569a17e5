"""
Tests for HTTP routes, dependencies and the error envelope
"""

import pytest
from unittest.mock import AsyncMock

from gallery_service.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    UnauthorizedError,
)

API = "/api/v1"
AUTH_HEADER = {"Authorization": "Bearer access-token"}

CURRENT_USER = {
    "id": "64b7f0c2a1b2c3d4e5f60718",
    "username": "alice",
    "email": "alice@x.com",
    "first_name": "Alice",
    "last_name": "Smith",
    "role": "user",
    "is_active": True,
}


@pytest.fixture
def signed_in(mock_services):
    mock_services.auth.authenticate = AsyncMock(return_value=dict(CURRENT_USER))
    return mock_services


@pytest.fixture
def signed_in_admin(mock_services):
    mock_services.auth.authenticate = AsyncMock(return_value={**CURRENT_USER, "role": "admin"})
    return mock_services


class TestHealth:

    def test_health(self, client):
        response = client.get(f"{API}/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["uptime"] >= 0
        assert "timestamp" in data

    def test_database_health(self, client, mock_services):
        mock_services.database.ping = AsyncMock(return_value=True)

        response = client.get(f"{API}/health/database")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_database_down(self, client, mock_services):
        mock_services.database.ping = AsyncMock(side_effect=ConnectionError("no server"))

        response = client.get(f"{API}/health/database")

        assert response.status_code == 503
        assert response.json()["message"] == "Database connection failed"


class TestAuthRoutes:

    def test_register(self, client, mock_services):
        mock_services.auth.register = AsyncMock(return_value={
            "message": "Registration successful. Please check your email to verify your account.",
            "user": {"id": "1", "username": "alice"},
        })

        response = client.post(f"{API}/auth/register", json={
            "username": "alice",
            "email": "Alice@X.com",
            "password": "secret123",
            "first_name": "Alice",
            "last_name": "Smith",
        })

        assert response.status_code == 201
        mock_services.auth.register.assert_awaited_once_with(
            username="alice",
            email="alice@x.com",
            password="secret123",
            first_name="Alice",
            last_name="Smith"
        )

    def test_register_validation_error(self, client, mock_services):
        response = client.post(f"{API}/auth/register", json={
            "username": "al",
            "email": "not-an-email",
            "password": "123",
            "first_name": "Alice",
            "last_name": "Smith",
        })

        assert response.status_code == 400
        data = response.json()
        assert data["error"] is True
        assert data["status_code"] == 400
        assert data["path"] == f"{API}/auth/register"
        fields = {detail["field"] for detail in data["details"]}
        assert {"body.username", "body.email", "body.password"} <= fields
        mock_services.auth.register.assert_not_called()

    def test_register_conflict(self, client, mock_services):
        mock_services.auth.register = AsyncMock(side_effect=ConflictError("Email already registered"))

        response = client.post(f"{API}/auth/register", json={
            "username": "alice2",
            "email": "alice@x.com",
            "password": "secret123",
            "first_name": "Alice",
            "last_name": "Smith",
        })

        assert response.status_code == 409
        data = response.json()
        assert data["message"] == "Email already registered"
        assert "timestamp" in data

    def test_login_invalid_credentials(self, client, mock_services):
        mock_services.auth.login = AsyncMock(side_effect=UnauthorizedError("Invalid credentials"))

        response = client.post(f"{API}/auth/login", json={"login": "alice", "password": "bad"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_refresh(self, client, mock_services):
        mock_services.auth.refresh_token = AsyncMock(return_value={
            "access_token": "a2", "refresh_token": "r2", "token_type": "bearer"
        })

        response = client.post(f"{API}/auth/refresh", json={"refresh_token": "r1"})

        assert response.status_code == 200
        mock_services.auth.refresh_token.assert_awaited_once_with("r1")

    def test_me_requires_token(self, client):
        response = client.get(f"{API}/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"

    def test_me(self, client, signed_in):
        response = client.get(f"{API}/auth/me", headers=AUTH_HEADER)

        assert response.status_code == 200
        assert response.json()["username"] == "alice"
        signed_in.auth.authenticate.assert_awaited_once_with("access-token")

    def test_logout(self, client, signed_in):
        signed_in.auth.logout = AsyncMock(return_value={"message": "Logged out successfully"})

        response = client.post(f"{API}/auth/logout", json={"refresh_token": "r1"}, headers=AUTH_HEADER)

        assert response.status_code == 200
        signed_in.auth.logout.assert_awaited_once_with(CURRENT_USER["id"], "r1")

    def test_verify_email(self, client, mock_services):
        mock_services.auth.verify_email = AsyncMock(return_value={"message": "Email verified successfully"})

        response = client.get(f"{API}/auth/verify-email", params={"token": "abc"})

        assert response.status_code == 200
        mock_services.auth.verify_email.assert_awaited_once_with("abc")


class TestImageRoutes:

    def test_upload(self, client, signed_in):
        signed_in.catalog.create = AsyncMock(return_value={"id": "img1", "title": "Sunset"})

        response = client.post(
            f"{API}/images",
            headers=AUTH_HEADER,
            files={"image": ("sunset.png", b"\x89PNG\r\n\x1a\n", "image/png")},
            data={"title": "Sunset", "category": "nature", "tags": "Sky, Sunset", "is_public": "false"}
        )

        assert response.status_code == 201
        metadata, data, owner_id = signed_in.catalog.create.call_args[0]
        assert metadata["tags"] == ["sky", "sunset"]
        assert metadata["category"] == "nature"
        assert metadata["is_public"] is False
        assert data == b"\x89PNG\r\n\x1a\n"
        assert owner_id == CURRENT_USER["id"]
        assert signed_in.catalog.create.call_args.kwargs["file_size"] == len(data)

    def test_upload_rejects_non_image(self, client, signed_in):
        response = client.post(
            f"{API}/images",
            headers=AUTH_HEADER,
            files={"image": ("notes.txt", b"hello", "text/plain")},
            data={"title": "Notes", "category": "other"}
        )

        assert response.status_code == 400
        signed_in.catalog.create.assert_not_called()

    def test_upload_unknown_category(self, client, signed_in):
        response = client.post(
            f"{API}/images",
            headers=AUTH_HEADER,
            files={"image": ("a.png", b"png", "image/png")},
            data={"title": "Pic", "category": "cars"}
        )

        assert response.status_code == 400
        assert response.json()["details"]

    def test_upload_requires_auth(self, client, mock_services):
        response = client.post(
            f"{API}/images",
            files={"image": ("a.png", b"png", "image/png")},
            data={"title": "Pic", "category": "art"}
        )

        assert response.status_code == 401

    def test_list_images(self, client, mock_services):
        mock_services.catalog.find_all = AsyncMock(return_value={
            "images": [],
            "pagination": {"total": 0, "page": 2, "limit": 5, "pages": 0},
        })

        response = client.get(f"{API}/images", params={
            "page": 2, "limit": 5, "category": "art", "tags": "a,b", "sort_order": "asc"
        })

        assert response.status_code == 200
        kwargs = mock_services.catalog.find_all.call_args.kwargs
        assert kwargs["page"] == 2
        assert kwargs["limit"] == 5
        assert kwargs["category"] == "art"
        assert kwargs["tags"] == "a,b"
        assert kwargs["sort_by"] == "created_at"
        assert kwargs["sort_order"] == "asc"
        assert kwargs["requesting_user_id"] is None

    def test_list_images_limit_out_of_range(self, client, mock_services):
        response = client.get(f"{API}/images", params={"limit": 101})

        assert response.status_code == 400
        mock_services.catalog.find_all.assert_not_called()

    def test_list_images_bad_sort_order(self, client, mock_services):
        response = client.get(f"{API}/images", params={"sort_order": "sideways"})

        assert response.status_code == 400

    def test_private_image_forbidden(self, client, mock_services):
        mock_services.catalog.find_one = AsyncMock(side_effect=ForbiddenError("Access denied to private image"))

        response = client.get(f"{API}/images/64b7f0c2a1b2c3d4e5f60719")

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied to private image"
        mock_services.catalog.find_one.assert_awaited_once_with("64b7f0c2a1b2c3d4e5f60719", None)

    def test_invalid_token_on_optional_route_is_anonymous(self, client, mock_services):
        mock_services.auth.authenticate = AsyncMock(side_effect=UnauthorizedError("Invalid or expired token"))
        mock_services.catalog.find_one = AsyncMock(return_value={"id": "img1"})

        response = client.get(f"{API}/images/img1", headers=AUTH_HEADER)

        assert response.status_code == 200
        mock_services.catalog.find_one.assert_awaited_once_with("img1", None)

    def test_owner_fetch_passes_user(self, client, signed_in):
        signed_in.catalog.find_one = AsyncMock(return_value={"id": "img1"})

        client.get(f"{API}/images/img1", headers=AUTH_HEADER)

        signed_in.catalog.find_one.assert_awaited_once_with("img1", CURRENT_USER["id"])

    def test_static_routes_not_shadowed_by_id(self, client, mock_services):
        mock_services.catalog.get_categories = AsyncMock(return_value=["art"])
        mock_services.catalog.get_trending_tags = AsyncMock(return_value=[{"name": "sky", "count": 2}])
        mock_services.catalog.get_image_stats = AsyncMock(return_value={"total_images": 1})

        assert client.get(f"{API}/images/categories").json() == ["art"]
        assert client.get(f"{API}/images/trending-tags", params={"limit": 5}).json()[0]["name"] == "sky"
        assert client.get(f"{API}/images/stats").json() == {"total_images": 1}
        mock_services.catalog.get_trending_tags.assert_awaited_once_with(5)
        mock_services.catalog.find_one.assert_not_called()

    def test_update_image(self, client, signed_in):
        signed_in.catalog.update = AsyncMock(return_value={"id": "img1", "is_public": True})

        response = client.patch(f"{API}/images/img1", headers=AUTH_HEADER, json={"is_public": True})

        assert response.status_code == 200
        signed_in.catalog.update.assert_awaited_once_with("img1", {"is_public": True}, CURRENT_USER["id"])

    def test_update_image_clears_description(self, client, signed_in):
        signed_in.catalog.update = AsyncMock(return_value={"id": "img1", "description": None})

        response = client.patch(f"{API}/images/img1", headers=AUTH_HEADER, json={"description": None})

        assert response.status_code == 200
        signed_in.catalog.update.assert_awaited_once_with("img1", {"description": None}, CURRENT_USER["id"])

    def test_update_image_blank_title(self, client, signed_in):
        signed_in.catalog.update = AsyncMock()

        response = client.patch(f"{API}/images/img1", headers=AUTH_HEADER, json={"title": "   "})

        assert response.status_code == 400
        signed_in.catalog.update.assert_not_called()

    def test_update_image_strips_title(self, client, signed_in):
        signed_in.catalog.update = AsyncMock(return_value={"id": "img1", "title": "Dusk"})

        response = client.patch(f"{API}/images/img1", headers=AUTH_HEADER, json={"title": "  Dusk "})

        assert response.status_code == 200
        signed_in.catalog.update.assert_awaited_once_with("img1", {"title": "Dusk"}, CURRENT_USER["id"])

    def test_delete_image(self, client, signed_in):
        signed_in.catalog.remove = AsyncMock(return_value=None)

        response = client.delete(f"{API}/images/img1", headers=AUTH_HEADER)

        assert response.status_code == 200
        assert response.json() == {"message": "Image deleted successfully"}

    def test_like(self, client, signed_in):
        signed_in.catalog.like_image = AsyncMock(return_value={"liked": True, "likes_count": 1})

        response = client.post(f"{API}/images/img1/like", headers=AUTH_HEADER)

        assert response.json() == {"liked": True, "likes_count": 1}

    def test_download_without_auth(self, client, mock_services):
        mock_services.catalog.download_image = AsyncMock(return_value={"download_url": "https://x/y.jpg", "downloads": 3})

        response = client.post(f"{API}/images/img1/download")

        assert response.status_code == 200
        assert response.json()["download_url"] == "https://x/y.jpg"


class TestUserRoutes:

    def test_update_profile(self, client, signed_in):
        signed_in.profiles.update_profile = AsyncMock(return_value={"id": CURRENT_USER["id"], "first_name": "Ally"})

        response = client.patch(f"{API}/users/profile", headers=AUTH_HEADER, json={"first_name": "Ally"})

        assert response.status_code == 200
        signed_in.profiles.update_profile.assert_awaited_once_with(CURRENT_USER["id"], {"first_name": "Ally"})

    def test_update_profile_clears_avatar(self, client, signed_in):
        signed_in.profiles.update_profile = AsyncMock(return_value={"id": CURRENT_USER["id"], "avatar": None})

        response = client.patch(f"{API}/users/profile", headers=AUTH_HEADER, json={"avatar": None})

        assert response.status_code == 200
        signed_in.profiles.update_profile.assert_awaited_once_with(CURRENT_USER["id"], {"avatar": None})

    def test_user_stats_public(self, client, mock_services):
        mock_services.profiles.get_user_stats = AsyncMock(return_value={"user": {}, "stats": {"total_images": 0}})

        response = client.get(f"{API}/users/stats/abc")

        assert response.status_code == 200

    def test_list_users_requires_admin(self, client, signed_in):
        response = client.get(f"{API}/users", headers=AUTH_HEADER)

        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"
        signed_in.profiles.get_all_users.assert_not_called()

    def test_list_users_as_admin(self, client, signed_in_admin):
        signed_in_admin.profiles.get_all_users = AsyncMock(return_value={"users": [], "pagination": {}})

        response = client.get(f"{API}/users", headers=AUTH_HEADER, params={"page": 2, "limit": 20})

        assert response.status_code == 200
        signed_in_admin.profiles.get_all_users.assert_awaited_once_with(2, 20)

    def test_deactivate_as_admin(self, client, signed_in_admin):
        signed_in_admin.profiles.deactivate_user = AsyncMock(return_value={"message": "User deactivated successfully"})

        response = client.patch(f"{API}/users/deactivate/abc", headers=AUTH_HEADER)

        assert response.status_code == 200
        signed_in_admin.profiles.deactivate_user.assert_awaited_once_with("abc", admin_id=CURRENT_USER["id"])


class TestErrorEnvelope:

    def test_unknown_route(self, client):
        response = client.get(f"{API}/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"] is True

    def test_unexpected_error_hides_nothing_outside_production(self, client, mock_services):
        mock_services.catalog.get_categories = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get(f"{API}/images/categories")

        assert response.status_code == 500
        data = response.json()
        assert data["message"] == "Internal server error"
        assert "stack" in data

    def test_unexpected_error_in_production(self, client, mock_services, monkeypatch):
        from gallery_service import main

        monkeypatch.setattr(main.app_config, "environment", "production")
        mock_services.catalog.get_categories = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get(f"{API}/images/categories")

        assert response.status_code == 500
        assert "stack" not in response.json()
