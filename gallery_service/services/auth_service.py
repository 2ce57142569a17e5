"""
Authentication Service
Registration, login, token rotation, password and email verification flows
"""

import logging
from typing import Any, Dict

from gallery_service.models.user import sanitize_user, summarize_user
from gallery_service.services.credential_store import CredentialStore
from gallery_service.services.notification_sender import NotificationError, NotificationSender
from gallery_service.utils.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from gallery_service.utils.logger import get_audit_logger
from gallery_service.utils.security import SecurityUtils

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = (
    "If that email address is in our database, we will send you an email to reset your password."
)


class AuthService:
    """Account authentication service"""

    def __init__(
        self,
        credential_store: CredentialStore,
        security: SecurityUtils,
        notification_sender: NotificationSender
    ):
        self.credentials = credential_store
        self.security = security
        self.notifications = notification_sender
        self.audit = get_audit_logger()

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str
    ) -> Dict[str, Any]:
        """
        Register new user and send the email verification link

        Args:
            username: Unique username
            email: Unique email (case-insensitive)
            password: Plain text password, hashed before it is stored
            first_name: First name
            last_name: Last name

        Returns:
            dict: Message and sanitized user summary

        Raises:
            ConflictError: If the email or username is already taken
        """
        email = email.strip().lower()

        existing = await self.credentials.find_by_email_or_username(email, username)
        if existing:
            if existing.get("email") == email:
                raise ConflictError("Email already registered")
            raise ConflictError("Username already taken")

        user = await self.credentials.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name
        )

        verification_token = await self.credentials.issue_email_verification_token(user["_id"])
        await self.notifications.send_verification(user["email"], verification_token)

        logger.info(f"User registered: {user['_id']}")
        return {
            "message": "Registration successful. Please check your email to verify your account.",
            "user": {
                "id": str(user["_id"]),
                "username": user["username"],
                "email": user["email"],
                "first_name": user["first_name"],
                "last_name": user["last_name"],
            },
        }

    async def login(self, login: str, password: str) -> Dict[str, Any]:
        """
        Authenticate by email or username

        Returns:
            dict: access_token, refresh_token and user summary

        Raises:
            UnauthorizedError: Unknown identifier, wrong password or deactivated account
        """
        user = await self.credentials.find_by_email_or_username(login, login)
        if not user or not await self.credentials.verify_password(user, password):
            raise UnauthorizedError("Invalid credentials")

        if not user.get("is_active", True):
            raise UnauthorizedError("Account is deactivated")

        await self.credentials.record_login(user["_id"])
        tokens = await self.generate_token_pair(user)

        self.audit.log_user_action(str(user["_id"]), "login", "session")
        return {**tokens, "user": summarize_user(user)}

    async def generate_token_pair(self, user: Dict[str, Any]) -> Dict[str, str]:
        """Mint access/refresh tokens and record the refresh token as active"""
        payload = {
            "email": user["email"],
            "sub": str(user["_id"]),
            "role": user.get("role", "user"),
        }
        access_token = self.security.generate_access_token(payload)
        refresh_token = self.security.generate_refresh_token(payload)

        await self.credentials.add_refresh_token(user["_id"], refresh_token)

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
        }

    async def refresh_token(self, refresh_token: str) -> Dict[str, str]:
        """
        Rotate a refresh token

        The presented token is removed from the active list in the same
        update that checks it is there, so it can be used only once.
        """
        payload = self.security.verify_refresh_token(refresh_token)
        if not payload or not payload.get("sub"):
            raise UnauthorizedError("Invalid refresh token")

        user = await self.credentials.consume_refresh_token(payload["sub"], refresh_token)
        if not user:
            logger.warning(f"Refresh token reuse or unknown token for user {payload['sub']}")
            raise UnauthorizedError("Invalid refresh token")

        if not user.get("is_active", True):
            raise UnauthorizedError("Invalid refresh token")

        return await self.generate_token_pair(user)

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> Dict[str, str]:
        user = await self.credentials.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        if not await self.credentials.verify_password(user, current_password):
            raise BadRequestError("Current password is incorrect")

        await self.credentials.set_password(user["_id"], new_password)

        self.audit.log_user_action(user_id, "change_password", "user", user_id)
        return {"message": "Password changed successfully"}

    async def forgot_password(self, email: str) -> Dict[str, str]:
        """
        Start a password reset

        The response is identical whether or not the email is registered.
        """
        user = await self.credentials.find_by_email(email)
        if user and user.get("is_active", True):
            reset_token = await self.credentials.issue_password_reset_token(user["_id"])
            try:
                await self.notifications.send_password_reset(user["email"], reset_token)
            except NotificationError as e:
                # Surfacing this would reveal that the account exists
                logger.error(f"Password reset email for user {user['_id']} not delivered: {e}")

        return {"message": FORGOT_PASSWORD_MESSAGE}

    async def reset_password(self, token: str, new_password: str) -> Dict[str, str]:
        user = await self.credentials.consume_password_reset_token(token, new_password)
        if not user:
            raise BadRequestError("Invalid or expired reset token")

        self.audit.log_user_action(str(user["_id"]), "reset_password", "user", str(user["_id"]))
        return {"message": "Password reset successfully"}

    async def verify_email(self, token: str) -> Dict[str, str]:
        user = await self.credentials.consume_email_verification_token(token)
        if not user:
            raise BadRequestError("Invalid or expired verification token")

        logger.info(f"Email verified for user: {user['_id']}")
        return {"message": "Email verified successfully"}

    async def logout(self, user_id: str, refresh_token: str) -> Dict[str, str]:
        """Drop the refresh token from the active list; a no-op if it is absent"""
        await self.credentials.revoke_refresh_token(user_id, refresh_token)
        return {"message": "Logged out successfully"}

    async def authenticate(self, access_token: str) -> Dict[str, Any]:
        """
        Resolve a bearer access token to the sanitized current user

        Raises:
            UnauthorizedError: Invalid/expired token, unknown or deactivated user
        """
        payload = self.security.verify_access_token(access_token)
        if not payload or not payload.get("sub"):
            raise UnauthorizedError("Invalid or expired token")

        user = await self.credentials.find_by_id(payload["sub"])
        if not user or not user.get("is_active", True):
            raise UnauthorizedError("Invalid or expired token")

        return sanitize_user(user)
