#!/usr/bin/env python3
"""
Admin Seeding Script

Creates the initial administrator account from ADMIN_* settings.
Running it again is a no-op once an account with the admin email exists.
"""

import asyncio
import logging
import sys
from typing import Any, Dict, Optional

from gallery_service.models.user import UserRole
from gallery_service.services.container import ServiceContainer
from gallery_service.utils.config import AdminConfig, get_admin_config, get_app_config
from gallery_service.utils.exceptions import ConflictError
from gallery_service.utils.logger import get_audit_logger, setup_logging

logger = logging.getLogger(__name__)


class AdminSeedError(Exception):
    """Raised when the admin account cannot be created"""
    pass


async def create_admin(services: ServiceContainer, config: AdminConfig) -> Optional[Dict[str, Any]]:
    """
    Create the admin account unless one with the same email exists

    Returns:
        The new user document, or None if the account already existed

    Raises:
        AdminSeedError: No password configured, or the username is taken
    """
    existing = await services.credential_store.find_by_email(config.admin_email)
    if existing:
        logger.info(f"Admin user already exists: {config.admin_email}")
        return None

    if not config.admin_password:
        raise AdminSeedError("ADMIN_PASSWORD must be set to create the admin user")

    try:
        user = await services.credential_store.create_user(
            username=config.admin_username,
            email=config.admin_email,
            password=config.admin_password,
            first_name=config.admin_first_name,
            last_name=config.admin_last_name,
            role=UserRole.ADMIN,
            is_email_verified=True
        )
    except ConflictError as e:
        raise AdminSeedError(f"Cannot create admin user: {e.message}") from e

    get_audit_logger().log_user_action("system", "create", "user", str(user["_id"]), {"role": "admin"})
    logger.info(f"Admin user created: {config.admin_email}")
    logger.info("Please change the password after first login")
    return user


async def run(services: Optional[ServiceContainer] = None, config: Optional[AdminConfig] = None) -> bool:
    """Connect, seed and disconnect; returns False when seeding failed"""
    services = services or ServiceContainer.create()
    config = config or get_admin_config()
    try:
        await services.database.connect()
        await create_admin(services, config)
        return True
    except AdminSeedError as e:
        logger.error(str(e))
        return False
    finally:
        await services.stop()


def main():
    app_config = get_app_config()
    setup_logging(
        config_path=app_config.log_config_path,
        log_level=app_config.log_level,
        log_format=app_config.log_format,
        environment=app_config.environment
    )
    sys.exit(0 if asyncio.run(run()) else 1)


if __name__ == "__main__":
    main()
