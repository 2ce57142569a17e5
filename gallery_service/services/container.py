"""
Service Container
Builds the adapters and services once per application and owns their lifecycle
"""

import logging
from dataclasses import dataclass
from typing import Optional

from gallery_service.services.auth_service import AuthService
from gallery_service.services.catalog_service import CatalogService
from gallery_service.services.credential_store import CredentialStore
from gallery_service.services.notification_sender import NotificationSender
from gallery_service.services.profile_service import ProfileService
from gallery_service.utils.config import (
    AppConfig,
    DatabaseConfig,
    JWTConfig,
    MediaConfig,
    SMTPConfig,
    get_app_config,
    get_db_config,
    get_jwt_config,
    get_media_config,
    get_smtp_config,
)
from gallery_service.utils.database import MongoDatabase
from gallery_service.utils.media_client import MediaClient
from gallery_service.utils.security import SecurityUtils
from gallery_service.utils.smtp_client import SMTPClient

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    app_config: AppConfig
    database: MongoDatabase
    security: SecurityUtils
    credential_store: CredentialStore
    media_client: MediaClient
    smtp_client: SMTPClient
    notification_sender: NotificationSender
    auth: AuthService
    catalog: CatalogService
    profiles: ProfileService

    @classmethod
    def create(
        cls,
        app_config: Optional[AppConfig] = None,
        db_config: Optional[DatabaseConfig] = None,
        jwt_config: Optional[JWTConfig] = None,
        smtp_config: Optional[SMTPConfig] = None,
        media_config: Optional[MediaConfig] = None
    ) -> "ServiceContainer":
        """Wire every component; missing configs come from the environment"""
        app_config = app_config or get_app_config()

        database = MongoDatabase(db_config or get_db_config())
        security = SecurityUtils(jwt_config or get_jwt_config())
        credential_store = CredentialStore(database.users, security)
        media_client = MediaClient(media_config or get_media_config())
        smtp_client = SMTPClient(smtp_config or get_smtp_config())
        notification_sender = NotificationSender(smtp_client, app_config)

        auth = AuthService(credential_store, security, notification_sender)
        catalog = CatalogService(database.images, credential_store, media_client)
        profiles = ProfileService(credential_store, catalog, media_client)

        return cls(
            app_config=app_config,
            database=database,
            security=security,
            credential_store=credential_store,
            media_client=media_client,
            smtp_client=smtp_client,
            notification_sender=notification_sender,
            auth=auth,
            catalog=catalog,
            profiles=profiles,
        )

    async def start(self):
        await self.database.connect()
        await self.catalog.purge_pending_deletions()
        logger.info("Services started")

    async def stop(self):
        self.database.close()
        logger.info("Services stopped")
