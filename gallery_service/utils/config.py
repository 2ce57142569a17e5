"""
Configuration Management
Environment-based configuration for MongoDB, JWT, SMTP, media host and application settings
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
import logging

logger = logging.getLogger(__name__)


class AppConfig(BaseSettings):
    """Application Configuration"""

    # Service info
    service_name: str = "gallery-service"
    service_version: str = "1.0.0"
    environment: str = "development"

    # API settings
    api_prefix: str = "/api/v1"
    docs_url: str = "/docs"
    openapi_url: str = "/openapi.json"
    cors_origins: List[str] = ["http://localhost:3000"]

    # Links embedded in emails
    frontend_url: str = "http://localhost:3000"

    # Platform info
    platform_name: str = "Speceal"
    support_email: str = "support@speceal.com"

    # Logging
    log_level: str = "INFO"
    log_format: str = "default"
    log_config_path: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        v = v.lower()
        if v not in ("development", "production", "test"):
            raise ValueError('Environment must be development, production or test')
        return v

    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment == "production"


class DatabaseConfig(BaseSettings):
    """MongoDB Configuration"""

    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "speceal"
    mongodb_timeout_ms: int = 5000

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('mongodb_timeout_ms')
    @classmethod
    def validate_timeout(cls, v):
        if v < 1:
            raise ValueError('MongoDB timeout must be positive')
        return v

    def log_config(self):
        """Log configuration (without credentials)"""
        host = self.mongodb_uri.rsplit("@", 1)[-1]
        logger.info(f"MongoDB: {host} / {self.mongodb_db_name}")


class JWTConfig(BaseSettings):
    """Token signing configuration"""

    jwt_secret: str = "change_me_access_secret"
    jwt_refresh_secret: str = "change_me_refresh_secret"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 15
    jwt_refresh_token_expire_days: int = 7

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @model_validator(mode='after')
    def validate_secrets(self):
        if self.jwt_secret == self.jwt_refresh_secret:
            raise ValueError('Access and refresh tokens must be signed with different secrets')
        return self

    @field_validator('jwt_access_token_expire_minutes', 'jwt_refresh_token_expire_days')
    @classmethod
    def validate_lifetime(cls, v):
        if v < 1:
            raise ValueError('Token lifetime must be positive')
        return v


class SMTPConfig(BaseSettings):
    """SMTP Configuration"""

    # Core SMTP settings
    smtp_host: str = "mailhog"
    smtp_port: int = 1025
    smtp_use_tls: bool = False
    smtp_timeout: int = 30

    # Authentication (optional)
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None

    # Email defaults
    default_from_email: str = "noreply@speceal.com"
    default_from_name: str = "Speceal"

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('smtp_port')
    @classmethod
    def validate_smtp_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError('SMTP port must be between 1 and 65535')
        return v

    @field_validator('smtp_timeout')
    @classmethod
    def validate_smtp_timeout(cls, v):
        if v < 1:
            raise ValueError('SMTP timeout must be at least 1 second')
        return v

    def log_config(self):
        """Log configuration (without sensitive data)"""
        logger.info(f"SMTP Host: {self.smtp_host}:{self.smtp_port}")
        logger.info(f"TLS: {self.smtp_use_tls}")
        logger.info(f"Authentication: {'Yes' if self.smtp_username else 'No'}")
        logger.info(f"From: {self.default_from_name} <{self.default_from_email}>")


class MediaConfig(BaseSettings):
    """Cloudinary Configuration"""

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    media_folder: str = "speceal"
    media_timeout: int = 60
    media_max_dimension: int = 2000

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('media_timeout', 'media_max_dimension')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError('Value must be positive')
        return v


class AdminConfig(BaseSettings):
    """Initial administrator account seeded by gallery-create-admin"""

    admin_username: str = "admin"
    admin_email: str = "admin@speceal.com"
    admin_password: Optional[str] = None
    admin_first_name: str = "Admin"
    admin_last_name: str = "User"

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('admin_email')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()

    @field_validator('admin_password')
    @classmethod
    def validate_password(cls, v):
        if v is not None and len(v) < 6:
            raise ValueError('Admin password must be at least 6 characters')
        return v


# Global configuration instances
_app_config: Optional[AppConfig] = None
_db_config: Optional[DatabaseConfig] = None
_jwt_config: Optional[JWTConfig] = None
_smtp_config: Optional[SMTPConfig] = None
_media_config: Optional[MediaConfig] = None
_admin_config: Optional[AdminConfig] = None


def get_app_config() -> AppConfig:
    """Get application configuration instance"""
    global _app_config
    if _app_config is None:
        _app_config = AppConfig()
    return _app_config


def get_db_config() -> DatabaseConfig:
    """Get database configuration instance"""
    global _db_config
    if _db_config is None:
        _db_config = DatabaseConfig()
    return _db_config


def get_jwt_config() -> JWTConfig:
    """Get JWT configuration instance"""
    global _jwt_config
    if _jwt_config is None:
        _jwt_config = JWTConfig()
    return _jwt_config


def get_smtp_config() -> SMTPConfig:
    """Get SMTP configuration instance"""
    global _smtp_config
    if _smtp_config is None:
        _smtp_config = SMTPConfig()
    return _smtp_config


def get_media_config() -> MediaConfig:
    """Get media host configuration instance"""
    global _media_config
    if _media_config is None:
        _media_config = MediaConfig()
    return _media_config


def get_admin_config() -> AdminConfig:
    """Get admin seed configuration instance"""
    global _admin_config
    if _admin_config is None:
        _admin_config = AdminConfig()
    return _admin_config


def validate_configuration():
    """Validate all configuration settings"""
    try:
        app_config = get_app_config()
        db_config = get_db_config()
        jwt_config = get_jwt_config()
        smtp_config = get_smtp_config()
        media_config = get_media_config()

        db_config.log_config()
        smtp_config.log_config()

        if app_config.is_production():
            if jwt_config.jwt_secret.startswith("change_me") or jwt_config.jwt_refresh_secret.startswith("change_me"):
                logger.warning("Production mode detected but JWT secrets are still the defaults")
            if not media_config.cloudinary_cloud_name:
                logger.warning("Production mode detected but Cloudinary is not configured")

        logger.info("Configuration validation completed")
        return True

    except Exception as e:
        logger.error(f"Configuration validation failed: {e}")
        raise
