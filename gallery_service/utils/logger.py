"""
Logging utilities for the gallery service

Provides centralized logging configuration plus request and audit loggers.
"""

import os
import copy
import logging
import logging.config
from typing import Optional, Dict, Any
import yaml

# Default logging configuration
DEFAULT_LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
        'detailed': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s - %(lineno)d - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
        'json': {
            'format': '{"timestamp": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "module": "%(module)s", "function": "%(funcName)s", "line": %(lineno)d, "message": "%(message)s"}',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'default',
            'stream': 'ext://sys.stdout'
        }
    },
    'loggers': {
        '': {
            'level': 'INFO',
            'handlers': ['console'],
        },
        'gallery_service': {
            'level': 'INFO',
            'handlers': ['console'],
            'propagate': False
        }
    }
}


def load_logging_config(config_path: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Load a dictConfig mapping from a YAML file

    Args:
        config_path: Path to logging configuration file

    Returns:
        Parsed configuration, or None if the file is missing or unreadable
    """
    if not config_path or not os.path.exists(config_path):
        return None

    try:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logging.getLogger(__name__).warning(f"Failed to load logging config from {config_path}: {e}")
        return None


def setup_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    environment: Optional[str] = None
) -> Dict[str, Any]:
    """
    Setup logging configuration

    Args:
        config_path: Path to a YAML logging configuration file
        log_level: Override log level
        log_format: Override log format ('default', 'detailed', 'json')
        environment: Section of the config with environment-specific overrides

    Returns:
        The configuration that was applied
    """
    config = load_logging_config(config_path) or copy.deepcopy(DEFAULT_LOGGING_CONFIG)

    # Apply environment-specific overrides
    environment = environment or os.getenv('ENVIRONMENT', 'development')
    env_config = config.pop(environment, None) if isinstance(config.get(environment), dict) else None
    if env_config:
        if 'handlers' in env_config:
            config.setdefault('handlers', {}).update(env_config['handlers'])
        if 'loggers' in env_config:
            config.setdefault('loggers', {}).update(env_config['loggers'])

    # Override log level if specified
    if log_level:
        log_level = log_level.upper()
        for logger_config in config.get('loggers', {}).values():
            logger_config['level'] = log_level
        for handler_config in config.get('handlers', {}).values():
            handler_config['level'] = log_level

    # Override log format if specified
    if log_format and log_format in config.get('formatters', {}):
        for handler_config in config.get('handlers', {}).values():
            handler_config['formatter'] = log_format

    logging.config.dictConfig(config)
    logging.getLogger(__name__).info(f"Logging configured for environment: {environment}")
    return config


class RequestLogger:
    """Logger for HTTP requests"""

    def __init__(self, name: str = "gallery_service.requests"):
        self.logger = logging.getLogger(name)

    def log_request(
        self,
        method: str,
        url: str,
        status_code: int,
        response_time: float,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ):
        """Log HTTP request"""
        self.logger.info(
            f"{method} {url} {status_code} {response_time:.3f}s",
            extra={
                'request_method': method,
                'request_url': url,
                'response_status': status_code,
                'response_time': response_time,
                'user_id': user_id,
                'ip_address': ip_address,
                'user_agent': user_agent,
                'event_type': 'http_request'
            }
        )


class AuditLogger:
    """Logger for security-relevant account events"""

    def __init__(self, name: str = "gallery_service.audit"):
        self.logger = logging.getLogger(name)

    def log_user_action(
        self,
        user_id: str,
        action: str,
        resource: str,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """Log user action for audit trail"""
        self.logger.info(
            f"User {user_id} performed {action} on {resource}",
            extra={
                'user_id': user_id,
                'action': action,
                'resource': resource,
                'resource_id': resource_id,
                'details': details or {},
                'event_type': 'user_action'
            }
        )


def get_request_logger() -> RequestLogger:
    """Get request logger instance"""
    return RequestLogger()


def get_audit_logger() -> AuditLogger:
    """Get audit logger instance"""
    return AuditLogger()
