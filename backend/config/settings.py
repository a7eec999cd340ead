"""
Configuration Management for the Docker Update Checker
Centralizes all environment-based configuration and settings
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

DEFAULT_CHECK_INTERVAL = 300  # 5 minutes


class HealthCheckFilter(logging.Filter):
    """Filter out health check and routine polling requests to reduce log noise"""
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()

        # For uvicorn access logs, the message format is:
        # 'IP:PORT - "METHOD /path HTTP/1.1" STATUS'
        if '200 OK' in message or '200' in str(getattr(record, 'args', '')):
            if '/api/health' in message:
                return False
            # The UI polls containers every CHECK_INTERVAL seconds
            if '/api/containers' in message:
                return False
        return True


def parse_check_interval(raw: Optional[str]) -> int:
    """
    Parse CHECK_INTERVAL seconds.

    0 disables UI auto-refresh. Anything that is not a non-negative
    integer falls back to the default.
    """
    if raw is None:
        return DEFAULT_CHECK_INTERVAL
    try:
        value = int(raw.strip())
    except ValueError:
        return DEFAULT_CHECK_INTERVAL
    return value if value >= 0 else DEFAULT_CHECK_INTERVAL


def setup_logging(level: Optional[str] = None):
    """Configure application logging"""
    level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()

    # Close and clear any existing handlers to ensure our configuration is used
    for handler in root_logger.handlers[:]:  # Copy list to avoid modification during iteration
        handler.close()
        root_logger.removeHandler(handler)

    root_logger.setLevel(log_level)

    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # Optional file handler with rotation
    # Max 10MB per file, keep 5 backups
    log_file = os.getenv('LOG_FILE')
    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(console_formatter)
        root_logger.addHandler(file_handler)

    # Suppress noisy Uvicorn access logs for health checks and polling
    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.addFilter(HealthCheckFilter())


def get_cors_origins() -> Optional[str]:
    """
    Get CORS origins from environment.

    Returns:
        - Comma-separated string of specific origins if CORS_ORIGINS is set
        - None to allow all origins
    """
    custom_origins = os.getenv('CORS_ORIGINS')
    if custom_origins:
        return custom_origins
    return None


class AppConfig:
    """Main application configuration"""

    # Server settings
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 3456))

    # Security settings
    CORS_ORIGINS = get_cors_origins()

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # UI refresh interval (seconds, 0 = manual refresh only)
    CHECK_INTERVAL = parse_check_interval(os.getenv('CHECK_INTERVAL'))

    # Registry lookups
    REGISTRY_TIMEOUT = float(os.getenv('REGISTRY_TIMEOUT', 5))
    MAX_CONCURRENT_CHECKS = int(os.getenv('MAX_CONCURRENT_CHECKS', 10))

    @classmethod
    def validate(cls):
        """Validate configuration"""
        if cls.PORT < 1 or cls.PORT > 65535:
            raise ValueError(f"Invalid port: {cls.PORT}")

        if cls.REGISTRY_TIMEOUT <= 0:
            raise ValueError(f"Registry timeout must be positive: {cls.REGISTRY_TIMEOUT}")

        if cls.MAX_CONCURRENT_CHECKS < 1:
            raise ValueError(f"Max concurrent checks must be at least 1: {cls.MAX_CONCURRENT_CHECKS}")

        return True
