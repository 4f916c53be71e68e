"""
Configuration Management

Unified configuration for the reports service. Settings are grouped into
dataclass sections, loaded from an optional .config.json file and overridden
by AGRISHIELD_* environment variables.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

import os
import json
import logging
import logging.handlers
import secrets
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


class Environment(Enum):
    """Supported environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Supported log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class DatabaseConfig:
    """SQLite store settings"""
    path: Path = field(default_factory=lambda: Path("data/database/agrishield.db"))
    connection_timeout: int = 30
    max_connections: int = 10


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file_rotation_size: int = 10 * 1024 * 1024  # 10MB
    file_retention_count: int = 5
    enable_console: bool = True
    enable_file: bool = False
    logs_dir: Path = field(default_factory=lambda: Path("data/logs"))


@dataclass
class WebConfig:
    """Web interface configuration"""
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "info"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class SecurityConfig:
    """Bearer token verification settings"""
    # Random per process unless configured
    jwt_secret: str = field(default_factory=lambda: secrets.token_hex(32))
    jwt_algorithm: str = "HS256"


@dataclass
class ReportConfig:
    """Limits and windows used by the report builders"""
    recent_activity_limit: int = 10
    top_officers_limit: int = 5
    top_districts_limit: int = 5
    company_breakdown_limit: int = 10
    fir_location_limit: int = 10
    default_stats_period_days: int = 30
    trend_window_days: int = 7


class UnifiedConfig:
    """
    Central configuration management system
    Implements singleton pattern and environment-aware configuration
    Loads from .config.json file with environment variable overrides
    """

    _instance: Optional['UnifiedConfig'] = None
    _initialized: bool = False
    _config_file = Path(".config.json")
    _json_config: Optional[Dict[str, Any]] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._load_json_config()

        env_mode = os.getenv('AGRISHIELD_ENVIRONMENT') or self._get_config_value(
            'environment', 'mode', default='development'
        )
        try:
            self.environment = Environment(str(env_mode).lower())
        except ValueError:
            logging.getLogger(__name__).warning(
                f"Unknown environment '{env_mode}', falling back to development"
            )
            self.environment = Environment.DEVELOPMENT

        self.database = self._load_database_config()
        self.logging = self._load_logging_config()
        self.web = self._load_web_config()
        self.security = self._load_security_config()
        self.reports = self._load_report_config()

        self._initialized = True

    @classmethod
    def reset(cls):
        """Drop the singleton so the next instantiation reloads everything"""
        cls._instance = None
        cls._initialized = False

    def _load_json_config(self):
        """Load configuration from .config.json file"""
        config_file = Path(os.getenv('AGRISHIELD_CONFIG_FILE', str(self._config_file)))
        if config_file.exists():
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    self._json_config = json.load(f)
                logging.getLogger(__name__).info(f"Loaded configuration from {config_file}")
            except (json.JSONDecodeError, IOError) as e:
                logging.getLogger(__name__).warning(f"Error loading {config_file}: {e}. Using defaults.")
                self._json_config = None
        else:
            self._json_config = None

    def _get_config_value(self, *keys, default=None):
        """
        Get a value from JSON config using nested keys
        Example: _get_config_value('database', 'path', default='data/database/agrishield.db')
        """
        if not self._json_config:
            return default

        value = self._json_config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        # Skip documentation keys (keys starting with _)
        if isinstance(value, dict):
            return {k: v for k, v in value.items() if not k.startswith('_')} if value else default

        return value if value is not None else default

    def _load_database_config(self) -> DatabaseConfig:
        """Load database configuration from JSON and environment overrides"""
        db_config = self._get_config_value('database', default={})
        config = DatabaseConfig()

        config.path = Path(os.getenv('AGRISHIELD_DATABASE_PATH', db_config.get('path', str(config.path))))
        config.connection_timeout = int(os.getenv(
            'AGRISHIELD_DATABASE_TIMEOUT', str(db_config.get('connection_timeout', 30))
        ))
        config.max_connections = int(os.getenv(
            'AGRISHIELD_DATABASE_MAX_CONNECTIONS', str(db_config.get('max_connections', 10))
        ))
        return config

    def _load_logging_config(self) -> LoggingConfig:
        """Load logging configuration from JSON and environment overrides"""
        log_config = self._get_config_value('logging', default={})
        config = LoggingConfig()

        log_level = os.getenv('AGRISHIELD_LOG_LEVEL', log_config.get('level', 'INFO'))
        try:
            config.level = LogLevel(log_level.upper())
        except ValueError:
            config.level = LogLevel.INFO

        config.format = os.getenv('AGRISHIELD_LOG_FORMAT', log_config.get('format', config.format))
        config.date_format = log_config.get('date_format', config.date_format)
        rotation_mb = log_config.get('file_rotation_size_mb', 10)
        config.file_rotation_size = rotation_mb * 1024 * 1024
        config.file_retention_count = log_config.get('file_retention_count', 5)
        config.enable_console = log_config.get('enable_console', True)
        config.enable_file = log_config.get('enable_file', False)
        config.logs_dir = Path(os.getenv('AGRISHIELD_LOGS_DIR', log_config.get('logs_dir', 'data/logs')))

        # Adjust for environment
        if self.environment == Environment.DEVELOPMENT and 'AGRISHIELD_LOG_LEVEL' not in os.environ:
            config.level = LogLevel.DEBUG
        elif self.environment == Environment.PRODUCTION:
            config.enable_console = False

        return config

    def _load_web_config(self) -> WebConfig:
        """Load web configuration from JSON and environment overrides"""
        web_config = self._get_config_value('web', default={})
        config = WebConfig()

        config.host = os.getenv('AGRISHIELD_WEB_HOST', web_config.get('host', '0.0.0.0'))
        config.port = int(os.getenv('AGRISHIELD_WEB_PORT', str(web_config.get('port', 8000))))
        config.reload = web_config.get('reload', False)
        config.log_level = os.getenv('AGRISHIELD_WEB_LOG_LEVEL', web_config.get('log_level', 'info'))
        config.cors_origins = web_config.get('cors_origins', ['*'])

        if self.environment == Environment.DEVELOPMENT:
            config.reload = True
            config.log_level = "debug"

        return config

    def _load_security_config(self) -> SecurityConfig:
        """
        Load token verification settings.

        The secret comes from AGRISHIELD_JWT_SECRET, JWT_SECRET or the
        security section of .config.json. Outside production an unset secret
        falls back to a random per-process value; production refuses to start.
        """
        security_config = self._get_config_value('security', default={})
        config = SecurityConfig()

        configured_secret = (
            os.getenv('AGRISHIELD_JWT_SECRET')
            or os.getenv('JWT_SECRET')
            or security_config.get('jwt_secret')
        )
        if configured_secret:
            config.jwt_secret = configured_secret
        elif self.environment == Environment.PRODUCTION:
            raise ValueError("No JWT secret configured for production - set AGRISHIELD_JWT_SECRET")
        else:
            logging.getLogger(__name__).warning(
                "No JWT secret configured, using a random per-process secret"
            )
        config.jwt_algorithm = security_config.get('jwt_algorithm', config.jwt_algorithm)

        return config

    def _load_report_config(self) -> ReportConfig:
        """Load report limits from JSON"""
        report_config = self._get_config_value('reports', default={})
        config = ReportConfig()

        for name in ReportConfig.__dataclass_fields__:
            if name in report_config:
                setattr(config, name, int(report_config[name]))

        return config

    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for diagnostics (no secrets)"""
        return {
            'environment': self.environment.value,
            'database': {
                'path': str(self.database.path),
                'connection_timeout': self.database.connection_timeout,
                'max_connections': self.database.max_connections
            },
            'web': {
                'host': self.web.host,
                'port': self.web.port,
                'reload': self.web.reload
            },
            'reports': dict(self.reports.__dict__)
        }


# Global configuration instance (singleton)
config = UnifiedConfig()


def get_config() -> UnifiedConfig:
    """Get the global configuration instance"""
    return config


def setup_logging():
    """Setup logging configuration based on current config"""
    from datetime import datetime

    log_config = config.logging
    root_logger = logging.getLogger()

    logging.basicConfig(
        level=getattr(logging, log_config.level.value),
        format=log_config.format,
        datefmt=log_config.date_format,
        force=True
    )

    if log_config.enable_file:
        log_config.logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_config.logs_dir / f"agrishield_{datetime.now().strftime('%Y%m%d')}.log"

        existing_file_handler = None
        for handler in root_logger.handlers:
            if isinstance(handler, logging.handlers.RotatingFileHandler):
                if handler.baseFilename == str(log_file.absolute()):
                    existing_file_handler = handler
                    break

        if existing_file_handler is None:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=log_config.file_rotation_size,
                backupCount=log_config.file_retention_count
            )
            file_handler.setFormatter(logging.Formatter(log_config.format, log_config.date_format))
            root_logger.addHandler(file_handler)

    # Disable console logging in production if configured
    if not log_config.enable_console and config.is_production():
        root_logger.handlers = [h for h in root_logger.handlers
                                if isinstance(h, logging.FileHandler)
                                or not isinstance(h, logging.StreamHandler)]


# Auto-setup logging when module is imported
setup_logging()
