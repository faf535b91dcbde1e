"""
Configuration management for the SiteStock application.

This module handles:
- Database path configuration
- Environment-specific configuration (development, test, production)
- Database URL override for server deployments
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
    ENV_VAR_DATABASE_URL,
    ENV_VAR_ENVIRONMENT,
)

logger = logging.getLogger(__name__)

VALID_ENVIRONMENTS = ("production", "development", "test")


class Config:
    """
    Application configuration manager.

    Handles database location and environment settings. When
    SITESTOCK_DATABASE_URL is set it wins over the file-based default,
    which lets the ledger run against a shared server database.
    """

    def __init__(self, environment: str = "production", database_url: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            environment: 'production', 'development' or 'test'
            database_url: Optional explicit SQLAlchemy URL

        Raises:
            ValueError: If environment is not recognised
        """
        if environment not in VALID_ENVIRONMENTS:
            raise ValueError(
                f"Unknown environment '{environment}'. "
                f"Expected one of: {', '.join(VALID_ENVIRONMENTS)}"
            )
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_version = DATABASE_VERSION
        self._database_url_override = database_url or os.environ.get(ENV_VAR_DATABASE_URL)

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_dir = self._base_dir
        self._database_path = self._database_dir / DATABASE_FILENAME

    def _get_project_data_dir(self) -> Path:
        """Project-local data/ directory used during development."""
        project_root = Path(__file__).parent.parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """Per-user data directory used in production."""
        return Path.home() / ".sitestock"

    def ensure_directories(self) -> None:
        """Create the database directory if a file database is used."""
        if self.uses_file_database:
            self._database_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def database_path(self) -> Path:
        """Full path to the default database file."""
        return self._database_path

    @property
    def uses_file_database(self) -> bool:
        """True unless an explicit database URL was configured."""
        return not self._database_url_override

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        The test environment defaults to an in-memory SQLite database.
        """
        if self._database_url_override:
            return self._database_url_override
        if self.environment == "test":
            return "sqlite:///:memory:"
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if the database file exists.

        Always True for URL-configured or in-memory databases.
        """
        if not self.uses_file_database or self.environment == "test":
            return True
        return self._database_path.exists()

    def __repr__(self) -> str:
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument; this prevents switching databases
    mid-session.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    SITESTOCK_ENV or defaults to production.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_VAR_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton to prevent database switching."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """Get the configured database URL."""
    return get_config().database_url
