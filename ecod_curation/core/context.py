"""
context.py -- Provide application context for the curation toolkit
"""
import logging
from typing import Any, Optional

from ecod_curation.config import ConfigManager
from ecod_curation.db.manager import DBManager


class ApplicationContext:
    """Application context holding configuration and the database manager

    Built once at startup from an explicit configuration and handed to
    repositories and services.
    """

    def __init__(self, config_path: Optional[str] = None,
                 config_manager: Optional[ConfigManager] = None,
                 db_manager: Optional[DBManager] = None):
        """Initialize application context

        Args:
            config_path: Path to configuration file
            config_manager: Pre-built configuration (takes precedence over config_path)
            db_manager: Pre-built database manager (mainly for tests)
        """
        self.logger = logging.getLogger("ecod_curation.context")

        self.config_manager = config_manager or ConfigManager(config_path)
        self.logger.debug("Configuration initialized")

        self._db_manager = db_manager

    @property
    def config(self) -> ConfigManager:
        return self.config_manager

    @property
    def db(self) -> DBManager:
        """Get database manager, connecting lazily on first use

        Returns:
            Database manager
        """
        if self._db_manager is None:
            self._db_manager = DBManager(self.config_manager.get_db_config())
            self.logger.debug("Database manager initialized")
        return self._db_manager

    def update_config(self, section: str, key: str, value: Any) -> None:
        """Update configuration value

        Args:
            section: Configuration section
            key: Configuration key
            value: New value
        """
        self.config_manager.config.setdefault(section, {})[key] = value
        self.logger.debug(f"Updated config {section}.{key} = {value}")
