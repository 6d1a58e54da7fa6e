"""Config file discovery and lazily validated sections."""

import os
from functools import cached_property
from pathlib import Path
from typing import Optional

from sitesmith.models.config import Config, EditorConfig, LLMConfig, StorageConfig
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "sitesmith" / "config.yaml"


def default_config_path() -> Path:
    """$SITESMITH_CONFIG if set, else ~/.config/sitesmith/config.yaml."""
    override = os.environ.get("SITESMITH_CONFIG")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


class ConfigManager:
    """
    Access to the config sections the running command needs.

    Editing works without any config file. Only `generate` needs the `llm`
    section, so its absence is reported when that section is first read.

    Example:
        >>> manager = ConfigManager.load_default()
        >>> manager.editor.status_reset_delay
        3.0
        >>> manager.llm  # ValueError if no llm section is configured
    """

    def __init__(self, config: Config, path: Optional[Path] = None):
        self._config = config
        self.path = path

    @classmethod
    def load_default(cls) -> "ConfigManager":
        """Load the default config file, or built-in defaults when there is none."""
        path = default_config_path()
        if not path.exists():
            logger.info("config_defaults_used", path=str(path))
            return cls(Config())
        return cls.load_from_path(path)

    @classmethod
    def load_from_path(cls, path: Path) -> "ConfigManager":
        """
        Load and validate a config file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            PermissionError: If a file holding an API key is readable by others
            ValueError: If the YAML or its values are invalid
        """
        try:
            config = Config.load(path)
        except OSError as e:
            logger.error("config_unreadable", path=str(path), error=str(e))
            raise
        except Exception as e:
            logger.error("config_validation_error", path=str(path), error=str(e))
            raise ValueError(f"Configuration validation failed: {e}") from e

        logger.info("config_loaded", path=str(path), has_llm=config.llm is not None)
        return cls(config, path)

    @cached_property
    def llm(self) -> LLMConfig:
        """
        The LLM section.

        Raises:
            ValueError: If no llm section is configured
        """
        if self._config.llm is None:
            raise ValueError(
                "LLM configuration missing: add an 'llm' section "
                "(endpoint, api_key, model) to the config file"
            )
        return self._config.llm

    @property
    def editor(self) -> EditorConfig:
        return self._config.editor

    @property
    def storage(self) -> StorageConfig:
        return self._config.storage
