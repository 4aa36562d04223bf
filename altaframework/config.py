"""Configuration management for altaframework.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a Config object. Property getters provide safe access with
sensible defaults for the client, command prefix, owner IDs and
logging.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import List, Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("altaframework.client")


class Config:
    """Central configuration manager for altaframework.

    Loads settings.yaml and .env from the config directory. The
    embedding application may also skip this class entirely and pass
    token, prefix and owner IDs straight to ExtendedClient.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = config_dir

        env_file = config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    @property
    def token(self) -> str:
        """Bot token. Env var DISCORD_TOKEN takes precedence."""
        return os.environ.get("DISCORD_TOKEN") or self.settings.get("token", "")

    @property
    def prefix(self) -> str:
        """Command prefix. Env var ALTA_PREFIX takes precedence."""
        return os.environ.get("ALTA_PREFIX") or self.settings.get("prefix", "")

    @property
    def owner_ids(self) -> List[str]:
        """Owner user IDs as strings (Discord snowflakes may be ints in YAML)."""
        ids = self.settings.get("owner_ids", [])
        if ids is None:
            return []
        if not isinstance(ids, list):
            logger.error("owner_ids_invalid_type", type=type(ids).__name__)
            return []
        return [str(i) for i in ids]

    @property
    def intents_message_content(self) -> bool:
        """Whether to request the privileged message content intent (default True)."""
        return self.settings.get("intents", {}).get("message_content", True)

    @property
    def builtin_commands(self) -> bool:
        """Install the built-in help/ping commands (default True)."""
        return self.settings.get("builtin_commands", True)

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"commands": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)

    def validate(self):
        """Validate critical settings at startup.

        A missing token or prefix is fatal and raises
        ConfigurationError. Malformed owner IDs are only logged,
        since they can never match an author and so fail closed.
        """
        if not self.token:
            raise ConfigurationError(
                "No token was provided", setting_name="token"
            )
        if not self.prefix:
            raise ConfigurationError(
                "No prefix was provided", setting_name="prefix"
            )

        owners = self.owner_ids
        if not owners:
            logger.warning(
                "no_owner_ids", msg="Owner-only commands will never run"
            )
        for owner in owners:
            if not owner.isdigit():
                logger.error("invalid_owner_id_format", owner_id=owner)


_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
