# Project tracker configuration
# Override via config.yaml, the TRACKER_DB environment variable, or CLI args.

import os
import yaml
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "project-tracker" / "config.yaml"


class ConfigError(Exception):
    """Raised when an explicitly requested config file is missing or invalid."""
    pass


@dataclass
class Config:
    """Runtime configuration for the tracker."""

    # Storage
    db_path: str = "~/.local/share/project-tracker/tracker.db"

    # Behavior
    log_level: str = "WARNING"
    date_format: str = "%Y-%m-%d"  # due dates in `show` output

    def resolve_paths(self):
        """Apply the TRACKER_DB override and expand ~."""
        env = os.environ.get("TRACKER_DB")
        if env:
            self.db_path = env
        self.db_path = str(Path(self.db_path).expanduser())

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults.

        The default location may be absent or broken (defaults are used); a
        path given explicitly must exist and hold a mapping.
        """
        cfg_path = Path(path).expanduser() if path else CONFIG_PATH
        if not cfg_path.exists():
            if path:
                raise ConfigError(f"Config file not found: {cfg_path}")
            cfg = cls()
        else:
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                if not isinstance(data, dict):
                    raise ConfigError(f"Config file {cfg_path} must contain a mapping")
                cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k)})
            except (yaml.YAMLError, ConfigError, TypeError) as e:
                if path:
                    raise ConfigError(str(e)) from e
                logger.warning(f"Ignoring invalid config {cfg_path}: {e}")
                cfg = cls()
        cfg.resolve_paths()
        return cfg
