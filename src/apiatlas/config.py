"""API Atlas configuration management.

Handles persistent settings stored in ~/.apiatlas/config.json
"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from apiatlas.client import DEFAULT_BASE_URL


# Default configuration values
DEFAULT_THEME = "textual-dark"
DEFAULT_EXPORT_FORMAT = "yaml"  # yaml, json
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FILE = "~/.apiatlas/apiatlas.log"


@dataclass
class ViewState:
    """Last drill-down path. Its organization is re-selected on the next launch."""

    last_org: Optional[str] = None
    last_project: Optional[str] = None
    last_api: Optional[str] = None
    last_version: Optional[str] = None


@dataclass
class AtlasConfig:
    """API Atlas application configuration."""

    # Catalog service
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None

    # Appearance
    theme: str = DEFAULT_THEME

    # Export preferences
    export_format: str = DEFAULT_EXPORT_FORMAT

    # Logging
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str = DEFAULT_LOG_FILE

    view_state: Optional[ViewState] = None

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the path to the config file."""
        return Path.home() / ".apiatlas" / "config.json"

    @classmethod
    def load(cls) -> "AtlasConfig":
        """Load configuration from file, or return defaults if not found."""
        config_path = cls.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                # Only use known fields to avoid issues with old config versions
                known_fields = {f.name for f in cls.__dataclass_fields__.values()}
                filtered_data = {k: v for k, v in data.items() if k in known_fields}

                if "view_state" in filtered_data and filtered_data["view_state"] is not None:
                    view_state_data = filtered_data["view_state"]
                    if isinstance(view_state_data, dict):
                        view_state_fields = {f.name for f in ViewState.__dataclass_fields__.values()}
                        filtered_data["view_state"] = ViewState(
                            **{k: v for k, v in view_state_data.items() if k in view_state_fields}
                        )
                    else:
                        filtered_data["view_state"] = None

                return cls(**filtered_data)
            except (json.JSONDecodeError, AttributeError, TypeError, ValueError):
                # Invalid config, return defaults
                pass

        return cls()

    def save(self) -> None:
        """Save configuration to file."""
        config_path = self.get_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)

    def reset(self) -> None:
        """Reset configuration to defaults."""
        self.base_url = DEFAULT_BASE_URL
        self.token = None
        self.theme = DEFAULT_THEME
        self.export_format = DEFAULT_EXPORT_FORMAT
        self.log_level = DEFAULT_LOG_LEVEL
        self.log_file = DEFAULT_LOG_FILE
        self.view_state = None

    def save_view_state(
        self,
        last_org: Optional[str] = None,
        last_project: Optional[str] = None,
        last_api: Optional[str] = None,
        last_version: Optional[str] = None,
    ) -> None:
        """Save the current drill-down path for the next launch."""
        self.view_state = ViewState(
            last_org=last_org,
            last_project=last_project,
            last_api=last_api,
            last_version=last_version,
        )
        self.save()


# Keys that `apiatlas config set` accepts
SETTABLE_KEYS = ["base_url", "token", "theme", "export_format", "log_level", "log_file"]

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
