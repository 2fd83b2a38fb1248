"""
Configuration management for mediasort.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import yaml

from .constants import DEFAULT_MAX_LOG_ENTRIES, PROGRAM


class Config:
    """Manages configuration file for storing user preferences."""

    def __init__(self, config_path: Optional[Path] = None):
        # Default config location: ~/.<PROGRAM>/config.yml
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / f".{PROGRAM}" / "config.yml"
        self.program_root = self.config_path.parent
        self.data = self._load_config()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logging.getLogger(PROGRAM).warning(f"Could not load config: {e}")
            return {}

        if not isinstance(data, dict):
            logging.getLogger(PROGRAM).warning(f"Ignoring malformed config: {self.config_path}")
            return {}
        return data

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            self.program_root.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self.data, f, default_flow_style=False)
        except OSError as e:
            logging.getLogger(PROGRAM).error(f"Could not save config: {e}")

    def get_last_source(self) -> Optional[str]:
        """Get the last used source directory."""
        return self.data.get('last_source')

    def get_last_dest(self) -> Optional[str]:
        """Get the last used destination directory."""
        return self.data.get('last_dest')

    def get_timezone(self) -> Optional[str]:
        """Get the timezone used to normalise offset-bearing dates."""
        return self.data.get('timezone')

    def get_max_log_entries(self) -> int:
        """Get the log ring capacity (default: 5000)."""
        value = self.data.get('max_log_entries', DEFAULT_MAX_LOG_ENTRIES)
        try:
            value = int(value)
        except (TypeError, ValueError):
            return DEFAULT_MAX_LOG_ENTRIES
        return value if value > 0 else DEFAULT_MAX_LOG_ENTRIES

    def get_shell_metadata(self) -> bool:
        """Get whether the platform shell metadata provider is used (default: True)."""
        return bool(self.data.get('shell_metadata', True))

    def update_paths(self, source: str, dest: str) -> None:
        """Update and save the last used paths."""
        self.data['last_source'] = source
        self.data['last_dest'] = dest
        self.save_config()

    def update_timezone(self, timezone: str) -> None:
        """Update and save the timezone setting."""
        self.data['timezone'] = timezone
        self.save_config()

    def update_max_log_entries(self, count: int) -> None:
        """Update and save the log ring capacity."""
        self.data['max_log_entries'] = count
        self.save_config()

    def update_shell_metadata(self, enabled: bool) -> None:
        """Update and save the shell metadata setting."""
        self.data['shell_metadata'] = enabled
        self.save_config()
