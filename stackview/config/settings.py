"""
Settings management for stackview
"""

import copy
import json
import os
from pathlib import Path
from typing import Any

from stackview.constants import (
    DEFAULT_COMMIT_LIMIT,
    DEFAULT_JJ_BINARY,
    DEFAULT_STATS_WORKERS,
    DEFAULT_WATCH_DEBOUNCE_MS,
    SETTINGS_DIR_NAME,
)


class Settings:
    """Manages application settings"""

    DEFAULT_SETTINGS: dict[str, Any] = {
        "repo": {
            "commit_limit": DEFAULT_COMMIT_LIMIT,  # Commits loaded per refresh
        },
        "jj": {
            "binary": DEFAULT_JJ_BINARY,
        },
        "stats": {
            "max_workers": DEFAULT_STATS_WORKERS,  # Concurrent stat queries
        },
        "watch": {
            "enabled": True,  # Refresh when the repository changes on disk
            "debounce_ms": DEFAULT_WATCH_DEBOUNCE_MS,
        },
        "ui": {
            "zoom": 1.0,
        },
    }

    def __init__(self, config_path: Path | None = None) -> None:
        if config_path is None:
            config_path = Path.home() / ".config" / SETTINGS_DIR_NAME / "settings.json"

        self.config_path = config_path
        self.settings: dict[str, Any] = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.load()

    def load(self) -> None:
        """Load settings from file, keeping defaults if it is unreadable"""
        if not self.config_path.exists():
            return
        try:
            with open(self.config_path) as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"⚠️  Ignoring settings file {self.config_path}: {e}")
            return
        if not isinstance(loaded, dict):
            print(f"⚠️  Ignoring settings file {self.config_path}: not a JSON object")
            return
        # Merge with defaults to handle new settings
        self._merge_settings(self.settings, loaded)

    def save(self) -> None:
        """Save settings to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(self.settings, f, indent=2)

    def _merge_settings(self, base: dict[str, Any], updates: dict[str, Any]) -> None:
        """Recursively merge settings dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_settings(base[key], value)
            else:
                base[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get a setting by dot-separated path (e.g., 'jj.binary')"""
        value: Any = self.settings
        for part in path.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def set(self, path: str, value: Any) -> None:
        """Set a setting by dot-separated path"""
        parts = path.split(".")
        target: Any = self.settings

        for part in parts[:-1]:
            if part not in target or not isinstance(target[part], dict):
                target[part] = {}
            target = target[part]

        target[parts[-1]] = value

    def get_jj_binary(self) -> str:
        """jj executable: STACKVIEW_JJ environment variable, then settings"""
        env_binary = os.environ.get("STACKVIEW_JJ", "")
        if env_binary:
            return env_binary
        return str(self.get("jj.binary", DEFAULT_JJ_BINARY)) or DEFAULT_JJ_BINARY

    def get_commit_limit(self) -> int:
        """Maximum number of commits walked per refresh"""
        limit = int(self.get("repo.commit_limit", DEFAULT_COMMIT_LIMIT))
        return max(1, limit)

    def get_stats_workers(self) -> int:
        """Number of concurrent stat queries.

        Each query computes a full diff against the first parent, so very
        high values mostly contend on disk.
        """
        workers = int(self.get("stats.max_workers", DEFAULT_STATS_WORKERS))
        return max(1, workers)  # At least 1

    def get_watch_enabled(self) -> bool:
        return bool(self.get("watch.enabled", True))

    def get_watch_debounce_ms(self) -> int:
        """Quiet period before a change on disk triggers a refresh"""
        return max(0, int(self.get("watch.debounce_ms", DEFAULT_WATCH_DEBOUNCE_MS)))

    def get_zoom(self) -> float:
        return float(self.get("ui.zoom", 1.0))
