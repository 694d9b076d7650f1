"""Small persistent key-value store for user settings (API key, grading prompt)."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from keygrade.libs.config_loader import ConfigType, get_config

LOG = logging.getLogger(__name__)

API_KEY_SETTING = "openai_api_key"
GRADING_PROMPT_SETTING = "grading_prompt"

DEFAULT_SETTINGS_PATH = Path("~/.keygrade/settings.yaml")


class SettingsStore:
    """Key-value settings backed by a YAML file.

    The file is read once when the store is created and rewritten on every
    change.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or DEFAULT_SETTINGS_PATH).expanduser()
        self._values: Dict[str, Any] = self._load()

    @classmethod
    def from_configs(cls, configs: ConfigType) -> "SettingsStore":
        """Open the store at storage.settings_path (default ~/.keygrade/settings.yaml)."""
        path = get_config("storage.settings_path", configs, default=None)
        return cls(Path(path) if path else None)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            LOG.debug("No settings file at %s", self.path)
            return {}

        with open(self.path, 'r') as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise TypeError(f"Settings file {self.path} must contain a mapping")
        return data

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            yaml.safe_dump(self._values, f, default_flow_style=False, sort_keys=True)
        LOG.debug("Saved settings to %s", self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if self._values.get(key) == value and key in self._values:
            return
        self._values[key] = value
        self._save()

    def delete(self, key: str) -> None:
        if key in self._values:
            del self._values[key]
            self._save()

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def save_api_key(self, api_key: str) -> bool:
        """Store the API key if it is non-empty after trimming."""
        api_key = (api_key or "").strip()
        if not api_key:
            return False
        self.set(API_KEY_SETTING, api_key)
        return True
