"""Browser configuration for the printing core.

Settings come from environment variables, optionally overlaid by the
``browser`` section of a YAML settings file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BrowserSettings:
    """Launch settings for the shared Chromium process."""

    executable_path: Optional[str] = None
    headless: bool = True
    launch_args: List[str] = field(default_factory=lambda: list(DEFAULT_LAUNCH_ARGS))
    startup_timeout_ms: int = 30000

    @classmethod
    def from_environment(cls) -> "BrowserSettings":
        """Create settings from environment variables."""
        settings = cls()
        settings.executable_path = os.getenv("CHROMIUM_PATH") or None
        settings.headless = _env_bool("PRINT2PDF_HEADLESS", True)
        settings.startup_timeout_ms = int(os.getenv("PRINT2PDF_STARTUP_TIMEOUT_MS", "30000"))
        return settings

    def update(self, values: Dict[str, Any]) -> None:
        """Overlay values from a settings file section."""
        for key, value in values.items():
            if not hasattr(self, key):
                raise ValueError(f"Unknown browser setting: {key}")
            setattr(self, key, value)
        self.validate()

    def validate(self) -> None:
        """Validate setting values."""
        if self.startup_timeout_ms <= 0:
            raise ValueError("Browser startup timeout must be positive")
        if not isinstance(self.launch_args, list):
            raise ValueError("launch_args must be a list of strings")

    def to_launch_options(self) -> Dict[str, Any]:
        """Convert to Playwright chromium.launch() options."""
        options: Dict[str, Any] = {
            "headless": self.headless,
            "args": list(self.launch_args),
            "timeout": self.startup_timeout_ms,
        }
        if self.executable_path:
            options["executable_path"] = self.executable_path
        return options


def read_settings_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML settings file into a mapping.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the YAML is invalid or not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return data


def load_browser_settings(path: Optional[Union[str, Path]] = None) -> BrowserSettings:
    """Load browser settings from the environment and an optional YAML file."""
    settings = BrowserSettings.from_environment()
    if path is not None:
        settings.update(read_settings_file(path).get("browser") or {})
    return settings
