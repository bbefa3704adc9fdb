"""Configuration of the print2pdf HTTP service."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from print2pdf.printing.config import BrowserSettings, read_settings_file


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class ServiceSettings:
    """Settings for the HTTP service around the printing core."""

    # S3 bucket for /v1/print uploads; that endpoint fails without it
    bucket: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_endpoint_url: Optional[str] = None

    port: int = 3000

    # Host patterns with "*" wildcards; empty means any host
    cors_allowed_hosts: List[str] = field(default_factory=list)
    print_allowed_hosts: List[str] = field(default_factory=list)

    # Names of request cookies forwarded to the printed page
    forward_cookies: List[str] = field(default_factory=list)

    print_timeout_seconds: Optional[float] = None

    browser: BrowserSettings = field(default_factory=BrowserSettings)

    @classmethod
    def from_environment(cls) -> "ServiceSettings":
        """Create settings from environment variables."""
        settings = cls()
        settings.bucket = os.getenv("BUCKET") or None
        settings.aws_region = os.getenv("AWS_REGION", "us-east-1")
        settings.s3_endpoint_url = os.getenv("S3_ENDPOINT_URL") or None
        settings.port = int(os.getenv("PORT") or "3000")
        settings.cors_allowed_hosts = _split_list(os.getenv("CORS_ALLOWED_HOSTS"))
        settings.print_allowed_hosts = _split_list(os.getenv("PRINT_ALLOWED_HOSTS"))
        settings.forward_cookies = _split_list(os.getenv("FORWARD_COOKIES"))

        timeout = os.getenv("PRINT_TIMEOUT")
        settings.print_timeout_seconds = float(timeout) if timeout else None

        settings.browser = BrowserSettings.from_environment()
        settings.validate()
        return settings

    def update(self, values: Dict[str, Any]) -> None:
        """Overlay values from the service section of a settings file."""
        for key, value in values.items():
            if key == "browser" or not hasattr(self, key):
                raise ValueError(f"Unknown service setting: {key}")
            if key in ("cors_allowed_hosts", "print_allowed_hosts", "forward_cookies") and isinstance(value, str):
                value = _split_list(value)
            setattr(self, key, value)
        self.validate()

    def validate(self) -> None:
        """Validate setting values."""
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}")
        if self.print_timeout_seconds is not None and self.print_timeout_seconds <= 0:
            raise ValueError("Print timeout must be positive")
        self.browser.validate()


def load_settings(path: Optional[Union[str, Path]] = None) -> ServiceSettings:
    """Load service settings from the environment and an optional YAML file.

    The file may contain ``service`` and ``browser`` sections.
    """
    settings = ServiceSettings.from_environment()
    if path is not None:
        data = read_settings_file(path)
        settings.update(data.get("service") or {})
        settings.browser.update(data.get("browser") or {})
    return settings
