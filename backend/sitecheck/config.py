"""
Configuration for a validation run.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from sitecheck.errors import ConfigurationError

# Document identities and their markup paths, in report order
DEFAULT_PAGES = {
    "home": "index.html",
    "about": "about/index.html",
    "contact": "contact/index.html",
}

DEFAULT_STYLESHEET = "styles/main.css"
DEFAULT_ASSETS_PREFIX = "images/"
DEFAULT_MAX_IMAGE_WIDTH = 1920


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class SiteConfig:
    """Where the site lives and the limits it is checked against."""
    site_root: Path
    pages: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PAGES))
    stylesheet: str = DEFAULT_STYLESHEET
    assets_prefix: str = DEFAULT_ASSETS_PREFIX
    max_image_width: int = DEFAULT_MAX_IMAGE_WIDTH

    @property
    def document_names(self):
        return list(self.pages)

    @classmethod
    def from_env(
        cls,
        site_root: Path,
        stylesheet: Optional[str] = None,
        assets_prefix: Optional[str] = None,
        max_image_width: Optional[int] = None,
    ) -> "SiteConfig":
        """
        Build a config, falling back to SITECHECK_* environment variables and
        then to the defaults for any value not given explicitly.
        """
        prefix = assets_prefix or os.getenv("SITECHECK_ASSETS_PREFIX", DEFAULT_ASSETS_PREFIX)
        if not prefix.endswith("/"):
            prefix += "/"
        return cls(
            site_root=Path(site_root),
            stylesheet=stylesheet or os.getenv("SITECHECK_STYLESHEET", DEFAULT_STYLESHEET),
            assets_prefix=prefix,
            max_image_width=max_image_width or _env_int("SITECHECK_MAX_IMAGE_WIDTH", DEFAULT_MAX_IMAGE_WIDTH),
        )
