"""
Utility functions for the Site Conformance Checker.
"""
import posixpath
import re
from typing import Optional

from sitecheck.models import ImageKind

PARENT_PREFIX = re.compile(r"^(?:\.\./|\./)+")
DIMENSION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:px)?\s*$")
HERO_NAME = re.compile(r"hero")
VECTOR_SUFFIX = re.compile(r"svg$", re.IGNORECASE)


def strip_parent_prefix(path: str) -> str:
    """Remove leading '../' and './' segments."""
    return PARENT_PREFIX.sub("", path)


def resolve_site_path(base_dir: str, src: str, strip_parent: bool = True) -> str:
    """
    Resolve an image or link source written in a page under base_dir to a
    site-relative posix path. Anything escaping the site root loses its
    parent-directory prefix unless strip_parent is False.
    """
    src = src.strip()
    if not src or "://" in src or src.startswith("//") or src.startswith("data:"):
        return src
    if src.startswith("/"):
        return src.lstrip("/")
    joined = posixpath.normpath(posixpath.join(base_dir, src)) if base_dir else posixpath.normpath(src)
    return strip_parent_prefix(joined) if strip_parent else joined


def page_href(base_dir: str, target: str) -> str:
    """The href a page under base_dir uses for a site-relative target."""
    return posixpath.relpath(target, base_dir or ".")


def parse_dimension(value: Optional[str]) -> Optional[int]:
    """Parse a width/height attribute like '120' or '120px'. None if absent or not numeric."""
    if value is None:
        return None
    match = DIMENSION.match(str(value))
    if not match:
        return None
    return int(float(match.group(1)))


def classify_image(path: str) -> ImageKind:
    """Vector files and hero-named images are exempt from exact dimension checks."""
    if VECTOR_SUFFIX.search(path):
        return ImageKind.VECTOR
    if HERO_NAME.search(path):
        return ImageKind.LARGE_HERO
    return ImageKind.RASTER


def describe_count(count: int, noun: str) -> str:
    """'1 match', '3 matches' style phrasing for diagnostics."""
    if count == 1:
        return f"1 {noun}"
    plural = noun + ("es" if noun.endswith(("s", "x", "ch", "sh")) else "s")
    return f"{count} {plural}"
