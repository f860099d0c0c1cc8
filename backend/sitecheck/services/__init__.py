"""
Services package initialization.
"""
from sitecheck.services.catalogue import CATALOGUE, load_catalogue
from sitecheck.services.loader import decode_image_size, load_site
from sitecheck.services.validators import check_site, validate_site

__all__ = [
    "CATALOGUE",
    "load_catalogue",
    "decode_image_size",
    "load_site",
    "check_site",
    "validate_site",
]
