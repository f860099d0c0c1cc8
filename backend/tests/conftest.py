"""
Pytest configuration and fixtures for backend tests
"""
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from sitecheck.config import SiteConfig
from sitecheck.errors import ArtifactLoadError
from sitecheck.main import app
from sitecheck.models import RunContext, Stylesheet
from sitecheck.services.loader import parse_document
from sample_site import MAIN_CSS, SITE_FILES, SITE_IMAGES


@pytest.fixture
def client():
    """Create a test client for the FastAPI application"""
    return TestClient(app)


@pytest.fixture
def site_files():
    """Text files of a fully conforming sample site (a fresh copy per test)"""
    return dict(SITE_FILES)


@pytest.fixture
def site_images():
    """Raster images of the sample site as path -> (width, height)"""
    return dict(SITE_IMAGES)


@pytest.fixture
def build_site(tmp_path):
    """Write a site to disk; raster images are generated with Pillow"""
    def _build(files, images) -> Path:
        root = tmp_path / "site"
        for relative, text in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        for relative, size in images.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            Image.new("RGB", size, color="red").save(path)
        return root
    return _build


@pytest.fixture
def sample_site(build_site, site_files, site_images):
    """A fully conforming site on disk"""
    return build_site(site_files, site_images)


@pytest.fixture
def make_context(tmp_path):
    """
    Build a RunContext straight from markup strings, with a fake decoder
    answering from a path -> (width, height) mapping.
    """
    def _make(pages, css=MAIN_CSS, sizes=None):
        sizes = sizes or {}
        config = SiteConfig(site_root=tmp_path, pages={name: path for name, (path, _) in pages.items()})

        def decoder(path):
            relative = Path(path).relative_to(tmp_path).as_posix()
            if relative not in sizes:
                raise ArtifactLoadError(f"image not found: {relative}", path=str(path))
            return sizes[relative]

        documents = tuple(parse_document(name, path, html) for name, (path, html) in pages.items())
        stylesheet = Stylesheet(path=config.stylesheet, text=css) if css is not None else None
        return RunContext(config=config, documents=documents, stylesheet=stylesheet, decoder=decoder)
    return _make
