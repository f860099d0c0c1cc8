"""
Loader Service - reads pages and the stylesheet from disk and decodes
image dimensions. Failures are recorded, never raised past this module.
"""
from pathlib import Path
from typing import List, Optional, Tuple

import structlog
from bs4 import BeautifulSoup
from PIL import Image, UnidentifiedImageError

from sitecheck.config import SiteConfig
from sitecheck.errors import ArtifactLoadError
from sitecheck.models import Document, ImageDecoder, LoadFailure, RunContext, Stylesheet
from sitecheck.services.tree_query import TreeQuery
from sitecheck.utils import parse_dimension

logger = structlog.get_logger()

# exact rel match, so "alternate stylesheet" links are excluded
STYLESHEET_LINKS = "link[rel='stylesheet']"


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactLoadError(f"cannot read {path.name}: {e}", path=str(path))


def parse_document(name: str, relative_path: str, markup: str) -> Document:
    """Parse markup and capture its stylesheet links in document order."""
    tree = BeautifulSoup(markup, "html.parser")
    query = TreeQuery(tree)
    links = tuple(query.attribute(link, "href") or "" for link in query.select_all(STYLESHEET_LINKS))
    return Document(name=name, path=relative_path, tree=tree, stylesheet_links=links)


def _decode_svg(path: Path) -> Tuple[int, int]:
    soup = BeautifulSoup(read_text(path), "html.parser")
    svg = soup.find("svg")
    if svg is None:
        raise ArtifactLoadError(f"no <svg> root in {path.name}", path=str(path))

    width = parse_dimension(svg.get("width"))
    height = parse_dimension(svg.get("height"))
    if width is None or height is None:
        # html.parser lowercases attribute names
        view_box = (svg.get("viewbox") or "").replace(",", " ").split()
        if len(view_box) == 4:
            try:
                width = width if width is not None else int(float(view_box[2]))
                height = height if height is not None else int(float(view_box[3]))
            except ValueError:
                pass
    if width is None or height is None:
        raise ArtifactLoadError(f"no usable width/height in {path.name}", path=str(path))
    return width, height


def decode_image_size(path: Path) -> Tuple[int, int]:
    """
    Intrinsic (width, height) of an image file.

    Raster formats go through Pillow; SVG files are read from the root
    element's width/height or viewBox. Raises ArtifactLoadError.
    """
    path = Path(path)
    if not path.is_file():
        raise ArtifactLoadError(f"image not found: {path}", path=str(path))
    if path.suffix.lower() == ".svg":
        return _decode_svg(path)
    try:
        with Image.open(path) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ArtifactLoadError(f"cannot decode {path.name}: {e}", path=str(path))


def load_site(config: SiteConfig, decoder: Optional[ImageDecoder] = None) -> RunContext:
    """
    Build the run context for a site: every configured page, the shared
    stylesheet, and the image decoder the image checks will use.
    """
    root = Path(config.site_root)
    documents: List[Document] = []
    failures: List[LoadFailure] = []

    for name, relative_path in config.pages.items():
        try:
            documents.append(parse_document(name, relative_path, read_text(root / relative_path)))
        except ArtifactLoadError as e:
            logger.warning("document_load_failed", document=name, path=relative_path, error=str(e))
            failures.append(LoadFailure(artifact_id=name, kind="document", reason=str(e)))

    stylesheet = None
    try:
        stylesheet = Stylesheet(path=config.stylesheet, text=read_text(root / config.stylesheet))
    except ArtifactLoadError as e:
        logger.warning("stylesheet_load_failed", path=config.stylesheet, error=str(e))
        failures.append(LoadFailure(artifact_id=config.stylesheet, kind="stylesheet", reason=str(e)))

    logger.info(
        "site_loaded",
        site_root=str(root),
        documents=len(documents),
        stylesheet=stylesheet is not None,
        load_failures=len(failures),
    )

    return RunContext(
        config=config,
        documents=tuple(documents),
        stylesheet=stylesheet,
        decoder=decoder or decode_image_size,
        load_failures=tuple(failures),
    )
