"""
Data models for the Site Conformance Checker.

Artifacts (documents, the stylesheet, image records) are plain frozen
dataclasses because they wrap parsed trees; results and API payloads are
pydantic models.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, ConfigDict, Field

from sitecheck.config import SiteConfig


class RuleTarget(str, Enum):
    """Artifact domain a rule is evaluated against."""
    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    IMAGE_SET = "image-set"


class Engine(str, Enum):
    """Producer of a validation result, in report order."""
    LOAD = "load"
    STRUCTURE = "structure"
    STYLE = "style"
    IMAGE = "image"


class ImageKind(str, Enum):
    """Classification deciding whether exact dimension checks apply."""
    RASTER = "raster"
    VECTOR = "vector"
    LARGE_HERO = "large_hero"


# ============================================================================
# ARTIFACTS
# ============================================================================

@dataclass(frozen=True)
class Document:
    """A parsed page identified by its role (home, about, contact)."""
    name: str
    path: str  # relative to the site root, posix separators
    tree: BeautifulSoup = field(repr=False, compare=False)
    stylesheet_links: Tuple[str, ...] = ()

    @property
    def base_dir(self) -> str:
        """Directory of the page relative to the site root ('' for the root)."""
        parent = Path(self.path).parent.as_posix()
        return "" if parent == "." else parent


@dataclass(frozen=True)
class Stylesheet:
    """The shared stylesheet: its path and raw text."""
    path: str
    text: str = field(repr=False)


@dataclass(frozen=True)
class ImageReference:
    """An <img> element as written in a document's markup."""
    document: str
    element: Tag = field(repr=False, compare=False)
    src: str
    base_dir: str = ""


@dataclass(frozen=True)
class ImageRecord:
    """An image reference joined with its intrinsic dimensions."""
    reference: ImageReference
    path: str  # site-relative, parent-directory prefix stripped
    resolved_path: Path
    kind: ImageKind
    declared_width: Optional[int]
    declared_height: Optional[int]
    intrinsic_width: Optional[int] = None
    intrinsic_height: Optional[int] = None
    decode_error: Optional[str] = None
    assets_prefix: str = "images/"

    @property
    def document(self) -> str:
        return self.reference.document

    @property
    def decoded(self) -> bool:
        return self.decode_error is None and self.intrinsic_width is not None

    @property
    def is_exempt(self) -> bool:
        """Vector and hero images are excluded from exact dimension equality."""
        return self.kind != ImageKind.RASTER

    @property
    def is_lowercase(self) -> bool:
        return self.path == self.path.lower() and not any(c.isspace() for c in self.path)

    @property
    def is_under_assets(self) -> bool:
        return self.path.startswith(self.assets_prefix)

    @property
    def is_path_conformant(self) -> bool:
        return self.is_lowercase and self.is_under_assets


@dataclass(frozen=True)
class LoadFailure:
    """An artifact that could not be read or parsed."""
    artifact_id: str
    kind: str  # "document" or "stylesheet"
    reason: str


ImageDecoder = Callable[[Path], Tuple[int, int]]


@dataclass(frozen=True)
class RunContext:
    """
    Everything one validation run reads. Built once before any engine starts
    and shared read-only between engines.
    """
    config: SiteConfig
    documents: Tuple[Document, ...]
    stylesheet: Optional[Stylesheet]
    decoder: ImageDecoder = field(repr=False, compare=False)
    load_failures: Tuple[LoadFailure, ...] = ()

    def document(self, name: str) -> Optional[Document]:
        for doc in self.documents:
            if doc.name == name:
                return doc
        return None

    def load_failure(self, artifact_id: str) -> Optional[LoadFailure]:
        for failure in self.load_failures:
            if failure.artifact_id == artifact_id:
                return failure
        return None


# ============================================================================
# RESULTS
# ============================================================================

class ValidationResult(BaseModel):
    """Outcome of evaluating one rule against one artifact."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    artifact_id: str
    passed: bool
    message: str
    engine: Engine
    document: Optional[str] = None


class ReportSummary(BaseModel):
    """Counts over a validation report."""
    total: int
    passed: int
    failed: int


class ValidationReport(BaseModel):
    """Ordered, append-only sequence of results for one run."""
    results: List[ValidationResult] = []

    def overall_passed(self) -> bool:
        return all(r.passed for r in self.results)

    def failures(self) -> List[ValidationResult]:
        return [r for r in self.results if not r.passed]

    def failures_for(self, artifact_id: str) -> List[ValidationResult]:
        """Failing results for an artifact, including images owned by a document."""
        return [
            r for r in self.results
            if not r.passed and (r.artifact_id == artifact_id or r.document == artifact_id)
        ]

    def results_for_rule(self, rule_id: str) -> List[ValidationResult]:
        return [r for r in self.results if r.rule_id == rule_id]

    def summary(self) -> ReportSummary:
        failed = len(self.failures())
        return ReportSummary(total=len(self.results), passed=len(self.results) - failed, failed=failed)

    def render(self) -> str:
        """One line per failing result, in report order. Messages already lead with the artifact."""
        lines = []
        for result in self.failures():
            owner = f" (in {result.document})" if result.document else ""
            lines.append(f"FAIL [{result.rule_id}] {result.message}{owner}")
        return "\n".join(lines)


# ============================================================================
# API MODELS
# ============================================================================

class CheckRequest(BaseModel):
    """Request for validating a site directory."""
    site_root: str
    stylesheet: Optional[str] = None
    assets_prefix: Optional[str] = None
    max_image_width: Optional[int] = Field(default=None, ge=1)


class CheckResponse(BaseModel):
    """Result of validating a site directory."""
    ok: bool
    summary: ReportSummary
    results: List[ValidationResult] = []
    report: str = ""


class RuleInfo(BaseModel):
    """Catalogue entry as exposed over HTTP."""
    id: str
    engine: Engine
    target: RuleTarget
    description: str
    scope: List[str] = []


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    rules: Dict[str, int] = {}
