"""
Image Conformance Checker - joins every <img> reference with the image's
intrinsic size and checks path hygiene, maximum width and declared
dimensions.
"""
from typing import List, Sequence

import structlog

from sitecheck.errors import ArtifactLoadError
from sitecheck.models import (
    Document, Engine, ImageRecord, ImageReference, RunContext, ValidationResult
)
from sitecheck.services.rules import ImageRule, render_message
from sitecheck.services.tree_query import TreeQuery
from sitecheck.utils import classify_image, parse_dimension, resolve_site_path

logger = structlog.get_logger()

IMAGE_SELECTOR = "img"


def collect_references(documents: Sequence[Document]) -> List[ImageReference]:
    """Every <img> across all documents, in document then markup order."""
    references = []
    for document in documents:
        query = TreeQuery(document.tree)
        for element in query.select_all(IMAGE_SELECTOR):
            references.append(ImageReference(
                document=document.name,
                element=element,
                src=query.attribute(element, "src") or "",
                base_dir=document.base_dir,
            ))
    return references


def build_record(reference: ImageReference, context: RunContext) -> ImageRecord:
    """
    Resolve the reference and decode its intrinsic size. A decode failure is
    kept on the record so every pixel-dependent check reports it.
    """
    config = context.config
    path = resolve_site_path(reference.base_dir, reference.src)
    resolved = config.site_root / path

    width = height = None
    error = None
    if not path:
        error = "empty src attribute"
    else:
        try:
            width, height = context.decoder(resolved)
        except ArtifactLoadError as e:
            error = str(e)
        except Exception as e:
            error = f"cannot decode {path}: {e}"
        if error:
            logger.warning("image_decode_failed", document=reference.document, path=path, error=error)

    return ImageRecord(
        reference=reference,
        path=path,
        resolved_path=resolved,
        kind=classify_image(path),
        declared_width=parse_dimension(TreeQuery.attribute(reference.element, "width")),
        declared_height=parse_dimension(TreeQuery.attribute(reference.element, "height")),
        intrinsic_width=width,
        intrinsic_height=height,
        decode_error=error,
        assets_prefix=config.assets_prefix,
    )


def evaluate_images(context: RunContext, rules: Sequence[ImageRule]) -> List[ValidationResult]:
    """
    Every rule runs against every image (no short-circuit), rule-major.
    Results are tagged with the owning document.
    """
    records = [build_record(ref, context) for ref in collect_references(context.documents)]
    results: List[ValidationResult] = []

    for rule in rules:
        for record in records:
            if rule.needs_pixels and not record.decoded:
                passed, message = False, f"{record.path}: intrinsic size unavailable ({record.decode_error})"
            else:
                try:
                    passed, values = rule.check(record, context.config)
                    message = render_message(rule.message, artifact=record.path, path=record.path, **values)
                except Exception as e:
                    logger.error("image_rule_failed", rule=rule.id, path=record.path, error=str(e))
                    passed, message = False, f"{record.path}: rule could not be evaluated ({e})"

            results.append(ValidationResult(
                rule_id=rule.id,
                artifact_id=record.path,
                passed=passed,
                message=message,
                engine=Engine.IMAGE,
                document=record.document,
            ))

    logger.info(
        "images_evaluated",
        images=len(records),
        exempt=sum(1 for r in records if r.is_exempt),
        failed=sum(1 for r in results if not r.passed),
    )
    return results
