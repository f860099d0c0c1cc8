"""
Validator Service - runs the rule catalogue against a loaded site.
"""
from typing import Optional

import structlog

from sitecheck.config import SiteConfig
from sitecheck.models import Engine, ImageDecoder, RunContext, ValidationReport
from sitecheck.services.catalogue import CATALOGUE, RuleCatalogue
from sitecheck.services.images import evaluate_images
from sitecheck.services.loader import load_site
from sitecheck.services.report import ReportAggregator, load_results
from sitecheck.services.structure import evaluate_structure
from sitecheck.services.styles import evaluate_styles

logger = structlog.get_logger()


def validate_site(context: RunContext, catalogue: RuleCatalogue = CATALOGUE) -> ValidationReport:
    """
    Validate a loaded site against every rule in the catalogue.

    Args:
        context: Artifacts for this run, built by load_site
        catalogue: Rules to apply (defaults to the built-in catalogue)

    Returns:
        ValidationReport with one result per (rule, artifact) pair in
        load, structure, style, image order
    """
    aggregator = ReportAggregator()
    aggregator.add(Engine.LOAD, load_results(context))
    aggregator.add(Engine.STRUCTURE, evaluate_structure(context, catalogue.structural))
    aggregator.add(Engine.STYLE, evaluate_styles(context, catalogue.style))
    aggregator.add(Engine.IMAGE, evaluate_images(context, catalogue.image))
    report = aggregator.build()

    summary = report.summary()
    logger.info(
        "site_validated",
        site_root=str(context.config.site_root),
        ok=report.overall_passed(),
        total=summary.total,
        failed=summary.failed,
    )
    return report


def check_site(
    config: SiteConfig,
    catalogue: RuleCatalogue = CATALOGUE,
    decoder: Optional[ImageDecoder] = None,
) -> ValidationReport:
    """Load a site from disk and validate it."""
    return validate_site(load_site(config, decoder=decoder), catalogue)
