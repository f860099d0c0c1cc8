"""
Validate Routes - run the rule catalogue against a site directory.
"""
from pathlib import Path

from fastapi import APIRouter, HTTPException
import structlog

from sitecheck.config import SiteConfig
from sitecheck.errors import ConfigurationError
from sitecheck.models import CheckRequest, CheckResponse, RuleInfo
from sitecheck.services.catalogue import CATALOGUE
from sitecheck.services.validators import check_site

logger = structlog.get_logger()

router = APIRouter(prefix="/validate", tags=["Validate"])


# Plain def: FastAPI runs it in the threadpool, off the event loop
@router.post("/check", response_model=CheckResponse)
def check(request: CheckRequest):
    """
    Validate a rendered site directory.

    Checks:
    - Page structure (head contents, stylesheet order, headings, sections)
    - Stylesheet declarations and breakpoints
    - Image paths, maximum width and declared dimensions

    Returns:
    - ok: True when every rule passed for every artifact
    - summary: total / passed / failed counts
    - results: one entry per (rule, artifact) pair
    - report: one line per failure
    """
    site_root = Path(request.site_root)
    if not site_root.is_dir():
        raise HTTPException(status_code=404, detail=f"Site root not found: {request.site_root}")

    try:
        config = SiteConfig.from_env(
            site_root,
            stylesheet=request.stylesheet,
            assets_prefix=request.assets_prefix,
            max_image_width=request.max_image_width,
        )
        report = check_site(config)

        logger.info("site_checked", site_root=str(site_root), ok=report.overall_passed())

        return CheckResponse(
            ok=report.overall_passed(),
            summary=report.summary(),
            results=report.results,
            report=report.render(),
        )

    except ConfigurationError as e:
        logger.error("site_config_invalid", error=str(e))
        raise HTTPException(status_code=500, detail=f"Invalid configuration: {e}")
    except Exception as e:
        logger.error("validation_failed", error=str(e))
        raise HTTPException(
            status_code=500,
            detail=f"Validation failed: {str(e)}"
        )


@router.get("/rules")
async def get_validation_rules():
    """
    List every rule in the catalogue with its engine, target and scope.
    """
    rules = [
        RuleInfo(
            id=rule.id,
            engine=rule.engine,
            target=rule.target,
            description=rule.description,
            scope=list(getattr(rule, "scope", ())),
        )
        for rule in CATALOGUE.all_rules()
    ]
    return {"rules": [r.model_dump(mode="json") for r in rules]}
