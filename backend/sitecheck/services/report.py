"""
Report Aggregator - merges engine outputs into one ordered report.
"""
from typing import Dict, Iterable, List

import structlog

from sitecheck.models import Engine, RunContext, ValidationReport, ValidationResult

logger = structlog.get_logger()

ENGINE_ORDER = [Engine.LOAD, Engine.STRUCTURE, Engine.STYLE, Engine.IMAGE]


def load_results(context: RunContext) -> List[ValidationResult]:
    """One result per configured artifact saying whether it loaded."""
    results = []
    for name in context.config.document_names:
        failure = context.load_failure(name)
        results.append(ValidationResult(
            rule_id="document-loaded",
            artifact_id=name,
            passed=failure is None,
            message=f"{name}: {failure.reason}" if failure else f"{name}: loaded {context.config.pages[name]}",
            engine=Engine.LOAD,
        ))

    stylesheet_id = context.config.stylesheet
    failure = context.load_failure(stylesheet_id)
    results.append(ValidationResult(
        rule_id="stylesheet-loaded",
        artifact_id=stylesheet_id,
        passed=failure is None,
        message=f"{stylesheet_id}: {failure.reason}" if failure else f"{stylesheet_id}: loaded",
        engine=Engine.LOAD,
    ))
    return results


class ReportAggregator:
    """
    Collects results per engine and emits them in fixed engine order, so
    engines may finish in any order without changing the report.
    Nothing is dropped or deduplicated.
    """

    def __init__(self):
        self._results: Dict[Engine, List[ValidationResult]] = {engine: [] for engine in ENGINE_ORDER}

    def add(self, engine: Engine, results: Iterable[ValidationResult]) -> None:
        self._results[engine].extend(results)

    def build(self) -> ValidationReport:
        ordered = [result for engine in ENGINE_ORDER for result in self._results[engine]]
        report = ValidationReport(results=ordered)
        summary = report.summary()
        logger.info("report_built", total=summary.total, failed=summary.failed)
        return report
