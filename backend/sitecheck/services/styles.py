"""
Style Rule Engine - textual pattern checks against the raw stylesheet.

Rules target surface syntax (a property near a known selector), so the
stylesheet is matched as text rather than parsed.
"""
from typing import List, Sequence, Tuple

import structlog

from sitecheck.models import Engine, RunContext, Stylesheet, ValidationResult
from sitecheck.services.rules import CountRule, PatternRule, StyleRule, render_message
from sitecheck.utils import describe_count

logger = structlog.get_logger()


def check_pattern_rule(rule: PatternRule, stylesheet: Stylesheet) -> Tuple[bool, str]:
    """Every pattern is tried; the message lists each one that did not match."""
    missing = [pattern.pattern for pattern in rule.compiled if not pattern.search(stylesheet.text)]
    present = [pattern.pattern for pattern in rule.compiled_forbidden if pattern.search(stylesheet.text)]
    if not missing and not present:
        matched = ", ".join(f"/{p.pattern}/" for p in rule.compiled) or "no forbidden pattern"
        return True, f"{stylesheet.path}: matched {matched}"

    problems = []
    if missing:
        problems.append(render_message(
            rule.message,
            artifact=stylesheet.path,
            pattern=", ".join(f"/{p}/" for p in missing),
        ))
    if present:
        problems.append(f"{stylesheet.path}: forbidden pattern {', '.join(f'/{p}/' for p in present)} found")
    return False, "; ".join(problems)


def check_count_rule(rule: CountRule, stylesheet: Stylesheet) -> Tuple[bool, str]:
    found = sum(1 for _ in rule.compiled.finditer(stylesheet.text))
    if found >= rule.minimum:
        return True, f"{stylesheet.path}: {describe_count(found, 'match')} of /{rule.pattern}/"
    return False, render_message(
        rule.message,
        artifact=stylesheet.path,
        expected=f"at least {rule.minimum}",
        pattern=f"/{rule.pattern}/",
        observed=found,
    )


def evaluate_rule(rule: StyleRule, stylesheet: Stylesheet) -> Tuple[bool, str]:
    if isinstance(rule, CountRule):
        return check_count_rule(rule, stylesheet)
    return check_pattern_rule(rule, stylesheet)


def evaluate_styles(context: RunContext, rules: Sequence[StyleRule]) -> List[ValidationResult]:
    """One result per style rule against the shared stylesheet."""
    results: List[ValidationResult] = []
    stylesheet = context.stylesheet
    artifact_id = stylesheet.path if stylesheet else context.config.stylesheet

    for rule in rules:
        if stylesheet is None:
            failure = context.load_failure(artifact_id)
            reason = failure.reason if failure else "not loaded"
            passed, message = False, f"{artifact_id}: stylesheet unavailable ({reason})"
        else:
            try:
                passed, message = evaluate_rule(rule, stylesheet)
            except Exception as e:
                logger.error("style_rule_failed", rule=rule.id, stylesheet=artifact_id, error=str(e))
                passed, message = False, f"{artifact_id}: rule could not be evaluated ({e})"

        results.append(ValidationResult(
            rule_id=rule.id,
            artifact_id=artifact_id,
            passed=passed,
            message=message,
            engine=Engine.STYLE,
        ))

    logger.info(
        "styles_evaluated",
        rules=len(rules),
        failed=sum(1 for r in results if not r.passed),
    )
    return results
