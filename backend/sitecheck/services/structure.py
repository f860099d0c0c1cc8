"""
Structural Rule Engine - presence, cardinality, descendant-shape and
sibling-ordering checks over each document tree.
"""
import posixpath
from typing import List, Sequence, Tuple

import structlog

from sitecheck.config import SiteConfig
from sitecheck.models import Document, Engine, RunContext, ValidationResult
from sitecheck.services.rules import (
    LAST, ElementRule, OrderedItem, OrderingRule, StructuralRule, render_message
)
from sitecheck.services.tree_query import TreeQuery
from sitecheck.utils import page_href, resolve_site_path

logger = structlog.get_logger()


def check_element_rule(rule: ElementRule, document: Document) -> Tuple[bool, str]:
    """
    Count the rule's selector, then hold every selected node to the rule's
    attribute and descendant requirements. Problems are listed by node
    ordinal so the offending node can be found.
    """
    query = TreeQuery(document.tree)
    nodes = query.select_all(rule.compiled)
    count_ok = rule.cardinality.satisfied_by(len(nodes))

    problems = []
    for index, node in enumerate(nodes, start=1):
        label = f"{rule.selector} #{index}"
        for attribute in rule.attributes:
            if query.attribute(node, attribute) is None:
                problems.append(f"{label} is missing '{attribute}'")
        inner = TreeQuery(node)
        for child in rule.children:
            found = inner.count(child.compiled)
            if not child.cardinality.satisfied_by(found):
                problems.append(
                    f"{label} ({TreeQuery.describe(node)}) contains {found} '{child.selector}', "
                    f"expected {child.cardinality.describe()}"
                )

    message = render_message(
        rule.message,
        artifact=document.name,
        expected=rule.cardinality.describe(),
        selector=rule.selector,
        observed=len(nodes),
        detail="; " + "; ".join(problems) if problems else "",
    )
    return count_ok and not problems, message


def ordered_values(rule: OrderingRule, document: Document) -> List[str]:
    if rule.compiled is None:
        return list(document.stylesheet_links)
    query = TreeQuery(document.tree)
    return [query.attribute(node, rule.attribute) or "" for node in query.select_all(rule.compiled)]


def _item_matches(item: OrderedItem, value: str, document: Document, config: SiteConfig) -> bool:
    if item.site_stylesheet:
        target = resolve_site_path(document.base_dir, value, strip_parent=False)
        return target == posixpath.normpath(config.stylesheet)
    return bool(item.compiled.search(value))


def _item_expectation(item: OrderedItem, document: Document, config: SiteConfig) -> str:
    if item.site_stylesheet:
        return f"'{page_href(document.base_dir, config.stylesheet)}'"
    return f"/{item.pattern}/"


def check_ordering_rule(rule: OrderingRule, document: Document, config: SiteConfig) -> Tuple[bool, str]:
    """
    Index-by-index membership. LAST always means the final value and only
    counts when the sequence is long enough to keep it distinct from the
    indexed positions. A site stylesheet item must point at the configured
    stylesheet from the page's own directory.
    """
    values = ordered_values(rule, document)

    problems = []
    if len(values) < rule.minimum_length:
        problems.append(f"{len(values)} {rule.sequence_name}, need at least {rule.minimum_length}")
    for item in rule.items:
        if item.position == LAST:
            index = len(values) - 1 if len(values) >= rule.minimum_length else None
        else:
            index = item.position if item.position < len(values) else None
        if index is None:
            problems.append(f"no {item.label} at position {item.describe_position()}")
        elif not _item_matches(item, values[index], document, config):
            problems.append(
                f"{item.describe_position()} is '{values[index]}', "
                f"not the {item.label} ({_item_expectation(item, document, config)})"
            )

    expected = ", ".join(f"{item.label} {item.describe_position()}" for item in rule.items)
    observed = "; ".join(problems) if problems else "[" + ", ".join(values) + "]"
    return not problems, render_message(rule.message, artifact=document.name, expected=expected, observed=observed)


def evaluate_rule(rule: StructuralRule, document: Document, config: SiteConfig) -> Tuple[bool, str]:
    if isinstance(rule, OrderingRule):
        return check_ordering_rule(rule, document, config)
    return check_element_rule(rule, document)


def evaluate_structure(context: RunContext, rules: Sequence[StructuralRule]) -> List[ValidationResult]:
    """
    One result per (rule, in-scope document), rule-major in configured
    document order. A document that failed to load fails every rule that
    applies to it.
    """
    results: List[ValidationResult] = []

    for rule in rules:
        for name in context.config.document_names:
            if not rule.applies_to(name):
                continue

            document = context.document(name)
            if document is None:
                failure = context.load_failure(name)
                reason = failure.reason if failure else "not loaded"
                passed, message = False, f"{name}: document unavailable ({reason})"
            else:
                try:
                    passed, message = evaluate_rule(rule, document, context.config)
                except Exception as e:
                    logger.error("structural_rule_failed", rule=rule.id, document=name, error=str(e))
                    passed, message = False, f"{name}: rule could not be evaluated ({e})"

            results.append(ValidationResult(
                rule_id=rule.id,
                artifact_id=name,
                passed=passed,
                message=message,
                engine=Engine.STRUCTURE,
            ))

    logger.info(
        "structure_evaluated",
        rules=len(rules),
        results=len(results),
        failed=sum(1 for r in results if not r.passed),
    )
    return results
