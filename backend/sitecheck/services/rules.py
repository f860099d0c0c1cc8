"""
Typed rule objects.

Every selector and regular expression is compiled when the rule is
constructed; a malformed rule raises ConfigurationError right there, so a
bad catalogue never reaches evaluation.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Pattern, Tuple, Union

import soupsieve

from sitecheck.errors import ConfigurationError
from sitecheck.models import Engine, ImageRecord, RuleTarget
from sitecheck.config import SiteConfig
from sitecheck.services.tree_query import compile_selector

LAST = "last"

TEMPLATE_FIELDS = {
    "artifact": "home",
    "observed": "0",
    "expected": "1",
    "selector": "h1",
    "detail": "",
    "pattern": "x",
    "path": "images/x.png",
}


def _check_template(rule_id: str, template: str) -> str:
    try:
        template.format(**TEMPLATE_FIELDS)
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigurationError(f"bad message template {template!r}: {e}", rule_id)
    return template


def render_message(template: str, **values) -> str:
    """Interpolate a rule message; fields a template does not use are ignored."""
    fields = dict.fromkeys(TEMPLATE_FIELDS, "")
    fields.update(values)
    return template.format(**fields)


def _selector(rule_id: str, selector: str) -> soupsieve.SoupSieve:
    try:
        return compile_selector(selector)
    except soupsieve.SelectorSyntaxError as e:
        raise ConfigurationError(f"invalid selector {selector!r}: {e}", rule_id)


def _regex(rule_id: str, pattern: str, flags: int = 0) -> Pattern:
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise ConfigurationError(f"invalid pattern {pattern!r}: {e}", rule_id)


# ============================================================================
# CARDINALITY
# ============================================================================

@dataclass(frozen=True)
class Cardinality:
    """Exact or minimum count of matching nodes."""
    count: int
    exact: bool = False

    def __post_init__(self):
        if self.count < 0:
            raise ConfigurationError(f"cardinality must not be negative, got {self.count}")

    def satisfied_by(self, observed: int) -> bool:
        return observed == self.count if self.exact else observed >= self.count

    def describe(self) -> str:
        return f"exactly {self.count}" if self.exact else f"at least {self.count}"


def exactly(count: int) -> Cardinality:
    return Cardinality(count, exact=True)


def at_least(count: int) -> Cardinality:
    return Cardinality(count)


EXACTLY_ONE = exactly(1)
AT_LEAST_ONE = at_least(1)


# ============================================================================
# STRUCTURAL RULES
# ============================================================================

@dataclass(frozen=True)
class ChildRequirement:
    """Each selected node must contain `cardinality` descendants matching selector."""
    selector: str
    cardinality: Cardinality = AT_LEAST_ONE
    compiled: soupsieve.SoupSieve = field(init=False, repr=False, compare=False)

    def bind(self, rule_id: str) -> "ChildRequirement":
        object.__setattr__(self, "compiled", _selector(rule_id, self.selector))
        return self


@dataclass(frozen=True)
class ElementRule:
    """
    Presence/cardinality rule over a selector, optionally requiring each
    selected node to carry attributes and contain descendant shapes.
    """
    id: str
    description: str
    selector: str
    cardinality: Cardinality = AT_LEAST_ONE
    children: Tuple[ChildRequirement, ...] = ()
    attributes: Tuple[str, ...] = ()
    scope: Tuple[str, ...] = ()
    message: str = "{artifact}: expected {expected} '{selector}', found {observed}{detail}"
    compiled: soupsieve.SoupSieve = field(init=False, repr=False, compare=False)

    target = RuleTarget.DOCUMENT
    engine = Engine.STRUCTURE

    def __post_init__(self):
        object.__setattr__(self, "compiled", _selector(self.id, self.selector))
        for child in self.children:
            child.bind(self.id)
        _check_template(self.id, self.message)

    def applies_to(self, document: str) -> bool:
        return not self.scope or document in self.scope


@dataclass(frozen=True)
class OrderedItem:
    """
    A pattern expected at an ordinal position, or at the LAST position.
    A site_stylesheet item instead matches the configured stylesheet,
    resolved against the page's own directory.
    """
    position: Union[int, str]
    pattern: Optional[str]
    label: str
    site_stylesheet: bool = False
    compiled: Optional[Pattern] = field(init=False, default=None, repr=False, compare=False)

    def bind(self, rule_id: str) -> "OrderedItem":
        if self.position != LAST and (not isinstance(self.position, int) or self.position < 0):
            raise ConfigurationError(f"invalid position {self.position!r} for {self.label}", rule_id)
        if self.site_stylesheet == bool(self.pattern):
            raise ConfigurationError(f"{self.label} needs either a pattern or site_stylesheet", rule_id)
        if self.pattern:
            object.__setattr__(self, "compiled", _regex(rule_id, self.pattern))
        return self

    def describe_position(self) -> str:
        return "last" if self.position == LAST else f"#{self.position + 1}"


@dataclass(frozen=True)
class OrderingRule:
    """
    Sequence check: the value at each listed position must match that
    position's item. LAST is the final value regardless of how many come
    before it. Without a selector the sequence is the document's
    stylesheet links; with one it is `attribute` of every selected node.
    """
    id: str
    description: str
    items: Tuple[OrderedItem, ...]
    selector: Optional[str] = None
    attribute: str = "href"
    scope: Tuple[str, ...] = ()
    message: str = "{artifact}: expected {expected}, found {observed}"
    compiled: Optional[soupsieve.SoupSieve] = field(init=False, default=None, repr=False, compare=False)

    target = RuleTarget.DOCUMENT
    engine = Engine.STRUCTURE

    def __post_init__(self):
        if not self.items:
            raise ConfigurationError("ordering rule needs at least one position", self.id)
        positions = [item.position for item in self.items]
        if len(set(positions)) != len(positions):
            raise ConfigurationError(f"duplicate positions {positions}", self.id)
        for item in self.items:
            item.bind(self.id)
        if self.selector is not None:
            object.__setattr__(self, "compiled", _selector(self.id, self.selector))
        _check_template(self.id, self.message)

    @property
    def sequence_name(self) -> str:
        return f"'{self.selector}' elements" if self.selector else "stylesheet links"

    @property
    def minimum_length(self) -> int:
        indexed = [item.position for item in self.items if item.position != LAST]
        length = max(indexed) + 1 if indexed else 0
        if any(item.position == LAST for item in self.items):
            # LAST must be a node distinct from every indexed one
            length += 1
        return length

    def applies_to(self, document: str) -> bool:
        return not self.scope or document in self.scope


StructuralRule = Union[ElementRule, OrderingRule]


# ============================================================================
# STYLE RULES
# ============================================================================

@dataclass(frozen=True)
class PatternRule:
    """
    All patterns must match the stylesheet text; any forbidden pattern
    must not match at all.
    """
    id: str
    description: str
    patterns: Tuple[str, ...]
    flags: int = 0
    message: str = "{artifact}: pattern {pattern} not found"
    forbidden: Tuple[str, ...] = ()
    compiled: Tuple[Pattern, ...] = field(init=False, repr=False, compare=False)
    compiled_forbidden: Tuple[Pattern, ...] = field(init=False, repr=False, compare=False)

    target = RuleTarget.STYLESHEET
    engine = Engine.STYLE

    def __post_init__(self):
        if not self.patterns and not self.forbidden:
            raise ConfigurationError("pattern rule needs at least one pattern", self.id)
        object.__setattr__(self, "compiled", tuple(_regex(self.id, p, self.flags) for p in self.patterns))
        object.__setattr__(
            self, "compiled_forbidden", tuple(_regex(self.id, p, self.flags) for p in self.forbidden)
        )
        _check_template(self.id, self.message)


@dataclass(frozen=True)
class CountRule:
    """Non-overlapping matches of a pattern must reach a minimum."""
    id: str
    description: str
    pattern: str
    minimum: int
    flags: int = 0
    message: str = "{artifact}: expected {expected} matches of {pattern}, found {observed}"
    compiled: Pattern = field(init=False, repr=False, compare=False)

    target = RuleTarget.STYLESHEET
    engine = Engine.STYLE

    def __post_init__(self):
        if self.minimum < 1:
            raise ConfigurationError(f"minimum must be at least 1, got {self.minimum}", self.id)
        object.__setattr__(self, "compiled", _regex(self.id, self.pattern, self.flags))
        _check_template(self.id, self.message)


StyleRule = Union[PatternRule, CountRule]


def declaration_rule(
    rule_id: str,
    description: str,
    selector: str,
    properties: Tuple[str, ...],
    flags: int = 0,
) -> PatternRule:
    """
    Rule requiring every property pattern inside the declaration block that
    opens with `selector` (a regex fragment, e.g. r"body\\s+").
    """
    patterns = tuple(rf"{selector}\{{[^}}]+{prop}" for prop in properties)
    return PatternRule(id=rule_id, description=description, patterns=patterns, flags=flags)


# ============================================================================
# IMAGE RULES
# ============================================================================

# Returns (passed, template values) for one image record
ImageCheck = Callable[[ImageRecord, SiteConfig], Tuple[bool, Dict[str, object]]]


@dataclass(frozen=True)
class ImageRule:
    """Predicate over one image record, rendered through the rule's message template."""
    id: str
    description: str
    check: ImageCheck = field(repr=False, compare=False)
    message: str = "{path}: {observed}, expected {expected}"
    needs_pixels: bool = False

    target = RuleTarget.IMAGE_SET
    engine = Engine.IMAGE

    def __post_init__(self):
        _check_template(self.id, self.message)


Rule = Union[ElementRule, OrderingRule, PatternRule, CountRule, ImageRule]
