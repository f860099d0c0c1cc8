"""
Rule Catalogue - the fixed set of structural, style and image rules.
Built and validated once at import time.
"""
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

import structlog

from sitecheck.config import DEFAULT_PAGES, SiteConfig
from sitecheck.errors import ConfigurationError
from sitecheck.models import ImageRecord
from sitecheck.services.rules import (
    EXACTLY_ONE, LAST, ChildRequirement, CountRule, ElementRule,
    ImageRule, OrderedItem, OrderingRule, Rule, StructuralRule, StyleRule,
    at_least, declaration_rule, exactly, PatternRule,
)

logger = structlog.get_logger()

HOME = ("home",)
CONTACT = ("contact",)


# ============================================================================
# STRUCTURAL RULES
# ============================================================================

def structural_rules() -> List[StructuralRule]:
    return [
        ElementRule("head-title", "<head> has a <title>", "title"),
        ElementRule("head-meta-description", "<head> has a meta description", "meta[name=description]"),
        ElementRule("head-favicon", "<head> declares a favicon", "link[rel='shortcut icon']"),
        OrderingRule(
            "stylesheet-order",
            "stylesheets load normalize first, web fonts second and the site stylesheet last",
            items=(
                OrderedItem(0, r"normalize\..*css", "normalize stylesheet"),
                OrderedItem(1, r"fonts\.googleapis\.com", "web-font stylesheet"),
                OrderedItem(LAST, None, "site stylesheet", site_stylesheet=True),
            ),
        ),
        ElementRule("single-h1", "exactly one <h1> per page", "h1", EXACTLY_ONE),
        ElementRule("header-present", "page has a <header>", "header"),
        ElementRule("header-nav", "<header> contains a <nav>", "header > nav"),
        ElementRule("header-nav-list", "<header><nav> contains a <ul>", "header > nav > ul"),
        ElementRule("home-picture", "home page has a <picture>", "picture", scope=HOME),
        ElementRule("home-main", "home page has a <main>", "main", scope=HOME),
        ElementRule("home-articles", "home page has at least two <article>", "article", at_least(2), scope=HOME),
        ElementRule("home-aside", "home page has an <aside>", "aside", scope=HOME),
        ElementRule("home-footer", "home page has a <footer>", "footer", scope=HOME),
        ElementRule(
            "article-content",
            'each <article> has an <h2>, a <p> and an <a class="button">',
            "article",
            at_least(0),
            children=(
                ChildRequirement("h2"),
                ChildRequirement("p"),
                ChildRequirement("a.button"),
            ),
            scope=HOME,
        ),
        ElementRule(
            "picture-sources",
            "<picture> has three <source> elements with media and srcset",
            "picture > source",
            at_least(3),
            attributes=("media", "srcset"),
            scope=HOME,
        ),
        ElementRule("contact-svg", "contact page loads an SVG with <img>", "img[src$='.svg']", scope=CONTACT),
        ElementRule(
            "hero-content",
            "hero section contains an <h1> and a <p>",
            "section.hero",
            children=(ChildRequirement("h1"), ChildRequirement("p")),
            scope=HOME,
        ),
        ElementRule("cards-count", "cards section holds four .card", "section.cards .card", exactly(4), scope=HOME),
        ElementRule("panels-present", "at least two article.panel", "article.panel", at_least(2), scope=HOME),
        ElementRule(
            "panel-left-once",
            ".left used exactly once inside each panel",
            "article.panel",
            at_least(0),
            children=(ChildRequirement(".left", EXACTLY_ONE),),
            scope=HOME,
        ),
    ]


# ============================================================================
# STYLE RULES
# ============================================================================

def style_rules() -> List[StyleRule]:
    return [
        PatternRule(
            "box-sizing",
            "global box-sizing set to border-box",
            (r"\*\s+\{\s*\n\s+box-sizing:\s+border-box",),
        ),
        PatternRule("root-variables", ":root declares CSS variables", (r":root\s+\{\s*\n\s+--",)),
        declaration_rule(
            "body-typography",
            "font-family, color and line-height set on body",
            r"body\s+",
            ("font-family:", "color:", "line-height:"),
        ),
        PatternRule(
            "link-underline",
            "underlines removed from <a>",
            (r"^a\s[^}]+text-decoration:\s+none",),
            flags=re.MULTILINE,
        ),
        PatternRule(
            "link-hover",
            "a[href]:hover declaration block",
            (r"^a\[href\]:hover\s+\{$",),
            flags=re.MULTILINE,
        ),
        PatternRule("button-base", ".button declaration", (r"\.button\s*\{.*",)),
        PatternRule("button-hover", ".button:hover declaration", (r"\.button:hover\s*\{.*",)),
        PatternRule(
            "hero-heading-clamp",
            "hero h1 font-size uses clamp()",
            (r"\.hero h1\s*\{[^}]+font-size:\s*clamp\(",),
        ),
        CountRule(
            "min-width-breakpoints",
            "at least two min-width media queries",
            r"@media\s*\(min-width",
            minimum=2,
        ),
        declaration_rule(
            "body-flex",
            "body is a flex column",
            r"body\s*",
            (r"display:\s+flex", r"flex-direction:\s+column"),
            flags=re.MULTILINE,
        ),
        declaration_rule("main-max-width", "main has max-width set", r"main\s*", (r"max-width\s*:",), flags=re.MULTILINE),
    ]


# ============================================================================
# IMAGE RULES
# ============================================================================

def _decodable(record: ImageRecord, config: SiteConfig) -> Tuple[bool, Dict[str, object]]:
    if record.decoded:
        return True, {"observed": f"{record.intrinsic_width}x{record.intrinsic_height}"}
    return False, {"observed": record.decode_error}


def _lowercase(record: ImageRecord, config: SiteConfig) -> Tuple[bool, Dict[str, object]]:
    if record.is_lowercase:
        return True, {"observed": "lowercase, no whitespace"}
    return False, {"observed": "uppercase or whitespace in path"}


def _under_assets(record: ImageRecord, config: SiteConfig) -> Tuple[bool, Dict[str, object]]:
    observed = "inside" if record.is_under_assets else "outside"
    return record.is_under_assets, {"observed": observed, "expected": config.assets_prefix}


def _max_width(record: ImageRecord, config: SiteConfig) -> Tuple[bool, Dict[str, object]]:
    passed = record.intrinsic_width <= config.max_image_width
    return passed, {"observed": record.intrinsic_width, "expected": config.max_image_width}


def _declared(axis: str):
    def check(record: ImageRecord, config: SiteConfig) -> Tuple[bool, Dict[str, object]]:
        declared = getattr(record, f"declared_{axis}")
        intrinsic = getattr(record, f"intrinsic_{axis}")
        values = {
            "observed": "missing" if declared is None else declared,
            "expected": intrinsic,
            "detail": f"; exempt ({record.kind.value})" if record.is_exempt else "",
        }
        return record.is_exempt or declared == intrinsic, values
    return check


def image_rules() -> List[ImageRule]:
    return [
        ImageRule(
            "image-decodable",
            "image file exists and can be decoded",
            _decodable,
            message="{path}: {observed}",
        ),
        ImageRule(
            "image-path-lowercase",
            "image paths are lowercase with no whitespace",
            _lowercase,
            message="{path}: {observed}",
        ),
        ImageRule(
            "image-path-assets",
            "images are referenced relatively from the assets directory",
            _under_assets,
            message="{path}: {observed} '{expected}'",
        ),
        ImageRule(
            "image-max-width",
            "images are at most the configured width",
            _max_width,
            message="{path}: intrinsic width {observed}px, expected at most {expected}px",
            needs_pixels=True,
        ),
        ImageRule(
            "image-declared-width",
            "<img> width attribute equals the intrinsic width",
            _declared("width"),
            message="{path}: declared width {observed}, intrinsic width {expected}{detail}",
            needs_pixels=True,
        ),
        ImageRule(
            "image-declared-height",
            "<img> height attribute equals the intrinsic height",
            _declared("height"),
            message="{path}: declared height {observed}, intrinsic height {expected}{detail}",
            needs_pixels=True,
        ),
    ]


# ============================================================================
# CATALOGUE
# ============================================================================

@dataclass(frozen=True)
class RuleCatalogue:
    """Validated, immutable set of rules grouped by engine."""
    structural: Tuple[StructuralRule, ...]
    style: Tuple[StyleRule, ...]
    image: Tuple[ImageRule, ...]

    def all_rules(self) -> List[Rule]:
        return [*self.structural, *self.style, *self.image]

    def get(self, rule_id: str) -> Rule:
        for rule in self.all_rules():
            if rule.id == rule_id:
                return rule
        raise KeyError(rule_id)

    def counts(self) -> Dict[str, int]:
        return {"structure": len(self.structural), "style": len(self.style), "image": len(self.image)}


def build_catalogue(
    structural: Iterable[StructuralRule],
    style: Iterable[StyleRule],
    image: Iterable[ImageRule],
    identities: Iterable[str] = tuple(DEFAULT_PAGES),
) -> RuleCatalogue:
    """Assemble a catalogue, rejecting duplicate ids and unknown scopes."""
    catalogue = RuleCatalogue(tuple(structural), tuple(style), tuple(image))
    known = set(identities)
    seen = set()
    for rule in catalogue.all_rules():
        if rule.id in seen:
            raise ConfigurationError("duplicate rule id", rule.id)
        seen.add(rule.id)
        unknown = [name for name in getattr(rule, "scope", ()) if name not in known]
        if unknown:
            raise ConfigurationError(f"scope names unknown documents {unknown}", rule.id)
    return catalogue


def load_catalogue() -> RuleCatalogue:
    catalogue = build_catalogue(structural_rules(), style_rules(), image_rules())
    logger.info("catalogue_loaded", **catalogue.counts())
    return catalogue


CATALOGUE = load_catalogue()
