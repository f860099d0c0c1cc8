"""
Unit tests for the structural rule engine.
"""
from pathlib import Path

import pytest

from sitecheck.config import SiteConfig
from sitecheck.services.catalogue import CATALOGUE
from sitecheck.services.rules import (
    LAST, ChildRequirement, ElementRule, OrderedItem, OrderingRule, exactly, at_least
)
from sitecheck.services.structure import (
    check_element_rule, check_ordering_rule, evaluate_structure
)
from sitecheck.services.loader import parse_document
from sample_site import HOME_HTML, ABOUT_HTML, CONTACT_HTML


def doc(html, name="home", path="index.html"):
    return parse_document(name, path, html)


def page(body, head=""):
    return f"<html><head>{head}</head><body>{body}</body></html>"


STYLESHEET_ORDER = CATALOGUE.get("stylesheet-order")
CONFIG = SiteConfig(site_root=Path("site"))


def links(*hrefs):
    return "".join(f'<link rel="stylesheet" href="{href}">' for href in hrefs)


class TestElementRules:
    """Tests for presence and cardinality rules."""

    def test_exactly_one_h1_passes(self):
        """A single h1 satisfies the exact cardinality."""
        rule = CATALOGUE.get("single-h1")
        passed, message = check_element_rule(rule, doc(page("<h1>A</h1>")))
        assert passed
        assert "found 1" in message

    def test_two_h1_fails(self):
        """Two h1 elements break the exactly-one rule."""
        rule = CATALOGUE.get("single-h1")
        passed, message = check_element_rule(rule, doc(page("<h1>A</h1><h1>B</h1>")))
        assert not passed
        assert message == "home: expected exactly 1 'h1', found 2"

    def test_missing_h1_fails(self):
        """No h1 at all also fails."""
        rule = CATALOGUE.get("single-h1")
        passed, _ = check_element_rule(rule, doc(page("<p>no heading</p>")))
        assert not passed

    def test_child_combinator(self):
        """header > nav must be a direct child."""
        rule = CATALOGUE.get("header-nav")
        nested = doc(page("<header><div><nav></nav></div></header>"))
        direct = doc(page("<header><nav></nav></header>"))
        assert not check_element_rule(rule, nested)[0]
        assert check_element_rule(rule, direct)[0]

    def test_minimum_count(self):
        """At-least-N rules fail below N."""
        rule = CATALOGUE.get("home-articles")
        passed, message = check_element_rule(rule, doc(page("<article></article>")))
        assert not passed
        assert "expected at least 2 'article', found 1" in message

    def test_required_attributes(self):
        """Every <source> must carry media and srcset."""
        rule = CATALOGUE.get("picture-sources")
        html = page(
            "<picture>"
            '<source media="(min-width: 1px)" srcset="a.jpg">'
            '<source media="(min-width: 2px)" srcset="b.jpg">'
            '<source srcset="c.jpg">'
            "</picture>"
        )
        passed, message = check_element_rule(rule, doc(html))
        assert not passed
        assert "picture > source #3 is missing 'media'" in message

    def test_descendant_requirements(self):
        """Each article needs an h2, a p and an a.button."""
        rule = CATALOGUE.get("article-content")
        html = page(
            '<article><h2>A</h2><p>x</p><a class="button" href="#">go</a></article>'
            "<article><h2>B</h2><p>y</p><a href='#'>plain link</a></article>"
        )
        passed, message = check_element_rule(rule, doc(html))
        assert not passed
        assert "article #2" in message
        assert "0 'a.button'" in message
        assert "article #1" not in message

    def test_scenario_panel_with_two_lefts(self):
        """Three panels where the third holds two .left yields one failure naming it."""
        html = page(
            '<article class="panel"><p class="left">a</p></article>'
            '<article class="panel"><p class="left">b</p></article>'
            '<article class="panel"><p class="left">c</p><p class="left">d</p></article>'
        )
        context_doc = doc(html)
        rule = CATALOGUE.get("panel-left-once")
        passed, message = check_element_rule(rule, context_doc)
        assert not passed
        assert "article.panel #3" in message
        assert "contains 2 '.left', expected exactly 1" in message
        assert "#1" not in message and "#2" not in message

    def test_custom_rule_message_template(self):
        """Rules can carry their own message template."""
        rule = ElementRule(
            "nav-links", "nav has links", "nav a", at_least(3),
            message="{artifact} nav has {observed} links, wants {expected}",
        )
        passed, message = check_element_rule(rule, doc(page("<nav><a>1</a></nav>")))
        assert not passed
        assert message == "home nav has 1 links, wants at least 3"


class TestOrderingRules:
    """Tests for the stylesheet ordering rule."""

    NORMALIZE = "https://cdn.example.com/normalize.min.css"
    FONTS = "https://fonts.googleapis.com/css2?family=Lato"

    def test_correct_order_home(self):
        """normalize, fonts, main passes on the home page."""
        html = page("", links(self.NORMALIZE, self.FONTS, "styles/main.css"))
        passed, message = check_ordering_rule(STYLESHEET_ORDER, doc(html), CONFIG)
        assert passed
        assert "styles/main.css" in message

    def test_correct_order_subpage(self):
        """Sub pages reference the site stylesheet with ../"""
        html = page("", links(self.NORMALIZE, self.FONTS, "../styles/main.css"))
        assert check_ordering_rule(STYLESHEET_ORDER, doc(html, "about", "about/index.html"), CONFIG)[0]

    def test_extra_sheets_in_between(self):
        """Only the last stylesheet must be the site stylesheet."""
        html = page("", links(self.NORMALIZE, self.FONTS, "styles/extra.css", "styles/main.css"))
        assert check_ordering_rule(STYLESHEET_ORDER, doc(html), CONFIG)[0]

    def test_site_sheet_not_last(self):
        """A stylesheet after the site stylesheet breaks the positional rule."""
        html = page("", links(self.NORMALIZE, self.FONTS, "styles/main.css", "styles/extra.css"))
        passed, message = check_ordering_rule(STYLESHEET_ORDER, doc(html), CONFIG)
        assert not passed
        assert "last is 'styles/extra.css'" in message

    def test_swapped_first_two(self):
        """Fonts before normalize fails both indexed positions."""
        html = page("", links(self.FONTS, self.NORMALIZE, "styles/main.css"))
        passed, message = check_ordering_rule(STYLESHEET_ORDER, doc(html), CONFIG)
        assert not passed
        assert "#1 is" in message
        assert "#2 is" in message

    def test_too_few_sheets(self):
        """With two links the last one cannot also be the fonts sheet."""
        html = page("", links(self.NORMALIZE, self.FONTS))
        passed, message = check_ordering_rule(STYLESHEET_ORDER, doc(html), CONFIG)
        assert not passed
        assert "need at least 3" in message
        assert "no site stylesheet at position last" in message

    def test_no_sheets(self):
        """A page with no stylesheets reports every position missing."""
        passed, message = check_ordering_rule(STYLESHEET_ORDER, doc(page("")), CONFIG)
        assert not passed
        assert "no normalize stylesheet at position #1" in message

    def test_home_link_with_parent_prefix_fails(self):
        """The home page must not reach the site stylesheet through ../"""
        html = page("", links(self.NORMALIZE, self.FONTS, "../styles/main.css"))
        passed, message = check_ordering_rule(STYLESHEET_ORDER, doc(html), CONFIG)
        assert not passed
        assert "last is '../styles/main.css', not the site stylesheet ('styles/main.css')" in message

    def test_subpage_link_without_parent_prefix_fails(self):
        """A sub page linking styles/main.css points inside its own directory."""
        html = page("", links(self.NORMALIZE, self.FONTS, "styles/main.css"))
        passed, message = check_ordering_rule(STYLESHEET_ORDER, doc(html, "about", "about/index.html"), CONFIG)
        assert not passed
        assert "('../styles/main.css')" in message

    def test_configured_stylesheet(self):
        """The last link must match the configured stylesheet, not a fixed name."""
        config = SiteConfig(site_root=Path("site"), stylesheet="css/site.css")
        custom = page("", links(self.NORMALIZE, self.FONTS, "../css/site.css"))
        default = page("", links(self.NORMALIZE, self.FONTS, "../styles/main.css"))
        assert check_ordering_rule(STYLESHEET_ORDER, doc(custom, "about", "about/index.html"), config)[0]
        assert not check_ordering_rule(STYLESHEET_ORDER, doc(default, "about", "about/index.html"), config)[0]

    def test_alternate_stylesheets_are_not_counted(self):
        """Only rel="stylesheet" links take part in the ordering."""
        head = links(self.NORMALIZE, self.FONTS, "styles/main.css")
        head += '<link rel="alternate stylesheet" href="styles/print.css">'
        assert check_ordering_rule(STYLESHEET_ORDER, doc(page("", head)), CONFIG)[0]

    def test_last_only_rule(self):
        """A LAST-only rule over selected nodes needs a single node."""
        rule = OrderingRule(
            "last-script", "last script is app.js",
            items=(OrderedItem(LAST, r"app\.js$", "app script"),),
            selector="script",
            attribute="src",
        )
        html = page('<script src="vendor.js"></script><script src="app.js"></script>')
        assert rule.minimum_length == 1
        assert check_ordering_rule(rule, doc(html), CONFIG)[0]


class TestEvaluateStructure:
    """Tests for running structural rules across documents."""

    def pages(self):
        return {
            "home": ("index.html", HOME_HTML),
            "about": ("about/index.html", ABOUT_HTML),
            "contact": ("contact/index.html", CONTACT_HTML),
        }

    def test_sample_site_passes(self, make_context):
        """The sample pages satisfy every structural rule."""
        results = evaluate_structure(make_context(self.pages()), CATALOGUE.structural)
        failures = [r for r in results if not r.passed]
        assert failures == []

    def test_scoped_rules_only_hit_their_documents(self, make_context):
        """Home-only rules produce one result, global rules one per document."""
        results = evaluate_structure(make_context(self.pages()), CATALOGUE.structural)
        assert [r.artifact_id for r in results if r.rule_id == "cards-count"] == ["home"]
        assert [r.artifact_id for r in results if r.rule_id == "contact-svg"] == ["contact"]
        assert [r.artifact_id for r in results if r.rule_id == "single-h1"] == ["home", "about", "contact"]

    def test_scenario_missing_title(self, make_context):
        """A page without <title> fails only the title rule among head rules."""
        pages = self.pages()
        pages["about"] = ("about/index.html", ABOUT_HTML.replace("<title>About</title>", ""))
        results = evaluate_structure(make_context(pages), CATALOGUE.structural)
        failures = [r for r in results if not r.passed]
        assert len(failures) == 1
        assert failures[0].rule_id == "head-title"
        assert failures[0].artifact_id == "about"

    def test_rule_major_order(self, make_context):
        """Results run rule by rule, documents in configured order."""
        results = evaluate_structure(make_context(self.pages()), CATALOGUE.structural)
        assert [(r.rule_id, r.artifact_id) for r in results[:4]] == [
            ("head-title", "home"),
            ("head-title", "about"),
            ("head-title", "contact"),
            ("head-meta-description", "home"),
        ]

    def test_missing_document_reports_absence(self, make_context):
        """A configured page that did not load fails every rule in its scope."""
        context = make_context(self.pages())
        pages = dict(context.config.pages)
        pages["extra"] = "extra/index.html"
        config = type(context.config)(site_root=context.config.site_root, pages=pages)
        context = type(context)(
            config=config,
            documents=context.documents,
            stylesheet=context.stylesheet,
            decoder=context.decoder,
        )
        rule = ElementRule("any-h1", "h1 present", "h1")
        results = evaluate_structure(context, [rule])
        extra = [r for r in results if r.artifact_id == "extra"]
        assert len(extra) == 1
        assert not extra[0].passed
        assert "document unavailable" in extra[0].message

    def test_evaluation_continues_after_failures(self, make_context):
        """Every rule is evaluated even when earlier ones fail."""
        pages = {"home": ("index.html", page(""))}
        rules = [
            ElementRule("r1", "h1", "h1", exactly(1)),
            ElementRule("r2", "main", "main"),
            ElementRule("r3", "body", "body", children=(ChildRequirement("p"),)),
        ]
        results = evaluate_structure(make_context(pages), rules)
        assert [r.rule_id for r in results] == ["r1", "r2", "r3"]
        assert not any(r.passed for r in results)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
