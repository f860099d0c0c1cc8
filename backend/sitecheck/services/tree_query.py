"""
Tree query adapter over BeautifulSoup/soupsieve.

Engines only ever select nodes and read attributes; this wrapper is the
single place that knows the tree is a BeautifulSoup object.
"""
from typing import List, Optional, Union

import soupsieve
from bs4 import Tag

Pattern = Union[str, soupsieve.SoupSieve]


def compile_selector(selector: str) -> soupsieve.SoupSieve:
    """Compile a structural selector. Raises soupsieve.SelectorSyntaxError."""
    return soupsieve.compile(selector)


def _compiled(pattern: Pattern) -> soupsieve.SoupSieve:
    if isinstance(pattern, soupsieve.SoupSieve):
        return pattern
    return soupsieve.compile(pattern)


class TreeQuery:
    """Selection and attribute access rooted at one node of one document."""

    def __init__(self, root: Tag):
        self.root = root

    def select_first(self, pattern: Pattern) -> Optional[Tag]:
        return _compiled(pattern).select_one(self.root)

    def select_all(self, pattern: Pattern) -> List[Tag]:
        return list(_compiled(pattern).select(self.root))

    def count(self, pattern: Pattern) -> int:
        return len(self.select_all(pattern))

    @staticmethod
    def attribute(node: Tag, name: str) -> Optional[str]:
        """Attribute value as a string; multi-valued attributes are space-joined."""
        value = node.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    @staticmethod
    def describe(node: Tag) -> str:
        """Short 'tag#id.class' label for diagnostics."""
        label = node.name or "?"
        node_id = node.get("id")
        if node_id:
            label += f"#{node_id}"
        classes = node.get("class") or []
        if classes:
            label += "." + ".".join(classes)
        return label
