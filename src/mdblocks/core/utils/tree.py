"""Generic traversal helpers over parsed HTML trees"""

from typing import Callable, Iterator, TypeVar

from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement


T = TypeVar("T")


def parse_fragment(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def walk(node: PageElement) -> Iterator[PageElement]:
    """Yield node and its descendants in document (pre-)order."""
    yield node
    if isinstance(node, Tag):
        for child in list(node.children):
            yield from walk(child)


def fold(root: PageElement, fn: Callable[[T, PageElement], T], acc: T) -> T:
    """Left fold over root and its descendants in document order."""
    for node in walk(root):
        acc = fn(acc, node)
    return acc
