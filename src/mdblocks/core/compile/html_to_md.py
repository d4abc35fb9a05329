"""HTML -> Markdown compiler

Placeholders are matched structurally: each element carrying a block type
becomes a fence at its own position in the tree, with the raw body it
carried. Everything else goes through markdownify with GFM-friendly options.
"""

import logging

from bs4 import Tag
from markdownify import ATX, MarkdownConverter

from mdblocks.core.blocks.codec import decode_placeholder, is_placeholder
from mdblocks.core.models import Block
from mdblocks.core.utils.tree import fold, parse_fragment


logger = logging.getLogger(__name__)

HTML_TO_MD_ERROR = "Error converting HTML to Markdown"


def make_fence(info: str, body: str) -> str:
    """Fence body, using more backticks than any run inside it."""
    longest = run = 0
    for ch in body:
        run = run + 1 if ch == "`" else 0
        longest = max(longest, run)
    ticks = "`" * max(3, longest + 1)
    return f"{ticks}{info}\n{body}\n{ticks}"


def _code_language(el: Tag) -> str:
    for node in [el, *el.find_all("code")]:
        for cls in node.get("class") or []:
            if cls.startswith("language-"):
                return cls[len("language-"):]
    return ""


class BlockMarkdownConverter(MarkdownConverter):
    """markdownify converter that restores block placeholders as fences."""

    def __init__(self, **options):
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        super().__init__(**options)

    def process_tag(self, node, *args, **kwargs):
        if is_placeholder(node):
            return self.convert_block(decode_placeholder(node))
        return super().process_tag(node, *args, **kwargs)

    def convert_block(self, block: Block) -> str:
        return f"\n\n{make_fence(block.block_type, block.raw)}\n\n"

    def convert_pre(self, el, text, parent_tags):
        code = el.get_text()
        if not code:
            return ""
        if code.endswith("\n"):
            code = code[:-1]
        return f"\n\n{make_fence(_code_language(el), code)}\n\n"


def extract_blocks(html: str) -> list[Block]:
    """Decode every placeholder in html, in document order."""
    def collect(acc: list[Block], node) -> list[Block]:
        if is_placeholder(node):
            acc.append(decode_placeholder(node))
        return acc

    return fold(parse_fragment(html), collect, [])


def convert_html(html: str) -> str:
    """Convert html to markdown (may raise)."""
    md = BlockMarkdownConverter().convert_soup(parse_fragment(html))
    md = md.strip("\n")
    return f"{md}\n" if md.strip() else ""


def html_to_md(html: str) -> str:
    """Convert edited HTML back to markdown; never raises."""
    try:
        return convert_html(html)
    except Exception:
        logger.exception("Error converting HTML to Markdown")
        return HTML_TO_MD_ERROR
