"""Markdown -> sanitized HTML compiler

Stages, in order:
1. strip front matter, parse with markdown-it (GFM tables, strikethrough, task lists)
2. replace registered fences with block placeholder tokens (raw body kept)
3. render; placeholders are emitted as literal HTML, escaped once
4. sanitize against the allow-list
"""

import logging
from typing import Optional

from mdblocks.core.blocks.registry import BlockRegistry, default_registry
from mdblocks.core.models import CompiledDocument
from mdblocks.core.parse import extract_frontmatter, get_parser, strip_frontmatter
from mdblocks.core.sanitize import sanitize_html


logger = logging.getLogger(__name__)

MD_TO_HTML_ERROR = "<p>Error converting Markdown to HTML</p>"


def render_html(body: str, registry: Optional[BlockRegistry] = None, preset: str = "gfm-like") -> str:
    """Render and sanitize a markdown body (no front matter handling, may raise)."""
    md = get_parser(preset, registry or default_registry())
    return sanitize_html(md.render(body))


def _safe_render(body: str, registry: Optional[BlockRegistry], preset: str) -> str:
    try:
        return render_html(body, registry, preset)
    except Exception:
        logger.exception("Error converting Markdown to HTML")
        return MD_TO_HTML_ERROR


def md_to_html(markdown: str, registry: Optional[BlockRegistry] = None, preset: str = "gfm-like") -> str:
    """Compile markdown to sanitized HTML; never raises."""
    return _safe_render(strip_frontmatter(markdown), registry, preset)


def compile_document(
    markdown: str,
    registry: Optional[BlockRegistry] = None,
    preset: str = "gfm-like",
    ) -> CompiledDocument:
    """Compile markdown and return the parsed front matter alongside the HTML.

    Invalid YAML front matter is reported as an empty mapping; the body still compiles.
    """
    try:
        frontmatter, body = extract_frontmatter(markdown)
    except ValueError:
        logger.warning("Ignoring invalid front matter", exc_info=True)
        frontmatter, body = {}, strip_frontmatter(markdown)
    return CompiledDocument(frontmatter=frontmatter, html=_safe_render(body, registry, preset))
