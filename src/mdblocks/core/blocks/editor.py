"""Block editor service: locate a block by ordinal and rewrite only its JSON

Only fences whose info string names a recognized block type are counted, so
ordinals line up with the placeholders produced by the forward compiler.
Unclosed fences still take an ordinal but are never rewritten.
"""

import json
import re
from typing import Any, Optional

from mdblocks.core.blocks.codec import parse_block
from mdblocks.core.blocks.registry import BlockRegistry, default_registry
from mdblocks.core.models import Block, BlockLocation
from mdblocks.core.parse import get_parser
from mdblocks.errors import BlockValidationError


_LINE_RE = re.compile(r'[^\n]*\n|[^\n]+$')


def _split_lines(text: str) -> list[str]:
    """Split on '\\n' only, keeping line endings (markdown-it's line model)."""
    return _LINE_RE.findall(text)


def _body_prefix(opening: str, markup: str) -> str:
    """Container prefix for body lines: blockquote markers kept, list markers blanked."""
    lead = opening[:opening.find(markup)] if markup in opening else ''
    return ''.join(c if c in ' \t>' else ' ' for c in lead)


def _is_closing(line: str, markup: str) -> bool:
    s = line.rstrip('\r\n').lstrip(' \t>').rstrip()
    return len(s) >= len(markup) and set(s) == {markup[0]}


def _scan(markdown: str, registry: BlockRegistry) -> list[tuple[BlockLocation, str]]:
    """(location, raw body) for each block fence, in document order."""
    lines = _split_lines(markdown)
    found: list[tuple[BlockLocation, str]] = []
    for tok in get_parser(registry=registry).parse(markdown):
        if tok.type != 'block_placeholder' or not tok.map:
            continue
        start, end = tok.map
        closing = min(end, len(lines)) - 1
        closed = closing > start and _is_closing(lines[closing], tok.markup)
        loc = BlockLocation(
            index=len(found),
            block_type=tok.meta["block_type"],
            start_line=start,
            end_line=max(closing, start),
            prefix=_body_prefix(lines[start], tok.markup),
            closed=closed,
        )
        found.append((loc, tok.meta["raw"]))
    return found


def list_blocks(markdown: str, registry: Optional[BlockRegistry] = None) -> list[BlockLocation]:
    """Locations of every block fence in markdown."""
    return [loc for loc, _ in _scan(markdown, registry or default_registry())]


def locate_block(markdown: str, index: int, registry: Optional[BlockRegistry] = None) -> Optional[BlockLocation]:
    """Opening/closing fence lines of the index-th block, or None."""
    if index < 0:
        return None
    blocks = list_blocks(markdown, registry)
    return blocks[index] if index < len(blocks) else None


def read_block(markdown: str, index: int, registry: Optional[BlockRegistry] = None) -> Optional[Block]:
    """The index-th block with its raw body and tolerant JSON parse, or None."""
    scanned = _scan(markdown, registry or default_registry())
    if not 0 <= index < len(scanned):
        return None
    loc, raw = scanned[index]
    return parse_block(loc.block_type, raw)


def replace_payload(
    markdown: str,
    index: int,
    new_payload: Any,
    registry: Optional[BlockRegistry] = None,
    ) -> str:
    """Replace the body of the index-th block with pretty-printed new_payload.

    Returns markdown unchanged when the block does not exist or its fence
    is never closed. Raises
    BlockValidationError (document untouched) when new_payload fails the
    block type's schema. Every line outside the block body is kept verbatim.
    """
    registry = registry or default_registry()
    loc = locate_block(markdown, index, registry)
    if loc is None or not loc.closed:
        return markdown

    result = registry.validate(loc.block_type, new_payload)
    if not result.valid:
        raise BlockValidationError(loc.block_type, result.errors)

    lines = _split_lines(markdown)
    eol = '\r\n' if lines[loc.start_line].endswith('\r\n') else '\n'
    body = [
        f"{loc.prefix}{line}{eol}"
        for line in json.dumps(new_payload, indent=2, ensure_ascii=False).split('\n')
    ]
    return ''.join(lines[:loc.start_line + 1] + body + lines[loc.end_line:])
