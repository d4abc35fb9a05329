"""Placeholder codec: fenced block <-> inert, non-editable HTML element

The placeholder carries the fence body verbatim in data-json, escaped once.
Decoding returns that text unchanged so key order, spacing and number
spelling survive any number of round trips.
"""

import html
import json
import re
from typing import Any, Union

from bs4 import BeautifulSoup, Tag

from mdblocks.core.models import Block


PLACEHOLDER_CLASS = "shadcn-block-placeholder"
TYPE_ATTR = "data-block-type"
JSON_ATTR = "data-json"

# Block type names must be usable verbatim as a fence info string
BLOCK_TYPE_RE = re.compile(r"[A-Za-z0-9_-]+")


def placeholder_label(block_type: str) -> str:
    return f"[{block_type.upper()} BLOCK]"


def encode_placeholder(block_type: str, payload: Union[str, dict[str, Any]]) -> str:
    """Return the placeholder HTML for a block.

    A str payload is the raw fence body and is embedded as-is (it need not be
    valid JSON); a mapping is serialized as compact JSON.
    """
    raw = payload if isinstance(payload, str) else json.dumps(payload, separators=(",", ":"))
    return (
        f'<div class="{PLACEHOLDER_CLASS}" '
        f'{TYPE_ATTR}="{html.escape(block_type, quote=True)}" '
        f'{JSON_ATTR}="{html.escape(raw, quote=True)}" '
        f'contenteditable="false">{html.escape(placeholder_label(block_type))}</div>'
    )


def is_placeholder(el: Any) -> bool:
    """True for parsed elements that carry a well-formed block type attribute."""
    return isinstance(el, Tag) and valid_block_type(el.get(TYPE_ATTR))


def valid_block_type(block_type: Any) -> bool:
    return isinstance(block_type, str) and BLOCK_TYPE_RE.fullmatch(block_type) is not None


def decode_placeholder(el: Union[Tag, str]) -> Block:
    """Recover (block type, raw body) from a placeholder element or HTML string.

    Attribute entities are decoded by the HTML parser; the body is returned
    exactly as it was embedded, never re-serialized.
    """
    if isinstance(el, str):
        found = BeautifulSoup(el, "html.parser").find(attrs={TYPE_ATTR: True})
        if found is None:
            raise ValueError("No block placeholder found in HTML")
        el = found
    if not isinstance(el, Tag) or not el.has_attr(TYPE_ATTR):
        raise ValueError(f"<{getattr(el, 'name', el)}> is not a block placeholder")
    block_type = el.get(TYPE_ATTR)
    if not valid_block_type(block_type):
        raise ValueError(f"Invalid block type {block_type!r}")
    raw = el.get(JSON_ATTR) or ""
    return parse_block(block_type, raw)


def parse_block(block_type: str, raw: str) -> Block:
    """Tolerant parse of a fence body; malformed JSON sets parse_error instead of raising."""
    return Block.from_raw(block_type, raw)
