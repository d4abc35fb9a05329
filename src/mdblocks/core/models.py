"""Data models shared by the compilers and the block editor"""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field


class Block(BaseModel):
    """A fenced JSON block: the exact source text plus its tolerant parse."""
    block_type: str
    raw: str                        # fence body, byte-for-byte; always used for output
    payload: Any = None             # parsed JSON, None when raw is not valid JSON
    parse_error: Optional[str] = None

    @classmethod
    def from_raw(cls, block_type: str, raw: str) -> "Block":
        """Parse raw for editing without ever failing on malformed JSON."""
        try:
            return cls(block_type=block_type, raw=raw, payload=json.loads(raw))
        except ValueError as e:
            return cls(block_type=block_type, raw=raw, parse_error=str(e))


class BlockLocation(BaseModel):
    """Line span of a block fence in a markdown source (0-based, inclusive)."""
    index: int
    block_type: str
    start_line: int                 # opening fence line
    end_line: int                   # closing fence line, or last body line when unclosed
    prefix: str = ""                # container indentation/markers before the fence
    closed: bool = True             # False when the fence runs to the end of its container


class CompiledDocument(BaseModel):
    """Forward compile result with the front matter that was stripped."""
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    html: str
