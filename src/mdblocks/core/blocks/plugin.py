"""markdown-it plugin turning registered fences into block placeholders"""

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore

from mdblocks.core.blocks.codec import encode_placeholder
from mdblocks.core.blocks.registry import BlockRegistry


def fence_name(info: str) -> str:
    """First word of a fence info string ('' when absent)."""
    parts = info.strip().split(maxsplit=1)
    return parts[0] if parts else ''


def fence_body(content: str) -> str:
    """Fence token content minus the newline markdown-it appends."""
    return content[:-1] if content.endswith('\n') else content


def _render_placeholder(self, tokens, idx, options, env) -> str:
    meta = tokens[idx].meta
    return encode_placeholder(meta["block_type"], meta["raw"]) + "\n"


def blocks_plugin(md: MarkdownIt, registry: BlockRegistry) -> None:
    """Replace fence tokens whose info names a block type, recording the raw body."""

    def block_placeholders(state: StateCore) -> None:
        for token in state.tokens:
            if token.type != 'fence':
                continue
            name = fence_name(token.info)
            if registry.is_block_type(name):
                token.type = 'block_placeholder'
                token.meta = {"block_type": name, "raw": fence_body(token.content)}

    md.core.ruler.push('block_placeholders', block_placeholders)
    md.add_render_rule('block_placeholder', _render_placeholder)
