"""Front matter handling and markdown-it parser construction"""

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

from mdblocks.core.blocks.plugin import blocks_plugin
from mdblocks.core.blocks.registry import BlockRegistry, default_registry


FRONTMATTER_RE = re.compile(r'^---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)', re.DOTALL)
MD_EXTENSIONS = {'.md', '.mdx'}


def _allow_any_link(url: str) -> bool:
    """Keep every link as a link; the sanitizer removes unsafe schemes."""
    return True


def make_parser(preset: str = 'gfm-like', registry: Optional[BlockRegistry] = None) -> MarkdownIt:
    """Build a MarkdownIt instance with task lists and block placeholders."""
    md = (
        MarkdownIt(preset, options_update={"linkify": False})
        .use(tasklists_plugin)
        .use(blocks_plugin, registry=registry or default_registry())
    )
    md.validateLink = _allow_any_link
    return md


@lru_cache(maxsize=8)
def get_parser(preset: str = 'gfm-like', registry: Optional[BlockRegistry] = None) -> MarkdownIt:
    """Shared parser per (preset, registry); parsing does not mutate it."""
    return make_parser(preset, registry)


def strip_frontmatter(text: str) -> str:
    """Return text without a leading YAML header, without parsing it."""
    m = FRONTMATTER_RE.match(text)
    return text[m.end():] if m else text


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with YAML header removed."""
    m = FRONTMATTER_RE.match(text)
    if m:
        try:
            fm = yaml.safe_load(m.group(1)) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML frontmatter: {e}") from e
        if not isinstance(fm, dict):
            raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
        return fm, text[m.end():]
    return {}, text


def assemble(frontmatter: dict[str, Any], body: str) -> str:
    """Prepend a YAML header to body; no header for an empty mapping."""
    if not frontmatter:
        return body
    header = yaml.safe_dump(frontmatter, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return f"---\n{header}---\n{body}"


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md/.mdx files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)
