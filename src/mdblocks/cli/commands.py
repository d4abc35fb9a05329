"""CLI command implementations"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from mdblocks.config import Settings, load_config
from mdblocks.core.blocks.editor import list_blocks, locate_block, read_block, replace_payload
from mdblocks.core.blocks.registry import default_registry
from mdblocks.core.compile.html_to_md import html_to_md
from mdblocks.core.compile.md_to_html import md_to_html
from mdblocks.core.parse import discover_files
from mdblocks.core.utils.diff import drift_counts, unified_diff
from mdblocks.errors import BlockValidationError, CompileError
from mdblocks.worker.manager import CompilerExecutionManager


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _read(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot read {path}", e)


def _read_json(path: str) -> Any:
    try:
        return json.loads(_read(path))
    except ValueError as e:
        _fail(f"Invalid JSON in {path}", e)


def _write_or_echo(text: str, out: Optional[str]) -> None:
    if out:
        Path(out).write_text(text, encoding="utf-8")
        typer.echo(f"Wrote {out}")
    else:
        typer.echo(text, nl=False)


def main_callback(
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING, ERROR")] = None,
    ):
    """Markdown <-> HTML compiler with lossless JSON blocks."""
    settings = _settings(overrides={"log_level": log_level.upper() if log_level else None})
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def to_html_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file to compile")],
    out: Annotated[Optional[str], typer.Option("--out", help="Output file (default: stdout)")] = None,
    ):
    """Compile Markdown to sanitized HTML with block placeholders."""
    settings = _settings()
    _write_or_echo(md_to_html(_read(path), preset=settings.parser_config), out)


def to_md_cmd(
    path: Annotated[str, typer.Argument(help="HTML file to convert")],
    out: Annotated[Optional[str], typer.Option("--out", help="Output file (default: stdout)")] = None,
    ):
    """Convert HTML (with block placeholders) back to Markdown."""
    _write_or_echo(html_to_md(_read(path)), out)


def roundtrip_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or directory of .md/.mdx files")],
    ):
    """Compile twice through HTML and report any drift between passes."""
    settings = _settings()
    files = discover_files(Path(path))
    if not files:
        _fail(f"No Markdown files found at {path}")

    drifted = 0
    for f in files:
        first = html_to_md(md_to_html(_read(str(f)), preset=settings.parser_config))
        second = html_to_md(md_to_html(first, preset=settings.parser_config))
        drift = unified_diff(first, second, from_label=f"{f}:pass-1", to_label=f"{f}:pass-2")
        if drift:
            drifted += 1
            typer.echo("".join(drift), nl=False)
            counts = drift_counts(first, second)
            typer.echo(f"Drift in {f} - {counts['added']} added, {counts['deleted']} deleted")

    if drifted:
        _fail(f"{drifted} of {len(files)} file(s) drifted after the first pass")
    typer.echo(f"Stable - {len(files)} file(s), no drift after the first pass.")


def types_cmd():
    """List recognized block types; '*' marks types with a schema."""
    registry = default_registry()
    for name in sorted(registry.list_types()):
        mark = "*" if registry.get_schema(name) else " "
        typer.echo(f"{mark} {name}")


def validate_cmd(
    block_type: Annotated[str, typer.Argument(help="Block type, e.g. card")],
    json_path: Annotated[str, typer.Argument(help="JSON file with the payload")],
    ):
    """Validate a block payload against its schema."""
    result = default_registry().validate(block_type, _read_json(json_path))
    if not result.valid:
        for err in result.errors:
            typer.echo(f"  {err}", err=True)
        _fail(f"{block_type} payload is invalid")
    typer.echo(f"{block_type} payload is valid.")


def blocks_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file to scan")],
    ):
    """List blocks in a Markdown file with their line spans and validity."""
    text = _read(path)
    registry = default_registry()
    locations = list_blocks(text, registry)
    if not locations:
        typer.echo("No blocks found.")
        raise typer.Exit(0)
    for loc in locations:
        block = read_block(text, loc.index, registry)
        if block.parse_error:
            status = f"invalid JSON ({block.parse_error})"
        else:
            result = registry.validate(block.block_type, block.payload)
            status = "valid" if result.valid else "; ".join(result.errors)
        if not loc.closed:
            status += " (unclosed, read-only)"
        typer.echo(f"  [{loc.index}] {loc.block_type} lines {loc.start_line + 1}-{loc.end_line + 1}: {status}")


def edit_block_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file containing the block")],
    index: Annotated[int, typer.Argument(help="Ordinal of the block (0-based)")],
    json_path: Annotated[str, typer.Argument(help="JSON file with the new payload")],
    in_place: Annotated[bool, typer.Option("--in-place", help="Rewrite the file instead of printing")] = False,
    ):
    """Replace one block's JSON, leaving every other line untouched."""
    text = _read(path)
    loc = locate_block(text, index)
    if loc is None:
        _fail(f"No block at index {index}")
    if not loc.closed:
        _fail(f"Block {index} has no closing fence; document not changed")
    try:
        updated = replace_payload(text, index, _read_json(json_path))
    except BlockValidationError as e:
        for err in e.errors:
            typer.echo(f"  {err}", err=True)
        _fail(f"{e.block_type} payload is invalid; document not changed")
    _write_or_echo(updated, path if in_place else None)


async def _bench(settings: Settings, markdown: str, runs: int) -> CompilerExecutionManager:
    async with CompilerExecutionManager(settings) as manager:
        for _ in range(runs):
            html = await manager.md_to_html(markdown, debounce_ms=0)
            await manager.html_to_md(html, debounce_ms=0)
        return manager


def bench_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file to compile repeatedly")],
    runs: Annotated[int, typer.Option("--runs", min=1, help="Round trips to run")] = 20,
    ):
    """Run round trips through the execution manager and report latency targets."""
    settings = _settings()
    try:
        manager = asyncio.run(_bench(settings, _read(path), runs))
    except CompileError as e:
        _fail("Benchmark failed", e)
    m = manager.metrics()
    typer.echo(f"count={m.count} p50={m.p50:.1f}ms p95={m.p95:.1f}ms mean={m.average:.1f}ms")
    targets = manager.check_performance_targets()
    for name, ok in targets.items():
        typer.echo(f"  {name}: {'met' if ok else 'MISSED'}")
