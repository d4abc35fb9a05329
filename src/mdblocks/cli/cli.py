"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdblocks.cli.commands import (
    bench_cmd,
    blocks_cmd,
    edit_block_cmd,
    main_callback,
    roundtrip_cmd,
    to_html_cmd,
    to_md_cmd,
    types_cmd,
    validate_cmd,
)


app = typer.Typer(name="mdblocks", no_args_is_help=True, help="Markdown <-> HTML compiler with lossless JSON blocks")

app.callback()(main_callback)
app.command(name="to-html")(to_html_cmd)
app.command(name="to-md")(to_md_cmd)
app.command(name="roundtrip")(roundtrip_cmd)
app.command(name="types")(types_cmd)
app.command(name="validate")(validate_cmd)
app.command(name="blocks")(blocks_cmd)
app.command(name="edit-block")(edit_block_cmd)
app.command(name="bench")(bench_cmd)
