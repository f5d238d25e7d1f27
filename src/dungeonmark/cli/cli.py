"""CLI entrypoint: Typer app definition and command registration"""

import logging
from typing import Annotated

import typer

from dungeonmark.cli.commands import build_cmd, dump_cmd, toc_cmd


app = typer.Typer(name="dungeonmark", no_args_is_help=True, help="Compile a markdown journal and render it")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log pipeline progress")] = False,
    ):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


app.command(name="build")(build_cmd)
app.command(name="toc")(toc_cmd)
app.command(name="dump")(dump_cmd)
