"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from dungeonmark.config import load_config
from dungeonmark.core.extract.toc import load_toc
from dungeonmark.core.parse import make_parser
from dungeonmark.core.pipeline import JournalBuilder
from dungeonmark.errors import DungeonMarkError


RootArg = Annotated[Path, typer.Argument(help="Journal root (directory holding journal.toml)")]


def _fail(msg: str, cause: BaseException = None) -> None:
    """Print a user-friendly error and its cause chain to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    while cause is not None:
        typer.echo(f"  caused by: {cause}", err=True)
        cause = cause.__cause__
    raise typer.Exit(1)


def _builder(root: Path, overrides: dict = None) -> JournalBuilder:
    """Load config and TOC with standard CLI error handling."""
    try:
        return JournalBuilder.load(root, overrides=overrides)
    except DungeonMarkError as e:
        _fail(str(e), e.__cause__)


def build_cmd(
    root: RootArg = Path("."),
    build_dir: Annotated[Optional[str], typer.Option("--build-dir", help="Parent directory for renderer output")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Run the full pipeline: load -> preprocess -> parse -> transform -> render."""
    builder = _builder(root, overrides={"build_dir": build_dir, "parser_config": parser})
    try:
        destinations = builder.build()
    except DungeonMarkError as e:
        _fail(str(e), e.__cause__)
    for destination in destinations:
        typer.echo(f"  rendered -> {destination}")
    typer.echo(f"Build complete - {len(destinations)} renderer(s) ran")


def toc_cmd(root: RootArg = Path(".")):
    """Print the parsed table of contents as JSON."""
    try:
        config = load_config(root)
        toc = load_toc(root / config.journal.source, make_parser(config.build.parser_config))
    except DungeonMarkError as e:
        _fail(str(e), e.__cause__)
    typer.echo(toc.model_dump_json(indent=2))


def dump_cmd(
    root: RootArg = Path("."),
    out: Annotated[Optional[Path], typer.Option("--out", "-o", help="Write JSON here instead of stdout")] = None,
    ):
    """Print the compiled journal (what renderers receive) as JSON."""
    builder = _builder(root)
    try:
        journal = builder.compile()
    except DungeonMarkError as e:
        _fail(str(e), e.__cause__)
    text = journal.model_dump_json(indent=2)
    if out is None:
        typer.echo(text)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    typer.echo(f"Wrote {out}")
