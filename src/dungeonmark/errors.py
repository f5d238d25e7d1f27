"""Error types raised by the journal build pipeline"""

from pathlib import Path
from typing import Optional


class DungeonMarkError(Exception):
    """Base class for every error raised while building a journal."""


class LoadError(DungeonMarkError):
    """A TOC, entry, or include file could not be read."""


class ConfigError(DungeonMarkError, ValueError):
    """journal.toml is malformed, or a config value has the wrong shape."""


class ParseError(DungeonMarkError, ValueError):
    """Structural error in a markdown source, located by line and column."""

    def __init__(self, message: str, line: int, column: int, path: Optional[Path] = None):
        self.message = message
        self.line = line
        self.column = column
        self.path = path
        where = f"{path} " if path else ""
        super().__init__(f"failed to parse {where}line: {line}, column: {column}: {message}")

    def with_path(self, path: Path) -> "ParseError":
        """Return a copy of this error that names the file it came from."""
        return type(self)(self.message, self.line, self.column, path)


class TOCParseError(ParseError):
    """JOURNAL.md does not describe a valid table of contents."""


class DirectiveError(ParseError):
    """Unbalanced `{{#...}}` markers, or an include target that cannot be read."""


class RendererError(DungeonMarkError, RuntimeError):
    """An external renderer could not be started or exited unsuccessfully."""
