"""Source reading and markdown-it tokenizer construction"""

import re
from pathlib import Path

from markdown_it import MarkdownIt

from dungeonmark.errors import ConfigError, LoadError


NEWLINES_RE = re.compile(r'\r\n?')


def make_parser(preset: str = 'gfm-like') -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name.

    Raises ConfigError for a preset name markdown-it does not know.
    """
    try:
        md = MarkdownIt(preset, options_update={"linkify": False})
    except KeyError as e:
        raise ConfigError(f"Unknown parser-config {preset!r} in [build]") from e
    # Link targets in a journal are file paths; keep them exactly as written.
    md.normalizeLink = lambda url: url
    md.validateLink = lambda url: True
    return md


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF, as markdown-it does internally."""
    return NEWLINES_RE.sub('\n', text)


def read_source(path: Path, what: str) -> str:
    """Read a UTF-8 markdown source, raising LoadError naming `what` on failure."""
    try:
        return path.read_text(encoding='utf-8')
    except OSError as e:
        raise LoadError(f"Failed to open {what}: {path}") from e
