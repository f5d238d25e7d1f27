"""Preprocessing stage: raw entry text transforms that run before parsing"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dungeonmark.config import Config
from dungeonmark.core.cursor import position_at
from dungeonmark.core.models import Journal, JournalEntry
from dungeonmark.core.parse import read_source
from dungeonmark.errors import DirectiveError, LoadError


logger = logging.getLogger(__name__)

OPEN_MARKER = "{{#"
CLOSE_MARKER = "}}"


@dataclass(frozen=True)
class PreprocessorContext:
    root:   Path        # directory holding journal.toml
    config: Config

    @property
    def source_dir(self) -> Path:
        return self.root / self.config.journal.source


class Preprocessor(ABC):
    """Transforms a journal whose entries are still unparsed (raw text in `body`, no sections)."""
    name: str

    @abstractmethod
    def run(self, ctx: PreprocessorContext, journal: Journal) -> Journal:
        raise NotImplementedError


def expand_directives(text: str, entry_dir: Path) -> tuple[str, Optional[str]]:
    """Substitute every `{{#...}}` directive in `text`.

    Returns (rewritten text, title override or None). `{{#title T}}` sets the title and is
    removed; `{{#include path}}` is replaced by that file, resolved against `entry_dir`; any
    other directive is kept verbatim. Included text is not scanned again.
    """
    out: list[str] = []
    title = None
    pos = 0

    while (start := text.find(OPEN_MARKER, pos)) != -1:
        end = text.find(CLOSE_MARKER, pos)
        if end == -1:
            raise _error(text, start, "no matching closing marker for directive")
        if end < start:
            raise _error(text, end, "closing marker found before opening marker")

        directive = text[start:end + len(CLOSE_MARKER)]
        keyword, argument = _split_directive(text[start + len(OPEN_MARKER):end])

        out.append(text[pos:start])
        if keyword == 'title':
            title = argument
        elif keyword == 'include':
            path = entry_dir / argument
            try:
                out.append(read_source(path, "include"))
            except LoadError as e:
                raise _error(text, start, f"failed to include {path}") from e
            logger.debug("Included %s", path)
        else:
            out.append(directive)
        pos = end + len(CLOSE_MARKER)

    out.append(text[pos:])
    return ''.join(out), title


def _split_directive(inner: str) -> tuple[str, str]:
    parts = inner.split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1].strip() if len(parts) > 1 else ""


def _error(text: str, offset: int, message: str) -> DirectiveError:
    position = position_at(text, offset)
    return DirectiveError(message, position.line, position.column)


class DirectivePreprocessor(Preprocessor):
    """Expands `{{#title ...}}` and `{{#include ...}}` directives in entry bodies."""
    name = "directive"

    def run(self, ctx: PreprocessorContext, journal: Journal) -> Journal:
        items = [
            self._expand(ctx, item) if isinstance(item, JournalEntry) else item
            for item in journal.items
        ]
        return journal.model_copy(update={"items": items})

    def _expand(self, ctx: PreprocessorContext, entry: JournalEntry) -> JournalEntry:
        if entry.body is None:
            return entry
        entry_dir = ctx.source_dir / entry.path.parent if entry.path else ctx.source_dir
        try:
            body, title = expand_directives(entry.body, entry_dir)
        except DirectiveError as e:
            if entry.path is None:
                raise
            raise e.with_path(ctx.source_dir / entry.path) from e
        update = {"body": body}
        if title is not None:
            update["title"] = title
        return entry.model_copy(update=update)
