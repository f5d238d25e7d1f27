"""Peekable cursor over a flattened markdown-it event stream"""

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from markdown_it import MarkdownIt
from markdown_it.token import Token

from dungeonmark.core.parse import make_parser, normalize_newlines


@dataclass(frozen=True)
class Position:
    line: int
    column: int

    def __str__(self) -> str:
        return f"line: {self.line}, column: {self.column}"


@dataclass(frozen=True, eq=False)
class Event:
    """A single token and the [start, end) character span of source it covers."""
    token: Token
    start: int
    end: int

    @property
    def type(self) -> str:
        return self.token.type


def position_at(source: str, offset: int) -> Position:
    """1-based line and column of `offset` within `source`."""
    line = source.count('\n', 0, offset) + 1
    column = offset - source.rfind('\n', 0, offset)
    return Position(line, column)


def _line_starts(source: str) -> list[int]:
    starts = [0]
    starts.extend(i + 1 for i, ch in enumerate(source) if ch == '\n')
    if not source.endswith('\n'):
        starts.append(len(source))
    return starts


def _inline_start(token: Token, source: str, start: int, end: int) -> int:
    """Offset of the first line of inline content, past any list or quote markers."""
    first_line = token.content.split('\n', 1)[0]
    found = source.find(first_line, start, end) if first_line else -1
    return start if found == -1 else found


def iter_events(tokens: Iterable[Token], source: str) -> Iterator[Event]:
    """Flatten block tokens and inline children into one ordered event stream.

    Block tokens take their span from token.map; closing tokens reuse their opener's span;
    inline children replace their `inline` token and start where its content starts.
    """
    starts = _line_starts(source)
    last = len(starts) - 1
    openers: list[tuple[int, int]] = []
    span = (0, 0)

    for token in tokens:
        if token.nesting == -1 and openers:
            span = openers.pop()
        elif token.map:
            begin, end = token.map
            span = (starts[min(begin, last)], starts[min(end, last)])
        if token.nesting == 1:
            openers.append(span)

        if token.type == 'inline':
            start = _inline_start(token, source, *span)
            for child in token.children or []:
                yield Event(child, start, span[1])
        else:
            yield Event(token, *span)


class EventCursor:
    """Peekable event stream that remembers where the last consumed event started."""

    def __init__(self, source: str, parser: Optional[MarkdownIt] = None):
        self.source = normalize_newlines(source)
        tokens = (parser or make_parser()).parse(self.source)
        self._events = list(iter_events(tokens, self.source))
        self._index = 0
        self._offset = 0

    def peek(self) -> Optional[Event]:
        """Return the next event without consuming it."""
        if self._index < len(self._events):
            return self._events[self._index]
        return None

    def next(self) -> Optional[Event]:
        """Consume and return the next event."""
        event = self.peek()
        if event is not None:
            self._index += 1
            self._offset = event.start
        return event

    def position(self) -> Position:
        """Line and column of the last consumed event."""
        return position_at(self.source, self._offset)

    def collect_until(self, predicate: Callable[[Event], bool]) -> list[Event]:
        """Consume events until `predicate` matches; the matching event is left unconsumed."""
        events = []
        while (event := self.peek()) is not None and not predicate(event):
            events.append(self.next())
        return events

    def consume_until(self, predicate: Callable[[Event], bool]) -> list[Event]:
        """Consume events through the first match of `predicate`; the match is not returned."""
        events = []
        while (event := self.next()) is not None and not predicate(event):
            events.append(event)
        return events

    def source_text(self, events: list[Event]) -> str:
        """Source markdown covered by `events`, trailing whitespace stripped."""
        if not events:
            return ''
        start = min(e.start for e in events)
        end = max(e.end for e in events)
        return self.source[start:end].rstrip()


def render_text(events: Iterable[Event], softbreak: str = '') -> str:
    """Plain text of inline events: text and code spans, breaks replaced by `softbreak`."""
    parts = []
    for event in events:
        if event.type in ('text', 'code_inline'):
            parts.append(event.token.content)
        elif event.type in ('softbreak', 'hardbreak'):
            parts.append(softbreak)
        elif event.type == 'image':
            parts.append(event.token.content)
    return ''.join(parts)
