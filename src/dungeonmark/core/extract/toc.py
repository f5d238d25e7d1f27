"""Table of contents parsing: JOURNAL.md list -> ordered TOC items"""

from pathlib import Path
from typing import Optional

from markdown_it import MarkdownIt
from markdown_it.token import Token

from dungeonmark.core.cursor import EventCursor, render_text
from dungeonmark.core.models import Link, SectionTitle, Separator, TableOfContents, TOCItem, maybe_link
from dungeonmark.core.parse import read_source
from dungeonmark.core.utils.tokens import HTML, LIST_CLOSE, LIST_OPEN, closing_type, is_root_heading
from dungeonmark.errors import TOCParseError


TOC_FILE = "JOURNAL.md"


def _is_chapter_heading(token: Token) -> bool:
    return is_root_heading(token, level=1)


class TOCParser:
    """Recursive-descent parser over the event stream of a JOURNAL.md source.

    A leading H1 (comments may precede it) is the journal title. Each further top-level H1
    starts a titled part of the TOC; list items must be links, sub-lists nest under the link
    before them, and thematic breaks become separators.
    """

    def __init__(self, source: str, parser: Optional[MarkdownIt] = None):
        self.cursor = EventCursor(source, parser)

    def parse(self) -> tuple[Optional[str], list[TOCItem]]:
        title = self._parse_title()
        items = self._parse_toc()
        return title, items

    def _parse_title(self) -> Optional[str]:
        while (event := self.cursor.peek()) is not None:
            if _is_chapter_heading(event.token):
                self.cursor.next()
                return self._heading_text()
            if event.type not in HTML:
                return None
            self.cursor.next()  # comments
        return None

    def _parse_toc(self) -> list[TOCItem]:
        items: list[TOCItem] = []
        while (event := self.cursor.peek()) is not None:
            if _is_chapter_heading(event.token):
                self.cursor.next()
                items.append(SectionTitle(title=self._heading_text()))
            items.extend(self._parse_items())
        return items

    def _parse_items(self) -> list[TOCItem]:
        """Parse one run of items, ending at a list close, a chapter heading, or end of input."""
        items: list[TOCItem] = []
        while (event := self.cursor.peek()) is not None:
            token = event.token
            if _is_chapter_heading(token):
                break
            self.cursor.next()

            if token.type == 'list_item_open':
                items.append(self._parse_item())
            elif token.type in LIST_OPEN:
                # only a sub-list directly after a link nests; any other list continues this run
                if items and (link := maybe_link(items[-1])) is not None:
                    link.nested_items = self._parse_items()
            elif token.type in LIST_CLOSE:
                break
            elif token.type == 'hr':
                items.append(Separator())
            elif token.nesting == 1:
                self._skip(token)
        return items

    def _parse_item(self) -> TOCItem:
        while (event := self.cursor.next()) is not None:
            if event.type == 'paragraph_open':
                continue
            if event.type == 'link_open':
                return self._parse_link(event.token.attrGet('href') or '')
            break
        raise self._error("Items in the table of contents must only contain links.")

    def _parse_link(self, href: str) -> Link:
        href = href.replace('%20', ' ')
        events = self.cursor.consume_until(lambda e: e.type == 'link_close')
        name = render_text(events, softbreak=' ')
        return Link(name=name, location=Path(href) if href else None)

    def _heading_text(self) -> str:
        return render_text(self.cursor.consume_until(lambda e: e.type == 'heading_close'))

    def _skip(self, opener: Token) -> None:
        """Consume everything up to and including the token closing `opener`."""
        closer = closing_type(opener)
        while (event := self.cursor.next()) is not None:
            if event.type == closer and event.token.level == opener.level:
                return

    def _error(self, message: str) -> TOCParseError:
        position = self.cursor.position()
        return TOCParseError(message, position.line, position.column)


def parse_toc(source: str, parser: Optional[MarkdownIt] = None) -> TableOfContents:
    """Parse JOURNAL.md source text into a TableOfContents."""
    title, items = TOCParser(source, parser).parse()
    return TableOfContents(title=title, items=items)


def load_toc(source_dir: Path, parser: Optional[MarkdownIt] = None) -> TableOfContents:
    """Read and parse source_dir/JOURNAL.md."""
    path = Path(source_dir) / TOC_FILE
    source = read_source(path, TOC_FILE)
    try:
        return parse_toc(source, parser)
    except TOCParseError as e:
        raise e.with_path(path) from e
