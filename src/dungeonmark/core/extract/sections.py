"""Section tree building: one entry's event stream -> preamble + nested sections"""

from typing import Optional

from markdown_it import MarkdownIt

from dungeonmark.core.cursor import Event, EventCursor, render_text
from dungeonmark.core.models import JournalEntry, Section, SectionLevel
from dungeonmark.core.utils.tokens import heading_level, is_root_heading


def _is_heading(event: Event) -> bool:
    return is_root_heading(event.token)


class EntryParser:
    """Builds the section tree of a single journal entry.

    Text before the first heading is the preamble. Each heading owns the text up to the next
    heading, and every following heading of a greater level is nested beneath it. Out of order
    levels (H3, H2, H1) are siblings, never re-parented.
    """

    def __init__(self, source: str, parser: Optional[MarkdownIt] = None):
        self.cursor = EventCursor(source, parser)

    def parse(self) -> tuple[Optional[str], list[Section]]:
        body = self._parse_preamble()
        sections = self._parse_sections()
        return body, sections

    def _parse_preamble(self) -> Optional[str]:
        body = self.cursor.source_text(self.cursor.collect_until(_is_heading))
        return body if body.strip() else None

    def _parse_sections(self) -> list[Section]:
        sections = []
        while (event := self.cursor.next()) is not None:
            if _is_heading(event):
                sections.append(self._parse_section(heading_level(event.token)))
            # anything else was already consumed by the preamble
        return sections

    def _parse_section(self, level: int) -> Section:
        title = render_text(self.cursor.consume_until(lambda e: e.type == 'heading_close'))
        body = self.cursor.source_text(self.cursor.collect_until(_is_heading))

        sections = []
        while (event := self.cursor.peek()) is not None and _is_heading(event) \
                and heading_level(event.token) > level:
            self.cursor.next()
            sections.append(self._parse_section(heading_level(event.token)))

        return Section(title=title, level=SectionLevel(level), body=body, sections=sections)


def parse_entry(entry: JournalEntry, parser: Optional[MarkdownIt] = None) -> JournalEntry:
    """Return `entry` with its raw body split into a preamble and a section tree."""
    if entry.body is None:
        return entry
    body, sections = EntryParser(entry.body, parser).parse()
    return entry.model_copy(update={"body": body, "sections": [*entry.sections, *sections]})
