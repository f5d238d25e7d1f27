"""Metadata extraction: lift `lang,metadata,key` fenced code blocks out of section bodies"""

from typing import Optional

from markdown_it import MarkdownIt

from dungeonmark.core.cursor import Event, EventCursor
from dungeonmark.core.models import Section, SectionMetadata


METADATA_TAG = 'metadata'
BLOCK_PLACEHOLDER = '\n\n'


def parse_metadata_tag(info: str) -> Optional[tuple[str, str]]:
    """Return (lang, key) for an info string shaped `lang, metadata, key`, else None."""
    parts = [part.strip() for part in info.split(',')]
    if len(parts) == 3 and parts[1] == METADATA_TAG:
        return parts[0], parts[2]
    return None


def _metadata_tag(event: Event) -> Optional[tuple[str, str]]:
    if event.type != 'fence':
        return None
    return parse_metadata_tag(event.token.info)


def _trim(text: str) -> str:
    return text.lstrip('\n').rstrip()


def extract_metadata(section: Section, parser: Optional[MarkdownIt] = None) -> None:
    """Move metadata blocks from `section.body` into `section.metadata`.

    Tagged fences are lifted at any depth, including inside lists and block quotes. Each
    removed block leaves a blank line behind; the text around it keeps its source form.
    """
    cursor = EventCursor(section.body, parser)
    chunks: list[str] = []
    metadata: dict[str, SectionMetadata] = {}
    pos = 0

    while cursor.peek() is not None:
        cursor.collect_until(lambda e: _metadata_tag(e) is not None)
        if (event := cursor.next()) is None:
            break
        lang, key = _metadata_tag(event)
        metadata[key] = SectionMetadata(lang=lang, data=event.token.content)
        chunks.append(_trim(cursor.source[pos:event.start]))
        chunks.append(BLOCK_PLACEHOLDER)
        pos = event.end

    chunks.append(_trim(cursor.source[pos:]))
    section.body = ''.join(chunks)
    section.metadata.update(metadata)
