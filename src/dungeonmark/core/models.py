"""Document model: table of contents, journal items, entries, and sections"""

from enum import IntEnum
from pathlib import Path
from typing import Annotated, Iterator, Literal, Optional, Union

from pydantic import BaseModel, Field


class Separator(BaseModel):
    """A thematic break between unnamed groups of entries (TOC and journal alike)."""
    kind: Literal["separator"] = "separator"


# --- table of contents ---

class SectionTitle(BaseModel):
    """Title for a part of the TOC, provided by a top-level H1 heading."""
    kind: Literal["section_title"] = "section_title"
    title: str


class Link(BaseModel):
    """A link to a journal entry plus any TOC items nested below it."""
    kind: Literal["link"] = "link"
    name: str
    location: Optional[Path] = None     # relative to the journal source directory
    nested_items: list["TOCItem"] = Field(default_factory=list)


TOCItem = Annotated[Union[Link, SectionTitle, Separator], Field(discriminator="kind")]

Link.model_rebuild()


class TableOfContents(BaseModel):
    """Parsed JOURNAL.md."""
    title: Optional[str] = None
    items: list[TOCItem] = Field(default_factory=list)


def maybe_link(item: TOCItem) -> Optional[Link]:
    return item if isinstance(item, Link) else None


def maybe_section_title(item: TOCItem) -> Optional[SectionTitle]:
    return item if isinstance(item, SectionTitle) else None


def is_separator(item: Union[TOCItem, "JournalItem"]) -> bool:
    return isinstance(item, Separator)


# --- journal ---

class SectionLevel(IntEnum):
    H1 = 1
    H2 = 2
    H3 = 3
    H4 = 4
    H5 = 5
    H6 = 6


class SectionMetadata(BaseModel):
    lang: str
    data: str


class Section(BaseModel):
    """All text following a heading.

    Headings of a greater level that follow are nested as child sections; a heading of the
    same or lower level ends this section.
    """
    title: str = ""
    level: SectionLevel = SectionLevel.H1
    body: str = ""                      # excludes the text of child sections
    metadata: dict[str, SectionMetadata] = Field(default_factory=dict)
    sections: list["Section"] = Field(default_factory=list)


class JournalEntry(BaseModel):
    """One markdown file on disk.

    Before parsing, `body` holds the raw file text and `sections` is empty. After parsing,
    `body` holds the preamble before the first heading (None when empty).
    """
    kind: Literal["entry"] = "entry"
    title: str = ""
    body: Optional[str] = None
    sections: list[Section] = Field(default_factory=list)
    path: Optional[Path] = None         # relative to the journal source directory
    level: int = 1                      # TOC nesting depth


class ChapterTitle(BaseModel):
    kind: Literal["chapter_title"] = "chapter_title"
    title: str


JournalItem = Annotated[Union[JournalEntry, ChapterTitle, Separator], Field(discriminator="kind")]


class Journal(BaseModel):
    title: Optional[str] = None
    items: list[JournalItem] = Field(default_factory=list)


def maybe_entry(item: JournalItem) -> Optional[JournalEntry]:
    return item if isinstance(item, JournalEntry) else None


def maybe_chapter_title(item: JournalItem) -> Optional[ChapterTitle]:
    return item if isinstance(item, ChapterTitle) else None


def iter_sections(sections: list[Section]) -> Iterator[Section]:
    """Yield every section depth-first, children before their parent."""
    for section in sections:
        yield from iter_sections(section.sections)
        yield section
