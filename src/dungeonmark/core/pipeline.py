"""Pipeline step functions and the JournalBuilder: load -> preprocess -> parse -> transform -> render"""

import logging
from pathlib import Path
from typing import Any, Iterable

from markdown_it import MarkdownIt

from dungeonmark.config import Config, load_config
from dungeonmark.core.extract.sections import parse_entry
from dungeonmark.core.extract.toc import load_toc
from dungeonmark.core.models import (
    ChapterTitle,
    Journal,
    JournalEntry,
    JournalItem,
    Link,
    SectionTitle,
    Separator,
    TableOfContents,
    TOCItem,
)
from dungeonmark.core.parse import make_parser, read_source
from dungeonmark.core.preprocess import DirectivePreprocessor, Preprocessor, PreprocessorContext
from dungeonmark.core.render import CommandRenderer, RenderContext, Renderer
from dungeonmark.core.transform import MetadataTransformer, Transformer, TransformerContext


logger = logging.getLogger(__name__)


def load_entry(title: str, source_dir: Path, path: Path, level: int) -> JournalEntry:
    """Load one entry file; its raw text becomes the body until the parse step."""
    body = read_source(source_dir / path, "journal entry")
    return JournalEntry(title=title, body=body, path=path, level=level)


def load_items(source_dir: Path, toc_items: list[TOCItem], level: int = 1) -> list[JournalItem]:
    """Map TOC items to journal items, flattening nested links after their parent."""
    items: list[JournalItem] = []
    for item in toc_items:
        if isinstance(item, Link):
            if item.location is None:
                continue
            items.append(load_entry(item.name, source_dir, item.location, level))
            items.extend(load_items(source_dir, item.nested_items, level + 1))
        elif isinstance(item, SectionTitle):
            items.append(ChapterTitle(title=item.title))
        elif isinstance(item, Separator):
            items.append(Separator())
    return items


def load_journal(source_dir: Path, toc: TableOfContents) -> Journal:
    """Load every entry the table of contents links to, in TOC order."""
    return Journal(title=toc.title, items=load_items(source_dir, toc.items))


def run_preprocessors(ctx: PreprocessorContext, journal: Journal, preprocessors: Iterable[Preprocessor]) -> Journal:
    for preprocessor in preprocessors:
        logger.debug("Running preprocessor %s", preprocessor.name)
        journal = preprocessor.run(ctx, journal)
    return journal


def parse_journal(journal: Journal, parser: MarkdownIt) -> Journal:
    """Split the raw body of every entry into a preamble and a section tree."""
    items = [
        parse_entry(item, parser) if isinstance(item, JournalEntry) else item
        for item in journal.items
    ]
    return journal.model_copy(update={"items": items})


def run_transformers(ctx: TransformerContext, journal: Journal, transformers: Iterable[Transformer]) -> Journal:
    for transformer in transformers:
        logger.debug("Running transformer %s", transformer.name)
        journal = transformer.run(ctx, journal)
    return journal


def run_renderers(
    root: Path,
    config: Config,
    journal: Journal,
    renderers: Iterable[Renderer],
    ) -> list[Path]:
    """Render sequentially, stopping at the first failure. Returns each renderer's destination.

    Every renderer gets its own copy of the journal.
    """
    destinations = []
    for renderer in renderers:
        destination = root / config.build.build_dir / renderer.name
        ctx = RenderContext(
            root=root,
            destination=destination,
            config=config,
            journal=journal.model_copy(deep=True),
        )
        renderer.render(ctx)
        destinations.append(destination)
    return destinations


class JournalBuilder:
    """Holds the configuration, TOC, and stages for one journal and runs them in order.

    The directive preprocessor and metadata transformer are always registered; build() adds
    one CommandRenderer per [[build.renderers]] entry after any renderer added in code.
    """

    def __init__(self, root: Path, config: Config, table_of_contents: TableOfContents):
        self.root = Path(root).resolve()
        self.config = config
        self.table_of_contents = table_of_contents
        self.preprocessors: list[Preprocessor] = [DirectivePreprocessor()]
        self.transformers: list[Transformer] = [MetadataTransformer()]
        self.renderers: list[Renderer] = []

    @classmethod
    def load(cls, root: Path, overrides: dict[str, Any] = None) -> "JournalBuilder":
        return cls.load_with_config(root, load_config(root, overrides))

    @classmethod
    def load_with_config(cls, root: Path, config: Config) -> "JournalBuilder":
        source_dir = Path(root) / config.journal.source
        toc = load_toc(source_dir, make_parser(config.build.parser_config))
        return cls(root, config, toc)

    @property
    def source_dir(self) -> Path:
        return self.root / self.config.journal.source

    def with_preprocessor(self, preprocessor: Preprocessor) -> "JournalBuilder":
        self.preprocessors.append(preprocessor)
        return self

    def with_transformer(self, transformer: Transformer) -> "JournalBuilder":
        self.transformers.append(transformer)
        return self

    def with_renderer(self, renderer: Renderer) -> "JournalBuilder":
        self.renderers.append(renderer)
        return self

    def compile(self) -> Journal:
        """Load, preprocess, parse, and transform the journal."""
        journal = load_journal(self.source_dir, self.table_of_contents)
        journal = run_preprocessors(PreprocessorContext(self.root, self.config), journal, self.preprocessors)
        journal = parse_journal(journal, make_parser(self.config.build.parser_config))
        return run_transformers(TransformerContext(self.root, self.config), journal, self.transformers)

    def build(self) -> list[Path]:
        """Compile the journal and render it with every renderer. Returns renderer destinations."""
        renderers = [*self.renderers, *(
            CommandRenderer(r.name, r.command_line) for r in self.config.build.renderers
        )]
        if not renderers:
            logger.warning("No renderers configured; the journal is compiled but not rendered")
        journal = self.compile()
        return run_renderers(self.root, self.config, journal, renderers)
