"""Transform stage: rewrites applied to parsed journals"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from dungeonmark.config import Config
from dungeonmark.core.extract.metadata import extract_metadata
from dungeonmark.core.models import Journal, JournalEntry, iter_sections
from dungeonmark.core.parse import make_parser


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformerContext:
    root:   Path
    config: Config


class Transformer(ABC):
    """Transforms a journal whose entries have been parsed into sections."""
    name: str

    @abstractmethod
    def run(self, ctx: TransformerContext, journal: Journal) -> Journal:
        raise NotImplementedError


class MetadataTransformer(Transformer):
    """Lifts `lang,metadata,key` code blocks of every section into `Section.metadata`."""
    name = "metadata"

    def run(self, ctx: TransformerContext, journal: Journal) -> Journal:
        parser = make_parser(ctx.config.build.parser_config)
        items = []
        for item in journal.items:
            if isinstance(item, JournalEntry):
                item = item.model_copy(deep=True)
                for section in iter_sections(item.sections):
                    extract_metadata(section, parser)
                logger.debug("Extracted metadata from %s", item.path or item.title)
            items.append(item)
        return journal.model_copy(update={"items": items})
