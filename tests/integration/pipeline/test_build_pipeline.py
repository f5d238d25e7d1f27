"""Integration tests for the JournalBuilder pipeline (load -> preprocess -> parse -> transform -> render)"""

from pathlib import Path

import pytest

from dungeonmark.core.models import ChapterTitle, Journal, JournalEntry, Section, SectionMetadata, Separator
from dungeonmark.core.pipeline import JournalBuilder
from dungeonmark.core.preprocess import Preprocessor, PreprocessorContext
from dungeonmark.core.render import RenderContext, Renderer
from dungeonmark.core.transform import Transformer, TransformerContext
from dungeonmark.errors import LoadError, RendererError


class RecordingRenderer(Renderer):
    def __init__(self, name: str = "recorder"):
        self.name = name
        self.contexts: list[RenderContext] = []

    def render(self, ctx: RenderContext) -> None:
        self.contexts.append(ctx)


class FailingRenderer(Renderer):
    name = "failing"

    def render(self, ctx: RenderContext) -> None:
        raise RendererError("Renderer failing failed (exit status 1).")


class MutatingRenderer(Renderer):
    name = "mutating"

    def render(self, ctx: RenderContext) -> None:
        ctx.journal.title = "changed"
        ctx.journal.items.clear()


class UppercaseTitles(Transformer):
    name = "upper"

    def run(self, ctx: TransformerContext, journal: Journal) -> Journal:
        items = [
            item.model_copy(update={"title": item.title.upper()}) if isinstance(item, JournalEntry) else item
            for item in journal.items
        ]
        return journal.model_copy(update={"items": items})


class AppendFooter(Preprocessor):
    name = "footer"

    def run(self, ctx: PreprocessorContext, journal: Journal) -> Journal:
        items = [
            item.model_copy(update={"body": item.body + "\n# Footer\n"}) if isinstance(item, JournalEntry) else item
            for item in journal.items
        ]
        return journal.model_copy(update={"items": items})


def test_build_minimal_journal(journal_root):
    """The sample journal compiles into one entry with one section."""
    recorder = RecordingRenderer()
    destinations = JournalBuilder.load(journal_root).with_renderer(recorder).build()

    assert destinations == [journal_root.resolve() / "build" / "recorder"]
    ctx = recorder.contexts[0]
    assert ctx.root == journal_root.resolve()
    assert ctx.destination == destinations[0]
    assert ctx.config.journal.title == "Test Journal"
    assert ctx.journal == Journal(title="Test Journal", items=[
        JournalEntry(
            title="Entry 1",
            body=None,
            sections=[Section(title="Test Entry", body="This is a test entry!")],
            path=Path("entry_1.md"),
            level=1,
        ),
    ])


def test_build_structure_and_levels(write_files, tmp_path):
    """Chapter titles, separators, and nested links map onto journal items in order."""
    write_files(tmp_path, {
        "src/JOURNAL.md": (
            "# Campaign\n\n"
            "* [Intro](intro.md)\n"
            "---\n"
            "# Act One\n"
            "* [Town](act1/town.md)\n"
            "  * [Tavern](act1/tavern.md)\n"
            "* [Unwritten]()\n"
        ),
        "src/intro.md": "Welcome.\n",
        "src/act1/town.md": "# Town\n",
        "src/act1/tavern.md": "# Tavern\n",
    })
    journal = JournalBuilder.load(tmp_path).compile()

    assert journal.title == "Campaign"
    kinds = [(type(item).__name__, getattr(item, "title", None)) for item in journal.items]
    assert kinds == [
        ("JournalEntry", "Intro"),
        ("Separator", None),
        ("ChapterTitle", "Act One"),
        ("JournalEntry", "Town"),
        ("JournalEntry", "Tavern"),
    ]
    assert journal.items[1] == Separator()
    assert journal.items[2] == ChapterTitle(title="Act One")
    assert [item.level for item in journal.items if isinstance(item, JournalEntry)] == [1, 1, 2]
    assert journal.items[0].body == "Welcome."
    assert journal.items[4].path == Path("act1/tavern.md")


def test_directives_and_metadata_end_to_end(write_files, tmp_path):
    """Includes are expanded before parsing and metadata is lifted after it."""
    write_files(tmp_path, {
        "src/JOURNAL.md": "* [Goblin](monsters/goblin.md)\n",
        "src/monsters/goblin.md": (
            "{{#title Goblin (CR 1/4)}}\n"
            "# Goblin\n"
            "Small and mean.\n"
            "{{#include stats.md}}\n"
        ),
        "src/monsters/stats.md": "```toml,metadata,stats\nhp = 7\n```\n",
    })
    journal = JournalBuilder.load(tmp_path).compile()

    entry = journal.items[0]
    assert entry.title == "Goblin (CR 1/4)"
    assert entry.body is None
    section = entry.sections[0]
    assert section.title == "Goblin"
    assert section.body.startswith("Small and mean.")
    assert "```" not in section.body
    assert section.metadata == {"stats": SectionMetadata(lang="toml", data="hp = 7\n")}


def test_custom_stages_run_after_defaults(journal_root):
    """Preprocessors and transformers added in code run after the built-in ones."""
    journal = (
        JournalBuilder.load(journal_root)
        .with_preprocessor(AppendFooter())
        .with_transformer(UppercaseTitles())
        .compile()
    )
    entry = journal.items[0]
    assert entry.title == "ENTRY 1"
    assert [s.title for s in entry.sections] == ["Test Entry", "Footer"]


def test_each_renderer_gets_its_own_copy(journal_root):
    """A renderer that mutates its journal does not affect later renderers."""
    recorder = RecordingRenderer()
    JournalBuilder.load(journal_root).with_renderer(MutatingRenderer()).with_renderer(recorder).build()

    assert recorder.contexts[0].journal.title == "Test Journal"
    assert len(recorder.contexts[0].journal.items) == 1


def test_renderers_stop_at_first_failure(journal_root):
    """A failing renderer aborts the build before later renderers run."""
    recorder = RecordingRenderer()
    builder = JournalBuilder.load(journal_root).with_renderer(FailingRenderer()).with_renderer(recorder)
    with pytest.raises(RendererError):
        builder.build()
    assert recorder.contexts == []


def test_build_without_renderers_warns(journal_root, caplog):
    """A build with no renderers compiles but warns that nothing was rendered."""
    assert JournalBuilder.load(journal_root).build() == []
    assert "No renderers configured" in caplog.text


def test_configured_build_dir(journal_root):
    """Renderer destinations live under the configured build directory."""
    recorder = RecordingRenderer("html")
    destinations = JournalBuilder.load(journal_root, overrides={"build_dir": "dist"}).with_renderer(recorder).build()
    assert destinations == [journal_root.resolve() / "dist" / "html"]


def test_missing_entry_file(write_files, tmp_path):
    """A link to a missing file raises LoadError naming it."""
    write_files(tmp_path, {"src/JOURNAL.md": "* [Lost](lost.md)\n"})
    with pytest.raises(LoadError, match="lost.md"):
        JournalBuilder.load(tmp_path).compile()


def test_missing_toc(tmp_path):
    """A journal without JOURNAL.md cannot be loaded."""
    with pytest.raises(LoadError, match="JOURNAL.md"):
        JournalBuilder.load(tmp_path)
