"""Root test configuration: sample journal projects on disk"""

from pathlib import Path

import pytest


JOURNAL_TOML = """\
[journal]
title = "Test Journal"
authors = ["Tester"]
source = "src"

[test-section]
test-item = "test"
"""

JOURNAL_MD = """\
# Test Journal

* [Entry 1](./entry_1.md)
"""

ENTRY_1_MD = """\
# Test Entry
This is a test entry!
"""


def _write_files(root: Path, files: dict[str, str]) -> Path:
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture(name="write_files")
def write_files_fixture():
    """Write {relative path: text} under a root directory, creating directories as needed."""
    return _write_files


@pytest.fixture(name="journal_root")
def journal_root_fixture(tmp_path):
    """Minimal journal: journal.toml, src/JOURNAL.md, and one entry."""
    return _write_files(tmp_path, {
        "journal.toml": JOURNAL_TOML,
        "src/JOURNAL.md": JOURNAL_MD,
        "src/entry_1.md": ENTRY_1_MD,
    })
