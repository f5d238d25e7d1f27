"""Shared fixtures for core unit tests"""

import pytest

from dungeonmark.core.parse import make_parser


@pytest.fixture(name="parser")
def parser_fixture():
    return make_parser("gfm-like")
