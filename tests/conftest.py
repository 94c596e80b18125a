"""Shared fixtures: exported CV documents stored verbatim under fixtures/."""

from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


@pytest.fixture
def sample_cv() -> str:
    """Full export: header, bio, education, work, skills and 13 projects."""
    return read_fixture("sample_cv.md")


@pytest.fixture
def two_project_cv() -> str:
    """Short export with one finished and one ongoing project."""
    return read_fixture("two_project_cv.md")
