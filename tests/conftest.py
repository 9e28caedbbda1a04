"""Pytest configuration and shared fixtures for all tests."""

from pathlib import Path

import pytest

from sbomqs.logging_config import set_log_level
from sbomqs.models import Component, Document, FileFormat, Spec, SpecType

TEST_DATA_DIR = Path(__file__).parent / "test-data"


@pytest.fixture
def test_data_dir() -> Path:
    return TEST_DATA_DIR


@pytest.fixture
def read_fixture():
    """Return the raw bytes of a file under tests/test-data."""

    def _read(name: str) -> bytes:
        return (TEST_DATA_DIR / name).read_bytes()

    return _read


@pytest.fixture
def make_document():
    """Build a minimal in-memory Document.

    Components may be given as names; keyword arguments go to Document.
    """

    def _make(components=(), spec=None, **kwargs) -> Document:
        comps = tuple(
            c if isinstance(c, Component) else Component(id=f"c{i}", name=c) for i, c in enumerate(components)
        )
        spec = spec or Spec(spec_type=SpecType.CYCLONEDX, version="1.6", file_format=FileFormat.JSON)
        return Document(spec=spec, components=comps, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def reset_log_level():
    """Tests that pass --debug must not leak DEBUG into the rest of the run."""
    yield
    set_log_level("WARNING")
