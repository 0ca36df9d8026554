"""
Pytest configuration and shared fixtures.
"""

import io

import pytest
from pathlib import Path

from csvdiff import Options


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def basic_from_csv(fixtures_dir):
    """Path to basic baseline CSV."""
    return fixtures_dir / "basic_from.csv"


@pytest.fixture
def basic_to_csv(fixtures_dir):
    """Path to basic comparison CSV."""
    return fixtures_dir / "basic_to.csv"


@pytest.fixture
def composite_key_from_csv(fixtures_dir):
    """Path to composite key baseline CSV."""
    return fixtures_dir / "composite_key_from.csv"


@pytest.fixture
def composite_key_to_csv(fixtures_dir):
    """Path to composite key comparison CSV."""
    return fixtures_dir / "composite_key_to.csv"


def stream(text):
    """Wrap CSV text in a stream the loader accepts."""
    return io.StringIO(text)


def default_options(*key_columns, **kwargs):
    """Options with a header and the given key columns."""
    kwargs.setdefault("lazy_quotes", True)
    return Options(key_columns=list(key_columns), **kwargs)
