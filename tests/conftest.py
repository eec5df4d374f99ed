"""Shared fixtures for planner tests."""

import pytest

from stats_planner.catalog import Catalog
from stats_planner.planner import CollectJobFactory
from stats_planner.statistics import InMemoryStatsMetaStore

from tests.helpers import build_context


@pytest.fixture
def catalog():
    """Empty in-memory catalog."""
    return Catalog()


@pytest.fixture
def stats():
    """Empty in-memory statistics metadata store."""
    return InMemoryStatsMetaStore()


@pytest.fixture
def context(catalog, stats):
    """Planner context with default thresholds and a fixed clock."""
    return build_context(catalog, stats)


@pytest.fixture
def factory(context):
    """Job factory over the shared context."""
    return CollectJobFactory(context)
