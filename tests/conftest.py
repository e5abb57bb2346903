"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from topictransfer.graph import Topic, TopicGraph


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def graph() -> TopicGraph:
    """Return an empty live topic graph."""
    return TopicGraph.empty()


@pytest.fixture
def root(graph: TopicGraph) -> Topic:
    """Return the ``Root`` topic of a fresh graph."""
    return graph.create_topic("Root", "Container")


@pytest.fixture
def fixed_time() -> datetime:
    """Return a fixed aware timestamp for deterministic comparisons."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
