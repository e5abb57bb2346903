"""Tests for LastModified / LastModifiedBy handling during import."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from topictransfer.interchange import (
    ImportOptions,
    ImportStrategy,
    LastModifiedImportStrategy,
    import_topic,
)
from topictransfer.models import InterchangeRecord, InterchangeTopic

if TYPE_CHECKING:
    from topictransfer.graph import Topic, TopicGraph

REMOTE_TIME = datetime(2020, 1, 1, tzinfo=UTC)


def _snapshot(*attributes: tuple[str, str]) -> InterchangeTopic:
    return InterchangeTopic(
        key="Root",
        unique_key="Root",
        content_type="Container",
        attributes=[
            InterchangeRecord(key=key, value=value, last_modified=REMOTE_TIME)
            for key, value in attributes
        ],
    )


@pytest.fixture
def local(graph: TopicGraph, root: Topic) -> Topic:
    """Root topic with local provenance, marked clean."""
    root.attributes.set_value("Title", "Local Title")
    root.attributes.set_value("LastModified", "2019-01-01T00:00:00+00:00")
    root.attributes.set_value("LastModifiedBy", "Local Editor")
    graph.mark_clean()
    return root


def _import(topic: Topic, **options: object) -> None:
    snapshot = _snapshot(
        ("Title", "Remote Title"),
        ("LastModified", "2020-01-01T00:00:00+00:00"),
        ("LastModifiedBy", "Remote Editor"),
    )
    import_topic(topic, snapshot, ImportOptions(strategy=ImportStrategy.OVERWRITE, **options))  # type: ignore[arg-type]


class TestLastModifiedStrategies:
    """Each provenance strategy."""

    def test_inherit_follows_general_rule(self, local: Topic) -> None:
        """INHERIT imports provenance like any other attribute."""
        _import(local)
        assert local.attributes.get_value("Title") == "Remote Title"
        assert local.attributes.get_value("LastModified") == "2020-01-01T00:00:00+00:00"
        assert local.attributes.get_value("LastModifiedBy") == "Remote Editor"

    def test_target_value_keeps_live_values(self, local: Topic) -> None:
        """TARGET_VALUE never overwrites the live provenance."""
        _import(
            local,
            last_modified_strategy=LastModifiedImportStrategy.TARGET_VALUE,
            last_modified_by_strategy=LastModifiedImportStrategy.TARGET_VALUE,
        )
        assert local.attributes.get_value("Title") == "Remote Title"
        assert local.attributes.get_value("LastModified") == "2019-01-01T00:00:00+00:00"
        assert local.attributes.get_value("LastModifiedBy") == "Local Editor"

    def test_current_stamps_user_and_time(self, local: Topic) -> None:
        """CURRENT stamps the acting user and the current time."""
        before = datetime.now(UTC)
        _import(
            local,
            last_modified_strategy=LastModifiedImportStrategy.CURRENT,
            last_modified_by_strategy=LastModifiedImportStrategy.CURRENT,
            current_user="alice",
        )

        assert local.attributes.get_value("LastModifiedBy") == "alice"
        stamped = datetime.fromisoformat(local.attributes.get_value("LastModified"))  # type: ignore[arg-type]
        assert before <= stamped <= datetime.now(UTC) + timedelta(seconds=1)

    def test_system_stamps_system_user(self, local: Topic) -> None:
        """SYSTEM stamps the system user regardless of the acting user."""
        _import(
            local,
            last_modified_by_strategy=LastModifiedImportStrategy.SYSTEM,
            current_user="alice",
        )
        assert local.attributes.get_value("LastModifiedBy") == "System"


class TestProvenanceStamping:
    """When provenance is written at all."""

    def test_no_changes_no_stamp(self, local: Topic) -> None:
        """An import that changes nothing leaves provenance alone."""
        import_topic(
            local,
            _snapshot(("Title", "Remote Title")),
            ImportOptions(
                strategy=ImportStrategy.ADD,
                last_modified_by_strategy=LastModifiedImportStrategy.CURRENT,
                current_user="alice",
            ),
        )
        assert local.attributes.get_value("Title") == "Local Title"
        assert local.attributes.get_value("LastModifiedBy") == "Local Editor"

    def test_backfills_missing_provenance(self, graph: TopicGraph, root: Topic) -> None:
        """Changed topics without provenance get now and the acting user."""
        graph.mark_clean()
        import_topic(root, _snapshot(("Title", "New")), ImportOptions(current_user="bob"))

        assert root.attributes.get_value("LastModifiedBy") == "bob"
        stamped = datetime.fromisoformat(root.attributes.get_value("LastModified"))  # type: ignore[arg-type]
        assert stamped.tzinfo is not None

    def test_backfill_defaults_to_system(self, root: Topic) -> None:
        """The default acting user is System."""
        import_topic(root, _snapshot(("Title", "New")))
        assert root.attributes.get_value("LastModifiedBy") == "System"
