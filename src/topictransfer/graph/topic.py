"""Live topic nodes and their keyed collections.

A Topic owns four collections:

- ``attributes``: scalar string fields with per-field timestamps and dirty
  tracking.
- ``relationships``: named, unordered sets of other topics.
- ``references``: named single pointers to another topic, with timestamps.
- ``children``: the ordered child topics, addressable by key.

Pointers are stored as arena ids and resolved through the owning TopicGraph on
every read, so a deleted topic simply stops resolving instead of dangling.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from topictransfer.graph.graph import TopicGraph

UNIQUE_KEY_SEPARATOR = ":"


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


# -----------------------------------------------------------------------------
# Attributes
# -----------------------------------------------------------------------------


@dataclass
class AttributeRecord:
    """One scalar field on a topic.

    Attributes:
        key: Attribute name.
        value: Attribute value; ``None`` means unset.
        last_modified: When the value was last changed.
        is_dirty: Whether the value changed since the last ``mark_clean()``.
    """

    key: str
    value: str | None
    last_modified: datetime
    is_dirty: bool = True


class AttributeCollection:
    """Keyed attribute storage with dirty tracking."""

    def __init__(self) -> None:
        self._records: dict[str, AttributeRecord] = {}
        self._removed = False

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[AttributeRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def keys(self) -> list[str]:
        return list(self._records.keys())

    def get(self, key: str) -> AttributeRecord | None:
        return self._records.get(key)

    def get_value(self, key: str, default: str | None = None) -> str | None:
        """Get an attribute value, or *default* when missing or unset."""
        record = self._records.get(key)
        if record is None or record.value is None:
            return default
        return record.value

    def set_value(
        self,
        key: str,
        value: str | None,
        last_modified: datetime | None = None,
    ) -> None:
        """Set an attribute value.

        Setting the value an attribute already holds does not dirty the
        collection. An explicit *last_modified* is still recorded on it.

        Args:
            key: Attribute name.
            value: New value, or ``None`` to unset.
            last_modified: Timestamp to record. Defaults to now.
        """
        existing = self._records.get(key)
        if existing is not None and existing.value == value:
            if last_modified is not None:
                existing.last_modified = last_modified
            return
        self._records[key] = AttributeRecord(
            key=key,
            value=value,
            last_modified=last_modified or utcnow(),
        )

    def remove(self, key: str) -> bool:
        """Remove an attribute. Returns True if it existed."""
        if self._records.pop(key, None) is None:
            return False
        self._removed = True
        return True

    def is_dirty(self) -> bool:
        """Whether any attribute changed since the last ``mark_clean()``."""
        return self._removed or any(record.is_dirty for record in self._records.values())

    def mark_clean(self) -> None:
        """Accept all pending changes."""
        self._removed = False
        for record in self._records.values():
            record.is_dirty = False


# -----------------------------------------------------------------------------
# Relationships
# -----------------------------------------------------------------------------


class RelationshipCollection:
    """Named sets of related topics."""

    def __init__(self, graph: TopicGraph) -> None:
        self._graph = graph
        self._relations: dict[str, list[int]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._relations

    def __iter__(self) -> Iterator[tuple[str, list[Topic]]]:
        for name in list(self._relations):
            yield name, self.get_values(name)

    def __len__(self) -> int:
        return len(self._relations)

    def keys(self) -> list[str]:
        return list(self._relations.keys())

    def get_values(self, name: str) -> list[Topic]:
        """Return the live topics related under *name*, in insertion order."""
        topics = []
        for topic_id in self._relations.get(name, []):
            topic = self._graph.get_by_id(topic_id)
            if topic is not None:
                topics.append(topic)
        return topics

    def set_value(self, name: str, topic: Topic) -> None:
        """Relate *topic* under *name*. Adding an existing member is a no-op."""
        members = self._relations.setdefault(name, [])
        if topic.id not in members:
            members.append(topic.id)

    def remove(self, name: str, topic: Topic) -> bool:
        members = self._relations.get(name)
        if not members or topic.id not in members:
            return False
        members.remove(topic.id)
        return True

    def clear(self, name: str) -> None:
        """Remove every member of the *name* relationship."""
        self._relations.pop(name, None)


# -----------------------------------------------------------------------------
# References
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ReferenceRecord:
    """A resolved view of one single reference.

    Attributes:
        key: Reference name.
        value: Target topic, or ``None`` if cleared or no longer in the graph.
        last_modified: When the reference was last changed.
    """

    key: str
    value: Topic | None
    last_modified: datetime


@dataclass
class _ReferenceEntry:
    target_id: int | None
    last_modified: datetime


class ReferenceCollection:
    """Named single pointers to other topics."""

    def __init__(self, graph: TopicGraph) -> None:
        self._graph = graph
        self._entries: dict[str, _ReferenceEntry] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[ReferenceRecord]:
        for key in list(self._entries):
            record = self.get(key)
            if record is not None:
                yield record

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def get(self, key: str) -> ReferenceRecord | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        target = None
        if entry.target_id is not None:
            target = self._graph.get_by_id(entry.target_id)
        return ReferenceRecord(key=key, value=target, last_modified=entry.last_modified)

    def get_value(self, key: str) -> Topic | None:
        record = self.get(key)
        return record.value if record else None

    def set_value(
        self,
        key: str,
        topic: Topic | None,
        last_modified: datetime | None = None,
    ) -> None:
        """Point *key* at *topic*; ``None`` clears the target but keeps the key."""
        self._entries[key] = _ReferenceEntry(
            target_id=topic.id if topic is not None else None,
            last_modified=last_modified or utcnow(),
        )

    def remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None


# -----------------------------------------------------------------------------
# Children
# -----------------------------------------------------------------------------


class ChildCollection:
    """Ordered child topics, addressable by key (case-insensitive)."""

    def __init__(self, graph: TopicGraph, owner: Topic) -> None:
        self._graph = graph
        self._owner = owner
        self._ids: list[int] = []

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __iter__(self) -> Iterator[Topic]:
        for topic_id in list(self._ids):
            topic = self._graph.get_by_id(topic_id)
            if topic is not None:
                yield topic

    def __len__(self) -> int:
        return len(self._ids)

    def keys(self) -> list[str]:
        return [child.key for child in self]

    def get(self, key: str) -> Topic | None:
        folded = key.casefold()
        for child in self:
            if child.key.casefold() == folded:
                return child
        return None

    def create(self, key: str, content_type: str) -> Topic:
        """Create a new child topic under the owner."""
        return self._graph.create_topic(key, content_type, parent=self._owner)

    def remove(self, child: Topic) -> int:
        """Delete *child* and its descendants. Returns the number removed."""
        if child.id not in self._ids:
            return 0
        return self._graph.delete_topic(child)

    def _attach(self, topic_id: int) -> None:
        self._ids.append(topic_id)

    def _detach(self, topic_id: int) -> None:
        if topic_id in self._ids:
            self._ids.remove(topic_id)


# -----------------------------------------------------------------------------
# Topic
# -----------------------------------------------------------------------------


class Topic:
    """A node in the live topic graph.

    Topics are created through ``TopicGraph.create_topic`` (or
    ``topic.children.create``), never directly.

    Attributes:
        id: Stable arena id, also the numeric id legacy pointers refer to.
        key: Identifier unique among siblings.
        content_type: Schema tag for the topic.
        unique_key: Colon-delimited path of keys from the root.
    """

    def __init__(
        self,
        graph: TopicGraph,
        topic_id: int,
        key: str,
        content_type: str,
        parent: Topic | None = None,
    ) -> None:
        self.graph = graph
        self.id = topic_id
        self.key = key
        self.content_type = content_type
        self._parent_id = parent.id if parent is not None else None
        self.unique_key = (
            f"{parent.unique_key}{UNIQUE_KEY_SEPARATOR}{key}" if parent is not None else key
        )
        self.attributes = AttributeCollection()
        self.relationships = RelationshipCollection(graph)
        self.references = ReferenceCollection(graph)
        self.children = ChildCollection(graph, self)

    @property
    def parent(self) -> Topic | None:
        if self._parent_id is None:
            return None
        return self.graph.get_by_id(self._parent_id)

    @property
    def root(self) -> Topic:
        topic = self
        while (parent := topic.parent) is not None:
            topic = parent
        return topic

    def __repr__(self) -> str:
        return f"Topic(id={self.id}, unique_key={self.unique_key!r}, content_type={self.content_type!r})"
