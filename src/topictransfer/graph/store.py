"""Topic storage backend protocol and dict-based implementation.

The TopicStore protocol defines the low-level arena operations that
TopicGraph delegates to. Topics live in an arena keyed by a stable integer id,
with a side index from unique key to id. TopicGraph provides the public API
with validation, error messages, and tree bookkeeping.

DictTopicStore is the default (and only) backend; it keeps everything in
memory. Topics are created lazily in the middle of an import, so the graph
never hands out raw parent/child pointers that could outlive a deletion:
lookups always go back through the arena.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from topictransfer.graph.topic import Topic


def _index_key(unique_key: str) -> str:
    return unique_key.casefold()


@runtime_checkable
class TopicStore(Protocol):
    """Storage backend protocol for TopicGraph.

    Methods raise no domain-specific errors; TopicGraph is responsible for
    translating storage misses into TopicNotFoundError, etc.
    """

    # -- Identity --------------------------------------------------------------

    def next_id(self) -> int:
        """Reserve and return the next stable topic id."""
        ...

    # -- Topics ----------------------------------------------------------------

    def get(self, topic_id: int) -> Topic | None:
        """Get a topic by id, or None if not found."""
        ...

    def add(self, topic: Topic) -> None:
        """Store a topic and index its unique key."""
        ...

    def discard(self, topic_id: int) -> None:
        """Remove a topic and its index entry. No cascade."""
        ...

    def lookup(self, unique_key: str) -> int | None:
        """Return the id indexed under *unique_key* (case-insensitive)."""
        ...

    def all_ids(self) -> list[int]:
        """Return all topic ids in creation order."""
        ...

    def all_unique_keys(self) -> list[str]:
        """Return the unique keys of every stored topic."""
        ...

    def count(self) -> int:
        """Return total number of topics."""
        ...

    def __iter__(self) -> Iterator[Topic]:
        """Iterate topics in creation order."""
        ...


class DictTopicStore:
    """In-memory dict-based topic arena."""

    def __init__(self) -> None:
        self._topics: dict[int, Topic] = {}
        self._index: dict[str, int] = {}
        self._last_id = 0

    def next_id(self) -> int:
        self._last_id += 1
        return self._last_id

    def get(self, topic_id: int) -> Topic | None:
        return self._topics.get(topic_id)

    def add(self, topic: Topic) -> None:
        self._topics[topic.id] = topic
        self._index[_index_key(topic.unique_key)] = topic.id

    def discard(self, topic_id: int) -> None:
        topic = self._topics.pop(topic_id, None)
        if topic is not None:
            self._index.pop(_index_key(topic.unique_key), None)

    def lookup(self, unique_key: str) -> int | None:
        return self._index.get(_index_key(unique_key))

    def all_ids(self) -> list[int]:
        return list(self._topics.keys())

    def all_unique_keys(self) -> list[str]:
        return [topic.unique_key for topic in self._topics.values()]

    def count(self) -> int:
        return len(self._topics)

    def __iter__(self) -> Iterator[Topic]:
        return iter(list(self._topics.values()))
