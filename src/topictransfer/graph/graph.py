"""Live topic graph.

The graph is the in-memory tree that exports read from and imports write to.
It enforces the structural rules the interchange format relies on:

- Topic keys are unique among siblings (case-insensitive)
- Unique keys are the colon-joined path of keys from a root
- Deleting a topic removes its whole subtree from the arena and index

TopicGraph delegates storage to a TopicStore backend (DictTopicStore by
default). It does not persist anything.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from topictransfer.graph.errors import TopicExistsError, TopicNotFoundError
from topictransfer.graph.store import DictTopicStore, TopicStore
from topictransfer.graph.topic import UNIQUE_KEY_SEPARATOR, Topic
from topictransfer.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

log = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "Container"


class TopicGraph:
    """In-memory hierarchical topic graph.

    Attributes:
        _store: The underlying arena.
    """

    def __init__(self, *, store: TopicStore | None = None) -> None:
        """Initialize graph with an optional pre-built store.

        Args:
            store: Storage backend. Defaults to a fresh DictTopicStore.
        """
        self._store = store if store is not None else DictTopicStore()
        self._root_ids: list[int] = []

    @classmethod
    def empty(cls) -> TopicGraph:
        """Create an empty graph."""
        return cls()

    # -------------------------------------------------------------------------
    # Topic Operations
    # -------------------------------------------------------------------------

    def create_topic(
        self,
        key: str,
        content_type: str,
        parent: Topic | None = None,
    ) -> Topic:
        """Create a new topic. Fails if the unique key is already taken.

        Args:
            key: Topic key, unique among siblings. Must not contain ``:``.
            content_type: Schema tag for the topic.
            parent: Parent topic, or None to create a root.

        Returns:
            The new topic.

        Raises:
            ValueError: If the key is empty or contains the separator.
            TopicExistsError: If a sibling already uses the key.
        """
        if not key:
            raise ValueError("Topic key must not be empty")
        if UNIQUE_KEY_SEPARATOR in key:
            raise ValueError(f"Topic key '{key}' must not contain '{UNIQUE_KEY_SEPARATOR}'")
        if parent is not None and parent.graph is not self:
            raise ValueError(f"Parent {parent.unique_key!r} belongs to a different graph")

        unique_key = f"{parent.unique_key}{UNIQUE_KEY_SEPARATOR}{key}" if parent else key
        if self._store.lookup(unique_key) is not None:
            raise TopicExistsError(unique_key)

        topic = Topic(self, self._store.next_id(), key, content_type, parent)
        self._store.add(topic)
        if parent is not None:
            parent.children._attach(topic.id)
        else:
            self._root_ids.append(topic.id)

        log.debug("topic_created", unique_key=topic.unique_key, content_type=content_type)
        return topic

    def delete_topic(self, topic: Topic) -> int:
        """Delete a topic and all of its descendants.

        Relationships and references pointing at deleted topics stop
        resolving; they are not rewritten.

        Args:
            topic: Topic to delete.

        Returns:
            Number of topics removed.
        """
        removed = 0
        for child in list(topic.children):
            removed += self.delete_topic(child)

        parent = topic.parent
        if parent is not None:
            parent.children._detach(topic.id)
        elif topic.id in self._root_ids:
            self._root_ids.remove(topic.id)

        self._store.discard(topic.id)
        log.debug("topic_deleted", unique_key=topic.unique_key)
        return removed + 1

    def get_by_id(self, topic_id: int) -> Topic | None:
        """Get a topic by its stable arena id."""
        return self._store.get(topic_id)

    def get_by_unique_key(self, unique_key: str) -> Topic | None:
        """Get a topic by unique key (case-insensitive), or None if not found."""
        topic_id = self._store.lookup(unique_key)
        if topic_id is None:
            return None
        return self._store.get(topic_id)

    def require(self, unique_key: str, context: str = "") -> Topic:
        """Get a topic by unique key, raising if it does not exist.

        Raises:
            TopicNotFoundError: If no topic has the unique key.
        """
        topic = self.get_by_unique_key(unique_key)
        if topic is None:
            raise TopicNotFoundError(
                unique_key,
                available=self._store.all_unique_keys(),
                context=context,
            )
        return topic

    def find_first(self, predicate: Callable[[Topic], bool]) -> Topic | None:
        """Return the first topic (in creation order) matching *predicate*."""
        for topic in self._store:
            if predicate(topic):
                return topic
        return None

    def ensure_path(self, unique_key: str, content_type: str = DEFAULT_CONTENT_TYPE) -> Topic:
        """Return the topic at *unique_key*, creating missing ancestors.

        Every topic created along the way, including the final one, gets
        *content_type*.

        Args:
            unique_key: Colon-delimited path from a root.
            content_type: Content type for newly created topics.

        Returns:
            The topic at *unique_key*.
        """
        parent: Topic | None = None
        for key in unique_key.split(UNIQUE_KEY_SEPARATOR):
            if parent is None:
                topic = next((r for r in self.roots if r.key.casefold() == key.casefold()), None)
            else:
                topic = parent.children.get(key)
            if topic is None:
                topic = self.create_topic(key, content_type, parent)
            parent = topic
        if parent is None:
            raise ValueError("Unique key must not be empty")
        return parent

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def roots(self) -> list[Topic]:
        topics = (self._store.get(topic_id) for topic_id in self._root_ids)
        return [topic for topic in topics if topic is not None]

    def topics(self) -> list[Topic]:
        """Return all topics in creation order."""
        return list(self._store)

    def topic_count(self) -> int:
        return self._store.count()

    def mark_clean(self) -> None:
        """Accept pending attribute changes on every topic."""
        for topic in self._store:
            topic.attributes.mark_clean()
