"""Graph package - live topic graph.

This package provides the in-memory topic tree that the interchange engine
exports from and imports into. Topics live in an arena keyed by stable ids,
with a side index from unique key to topic.
"""

from topictransfer.graph.errors import (
    TopicExistsError,
    TopicGraphError,
    TopicNotFoundError,
    UniqueKeyMismatchError,
)
from topictransfer.graph.graph import DEFAULT_CONTENT_TYPE, TopicGraph
from topictransfer.graph.store import DictTopicStore, TopicStore
from topictransfer.graph.topic import (
    UNIQUE_KEY_SEPARATOR,
    AttributeCollection,
    AttributeRecord,
    ChildCollection,
    ReferenceCollection,
    ReferenceRecord,
    RelationshipCollection,
    Topic,
    utcnow,
)

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "UNIQUE_KEY_SEPARATOR",
    "AttributeCollection",
    "AttributeRecord",
    "ChildCollection",
    "DictTopicStore",
    "ReferenceCollection",
    "ReferenceRecord",
    "RelationshipCollection",
    "Topic",
    "TopicExistsError",
    "TopicGraph",
    "TopicGraphError",
    "TopicNotFoundError",
    "TopicStore",
    "UniqueKeyMismatchError",
    "utcnow",
]
