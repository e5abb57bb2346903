"""Topic graph error types.

These errors are raised when live graph operations violate structural
integrity (duplicate sibling keys, missing topics) or when an interchange
snapshot is applied to the wrong topic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches


class TopicGraphError(Exception):
    """Base class for topic graph violations."""


@dataclass
class TopicNotFoundError(TopicGraphError):
    """Raised when a unique key does not resolve to a topic.

    Attributes:
        unique_key: The key that was looked up.
        available: Unique keys that exist, used for suggestions.
        context: Description of where the lookup occurred.
    """

    unique_key: str
    available: list[str] = field(default_factory=list)
    context: str = ""

    def __post_init__(self) -> None:
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Topic '{self.unique_key}' not found"
        if self.context:
            msg += f" ({self.context})"
        suggestions = self.suggestions()
        if suggestions:
            msg += f"; did you mean: {', '.join(suggestions)}"
        return msg

    def suggestions(self) -> list[str]:
        """Find similar unique keys that might be typos."""
        return get_close_matches(self.unique_key, self.available, n=3, cutoff=0.6)


@dataclass
class TopicExistsError(TopicGraphError):
    """Raised when creating a topic whose key is already taken by a sibling.

    Attributes:
        unique_key: The unique key that already exists.
    """

    unique_key: str

    def __post_init__(self) -> None:
        super().__init__(f"Topic '{self.unique_key}' already exists")


@dataclass
class UniqueKeyMismatchError(TopicGraphError, ValueError):
    """Raised when an interchange topic is imported into the wrong live topic.

    This always indicates caller error: the snapshot describes a different
    position in the tree than the topic it is being merged into. The import
    aborts; mutations already applied higher up the tree are kept.

    Attributes:
        expected: Unique key of the live topic.
        actual: Unique key carried by the interchange topic.
    """

    expected: str
    actual: str

    def __post_init__(self) -> None:
        super().__init__(
            f"A topic with the unique key of '{self.actual}' cannot be imported into "
            f"a topic with the unique key of '{self.expected}'"
        )
