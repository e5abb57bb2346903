"""JSON encoding of interchange snapshots.

Snapshots are written with PascalCase field names and without null fields.
Without an indent the output is compact, which makes it usable as a
canonical form for comparisons:

    {"Key":"Test","UniqueKey":"Root:Test","ContentType":"Container",
     "Attributes":[],"Relationships":[],"References":[],"Children":[]}

Legacy field names (``Relationships`` inside a relationship set,
``DerivedTopicKey``) are accepted on read by the models themselves.
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003 - used at runtime

from pydantic import ValidationError

from topictransfer.models.interchange import InterchangeTopic


class InterchangeParseError(Exception):
    """Raised when a snapshot can't be read or doesn't validate."""

    def __init__(self, reason: str, path: Path | None = None) -> None:
        self.reason = reason
        self.path = path
        where = f" at {path}" if path is not None else ""
        super().__init__(f"Failed to parse interchange snapshot{where}: {reason}")


class InterchangeWriteError(Exception):
    """Raised when a snapshot file can't be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write interchange snapshot at {path}: {reason}")


def dumps(topic_data: InterchangeTopic, *, indent: int | None = None) -> str:
    """Serialize a snapshot to JSON text.

    Args:
        topic_data: Snapshot to serialize.
        indent: Indentation for pretty output; None for compact output.

    Returns:
        The JSON text.
    """
    return topic_data.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def loads(text: str | bytes, *, path: Path | None = None) -> InterchangeTopic:
    """Parse JSON text into a snapshot.

    Args:
        text: JSON text.
        path: Source file, used in error messages.

    Raises:
        InterchangeParseError: If the text isn't valid JSON or doesn't match
            the interchange schema.
    """
    try:
        return InterchangeTopic.model_validate_json(text)
    except ValidationError as e:
        raise InterchangeParseError(_summarize(e), path) from e


def read_snapshot(path: Path) -> InterchangeTopic:
    """Read a snapshot from a JSON file.

    Raises:
        InterchangeParseError: If the file is missing, empty, or invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InterchangeParseError(str(e), path) from e
    if not text.strip():
        raise InterchangeParseError("Empty file", path)
    return loads(text, path=path)


def write_snapshot(topic_data: InterchangeTopic, path: Path, *, indent: int | None = 2) -> Path:
    """Write a snapshot to a JSON file, creating parent directories.

    Returns:
        The path written.

    Raises:
        InterchangeWriteError: If the file can't be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dumps(topic_data, indent=indent) + "\n", encoding="utf-8")
    except OSError as e:
        raise InterchangeWriteError(path, str(e)) from e
    return path


def _summarize(error: ValidationError) -> str:
    parts = []
    for detail in error.errors()[:3]:
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    remaining = error.error_count() - len(parts)
    if remaining > 0:
        parts.append(f"and {remaining} more")
    return "; ".join(parts)
