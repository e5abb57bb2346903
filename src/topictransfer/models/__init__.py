"""Pydantic models for the topic interchange format.

These models define the portable snapshot that the exporter produces and the
importer consumes. See topictransfer.interchange.codec for the JSON wire
encoding.
"""

from topictransfer.models.interchange import (
    MIN_TIMESTAMP,
    InterchangeRecord,
    InterchangeRelationship,
    InterchangeTopic,
)

__all__ = [
    "MIN_TIMESTAMP",
    "InterchangeRecord",
    "InterchangeRelationship",
    "InterchangeTopic",
]
