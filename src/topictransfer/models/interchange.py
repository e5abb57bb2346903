"""Pydantic models for the topic interchange format.

An interchange snapshot is a tree of InterchangeTopic objects, each carrying
its attributes, single references, named relationship sets, and children. The
models know nothing about the live graph; they are produced by the exporter
and consumed by the importer.

Wire field names are PascalCase (``UniqueKey``, ``LastModified``). Two legacy
spellings are still accepted on read and never written:

- ``Relationships`` in place of ``Values`` inside a relationship set
- a top-level ``DerivedTopicKey`` (or ``BaseTopicKey``), which the importer
  migrates into a ``BaseTopic`` reference
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal

# Timestamp used when a record carries no edit time; sorts before everything.
MIN_TIMESTAMP = datetime.min.replace(tzinfo=UTC)


class _InterchangeModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


class InterchangeRecord(_InterchangeModel):
    """A keyed, timestamped value: one attribute or one single reference.

    For attributes ``value`` is the scalar string. For references it is the
    unique key of the target topic, or ``None`` to clear the reference.

    Attributes:
        key: Attribute or reference name.
        value: Value or target unique key.
        last_modified: Edit time used for conflict resolution.
    """

    key: str = Field(min_length=1)
    value: str | None = None
    last_modified: datetime = MIN_TIMESTAMP

    @field_validator("last_modified")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC so comparisons never mix naive and aware."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class InterchangeRelationship(_InterchangeModel):
    """A named set of related topics, identified by unique key.

    The set carries no timestamp; it is merged as a whole.
    """

    key: str = Field(min_length=1)
    values: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("Values", "Relationships", "values"),
        serialization_alias="Values",
    )

    @field_validator("values")
    @classmethod
    def collapse_duplicates(cls, v: list[str]) -> list[str]:
        """Drop repeated targets, keeping first-seen order."""
        return list(dict.fromkeys(v))


class InterchangeTopic(_InterchangeModel):
    """One topic in an interchange snapshot.

    Attributes:
        key: Identifier unique among siblings.
        unique_key: Colon-delimited path of keys from the root.
        content_type: Schema tag for the topic.
        derived_topic_key: Legacy base-topic pointer; read-only.
        attributes: Scalar fields, unique by key.
        relationships: Named relationship sets, unique by key.
        references: Single references, unique by key.
        children: Child topics in order.
    """

    key: str = Field(min_length=1)
    unique_key: str = Field(min_length=1)
    content_type: str = Field(min_length=1)
    derived_topic_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DerivedTopicKey", "BaseTopicKey", "derived_topic_key"),
        exclude=True,
    )
    attributes: list[InterchangeRecord] = Field(default_factory=list)
    relationships: list[InterchangeRelationship] = Field(default_factory=list)
    references: list[InterchangeRecord] = Field(default_factory=list)
    children: list[InterchangeTopic] = Field(default_factory=list)

    @field_validator("attributes", "references", "relationships")
    @classmethod
    def reject_duplicate_keys(
        cls, v: list[InterchangeRecord] | list[InterchangeRelationship]
    ) -> list[InterchangeRecord] | list[InterchangeRelationship]:
        seen: set[str] = set()
        for item in v:
            if item.key in seen:
                raise ValueError(f"duplicate key '{item.key}'")
            seen.add(item.key)
        return v

    def get_attribute(self, key: str) -> InterchangeRecord | None:
        return next((a for a in self.attributes if a.key == key), None)

    def get_reference(self, key: str) -> InterchangeRecord | None:
        return next((r for r in self.references if r.key == key), None)

    def get_relationship(self, key: str) -> InterchangeRelationship | None:
        return next((r for r in self.relationships if r.key == key), None)

    def get_child(self, key: str) -> InterchangeTopic | None:
        return next((c for c in self.children if c.key == key), None)
