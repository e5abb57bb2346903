"""Export live topics to interchange snapshots.

The exporter walks a live topic depth-first and builds an InterchangeTopic
tree. What it emits is controlled by ExportOptions:

- Reserved attributes (``Key``, ``ParentId``, ``ContentType``, ``TopicId``)
  are never exported, and empty attribute values are skipped.
- Relationship and reference targets outside the export scope are dropped
  unless external associations are included.
- Children are exported when ``include_child_topics`` is set, when the
  current topic is a List, or when ``include_nested_topics`` is set and the
  child is a List. List topics only group their children, so their content
  travels with the parent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from topictransfer.interchange.options import (
    LIST_CONTENT_TYPE,
    ExportOptions,
    is_reserved_attribute,
)
from topictransfer.interchange.scope import (
    is_in_scope,
    is_legacy_pointer_key,
    translate_legacy_pointer,
)
from topictransfer.models.interchange import (
    InterchangeRecord,
    InterchangeRelationship,
    InterchangeTopic,
)
from topictransfer.observability.logging import get_logger

if TYPE_CHECKING:
    from topictransfer.graph import Topic

log = get_logger(__name__)


def export_topic(topic: Topic, options: ExportOptions | None = None) -> InterchangeTopic:
    """Export *topic* (and, depending on options, its descendants).

    Args:
        topic: Live topic to export. Its unique key becomes the export scope
            unless the options already carry one.
        options: Export options. Defaults to ``ExportOptions()``.

    Returns:
        The interchange snapshot rooted at *topic*.
    """
    resolved = (options or ExportOptions()).resolve(topic.unique_key)
    log.debug(
        "export_started",
        unique_key=topic.unique_key,
        scope=resolved.export_scope,
        include_child_topics=resolved.include_child_topics,
        include_external=resolved.include_external_associations,
    )
    return _export(topic, resolved)


def _export(topic: Topic, options: ExportOptions) -> InterchangeTopic:
    scope = options.export_scope or topic.unique_key
    include_external = options.include_external_associations

    return InterchangeTopic(
        key=topic.key,
        unique_key=topic.unique_key,
        content_type=topic.content_type,
        attributes=_export_attributes(topic, options, scope),
        relationships=_export_relationships(topic, scope, include_external),
        references=_export_references(topic, scope, include_external),
        children=[
            _export(child, options)
            for child in topic.children
            if _should_export_child(topic, child, options)
        ],
    )


def _export_attributes(
    topic: Topic, options: ExportOptions, scope: str
) -> list[InterchangeRecord]:
    records = []
    for attribute in topic.attributes:
        if is_reserved_attribute(attribute.key):
            continue
        value = attribute.value
        if options.translate_legacy_pointers and is_legacy_pointer_key(attribute.key):
            value = translate_legacy_pointer(
                topic, value, scope, options.include_external_associations
            )
        if not value:
            continue
        records.append(
            InterchangeRecord(
                key=attribute.key,
                value=value,
                last_modified=attribute.last_modified,
            )
        )
    return records


def _export_references(
    topic: Topic, scope: str, include_external: bool
) -> list[InterchangeRecord]:
    records = []
    for reference in topic.references:
        target_key = reference.value.unique_key if reference.value is not None else None
        if not is_in_scope(target_key, scope, include_external):
            continue
        records.append(
            InterchangeRecord(
                key=reference.key,
                value=target_key,
                last_modified=reference.last_modified,
            )
        )
    return records


def _export_relationships(
    topic: Topic, scope: str, include_external: bool
) -> list[InterchangeRelationship]:
    relationships = []
    for name, targets in topic.relationships:
        values = [
            target.unique_key
            for target in targets
            if is_in_scope(target.unique_key, scope, include_external)
        ]
        if values:
            relationships.append(InterchangeRelationship(key=name, values=values))
    return relationships


def _should_export_child(topic: Topic, child: Topic, options: ExportOptions) -> bool:
    return (
        options.include_child_topics
        or topic.content_type == LIST_CONTENT_TYPE
        or (options.include_nested_topics and child.content_type == LIST_CONTENT_TYPE)
    )
