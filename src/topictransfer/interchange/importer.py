"""Import interchange snapshots into a live topic graph.

Import runs in two passes over the snapshot:

Pass 1 (``_ImportPass.apply``)
    Depth-first merge of each snapshot node into its live counterpart:
    content type, attributes, provenance stamps, relationships, references,
    then children (creating missing ones). Relationship and reference targets
    that don't exist yet are staged as UnresolvedAssociation entries.

Pass 2 (``_ImportPass.resolve_deferred``)
    Runs once after pass 1 has finished the whole subtree. Every staged
    association is looked up again; the ones that now resolve are set, the
    rest are dropped with a warning and listed in the ImportReport.

Staging is what makes forward references and cycles work: a child may point
at a sibling that only gets created later in the same import.

A unique key mismatch between a snapshot node and the live topic aborts the
import with UniqueKeyMismatchError. Changes already applied are kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from topictransfer.graph import TopicGraph, UniqueKeyMismatchError, utcnow
from topictransfer.interchange.options import (
    LAST_MODIFIED_BY_KEY,
    LAST_MODIFIED_KEY,
    LIST_CONTENT_TYPE,
    SYSTEM_USER,
    ImportOptions,
    ImportStrategy,
    LastModifiedImportStrategy,
    ResolvedImportOptions,
    is_reserved_attribute,
)
from topictransfer.interchange.scope import promote_legacy_pointers
from topictransfer.interchange.strategy import MergeDecision, decide
from topictransfer.models.interchange import MIN_TIMESTAMP
from topictransfer.observability.logging import get_logger

if TYPE_CHECKING:
    from datetime import datetime

    from topictransfer.graph import Topic
    from topictransfer.models.interchange import InterchangeRecord, InterchangeTopic

log = get_logger(__name__)


class AssociationKind(StrEnum):
    """Kind of association staged for the second pass."""

    RELATIONSHIP = "relationship"
    REFERENCE = "reference"


@dataclass
class UnresolvedAssociation:
    """A relationship or reference whose target didn't exist during pass 1.

    Attributes:
        kind: Relationship member or single reference.
        source: Live topic that owns the association.
        key: Relationship name or reference key.
        target_key: Unique key of the missing target.
        last_modified: Timestamp to record on a resolved reference.
    """

    kind: AssociationKind
    source: Topic
    key: str
    target_key: str
    last_modified: datetime | None = None


@dataclass
class ImportReport:
    """Summary of one import call.

    Attributes:
        topics_created: Live topics created for snapshot children.
        topics_deleted: Live topics removed as unmatched, descendants included.
        associations_deferred: Associations staged during pass 1.
        associations_resolved: Staged associations set during pass 2.
        dropped: Staged associations that never resolved.
    """

    topics_created: int = 0
    topics_deleted: int = 0
    associations_deferred: int = 0
    associations_resolved: int = 0
    dropped: list[UnresolvedAssociation] = field(default_factory=list)


def import_topic(
    topic: Topic,
    topic_data: InterchangeTopic,
    options: ImportOptions | None = None,
) -> ImportReport:
    """Merge a snapshot into a live topic and its descendants.

    Args:
        topic: Live topic whose unique key matches ``topic_data.unique_key``.
        topic_data: Snapshot to import.
        options: Import options. Defaults to ``ImportOptions()`` (ADD).

    Returns:
        What the import changed.

    Raises:
        UniqueKeyMismatchError: If any snapshot node doesn't match the live
            topic it is merged into.
    """
    resolved = (options or ImportOptions()).resolve()
    log.info(
        "import_started",
        unique_key=topic.unique_key,
        strategy=resolved.strategy.name.lower(),
    )

    run = _ImportPass(resolved, root_key=topic.root.key)
    run.apply(topic, topic_data)
    run.resolve_deferred()

    report = run.report
    log.info(
        "import_completed",
        unique_key=topic.unique_key,
        topics_created=report.topics_created,
        topics_deleted=report.topics_deleted,
        associations_deferred=report.associations_deferred,
        associations_resolved=report.associations_resolved,
        dropped=len(report.dropped),
    )
    return report


def materialize(topic_data: InterchangeTopic) -> tuple[TopicGraph, Topic]:
    """Build a fresh live graph holding the snapshot.

    Ancestors named in the snapshot's unique key are created as plain
    containers. The snapshot itself is loaded with REPLACE semantics, but
    record timestamps are stored exactly as written (MIN_TIMESTAMP included)
    and no provenance attributes are stamped or backfilled. The graph is
    marked clean afterwards.

    Returns:
        The new graph and the topic the snapshot was imported into.
    """
    graph = TopicGraph.empty()
    topic = graph.ensure_path(topic_data.unique_key)
    run = _ImportPass(
        ImportOptions(strategy=ImportStrategy.REPLACE).resolve(),
        root_key=topic.root.key,
        preserve_snapshot=True,
    )
    run.apply(topic, topic_data)
    run.resolve_deferred()
    log.debug("snapshot_materialized", unique_key=topic.unique_key, topics=graph.topic_count())
    graph.mark_clean()
    return graph, topic


# -----------------------------------------------------------------------------
# Import pass
# -----------------------------------------------------------------------------


class _ImportPass:
    """State shared by both passes of one import call.

    With ``preserve_snapshot`` set, record timestamps are stored as written and
    provenance attributes are left alone.
    """

    def __init__(
        self,
        options: ResolvedImportOptions,
        *,
        root_key: str,
        preserve_snapshot: bool = False,
    ) -> None:
        self.options = options
        self.root_key = root_key
        self.preserve_snapshot = preserve_snapshot
        self.report = ImportReport()
        self.pending: list[UnresolvedAssociation] = []

    def apply(self, topic: Topic, topic_data: InterchangeTopic) -> None:
        """Pass 1: merge one snapshot node, then recurse into its children."""
        if topic.unique_key != topic_data.unique_key:
            raise UniqueKeyMismatchError(expected=topic.unique_key, actual=topic_data.unique_key)

        if self.options.overwrite_content_type:
            topic.content_type = topic_data.content_type

        topic_data = promote_legacy_pointers(topic_data, self.root_key)

        self._apply_attributes(topic, topic_data)
        if topic.attributes.is_dirty() and not self.preserve_snapshot:
            self._stamp_provenance(topic)
        self._apply_relationships(topic, topic_data)
        self._apply_references(topic, topic_data)
        self._apply_children(topic, topic_data)

    def resolve_deferred(self) -> None:
        """Pass 2: set staged associations whose targets now exist."""
        for association in self.pending:
            source = association.source
            target = source.graph.get_by_unique_key(association.target_key)
            if target is None:
                log.warning(
                    "unresolved_association_dropped",
                    kind=association.kind.value,
                    source=source.unique_key,
                    key=association.key,
                    target=association.target_key,
                )
                self.report.dropped.append(association)
                continue
            if association.kind is AssociationKind.RELATIONSHIP:
                source.relationships.set_value(association.key, target)
            else:
                source.references.set_value(association.key, target, association.last_modified)
            self.report.associations_resolved += 1
        self.pending.clear()

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    def _apply_attributes(self, topic: Topic, topic_data: InterchangeTopic) -> None:
        strategy = self.options.strategy
        incoming_keys = {attribute.key for attribute in topic_data.attributes}

        for record in topic.attributes:
            if is_reserved_attribute(record.key) or record.key in incoming_keys:
                continue
            decision = decide(
                strategy,
                record.last_modified,
                None,
                delete_unmatched=self.options.delete_unmatched_attributes,
            )
            if decision is MergeDecision.DELETE_IF_UNMATCHED:
                topic.attributes.remove(record.key)

        for attribute in topic_data.attributes:
            if self._has_own_provenance_rule(attribute.key):
                continue
            existing = topic.attributes.get(attribute.key)
            existing_modified = (
                existing.last_modified if existing is not None and existing.value is not None else None
            )
            if decide(strategy, existing_modified, attribute.last_modified) is MergeDecision.APPLY:
                topic.attributes.set_value(
                    attribute.key, attribute.value, self._timestamp(attribute)
                )

    def _has_own_provenance_rule(self, key: str) -> bool:
        inherit = LastModifiedImportStrategy.INHERIT
        if key == LAST_MODIFIED_KEY:
            return self.options.last_modified_strategy is not inherit
        if key == LAST_MODIFIED_BY_KEY:
            return self.options.last_modified_by_strategy is not inherit
        return False

    def _stamp_provenance(self, topic: Topic) -> None:
        attributes = topic.attributes
        now = utcnow()

        if self.options.last_modified_strategy in (
            LastModifiedImportStrategy.CURRENT,
            LastModifiedImportStrategy.SYSTEM,
        ):
            attributes.set_value(LAST_MODIFIED_KEY, now.isoformat(), now)

        by_strategy = self.options.last_modified_by_strategy
        if by_strategy is LastModifiedImportStrategy.CURRENT:
            attributes.set_value(LAST_MODIFIED_BY_KEY, self.options.current_user, now)
        elif by_strategy is LastModifiedImportStrategy.SYSTEM:
            attributes.set_value(LAST_MODIFIED_BY_KEY, SYSTEM_USER, now)

        if attributes.get_value(LAST_MODIFIED_KEY) is None:
            attributes.set_value(LAST_MODIFIED_KEY, now.isoformat(), now)
        if attributes.get_value(LAST_MODIFIED_BY_KEY) is None:
            attributes.set_value(LAST_MODIFIED_BY_KEY, self.options.current_user, now)

    # -------------------------------------------------------------------------
    # Associations
    # -------------------------------------------------------------------------

    def _apply_relationships(self, topic: Topic, topic_data: InterchangeTopic) -> None:
        if self.options.delete_unmatched_relationships:
            for name in topic.relationships.keys():
                topic.relationships.clear(name)

        for relationship in topic_data.relationships:
            for target_key in relationship.values:
                target = topic.graph.get_by_unique_key(target_key)
                if target is not None:
                    topic.relationships.set_value(relationship.key, target)
                else:
                    self._defer(AssociationKind.RELATIONSHIP, topic, relationship.key, target_key)

    def _apply_references(self, topic: Topic, topic_data: InterchangeTopic) -> None:
        strategy = self.options.strategy
        incoming_keys = {reference.key for reference in topic_data.references}

        for existing in list(topic.references):
            if existing.key in incoming_keys:
                continue
            decision = decide(
                strategy,
                existing.last_modified,
                None,
                delete_unmatched=self.options.delete_unmatched_references,
            )
            if decision is MergeDecision.DELETE_IF_UNMATCHED:
                topic.references.remove(existing.key)

        for reference in topic_data.references:
            existing = topic.references.get(reference.key)
            existing_modified = (
                existing.last_modified if existing is not None and existing.value is not None else None
            )
            if decide(strategy, existing_modified, reference.last_modified) is not MergeDecision.APPLY:
                continue
            last_modified = self._timestamp(reference)
            if reference.value is None:
                topic.references.set_value(reference.key, None, last_modified)
                continue
            target = topic.graph.get_by_unique_key(reference.value)
            if target is not None:
                topic.references.set_value(reference.key, target, last_modified)
            else:
                self._defer(
                    AssociationKind.REFERENCE,
                    topic,
                    reference.key,
                    reference.value,
                    last_modified,
                )

    def _timestamp(self, record: InterchangeRecord) -> datetime | None:
        """Timestamp to store for an applied record; None stamps it with now."""
        if record.last_modified == MIN_TIMESTAMP and not self.preserve_snapshot:
            return None
        return record.last_modified

    def _defer(
        self,
        kind: AssociationKind,
        source: Topic,
        key: str,
        target_key: str,
        last_modified: datetime | None = None,
    ) -> None:
        log.debug(
            "association_deferred",
            kind=kind.value,
            source=source.unique_key,
            key=key,
            target=target_key,
        )
        self.pending.append(
            UnresolvedAssociation(
                kind=kind,
                source=source,
                key=key,
                target_key=target_key,
                last_modified=last_modified,
            )
        )
        self.report.associations_deferred += 1

    # -------------------------------------------------------------------------
    # Children
    # -------------------------------------------------------------------------

    def _apply_children(self, topic: Topic, topic_data: InterchangeTopic) -> None:
        if topic.content_type == LIST_CONTENT_TYPE:
            delete_unmatched = self.options.delete_unmatched_nested_topics
        else:
            delete_unmatched = self.options.delete_unmatched_children

        if delete_unmatched:
            incoming_keys = {child.key.casefold() for child in topic_data.children}
            for child in list(topic.children):
                if child.key.casefold() not in incoming_keys:
                    self.report.topics_deleted += topic.children.remove(child)

        for child_data in topic_data.children:
            child = topic.children.get(child_data.key)
            if child is None:
                child = topic.children.create(child_data.key, child_data.content_type)
                self.report.topics_created += 1
            self.apply(child, child_data)

