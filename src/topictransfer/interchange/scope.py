"""Export scope and legacy pointer handling.

Two concerns live here, both pure functions:

Scope
    An export is scoped to the unique key of the topic it started at. A
    relationship or reference target is local when its unique key starts
    with that scope (case-insensitive).

Legacy pointers
    Older graphs stored pointers as plain attributes named ``...ID`` holding
    the numeric id of the target topic. On export such values are rewritten
    to the target's unique key; on import, ``...ID`` attributes whose value
    looks like a unique key are promoted to references.

The pointer classifier is a naming heuristic. Any attribute whose key ends in
``ID`` and whose value is an integer matching some topic id is translated on
export, even if it was never meant as a pointer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from topictransfer.models.interchange import InterchangeRecord

if TYPE_CHECKING:
    from topictransfer.graph import Topic
    from topictransfer.models.interchange import InterchangeTopic

LEGACY_POINTER_SUFFIX = "ID"

# Reference key that carries a topic's base (derived-from) topic.
BASE_TOPIC_KEY = "BaseTopic"

# Legacy attribute names whose promoted reference key isn't just the stem.
LEGACY_REFERENCE_ALIASES = {"topicid": BASE_TOPIC_KEY}


def is_in_scope(unique_key: str | None, scope: str, include_external: bool = False) -> bool:
    """Check whether a target unique key belongs to the export scope.

    A ``None`` target (a cleared reference) is always in scope.
    """
    if include_external or unique_key is None:
        return True
    return unique_key.casefold().startswith(scope.casefold())


def is_legacy_pointer_key(key: str) -> bool:
    """Check whether an attribute key follows the ``...ID`` pointer convention."""
    suffix = len(LEGACY_POINTER_SUFFIX)
    return len(key) > suffix and key[-suffix:].upper() == LEGACY_POINTER_SUFFIX


def parse_topic_id(value: str | None) -> int | None:
    """Parse a legacy pointer value as a topic id, or None if not numeric."""
    if not value:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def translate_legacy_pointer(
    topic: Topic,
    value: str | None,
    scope: str,
    include_external: bool = False,
) -> str | None:
    """Rewrite a numeric legacy pointer into its target's unique key.

    Args:
        topic: Topic that owns the attribute; its graph is searched.
        value: Attribute value.
        scope: Export scope.
        include_external: Accept targets outside the scope.

    Returns:
        The target's unique key; the value unchanged if it isn't numeric; or
        None if the target doesn't exist or is out of scope.
    """
    topic_id = parse_topic_id(value)
    if topic_id is None:
        return value
    target = topic.graph.get_by_id(topic_id)
    if target is None or not is_in_scope(target.unique_key, scope, include_external):
        return None
    return target.unique_key


def legacy_reference_key(attribute_key: str) -> str:
    """Map a legacy ``...ID`` attribute key to the reference key it becomes."""
    alias = LEGACY_REFERENCE_ALIASES.get(attribute_key.casefold())
    if alias is not None:
        return alias
    return attribute_key[: -len(LEGACY_POINTER_SUFFIX)]


def promote_legacy_pointers(topic_data: InterchangeTopic, root_key: str) -> InterchangeTopic:
    """Move legacy pointer attributes into references.

    Attributes named ``...ID`` whose value starts with *root_key* become
    references keyed by the name minus the suffix (``TopicID`` becomes
    ``BaseTopic``). A legacy ``derived_topic_key`` becomes a ``BaseTopic``
    reference. References already present in the snapshot win over promoted
    ones.

    Args:
        topic_data: Snapshot node to rewrite. Not mutated.
        root_key: Key of the live graph's root topic.

    Returns:
        A copy of the node with pointers promoted, or the node itself when
        there is nothing to promote.
    """
    prefix = root_key.casefold()
    references = list(topic_data.references)
    reference_keys = {reference.key for reference in references}
    attributes = []

    for attribute in topic_data.attributes:
        value = attribute.value
        if not (
            is_legacy_pointer_key(attribute.key)
            and value
            and value.casefold().startswith(prefix)
        ):
            attributes.append(attribute)
            continue
        reference_key = legacy_reference_key(attribute.key)
        if reference_key not in reference_keys:
            references.append(
                InterchangeRecord(
                    key=reference_key,
                    value=value,
                    last_modified=attribute.last_modified,
                )
            )
            reference_keys.add(reference_key)

    if topic_data.derived_topic_key and BASE_TOPIC_KEY not in reference_keys:
        references.append(InterchangeRecord(key=BASE_TOPIC_KEY, value=topic_data.derived_topic_key))

    if len(attributes) == len(topic_data.attributes) and len(references) == len(
        topic_data.references
    ):
        return topic_data
    return topic_data.model_copy(update={"attributes": attributes, "references": references})
