"""Merge decisions for individual records.

``decide()`` is the single place where an ImportStrategy is turned into an
action for one attribute or reference. It is a pure function of the strategy
and the two timestamps, so it can be tested without a graph.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from topictransfer.interchange.options import ImportStrategy

if TYPE_CHECKING:
    from datetime import datetime


class MergeDecision(StrEnum):
    """Action to take for one record.

    Attributes:
        SKIP: Leave the live record as it is.
        APPLY: Write the incoming record over the live one.
        DELETE_IF_UNMATCHED: Remove the live record; it has no incoming counterpart.
    """

    SKIP = "skip"
    APPLY = "apply"
    DELETE_IF_UNMATCHED = "delete_if_unmatched"


def decide(
    strategy: ImportStrategy,
    existing: datetime | None,
    incoming: datetime | None,
    *,
    delete_unmatched: bool = False,
) -> MergeDecision:
    """Decide what to do with one record.

    Args:
        strategy: The import strategy in effect.
        existing: Timestamp of the matching live record, or None if the live
            topic has no record under this key.
        incoming: Timestamp of the interchange record, or None if the live
            record has no interchange counterpart.
        delete_unmatched: Whether unmatched live records of this category
            should be removed.

    Returns:
        The decision for the record.
    """
    if incoming is None:
        if existing is not None and delete_unmatched:
            return MergeDecision.DELETE_IF_UNMATCHED
        return MergeDecision.SKIP

    if existing is None:
        return MergeDecision.APPLY

    if strategy is ImportStrategy.ADD:
        return MergeDecision.SKIP
    if strategy is ImportStrategy.MERGE and existing >= incoming:
        return MergeDecision.SKIP
    return MergeDecision.APPLY
