"""Export and import options.

Options are plain dataclasses. Several import options default according to
the chosen strategy; ``ImportOptions.resolve()`` applies those defaults once,
at the start of an import, and returns a frozen ResolvedImportOptions that the
importer consults for every topic.

Defaulting table for ImportOptions (``None`` means "use the default"):

==============================  ==================================
Option                          Default
==============================  ==================================
delete_unmatched_attributes     strategy is REPLACE
delete_unmatched_relationships  strategy is REPLACE
delete_unmatched_references     strategy is REPLACE
delete_unmatched_children       strategy is REPLACE
delete_unmatched_nested_topics  strategy is REPLACE
overwrite_content_type          strategy is OVERWRITE or REPLACE
==============================  ==================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import TypeVar

# Content type of topics that exist only to group nested topics.
LIST_CONTENT_TYPE = "List"

# Actor recorded by the SYSTEM last-modified strategy and the default user.
SYSTEM_USER = "System"

LAST_MODIFIED_KEY = "LastModified"
LAST_MODIFIED_BY_KEY = "LastModifiedBy"

# Attribute keys that mirror topic properties and never travel as attributes.
RESERVED_ATTRIBUTE_KEYS = frozenset({"key", "parentid", "contenttype", "topicid"})

E = TypeVar("E", bound=IntEnum)


def is_reserved_attribute(key: str) -> bool:
    """Check whether *key* is a reserved attribute key (case-insensitive)."""
    return key.casefold() in RESERVED_ATTRIBUTE_KEYS


def _parse_enum(enum_cls: type[E], value: str | E) -> E:
    if isinstance(value, enum_cls):
        return value
    normalized = str(value).strip().replace("-", "").replace("_", "").casefold()
    for member in enum_cls:
        if member.name.replace("_", "").casefold() == normalized:
            return member
    valid = ", ".join(m.name.lower().replace("_", "-") for m in enum_cls)
    raise ValueError(f"Unknown {enum_cls.__name__} '{value}'. Valid: {valid}")


class ImportStrategy(IntEnum):
    """Conflict-resolution policy for imports, ordered by aggressiveness.

    Attributes:
        ADD: Only add records that don't exist yet.
        MERGE: Overwrite records only when the incoming copy is newer.
        OVERWRITE: Always overwrite matching records.
        REPLACE: Overwrite, and delete anything the snapshot doesn't contain.
    """

    ADD = 1
    MERGE = 2
    OVERWRITE = 3
    REPLACE = 4

    @classmethod
    def parse(cls, value: str | ImportStrategy) -> ImportStrategy:
        """Parse a strategy by name (case-insensitive)."""
        return _parse_enum(cls, value)


class LastModifiedImportStrategy(IntEnum):
    """Policy for the ``LastModified`` / ``LastModifiedBy`` attributes.

    Attributes:
        INHERIT: Follow the general import strategy.
        TARGET_VALUE: Never overwrite the live value.
        CURRENT: Stamp with the current user and time.
        SYSTEM: Stamp with the system user and current time.
    """

    INHERIT = 1
    TARGET_VALUE = 2
    CURRENT = 3
    SYSTEM = 4

    @classmethod
    def parse(cls, value: str | LastModifiedImportStrategy) -> LastModifiedImportStrategy:
        """Parse a strategy by name (case-insensitive, dashes or underscores)."""
        return _parse_enum(cls, value)


@dataclass(frozen=True)
class ExportOptions:
    """Options for exporting a topic subtree.

    Attributes:
        include_child_topics: Recurse into every child.
        include_nested_topics: Recurse into children that are List topics.
            Always on when include_child_topics is set.
        include_external_associations: Export relationships and references
            whose targets fall outside the exported subtree.
        translate_legacy_pointers: Rewrite numeric ``...ID`` attributes into
            the unique key of the topic they point at.
        export_scope: Unique-key prefix considered local. Set from the topic
            an export starts at; not meant to be passed by callers.
    """

    include_child_topics: bool = False
    include_nested_topics: bool = False
    include_external_associations: bool = False
    translate_legacy_pointers: bool = True
    export_scope: str | None = None

    def resolve(self, scope: str) -> ExportOptions:
        """Return a copy with the scope fixed and implied flags applied."""
        return replace(
            self,
            include_nested_topics=self.include_nested_topics or self.include_child_topics,
            export_scope=self.export_scope or scope,
        )


@dataclass(frozen=True)
class ResolvedImportOptions:
    """ImportOptions with every strategy-dependent default applied."""

    strategy: ImportStrategy
    delete_unmatched_attributes: bool
    delete_unmatched_relationships: bool
    delete_unmatched_references: bool
    delete_unmatched_children: bool
    delete_unmatched_nested_topics: bool
    overwrite_content_type: bool
    last_modified_strategy: LastModifiedImportStrategy
    last_modified_by_strategy: LastModifiedImportStrategy
    current_user: str


@dataclass
class ImportOptions:
    """Options for importing a snapshot into a live topic.

    Boolean options left as ``None`` default according to ``strategy``;
    see the module docstring for the table.
    """

    strategy: ImportStrategy = ImportStrategy.ADD
    delete_unmatched_attributes: bool | None = None
    delete_unmatched_relationships: bool | None = None
    delete_unmatched_references: bool | None = None
    delete_unmatched_children: bool | None = None
    delete_unmatched_nested_topics: bool | None = None
    overwrite_content_type: bool | None = None
    last_modified_strategy: LastModifiedImportStrategy = LastModifiedImportStrategy.INHERIT
    last_modified_by_strategy: LastModifiedImportStrategy = LastModifiedImportStrategy.INHERIT
    current_user: str = SYSTEM_USER

    def resolve(self) -> ResolvedImportOptions:
        """Apply strategy-dependent defaults."""
        is_replace = self.strategy is ImportStrategy.REPLACE

        def pick(value: bool | None, default: bool) -> bool:
            return default if value is None else value

        return ResolvedImportOptions(
            strategy=self.strategy,
            delete_unmatched_attributes=pick(self.delete_unmatched_attributes, is_replace),
            delete_unmatched_relationships=pick(self.delete_unmatched_relationships, is_replace),
            delete_unmatched_references=pick(self.delete_unmatched_references, is_replace),
            delete_unmatched_children=pick(self.delete_unmatched_children, is_replace),
            delete_unmatched_nested_topics=pick(self.delete_unmatched_nested_topics, is_replace),
            overwrite_content_type=pick(
                self.overwrite_content_type, self.strategy >= ImportStrategy.OVERWRITE
            ),
            last_modified_strategy=self.last_modified_strategy,
            last_modified_by_strategy=self.last_modified_by_strategy,
            current_user=self.current_user,
        )
