"""Interchange package - export and import of topic snapshots.

Export walks a live topic into an InterchangeTopic tree; import merges such a
tree back into a live graph under one of four strategies.
"""

from topictransfer.interchange.codec import (
    InterchangeParseError,
    InterchangeWriteError,
    dumps,
    loads,
    read_snapshot,
    write_snapshot,
)
from topictransfer.interchange.exporter import export_topic
from topictransfer.interchange.importer import (
    AssociationKind,
    ImportReport,
    UnresolvedAssociation,
    import_topic,
    materialize,
)
from topictransfer.interchange.options import (
    LIST_CONTENT_TYPE,
    SYSTEM_USER,
    ExportOptions,
    ImportOptions,
    ImportStrategy,
    LastModifiedImportStrategy,
    ResolvedImportOptions,
)
from topictransfer.interchange.strategy import MergeDecision, decide

__all__ = [
    "LIST_CONTENT_TYPE",
    "SYSTEM_USER",
    "AssociationKind",
    "ExportOptions",
    "ImportOptions",
    "ImportReport",
    "ImportStrategy",
    "InterchangeParseError",
    "InterchangeWriteError",
    "LastModifiedImportStrategy",
    "MergeDecision",
    "ResolvedImportOptions",
    "UnresolvedAssociation",
    "decide",
    "dumps",
    "export_topic",
    "import_topic",
    "loads",
    "materialize",
    "read_snapshot",
    "write_snapshot",
]
