"""Transfer profile loading.

A transfer profile is a YAML file that stores export and import options so
they don't have to be repeated on every command line::

    export:
      include_child_topics: true
      include_external_associations: false
    import:
      strategy: merge
      delete_unmatched_children: true
      last_modified_by_strategy: current
      current_user: editor

Every key maps onto the ExportOptions / ImportOptions field of the same
name. Enum values are given by name, case-insensitive. Options left out keep
their defaults, including the strategy-dependent ones.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

from topictransfer.interchange.options import (
    SYSTEM_USER,
    ExportOptions,
    ImportOptions,
    ImportStrategy,
    LastModifiedImportStrategy,
)

CURRENT_USER_ENV = "TOPICTRANSFER_CURRENT_USER"


def _optional_bool(data: dict[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value


def _reject_unknown(section: str, data: dict[str, Any], known: set[str]) -> None:
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown {section} option(s): {', '.join(unknown)}")


@dataclass
class ExportProfile:
    """Export section of a transfer profile."""

    include_child_topics: bool = False
    include_nested_topics: bool = False
    include_external_associations: bool = False
    translate_legacy_pointers: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExportProfile:
        """Create the export section from a dictionary.

        Raises:
            ValueError: On unknown keys or non-boolean values.
        """
        known = {f.name for f in fields(cls)}
        _reject_unknown("export", data, known)
        values = {key: _optional_bool(data, key) for key in known}
        return cls(**{key: value for key, value in values.items() if value is not None})

    def to_options(self) -> ExportOptions:
        return ExportOptions(
            include_child_topics=self.include_child_topics,
            include_nested_topics=self.include_nested_topics,
            include_external_associations=self.include_external_associations,
            translate_legacy_pointers=self.translate_legacy_pointers,
        )


@dataclass
class ImportProfile:
    """Import section of a transfer profile.

    Boolean options left as None default according to the strategy.

    Attributes:
        current_user: Acting user for provenance stamps. The
            TOPICTRANSFER_CURRENT_USER environment variable takes precedence.
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
    current_user: str | None = None

    _FLAGS = (
        "delete_unmatched_attributes",
        "delete_unmatched_relationships",
        "delete_unmatched_references",
        "delete_unmatched_children",
        "delete_unmatched_nested_topics",
        "overwrite_content_type",
    )

    def get_current_user(self) -> str:
        """Get the effective acting user.

        Checks TOPICTRANSFER_CURRENT_USER, then the profile, then falls back
        to the system user.
        """
        return os.getenv(CURRENT_USER_ENV) or self.current_user or SYSTEM_USER

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImportProfile:
        """Create the import section from a dictionary.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        _reject_unknown("import", data, known)

        profile = cls(
            strategy=ImportStrategy.parse(data.get("strategy", "add")),
            last_modified_strategy=LastModifiedImportStrategy.parse(
                data.get("last_modified_strategy", "inherit")
            ),
            last_modified_by_strategy=LastModifiedImportStrategy.parse(
                data.get("last_modified_by_strategy", "inherit")
            ),
            current_user=data.get("current_user"),
        )
        for flag in cls._FLAGS:
            setattr(profile, flag, _optional_bool(data, flag))
        return profile

    def to_options(self) -> ImportOptions:
        return ImportOptions(
            strategy=self.strategy,
            delete_unmatched_attributes=self.delete_unmatched_attributes,
            delete_unmatched_relationships=self.delete_unmatched_relationships,
            delete_unmatched_references=self.delete_unmatched_references,
            delete_unmatched_children=self.delete_unmatched_children,
            delete_unmatched_nested_topics=self.delete_unmatched_nested_topics,
            overwrite_content_type=self.overwrite_content_type,
            last_modified_strategy=self.last_modified_strategy,
            last_modified_by_strategy=self.last_modified_by_strategy,
            current_user=self.get_current_user(),
        )


@dataclass
class TransferConfig:
    """A transfer profile: default export and import options."""

    export: ExportProfile = field(default_factory=ExportProfile)
    import_: ImportProfile = field(default_factory=ImportProfile)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransferConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary with optional ``export`` and ``import`` sections.

        Returns:
            TransferConfig instance.
        """
        _reject_unknown("top-level", data, {"export", "import"})
        return cls(
            export=ExportProfile.from_dict(dict(data.get("export") or {})),
            import_=ImportProfile.from_dict(dict(data.get("import") or {})),
        )

    def to_export_options(self) -> ExportOptions:
        return self.export.to_options()

    def to_import_options(self) -> ImportOptions:
        return self.import_.to_options()


class ConfigError(Exception):
    """Raised when a transfer profile cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load transfer profile at {path}: {reason}")


def load_transfer_config(path: Path) -> TransferConfig:
    """Load a transfer profile from YAML.

    Args:
        path: Path to the profile file.

    Returns:
        TransferConfig instance.

    Raises:
        ConfigError: If the profile cannot be loaded.
    """
    if not path.exists():
        raise ConfigError(path, "File not found")

    yaml = YAML(typ="safe")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            raise ConfigError(path, "Empty file")
        if not isinstance(data, dict):
            raise ConfigError(path, "Expected a mapping at the top level")

        return TransferConfig.from_dict(data)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(path, str(e)) from e
