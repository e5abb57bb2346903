"""Tests for export and import options."""

from __future__ import annotations

import pytest

from topictransfer.interchange.options import (
    SYSTEM_USER,
    ExportOptions,
    ImportOptions,
    ImportStrategy,
    LastModifiedImportStrategy,
    is_reserved_attribute,
)

DELETE_FLAGS = (
    "delete_unmatched_attributes",
    "delete_unmatched_relationships",
    "delete_unmatched_references",
    "delete_unmatched_children",
    "delete_unmatched_nested_topics",
)


class TestImportOptionsDefaults:
    """Strategy-dependent defaults of ImportOptions."""

    def test_plain_defaults(self) -> None:
        """Default options use ADD, INHERIT and the system user."""
        resolved = ImportOptions().resolve()
        assert resolved.strategy is ImportStrategy.ADD
        assert resolved.last_modified_strategy is LastModifiedImportStrategy.INHERIT
        assert resolved.last_modified_by_strategy is LastModifiedImportStrategy.INHERIT
        assert resolved.current_user == SYSTEM_USER

    @pytest.mark.parametrize(
        ("strategy", "deletes", "overwrites_type"),
        [
            (ImportStrategy.ADD, False, False),
            (ImportStrategy.MERGE, False, False),
            (ImportStrategy.OVERWRITE, False, True),
            (ImportStrategy.REPLACE, True, True),
        ],
    )
    def test_defaults_follow_strategy(
        self, strategy: ImportStrategy, deletes: bool, overwrites_type: bool
    ) -> None:
        """Delete flags default on only for REPLACE; content type for OVERWRITE and up."""
        resolved = ImportOptions(strategy=strategy).resolve()
        for flag in DELETE_FLAGS:
            assert getattr(resolved, flag) is deletes, flag
        assert resolved.overwrite_content_type is overwrites_type

    def test_explicit_values_win(self) -> None:
        """Explicit options override strategy defaults."""
        resolved = ImportOptions(
            strategy=ImportStrategy.REPLACE,
            delete_unmatched_children=False,
            overwrite_content_type=False,
        ).resolve()
        assert resolved.delete_unmatched_children is False
        assert resolved.overwrite_content_type is False
        assert resolved.delete_unmatched_attributes is True

        resolved = ImportOptions(delete_unmatched_relationships=True).resolve()
        assert resolved.delete_unmatched_relationships is True


class TestEnumParsing:
    """Parsing strategies by name."""

    @pytest.mark.parametrize("name", ["merge", "MERGE", " Merge "])
    def test_import_strategy(self, name: str) -> None:
        """Strategy names are case-insensitive."""
        assert ImportStrategy.parse(name) is ImportStrategy.MERGE

    @pytest.mark.parametrize("name", ["target-value", "target_value", "TargetValue"])
    def test_last_modified_strategy(self, name: str) -> None:
        """Dashes, underscores and camel case all parse."""
        assert LastModifiedImportStrategy.parse(name) is LastModifiedImportStrategy.TARGET_VALUE

    def test_members_pass_through(self) -> None:
        """Parsing a member returns it unchanged."""
        assert ImportStrategy.parse(ImportStrategy.ADD) is ImportStrategy.ADD

    def test_unknown_name(self) -> None:
        """Unknown names list the valid choices."""
        with pytest.raises(ValueError, match="add, merge, overwrite, replace"):
            ImportStrategy.parse("upsert")


class TestExportOptions:
    """Resolution of ExportOptions."""

    def test_child_topics_imply_nested(self) -> None:
        """include_child_topics forces include_nested_topics."""
        resolved = ExportOptions(include_child_topics=True).resolve("Root")
        assert resolved.include_nested_topics is True

    def test_scope_set_once(self) -> None:
        """An existing scope is kept; otherwise the given one is used."""
        assert ExportOptions().resolve("Root:Web").export_scope == "Root:Web"
        assert ExportOptions(export_scope="Root").resolve("Root:Web").export_scope == "Root"

    def test_defaults(self) -> None:
        """Legacy translation is on, everything else off."""
        options = ExportOptions()
        assert options.translate_legacy_pointers is True
        assert not options.include_child_topics
        assert not options.include_nested_topics
        assert not options.include_external_associations


@pytest.mark.parametrize(
    ("key", "reserved"),
    [("Key", True), ("parentid", True), ("ContentType", True), ("TopicID", True), ("Title", False)],
)
def test_reserved_attributes(key: str, reserved: bool) -> None:
    """Reserved keys are matched case-insensitively."""
    assert is_reserved_attribute(key) is reserved
