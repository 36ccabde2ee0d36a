"""Aggregates every column name known for a record type.

The result is advisory: it is only used to warn about index columns that
may not exist yet, never to decide what gets generated.
"""

import re
from collections.abc import Iterable, Sequence

import structlog

from modelmaker.models.field import FieldDefinition
from modelmaker.models.index import IndexDefinition
from modelmaker.models.relation import RelationDefinition
from modelmaker.services.extractor import DeclarationExtractor
from modelmaker.services.migration import relation_columns

_MORPH_HELPERS = (
    "morphs",
    "nullableMorphs",
    "uuidMorphs",
    "nullableUuidMorphs",
    "ulidMorphs",
    "nullableUlidMorphs",
)
_NON_COLUMN_CALLS = {
    "comment",
    "foreign",
    "fullText",
    "index",
    "primary",
    "renameColumn",
    "renameIndex",
    "spatialIndex",
    "unique",
    *_MORPH_HELPERS,
}
_IMPLICIT_COLUMNS = {
    "id": ("id",),
    "timestamps": ("created_at", "updated_at"),
    "timestampsTz": ("created_at", "updated_at"),
    "softDeletes": ("deleted_at",),
    "softDeletesTz": ("deleted_at",),
    "rememberToken": ("remember_token",),
}

_COLUMN_CALL = re.compile(r"\$table->(\w+)\(\s*['\"]([^'\"]+)['\"]")
_MORPH_CALL = re.compile(r"\$table->(?:" + "|".join(_MORPH_HELPERS) + r")\(\s*['\"]([^'\"]+)['\"]")
_FOREIGN_ID_CALL = re.compile(r"\$table->foreignId\(\s*['\"]([^'\"]+)['\"]")
_IMPLICIT_CALL = re.compile(r"\$table->(" + "|".join(_IMPLICIT_COLUMNS) + r")\(\s*\)")


class SchemaKnowledgeAggregator:
    """Unions column names from the batch, migration history and model slots."""

    def __init__(
        self,
        extractor: DeclarationExtractor,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._extractor = extractor
        self._logger = logger or structlog.get_logger(__name__)

    def columns_from_migration(self, migration_source: str) -> set[str]:
        """Column names declared by one migration source."""
        columns: set[str] = set()

        for method, column in _COLUMN_CALL.findall(migration_source):
            if method.startswith("drop") or method in _NON_COLUMN_CALLS:
                continue
            columns.add(column)

        for base in _MORPH_CALL.findall(migration_source):
            columns.update((f"{base}_id", f"{base}_type"))

        columns.update(_FOREIGN_ID_CALL.findall(migration_source))

        for helper in _IMPLICIT_CALL.findall(migration_source):
            columns.update(_IMPLICIT_COLUMNS[helper])

        return columns

    def known_columns(
        self,
        batch_fields: Sequence[FieldDefinition],
        model_source: str | None,
        historical_migrations: Iterable[str],
        batch_relations: Sequence[RelationDefinition] = (),
    ) -> set[str]:
        """Every column name known for the record type.

        Args:
            batch_fields: Fields requested this run.
            model_source: Current model source, or None for a new model.
            historical_migrations: Sources of prior create and update migrations.
            batch_relations: Relations requested this run.

        Returns:
            Set of known column names.
        """
        known = {field.name for field in batch_fields}
        for relation in batch_relations:
            known.update(relation_columns(relation))

        migration_count = 0
        for migration_source in historical_migrations:
            known.update(self.columns_from_migration(migration_source))
            migration_count += 1

        if model_source:
            known.update(self._extractor.extract_state(model_source).names())

        self._logger.debug(
            "known_columns_aggregated",
            migration_count=migration_count,
            column_count=len(known),
        )
        return known

    @staticmethod
    def unknown_columns(index: IndexDefinition, known: set[str]) -> list[str]:
        return [column for column in index.columns if column not in known]


__all__ = ["SchemaKnowledgeAggregator"]
