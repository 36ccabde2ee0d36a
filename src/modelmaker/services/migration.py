"""Migration synthesizer for create, alter and junction table migrations.

Alter migrations wrap every statement in a presence guard so that running
them against a partially migrated table is a no-op rather than an error.
The inverse sequence uses the same guard with opposite polarity and is
emitted in reverse order.
"""

from collections.abc import Sequence
from datetime import datetime

import structlog
from pydantic import BaseModel, Field

from modelmaker.models.enums import FieldKind, RelationKind
from modelmaker.models.field import FieldDefinition
from modelmaker.models.index import IndexDefinition
from modelmaker.models.relation import RelationDefinition
from modelmaker.services.naming import (
    class_basename,
    foreign_key,
    junction_table_name,
    singularize,
    snake,
    table_name,
)
from modelmaker.services.renderer import quote

STAMP_FORMAT = "%Y_%m_%d_%H%M%S"
DECIMAL_PRECISION = 8
DECIMAL_SCALE = 2

_STATEMENT_INDENT = " " * 12

_MIGRATION_TEMPLATE = """<?php

use Illuminate\\Database\\Migrations\\Migration;
use Illuminate\\Database\\Schema\\Blueprint;
use Illuminate\\Support\\Facades\\Schema;

return new class extends Migration
{{
    public function up(): void
    {{
{up}
    }}

    public function down(): void
    {{
{down}
    }}
}};
"""


class SchemaChange(BaseModel):
    """One guarded alteration and its inverse.

    ``guard`` is a presence check. The forward statement runs when the guard
    is false (and every precondition holds); the inverse runs when it is true.
    """

    guard: str
    up: str
    down: str
    preconditions: list[str] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    def render_up(self) -> str:
        condition = " && ".join([f"! {self.guard}", *self.preconditions])
        return f"if ({condition}) {{ {self.up} }}"

    def render_down(self) -> str:
        return f"if ({self.guard}) {{ {self.down} }}"


def format_stamp(moment: datetime) -> str:
    return moment.strftime(STAMP_FORMAT)


def migration_filename(stamp: str, action: str, table: str, extension: str = "php") -> str:
    """Filename the migration runner sorts by, e.g. ``2024_01_01_000000_create_posts_table.php``."""
    return f"{stamp}_{action}_{table}_table.{extension}"


def relation_columns(relation: RelationDefinition) -> list[str]:
    """Columns a relation adds to the owning table.

    belongsTo keys follow the method name rather than the related class, the
    same key the framework guesses when the accessor names no foreign key.
    """
    if relation.relation_kind is RelationKind.BELONGS_TO:
        return [foreign_key(relation.method_name)]
    if relation.relation_kind.adds_morph_columns:
        base = snake(relation.method_name)
        return [f"{base}_id", f"{base}_type"]
    return []


def _column_call(field: FieldDefinition) -> str:
    method = field.kind.builder_method
    if field.kind is FieldKind.ENUMERATED:
        values = "[" + ", ".join(quote(value) for value in field.enum_values) + "]"
        call = f"$table->{method}({quote(field.name)}, {values})"
    elif field.kind is FieldKind.DECIMAL:
        call = f"$table->{method}({quote(field.name)}, {DECIMAL_PRECISION}, {DECIMAL_SCALE})"
    else:
        call = f"$table->{method}({quote(field.name)})"
    if field.nullable:
        call += "->nullable()"
    if field.unique:
        call += "->unique()"
    return call + ";"


def _column_list(columns: Sequence[str]) -> str:
    return "[" + ", ".join(quote(column) for column in columns) + "]"


def _indent(lines: Sequence[str], prefix: str) -> str:
    return "\n".join(prefix + line for line in lines)


class MigrationSynthesizer:
    """Builds migration sources from definitions."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger(__name__)

    def synthesize_create(
        self,
        record_type_name: str,
        fields: Sequence[FieldDefinition],
        relations: Sequence[RelationDefinition],
        indexes: Sequence[IndexDefinition],
    ) -> str:
        """Render a migration that creates the record type's table."""
        table = table_name(record_type_name)
        statements = ["$table->id();"]
        statements.extend(_column_call(field) for field in fields)

        for relation in relations:
            if relation.relation_kind is RelationKind.BELONGS_TO:
                statements.append(self._foreign_key_call(relation) + ";")
            elif relation.relation_kind.adds_morph_columns:
                statements.append(f"$table->morphs({quote(snake(relation.method_name))});")

        for index in indexes:
            statements.append(
                f"$table->index({_column_list(index.columns)}, {quote(index.index_name(table))});"
            )
        statements.append("$table->timestamps();")

        self._logger.debug("create_migration_synthesized", table=table, statement_count=len(statements))
        return self._render_create(table, statements)

    def build_alter_changes(
        self,
        record_type_name: str,
        fields: Sequence[FieldDefinition],
        relations: Sequence[RelationDefinition],
        indexes: Sequence[IndexDefinition],
    ) -> list[SchemaChange]:
        """Guarded changes in forward order."""
        table = table_name(record_type_name)
        changes: list[SchemaChange] = []

        for field in fields:
            changes.append(
                SchemaChange(
                    guard=self._has_column(table, field.name),
                    up=_column_call(field),
                    down=f"$table->dropColumn({quote(field.name)});",
                    columns=[field.name],
                )
            )

        for relation in relations:
            if relation.relation_kind is RelationKind.BELONGS_TO:
                column = foreign_key(relation.method_name)
                changes.append(
                    SchemaChange(
                        guard=self._has_column(table, column),
                        up=self._foreign_key_call(relation) + ";",
                        down=f"$table->dropForeign({_column_list([column])}); $table->dropColumn({quote(column)});",
                        columns=[column],
                    )
                )
            elif relation.relation_kind.adds_morph_columns:
                base = snake(relation.method_name)
                changes.append(
                    SchemaChange(
                        guard=self._has_column(table, f"{base}_id"),
                        up=f"$table->morphs({quote(base)});",
                        down=f"$table->dropMorphs({quote(base)});",
                        columns=relation_columns(relation),
                    )
                )

        # Columns queued in this migration are not visible to hasColumn yet.
        added_here = {column for change in changes for column in change.columns}
        for index in indexes:
            name = index.index_name(table)
            changes.append(
                SchemaChange(
                    guard=f"Schema::hasIndex({quote(table)}, {quote(name)})",
                    up=f"$table->index({_column_list(index.columns)}, {quote(name)});",
                    down=f"$table->dropIndex({quote(name)});",
                    preconditions=[
                        self._has_column(table, column) for column in index.columns if column not in added_here
                    ],
                )
            )

        return changes

    def synthesize_alter(
        self,
        record_type_name: str,
        fields: Sequence[FieldDefinition],
        relations: Sequence[RelationDefinition],
        indexes: Sequence[IndexDefinition],
    ) -> str:
        """Render a guarded alter migration.

        Raises:
            ValueError: If the definitions produce no schema change.
        """
        changes = self.build_alter_changes(record_type_name, fields, relations, indexes)
        if not changes:
            raise ValueError("no schema changes to migrate")
        return self.render_alter(table_name(record_type_name), changes)

    def render_alter(self, table: str, changes: Sequence[SchemaChange]) -> str:
        up = [change.render_up() for change in changes]
        down = [change.render_down() for change in reversed(changes)]
        self._logger.debug("alter_migration_synthesized", table=table, change_count=len(changes))
        return _MIGRATION_TEMPLATE.format(
            up=self._schema_table_block(table, up),
            down=self._schema_table_block(table, down),
        )

    def synthesize_junction(self, owner_record_type: str, relation: RelationDefinition) -> tuple[str, str]:
        """Render the junction table migration for a many-to-many relation.

        Returns:
            The junction table name and the migration source.
        """
        owner_table = table_name(owner_record_type)
        related_table = table_name(class_basename(relation.target_type_ref))
        junction = junction_table_name(owner_table, related_table)

        statements = ["$table->id();"]
        for table in (owner_table, related_table):
            column = foreign_key(singularize(table))
            statements.append(
                f"$table->foreignId({quote(column)})->constrained({quote(table)})->cascadeOnDelete();"
            )
        statements.append("$table->timestamps();")

        self._logger.debug("junction_migration_synthesized", table=junction, owner=owner_table)
        return junction, self._render_create(junction, statements)

    def junction_table_for(self, owner_record_type: str, relation: RelationDefinition) -> str:
        return junction_table_name(
            table_name(owner_record_type),
            table_name(class_basename(relation.target_type_ref)),
        )

    def _render_create(self, table: str, statements: Sequence[str]) -> str:
        up = (
            f"        Schema::create({quote(table)}, function (Blueprint $table) {{\n"
            + _indent(statements, _STATEMENT_INDENT)
            + "\n        });"
        )
        down = f"        Schema::dropIfExists({quote(table)});"
        return _MIGRATION_TEMPLATE.format(up=up, down=down)

    def _schema_table_block(self, table: str, lines: Sequence[str]) -> str:
        return (
            f"        Schema::table({quote(table)}, function (Blueprint $table) {{\n"
            + _indent(lines, _STATEMENT_INDENT)
            + "\n        });"
        )

    def _foreign_key_call(self, relation: RelationDefinition) -> str:
        related_table = table_name(class_basename(relation.target_type_ref))
        column = foreign_key(relation.method_name)
        return f"$table->foreignId({quote(column)})->constrained({quote(related_table)})->cascadeOnDelete()"

    def _has_column(self, table: str, column: str) -> str:
        return f"Schema::hasColumn({quote(table)}, {quote(column)})"


__all__ = [
    "MigrationSynthesizer",
    "SchemaChange",
    "format_stamp",
    "migration_filename",
    "relation_columns",
]
