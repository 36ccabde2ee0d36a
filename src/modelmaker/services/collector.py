"""Collects field, relation and index definitions through a Prompter."""

from collections.abc import Callable, Collection

import structlog
from pydantic import ValidationError

from modelmaker.models.base import ensure_identifier
from modelmaker.models.enums import CoercionKind, FieldKind, RelationKind
from modelmaker.models.field import FieldDefinition
from modelmaker.models.index import IndexDefinition
from modelmaker.models.relation import RelationDefinition
from modelmaker.services.naming import class_basename
from modelmaker.services.prompter import Prompter
from modelmaker.services.schema_knowledge import SchemaKnowledgeAggregator


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    return str(errors[0]["msg"]) if errors else str(exc)


class DefinitionCollector:
    """Asks for definitions until the user finishes each section."""

    def __init__(
        self,
        prompter: Prompter,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._prompter = prompter
        self._logger = logger or structlog.get_logger(__name__)

    def collect_fields(self, existing_names: Collection[str] = ()) -> list[FieldDefinition]:
        """Collect fields until a blank name is entered.

        Names already declared in the model need an explicit confirmation;
        names repeated within the session are refused.
        """
        prompter = self._prompter
        prompter.info("\n=== Define fields ===")
        fields: list[FieldDefinition] = []
        added: set[str] = set()

        while True:
            name = prompter.ask("Field name (blank = finish)").strip()
            if not name:
                break
            try:
                ensure_identifier(name, "field name")
            except ValueError as exc:
                prompter.warn(str(exc))
                continue

            if name in added:
                prompter.warn(f"You've already added '{name}' in this session; skipping.")
                continue
            if name in existing_names:
                prompter.warn(f"Field '{name}' is already defined in the existing model.")
                if not prompter.confirm("Add it again anyway? (e.g., to update casts/fillable)", False):
                    prompter.info(f"Skipping '{name}'.")
                    continue

            kind = FieldKind(
                prompter.choose("Field type", [kind.value for kind in FieldKind], FieldKind.TEXT.value)
            )
            enum_values: list[str] = []
            while kind is FieldKind.ENUMERATED and not enum_values:
                raw = prompter.ask("Enum values (comma separated)")
                enum_values = [value.strip() for value in raw.split(",") if value.strip()]
                if not enum_values:
                    prompter.warn("At least one enum value is required.")

            nullable = prompter.confirm("Nullable?", False)
            unique = prompter.confirm("Unique?", False)
            exposed = prompter.confirm("Add to $fillable?", name not in existing_names)
            hidden = prompter.confirm("Add to $hidden?", False)
            appended = prompter.confirm("Add to $appends?", False)

            coercion: CoercionKind | None = None
            if prompter.confirm("Add to $casts?", False):
                coercion = CoercionKind(
                    prompter.choose("Cast type", [kind.value for kind in CoercionKind], CoercionKind.INT.value)
                )

            if kind is FieldKind.BOOLEAN and not nullable:
                prompter.info("Tip: Consider adding ->default(true) in migration for non-empty tables.")

            try:
                field = FieldDefinition(
                    name=name,
                    kind=kind,
                    enum_values=enum_values,
                    nullable=nullable,
                    unique=unique,
                    exposed_for_write=exposed,
                    hidden_from_output=hidden,
                    computed_append=appended,
                    coercion=coercion,
                )
            except ValidationError as exc:
                prompter.warn(f"Invalid field '{name}': {_first_error(exc)}")
                continue

            fields.append(field)
            added.add(name)
            self._logger.debug("field_collected", name=name, kind=kind.value)

        return fields

    def collect_relations(
        self,
        has_accessor: Callable[[str], bool],
        related_model_exists: Callable[[str], bool],
    ) -> list[RelationDefinition]:
        """Collect relations while the user keeps confirming.

        Args:
            has_accessor: Whether the target model already declares a method.
            related_model_exists: Whether a referenced model has a source file.
        """
        prompter = self._prompter
        prompter.info("\n=== Define relationships ===")
        relations: list[RelationDefinition] = []
        added: set[str] = set()

        while prompter.confirm("Add a relationship?", False):
            name = prompter.ask("Method name for relationship").strip()
            if not name:
                prompter.warn("Empty relation name; skipping.")
                continue
            if name.lower() in added:
                prompter.warn(f"Relationship '{name}' was already added in this session; skipping.")
                continue
            if has_accessor(name):
                prompter.warn(f"Method '{name}' already exists in the model; it will not be overwritten.")
                continue

            target = prompter.ask("Related model class (e.g. User or App\\Models\\User)").strip()
            if not target:
                prompter.warn("No model provided; skipping.")
                continue
            if not related_model_exists(target):
                prompter.warn(f"Warning: Model '{class_basename(target)}' does not exist yet.")
                prompter.info("It may cause errors if the model is not created later.")
                if not prompter.confirm("Continue anyway? (yes if you'll create the model soon)", True):
                    prompter.info("Skipping this relationship.")
                    continue

            kind = RelationKind(
                prompter.choose("Relation type", [kind.value for kind in RelationKind], RelationKind.HAS_ONE.value)
            )
            needs_junction = False
            if kind.supports_junction_table:
                needs_junction = prompter.confirm("Generate junction table for this relation?", True)

            try:
                relation = RelationDefinition(
                    method_name=name,
                    target_type_ref=target,
                    relation_kind=kind,
                    needs_junction_table=needs_junction,
                )
            except ValidationError as exc:
                prompter.warn(f"Invalid relationship '{name}': {_first_error(exc)}")
                continue

            relations.append(relation)
            added.add(name.lower())
            prompter.info(f"Relationship '{name}' -> {kind.value} {class_basename(target)} added.")

        return relations

    def collect_indexes(self, known_columns: Collection[str]) -> list[IndexDefinition]:
        """Collect indexes; unknown columns need a per-index confirmation."""
        prompter = self._prompter
        prompter.info("\n=== Add Indexes ===")
        known = set(known_columns)
        indexes: list[IndexDefinition] = []

        while prompter.confirm("Add an index?", False):
            raw = prompter.ask("Columns for index (comma separated, e.g. otp_code, otp_expires_at)")
            columns = [column.strip() for column in raw.split(",") if column.strip()]
            if not columns:
                prompter.warn("No valid columns provided; skipping.")
                continue
            try:
                index = IndexDefinition(columns=columns)
            except ValidationError as exc:
                prompter.warn(f"Invalid index: {_first_error(exc)}")
                continue

            unknown = SchemaKnowledgeAggregator.unknown_columns(index, known)
            if unknown:
                prompter.warn("The following columns are not recognized:")
                for column in unknown:
                    prompter.info(f"  - {column}")
                prompter.info("They might not exist in the model or database yet.")
                if not prompter.confirm("Create the index anyway? (useful if columns will be added later)", False):
                    prompter.info("Skipping this index.")
                    self._logger.info("index_skipped_unknown_columns", columns=unknown)
                    continue

            indexes.append(index)
            prompter.info(f"Index on [{', '.join(index.columns)}] added.")

        return indexes
