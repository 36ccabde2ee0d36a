"""Builds a complete model source file for a new record type."""

from collections.abc import Sequence

import structlog

from modelmaker.models.enums import CoercionDialect, Slot
from modelmaker.models.field import FieldDefinition
from modelmaker.models.relation import RelationDefinition
from modelmaker.services.merger import LIST_SLOTS
from modelmaker.services.renderer import (
    INDENT,
    render_coercion_slot,
    render_list_slot,
    render_relation_accessor,
)


class ModelSourceBuilder:
    """Renders new model files.

    Slot blocks use the same canonical rendering as the merger, so a freshly
    built file is already in the form a later merge would produce.
    """

    def __init__(
        self,
        model_namespace: str,
        modern_casts: bool = True,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._model_namespace = model_namespace
        self._modern_casts = modern_casts
        self._logger = logger or structlog.get_logger(__name__)

    def build_new(
        self,
        namespace: str,
        record_type_name: str,
        fields: Sequence[FieldDefinition],
        relations: Sequence[RelationDefinition],
    ) -> str:
        slot_values = {
            slot: [field.name for field in fields if field.contributes_to(slot)] for slot in LIST_SLOTS
        }
        coercions = {field.name: field.coercion.value for field in fields if field.coercion is not None}
        # Writes are only denied wholesale when no field opted in.
        guarded = "['*']" if not slot_values[Slot.EXPOSED] else "[]"

        members = [
            render_list_slot(Slot.EXPOSED, slot_values[Slot.EXPOSED]),
            f"protected $guarded = {guarded};",
            render_list_slot(Slot.HIDDEN, slot_values[Slot.HIDDEN]),
            render_list_slot(Slot.APPENDED, slot_values[Slot.APPENDED]),
        ]
        if coercions:
            dialect = (
                CoercionDialect.ACCESSOR_FUNCTION if self._modern_casts else CoercionDialect.LEGACY_FIELD
            )
            members.append(render_coercion_slot(coercions, dialect))

        body = "\n\n".join(INDENT + member for member in members)
        for relation in relations:
            body += "\n\n" + render_relation_accessor(relation, self._model_namespace)

        self._logger.debug(
            "model_source_built",
            record_type=record_type_name,
            field_count=len(fields),
            relation_count=len(relations),
        )

        return (
            "<?php\n\n"
            f"namespace {namespace};\n\n"
            "use Illuminate\\Database\\Eloquent\\Model;\n\n"
            f"class {record_type_name} extends Model\n"
            "{\n"
            f"{body}\n"
            "}\n"
        )


__all__ = ["ModelSourceBuilder"]
