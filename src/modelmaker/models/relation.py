from typing import Any

from pydantic import field_validator, model_validator

from modelmaker.models.base import DefinitionModel, ensure_identifier, ensure_non_empty_text
from modelmaker.models.enums import RelationKind


class RelationDefinition(DefinitionModel):
    method_name: str
    target_type_ref: str
    relation_kind: RelationKind = RelationKind.HAS_ONE
    needs_junction_table: bool = False

    @field_validator("method_name", mode="before")
    @classmethod
    def _validate_method_name(cls, value: Any) -> str:
        return ensure_identifier(value, "method_name")

    @field_validator("target_type_ref", mode="before")
    @classmethod
    def _validate_target(cls, value: Any) -> str:
        ref = ensure_non_empty_text(value, "target_type_ref").replace("/", "\\")
        parts = ref.lstrip("\\").split("\\")
        for part in parts:
            ensure_identifier(part, "target_type_ref segment")
        return ref

    @model_validator(mode="after")
    def _validate_junction(self) -> "RelationDefinition":
        if self.needs_junction_table and not self.relation_kind.supports_junction_table:
            raise ValueError(f"{self.relation_kind.value} relations cannot own a junction table")
        return self


__all__ = ["RelationDefinition"]
