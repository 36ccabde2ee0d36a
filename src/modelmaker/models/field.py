from typing import Any

from pydantic import Field, field_validator, model_validator

from modelmaker.models.base import DefinitionModel, ensure_identifier
from modelmaker.models.enums import CoercionKind, FieldKind, Slot


class FieldDefinition(DefinitionModel):
    name: str
    kind: FieldKind = FieldKind.TEXT
    enum_values: list[str] = Field(default_factory=list)
    nullable: bool = False
    unique: bool = False
    exposed_for_write: bool = True
    hidden_from_output: bool = False
    computed_append: bool = False
    coercion: CoercionKind | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> str:
        return ensure_identifier(value, "name")

    @field_validator("enum_values", mode="before")
    @classmethod
    def _normalize_enum_values(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [str(item).strip() for item in value if str(item).strip()]

    @model_validator(mode="after")
    def _validate_enum_values(self) -> "FieldDefinition":
        if self.kind is FieldKind.ENUMERATED and not self.enum_values:
            raise ValueError("enumerated fields require at least one enum value")
        if self.kind is not FieldKind.ENUMERATED and self.enum_values:
            raise ValueError("enum values are only allowed on enumerated fields")
        return self

    def contributes_to(self, slot: Slot) -> bool:
        """Whether this field adds an entry to the given declaration slot."""
        if slot is Slot.EXPOSED:
            return self.exposed_for_write
        if slot is Slot.HIDDEN:
            return self.hidden_from_output
        if slot is Slot.APPENDED:
            return self.computed_append
        return self.coercion is not None


__all__ = ["FieldDefinition"]
