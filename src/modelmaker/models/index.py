from typing import Any

from pydantic import Field, field_validator

from modelmaker.models.base import DefinitionModel, ensure_identifier


class IndexDefinition(DefinitionModel):
    columns: list[str] = Field(min_length=1)

    @field_validator("columns", mode="before")
    @classmethod
    def _normalize_columns(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = [item for item in value.split(",") if item.strip()]
        return [ensure_identifier(item, "index column") for item in value]

    def index_name(self, table: str) -> str:
        return "_".join([table, *self.columns, "index"])


__all__ = ["IndexDefinition"]
