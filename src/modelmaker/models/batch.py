from pydantic import Field, model_validator

from modelmaker.models.base import DefinitionModel, ensure_unique
from modelmaker.models.field import FieldDefinition
from modelmaker.models.index import IndexDefinition
from modelmaker.models.relation import RelationDefinition


class DefinitionBatch(DefinitionModel):
    """Everything the user asked for in a single run."""

    fields: list[FieldDefinition] = Field(default_factory=list)
    relations: list[RelationDefinition] = Field(default_factory=list)
    indexes: list[IndexDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_unique_names(self) -> "DefinitionBatch":
        ensure_unique((field.name for field in self.fields), "field name")
        ensure_unique((relation.method_name.lower() for relation in self.relations), "relation method")
        return self

    def is_empty(self) -> bool:
        return not (self.fields or self.relations or self.indexes)


__all__ = ["DefinitionBatch"]
