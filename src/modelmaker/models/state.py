from pydantic import Field

from modelmaker.models.base import DefinitionModel, ordered_unique


class DeclaredState(DefinitionModel):
    """Slot contents recovered from an existing model source file."""

    exposed_fields: list[str] = Field(default_factory=list)
    hidden_fields: list[str] = Field(default_factory=list)
    append_fields: list[str] = Field(default_factory=list)
    coercion_map: dict[str, str] = Field(default_factory=dict)

    def names(self) -> list[str]:
        return ordered_unique(
            [
                *self.exposed_fields,
                *self.coercion_map,
                *self.hidden_fields,
                *self.append_fields,
            ]
        )


__all__ = ["DeclaredState"]
