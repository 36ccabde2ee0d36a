from pathlib import Path

from modelmaker.models.base import DefinitionModel


class ModelTarget(DefinitionModel):
    """A record type resolved to its namespace, source path and table."""

    class_name: str
    namespace: str
    model_path: Path
    table: str

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}\\{self.class_name}"


__all__ = ["ModelTarget"]
