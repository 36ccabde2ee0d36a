from modelmaker.models.batch import DefinitionBatch
from modelmaker.models.config import GeneratorConfig
from modelmaker.models.enums import (
    ArtifactKind,
    CoercionDialect,
    CoercionKind,
    FieldKind,
    RelationKind,
    Slot,
    UpdateOption,
)
from modelmaker.models.field import FieldDefinition
from modelmaker.models.index import IndexDefinition
from modelmaker.models.relation import RelationDefinition
from modelmaker.models.state import DeclaredState
from modelmaker.models.target import ModelTarget

__all__ = [
    "ArtifactKind",
    "CoercionDialect",
    "CoercionKind",
    "DeclaredState",
    "DefinitionBatch",
    "FieldDefinition",
    "FieldKind",
    "GeneratorConfig",
    "IndexDefinition",
    "ModelTarget",
    "RelationDefinition",
    "RelationKind",
    "Slot",
    "UpdateOption",
]
