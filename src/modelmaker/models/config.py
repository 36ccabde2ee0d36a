from pathlib import Path
from typing import Any

from pydantic import Field, field_validator

from modelmaker.models.base import DefinitionModel, ensure_non_empty_text

DEFAULT_MODEL_NAMESPACE = "App\\Models"


class GeneratorConfig(DefinitionModel):
    """Explicit configuration for everything the generator would otherwise ask the host for.

    `modern_casts` is the host format version fact: when set, coercions are
    rendered as a `casts()` accessor function instead of a `$casts` property.
    """

    project_root: Path
    models_dir: Path
    migrations_dir: Path
    model_namespace: str = DEFAULT_MODEL_NAMESPACE
    modern_casts: bool = True
    file_extension: str = "php"
    junction_delay_seconds: float = Field(default=1.0, ge=0)

    @field_validator("model_namespace", mode="before")
    @classmethod
    def _normalize_namespace(cls, value: Any) -> str:
        return ensure_non_empty_text(value, "model_namespace").replace("/", "\\").strip("\\")

    @field_validator("file_extension", mode="before")
    @classmethod
    def _normalize_extension(cls, value: Any) -> str:
        return ensure_non_empty_text(value, "file_extension").lstrip(".")

    @classmethod
    def for_project(cls, project_root: Path, **overrides: Any) -> "GeneratorConfig":
        """Build a config using the conventional Laravel directory layout."""
        root = Path(project_root)
        values: dict[str, Any] = {
            "project_root": root,
            "models_dir": root / "app" / "Models",
            "migrations_dir": root / "database" / "migrations",
        }
        values.update(overrides)
        return cls(**values)


__all__ = ["GeneratorConfig", "DEFAULT_MODEL_NAMESPACE"]
