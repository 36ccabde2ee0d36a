from pathlib import Path

import pytest
from pydantic import ValidationError

from modelmaker.models.config import DEFAULT_MODEL_NAMESPACE, GeneratorConfig


class TestGeneratorConfig:
    def test_for_project_uses_conventional_layout(self) -> None:
        config = GeneratorConfig.for_project(Path("/srv/app"))

        assert config.models_dir == Path("/srv/app/app/Models")
        assert config.migrations_dir == Path("/srv/app/database/migrations")
        assert config.model_namespace == DEFAULT_MODEL_NAMESPACE
        assert config.modern_casts is True
        assert config.file_extension == "php"

    def test_for_project_applies_overrides(self) -> None:
        config = GeneratorConfig.for_project(Path("/srv/app"), modern_casts=False, junction_delay_seconds=0)

        assert config.modern_casts is False
        assert config.junction_delay_seconds == 0

    def test_normalizes_namespace(self) -> None:
        config = GeneratorConfig.for_project(Path("/srv/app"), model_namespace="\\Domain/Models\\")

        assert config.model_namespace == "Domain\\Models"

    def test_normalizes_extension(self) -> None:
        config = GeneratorConfig.for_project(Path("/srv/app"), file_extension=".php")

        assert config.file_extension == "php"

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(ValidationError):
            GeneratorConfig.for_project(Path("/srv/app"), junction_delay_seconds=-1)

    def test_rejects_empty_namespace(self) -> None:
        with pytest.raises(ValidationError):
            GeneratorConfig.for_project(Path("/srv/app"), model_namespace="  ")
