"""Generation service that plans and writes model and migration artifacts.

Planning renders every artifact in memory; nothing is written until the
caller applies the plan, so declining a confirmation never leaves partial
output behind.
"""

import re
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

from modelmaker.models.batch import DefinitionBatch
from modelmaker.models.config import GeneratorConfig
from modelmaker.models.enums import ArtifactKind
from modelmaker.models.field import FieldDefinition
from modelmaker.models.relation import RelationDefinition
from modelmaker.models.state import DeclaredState
from modelmaker.models.target import ModelTarget
from modelmaker.services.extractor import DeclarationExtractor
from modelmaker.services.file_store import FileStore
from modelmaker.services.merger import DeclarationMerger
from modelmaker.services.migration import (
    STAMP_FORMAT,
    MigrationSynthesizer,
    format_stamp,
    migration_filename,
)
from modelmaker.services.model_builder import ModelSourceBuilder
from modelmaker.services.naming import qualify_type_ref, table_name
from modelmaker.services.schema_knowledge import SchemaKnowledgeAggregator

_SEGMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class PlannedFile(BaseModel):
    path: Path
    content: str
    kind: ArtifactKind

    model_config = {"frozen": True}


class GenerationPlan(BaseModel):
    """Artifacts rendered for one run, ready to be written."""

    target: ModelTarget
    creating: bool
    files: list[PlannedFile] = Field(default_factory=list)
    added_relations: list[str] = Field(default_factory=list)
    skipped_relations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    def files_of(self, kind: ArtifactKind) -> list[PlannedFile]:
        return [planned for planned in self.files if planned.kind is kind]


class GenerationResult(BaseModel):
    files_written: list[Path] = Field(default_factory=list)

    model_config = {"frozen": True}


class ModelInspection(BaseModel):
    """What is currently on disk for a record type."""

    target: ModelTarget
    exists: bool
    source: str | None = None
    declared_state: DeclaredState = Field(default_factory=DeclaredState)

    model_config = {"frozen": True}

    @property
    def existing_field_names(self) -> list[str]:
        return self.declared_state.names()


class MigrationClock:
    """Hands out strictly increasing migration timestamps.

    Migration runners order files by the timestamp in their names, so a
    stamp that would not sort after the previous one is pushed forward.
    """

    def __init__(
        self,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._now = now or datetime.now
        self._sleep = sleep or time.sleep
        self._last: str | None = None

    def stamp(self, delay_seconds: float = 0.0) -> str:
        if delay_seconds > 0:
            self._sleep(delay_seconds)
        stamp = format_stamp(self._now())
        if self._last is not None and stamp <= self._last:
            stamp = format_stamp(datetime.strptime(self._last, STAMP_FORMAT) + timedelta(seconds=1))
        self._last = stamp
        return stamp


class GenerationService:
    """Plans and writes the model file and migrations for one record type.

    All collaborators are injected via the constructor for testability.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        file_store: FileStore,
        extractor: DeclarationExtractor,
        merger: DeclarationMerger,
        aggregator: SchemaKnowledgeAggregator,
        synthesizer: MigrationSynthesizer,
        builder: ModelSourceBuilder,
        clock: MigrationClock | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._config = config
        self._file_store = file_store
        self._extractor = extractor
        self._merger = merger
        self._aggregator = aggregator
        self._synthesizer = synthesizer
        self._builder = builder
        self._clock = clock or MigrationClock()
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    def resolve_target(self, name: str) -> ModelTarget:
        """Resolve ``Blog/Post`` or ``Blog\\Post`` to namespace, path and table.

        Raises:
            ValueError: If the name is empty or not made of identifiers.
        """
        path = name.strip().replace("\\", "/").strip("/")
        segments = [segment for segment in path.split("/") if segment]
        if not segments:
            raise ValueError("model name cannot be empty")
        for segment in segments:
            if not _SEGMENT.match(segment):
                raise ValueError(f"invalid model name segment '{segment}'")

        *directories, class_name = segments
        namespace = "\\".join([self._config.model_namespace, *directories])
        model_dir = self._config.models_dir.joinpath(*directories)

        return ModelTarget(
            class_name=class_name,
            namespace=namespace,
            model_path=model_dir / f"{class_name}.{self._config.file_extension}",
            table=table_name(class_name),
        )

    def inspect(self, target: ModelTarget) -> ModelInspection:
        if not self._file_store.exists(target.model_path):
            return ModelInspection(target=target, exists=False)
        source = self._file_store.read(target.model_path)
        return ModelInspection(
            target=target,
            exists=True,
            source=source,
            declared_state=self._extractor.extract_state(source),
        )

    def historical_migrations(self, target: ModelTarget) -> list[Path]:
        extension = self._config.file_extension
        paths = [
            *self._file_store.list_matching(
                self._config.migrations_dir, f"*_create_{target.table}_table.{extension}"
            ),
            *self._file_store.list_matching(
                self._config.migrations_dir, f"*_update_{target.table}_table.{extension}"
            ),
        ]
        return sorted(paths)

    def known_columns(
        self,
        target: ModelTarget,
        fields: Sequence[FieldDefinition] = (),
        relations: Sequence[RelationDefinition] = (),
    ) -> set[str]:
        inspection = self.inspect(target)
        if not inspection.exists:
            return self._aggregator.known_columns(fields, None, [], relations)
        migrations = [self._file_store.read(path) for path in self.historical_migrations(target)]
        return self._aggregator.known_columns(fields, inspection.source, migrations, relations)

    def has_accessor(self, target: ModelTarget, method_name: str) -> bool:
        inspection = self.inspect(target)
        return inspection.source is not None and self._extractor.has_accessor(inspection.source, method_name)

    def related_model_exists(self, type_ref: str) -> bool:
        """Whether the referenced model has a source file.

        References outside the model namespace cannot be mapped to a path
        and are assumed to exist.
        """
        namespace = self._config.model_namespace
        qualified = qualify_type_ref(type_ref, namespace)
        if not qualified.startswith(namespace + "\\"):
            return True
        relative = qualified[len(namespace) + 1 :].split("\\")
        path = self._config.models_dir.joinpath(*relative[:-1]) / f"{relative[-1]}.{self._config.file_extension}"
        return self._file_store.exists(path)

    def plan(self, target: ModelTarget, batch: DefinitionBatch) -> GenerationPlan:
        """Render every artifact for the batch without writing anything.

        Raises:
            ValueError: If the model exists and the batch is empty.
        """
        inspection = self.inspect(target)
        if inspection.exists:
            return self._plan_update(inspection, batch)
        return self._plan_create(target, batch)

    def apply(self, plan: GenerationPlan) -> GenerationResult:
        """Write every planned file, creating directories as needed."""
        written: list[Path] = []
        for planned in plan.files:
            self._file_store.make_directories(planned.path.parent)
            self._file_store.write(planned.path, planned.content)
            written.append(planned.path)
            self._logger.info("artifact_written", kind=planned.kind.value, path=str(planned.path))

        self._logger.info(
            "generation_applied",
            record_type=plan.target.qualified_name,
            file_count=len(written),
        )
        return GenerationResult(files_written=written)

    def _plan_create(self, target: ModelTarget, batch: DefinitionBatch) -> GenerationPlan:
        self._logger.info("create_planning_started", record_type=target.qualified_name)

        migration = PlannedFile(
            path=self._migration_path(self._clock.stamp(), "create", target.table),
            content=self._synthesizer.synthesize_create(
                target.class_name, batch.fields, batch.relations, batch.indexes
            ),
            kind=ArtifactKind.CREATE_MIGRATION,
        )
        warnings: list[str] = []
        junctions = self._plan_junctions(target, batch.relations, warnings)
        model = PlannedFile(
            path=target.model_path,
            content=self._builder.build_new(target.namespace, target.class_name, batch.fields, batch.relations),
            kind=ArtifactKind.MODEL,
        )

        return GenerationPlan(
            target=target,
            creating=True,
            files=[migration, *junctions, model],
            added_relations=[relation.method_name for relation in batch.relations],
            warnings=warnings,
        )

    def _plan_update(self, inspection: ModelInspection, batch: DefinitionBatch) -> GenerationPlan:
        target = inspection.target
        if batch.is_empty():
            raise ValueError("nothing to add to an existing model")

        self._logger.info("update_planning_started", record_type=target.qualified_name)

        source = inspection.source or ""
        merge = self._merger.merge(source, batch.fields, batch.relations)
        warnings = list(merge.warnings)
        files: list[PlannedFile] = []

        if merge.source != source:
            files.append(PlannedFile(path=target.model_path, content=merge.source, kind=ArtifactKind.MODEL))

        changes = self._synthesizer.build_alter_changes(
            target.class_name, batch.fields, batch.relations, batch.indexes
        )
        if changes:
            files.append(
                PlannedFile(
                    path=self._migration_path(self._clock.stamp(), "update", target.table),
                    content=self._synthesizer.render_alter(target.table, changes),
                    kind=ArtifactKind.ALTER_MIGRATION,
                )
            )
        else:
            self._logger.info("alter_migration_skipped", table=target.table)
            warnings.append("Nothing to migrate; no alter migration generated.")

        files.extend(self._plan_junctions(target, batch.relations, warnings))

        return GenerationPlan(
            target=target,
            creating=False,
            files=files,
            added_relations=merge.added_relations,
            skipped_relations=merge.skipped_relations,
            warnings=warnings,
        )

    def _plan_junctions(
        self,
        target: ModelTarget,
        relations: Sequence[RelationDefinition],
        warnings: list[str],
    ) -> list[PlannedFile]:
        planned: list[PlannedFile] = []
        planned_tables: set[str] = set()

        for relation in relations:
            if not relation.needs_junction_table:
                continue
            junction = self._synthesizer.junction_table_for(target.class_name, relation)
            existing = self._file_store.list_matching(
                self._config.migrations_dir,
                f"*_create_{junction}_table.{self._config.file_extension}",
            )
            if existing or junction in planned_tables:
                warnings.append(f"Junction table '{junction}' already has a migration; skipped.")
                self._logger.info("junction_migration_skipped", table=junction)
                continue

            # Junction stamps must sort after the owning migration's.
            stamp = self._clock.stamp(delay_seconds=self._config.junction_delay_seconds)
            _, content = self._synthesizer.synthesize_junction(target.class_name, relation)
            planned.append(
                PlannedFile(
                    path=self._migration_path(stamp, "create", junction),
                    content=content,
                    kind=ArtifactKind.JUNCTION_MIGRATION,
                )
            )
            planned_tables.add(junction)

        return planned

    def _migration_path(self, stamp: str, action: str, table: str) -> Path:
        self._logger.info("migration_planned", action=action, table=table, stamp=stamp)
        return self._config.migrations_dir / migration_filename(
            stamp, action, table, self._config.file_extension
        )


__all__ = [
    "GenerationPlan",
    "GenerationResult",
    "GenerationService",
    "MigrationClock",
    "ModelInspection",
    "PlannedFile",
]
