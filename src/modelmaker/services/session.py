"""Interactive session driving one make run from prompts to written files."""

import structlog

from modelmaker.models.batch import DefinitionBatch
from modelmaker.models.enums import ArtifactKind, UpdateOption
from modelmaker.models.target import ModelTarget
from modelmaker.services.collector import DefinitionCollector
from modelmaker.services.generator import GenerationPlan, GenerationResult, GenerationService
from modelmaker.services.prompter import Prompter

_ARTIFACT_LABELS = {
    ArtifactKind.MODEL: "Model",
    ArtifactKind.CREATE_MIGRATION: "Migration",
    ArtifactKind.ALTER_MIGRATION: "Alter migration",
    ArtifactKind.JUNCTION_MIGRATION: "Junction migration",
}


class InteractiveSession:
    """Collects a batch, previews the plan and writes it once confirmed.

    Every confirmation happens before the first write; declining any of
    them ends the run with nothing written.
    """

    def __init__(
        self,
        service: GenerationService,
        prompter: Prompter,
        assume_yes: bool = False,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._service = service
        self._prompter = prompter
        self._assume_yes = assume_yes
        self._collector = DefinitionCollector(prompter, logger=logger)
        self._logger = logger or structlog.get_logger(__name__)

    def run(self, target: ModelTarget) -> GenerationResult | None:
        """Run the session for ``target``; returns None when nothing was written."""
        inspection = self._service.inspect(target)
        prompter = self._prompter

        if inspection.exists:
            prompter.info(f"Model {target.qualified_name} already exists.")
            option = UpdateOption(
                prompter.choose(
                    "Select update option",
                    [option.value for option in UpdateOption],
                    UpdateOption.ALL.value,
                )
            )
            if option is UpdateOption.CANCEL:
                prompter.info("Cancelled.")
                return None
            batch = self._collect(target, inspection.existing_field_names, option)
            if batch.is_empty():
                prompter.info("Nothing to add. Exiting.")
                self._logger.info("empty_batch", record_type=target.qualified_name)
                return None
        else:
            batch = self._collect(target, [], UpdateOption.ALL)

        plan = self._service.plan(target, batch)
        self._preview(plan, batch)

        if not plan.files:
            prompter.info("Nothing to write.")
            return None

        question = "Generate model + migrations?" if plan.creating else "Apply these updates?"
        if not self._assume_yes and not prompter.confirm(f"\n{question}", True):
            prompter.info("Cancelled.")
            self._logger.info("generation_declined", record_type=target.qualified_name)
            return None

        result = self._service.apply(plan)
        for planned in plan.files:
            prompter.info(f"Written {_ARTIFACT_LABELS[planned.kind].lower()}: {planned.path}")
        prompter.info("\nDone. Review and run `php artisan migrate`.")
        return result

    def _collect(self, target: ModelTarget, existing_names: list[str], option: UpdateOption) -> DefinitionBatch:
        fields = self._collector.collect_fields(existing_names) if option.includes_fields else []
        relations = (
            self._collector.collect_relations(
                has_accessor=lambda name: self._service.has_accessor(target, name),
                related_model_exists=self._service.related_model_exists,
            )
            if option.includes_relationships
            else []
        )
        indexes = (
            self._collector.collect_indexes(self._service.known_columns(target, fields, relations))
            if option.includes_indexes
            else []
        )
        return DefinitionBatch(fields=fields, relations=relations, indexes=indexes)

    def _preview(self, plan: GenerationPlan, batch: DefinitionBatch) -> None:
        prompter = self._prompter
        prompter.info("\n--- Preview: Indexes ---")
        if not batch.indexes:
            prompter.info("(no indexes)")
        for index in batch.indexes:
            prompter.info(f"  {', '.join(index.columns)}")

        prompter.info("\n--- Preview: Files ---")
        for planned in plan.files:
            prompter.info(f"  {_ARTIFACT_LABELS[planned.kind]}: {planned.path}")

        for method in plan.skipped_relations:
            prompter.warn(f"Method {method} already exists in model; skipping method injection.")
        for warning in plan.warnings:
            prompter.warn(warning)
