"""Merges new field and relation definitions into an existing model source.

Slots are merged with set-union semantics: extracted entries keep their
order, new entries are appended, and an existing coercion is never replaced.
A slot whose contents change is re-rendered in canonical form in place;
slots the batch does not extend are left byte-for-byte as written, so
merging the same batch twice leaves the text unchanged.
"""

from collections.abc import Sequence

import structlog
from pydantic import BaseModel, Field

from modelmaker.models.base import ordered_unique
from modelmaker.models.enums import CoercionDialect, Slot
from modelmaker.models.field import FieldDefinition
from modelmaker.models.relation import RelationDefinition
from modelmaker.services.extractor import DeclarationExtractor, SlotLocation
from modelmaker.services.renderer import (
    INDENT,
    render_coercion_slot,
    render_list_slot,
    render_relation_accessor,
)

LIST_SLOTS = (Slot.EXPOSED, Slot.HIDDEN, Slot.APPENDED)


class MergeResult(BaseModel):
    """Outcome of merging a batch into a model source."""

    source: str
    added_relations: list[str] = Field(default_factory=list)
    skipped_relations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


def select_dialect(
    source: str,
    modern_casts: bool,
    extractor: DeclarationExtractor | None = None,
) -> CoercionDialect:
    """Pick the casts dialect for a file: modern hosts or files already using the accessor get the accessor."""
    extractor = extractor or DeclarationExtractor()
    if modern_casts or extractor.uses_accessor_dialect(source):
        return CoercionDialect.ACCESSOR_FUNCTION
    return CoercionDialect.LEGACY_FIELD


def _splice(text: str, start: int, end: int, replacement: str) -> str:
    return text[:start] + replacement + text[end:]


def _line_span(text: str, start: int, end: int) -> tuple[int, int]:
    """Widen a span to whole lines when it stands alone on them."""
    line_start = text.rfind("\n", 0, start) + 1
    if text[line_start:start].strip():
        line_start = start
    line_end = end
    while line_end < len(text) and text[line_end] in " \t":
        line_end += 1
    if line_end < len(text) and text[line_end] == "\n":
        line_end += 1
    else:
        line_end = end
    return line_start, line_end


class DeclarationMerger:
    """Merges definitions into model source text without clobbering hand edits."""

    def __init__(
        self,
        extractor: DeclarationExtractor,
        model_namespace: str,
        modern_casts: bool = True,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._extractor = extractor
        self._model_namespace = model_namespace
        self._modern_casts = modern_casts
        self._logger = logger or structlog.get_logger(__name__)

    def merge(
        self,
        source: str,
        new_fields: Sequence[FieldDefinition],
        new_relations: Sequence[RelationDefinition] = (),
    ) -> MergeResult:
        """Merge fields into the four slots and append missing relation accessors.

        Args:
            source: Current model source text.
            new_fields: Fields requested this run.
            new_relations: Relations requested this run.

        Returns:
            MergeResult with the updated source and what was skipped.
        """
        self._logger.debug(
            "model_merge_started",
            field_count=len(new_fields),
            relation_count=len(new_relations),
        )

        warnings: list[str] = []
        pending_blocks: list[str] = []
        text = source

        for slot in LIST_SLOTS:
            contributions = [field.name for field in new_fields if field.contributes_to(slot)]
            if not contributions:
                continue
            location = self._extractor.locate(text, slot)
            if location is None:
                if self._extractor.mentions(text, slot):
                    warnings.append(self._unreadable_slot(slot, contributions))
                    continue
                pending_blocks.append(render_list_slot(slot, ordered_unique(contributions)))
                continue
            if not location.is_lossless:
                warnings.append(self._unreadable_slot(slot, contributions))
                continue

            updated = ordered_unique([*location.values, *contributions])
            if updated == location.values:
                continue
            text = _splice(text, location.start, location.end, render_list_slot(slot, updated))

        text, casts_block = self._merge_coercions(text, new_fields, warnings)
        if casts_block is not None:
            pending_blocks.append(casts_block)

        if pending_blocks:
            text = self._insert_after_class_open(text, pending_blocks, warnings)

        added: list[str] = []
        skipped: list[str] = []
        for relation in new_relations:
            if self._extractor.has_accessor(text, relation.method_name):
                self._logger.info("relation_accessor_skipped", method=relation.method_name)
                skipped.append(relation.method_name)
                continue
            body = self._extractor.class_body(text)
            if body is None:
                warnings.append(f"No class body found; relation '{relation.method_name}' not added.")
                skipped.append(relation.method_name)
                continue
            accessor = render_relation_accessor(relation, self._model_namespace)
            closing = body[1]
            text = text[:closing].rstrip() + "\n\n" + accessor + "\n" + text[closing:]
            added.append(relation.method_name)

        self._logger.debug(
            "model_merge_completed",
            changed=text != source,
            added_relations=added,
            skipped_relations=skipped,
            warning_count=len(warnings),
        )

        return MergeResult(
            source=text,
            added_relations=added,
            skipped_relations=skipped,
            warnings=warnings,
        )

    def merge_and_render(
        self,
        source: str,
        new_fields: Sequence[FieldDefinition],
        new_relations: Sequence[RelationDefinition] = (),
    ) -> str:
        return self.merge(source, new_fields, new_relations).source

    def _merge_coercions(
        self,
        text: str,
        new_fields: Sequence[FieldDefinition],
        warnings: list[str],
    ) -> tuple[str, str | None]:
        """Merge coercions; returns the text and a block to insert when no declaration exists."""
        contributions = {field.name: field.coercion.value for field in new_fields if field.coercion is not None}
        if not contributions:
            return text, None
        accessor = self._extractor.locate(text, Slot.COERCION, CoercionDialect.ACCESSOR_FUNCTION)
        legacy = self._extractor.locate(text, Slot.COERCION, CoercionDialect.LEGACY_FIELD)
        present = [location for location in (accessor, legacy) if location is not None]

        if any(not location.is_lossless for location in present):
            warnings.append(self._unreadable_slot(Slot.COERCION, list(contributions)))
            return text, None

        dialect = select_dialect(text, self._modern_casts, self._extractor)

        if not present:
            if self._extractor.mentions(text, Slot.COERCION):
                warnings.append(self._unreadable_slot(Slot.COERCION, list(contributions)))
                return text, None
            return text, render_coercion_slot(contributions, dialect)

        updated: dict[str, str] = {}
        for location in present:
            for key, value in location.mapping.items():
                updated.setdefault(key, value)
        for key, value in contributions.items():
            updated.setdefault(key, value)

        primary: SlotLocation = accessor if accessor is not None else legacy  # type: ignore[assignment]
        if len(present) == 1 and updated == primary.mapping:
            return text, None

        edits = [(primary.start, primary.end, render_coercion_slot(updated, dialect))]
        if accessor is not None and legacy is not None:
            edits.append((*_line_span(text, legacy.start, legacy.end), ""))
            self._logger.info("legacy_casts_property_removed")

        for start, end, replacement in sorted(edits, reverse=True):
            text = _splice(text, start, end, replacement)
        return text, None

    def _insert_after_class_open(self, text: str, blocks: list[str], warnings: list[str]) -> str:
        body = self._extractor.class_body(text)
        if body is None:
            warnings.append("No class declaration found; new declarations were not inserted.")
            self._logger.warning("class_declaration_not_found", block_count=len(blocks))
            return text
        inserted = "\n" + "\n\n".join(INDENT + block for block in blocks) + "\n"
        return _splice(text, body[0] + 1, body[0] + 1, inserted)

    def _unreadable_slot(self, slot: Slot, dropped: list[str]) -> str:
        self._logger.warning(
            "slot_left_unchanged",
            slot=slot.value,
            dropped_entries=dropped,
        )
        message = f"${slot.value} could not be read safely and was left unchanged"
        if dropped:
            message += f"; not added: {', '.join(dropped)}"
        return message + "."


__all__ = ["DeclarationMerger", "MergeResult", "select_dialect"]
