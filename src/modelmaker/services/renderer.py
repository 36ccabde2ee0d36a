"""Canonical source renderings shared by the model builder and the merger.

Blocks are returned without indentation on their first line so they can
replace a declaration in place; continuation lines carry class-member
indentation.
"""

from collections.abc import Mapping, Sequence

from modelmaker.models.enums import CoercionDialect, RelationKind, Slot
from modelmaker.models.relation import RelationDefinition
from modelmaker.services.naming import qualify_type_ref, snake

INDENT = "    "


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def render_list_slot(slot: Slot, values: Sequence[str]) -> str:
    if slot is Slot.COERCION:
        raise ValueError("casts must be rendered with render_coercion_slot")
    if not values:
        return f"protected ${slot.value} = [];"
    lines = [f"protected ${slot.value} = ["]
    lines.extend(f"{INDENT * 2}{quote(value)}," for value in values)
    lines.append(f"{INDENT}];")
    return "\n".join(lines)


def render_coercion_slot(mapping: Mapping[str, str], dialect: CoercionDialect) -> str:
    if dialect is CoercionDialect.LEGACY_FIELD:
        if not mapping:
            return "protected $casts = [];"
        lines = ["protected $casts = ["]
        lines.extend(f"{INDENT * 2}{quote(key)} => {quote(value)}," for key, value in mapping.items())
        lines.append(f"{INDENT}];")
        return "\n".join(lines)

    lines = ["protected function casts(): array", f"{INDENT}{{"]
    if mapping:
        lines.append(f"{INDENT * 2}return [")
        lines.extend(f"{INDENT * 3}{quote(key)} => {quote(value)}," for key, value in mapping.items())
        lines.append(f"{INDENT * 2}];")
    else:
        lines.append(f"{INDENT * 2}return [];")
    lines.append(f"{INDENT}}}")
    return "\n".join(lines)


def render_relation_call(relation: RelationDefinition, namespace: str) -> str:
    kind = relation.relation_kind
    if kind is RelationKind.MORPH_TO:
        return "$this->morphTo()"

    target = "\\" + qualify_type_ref(relation.target_type_ref, namespace) + "::class"
    if kind in (RelationKind.MORPH_ONE, RelationKind.MORPH_MANY, RelationKind.MORPH_TO_MANY):
        return f"$this->{kind.value}({target}, {quote(snake(relation.method_name))})"
    return f"$this->{kind.value}({target})"


def render_relation_accessor(relation: RelationDefinition, namespace: str) -> str:
    """Render a relation accessor method, indented as a class member."""
    return "\n".join(
        [
            f"{INDENT}public function {relation.method_name}()",
            f"{INDENT}{{",
            f"{INDENT * 2}return {render_relation_call(relation, namespace)};",
            f"{INDENT}}}",
        ]
    )
