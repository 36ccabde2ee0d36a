"""Declaration extractor for generated model source files.

Recovers the four declaration slots (fillable, hidden, appends, casts) from
model source text. Only a fixed grammar is recognized: a property assigned a
bracketed literal, or for casts a zero-argument accessor whose body is exactly
``return [ ... ];``. Anything else is treated as absent.
"""

import re
from bisect import bisect_right

import structlog
from pydantic import BaseModel, Field

from modelmaker.models.base import ordered_unique
from modelmaker.models.enums import CoercionDialect, Slot
from modelmaker.models.state import DeclaredState

_CLOSERS = {"[": "]", "(": ")", "{": "}"}
_QUOTES = "'\""

_ACCESSOR_SIGNATURE = re.compile(
    r"\b(?:public|protected|private)\s+function\s+casts\s*\(\s*\)\s*(?::\s*array\s*)?\{"
)
_ACCESSOR_RETURN = re.compile(r"\s*return\s*\[")
_ACCESSOR_TAIL = re.compile(r"\s*;\s*\}")
_STATEMENT_END = re.compile(r"\s*;")
_MAP_ARROW = re.compile(r"\s*=>\s*")
_CLASS_OPEN = re.compile(
    r"^[ \t]*(?:(?:final|abstract|readonly)\s+)*class\s+\w+[^{]*\{",
    re.MULTILINE,
)


def _property_signature(slot: Slot) -> re.Pattern[str]:
    return re.compile(
        r"\b(?:public|protected|private)\s+(?:static\s+)?(?:array\s+)?\$"
        + re.escape(slot.value)
        + r"\s*=\s*\["
    )


class SlotLocation(BaseModel):
    """Where a slot is declared and what could be recovered from it.

    ``start``/``end`` span the whole declaration, from the visibility keyword
    through the terminating ``;`` (property) or ``}`` (accessor). When
    ``parsed`` is False the declaration was found but its literal could not
    be scanned, and ``end`` only covers the signature.
    """

    slot: Slot
    dialect: CoercionDialect
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    parsed: bool = True
    values: list[str] = Field(default_factory=list)
    mapping: dict[str, str] = Field(default_factory=dict)
    unrecognized: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def is_lossless(self) -> bool:
        return self.parsed and not self.unrecognized


def _skip_string(text: str, index: int) -> int | None:
    """Return the index just past the quoted string starting at ``index``."""
    quote = text[index]
    position = index + 1
    while position < len(text):
        char = text[position]
        if char == "\\":
            position += 2
            continue
        if char == quote:
            return position + 1
        position += 1
    return None


def _inert_end(text: str, position: int) -> int | None:
    """End of the string literal or comment starting at ``position``, if one does.

    Unterminated strings and block comments run to the end of the text.
    """
    char = text[position]
    if char in _QUOTES:
        end = _skip_string(text, position)
        return len(text) if end is None else end
    if text.startswith("//", position) or (char == "#" and not text.startswith("#[", position)):
        newline = text.find("\n", position)
        return len(text) if newline == -1 else newline
    if text.startswith("/*", position):
        end = text.find("*/", position + 2)
        return len(text) if end == -1 else end + 2
    return None


def _inert_spans(text: str) -> list[tuple[int, int]]:
    """Spans of every string literal and comment, in source order."""
    spans: list[tuple[int, int]] = []
    position = 0
    while position < len(text):
        end = _inert_end(text, position)
        if end is None:
            position += 1
            continue
        spans.append((position, end))
        position = end
    return spans


def _live_search(pattern: re.Pattern[str], text: str) -> re.Match[str] | None:
    """First match of ``pattern`` that does not start inside a string or comment."""
    spans = _inert_spans(text)
    starts = [start for start, _ in spans]
    for match in pattern.finditer(text):
        index = bisect_right(starts, match.start()) - 1
        if index >= 0 and match.start() < spans[index][1]:
            continue
        return match
    return None


def _match_brace(text: str, open_index: int) -> int | None:
    """Index of the ``}`` closing the ``{`` at ``open_index``."""
    depth = 0
    position = open_index
    while position < len(text):
        end = _inert_end(text, position)
        if end is not None:
            position = end
            continue
        char = text[position]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return position
        position += 1
    return None


def _scan_literal(text: str, open_index: int) -> tuple[int, list[str]] | None:
    """Scan a bracketed literal starting at ``text[open_index] == '['``.

    Returns the index of the matching ``]`` and the entries separated by
    commas at nesting depth zero, or None when the literal is unbalanced.
    """
    stack: list[str] = []
    entries: list[str] = []
    current: list[str] = []
    position = open_index + 1
    length = len(text)

    while position < length:
        char = text[position]
        end = _inert_end(text, position)
        if end is not None:
            if char in _QUOTES:
                current.append(text[position:end])
            position = end
            continue

        if char in _CLOSERS:
            stack.append(_CLOSERS[char])
            current.append(char)
        elif char in ")]}":
            if not stack:
                if char != "]":
                    return None
                entries.append("".join(current))
                return position, [entry.strip() for entry in entries if entry.strip()]
            if stack.pop() != char:
                return None
            current.append(char)
        elif char == "," and not stack:
            entries.append("".join(current))
            current = []
        else:
            current.append(char)
        position += 1

    return None


def _literal_string(entry: str) -> str | None:
    """Return the contents of ``entry`` if it is exactly one quoted string."""
    if len(entry) < 2 or entry[0] not in _QUOTES:
        return None
    if _skip_string(entry, 0) != len(entry):
        return None
    quote = entry[0]
    return entry[1:-1].replace("\\" + quote, quote).replace("\\\\", "\\")


def _unquote(entry: str) -> str:
    entry = entry.strip()
    if len(entry) >= 2 and entry[0] in _QUOTES and entry[-1] == entry[0]:
        return entry[1:-1].strip()
    return entry


def _parse_map_entry(entry: str) -> tuple[str, str] | None:
    if not entry or entry[0] not in _QUOTES:
        return None
    key_end = _skip_string(entry, 0)
    if key_end is None:
        return None
    arrow = _MAP_ARROW.match(entry, key_end)
    if arrow is None:
        return None
    key = _literal_string(entry[:key_end])
    value = _literal_string(entry[arrow.end() :].strip())
    if key is None or value is None:
        return None
    return key, value


class DeclarationExtractor:
    """Recovers declared slot contents from model source text.

    Never raises: a slot that is absent, empty, or unparseable yields an
    empty container from ``extract``. ``locate`` distinguishes these cases
    for callers that must not rewrite what they could not read.
    """

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger(__name__)

    def locate(
        self,
        source: str,
        slot: Slot,
        dialect: CoercionDialect | None = None,
    ) -> SlotLocation | None:
        """Find the first declaration of ``slot`` in ``source``.

        For the casts slot with no explicit dialect, the accessor function is
        preferred over the property.
        """
        if slot is Slot.COERCION and dialect is not CoercionDialect.LEGACY_FIELD:
            location = self._locate_accessor(source)
            if location is not None or dialect is CoercionDialect.ACCESSOR_FUNCTION:
                return location
        return self._locate_property(source, slot)

    def extract(self, source: str, slot: Slot) -> list[str] | dict[str, str]:
        """Return the ordered entries of a list slot, or the casts mapping."""
        location = self.locate(source, slot)
        if slot is Slot.COERCION:
            return dict(location.mapping) if location is not None else {}
        return list(location.values) if location is not None else []

    def extract_list(self, source: str, slot: Slot) -> list[str]:
        if slot is Slot.COERCION:
            raise ValueError("casts is a mapping slot; use extract_map")
        location = self.locate(source, slot)
        return list(location.values) if location is not None else []

    def extract_map(self, source: str) -> dict[str, str]:
        location = self.locate(source, Slot.COERCION)
        return dict(location.mapping) if location is not None else {}

    def extract_state(self, source: str) -> DeclaredState:
        return DeclaredState(
            exposed_fields=self.extract_list(source, Slot.EXPOSED),
            hidden_fields=self.extract_list(source, Slot.HIDDEN),
            append_fields=self.extract_list(source, Slot.APPENDED),
            coercion_map=self.extract_map(source),
        )

    def uses_accessor_dialect(self, source: str) -> bool:
        return _live_search(_ACCESSOR_SIGNATURE, source) is not None

    def mentions(self, source: str, slot: Slot) -> bool:
        """Loose check for any declaration of ``slot``, recognized or not."""
        if _live_search(re.compile(r"\$" + re.escape(slot.value) + r"\s*="), source) is not None:
            return True
        return slot is Slot.COERCION and self.has_accessor(source, "casts")

    def has_accessor(self, source: str, method_name: str) -> bool:
        """Whether a method named ``method_name`` is declared anywhere in ``source``."""
        pattern = re.compile(r"\bfunction\s+" + re.escape(method_name) + r"\s*\(", re.IGNORECASE)
        return _live_search(pattern, source) is not None

    def class_body(self, source: str) -> tuple[int, int] | None:
        """Offsets of the class body's opening and closing braces.

        Braces inside strings and comments are ignored; returns None when no
        class declaration is found or its body is unbalanced.
        """
        match = _live_search(_CLASS_OPEN, source)
        if match is None:
            return None
        opening = match.end() - 1
        closing = _match_brace(source, opening)
        if closing is None:
            return None
        return opening, closing

    def _locate_property(self, source: str, slot: Slot) -> SlotLocation | None:
        match = _live_search(_property_signature(slot), source)
        if match is None:
            return None

        scanned = _scan_literal(source, match.end() - 1)
        terminator = _STATEMENT_END.match(source, scanned[0] + 1) if scanned else None
        if scanned is None or terminator is None:
            return self._unparsed(slot, CoercionDialect.LEGACY_FIELD, match.start(), match.end())

        return self._build_location(
            slot,
            CoercionDialect.LEGACY_FIELD,
            match.start(),
            terminator.end(),
            scanned[1],
        )

    def _locate_accessor(self, source: str) -> SlotLocation | None:
        match = _live_search(_ACCESSOR_SIGNATURE, source)
        if match is None:
            return None

        opening = _ACCESSOR_RETURN.match(source, match.end())
        if opening is None:
            return self._unparsed(Slot.COERCION, CoercionDialect.ACCESSOR_FUNCTION, match.start(), match.end())

        scanned = _scan_literal(source, opening.end() - 1)
        tail = _ACCESSOR_TAIL.match(source, scanned[0] + 1) if scanned else None
        if scanned is None or tail is None:
            return self._unparsed(Slot.COERCION, CoercionDialect.ACCESSOR_FUNCTION, match.start(), match.end())

        return self._build_location(
            Slot.COERCION,
            CoercionDialect.ACCESSOR_FUNCTION,
            match.start(),
            tail.end(),
            scanned[1],
        )

    def _build_location(
        self,
        slot: Slot,
        dialect: CoercionDialect,
        start: int,
        end: int,
        entries: list[str],
    ) -> SlotLocation:
        unrecognized: list[str] = []

        if slot is Slot.COERCION:
            mapping: dict[str, str] = {}
            for entry in entries:
                pair = _parse_map_entry(entry)
                if pair is None:
                    unrecognized.append(entry)
                    continue
                mapping[pair[0]] = pair[1]
            values: list[str] = []
        else:
            mapping = {}
            raw_values = []
            for entry in entries:
                value = _literal_string(entry)
                if value is None:
                    unrecognized.append(entry)
                    value = _unquote(entry)
                if value:
                    raw_values.append(value)
            values = ordered_unique(raw_values)

        if unrecognized:
            self._logger.debug(
                "slot_entries_unrecognized",
                slot=slot.value,
                entries=unrecognized,
            )

        return SlotLocation(
            slot=slot,
            dialect=dialect,
            start=start,
            end=end,
            values=values,
            mapping=mapping,
            unrecognized=unrecognized,
        )

    def _unparsed(self, slot: Slot, dialect: CoercionDialect, start: int, end: int) -> SlotLocation:
        self._logger.warning(
            "slot_parse_failed",
            slot=slot.value,
            dialect=dialect.value,
            offset=start,
        )
        return SlotLocation(slot=slot, dialect=dialect, start=start, end=end, parsed=False)


__all__ = ["DeclarationExtractor", "SlotLocation"]
