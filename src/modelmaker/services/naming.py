"""Naming conventions shared by the model and migration pipelines.

Table, column and file names produced here must agree with the conventions
the consuming framework applies on its own (foreign key guessing, junction
table guessing), so every component derives names through these helpers.
"""

import re

_IRREGULAR_PLURALS = {
    "child": "children",
    "foot": "feet",
    "goose": "geese",
    "half": "halves",
    "knife": "knives",
    "leaf": "leaves",
    "life": "lives",
    "man": "men",
    "mouse": "mice",
    "ox": "oxen",
    "person": "people",
    "tooth": "teeth",
    "wife": "wives",
    "woman": "women",
}
_IRREGULAR_SINGULARS = {plural: singular for singular, plural in _IRREGULAR_PLURALS.items()}
_IRREGULAR_SINGULARS.update(
    {
        "aliases": "alias",
        "bonuses": "bonus",
        "buses": "bus",
        "campuses": "campus",
        "statuses": "status",
        "viruses": "virus",
    }
)
_UNCOUNTABLE = {
    "audio",
    "equipment",
    "feedback",
    "fish",
    "information",
    "metadata",
    "money",
    "news",
    "series",
    "sheep",
    "species",
}

_SNAKE_BOUNDARY = re.compile(r"(.)(?=[A-Z])")


def snake(name: str) -> str:
    """Convert StudlyCase or camelCase to snake_case.

    Examples::

        "BlogPost"     -> "blog_post"
        "publishedAt"  -> "published_at"
        "published_at" -> "published_at" (no change)
    """
    name = name.strip()
    if name.islower() or not name:
        return name
    name = re.sub(r"\s+", "", name.title() if " " in name else name)
    return re.sub(r"_+", "_", _SNAKE_BOUNDARY.sub(r"\1_", name).lower())


def studly(name: str) -> str:
    """Convert snake_case or kebab-case to StudlyCase."""
    parts = re.split(r"[_\-\s]+", name.strip())
    return "".join(part[:1].upper() + part[1:] for part in parts if part)


def _split_last_word(word: str) -> tuple[str, str]:
    if "_" in word:
        head, _, tail = word.rpartition("_")
        return head + "_", tail
    match = re.search(r"[A-Z][^A-Z]*$", word)
    if match and match.start() > 0:
        return word[: match.start()], word[match.start() :]
    return "", word


def _match_case(source: str, result: str) -> str:
    if source.isupper() and len(source) > 1:
        return result.upper()
    if source[:1].isupper():
        return result[:1].upper() + result[1:]
    return result


def _pluralize_word(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE or lower in _IRREGULAR_SINGULARS:
        return lower
    if lower in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[lower]
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return lower + "es"
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return lower[:-1] + "ies"
    return lower + "s"


def _singularize_word(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE or lower in _IRREGULAR_PLURALS:
        return lower
    if lower in _IRREGULAR_SINGULARS:
        return _IRREGULAR_SINGULARS[lower]
    if lower.endswith("ies") and len(lower) > 3:
        return lower[:-3] + "y"
    if lower.endswith(("sses", "zzes", "xes", "ches", "shes")):
        return lower[:-3] if lower.endswith("zzes") else lower[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return lower[:-1]
    return lower


def pluralize(word: str) -> str:
    """Return the English plural of the last word in *word*."""
    if not word:
        return word
    head, last = _split_last_word(word)
    return head + _match_case(last, _pluralize_word(last))


def singularize(word: str) -> str:
    """Return the English singular of the last word in *word*."""
    if not word:
        return word
    head, last = _split_last_word(word)
    return head + _match_case(last, _singularize_word(last))


def class_basename(type_ref: str) -> str:
    """Return the final segment of a possibly namespaced type reference."""
    return re.split(r"[\\/]", type_ref.strip().rstrip("\\/"))[-1]


def qualify_type_ref(type_ref: str, namespace: str) -> str:
    """Resolve a type reference to a fully qualified name without a leading separator.

    Absolute references (leading backslash, or starting with the namespace's
    root segment) keep their path; anything else is placed under *namespace*.
    """
    ref = type_ref.strip().replace("/", "\\")
    namespace = namespace.strip("\\")
    if ref.startswith("\\"):
        return ref.lstrip("\\")
    root = namespace.split("\\")[0]
    if "\\" in ref and ref.split("\\")[0] == root:
        return ref
    return f"{namespace}\\{ref}" if namespace else ref


def table_name(class_name: str) -> str:
    """Storage table for a record type, e.g. ``BlogPost`` -> ``blog_posts``."""
    return snake(pluralize(class_basename(class_name)))


def foreign_key(name: str) -> str:
    return f"{snake(name)}_id"


def junction_table_name(owner_table: str, related_table: str) -> str:
    """Junction table joining two tables: singular snake names sorted and joined."""
    pair = sorted([snake(singularize(owner_table)), snake(singularize(related_table))])
    return "_".join(pair)
