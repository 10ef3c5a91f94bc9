"""Naming utilities for code generation."""

from __future__ import annotations

import keyword
import re
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, AbstractSet, Final

from .errors import IdentifierCollisionError

if TYPE_CHECKING:
    from .model import ForeignKey

PYTHON_KEYWORDS: frozenset[str] = frozenset(keyword.kwlist)

# Attributes defined by DeclarativeBase that a mapped column must not shadow
DECLARATIVE_RESERVED_ATTRIBUTES: frozenset[str] = frozenset({
    "metadata",
    "registry",
})

# Highest numeric suffix tried by disambiguate() before giving up
MAX_SUFFIX: Final[int] = 1000

# Common irregular plurals
_IRREGULAR_PLURALS: dict[str, str] = {
    "children": "child",
    "people": "person",
    "men": "man",
    "women": "woman",
    "mice": "mouse",
    "geese": "goose",
    "teeth": "tooth",
    "feet": "foot",
    "data": "datum",
    "criteria": "criterion",
    "analyses": "analysis",
    "indices": "index",
    "appendices": "appendix",
    "matrices": "matrix",
    "vertices": "vertex",
    "menus": "menu",
    "movies": "movie",
}

_IRREGULAR_SINGULARS: dict[str, str] = {
    singular: plural for plural, singular in _IRREGULAR_PLURALS.items()
}

# Nouns with the same singular and plural form
_UNCOUNTABLE: frozenset[str] = frozenset({
    "news",
    "series",
    "species",
    "equipment",
    "information",
    "metadata",
    "sheep",
    "fish",
    "deer",
    "aircraft",
})

# Endings of words that are already singular
_SINGULAR_ENDINGS: Final[tuple[str, ...]] = ("ss", "us", "is")

_VOWELS: Final[str] = "aeiou"

_INVALID_IDENTIFIER_CHARS = re.compile(r"\W")


class Direction(str, Enum):
    """Side of a foreign-key relationship an attribute is generated for."""

    FORWARD = "forward"
    BACKREF = "backref"


def _match_case(original: str, replacement: str) -> str:
    # Preserve original case pattern
    if original[0].isupper():
        return replacement.capitalize()
    return replacement


@lru_cache(maxsize=1024)
def singularize(name: str) -> str:
    """Convert a plural word to singular form.

    Words that already read as singular (``status``, ``class``, ``axis``)
    and uncountable nouns (``news``, ``series``) are returned unchanged.
    """
    # Check irregular plurals first
    lower = name.lower()
    if lower in _IRREGULAR_PLURALS:
        return _match_case(name, _IRREGULAR_PLURALS[lower])
    if lower in _UNCOUNTABLE or lower.endswith(_SINGULAR_ENDINGS):
        return name

    # Apply rules in order of specificity
    if lower.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if lower.endswith("sses"):
        return name[:-2]
    if lower.endswith("uses") and len(name) > 4:
        # houses -> house, statuses -> status
        return name[:-1] if lower[-5] in _VOWELS else name[:-2]
    if lower.endswith("zzes"):
        return name[:-3]
    if lower.endswith(("xes", "ches", "shes")):
        return name[:-2]
    if lower.endswith("s") and len(name) > 1:
        return name[:-1]
    return name


@lru_cache(maxsize=1024)
def pluralize(name: str) -> str:
    """Convert a singular word to plural form.

    The inverse of :func:`singularize` for the same rule set.
    """
    lower = name.lower()
    if lower in _IRREGULAR_SINGULARS:
        return _match_case(name, _IRREGULAR_SINGULARS[lower])
    if lower in _IRREGULAR_PLURALS or lower in _UNCOUNTABLE:
        return name

    if lower.endswith("y") and len(name) > 1 and lower[-2] not in _VOWELS:
        return name[:-1] + "ies"
    if lower.endswith("is") and len(name) > 2:
        return name[:-2] + "es"
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return name + "es"
    return name + "s"


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a string to PascalCase.
    
    Uses caching for repeated calls with the same input.
    
    Examples:
        >>> to_pascal_case("hello_world")
        'HelloWorld'
        >>> to_pascal_case("hello-world")
        'HelloWorld'
        >>> to_pascal_case("helloWorld")
        'HelloWorld'
    """
    # Handle already camelCase/PascalCase by inserting underscores before caps
    value = re.sub(r'([a-z])([A-Z])', r'\1_\2', value)
    
    parts = [part for part in value.replace("-", "_").split("_") if part]
    return "".join(part.capitalize() for part in parts)


@lru_cache(maxsize=1024)
def sanitize_identifier(value: str) -> str:
    """Replace characters that cannot appear in a Python identifier.

    Hyphens, spaces and other non-word characters become underscores and a
    leading digit is prefixed with an underscore. Keywords are left alone.
    """
    sanitized = _INVALID_IDENTIFIER_CHARS.sub("_", value)
    if not sanitized:
        return "_"
    if sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized


@lru_cache(maxsize=1024)
def table_to_class_name(name: str, use_inflect: bool = False) -> str:
    """Build the mapped class name for a table.

    Examples:
        >>> table_to_class_name("user_accounts")
        'UserAccounts'
        >>> table_to_class_name("user_accounts", use_inflect=True)
        'UserAccount'
    """
    if use_inflect:
        name = singularize(name)
    class_name = to_pascal_case(_INVALID_IDENTIFIER_CHARS.sub("_", name))
    return sanitize_identifier(class_name) if class_name else "Table_"


@lru_cache(maxsize=1024)
def table_to_variable_name(name: str) -> str:
    """Build the module-level variable name for a ``Table(...)`` construct."""
    return sanitize_identifier(f"t_{name}")


@lru_cache(maxsize=1024)
def column_to_attr_name(name: str) -> str:
    """Sanitize a column name for use as a mapped attribute.

    Python keywords and names reserved by the declarative base get a
    trailing underscore: ``class`` becomes ``class_``.
    """
    attr = sanitize_identifier(name)
    if attr in PYTHON_KEYWORDS or attr in DECLARATIVE_RESERVED_ATTRIBUTES:
        return f"{attr}_"
    return attr


def relationship_name(
    fk: ForeignKey,
    direction: Direction,
    use_inflect: bool = False,
    *,
    source_table: str,
    unique: bool = False,
) -> str:
    """Name the relationship attribute generated for a foreign key.

    The forward side (on the referencing class) is named after the
    singularized target table. The back-reference is named after the
    source table: pluralized under ``use_inflect`` when it is a collection,
    singular when the foreign key columns are unique (one-to-one).
    """
    if direction is Direction.FORWARD:
        base = singularize(fk.target_table)
    elif unique:
        base = singularize(source_table)
    elif use_inflect:
        base = pluralize(singularize(source_table))
    else:
        base = source_table
    return column_to_attr_name(base)


def disambiguate(
    name: str,
    taken: AbstractSet[str],
    scope: str = "module",
) -> str:
    """Return ``name`` or the first ``name1``, ``name2``... not in ``taken``.

    Raises:
        IdentifierCollisionError: If every suffix up to MAX_SUFFIX is taken.
    """
    if name not in taken:
        return name
    for suffix in range(1, MAX_SUFFIX + 1):
        candidate = f"{name}{suffix}"
        if candidate not in taken:
            return candidate
    raise IdentifierCollisionError(name, scope)
