# File: goscaffold/naming.py
"""
goscaffold - Naming Convention Engine
======================================
Derives every name variant the generated code needs (type name, table name,
route segment, file stem, variable and receiver names) from a single
canonical entity name.

Every other component asks this module for names; nothing builds a table
name or a route path by itself.  All conversions are pure and decorated with
``@functools.lru_cache`` so a ``NameSet`` is computed once per entity name
and the very same object is handed out afterwards.

Pluralisation uses a fixed suffix rule set plus an explicit exception table
instead of a generic inflection library, so table and route names stay
predictable and testable.
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Tuple

from goscaffold.errors import InvalidNameError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.naming")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

# Underscore counts as a word character in Python's \W, so split on it too.
_SEPARATOR_RE: re.Pattern[str] = re.compile(r"[\W_]+")

# ---------------------------------------------------------------------------
# Go language word lists
# ---------------------------------------------------------------------------

GO_KEYWORDS: FrozenSet[str] = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer",
    "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
    "interface", "map", "package", "range", "return", "select", "struct",
    "switch", "type", "var",
})

GO_PREDECLARED: FrozenSet[str] = frozenset({
    "string", "int", "int8", "int16", "int32", "int64", "uint", "uint8",
    "uint16", "uint32", "uint64", "float32", "float64", "bool", "byte",
    "rune", "error", "any", "true", "false", "nil", "iota", "len", "cap",
    "make", "new", "delete", "copy", "append", "panic", "recover", "print",
    "println", "close", "complex", "real", "imag",
})

# Words Go style keeps fully upper-case inside identifiers (UserID, not UserId).
GO_INITIALISMS: FrozenSet[str] = frozenset({
    "id", "url", "uri", "api", "http", "https", "json", "xml", "sql",
    "uuid", "ip", "html", "css", "tcp", "udp", "dns", "sku",
})

# ---------------------------------------------------------------------------
# Pluralisation tables
# ---------------------------------------------------------------------------

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "ox": "oxen",
    "datum": "data",
    "medium": "media",
    "criterion": "criteria",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "thesis": "theses",
    "cactus": "cacti",
    "roof": "roofs",
    "chief": "chiefs",
    "belief": "beliefs",
    "photo": "photos",
    "piano": "pianos",
    "video": "videos",
    "radio": "radios",
}

_UNCOUNTABLE: FrozenSet[str] = frozenset({
    "news", "series", "species", "equipment", "information", "sheep",
    "fish", "deer", "data", "metadata", "feedback", "software", "inventory",
})


# ---------------------------------------------------------------------------
# NameSet
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NameSet:
    """Every casing / pluralisation variant of one entity name."""

    canonical: str
    type_name: str
    plural_type_name: str
    variable_name: str
    plural_variable_name: str
    receiver: str
    file_stem: str
    table_name: str
    route_segment: str
    route_path: str
    human_name: str
    human_plural: str

    def __repr__(self) -> str:
        return f"<NameSet {self.type_name} table={self.table_name}>"


# ---------------------------------------------------------------------------
# Word extraction
# ---------------------------------------------------------------------------


def _split_camel(chunk: str) -> List[str]:
    """Split one separator-free chunk on lower→upper and acronym boundaries."""
    words: List[str] = []
    current: str = ""
    for i, ch in enumerate(chunk):
        if current:
            prev: str = chunk[i - 1]
            nxt: str = chunk[i + 1] if i + 1 < len(chunk) else ""
            boundary: bool = ch.isupper() and (
                prev.islower()
                or prev.isdigit()
                or (prev.isupper() and nxt.islower())
            )
            if boundary:
                words.append(current)
                current = ""
        current += ch
    if current:
        words.append(current)
    return words


@functools.lru_cache(maxsize=None)
def extract_words(name: str) -> Tuple[str, ...]:
    """
    Split any casing style into words, preserving Unicode letters/digits.

    Examples:
        >>> extract_words("OrderItem")
        ('Order', 'Item')
        >>> extract_words("order_item")
        ('order', 'item')
        >>> extract_words("HTTPLog")
        ('HTTP', 'Log')
    """
    words: List[str] = []
    for chunk in _SEPARATOR_RE.split(name):
        if chunk:
            words.extend(_split_camel(chunk))
    return tuple(words)


# ---------------------------------------------------------------------------
# Cached case conversions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """``order_item`` / ``order-item`` / ``orderItem`` → ``OrderItem``."""
    return "".join(w[:1].upper() + w[1:].lower() for w in extract_words(name))


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """``OrderItem`` → ``orderItem``."""
    words: Tuple[str, ...] = extract_words(name)
    if not words:
        return ""
    first: str = words[0].lower()
    rest: str = "".join(w[:1].upper() + w[1:].lower() for w in words[1:])
    return first + rest


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """``OrderItem`` → ``order_item``."""
    return "_".join(w.lower() for w in extract_words(name))


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """``OrderItem`` → ``order-item`` (used in URL paths)."""
    return "-".join(w.lower() for w in extract_words(name))


@functools.lru_cache(maxsize=None)
def to_go_identifier(name: str) -> str:
    """
    Exported Go identifier honouring common initialisms.

    Examples:
        >>> to_go_identifier("customer_id")
        'CustomerID'
        >>> to_go_identifier("avatarUrl")
        'AvatarURL'
    """
    parts: List[str] = []
    for word in extract_words(name):
        lower: str = word.lower()
        if lower in GO_INITIALISMS:
            parts.append(lower.upper())
        else:
            parts.append(word[:1].upper() + word[1:].lower())
    return "".join(parts)


def _safe_variable(name: str) -> str:
    """Append an underscore when a lowerCamel name is a Go keyword."""
    if name in GO_KEYWORDS or name in GO_PREDECLARED:
        return f"{name}_"
    return name


# ---------------------------------------------------------------------------
# Pluralisation
# ---------------------------------------------------------------------------


def _match_case(template: str, word: str) -> str:
    """Give *word* the capitalisation style of *template*."""
    if template.isupper() and len(template) > 1:
        return word.upper()
    if template[:1].isupper():
        return word[:1].upper() + word[1:]
    return word


@functools.lru_cache(maxsize=None)
def pluralize(word: str) -> str:
    """
    Pluralise a single English word.

    Irregular and uncountable words come from fixed tables; everything else
    follows the suffix rules below, in order.
    """
    if not word:
        return ""
    lower: str = word.lower()

    if lower in _UNCOUNTABLE:
        return word
    if lower in _IRREGULAR_PLURALS:
        return _match_case(word, _IRREGULAR_PLURALS[lower])

    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return word[:-1] + "ies"
    if lower.endswith("fe"):
        return word[:-2] + "ves"
    if lower.endswith("f") and not lower.endswith("ff"):
        return word[:-1] + "ves"
    if lower.endswith("o") and len(lower) > 1 and lower[-2] not in "aeiou":
        return word + "es"
    return word + "s"


@functools.lru_cache(maxsize=None)
def pluralize_name(name: str) -> str:
    """Pluralise the last word of a compound PascalCase name."""
    words: List[str] = list(extract_words(name))
    if not words:
        return ""
    words[-1] = pluralize(words[-1])
    return "".join(w[:1].upper() + w[1:] for w in words)


# ---------------------------------------------------------------------------
# Validation & NameSet construction
# ---------------------------------------------------------------------------


def normalize_entity_name(name: str) -> str:
    """
    Normalise an entity name to PascalCase, rejecting non-identifiers.

    Raises:
        InvalidNameError: If the normalised name is empty, does not start
            with an upper-case letter, or is not a valid identifier.
    """
    stripped: str = name.strip()
    if not stripped:
        raise InvalidNameError(name, "name is empty")

    normalized: str = to_pascal_case(stripped)
    if not normalized:
        raise InvalidNameError(name, "name contains no letters or digits")
    if not normalized[0].isalpha():
        raise InvalidNameError(name, "name must start with a letter")
    if not normalized.isidentifier():
        raise InvalidNameError(name, "name is not a valid identifier")
    if not normalized[0].isupper():
        raise InvalidNameError(
            name, "name must start with an upper-case letter to be exported"
        )
    return normalized


@functools.lru_cache(maxsize=None)
def build_name_set(canonical_name: str) -> NameSet:
    """
    Derive the full ``NameSet`` for an entity.

    The result is memoised: computing it twice for the same input returns
    the identical object, so every layer in a run (and every later run)
    sees byte-identical names.

    Examples:
        >>> build_name_set("Order").table_name
        'orders'
        >>> build_name_set("OrderItem").route_path
        '/order-items'
    """
    type_name: str = normalize_entity_name(canonical_name)
    plural_type: str = pluralize_name(type_name)
    variable: str = to_camel_case(type_name)
    plural_variable: str = to_camel_case(plural_type)

    names: NameSet = NameSet(
        canonical=type_name,
        type_name=type_name,
        plural_type_name=plural_type,
        variable_name=_safe_variable(variable),
        plural_variable_name=_safe_variable(plural_variable),
        receiver=type_name[0].lower(),
        file_stem=to_snake_case(type_name),
        table_name=to_snake_case(plural_type),
        route_segment=to_kebab_case(plural_type),
        route_path=f"/{to_kebab_case(plural_type)}",
        human_name=" ".join(w.lower() for w in extract_words(type_name)),
        human_plural=" ".join(w.lower() for w in extract_words(plural_type)),
    )
    logger.debug("Built %r from %r.", names, canonical_name)
    return names


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GO_INITIALISMS",
    "GO_KEYWORDS",
    "GO_PREDECLARED",
    "NameSet",
    "build_name_set",
    "extract_words",
    "normalize_entity_name",
    "pluralize",
    "pluralize_name",
    "to_camel_case",
    "to_go_identifier",
    "to_kebab_case",
    "to_pascal_case",
    "to_snake_case",
]

logger.debug("goscaffold.naming loaded — %d public symbols.", len(__all__))
