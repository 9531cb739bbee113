# File: goscaffold/parser.py
"""
goscaffold - Field Spec Parser
===============================
Turns the compact field-specification string into an ordered list of
``FieldDescriptor`` objects.

Grammar::

    spec     := field (',' field)*
    field    := name ':' type (':' modifier ('|' modifier)*)?
    name     := [A-Za-z_][A-Za-z0-9_]*
    type     := string | int | float | bool | time | reference
    modifier := required | unique | indexed

Whitespace around every token is trimmed.  Nothing is ever defaulted or
ignored: an empty segment, an unknown type or modifier, a duplicate name
(case-insensitive, or mapping to the same Go field or column) or a reserved
name all raise ``ParseError`` naming the offending token, its field position
and its character offset.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

from goscaffold.errors import ParseError, ParseErrorKind
from goscaffold.models import FieldDescriptor, FieldModifier, SemanticType
from goscaffold.naming import GO_KEYWORDS, GO_PREDECLARED, to_go_identifier, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.parser")

# ---------------------------------------------------------------------------
# Grammar tables
# ---------------------------------------------------------------------------

_NAME_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_TYPE_TOKENS: Dict[str, SemanticType] = {t.value: t for t in SemanticType}
_MODIFIER_TOKENS: Dict[str, FieldModifier] = {m.value: m for m in FieldModifier}

# Implicit identity column; every entity gets one.
IDENTITY_FIELD: str = "id"

RESERVED_FIELD_NAMES: FrozenSet[str] = (
    frozenset({IDENTITY_FIELD}) | GO_KEYWORDS | GO_PREDECLARED
)


# ---------------------------------------------------------------------------
# Segment splitting
# ---------------------------------------------------------------------------


def _split_with_offsets(text: str, sep: str, base: int) -> List[Tuple[str, int]]:
    """
    Split *text* on *sep*, returning ``(stripped_piece, offset)`` pairs.

    The offset points at the first non-blank character of each piece in the
    original spec (or at the separator position for an all-blank piece).
    """
    pieces: List[Tuple[str, int]] = []
    start: int = 0
    for raw in text.split(sep):
        leading: int = len(raw) - len(raw.lstrip())
        stripped: str = raw.strip()
        offset: int = base + start + (leading if stripped else 0)
        pieces.append((stripped, offset))
        start += len(raw) + len(sep)
    return pieces


# ---------------------------------------------------------------------------
# Single field
# ---------------------------------------------------------------------------


def _parse_modifiers(
    segment: str,
    offset: int,
    position: int,
) -> FrozenSet[FieldModifier]:
    modifiers: Set[FieldModifier] = set()
    for token, tok_offset in _split_with_offsets(segment, "|", offset):
        if not token:
            raise ParseError(
                ParseErrorKind.EMPTY_SEGMENT, token, position, tok_offset,
                "empty modifier",
            )
        modifier = _MODIFIER_TOKENS.get(token)
        if modifier is None:
            raise ParseError(
                ParseErrorKind.UNKNOWN_MODIFIER, token, position, tok_offset,
                f"expected one of {sorted(_MODIFIER_TOKENS)}",
            )
        modifiers.add(modifier)
    return frozenset(modifiers)


def _parse_field(segment: str, offset: int, position: int) -> FieldDescriptor:
    parts: List[Tuple[str, int]] = _split_with_offsets(segment, ":", offset)

    if len(parts) < 2:
        raise ParseError(
            ParseErrorKind.MALFORMED_FIELD, segment, position, offset,
            "expected name:type",
        )
    if len(parts) > 3:
        raise ParseError(
            ParseErrorKind.MALFORMED_FIELD, segment, position, offset,
            "too many ':' separators",
        )

    name, name_offset = parts[0]
    raw_type, type_offset = parts[1]

    if not name:
        raise ParseError(
            ParseErrorKind.EMPTY_SEGMENT, name, position, name_offset,
            "empty field name",
        )
    if not _NAME_RE.match(name):
        raise ParseError(
            ParseErrorKind.INVALID_NAME, name, position, name_offset,
            "names must match [A-Za-z_][A-Za-z0-9_]*",
        )
    if not to_go_identifier(name):
        raise ParseError(
            ParseErrorKind.INVALID_NAME, name, position, name_offset,
            "names must contain a letter or digit",
        )
    if (
        name.lower() in RESERVED_FIELD_NAMES
        or to_go_identifier(name) == "ID"
        or to_snake_case(name) == IDENTITY_FIELD
    ):
        raise ParseError(
            ParseErrorKind.RESERVED_NAME, name, position, name_offset,
            "reserved by the generator or the Go language",
        )

    if not raw_type:
        raise ParseError(
            ParseErrorKind.EMPTY_SEGMENT, raw_type, position, type_offset,
            "empty type",
        )
    semantic_type = _TYPE_TOKENS.get(raw_type)
    if semantic_type is None:
        raise ParseError(
            ParseErrorKind.UNKNOWN_TYPE, raw_type, position, type_offset,
            f"expected one of {sorted(_TYPE_TOKENS)}",
        )

    modifiers: FrozenSet[FieldModifier] = frozenset()
    if len(parts) == 3:
        raw_parts: List[str] = segment.split(":")
        mod_base: int = offset + len(raw_parts[0]) + len(raw_parts[1]) + 2
        modifiers = _parse_modifiers(raw_parts[2], mod_base, position)

    return FieldDescriptor(
        name=name,
        raw_type=raw_type,
        semantic_type=semantic_type,
        modifiers=modifiers,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_field_spec(spec: str) -> List[FieldDescriptor]:
    """
    Parse a field specification string.

    Args:
        spec: e.g. ``"name:string:required,age:int"``.

    Returns:
        Field descriptors in declaration order.

    Raises:
        ParseError: On the first offending token.
    """
    fields: List[FieldDescriptor] = []
    seen: Dict[str, int] = {}

    for position, (segment, offset) in enumerate(_split_with_offsets(spec, ",", 0)):
        if not segment:
            raise ParseError(
                ParseErrorKind.EMPTY_SEGMENT, segment, position, offset,
                "empty field",
            )
        descriptor: FieldDescriptor = _parse_field(segment, offset, position)

        # Two names clash when they end up as the same Go field or column.
        keys: Tuple[str, ...] = (
            f"name:{descriptor.name.lower()}",
            f"go:{descriptor.go_name}",
            f"column:{descriptor.column_name}",
        )
        for key in keys:
            if key in seen:
                raise ParseError(
                    ParseErrorKind.DUPLICATE_FIELD, descriptor.name, position, offset,
                    f"clashes with field {seen[key]}",
                )
        seen.update(dict.fromkeys(keys, position))
        fields.append(descriptor)

    logger.debug("Parsed %d field(s) from spec %r.", len(fields), spec)
    return fields


def format_field_spec(fields: Iterable[FieldDescriptor]) -> str:
    """
    Render descriptors back into the spec grammar.

    ``parse_field_spec(format_field_spec(parse_field_spec(s)))`` equals
    ``parse_field_spec(s)`` for every valid *s*.
    """
    parts: List[str] = []
    for f in fields:
        token: str = f"{f.name}:{f.semantic_type.value}"
        if f.modifiers:
            token += ":" + "|".join(m.value for m in f.ordered_modifiers)
        parts.append(token)
    return ",".join(parts)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "IDENTITY_FIELD",
    "RESERVED_FIELD_NAMES",
    "format_field_spec",
    "parse_field_spec",
]

logger.debug("goscaffold.parser loaded — %d public symbols.", len(__all__))
