# File: goscaffold/type_mapper.py
"""
goscaffold - Type Mapper
=========================
Single source of truth for how an abstract ``SemanticType`` renders in each
layer of the generated code.

    (semantic_type, layer, database) → ConcreteTypeBinding

Domain, use-case, repository and handler templates never decide on their
own how ``int`` or ``time`` looks; they all ask ``map_type``.  Combinations
the table has no entry for raise ``UnsupportedBindingError`` instead of
being approximated with a nearby type.

Binding fields per layer:

============  ================  ==============  ====================  ==================
layer         type_name         default_value   validation_rule       serialization_hint
============  ================  ==============  ====================  ==================
domain        Go type           Go zero value   Go "invalid" check    ``json``
usecase       DTO Go type       Go zero value   ``validate`` tag      ``json``
repository    column/BSON type  storage default (empty)               ``gorm`` / ``bson``
handler       protobuf type     JSON zero       (empty)               JSON Schema type
============  ================  ==============  ====================  ==================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from goscaffold.errors import UnsupportedBindingError
from goscaffold.models import Database, Layer, SemanticType

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.type_mapper")


# ---------------------------------------------------------------------------
# Binding value object
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConcreteTypeBinding:
    """How one semantic type is spelled in one layer."""

    type_name: str
    default_value: str
    validation_rule: str
    serialization_hint: str

    def invalid_condition(self, value_expr: str) -> str:
        """Fill the ``{value}`` placeholder of a domain validation rule."""
        return self.validation_rule.format(value=value_expr)


_B = ConcreteTypeBinding

# ---------------------------------------------------------------------------
# Mapping tables
# ---------------------------------------------------------------------------

_DOMAIN: Dict[SemanticType, ConcreteTypeBinding] = {
    SemanticType.STRING: _B("string", '""', '{value} == ""', "json"),
    SemanticType.INTEGER: _B("int", "0", "{value} < 0", "json"),
    SemanticType.FLOAT: _B("float64", "0", "{value} < 0", "json"),
    SemanticType.BOOLEAN: _B("bool", "false", "", "json"),
    SemanticType.TIMESTAMP: _B("time.Time", "time.Time{}", "{value}.IsZero()", "json"),
    SemanticType.REFERENCE: _B("uint", "0", "{value} == 0", "json"),
}

_USECASE: Dict[SemanticType, ConcreteTypeBinding] = {
    SemanticType.STRING: _B("string", '""', "min=1", "json"),
    SemanticType.INTEGER: _B("int", "0", "gte=0", "json"),
    SemanticType.FLOAT: _B("float64", "0", "gte=0", "json"),
    SemanticType.BOOLEAN: _B("bool", "false", "", "json"),
    SemanticType.TIMESTAMP: _B("time.Time", "time.Time{}", "", "json"),
    SemanticType.REFERENCE: _B("uint", "0", "gt=0", "json"),
}

_HANDLER: Dict[SemanticType, ConcreteTypeBinding] = {
    SemanticType.STRING: _B("string", '""', "", "string"),
    SemanticType.INTEGER: _B("int64", "0", "", "integer"),
    SemanticType.FLOAT: _B("double", "0.0", "", "number"),
    SemanticType.BOOLEAN: _B("bool", "false", "", "boolean"),
    SemanticType.TIMESTAMP: _B("google.protobuf.Timestamp", "null", "", "string"),
    SemanticType.REFERENCE: _B("uint64", "0", "", "integer"),
}

_REPOSITORY: Dict[Tuple[SemanticType, Database], ConcreteTypeBinding] = {
    # PostgreSQL
    (SemanticType.STRING, Database.POSTGRES): _B("varchar(255)", "''", "", "gorm"),
    (SemanticType.INTEGER, Database.POSTGRES): _B("integer", "0", "", "gorm"),
    (SemanticType.FLOAT, Database.POSTGRES): _B("decimal(10,2)", "0", "", "gorm"),
    (SemanticType.BOOLEAN, Database.POSTGRES): _B("boolean", "false", "", "gorm"),
    (SemanticType.TIMESTAMP, Database.POSTGRES): _B("timestamptz", "", "", "gorm"),
    (SemanticType.REFERENCE, Database.POSTGRES): _B("bigint", "", "", "gorm"),
    # MySQL
    (SemanticType.STRING, Database.MYSQL): _B("varchar(255)", "''", "", "gorm"),
    (SemanticType.INTEGER, Database.MYSQL): _B("int", "0", "", "gorm"),
    (SemanticType.FLOAT, Database.MYSQL): _B("decimal(10,2)", "0", "", "gorm"),
    (SemanticType.BOOLEAN, Database.MYSQL): _B("tinyint(1)", "0", "", "gorm"),
    (SemanticType.TIMESTAMP, Database.MYSQL): _B("datetime(3)", "", "", "gorm"),
    (SemanticType.REFERENCE, Database.MYSQL): _B("bigint unsigned", "", "", "gorm"),
    # SQLite
    (SemanticType.STRING, Database.SQLITE): _B("text", "''", "", "gorm"),
    (SemanticType.INTEGER, Database.SQLITE): _B("integer", "0", "", "gorm"),
    (SemanticType.FLOAT, Database.SQLITE): _B("real", "0", "", "gorm"),
    (SemanticType.BOOLEAN, Database.SQLITE): _B("numeric", "0", "", "gorm"),
    (SemanticType.TIMESTAMP, Database.SQLITE): _B("datetime", "", "", "gorm"),
    (SemanticType.REFERENCE, Database.SQLITE): _B("integer", "", "", "gorm"),
    # MongoDB has no foreign keys, so REFERENCE is deliberately absent.
    (SemanticType.STRING, Database.MONGODB): _B("string", "", "", "bson"),
    (SemanticType.INTEGER, Database.MONGODB): _B("int", "", "", "bson"),
    (SemanticType.FLOAT, Database.MONGODB): _B("double", "", "", "bson"),
    (SemanticType.BOOLEAN, Database.MONGODB): _B("bool", "", "", "bson"),
    (SemanticType.TIMESTAMP, Database.MONGODB): _B("date", "", "", "bson"),
}

_IDENTITY: Dict[Database, ConcreteTypeBinding] = {
    Database.POSTGRES: _B("uint", "0", "{value} == 0", "gorm"),
    Database.MYSQL: _B("uint", "0", "{value} == 0", "gorm"),
    Database.SQLITE: _B("uint", "0", "{value} == 0", "gorm"),
    Database.MONGODB: _B("string", '""', '{value} == ""', "bson"),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def map_type(
    semantic_type: SemanticType,
    layer: Layer,
    database: Database,
) -> ConcreteTypeBinding:
    """
    Look up the concrete binding for a semantic type.

    Raises:
        UnsupportedBindingError: When the combination has no table entry.
    """
    binding = None
    if layer is Layer.DOMAIN:
        binding = _DOMAIN.get(semantic_type)
    elif layer is Layer.USECASE:
        binding = _USECASE.get(semantic_type)
    elif layer is Layer.HANDLER:
        binding = _HANDLER.get(semantic_type)
    elif layer is Layer.REPOSITORY:
        binding = _REPOSITORY.get((semantic_type, database))

    # Domain and use-case types are stored by the repository, so an
    # unsupported storage combination is unsupported everywhere.
    if binding is not None and (semantic_type, database) not in _REPOSITORY:
        binding = None

    if binding is None:
        raise UnsupportedBindingError(semantic_type.value, layer.value, database.value)
    return binding


def identity_binding(database: Database) -> ConcreteTypeBinding:
    """Binding of the implicit ``ID`` field for a database."""
    return _IDENTITY[database]


def supported_types(database: Database) -> List[SemanticType]:
    """Semantic types that can be stored on *database*."""
    return [t for t in SemanticType if (t, database) in _REPOSITORY]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ConcreteTypeBinding",
    "identity_binding",
    "map_type",
    "supported_types",
]

logger.debug("goscaffold.type_mapper loaded — %d public symbols.", len(__all__))
