# File: goscaffold/builder.py
"""
goscaffold - Entity Model Builder
==================================
Combines parsed fields with the requested feature flags, database and
handler set into a frozen ``EntityModel``.

Cross-field checks performed here (all fatal to the request):
    - the entity name normalises to a valid exported identifier
      (``InvalidNameError``);
    - ``timestamps`` reserves ``created_at`` / ``updated_at`` and
      ``soft_delete`` reserves ``deleted_at`` (``ModelConflictError``);
      names are compared in snake case so ``createdAt`` collides too;
    - every field type is storable on the target database
      (``UnsupportedBindingError``).

Conflicting fields are never renamed silently.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from goscaffold.errors import ModelConflictError
from goscaffold.models import (
    ALL_LAYERS,
    Database,
    EntityModel,
    FeatureFlags,
    FieldDescriptor,
    HandlerKind,
)
from goscaffold.naming import normalize_entity_name
from goscaffold.type_mapper import map_type

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.builder")

# ---------------------------------------------------------------------------
# Feature-reserved field names (snake case)
# ---------------------------------------------------------------------------

TIMESTAMP_FIELDS: Tuple[str, ...] = ("created_at", "updated_at")
SOFT_DELETE_FIELDS: Tuple[str, ...] = ("deleted_at",)


def _reserved_by_features(features: FeatureFlags) -> Dict[str, str]:
    reserved: Dict[str, str] = {}
    if features.timestamps:
        for name in TIMESTAMP_FIELDS:
            reserved[name] = "timestamps"
    if features.soft_delete:
        for name in SOFT_DELETE_FIELDS:
            reserved[name] = "soft-delete"
    return reserved


def _check_feature_collisions(
    fields: Sequence[FieldDescriptor],
    features: FeatureFlags,
) -> None:
    reserved: Dict[str, str] = _reserved_by_features(features)
    for f in fields:
        feature: Optional[str] = reserved.get(f.column_name)
        if feature is not None:
            raise ModelConflictError(f.name, feature)


def _check_bindings(fields: Sequence[FieldDescriptor], database: Database) -> None:
    for f in fields:
        for layer in ALL_LAYERS:
            map_type(f.semantic_type, layer, database)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_entity_model(
    entity_name: str,
    fields: Iterable[FieldDescriptor],
    features: Optional[FeatureFlags] = None,
    database: Database = Database.POSTGRES,
    handlers: Iterable[HandlerKind] = (HandlerKind.HTTP,),
) -> EntityModel:
    """
    Assemble and validate an ``EntityModel``.

    Raises:
        InvalidNameError: Entity name is not a valid identifier.
        ModelConflictError: A field collides with a feature-reserved name.
        UnsupportedBindingError: A field type cannot be stored on *database*.
    """
    features = features or FeatureFlags()
    field_list: List[FieldDescriptor] = list(fields)

    canonical: str = normalize_entity_name(entity_name)
    _check_feature_collisions(field_list, features)
    _check_bindings(field_list, database)

    model: EntityModel = EntityModel(
        canonical_name=canonical,
        fields=tuple(field_list),
        features=features.model_copy(),
        target_database=database,
        target_handlers=frozenset(handlers),
    )
    logger.info(
        "Built entity model %s: %d field(s), db=%s, handlers=%s.",
        canonical,
        len(field_list),
        database.value,
        ",".join(h.value for h in model.ordered_handlers) or "-",
    )
    return model


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SOFT_DELETE_FIELDS",
    "TIMESTAMP_FIELDS",
    "build_entity_model",
]

logger.debug("goscaffold.builder loaded — %d public symbols.", len(__all__))
