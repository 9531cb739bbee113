# File: goscaffold/models.py
"""
goscaffold - Core Data Models
==============================
Pydantic V2 models that flow through the whole pipeline:

    GenerationRequest → FieldDescriptor[] → EntityModel → artifacts → report

``FieldDescriptor`` and ``EntityModel`` are frozen: once parsed or built
they are never mutated, so every layer rendered in a run sees exactly the
same model.  ``ScaffoldConfig`` / ``ProjectLayout`` carry the project
conventions (directory names, module path, defaults) that the core reads
instead of hard-coding them.
"""

from __future__ import annotations

import logging
import posixpath
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from goscaffold.naming import NameSet, build_name_set, to_go_identifier, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the entire project
# ---------------------------------------------------------------------------


class SemanticType(str, Enum):
    """Closed set of abstract field types understood by the pipeline."""

    STRING = "string"
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    TIMESTAMP = "time"
    REFERENCE = "reference"


class FieldModifier(str, Enum):
    """Per-field modifiers accepted after the type token."""

    REQUIRED = "required"
    UNIQUE = "unique"
    INDEXED = "indexed"


# Canonical order used when rendering modifiers back into a spec string.
MODIFIER_ORDER: Tuple[FieldModifier, ...] = (
    FieldModifier.REQUIRED,
    FieldModifier.UNIQUE,
    FieldModifier.INDEXED,
)


class Database(str, Enum):
    """Target storage backends."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MONGODB = "mongodb"

    @property
    def is_sql(self) -> bool:
        return self is not Database.MONGODB


class HandlerKind(str, Enum):
    """Delivery mechanisms a feature can be exposed through."""

    HTTP = "http"
    GRPC = "grpc"
    CLI = "cli"
    WORKER = "worker"


class Layer(str, Enum):
    """Architectural tiers of generated code, in generation order."""

    DOMAIN = "domain"
    USECASE = "usecase"
    REPOSITORY = "repository"
    HANDLER = "handler"


ALL_LAYERS: Tuple[Layer, ...] = (
    Layer.DOMAIN,
    Layer.USECASE,
    Layer.REPOSITORY,
    Layer.HANDLER,
)


class OverwritePolicy(str, Enum):
    """What the conflict guard does when a target file already exists."""

    ABORT = "abort"
    SKIP = "skip"
    BACKUP_THEN_OVERWRITE = "backup_then_overwrite"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="forbid",
)

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Field & entity models
# ---------------------------------------------------------------------------


class FieldDescriptor(BaseModel):
    """One parsed ``name:type[:modifiers]`` entry of a field spec."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Identifier as written.")
    raw_type: str = Field(..., description="Type token as written in the spec.")
    semantic_type: SemanticType
    modifiers: FrozenSet[FieldModifier] = Field(default_factory=frozenset)

    @property
    def go_name(self) -> str:
        return to_go_identifier(self.name)

    @property
    def column_name(self) -> str:
        return to_snake_case(self.name)

    @property
    def json_name(self) -> str:
        return to_snake_case(self.name)

    @property
    def is_required(self) -> bool:
        return FieldModifier.REQUIRED in self.modifiers

    @property
    def is_unique(self) -> bool:
        return FieldModifier.UNIQUE in self.modifiers

    @property
    def is_indexed(self) -> bool:
        return FieldModifier.INDEXED in self.modifiers

    @property
    def ordered_modifiers(self) -> List[FieldModifier]:
        return [m for m in MODIFIER_ORDER if m in self.modifiers]

    def __repr__(self) -> str:
        mods: str = "|".join(m.value for m in self.ordered_modifiers)
        suffix: str = f":{mods}" if mods else ""
        return f"<FieldDescriptor {self.name}:{self.semantic_type.value}{suffix}>"


class FeatureFlags(BaseModel):
    """Optional features that shape the generated entity."""

    model_config = _FROZEN_CONFIG

    timestamps: bool = False
    soft_delete: bool = False
    validation: bool = True
    business_rules: bool = False


# Field names that suggest a lookup method is worth generating.
SEARCHABLE_FIELD_NAMES: FrozenSet[str] = frozenset({
    "email", "username", "code", "sku", "slug", "name", "title",
})


class EntityModel(BaseModel):
    """
    Everything the renderer needs to know about one entity.

    Built once per request by ``builder.build_entity_model`` and read-only
    for the rest of the pipeline run.
    """

    model_config = _FROZEN_CONFIG

    canonical_name: str = Field(..., min_length=1)
    fields: Tuple[FieldDescriptor, ...] = Field(default_factory=tuple)
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    target_database: Database = Database.POSTGRES
    target_handlers: FrozenSet[HandlerKind] = Field(
        default_factory=lambda: frozenset({HandlerKind.HTTP})
    )

    @property
    def names(self) -> NameSet:
        """Memoised name variants (same object on every access)."""
        return build_name_set(self.canonical_name)

    @property
    def searchable_fields(self) -> List[FieldDescriptor]:
        """String fields that get a ``FindBy<Field>`` lookup."""
        return [
            f for f in self.fields
            if f.semantic_type is SemanticType.STRING
            and (f.is_unique or f.column_name in SEARCHABLE_FIELD_NAMES)
        ]

    @property
    def has_time_fields(self) -> bool:
        return any(f.semantic_type is SemanticType.TIMESTAMP for f in self.fields)

    @property
    def ordered_handlers(self) -> List[HandlerKind]:
        return [h for h in HandlerKind if h in self.target_handlers]

    def __repr__(self) -> str:
        return (
            f"<EntityModel {self.canonical_name}: {len(self.fields)} fields, "
            f"db={self.target_database.value}>"
        )


# ---------------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------------


class ProjectLayout(BaseModel):
    """Directory conventions of the target project (all POSIX-relative)."""

    model_config = _SHARED_CONFIG

    domain_dir: str = "internal/domain"
    usecase_dir: str = "internal/usecase"
    repository_dir: str = "internal/repository"
    handler_dir: str = "internal/handler"
    di_dir: str = "internal/di"
    entry_point: str = "cmd/server/main.go"
    api_prefix: str = "/api/v1"

    @field_validator(
        "domain_dir", "usecase_dir", "repository_dir", "handler_dir",
        "di_dir", "entry_point",
    )
    @classmethod
    def _relative_posix(cls, v: str) -> str:
        cleaned: str = v.strip().replace("\\", "/").strip("/")
        if not cleaned:
            raise ValueError("layout paths must not be empty")
        if ".." in cleaned.split("/"):
            raise ValueError(f"layout path {v!r} escapes the project root")
        return cleaned

    @field_validator("api_prefix")
    @classmethod
    def _prefix_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @property
    def container_path(self) -> str:
        return posixpath.join(self.di_dir, "container.go")

    def handler_path(self, kind: HandlerKind) -> str:
        return posixpath.join(self.handler_dir, kind.value)

    def package_name(self, directory: str) -> str:
        """Go package name for a layout directory (its last segment)."""
        return directory.rsplit("/", 1)[-1]

    def __repr__(self) -> str:
        return f"<ProjectLayout domain={self.domain_dir} di={self.di_dir}>"


class ScaffoldConfig(BaseModel):
    """Project-level settings, usually read from ``.goscaffold.yaml``."""

    model_config = _SHARED_CONFIG

    module_path: Optional[str] = Field(
        default=None,
        description="Go module path; defaults to the module line of go.mod.",
    )
    database: Database = Database.POSTGRES
    handlers: List[HandlerKind] = Field(default_factory=lambda: [HandlerKind.HTTP])
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    overwrite_policy: OverwritePolicy = OverwritePolicy.ABORT
    template_dir: Optional[str] = None
    backup_dir: str = ".goscaffold-backup"
    layout: ProjectLayout = Field(default_factory=ProjectLayout)

    @field_validator("handlers")
    @classmethod
    def _dedupe_handlers(cls, v: List[HandlerKind]) -> List[HandlerKind]:
        seen: List[HandlerKind] = []
        for h in v:
            if h not in seen:
                seen.append(h)
        return seen

    def __repr__(self) -> str:
        return f"<ScaffoldConfig db={self.database.value} module={self.module_path}>"


# ---------------------------------------------------------------------------
# Pipeline input
# ---------------------------------------------------------------------------


class GenerationRequest(BaseModel):
    """
    Everything the CLI hands to the orchestrator for one entity.

    The core never constructs one of these itself.
    """

    model_config = _SHARED_CONFIG

    entity_name: str = Field(..., min_length=1)
    field_spec: str = Field(..., description="e.g. 'name:string,age:int'.")
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    target_database: Database = Database.POSTGRES
    target_handlers: FrozenSet[HandlerKind] = Field(
        default_factory=lambda: frozenset({HandlerKind.HTTP})
    )
    overwrite_policy: OverwritePolicy = OverwritePolicy.ABORT
    layers: Tuple[Layer, ...] = ALL_LAYERS
    integrate: bool = True
    dry_run: bool = False

    @field_validator("layers")
    @classmethod
    def _ordered_layers(cls, v: Tuple[Layer, ...]) -> Tuple[Layer, ...]:
        return tuple(layer for layer in ALL_LAYERS if layer in v)

    @model_validator(mode="after")
    def _handlers_for_handler_layer(self) -> "GenerationRequest":
        if Layer.HANDLER in self.layers and not self.target_handlers:
            raise ValueError("the handler layer needs at least one handler kind")
        return self

    @classmethod
    def from_config(
        cls,
        config: ScaffoldConfig,
        entity_name: str,
        field_spec: str,
        **overrides: Any,
    ) -> "GenerationRequest":
        """Build a request whose defaults come from the project config."""
        data: Dict[str, Any] = {
            "entity_name": entity_name,
            "field_spec": field_spec,
            "features": config.features.model_copy(),
            "target_database": config.database,
            "target_handlers": frozenset(config.handlers),
            "overwrite_policy": config.overwrite_policy,
        }
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(data)

    def __repr__(self) -> str:
        return f"<GenerationRequest {self.entity_name} [{self.field_spec}]>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ALL_LAYERS",
    "Database",
    "EntityModel",
    "FeatureFlags",
    "FieldDescriptor",
    "FieldModifier",
    "GenerationRequest",
    "HandlerKind",
    "Layer",
    "MODIFIER_ORDER",
    "OverwritePolicy",
    "ProjectLayout",
    "SEARCHABLE_FIELD_NAMES",
    "ScaffoldConfig",
    "SemanticType",
]

logger.debug("goscaffold.models loaded — %d public symbols.", len(__all__))
