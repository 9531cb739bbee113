# File: goscaffold/templates.py
"""
goscaffold - Template Renderer
===============================
Turns an ``EntityModel`` into the Go source text of every artifact of a
layer.

The renderer is a thin wrapper around a Jinja2 ``Environment``:
    - built-in templates come from ``go_templates.BUILTIN_TEMPLATES``
      through a ``DictLoader``;
    - when the project configures a template directory, a
      ``FileSystemLoader`` on it is consulted first (``ChoiceLoader``), so a
      user file named like a built-in overrides it;
    - ``StrictUndefined`` turns a missing variable into a ``RenderError``
      instead of an empty string in generated code.

All type spellings flow from ``type_mapper.map_type``; templates never
pick a Go / SQL / protobuf type on their own.

Rendering is pure: the same ``EntityModel`` and configuration always
produce byte-identical output.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from jinja2 import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
)

from goscaffold.errors import RenderError
from goscaffold.go_templates import BUILTIN_TEMPLATES
from goscaffold.models import (
    Database,
    EntityModel,
    FieldDescriptor,
    HandlerKind,
    Layer,
    ProjectLayout,
    SemanticType,
)
from goscaffold.naming import (
    extract_words,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
)
from goscaffold.type_mapper import ConcreteTypeBinding, identity_binding, map_type

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

GENERATED_HEADER: str = "// Scaffolded by goscaffold."

_DB_PREFIX: Dict[Database, str] = {
    Database.POSTGRES: "Postgres",
    Database.MYSQL: "MySQL",
    Database.SQLITE: "SQLite",
    Database.MONGODB: "Mongo",
}

_DB_HANDLE: Dict[bool, Dict[str, str]] = {
    True: {"type_name": "*gorm.DB", "import_path": "gorm.io/gorm"},
    False: {"type_name": "*mongo.Database", "import_path": "go.mongodb.org/mongo-driver/mongo"},
}

# (field column name, accepted types, method, expression, needs "strings")
_BUSINESS_RULES: Tuple[Tuple[str, Tuple[SemanticType, ...], str, str, bool], ...] = (
    ("age", (SemanticType.INTEGER,), "IsAdult", "{value} >= 18", False),
    ("price", (SemanticType.FLOAT, SemanticType.INTEGER), "IsExpensive", "{value} > 1000", False),
    ("email", (SemanticType.STRING,), "HasValidEmail", 'strings.Contains({value}, "@")', True),
    ("status", (SemanticType.STRING,), "IsActive", '{value} == "active"', False),
)

_ALWAYS_CHECKED: Tuple[SemanticType, ...] = (SemanticType.INTEGER, SemanticType.FLOAT)


# ---------------------------------------------------------------------------
# Render results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GenerationArtifact:
    """One rendered file, not yet written."""

    relative_path: str
    content: str
    layer: Optional[Layer]
    template_name: str
    is_aggregator: bool = False

    def __repr__(self) -> str:
        return f"<GenerationArtifact {self.relative_path} ({self.template_name})>"


@dataclass(frozen=True, slots=True)
class FieldView:
    """Per-field values precomputed for templates."""

    name: str
    go_name: str
    pb_name: str
    var_name: str
    json_name: str
    column_name: str
    flag_name: str
    human_name: str
    semantic: str
    required: bool
    unique: bool
    indexed: bool
    domain: ConcreteTypeBinding
    usecase: ConcreteTypeBinding
    repository: ConcreteTypeBinding
    handler: ConcreteTypeBinding
    domain_tag: str
    validate_tag: str
    update_validate_tag: str
    validates: bool
    invalid_condition: str


# ---------------------------------------------------------------------------
# Field view construction
# ---------------------------------------------------------------------------


def _gorm_tag(f: FieldDescriptor, repo: ConcreteTypeBinding) -> str:
    parts: List[str] = [f"column:{f.column_name}", f"type:{repo.type_name}"]
    if f.is_required:
        parts.append("not null")
    if f.is_unique:
        parts.append("uniqueIndex")
    elif f.is_indexed or f.semantic_type is SemanticType.REFERENCE:
        parts.append("index")
    if repo.default_value:
        parts.append(f"default:{repo.default_value}")
    return ";".join(parts)


def _domain_tag(f: FieldDescriptor, repo: ConcreteTypeBinding, database: Database) -> str:
    if database.is_sql:
        return f'json:"{f.json_name}" gorm:"{_gorm_tag(f, repo)}"'
    return f'json:"{f.json_name}" bson:"{f.column_name}"'


def _validate_tags(f: FieldDescriptor, usecase: ConcreteTypeBinding) -> Tuple[str, str]:
    rule: str = usecase.validation_rule
    create_parts: List[str] = []
    if f.is_required and f.semantic_type is not SemanticType.BOOLEAN:
        create_parts.append("required")
        if rule:
            create_parts.append(rule)
    elif rule:
        create_parts.extend(("omitempty", rule))

    create_tag: str = f' validate:"{",".join(create_parts)}"' if create_parts else ""
    update_tag: str = f' validate:"omitempty,{rule}"' if rule else ""
    return create_tag, update_tag


# Receivers and locals the repository and use case templates declare.
_BOUND_IDENTIFIERS: FrozenSet[str] = frozenset({"r", "s", "result"})


def _var_name(f: FieldDescriptor) -> str:
    name: str = to_camel_case(f.name)
    return f"{name}Value" if name in _BOUND_IDENTIFIERS else name


def build_field_view(model: EntityModel, f: FieldDescriptor) -> FieldView:
    """Resolve every binding and tag one field needs in any template."""
    db: Database = model.target_database
    domain: ConcreteTypeBinding = map_type(f.semantic_type, Layer.DOMAIN, db)
    usecase: ConcreteTypeBinding = map_type(f.semantic_type, Layer.USECASE, db)
    repository: ConcreteTypeBinding = map_type(f.semantic_type, Layer.REPOSITORY, db)
    handler: ConcreteTypeBinding = map_type(f.semantic_type, Layer.HANDLER, db)

    validates: bool = bool(
        model.features.validation
        and domain.validation_rule
        and (f.is_required or f.semantic_type in _ALWAYS_CHECKED)
    )
    create_tag, update_tag = _validate_tags(f, usecase)
    receiver: str = model.names.receiver

    return FieldView(
        name=f.name,
        go_name=f.go_name,
        pb_name=to_pascal_case(f.column_name),
        var_name=_var_name(f),
        json_name=f.json_name,
        column_name=f.column_name,
        flag_name=to_kebab_case(f.name),
        human_name=" ".join(w.lower() for w in extract_words(f.name)),
        semantic=f.semantic_type.value,
        required=f.is_required,
        unique=f.is_unique,
        indexed=f.is_indexed,
        domain=domain,
        usecase=usecase,
        repository=repository,
        handler=handler,
        domain_tag=_domain_tag(f, repository, db),
        validate_tag=create_tag,
        update_validate_tag=update_tag,
        validates=validates,
        invalid_condition=(
            domain.invalid_condition(f"{receiver}.{f.go_name}") if validates else ""
        ),
    )


def business_rules(model: EntityModel) -> List[Dict[str, Any]]:
    """Convenience predicates derived from well-known field names."""
    if not model.features.business_rules:
        return []
    receiver: str = model.names.receiver
    by_column: Dict[str, FieldDescriptor] = {f.column_name: f for f in model.fields}
    rules: List[Dict[str, Any]] = []
    for column, types, method, expression, needs_strings in _BUSINESS_RULES:
        f: Optional[FieldDescriptor] = by_column.get(column)
        if f is None or f.semantic_type not in types:
            continue
        rules.append({
            "method": method,
            "expression": expression.format(value=f"{receiver}.{f.go_name}"),
            "needs_strings": needs_strings,
        })
    return rules


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """
    Renders artifacts, aggregator skeletons and wiring fragments.

    Usage::

        renderer = TemplateRenderer("github.com/acme/shop", ProjectLayout())
        artifacts = renderer.render_layer(model, Layer.DOMAIN)
    """

    def __init__(
        self,
        module_path: str,
        layout: Optional[ProjectLayout] = None,
        template_dir: Optional[Path] = None,
    ) -> None:
        self.module_path: str = module_path.rstrip("/")
        self.layout: ProjectLayout = layout or ProjectLayout()
        self.template_dir: Optional[Path] = template_dir
        self._env: Environment = self._build_environment()

    def _build_environment(self) -> Environment:
        builtin: DictLoader = DictLoader(BUILTIN_TEMPLATES)
        if self.template_dir is not None:
            loader = ChoiceLoader([FileSystemLoader(str(self.template_dir)), builtin])
            logger.info("Template overrides enabled from %s.", self.template_dir)
        else:
            loader = builtin

        env: Environment = Environment(
            loader=loader,
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["pascal_case"] = to_pascal_case
        env.filters["camel_case"] = to_camel_case
        env.filters["snake_case"] = to_snake_case
        env.filters["kebab_case"] = to_kebab_case
        return env

    # -----------------------------------------------------------------
    # Paths & packages
    # -----------------------------------------------------------------

    def _directories(self) -> Dict[str, str]:
        layout: ProjectLayout = self.layout
        dirs: Dict[str, str] = {
            "domain": layout.domain_dir,
            "usecase": layout.usecase_dir,
            "repository": layout.repository_dir,
            "di": layout.di_dir,
        }
        for kind in HandlerKind:
            dirs[kind.value] = layout.handler_path(kind)
        return dirs

    @property
    def import_paths(self) -> Dict[str, str]:
        """Go import path of every generated package."""
        return {
            key: f"{self.module_path}/{directory}"
            for key, directory in self._directories().items()
        }

    @property
    def packages(self) -> Dict[str, str]:
        """Go package name of every generated package."""
        return {
            key: self.layout.package_name(directory)
            for key, directory in self._directories().items()
        }

    def artifact_plan(self, model: EntityModel, layer: Layer) -> List[Tuple[str, str]]:
        """``(template_name, relative_path)`` for every artifact of *layer*."""
        layout: ProjectLayout = self.layout
        stem: str = model.names.file_stem
        db: Database = model.target_database

        if layer is Layer.DOMAIN:
            return [("domain/entity.go.j2", posixpath.join(layout.domain_dir, f"{stem}.go"))]

        if layer is Layer.USECASE:
            return [
                ("usecase/dto.go.j2", posixpath.join(layout.usecase_dir, f"{stem}_dto.go")),
                ("usecase/interface.go.j2",
                 posixpath.join(layout.usecase_dir, f"{stem}_usecase.go")),
                ("usecase/service.go.j2",
                 posixpath.join(layout.usecase_dir, f"{stem}_service.go")),
            ]

        if layer is Layer.REPOSITORY:
            impl: str = "repository/gorm.go.j2" if db.is_sql else "repository/mongodb.go.j2"
            return [
                ("repository/interface.go.j2",
                 posixpath.join(layout.repository_dir, f"{stem}_repository.go")),
                (impl, posixpath.join(layout.repository_dir, f"{db.value}_{stem}_repository.go")),
            ]

        plan: List[Tuple[str, str]] = []
        for kind in model.ordered_handlers:
            base: str = layout.handler_path(kind)
            if kind is HandlerKind.HTTP:
                plan.append(("handler/http.go.j2", posixpath.join(base, f"{stem}_handler.go")))
            elif kind is HandlerKind.GRPC:
                plan.append(("handler/grpc.proto.j2", posixpath.join(base, f"{stem}.proto")))
                plan.append(("handler/grpc.go.j2", posixpath.join(base, f"{stem}_server.go")))
            elif kind is HandlerKind.CLI:
                plan.append(("handler/cli.go.j2", posixpath.join(base, f"{stem}_commands.go")))
            elif kind is HandlerKind.WORKER:
                plan.append(("handler/worker.go.j2", posixpath.join(base, f"{stem}_worker.go")))
        return plan

    # -----------------------------------------------------------------
    # Context
    # -----------------------------------------------------------------

    def context(self, model: EntityModel) -> Dict[str, Any]:
        """Template variables derived from *model* and the project layout."""
        db: Database = model.target_database
        identity: ConcreteTypeBinding = identity_binding(db)
        views: List[FieldView] = [build_field_view(model, f) for f in model.fields]
        searchable_names = {f.name for f in model.searchable_fields}

        return {
            "header": GENERATED_HEADER,
            "entity": model,
            "names": model.names,
            "fields": views,
            "searchable": [v for v in views if v.name in searchable_names],
            "business_rules": business_rules(model),
            "id": identity,
            "id_numeric": db.is_sql,
            "id_proto": "uint64" if db.is_sql else "string",
            "id_tag": (
                'json:"id" gorm:"primaryKey;autoIncrement"'
                if db.is_sql else 'json:"id" bson:"_id,omitempty"'
            ),
            "is_sql": db.is_sql,
            "database": db.value,
            "db_prefix": _DB_PREFIX[db],
            "db_handle": _DB_HANDLE[db.is_sql],
            "packages": self.packages,
            "import_paths": self.import_paths,
            "api_prefix": self.layout.api_prefix,
            "module_path": self.module_path,
        }

    # -----------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------

    def render_template(
        self,
        template_name: str,
        model: EntityModel,
        layer_label: str = "",
    ) -> str:
        """
        Render one template against *model*.

        Raises:
            RenderError: Any failure while loading or rendering the template.
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**self.context(model))
        except TemplateError as exc:
            raise RenderError(template_name, layer_label, str(exc)) from exc
        except Exception as exc:
            # User templates can fail in arbitrary ways (filters, arithmetic).
            raise RenderError(
                template_name, layer_label, f"{type(exc).__name__}: {exc}",
            ) from exc

    def render_artifact(
        self,
        model: EntityModel,
        layer: Layer,
        template_name: str,
        relative_path: str,
    ) -> GenerationArtifact:
        content: str = self.render_template(template_name, model, layer.value)
        logger.debug("Rendered %s → %s.", template_name, relative_path)
        return GenerationArtifact(
            relative_path=relative_path,
            content=content,
            layer=layer,
            template_name=template_name,
        )

    def render_layer(self, model: EntityModel, layer: Layer) -> List[GenerationArtifact]:
        """
        Render every artifact of *layer*.

        Raises:
            RenderError: The first template that fails.  The generator renders
                artifact by artifact instead, so one failure does not drop
                its siblings.
        """
        artifacts: List[GenerationArtifact] = [
            self.render_artifact(model, layer, template_name, path)
            for template_name, path in self.artifact_plan(model, layer)
        ]
        logger.info(
            "Rendered %d %s artifact(s) for %s.",
            len(artifacts),
            layer.value,
            model.names.type_name,
        )
        return artifacts

    def render_skeleton(self, aggregator: str, model: EntityModel) -> GenerationArtifact:
        """Skeleton of a missing aggregator (``container`` or ``main``)."""
        if aggregator == "container":
            template_name, path = "aggregator/container.go.j2", self.layout.container_path
        elif aggregator == "main":
            template_name, path = "aggregator/main.go.j2", self.layout.entry_point
        else:
            raise RenderError(aggregator, "aggregator", "unknown aggregator")
        return GenerationArtifact(
            relative_path=path,
            content=self.render_template(template_name, model, "aggregator"),
            layer=None,
            template_name=template_name,
            is_aggregator=True,
        )

    def render_fragment(self, template_name: str, model: EntityModel) -> str:
        """Wiring fragment text, unindented and without a trailing newline."""
        return self.render_template(template_name, model, "wiring").rstrip("\n")

    def list_templates(self) -> List[str]:
        return sorted(self._env.list_templates())


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldView",
    "GENERATED_HEADER",
    "GenerationArtifact",
    "TemplateRenderer",
    "build_field_view",
    "business_rules",
]

logger.debug("goscaffold.templates loaded — %d public symbols.", len(__all__))
