# File: goscaffold/__init__.py
"""
goscaffold — Clean Architecture Feature Scaffolder for Go
==========================================================

Turns an entity name plus a compact field spec (``name:string:required,
price:float``) into the domain, use-case, repository and handler code of a
Go service, then wires the new feature into the project's DI container and
``main.go`` without touching anything it does not own.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ ScaffoldGenerator│────▶│ TemplateRenderer │
    │   (cli.py)   │     │  (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └────────┬─────────┘     └──────────────────┘
                                  │
          ┌──────────────┬────────┼────────┬───────────────┐
          ▼              ▼        ▼        ▼               ▼
     ┌─────────┐   ┌─────────┐ ┌──────┐ ┌──────────┐ ┌────────────┐
     │ parser  │   │ builder │ │writer│ │integrator│ │ validators │
     │ (.py)   │   │ (.py)   │ │(.py) │ │  (.py)   │ │   (.py)    │
     └─────────┘   └─────────┘ └──────┘ └──────────┘ └────────────┘

Usage::

    # As a library
    from goscaffold import GenerationRequest, ScaffoldGenerator
    gen = ScaffoldGenerator(Path("./my-service"))
    report = gen.generate(GenerationRequest(entity_name="Product",
                                            field_spec="name:string,price:float"))

    # From the command line
    goscaffold feature Product --fields "name:string:required,price:float" -v

Public API:
    - ScaffoldGenerator     — Master orchestrator
    - GenerationReport      — Outcome of one run
    - parse_field_spec      — Field spec DSL parser
    - build_entity_model    — Model builder
    - TemplateRenderer      — Go code renderer
    - ConflictGuard         — Overwrite-policy file writer
    - AggregatorIntegrator  — Anchor-and-splice wiring
    - verify_integration    — Read-only wiring check
"""

from __future__ import annotations

__version__: str = "1.0.0"
__author__: str = "goscaffold contributors"
__license__: str = "MIT"

from goscaffold.errors import (
    AnchorNotFoundError,
    ConfigError,
    FileConflictError,
    GenerationError,
    InvalidNameError,
    ModelConflictError,
    ParseError,
    ParseErrorKind,
    RenderError,
    UnsupportedBindingError,
    WriteError,
)
from goscaffold.models import (
    Database,
    EntityModel,
    FeatureFlags,
    FieldDescriptor,
    FieldModifier,
    GenerationRequest,
    HandlerKind,
    Layer,
    OverwritePolicy,
    ProjectLayout,
    ScaffoldConfig,
    SemanticType,
)
from goscaffold.naming import NameSet, build_name_set
from goscaffold.parser import format_field_spec, parse_field_spec
from goscaffold.type_mapper import ConcreteTypeBinding, map_type
from goscaffold.builder import build_entity_model
from goscaffold.templates import GenerationArtifact, TemplateRenderer
from goscaffold.writer import ConflictGuard, WriteAction, WriteOutcome
from goscaffold.integrator import AggregatorAnchor, AggregatorIntegrator, WiringFragment
from goscaffold.validators import ValidationResult, verify_integration
from goscaffold.generator import GenerationReport, ScaffoldGenerator, load_config

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core orchestrator
    "ScaffoldGenerator",
    "GenerationReport",
    "load_config",
    # Models
    "Database",
    "EntityModel",
    "FeatureFlags",
    "FieldDescriptor",
    "FieldModifier",
    "GenerationRequest",
    "HandlerKind",
    "Layer",
    "OverwritePolicy",
    "ProjectLayout",
    "ScaffoldConfig",
    "SemanticType",
    # Naming & parsing
    "NameSet",
    "build_name_set",
    "parse_field_spec",
    "format_field_spec",
    "build_entity_model",
    # Types & templates
    "ConcreteTypeBinding",
    "map_type",
    "GenerationArtifact",
    "TemplateRenderer",
    # Writing & integration
    "ConflictGuard",
    "WriteAction",
    "WriteOutcome",
    "AggregatorAnchor",
    "AggregatorIntegrator",
    "WiringFragment",
    # Validation
    "ValidationResult",
    "verify_integration",
    # Errors
    "AnchorNotFoundError",
    "ConfigError",
    "FileConflictError",
    "GenerationError",
    "InvalidNameError",
    "ModelConflictError",
    "ParseError",
    "ParseErrorKind",
    "RenderError",
    "UnsupportedBindingError",
    "WriteError",
]
