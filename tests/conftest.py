"""
tests/conftest.py
Shared fixtures for the goscaffold test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary Go projects created under pytest's tmp_path.
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict, List

import pytest
import yaml

from goscaffold.builder import build_entity_model
from goscaffold.generator import ScaffoldGenerator
from goscaffold.models import (
    Database,
    EntityModel,
    FeatureFlags,
    FieldDescriptor,
    GenerationRequest,
    HandlerKind,
    ProjectLayout,
    ScaffoldConfig,
)
from goscaffold.parser import parse_field_spec
from goscaffold.templates import TemplateRenderer
from goscaffold.writer import ConflictGuard


MODULE_PATH: str = "github.com/acme/shop"
PRODUCT_SPEC: str = "name:string:required,price:float,sku:string:unique"


# ---------------------------------------------------------------------------
# Target project fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def go_project(tmp_path: pathlib.Path) -> pathlib.Path:
    """An empty Go module: just a go.mod."""
    root = tmp_path / "shop"
    root.mkdir()
    (root / "go.mod").write_text(f"module {MODULE_PATH}\n\ngo 1.21\n", encoding="utf-8")
    return root


@pytest.fixture()
def config_dict() -> Dict[str, Any]:
    return {
        "database": "postgres",
        "handlers": ["http"],
        "features": {"timestamps": True},
        "overwrite_policy": "abort",
    }


@pytest.fixture()
def config_yaml_path(go_project: pathlib.Path, config_dict: Dict[str, Any]) -> pathlib.Path:
    """Write the config dict to .goscaffold.yaml in the project root."""
    path = go_project / ".goscaffold.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(config_dict, fh, default_flow_style=False)
    return path


@pytest.fixture()
def generator(go_project: pathlib.Path) -> ScaffoldGenerator:
    return ScaffoldGenerator(go_project, ScaffoldConfig())


@pytest.fixture()
def guard(go_project: pathlib.Path) -> ConflictGuard:
    return ConflictGuard(go_project)


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def product_fields() -> List[FieldDescriptor]:
    return parse_field_spec(PRODUCT_SPEC)


@pytest.fixture()
def product_model(product_fields: List[FieldDescriptor]) -> EntityModel:
    return build_entity_model("Product", product_fields)


@pytest.fixture()
def full_product_model() -> EntityModel:
    """Every feature and every handler kind switched on."""
    return build_entity_model(
        "Product",
        parse_field_spec(
            "name:string:required,price:float,email:string:unique,"
            "age:int,status:string,released:time,category_id:reference:indexed,"
            "active:bool"
        ),
        FeatureFlags(timestamps=True, soft_delete=True, business_rules=True),
        Database.POSTGRES,
        tuple(HandlerKind),
    )


@pytest.fixture()
def mongo_model() -> EntityModel:
    return build_entity_model(
        "Customer",
        parse_field_spec("name:string:required,email:string:unique,age:int"),
        FeatureFlags(timestamps=True, soft_delete=True),
        Database.MONGODB,
        (HandlerKind.HTTP,),
    )


@pytest.fixture()
def renderer() -> TemplateRenderer:
    return TemplateRenderer(MODULE_PATH, ProjectLayout())


# ---------------------------------------------------------------------------
# Request fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def product_request() -> GenerationRequest:
    return GenerationRequest(entity_name="Product", field_spec=PRODUCT_SPEC)
