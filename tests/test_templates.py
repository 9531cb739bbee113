"""
tests/test_templates.py
Unit tests for goscaffold.templates.TemplateRenderer.

Tests cover:
- Artifact plans (paths per layer, database and handler kind)
- Rendered Go source for every layer (spot checks, not golden files)
- Determinism of rendering
- Template overrides from a user directory and RenderError reporting
"""

from __future__ import annotations

import pathlib
from typing import Dict

import pytest

from goscaffold.builder import build_entity_model
from goscaffold.errors import RenderError
from goscaffold.models import ALL_LAYERS, Database, EntityModel, FeatureFlags, Layer
from goscaffold.parser import parse_field_spec
from goscaffold.templates import (
    GENERATED_HEADER,
    TemplateRenderer,
    build_field_view,
    business_rules,
)
from goscaffold.writer import USER_OWNED_MARKER

MODULE_PATH: str = "github.com/acme/shop"


def _render(renderer: TemplateRenderer, model: EntityModel, layer: Layer) -> Dict[str, str]:
    return {a.relative_path: a.content for a in renderer.render_layer(model, layer)}


# ===========================================================================
# Artifact plans
# ===========================================================================


class TestArtifactPlan:
    def test_paths_for_sql_entity(
        self, renderer: TemplateRenderer, product_model: EntityModel
    ) -> None:
        paths = [
            path
            for layer in ALL_LAYERS
            for _template, path in renderer.artifact_plan(product_model, layer)
        ]
        assert paths == [
            "internal/domain/product.go",
            "internal/usecase/product_dto.go",
            "internal/usecase/product_usecase.go",
            "internal/usecase/product_service.go",
            "internal/repository/product_repository.go",
            "internal/repository/postgres_product_repository.go",
            "internal/handler/http/product_handler.go",
        ]

    def test_mongodb_repository_template(
        self, renderer: TemplateRenderer, mongo_model: EntityModel
    ) -> None:
        plan = renderer.artifact_plan(mongo_model, Layer.REPOSITORY)
        assert plan[1] == (
            "repository/mongodb.go.j2",
            "internal/repository/mongodb_customer_repository.go",
        )

    def test_every_handler_kind(
        self, renderer: TemplateRenderer, full_product_model: EntityModel
    ) -> None:
        paths = [p for _t, p in renderer.artifact_plan(full_product_model, Layer.HANDLER)]
        assert paths == [
            "internal/handler/http/product_handler.go",
            "internal/handler/grpc/product.proto",
            "internal/handler/grpc/product_server.go",
            "internal/handler/cli/product_commands.go",
            "internal/handler/worker/product_worker.go",
        ]

    def test_import_paths_follow_module(self, renderer: TemplateRenderer) -> None:
        assert renderer.import_paths["domain"] == f"{MODULE_PATH}/internal/domain"
        assert renderer.import_paths["http"] == f"{MODULE_PATH}/internal/handler/http"
        assert renderer.packages["http"] == "http"


# ===========================================================================
# Field views
# ===========================================================================


class TestFieldView:
    def test_required_string(self, product_model: EntityModel) -> None:
        view = build_field_view(product_model, product_model.fields[0])
        assert view.go_name == "Name"
        assert view.validates
        assert view.invalid_condition == 'p.Name == ""'
        assert view.validate_tag == ' validate:"required,min=1"'
        assert view.update_validate_tag == ' validate:"omitempty,min=1"'
        assert view.domain_tag == (
            'json:"name" gorm:"column:name;type:varchar(255);not null;default:\'\'"'
        )

    def test_optional_float_is_still_checked(self, product_model: EntityModel) -> None:
        view = build_field_view(product_model, product_model.fields[1])
        assert view.validates
        assert view.invalid_condition == "p.Price < 0"
        assert view.validate_tag == ' validate:"omitempty,gte=0"'

    def test_optional_string_not_checked(self, product_model: EntityModel) -> None:
        view = build_field_view(product_model, product_model.fields[2])
        assert view.go_name == "SKU"
        assert not view.validates
        assert "uniqueIndex" in view.domain_tag

    def test_validation_disabled(self) -> None:
        model = build_entity_model(
            "Product",
            parse_field_spec("name:string:required"),
            FeatureFlags(validation=False),
        )
        assert not build_field_view(model, model.fields[0]).validates

    def test_business_rules(self, full_product_model: EntityModel) -> None:
        methods = [r["method"] for r in business_rules(full_product_model)]
        assert methods == ["IsAdult", "IsExpensive", "HasValidEmail", "IsActive"]

    def test_business_rules_off(self, product_model: EntityModel) -> None:
        assert business_rules(product_model) == []


# ===========================================================================
# Rendered output
# ===========================================================================


class TestDomainLayer:
    def test_sql_entity(self, renderer: TemplateRenderer, product_model: EntityModel) -> None:
        source = _render(renderer, product_model, Layer.DOMAIN)["internal/domain/product.go"]
        assert source.startswith(
            f'{GENERATED_HEADER}\npackage domain\n\nimport (\n\t"errors"\n)\n\nvar (\n'
        )
        assert "type Product struct {" in source
        assert '\tID uint `json:"id" gorm:"primaryKey;autoIncrement"`' in source
        assert 'ErrProductNotFound    = errors.New("product not found")' in source
        assert "ErrInvalidProductPrice" in source
        assert "ErrInvalidProductSKU" not in source
        assert 'func (Product) TableName() string {\n\treturn "products"\n}' in source
        assert "\tif p.Price < 0 {\n\t\treturn ErrInvalidProductPrice\n\t}" in source
        assert source.endswith("}\n")

    def test_header_is_not_user_owned(self) -> None:
        assert USER_OWNED_MARKER not in GENERATED_HEADER

    def test_all_features(
        self, renderer: TemplateRenderer, full_product_model: EntityModel
    ) -> None:
        source = _render(renderer, full_product_model, Layer.DOMAIN)["internal/domain/product.go"]
        assert '\t"strings"' in source
        assert '\t"time"' in source
        assert '\t"gorm.io/gorm"' in source
        assert "CreatedAt time.Time" in source
        assert "DeletedAt gorm.DeletedAt" in source
        assert "func (p *Product) IsAdult() bool {\n\treturn p.Age >= 18\n}" in source
        assert 'strings.Contains(p.Email, "@")' in source
        assert "func (p *Product) SoftDelete() {" in source
        assert "CategoryID uint" in source

    def test_mongo_entity(self, renderer: TemplateRenderer, mongo_model: EntityModel) -> None:
        source = _render(renderer, mongo_model, Layer.DOMAIN)["internal/domain/customer.go"]
        assert '\tID string `json:"id" bson:"_id,omitempty"`' in source
        assert 'const CustomerCollection = "customers"' in source
        assert "TableName" not in source
        assert "gorm" not in source
        assert "DeletedAt *time.Time" in source


class TestUseCaseLayer:
    def test_dto_and_interface(
        self, renderer: TemplateRenderer, product_model: EntityModel
    ) -> None:
        files = _render(renderer, product_model, Layer.USECASE)
        dto = files["internal/usecase/product_dto.go"]
        assert 'Name string `json:"name" validate:"required,min=1"`' in dto
        assert 'Price *float64 `json:"price,omitempty" validate:"omitempty,gte=0"`' in dto
        assert f'\t"{MODULE_PATH}/internal/domain"' in dto

        iface = files["internal/usecase/product_usecase.go"]
        assert "type ProductUseCase interface {" in iface
        assert "\tFindProductByName(name string) (*domain.Product, error)" in iface
        assert "\tFindProductBySKU(sku string) (*domain.Product, error)" in iface
        assert "\tListProducts() (*ListProductsOutput, error)" in iface

    def test_service(self, renderer: TemplateRenderer, product_model: EntityModel) -> None:
        service = _render(renderer, product_model, Layer.USECASE)["internal/usecase/product_service.go"]
        assert "func NewProductService(repo repository.ProductRepository) ProductUseCase {" in service
        assert "\tif err := product.Validate(); err != nil {" in service


class TestRepositoryLayer:
    def test_gorm(self, renderer: TemplateRenderer, product_model: EntityModel) -> None:
        files = _render(renderer, product_model, Layer.REPOSITORY)
        impl = files["internal/repository/postgres_product_repository.go"]
        assert "type postgresProductRepository struct {" in impl
        assert "func NewPostgresProductRepository(db *gorm.DB) ProductRepository {" in impl
        assert 'r.db.Where("sku = ?", sku)' in impl
        assert "errors.Is(err, gorm.ErrRecordNotFound)" in impl

    def test_lookup_local_does_not_shadow_parameter(self, renderer: TemplateRenderer) -> None:
        model = build_entity_model("Name", parse_field_spec("name:string:unique"))
        impl = _render(renderer, model, Layer.REPOSITORY)[
            "internal/repository/postgres_name_repository.go"
        ]
        assert "FindByName(name string) (*domain.Name, error) {\n\tvar result domain.Name\n" in impl
        assert "\tvar name domain.Name\n\tif err := r.db.Where" not in impl

    @pytest.mark.parametrize("field", ["r", "s", "result"])
    def test_field_named_like_a_receiver(self, renderer: TemplateRenderer, field: str) -> None:
        model = build_entity_model("Entry", parse_field_spec(f"{field}:string:unique"))
        (view,) = [build_field_view(model, f) for f in model.fields]
        assert view.var_name == f"{field}Value"

    def test_mongodb(self, renderer: TemplateRenderer, mongo_model: EntityModel) -> None:
        impl = _render(renderer, mongo_model, Layer.REPOSITORY)[
            "internal/repository/mongodb_customer_repository.go"
        ]
        assert "func NewMongoCustomerRepository(db *mongo.Database) CustomerRepository {" in impl
        assert "func (r *mongoCustomerRepository) FindByID(id string)" in impl
        assert 'bson.M{"email": email}' in impl


class TestHandlerLayer:
    def test_http_numeric_id(self, renderer: TemplateRenderer, product_model: EntityModel) -> None:
        source = _render(renderer, product_model, Layer.HANDLER)[
            "internal/handler/http/product_handler.go"
        ]
        assert "package http" in source
        assert '\t"strconv"' in source
        assert '\tid, err := strconv.ParseUint(mux.Vars(r)["id"], 10, 64)' in source
        assert "h.uc.GetProduct(uint(id))" in source
        assert "func (h *ProductHandler) ListProducts(" in source

    def test_http_string_id(self, renderer: TemplateRenderer, mongo_model: EntityModel) -> None:
        source = _render(renderer, mongo_model, Layer.HANDLER)[
            "internal/handler/http/customer_handler.go"
        ]
        assert "strconv" not in source
        assert '\tid := mux.Vars(r)["id"]' in source

    def test_every_handler_renders(
        self, renderer: TemplateRenderer, full_product_model: EntityModel
    ) -> None:
        files = _render(renderer, full_product_model, Layer.HANDLER)
        proto = files["internal/handler/grpc/product.proto"]
        assert 'import "google/protobuf/timestamp.proto";' in proto
        assert "service ProductService {" in proto
        assert "  optional string name = 2;" in proto

        server = files["internal/handler/grpc/product_server.go"]
        assert f'\tpb "{MODULE_PATH}/internal/handler/grpc/productpb"' in server
        assert "Released: req.GetReleased().AsTime()," in server

        commands = files["internal/handler/cli/product_commands.go"]
        assert '"github.com/spf13/cobra"' in commands
        assert 'cmd.MarkFlagRequired("name")' in commands
        assert 'cmd.Flags().UintVar(&input.CategoryID, "category-id", 0, "category id")' in commands

        worker = files["internal/handler/worker/product_worker.go"]
        assert "func (w *ProductWorker) Handle(ctx context.Context, payload []byte) error {" in worker


class TestRendererBehaviour:
    def test_rendering_is_deterministic(
        self, renderer: TemplateRenderer, full_product_model: EntityModel
    ) -> None:
        for layer in ALL_LAYERS:
            assert _render(renderer, full_product_model, layer) == _render(
                TemplateRenderer(MODULE_PATH), full_product_model, layer
            )

    def test_every_database_renders(self, renderer: TemplateRenderer) -> None:
        for database in Database:
            model = build_entity_model(
                "Invoice",
                parse_field_spec("number:string:required,total:float,paid:bool"),
                FeatureFlags(timestamps=True, soft_delete=True),
                database,
            )
            for layer in ALL_LAYERS:
                assert renderer.render_layer(model, layer)

    def test_skeletons(self, renderer: TemplateRenderer, product_model: EntityModel) -> None:
        container = renderer.render_skeleton("container", product_model)
        assert container.relative_path == "internal/di/container.go"
        assert container.is_aggregator
        assert "\t// Repositories\n" in container.content
        assert "func (c *Container) setupHandlers() {\n}" in container.content

        main = renderer.render_skeleton("main", product_model)
        assert main.relative_path == "cmd/server/main.go"
        assert '\t"gorm.io/driver/postgres"' in main.content
        assert "\trouter := mux.NewRouter()" in main.content
        assert "\tif err := db.AutoMigrate(\n\t); err != nil {\n" in main.content

        mongo_product = build_entity_model(
            "Product", parse_field_spec("name:string"), database=Database.MONGODB,
        )
        mongo = renderer.render_skeleton("main", mongo_product)
        assert "AutoMigrate" not in mongo.content

    def test_unknown_skeleton(self, renderer: TemplateRenderer, product_model: EntityModel) -> None:
        with pytest.raises(RenderError):
            renderer.render_skeleton("router", product_model)

    def test_fragment_is_stripped(
        self, renderer: TemplateRenderer, product_model: EntityModel
    ) -> None:
        text = renderer.render_fragment("wiring/repository_setup.j2", product_model)
        assert text == "c.productRepo = repository.NewPostgresProductRepository(c.db)"

    def test_automigrate_fragment(
        self, renderer: TemplateRenderer, product_model: EntityModel
    ) -> None:
        text = renderer.render_fragment("wiring/automigrate.j2", product_model)
        assert text == "&domain.Product{},"

    def test_routes_fragment(self, renderer: TemplateRenderer, product_model: EntityModel) -> None:
        text = renderer.render_fragment("wiring/routes.j2", product_model)
        lines = text.split("\n")
        assert lines[0] == "// Product routes"
        assert lines[1] == "productHandler := container.ProductHandler()"
        assert 'router.HandleFunc("/api/v1/products/{id}", productHandler.GetProduct).Methods("GET")' in lines

    def test_list_templates(self, renderer: TemplateRenderer) -> None:
        names = renderer.list_templates()
        assert "domain/entity.go.j2" in names
        assert "wiring/routes.j2" in names


class TestTemplateOverrides:
    def test_user_template_wins(
        self, tmp_path: pathlib.Path, product_model: EntityModel
    ) -> None:
        override = tmp_path / "templates" / "domain"
        override.mkdir(parents=True)
        (override / "entity.go.j2").write_text(
            "package {{ packages.domain }} // custom {{ names.type_name }}\n",
            encoding="utf-8",
        )
        renderer = TemplateRenderer(MODULE_PATH, template_dir=tmp_path / "templates")
        files = _render(renderer, product_model, Layer.DOMAIN)
        assert files["internal/domain/product.go"] == "package domain // custom Product\n"
        # Untouched templates still come from the built-ins.
        assert renderer.render_layer(product_model, Layer.USECASE)

    def test_undefined_variable_is_render_error(
        self, tmp_path: pathlib.Path, product_model: EntityModel
    ) -> None:
        override = tmp_path / "templates" / "domain"
        override.mkdir(parents=True)
        (override / "entity.go.j2").write_text("{{ not_a_variable }}\n", encoding="utf-8")
        renderer = TemplateRenderer(MODULE_PATH, template_dir=tmp_path / "templates")
        with pytest.raises(RenderError) as exc_info:
            renderer.render_layer(product_model, Layer.DOMAIN)
        assert exc_info.value.template_name == "domain/entity.go.j2"
        assert exc_info.value.layer == "domain"

    def test_syntax_error_is_render_error(
        self, tmp_path: pathlib.Path, product_model: EntityModel
    ) -> None:
        override = tmp_path / "templates" / "usecase"
        override.mkdir(parents=True)
        (override / "dto.go.j2").write_text("{% if %}\n", encoding="utf-8")
        renderer = TemplateRenderer(MODULE_PATH, template_dir=tmp_path / "templates")
        with pytest.raises(RenderError):
            renderer.render_layer(product_model, Layer.USECASE)

    def test_runtime_error_is_render_error(
        self, tmp_path: pathlib.Path, product_model: EntityModel
    ) -> None:
        override = tmp_path / "templates" / "usecase"
        override.mkdir(parents=True)
        (override / "service.go.j2").write_text("{{ 1 // 0 }}\n", encoding="utf-8")
        renderer = TemplateRenderer(MODULE_PATH, template_dir=tmp_path / "templates")
        with pytest.raises(RenderError) as exc_info:
            renderer.render_layer(product_model, Layer.USECASE)
        assert exc_info.value.template_name == "usecase/service.go.j2"
        assert "ZeroDivisionError" in exc_info.value.message
