"""
tests/test_validators.py
Unit tests for goscaffold.validators: ValidationResult, layout checks,
pre-flight entity conflicts and integration verification.
"""

from __future__ import annotations

import pathlib

from goscaffold.generator import ScaffoldGenerator
from goscaffold.models import EntityModel, GenerationRequest, ProjectLayout
from goscaffold.templates import TemplateRenderer
from goscaffold.validators import (
    ValidationResult,
    check_entity_conflict,
    validate_layout,
    verify_integration,
)
from goscaffold.writer import USER_OWNED_MARKER


# ===========================================================================
# ValidationResult
# ===========================================================================


class TestValidationResult:
    def test_empty_is_valid(self) -> None:
        result = ValidationResult()
        assert result.is_valid
        assert bool(result)
        assert len(result) == 0

    def test_levels(self) -> None:
        result = ValidationResult()
        result.add_error("e1", "bad")
        result.add_warning("w1", "meh")
        result.add_info("i1", "fyi")
        assert not result
        assert result.codes() == ["e1", "w1", "i1"]
        assert [e.code for e in result.errors] == ["e1"]
        assert [w.code for w in result.warnings] == ["w1"]
        report = result.format_report()
        assert "[e1]" in report and "[w1]" in report
        assert "[i1]" not in report
        assert "[i1]" in result.format_report(include_info=True)

    def test_merge(self) -> None:
        a, b = ValidationResult(), ValidationResult()
        a.add_warning("w", "x")
        b.add_error("e", "y", {"path": "p"})
        a.merge(b)
        assert a.codes() == ["w", "e"]
        assert a.errors[0].to_dict()["context"] == {"path": "p"}


# ===========================================================================
# validate_layout
# ===========================================================================


class TestValidateLayout:
    def test_fresh_module(self, go_project: pathlib.Path) -> None:
        result = validate_layout(go_project, ProjectLayout())
        assert result.is_valid
        assert set(result.codes()) == {"layout_missing"}

    def test_missing_root(self, tmp_path: pathlib.Path) -> None:
        result = validate_layout(tmp_path / "nope", ProjectLayout())
        assert result.codes() == ["root_missing"]

    def test_missing_go_mod(self, go_project: pathlib.Path) -> None:
        (go_project / "go.mod").unlink()
        result = validate_layout(go_project, ProjectLayout())
        assert result.is_valid
        assert "go_mod_missing" in result.codes()

    def test_file_in_place_of_directory(self, go_project: pathlib.Path) -> None:
        (go_project / "internal").mkdir()
        (go_project / "internal" / "domain").write_text("oops", encoding="utf-8")
        result = validate_layout(go_project, ProjectLayout())
        assert [e.code for e in result.errors] == ["layout_not_directory"]
        assert result.errors[0].context["path"] == "internal/domain"


# ===========================================================================
# check_entity_conflict
# ===========================================================================


class TestCheckEntityConflict:
    def test_clean_project(
        self,
        go_project: pathlib.Path,
        renderer: TemplateRenderer,
        product_model: EntityModel,
    ) -> None:
        assert len(check_entity_conflict(go_project, renderer, product_model)) == 0

    def test_existing_entity_and_files(
        self,
        go_project: pathlib.Path,
        renderer: TemplateRenderer,
        product_model: EntityModel,
    ) -> None:
        domain = go_project / "internal" / "domain"
        domain.mkdir(parents=True)
        (domain / "product.go").write_text(
            "package domain\n\ntype Product struct{}\n", encoding="utf-8"
        )
        result = check_entity_conflict(go_project, renderer, product_model)
        assert result.is_valid
        assert result.codes() == ["entity_exists", "file_exists"]
        assert result.warnings[1].context["layer"] == "domain"

    def test_user_owned_file_is_info(
        self,
        go_project: pathlib.Path,
        renderer: TemplateRenderer,
        product_model: EntityModel,
    ) -> None:
        usecase = go_project / "internal" / "usecase"
        usecase.mkdir(parents=True)
        (usecase / "product_service.go").write_text(
            f"// {USER_OWNED_MARKER}\npackage usecase\n", encoding="utf-8"
        )
        result = check_entity_conflict(go_project, renderer, product_model)
        assert result.codes() == ["user_owned"]
        assert result.warnings == []

    def test_undecodable_file_is_a_plain_conflict(
        self,
        go_project: pathlib.Path,
        renderer: TemplateRenderer,
        product_model: EntityModel,
    ) -> None:
        domain = go_project / "internal" / "domain"
        domain.mkdir(parents=True)
        (domain / "product.go").write_bytes(b"\xff\xfe package domain")
        result = check_entity_conflict(go_project, renderer, product_model)
        assert result.codes() == ["file_exists"]


# ===========================================================================
# verify_integration
# ===========================================================================


class TestVerifyIntegration:
    def test_missing_aggregators(
        self, go_project: pathlib.Path, product_model: EntityModel
    ) -> None:
        result = verify_integration(go_project, ProjectLayout(), product_model)
        assert result.codes() == ["aggregator_missing", "aggregator_missing"]

    def test_fully_wired(
        self,
        generator: ScaffoldGenerator,
        go_project: pathlib.Path,
        product_model: EntityModel,
        product_request: GenerationRequest,
    ) -> None:
        assert generator.generate(product_request).success
        result = verify_integration(go_project, ProjectLayout(), product_model)
        assert result.is_valid, result.format_report()
        assert result.codes() == ["wired"] * 11

    def test_not_integrated(
        self,
        generator: ScaffoldGenerator,
        go_project: pathlib.Path,
        product_model: EntityModel,
        product_request: GenerationRequest,
    ) -> None:
        generator.generate(product_request)
        main = go_project / "cmd" / "server" / "main.go"
        main.write_text(
            main.read_text(encoding="utf-8").replace(
                "productHandler := container.ProductHandler()",
                "// productHandler := container.ProductHandler()",
            ),
            encoding="utf-8",
        )
        result = verify_integration(go_project, ProjectLayout(), product_model)
        assert [e.code for e in result.errors] == ["not_integrated"]
        assert result.errors[0].context["anchor"] == "routes"

    def test_anchor_missing(
        self, go_project: pathlib.Path, product_model: EntityModel
    ) -> None:
        di = go_project / "internal" / "di"
        di.mkdir(parents=True)
        (di / "container.go").write_text("package di\n", encoding="utf-8")
        result = verify_integration(go_project, ProjectLayout(), product_model)
        assert result.codes().count("anchor_missing") == 9
        assert "aggregator_missing" in result.codes()

    def test_undecodable_aggregator(
        self,
        generator: ScaffoldGenerator,
        go_project: pathlib.Path,
        product_model: EntityModel,
        product_request: GenerationRequest,
    ) -> None:
        generator.generate(product_request)
        (go_project / "cmd" / "server" / "main.go").write_bytes(b"\xff\xfe package main")
        result = verify_integration(go_project, ProjectLayout(), product_model)
        assert [e.code for e in result.errors] == ["aggregator_unreadable"]
        assert result.codes().count("wired") == 9
