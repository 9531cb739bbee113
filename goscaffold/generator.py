# File: goscaffold/generator.py
"""
goscaffold - Generation Pipeline (Orchestrator)
================================================
Connects every phase of a feature generation run:

    field spec → parse → build EntityModel → per layer: render + guarded write
               → integrate into aggregators → GenerationReport

Workflow::

    1. Parse the field spec (``parser.parse_field_spec``).
    2. Build the frozen ``EntityModel`` (``builder.build_entity_model``).
    3. For every requested layer, in order: render its artifacts and hand
       each one to the ``ConflictGuard``.
    4. Splice wiring fragments into the DI container and the entry point,
       but only for layers that were generated successfully.
    5. Return a ``GenerationReport``.

Error handling strategy:
    - Parse and model errors end the run before anything is written; they
      are recorded in the report, not raised.
    - Render, conflict and write errors are contained to their artifact;
      sibling artifacts and the other layers still run, but the layer then
      counts as failed for wiring.
    - Integration errors are recorded per aggregator file and never
      swallowed.

``generate`` is the only entry point that touches the filesystem; the
renderer and the model are pure.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from goscaffold.builder import build_entity_model
from goscaffold.errors import (
    AnchorNotFoundError,
    ConfigError,
    FileConflictError,
    GenerationError,
    RenderError,
    WriteError,
)
from goscaffold.integrator import (
    AggregatorAnchor,
    AggregatorIntegrator,
    AggregatorKind,
    AggregatorUpdate,
    WiringFragment,
    applicable_specs,
    detect_features,
    fragment_signature,
)
from goscaffold.models import (
    EntityModel,
    FieldDescriptor,
    GenerationRequest,
    HandlerKind,
    Layer,
    ScaffoldConfig,
)
from goscaffold.parser import parse_field_spec
from goscaffold.templates import TemplateRenderer
from goscaffold.utils import Timer, count_lines, read_go_module
from goscaffold.validators import ValidationResult, check_entity_conflict, validate_layout
from goscaffold.writer import ConflictGuard, WriteAction, WriteOutcome

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.generator")

CONFIG_FILENAMES: Tuple[str, ...] = (".goscaffold.yaml", ".goscaffold.yml", ".goscaffold.json")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Everything a run did, produced by ``ScaffoldGenerator.generate()``.

    ``success`` is True only when no error was recorded.  A run that wrote
    some files and failed on others is ``partially_failed``.
    """

    entity_name: str = ""
    project_root: str = ""
    dry_run: bool = False

    created: List[str] = field(default_factory=list)
    overwritten: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    backed_up: List[str] = field(default_factory=list)
    integrated: List[AggregatorAnchor] = field(default_factory=list)
    errors: List[GenerationError] = field(default_factory=list)

    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def partially_failed(self) -> bool:
        return bool(self.errors) and bool(
            self.created or self.overwritten or self.integrated
        )

    def record_write(self, outcome: WriteOutcome, content: str = "") -> None:
        if outcome.action is WriteAction.CREATED:
            self.created.append(outcome.path)
        elif outcome.action is WriteAction.OVERWRITTEN:
            self.overwritten.append(outcome.path)
        else:
            self.skipped.append((outcome.path, outcome.reason))
            return
        if outcome.backup_path:
            self.backed_up.append(outcome.backup_path)
        self.total_bytes += outcome.bytes_written
        self.total_lines += count_lines(content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity": self.entity_name,
            "project_root": self.project_root,
            "dry_run": self.dry_run,
            "success": self.success,
            "partially_failed": self.partially_failed,
            "created": list(self.created),
            "overwritten": list(self.overwritten),
            "skipped": [{"path": p, "reason": r} for p, r in self.skipped],
            "backed_up": list(self.backed_up),
            "integrated": [
                {"path": a.path, "line": a.line, "anchor": a.kind.value, "entity": a.entity}
                for a in self.integrated
            ],
            "errors": [e.to_dict() for e in self.errors],
            "steps": [
                {
                    "name": s.step_name,
                    "success": s.success,
                    "elapsed_seconds": round(s.elapsed_seconds, 6),
                    "detail": s.detail,
                }
                for s in self.step_metrics
            ],
        }

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        if self.success:
            status: str = "✅ SUCCESS"
        elif self.partially_failed:
            status = "⚠️ PARTIAL"
        else:
            status = "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  goscaffold — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:       {status}{'  (dry run)' if self.dry_run else ''}")
        lines.append(f"  Entity:       {self.entity_name}")
        lines.append(f"  Project:      {self.project_root}")
        lines.append(f"  Created:      {len(self.created)}")
        lines.append(f"  Overwritten:  {len(self.overwritten)}")
        lines.append(f"  Skipped:      {len(self.skipped)}")
        lines.append(f"  Integrated:   {len(self.integrated)}")
        lines.append(f"  Total time:   {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<24s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: List[Tuple[str, str, List[str]]] = [
            ("Created", "+", self.created),
            ("Overwritten", "~", self.overwritten),
            ("Backups", "↺", self.backed_up),
            ("Integrated", "→", [
                f"{a.path}:{a.line} {a.kind.value} ({a.entity})" for a in self.integrated
            ]),
            ("Skipped", "⊘", [f"{p} ({r})" for p, r in self.skipped]),
            ("Errors", "✗", [f"[{e.code}] {e.message}" for e in self.errors]),
        ]
        for title, icon, items in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Config loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ConfigError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}", {"path": str(path)}) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}", {"path": str(path)}) from exc
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a JSON object at top level, got {type(data).__name__}.",
            {"path": str(path)},
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ConfigError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}", {"path": str(path)}) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}", {"path": str(path)}) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}.",
            {"path": str(path)},
        )
    return data


def find_config_file(project_root: Path) -> Optional[Path]:
    for name in CONFIG_FILENAMES:
        candidate: Path = Path(project_root) / name
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Optional[Path] = None, project_root: Optional[Path] = None) -> ScaffoldConfig:
    """
    Load a ``ScaffoldConfig``.

    With an explicit *path* the file must exist.  Otherwise the first of
    ``CONFIG_FILENAMES`` found in *project_root* is used, and defaults apply
    when there is none.

    Raises:
        ConfigError: File missing, unparseable, or fails validation.
    """
    if path is None:
        path = find_config_file(project_root or Path("."))
        if path is None:
            logger.info("No goscaffold config found — using defaults.")
            return ScaffoldConfig()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}", {"path": str(path)})

    raw: Dict[str, Any] = (
        _load_json_file(path) if path.suffix.lower() == ".json" else _load_yaml_file(path)
    )
    try:
        config: ScaffoldConfig = ScaffoldConfig.model_validate(raw)
    except PydanticValidationError as exc:
        raise ConfigError(
            f"Config validation failed for {path}: {exc}",
            {"path": str(path), "errors": exc.errors(include_url=False)},
        ) from exc

    logger.info("Loaded config from %s: %r", path, config)
    return config


# ---------------------------------------------------------------------------
# ScaffoldGenerator: pipeline orchestrator
# ---------------------------------------------------------------------------


class ScaffoldGenerator:
    """
    Pipeline orchestrator for one Go project.

    Usage::

        generator = ScaffoldGenerator(Path("./shop"), load_config(project_root=Path("./shop")))
        request = GenerationRequest.from_config(
            generator.config, "Product", "name:string:required,price:float",
        )
        report = generator.generate(request)
        print(report.summary())

    The generator is reusable: create once, call ``generate()`` many times.
    """

    def __init__(
        self,
        project_root: Path,
        config: Optional[ScaffoldConfig] = None,
    ) -> None:
        self.project_root: Path = Path(project_root)
        self.config: ScaffoldConfig = config or ScaffoldConfig()
        self.module_path: str = self._resolve_module_path()

        template_dir: Optional[Path] = None
        if self.config.template_dir:
            template_dir = self.project_root / self.config.template_dir
        self.renderer: TemplateRenderer = TemplateRenderer(
            self.module_path, self.config.layout, template_dir,
        )
        logger.debug(
            "ScaffoldGenerator initialised: root=%s, module=%s.",
            self.project_root,
            self.module_path,
        )

    def _resolve_module_path(self) -> str:
        if self.config.module_path:
            return self.config.module_path
        from_go_mod: Optional[str] = read_go_module(self.project_root)
        if from_go_mod:
            return from_go_mod
        fallback: str = self.project_root.resolve().name
        logger.warning("No go.mod module line — using %r as module path.", fallback)
        return fallback

    def _guard(self, dry_run: bool) -> ConflictGuard:
        return ConflictGuard(
            self.project_root,
            backup_dir=self.config.backup_dir,
            dry_run=dry_run,
        )

    # -----------------------------------------------------------------
    # Public: generate
    # -----------------------------------------------------------------

    def generate(self, request: GenerationRequest) -> GenerationReport:
        """
        Run the full pipeline for one entity.

        Never raises for pipeline errors; inspect ``report.errors``.
        """
        report: GenerationReport = GenerationReport(
            entity_name=request.entity_name,
            project_root=str(self.project_root),
            dry_run=request.dry_run,
        )
        start: float = time.perf_counter()
        guard: ConflictGuard = self._guard(request.dry_run)

        model: Optional[EntityModel] = self._step_model(request, report)
        if model is not None:
            report.entity_name = model.names.type_name
            self._step_preflight(model, report)

            generated: Set[Layer] = set()
            for layer in request.layers:
                if self._step_layer(model, layer, request, guard, report):
                    generated.add(layer)

            if request.integrate:
                self._step_integrate(model, generated, guard, report)

        report.total_elapsed_seconds = time.perf_counter() - start
        logger.info(
            "Generation of %s finished: success=%s, %d created, %d error(s).",
            report.entity_name,
            report.success,
            len(report.created),
            len(report.errors),
        )
        return report

    # -----------------------------------------------------------------
    # Public: integrate existing features
    # -----------------------------------------------------------------

    def integrate_existing(self, *, dry_run: bool = False) -> GenerationReport:
        """
        Wire every entity found in the domain directory into the aggregators.

        Layers count as generated when their primary file exists, so an
        entity without an HTTP handler gets no routes.
        """
        report: GenerationReport = GenerationReport(
            entity_name="*",
            project_root=str(self.project_root),
            dry_run=dry_run,
        )
        start: float = time.perf_counter()
        guard: ConflictGuard = self._guard(dry_run)

        with Timer("detect features") as t:
            found: List[str] = detect_features(self.project_root, self.config.layout)
        report.step_metrics.append(GenerationStepMetric(
            "detect features", True, t.elapsed, f"{len(found)} feature(s)",
        ))
        report.entity_name = ", ".join(found) or "-"

        for type_name in found:
            try:
                model: EntityModel = build_entity_model(
                    type_name, (), self.config.features, self.config.database,
                    self._existing_handlers(type_name),
                )
            except GenerationError as exc:
                report.errors.append(exc)
                continue
            self._step_integrate(model, self._existing_layers(model), guard, report)

        report.total_elapsed_seconds = time.perf_counter() - start
        return report

    def _existing_handlers(self, type_name: str) -> Tuple[HandlerKind, ...]:
        sample: EntityModel = EntityModel(canonical_name=type_name)
        _template, http_path = self.renderer.artifact_plan(sample, Layer.HANDLER)[0]
        return (HandlerKind.HTTP,) if (self.project_root / http_path).is_file() else ()

    def _existing_layers(self, model: EntityModel) -> Set[Layer]:
        present: Set[Layer] = set()
        for layer in (Layer.DOMAIN, Layer.USECASE, Layer.REPOSITORY, Layer.HANDLER):
            plan = self.renderer.artifact_plan(model, layer)
            if plan and (self.project_root / plan[0][1]).is_file():
                present.add(layer)
        return present

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_model(
        self,
        request: GenerationRequest,
        report: GenerationReport,
    ) -> Optional[EntityModel]:
        with Timer("parse") as t:
            try:
                fields: List[FieldDescriptor] = parse_field_spec(request.field_spec)
            except GenerationError as exc:
                fields = []
                report.errors.append(exc)
        report.step_metrics.append(GenerationStepMetric(
            "parse fields", not report.errors, t.elapsed,
            f"{len(fields)} field(s)" if not report.errors else report.errors[-1].code,
        ))
        if report.errors:
            return None

        model: Optional[EntityModel] = None
        with Timer("build") as t:
            try:
                model = build_entity_model(
                    request.entity_name,
                    fields,
                    request.features,
                    request.target_database,
                    request.target_handlers,
                )
            except GenerationError as exc:
                report.errors.append(exc)
        report.step_metrics.append(GenerationStepMetric(
            "build model", model is not None, t.elapsed,
            model.names.type_name if model is not None else report.errors[-1].code,
        ))
        return model

    def _step_preflight(self, model: EntityModel, report: GenerationReport) -> None:
        with Timer("preflight") as t:
            result: ValidationResult = validate_layout(self.project_root, self.config.layout)
            result.merge(check_entity_conflict(self.project_root, self.renderer, model))
        # Advisory only: the overwrite policy and the writer decide.
        for item in result.errors + result.warnings:
            logger.warning("[%s] %s", item.code, item.message)
        report.step_metrics.append(GenerationStepMetric(
            "preflight", True, t.elapsed,
            f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)",
        ))

    def _step_layer(
        self,
        model: EntityModel,
        layer: Layer,
        request: GenerationRequest,
        guard: ConflictGuard,
        report: GenerationReport,
    ) -> bool:
        """Render and write each artifact of *layer*; a failure stops only that artifact."""
        failures: List[GenerationError] = []
        written: int = 0
        with Timer(f"layer {layer.value}") as t:
            for template_name, rel_path in self.renderer.artifact_plan(model, layer):
                try:
                    artifact = self.renderer.render_artifact(model, layer, template_name, rel_path)
                    outcome: WriteOutcome = guard.write(
                        artifact.relative_path,
                        artifact.content,
                        request.overwrite_policy,
                    )
                except (RenderError, FileConflictError, WriteError) as exc:
                    logger.error("Layer %s: %s failed: %s", layer.value, rel_path, exc.message)
                    failures.append(exc)
                    continue
                report.record_write(outcome, artifact.content)
                written += 1
        report.errors.extend(failures)
        report.step_metrics.append(GenerationStepMetric(
            f"layer {layer.value}", not failures, t.elapsed,
            f"{written} file(s)" if not failures
            else f"{written} file(s), {len(failures)} failed ({failures[0].code})",
        ))
        return not failures

    def _fragments(
        self,
        model: EntityModel,
        aggregator: AggregatorKind,
        generated: Set[Layer],
        report: GenerationReport,
        path: str,
    ) -> List[WiringFragment]:
        fragments: List[WiringFragment] = []
        packages: List[str] = []
        for spec in applicable_specs(model, aggregator):
            missing: List[Layer] = [l for l in spec.requires if l not in generated]
            if missing:
                report.skipped.append((
                    f"{path}#{spec.kind.value}",
                    f"{missing[0].value} layer not generated",
                ))
                continue
            fragments.append(WiringFragment(
                kind=spec.kind,
                text=self.renderer.render_fragment(spec.template, model),
                signature=fragment_signature(spec, model.names),
                key=model.names.type_name,
                label=spec.kind.value,
            ))
            if spec.package and spec.package not in packages:
                packages.append(spec.package)

        import_paths: Dict[str, str] = self.renderer.import_paths
        imports: List[WiringFragment] = [
            WiringFragment.for_import(import_paths[p]) for p in sorted(packages)
        ]
        return imports + fragments if fragments else []

    def _step_integrate(
        self,
        model: EntityModel,
        generated: Set[Layer],
        guard: ConflictGuard,
        report: GenerationReport,
    ) -> None:
        integrator: AggregatorIntegrator = AggregatorIntegrator(guard)
        layout = self.config.layout
        targets: Tuple[Tuple[AggregatorKind, str, str], ...] = (
            (AggregatorKind.CONTAINER, layout.container_path, "container"),
            (AggregatorKind.ENTRY_POINT, layout.entry_point, "main"),
        )

        for aggregator, path, skeleton_name in targets:
            ok: bool = True
            detail: str = "nothing to wire"
            with Timer(f"integrate {skeleton_name}") as t:
                try:
                    fragments = self._fragments(model, aggregator, generated, report, path)
                    if fragments:
                        skeleton: str = self.renderer.render_skeleton(skeleton_name, model).content
                        update: AggregatorUpdate = integrator.apply(
                            path, model.names.type_name, fragments, skeleton,
                        )
                        self._record_integration(update, report)
                        detail = f"{sum(1 for r in update.results if r.inserted)} inserted"
                except (AnchorNotFoundError, RenderError, WriteError) as exc:
                    logger.error("Integration into %s failed: %s", path, exc.message)
                    report.errors.append(exc)
                    ok = False
                    detail = exc.code
            report.step_metrics.append(GenerationStepMetric(
                f"integrate {skeleton_name}", ok, t.elapsed, detail,
            ))

    @staticmethod
    def _record_integration(update: AggregatorUpdate, report: GenerationReport) -> None:
        if update.created:
            report.created.append(update.path)
        if update.backup_path:
            report.backed_up.append(update.backup_path)
        for result in update.results:
            anchor = result.anchor
            if result.inserted:
                report.integrated.append(anchor)
            else:
                report.skipped.append((f"{anchor.path}#{result.label}", "already integrated"))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CONFIG_FILENAMES",
    "GenerationReport",
    "GenerationStepMetric",
    "ScaffoldGenerator",
    "find_config_file",
    "load_config",
]

logger.debug("goscaffold.generator loaded — %d public symbols.", len(__all__))
