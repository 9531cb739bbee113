# File: goscaffold/validators.py
"""
goscaffold - Project Validators
================================
Read-only checks against a target Go project.  None of them writes a file.

    - ``validate_layout``       go.mod present, layout directories sane
    - ``check_entity_conflict`` which artifacts of an entity already exist
    - ``verify_integration``    is an entity wired into every aggregator

Findings are collected into a ``ValidationResult`` instead of being raised,
so the CLI can print every problem at once.

Usage::

    from goscaffold.validators import verify_integration
    result = verify_integration(Path("."), layout, model)
    if not result:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from goscaffold.errors import AnchorNotFoundError
from goscaffold.integrator import (
    ANCHOR_SPECS,
    AggregatorKind,
    applicable_specs,
    detect_features,
    fragment_signature,
    locate_region,
)
from goscaffold.models import ALL_LAYERS, EntityModel, ProjectLayout
from goscaffold.templates import TemplateRenderer
from goscaffold.utils import read_go_module, read_text
from goscaffold.writer import USER_OWNED_MARKER

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight finding descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {"error": "✗", "warning": "⚠", "info": "·"}.get(item.level, " ")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Project layout
# ---------------------------------------------------------------------------


def validate_layout(project_root: Path, layout: ProjectLayout) -> ValidationResult:
    """Check that *project_root* looks like a Go module using *layout*."""
    result: ValidationResult = ValidationResult()
    root: Path = Path(project_root)

    if not root.is_dir():
        result.add_error("root_missing", f"Project root {root} is not a directory.")
        return result

    if read_go_module(root) is None:
        result.add_warning(
            "go_mod_missing",
            "No module line found in go.mod; the directory name is used as module path.",
        )

    for label, directory in (
        ("domain", layout.domain_dir),
        ("usecase", layout.usecase_dir),
        ("repository", layout.repository_dir),
        ("handler", layout.handler_dir),
        ("di", layout.di_dir),
    ):
        path: Path = root.joinpath(*directory.split("/"))
        if path.exists() and not path.is_dir():
            result.add_error(
                "layout_not_directory",
                f"{label} path {directory} exists but is not a directory.",
                {"path": directory},
            )
        elif not path.exists():
            result.add_info(
                "layout_missing",
                f"{label} directory {directory} will be created.",
                {"path": directory},
            )

    logger.debug("Layout check for %s: %s", root, result.summary())
    return result


# ---------------------------------------------------------------------------
# Entity conflicts
# ---------------------------------------------------------------------------


def check_entity_conflict(
    project_root: Path,
    renderer: TemplateRenderer,
    model: EntityModel,
) -> ValidationResult:
    """
    Report artifacts of *model* that already exist on disk.

    Existing files are warnings (the overwrite policy decides what happens);
    user-owned files are reported as info because they are always kept.
    """
    result: ValidationResult = ValidationResult()
    root: Path = Path(project_root)

    if model.names.type_name in detect_features(root, renderer.layout):
        result.add_warning(
            "entity_exists",
            f"Entity {model.names.type_name} already exists in {renderer.layout.domain_dir}.",
            {"entity": model.names.type_name},
        )

    for layer in ALL_LAYERS:
        for _template, rel_path in renderer.artifact_plan(model, layer):
            target: Path = root.joinpath(*rel_path.split("/"))
            if not target.is_file():
                continue
            try:
                user_owned: bool = USER_OWNED_MARKER in read_text(target)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Cannot read %s: %s", rel_path, exc)
                user_owned = False
            if user_owned:
                result.add_info(
                    "user_owned",
                    f"{rel_path} is user-owned and will be kept.",
                    {"path": rel_path, "layer": layer.value},
                )
            else:
                result.add_warning(
                    "file_exists",
                    f"{rel_path} already exists.",
                    {"path": rel_path, "layer": layer.value},
                )
    return result


# ---------------------------------------------------------------------------
# Integration verification
# ---------------------------------------------------------------------------


def verify_integration(
    project_root: Path,
    layout: ProjectLayout,
    model: EntityModel,
) -> ValidationResult:
    """Check that every applicable wiring fragment of *model* is present."""
    result: ValidationResult = ValidationResult()
    root: Path = Path(project_root)
    entity: str = model.names.type_name

    for aggregator, rel_path in (
        (AggregatorKind.CONTAINER, layout.container_path),
        (AggregatorKind.ENTRY_POINT, layout.entry_point),
    ):
        specs = applicable_specs(model, aggregator)
        if not specs:
            continue

        target: Path = root.joinpath(*rel_path.split("/"))
        if not target.is_file():
            result.add_error(
                "aggregator_missing",
                f"{rel_path} does not exist.",
                {"path": rel_path},
            )
            continue

        try:
            lines: List[str] = read_text(target).split("\n")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read %s: %s", rel_path, exc)
            result.add_error(
                "aggregator_unreadable",
                f"{rel_path} cannot be read: {exc}",
                {"path": rel_path},
            )
            continue
        for spec in specs:
            context: Dict[str, Any] = {
                "path": rel_path,
                "anchor": spec.kind.value,
                "entity": entity,
            }
            try:
                start, end = locate_region(lines, ANCHOR_SPECS[spec.kind], rel_path)
            except AnchorNotFoundError as exc:
                result.add_error("anchor_missing", exc.message, context)
                continue

            signature = re.compile(fragment_signature(spec, model.names))
            if any(
                signature.search(line) and not line.strip().startswith("//")
                for line in lines[start + 1:end]
            ):
                result.add_info("wired", f"{entity} {spec.kind.value} present.", context)
            else:
                result.add_error(
                    "not_integrated",
                    f"{entity} is missing from the {spec.kind.value} of {rel_path}.",
                    context,
                )

    logger.info("Integration check for %s: %s", entity, result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "check_entity_conflict",
    "validate_layout",
    "verify_integration",
]

logger.debug("goscaffold.validators loaded — %d public symbols.", len(__all__))
