# File: goscaffold/errors.py
"""
goscaffold - Error Taxonomy
============================
Every failure the pipeline can surface is one of the exception classes
below.  Each carries a stable ``code`` and a ``context`` dict with enough
detail (offending token, path, layer) to be shown verbatim to the user.

Propagation policy:
    - ``ParseError``, ``InvalidNameError``, ``ModelConflictError`` and
      ``UnsupportedBindingError`` are fatal to the whole request.
    - ``RenderError``, ``FileConflictError`` and ``WriteError`` are
      contained to the layer that raised them.
    - ``AnchorNotFoundError`` is always reported, never swallowed.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.errors")


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class GenerationError(Exception):
    """Base class for every error raised by the generation pipeline."""

    code: str = "generation_error"

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code}: {self.message}>"


class ConfigError(GenerationError):
    """Project configuration could not be loaded or is invalid."""

    code = "config_error"


# ---------------------------------------------------------------------------
# Parse / model errors (fatal to the request)
# ---------------------------------------------------------------------------


class ParseErrorKind(str, Enum):
    """What exactly was wrong with a field specification."""

    EMPTY_SEGMENT = "empty_segment"
    MALFORMED_FIELD = "malformed_field"
    INVALID_NAME = "invalid_name"
    UNKNOWN_TYPE = "unknown_type"
    UNKNOWN_MODIFIER = "unknown_modifier"
    DUPLICATE_FIELD = "duplicate_field"
    RESERVED_NAME = "reserved_name"


class ParseError(GenerationError):
    """
    The field specification string is malformed.

    ``position`` is the 0-based index of the offending field segment;
    ``offset`` is the 0-based character offset of the token in the raw spec.
    """

    code = "parse_error"

    def __init__(
        self,
        kind: ParseErrorKind,
        token: str,
        position: int,
        offset: int = 0,
        detail: str = "",
    ) -> None:
        message: str = (
            f"{kind.value} at field {position} (offset {offset}): {token!r}"
        )
        if detail:
            message = f"{message} - {detail}"
        super().__init__(
            message,
            {
                "kind": kind.value,
                "token": token,
                "position": position,
                "offset": offset,
            },
        )
        self.kind: ParseErrorKind = kind
        self.token: str = token
        self.position: int = position
        self.offset: int = offset


class InvalidNameError(GenerationError):
    """An entity name is not a valid identifier after normalisation."""

    code = "invalid_name"

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(
            f"Invalid entity name {name!r}: {reason}",
            {"name": name, "reason": reason},
        )
        self.name: str = name


class ModelConflictError(GenerationError):
    """A feature flag reserves a field name the user already declared."""

    code = "model_conflict"

    def __init__(self, field_name: str, feature: str) -> None:
        super().__init__(
            f"Field {field_name!r} collides with the {feature} feature",
            {"field": field_name, "feature": feature},
        )
        self.field_name: str = field_name
        self.feature: str = feature


class UnsupportedBindingError(GenerationError):
    """No concrete type exists for a semantic type on a target database."""

    code = "unsupported_binding"

    def __init__(self, semantic_type: str, layer: str, database: str) -> None:
        super().__init__(
            f"Type {semantic_type!r} is not supported on {database} "
            f"({layer} layer)",
            {"semantic_type": semantic_type, "layer": layer, "database": database},
        )


# ---------------------------------------------------------------------------
# Per-layer errors (contained)
# ---------------------------------------------------------------------------


class RenderError(GenerationError):
    """A template could not be rendered (missing variable, bad syntax)."""

    code = "render_error"

    def __init__(self, template_name: str, layer: str, reason: str) -> None:
        super().__init__(
            f"Failed to render {template_name} ({layer}): {reason}",
            {"template": template_name, "layer": layer, "reason": reason},
        )
        self.template_name: str = template_name
        self.layer: str = layer


class FileConflictError(GenerationError):
    """The target file exists and the overwrite policy is ``abort``."""

    code = "file_conflict"

    def __init__(self, path: str) -> None:
        super().__init__(
            f"{path} already exists (overwrite policy is abort)",
            {"path": path},
        )
        self.path: str = path


class WriteError(GenerationError):
    """Writing (or backing up) a file failed; the original is untouched."""

    code = "write_error"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Could not write {path}: {reason}",
            {"path": path, "reason": reason},
        )
        self.path: str = path


# ---------------------------------------------------------------------------
# Integration errors (always surfaced)
# ---------------------------------------------------------------------------


class AnchorNotFoundError(GenerationError):
    """An aggregator file no longer has the structure the integrator expects."""

    code = "anchor_not_found"

    def __init__(self, path: str, anchor_kind: str) -> None:
        super().__init__(
            f"Anchor {anchor_kind!r} not found in {path}; "
            "the file structure was altered",
            {"path": path, "anchor": anchor_kind},
        )
        self.path: str = path
        self.anchor_kind: str = anchor_kind


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
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
