# File: goscaffold/integrator.py
"""
goscaffold - Aggregator Integrator
===================================
Splices wiring fragments into the shared files every feature registers
with: the DI container (``internal/di/container.go``) and the entry point
(``cmd/server/main.go``).

The integrator never parses Go.  Each anchor kind is a line pattern that
opens a *region* plus a rule for where the region ends:

================  =======================================  =====================
anchor            region starts at                         region ends at
================  =======================================  =====================
imports           ``import (``                             ``)``
*_fields          ``// Repositories`` / ``// Use Cases``   blank line, comment
                  / ``// Handlers``                        or ``}``
*_setup           ``func (c *Container) setupX() {``       ``}`` at column 0
getters           ``// Getters``                           end of file
automigrate       ``if err := db.AutoMigrate(``            ``); err != nil {``
routes            ``router := mux.NewRouter()``            server start line
================  =======================================  =====================

Within a region:
    - a fragment whose signature already matches a non-comment line is a
      no-op, so integrating twice leaves the file byte-identical;
    - otherwise it is inserted before the first recognised entry whose key
      sorts after the new one, or after the last entry;
    - inserted lines take the indentation of the region.

All fragments for one file are applied in memory and written once, through
the ``ConflictGuard`` with a backup.  Any missing anchor aborts the whole
file before anything is written.

Concurrency: two processes integrating into the same aggregator at the same
time can lose an update; runs are expected to be serialised.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from goscaffold.errors import AnchorNotFoundError, WriteError
from goscaffold.models import (
    EntityModel,
    HandlerKind,
    Layer,
    OverwritePolicy,
    ProjectLayout,
)
from goscaffold.naming import NameSet, to_snake_case
from goscaffold.utils import read_text
from goscaffold.writer import ConflictGuard, WriteOutcome

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.integrator")


# ---------------------------------------------------------------------------
# Anchor kinds & specs
# ---------------------------------------------------------------------------


class AggregatorKind(str, Enum):
    CONTAINER = "container"
    ENTRY_POINT = "main"


class AnchorKind(str, Enum):
    IMPORTS = "imports"
    REPOSITORY_FIELDS = "repository_fields"
    USECASE_FIELDS = "usecase_fields"
    HANDLER_FIELDS = "handler_fields"
    REPOSITORY_SETUP = "repository_setup"
    USECASE_SETUP = "usecase_setup"
    HANDLER_SETUP = "handler_setup"
    GETTERS = "getters"
    AUTOMIGRATE = "automigrate"
    ROUTES = "routes"


class RegionEnd(str, Enum):
    SECTION = "section"   # next blank line, comment or closing brace
    BRACE = "brace"       # next "}" at column 0
    EOF = "eof"           # end of file
    PATTERN = "pattern"   # next line matching AnchorSpec.end


@dataclass(frozen=True, slots=True)
class AnchorSpec:
    """How to find one region and recognise the entries inside it."""

    kind: AnchorKind
    start: "re.Pattern[str]"
    end_mode: RegionEnd
    entry: "re.Pattern[str]"
    end: Optional["re.Pattern[str]"] = None
    block: bool = False
    default_indent: str = "\t"
    inherit_start_indent: bool = False


_S = AnchorSpec

ANCHOR_SPECS: Dict[AnchorKind, AnchorSpec] = {
    AnchorKind.IMPORTS: _S(
        AnchorKind.IMPORTS,
        start=re.compile(r"^import \($"),
        end_mode=RegionEnd.PATTERN,
        end=re.compile(r"^\)"),
        entry=re.compile(r'^\s*(?:\w+\s+)?"([^"]+)"'),
    ),
    AnchorKind.REPOSITORY_FIELDS: _S(
        AnchorKind.REPOSITORY_FIELDS,
        start=re.compile(r"^\s*// Repositories\s*$"),
        end_mode=RegionEnd.SECTION,
        entry=re.compile(r"^\s*\w+\s+\*?\w+\.(\w+)Repository\b"),
        inherit_start_indent=True,
    ),
    AnchorKind.USECASE_FIELDS: _S(
        AnchorKind.USECASE_FIELDS,
        start=re.compile(r"^\s*// Use Cases\s*$"),
        end_mode=RegionEnd.SECTION,
        entry=re.compile(r"^\s*\w+\s+\*?\w+\.(\w+)UseCase\b"),
        inherit_start_indent=True,
    ),
    AnchorKind.HANDLER_FIELDS: _S(
        AnchorKind.HANDLER_FIELDS,
        start=re.compile(r"^\s*// Handlers\s*$"),
        end_mode=RegionEnd.SECTION,
        entry=re.compile(r"^\s*\w+\s+\*?\w+\.(\w+)Handler\b"),
        inherit_start_indent=True,
    ),
    AnchorKind.REPOSITORY_SETUP: _S(
        AnchorKind.REPOSITORY_SETUP,
        start=re.compile(r"^func \(c \*Container\) setupRepositories\(\) \{$"),
        end_mode=RegionEnd.BRACE,
        entry=re.compile(r"^\s*c\.(\w+?)Repo\s*="),
    ),
    AnchorKind.USECASE_SETUP: _S(
        AnchorKind.USECASE_SETUP,
        start=re.compile(r"^func \(c \*Container\) setupUseCases\(\) \{$"),
        end_mode=RegionEnd.BRACE,
        entry=re.compile(r"^\s*c\.(\w+?)UC\s*="),
    ),
    AnchorKind.HANDLER_SETUP: _S(
        AnchorKind.HANDLER_SETUP,
        start=re.compile(r"^func \(c \*Container\) setupHandlers\(\) \{$"),
        end_mode=RegionEnd.BRACE,
        entry=re.compile(r"^\s*c\.(\w+?)Handler\s*="),
    ),
    AnchorKind.GETTERS: _S(
        AnchorKind.GETTERS,
        start=re.compile(r"^// Getters\s*$"),
        end_mode=RegionEnd.EOF,
        entry=re.compile(r"^func \(c \*Container\) (\w+?)(?:Repository|UseCase|Handler)\(\)"),
        block=True,
        inherit_start_indent=True,
    ),
    AnchorKind.AUTOMIGRATE: _S(
        AnchorKind.AUTOMIGRATE,
        start=re.compile(r"^\s*if err := db\.AutoMigrate\($"),
        end_mode=RegionEnd.PATTERN,
        end=re.compile(r"^\s*\); err != nil \{"),
        entry=re.compile(r"^\s*&\w+\.(\w+)\{\},?\s*$"),
        default_indent="\t\t",
    ),
    AnchorKind.ROUTES: _S(
        AnchorKind.ROUTES,
        start=re.compile(r"^\s*router := mux\.NewRouter\(\)"),
        end_mode=RegionEnd.PATTERN,
        end=re.compile(
            r"^\s*(?:server := &http\.Server|log\.Printf\(\"Server starting"
            r"|log\.Fatal\(http\.ListenAndServe)"
        ),
        entry=re.compile(r"^\s*// (\w+) routes\s*$"),
        block=True,
        inherit_start_indent=True,
    ),
}


# ---------------------------------------------------------------------------
# Fragment catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FragmentSpec:
    """One wiring fragment: where it goes and what proves it is present."""

    kind: AnchorKind
    aggregator: AggregatorKind
    template: str
    signature: str          # format string over {T} (type) and {v} (variable)
    requires: Tuple[Layer, ...]
    package: str = ""       # key of the Go package the fragment references
    http_only: bool = False
    sql_only: bool = False


_F = FragmentSpec

FRAGMENT_SPECS: Tuple[FragmentSpec, ...] = (
    _F(AnchorKind.REPOSITORY_FIELDS, AggregatorKind.CONTAINER, "wiring/repository_field.j2",
       r"\.{T}Repository\b", (Layer.REPOSITORY,), "repository"),
    _F(AnchorKind.USECASE_FIELDS, AggregatorKind.CONTAINER, "wiring/usecase_field.j2",
       r"\.{T}UseCase\b", (Layer.USECASE,), "usecase"),
    _F(AnchorKind.HANDLER_FIELDS, AggregatorKind.CONTAINER, "wiring/handler_field.j2",
       r"\.{T}Handler\b", (Layer.HANDLER, Layer.USECASE), "http", http_only=True),
    _F(AnchorKind.REPOSITORY_SETUP, AggregatorKind.CONTAINER, "wiring/repository_setup.j2",
       r"\bc\.{v}Repo\s*=", (Layer.REPOSITORY,), "repository"),
    _F(AnchorKind.USECASE_SETUP, AggregatorKind.CONTAINER, "wiring/usecase_setup.j2",
       r"\bc\.{v}UC\s*=", (Layer.USECASE, Layer.REPOSITORY), "usecase"),
    _F(AnchorKind.HANDLER_SETUP, AggregatorKind.CONTAINER, "wiring/handler_setup.j2",
       r"\bc\.{v}Handler\s*=", (Layer.HANDLER, Layer.USECASE), "http", http_only=True),
    _F(AnchorKind.GETTERS, AggregatorKind.CONTAINER, "wiring/repository_getter.j2",
       r"^func \(c \*Container\) {T}Repository\(\)", (Layer.REPOSITORY,), "repository"),
    _F(AnchorKind.GETTERS, AggregatorKind.CONTAINER, "wiring/usecase_getter.j2",
       r"^func \(c \*Container\) {T}UseCase\(\)", (Layer.USECASE,), "usecase"),
    _F(AnchorKind.GETTERS, AggregatorKind.CONTAINER, "wiring/handler_getter.j2",
       r"^func \(c \*Container\) {T}Handler\(\)", (Layer.HANDLER, Layer.USECASE), "http",
       http_only=True),
    _F(AnchorKind.AUTOMIGRATE, AggregatorKind.ENTRY_POINT, "wiring/automigrate.j2",
       r"&\w+\.{T}\{{\}}", (Layer.DOMAIN,), "domain", sql_only=True),
    _F(AnchorKind.ROUTES, AggregatorKind.ENTRY_POINT, "wiring/routes.j2",
       r"\bcontainer\.{T}Handler\(\)", (Layer.HANDLER, Layer.USECASE), http_only=True),
)


def fragment_signature(spec: FragmentSpec, names: NameSet) -> str:
    """Regex that matches the fragment of *spec* for one entity."""
    return spec.signature.format(
        T=re.escape(names.type_name),
        v=re.escape(names.variable_name),
    )


def applicable_specs(
    model: EntityModel,
    aggregator: AggregatorKind,
) -> List[FragmentSpec]:
    """Fragment specs that apply to *model* (HTTP-only ones need HTTP, SQL-only ones SQL)."""
    has_http: bool = HandlerKind.HTTP in model.target_handlers
    is_sql: bool = model.target_database.is_sql
    return [
        s for s in FRAGMENT_SPECS
        if s.aggregator is aggregator
        and (has_http or not s.http_only)
        and (is_sql or not s.sql_only)
    ]


# ---------------------------------------------------------------------------
# Fragments & results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WiringFragment:
    """Rendered fragment text ready to splice."""

    kind: AnchorKind
    text: str
    signature: str
    key: str
    label: str = ""

    @classmethod
    def for_import(cls, import_path: str) -> "WiringFragment":
        return cls(
            kind=AnchorKind.IMPORTS,
            text=f'"{import_path}"',
            signature=f'"{re.escape(import_path)}"',
            key=import_path,
            label=f"import {import_path}",
        )


@dataclass(frozen=True, slots=True)
class AggregatorAnchor:
    """Where a fragment landed (or already was)."""

    kind: AnchorKind
    path: str
    line: int
    entity: str


class IntegrationStatus(str, Enum):
    INSERTED = "inserted"
    ALREADY_PRESENT = "already_present"


@dataclass(frozen=True, slots=True)
class IntegrationResult:
    anchor: AggregatorAnchor
    status: IntegrationStatus
    label: str = ""

    @property
    def inserted(self) -> bool:
        return self.status is IntegrationStatus.INSERTED


@dataclass(slots=True)
class AggregatorUpdate:
    """Outcome of applying every fragment of one entity to one file."""

    path: str
    results: List[IntegrationResult] = field(default_factory=list)
    outcome: Optional[WriteOutcome] = None
    created: bool = False

    @property
    def changed(self) -> bool:
        return any(r.inserted for r in self.results)

    @property
    def backup_path(self) -> Optional[str]:
        return self.outcome.backup_path if self.outcome else None


# ---------------------------------------------------------------------------
# Region helpers
# ---------------------------------------------------------------------------


def _indent_of(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def _is_comment(line: str) -> bool:
    return line.strip().startswith("//")


def _normalize_key(key: str) -> str:
    return key.replace("_", "").lower()


def locate_region(
    lines: Sequence[str],
    spec: AnchorSpec,
    path: str,
) -> Tuple[int, int]:
    """
    ``(start, end)`` line indexes of the region of *spec*.

    ``start`` is the anchor line itself; the region body is
    ``lines[start + 1:end]``.

    Raises:
        AnchorNotFoundError: The anchor line, or its closing line, is missing.
    """
    start: Optional[int] = next(
        (i for i, line in enumerate(lines) if spec.start.search(line)), None
    )
    if start is None:
        raise AnchorNotFoundError(path, spec.kind.value)

    if spec.end_mode is RegionEnd.EOF:
        return start, len(lines)

    for i in range(start + 1, len(lines)):
        line: str = lines[i]
        stripped: str = line.strip()
        if spec.end_mode is RegionEnd.SECTION:
            if not stripped or stripped.startswith("//") or stripped.startswith("}"):
                return start, i
        elif spec.end_mode is RegionEnd.BRACE:
            if line.rstrip() == "}":
                return start, i
        elif spec.end is not None and spec.end.search(line):
            return start, i

    if spec.end_mode is RegionEnd.SECTION:
        return start, len(lines)
    raise AnchorNotFoundError(path, spec.kind.value)


def _insertion_index(
    lines: Sequence[str],
    spec: AnchorSpec,
    start: int,
    end: int,
    key: str,
) -> Tuple[int, bool]:
    """Index to insert at, and whether the insertion lands before an entry."""
    new_key: str = _normalize_key(key)
    for i in range(start + 1, end):
        match = spec.entry.search(lines[i])
        if match and _normalize_key(match.group(1)) > new_key:
            return i, True

    last: int = start
    for i in range(start + 1, end):
        if lines[i].strip():
            last = i
    return last + 1, False


def _region_indent(lines: Sequence[str], spec: AnchorSpec, start: int, end: int) -> str:
    for i in range(start + 1, end):
        if lines[i].strip():
            return _indent_of(lines[i])
    if spec.inherit_start_indent:
        return _indent_of(lines[start])
    return spec.default_indent


# ---------------------------------------------------------------------------
# AggregatorIntegrator
# ---------------------------------------------------------------------------


class AggregatorIntegrator:
    """
    Anchor-and-splice updates of aggregator files.

    Usage::

        integrator = AggregatorIntegrator(guard)
        update = integrator.apply(
            "internal/di/container.go", "Order", fragments, skeleton=text,
        )
    """

    def __init__(self, guard: ConflictGuard) -> None:
        self.guard: ConflictGuard = guard

    # -----------------------------------------------------------------
    # Pure text transformation
    # -----------------------------------------------------------------

    def splice(
        self,
        text: str,
        path: str,
        entity_name: str,
        fragments: Iterable[WiringFragment],
    ) -> Tuple[str, List[IntegrationResult]]:
        """
        Apply *fragments* to *text* in order.

        Raises:
            AnchorNotFoundError: Any fragment's anchor is missing; no partial
                result is returned.
        """
        lines: List[str] = text.split("\n")
        results: List[IntegrationResult] = []

        for fragment in fragments:
            spec: AnchorSpec = ANCHOR_SPECS[fragment.kind]
            start, end = locate_region(lines, spec, path)
            signature = re.compile(fragment.signature)

            existing: Optional[int] = next(
                (
                    i for i in range(start + 1, end)
                    if not _is_comment(lines[i]) and signature.search(lines[i])
                ),
                None,
            )
            if existing is not None:
                results.append(IntegrationResult(
                    AggregatorAnchor(fragment.kind, path, existing + 1, entity_name),
                    IntegrationStatus.ALREADY_PRESENT,
                    fragment.label,
                ))
                continue

            indent: str = _region_indent(lines, spec, start, end)
            body: List[str] = [
                f"{indent}{line}" if line.strip() else ""
                for line in fragment.text.split("\n")
            ]
            index, before_entry = _insertion_index(lines, spec, start, end, fragment.key)

            if spec.block:
                if before_entry:
                    body = body + [""]
                elif index - 1 > start and lines[index - 1].strip():
                    body = [""] + body

            lines[index:index] = body
            line_no: int = index + (1 if body and not body[0] else 0) + 1
            results.append(IntegrationResult(
                AggregatorAnchor(fragment.kind, path, line_no, entity_name),
                IntegrationStatus.INSERTED,
                fragment.label,
            ))
            logger.debug("Spliced %s into %s at line %d.", fragment.label, path, line_no)

        return "\n".join(lines), results

    # -----------------------------------------------------------------
    # File-level operations
    # -----------------------------------------------------------------

    def apply(
        self,
        aggregator_path: str,
        entity_name: str,
        fragments: Sequence[WiringFragment],
        skeleton: Optional[str] = None,
    ) -> AggregatorUpdate:
        """
        Splice *fragments* into one aggregator and write it at most once.

        A missing aggregator is created from *skeleton*.  When every fragment
        is already present nothing is written.

        Raises:
            AnchorNotFoundError: An anchor is missing (file untouched).
            WriteError: The aggregator is missing and no skeleton was given,
                or the write itself failed.
        """
        created: bool = not self.guard.exists(aggregator_path)
        if created:
            if skeleton is None:
                raise WriteError(aggregator_path, "aggregator file is missing")
            original: str = skeleton
        else:
            try:
                original = read_text(self.guard.resolve(aggregator_path))
            except (OSError, UnicodeDecodeError) as exc:
                raise WriteError(aggregator_path, f"cannot read aggregator: {exc}") from exc

        updated, results = self.splice(original, aggregator_path, entity_name, fragments)
        update: AggregatorUpdate = AggregatorUpdate(
            path=aggregator_path, results=results, created=created,
        )

        if not created and updated == original:
            logger.info("%s already wires %s; nothing to do.", aggregator_path, entity_name)
            return update

        update.outcome = self.guard.write(
            aggregator_path,
            updated,
            OverwritePolicy.BACKUP_THEN_OVERWRITE,
            honor_user_owned=False,
        )
        logger.info(
            "%s %s: %d fragment(s) inserted for %s.",
            "Created" if created else "Updated",
            aggregator_path,
            sum(1 for r in results if r.inserted),
            entity_name,
        )
        return update

    def integrate(
        self,
        aggregator_path: str,
        entity_name: str,
        fragment: WiringFragment,
    ) -> IntegrationResult:
        """Single-fragment form of ``apply``; the file must exist."""
        update: AggregatorUpdate = self.apply(aggregator_path, entity_name, [fragment])
        return update.results[0]


# ---------------------------------------------------------------------------
# Feature discovery
# ---------------------------------------------------------------------------

_STRUCT_RE: "re.Pattern[str]" = re.compile(r"^type (\w+) struct \{", re.MULTILINE)
_SKIPPED_DOMAIN_FILES: Tuple[str, ...] = ("errors.go", "validations.go", "common.go")


def detect_features(project_root: Path, layout: ProjectLayout) -> List[str]:
    """
    Entity type names found in the domain directory.

    A file ``order.go`` counts when it declares ``type Order struct``;
    helpers, seed and test files are ignored.
    """
    domain_dir: Path = Path(project_root).joinpath(*layout.domain_dir.split("/"))
    if not domain_dir.is_dir():
        logger.warning("Domain directory %s does not exist.", domain_dir)
        return []

    found: List[str] = []
    for go_file in sorted(domain_dir.glob("*.go")):
        name: str = go_file.name
        if (
            name in _SKIPPED_DOMAIN_FILES
            or name.endswith("_test.go")
            or name.endswith("_seeds.go")
        ):
            continue
        try:
            source: str = read_text(go_file)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable domain file %s: %s", go_file, exc)
            continue
        for type_name in _STRUCT_RE.findall(source):
            if to_snake_case(type_name) == go_file.stem:
                found.append(type_name)
                break

    logger.info("Detected %d feature(s) in %s.", len(found), layout.domain_dir)
    return found


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ANCHOR_SPECS",
    "AggregatorAnchor",
    "AggregatorIntegrator",
    "AggregatorKind",
    "AggregatorUpdate",
    "AnchorKind",
    "AnchorSpec",
    "FRAGMENT_SPECS",
    "FragmentSpec",
    "IntegrationResult",
    "IntegrationStatus",
    "RegionEnd",
    "WiringFragment",
    "applicable_specs",
    "detect_features",
    "fragment_signature",
    "locate_region",
]

logger.debug("goscaffold.integrator loaded — %d public symbols.", len(__all__))
