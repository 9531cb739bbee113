# File: goscaffold/cli.py
"""
goscaffold - Command-Line Interface
====================================

Thin ``argparse`` front end over ``ScaffoldGenerator``.

Usage examples::

    # Generate a feature with every layer and wire it in
    goscaffold feature Product --fields "name:string:required,price:float"

    # Preview only, nothing is written
    goscaffold feature Order --fields "total:float" --dry-run

    # Wire every entity found in internal/domain
    goscaffold integrate

    # Report missing wiring for one entity
    goscaffold verify Product

Exit codes:
    0 — success
    1 — field spec or model error
    2 — generation error (render, conflict or write)
    3 — integration error
    4 — input/config error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_MODEL_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_INTEGRATION_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

_MODEL_ERROR_CODES = frozenset({
    "parse_error", "invalid_name", "model_conflict", "unsupported_binding",
})
_GENERATION_ERROR_CODES = frozenset({"render_error", "file_conflict", "write_error"})


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root goscaffold logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("goscaffold")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _handler_list(value: str) -> List[str]:
    from goscaffold.models import HandlerKind

    kinds: List[str] = [v.strip().lower() for v in value.split(",") if v.strip()]
    valid = {h.value for h in HandlerKind}
    unknown: List[str] = [k for k in kinds if k not in valid]
    if unknown:
        raise argparse.ArgumentTypeError(
            f"unknown handler(s) {', '.join(unknown)}; choose from {', '.join(sorted(valid))}"
        )
    return kinds


def _layer_list(value: str) -> List[str]:
    from goscaffold.models import Layer

    layers: List[str] = [v.strip().lower() for v in value.split(",") if v.strip()]
    valid = {layer.value for layer in Layer}
    unknown: List[str] = [item for item in layers if item not in valid]
    if unknown:
        raise argparse.ArgumentTypeError(
            f"unknown layer(s) {', '.join(unknown)}; choose from {', '.join(sorted(valid))}"
        )
    return layers


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from goscaffold import __version__
    from goscaffold.models import Database, OverwritePolicy

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="goscaffold",
        description=(
            "goscaffold — Clean Architecture feature scaffolding for Go services.\n\n"
            "Generates domain, use-case, repository and handler code for an "
            "entity and wires it into the DI container and main.go."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  %(prog)s feature Product --fields "name:string:required,price:float"\n'
            '  %(prog)s feature Order --fields "total:float" --handlers http,grpc\n'
            "  %(prog)s integrate --dry-run\n"
            "  %(prog)s verify Product\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"goscaffold v{__version__}")

    parser.add_argument(
        "-C", "--project-dir",
        type=str,
        default=".",
        metavar="DIR",
        help="Root of the Go project (default: current directory).",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Config file (default: .goscaffold.yaml in the project root).",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v = INFO, -vv = DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output except the final report.",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    # --- feature ---
    feature = sub.add_parser("feature", help="Generate a feature for one entity.")
    feature.add_argument("name", help="Entity name, e.g. Product or order_item.")
    feature.add_argument(
        "-f", "--fields",
        required=True,
        metavar="SPEC",
        help='Field spec, e.g. "name:string:required,price:float,sku:string:unique".',
    )
    feature.add_argument(
        "--database",
        choices=[d.value for d in Database],
        default=None,
        help="Target database (default: from config).",
    )
    feature.add_argument(
        "--handlers",
        type=_handler_list,
        default=None,
        metavar="LIST",
        help="Comma-separated handler kinds: http, grpc, cli, worker.",
    )
    feature.add_argument(
        "--layers",
        type=_layer_list,
        default=None,
        metavar="LIST",
        help="Comma-separated subset of layers to generate (default: all).",
    )
    feature.add_argument(
        "--policy",
        choices=[p.value for p in OverwritePolicy],
        default=None,
        help="What to do with existing files (default: from config, else abort).",
    )
    feature.add_argument("--timestamps", action="store_true", default=None,
                         help="Add CreatedAt / UpdatedAt.")
    feature.add_argument("--soft-delete", action="store_true", default=None,
                         help="Add DeletedAt and soft-delete helpers.")
    feature.add_argument("--business-rules", action="store_true", default=None,
                         help="Add rule helpers for well-known field names.")
    feature.add_argument("--no-validation", action="store_true", default=False,
                         help="Skip Validate() generation.")
    feature.add_argument("--no-integrate", action="store_true", default=False,
                         help="Do not touch the DI container or main.go.")
    feature.add_argument("--dry-run", action="store_true", default=False,
                         help="Report what would happen without writing.")
    feature.add_argument("--json", action="store_true", default=False,
                         help="Print the report as JSON.")

    # --- integrate ---
    integrate = sub.add_parser(
        "integrate", help="Wire every entity found in the domain directory.",
    )
    integrate.add_argument("--dry-run", action="store_true", default=False)
    integrate.add_argument("--json", action="store_true", default=False)

    # --- verify ---
    verify = sub.add_parser("verify", help="Report missing wiring for one entity.")
    verify.add_argument("name", help="Entity name.")
    verify.add_argument(
        "--handlers",
        type=_handler_list,
        default=None,
        metavar="LIST",
        help="Handler kinds the entity exposes (default: from config).",
    )

    return parser


# ---------------------------------------------------------------------------
# Report handling
# ---------------------------------------------------------------------------


def exit_code_for(report: Any) -> int:
    """Map a ``GenerationReport`` to the process exit code."""
    if report.success:
        return EXIT_SUCCESS
    codes = {e.code for e in report.errors}
    if codes & _MODEL_ERROR_CODES:
        return EXIT_MODEL_ERROR
    if codes & _GENERATION_ERROR_CODES:
        return EXIT_GENERATION_ERROR
    return EXIT_INTEGRATION_ERROR


def _print_report(report: Any, as_json: bool) -> None:
    if as_json:
        print(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        print(report.summary())


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _run_feature(generator: Any, args: argparse.Namespace) -> int:
    from goscaffold.models import GenerationRequest

    config = generator.config
    feature_updates: Dict[str, bool] = {}
    if args.timestamps:
        feature_updates["timestamps"] = True
    if args.soft_delete:
        feature_updates["soft_delete"] = True
    if args.business_rules:
        feature_updates["business_rules"] = True
    if args.no_validation:
        feature_updates["validation"] = False

    try:
        request: GenerationRequest = GenerationRequest.from_config(
            config,
            args.name,
            args.fields,
            features=config.features.model_copy(update=feature_updates),
            target_database=args.database,
            target_handlers=frozenset(args.handlers) if args.handlers else None,
            overwrite_policy=args.policy,
            layers=tuple(args.layers) if args.layers else None,
            integrate=not args.no_integrate,
            dry_run=args.dry_run,
        )
    except PydanticValidationError as exc:
        logger.error("Invalid request: %s", exc)
        return EXIT_INPUT_ERROR

    if request.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    report = generator.generate(request)
    _print_report(report, args.json)
    return exit_code_for(report)


def _run_integrate(generator: Any, args: argparse.Namespace) -> int:
    report = generator.integrate_existing(dry_run=args.dry_run)
    _print_report(report, args.json)
    return exit_code_for(report)


def _run_verify(generator: Any, args: argparse.Namespace) -> int:
    from goscaffold.builder import build_entity_model
    from goscaffold.errors import GenerationError
    from goscaffold.models import HandlerKind
    from goscaffold.validators import verify_integration

    config = generator.config
    handlers = [HandlerKind(h) for h in args.handlers] if args.handlers else config.handlers
    try:
        model = build_entity_model(args.name, (), config.features, config.database, handlers)
    except GenerationError as exc:
        logger.error("%s", exc.message)
        return EXIT_MODEL_ERROR

    result = verify_integration(generator.project_root, config.layout, model)
    print(result.format_report())
    return EXIT_SUCCESS if result.is_valid else EXIT_INTEGRATION_ERROR


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    from goscaffold.errors import ConfigError
    from goscaffold.generator import ScaffoldGenerator, load_config

    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)

    project_root: Path = Path(args.project_dir).resolve()
    if not project_root.is_dir():
        logger.error("Project directory not found: %s", project_root)
        sys.exit(EXIT_INPUT_ERROR)

    try:
        config = load_config(
            Path(args.config) if args.config else None,
            project_root=project_root,
        )
    except ConfigError as exc:
        logger.error("%s", exc.message)
        sys.exit(EXIT_INPUT_ERROR)

    generator = ScaffoldGenerator(project_root, config)
    logger.info("Project: %s (module %s)", project_root, generator.module_path)

    if args.command == "feature":
        exit_code: int = _run_feature(generator, args)
    elif args.command == "integrate":
        exit_code = _run_integrate(generator, args)
    else:
        exit_code = _run_verify(generator, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Done.")
    else:
        logger.error("Finished with exit code %d.", exit_code)
    sys.exit(exit_code)


def main() -> None:
    """Console-script entry point."""
    cli_main()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "exit_code_for",
    "main",
    "EXIT_SUCCESS",
    "EXIT_MODEL_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_INTEGRATION_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("goscaffold.cli loaded.")
