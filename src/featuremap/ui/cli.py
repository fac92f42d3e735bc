"""Command-line interface router for featuremap."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog

from featuremap.analysis.syntax import ProjectLoadError
from featuremap.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
    normalize_paths,
)
from featuremap.observability import setup_logging
from featuremap.pipeline import (
    FeatureMapWriteError,
    PipelineOptions,
    PipelineResult,
    collect_source_files,
    generate_feature_map,
    run_reference_analysis,
)
from featuremap.ui.render import CLIRenderer, create_renderer


class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    def __init__(self, message: str, exit_code: int = 4) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="featuremap",
        description=(
            "featuremap: annotation and reference based feature maps for TypeScript monorepos.\n\n"
            "Common workflows:\n"
            "  featuremap build             Generate docs/portal/feature-map.json\n"
            "  featuremap analyze           Show inferred component/action/module usage\n"
            "  featuremap config            Print the effective configuration\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--project",
        dest="project_root",
        default=".",
        help="Monorepo root directory (default: current working directory).",
    )
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to a TOML or YAML config (default: featuremap.toml in the project if present).",
    )
    common.add_argument(
        "--tsconfig",
        default=None,
        help="Compiler config for alias resolution, relative to the project root.",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show detailed output and DEBUG logs.",
    )
    common.add_argument("--json", action="store_true", help="Emit deterministic JSON output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # build ---------------------------------------------------------------
    build_parser_ = subparsers.add_parser(
        "build",
        parents=[common],
        help="Generate the feature map artifact",
        description=(
            "Extract annotations, infer references, merge, and write feature-map.json.\n\n"
            "Examples:\n"
            "  featuremap build\n"
            "  featuremap build --project ../monorepo --output docs/portal\n"
            "  featuremap build --dry-run --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    build_parser_.add_argument(
        "--output",
        default=None,
        help="Output directory, relative to the project root (default: docs/portal).",
    )
    build_parser_.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline without writing the artifact.",
    )
    build_parser_.set_defaults(handler=_cmd_build)

    # analyze -------------------------------------------------------------
    analyze_parser = subparsers.add_parser(
        "analyze",
        parents=[common],
        help="Run reference analysis only",
        description=(
            "Parse collected TypeScript files and report verified usages per file.\n\n"
            "Examples:\n"
            "  featuremap analyze\n"
            "  featuremap analyze --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    analyze_parser.set_defaults(handler=_cmd_analyze)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Print the effective configuration",
        description=(
            "Show configuration after defaults, file, FEATUREMAP_* env, and CLI overrides.\n\n"
            "Examples:\n"
            "  featuremap config\n"
            "  FEATUREMAP_ANALYSIS_READ_CONCURRENCY=2 featuremap config --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_build(args: argparse.Namespace) -> int:
    project_root = _project_root(args)
    config = _load_effective_config(args, project_root)
    options = PipelineOptions.from_config(config, project_root)

    with _logging_session(args, config, project_root) as logger:
        try:
            result = generate_feature_map(options, write=not args.dry_run, logger=logger)
        except ProjectLoadError as exc:
            raise CLIError(str(exc), exit_code=2) from exc
        except FeatureMapWriteError as exc:
            raise CLIError(str(exc), exit_code=4) from exc

    if args.json:
        _emit_json({"command": "build", "dry_run": bool(args.dry_run), **result.summary()})
        return 0

    _render_build(_get_renderer(args), result, project_root)
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    project_root = _project_root(args)
    config = _load_effective_config(args, project_root)
    options = PipelineOptions.from_config(config, project_root)

    with _logging_session(args, config, project_root) as logger:
        files = collect_source_files(options)
        try:
            analysis = run_reference_analysis(options, files, logger=logger)
        except ProjectLoadError as exc:
            raise CLIError(str(exc), exit_code=2) from exc

    if args.json:
        _emit_json({"command": "analyze", "files": len(files), **analysis.to_dict()})
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Files collected", len(files))
    renderer.kv("Files with references", len(analysis.file_usages))
    rows = [
        (
            path,
            ", ".join(usage.used_components) or "-",
            ", ".join(usage.used_actions) or "-",
            ", ".join(usage.used_modules) or "-",
        )
        for path, usage in analysis.file_usages.items()
    ]
    renderer.table(("File", "Components", "Actions", "Modules"), rows, title="Usages:")
    if renderer.verbose and analysis.reverse_refs.module_path_to_files:
        renderer.section("Module paths:")
        renderer.items(
            [
                f"{module_path} <- {', '.join(referrers)}"
                for module_path, referrers in analysis.reverse_refs.module_path_to_files.items()
            ]
        )
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    project_root = _project_root(args)
    config = normalize_paths(_load_effective_config(args, project_root), base_dir=project_root)

    if args.json:
        _emit_json({"command": "config", "project_root": project_root.as_posix(), "config": config})
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Project root", project_root.as_posix())
    renderer.text(dump_effective_config(config, indent=2))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(verbose=bool(getattr(args, "verbose", False)))


def _render_build(renderer: CLIRenderer, result: PipelineResult, project_root: Path) -> None:
    summary = result.summary()
    if result.output_path is None:
        renderer.heading("Feature map generated (dry run, nothing written)")
    else:
        renderer.heading(f"Feature map written: {_display_path(result.output_path, project_root)}")
    renderer.kv("Files scanned", summary["files"])
    if not summary["files"]:
        renderer.warning("no source files matched the include globs")
    renderer.kv("Items", summary["items"])
    renderer.kv("Features", summary["features"])
    renderer.kv("Apps", ", ".join(result.feature_map.apps) or "(none)")
    renderer.counts("Merged references:", result.merge_stats.to_dict())

    if renderer.verbose:
        per_feature = {name: len(group) for name, group in result.feature_map.features.items()}
        if len(result.feature_map.uncategorized):
            per_feature["(uncategorized)"] = len(result.feature_map.uncategorized)
        renderer.counts("Items per feature:", per_feature)


@contextmanager
def _logging_session(
    args: argparse.Namespace, config: Mapping[str, Any], project_root: Path
) -> Iterator[Any]:
    observability = normalize_paths(config, base_dir=project_root)["observability"]
    handle = setup_logging(observability, verbose=bool(args.verbose))
    try:
        yield structlog.get_logger("featuremap.cli").bind(command=args.command)
    finally:
        handle.shutdown()


def _project_root(args: argparse.Namespace) -> Path:
    candidate = Path(str(args.project_root)).expanduser().resolve()
    if not candidate.is_dir():
        raise CLIError(f"project root is not a directory: {candidate}", exit_code=2)
    return candidate


def _load_effective_config(args: argparse.Namespace, project_root: Path) -> dict[str, Any]:
    overrides: dict[str, object] = {
        "feature_map.output_dir": getattr(args, "output", None),
        "analysis.tsconfig": getattr(args, "tsconfig", None),
    }
    try:
        return load_config(args.config_path, search_dir=project_root, cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _display_path(path: Path, project_root: Path) -> str:
    try:
        return path.resolve().relative_to(project_root).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = ["CLIError", "build_parser", "run_cli"]
