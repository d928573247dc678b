"""CLI entrypoints for testgen commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .analysis.strategy import recommendations
from .errors import ConfigError, EmptyInputError
from .export import export_json, render_test_files, write_test_files
from .logging import configure_logging
from .models import COMPLEXITY_LEVELS, GenerationConfig
from .orchestrator import pipeline_for_path
from .sources.local import LocalRepositorySource


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="testgen",
        description="Generate test cases for a repository from its source files.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Summarise languages, categories and test conventions of a repository.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate test cases for the most relevant files of a repository.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    generate_parser.add_argument(
        "--max-files",
        type=int,
        default=None,
        help="Maximum number of files to analyse (defaults to .testgen.yml or 10).",
    )
    generate_parser.add_argument(
        "--types",
        default=None,
        help="Comma separated test types, e.g. unit,integration.",
    )
    generate_parser.add_argument(
        "--complexity",
        choices=COMPLEXITY_LEVELS,
        default=None,
        help="Depth of the generated tests.",
    )
    generate_parser.add_argument(
        "--framework",
        default=None,
        help="Explicit test framework, or 'auto' to pick per language.",
    )
    generate_parser.add_argument(
        "--no-edge-cases",
        dest="include_edge_cases",
        action="store_false",
        default=None,
        help="Skip edge-case tests.",
    )
    generate_parser.add_argument(
        "--no-negative-tests",
        dest="include_negative_tests",
        action="store_false",
        default=None,
        help="Skip negative tests.",
    )
    generate_parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not call a model; render template test cases only.",
    )
    generate_parser.add_argument(
        "--format",
        choices=("json", "files"),
        default="json",
        help="Print a JSON document or write test files.",
    )
    generate_parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for --format files output (defaults to the repository root).",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def _generation_config(args: argparse.Namespace, defaults: GenerationConfig) -> GenerationConfig:
    overrides = defaults.to_dict()
    if args.types:
        overrides["types"] = args.types
    if args.complexity:
        overrides["complexity"] = args.complexity
    if args.framework:
        overrides["framework"] = args.framework
    if args.include_edge_cases is not None:
        overrides["includeEdgeCases"] = args.include_edge_cases
    if args.include_negative_tests is not None:
        overrides["includeNegativeTests"] = args.include_negative_tests
    return GenerationConfig.from_mapping(overrides)


def _run_analyze(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        pipeline, settings = pipeline_for_path(args.path, offline=True)
        source = LocalRepositorySource(args.path, exclude_paths=settings.exclude_paths)
        analysis = pipeline.analyze(source.list_files())
    except (FileNotFoundError, NotADirectoryError, EmptyInputError) as exc:
        parser.exit(1, f"{exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"testgen analyze failed: {exc}\n")

    strategy = pipeline.selector.resolver.resolve(analysis.project_structure)
    payload = analysis.to_dict()
    payload["testStrategy"] = strategy.to_dict()
    payload["recommendations"] = recommendations(strategy)
    print(json.dumps(payload, indent=2))


def _run_generate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        pipeline, settings = pipeline_for_path(args.path, offline=bool(args.offline))
        config = _generation_config(args, settings.generation)
        max_files = args.max_files if args.max_files is not None else settings.selection.max_files
        result = pipeline.generate_for_path(
            args.path,
            config,
            max_files=max_files,
            exclude_paths=settings.exclude_paths,
        )
    except (FileNotFoundError, NotADirectoryError, EmptyInputError) as exc:
        parser.exit(1, f"{exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"testgen generate failed: {exc}\n")

    if args.format == "files":
        output_dir = Path(args.output_dir) if args.output_dir else settings.root
        files = render_test_files(result.test_cases, result.test_strategy)
        for written in write_test_files(files, output_dir):
            print(f"Wrote {_relativize(written)}")
        if result.fallback_reason:
            print(f"Template fallback used: {result.fallback_reason}", file=sys.stderr)
        return

    print(
        export_json(
            result.test_cases,
            framework=config.explicit_framework,
            structure=result.project_structure,
            strategy=result.test_strategy,
        )
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for testgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "analyze":
        _run_analyze(parser, args)
    elif args.command == "generate":
        _run_generate(parser, args)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
