"""CLI entrypoint for addonmap scans."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging
from .orchestrator import DEFAULT_REPO, Orchestrator
from .repo_scanner import FatalInputError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="addonmap",
        description="Mine an addon repository into module, model, security, UI and route maps.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--workspace",
        default=".",
        help="Workspace root holding repositories/ (defaults to current directory).",
    )
    parser.add_argument(
        "--repo",
        default=DEFAULT_REPO,
        help="Repository name under <workspace>/repositories (default: %(default)s).",
    )
    parser.add_argument(
        "--repo-path",
        default=None,
        help="Explicit repository path, absolute or relative to the workspace.",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Artifact directory, absolute or relative to the workspace.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parse files with this many threads (default: from config, else 1).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for addonmap."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    orchestrator = Orchestrator()
    try:
        outcome = orchestrator.run(
            args.workspace,
            repo=args.repo,
            repo_path=args.repo_path,
            output_dir=args.output_dir,
            workers=args.workers,
        )
    except FatalInputError as exc:
        parser.exit(1, f"{exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(1, f"addonmap scan failed: {exc}\nRun with --verbose for more details.\n")

    metrics = outcome.metrics
    print("Addon business context generated")
    print(f"- workspace: {outcome.workspace}")
    print(f"- repository: {outcome.repository}")
    print(f"- modules_detected: {metrics.get('modules', 0)}")
    print(f"- orm_models_detected: {metrics.get('orm_models', 0)}")
    print(f"- acl_entries: {metrics.get('acl_entries', 0)}")
    print(f"- inherited_views: {metrics.get('inherited_views', 0)}")
    print(f"- routes_detected: {metrics.get('routes', 0)}")
    print(f"- confidence_score: {outcome.confidence_score}")
    for artifact in outcome.artifacts:
        print(f"- artifact_json: {_relativize(artifact.json_path)}")
        print(f"- artifact_md: {_relativize(artifact.md_path)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
