"""CLI entrypoints for signalgraph commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .config import ConfigError
from .logging import configure_logging
from .orchestrator import Orchestrator, to_jsonable
from .graph.serializer import graph_to_dict
from .scanner import ScanError


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
        help="Path to the Godot project root (defaults to current directory).",
    )


def _add_min_confidence_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Only report results at or above this confidence (0.0-1.0).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signalgraph",
        description="Analyse the signal graph of a Godot project.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write DEBUG logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    graph_parser = subparsers.add_parser("graph", help="Print the project's signal graph.")
    _add_verbose_option(graph_parser, suppress_default=True)
    _add_path_argument(graph_parser)

    unused_parser = subparsers.add_parser("unused", help="Report signals that are never used.")
    _add_verbose_option(unused_parser, suppress_default=True)
    _add_path_argument(unused_parser)
    _add_min_confidence_option(unused_parser)

    refactor_parser = subparsers.add_parser(
        "refactor", help="Suggest merges of near-duplicate signals and naming fixes."
    )
    _add_verbose_option(refactor_parser, suppress_default=True)
    _add_path_argument(refactor_parser)
    _add_min_confidence_option(refactor_parser)

    clusters_parser = subparsers.add_parser("clusters", help="Cluster related signals.")
    _add_verbose_option(clusters_parser, suppress_default=True)
    _add_path_argument(clusters_parser)
    clusters_parser.add_argument(
        "--depth",
        type=int,
        choices=(1, 2),
        default=None,
        help="1 for flat clusters, 2 to also split large clusters (defaults to config).",
    )

    report_parser = subparsers.add_parser("report", help="Run every analysis and print one report.")
    _add_verbose_option(report_parser, suppress_default=True)
    _add_path_argument(report_parser)
    _add_min_confidence_option(report_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for signalgraph commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()
    min_confidence = getattr(args, "min_confidence", None)

    try:
        if args.command == "report":
            payload: Any = orchestrator.run(args.path, min_confidence=min_confidence).to_dict()
        else:
            config = orchestrator.load_config(args.path)
            graph = orchestrator.build_graph(args.path, config)
            if args.command == "graph":
                payload = graph_to_dict(graph)
            elif args.command == "unused":
                payload = to_jsonable(orchestrator.find_unused(graph, min_confidence))
            elif args.command == "refactor":
                payload = to_jsonable(orchestrator.suggest_refactorings(graph, min_confidence))
            elif args.command == "clusters":
                if args.depth is not None:
                    config.clustering.depth = args.depth
                payload = to_jsonable(orchestrator.cluster(graph, config))
            else:  # pragma: no cover - argparse enforces choices
                parser.exit(1, "Unknown command\n")
    except (ScanError, ConfigError) as exc:
        parser.exit(1, f"signalgraph {args.command} failed: {exc}\n")

    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main(sys.argv[1:])
