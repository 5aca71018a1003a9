"""
JoinRender - Command line entry point.

Verbs:
- validate: report structural problems in a workflow file
- convert: translate between the native and interchange formats
- order: print the execution order
- nodes: list registered node kinds
- run: execute a workflow with the local executors, optionally saving
  image outputs to files
- templates: list the built-in templates or write one to a file
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from joinrender.core.errors import WorkflowError
from joinrender.core.execution import ExecutionCallbacks, get_execution_order, get_unscheduled_nodes
from joinrender.core.media import data_url_to_image, is_data_url
from joinrender.core.node_types import NodeCategory
from joinrender.core.session import WorkflowSession
from joinrender.core.settings import load_settings
from joinrender.core.workflow_io import WorkflowFormat
from joinrender.templates import TEMPLATES

logger = logging.getLogger(__name__)


def _session(args: argparse.Namespace) -> WorkflowSession:
    settings = load_settings(Path(args.config) if args.config else None)
    return WorkflowSession(settings, load_user_nodes=not args.no_user_nodes)


def cmd_validate(args: argparse.Namespace) -> int:
    session = _session(args)
    session.load(Path(args.file))
    result = session.validate()

    for issue in result.errors:
        print(f"error: {issue.message}")
    for issue in result.warnings:
        print(f"warning: {issue.message}")
    print(f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)")
    return 0 if result.valid else 1


def cmd_convert(args: argparse.Namespace) -> int:
    session = _session(args)
    session.load(Path(args.file))
    fmt = WorkflowFormat(args.to)

    if args.output:
        session.save(Path(args.output), fmt)
    else:
        json.dump(session.export(fmt), sys.stdout, indent=2, ensure_ascii=False)
        print()
    return 0


def cmd_order(args: argparse.Namespace) -> int:
    session = _session(args)
    graph = session.load(Path(args.file))

    for index, node_id in enumerate(get_execution_order(graph), start=1):
        print(f"{index:3d}. {graph.nodes[node_id].kind} ({node_id})")
    skipped = get_unscheduled_nodes(graph)
    if skipped:
        print(f"skipped (cycle): {', '.join(skipped)}")
    return 0


def cmd_nodes(args: argparse.Namespace) -> int:
    session = _session(args)
    if args.kind:
        definition = session.registry.require(args.kind)
        print(f"{definition.kind}: {definition.name}")
        for spec in definition.inputs:
            print(f"  in  {spec.name} ({spec.type.value})")
        for spec in definition.outputs:
            print(f"  out {spec.name} ({spec.type.value})")
        return 0

    if args.search:
        definitions = session.registry.search(args.search)
    elif args.category:
        definitions = session.registry.list_by_category(NodeCategory(args.category))
    else:
        definitions = session.registry.get_all()

    for definition in sorted(definitions, key=lambda d: (d.category.value, d.kind)):
        print(f"{definition.category.value:14s} {definition.kind:28s} {definition.name}")
    return 0


def _save_images(graph, outputs: dict, directory: Path) -> list[Path]:
    """Decode image-output results held as data URLs into files."""
    directory.mkdir(parents=True, exist_ok=True)
    saved = []
    for node_id, output in outputs.items():
        node = graph.get_node(node_id)
        url = output.get("result") if node is not None and node.kind == "image-output" else None
        if not is_data_url(url):
            continue
        try:
            image = data_url_to_image(url)
        except ValueError as e:
            logger.warning("Not saving output of %s: %s", node_id, e)
            continue
        path = directory / f"{node_id}.{(image.format or 'png').lower()}"
        image.save(path)
        saved.append(path)
    return saved


def cmd_run(args: argparse.Namespace) -> int:
    session = _session(args)
    session.load(Path(args.file))

    failures: list[str] = []

    def on_progress(node_id: str, percent: int, message: str) -> None:
        logger.info("%s %3d%% %s", node_id, percent, message)

    def on_error(node_id: str, message: str) -> None:
        failures.append(node_id)
        print(f"failed: {node_id}: {message}", file=sys.stderr)

    outputs = asyncio.run(session.run(ExecutionCallbacks(on_progress=on_progress, on_error=on_error)))
    if args.save_images:
        for path in _save_images(session.graph, outputs, Path(args.save_images)):
            print(f"saved: {path}", file=sys.stderr)
    json.dump(outputs, sys.stdout, indent=2, ensure_ascii=False, default=str)
    print()
    return 1 if failures else 0


def cmd_templates(args: argparse.Namespace) -> int:
    if not args.template:
        for template in TEMPLATES.values():
            print(f"{template.id:20s} {template.name}: {template.description}")
        return 0

    session = _session(args)
    session.load_template(args.template)
    fmt = WorkflowFormat(args.to)
    if args.output:
        session.save(Path(args.output), fmt)
    else:
        json.dump(session.export(fmt), sys.stdout, indent=2, ensure_ascii=False)
        print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="joinrender",
        description="Validate, convert and run node-graph workflows",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", help="Settings file (default: ~/.config/joinrender/settings.json)")
    parser.add_argument(
        "--no-user-nodes",
        action="store_true",
        help="Do not load custom nodes and plugins from the user config",
    )

    sub = parser.add_subparsers(dest="verb", required=True)

    p = sub.add_parser("validate", help="Validate a workflow file")
    p.add_argument("file")
    p.set_defaults(handler=cmd_validate)

    p = sub.add_parser("convert", help="Convert a workflow between formats")
    p.add_argument("file")
    p.add_argument("--to", choices=[f.value for f in WorkflowFormat], required=True)
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.set_defaults(handler=cmd_convert)

    p = sub.add_parser("order", help="Print the execution order")
    p.add_argument("file")
    p.set_defaults(handler=cmd_order)

    p = sub.add_parser("nodes", help="List node kinds")
    p.add_argument("--category", choices=[c.value for c in NodeCategory])
    p.add_argument("--kind", help="Show the ports of one node kind")
    p.add_argument("--search", help="Match kind, name or description")
    p.set_defaults(handler=cmd_nodes)

    p = sub.add_parser("run", help="Run a workflow with the local executors")
    p.add_argument("file")
    p.add_argument("--save-images", metavar="DIR", help="Write image outputs held as data URLs to DIR")
    p.set_defaults(handler=cmd_run)

    p = sub.add_parser("templates", help="List templates or write one out")
    p.add_argument("template", nargs="?", help="Template id to write")
    p.add_argument("--to", choices=[f.value for f in WorkflowFormat], default=WorkflowFormat.NATIVE.value)
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.set_defaults(handler=cmd_templates)

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the joinrender CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return args.handler(args)
    except (OSError, WorkflowError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
