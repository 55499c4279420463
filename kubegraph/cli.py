"""kubegraph CLI: print the objects related to one Kubernetes object."""

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from typing import BinaryIO

from pydantic import ValidationError

from kubegraph.adapters import KubernetesAdapter
from kubegraph.builder import GraphBuilder
from kubegraph.config import load_options
from kubegraph.errors import KubeGraphError
from kubegraph.formatter import FORMAT_TYPES, write_graph_output
from kubegraph.models import Graph

logger = logging.getLogger(__name__)

EXAMPLES = """
examples:
  # tree of everything related to the service service-foo
  kubegraph service service-foo

  # DOT graph for the ingress ingress-bar, rendered with graphviz
  kubegraph ingress ingress-bar --dot | dot -Tsvg > ingress-bar.svg
"""


def _package_version() -> str:
    try:
        return get_version("kubegraph")
    except PackageNotFoundError:
        return "dev"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubegraph",
        description=(
            "Print a tree or DOT graph of the relationships between a Kubernetes "
            "object and the objects related to it."
        ),
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"kubegraph {_package_version()}")
    parser.add_argument("kind", help="Kind, plural or short name (e.g. svc, deployments.apps)")
    parser.add_argument("name", help="Name of the object")
    parser.add_argument(
        "-n",
        "--namespace",
        default=None,
        help="Namespace of the object (defaults to the kubeconfig context namespace)",
    )
    parser.add_argument(
        "--dot",
        action="store_true",
        help="Print a DOT graph instead of a tree (same as --output dot)",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=FORMAT_TYPES,
        default="tree",
        help="Output format",
    )
    parser.add_argument("--node-cap", type=int, default=None, help="Maximum number of objects")
    parser.add_argument(
        "--concurrency", type=int, default=None, help="Maximum concurrent API calls"
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Deadline for each API call in seconds"
    )
    parser.add_argument("--kubeconfig", default=None, help="Path to the kubeconfig file")
    parser.add_argument("--context", default=None, help="Kubeconfig context to use")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-v info, -vv debug)",
    )
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


async def _build(builder: GraphBuilder, kind: str, namespace: str, name: str) -> Graph:
    """Run a build that Ctrl-C cancels cleanly."""
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    try:
        return await builder.build(kind, namespace, name, cancel_event=cancel_event)
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)


def main(argv: list[str] | None = None, stdout: BinaryIO | None = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = load_options(
            node_cap=args.node_cap,
            concurrency=args.concurrency,
            request_timeout=args.timeout,
        )
    except ValidationError as e:
        print(f"error: invalid options: {e}", file=sys.stderr)
        return 1

    format_type = "dot" if args.dot else args.output

    try:
        adapter = KubernetesAdapter(
            kubeconfig=args.kubeconfig,
            context=args.context,
            request_timeout=options.request_timeout,
        )
        namespace = args.namespace or adapter.default_namespace
        logger.info(f"Building graph for {args.kind}/{args.name} in namespace {namespace}")

        builder = GraphBuilder(adapter, options=options)
        graph = asyncio.run(_build(builder, args.kind, namespace, args.name))
        write_graph_output(graph, stdout or sys.stdout.buffer, format_type)
    except KubeGraphError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    logger.info(f"API calls: {builder.get_api_call_stats()}")
    return 0
