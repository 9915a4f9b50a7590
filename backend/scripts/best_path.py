from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from typing import Any, TextIO

from pathgraph.cost import AdvanceCost
from pathgraph.errors import SnapshotDecodeError
from pathgraph.graph import Graph
from pathgraph.samples import Elapsed, Letter, Weight
from pathgraph.search import search
from pathgraph.snapshot import decode_graph, load_graph


def _load(path: str | None, stdin: TextIO, state_type: Any, cost_model: AdvanceCost | None) -> Graph[Any, Weight]:
    if path is None or path == "-":
        return decode_graph(stdin.read(), state_type, Weight, cost_model=cost_model)
    return load_graph(path, state_type, Weight, cost_model=cost_model)


def run_best_path(args: argparse.Namespace, *, stdin: TextIO | None = None) -> dict[str, Any]:
    graph = _load(
        args.graph,
        stdin if stdin is not None else sys.stdin,
        Elapsed if args.advance else Letter,
        AdvanceCost() if args.advance else None,
    )
    result = search(
        graph,
        args.source,
        args.targets,
        workers=args.workers,
        early_exit=False if args.no_early_exit else None,
    )
    payload: dict[str, Any] = {
        "source": args.source,
        "targets": list(args.targets),
        "reachable": result.reachable,
        "path": result.path,
        "target": result.target,
        "cost": None if result.path is None else float(graph.cost(result.path)),
        "settled": result.settled,
        "termination_reason": result.termination_reason,
    }
    if args.advance and result.target is not None:
        payload["target_state_cost"] = graph.state(result.target).cost()
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find the cheapest path from a source to any of several targets.")
    parser.add_argument("--graph", default=None, help="Snapshot JSON file; stdin when omitted or '-'.")
    parser.add_argument("--source", type=int, default=0)
    parser.add_argument("--targets", type=int, nargs="+", required=True)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--no-early-exit", action="store_true")
    parser.add_argument("--advance", action="store_true", help="Treat node states as elapsed-cost Advance states.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    try:
        payload = run_best_path(args)
    except SnapshotDecodeError as e:
        print(json.dumps({"error": e.reason_code, "message": e.message}), file=sys.stderr)
        return 2
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
