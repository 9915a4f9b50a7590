from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pathgraph.samples import grid3d, random_sample
from pathgraph.snapshot import dump_graph, encode_graph


def run_generate(args: argparse.Namespace) -> dict[str, Any]:
    if args.kind == "grid3d":
        graph = grid3d(args.grid_size, seed=args.seed)
    else:
        graph = random_sample(args.node_count, args.edge_count, seed=args.seed)
    if args.output:
        path = dump_graph(graph, Path(args.output), indent=args.indent)
        return {
            "kind": args.kind,
            "output": str(path),
            "node_count": graph.num_nodes(),
            "edge_count": graph.num_edges(),
            "size_bytes": path.stat().st_size,
        }
    return {"kind": args.kind, "snapshot": encode_graph(graph, indent=args.indent)}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a sample graph snapshot.")
    parser.add_argument("--kind", choices=("random", "grid3d"), default="random")
    parser.add_argument("--node-count", type=int, default=None)
    parser.add_argument("--edge-count", type=int, default=None)
    parser.add_argument("--grid-size", type=int, default=10)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--indent", type=int, default=None)
    parser.add_argument("--output", default=None, help="Write here instead of stdout.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    record = run_generate(args)
    if "snapshot" in record:
        print(record["snapshot"])
    else:
        print(json.dumps(record, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
