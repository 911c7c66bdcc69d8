from __future__ import annotations

"""CLI for running a quorumgossip simulation.

Usage example:
    python -m quorumgossip.cli --nodes 30 --p-graph 0.2 --p-malicious 0.3 --rounds 15 --out ./results/run

This prints the agreement summary, writes ``summary.json`` and ``rounds.csv``
to ``--out`` when given, and exits non-zero when the agreement checks fail.
"""

import argparse
import csv
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config import SimulationSettings, get_settings
from .simulation import Simulation, SimulationResult

LOGGER = logging.getLogger(__name__)

# argparse dest -> settings field
_OVERRIDES = {
    "nodes": "num_nodes",
    "p_graph": "p_graph",
    "p_malicious": "p_malicious",
    "p_tx": "p_tx_distribution",
    "rounds": "num_rounds",
    "graph_seed": "graph_seed",
    "adversary_seed": "adversary_seed",
    "workers": "workers",
    "log_level": "log_level",
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Unset flags fall back to ``QUORUMGOSSIP_*`` environment settings.

    Returns:
        Parsed arguments as a namespace.
    """
    parser = argparse.ArgumentParser(description="Simulate quorum gossip among compliant and malicious nodes.")
    parser.add_argument("--nodes", type=int, help="Number of participants")
    parser.add_argument("--p-graph", dest="p_graph", type=float, help="Follow edge probability")
    parser.add_argument("--p-malicious", dest="p_malicious", type=float, help="Fraction of malicious nodes")
    parser.add_argument("--p-tx", dest="p_tx", type=float, help="Transaction distribution probability")
    parser.add_argument("--rounds", type=int, help="Number of rounds to run")
    parser.add_argument("--graph-seed", dest="graph_seed", type=int, help="Seed for graph and seeding draws")
    parser.add_argument("--adversary-seed", dest="adversary_seed", type=int, help="Base seed for adversaries")
    parser.add_argument("--workers", type=int, help="Threads used to process inboxes")
    parser.add_argument("--log-level", dest="log_level", help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--out", dest="output_dir", type=Path, default=None,
                        help="Directory to write summary.json and rounds.csv")
    parser.add_argument("--plot", action="store_true", help="Also save per-round figures to --out")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> SimulationSettings:
    overrides: Dict[str, Any] = {
        field: getattr(args, dest) for dest, field in _OVERRIDES.items() if getattr(args, dest) is not None
    }
    return get_settings(**overrides)


def write_outputs(result: SimulationResult, settings: SimulationSettings, output_dir: Path) -> Path:
    """Write the JSON summary and per-round CSV, returning the JSON path."""
    output_dir.mkdir(parents=True, exist_ok=True)

    data_path = output_dir / "summary.json"
    with data_path.open("w", encoding="utf-8") as f:
        json.dump(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "settings": settings.model_dump(),
                "agreement": result.report.to_dict(),
                "metrics": result.metrics.snapshot(),
            },
            f,
            indent=2,
        )

    with (output_dir / "rounds.csv").open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(result.metrics.csv_header())
        writer.writerows(result.metrics.to_csv_rows())
    return data_path


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint for the CLI script.

    Returns:
        0 when every agreement check passes, 1 otherwise, 2 on invalid settings.
    """
    args = parse_args(argv)
    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    result = Simulation.from_settings(settings).run()
    report = result.report

    print(f"Compliant nodes: {report.compliant_nodes}")
    print(f"Largest agreeing cluster size: {report.largest_cluster} / {report.compliant_nodes}")
    print(f"Agreed tx count: {len(report.agreed_ids)}")
    print(
        f"Checks: majorityAgree={report.majority_agree}, nonEmpty={report.non_empty}, "
        f"allValid={report.all_valid}"
    )

    if args.output_dir is not None:
        path = write_outputs(result, settings, args.output_dir)
        LOGGER.info("Wrote summary to %s", path)
        if args.plot:
            # Headless backend; matplotlib is only imported when plotting.
            import matplotlib

            matplotlib.use("Agg")
            from .plotting import save_round_plots

            save_round_plots(result.metrics, output_dir=args.output_dir)

    if report.passed:
        print("[PASS] Requirements satisfied under this scenario.")
        return 0
    print("[FAIL] One or more requirements not met. Inspect node logic or parameters.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
