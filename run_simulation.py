import argparse
import logging
import sys
from typing import Dict, List, Optional, Sequence

import matplotlib

from config.sim_config import load_config
from env_pipeline import PipelineEnv
from make_plots import render_all
from metrics import LAYERS, MetricsSummary
from tiers import CloudDataCenter, EdgeNode, FogNode

logger = logging.getLogger(__name__)


def print_results(
    summary: MetricsSummary,
    cloud: Optional[CloudDataCenter] = None,
    edges: Sequence[EdgeNode] = (),
    fogs: Sequence[FogNode] = (),
):
    print("\n=== SIMULATION RESULTS ===")

    print("\n--- Latency Metrics ---")
    print(f"  Average End-to-End Latency: {summary.average_latency:.2f} ms")

    if edges or fogs:
        print("\n--- Forwarding Latency ---")
        for node in list(edges) + list(fogs):
            print(f"    {node.node_id:<12} {node.average_forwarding_latency:.2f} ms")

    print("\n--- Energy Consumption Metrics ---")
    print(f"  Total Energy Consumption:   {summary.total_energy:.6f} Wh")
    for layer in LAYERS:
        print(
            f"    {layer:<6} {summary.energy_by_layer[layer]:.6f} Wh "
            f"({summary.energy_percent_by_layer[layer]:.1f}%)"
        )

    print("\n--- Bandwidth Usage Metrics ---")
    print(f"  Average Bandwidth Usage:    {summary.average_bandwidth:.2f} MB")
    print(f"  Final Bandwidth Usage:      {summary.final_bandwidth:.2f} MB")

    print("\n--- Data Reduction Metrics ---")
    print(f"  Overall Data Reduction:     {summary.average_data_reduction * 100:.2f}%")

    print("\n--- Processing Distribution ---")
    print(f"  Total Data Packets Generated: {summary.packets_by_layer['IoT']}")
    for layer in LAYERS[1:]:
        print(
            f"    Processed at {layer:<6} {summary.packets_by_layer[layer]} "
            f"({summary.packet_percent_by_layer[layer]:.1f}%)"
        )

    if cloud is not None:
        print("\n--- Cloud Data Type Distribution ---")
        for data_type, count in sorted(cloud.data_type_distribution.items(), key=lambda kv: kv[0].value):
            print(f"    {data_type.value:<7} {count}")
    print()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="IoT -> Edge -> Fog -> Cloud pipeline simulator")
    ap.add_argument("--config", type=str, default=None, help="properties file with overrides")
    ap.add_argument("--ticks", type=int, default=None, help="override simulation.time")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--filtering-ratio", type=float, default=None, help="override edge.filtering_ratio")
    ap.add_argument("--plots-dir", type=str, default=None)
    ap.add_argument("--no-plots", action="store_true")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: Dict[str, object] = {}
    if args.ticks is not None:
        overrides["simulation.time"] = args.ticks
    if args.filtering_ratio is not None:
        overrides["edge.filtering_ratio"] = args.filtering_ratio

    try:
        config = load_config(args.config, overrides)
        env = PipelineEnv(config, seed=args.seed)
        summary = env.run()
    except Exception:
        logger.exception("Simulation aborted")
        return 1

    print_results(summary, env.cloud, env.edge_nodes, env.fog_nodes)
    if not args.no_plots:
        matplotlib.use("Agg")
        render_all(env.metrics, args.plots_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
