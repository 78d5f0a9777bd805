from typing import Any, Dict, List, Optional, Sequence

from config.sim_config import load_config
from env_pipeline import PipelineEnv

DEFAULT_RATIOS = (0.0, 0.2, 0.4, 0.6, 0.8, 1.0)


def run_filtering_sweep(
    config: Optional[Dict[str, Any]] = None,
    ratios: Sequence[float] = DEFAULT_RATIOS,
    seed: Optional[int] = None,
) -> List[Dict[str, float]]:
    """
    Run one simulation per edge filtering ratio, everything else equal.
    Returns one row per ratio:
        filtering_ratio, avg_latency, total_energy, avg_bandwidth,
        avg_data_reduction, cloud_packets
    """
    base = dict(config) if config is not None else load_config()
    rows = []
    for ratio in ratios:
        cfg = dict(base)
        cfg["edge.filtering_ratio"] = float(ratio)
        env = PipelineEnv(cfg, seed=seed)
        summary = env.run()
        rows.append({
            "filtering_ratio": float(ratio),
            "avg_latency": summary.average_latency,
            "total_energy": summary.total_energy,
            "avg_bandwidth": summary.average_bandwidth,
            "avg_data_reduction": summary.average_data_reduction,
            "cloud_packets": summary.packets_by_layer["Cloud"],
        })
    return rows


def main():
    config = load_config(overrides={
        "simulation.time": 600,
        "simulation.num_iot_devices": 20,
        "simulation.num_edge_nodes": 4,
        "simulation.num_fog_nodes": 2,
    })
    print("Running filtering-ratio sweep...")
    rows = run_filtering_sweep(config, seed=123)
    print(f"  {'ratio':>6} {'latency ms':>11} {'energy Wh':>11} {'bw MB':>10} {'reduction':>10} {'cloud pkts':>11}")
    for row in rows:
        print(
            f"  {row['filtering_ratio']:>6.2f} {row['avg_latency']:>11.2f} {row['total_energy']:>11.6f} "
            f"{row['avg_bandwidth']:>10.2f} {row['avg_data_reduction']*100:>9.2f}% {row['cloud_packets']:>11d}"
        )


if __name__ == "__main__":
    main()
