import logging
import os
from typing import Dict, List, Optional

import matplotlib.pyplot as plt

from metrics import MetricsCollector

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PLOTS_DIR = os.path.join(BASE_DIR, "plots")

TIER_LAYERS = ["Edge", "Fog", "Cloud"]


def save_bar(labels: List[str], y: List[float], title: str, ylabel: str, path: str) -> str:
    plt.figure()
    plt.bar(labels, y)
    plt.title(title)
    plt.ylabel(ylabel)
    plt.xticks(rotation=20)
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def save_series(series: Dict[int, float], title: str, ylabel: str, path: str) -> str:
    ticks = sorted(series)
    plt.figure()
    plt.plot(ticks, [series[t] for t in ticks])
    plt.title(title)
    plt.xlabel("Time (ticks)")
    plt.ylabel(ylabel)
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def _percent(values: Dict[str, float], total: float) -> List[float]:
    return [values.get(layer, 0.0) / total * 100.0 if total else 0.0 for layer in TIER_LAYERS]


def render_all(metrics: MetricsCollector, plots_dir: Optional[str] = None) -> Dict[str, str]:
    """
    Write one PNG per metric category.
    Returns {chart name: file path}.
    """
    plots_dir = plots_dir or PLOTS_DIR
    os.makedirs(plots_dir, exist_ok=True)
    paths: Dict[str, str] = {}

    paths["latency"] = save_series(
        metrics.latency_by_time,
        "Average Latency over Time",
        "Latency (ms)",
        os.path.join(plots_dir, "latency_chart.png"),
    )
    paths["bandwidth"] = save_series(
        metrics.bandwidth_by_time,
        "Bandwidth Usage over Time",
        "Bandwidth (MB)",
        os.path.join(plots_dir, "bandwidth_usage_chart.png"),
    )
    paths["data_reduction"] = save_series(
        {t: v * 100.0 for t, v in metrics.data_reduction_by_time.items()},
        "Data Reduction Ratio over Time",
        "Reduction (%)",
        os.path.join(plots_dir, "data_reduction_chart.png"),
    )

    layers = list(metrics.energy_by_layer)
    paths["energy"] = save_bar(
        layers,
        [metrics.energy_by_layer[layer] for layer in layers],
        "Energy Consumption by Layer",
        "Energy (Wh)",
        os.path.join(plots_dir, "energy_consumption_chart.png"),
    )

    total_time = sum(metrics.processing_time_by_layer.values())
    paths["processing_distribution"] = save_bar(
        TIER_LAYERS,
        _percent(metrics.processing_time_by_layer, total_time),
        "Processing Time Distribution by Layer",
        "Share of Processing Time (%)",
        os.path.join(plots_dir, "processing_distribution_chart.png"),
    )

    generated = metrics.packets_by_layer.get("IoT", 0)
    paths["packet_distribution"] = save_bar(
        TIER_LAYERS,
        _percent({k: float(v) for k, v in metrics.packets_by_layer.items()}, generated),
        "Data Processing Distribution by Layer",
        "Percentage of Total Packets (%)",
        os.path.join(plots_dir, "packet_distribution_chart.png"),
    )

    for name, path in paths.items():
        logger.info("Saved %s chart to %s", name, path)
    return paths
