import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from devices import Device
from sim_context import TickContext
from tiers import CloudDataCenter, EdgeNode, FogNode

logger = logging.getLogger(__name__)

LAYERS = ("IoT", "Edge", "Fog", "Cloud")


def _safe_div(num: float, den: float) -> float:
    return num / den if den else 0.0


def _mean(values) -> float:
    values = list(values)
    if not values:
        return 0.0
    return float(np.mean(values))


@dataclass
class MetricsSummary:
    """
    End-of-run numbers.
    Latency in ms, energy in Wh, bandwidth in MB, reduction as a 0..1 ratio.
    Percentages are 0..100.
    """
    average_latency: float
    total_energy: float
    average_bandwidth: float
    final_bandwidth: float
    average_data_reduction: float
    energy_by_layer: Dict[str, float] = field(default_factory=dict)
    energy_percent_by_layer: Dict[str, float] = field(default_factory=dict)
    packets_by_layer: Dict[str, int] = field(default_factory=dict)
    packet_percent_by_layer: Dict[str, float] = field(default_factory=dict)
    processing_time_by_layer: Dict[str, float] = field(default_factory=dict)
    processing_percent_by_layer: Dict[str, float] = field(default_factory=dict)


class MetricsCollector:
    """
    Samples every tier once per tick, after all of them have run.
    Time series are keyed by tick; layer maps by layer name.
    """

    def __init__(self):
        self.latency_by_time: Dict[int, float] = {}
        self.energy_by_time: Dict[int, float] = {}
        self.bandwidth_by_time: Dict[int, float] = {}
        self.data_reduction_by_time: Dict[int, float] = {}

        self.processing_time_by_layer: Dict[str, float] = {layer: 0.0 for layer in LAYERS}
        self.energy_by_layer: Dict[str, float] = {layer: 0.0 for layer in LAYERS}
        self.packets_by_layer: Dict[str, int] = {layer: 0 for layer in LAYERS}
        self.summary: Optional[MetricsSummary] = None

    def collect(
        self,
        ctx: TickContext,
        devices: Sequence[Device],
        edges: Sequence[EdgeNode],
        fogs: Sequence[FogNode],
        cloud: CloudDataCenter,
    ) -> None:
        tick = ctx.tick
        self.latency_by_time[tick] = self.current_latency(devices, edges, fogs, cloud)
        self.energy_by_time[tick] = self.current_energy(devices, edges, fogs, cloud)
        self.bandwidth_by_time[tick] = self.current_bandwidth(fogs, cloud)
        self.data_reduction_by_time[tick] = self.current_data_reduction(edges, fogs)
        self._update_layers(devices, edges, fogs, cloud)

    @staticmethod
    def current_latency(devices, edges, fogs, cloud) -> float:
        """Mean over every entity that has at least one latency sample."""
        samples: List[float] = []
        for device in devices:
            if device.transmission_latencies:
                samples.append(device.average_transmission_latency)
        for tier in list(edges) + list(fogs) + [cloud]:
            if tier.total_packets_processed > 0:
                samples.append(tier.total_processing_time / tier.total_packets_processed)
        return _mean(samples)

    @staticmethod
    def current_energy(devices, edges, fogs, cloud) -> float:
        # devices report mWh, tiers Wh
        total = sum(d.total_energy_consumed for d in devices) / 1000.0
        total += sum(e.total_energy_consumed for e in edges)
        total += sum(f.total_energy_consumed for f in fogs)
        total += cloud.total_energy_consumed
        return total

    @staticmethod
    def current_bandwidth(fogs, cloud) -> float:
        # fog counters are MB, cloud GB
        return sum(f.total_bandwidth_used for f in fogs) + cloud.total_bandwidth_used * 1024.0

    @staticmethod
    def current_data_reduction(edges, fogs) -> float:
        ratios = [n.data_reduction_ratio for n in list(edges) + list(fogs) if n.total_packets_received > 0]
        return _mean(ratios)

    def _update_layers(self, devices, edges, fogs, cloud) -> None:
        self.energy_by_layer["IoT"] = sum(d.total_energy_consumed for d in devices) / 1000.0
        self.packets_by_layer["IoT"] = sum(d.total_packets_generated for d in devices)

        self.processing_time_by_layer["Edge"] = sum(e.total_processing_time for e in edges)
        self.energy_by_layer["Edge"] = sum(e.total_energy_consumed for e in edges)
        self.packets_by_layer["Edge"] = sum(e.total_packets_processed for e in edges)

        self.processing_time_by_layer["Fog"] = sum(f.total_processing_time for f in fogs)
        self.energy_by_layer["Fog"] = sum(f.total_energy_consumed for f in fogs)
        self.packets_by_layer["Fog"] = sum(f.total_packets_processed for f in fogs)

        self.processing_time_by_layer["Cloud"] = cloud.total_processing_time
        self.energy_by_layer["Cloud"] = cloud.total_energy_consumed
        self.packets_by_layer["Cloud"] = cloud.total_packets_processed

    def aggregate(self) -> MetricsSummary:
        total_energy = sum(self.energy_by_layer.values())
        total_processing = sum(self.processing_time_by_layer.values())
        generated = self.packets_by_layer["IoT"]
        final_bandwidth = self.bandwidth_by_time[max(self.bandwidth_by_time)] if self.bandwidth_by_time else 0.0

        self.summary = MetricsSummary(
            average_latency=_mean(self.latency_by_time.values()),
            total_energy=total_energy,
            average_bandwidth=_mean(self.bandwidth_by_time.values()),
            final_bandwidth=final_bandwidth,
            average_data_reduction=_mean(self.data_reduction_by_time.values()),
            energy_by_layer=dict(self.energy_by_layer),
            energy_percent_by_layer={
                layer: _safe_div(value, total_energy) * 100.0 for layer, value in self.energy_by_layer.items()
            },
            packets_by_layer=dict(self.packets_by_layer),
            packet_percent_by_layer={
                layer: _safe_div(count, generated) * 100.0 for layer, count in self.packets_by_layer.items()
            },
            processing_time_by_layer=dict(self.processing_time_by_layer),
            processing_percent_by_layer={
                layer: _safe_div(value, total_processing) * 100.0
                for layer, value in self.processing_time_by_layer.items()
            },
        )
        logger.info("Aggregate metrics calculated")
        return self.summary
