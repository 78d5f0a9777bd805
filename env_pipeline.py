import logging
from typing import Any, Dict, List, Optional

import numpy as np

from config.device_profiles import DEVICE_TYPES
from config.sim_config import load_config
from devices import Device
from metrics import MetricsCollector, MetricsSummary
from network_model import NetworkModel
from sim_context import TickContext
from tiers import CloudDataCenter, EdgeNode, FogNode

logger = logging.getLogger(__name__)


class PipelineEnv:
    """
    One IoT -> Edge -> Fog -> Cloud simulation run.
    - reset() builds a fresh topology and RNG.
    - step() advances the clock by one tick, in a fixed order:
      network drift, devices, edges, fogs, cloud, metrics.
    - run() steps until the configured tick count and aggregates metrics.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        seed: Optional[int] = None,
    ):
        self.config = dict(config) if config is not None else load_config()
        self.total_ticks = int(self.config["simulation.time"])
        if self.total_ticks < 0:
            raise ValueError(f"simulation.time must be >= 0, got {self.total_ticks}")
        for key in ("simulation.num_iot_devices", "simulation.num_edge_nodes", "simulation.num_fog_nodes"):
            if int(self.config[key]) < 0:
                raise ValueError(f"{key} must be >= 0, got {self.config[key]}")
        # explicit seed wins over the configured one
        self.seed = seed if seed is not None else self.config.get("simulation.seed")

        self.devices: List[Device] = []
        self.edge_nodes: List[EdgeNode] = []
        self.fog_nodes: List[FogNode] = []
        self.cloud: Optional[CloudDataCenter] = None
        self.network: Optional[NetworkModel] = None
        self.metrics: Optional[MetricsCollector] = None
        self.current_tick = 0
        self.reset()

    def reset(self) -> None:
        """Rebuild topology, network and metrics; the clock restarts at 0."""
        self._rng = np.random.default_rng(self.seed)
        self.current_tick = 0
        self.network = NetworkModel.from_config(self.config, rng=self._rng)
        self.metrics = MetricsCollector()
        self.cloud = CloudDataCenter.from_config(self.config)
        self.fog_nodes = [
            FogNode.from_config(f"Fog-Node-{i}", self.config)
            for i in range(int(self.config["simulation.num_fog_nodes"]))
        ]
        self.edge_nodes = [
            EdgeNode.from_config(f"Edge-Node-{i}", self.config)
            for i in range(int(self.config["simulation.num_edge_nodes"]))
        ]
        self.devices = [
            Device(f"IoT-Device-{i}", self._pick_device_type(), rng=self._rng)
            for i in range(int(self.config["simulation.num_iot_devices"]))
        ]
        self._build_topology()
        logger.info(
            "Topology ready: %d devices, %d edge nodes, %d fog nodes",
            len(self.devices), len(self.edge_nodes), len(self.fog_nodes),
        )

    def _pick_device_type(self) -> str:
        forced = self.config.get("simulation.device_type")
        if forced:
            return str(forced)
        return DEVICE_TYPES[int(self._rng.integers(0, len(DEVICE_TYPES)))]

    def _build_topology(self) -> None:
        # round-robin at every level; an empty downstream level leaves nodes unassigned
        if self.edge_nodes:
            for i, device in enumerate(self.devices):
                device.assign_edge(self.edge_nodes[i % len(self.edge_nodes)])
        if self.fog_nodes:
            for i, edge in enumerate(self.edge_nodes):
                edge.assign_fog(self.fog_nodes[i % len(self.fog_nodes)])
        for fog in self.fog_nodes:
            fog.assign_cloud(self.cloud)

    @property
    def done(self) -> bool:
        return self.current_tick >= self.total_ticks

    def step(self) -> Dict[str, Any]:
        """
        Run one tick.
        Returns:
            info (dict with the tick's metric points and packet counts)
        """
        if self.done:
            raise RuntimeError("Simulation already finished. Did you call reset()?")
        tick = self.current_tick
        ctx = TickContext(tick=tick, rng=self._rng, network=self.network)

        self.network.update_conditions(tick)
        generated = sum(1 for device in self.devices if device.on_tick(ctx) is not None)
        edge_out = sum(len(edge.process(ctx)) for edge in self.edge_nodes)
        fog_out = sum(len(fog.process(ctx)) for fog in self.fog_nodes)
        self.cloud.process(ctx)
        self.metrics.collect(ctx, self.devices, self.edge_nodes, self.fog_nodes, self.cloud)

        self.current_tick += 1
        return {
            "tick": tick,
            "generated": generated,
            "edge_forwarded": edge_out,
            "fog_forwarded": fog_out,
            "latency": self.metrics.latency_by_time[tick],
            "energy": self.metrics.energy_by_time[tick],
            "bandwidth": self.metrics.bandwidth_by_time[tick],
            "data_reduction": self.metrics.data_reduction_by_time[tick],
        }

    def run(self) -> MetricsSummary:
        logger.info("Running simulation for %d ticks (seed=%s)", self.total_ticks, self.seed)
        while not self.done:
            self.step()
        logger.info("Simulation completed.")
        return self.metrics.aggregate()
