import logging
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)


class Hop(str, Enum):
    DEVICE_EDGE = "IoT-to-Edge"
    EDGE_FOG = "Edge-to-Fog"
    FOG_CLOUD = "Fog-to-Cloud"


# ms of jitter at most
MAX_JITTER: Dict[Hop, float] = {
    Hop.DEVICE_EDGE: 5.0,
    Hop.EDGE_FOG: 3.0,
    Hop.FOG_CLOUD: 2.0,
}
# 1.0 = perfect link
INITIAL_QUALITY: Dict[Hop, float] = {
    Hop.DEVICE_EDGE: 0.95,   # WiFi / BLE
    Hop.EDGE_FOG: 0.98,      # backhaul
    Hop.FOG_CLOUD: 0.99,     # fiber
}
# 1.0 = no congestion
INITIAL_CONGESTION: Dict[Hop, float] = {
    Hop.DEVICE_EDGE: 1.2,
    Hop.EDGE_FOG: 1.1,
    Hop.FOG_CLOUD: 1.05,
}
CONGESTION_SPIKE: Dict[Hop, float] = {
    Hop.DEVICE_EDGE: 1.5,
    Hop.EDGE_FOG: 1.3,
    Hop.FOG_CLOUD: 1.2,
}
SPIKE_PERIOD = 300  # ticks (5 simulated minutes)

MIN_QUALITY = 0.5
MAX_QUALITY = 1.0
MIN_CONGESTION = 1.0


class NetworkModel:
    """
    Per-hop latency model with slowly drifting link conditions.
    latency = (base + size / bandwidth) * (1 / quality) * congestion + jitter
    Sizes are bytes, bandwidths bytes per ms, latencies ms.
    """

    def __init__(
        self,
        wireless_base_latency: float = 10.0,
        wireless_bandwidth: float = 1000.0,
        edge_to_fog_latency: float = 20.0,
        fog_bandwidth_mbps: float = 100.0,
        fog_to_cloud_latency: float = 50.0,
        cloud_bandwidth_gbps: float = 10.0,
        rng: Optional[np.random.Generator] = None,
    ):
        for name, value in (
            ("wireless_bandwidth", wireless_bandwidth),
            ("fog_bandwidth_mbps", fog_bandwidth_mbps),
            ("cloud_bandwidth_gbps", cloud_bandwidth_gbps),
        ):
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
        self.base_latency: Dict[Hop, float] = {
            Hop.DEVICE_EDGE: float(wireless_base_latency),
            Hop.EDGE_FOG: float(edge_to_fog_latency),
            Hop.FOG_CLOUD: float(fog_to_cloud_latency),
        }
        self.bandwidth: Dict[Hop, float] = {
            Hop.DEVICE_EDGE: float(wireless_bandwidth),
            Hop.EDGE_FOG: fog_bandwidth_mbps * 1024.0 / 8.0,
            Hop.FOG_CLOUD: cloud_bandwidth_gbps * 1024.0 * 1024.0 / 8.0,
        }
        self._quality = dict(INITIAL_QUALITY)
        self._congestion = dict(INITIAL_CONGESTION)
        self._rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def from_config(cls, config: Dict[str, Any], rng: Optional[np.random.Generator] = None) -> "NetworkModel":
        return cls(
            wireless_base_latency=config["network.wireless.base_latency"],
            wireless_bandwidth=config["network.wireless.bandwidth"],
            edge_to_fog_latency=config["network.edge_to_fog.latency"],
            fog_bandwidth_mbps=config["fog.bandwidth"],
            fog_to_cloud_latency=config["network.fog_to_cloud.latency"],
            cloud_bandwidth_gbps=config["cloud.bandwidth"],
            rng=rng,
        )

    @property
    def wireless_bandwidth(self) -> float:
        return self.bandwidth[Hop.DEVICE_EDGE]

    def latency(self, hop: Hop, size: int, jitter: Optional[float] = None) -> float:
        """
        Transmission latency in ms of `size` bytes over `hop`.
        `jitter` pins the jitter term; by default it is drawn from
        U[0, MAX_JITTER[hop]].
        """
        hop = Hop(hop)
        transmission_time = size / self.bandwidth[hop]
        if jitter is None:
            jitter = float(self._rng.random()) * MAX_JITTER[hop]
        adjusted = (self.base_latency[hop] + transmission_time) * (1.0 / self._quality[hop]) * self._congestion[hop]
        return adjusted + jitter

    def update_conditions(self, tick: int) -> None:
        for hop in Hop:
            variation = (float(self._rng.random()) - 0.5) * 0.1   # +-0.05
            self._quality[hop] = min(MAX_QUALITY, max(MIN_QUALITY, self._quality[hop] + variation))

        for hop in Hop:
            # biased towards relief
            variation = (float(self._rng.random()) - 0.3) * 0.2
            self._congestion[hop] = max(MIN_CONGESTION, self._congestion[hop] + variation)

        if tick % SPIKE_PERIOD == 0:
            logger.info("Network congestion spike at tick %d", tick)
            for hop, factor in CONGESTION_SPIKE.items():
                self._congestion[hop] *= factor

    def get_quality_factors(self) -> Dict[Hop, float]:
        return dict(self._quality)

    def get_congestion_factors(self) -> Dict[Hop, float]:
        return dict(self._congestion)

    def set_link_state(self, hop: Hop, quality: Optional[float] = None, congestion: Optional[float] = None) -> None:
        """Pin a hop's link state, clamped to the valid ranges."""
        hop = Hop(hop)
        if quality is not None:
            self._quality[hop] = min(MAX_QUALITY, max(MIN_QUALITY, float(quality)))
        if congestion is not None:
            self._congestion[hop] = max(MIN_CONGESTION, float(congestion))
