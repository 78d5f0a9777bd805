import logging
from typing import TYPE_CHECKING, List, Optional

import numpy as np

from config.device_profiles import get_profile
from network_model import Hop
from packets import DataSynthesizer, Packet
from sim_context import TickContext

if TYPE_CHECKING:
    from tiers import EdgeNode

logger = logging.getLogger(__name__)


class Device:
    """
    One IoT device: generates packets, pays the radio energy for sending them
    and hands them to its edge node.
    Battery is in mAh and consumed energy in mWh, the same units the
    profiles use; the metrics layer converts to Wh.
    """

    def __init__(
        self,
        device_id: str,
        device_type: str = "SENSOR",
        rng: Optional[np.random.Generator] = None,
    ):
        profile = get_profile(device_type)
        self.device_id = device_id
        self.device_type = device_type
        self.battery_capacity = float(profile["battery_capacity"])
        self.processing_power = float(profile["processing_power"])
        self.transmission_power = float(profile["transmission_power"])
        self.generation_rate = float(profile["generation_rate"])
        if self.generation_rate <= 0:
            raise ValueError(f"generation_rate must be > 0 for {device_type}")
        self.synthesizer = DataSynthesizer(device_type, rng=rng)
        self.assigned_edge: Optional["EdgeNode"] = None

        self.current_battery = self.battery_capacity
        self.total_packets_generated = 0
        self.total_packets_transmitted = 0
        self.total_energy_consumed = 0.0  # mWh
        self.transmission_latencies: List[float] = []  # ms
        self._depleted = False
        logger.debug("Created device %s of type %s", device_id, device_type)

    def assign_edge(self, edge: "EdgeNode") -> None:
        self.assigned_edge = edge
        edge.attach_device(self.device_id)

    def should_generate(self, tick: int) -> bool:
        # at most one packet per tick, even for rates above 1
        return tick % (1.0 / self.generation_rate) < 1

    def on_tick(self, ctx: TickContext) -> Optional[Packet]:
        """
        Generate, transmit and forward at most one packet.
        Returns the generated packet, or None when this tick is skipped.
        """
        if not self.should_generate(ctx.tick):
            return None
        if ctx.network is None:
            raise ValueError("TickContext.network is required for device transmission")

        packet = self.synthesizer.generate(self.device_id, ctx.tick)
        self.total_packets_generated += 1

        latency = ctx.network.latency(Hop.DEVICE_EDGE, packet.size)
        self.transmission_latencies.append(latency)
        self._consume_transmission_energy(packet.size, ctx.network.wireless_bandwidth)

        if self.assigned_edge is None:
            logger.warning("%s has no assigned edge node. Data packet discarded.", self.device_id)
            return packet
        self.assigned_edge.receive(packet, self.device_id)
        self.total_packets_transmitted += 1
        return packet

    def _consume_transmission_energy(self, size: int, bandwidth: float) -> None:
        # E = P * t, with t in ms and P in mW, scaled to mWh
        transmission_time = size / bandwidth
        energy = self.transmission_power * transmission_time / 3600.0
        self.total_energy_consumed += energy
        self.current_battery -= energy
        if self.current_battery <= 0:
            self.current_battery = 0.0
            if not self._depleted:
                logger.warning("%s battery depleted!", self.device_id)
            self._depleted = True

    @property
    def battery_percentage(self) -> float:
        if self.battery_capacity <= 0:
            return 0.0
        return self.current_battery / self.battery_capacity * 100.0

    @property
    def average_transmission_latency(self) -> float:
        if not self.transmission_latencies:
            return 0.0
        return float(np.mean(self.transmission_latencies))
