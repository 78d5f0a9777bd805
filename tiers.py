import logging
from collections import Counter, defaultdict
from typing import Any, Dict, List, Optional

import numpy as np

from network_model import Hop
from packets import DataType, Packet, PacketStatus
from sim_context import TickContext

logger = logging.getLogger(__name__)

EDGE_SIZE_RETAIN = 0.7         # edge processing strips 30%
FOG_SINGLE_SIZE_RETAIN = 0.91  # 9% off a packet that had nothing to merge with
MS_PER_HOUR = 3_600_000.0
BYTES_PER_MB = 1024.0 * 1024.0
BYTES_PER_GB = 1024.0 * 1024.0 * 1024.0

CLOUD_COMPLEXITY: Dict[DataType, float] = {
    DataType.SENSOR: 1.0,
    DataType.IMAGE: 2.5,
    DataType.VIDEO: 5.0,
    DataType.AUDIO: 1.5,
}


def processing_energy(power_w: float, processing_time_ms: float) -> float:
    """E = P * t, with t converted from ms to hours (Wh)."""
    return power_w * (processing_time_ms / MS_PER_HOUR)


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (2.5 -> 3)."""
    return int(np.floor(value + 0.5))


def _check_positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return float(value)


def _check_ratio(name: str, value: float) -> float:
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0, 1], got {value}")
    return float(value)


class EdgeNode:
    """
    Buffers raw packets per device and, once per tick, drops a random share
    of them (the filtering ratio) and shrinks the rest before handing the
    batch to its fog node.
    """

    def __init__(
        self,
        node_id: str,
        processing_capacity: float = 1000.0,   # bytes per ms
        energy_consumption: float = 50.0,      # W
        filtering_ratio: float = 0.6,
    ):
        self.node_id = node_id
        self.processing_capacity = _check_positive("processing_capacity", processing_capacity)
        self.energy_consumption = float(energy_consumption)
        self.filtering_ratio = _check_ratio("filtering_ratio", filtering_ratio)
        self.assigned_fog: Optional["FogNode"] = None
        self.device_buffers: Dict[str, List[Packet]] = {}

        self.total_packets_received = 0
        self.total_packets_processed = 0
        self.total_packets_forwarded = 0
        self.total_processing_time = 0.0   # ms
        self.total_energy_consumed = 0.0   # Wh
        self.forwarding_latencies: List[float] = []  # ms, one per forwarded batch

    @classmethod
    def from_config(cls, node_id: str, config: Dict[str, Any]) -> "EdgeNode":
        return cls(
            node_id,
            processing_capacity=config["edge.processing_capacity"],
            energy_consumption=config["edge.energy_consumption"],
            filtering_ratio=config["edge.filtering_ratio"],
        )

    def attach_device(self, device_id: str) -> None:
        self.device_buffers.setdefault(device_id, [])
        logger.debug("Device %s assigned to edge node %s", device_id, self.node_id)

    def assign_fog(self, fog: "FogNode") -> None:
        self.assigned_fog = fog
        fog.attach_edge(self.node_id)

    def receive(self, packet: Packet, source_id: str) -> None:
        buffer = self.device_buffers.get(source_id)
        if buffer is None:
            logger.warning("Edge node %s received data from unassigned device %s", self.node_id, source_id)
            return
        buffer.append(packet)
        self.total_packets_received += 1

    def process(self, ctx: TickContext) -> List[Packet]:
        """
        Filter and process everything buffered this tick.
        Returns the batch that was forwarded (empty if nothing survived or
        there is no fog node).
        """
        processed: List[Packet] = []
        for buffer in self.device_buffers.values():
            for packet in buffer:
                # keep iff draw > ratio, so the ratio is the drop probability
                if float(ctx.rng.random()) > self.filtering_ratio:
                    processed.append(self._process_packet(packet))
            buffer.clear()
        return self._forward(processed, ctx)

    def _process_packet(self, packet: Packet) -> Packet:
        processing_time = packet.size / self.processing_capacity
        self.total_processing_time += processing_time
        self.total_energy_consumed += processing_energy(self.energy_consumption, processing_time)
        self.total_packets_processed += 1
        return packet.evolve(int(packet.size * EDGE_SIZE_RETAIN), PacketStatus.EDGE_PROCESSED)

    def _forward(self, batch: List[Packet], ctx: TickContext) -> List[Packet]:
        if not batch:
            return []
        if self.assigned_fog is None:
            logger.warning("Edge node %s has no assigned fog node. %d packets discarded.", self.node_id, len(batch))
            return []
        if ctx.network is not None:
            self.forwarding_latencies.append(ctx.network.latency(Hop.EDGE_FOG, sum(p.size for p in batch)))
        self.assigned_fog.receive(batch, self.node_id)
        self.total_packets_forwarded += len(batch)
        logger.debug("Edge node %s forwarded %d packets to %s", self.node_id, len(batch), self.assigned_fog.node_id)
        return batch

    @property
    def buffered_packets(self) -> int:
        return sum(len(b) for b in self.device_buffers.values())

    @property
    def data_reduction_ratio(self) -> float:
        if self.total_packets_received == 0:
            return 0.0
        return 1.0 - self.total_packets_forwarded / self.total_packets_received

    @property
    def average_forwarding_latency(self) -> float:
        if not self.forwarding_latencies:
            return 0.0
        return float(np.mean(self.forwarding_latencies))


class FogNode:
    """
    Collects edge batches, merges same-type packets into one aggregate and
    forwards the result to the cloud.
    """

    def __init__(
        self,
        node_id: str,
        processing_capacity: float = 5000.0,
        energy_consumption: float = 200.0,     # W
        bandwidth: float = 100.0,              # Mbps
        aggregation_ratio: float = 0.5,
    ):
        self.node_id = node_id
        self.processing_capacity = _check_positive("processing_capacity", processing_capacity)
        self.energy_consumption = float(energy_consumption)
        self.bandwidth = float(bandwidth)
        self.aggregation_ratio = _check_ratio("aggregation_ratio", aggregation_ratio)
        self.cloud: Optional["CloudDataCenter"] = None
        self.edge_buffers: Dict[str, List[Packet]] = {}

        self.total_packets_received = 0
        self.total_packets_processed = 0
        self.total_packets_forwarded = 0
        self.total_processing_time = 0.0   # ms
        self.total_energy_consumed = 0.0   # Wh
        self.total_bandwidth_used = 0.0    # MB, in and out
        self.forwarding_latencies: List[float] = []

    @classmethod
    def from_config(cls, node_id: str, config: Dict[str, Any]) -> "FogNode":
        return cls(
            node_id,
            processing_capacity=config["fog.processing_capacity"],
            energy_consumption=config["fog.energy_consumption"],
            bandwidth=config["fog.bandwidth"],
            aggregation_ratio=config["fog.aggregation_ratio"],
        )

    def attach_edge(self, edge_id: str) -> None:
        self.edge_buffers.setdefault(edge_id, [])
        logger.debug("Edge node %s assigned to fog node %s", edge_id, self.node_id)

    def assign_cloud(self, cloud: "CloudDataCenter") -> None:
        self.cloud = cloud
        cloud.attach_fog(self.node_id)

    def receive(self, packets: List[Packet], source_id: str) -> None:
        buffer = self.edge_buffers.get(source_id)
        if buffer is None:
            logger.warning("Fog node %s received data from unassigned edge node %s", self.node_id, source_id)
            return
        buffer.extend(packets)
        self.total_packets_received += len(packets)
        self.total_bandwidth_used += sum(p.size for p in packets) / BYTES_PER_MB

    def process(self, ctx: TickContext) -> List[Packet]:
        by_type: Dict[DataType, List[Packet]] = defaultdict(list)
        for buffer in self.edge_buffers.values():
            for packet in buffer:
                by_type[packet.data_type].append(packet)
                self.total_packets_processed += 1
            buffer.clear()

        output: List[Packet] = []
        for group in by_type.values():
            if len(group) > 1:
                output.append(self.aggregate(group))
            else:
                output.append(self._process_single(group[0]))
        return self._forward(output, ctx)

    def aggregate(self, packets: List[Packet]) -> Packet:
        """
        Merge same-type packets into one.
        Cost is charged on the pre-aggregation size; the timestamp is the
        first packet's.
        """
        total_size = sum(p.size for p in packets)
        self._charge(total_size)
        first = packets[0]
        return first.evolve(
            round_half_up(total_size * self.aggregation_ratio),
            PacketStatus.FOG_AGGREGATED,
            source_id=self.node_id,
        )

    def _process_single(self, packet: Packet) -> Packet:
        self._charge(packet.size)
        return packet.evolve(int(packet.size * FOG_SINGLE_SIZE_RETAIN), PacketStatus.FOG_PROCESSED)

    def _charge(self, size: int) -> None:
        processing_time = size / self.processing_capacity
        self.total_processing_time += processing_time
        self.total_energy_consumed += processing_energy(self.energy_consumption, processing_time)

    def _forward(self, packets: List[Packet], ctx: TickContext) -> List[Packet]:
        if not packets:
            return []
        if self.cloud is None:
            logger.warning("Fog node %s has no cloud data center. %d packets discarded.", self.node_id, len(packets))
            return []
        total_size = sum(p.size for p in packets)
        if ctx.network is not None:
            self.forwarding_latencies.append(ctx.network.latency(Hop.FOG_CLOUD, total_size))
        self.cloud.receive(packets, self.node_id)
        self.total_packets_forwarded += len(packets)
        self.total_bandwidth_used += total_size / BYTES_PER_MB
        logger.debug("Fog node %s forwarded %d packets to the cloud", self.node_id, len(packets))
        return packets

    @property
    def data_reduction_ratio(self) -> float:
        if self.total_packets_received == 0:
            return 0.0
        return 1.0 - self.total_packets_forwarded / self.total_packets_received

    @property
    def average_forwarding_latency(self) -> float:
        if not self.forwarding_latencies:
            return 0.0
        return float(np.mean(self.forwarding_latencies))


class CloudDataCenter:
    """
    Final sink: runs per-type analytics on whatever arrived this tick and
    throws the input away. Only counters survive.
    """

    def __init__(
        self,
        processing_capacity: float = 50000.0,
        energy_consumption: float = 1000.0,    # W
        bandwidth: float = 10.0,               # Gbps
        datacenter_id: str = "Cloud-DataCenter",
    ):
        self.datacenter_id = datacenter_id
        self.processing_capacity = _check_positive("processing_capacity", processing_capacity)
        self.energy_consumption = float(energy_consumption)
        self.bandwidth = float(bandwidth)
        self.connected_fogs: List[str] = []
        self.type_buffers: Dict[DataType, List[Packet]] = defaultdict(list)
        self._received_by_type: Counter = Counter()

        self.total_packets_received = 0
        self.total_packets_processed = 0
        self.total_processing_time = 0.0   # ms
        self.total_energy_consumed = 0.0   # Wh
        self.total_bandwidth_used = 0.0    # GB

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "CloudDataCenter":
        return cls(
            processing_capacity=config["cloud.processing_capacity"],
            energy_consumption=config["cloud.energy_consumption"],
            bandwidth=config["cloud.bandwidth"],
        )

    def attach_fog(self, fog_id: str) -> None:
        if fog_id not in self.connected_fogs:
            self.connected_fogs.append(fog_id)

    def receive(self, packets: List[Packet], source_id: str) -> None:
        for packet in packets:
            self.type_buffers[packet.data_type].append(packet)
            self._received_by_type[packet.data_type] += 1
        self.total_packets_received += len(packets)
        self.total_bandwidth_used += sum(p.size for p in packets) / BYTES_PER_GB
        logger.debug("%s received %d packets from %s", self.datacenter_id, len(packets), source_id)

    def process(self, ctx: TickContext) -> None:
        for data_type, packets in self.type_buffers.items():
            if not packets:
                continue
            self._run_analytics(data_type, packets)
            # results are not persisted
            packets.clear()

    def _run_analytics(self, data_type: DataType, packets: List[Packet]) -> None:
        total_size = sum(p.size for p in packets)
        complexity = CLOUD_COMPLEXITY.get(data_type, 1.0)
        processing_time = total_size * complexity / self.processing_capacity
        self.total_processing_time += processing_time
        self.total_energy_consumed += processing_energy(self.energy_consumption, processing_time)
        self.total_packets_processed += len(packets)

    @property
    def data_type_distribution(self) -> Dict[DataType, int]:
        return dict(self._received_by_type)
