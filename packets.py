import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from config.device_profiles import get_profile

logger = logging.getLogger(__name__)


class DataType(str, Enum):
    SENSOR = "SENSOR"
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"
    TEXT = "TEXT"


class PacketStatus(str, Enum):
    RAW = "RAW"
    EDGE_PROCESSED = "EDGE_PROCESSED"
    FOG_PROCESSED = "FOG_PROCESSED"
    FOG_AGGREGATED = "FOG_AGGREGATED"


# position along the pipeline; FOG_PROCESSED and FOG_AGGREGATED are siblings
_STATUS_STAGE = {
    PacketStatus.RAW: 0,
    PacketStatus.EDGE_PROCESSED: 1,
    PacketStatus.FOG_PROCESSED: 2,
    PacketStatus.FOG_AGGREGATED: 2,
}

# order of the probability vectors in config/device_profiles.py
DATA_TYPE_ORDER: List[DataType] = [
    DataType.SENSOR,
    DataType.IMAGE,
    DataType.VIDEO,
    DataType.AUDIO,
    DataType.TEXT,
]

# [low, high) size ranges in bytes
SIZE_RANGES: Dict[DataType, Tuple[int, int]] = {
    DataType.SENSOR: (10, 100),
    DataType.IMAGE: (100_000, 1_000_000),
    DataType.VIDEO: (1_000_000, 10_000_000),
    DataType.AUDIO: (50_000, 500_000),
    DataType.TEXT: (100, 5_000),
}
DEFAULT_SIZE_RANGE: Tuple[int, int] = (1_000, 10_000)


@dataclass(frozen=True)
class Packet:
    """
    One unit of sensed data moving through the pipeline.
    source_id: id of the device (or fog node, for aggregates) that produced it
    timestamp: tick at which the data was generated
    size: payload size in bytes
    """
    source_id: str
    timestamp: int
    size: int
    data_type: DataType
    status: PacketStatus = PacketStatus.RAW

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"Packet size must be >= 0, got {self.size}")

    def evolve(
        self,
        size: int,
        status: PacketStatus,
        source_id: Optional[str] = None,
    ) -> "Packet":
        """Return a processed copy; the original packet is left untouched."""
        if _STATUS_STAGE[status] < _STATUS_STAGE[self.status]:
            raise ValueError(f"Cannot move packet status from {self.status.value} back to {status.value}")
        return replace(
            self,
            size=int(size),
            status=status,
            source_id=self.source_id if source_id is None else source_id,
        )


class DataSynthesizer:
    """
    Generates packets for one simulated device.
    The data type is drawn from the device type's probability vector and the
    size from a uniform range that depends on the data type.
    """

    def __init__(self, device_type: str, rng: Optional[np.random.Generator] = None):
        self.device_type = device_type
        self.type_probabilities: List[float] = list(get_profile(device_type)["type_probabilities"])
        self._rng = rng if rng is not None else np.random.default_rng()

    def generate(self, source_id: str, tick: int) -> Packet:
        data_type = self.select_data_type()
        size = self.generate_size(data_type)
        return Packet(
            source_id=source_id,
            timestamp=tick,
            size=size,
            data_type=data_type,
            status=PacketStatus.RAW,
        )

    def select_data_type(self) -> DataType:
        draw = float(self._rng.random())
        cumulative = 0.0
        for data_type, prob in zip(DATA_TYPE_ORDER, self.type_probabilities):
            cumulative += prob
            if draw <= cumulative:
                return data_type
        # rounding left the vector just short of 1.0
        return DataType.SENSOR

    def generate_size(self, data_type: DataType) -> int:
        low, high = SIZE_RANGES.get(data_type, DEFAULT_SIZE_RANGE)
        return int(self._rng.integers(low, high))
