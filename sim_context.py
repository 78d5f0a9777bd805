from dataclasses import dataclass
from typing import Optional

import numpy as np

from network_model import NetworkModel


@dataclass(frozen=True)
class TickContext:
    """
    Everything a tier needs for one tick of one run.
    Built by the orchestrator and handed to every per-tick call, so no
    component reaches for module-level state.
    """
    tick: int
    rng: np.random.Generator
    network: Optional[NetworkModel] = None
