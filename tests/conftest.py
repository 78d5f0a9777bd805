import numpy as np
import pytest

from config.sim_config import load_config
from network_model import NetworkModel
from sim_context import TickContext


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def network(rng):
    return NetworkModel(rng=rng)


@pytest.fixture
def make_ctx(rng, network):
    """Build a TickContext sharing the fixture RNG and network."""
    def _make(tick=0):
        return TickContext(tick=tick, rng=rng, network=network)
    return _make


@pytest.fixture
def small_config():
    return load_config(overrides={
        "simulation.time": 50,
        "simulation.num_iot_devices": 6,
        "simulation.num_edge_nodes": 2,
        "simulation.num_fog_nodes": 1,
    })
