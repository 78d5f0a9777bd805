"""Unit tests for the per-hop network latency model."""
import numpy as np
import pytest

from config.sim_config import load_config
from network_model import (
    CONGESTION_SPIKE,
    INITIAL_CONGESTION,
    INITIAL_QUALITY,
    MAX_JITTER,
    Hop,
    NetworkModel,
)


def test_latency_formula_without_jitter():
    model = NetworkModel(wireless_base_latency=10.0, wireless_bandwidth=1000.0, rng=np.random.default_rng(0))
    size = 5000
    expected = (10.0 + size / 1000.0) * (1.0 / INITIAL_QUALITY[Hop.DEVICE_EDGE]) * INITIAL_CONGESTION[Hop.DEVICE_EDGE]
    assert model.latency(Hop.DEVICE_EDGE, size, jitter=0.0) == pytest.approx(expected)


def test_effective_bandwidths_are_converted():
    model = NetworkModel(fog_bandwidth_mbps=100.0, cloud_bandwidth_gbps=10.0)
    assert model.bandwidth[Hop.EDGE_FOG] == pytest.approx(100.0 * 1024.0 / 8.0)
    assert model.bandwidth[Hop.FOG_CLOUD] == pytest.approx(10.0 * 1024.0 * 1024.0 / 8.0)


@pytest.mark.parametrize("hop", list(Hop))
def test_jitter_stays_within_hop_cap(hop):
    model = NetworkModel(rng=np.random.default_rng(5))
    floor = model.latency(hop, 1000, jitter=0.0)
    for _ in range(200):
        extra = model.latency(hop, 1000) - floor
        assert 0.0 <= extra <= MAX_JITTER[hop]


@pytest.mark.parametrize("hop", list(Hop))
def test_latency_non_decreasing_in_size(hop):
    model = NetworkModel(rng=np.random.default_rng(1))
    sizes = [0, 1, 10, 1_000, 100_000, 10_000_000]
    latencies = [model.latency(hop, s, jitter=0.0) for s in sizes]
    assert latencies == sorted(latencies)


def test_accepts_hop_value_string():
    model = NetworkModel(rng=np.random.default_rng(1))
    assert model.latency("Edge-to-Fog", 10, jitter=0.0) == model.latency(Hop.EDGE_FOG, 10, jitter=0.0)


def test_rejects_non_positive_bandwidth():
    with pytest.raises(ValueError):
        NetworkModel(wireless_bandwidth=0.0)


def test_conditions_stay_in_bounds_over_many_ticks():
    model = NetworkModel(rng=np.random.default_rng(11))
    for tick in range(1, 2000):
        model.update_conditions(tick)
        for quality in model.get_quality_factors().values():
            assert 0.5 <= quality <= 1.0
        for congestion in model.get_congestion_factors().values():
            assert congestion >= 1.0


def test_spike_multiplies_congestion_on_spike_ticks():
    spiked = NetworkModel(rng=np.random.default_rng(3))
    plain = NetworkModel(rng=np.random.default_rng(3))

    spiked.update_conditions(300)
    plain.update_conditions(301)

    after_spike = spiked.get_congestion_factors()
    before_spike = plain.get_congestion_factors()
    for hop, factor in CONGESTION_SPIKE.items():
        assert after_spike[hop] == pytest.approx(before_spike[hop] * factor)
        assert after_spike[hop] > before_spike[hop]
    assert spiked.get_quality_factors() == plain.get_quality_factors()


@pytest.mark.parametrize("tick", [1, 150, 299, 301, 599])
def test_no_spike_off_period(tick):
    a = NetworkModel(rng=np.random.default_rng(8))
    b = NetworkModel(rng=np.random.default_rng(8))
    a.update_conditions(tick)
    b.update_conditions(7)
    assert a.get_congestion_factors() == b.get_congestion_factors()


def test_spike_is_logged(caplog):
    model = NetworkModel(rng=np.random.default_rng(0))
    with caplog.at_level("INFO", logger="network_model"):
        model.update_conditions(600)
    assert "congestion spike at tick 600" in caplog.text


def test_factor_accessors_return_copies():
    model = NetworkModel(rng=np.random.default_rng(0))
    factors = model.get_congestion_factors()
    factors[Hop.DEVICE_EDGE] = 99.0
    assert model.get_congestion_factors()[Hop.DEVICE_EDGE] == INITIAL_CONGESTION[Hop.DEVICE_EDGE]


def test_set_link_state_clamps():
    model = NetworkModel(rng=np.random.default_rng(0))
    model.set_link_state(Hop.FOG_CLOUD, quality=0.1, congestion=0.2)
    assert model.get_quality_factors()[Hop.FOG_CLOUD] == 0.5
    assert model.get_congestion_factors()[Hop.FOG_CLOUD] == 1.0


def test_from_config_reads_network_keys():
    config = load_config(overrides={"network.wireless.base_latency": 2.0, "network.wireless.bandwidth": 500.0})
    model = NetworkModel.from_config(config, rng=np.random.default_rng(0))
    assert model.base_latency[Hop.DEVICE_EDGE] == 2.0
    assert model.wireless_bandwidth == 500.0
    assert model.base_latency[Hop.FOG_CLOUD] == config["network.fog_to_cloud.latency"]
