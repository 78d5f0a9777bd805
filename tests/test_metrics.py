"""Unit tests for the metrics collector."""
import numpy as np
import pytest

from devices import Device
from metrics import LAYERS, MetricsCollector
from packets import DataType, Packet
from sim_context import TickContext
from tiers import CloudDataCenter, EdgeNode, FogNode


def _topology():
    cloud = CloudDataCenter()
    fog = FogNode("Fog-Node-0", aggregation_ratio=1.0)
    fog.assign_cloud(cloud)
    edge = EdgeNode("Edge-Node-0", filtering_ratio=0.0)
    edge.assign_fog(fog)
    device = Device("IoT-Device-0", "SENSOR", rng=np.random.default_rng(0))
    device.assign_edge(edge)
    return [device], [edge], [fog], cloud


def test_empty_aggregate_is_all_zero():
    summary = MetricsCollector().aggregate()
    assert summary.average_latency == 0.0
    assert summary.total_energy == 0.0
    assert summary.average_bandwidth == 0.0
    assert summary.final_bandwidth == 0.0
    assert summary.average_data_reduction == 0.0
    assert all(v == 0.0 for v in summary.energy_percent_by_layer.values())
    assert all(v == 0.0 for v in summary.packet_percent_by_layer.values())
    assert all(v == 0.0 for v in summary.processing_percent_by_layer.values())


def test_idle_tiers_do_not_count_towards_latency():
    devices, edges, fogs, cloud = _topology()
    assert MetricsCollector.current_latency(devices, edges, fogs, cloud) == 0.0
    assert MetricsCollector.current_data_reduction(edges, fogs) == 0.0


def test_latency_is_mean_over_active_entities():
    devices, edges, fogs, cloud = _topology()
    devices[0].transmission_latencies = [10.0, 20.0]
    devices[0].total_packets_transmitted = 2
    edges[0].total_processing_time = 8.0
    edges[0].total_packets_processed = 4
    # fog and cloud idle
    assert MetricsCollector.current_latency(devices, edges, fogs, cloud) == pytest.approx((15.0 + 2.0) / 2)


def test_device_with_samples_but_no_transmissions_counts_towards_latency():
    # latency is recorded before the edge check, so an unwired device has samples
    devices, edges, fogs, cloud = _topology()
    devices[0].transmission_latencies = [12.0, 18.0]
    devices[0].total_packets_transmitted = 0
    assert MetricsCollector.current_latency(devices, edges, fogs, cloud) == pytest.approx(15.0)


def test_energy_converts_device_units():
    devices, edges, fogs, cloud = _topology()
    devices[0].total_energy_consumed = 500.0   # mWh
    edges[0].total_energy_consumed = 1.0
    fogs[0].total_energy_consumed = 2.0
    cloud.total_energy_consumed = 3.0
    assert MetricsCollector.current_energy(devices, edges, fogs, cloud) == pytest.approx(6.5)


def test_bandwidth_converts_cloud_gb_to_mb():
    _, _, fogs, cloud = _topology()
    fogs[0].total_bandwidth_used = 3.0
    cloud.total_bandwidth_used = 0.5
    assert MetricsCollector.current_bandwidth(fogs, cloud) == pytest.approx(3.0 + 512.0)


def test_collect_records_one_point_per_series():
    devices, edges, fogs, cloud = _topology()
    network_free_ctx = TickContext(tick=0, rng=np.random.default_rng(0))
    edges[0].receive(Packet("IoT-Device-0", 0, 100, DataType.SENSOR), "IoT-Device-0")
    edges[0].process(network_free_ctx)
    fogs[0].process(network_free_ctx)
    cloud.process(network_free_ctx)

    metrics = MetricsCollector()
    metrics.collect(network_free_ctx, devices, edges, fogs, cloud)

    for series in (metrics.latency_by_time, metrics.energy_by_time,
                   metrics.bandwidth_by_time, metrics.data_reduction_by_time):
        assert list(series) == [0]
    assert metrics.packets_by_layer == {"IoT": 0, "Edge": 1, "Fog": 1, "Cloud": 1}
    assert metrics.energy_by_time[0] == pytest.approx(sum(metrics.energy_by_layer.values()))


def test_aggregate_summarises_series_and_layers():
    metrics = MetricsCollector()
    metrics.latency_by_time = {0: 1.0, 1: 3.0}
    metrics.bandwidth_by_time = {0: 2.0, 1: 6.0}
    metrics.data_reduction_by_time = {0: 0.2, 1: 0.4}
    metrics.energy_by_layer = {"IoT": 1.0, "Edge": 1.0, "Fog": 2.0, "Cloud": 0.0}
    metrics.packets_by_layer = {"IoT": 10, "Edge": 5, "Fog": 5, "Cloud": 2}
    metrics.processing_time_by_layer = {"IoT": 0.0, "Edge": 3.0, "Fog": 1.0, "Cloud": 0.0}

    summary = metrics.aggregate()

    assert summary.average_latency == pytest.approx(2.0)
    assert summary.average_bandwidth == pytest.approx(4.0)
    assert summary.final_bandwidth == pytest.approx(6.0)
    assert summary.average_data_reduction == pytest.approx(0.3)
    assert summary.total_energy == pytest.approx(4.0)
    assert summary.energy_percent_by_layer["Fog"] == pytest.approx(50.0)
    assert summary.packet_percent_by_layer["Cloud"] == pytest.approx(20.0)
    assert summary.packet_percent_by_layer["IoT"] == pytest.approx(100.0)
    assert summary.processing_percent_by_layer["Edge"] == pytest.approx(75.0)
    assert metrics.summary is summary


def test_layer_keys():
    metrics = MetricsCollector()
    assert tuple(metrics.energy_by_layer) == LAYERS
    assert tuple(metrics.packets_by_layer) == LAYERS
    assert tuple(metrics.processing_time_by_layer) == LAYERS
