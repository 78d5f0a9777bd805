import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    # ---- Simulation / topology ----
    "simulation.time": 60,                      # ticks (1 tick = 1 s)
    "simulation.num_iot_devices": 3,
    "simulation.num_edge_nodes": 1,
    "simulation.num_fog_nodes": 1,
    "simulation.seed": None,                    # None -> unseeded
    "simulation.device_type": None,             # None -> random type per device

    # ---- Network ----
    "network.wireless.base_latency": 10.0,      # ms
    "network.wireless.bandwidth": 1000.0,       # bytes per ms (1 MB/s)
    "network.edge_to_fog.latency": 20.0,        # ms
    "network.fog_to_cloud.latency": 50.0,       # ms

    # ---- Edge ----
    "edge.processing_capacity": 1000.0,         # bytes per ms
    "edge.energy_consumption": 50.0,            # W
    "edge.filtering_ratio": 0.6,                # drop probability

    # ---- Fog ----
    "fog.processing_capacity": 5000.0,
    "fog.energy_consumption": 200.0,            # W
    "fog.bandwidth": 100.0,                     # Mbps
    "fog.aggregation_ratio": 0.5,

    # ---- Cloud ----
    "cloud.processing_capacity": 50000.0,
    "cloud.energy_consumption": 1000.0,         # W
    "cloud.bandwidth": 10.0,                    # Gbps
}

# keys whose default is None still need a type when read from a file
_OPTIONAL_TYPES = {
    "simulation.seed": int,
    "simulation.device_type": str,
}


def _coerce(key: str, raw: Any) -> Any:
    default = DEFAULT_CONFIG.get(key)
    if default is None:
        target = _OPTIONAL_TYPES.get(key, str)
    else:
        target = type(default)
    if isinstance(raw, str):
        raw = raw.strip()
        if default is None and raw.lower() in ("", "none", "null"):
            return None
    if raw is None or isinstance(raw, target):
        return raw
    try:
        if target is int:
            return int(float(raw))
        return target(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value {raw!r} for config key '{key}'") from exc


def read_properties(path: str) -> Dict[str, str]:
    """
    Parse a java-style ``key = value`` properties file.
    Blank lines and lines starting with '#' or '!' are ignored.
    """
    props: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line or line[0] in "#!":
                continue
            sep = line.find("=")
            if sep < 0:
                sep = line.find(":")
            if sep < 0:
                logger.warning("Ignoring malformed config line: %s", line)
                continue
            props[line[:sep].strip()] = line[sep + 1:].strip()
    return props


def load_config(
    path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build the flat configuration for one run.
    Defaults come first, then the optional properties file, then overrides.
    A missing file is not an error: defaults populate the whole set.
    """
    config = dict(DEFAULT_CONFIG)
    if path is not None:
        if os.path.exists(path):
            for key, raw in read_properties(path).items():
                config[key] = _coerce(key, raw)
            logger.info("Configuration loaded from %s", path)
        else:
            logger.warning("Could not load configuration file %s. Using default values.", path)
    for key, value in (overrides or {}).items():
        config[key] = _coerce(key, value)
    return config
