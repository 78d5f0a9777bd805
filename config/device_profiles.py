# Probability vectors are ordered SENSOR, IMAGE, VIDEO, AUDIO, TEXT.
DEVICE_PROFILES = [
    # ---- Battery powered, low-rate telemetry ----
    {
        "device_type": "SENSOR",
        "battery_capacity": 2000.0,     # mAh
        "processing_power": 100.0,      # MIPS
        "transmission_power": 50.0,     # mW
        "generation_rate": 1.0,         # packets per tick
        "type_probabilities": [0.9, 0.05, 0.0, 0.0, 0.05],
    },
    {
        "device_type": "ACTUATOR",
        "battery_capacity": 3000.0,
        "processing_power": 200.0,
        "transmission_power": 100.0,
        "generation_rate": 0.5,
        "type_probabilities": [0.7, 0.0, 0.0, 0.0, 0.3],
    },

    # ---- Rich media producers ----
    {
        "device_type": "SMARTPHONE",
        "battery_capacity": 4000.0,
        "processing_power": 2000.0,
        "transmission_power": 200.0,
        "generation_rate": 5.0,
        "type_probabilities": [0.2, 0.2, 0.2, 0.2, 0.2],
    },
    {
        "device_type": "WEARABLE",
        "battery_capacity": 500.0,
        "processing_power": 500.0,
        "transmission_power": 30.0,
        "generation_rate": 2.0,
        "type_probabilities": [0.7, 0.1, 0.0, 0.15, 0.05],
    },
]

# used for any device type not listed above
DEFAULT_PROFILE = {
    "device_type": "DEFAULT",
    "battery_capacity": 1000.0,
    "processing_power": 100.0,
    "transmission_power": 50.0,
    "generation_rate": 1.0,
    "type_probabilities": [0.4, 0.15, 0.15, 0.15, 0.15],
}

DEVICE_TYPES = [p["device_type"] for p in DEVICE_PROFILES]


def get_profile(device_type):
    for profile in DEVICE_PROFILES:
        if profile["device_type"] == device_type:
            return profile
    return DEFAULT_PROFILE
