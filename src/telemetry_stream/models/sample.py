"""
Sample Data Model
=================

Typed telemetry reading decoded from one frame (plus correlated metadata).

A Sample is the only reading format passed from the decoders to the
aggregator. It is immutable (frozen) so a sample held in the aggregation
window can never be altered after decoding.

Channel groups:
    - Continuous: averaged by the aggregator
    - Discrete: mode-reduced by the aggregator (fix codes, satellite count)
    - rssi: reduced according to the configured RssiReduction policy
    - timestamp: taken from the newest sample in the window
"""

from dataclasses import dataclass, fields
from typing import Tuple, Union


Timestamp = Union[str, int]


# Field groups used by decoders and the aggregator
CONTINUOUS_FIELDS: Tuple[str, ...] = (
    "accel_x",
    "accel_y",
    "accel_z",
    "gyro_x",
    "gyro_y",
    "gyro_z",
    "imu_temp",
    "bme_temp",
    "bme_pressure",
    "bme_altitude",
    "bme_humidity",
    "gps_lat",
    "gps_lon",
    "gps_speed",
    "gps_altitude",
    "snr",
)

DISCRETE_FIELDS: Tuple[str, ...] = (
    "gps_fix",
    "gps_fix_quality",
    "gps_satellites",
)

# Largest value accepted for the unsigned 8-bit discrete channels
U8_MAX = 255


@dataclass(frozen=True, slots=True)
class Sample:
    """
    Fully decoded telemetry reading.
    
    Attributes:
        timestamp: ISO-8601-like string ("2024-12-22T15:34:09Z") or
            integer tick count (milliseconds since device boot)
        accel_x, accel_y, accel_z: Acceleration
        gyro_x, gyro_y, gyro_z: Angular rate
        imu_temp: IMU die temperature
        bme_temp, bme_pressure, bme_altitude, bme_humidity: Barometer channels
        gps_fix, gps_fix_quality: GPS fix flag and quality code (0..255)
        gps_lat, gps_lon, gps_speed, gps_altitude: GPS position channels
        gps_satellites: Satellites in view (0..255)
        rssi: Signal strength (dBm)
        snr: Signal-to-noise ratio (dB)
    """
    
    timestamp: Timestamp = ""
    accel_x: float = 0.0
    accel_y: float = 0.0
    accel_z: float = 0.0
    gyro_x: float = 0.0
    gyro_y: float = 0.0
    gyro_z: float = 0.0
    imu_temp: float = 0.0
    bme_temp: float = 0.0
    bme_pressure: float = 0.0
    bme_altitude: float = 0.0
    bme_humidity: float = 0.0
    gps_fix: int = 0
    gps_fix_quality: int = 0
    gps_lat: float = 0.0
    gps_lon: float = 0.0
    gps_speed: float = 0.0
    gps_altitude: float = 0.0
    gps_satellites: int = 0
    rssi: int = 0
    snr: float = 0.0


SAMPLE_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(Sample))
