"""
Record Projection
=================

Maps an aggregated Sample onto the consumer-facing OutputRecord schema.

The mapping is lossy on purpose: the link has no velocity or attitude
channels, so the gyro rates stand in for both velocity_x/y/z and
pitch/yaw/roll. IMU temperature, GPS fix codes and GPS speed have no
slot in the consumer schema and are dropped.

Mission time:
    - string timestamps ("2024-12-22T15:34:09Z") pass through; minute and
      second come from the HH:MM:SS part
    - integer ticks are milliseconds since device boot, rendered as
      "HH:MM:SS.mmm" elapsed time
"""

from typing import Tuple

from telemetry_stream.models.output import OutputRecord
from telemetry_stream.models.sample import Sample, Timestamp


def mission_time(timestamp: Timestamp) -> Tuple[str, int, int]:
    """
    Derive (mission_time, minute, second) from a sample timestamp.
    
    Unparsable string timestamps keep their text with minute = second = 0.
    """
    if isinstance(timestamp, int):
        millis = max(timestamp, 0)
        total_seconds, ms = divmod(millis, 1000)
        hours, rest = divmod(total_seconds, 3600)
        minute, second = divmod(rest, 60)
        return f"{hours:02d}:{minute:02d}:{second:02d}.{ms:03d}", minute, second
    
    _, _, time_part = timestamp.partition("T")
    comps = time_part.rstrip("Z").split(":")
    try:
        minute = int(comps[1]) if len(comps) > 1 else 0
        second = int(comps[2]) if len(comps) > 2 else 0
    except ValueError:
        minute, second = 0, 0
    if minute < 0 or second < 0:
        minute, second = 0, 0
    return timestamp, minute, second


def project_record(sample: Sample, record_id: int) -> OutputRecord:
    """
    Build the OutputRecord for an aggregated sample.
    
    Args:
        sample: Aggregated sample
        record_id: Id assigned by the Sequencer
        
    Returns:
        OutputRecord ready for the sink
    """
    text, minute, second = mission_time(sample.timestamp)
    
    return OutputRecord(
        id=record_id,
        mission_time=text,
        minute=minute,
        second=second,
        connected=True,
        satellites=sample.gps_satellites,
        rssi=sample.rssi,
        snr=sample.snr,
        battery=100.0,
        latitude=sample.gps_lat,
        longitude=sample.gps_lon,
        altitude=sample.gps_altitude,
        velocity_x=sample.gyro_x,
        velocity_y=sample.gyro_y,
        velocity_z=sample.gyro_z,
        acceleration_x=sample.accel_x,
        acceleration_y=sample.accel_y,
        acceleration_z=sample.accel_z,
        pitch=sample.gyro_x,
        yaw=sample.gyro_y,
        roll=sample.gyro_z,
        temperature=sample.bme_temp,
        pressure=sample.bme_pressure,
        humidity=sample.bme_humidity,
    )
