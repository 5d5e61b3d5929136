"""
Output Record Model
===================

This module defines the consumer-facing record emitted by a stream session.

Output Contract:
    {
        "id": 42,
        "mission_time": "2024-12-22T15:34:09Z",
        "minute": 34,
        "second": 9,
        "connected": true,
        "satellites": 7,
        "rssi": -60,
        "snr": 9.5,
        "battery": 100.0,
        "latitude": 45.5,
        "longitude": -73.6,
        "altitude": 120.0,
        "velocity_x": 0.1, "velocity_y": 0.2, "velocity_z": 0.3,
        "acceleration_x": 0.0, "acceleration_y": 0.0, "acceleration_z": 9.8,
        "pitch": 0.1, "yaw": 0.2, "roll": 0.3,
        "temperature": 21.5,
        "pressure": 1013.2,
        "humidity": 40.0
    }

Design Rules:
    - id starts at 1 and increases by exactly 1 per emitted record
    - gyro channels are reused as velocity AND orientation proxies; this is
      a lossy projection of the link's channel set onto the consumer schema
    - battery is fixed at 100.0, the link carries no battery channel
"""

from pydantic import BaseModel, Field


U32_MAX = 2**32 - 1


class OutputRecord(BaseModel):
    """
    Sequence-numbered, normalized telemetry record.
    
    Attributes:
        id: Sequence id assigned at emission
        mission_time: Timestamp string or HH:MM:SS.mmm elapsed time
        minute: Minute component of mission_time
        second: Second component of mission_time
        connected: Link state (always True for emitted records)
        satellites: GPS satellites in view
        rssi: Signal strength (dBm)
        snr: Signal-to-noise ratio (dB)
        battery: Battery percentage
    """
    
    id: int = Field(..., ge=1, le=U32_MAX, description="Sequence id")
    mission_time: str = Field(..., description="Mission time representation")
    minute: int = Field(default=0, ge=0, description="Minute of mission time")
    second: int = Field(default=0, ge=0, description="Second of mission time")
    connected: bool = Field(default=True, description="Link connectivity flag")
    
    satellites: int = Field(default=0, ge=0, description="GPS satellites in view")
    rssi: int = Field(default=0, description="Signal strength (dBm)")
    snr: float = Field(default=0.0, description="Signal-to-noise ratio (dB)")
    battery: float = Field(default=100.0, description="Battery percentage")
    
    latitude: float = Field(default=0.0, description="GPS latitude")
    longitude: float = Field(default=0.0, description="GPS longitude")
    altitude: float = Field(default=0.0, description="GPS altitude")
    
    velocity_x: float = Field(default=0.0, description="Velocity proxy (gyro x)")
    velocity_y: float = Field(default=0.0, description="Velocity proxy (gyro y)")
    velocity_z: float = Field(default=0.0, description="Velocity proxy (gyro z)")
    
    acceleration_x: float = Field(default=0.0, description="Acceleration x")
    acceleration_y: float = Field(default=0.0, description="Acceleration y")
    acceleration_z: float = Field(default=0.0, description="Acceleration z")
    
    pitch: float = Field(default=0.0, description="Orientation proxy (gyro x)")
    yaw: float = Field(default=0.0, description="Orientation proxy (gyro y)")
    roll: float = Field(default=0.0, description="Orientation proxy (gyro z)")
    
    temperature: float = Field(default=0.0, description="Barometer temperature")
    pressure: float = Field(default=0.0, description="Barometric pressure")
    humidity: float = Field(default=0.0, description="Relative humidity")
