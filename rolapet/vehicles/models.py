"""Vehicle models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class VehicleType(str, Enum):
    scooter = "scooter"
    bicycle = "bicycle"
    motorcycle = "motorcycle"


@dataclass
class Vehicle:
    id: str
    user_id: str
    type: VehicleType
    brand: str
    model: str
    year: int
    registration_date: str
    is_electric: bool = True
    color: Optional[str] = None
    license_plate: Optional[str] = None
    serial_number: Optional[str] = None
    battery_capacity: Optional[str] = None
    max_speed: Optional[float] = None
    range_km: Optional[float] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = VehicleType(self.type)
