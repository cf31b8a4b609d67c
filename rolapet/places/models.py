"""Map point-of-interest models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PointType(str, Enum):
    charging_station = "charging_station"
    repair_shop = "repair_shop"
    parking = "parking"
    store = "store"
    rest_area = "rest_area"
    scenic_point = "scenic_point"
    danger_zone = "danger_zone"


@dataclass
class PointOfInterest:
    id: str
    name: str
    type: PointType
    lat: float
    lng: float
    created_by: str
    created_at: str
    description: str = ""
    address: str = ""
    amenities: list[str] = field(default_factory=list)
    is_verified: bool = False
    rating: float = 0.0
    review_count: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = PointType(self.type)


class RouteDifficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class RouteType(str, Enum):
    urban = "urban"
    suburban = "suburban"
    mixed = "mixed"


@dataclass
class Waypoint:
    lat: float
    lng: float
    order: int


@dataclass
class Route:
    """A rider-published route. ``distance`` is in km and ``estimated_duration`` in minutes, both as entered."""

    id: str
    name: str
    created_by: str
    difficulty: RouteDifficulty
    type: RouteType
    waypoints: list[Waypoint]
    created_at: str
    updated_at: str
    description: str = ""
    distance: float = 0.0
    estimated_duration: int = 0
    points_of_interest: list[str] = field(default_factory=list)
    is_public: bool = True
    rating: float = 0.0
    review_count: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.difficulty, str):
            self.difficulty = RouteDifficulty(self.difficulty)
        if isinstance(self.type, str):
            self.type = RouteType(self.type)
        self.waypoints = [Waypoint(**w) if isinstance(w, dict) else w for w in self.waypoints]
