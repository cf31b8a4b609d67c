"""Rating and purchase models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TargetType(str, Enum):
    """What a rating refers to."""

    product = "product"
    provider = "provider"
    point_of_interest = "pointOfInterest"
    route = "route"


# Targets whose records carry a ``rating``/``review_count`` aggregate, keyed
# to the collection that holds them.
AGGREGATE_COLLECTIONS = {
    TargetType.product: "products",
    TargetType.provider: "providers",
}


@dataclass
class Rating:
    """A single 1-5 star rating. Immutable once created, apart from its like counter."""

    id: str
    user_id: str
    target_id: str
    target_type: TargetType
    value: int
    created_at: str
    comment: Optional[str] = None
    purchase_date: Optional[str] = None
    likes: int = 0
    dislikes: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.target_type, str):
            self.target_type = TargetType(self.target_type)


@dataclass
class Purchase:
    id: str
    user_id: str
    product_id: str
    provider_id: str
    purchase_date: str
    has_rated: bool = False


@dataclass
class RatingSummary:
    """Derived aggregate for one target."""

    average: float
    count: int
