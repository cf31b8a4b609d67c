"""Marketplace catalog models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ProviderType(str, Enum):
    service = "service"
    product = "product"
    both = "both"


class ProductType(str, Enum):
    service = "service"
    product = "product"


@dataclass
class Provider:
    """A business selling products or services. Starts disabled until an admin enables it."""

    id: str
    name: str
    email: str
    type: ProviderType
    phone: str = ""
    address: str = ""
    description: str = ""
    categories: list[str] = field(default_factory=list)
    is_enabled: bool = False
    registration_date: str = ""
    user_id: Optional[str] = None
    rating: float = 0.0
    review_count: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = ProviderType(self.type)


@dataclass
class Product:
    id: str
    provider_id: str
    name: str
    type: ProductType
    price: float
    category: str = ""
    description: str = ""
    currency: str = "COP"
    is_available: bool = True
    stock: Optional[int] = None
    rating: float = 0.0
    review_count: int = 0
    created_at: str = ""
    updated_at: str = ""
    features: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = ProductType(self.type)
