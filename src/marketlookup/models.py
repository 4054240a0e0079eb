from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

PRICE_POINTS: Tuple[str, ...] = ("price", "min_price", "max_price", "retail_price", "wholesale_price")


@dataclass(frozen=True)
class ReferenceItem:
    """Catalog row treated as the source of truth for pricing."""

    id: str
    code: str
    description: str
    price: float
    currency: str = "USD"
    incoterm: Optional[str] = None
    moq: Optional[str] = None
    size: Optional[str] = None
    feature: Optional[str] = None
    tokens: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ObservedItem:
    """Market observation with its base price and optional secondary price points."""

    id: str
    description: str
    price: float
    currency: str = "USD"
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    retail_price: Optional[float] = None
    wholesale_price: Optional[float] = None
    source: Optional[str] = None
    region: Optional[str] = None
    tokens: Tuple[str, ...] = ()

    def price_at(self, point: str = "price") -> Optional[float]:
        if point not in PRICE_POINTS:
            raise ValueError(f"Unknown price point: {point!r}")
        return getattr(self, point)


@dataclass(frozen=True)
class MatchEdge:
    reference_id: str
    observed_id: str
    score: float


@dataclass(frozen=True)
class PricingStats:
    """Descriptive statistics of matched observed prices against one reference price.

    ``count == 0`` is the "no comparison available" sentinel; every other
    field is zero in that case.
    """

    min_price: float
    max_price: float
    avg_price: float
    count: int
    variance_from_avg: float
    variance_from_min: float

    @classmethod
    def empty(cls) -> "PricingStats":
        return cls(
            min_price=0.0,
            max_price=0.0,
            avg_price=0.0,
            count=0,
            variance_from_avg=0.0,
            variance_from_min=0.0,
        )

    @property
    def has_data(self) -> bool:
        return self.count > 0
