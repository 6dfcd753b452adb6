"""Shipping cost strategies.

Each strategy is an independent type: a pure cost function of
``(subtotal, weight, distance)`` plus its availability gate and display
metadata. Amounts are in COP. Missing weight defaults to 1 kg and missing
distance to 10 km.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

DEFAULT_WEIGHT_KG = 1.0
DEFAULT_DISTANCE_KM = 10.0


@dataclass(frozen=True)
class ShippingMethod:
    """Immutable reference data describing a shipping option."""

    id: str
    name: str
    description: str
    base_cost: float
    free_shipping_threshold: float | None
    estimated_delivery: str


class ShippingStrategy(ABC):
    """Contract every shipping strategy implements."""

    key: str
    name: str
    description: str

    @abstractmethod
    def calculate_cost(self, subtotal: float, weight: float | None = None, distance: float | None = None) -> float:
        """Return the non-negative shipping cost."""
        ...

    @abstractmethod
    def estimated_days(self) -> str: ...

    @abstractmethod
    def is_available(self, subtotal: float) -> bool: ...

    @abstractmethod
    def icon(self) -> str: ...

    @abstractmethod
    def method(self) -> ShippingMethod: ...


def _linear_cost(base: float, per_kg: float, per_km: float, weight: float | None, distance: float | None) -> float:
    weight = DEFAULT_WEIGHT_KG if weight is None else weight
    distance = DEFAULT_DISTANCE_KM if distance is None else distance
    return base + weight * per_kg + distance * per_km


class StandardShipping(ShippingStrategy):
    """Regular delivery on business days, free above the threshold."""

    key = "standard"
    name = "Standard Shipping"
    description = "Regular delivery on business days"

    BASE_COST = 15_000.0
    COST_PER_KG = 2_000.0
    COST_PER_KM = 500.0
    FREE_SHIPPING_THRESHOLD = 150_000.0
    MINIMUM_SUBTOTAL = 50_000.0

    def calculate_cost(self, subtotal, weight=None, distance=None):
        if subtotal >= self.FREE_SHIPPING_THRESHOLD:
            return 0.0
        return _linear_cost(self.BASE_COST, self.COST_PER_KG, self.COST_PER_KM, weight, distance)

    def estimated_days(self):
        return "5-7 business days"

    def is_available(self, subtotal):
        return subtotal >= self.MINIMUM_SUBTOTAL

    def icon(self):
        return "📦"

    def method(self):
        return ShippingMethod(
            id=self.key,
            name=self.name,
            description=self.description,
            base_cost=self.BASE_COST,
            free_shipping_threshold=self.FREE_SHIPPING_THRESHOLD,
            estimated_delivery=self.estimated_days(),
        )


class ExpressShipping(ShippingStrategy):
    """Fast delivery. No free tier, half price on large orders."""

    key = "express"
    name = "Express Shipping"
    description = "Fast delivery in 1-2 days"

    BASE_COST = 25_000.0
    COST_PER_KG = 3_000.0
    COST_PER_KM = 800.0
    DISCOUNT_THRESHOLD = 300_000.0
    DISCOUNT_RATE = 0.5
    MINIMUM_SUBTOTAL = 100_000.0

    def calculate_cost(self, subtotal, weight=None, distance=None):
        cost = _linear_cost(self.BASE_COST, self.COST_PER_KG, self.COST_PER_KM, weight, distance)
        if subtotal >= self.DISCOUNT_THRESHOLD:
            return cost * (1 - self.DISCOUNT_RATE)
        return cost

    def estimated_days(self):
        return "1-2 business days"

    def is_available(self, subtotal):
        return subtotal >= self.MINIMUM_SUBTOTAL

    def icon(self):
        return "⚡"

    def method(self):
        return ShippingMethod(
            id=self.key,
            name=self.name,
            description=self.description,
            base_cost=self.BASE_COST,
            free_shipping_threshold=None,
            estimated_delivery=self.estimated_days(),
        )


class OvernightShipping(ShippingStrategy):
    """Next-day delivery before noon, premium priced."""

    key = "overnight"
    name = "Overnight Shipping"
    description = "Delivered the next business day before 12 PM"

    BASE_COST = 45_000.0
    COST_PER_KG = 5_000.0
    COST_PER_KM = 1_200.0
    DISCOUNT_THRESHOLD = 500_000.0
    DISCOUNT_RATE = 0.2
    MINIMUM_SUBTOTAL = 200_000.0

    def calculate_cost(self, subtotal, weight=None, distance=None):
        cost = _linear_cost(self.BASE_COST, self.COST_PER_KG, self.COST_PER_KM, weight, distance)
        if subtotal >= self.DISCOUNT_THRESHOLD:
            return cost * (1 - self.DISCOUNT_RATE)
        return cost

    def estimated_days(self):
        return "Next business day"

    def is_available(self, subtotal):
        return subtotal >= self.MINIMUM_SUBTOTAL

    def icon(self):
        return "🚁"

    def method(self):
        return ShippingMethod(
            id=self.key,
            name=self.name,
            description=self.description,
            base_cost=self.BASE_COST,
            free_shipping_threshold=None,
            estimated_delivery=self.estimated_days(),
        )


class PickupShipping(ShippingStrategy):
    """In-store pickup, always free."""

    key = "pickup"
    name = "Store Pickup"
    description = "Pick up your order at one of our stores at no cost"

    MINIMUM_SUBTOTAL = 20_000.0

    def calculate_cost(self, subtotal, weight=None, distance=None):
        return 0.0

    def estimated_days(self):
        return "2-3 business days"

    def is_available(self, subtotal):
        return subtotal >= self.MINIMUM_SUBTOTAL

    def icon(self):
        return "🏪"

    def method(self):
        return ShippingMethod(
            id=self.key,
            name=self.name,
            description=self.description,
            base_cost=0.0,
            free_shipping_threshold=0.0,
            estimated_delivery=self.estimated_days(),
        )
