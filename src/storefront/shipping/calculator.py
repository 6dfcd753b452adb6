"""Shipping strategy registry, calculator and service.

``ShippingStrategyFactory`` maps a key to a strategy constructor. New
strategies are registered by name without touching the existing ones;
registration order decides ties when looking for the cheapest option.
"""

from collections.abc import Callable
from dataclasses import dataclass

from storefront.exceptions import ShippingNotAvailableForSubtotal, UnsupportedShippingMethod
from storefront.shipping.strategies import (
    ExpressShipping,
    OvernightShipping,
    PickupShipping,
    ShippingMethod,
    ShippingStrategy,
    StandardShipping,
)
from storefront.utils.logging import get_logger

StrategyFactory = Callable[[], ShippingStrategy]


@dataclass(frozen=True)
class ShippingQuote:
    """A priced shipping option for a given cart."""

    key: str
    name: str
    description: str
    cost: float
    estimated_days: str
    icon: str
    method: ShippingMethod

    @property
    def is_free(self) -> bool:
        return self.cost == 0


def _default_strategies() -> dict[str, StrategyFactory]:
    return {
        "standard": StandardShipping,
        "express": ExpressShipping,
        "overnight": OvernightShipping,
        "pickup": PickupShipping,
    }


class ShippingStrategyFactory:
    def __init__(self, strategies: dict[str, StrategyFactory] | None = None, logger=None):
        self._strategies: dict[str, StrategyFactory] = dict(
            _default_strategies() if strategies is None else strategies
        )
        self._logger = logger or get_logger(__name__)

    def create(self, key: str) -> ShippingStrategy:
        creator = self._strategies.get(key.strip().lower())
        if creator is None:
            raise UnsupportedShippingMethod(key, self.supported_types())
        return creator()

    def register(self, key: str, creator: StrategyFactory) -> None:
        key = key.strip().lower()
        if key in self._strategies:
            self._logger.warning("shipping_strategy_overwritten", strategy=key)
        self._strategies[key] = creator
        self._logger.info("shipping_strategy_registered", strategy=key)

    def supported_types(self) -> list[str]:
        return list(self._strategies)

    def available_strategies(self, subtotal: float) -> list[ShippingStrategy]:
        """Strategies whose gate accepts ``subtotal``, in registration order."""
        available = [s for s in (creator() for creator in self._strategies.values()) if s.is_available(subtotal)]
        self._logger.debug(
            "shipping_strategies_available",
            subtotal=subtotal,
            strategies=[s.key for s in available],
        )
        return available

    def best_strategy(
        self, subtotal: float, weight: float | None = None, distance: float | None = None
    ) -> ShippingStrategy | None:
        """Cheapest available strategy; the first registered wins a tie."""
        best, lowest = None, None
        for strategy in self.available_strategies(subtotal):
            cost = strategy.calculate_cost(subtotal, weight, distance)
            if lowest is None or cost < lowest:
                best, lowest = strategy, cost

        if best is not None:
            self._logger.debug("shipping_best_strategy", subtotal=subtotal, strategy=best.key, cost=lowest)
        return best


class ShippingCalculator:
    """Runs a single strategy, enforcing its availability gate."""

    def __init__(self, strategy: ShippingStrategy, logger=None):
        self.strategy = strategy
        self._logger = logger or get_logger(__name__)

    def set_strategy(self, strategy: ShippingStrategy) -> None:
        self.strategy = strategy

    def is_available(self, subtotal: float) -> bool:
        return self.strategy.is_available(subtotal)

    def calculate(self, subtotal: float, weight: float | None = None, distance: float | None = None) -> float:
        if not self.strategy.is_available(subtotal):
            raise ShippingNotAvailableForSubtotal(self.strategy.key, subtotal)

        cost = round(self.strategy.calculate_cost(subtotal, weight, distance), 2)
        self._logger.debug("shipping_cost_calculated", strategy=self.strategy.key, subtotal=subtotal, cost=cost)
        return cost

    def quote(self, subtotal: float, weight: float | None = None, distance: float | None = None) -> ShippingQuote:
        cost = self.calculate(subtotal, weight, distance)
        return ShippingQuote(
            key=self.strategy.key,
            name=self.strategy.name,
            description=self.strategy.description,
            cost=cost,
            estimated_days=self.strategy.estimated_days(),
            icon=self.strategy.icon(),
            method=self.strategy.method(),
        )


class ShippingService:
    """High-level entry point used by checkout and the shipping API."""

    def __init__(self, factory: ShippingStrategyFactory | None = None, logger=None):
        self._logger = logger or get_logger(__name__)
        self.factory = factory or ShippingStrategyFactory(logger=self._logger)

    def options(self, subtotal: float, weight: float | None = None, distance: float | None = None) -> list[ShippingQuote]:
        return [
            ShippingCalculator(strategy, logger=self._logger).quote(subtotal, weight, distance)
            for strategy in self.factory.available_strategies(subtotal)
        ]

    def select(
        self, key: str, subtotal: float, weight: float | None = None, distance: float | None = None
    ) -> ShippingQuote:
        strategy = self.factory.create(key)
        quote = ShippingCalculator(strategy, logger=self._logger).quote(subtotal, weight, distance)
        self._logger.info("shipping_method_selected", strategy=quote.key, cost=quote.cost)
        return quote

    def recommend(self, subtotal: float, weight: float | None = None, distance: float | None = None) -> ShippingQuote:
        strategy = self.factory.best_strategy(subtotal, weight, distance)
        if strategy is None:
            raise ShippingNotAvailableForSubtotal("any", subtotal)

        quote = ShippingCalculator(strategy, logger=self._logger).quote(subtotal, weight, distance)
        self._logger.info("shipping_method_recommended", strategy=quote.key, cost=quote.cost)
        return quote
