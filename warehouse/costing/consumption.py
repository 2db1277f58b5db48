import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from warehouse.costing.errors import InsufficientStockError, InvalidInputError
from warehouse.costing.layers import CostLayer, LayerDraw, LayerOrigin
from warehouse.costing.ledger import LayerLedger, require_positive_quantity
from warehouse.costing.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_UNIT_COST = Decimal("50.00")


class ShortfallMode(str, Enum):
    DEGRADE = "degrade"
    REJECT = "reject"


@dataclass(frozen=True)
class ShortfallPolicy:
    """What to do when a demand exceeds the recorded layers.

    ``degrade`` costs the missing units at ``fallback_unit_cost`` and reports
    them as a shortfall; ``reject`` raises ``InsufficientStockError``.
    """

    mode: ShortfallMode = ShortfallMode.DEGRADE
    fallback_unit_cost: Decimal = DEFAULT_FALLBACK_UNIT_COST

    def __post_init__(self) -> None:
        cost = to_decimal(self.fallback_unit_cost, field="fallback_unit_cost")
        if cost < ZERO:
            raise InvalidInputError("fallback_unit_cost must not be negative")
        object.__setattr__(self, "fallback_unit_cost", cost)
        object.__setattr__(self, "mode", ShortfallMode(self.mode))

    @classmethod
    def degrade(cls, fallback_unit_cost=DEFAULT_FALLBACK_UNIT_COST) -> "ShortfallPolicy":
        return cls(ShortfallMode.DEGRADE, fallback_unit_cost)

    @classmethod
    def reject(cls) -> "ShortfallPolicy":
        return cls(ShortfallMode.REJECT)


@dataclass(frozen=True)
class ConsumptionResult:
    sku: str
    quantity: int
    cost_attributed: Decimal
    shortfall_quantity: int = 0
    draws: tuple[LayerDraw, ...] = field(default_factory=tuple)

    @property
    def has_shortfall(self) -> bool:
        return self.shortfall_quantity > 0

    @property
    def backed_quantity(self) -> int:
        return self.quantity - self.shortfall_quantity

    @property
    def unit_cost(self) -> Decimal:
        return self.cost_attributed / self.quantity


class ConsumptionEngine:
    def __init__(self, ledger: LayerLedger, policy: ShortfallPolicy | None = None):
        self.ledger = ledger
        self.policy = policy if policy is not None else ShortfallPolicy()

    def _plan(self, sku: str, quantity: int, *, for_update: bool) -> tuple[list[LayerDraw], int]:
        remaining = quantity
        draws: list[LayerDraw] = []
        for layer in self.ledger.layers_for(sku, for_update=for_update):
            if remaining <= 0:
                break
            if layer.quantity <= 0:
                continue
            take = min(remaining, layer.quantity)
            draws.append(LayerDraw(layer=layer, quantity=take))
            remaining -= take
        return draws, remaining

    def _settle(
        self,
        sku: str,
        quantity: int,
        draws: list[LayerDraw],
        shortfall: int,
        policy: ShortfallPolicy,
    ) -> ConsumptionResult:
        cost = sum((draw.total_cost for draw in draws), ZERO)
        if shortfall > 0:
            if policy.mode is ShortfallMode.REJECT:
                raise InsufficientStockError(sku, quantity, quantity - shortfall)
            cost += policy.fallback_unit_cost * shortfall
        return ConsumptionResult(
            sku=sku,
            quantity=quantity,
            cost_attributed=cost,
            shortfall_quantity=shortfall,
            draws=tuple(draws),
        )

    def consume(self, sku: str, quantity: int) -> ConsumptionResult:
        """Take ``quantity`` units of ``sku`` oldest layer first.

        Either every layer decrement is written or none is. Under the degrade
        policy a shortfall never raises; it is logged and reported on the
        result.
        """
        require_positive_quantity(quantity)
        with self.ledger.locks.hold(sku):
            draws, shortfall = self._plan(sku, quantity, for_update=True)
            result = self._settle(sku, quantity, draws, shortfall, self.policy)
            self.ledger.apply_draws(sku, result.draws)
        if result.has_shortfall:
            logger.warning(
                "Stock shortfall for %s: %s of %s units have no cost layer, costed at %s each",
                sku,
                result.shortfall_quantity,
                quantity,
                self.policy.fallback_unit_cost,
            )
        return result

    def quote(
        self,
        sku: str,
        quantity: int,
        *,
        policy: ShortfallPolicy | None = None,
    ) -> ConsumptionResult:
        """Cost ``quantity`` units the way ``consume`` would, without touching the ledger.

        ``policy`` overrides the engine policy for this quote only; reports
        pass a degrade policy so they render even when fulfillment rejects.
        """
        require_positive_quantity(quantity)
        draws, shortfall = self._plan(sku, quantity, for_update=False)
        return self._settle(sku, quantity, draws, shortfall, policy or self.policy)

    def release(
        self,
        sku: str,
        origin_id: str,
        quantity: int,
        unit_cost,
        acquired_at: date | datetime,
        *,
        origin_kind: LayerOrigin = LayerOrigin.RETURN,
    ) -> CostLayer:
        return self.ledger.add_layer(
            sku,
            origin_id,
            quantity,
            unit_cost,
            acquired_at,
            origin_kind=origin_kind,
        )
