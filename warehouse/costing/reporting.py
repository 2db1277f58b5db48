from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable, Sequence

from warehouse.costing.consumption import ConsumptionEngine, ConsumptionResult, ShortfallPolicy
from warehouse.costing.errors import InvalidInputError, UnknownSkuError
from warehouse.costing.layers import LayerDraw
from warehouse.costing.ledger import LayerLedger
from warehouse.costing.money import ZERO, to_decimal


class ValuationMethod(str, Enum):
    # on-hand quantity x cost of the newest layer
    LATEST_COST = "latest_cost"
    # sum of remaining quantity x cost over every layer
    FIFO = "fifo"


@dataclass(frozen=True)
class OrderLine:
    sku: str
    quantity: int
    unit_price: Decimal = ZERO
    total_price: Decimal | None = None

    @property
    def revenue(self) -> Decimal:
        if self.total_price is not None:
            return to_decimal(self.total_price, field="total_price")
        return to_decimal(self.unit_price, field="unit_price") * self.quantity


@dataclass(frozen=True)
class OrderSnapshot:
    order_id: str
    lines: Sequence[OrderLine]
    total_amount: Decimal | None = None
    tax_amount: Decimal | None = None
    shipping_cost: Decimal | None = None


@dataclass(frozen=True)
class LineCost:
    sku: str
    quantity: int
    cost: Decimal
    shortfall_quantity: int = 0
    draws: tuple[LayerDraw, ...] = field(default_factory=tuple)

    @classmethod
    def from_result(cls, result: ConsumptionResult) -> "LineCost":
        return cls(
            sku=result.sku,
            quantity=result.quantity,
            cost=result.cost_attributed,
            shortfall_quantity=result.shortfall_quantity,
            draws=result.draws,
        )


@dataclass(frozen=True)
class OrderProfit:
    order_id: str
    total_amount: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    total_cost: Decimal
    profit: Decimal
    lines: tuple[LineCost, ...]

    @property
    def shortfall_quantity(self) -> int:
        return sum(line.shortfall_quantity for line in self.lines)


@dataclass(frozen=True)
class SkuValuation:
    sku: str
    quantity: int
    unit_cost: Decimal
    value: Decimal


@dataclass(frozen=True)
class ProductRevenue:
    sku: str
    revenue: Decimal
    quantity: int


class ProfitReporter:
    """Read-side aggregation over the ledger. Never changes layer state."""

    def __init__(
        self,
        ledger: LayerLedger,
        engine: ConsumptionEngine,
        valuation_method: ValuationMethod = ValuationMethod.LATEST_COST,
    ):
        self.ledger = ledger
        self.engine = engine
        self.valuation_method = ValuationMethod(valuation_method)

    @property
    def _quote_policy(self) -> ShortfallPolicy:
        return ShortfallPolicy.degrade(self.engine.policy.fallback_unit_cost)

    def valuation(self, sku: str) -> SkuValuation:
        layers = list(self.ledger.layers_for(sku))
        if not layers:
            raise UnknownSkuError(sku)
        quantity = sum(layer.quantity for layer in layers)
        if self.valuation_method is ValuationMethod.FIFO:
            value = sum((layer.value for layer in layers), ZERO)
            unit_cost = value / quantity if quantity else layers[-1].unit_cost
        else:
            unit_cost = layers[-1].unit_cost
            value = unit_cost * quantity
        return SkuValuation(sku=sku, quantity=quantity, unit_cost=unit_cost, value=value)

    def current_valuation(self, sku: str) -> Decimal:
        return self.valuation(sku).value

    def valuation_report(self) -> list[SkuValuation]:
        return [self.valuation(sku) for sku in self.ledger.skus()]

    def total_valuation(self) -> Decimal:
        return sum((item.value for item in self.valuation_report()), ZERO)

    def _profit(self, order: OrderSnapshot, lines: Iterable[LineCost]) -> OrderProfit:
        lines = tuple(lines)
        total_amount = to_decimal(order.total_amount, field="total_amount")
        tax_amount = to_decimal(order.tax_amount, field="tax_amount")
        shipping_cost = to_decimal(order.shipping_cost, field="shipping_cost")
        total_cost = sum((line.cost for line in lines), ZERO)
        return OrderProfit(
            order_id=order.order_id,
            total_amount=total_amount,
            tax_amount=tax_amount,
            shipping_cost=shipping_cost,
            total_cost=total_cost,
            profit=total_amount - tax_amount - shipping_cost - total_cost,
            lines=lines,
        )

    def order_profit(self, order: OrderSnapshot) -> OrderProfit:
        policy = self._quote_policy
        lines = [
            LineCost.from_result(self.engine.quote(line.sku, line.quantity, policy=policy))
            for line in order.lines
        ]
        return self._profit(order, lines)

    def frozen_order_profit(self, order: OrderSnapshot, line_costs: Sequence[LineCost]) -> OrderProfit:
        return self._profit(order, line_costs)

    def cost_breakdown(self, order: OrderSnapshot) -> dict[str, list[LayerDraw]]:
        policy = self._quote_policy
        breakdown: dict[str, list[LayerDraw]] = {}
        for line in order.lines:
            result = self.engine.quote(line.sku, line.quantity, policy=policy)
            breakdown.setdefault(line.sku, []).extend(result.draws)
        return breakdown

    def top_products_by_revenue(self, orders: Iterable[OrderSnapshot], limit: int) -> list[ProductRevenue]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidInputError(f"limit must be a positive integer, got {limit!r}")
        revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
        quantity: dict[str, int] = defaultdict(int)
        for order in orders:
            for line in order.lines:
                revenue[line.sku] += line.revenue
                quantity[line.sku] += line.quantity
        ranked = sorted(revenue, key=lambda sku: (-revenue[sku], sku))
        return [
            ProductRevenue(sku=sku, revenue=revenue[sku], quantity=quantity[sku])
            for sku in ranked[:limit]
        ]
