from warehouse.costing.allocation import AllocatedLine, PurchaseLine, allocate_delivery_cost, delivery_cost_per_unit
from warehouse.costing.consumption import (
    DEFAULT_FALLBACK_UNIT_COST,
    ConsumptionEngine,
    ConsumptionResult,
    ShortfallMode,
    ShortfallPolicy,
)
from warehouse.costing.errors import (
    CostingError,
    InsufficientStockError,
    InvalidInputError,
    InvalidTransitionError,
    LedgerInvariantError,
    UnknownSkuError,
)
from warehouse.costing.layers import CostLayer, LayerDraw, LayerOrigin
from warehouse.costing.ledger import LayerLedger, SkuLocks
from warehouse.costing.reporting import (
    LineCost,
    OrderLine,
    OrderProfit,
    OrderSnapshot,
    ProductRevenue,
    ProfitReporter,
    SkuValuation,
    ValuationMethod,
)
from warehouse.costing.stores import InMemoryLayerStore, LayerStore

__all__ = [
    "DEFAULT_FALLBACK_UNIT_COST",
    "AllocatedLine",
    "ConsumptionEngine",
    "ConsumptionResult",
    "CostLayer",
    "CostingError",
    "InMemoryLayerStore",
    "InsufficientStockError",
    "InvalidInputError",
    "InvalidTransitionError",
    "LayerDraw",
    "LayerLedger",
    "LayerOrigin",
    "LayerStore",
    "LedgerInvariantError",
    "LineCost",
    "OrderLine",
    "OrderProfit",
    "OrderSnapshot",
    "ProductRevenue",
    "ProfitReporter",
    "PurchaseLine",
    "ShortfallMode",
    "ShortfallPolicy",
    "SkuLocks",
    "SkuValuation",
    "UnknownSkuError",
    "ValuationMethod",
    "allocate_delivery_cost",
    "delivery_cost_per_unit",
]
