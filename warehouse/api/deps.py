from fastapi import Depends
from sqlalchemy.orm import Session

from warehouse.core.config import settings
from warehouse.costing import (
    ConsumptionEngine,
    LayerLedger,
    ProfitReporter,
    ShortfallMode,
    ShortfallPolicy,
    SkuLocks,
    ValuationMethod,
)
from warehouse.db.database import get_db
from warehouse.db.layer_store import SqlLayerStore

# shared by every request in this process
SKU_LOCKS = SkuLocks()


def shortfall_policy() -> ShortfallPolicy:
    return ShortfallPolicy(
        mode=ShortfallMode(settings.shortfall_policy),
        fallback_unit_cost=settings.fallback_unit_cost,
    )


def get_ledger(db: Session = Depends(get_db)) -> LayerLedger:
    return LayerLedger(SqlLayerStore(db), locks=SKU_LOCKS)


def get_engine(ledger: LayerLedger = Depends(get_ledger)) -> ConsumptionEngine:
    return ConsumptionEngine(ledger, shortfall_policy())


def get_reporter(
    ledger: LayerLedger = Depends(get_ledger),
    engine: ConsumptionEngine = Depends(get_engine),
) -> ProfitReporter:
    return ProfitReporter(ledger, engine, ValuationMethod(settings.valuation_method))
