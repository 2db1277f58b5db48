import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Iterator, Sequence

from warehouse.costing.errors import InvalidInputError, LedgerInvariantError, UnknownSkuError
from warehouse.costing.layers import CostLayer, LayerDraw, LayerOrigin
from warehouse.costing.money import ZERO, to_decimal
from warehouse.costing.stores import InMemoryLayerStore, LayerStore

logger = logging.getLogger(__name__)


class SkuLocks:
    """One re-entrant lock per SKU, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, sku: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(sku)
            if lock is None:
                lock = threading.RLock()
                self._locks[sku] = lock
            return lock

    @contextmanager
    def hold(self, sku: str):
        lock = self._lock_for(sku)
        with lock:
            yield


def _require_text(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field} must be a non-empty string")
    return value.strip()


def require_positive_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInputError(f"quantity must be an integer, got {quantity!r}")
    if quantity <= 0:
        raise InvalidInputError(f"quantity must be greater than zero, got {quantity}")
    return quantity


class LayerLedger:
    """Ordered FIFO cost layers per SKU.

    All quantity changes go through this object. Mutations of one SKU are
    serialised by ``locks``; pass the same ``SkuLocks`` to every ledger that
    shares a store.
    """

    def __init__(self, store: LayerStore | None = None, locks: SkuLocks | None = None):
        self.store = store if store is not None else InMemoryLayerStore()
        self.locks = locks if locks is not None else SkuLocks()

    def add_layer(
        self,
        sku: str,
        origin_id: str,
        quantity: int,
        unit_cost,
        acquired_at: date | datetime,
        *,
        origin_kind: LayerOrigin = LayerOrigin.PURCHASE_ORDER,
    ) -> CostLayer:
        sku = _require_text(sku, "sku")
        origin_id = _require_text(origin_id, "origin_id")
        require_positive_quantity(quantity)
        cost = to_decimal(unit_cost, field="unit_cost")
        if cost < ZERO:
            raise InvalidInputError(f"unit_cost must not be negative, got {cost}")
        if acquired_at is None:
            raise InvalidInputError("acquired_at is required")

        layer = CostLayer(
            sku=sku,
            origin_id=origin_id,
            quantity=quantity,
            unit_cost=cost,
            acquired_at=acquired_at,
            origin_kind=origin_kind,
        )
        with self.locks.hold(sku):
            layer = self.store.insert(layer)
        logger.debug("Added layer %s qty=%s cost=%s for %s", origin_id, quantity, cost, sku)
        return layer

    def remove_layers_by_origin(self, sku: str, origin_id: str) -> list[CostLayer]:
        sku = _require_text(sku, "sku")
        origin_id = _require_text(origin_id, "origin_id")
        with self.locks.hold(sku):
            removed = self.store.delete_by_origin(sku, origin_id)
        for layer in removed:
            if layer.consumed_quantity > 0:
                logger.warning(
                    "Removed layer %s for %s after %s of %s units were consumed; "
                    "their cost history is gone",
                    origin_id,
                    sku,
                    layer.consumed_quantity,
                    layer.original_quantity,
                )
        return removed

    def layers_for(self, sku: str, *, for_update: bool = False) -> Iterator[CostLayer]:
        yield from self.store.layers(sku, for_update=for_update)

    def has_sku(self, sku: str) -> bool:
        return any(True for _ in self.layers_for(sku))

    def skus(self) -> list[str]:
        return self.store.skus()

    def total_quantity(self, sku: str) -> int:
        return sum(layer.quantity for layer in self.layers_for(sku))

    def latest_unit_cost(self, sku: str) -> Decimal:
        latest: CostLayer | None = None
        for layer in self.layers_for(sku):
            latest = layer
        if latest is None:
            raise UnknownSkuError(sku)
        return latest.unit_cost

    def apply_draws(self, sku: str, draws: Sequence[LayerDraw]) -> None:
        updates: list[tuple[CostLayer, int]] = []
        with self.locks.hold(sku):
            for draw in draws:
                if draw.layer.sku != sku:
                    raise LedgerInvariantError(
                        f"Draw on layer for {draw.layer.sku!r} submitted under {sku!r}"
                    )
                remaining = draw.layer.quantity - draw.quantity
                if draw.quantity <= 0 or remaining < 0:
                    logger.error(
                        "Refusing draw of %s from layer %s (%s left) for %s",
                        draw.quantity,
                        draw.layer.origin_id,
                        draw.layer.quantity,
                        sku,
                    )
                    raise LedgerInvariantError(
                        f"Draw of {draw.quantity} from layer {draw.layer.origin_id!r} "
                        f"would leave {remaining} units"
                    )
                updates.append((draw.layer, remaining))
            self.store.set_quantities(updates)

    def draw_from_origin(self, sku: str, origin_id: str, quantity: int) -> int:
        """Mark ``quantity`` units of one origin's layers as consumed, oldest first.

        Used when an origin's layers are rebuilt after some of their stock
        was already sold. Returns the units that did not fit.
        """
        if quantity <= 0:
            return 0
        with self.locks.hold(sku):
            remaining = quantity
            draws: list[LayerDraw] = []
            for layer in self.layers_for(sku, for_update=True):
                if remaining <= 0:
                    break
                if layer.origin_id != origin_id or layer.quantity <= 0:
                    continue
                take = min(remaining, layer.quantity)
                draws.append(LayerDraw(layer=layer, quantity=take))
                remaining -= take
            if draws:
                self.apply_draws(sku, draws)
        return remaining
