from itertools import count
from typing import Protocol, Sequence

from warehouse.costing.layers import CostLayer


class LayerStore(Protocol):
    """Persistence seam for the ledger.

    ``layers`` must return layers ordered by ``(acquired_at, sequence)``.
    ``set_quantities`` must write every update or none of them.
    """

    def skus(self) -> list[str]: ...

    def layers(self, sku: str, *, for_update: bool = False) -> list[CostLayer]: ...

    def insert(self, layer: CostLayer) -> CostLayer: ...

    def set_quantities(self, updates: Sequence[tuple[CostLayer, int]]) -> None: ...

    def delete_by_origin(self, sku: str, origin_id: str) -> list[CostLayer]: ...


class InMemoryLayerStore:
    def __init__(self) -> None:
        self._layers: dict[str, list[CostLayer]] = {}
        self._sequence = count(1)

    def skus(self) -> list[str]:
        return sorted(sku for sku, layers in self._layers.items() if layers)

    def layers(self, sku: str, *, for_update: bool = False) -> list[CostLayer]:
        return sorted(self._layers.get(sku, []), key=lambda layer: layer.sort_key)

    def insert(self, layer: CostLayer) -> CostLayer:
        layer.sequence = next(self._sequence)
        layer.id = layer.sequence
        self._layers.setdefault(layer.sku, []).append(layer)
        return layer

    def set_quantities(self, updates: Sequence[tuple[CostLayer, int]]) -> None:
        for layer, quantity in updates:
            layer.quantity = quantity

    def delete_by_origin(self, sku: str, origin_id: str) -> list[CostLayer]:
        current = self._layers.get(sku, [])
        removed = [layer for layer in current if layer.origin_id == origin_id]
        self._layers[sku] = [layer for layer in current if layer.origin_id != origin_id]
        return removed
