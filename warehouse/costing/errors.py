class CostingError(Exception):
    pass


class InvalidInputError(CostingError, ValueError):
    pass


class UnknownSkuError(CostingError, LookupError):
    def __init__(self, sku: str):
        super().__init__(f"No cost layers recorded for SKU {sku!r}")
        self.sku = sku


class InsufficientStockError(CostingError):
    def __init__(self, sku: str, requested: int, available: int):
        super().__init__(
            f"Not enough stock for SKU {sku!r}: requested {requested}, available {available}"
        )
        self.sku = sku
        self.requested = requested
        self.available = available


class InvalidTransitionError(CostingError):
    pass


class LedgerInvariantError(CostingError):
    """A ledger write would break an invariant. Always a bug, never recovered."""
