from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum


class LayerOrigin(str, Enum):
    PURCHASE_ORDER = "purchase_order"
    RETURN = "return"
    MANUAL = "manual"
    CANCELLATION = "cancellation"


def as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


@dataclass
class CostLayer:
    """A batch of stock acquired at one unit cost.

    ``quantity`` is what is left of the batch; ``original_quantity`` is what
    was received. Exhausted layers stay around for audit and for the
    "latest cost" lookup.
    """

    sku: str
    origin_id: str
    quantity: int
    unit_cost: Decimal
    acquired_at: datetime
    origin_kind: LayerOrigin = LayerOrigin.PURCHASE_ORDER
    original_quantity: int = 0
    sequence: int = 0
    id: int | None = None

    def __post_init__(self) -> None:
        self.acquired_at = as_datetime(self.acquired_at)
        if not self.original_quantity:
            self.original_quantity = self.quantity

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.acquired_at, self.sequence)

    @property
    def is_exhausted(self) -> bool:
        return self.quantity == 0

    @property
    def consumed_quantity(self) -> int:
        return self.original_quantity - self.quantity

    @property
    def value(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class LayerDraw:
    layer: CostLayer = field(repr=False, compare=False)
    quantity: int

    @property
    def origin_id(self) -> str:
        return self.layer.origin_id

    @property
    def unit_cost(self) -> Decimal:
        return self.layer.unit_cost

    @property
    def total_cost(self) -> Decimal:
        return self.layer.unit_cost * self.quantity
