from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from warehouse.models.inventory import PurchaseOrderStatus, ReturnStatus, SalesOrderStatus


class InventoryItemOut(BaseModel):
    sku: str
    name: str
    in_stock: int
    incoming: int
    reserved: int
    latest_unit_cost: Decimal | None
    valuation: Decimal


class CostLayerOut(BaseModel):
    id: int | None
    sku: str
    origin_kind: str
    origin_id: str
    quantity: int
    original_quantity: int
    unit_cost: Decimal
    acquired_at: datetime

    model_config = {"from_attributes": True}


class ManualInventoryCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=160)
    quantity: int = Field(gt=0)
    unit_cost: Decimal = Field(ge=0)
    acquired_at: datetime | None = None


class SkuValuationOut(BaseModel):
    sku: str
    quantity: int
    unit_cost: Decimal
    value: Decimal


class ValuationReportOut(BaseModel):
    method: str
    total_value: Decimal
    items: list[SkuValuationOut]


class PurchaseOrderItemIn(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str | None = Field(default=None, max_length=160)
    quantity: int = Field(gt=0)
    unit_cost: Decimal = Field(ge=0)


class PurchaseOrderCreate(BaseModel):
    supplier: str = Field(min_length=1, max_length=160)
    order_date: date
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    delivery_cost: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None
    items: list[PurchaseOrderItemIn] = Field(min_length=1)


class PurchaseOrderUpdate(BaseModel):
    supplier: str | None = Field(default=None, min_length=1, max_length=160)
    order_date: date | None = None
    status: PurchaseOrderStatus | None = None
    delivery_cost: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None
    items: list[PurchaseOrderItemIn] | None = Field(default=None, min_length=1)


class PurchaseOrderItemOut(BaseModel):
    id: int
    sku: str
    name: str | None
    quantity: int
    unit_cost: Decimal
    delivery_cost_per_unit: Decimal
    total_cost: Decimal

    model_config = {"from_attributes": True}


class PurchaseOrderOut(BaseModel):
    id: int
    reference: str
    supplier: str
    order_date: date
    status: PurchaseOrderStatus
    delivery_cost: Decimal
    total_cost: Decimal
    item_count: int
    notes: str | None
    items: list[PurchaseOrderItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SalesOrderItemIn(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    product_name: str | None = Field(default=None, max_length=160)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    total_price: Decimal | None = Field(default=None, ge=0)


class SalesOrderCreate(BaseModel):
    store_name: str = Field(min_length=1, max_length=120)
    external_order_id: str = Field(min_length=1, max_length=64)
    order_number: str | None = Field(default=None, max_length=64)
    customer_name: str | None = Field(default=None, max_length=160)
    customer_email: str | None = Field(default=None, max_length=320)
    order_date: datetime | None = None
    total_amount: Decimal | None = None
    shipping_cost: Decimal | None = None
    tax_amount: Decimal | None = None
    items: list[SalesOrderItemIn] = Field(min_length=1)


class SalesOrderItemOut(BaseModel):
    id: int
    sku: str
    product_name: str | None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    cost_attributed: Decimal | None
    shortfall_quantity: int

    model_config = {"from_attributes": True}


class SalesOrderOut(BaseModel):
    id: int
    store_name: str
    external_order_id: str
    order_number: str | None
    customer_name: str | None
    customer_email: str | None
    order_date: datetime
    status: SalesOrderStatus
    total_amount: Decimal | None
    shipping_cost: Decimal | None
    tax_amount: Decimal | None
    fulfilled_at: datetime | None
    items: list[SalesOrderItemOut]

    model_config = {"from_attributes": True}


class ShortfallOut(BaseModel):
    sku: str
    requested: int
    shortfall_quantity: int


class FulfillmentOut(BaseModel):
    order: SalesOrderOut
    total_cost: Decimal
    shortfalls: list[ShortfallOut]


class LineCostOut(BaseModel):
    sku: str
    quantity: int
    cost: Decimal
    shortfall_quantity: int


class OrderProfitOut(BaseModel):
    order_id: int
    cost_basis: str
    total_amount: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    total_cost: Decimal
    profit: Decimal
    shortfall_quantity: int
    lines: list[LineCostOut]


class LayerDrawOut(BaseModel):
    origin_id: str
    quantity: int
    unit_cost: Decimal
    total_cost: Decimal


class ReturnItemIn(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    product_name: str | None = Field(default=None, max_length=160)
    quantity: int = Field(gt=0)
    reason: str = Field(default="Other", max_length=64)
    condition: str = Field(default="Good", max_length=32)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    total_refund: Decimal = Field(default=Decimal("0"), ge=0)


class ReturnCreate(BaseModel):
    customer_name: str = Field(min_length=1, max_length=160)
    customer_email: str | None = Field(default=None, max_length=320)
    order_number: str | None = Field(default=None, max_length=64)
    return_date: date
    status: ReturnStatus = ReturnStatus.PENDING
    notes: str | None = None
    items: list[ReturnItemIn] = Field(min_length=1)


class ReturnUpdate(BaseModel):
    customer_name: str | None = Field(default=None, min_length=1, max_length=160)
    customer_email: str | None = Field(default=None, max_length=320)
    order_number: str | None = Field(default=None, max_length=64)
    return_date: date | None = None
    status: ReturnStatus | None = None
    notes: str | None = None


class ReturnItemOut(BaseModel):
    id: int
    sku: str
    product_name: str | None
    quantity: int
    reason: str
    condition: str
    unit_price: Decimal
    total_refund: Decimal
    restock_unit_cost: Decimal | None

    model_config = {"from_attributes": True}


class ReturnOut(BaseModel):
    id: int
    return_number: str
    customer_name: str
    customer_email: str | None
    order_number: str | None
    return_date: date
    status: ReturnStatus
    total_refund: Decimal
    notes: str | None
    items: list[ReturnItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReportSummaryOut(BaseModel):
    period_from: datetime | None
    period_to: datetime | None
    total_orders: int
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    profit_margin: Decimal
    shortfall_quantity: int
    inventory_value: Decimal


class ProductRevenueOut(BaseModel):
    sku: str
    revenue: Decimal
    quantity: int
