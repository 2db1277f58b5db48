from warehouse.models.inventory import (
    CostLayerRecord,
    InventoryItem,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    ReturnItem,
    ReturnRequest,
    ReturnStatus,
    SalesOrder,
    SalesOrderItem,
    SalesOrderStatus,
)

__all__ = [
    "CostLayerRecord",
    "InventoryItem",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    "ReturnItem",
    "ReturnRequest",
    "ReturnStatus",
    "SalesOrder",
    "SalesOrderItem",
    "SalesOrderStatus",
]
