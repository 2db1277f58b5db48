import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from warehouse.api.routes.inventory import router as inventory_router
from warehouse.api.routes.orders import router as orders_router
from warehouse.api.routes.purchase_orders import router as purchase_orders_router
from warehouse.api.routes.reports import router as reports_router
from warehouse.api.routes.returns import router as returns_router
from warehouse.core.config import settings
from warehouse.core.logging import configure_logging
from warehouse.costing import (
    CostingError,
    InsufficientStockError,
    InvalidInputError,
    InvalidTransitionError,
    LedgerInvariantError,
    UnknownSkuError,
)

configure_logging(settings.log_level, debug=settings.debug)
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[CostingError], int] = {
    InvalidInputError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnknownSkuError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
}

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(inventory_router)
app.include_router(purchase_orders_router)
app.include_router(orders_router)
app.include_router(returns_router)
app.include_router(reports_router)


@app.exception_handler(CostingError)
async def costing_error_handler(request: Request, exc: CostingError) -> JSONResponse:
    if isinstance(exc, LedgerInvariantError):
        logger.error("Ledger invariant violated on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Inventory ledger is inconsistent"},
        )
    code = next(
        (value for error_type, value in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(status_code=code, content={"detail": str(exc)})


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
