"""
FastAPI main application for the rule backtesting and order engine.
"""

import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from tradesim.core.exceptions.engine import (
    ConfigurationError,
    DataError,
    InsufficientDataError,
    OrderNotFoundError,
    OrderProcessingError,
    OrderStateError,
    ValidationError,
)
from tradesim.core.logging import setup_logging
from tradesim.infrastructure.data.price_loader import load_price_csv

from .dependencies import ServiceContainer, create_container
from .routers import backtest, data, orders, patterns, performance, signals
from .schemas.api_models import ErrorResponse

API_TITLE = "Tradesim API"
API_VERSION = "1.0.0"

# Optional CSV preloaded into the price store at startup
PRICE_CSV_ENV = "TRADESIM_PRICE_CSV"


def _error(
    status_code: int, error: str, exc: Exception, details: dict | None = None
) -> JSONResponse:
    body = ErrorResponse(error=error, message=str(exc), details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    """Map engine exceptions to HTTP responses."""

    @app.exception_handler(InsufficientDataError)
    async def insufficient_data_handler(request: Request, exc: InsufficientDataError):
        logger.warning(f"{request.url.path}: {exc}")
        details = {
            "required": exc.required,
            "available": exc.available,
            "operation": exc.operation,
        }
        return _error(422, "insufficient_data", exc, details)

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return _error(400, "validation_error", exc)

    @app.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError):
        return _error(400, "configuration_error", exc)

    @app.exception_handler(OrderNotFoundError)
    async def order_not_found_handler(request: Request, exc: OrderNotFoundError):
        return _error(404, "not_found", exc)

    @app.exception_handler(OrderStateError)
    async def order_state_handler(request: Request, exc: OrderStateError):
        return _error(409, "invalid_order_state", exc)

    @app.exception_handler(OrderProcessingError)
    async def order_processing_handler(request: Request, exc: OrderProcessingError):
        logger.error(f"{request.url.path}: {exc}")
        return _error(503, "order_processing_unavailable", exc)

    @app.exception_handler(DataError)
    async def data_error_handler(request: Request, exc: DataError):
        logger.error(f"{request.url.path}: {exc}")
        return _error(500, "data_error", exc)


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        container: Services to use; a fresh in-memory container when omitted,
            preloaded from the CSV named by TRADESIM_PRICE_CSV if set
    """
    if container is None:
        csv_path = os.getenv(PRICE_CSV_ENV)
        container = create_container(load_price_csv(csv_path) if csv_path else None)

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description="Rule backtesting, pattern scanning and conditional order processing",
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Accept", "Origin"],
    )

    register_exception_handlers(app)

    app.include_router(backtest.router, prefix="/api/backtest", tags=["backtest"])
    app.include_router(patterns.router, prefix="/api/patterns", tags=["patterns"])
    app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
    app.include_router(performance.router, prefix="/api/performance", tags=["performance"])
    app.include_router(signals.router, prefix="/api/signals", tags=["signals"])
    app.include_router(data.router, prefix="/api/data", tags=["data"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint returning API information."""
        return {"message": API_TITLE, "version": API_VERSION, "status": "running"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


setup_logging(debug=os.getenv("TRADESIM_DEBUG", "").lower() in ("1", "true"))
app = create_app()
