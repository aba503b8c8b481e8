"""
Price data API endpoints.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from tradesim.api.dependencies import ServiceContainer, get_container
from tradesim.core.models.price import PricePoint, PriceSeries

router = APIRouter()


class PricePointModel(BaseModel):
    """One OHLCV sample."""

    timestamp: datetime
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: float = Field(default=0.0, ge=0)


@router.get("/history")
async def get_historical_data(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    limit: int | None = Query(default=None, gt=0, description="Newest N points only"),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Get stored OHLCV data, oldest first."""
    points = container.price_store.load_series(start, end).to_points()
    if limit is not None:
        points = points[-limit:]
    return {
        "count": len(points),
        "data": [{**p.to_dict(), "timestamp": p.timestamp.isoformat()} for p in points],
    }


@router.post("/history")
async def replace_historical_data(
    points: list[PricePointModel], container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Replace stored price history; points may arrive in any order."""
    ordered = sorted(points, key=lambda p: p.timestamp)
    series = PriceSeries.from_points(PricePoint(**p.model_dump()) for p in ordered)
    container.price_store.set_series(series)
    return {"count": len(series), "latest_price": container.price_store.latest_price()}
