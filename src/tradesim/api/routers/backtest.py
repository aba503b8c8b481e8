"""
Backtest API endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from tradesim.api.dependencies import ServiceContainer, get_container
from tradesim.api.schemas.api_models import BacktestRequest
from tradesim.core.models.backtest import BacktestConfig

router = APIRouter()


@router.post("")
async def submit_backtest(
    request: BacktestRequest, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Run a backtest and return its result."""
    result = container.backtests.run(
        request.rule.to_domain(),
        period_start=request.period_start,
        period_end=request.period_end,
        config=BacktestConfig(initial_capital=request.initial_capital),
    )
    return result.to_dict()


@router.get("/{backtest_id}")
async def get_backtest_results(
    backtest_id: str, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Get backtest results by ID."""
    result = container.backtests.get(backtest_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Backtest not found: {backtest_id}")
    return result.to_dict()
