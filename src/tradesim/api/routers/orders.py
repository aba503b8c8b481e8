"""
Conditional order API endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from tradesim.api.dependencies import ServiceContainer, get_container
from tradesim.api.schemas.api_models import OrderRequest, TickRequest

router = APIRouter()


@router.post("", status_code=201)
async def create_order(
    request: OrderRequest, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Create a PENDING conditional order."""
    order = container.orders.create_order(
        user_id=request.user_id,
        order_type=request.order_type,
        direction=request.direction,
        quantity=request.quantity,
        trigger_price=request.trigger_price,
        limit_price=request.limit_price,
        trailing_percent=request.trailing_percent,
        expires_at=request.expires_at,
    )
    return order.to_dict()


@router.post("/tick")
async def process_tick(
    request: TickRequest, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Apply one price tick to every pending order."""
    report = container.orders.process_tick(request.current_price, request.now)
    return report.to_dict()


@router.get("/{order_id}")
async def get_order(
    order_id: str, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Get an order by ID."""
    return container.orders.get_order(order_id).to_dict()


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Cancel a PENDING order."""
    return container.orders.cancel_order(order_id).to_dict()
