"""
Trading signal API endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from tradesim.api.dependencies import ServiceContainer, get_container
from tradesim.api.schemas.api_models import SignalRequest

router = APIRouter()


@router.post("")
async def generate_signal(
    request: SignalRequest, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Signal for the newest stored price; signal is null when there is none."""
    signal = container.signals.current_signal(request.previous())
    return {"signal": signal.to_dict() if signal else None}
