"""
Pattern scan API endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from tradesim.api.dependencies import ServiceContainer, get_container
from tradesim.api.schemas.api_models import PatternScanRequest

router = APIRouter()


@router.post("/scan")
async def scan_patterns(
    request: PatternScanRequest, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Scan stored price history for patterns."""
    result = container.patterns.scan(request.period_start, request.period_end)
    return result.to_dict()
