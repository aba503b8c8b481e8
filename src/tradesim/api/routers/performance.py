"""
Rule performance API endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from tradesim.api.dependencies import ServiceContainer, get_container
from tradesim.api.schemas.api_models import PerformanceRequest

router = APIRouter()


@router.post("/analyze")
async def analyze_performance(
    request: PerformanceRequest, container: ServiceContainer = Depends(get_container)
) -> dict[str, Any]:
    """Roll up rule performance and recommend rule changes."""
    snapshots = [snapshot.to_domain() for snapshot in request.snapshots]
    report = container.performance.analyze(snapshots, request.active_rule_ids)
    return report.to_dict()
