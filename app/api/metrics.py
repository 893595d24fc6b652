from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response

from app.observability.metrics import get_metrics


router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def metrics() -> Response:
    registry = get_metrics()
    return Response(content=registry.render(), media_type=registry.content_type)
