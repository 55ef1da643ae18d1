"""Metrics router for the relay."""

from fastapi import APIRouter, Response

from services.metrics import CONTENT_TYPE_LATEST, render_latest

router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=Response)
async def prometheus_metrics() -> Response:
    """Prometheus metrics in text format."""
    return Response(content=render_latest(), media_type=CONTENT_TYPE_LATEST)
