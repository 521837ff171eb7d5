"""Route exposing request and storage metrics."""

from __future__ import annotations

from fastapi import APIRouter, Response

from .middleware import render_metrics

router = APIRouter(tags=["Monitoring"])

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4"


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Expose request counters, latencies and storage object counters for scraping."""

    return Response(content=render_metrics(), media_type=PROMETHEUS_CONTENT_TYPE)
