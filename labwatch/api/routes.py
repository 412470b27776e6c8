"""API routes for the service list, poll interval, icon set and live status.

Endpoints:
  GET    /api/services            — list monitored services
  POST   /api/services            — append a service
  PUT    /api/services/{index}    — replace a service in place
  DELETE /api/services/{index}    — remove a service
  GET    /api/interval            — current poll interval (seconds)
  PUT    /api/interval            — change poll interval
  GET    /api/icon-set            — current icon set
  PUT    /api/icon-set            — change icon set (redraws immediately)
  GET    /api/status              — aggregate health + last poll report
  GET    /api/status/stream       — SSE stream of status refreshes
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from labwatch.health.errors import IndexOutOfRange
from labwatch.health.models import HealthReport, IconSet, Service
from labwatch.health.service import MonitorService
from labwatch.presentation import BroadcastPresenter, status_payload

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request models ───────────────────────────────────────────────────────────


class ServiceBody(BaseModel):
    name: str
    ip: str
    port: str


class IntervalBody(BaseModel):
    interval: int = Field(ge=0)


class IconSetBody(BaseModel):
    preference: IconSet


# ── Helpers ──────────────────────────────────────────────────────────────────


def _get_monitor(request: Request) -> MonitorService:
    return request.app.state.monitor  # type: ignore[no-any-return]


def _services_response(services: list[Service]) -> dict[str, Any]:
    return {
        "services": [s.to_dict() for s in services],
    }


# ── Services ─────────────────────────────────────────────────────────────────


@router.get("/services")
def list_services(request: Request) -> dict[str, Any]:
    return _services_response(_get_monitor(request).list_services())


@router.post("/services")
def add_service(body: ServiceBody, request: Request) -> dict[str, Any]:
    services = _get_monitor(request).add_service(body.name, body.ip, body.port)
    return _services_response(services)


@router.put("/services/{index}")
def update_service(index: int, body: ServiceBody, request: Request) -> dict[str, Any]:
    try:
        services = _get_monitor(request).update_service(index, body.name, body.ip, body.port)
    except IndexOutOfRange as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _services_response(services)


@router.delete("/services/{index}")
def remove_service(index: int, request: Request) -> dict[str, Any]:
    try:
        services = _get_monitor(request).remove_service(index)
    except IndexOutOfRange as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _services_response(services)


# ── Interval ─────────────────────────────────────────────────────────────────


@router.get("/interval")
def get_interval(request: Request) -> dict[str, Any]:
    return {"interval": _get_monitor(request).get_interval()}


@router.put("/interval")
def set_interval(body: IntervalBody, request: Request) -> dict[str, Any]:
    return {"interval": _get_monitor(request).set_interval(body.interval)}


# ── Icon set ─────────────────────────────────────────────────────────────────


@router.get("/icon-set")
def get_icon_set(request: Request) -> dict[str, Any]:
    return {"icon_set": _get_monitor(request).get_icon_set().value}


@router.put("/icon-set")
def set_icon_set(body: IconSetBody, request: Request) -> dict[str, Any]:
    return {"icon_set": _get_monitor(request).set_icon_set(body.preference).value}


# ── Status ───────────────────────────────────────────────────────────────────


@router.get("/status")
def get_status(request: Request) -> dict[str, Any]:
    """Cached verdict and the last poll report — never triggers a probe."""
    config, healthy, last = _get_monitor(request).store.view()
    report = last or HealthReport(aggregate_healthy=healthy)
    data = status_payload(report, config.icon_set)
    data["aggregate_healthy"] = healthy
    data["icon"] = config.icon_set.icon_for(healthy)
    data["polled"] = last is not None
    return data


@router.get("/status/stream")
async def status_stream(request: Request) -> StreamingResponse:
    """Server-Sent Events stream of status refreshes."""
    broadcaster: BroadcastPresenter = request.app.state.broadcaster
    queue = broadcaster.subscribe()

    async def event_generator():
        try:
            yield f"event: init\ndata: {json.dumps(get_status(request))}\n\n"

            while True:
                if await request.is_disconnected():
                    break
                try:
                    data = await asyncio.wait_for(queue.get(), timeout=30)
                    yield f"event: status\ndata: {json.dumps(data)}\n\n"
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        finally:
            broadcaster.unsubscribe(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
