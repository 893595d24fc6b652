from __future__ import annotations

import asyncio
from time import perf_counter

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.models.schemas import CpuResponse, FaultResponse, MemoryLeakResponse, MessageResponse
from app.observability.logging import log
from app.observability.metrics import get_metrics
from app.services.simulation import burn_cpu, get_leak_store, roll_fault, slow_delay, utcnow

router = APIRouter(prefix="/api", tags=["simulate"])


@router.get("/fast", response_model=MessageResponse)
async def fast() -> MessageResponse:
    log("info", "Fast API called", {"endpoint": "fast"})
    return MessageResponse(message="This is a fast response", time=utcnow())


@router.get("/slow", response_model=MessageResponse)
async def slow() -> MessageResponse:
    log("info", "Slow API called - starting delay", {"endpoint": "slow", "state": "starting"})
    await asyncio.sleep(slow_delay())
    log("info", "Slow API responding after delay", {"endpoint": "slow", "state": "completed"})
    return MessageResponse(message="This is a slow response", time=utcnow())


@router.get(
    "/faulty",
    response_model=MessageResponse,
    responses={500: {"model": FaultResponse}},
)
async def faulty():
    log("info", "Faulty API called", {"endpoint": "faulty"})

    error_type = roll_fault()
    if error_type is None:
        return MessageResponse(message="Faulty endpoint worked this time!", time=utcnow())

    get_metrics().increment_error("/api/faulty", error_type)
    log(
        "error",
        f"Faulty API error: {error_type}",
        {"endpoint": "faulty", "errorType": error_type, "route": "/api/faulty"},
    )
    body = FaultResponse(type=error_type, message=f"Simulated error: {error_type}")
    return JSONResponse(status_code=500, content=body.model_dump())


@router.get("/memory-leak", response_model=MemoryLeakResponse)
async def memory_leak() -> MemoryLeakResponse:
    log("info", "Memory leak simulation API called", {"endpoint": "memory-leak"})

    # Deliberate leak: the store only ever grows.
    total = get_leak_store().leak()

    log(
        "warning",
        "Memory leak simulation - added 1MB to memory",
        {"endpoint": "memory-leak", "totalLeakedMB": total},
    )
    return MemoryLeakResponse(message="Memory leak simulated", leaked_mb=total, time=utcnow())


@router.get("/cpu-intensive", response_model=CpuResponse)
async def cpu_intensive() -> CpuResponse:
    # Runs on the event loop on purpose; this endpoint exists to stall the server.
    log("info", "CPU intensive API called", {"endpoint": "cpu-intensive", "state": "starting"})

    start = perf_counter()
    result = burn_cpu()
    duration = perf_counter() - start

    log(
        "info",
        "CPU intensive operation completed",
        {
            "endpoint": "cpu-intensive",
            "state": "completed",
            "duration": f"{duration:.3f}",
            "result": f"{result:.0f}",
        },
    )
    return CpuResponse(message="CPU intensive operation completed", duration=duration, time=utcnow())
