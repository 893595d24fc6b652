import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.metrics import router as metrics_router
from app.api.simulate import router as simulate_router
from app.config import get_settings
from app.models.schemas import EndpointInfo, FaultResponse, HealthResponse, ServiceInfo
from app.observability.logging import configure_logging, log, shutdown_logging
from app.observability.metrics import get_metrics
from app.observability.middleware import RequestContextMiddleware
from app.services.simulation import get_leak_store, uptime_seconds

SERVICE_NAME = "Observable Mock API Service"
SERVICE_VERSION = "1.0.0"

ENDPOINTS = [
    EndpointInfo(path="/api/fast", description="Fast responding API"),
    EndpointInfo(path="/api/slow", description="Slow responding API (2-5s delay)"),
    EndpointInfo(path="/api/faulty", description="Occasionally failing API (40% error rate)"),
    EndpointInfo(path="/api/memory-leak", description="Simulates a memory leak (adds 1MB each call)"),
    EndpointInfo(path="/api/cpu-intensive", description="CPU intensive operation"),
    EndpointInfo(path="/metrics", description="Prometheus metrics endpoint"),
    EndpointInfo(path="/health", description="Health check endpoint"),
]


app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION)
app.add_middleware(RequestContextMiddleware)
app.include_router(simulate_router)
app.include_router(metrics_router)


@app.on_event("startup")
def _startup() -> None:
    settings = get_settings()
    configure_logging(settings)
    # Process-wide state lives for the whole process; nothing tears it down.
    get_metrics()
    get_leak_store()
    log(
        "info",
        f"Server started on port {settings.port}",
        {"event": "server_start", "port": settings.port},
    )


@app.on_event("shutdown")
def _shutdown() -> None:
    log("info", "Server shutting down", {"event": "server_stop"})
    shutdown_logging()


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    structlog.get_logger("app").error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    body = FaultResponse(type="internal_error", message="Internal server error")
    return JSONResponse(status_code=500, content=body.model_dump())


@app.get("/", response_model=ServiceInfo)
async def index() -> ServiceInfo:
    return ServiceInfo(name=SERVICE_NAME, version=SERVICE_VERSION, endpoints=ENDPOINTS)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", uptime=uptime_seconds())
