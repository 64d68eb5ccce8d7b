import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from claimcheck.config import (
    ALLOWED_ORIGINS,
    ENABLE_METRICS,
    ENGINE_CONFIG_PATH,
    MAX_CONCURRENT_ANALYZE,
    RULES_PATH,
    SERVICE_VERSION,
)
from claimcheck.engine import ComplianceEngine
from claimcheck.metrics import get_metrics, prometheus_export, record_error, record_latency
from claimcheck.routers import v1

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # a bad rule file is a configuration error: let it abort startup
    engine = ComplianceEngine.from_config(RULES_PATH, ENGINE_CONFIG_PATH)

    app.state.engine = engine
    app.state.analyze_semaphore = asyncio.Semaphore(MAX_CONCURRENT_ANALYZE)
    app.state.enable_metrics = ENABLE_METRICS

    logger.info("API ready: %s rules (version=%s)", len(engine.repository), engine.repository.version)
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Restricted-Claim Compliance API",
    description="Restricted-claim scanning and brief/storyboard alignment checks for campaign content",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:12]
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    path = request.url.path or "/"
    response = await call_next(request)
    if ENABLE_METRICS:
        record_latency(path, time.perf_counter() - start)
        record_error(path, response.status_code)
    return response


app.include_router(v1.router)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    if ENABLE_METRICS:
        record_error(request.url.path, 500)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
async def health_root(request: Request):
    return v1.health_payload(request.app.state)


@app.get("/metrics")
async def metrics_json():
    if not ENABLE_METRICS:
        return JSONResponse(status_code=404, content={"detail": "Metrics disabled"})
    return get_metrics()


@app.get("/metrics/prometheus")
async def metrics_prometheus():
    if not ENABLE_METRICS:
        return JSONResponse(status_code=404, content={"detail": "Metrics disabled"})
    return PlainTextResponse(prometheus_export(), media_type="text/plain")


@app.get("/")
async def root():
    return {
        "message": "Restricted-Claim Compliance API",
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "v1": "/v1",
    }
