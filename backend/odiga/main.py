from __future__ import annotations

from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration

from .api.routes import recommend as recommend_routes
from .api.routes import search as search_routes
from .llm import close_async_client
from .logging_config import configure_structlog, get_logger
from .metrics import PrometheusMiddleware, get_metrics
from .settings import settings
from .utils import add_cors, add_request_id_tracing, add_security_headers

# Configure structured logging (must be done before any logging calls)
configure_structlog(json_logs=not settings.DEBUG)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or "odiga@dev",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await close_async_client()
    logger.info("shutdown_complete")


app = FastAPI(
    title="odiga API",
    version="0.1.0",
    description="Place recommendation and free-text search for Seoul",
    lifespan=lifespan,
)
add_cors(app)
add_security_headers(app)
add_request_id_tracing(app)
app.add_middleware(PrometheusMiddleware)

API_PREFIX = "/v1"

app.include_router(recommend_routes.router, prefix=API_PREFIX)
app.include_router(search_routes.router, prefix=API_PREFIX)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "odiga", "version": "0.1.0"}


@app.get("/metrics")
def metrics():
    """Expose Prometheus metrics."""
    return get_metrics()
