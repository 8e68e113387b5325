"""
Tourbook API - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, Response
import asyncio
import time
import logging

# Prometheus metrics
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST, REGISTRY

from cassandra import DriverException, RequestExecutionException
from cassandra.cluster import NoHostAvailable
from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError
import oracledb

from tourbook.config import settings
from tourbook.context import AppContext, build_context
from tourbook.routers import (
    activity_logs,
    analytics,
    auth,
    company,
    destinations,
    health,
    notifications,
    reservations,
)
from tourbook.startup import close_datastores, initialize_datastores
from tourbook.utils.datastore import DatastoreUnavailableError

# Define Prometheus metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint']
)

DATASTORE_ERRORS = (
    DatastoreUnavailableError,
    SQLAlchemyError,
    PyMongoError,
    oracledb.Error,
    DriverException,
    RequestExecutionException,
    NoHostAvailable,
)

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def route_template(request: Request) -> str:
    """Full path template of the matched route, e.g. /api/destinations/{destination_id}"""
    route = request.scope.get("route")
    if route is None:
        return "unmatched"
    template = getattr(route, "path", "")
    # Routes under an included router may only know their router-relative path
    prefix = request.scope.get("root_path", "")
    if prefix and not template.startswith(prefix):
        template = prefix + template
    return template or "/"


def _log_bootstrap_result(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.warning("Datastore bootstrap cancelled")
    elif task.exception() is not None:
        logger.error(f"Datastore bootstrap crashed: {task.exception()!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown events

    Datastores are brought up in the background: the server starts accepting
    requests immediately and endpoints report a store as unavailable until
    its bootstrap finishes.
    """
    ctx: AppContext = app.state.context

    # Startup
    logger.info("Starting Tourbook API...")
    ctx.startup_task = asyncio.create_task(initialize_datastores(ctx), name="initialize_datastores")
    ctx.startup_task.add_done_callback(_log_bootstrap_result)
    logger.info(f"Tourbook API ready to serve requests on port {ctx.settings.PORT}")

    yield

    # Shutdown
    logger.info("Shutting down Tourbook API...")

    if not ctx.startup_task.done():
        ctx.startup_task.cancel()
        await asyncio.gather(ctx.startup_task, return_exceptions=True)

    await ctx.tasks.drain()
    await close_datastores(ctx)

    logger.info("Cleanup completed")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ORJSONResponse(
        status_code=400,
        content={"detail": "Missing or invalid fields", "errors": jsonable_encoder(exc.errors())},
    )


async def datastore_exception_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    content = {"detail": "Internal server error"}
    if not request.app.state.context.settings.is_production:
        content["message"] = str(exc)
    return ORJSONResponse(status_code=500, content=content)


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the application; tests pass their own context"""
    context = context or build_context(settings)
    config = context.settings

    app = FastAPI(
        title="Tourbook API",
        description="""
        ## Chimbote Travel Tours Booking API

        Tour destinations, reservations and user accounts backed by
        PostgreSQL, with MongoDB activity logs and analytics, Oracle
        back-office finances and Cassandra sessions, cache and notifications.
        """,
        version="1.0.0",
        docs_url="/docs" if config.DEBUG else None,
        redoc_url="/redoc" if config.DEBUG else None,
        openapi_url="/openapi.json" if config.DEBUG else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.context = context

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        limiter = request.app.state.context.rate_limiter
        if limiter is None or not request.url.path.startswith("/api"):
            return await call_next(request)

        identity = request.client.host if request.client else "anonymous"
        allowed, remaining = await limiter.hit(identity)
        headers = {
            "X-RateLimit-Limit": str(limiter.limit),
            "X-RateLimit-Remaining": str(remaining),
        }
        if not allowed:
            logger.warning(f"Rate limit exceeded for {identity}")
            return ORJSONResponse(status_code=429, content={"detail": "Too many requests"}, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response

    # Request timing middleware with Prometheus metrics
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        # Record metrics (skip /metrics endpoint to avoid recursion)
        if request.url.path != "/metrics":
            # Route template keeps label cardinality bounded
            endpoint = route_template(request)
            method = request.method
            status = response.status_code

            REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
            REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(process_time)

        response.headers["X-Process-Time"] = str(process_time)
        return response

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    for exc_class in DATASTORE_ERRORS:
        app.add_exception_handler(exc_class, datastore_exception_handler)
    app.add_exception_handler(Exception, datastore_exception_handler)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(destinations.router, prefix="/api/destinations", tags=["Destinations"])
    app.include_router(reservations.router, prefix="/api/reservations", tags=["Reservations"])
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(company.router, prefix="/api/company", tags=["Company"])
    app.include_router(activity_logs.router, prefix="/api/activity-logs", tags=["Activity Logs"])
    app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - API information"""
        return {
            "name": "Tourbook API",
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs" if config.DEBUG else "disabled",
            "endpoints": {
                "destinations": "/api/destinations",
                "reservations": "/api/reservations",
                "auth": "/api/auth",
                "company": "/api/company",
                "activity_logs": "/api/activity-logs",
                "analytics": "/api/analytics",
                "notifications": "/api/notifications/{user_id}",
                "health": "/api/company/health",
            },
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint"""
        return Response(
            content=generate_latest(REGISTRY),
            media_type=CONTENT_TYPE_LATEST
        )

    return app


app = create_app()


def run():
    """Console entry point: serve the API with uvicorn"""
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level="debug" if settings.DEBUG else "info")


if __name__ == "__main__":
    run()
