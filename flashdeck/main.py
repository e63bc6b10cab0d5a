import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from flashdeck.db import init_db
from flashdeck.errors import ExtractionError, RemoteProcessingError, UnknownCardError, UnsupportedInputError
from flashdeck.middleware.rate_limit import limiter
from flashdeck.routers import decks as decks_router
from flashdeck.routers import documents as documents_router
from flashdeck.services.logging import configure_logging, log_api_request
from flashdeck.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION

# Configure logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("startup_complete")
    yield


app = FastAPI(
    title="FlashDeck",
    description="Turn PDF and Word documents into swipeable study flashcards",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ----------------- Error mapping -----------------
ERROR_STATUS = {
    UnsupportedInputError: 415,
    ExtractionError: 422,
    RemoteProcessingError: 502,
    UnknownCardError: 404,
}


async def flashdeck_error_handler(request: Request, exc: Exception):
    status_code = ERROR_STATUS[type(exc)]
    log_api_request(request, error=exc, status_code=status_code)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


for error_class in ERROR_STATUS:
    app.add_exception_handler(error_class, flashdeck_error_handler)


# Add middleware for request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    log_api_request(request)

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(process_time)

    response.response_time = process_time
    log_api_request(request, response)

    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Routers -----------------
app.include_router(documents_router.router)
app.include_router(decks_router.router)
