import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aga.core.config import settings
from aga.core.database import init_db
from aga.services.change_feed import get_change_feed
from aga.services.logging_service import configure_logging

# API routers
from aga.api.campaigns import router as campaign_router
from aga.api.dashboard import router as dashboard_router
from aga.api.runs import router as runs_router
from aga.api.websocket import router as ws_router


# ─────────────────────────────────────────────────────────────
# GLOBAL LOGGING CONFIGURATION
# ─────────────────────────────────────────────────────────────
configure_logging("DEBUG" if settings.DEBUG else "INFO")

logger = logging.getLogger("aga")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"[Startup] {settings.APP_NAME} initializing...")
    await init_db()
    logger.info("[Startup] Database connection verified")
    yield
    await get_change_feed().close()
    logger.info("[Shutdown] Application shutting down")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

PREFIX = settings.API_V1_PREFIX


# ─────────────────────────────────────────────────────────────
# REQUEST LOGGING MIDDLEWARE
# ─────────────────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    client = request.client.host if request.client else "-"

    logger.info(
        f"[REQUEST] {client} {request.method} {request.url.path}",
        extra={"correlation_id": correlation_id},
    )

    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception(
            f"[EXCEPTION] {request.method} {request.url.path} -> {str(e)}",
            extra={"correlation_id": correlation_id},
        )
        raise

    process_time = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"[RESPONSE] {request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {process_time}ms",
        extra={"correlation_id": correlation_id},
    )
    response.headers["X-Correlation-ID"] = correlation_id
    return response


# ─────────────────────────────────────────────────────────────
# CORS
# ─────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────────────────────────
# ROUTERS
# ─────────────────────────────────────────────────────────────
app.include_router(campaign_router, prefix=PREFIX)
app.include_router(dashboard_router, prefix=PREFIX)
app.include_router(runs_router, prefix=PREFIX)
app.include_router(ws_router, prefix=PREFIX)


# ─────────────────────────────────────────────────────────────
# EXCEPTION HANDLERS
# ─────────────────────────────────────────────────────────────
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        f"[VALIDATION_ERROR] {request.method} {request.url.path} "
        f"{exc.errors()}"
    )
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": jsonable_encoder(jsonable_errors(exc)),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw exception object
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(
        f"[UNHANDLED_EXCEPTION] {request.method} {request.url.path}"
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "INTERNAL_ERROR"},
    )


# ─────────────────────────────────────────────────────────────
# HEALTH CHECK
# ─────────────────────────────────────────────────────────────
@app.get("/health", tags=["Health"])
async def health():
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "change_feed": settings.CHANGE_FEED_BACKEND,
    }


# ─────────────────────────────────────────────────────────────
# ENTRYPOINT
# ─────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "aga.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
