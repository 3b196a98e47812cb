"""
quizloop.api.main — FastAPI application entry point
=====================================================

Run with::

    uvicorn quizloop.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

load_dotenv()

from quizloop.api.deps import get_config, get_engine  # noqa: E402
from quizloop.api.routes.analytics import router as analytics_router  # noqa: E402
from quizloop.api.routes.invites import router as invites_router  # noqa: E402
from quizloop.api.routes.orchestrator import router as orchestrator_router  # noqa: E402
from quizloop.api.routes.practice import router as practice_router  # noqa: E402
from quizloop.database.engine import init_db  # noqa: E402
from quizloop.errors import QuizLoopError  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine and seed counters."""
    engine = get_engine()
    init_db(engine)
    logger.info("QuizLoop API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("QuizLoop API shutting down")


app = FastAPI(
    title="QuizLoop API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_config().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(orchestrator_router, prefix="/api")
app.include_router(practice_router, prefix="/api")
app.include_router(invites_router, prefix="/api")
app.include_router(analytics_router, prefix="/api")


# ---------------------------------------------------------------------------
# Error envelope: {"error": <code>, "message": <text>}
# ---------------------------------------------------------------------------
@app.exception_handler(QuizLoopError)
async def quizloop_error_handler(request: Request, exc: QuizLoopError):
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg")
    else:
        message = "Invalid request body"
    return JSONResponse(status_code=400, content={"error": "bad_request", "message": message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = "not_found" if exc.status_code == 404 else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": code, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "server_error", "message": GENERIC_ERROR_MESSAGE},
    )


@app.get("/api/health")
def health():
    return {"status": "ok"}
