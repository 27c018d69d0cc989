import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from reading_room.api.v1.router import router as api_v1_router
from reading_room.core.config import settings as app_settings
from reading_room.core.database import AsyncSessionLocal
from reading_room.core.exceptions import (
    GenerationRateLimitError,
    InvalidRoomTypeError,
    InvalidRuleSetError,
    InvalidThresholdsError,
    ProspectNotFoundError,
    ScoringRulesNotFoundError,
    StoreUnavailableError,
    VisitorNotFoundError,
)
from reading_room.core.rate_limit import limiter
from reading_room.repositories.scoring_rule_repository import ScoringRuleRepository

# Configure logging
logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed the global rule sets on startup when the table is empty."""
    try:
        async with AsyncSessionLocal() as session:
            await ScoringRuleRepository(session).seed_if_empty()
            await session.commit()
    except Exception:
        logger.warning("Could not seed default scoring rules at startup", exc_info=True)
    yield


app = FastAPI(
    title="Reading Room Scoring Engine",
    description="Lead scoring, room assignment and outreach template resolution",
    version="0.1.0",
    lifespan=lifespan,
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware, restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.exception_handler(VisitorNotFoundError)
async def visitor_not_found_handler(request: Request, exc: VisitorNotFoundError):
    logger.warning("Visitor not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "visitor_not_found"},
    )


@app.exception_handler(ProspectNotFoundError)
async def prospect_not_found_handler(request: Request, exc: ProspectNotFoundError):
    logger.warning("Prospect not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "prospect_not_found"},
    )


@app.exception_handler(ScoringRulesNotFoundError)
async def scoring_rules_not_found_handler(
    request: Request, exc: ScoringRulesNotFoundError
):
    logger.warning("Scoring rules not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "scoring_rules_not_found"},
    )


@app.exception_handler(InvalidRoomTypeError)
async def invalid_room_type_handler(request: Request, exc: InvalidRoomTypeError):
    logger.warning("Invalid room type: %s", exc.detail)
    return JSONResponse(
        status_code=400,
        content={"detail": exc.detail, "type": "invalid_room_type"},
    )


@app.exception_handler(InvalidRuleSetError)
async def invalid_rule_set_handler(request: Request, exc: InvalidRuleSetError):
    logger.warning("Invalid rule set: %s (%s)", exc.detail, "; ".join(exc.reasons))
    return JSONResponse(
        status_code=422,
        content={
            "detail": exc.detail,
            "reasons": exc.reasons,
            "type": "invalid_rule_set",
        },
    )


@app.exception_handler(InvalidThresholdsError)
async def invalid_thresholds_handler(request: Request, exc: InvalidThresholdsError):
    logger.warning("Invalid thresholds: %s", exc.detail)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.detail, "type": "invalid_thresholds"},
    )


@app.exception_handler(GenerationRateLimitError)
async def generation_rate_limit_handler(
    request: Request, exc: GenerationRateLimitError
):
    logger.warning("Generation rate limit: %s", exc.detail)
    return JSONResponse(
        status_code=429,
        content={"detail": exc.detail, "type": "generation_rate_limited"},
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error("Data store unavailable: %s", exc.detail)
    return JSONResponse(
        status_code=503,
        content={"detail": exc.detail, "type": "store_unavailable"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected exceptions.

    Returns a generic 500 response so raw stack traces never reach the
    client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
