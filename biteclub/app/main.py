# main.py

"""FastAPI application for Bite Club ordering, promotions and credits."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.asyncio import from_url
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings

from .domain import BiteClubError
from .middlewares import IdempotencyMiddleware, LoggingMiddleware, RequestIdMiddleware
from .obs import init_sentry
from .obs.logging import configure_logging
from .routes_credits import router as credits_router
from .routes_metrics import router as metrics_router
from .routes_orders import router as orders_router
from .routes_restaurants import router as restaurants_router
from .utils.responses import domain_error, err, ok

settings = get_settings()

configure_logging(settings.log_level.upper())
logger = logging.getLogger("biteclub.api")
init_sentry(settings.error_dsn, env=settings.app_env)

app = FastAPI(title="Bite Club")
app.state.redis = from_url(settings.redis_url, decode_responses=True)

# last added runs first: request id, then logging, then idempotency
app.add_middleware(IdempotencyMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(BiteClubError)
async def domain_error_handler(request: Request, exc: BiteClubError):
    logger.warning(
        "%s: %s",
        exc.code,
        exc.message,
        extra={
            "status": exc.status_code,
            "route": request.url.path,
            "actor": request.headers.get("X-Actor-Id"),
        },
    )
    return domain_error(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        err(
            "INVALID_REQUEST",
            "Request failed validation",
            {"errors": jsonable_encoder(exc.errors())},
        ),
        status_code=422,
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(
        exc.detail,
        extra={"status": exc.status_code, "route": request.url.path},
    )
    return JSONResponse(err(exc.status_code, exc.detail), status_code=exc.status_code)


@app.get("/health")
async def health() -> dict:
    return ok({"status": "ok"})


app.include_router(orders_router)
app.include_router(credits_router)
app.include_router(restaurants_router)
app.include_router(metrics_router)
