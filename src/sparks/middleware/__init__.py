"""Middleware registration."""

from fastapi import FastAPI

from sparks.config import Settings
from sparks.middleware.cors import setup_cors
from sparks.middleware.error_handler import setup_error_handlers
from sparks.middleware.logging import setup_logging
from sparks.middleware.rate_limit import RateLimitMiddleware
from sparks.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register middleware. Starlette runs them in reverse-add order.

    Request ids are bound before rate limiting so 429s are traceable, and
    CORS is outermost so it also wraps those 429s.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
