"""CORS for the internal service API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sparks.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured API-layer origins. Only GET and POST are routed."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id", "X-Caller-Id"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
    )
