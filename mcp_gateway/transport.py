"""HTTP transport exposing the gateway over FastAPI."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mcp_gateway.errors import TransportError
from mcp_gateway.registry import ToolRegistry
from mcp_gateway.router import RequestRouter

logger = logging.getLogger(__name__)

SERVICE_NAME = "MCP API Converter"


def create_app(
    router: RequestRouter,
    registry: ToolRegistry,
    *,
    log: logging.Logger | None = None,
) -> FastAPI:
    """Build the ASGI app: POST carries protocol messages, GET answers health checks."""
    app_log = log or logger

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        app_log.info(
            "HTTP transport ready",
            extra={"context": {"registeredTools": registry.names()}},
        )
        yield
        app_log.info("HTTP transport stopped")

    app = FastAPI(
        title=SERVICE_NAME,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/")
    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        app_log.debug("Health check request handled")
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "timestamp": datetime.now(tz=UTC).isoformat().replace("+00:00", "Z"),
            "toolCount": registry.count(),
            "requests": router.telemetry.snapshot(),
        }

    @app.post("/")
    @app.post("/mcp")
    async def handle_protocol_message(request: Request) -> JSONResponse:
        body = await request.body()
        response = await router.handle(body)
        status_code = 200
        if response.error is not None and response.error.code == TransportError.code:
            status_code = 400
        return JSONResponse(jsonable_encoder(response.to_payload()), status_code=status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(_request: Request, error: Exception) -> JSONResponse:
        app_log.error(
            "Unhandled error in request handler",
            exc_info=error,
            extra={"context": {"errorName": type(error).__name__}},
        )
        return JSONResponse(
            {"error": {"code": "InternalError", "message": "An unexpected error occurred"}},
            status_code=500,
        )

    return app
