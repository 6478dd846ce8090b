"""Starlette bridge between the presentation layer, the host and the workflow."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from character_manager import __version__
from character_manager.app import AppContext, get_app_context
from character_manager.bridge.messages import (
    OpenMenuMessage,
    parse_command,
    parse_host_message,
    parse_log_search,
    parse_log_toggle,
)
from character_manager.bridge.snapshot import build_snapshot, result_payload
from character_manager.domain.models import SessionConfig
from character_manager.errors import BridgeMessageError

logger = logging.getLogger(__name__)


async def _read_json(request: Request) -> Any:
    body = await request.body()
    if not body:
        raise BridgeMessageError("Request body must be a JSON object")
    try:
        return json.loads(body)
    except ValueError as exc:
        raise BridgeMessageError("Request body is not valid JSON") from exc


async def _bad_request(request: Request, exc: Exception) -> Response:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": str(exc)}, status_code=400)


def create_app(context: AppContext | None = None) -> Starlette:
    """Create the bridge application around *context* (the cached context by default)."""
    ctx = context or get_app_context()

    def snapshot() -> dict[str, Any]:
        return build_snapshot(ctx.workflow, ctx.logs)

    async def message_handler(request: Request) -> Response:
        message = parse_host_message(await _read_json(request))
        if isinstance(message, OpenMenuMessage):
            ctx.open_session(message.config or SessionConfig())
        else:
            logger.info("Host closed the console")
            ctx.hide()
        return JSONResponse({"ok": True, "state": snapshot()})

    async def command_handler(request: Request) -> Response:
        command = parse_command(await _read_json(request))
        result = await ctx.workflow.dispatch(command)
        return JSONResponse({"result": result_payload(result), "state": snapshot()})

    async def log_search_handler(request: Request) -> Response:
        criteria = parse_log_search(await _read_json(request))
        accepted = await ctx.logs.fetch(criteria)
        return JSONResponse({"accepted": accepted, "state": snapshot()})

    async def log_toggle_handler(request: Request) -> Response:
        index = parse_log_toggle(await _read_json(request))
        accepted = ctx.logs.toggle(index)
        return JSONResponse({"accepted": accepted, "state": snapshot()})

    async def state_handler(request: Request) -> Response:
        return JSONResponse(snapshot())

    async def health_handler(request: Request) -> Response:
        return JSONResponse({"status": "healthy", "version": __version__})

    routes = [
        Route("/message", message_handler, methods=["POST"]),
        Route("/command", command_handler, methods=["POST"]),
        Route("/logs/search", log_search_handler, methods=["POST"]),
        Route("/logs/toggle", log_toggle_handler, methods=["POST"]),
        Route("/state", state_handler, methods=["GET"]),
        Route("/health", health_handler, methods=["GET"]),
    ]

    middleware: list[Middleware] = []
    origins = ctx.settings.bridge.allowed_origins
    if origins:
        from starlette.middleware.cors import CORSMiddleware

        middleware.append(
            Middleware(
                CORSMiddleware,
                allow_origins=list(origins),
                allow_methods=["POST", "GET", "OPTIONS"],
                allow_headers=["Content-Type", "Accept"],
            )
        )

    @asynccontextmanager
    async def lifespan(app: Starlette):
        ctx.startup()
        logger.info("Bridge ready; host calls go to %s", ctx.settings.host.base_url)
        try:
            yield
        finally:
            ctx.shutdown()

    return Starlette(
        routes=routes,
        middleware=middleware,
        exception_handlers={BridgeMessageError: _bad_request},
        lifespan=lifespan,
    )
