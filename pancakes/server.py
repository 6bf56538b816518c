"""
Pancakes FastAPI plugin.

Serves one app's pages through a catch-all GET route. Translates the
FastAPI request into route info, runs the web handler and maps route
misses to 404.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from pancakes.errors import NotInitializedError, RouteNotFound

if TYPE_CHECKING:
    from pancakes.core import Pancakes
    from pancakes.web import RequestCallbacks

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/html"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def primary_language(accept_language: str | None) -> str | None:
    """First tag of an Accept-Language header ("en-US,en;q=0.9" -> "en-US")."""
    if not accept_language:
        return None
    tag = accept_language.split(",", 1)[0].split(";", 1)[0].strip()
    return tag or None


def create_app(
    pancakes: Pancakes,
    app_name: str,
    callbacks: RequestCallbacks | None = None,
) -> FastAPI:
    """
    Create a FastAPI application serving ``app_name``.

    Args:
        pancakes: Initialized framework with a web handler
        app_name: App whose routes are served
        callbacks: Request hooks passed to every process_web_request call

    Raises:
        NotInitializedError: If pancakes has no web handler
    """
    handler = pancakes.web_handler
    if handler is None:
        raise NotInitializedError("Pancakes web handler requires app configs and a renderer")

    settings = pancakes.settings
    configure_logging(logging.DEBUG if settings.debug else logging.INFO)

    app = FastAPI(title=f"Pancakes {app_name}", debug=settings.debug)

    @app.exception_handler(RouteNotFound)
    async def route_not_found(request: Request, exc: RouteNotFound) -> JSONResponse:
        logger.info(f"[server] {exc}")
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    @app.get("/{path:path}", include_in_schema=False)
    async def render_page(path: str, request: Request) -> Response:
        route_info = handler.get_route_info(
            app_name,
            request.url.path,
            dict(request.query_params),
            primary_language(request.headers.get("accept-language")),
        )

        try:
            rendered = await handler.process_web_request(route_info, callbacks)
        except Exception as e:
            logger.error(f"[server] Failed to render {request.url.path}: {e}", exc_info=True)
            raise

        if rendered is None:
            return Response(status_code=204)

        return Response(
            content=rendered,
            media_type=route_info.content_type or DEFAULT_CONTENT_TYPE,
        )

    return app


def serve(
    pancakes: Pancakes,
    app_name: str,
    callbacks: RequestCallbacks | None = None,
    host: str = "0.0.0.0",
    port: int = 8000,
) -> None:
    """Run ``app_name`` under uvicorn."""
    import uvicorn

    app = create_app(pancakes, app_name, callbacks)
    logger.info(f"[server] Serving {app_name} on {host}:{port}")
    uvicorn.run(app, host=host, port=port)
