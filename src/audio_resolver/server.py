"""FastAPI app exposing the resolver at a single endpoint."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from .config import ResolverConfig
from .handler import CORS_HEADERS, handle
from .resolver import Resolver

ALLOWED_METHODS = ["GET", "OPTIONS", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def create_app(
    config: ResolverConfig | None = None,
    resolver: Resolver | None = None,
) -> FastAPI:
    """Build the app. Every method is routed to the handler, which decides 405s."""
    if config is None:
        config = ResolverConfig()
    if resolver is None:
        resolver = Resolver.from_config(config)

    app = FastAPI(title="audio-resolver")

    def _respond(request: Request) -> Response:
        status, body = handle(request.method, request.query_params, resolver)
        if body is None:
            return Response(status_code=status, headers=CORS_HEADERS)
        return JSONResponse(body, status_code=status, headers=CORS_HEADERS)

    # Methods the route does not list (TRACE, WebDAV verbs...) never reach it
    @app.middleware("http")
    async def unlisted_methods(request: Request, call_next):
        if request.url.path == config.route_path and request.method not in ALLOWED_METHODS:
            return _respond(request)
        return await call_next(request)

    # Plain def: each request runs in the threadpool, upstream calls block
    @app.api_route(config.route_path, methods=ALLOWED_METHODS)
    def audio(request: Request) -> Response:
        return _respond(request)

    return app
