"""
HTTP request pipeline.

Stages run in this order for every request:

    request_context -> [host_filtering] -> [exception_handler -> hsts]
        -> https_redirection -> static_files -> routing -> authorization -> endpoint

host_filtering is installed only when AllowedHosts is not "*". exception_handler
and hsts are installed outside the Development environment; in Development the
framework's debug error page reports unhandled exceptions instead. Each stage may
short-circuit the request or annotate ``request.state`` for the next one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Type
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, PlainTextResponse, RedirectResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from contoso_university.core.logging import correlation_id_var
from contoso_university.web.endpoint import execute_action
from contoso_university.web.views import WWWROOT_DIR

logger = logging.getLogger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]
Dispatch = Callable[[Request, CallNext], Awaitable[Response]]

ERROR_HANDLING_PATH = "/Home/Error"
HSTS_EXCLUDED_HOSTS = {"localhost", "127.0.0.1", "::1", "[::1]"}


async def request_context(request: Request, call_next: CallNext) -> Response:
    """
    Enrich request context with a correlation_id for logging and the error page.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)

    response.headers["X-Correlation-ID"] = corr
    return response


def exception_handler(error_path: str = ERROR_HANDLING_PATH) -> Dispatch:
    """
    Catch unhandled exceptions and re-execute the request against error_path.

    The error action's response is returned with status 500. If the error
    action itself fails, a plain 500 response is returned.
    """

    async def _exception_handler(request: Request, call_next: CallNext) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception("An unhandled exception has occurred while executing the request.")

        request.state.original_path = request.url.path
        match = request.app.state.services.route_table.resolve("GET", error_path)
        if match.endpoint is None:
            logger.error("Error handling path %s does not resolve to an action", error_path)
            return PlainTextResponse("An error occurred while processing your request.", status_code=500)
        try:
            response = await execute_action(request, match)
        except Exception:
            logger.exception("An exception was thrown attempting to execute the error handler.")
            return PlainTextResponse("An error occurred while processing your request.", status_code=500)
        response.status_code = 500
        return response

    return _exception_handler


def hsts(max_age: int) -> Dispatch:
    """Add Strict-Transport-Security to HTTPS responses, except for loopback hosts."""
    header_value = f"max-age={max_age}"

    async def _hsts(request: Request, call_next: CallNext) -> Response:
        response = await call_next(request)
        if request.url.scheme == "https" and (request.url.hostname or "") not in HSTS_EXCLUDED_HOSTS:
            response.headers["Strict-Transport-Security"] = header_value
        return response

    return _hsts


def https_redirection(https_port: Optional[int]) -> Dispatch:
    """
    Redirect plain-HTTP requests to HTTPS with 307.

    Without a configured port the stage logs a warning once and lets requests through.
    """
    warned = False

    async def _https_redirection(request: Request, call_next: CallNext) -> Response:
        nonlocal warned
        if request.url.scheme == "https":
            return await call_next(request)
        if https_port is None:
            if not warned:
                logger.warning("Failed to determine the https port for redirect.")
                warned = True
            return await call_next(request)

        host = request.url.hostname or "localhost"
        if ":" in host:
            host = f"[{host}]"
        netloc = host if https_port == 443 else f"{host}:{https_port}"
        target = request.url.replace(scheme="https", netloc=netloc)
        return RedirectResponse(str(target), status_code=307)

    return _https_redirection


def static_files(web_root: Path) -> Dispatch:
    """Serve GET/HEAD requests for files that exist under web_root."""
    root = web_root.resolve()

    async def _static_files(request: Request, call_next: CallNext) -> Response:
        if request.method not in ("GET", "HEAD"):
            return await call_next(request)
        relative = request.url.path.lstrip("/")
        if not relative:
            return await call_next(request)
        candidate = (root / relative).resolve()
        if not candidate.is_relative_to(root) or not candidate.is_file():
            return await call_next(request)
        return FileResponse(candidate)

    return _static_files


async def routing(request: Request, call_next: CallNext) -> Response:
    """Select the controller action for the request and record it on request.state."""
    route_table = request.app.state.services.route_table
    request.state.route_match = route_table.resolve(request.method, request.url.path)
    return await call_next(request)


def _is_authenticated(request: Request) -> bool:
    if "user" not in request.scope:
        return False
    return bool(getattr(request.user, "is_authenticated", False))


async def authorization(request: Request, call_next: CallNext) -> Response:
    """Reject requests for actions that require an authenticated user."""
    match = getattr(request.state, "route_match", None)
    endpoint = match.endpoint if match is not None else None
    if endpoint is not None and endpoint.authorize and not _is_authenticated(request):
        logger.info(
            "Authorization failed for %s.%s: user is not authenticated",
            endpoint.controller,
            endpoint.action,
        )
        return Response(status_code=401)
    return await call_next(request)


# PUBLIC_INTERFACE
def build_stages(settings: Any) -> List[Tuple[str, Type, dict]]:
    """
    Return the middleware stages for settings, outermost first, as
    (name, middleware class, keyword arguments).
    """
    stages: List[Tuple[str, Type, dict]] = [
        ("request_context", BaseHTTPMiddleware, {"dispatch": request_context}),
    ]
    if settings.allowed_hosts != ["*"]:
        stages.append(
            ("host_filtering", TrustedHostMiddleware, {"allowed_hosts": settings.allowed_hosts})
        )
    if not settings.is_development:
        stages.append(("exception_handler", BaseHTTPMiddleware, {"dispatch": exception_handler()}))
        stages.append(("hsts", BaseHTTPMiddleware, {"dispatch": hsts(settings.HSTS_MAX_AGE)}))
    web_root = Path(settings.WEB_ROOT) if settings.WEB_ROOT else WWWROOT_DIR
    stages.extend(
        [
            ("https_redirection", BaseHTTPMiddleware, {"dispatch": https_redirection(settings.HTTPS_PORT)}),
            ("static_files", BaseHTTPMiddleware, {"dispatch": static_files(web_root)}),
            ("routing", BaseHTTPMiddleware, {"dispatch": routing}),
            ("authorization", BaseHTTPMiddleware, {"dispatch": authorization}),
        ]
    )
    return stages


# PUBLIC_INTERFACE
def configure_pipeline(app: FastAPI, settings: Any) -> List[str]:
    """
    Install the pipeline stages on app and return their names in execution order.

    add_middleware places each new middleware outermost, so stages are added
    innermost first. The order is also stored on ``app.state.pipeline``.
    """
    stages = build_stages(settings)
    for _, middleware_cls, options in reversed(stages):
        app.add_middleware(middleware_cls, **options)
    names = [name for name, _, _ in stages] + ["endpoint"]
    app.state.pipeline = names
    logger.debug("Request pipeline: %s", " -> ".join(names))
    return names
