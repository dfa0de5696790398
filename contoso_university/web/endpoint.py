"""
Endpoint stage of the pipeline: executes the controller action selected by the
routing stage inside its own service scope.
"""

from __future__ import annotations

import inspect
import logging
import typing
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Tuple

from fastapi import APIRouter, Request
from fastapi.responses import Response
from pydantic import TypeAdapter, ValidationError

from contoso_university.web.controllers.base import ActionContext
from contoso_university.web.routing import RouteMatch

logger = logging.getLogger(__name__)

router = APIRouter()

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


def bind_arguments(
    handler: Any,
    route_values: Mapping[str, Optional[str]],
    query: Mapping[str, str],
) -> Tuple[Dict[str, Any], Dict[str, List[str]]]:
    """
    Bind action parameters by name from route values first, then the query string.

    Values are validated against the parameter annotation with pydantic.
    Returns (kwargs, errors): a parameter whose value fails validation keeps its
    default and its messages are reported under the parameter name.
    """
    hints = typing.get_type_hints(handler)
    lowered_route = {k.lower(): v for k, v in route_values.items()}
    kwargs: Dict[str, Any] = {}
    errors: Dict[str, List[str]] = {}
    for name in inspect.signature(handler).parameters:
        raw = lowered_route.get(name.lower())
        if raw is None:
            raw = query.get(name)
        if raw is None:
            continue
        try:
            kwargs[name] = _adapter(hints.get(name, str)).validate_python(raw)
        except ValidationError as exc:
            errors[name] = [f"The value '{raw}' is not valid for {name}: {e['msg']}" for e in exc.errors()]
    return kwargs, errors


# PUBLIC_INTERFACE
async def execute_action(request: Request, match: RouteMatch) -> Response:
    """
    Instantiate the matched controller and run the action within a fresh service scope.

    Route and query values that fail validation are added to the controller's
    model errors. The scope, and the SchoolContext session it may have opened,
    is closed on every exit path.
    """
    descriptor = match.endpoint
    assert descriptor is not None
    services = request.app.state.services
    async with services.create_scope() as scope:
        controller = descriptor.controller_cls(
            ActionContext(
                request=request,
                scope=scope,
                descriptor=descriptor,
                route_values=match.route_values,
            )
        )
        handler = getattr(controller, descriptor.method_name)
        kwargs, errors = bind_arguments(handler, match.route_values, request.query_params)
        for key, messages in errors.items():
            for message in messages:
                controller.add_model_error(key, message)
        logger.debug("Executing action %s.%s", descriptor.controller, descriptor.action)
        return await handler(**kwargs)


# PUBLIC_INTERFACE
@router.api_route("/{path:path}", methods=_ALL_METHODS, include_in_schema=False)
async def controller_endpoint(request: Request, path: str) -> Response:
    """
    Catch-all endpoint for conventional controller routes.

    Returns 404 when no action matched and 405 when the action exists only for
    other HTTP methods.
    """
    match: Optional[RouteMatch] = getattr(request.state, "route_match", None)
    if match is None or match.endpoint is None:
        if match is not None and match.method_not_allowed:
            return Response(status_code=405)
        return Response(status_code=404)
    return await execute_action(request, match)
