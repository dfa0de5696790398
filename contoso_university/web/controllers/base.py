from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from fastapi import Request
from fastapi.responses import RedirectResponse, Response
from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from contoso_university.services.registry import ServiceRegistry, ServiceScope

ACTION_ATTR = "__mvc_action__"

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class ActionInfo:
    """Routing metadata attached to a controller method by @action."""
    name: Optional[str]
    methods: Tuple[str, ...]
    authorize: bool


# PUBLIC_INTERFACE
def action(
    name: Optional[str] = None,
    *,
    methods: Iterable[str] = ("GET",),
    authorize: bool = False,
) -> Callable:
    """
    Mark a controller coroutine as a routable action.

    Parameters:
      name: action name used in URLs (default: the method name in PascalCase)
      methods: HTTP methods the action answers
      authorize: require an authenticated user
    """

    def decorator(fn: Callable) -> Callable:
        setattr(
            fn,
            ACTION_ATTR,
            ActionInfo(name=name, methods=tuple(m.upper() for m in methods), authorize=authorize),
        )
        return fn

    return decorator


# PUBLIC_INTERFACE
def http_post(name: Optional[str] = None, *, authorize: bool = False) -> Callable:
    """Shorthand for a POST-only action."""
    return action(name, methods=("POST",), authorize=authorize)


def _pascal_case(method_name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in method_name.split("_") if part)


@dataclass(frozen=True)
class ActionDescriptor:
    """A resolved controller action endpoint."""
    controller_cls: Type["Controller"]
    controller: str
    action: str
    method_name: str
    http_methods: FrozenSet[str]
    authorize: bool


@dataclass
class ActionContext:
    """Everything a controller instance needs for one request."""
    request: Request
    scope: "ServiceScope"
    descriptor: ActionDescriptor
    route_values: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def services(self) -> "ServiceRegistry":
        return self.scope.services


class Controller:
    """
    Base class for MVC controllers.

    A new instance is created for every request. The SchoolContext session is
    taken from the request's service scope and released when the scope ends.
    """

    # Require authentication for every action of the controller.
    authorize: ClassVar[bool] = False

    def __init__(self, context: ActionContext) -> None:
        self.context = context
        self.request = context.request
        self.model_errors: Dict[str, List[str]] = {}
        self.form_values: Dict[str, str] = {}

    @classmethod
    def controller_name(cls) -> str:
        name = cls.__name__
        return name[: -len("Controller")] if name.endswith("Controller") and name != "Controller" else name

    @property
    def db(self) -> "AsyncSession":
        """SchoolContext session for this request."""
        return self.context.scope.school_context

    # Model state

    def add_model_error(self, key: str, message: str) -> None:
        self.model_errors.setdefault(key, []).append(message)

    @property
    def is_valid(self) -> bool:
        return not self.model_errors

    async def try_bind_form(self, model_cls: Type[ModelT]) -> Optional[ModelT]:
        """
        Validate the posted form against model_cls.

        Returns the model, or None after recording the validation errors in
        model_errors. The raw values stay in form_values for redisplay.
        """
        form = await self.request.form()
        self.form_values = {k: v for k, v in form.items() if isinstance(v, str)}
        try:
            return model_cls.model_validate(self.form_values)
        except ValidationError as exc:
            for err in exc.errors():
                key = ".".join(str(p) for p in err.get("loc", ()))
                self.add_model_error(key, err.get("msg", "Invalid value"))
            return None

    # Results

    def url_action(self, action: str, controller: Optional[str] = None, **values: Any) -> str:
        return self.context.services.route_table.url_for(
            action, controller or self.controller_name(), **values
        )

    def view(
        self,
        template: str,
        model: Any = None,
        *,
        status_code: int = 200,
        **view_data: Any,
    ) -> Response:
        """
        Render a template. Bare names resolve to ``<controller>/<name>.html``.
        """
        name = template if "/" in template else f"{self.controller_name().lower()}/{template}.html"
        context = {
            "model": model,
            "model_errors": self.model_errors,
            "form_values": self.form_values,
            "view_data": view_data,
            "route_values": self.context.route_values,
        }
        return self.context.services.templates.TemplateResponse(
            self.request, name, context, status_code=status_code
        )

    def redirect_to_action(
        self, action: str, controller: Optional[str] = None, **values: Any
    ) -> RedirectResponse:
        return RedirectResponse(self.url_action(action, controller, **values), status_code=302)

    def not_found(self) -> Response:
        return Response(status_code=404)


class ControllerRegistry:
    """Index of controller actions by controller name, action name and HTTP method."""

    def __init__(self, controllers: Iterable[Type[Controller]] = ()) -> None:
        self._actions: Dict[str, Dict[str, Dict[str, ActionDescriptor]]] = {}
        for cls in controllers:
            self.add(cls)

    def add(self, cls: Type[Controller]) -> None:
        """Discover the @action methods of a controller class."""
        controller = cls.controller_name()
        actions = self._actions.setdefault(controller.lower(), {})
        found = False
        for method_name, fn in inspect.getmembers(cls, predicate=inspect.isfunction):
            info: Optional[ActionInfo] = getattr(fn, ACTION_ATTR, None)
            if info is None:
                continue
            found = True
            action_name = info.name or _pascal_case(method_name)
            descriptor = ActionDescriptor(
                controller_cls=cls,
                controller=controller,
                action=action_name,
                method_name=method_name,
                http_methods=frozenset(info.methods),
                authorize=info.authorize or cls.authorize,
            )
            by_method = actions.setdefault(action_name.lower(), {})
            for http_method in info.methods:
                if http_method in by_method:
                    raise ValueError(
                        f"Ambiguous action {controller}.{action_name} for HTTP {http_method}"
                    )
                by_method[http_method] = descriptor
        if not found:
            raise ValueError(f"Controller {cls.__name__} declares no actions")

    def find(self, controller: Optional[str], action: Optional[str]) -> Dict[str, ActionDescriptor]:
        """Return the descriptors of controller/action keyed by HTTP method (case-insensitive names)."""
        if not controller or not action:
            return {}
        return dict(self._actions.get(controller.lower(), {}).get(action.lower(), {}))
