"""
Conventional controller routing.

A route template such as ``{controller=Home}/{action=Index}/{id?}`` is parsed
into segments. Incoming paths are matched against the templates of a
RouteTable in registration order, and the controller/action route values are
resolved to an ActionDescriptor. The same table generates URLs for links and
redirects, omitting trailing segments that equal their defaults.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote, urlencode

from contoso_university.web.controllers.base import ActionDescriptor, ControllerRegistry

_PARAMETER_RE = re.compile(r"^\{(?P<name>\w+)(?:(?P<optional>\?)|=(?P<default>[^{}]*))?\}$")


@dataclass(frozen=True)
class LiteralSegment:
    text: str


@dataclass(frozen=True)
class ParameterSegment:
    name: str
    default: Optional[str] = None
    optional: bool = False

    @property
    def has_fallback(self) -> bool:
        return self.optional or self.default is not None


Segment = Union[LiteralSegment, ParameterSegment]


class RouteTemplate:
    """Parsed route template."""

    def __init__(self, template: str, segments: List[Segment]) -> None:
        self.template = template
        self.segments = segments

    @classmethod
    def parse(cls, template: str) -> "RouteTemplate":
        """
        Parse a template made of literal segments, ``{name}``, ``{name=default}``
        and ``{name?}`` parameters.

        Raises:
            ValueError: for malformed segments, duplicate parameter names, or a
            required segment following an optional/defaulted one.
        """
        segments: List[Segment] = []
        seen: set[str] = set()
        stripped = template.strip("/")
        for raw in stripped.split("/") if stripped else []:
            if not raw:
                raise ValueError(f"Empty segment in route template '{template}'")
            if "{" not in raw and "}" not in raw:
                segments.append(LiteralSegment(raw))
                continue
            m = _PARAMETER_RE.match(raw)
            if not m:
                raise ValueError(f"Invalid route segment '{raw}' in '{template}'")
            name = m.group("name")
            if name.lower() in seen:
                raise ValueError(f"Duplicate route parameter '{name}' in '{template}'")
            seen.add(name.lower())
            segments.append(
                ParameterSegment(
                    name=name,
                    default=m.group("default"),
                    optional=m.group("optional") is not None,
                )
            )

        fallback_started = False
        for seg in segments:
            has_fallback = isinstance(seg, ParameterSegment) and seg.has_fallback
            if fallback_started and not has_fallback:
                raise ValueError(
                    f"Route template '{template}' has a required segment after an optional one"
                )
            fallback_started = fallback_started or has_fallback
        return cls(template, segments)

    @property
    def parameter_names(self) -> List[str]:
        return [s.name for s in self.segments if isinstance(s, ParameterSegment)]

    def match(self, path: str) -> Optional[Dict[str, Optional[str]]]:
        """
        Return the route values for path, or None if it does not match.

        path is the decoded request path; segments are not unquoted again.
        """
        stripped = path.strip("/")
        parts = stripped.split("/") if stripped else []
        if len(parts) > len(self.segments) or any(p == "" for p in parts):
            return None

        values: Dict[str, Optional[str]] = {}
        for index, seg in enumerate(self.segments):
            if index < len(parts):
                part = parts[index]
                if isinstance(seg, LiteralSegment):
                    if part.lower() != seg.text.lower():
                        return None
                else:
                    values[seg.name] = part
                continue
            if isinstance(seg, LiteralSegment):
                return None
            if seg.default is not None:
                values[seg.name] = seg.default
            elif not seg.optional:
                return None
        return values

    def generate(self, values: Dict[str, Any]) -> Optional[str]:
        """
        Build a path from route values, or return None if a required value is missing.

        Trailing parameters that are absent or equal to their default are dropped.
        """
        lowered = {k.lower(): v for k, v in values.items() if v is not None}

        keep = len(self.segments)
        while keep > 0:
            seg = self.segments[keep - 1]
            if not isinstance(seg, ParameterSegment):
                break
            value = lowered.get(seg.name.lower())
            if value is None and seg.has_fallback:
                keep -= 1
            elif seg.default is not None and str(value).lower() == seg.default.lower():
                keep -= 1
            else:
                break

        parts: List[str] = []
        for seg in self.segments[:keep]:
            if isinstance(seg, LiteralSegment):
                parts.append(seg.text)
                continue
            value = lowered.get(seg.name.lower(), seg.default)
            if value is None:
                return None
            parts.append(quote(str(value), safe=""))
        return "/" + "/".join(parts)


@dataclass
class RouteMatch:
    """Outcome of resolving a request path against the route table."""
    route_name: Optional[str] = None
    endpoint: Optional[ActionDescriptor] = None
    route_values: Dict[str, Optional[str]] = field(default_factory=dict)
    method_not_allowed: bool = False


class RouteTable:
    """Ordered set of named controller routes over a ControllerRegistry."""

    def __init__(self, controllers: ControllerRegistry) -> None:
        self.controllers = controllers
        self._routes: List[tuple[str, RouteTemplate]] = []

    # PUBLIC_INTERFACE
    def map(self, name: str, template: str) -> RouteTemplate:
        """Register a named conventional route."""
        if any(existing == name for existing, _ in self._routes):
            raise ValueError(f"A route named '{name}' is already registered")
        parsed = RouteTemplate.parse(template)
        missing = {"controller", "action"} - {n.lower() for n in parsed.parameter_names}
        if missing:
            raise ValueError(f"Route '{name}' must define {sorted(missing)} parameters")
        self._routes.append((name, parsed))
        return parsed

    # PUBLIC_INTERFACE
    def resolve(self, method: str, path: str) -> RouteMatch:
        """
        Resolve a request to an action.

        The first route whose template matches and whose controller/action exist
        wins. If an action exists only for other HTTP methods the match is flagged
        as method_not_allowed.
        """
        result = RouteMatch()
        method = method.upper()
        for name, template in self._routes:
            values = template.match(path)
            if values is None:
                continue
            actions = self.controllers.find(values.get("controller"), values.get("action"))
            if not actions:
                continue
            descriptor = actions.get(method)
            if descriptor is None and method == "HEAD":
                descriptor = actions.get("GET")
            if descriptor is None:
                result = RouteMatch(route_name=name, route_values=values, method_not_allowed=True)
                continue
            return RouteMatch(route_name=name, endpoint=descriptor, route_values=values)
        return result

    # PUBLIC_INTERFACE
    def url_for(self, action: str, controller: str, **values: Any) -> str:
        """
        Generate the URL for controller/action using the first route that can
        express it. Values that are not template parameters become the query string.

        Raises:
            LookupError: if no registered route can generate the URL.
        """
        route_values = {"controller": controller, "action": action, **values}
        for _, template in self._routes:
            path = template.generate(route_values)
            if path is None:
                continue
            params = {n.lower() for n in template.parameter_names}
            extra = {k: v for k, v in values.items() if k.lower() not in params and v is not None}
            return f"{path}?{urlencode(extra)}" if extra else path
        raise LookupError(f"No route can generate a URL for {controller}/{action}")
