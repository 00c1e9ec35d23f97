"""Explicit route table with per-route authentication and permission policies.

Every API endpoint is registered through :meth:`RouteTable.path`, which returns
a regular Django ``path()`` and records one :class:`RouteEntry` per HTTP
method. The authentication chain and the authorization guard read policies
from here by ``(url_name, method)``; the permission sync job reads the same
entries to build the permission catalog.
"""

from dataclasses import dataclass, field
from enum import Enum
from importlib import import_module
from inspect import isclass

from django.conf import settings
from django.urls import path as django_path

from access_control.normalizer import route_template


class AuthType(str, Enum):
    BEARER = "Bearer"
    API_KEY = "ApiKey"
    NONE = "None"


class Condition(str, Enum):
    AND = "and"
    OR = "or"


class PermissionMode(str, Enum):
    ALL = "ALL"
    ANY = "ANY"


@dataclass(frozen=True)
class RoutePolicy:
    """Who may call a route: accepted credentials and required permissions."""

    auth_types: tuple[AuthType, ...] = (AuthType.NONE,)
    condition: Condition = Condition.AND
    permissions: tuple[str, ...] = ()
    permission_mode: PermissionMode = PermissionMode.ALL
    roles: tuple[str, ...] = ()

    @property
    def is_public(self) -> bool:
        return AuthType.NONE in self.auth_types


PUBLIC = RoutePolicy()


def auth(
    *auth_types: AuthType,
    condition: Condition = Condition.AND,
    permissions: tuple[str, ...] | list[str] = (),
    mode: PermissionMode = PermissionMode.ALL,
    roles: tuple[str, ...] | list[str] = (),
) -> RoutePolicy:
    """Build a policy: ``auth(AuthType.BEARER, AuthType.API_KEY, condition=Condition.OR)``."""
    return RoutePolicy(
        auth_types=tuple(auth_types) or (AuthType.NONE,),
        condition=condition,
        permissions=tuple(permissions),
        permission_mode=mode,
        roles=tuple(roles),
    )


@dataclass(frozen=True)
class RouteEntry:
    name: str
    method: str
    path: str
    policy: RoutePolicy = field(default=PUBLIC)
    label: str = ""
    view: type | None = field(default=None, compare=False)


class RouteTable:
    """Registry of declared routes, filled while URL modules are imported."""

    def __init__(self):
        self._entries: dict[tuple[str, str], RouteEntry] = {}

    def path(self, route: str, view, *, name: str, labels: dict[str, str] | None = None, **methods: RoutePolicy):
        """Register ``route`` with one policy per HTTP method and return a URL pattern."""
        labels = {k.upper(): v for k, v in (labels or {}).items()}
        template = route_template(route, settings.API_PREFIX)
        for method, policy in methods.items():
            method = method.upper()
            self._entries[(name, method)] = RouteEntry(
                name=name,
                method=method,
                path=template,
                policy=policy,
                label=labels.get(method, ""),
                view=view if isclass(view) else None,
            )
        callback = view.as_view() if isclass(view) else view
        return django_path(route, callback, name=name)

    def lookup(self, name: str | None, method: str) -> RouteEntry | None:
        method = (method or "").upper()
        entry = self._entries.get((name, method))
        if entry is None and method == "HEAD":
            entry = self._entries.get((name, "GET"))
        return entry

    def policy_for(self, request) -> RoutePolicy:
        """Policy of the matched route; undeclared routes are public."""
        match = getattr(request, "resolver_match", None)
        if match is None:
            return PUBLIC
        entry = self.lookup(match.url_name, request.method)
        return entry.policy if entry else PUBLIC

    def entries(self) -> list[RouteEntry]:
        return list(self._entries.values())


ROUTES = RouteTable()


def collect_routes() -> list[RouteEntry]:
    """Import the URL configuration so every app registers its routes."""
    import_module(settings.ROOT_URLCONF)
    return ROUTES.entries()


__all__ = [
    "AuthType",
    "Condition",
    "PermissionMode",
    "RoutePolicy",
    "RouteEntry",
    "RouteTable",
    "PUBLIC",
    "ROUTES",
    "auth",
    "collect_routes",
]
