"""Canonical route keys shared by the permission sync job and the guard.

A route key has the form ``"<method> <path-template>"``. Both sides of every
comparison go through :func:`normalize`, so ``"GET /Product//:ID/"`` and
``"get /product/:id"`` produce the same key.
"""

import re

_SLASHES = re.compile(r"/+")
_PARAM = re.compile(r":([A-Za-z0-9_]+)")
_DJANGO_CONVERTER = re.compile(r"<(?:[^>:]+:)?([^>]+)>")
_REGEX_GROUP = re.compile(r"\(\?P<([^>]+)>[^)]*\)")


def normalize_path(path: str) -> str:
    """Collapse repeated separators and strip a trailing one, keeping case."""
    collapsed = _SLASHES.sub("/", (path or "").strip())
    if len(collapsed) > 1:
        collapsed = collapsed.rstrip("/")
    return collapsed


def normalize(value: str | None) -> str:
    """Return the comparable form of a permission name or route key."""
    if not isinstance(value, str) or not value.strip():
        return ""
    value = _SLASHES.sub("/", value.strip())
    if value.endswith("/") and len(value) > 1:
        value = value[:-1]
    value = _PARAM.sub(lambda m: f":{m.group(1).lower()}", value)
    return value.lower().strip()


def normalize_route_key(method: str, path: str) -> str:
    """Build the normalized ``"method path"`` key for a route."""
    return normalize(f"{(method or '').strip()} {(path or '').strip()}")


def route_template(route: str, prefix: str = "") -> str:
    """Convert a Django route pattern into the ``:param`` template form.

    ``route_template("order/<uuid:order_id>/", "/api/v1")`` returns
    ``"/api/v1/order/:order_id"``.
    """
    path = _REGEX_GROUP.sub(lambda m: f":{m.group(1)}", route or "")
    path = _DJANGO_CONVERTER.sub(lambda m: f":{m.group(1)}", path)
    path = path.lstrip("^").rstrip("$")
    return normalize_path(f"/{prefix.strip('/')}/{path}" if prefix.strip("/") else f"/{path}")


__all__ = ["normalize", "normalize_path", "normalize_route_key", "route_template"]
