"""System checks for RBAC configuration."""

from django.conf import settings
from django.core.checks import Error, Warning, register

from core.routes import ROUTES, collect_routes

_HANDLER_METHODS = ("get", "post", "put", "patch", "delete")


@register()
def routes_declare_every_handler(app_configs, **kwargs):
    """Ensure each HTTP handler of a registered view has a declared route policy.

    A handler without an entry in the route table is treated as public, which
    is almost never intended for an API view.
    """
    errors: list[Error] = []

    entries = collect_routes()
    for name in {entry.name for entry in entries}:
        view_cls = next((e.view for e in entries if e.name == name and e.view), None)
        if view_cls is None:
            continue
        for method in _HANDLER_METHODS:
            if hasattr(view_cls, method) and ROUTES.lookup(name, method) is None:
                errors.append(
                    Error(
                        f"{view_cls.__name__}.{method}() is routed as '{name}' but has "
                        f"no declared policy for {method.upper()}.",
                        obj=view_cls,
                        id="access_control.E001",
                    )
                )

    return errors


@register()
def api_key_role_is_known(app_configs, **kwargs):
    """Warn when the role given to API-key callers is missing from the hierarchy."""
    from .hierarchy import canonical_role_name, get_role_hierarchy

    role = canonical_role_name(settings.RBAC.get("API_KEY_ROLE", ""))
    if role and not get_role_hierarchy().is_known(role):
        return [
            Warning(
                f"RBAC['API_KEY_ROLE'] is '{role}', which is not in RBAC['ROLE_HIERARCHY']; "
                "API-key callers will resolve to an empty permission set.",
                id="access_control.W001",
            )
        ]
    return []
