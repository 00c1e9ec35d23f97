"""OpenAPI description of the route-driven authentication scheme."""

from drf_spectacular.extensions import OpenApiAuthenticationExtension


class RouteAuthenticationScheme(OpenApiAuthenticationExtension):
    """Document both credential types accepted by ``RouteAuthentication``.

    Routes may accept either of them (or both, combined with OR), so the
    schema lists bearer JWT and the ``X-API-Key`` header as alternatives.
    """

    target_class = "core.authentication.RouteAuthentication"
    name = ["BearerAuth", "ApiKeyAuth"]

    def get_security_definition(self, auto_schema):
        return [
            {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
            {"type": "apiKey", "in": "header", "name": "X-API-Key"},
        ]
