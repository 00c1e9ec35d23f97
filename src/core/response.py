"""Response helpers and the base view enforcing the API envelope."""

from typing import Any

from rest_framework.response import Response
from rest_framework.views import APIView


def api_response(data: Any, status: int = 200) -> Response:
    """Return data wrapped in the standard envelope.

    All successful JSON responses should use this helper to ensure the
    `{ "data": ..., "errors": [] }` shape.
    """

    return Response({"data": data, "errors": []}, status=status)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and "data" in payload and "errors" in payload


class BaseAPIView(APIView):
    """APIView that ensures successful responses use the standard envelope.

    Authentication and authorization come from the project-wide DRF defaults
    (``RouteAuthentication`` and ``RoutePermission``), driven by the route table.
    """

    def finalize_response(self, request, response, *args, **kwargs):
        """Ensure non-error responses include the `{data, errors}` envelope."""
        if hasattr(response, "data") and response.status_code and response.status_code < 400:
            if response.status_code != 204 and not _is_enveloped(response.data):
                response.data = {"data": response.data, "errors": []}
        return super().finalize_response(request, response, *args, **kwargs)
