"""Root URL configuration for the storefront API."""
from django.conf import settings
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

from core.routes import ROUTES, PUBLIC

API_ROOT = settings.API_PREFIX.strip("/") + "/"

urlpatterns = [
    path(API_ROOT, include("authentication.urls")),
    path(API_ROOT, include("access_control.urls")),
    path(API_ROOT, include([ROUTES.path("schema", SpectacularAPIView, name="schema", GET=PUBLIC)])),
]
