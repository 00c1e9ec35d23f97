"""Django settings for the Storefront RBAC project.

Environment-driven configuration for the database, Redis, token secrets, and
the role-based access control layer.
"""
import os
from datetime import timedelta
from pathlib import Path
from urllib.parse import urlparse

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent


def _get_env(name: str, default: str | None = None) -> str | None:
    """Read an environment variable with an optional fallback."""
    return os.environ.get(name, default)


def _parse_database_url(url: str) -> dict:
    """Parse a PostgreSQL- or SQLite-style DATABASE_URL into a DATABASES entry."""
    parsed = urlparse(url)
    if parsed.scheme == "sqlite":
        name = parsed.path.lstrip("/") or ":memory:"
        return {"ENGINE": "django.db.backends.sqlite3", "NAME": name}
    return {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": parsed.path.lstrip("/"),
        "USER": parsed.username,
        "PASSWORD": parsed.password,
        "HOST": parsed.hostname,
        "PORT": parsed.port or "5432",
    }


_DEV_SECRETS = ("change-me", "dev-secret-key-change-me")

SECRET_KEY = _get_env("SECRET_KEY", "dev-secret-key-change-me")
DEBUG = _get_env("DEBUG", "True") == "True"
if not DEBUG and SECRET_KEY in _DEV_SECRETS:
    raise ImproperlyConfigured("SECRET_KEY must be set in production")
ALLOWED_HOSTS = [
    h.strip()
    for h in _get_env("ALLOWED_HOSTS", "localhost,127.0.0.1,0.0.0.0,testserver").split(",")
    if h.strip()
]

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "drf_spectacular",
    "core",
    "access_control",
    "authentication",
    "scripts",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "core.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "core.wsgi.application"
ASGI_APPLICATION = "core.asgi.application"

DATABASE_URL = _get_env("DATABASE_URL")
if DATABASE_URL:
    DATABASES = {"default": _parse_database_url(DATABASE_URL)}
elif _get_env("POSTGRES_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": _get_env("POSTGRES_DB", "storefront"),
            "USER": _get_env("POSTGRES_USER", "storefront"),
            "PASSWORD": _get_env("POSTGRES_PASSWORD", "storefront"),
            "HOST": _get_env("POSTGRES_HOST"),
            "PORT": _get_env("POSTGRES_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {"min_length": 8},
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_USER_MODEL = "authentication.User"

DEBUG_AUTH_ERRORS = _get_env("DEBUG_AUTH_ERRORS", "False") == "True"
REDIS_URL = _get_env("REDIS_URL", "redis://localhost:6379/0")
REDIS_SOCKET_TIMEOUT = float(_get_env("REDIS_SOCKET_TIMEOUT", "2.0"))

# Mounted by core.urls and used to build permission route keys.
API_PREFIX = _get_env("APP_API_PREFIX", "/api/v1")

ACCESS_TOKEN_SECRET = _get_env("ACCESS_TOKEN_SECRET", "dev-access-secret-change-me")
REFRESH_TOKEN_SECRET = _get_env("REFRESH_TOKEN_SECRET", "dev-refresh-secret-change-me")
ACCESS_TOKEN_LIFETIME = timedelta(minutes=int(_get_env("ACCESS_TOKEN_MINUTES", "15")))
REFRESH_TOKEN_LIFETIME = timedelta(days=int(_get_env("REFRESH_TOKEN_DAYS", "7")))
JWT_ALGORITHM = _get_env("JWT_ALGORITHM", "HS512")
SECRET_API_KEY = _get_env("SECRET_API_KEY", "dev-api-key-change-me")
BCRYPT_ROUNDS = int(_get_env("BCRYPT_ROUNDS", "12"))

# Initial administrator created by ``manage.py seed_roles``.
ADMIN_EMAIL = _get_env("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = _get_env("ADMIN_PASSWORD")
ADMIN_NAME = _get_env("ADMIN_NAME", "Administrator")
ADMIN_PHONE = _get_env("ADMIN_PHONE", "")

if not DEBUG and any(
    value.startswith("dev-") for value in (ACCESS_TOKEN_SECRET, REFRESH_TOKEN_SECRET, SECRET_API_KEY)
):
    raise ImproperlyConfigured("Token secrets and SECRET_API_KEY must be set in production")

RBAC = {
    # Role name -> roles whose permissions it inherits. Validated at startup.
    "ROLE_HIERARCHY": {
        "ADMIN": ["CLIENT"],
        "CLIENT": [],
    },
    "WILDCARD_PERMISSION": "*",
    "PERMISSION_CACHE_TTL": int(_get_env("PERMISSION_CACHE_TTL", "300")),
    "API_KEY_ROLE": _get_env("API_KEY_ROLE", "ADMIN"),
    "STRICT_ROLE_NAMES": _get_env("RBAC_STRICT_ROLE_NAMES", "False") == "True",
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {"handlers": ["console"], "level": _get_env("LOG_LEVEL", "INFO")},
}

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": ["core.authentication.RouteAuthentication"],
    "DEFAULT_PERMISSION_CLASSES": ["access_control.permissions.RoutePermission"],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "core.exceptions.custom_exception_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront API",
    "DESCRIPTION": (
        "OpenAPI schema for the storefront backend: JWT access/refresh tokens, "
        "API key access, and database-backed route permissions."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "SERVE_PUBLIC": True,
}
