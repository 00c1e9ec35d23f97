"""Shared helpers for tests (role seeding, permission sync, user creation, fake Redis)."""

from __future__ import annotations

from typing import Dict

import redis
from rest_framework.test import APIClient

from access_control.models import Role
from access_control.sync import PermissionSynchronizer, SyncReport, declared_routes_from_table
from authentication.models import User
from core.routes import collect_routes
from scripts.management.commands.seed_roles import create_baseline_roles

API = "/api/v1"


class FakeRedis:
    """Minimal Redis stub supporting the commands used by the permission cache."""

    def __init__(self):
        self._store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; the TTL is recorded but never expires in tests."""
        self._store[key] = value
        self.ttls[key] = ttl_seconds

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def keys(self):
        return list(self._store)

    def flushall(self) -> None:
        self._store.clear()
        self.ttls.clear()


class BrokenRedis:
    """Redis stub whose every command fails as if the server were down."""

    def _fail(self, *args, **kwargs):
        raise redis.ConnectionError("connection refused")

    get = setex = delete = _fail


def seed_roles() -> dict[str, Role]:
    """Create ADMIN and CLIENT through the same helper ``seed_roles`` uses."""
    return create_baseline_roles()


def sync_routes() -> SyncReport:
    """Run the permission sync over every route declared in the URL configuration."""
    return PermissionSynchronizer().sync(declared_routes_from_table(collect_routes()))


def create_user(email: str, password: str, role: Role, **extra) -> User:
    """Create a user with a bcrypt-hashed password for tests."""
    return User.objects.create_user(email=email, password=password, role=role, **extra)


def login(client: APIClient, email: str, password: str) -> dict:
    """Log in through the API and return the token pair."""
    response = client.post(
        f"{API}/auth/login", {"email": email, "password": password}, format="json"
    )
    assert response.status_code == 200, response.content
    return response.json()["data"]


def bearer_client(email: str, password: str) -> APIClient:
    """APIClient carrying a fresh access token for the given account."""
    client = APIClient()
    tokens = login(client, email, password)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access_token']}")
    return client
