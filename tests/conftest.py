# tests/conftest.py
"""
Global test bootstrap
- Sets required settings (JWT secret, DB password) BEFORE importing the app
- Pins the anyio backend to asyncio
- Pulls in shared fixtures (clock, services, episodes, API client, tokens)
"""

from __future__ import annotations

import os

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (must be set before `microdrama.core.config` is imported)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ.setdefault("POSTGRES_PASSWORD", "postgres")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.pop("JWT_ISSUER", None)
os.environ.pop("JWT_AUDIENCE", None)
os.environ.pop("SUBSCRIPTION_REPOSITORY_IMPL", None)
os.environ.pop("EPISODE_REPOSITORY_IMPL", None)
os.environ.pop("EPISODES_DATA_PATH", None)

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Shared fixtures
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.clock import *      # noqa: F401,F403,E402
from tests.fixtures.services import *   # noqa: F401,F403,E402
from tests.fixtures.auth import *       # noqa: F401,F403,E402
from tests.fixtures.app import *        # noqa: F401,F403,E402


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"
