"""
Repository package for data access layers.

Each repository module exposes a protocol, an in-memory implementation (the
default) and a `get_*_repository()` accessor. A custom implementation can be
selected by setting an environment variable to a dotted path like:

    SUBSCRIPTION_REPOSITORY_IMPL=microdrama.repositories.subscriptions_sql:SqlSubscriptionRepository
    EPISODE_REPOSITORY_IMPL=microdrama.repositories.episodes:SqlEpisodeRepository

The class must be constructible without arguments and implement the
interface of the corresponding protocol.
"""

from __future__ import annotations

import importlib
import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from microdrama.core.exceptions import StorageUnavailableException

logger = logging.getLogger(__name__)


def import_string(path: str, *, env_name: str = "REPOSITORY_IMPL") -> Any:
    """Resolve `'package.module:ClassName'` to the named attribute."""
    module_path, _, class_name = path.partition(":")
    if not module_path or not class_name:
        raise ValueError(f"{env_name} must be 'module.sub:ClassName'")
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def resolve_impl_path(env_name: str, configured: Optional[str]) -> Optional[str]:
    """Environment wins over settings so tests can monkeypatch either."""
    return os.environ.get(env_name) or configured or None


def is_storage_unavailable(exc: BaseException) -> bool:
    """Connection-level failure (server down, socket dropped) rather than a bad statement."""
    if isinstance(exc, (ConnectionError, OSError)):
        return True
    if isinstance(exc, DBAPIError):
        return isinstance(exc, (OperationalError, InterfaceError)) or bool(exc.connection_invalidated)
    return False


@contextmanager
def storage_guard(store: str, operation: str) -> Iterator[None]:
    """Re-raise connection failures from `store` as `StorageUnavailableException`.

    Anything else (integrity errors, programming errors) propagates untouched.
    """
    try:
        yield
    except (DBAPIError, ConnectionError, OSError) as exc:
        if not is_storage_unavailable(exc):
            raise
        logger.error("%s store unavailable during %s: %s", store, operation, exc, exc_info=True)
        raise StorageUnavailableException(operation=operation) from exc


__all__ = ["import_string", "resolve_impl_path", "is_storage_unavailable", "storage_guard"]
