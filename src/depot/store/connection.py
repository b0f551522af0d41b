"""Substrate factory: build the configured substrate from settings.

This is the single entry point for obtaining a substrate; repositories,
the queue and the CLI never construct backend classes directly.

Backends:
    - ``redis``: :class:`RedisSubstrate`, requires Redis Stack
    - ``memory``: :class:`InMemorySubstrate`, single process only

With ``redis_tracing`` enabled the substrate is wrapped in
:class:`~depot.store.tracing.TracingSubstrate`.
"""

from __future__ import annotations

from depot.core.errors import ConfigError
from depot.core.logging import get_logger
from depot.core.settings import DepotSettings, StoreBackend, get_settings
from depot.store.memory import InMemorySubstrate
from depot.store.redis_substrate import RedisSubstrate
from depot.store.substrate import DocumentSubstrate
from depot.store.tracing import TracingSubstrate

logger = get_logger(__name__)


def create_substrate(settings: DepotSettings | None = None) -> DocumentSubstrate:
    """Create the substrate selected by ``settings.store_backend``."""
    settings = settings or get_settings()

    substrate: DocumentSubstrate
    match settings.store_backend:
        case StoreBackend.REDIS:
            substrate = RedisSubstrate.from_url(settings.redis_url)
            logger.info("substrate_created", backend="redis", host=settings.redis_host,
                        port=settings.redis_port, db=settings.redis_db)
        case StoreBackend.MEMORY:
            substrate = InMemorySubstrate()
            logger.info("substrate_created", backend="memory")
        case _:
            raise ConfigError(f"Unsupported store backend: {settings.store_backend!r}")

    if settings.redis_tracing:
        substrate = TracingSubstrate(substrate)
    return substrate
