"""SQLAlchemy engine construction for the audit store substrate."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url

from packages.changetrail_shared.config import StoreSettings


def create_store_engine(config: StoreSettings) -> Engine:
    """Construct a configured SQLAlchemy engine for one store URL."""
    url = make_url(config.url)
    if url.get_backend_name() == "sqlite":
        # SQLite picks its own pool class; queue-pool sizing args are rejected.
        return create_engine(url, echo=config.echo)
    return create_engine(
        url,
        echo=config.echo,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout_seconds,
        pool_pre_ping=config.pool_pre_ping,
    )
