"""Shared SQL substrate primitives for changetrail stores."""

from resources.substrates.sql.engine import create_store_engine
from resources.substrates.sql.errors import normalize_sql_error
from resources.substrates.sql.health import ping
from resources.substrates.sql.session import (
    create_session_factory,
    transactional_session,
)

__all__ = [
    "create_session_factory",
    "create_store_engine",
    "normalize_sql_error",
    "ping",
    "transactional_session",
]
