"""Isolated transaction scopes for audit writes.

The capture hook runs in the middle of the caller's flush, so the caller's
transaction is still open. Audit writes must neither join it nor leave it
altered: ``isolated_transaction`` opens a separate session from the audit
store's own factory, commits or rolls back only that session, and restores
the caller's handle on ``TransactionContext`` on every exit path.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from resources.substrates.sql import transactional_session


@dataclass
class TransactionContext:
    """Explicit handle on the session currently driving work for a caller."""

    active: Session | None = None


@contextmanager
def isolated_transaction(
    session_factory: sessionmaker[Session],
    context: TransactionContext,
) -> Iterator[Session]:
    """Run a block in a fresh transaction independent of ``context.active``."""
    saved = context.active

    def open_session() -> Session:
        # Checked before transactional_session takes ownership of the session.
        session = session_factory()
        if saved is not None and session is saved:
            raise RuntimeError("isolated transaction received the caller's session")
        return session

    try:
        with transactional_session(open_session) as session:
            context.active = session
            yield session
    finally:
        context.active = saved
