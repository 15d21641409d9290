"""Actor identity providers for the ``changed_by`` column."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


class ActorProvider(Protocol):
    """Supply the identity recorded as ``changed_by``."""

    def current_actor(self) -> str:
        """Return the actor for the mutation being audited."""


class StaticActorProvider:
    """Return one fixed identity for every entry."""

    def __init__(self, actor: str = SYSTEM_ACTOR) -> None:
        if not actor:
            raise ValueError("actor identity must be non-empty")
        self._actor = actor

    def current_actor(self) -> str:
        return self._actor


class CallableActorProvider:
    """Adapt a zero-argument callable, falling back to a sentinel identity.

    The callable typically reads request-scoped state (a user id bound by a
    web framework). It runs inside the audit path, so its failures are
    logged and replaced by ``fallback`` rather than raised.
    """

    def __init__(self, supplier: Callable[[], str | None], *, fallback: str = SYSTEM_ACTOR) -> None:
        self._supplier = supplier
        self._fallback = fallback

    def current_actor(self) -> str:
        try:
            actor = self._supplier()
        except Exception:
            logger.warning("Actor supplier failed; using fallback identity", exc_info=True)
            return self._fallback
        if not actor:
            return self._fallback
        return str(actor)
