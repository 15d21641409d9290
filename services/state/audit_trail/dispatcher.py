"""In-process synchronous fanout of change events.

This is a plain observer list, not a queue: ``publish`` calls each handler on
the caller's thread, in subscription order, before returning. Handlers
therefore still run inside the caller's flush, which is what lets the
recorder reason about the caller's open transaction.
"""

from __future__ import annotations

import logging
from typing import Callable

from packages.changetrail_shared.logging import fields, log_context
from services.state.audit_trail.domain import ChangeEvent
from services.state.audit_trail.errors import HandlerFailure
from services.state.audit_trail.transactions import TransactionContext

logger = logging.getLogger(__name__)

ChangeEventHandler = Callable[[ChangeEvent, TransactionContext], object]


class ChangeEventDispatcher:
    """Deliver change events to statically registered handlers."""

    def __init__(self) -> None:
        self._handlers: list[ChangeEventHandler] = []

    @property
    def handlers(self) -> tuple[ChangeEventHandler, ...]:
        """Return subscribed handlers in delivery order."""
        return tuple(self._handlers)

    def subscribe(self, handler: ChangeEventHandler) -> None:
        """Register one handler; intended for startup wiring only."""
        self._handlers.append(handler)

    def publish(
        self,
        event: ChangeEvent,
        context: TransactionContext | None = None,
    ) -> tuple[HandlerFailure, ...]:
        """Deliver ``event`` to every handler and return the failures caught.

        A raising handler is logged and skipped; later handlers still run and
        nothing propagates to the publisher.
        """
        scope = context if context is not None else TransactionContext()
        failures: list[HandlerFailure] = []
        for handler in tuple(self._handlers):
            try:
                handler(event, scope)
            except Exception as exc:
                failure = HandlerFailure.from_exception(exc, handler_name=_handler_name(handler))
                failures.append(failure)
                with log_context(
                    {
                        fields.EVENT: fields.HANDLER_FAILURE_EVENT,
                        fields.HANDLER: failure.handler_name,
                        fields.RECORD_NAME: event.record_name,
                        fields.RECORD_ID: event.record_id,
                        fields.ACTION: event.action.value,
                        **failure.detail.log_fields(),
                    }
                ):
                    logger.error("Change event handler failed", exc_info=True)
        return tuple(failures)


def _handler_name(handler: ChangeEventHandler) -> str:
    name = getattr(handler, "__qualname__", None) or type(handler).__qualname__
    module = getattr(handler, "__module__", None)
    return f"{module}.{name}" if module else name
