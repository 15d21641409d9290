"""Behavior tests for synchronous change-event fanout."""

from __future__ import annotations

import logging
import threading

import pytest

from services.state.audit_trail.dispatcher import ChangeEventDispatcher
from services.state.audit_trail.domain import ChangeAction, ChangeEvent
from services.state.audit_trail.errors import AUDIT_HANDLER_FAILED, HandlerFailure
from services.state.audit_trail.transactions import TransactionContext


class _Record:
    pass


def _event() -> ChangeEvent:
    return ChangeEvent(
        record=_Record(),
        record_id=42,
        action=ChangeAction.UPDATE,
        changes={"price": "1 -> 2"},
    )


def test_publish_invokes_handlers_in_subscription_order() -> None:
    """Handlers run in the order they subscribed, before publish returns."""
    dispatcher = ChangeEventDispatcher()
    calls: list[str] = []
    dispatcher.subscribe(lambda event, context: calls.append("first"))
    dispatcher.subscribe(lambda event, context: calls.append("second"))

    failures = dispatcher.publish(_event())

    assert calls == ["first", "second"]
    assert failures == ()


def test_publish_runs_handlers_on_the_calling_thread() -> None:
    """Delivery is inline; no worker thread is involved."""
    dispatcher = ChangeEventDispatcher()
    seen: list[int] = []
    dispatcher.subscribe(lambda event, context: seen.append(threading.get_ident()))

    dispatcher.publish(_event())

    assert seen == [threading.get_ident()]


def test_failing_handler_is_isolated_from_publisher_and_later_handlers(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A raising handler is logged and reported; the rest still run."""
    dispatcher = ChangeEventDispatcher()
    delivered: list[ChangeEvent] = []

    def broken(event: ChangeEvent, context: TransactionContext) -> None:
        raise RuntimeError("boom")

    dispatcher.subscribe(broken)
    dispatcher.subscribe(lambda event, context: delivered.append(event))
    event = _event()

    with caplog.at_level(logging.ERROR, logger="services.state.audit_trail.dispatcher"):
        failures = dispatcher.publish(event)

    assert delivered == [event]
    assert len(failures) == 1
    failure = failures[0]
    assert isinstance(failure, HandlerFailure)
    assert failure.detail.code == AUDIT_HANDLER_FAILED
    assert "broken" in failure.handler_name
    assert isinstance(failure.__cause__, RuntimeError)
    assert any("handler failed" in record.message for record in caplog.records)


def test_publish_passes_explicit_transaction_context() -> None:
    """The publisher's context reaches every handler unchanged."""
    dispatcher = ChangeEventDispatcher()
    received: list[TransactionContext] = []
    dispatcher.subscribe(lambda event, context: received.append(context))
    context = TransactionContext()

    dispatcher.publish(_event(), context)

    assert received == [context]
    assert received[0] is context


def test_publish_without_context_supplies_an_empty_one() -> None:
    """Handlers always receive a context object."""
    dispatcher = ChangeEventDispatcher()
    received: list[TransactionContext] = []
    dispatcher.subscribe(lambda event, context: received.append(context))

    dispatcher.publish(_event())

    assert received[0].active is None


def test_publish_with_no_subscribers_is_a_no_op() -> None:
    assert ChangeEventDispatcher().publish(_event()) == ()


def test_base_exceptions_are_not_swallowed() -> None:
    """Interpreter-level exits still propagate."""
    dispatcher = ChangeEventDispatcher()

    def interrupt(event: ChangeEvent, context: TransactionContext) -> None:
        raise KeyboardInterrupt

    dispatcher.subscribe(interrupt)

    with pytest.raises(KeyboardInterrupt):
        dispatcher.publish(_event())
