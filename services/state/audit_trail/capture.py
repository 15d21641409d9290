"""Capture hook binding the audit pipeline to SQLAlchemy flushes.

The hook listens to mapper ``after_insert`` and ``after_update`` events.
Both fire inside ``Session.flush()``, after the row's statement has been
emitted and before the enclosing transaction commits. Attribute history is
still intact at that point, so the engine's own change tracking supplies the
dirty-field signal; nothing is re-diffed here.

Column attributes of enrolled classes are also given an ``active_history``
``set`` listener. SQLAlchemy then loads an expired attribute before
overwriting it, so ``history.deleted`` holds the prior value even after a
commit with the default ``expire_on_commit=True``.

Nothing raised while building a change event leaves the hook: the failure is
logged and the caller's flush continues. Deletes are deliberately not
captured.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from sqlalchemy import event, inspect
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Mapper, object_session

from packages.changetrail_shared.errors import exception_to_error
from packages.changetrail_shared.logging import fields, log_context
from services.state.audit_trail.dispatcher import ChangeEventDispatcher
from services.state.audit_trail.domain import ChangeAction
from services.state.audit_trail.enrollment import AuditRegistry
from services.state.audit_trail.extractor import extract_change_event
from services.state.audit_trail.transactions import TransactionContext

logger = logging.getLogger(__name__)

_Listener = Callable[..., None]


class ChangeCaptureHook:
    """Turn flushed inserts/updates of enrolled records into change events."""

    def __init__(self, *, registry: AuditRegistry, dispatcher: ChangeEventDispatcher) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._installed: list[tuple[Any, str, _Listener]] = []
        self._history_listeners: list[tuple[Any, str, _Listener]] = []
        self._history_classes: set[type] = set()

    @property
    def installed_targets(self) -> tuple[Any, ...]:
        """Return targets the hook currently listens on."""
        seen: list[Any] = []
        for target, _, _ in self._installed:
            if not any(target is existing for existing in seen):
                seen.append(target)
        return tuple(seen)

    def install(self, target: Any = Mapper) -> None:
        """Listen on ``target``: a mapped class, a declarative base, or ``Mapper``.

        Classes listen with ``propagate=True`` so mapped subclasses are
        covered. A target already covered by an installed one (the same
        target, a subclass of an installed class, or anything once ``Mapper``
        is installed) is a no-op, so each flush yields one event per record.
        Installing a broader target replaces the narrower ones it covers.

        Enroll record types before installing: prior-value loading is turned
        on for the enrolled classes found here and for mappers configured
        later.
        """
        if any(_covers(existing, target) for existing in self.installed_targets):
            logger.debug(
                "Change capture hook already covers %s; install skipped", _target_name(target)
            )
            return
        self._remove_targets(
            [existing for existing in self.installed_targets if _covers(target, existing)]
        )

        propagate = isinstance(target, type) and target is not Mapper
        for identifier, listener in (
            ("after_insert", self._after_insert),
            ("after_update", self._after_update),
            ("mapper_configured", self._on_mapper_configured),
        ):
            event.listen(target, identifier, listener, propagate=propagate)
            self._installed.append((target, identifier, listener))
        for mapper in self._known_mappers(target):
            self._retain_prior_values(mapper)
        logger.debug("Change capture hook installed on %s", _target_name(target))

    def uninstall(self) -> None:
        """Remove every listener this hook registered."""
        _remove_listeners(self._installed)
        _remove_listeners(self._history_listeners)
        self._history_classes.clear()

    def _after_insert(self, mapper: Mapper[Any], connection: Connection, target: Any) -> None:
        del connection
        with _capture_boundary(target, ChangeAction.CREATE):
            if not self._registry.is_enrolled(target):
                return
            state = inspect(target)
            current = {name: state.dict.get(name) for name in self._registry.fields_for(target)}
            self._publish(
                target,
                extract_change_event(
                    record=target,
                    record_id=_record_id(mapper, target),
                    action=ChangeAction.CREATE,
                    current=current,
                ),
            )

    def _after_update(self, mapper: Mapper[Any], connection: Connection, target: Any) -> None:
        del connection
        with _capture_boundary(target, ChangeAction.UPDATE):
            if not self._registry.is_enrolled(target):
                return
            state = inspect(target)
            prior: dict[str, Any] = {}
            current: dict[str, Any] = {}
            dirty: list[str] = []
            for name in self._registry.fields_for(target):
                history = state.attrs[name].history
                if not history.has_changes():
                    continue
                dirty.append(name)
                prior[name] = history.deleted[0] if history.deleted else None
                current[name] = history.added[0] if history.added else state.dict.get(name)

            self._publish(
                target,
                extract_change_event(
                    record=target,
                    record_id=_record_id(mapper, target),
                    action=ChangeAction.UPDATE,
                    current=current,
                    prior=prior,
                    dirty_fields=dirty,
                ),
            )

    def _on_mapper_configured(self, mapper: Mapper[Any], class_: type) -> None:
        del class_
        self._retain_prior_values(mapper)

    def _retain_prior_values(self, mapper: Mapper[Any]) -> None:
        record_type = mapper.class_
        if record_type in self._history_classes:
            return
        with _capture_boundary(record_type, None):
            if not self._registry.is_enrolled_type(record_type):
                return
            for key in mapper.columns.keys():
                attribute = getattr(record_type, key)
                event.listen(attribute, "set", self._keep_prior_value, active_history=True)
                self._history_listeners.append((attribute, "set", self._keep_prior_value))
            self._history_classes.add(record_type)

    def _keep_prior_value(self, target: Any, value: Any, oldvalue: Any, initiator: Any) -> None:
        """No-op ``set`` listener; registering it with ``active_history`` is what matters."""

    def _known_mappers(self, target: Any) -> list[Mapper[Any]]:
        if isinstance(target, type) and target is not Mapper:
            candidates = [target, *_subclasses(target)]
        else:
            candidates = list(self._registry.enrolled_types())
        mappers: list[Mapper[Any]] = []
        for candidate in candidates:
            mapper = inspect(candidate, raiseerr=False)
            if isinstance(mapper, Mapper):
                mappers.append(mapper)
        if target is Mapper:
            for mapper in list(mappers):
                mappers.extend(mapper.registry.mappers)
        return mappers

    def _remove_targets(self, targets: list[Any]) -> None:
        if not targets:
            return
        covered = [entry for entry in self._installed if any(entry[0] is t for t in targets)]
        self._installed = [entry for entry in self._installed if entry not in covered]
        _remove_listeners(covered)
        for target in targets:
            logger.debug("Change capture hook on %s replaced by a broader target", _target_name(target))

    def _publish(self, target: Any, change_event: Any) -> None:
        if change_event is None:
            return
        context = TransactionContext(active=object_session(target))
        self._dispatcher.publish(change_event, context)


@contextmanager
def _capture_boundary(record: Any, action: ChangeAction | None) -> Iterator[None]:
    """Log and swallow any error raised while capturing a change."""
    try:
        yield
    except Exception as exc:
        record_type = record if isinstance(record, type) else type(record)
        with log_context(
            {
                fields.EVENT: fields.CAPTURE_FAILURE_EVENT,
                fields.RECORD_NAME: record_type.__name__,
                fields.ACTION: None if action is None else action.value,
                **exception_to_error(exc).log_fields(),
            }
        ):
            logger.error("Change capture failed; the mutation continues", exc_info=True)


def _remove_listeners(listeners: list[tuple[Any, str, _Listener]]) -> None:
    while listeners:
        target, identifier, listener = listeners.pop()
        if event.contains(target, identifier, listener):
            event.remove(target, identifier, listener)


def _covers(outer: Any, inner: Any) -> bool:
    if outer is inner or outer is Mapper:
        return True
    if inner is Mapper or not (isinstance(outer, type) and isinstance(inner, type)):
        return False
    return issubclass(inner, outer)


def _subclasses(record_type: type) -> list[type]:
    found: list[type] = []
    pending = list(record_type.__subclasses__())
    while pending:
        candidate = pending.pop()
        if candidate not in found:
            found.append(candidate)
            pending.extend(candidate.__subclasses__())
    return found


def _record_id(mapper: Mapper[Any], target: Any) -> Any:
    """Return the record's primary key, unwrapped when it has one column."""
    key = mapper.primary_key_from_instance(target)
    if len(key) == 1:
        return key[0]
    return tuple(key)


def _target_name(target: Any) -> str:
    return getattr(target, "__name__", None) or type(target).__name__
