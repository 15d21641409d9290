"""Field-level diff extraction for created and updated records.

Pure functions: no I/O, no session access. Callers (the capture hook) supply
field snapshots and the engine's dirty-field signal.
"""

from __future__ import annotations

from typing import Any, Collection, Mapping

from services.state.audit_trail.domain import ChangeAction, ChangeEvent

NULL_TEXT = "null"
ARROW = " -> "


def render_value(value: Any) -> str:
    """Render one field value for a change description."""
    if value is None:
        return NULL_TEXT
    return str(value)


def describe_change(old: Any, new: Any) -> str:
    """Format one field transition as ``"<old> -> <new>"``."""
    return f"{render_value(old)}{ARROW}{render_value(new)}"


def extract_change_event(
    *,
    record: Any,
    record_id: Any,
    action: ChangeAction,
    current: Mapping[str, Any],
    prior: Mapping[str, Any] | None = None,
    dirty_fields: Collection[str] | None = None,
) -> ChangeEvent | None:
    """Build a change event for one mutated record, or ``None`` if nothing changed.

    For ``CREATE`` every field in ``current`` is described against a null
    prior value, including fields that are themselves null. For ``UPDATE``
    only ``dirty_fields`` are compared; a missing or empty dirty set means no
    event. Dirty fields whose rendered old and new values match are skipped.
    """
    if action is ChangeAction.CREATE:
        changes = {name: describe_change(None, value) for name, value in current.items()}
    elif action is ChangeAction.UPDATE:
        changes = _update_changes(current=current, prior=prior or {}, dirty_fields=dirty_fields)
    else:
        raise ValueError(f"unsupported change action: {action!r}")

    if not changes:
        return None
    return ChangeEvent(record=record, record_id=record_id, action=action, changes=changes)


def _update_changes(
    *,
    current: Mapping[str, Any],
    prior: Mapping[str, Any],
    dirty_fields: Collection[str] | None,
) -> dict[str, str]:
    if not dirty_fields:
        return {}

    changes: dict[str, str] = {}
    for name in dirty_fields:
        old = render_value(prior.get(name))
        new = render_value(current.get(name))
        if old == new:
            continue
        changes[name] = f"{old}{ARROW}{new}"
    return changes
