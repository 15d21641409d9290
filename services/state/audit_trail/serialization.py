"""Transport encoding for change maps stored in ``changes_payload``."""

from __future__ import annotations

import json
from typing import Mapping, Protocol

from services.state.audit_trail.errors import SerializationError


class ChangesSerializer(Protocol):
    """Render a change map to a self-describing string."""

    def serialize(self, changes: Mapping[str, str]) -> str:
        """Return the encoded form or raise ``SerializationError``."""


class JsonChangesSerializer:
    """Encode change maps as compact JSON objects."""

    def __init__(self, *, sort_keys: bool = True) -> None:
        self._sort_keys = sort_keys

    def serialize(self, changes: Mapping[str, str]) -> str:
        try:
            return json.dumps(
                dict(changes),
                sort_keys=self._sort_keys,
                separators=(",", ":"),
                ensure_ascii=False,
            )
        except (TypeError, ValueError) as exc:
            raise SerializationError.from_exception(exc) from exc
