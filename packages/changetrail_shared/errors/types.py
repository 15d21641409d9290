"""Canonical shared error types.

Errors in the audit path are never raised to the mutating caller; they are
described with ``ErrorDetail`` so log lines carry a stable machine-readable
code and category.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from packages.changetrail_shared.logging import fields


class ErrorCategory(str, Enum):
    """Failure families, ordered from caller-caused to system-caused."""

    VALIDATION = "validation"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error description attached to logged failures."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    def log_fields(self) -> dict[str, str]:
        """Project this error onto flat logging context fields."""
        return {
            fields.ERROR_CODE: self.code,
            fields.ERROR_CATEGORY: self.category.value,
            fields.ERROR_RETRYABLE: "true" if self.retryable else "false",
        }
