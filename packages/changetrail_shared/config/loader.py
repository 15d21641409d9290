"""Settings loading with deterministic precedence.

The cascade is always:
1) CLI / init params
2) Environment variables
3) ~/.config/changetrail/changetrail.yaml (or an explicit path)
4) Model defaults

Environment variable format:
- Prefix: ``CHANGETRAIL_``
- Nested keys: ``__`` separator
- Example: ``CHANGETRAIL_AUDIT_TRAIL__CHANGED_BY=batch`` ->
  ``audit_trail.changed_by = "batch"``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Mapping

from .models import DEFAULT_CONFIG_PATH, ChangeTrailSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> ChangeTrailSettings:
    """Load typed settings by applying the standard precedence cascade."""
    resolved = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    settings_cls = _settings_for_path(resolved)
    return settings_cls(**dict(cli_params or {}))


def _settings_for_path(path: Path) -> type[ChangeTrailSettings]:
    """Return a settings class whose YAML source reads ``path``."""
    if path == ChangeTrailSettings._config_path:
        return ChangeTrailSettings

    class _PathBoundSettings(ChangeTrailSettings):
        _config_path: ClassVar[Path] = path

    return _PathBoundSettings
