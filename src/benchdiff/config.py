"""Comparison configuration and YAML profile loading.

Handles:
- The resolved options for one comparison (:class:`DiffConfig`).
- Loading comparison profiles from YAML files.
- Merging CLI options with profile defaults.
- Validating the final configuration before any input is read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

log = logging.getLogger("benchdiff")


# ---------------------------------------------------------------------------
# DiffConfig
# ---------------------------------------------------------------------------


@dataclass
class Tolerances:
    """Allowed absolute percent change per metric family."""

    ns_per_op: float = 0.0
    mb_per_s: float = 0.0
    allocs_per_op: float = 0.0
    bytes_per_op: float = 0.0

    def for_metric(self, key: str) -> float:
        """Tolerance for the metric whose key is *key*."""
        if key not in self.keys():
            raise KeyError(f"Unknown metric: {key}")
        return float(getattr(self, key))

    @classmethod
    def keys(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @property
    def any_set(self) -> bool:
        """True if any tolerance differs from the default of zero."""
        return any(self.for_metric(k) != 0 for k in self.keys())


@dataclass
class DiffConfig:
    """Resolved configuration for a comparison."""

    changed_only: bool = False  # Only report rows whose delta is non-zero
    sort_by_magnitude: bool = False
    best: bool = False  # Compare the fastest of repeated runs
    fail_on_delta: bool = False  # Enable the tolerance gate
    tolerances: Tolerances = field(default_factory=Tolerances)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: DiffConfig) -> list[ValidationError]:
    """Validate a comparison configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    # Tolerances only mean something when the gate is on.
    if not config.fail_on_delta and config.tolerances.any_set:
        errors.append(
            ValidationError(
                field="tolerances",
                message="Tolerance flags are only valid when --errdelta is set.",
            )
        )

    for key in Tolerances.keys():
        value = config.tolerances.for_metric(key)
        if value < 0:
            errors.append(
                ValidationError(
                    field=f"tolerances.{key}",
                    message=f"Tolerance for {key} cannot be negative (got {value:g}).",
                )
            )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a comparison profile from a YAML file.

    Profile format::

        changed_only: true
        sort_by_magnitude: false
        best: true
        fail_on_delta: true
        tolerances:
          ns_per_op: 5.0
          mb_per_s: 5.0
          allocs_per_op: 0
          bytes_per_op: 10.0

    Returns:
        The parsed YAML as a dict.  An empty file gives an empty dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    text = profile_path.read_text()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {profile_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


_FLAG_KEYS = ("changed_only", "sort_by_magnitude", "best", "fail_on_delta")


def _as_float(value: Any, where: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{where} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{where} must be a number, got {value!r}") from exc


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> DiffConfig:
    """Build a DiffConfig from a parsed YAML profile.

    CLI overrides take precedence over profile values.  Flags override
    only when True (a CLI flag cannot be turned off from the command
    line); tolerances override when not None.

    Args:
        profile_data: Parsed YAML profile dict.
        cli_overrides: CLI option values keyed by DiffConfig field name,
            plus one key per Tolerances field.

    Returns:
        DiffConfig with settings populated.
    """
    cli = cli_overrides or {}

    unknown = set(profile_data) - set(_FLAG_KEYS) - {"tolerances"}
    if unknown:
        raise ValueError(f"Unknown profile keys: {', '.join(sorted(unknown))}")

    config = DiffConfig()
    for key in _FLAG_KEYS:
        value = profile_data.get(key, False)
        if not isinstance(value, bool):
            raise ValueError(f"Profile '{key}' must be true or false, got {value!r}")
        setattr(config, key, bool(cli.get(key)) or value)

    tol_data = profile_data.get("tolerances") or {}
    if not isinstance(tol_data, dict):
        raise ValueError("Profile 'tolerances' must be a mapping of metric -> percent")
    unknown = set(tol_data) - set(Tolerances.keys())
    if unknown:
        raise ValueError(f"Unknown tolerance metrics: {', '.join(sorted(unknown))}")

    for key in Tolerances.keys():
        if cli.get(key) is not None:
            value = _as_float(cli[key], f"{key} tolerance")
        else:
            value = _as_float(tol_data.get(key, 0.0), f"tolerances.{key}")
        setattr(config.tolerances, key, value)

    log.debug("Resolved config: %s", config)
    return config
