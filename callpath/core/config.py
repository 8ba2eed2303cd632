"""Analysis configuration.

Loaded from ``callpath.json`` or ``.callpath/config.json`` in the
workspace and merged over the defaults. Command line options override
file values.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from callpath.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "root": None,
    "targets": [],
    "max_visits": None,
    "check_invariants": True,
    "workers": 1,
}


@dataclass
class AnalysisConfig:
    """Settings for one analysis run."""

    root: str | None = None
    targets: list[str] = field(default_factory=list)
    max_visits: int | None = None
    check_invariants: bool = True
    workers: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisConfig:
        merged = _deep_merge(DEFAULT_CONFIG, data)
        for warning in _validate_config(merged):
            logger.warning("Config: %s", warning)
        return cls(
            root=merged["root"],
            targets=list(merged["targets"]),
            max_visits=merged["max_visits"],
            check_invariants=merged["check_invariants"],
            workers=merged["workers"],
        )

    def with_overrides(self, **overrides: Any) -> AnalysisConfig:
        """Copy with every non-None override applied."""
        values = {
            "root": self.root,
            "targets": list(self.targets),
            "max_visits": self.max_visits,
            "check_invariants": self.check_invariants,
            "workers": self.workers,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return AnalysisConfig.from_dict(values)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Override values replace base values. Lists are replaced entirely (not merged).
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _validate_config(config: dict[str, Any]) -> list[str]:
    """Validate config types.

    Raises ConfigError for values that cannot be used; returns warnings for
    keys that are merely unknown.
    """
    warnings = []

    unknown = set(config) - set(DEFAULT_CONFIG) - {"$schema"}
    if unknown:
        warnings.append(f"Unknown config keys: {', '.join(sorted(unknown))}")

    if config["root"] is not None and not isinstance(config["root"], str):
        raise ConfigError("'root' must be a string")

    targets = config["targets"]
    if not isinstance(targets, list) or not all(isinstance(t, str) for t in targets):
        raise ConfigError("'targets' must be a list of strings")

    max_visits = config["max_visits"]
    if max_visits is not None and (
        isinstance(max_visits, bool) or not isinstance(max_visits, int) or max_visits < 1
    ):
        raise ConfigError("'max_visits' must be a positive integer")

    if not isinstance(config["check_invariants"], bool):
        raise ConfigError("'check_invariants' must be a boolean")

    workers = config["workers"]
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ConfigError("'workers' must be a positive integer")

    return warnings


def _find_config_file(workspace_root: Path) -> Path | None:
    """Find config file in workspace.

    Search order:
    1. callpath.json
    2. .callpath/config.json
    """
    candidates = [
        workspace_root / "callpath.json",
        workspace_root / ".callpath" / "config.json",
    ]

    for path in candidates:
        if path.exists():
            return path

    return None


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load and parse config file."""
    try:
        with config_path.open(encoding="utf-8") as f:
            result = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Invalid JSON in config file {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file {config_path}: {e}") from e
    if not isinstance(result, dict):
        raise ConfigError(f"Config file {config_path} must contain an object")
    return result


def load_config(workspace_root: Path, config_path: Path | None = None) -> AnalysisConfig:
    """Load the analysis configuration for a workspace.

    An explicit ``config_path`` must exist; otherwise the workspace is
    searched and the defaults are used when no file is found.
    """
    if config_path is None:
        config_path = _find_config_file(workspace_root)
        if config_path is None:
            logger.debug("No config file in %s, using defaults", workspace_root)
            return AnalysisConfig()

    logger.debug("Loading config from %s", config_path)
    return AnalysisConfig.from_dict(_load_config_file(config_path))
