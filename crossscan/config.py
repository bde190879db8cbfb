"""
crossscan — Configuration
Nested dict configuration, loaded from YAML and merged over defaults.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "crossscan.yml"

DEFAULT_SCANNER_PRIORITY = ["slither", "aderyn", "semgrep", "solhint", "mythril"]

DEFAULT_CONFIG: dict[str, Any] = {
    "dedup": {
        "line_tolerance": 2,
        "scanner_priority": list(DEFAULT_SCANNER_PRIORITY),
        "expected_scanners": [],
        "workers": 1,
        "source_root": "",
    },
    "confidence": {
        "exact_min_scanners": 3,
        "high_min_scanners": 2,
    },
    # Per-scanner severity overrides: {scanner: {raw_value: level}}
    "severity_map": {},
    # Extra detector -> pattern mappings: {detector_id or "scanner:detector": pattern_id}
    "patterns": {},
}


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def merge_config(override: Optional[dict] = None) -> dict:
    """Overlay a partial config dict on the defaults and validate it."""
    config = _deep_merge(DEFAULT_CONFIG, override or {})
    validate_config(config)
    return config


def validate_config(config: dict) -> None:
    """Raise ConfigError for values the engine cannot run with."""
    dedup = config.get("dedup", {})

    tolerance = dedup.get("line_tolerance", 2)
    if not isinstance(tolerance, int) or isinstance(tolerance, bool) or tolerance < 0:
        raise ConfigError(f"dedup.line_tolerance must be a non-negative integer, got {tolerance!r}")

    priority = dedup.get("scanner_priority", [])
    if not isinstance(priority, list) or not all(isinstance(s, str) for s in priority):
        raise ConfigError("dedup.scanner_priority must be a list of scanner ids")

    expected = dedup.get("expected_scanners", [])
    if not isinstance(expected, list):
        raise ConfigError("dedup.expected_scanners must be a list of scanner ids")

    workers = dedup.get("workers", 1)
    if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
        raise ConfigError(f"dedup.workers must be >= 1, got {workers!r}")

    conf = config.get("confidence", {})
    exact_min = conf.get("exact_min_scanners", 3)
    high_min = conf.get("high_min_scanners", 2)
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in (exact_min, high_min)):
        raise ConfigError("confidence thresholds must be integers")
    if high_min < 2 or exact_min < high_min:
        raise ConfigError(
            f"confidence thresholds need 2 <= high_min_scanners <= exact_min_scanners "
            f"(got {high_min}, {exact_min})"
        )

    for section in ("severity_map", "patterns"):
        if not isinstance(config.get(section, {}), dict):
            raise ConfigError(f"{section} must be a mapping")


def load_config(path: Optional[str] = None) -> dict:
    """
    Load configuration from a YAML file.

    Without a path, `crossscan.yml` in the working directory is used when it
    exists; otherwise the defaults are returned.
    """
    if path is None:
        default = Path(DEFAULT_CONFIG_FILE)
        if not default.exists():
            return merge_config()
        path = str(default)

    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except (IOError, OSError) as e:
        raise ConfigError(f"could not read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must contain a mapping at the top level")

    log.debug(f"Loaded config from {path}")
    return merge_config(data)
