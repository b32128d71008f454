"""Load WatchConfig from consulwatch.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from consulwatch._errors import ConfigError
from consulwatch.config import WatchConfig

_KNOWN_KEYS = frozenset({
    "endpoint", "datacenter", "acl_token", "long_poll_max_wait",
    "retry_delay", "consistency_mode",
})

_DURATION_KEYS = ("long_poll_max_wait", "retry_delay")


def load_config(root: Path, **overrides: object) -> WatchConfig:
    """Load WatchConfig from root, optionally merging consulwatch.yaml.

    Looks for consulwatch.yaml, consulwatch.yml, or consulwatch.toml in root.
    If found, loads and merges with overrides.  Overrides take precedence;
    overrides set to ``None`` are ignored so unset CLI flags keep file values.
    """
    file_config = _read_config_file(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    unknown = set(merged) - _KNOWN_KEYS
    if unknown:
        msg = f"Unknown configuration keys: {', '.join(sorted(unknown))}"
        raise ConfigError(msg)
    # Normalize durations to float seconds
    for key in _DURATION_KEYS:
        if key in merged and merged[key] is not None:
            merged[key] = _to_seconds(key, merged[key])
    return WatchConfig(**merged)  # type: ignore[arg-type]


def _read_config_file(root: Path) -> dict[str, object]:
    """Read config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("consulwatch.yaml", "consulwatch.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "consulwatch.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config."""
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Cannot read {path.name}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path.name} must contain a mapping at top level"
        raise ConfigError(msg)
    return _flatten_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config."""
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Cannot read {path.name}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_section(data)


def _flatten_section(data: dict[str, object]) -> dict[str, object]:
    """Extract consulwatch.* keys into top-level config."""
    result: dict[str, object] = {}
    section = data.get("consulwatch")
    if isinstance(section, dict):
        for k, v in section.items():
            result[k] = v
    for k, v in data.items():
        if k != "consulwatch" and k in _KNOWN_KEYS:
            result[k] = v
    return result


def _to_seconds(key: str, value: object) -> float:
    """Accept plain numbers or strings like ``"30s"``, ``"500ms"``, ``"5m"``."""
    if isinstance(value, bool):
        msg = f"{key} must be a duration, got {value!r}"
        raise ConfigError(msg)
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        text = value.strip().lower()
        for suffix, scale in (("ms", 0.001), ("s", 1.0), ("m", 60.0), ("h", 3600.0)):
            if text.endswith(suffix):
                number = text[: -len(suffix)]
                break
        else:
            number, scale = text, 1.0
        try:
            return float(number) * scale
        except ValueError:
            pass
    msg = f"{key} must be a duration, got {value!r}"
    raise ConfigError(msg)
