from __future__ import annotations

import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from gitfund_core.config import RemoteConfig, VerifierConfig

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_ENV_KEYS = {
    "GITFUND_TARGET_DIR": "default_target",
    "GITFUND_MIN_COMMITS": "min_commits",
    "GITFUND_MERGE_DETECTION": "merge_detection",
    "GITFUND_EXPECTED_NAME": "expected_name",
    "GITFUND_EXPECTED_EMAIL": "expected_email",
}


def _as_int(key: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be an integer, got {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def _as_float(key: str, raw: Any) -> float:
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be a number, got {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


def _as_str(key: str, raw: Any) -> str:
    if not isinstance(raw, str):
        raise ValueError(f"{key} must be a string, got {raw!r}")
    return raw


def _as_bool(key: str, raw: Any) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{key} must be true or false, got {raw!r}")
    return raw


def _as_patterns(key: str, raw: Any) -> tuple[str, ...]:
    # a bare string would otherwise iterate as single characters
    if not isinstance(raw, (list, tuple)) or not all(isinstance(p, str) for p in raw):
        raise ValueError(f"{key} must be a list of strings, got {raw!r}")
    return tuple(raw)


def _remote_from_mapping(obj: Any, source: Path) -> RemoteConfig:
    if not isinstance(obj, dict):
        raise ValueError(f"'remote' must be a mapping: {source}")
    known = {f.name for f in fields(RemoteConfig)}
    unknown = sorted(str(k) for k in set(obj) - known)
    if unknown:
        raise ValueError(f"Unknown remote keys {unknown} in {source}")
    values = dict(obj)
    if "enabled" in values:
        values["enabled"] = _as_bool("remote.enabled", values["enabled"])
    for key in ("name", "tag"):
        if key in values:
            values[key] = _as_str(f"remote.{key}", values[key])
    if "timeout_seconds" in values:
        values["timeout_seconds"] = _as_float("remote.timeout_seconds", values["timeout_seconds"])
    return RemoteConfig(**values)


def apply_overrides(config: VerifierConfig, overrides: Mapping[str, Any], source: str = "overrides") -> VerifierConfig:
    """Return config with overrides applied; keys are VerifierConfig field names."""
    known = {f.name for f in fields(VerifierConfig)}
    unknown = sorted(str(k) for k in set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown config keys {unknown} in {source}")

    values: Dict[str, Any] = dict(overrides)
    if "remote" in values:
        values["remote"] = _remote_from_mapping(values["remote"], Path(source))
    if "ignore_patterns" in values:
        values["ignore_patterns"] = _as_patterns("ignore_patterns", values["ignore_patterns"])
    if "default_target" in values:
        raw = values["default_target"]
        if not isinstance(raw, (str, Path)):
            raise ValueError(f"default_target must be a path, got {raw!r}")
        values["default_target"] = Path(raw).expanduser()
    if "min_commits" in values:
        values["min_commits"] = _as_int("min_commits", values["min_commits"])
    if "git_timeout_seconds" in values:
        values["git_timeout_seconds"] = _as_float("git_timeout_seconds", values["git_timeout_seconds"])
    for key in ("expected_name", "expected_email", "merge_detection"):
        if key in values:
            values[key] = _as_str(key, values[key])
    return replace(config, **values)


def load_config_file(path: str | Path, base: Optional[VerifierConfig] = None) -> VerifierConfig:
    p = Path(path)
    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Config file is not valid YAML: {p}: {e}") from e
    if obj is None:
        obj = {}
    if not isinstance(obj, dict):
        raise ValueError(f"Config file must be a mapping: {p}")
    return apply_overrides(base or VerifierConfig(), obj, source=str(p))


def load_settings(environ: Optional[Mapping[str, str]] = None) -> VerifierConfig:
    """
    Defaults, then the YAML file named by GITFUND_CONFIG, then GITFUND_* variables.

    When environ is None the process environment is used, after loading
    GITFUND_ENV_FILE (default .env) into it.
    """
    if environ is None:
        load_dotenv(dotenv_path=Path(os.environ.get("GITFUND_ENV_FILE", ".env")))
        environ = os.environ

    config = VerifierConfig()
    config_path = environ.get("GITFUND_CONFIG")
    if config_path:
        config = load_config_file(config_path, config)

    env_overrides = {field: environ[key] for key, field in _ENV_KEYS.items() if environ.get(key)}
    return apply_overrides(config, env_overrides, source="environment")


def log_level(environ: Optional[Mapping[str, str]] = None) -> str:
    environ = os.environ if environ is None else environ
    level = environ.get("GITFUND_LOG_LEVEL", "WARNING").upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"GITFUND_LOG_LEVEL must be one of {sorted(VALID_LOG_LEVELS)}, got '{level}'")
    return level
