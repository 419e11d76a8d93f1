from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from dotenv import load_dotenv

from sheetflow_io.schema import ExtractionProfile

from .errors import ConfigError, ProfileNotFoundError


load_dotenv(override=False)

PROFILES_ENV = "SHEETFLOW_PROFILES"
KNOWN_PROFILE_KEYS = frozenset(
    {
        "description",
        "sheet",
        "shape",
        "top_row",
        "key_column",
        "value_column",
        "skip_rows",
        "skip_columns",
    }
)


def _config_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "config"


def default_profiles_path() -> Path:
    """Profiles file location: ``$SHEETFLOW_PROFILES`` or the bundled profiles.yaml."""
    env = os.getenv(PROFILES_ENV)
    if env:
        return Path(env).expanduser()
    return _config_dir() / "profiles.yaml"


def _build_profile(name: str, payload: Any) -> ExtractionProfile:
    if not isinstance(payload, Mapping):
        raise ConfigError(f"Profile '{name}' must be a mapping")
    unknown = set(payload) - KNOWN_PROFILE_KEYS
    if unknown:
        raise ConfigError(f"Profile '{name}' has unknown keys: {', '.join(sorted(unknown))}")
    try:
        return ExtractionProfile.from_config(name, dict(payload))  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid profile '{name}': {exc}") from exc


def load_profiles(path: str | Path | None = None) -> dict[str, ExtractionProfile]:
    """Load extraction profiles from a YAML file.

    Returns a dict of profile-key -> ExtractionProfile.
    """
    cfg_path = Path(path) if path else default_profiles_path()
    if not cfg_path.exists():
        raise ConfigError(f"Profiles file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Profiles file is not valid YAML: {cfg_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Profiles file must contain a mapping")
    profiles_raw = data.get("profiles") or {}
    if not isinstance(profiles_raw, dict):
        raise ConfigError("'profiles' must be a mapping of name -> settings")
    profiles: Dict[str, ExtractionProfile] = {}
    for key, payload in profiles_raw.items():
        profiles[str(key)] = _build_profile(str(key), payload)
    return profiles


def get_profile(name: str, path: str | Path | None = None) -> ExtractionProfile:
    profiles = load_profiles(path)
    try:
        return profiles[name]
    except KeyError as exc:
        available = ", ".join(sorted(profiles)) or "<none>"
        raise ProfileNotFoundError(f"Unknown profile '{name}' (available: {available})") from exc
