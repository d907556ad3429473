"""Expander settings: built-in defaults merged with an optional YAML file.

Settings file format (every key optional):

  default_strategy: pairwise
  strict_sequential: true
  max_cases: 5000

The CASE_EXPANDER_STRATEGY environment variable overrides default_strategy.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from case_expander.core.model import STRATEGIES


STRATEGY_ENV_VAR = "CASE_EXPANDER_STRATEGY"

STRATEGY_DESCRIPTIONS: dict[str, str] = {
    "combinatorial": "every combination of one value per slot (default)",
    "sequential": "row k takes the k-th value of every slot; shorter slots yield MISSING",
    "pairwise": "greedy cover of every value pair across every two slots",
}


@dataclass(frozen=True)
class ExpanderSettings:
    default_strategy: str = "combinatorial"
    strict_sequential: bool = False
    max_cases: int = 10000


DEFAULT_SETTINGS = ExpanderSettings()


class SettingsConfigError(ValueError):
    pass


def load_settings_file(path: str | Path) -> dict[str, Any]:
    """Load and check overrides from a YAML file. Returns only the keys present."""
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SettingsConfigError(f"settings file is not valid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SettingsConfigError("settings file must be a mapping")

    out: dict[str, Any] = {}
    for k, v in raw.items():
        if k == "default_strategy":
            if not isinstance(v, str) or v.strip().lower() not in STRATEGIES:
                raise SettingsConfigError(
                    f"default_strategy must be one of: {', '.join(STRATEGIES)}"
                )
            out[k] = v.strip().lower()
        elif k == "strict_sequential":
            if not isinstance(v, bool):
                raise SettingsConfigError("strict_sequential must be a boolean")
            out[k] = v
        elif k == "max_cases":
            if not isinstance(v, int) or isinstance(v, bool) or v < 1:
                raise SettingsConfigError("max_cases must be a positive integer")
            out[k] = v
        else:
            raise SettingsConfigError(f"unknown settings key: {k}")
    return out


def merged_settings(overrides: dict[str, Any] | None = None) -> ExpanderSettings:
    """Return DEFAULT_SETTINGS with file overrides, then the env override, applied."""
    settings = DEFAULT_SETTINGS
    if overrides:
        settings = replace(settings, **overrides)

    env_strategy = os.getenv(STRATEGY_ENV_VAR)
    if env_strategy:
        norm = env_strategy.strip().lower()
        if norm not in STRATEGIES:
            raise SettingsConfigError(
                f"{STRATEGY_ENV_VAR}={env_strategy} is not one of: {', '.join(STRATEGIES)}"
            )
        settings = replace(settings, default_strategy=norm)
    return settings


def load_and_merge(settings_file: str | None) -> ExpanderSettings:
    if not settings_file:
        return merged_settings()
    overrides = load_settings_file(settings_file)
    return merged_settings(overrides)
