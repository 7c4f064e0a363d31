"""Runtime settings for simulations, loaded from defaults and an optional YAML file."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "max_workers": None,            # None: one worker per CPU
    "serialize_rule_calls": True,   # one lock around every rule call
    "on_error": "raise",            # 'raise' | 'skip'
    "csv_delimiter": ";",
    "output_prefix": None,
    "output_format": "csv",         # 'csv' | 'arrow'
    "policy_dir": "policies",
    "log_level": "INFO",
}


class SimulationSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_workers: Optional[int] = Field(DEFAULT_SETTINGS["max_workers"], ge=1)
    serialize_rule_calls: bool = DEFAULT_SETTINGS["serialize_rule_calls"]
    on_error: Literal["raise", "skip"] = DEFAULT_SETTINGS["on_error"]
    csv_delimiter: str = Field(DEFAULT_SETTINGS["csv_delimiter"], min_length=1, max_length=1)
    output_prefix: Optional[str] = DEFAULT_SETTINGS["output_prefix"]
    output_format: Literal["csv", "arrow"] = DEFAULT_SETTINGS["output_format"]
    policy_dir: Path = Path(DEFAULT_SETTINGS["policy_dir"])
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = DEFAULT_SETTINGS["log_level"]


def _merge_params(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = base.copy()
    merged.update(override)
    return merged


def load_settings(path: Optional[Union[str, Path]] = None, **overrides: Any) -> SimulationSettings:
    """Defaults, then the YAML file at ``path``, then keyword overrides."""
    params = dict(DEFAULT_SETTINGS)
    if path is not None:
        path = Path(path)
        with path.open("r", encoding="utf-8") as fh:
            from_file = yaml.safe_load(fh) or {}
        if not isinstance(from_file, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        params = _merge_params(params, from_file)
        logger.debug("Settings loaded from %s", path)
    params = _merge_params(params, {k: v for k, v in overrides.items() if v is not None})
    return SimulationSettings(**params)


__all__ = ["DEFAULT_SETTINGS", "SimulationSettings", "load_settings"]
