"""App configuration: classifier options, language-model connection, emergence thresholds.

get_config() returns defaults merged with data_dir/config.json, section by
section. update_config() applies a partial update and persists it. Environment
variables (loaded from .env by the app) override the stored llm section:

    LLM_PROVIDER_URL, LLM_API_KEY, LLM_PROVIDER_FORMAT, LLM_MODEL
"""

import copy
import json
import os
from pathlib import Path
from typing import Any

from reckoning.classifier import ClassifierSettings
from reckoning.emergence.observer import EmergenceThresholds
from reckoning.llm import HttpLLM

_CONFIG_DEFAULTS: dict[str, Any] = {
    "classifier": ClassifierSettings().model_dump(),
    "llm": {
        "provider_url": "",
        "api_key": "",
        "provider_format": "openai",
        "model": "",
    },
    "emergence": EmergenceThresholds().model_dump(),
}

_ENV_OVERRIDES = {
    "provider_url": "LLM_PROVIDER_URL",
    "api_key": "LLM_API_KEY",
    "provider_format": "LLM_PROVIDER_FORMAT",
    "model": "LLM_MODEL",
}


def _config_path(data_dir: Path) -> Path:
    return Path(data_dir) / "config.json"


def _merge(config: dict[str, Any], fields: dict[str, Any]) -> None:
    for section, values in fields.items():
        if section in config and isinstance(values, dict):
            config[section].update(
                {k: v for k, v in values.items() if k in _CONFIG_DEFAULTS[section]}
            )


def _stored(data_dir: Path) -> dict[str, Any]:
    config = copy.deepcopy(_CONFIG_DEFAULTS)
    path = _config_path(data_dir)
    if path.is_file():
        _merge(config, json.loads(path.read_text()))
    return config


def get_config(data_dir: Path) -> dict[str, Any]:
    """Read config, returning defaults merged with stored values and env overrides."""
    config = _stored(data_dir)
    for key, var in _ENV_OVERRIDES.items():
        value = os.getenv(var)
        if value:
            config["llm"][key] = value
    return config


def update_config(data_dir: Path, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns the effective config.

    Values are validated before anything is written.
    """
    config = _stored(data_dir)
    _merge(config, fields)
    ClassifierSettings.model_validate(config["classifier"])
    EmergenceThresholds.model_validate(config["emergence"])
    if config["llm"]["provider_format"] not in ("openai", "koboldcpp"):
        raise ValueError(f"Unknown provider_format {config['llm']['provider_format']!r}")
    path = _config_path(data_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config, indent=2))
    return get_config(data_dir)


# ── Typed views ──────────────────────────────────────────


def classifier_settings(config: dict[str, Any]) -> ClassifierSettings:
    return ClassifierSettings.model_validate(config["classifier"])


def emergence_thresholds(config: dict[str, Any]) -> EmergenceThresholds:
    return EmergenceThresholds.model_validate(config["emergence"])


def build_llm(config: dict[str, Any]) -> HttpLLM | None:
    """HttpLLM for the configured provider, or None when no URL is set."""
    llm = config["llm"]
    if not llm["provider_url"]:
        return None
    timeout = config["classifier"]["ai_fallback_timeout_ms"] / 1000
    return HttpLLM(
        llm["provider_url"],
        api_key=llm["api_key"],
        provider_format=llm["provider_format"],
        model=llm["model"],
        timeout=timeout,
    )
