"""Load matching settings and provider configuration from YAML and env."""
from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from talentmatch.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = ROOT_DIR / "data"
STORE_PATH: Path = DATA_DIR / "insights_store.json"

DEFAULT_API_VERSION = "2024-05-01-preview"
DEFAULT_REFERENCE_HOURS = 160.0

DEFAULT_SETTINGS: dict[str, Any] = {
    "data_dir": str(DATA_DIR),
    "store_path": str(STORE_PATH),
    "catalog": {
        "projects_csv": "ExportacaoDemanda.csv",
        "projects_delimiter": ";",
        "projects_encoding": "latin-1",
        "projects_skip_prefix": "SEP=",
        "excluded_code_prefixes": ["PA"],
        "resources_csv": "mock/mock_funcionarios.csv",
        "affinity_csv": "mock/mock_afinidade_projetos.csv",
        "employees_json": "funcionarios.json",
        "areas_json": "areas.json",
        "directorates_json": "diretorias.json",
        "jobs_json": "jobs.json",
        "managers_json": "managers.json",
    },
    "matching": {
        "reference_hours": DEFAULT_REFERENCE_HOURS,
    },
    "insights": {
        "top_matches": 3,
        "candidate_limit": 5,
        "prompt_resources": 10,
        "prompt_projects": 10,
    },
}


@dataclass
class AzureSettings:
    endpoint: str = ""
    deployment: str = ""
    api_key: str = ""
    api_version: str = DEFAULT_API_VERSION
    reasoning_effort: str = "medium"
    timeout: float = 60.0

    @property
    def configured(self) -> bool:
        return bool(self.endpoint and self.deployment and self.api_key)


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def get_azure_settings() -> AzureSettings:
    try:
        timeout = float(get_env("AZURE_OPENAI_TIMEOUT", "60"))
    except ValueError:
        timeout = 60.0
    return AzureSettings(
        endpoint=get_env("AZURE_OPENAI_ENDPOINT"),
        deployment=get_env("AZURE_OPENAI_DEPLOYMENT"),
        api_key=get_env("AZURE_OPENAI_API_KEY"),
        api_version=get_env("AZURE_OPENAI_API_VERSION") or DEFAULT_API_VERSION,
        reasoning_effort=get_env("AZURE_OPENAI_REASONING_EFFORT") or "medium",
        timeout=timeout,
    )


def _overlay(base: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _overlay(base[key], value)
        else:
            base[key] = value
    return base


def load_settings(path: Path | None = None) -> dict[str, Any]:
    """Built-in defaults overlaid with config/settings.yaml, if present."""
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    path = path or SETTINGS_PATH
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if isinstance(data, dict):
            _overlay(settings, data)
        else:
            log.warning("Ignoring %s: expected a mapping at top level", path.name)

    env_store = get_env("INSIGHTS_STORE_PATH")
    if env_store:
        settings["store_path"] = env_store
    env_data = get_env("TALENTMATCH_DATA_DIR")
    if env_data:
        settings["data_dir"] = env_data
    return settings


def ensure_dirs() -> None:
    for d in (DATA_DIR, CONFIG_DIR):
        d.mkdir(parents=True, exist_ok=True)
