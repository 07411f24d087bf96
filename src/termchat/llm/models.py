"""Model catalog.

Loads the known models and their context lengths from models.yaml. The
catalog feeds the model-selection overlay and the context-left estimate.
"""

from __future__ import annotations

import importlib.resources
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import yaml

from termchat.config.secrets import fetch_secret


@dataclass(frozen=True)
class ModelInfo:
    """A model known to the catalog."""

    id: str
    name: str
    provider: str
    env_var: str
    context_length: int


@lru_cache(maxsize=1)
def _load_models_yaml() -> dict[str, Any]:
    files = importlib.resources.files("termchat.llm")
    with importlib.resources.as_file(files.joinpath("models.yaml")) as path:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}


@lru_cache(maxsize=1)
def get_models() -> tuple[ModelInfo, ...]:
    """All catalog models, in file order."""
    data = _load_models_yaml()
    models: list[ModelInfo] = []
    for provider, provider_data in data.get("providers", {}).items():
        for m in provider_data.get("models", []):
            models.append(
                ModelInfo(
                    id=m["id"],
                    name=m.get("name", m["id"]),
                    provider=provider,
                    env_var=provider_data["env_var"],
                    context_length=m["context_length"],
                )
            )
    return tuple(models)


def get_model_info(model_id: str) -> ModelInfo | None:
    for model in get_models():
        if model.id == model_id:
            return model
    return None


def get_context_length(model_id: str) -> int:
    """Context window of a model, or the catalog default for unknown models."""
    info = get_model_info(model_id)
    if info is not None:
        return info.context_length
    return int(_load_models_yaml().get("default_context_length", 128000))


def get_available_models() -> list[ModelInfo]:
    """Models whose provider has an API key configured."""
    return [m for m in get_models() if fetch_secret(m.env_var)]
