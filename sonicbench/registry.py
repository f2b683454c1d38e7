"""Catalogue of the modules the package provides."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .loudness_meter import LoudnessMeter
from .resonators import Resonators
from .rich import Rich


@dataclass(frozen=True)
class ModelInfo:
    """A module's slug and the factory that builds a fresh instance."""

    slug: str
    factory: Callable[[], Any]

    def create(self) -> Any:
        return self.factory()


_MODELS: tuple[ModelInfo, ...] = (
    ModelInfo("Rich", Rich),
    ModelInfo("Resonators", Resonators),
    ModelInfo("LoudnessMeter", LoudnessMeter),
    ModelInfo("Loud", LoudnessMeter),
)


def available_models() -> tuple[ModelInfo, ...]:
    """All registered models in registration order."""
    return _MODELS


def create_model(slug: str) -> Any:
    """Build a new instance of the model named ``slug``; raises KeyError if unknown."""
    for info in _MODELS:
        if info.slug == slug:
            return info.create()
    raise KeyError(f"unknown model {slug!r}")