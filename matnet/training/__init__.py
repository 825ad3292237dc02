"""Training pipelines and stopping criteria."""

from . import criteria
from .pipelines import build_network, load_preset, presets, run_pipeline

__all__ = ["build_network", "criteria", "load_preset", "presets", "run_pipeline"]
