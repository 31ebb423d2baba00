"""
Core package façade.

Structured import surface for the GWG LCA calculation core.

Submodules:
  - factors: the emission factor table and the default coefficient vintage
  - io: YAML loaders for factor tables
  - mix: composition normalization
  - stages: pellet / transport / product / disposal stage calculators
  - aggregate: the four-scenario comparison
"""

from . import factors, io, mix, stages, aggregate

from .aggregate import calculate_scenario, calculate_scenario_results
from .factors import DEFAULT_FACTORS, EmissionFactorTable, MixMode

__all__ = [
    "factors",
    "io",
    "mix",
    "stages",
    "aggregate",
    "calculate_scenario",
    "calculate_scenario_results",
    "DEFAULT_FACTORS",
    "EmissionFactorTable",
    "MixMode",
]
