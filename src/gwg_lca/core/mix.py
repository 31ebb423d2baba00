"""Composition normalization.

Two conventions exist for turning a composition into ratios:

- ``MixMode.PERCENT``: each entry is a percentage, ratio = value / 100. Sums
  other than 100 pass through untouched (a 90 % resin mix contributes 90 %).
- ``MixMode.SUM``: entries are raw weights, ratio = value / total. The total
  defaults to sum(values); resin and additive mixes of one recipe share the
  combined total so the recipe as a whole sums to 1. A zero total returns the
  mapping unchanged ("no contribution").

Neither mode rejects sums away from 100; warning about that belongs to the
caller (see ``gwg_lca.lca_core_api.composition_warnings``).
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional, TypeVar

from .factors import MixMode, parse_mix_mode

K = TypeVar("K")


def mix_total(mix: Mapping[K, float]) -> float:
    return float(sum(float(v) for v in (mix or {}).values()))


def normalize_mix(
    mix: Mapping[K, float],
    mode: MixMode | str = MixMode.PERCENT,
    total: Optional[float] = None,
) -> Dict[K, float]:
    """Return ``{variant: ratio}`` for ``mix`` under ``mode``.

    ``total`` is the SUM-mode divisor; PERCENT mode ignores it.
    """
    mode = parse_mix_mode(mode)
    items = {k: float(v) for k, v in (mix or {}).items()}
    if mode is MixMode.PERCENT:
        return {k: v / 100.0 for k, v in items.items()}
    if total is None:
        total = sum(items.values())
    if total == 0:
        return items
    return {k: v / total for k, v in items.items()}


def recipe_total(*mixes: Mapping) -> float:
    """Combined total of several mixes (resin + additive) for SUM mode."""
    return float(sum(mix_total(m) for m in mixes))


def weighted_coefficient(ratios: Mapping[K, float], coefficients: Mapping[K, float]) -> float:
    """Sum of ratio x coefficient over the variants present in ``ratios``."""
    return float(sum(ratio * coefficients[k] for k, ratio in ratios.items()))


__all__ = ["mix_total", "recipe_total", "normalize_mix", "weighted_coefficient"]
