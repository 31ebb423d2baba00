"""I/O utilities: YAML loaders for emission factor tables.

A factor YAML only needs the sections it changes; everything it omits is
taken from the built-in default table. Missing or unparseable files and
malformed coefficients fail fast at load time.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type

import yaml

from gwg_lca.models import (
    AdditiveVariant,
    DisposalFamily,
    ProcessVariant,
    ResinVariant,
    ScenarioName,
    parse_tag,
)
from .factors import DEFAULT_FACTORS, EmissionFactorTable, MixMode, TransportMode, parse_mix_mode

logger = logging.getLogger(__name__)

FACTORS_ENV_VAR = "GWG_LCA_FACTORS"


def read_factor_yaml(filepath: str | Path):
    """Strict YAML reader for factor files named by the caller.

    A missing file raises FileNotFoundError, a parse error raises ValueError.
    """
    p = Path(filepath)
    if not p.is_file():
        raise FileNotFoundError(f"Emission factor file not found: {filepath}")
    try:
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in emission factor file {filepath}: {e}") from e


def _coerce_coefficient(section: str, key: Any, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Factor '{section}.{key}' must be numeric, got {value!r}") from None


def _enum_table(section: str, raw: Any, enum_cls: Type, base: Mapping) -> Dict:
    if raw is None:
        return dict(base)
    if not isinstance(raw, dict):
        raise ValueError(f"Factor section '{section}' must be a mapping")
    table = dict(base)
    for key, value in raw.items():
        table[_parse_key(enum_cls, key)] = _coerce_coefficient(section, key, value)
    return table


def _parse_key(enum_cls: Type, key: Any):
    # TransportMode / MixMode use lower-case tags
    if enum_cls in (TransportMode, MixMode):
        try:
            return enum_cls(str(key).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown {enum_cls.__name__} '{key}'") from None
    return parse_tag(enum_cls, key)


def factor_table_from_dict(data: Mapping[str, Any], base: EmissionFactorTable = DEFAULT_FACTORS) -> EmissionFactorTable:
    """Build a table from a parsed YAML/JSON mapping merged over ``base``."""
    data = dict(data or {})
    model = data.get("model") or {}
    if not isinstance(model, dict):
        raise ValueError("Factor section 'model' must be a mapping")

    families = dict(base.disposal_family)
    for resin, family in (data.get("disposal_family") or {}).items():
        families[parse_tag(ResinVariant, resin)] = parse_tag(DisposalFamily, family)

    reference = {k: dict(v) for k, v in base.reference_mix.items()}
    for scenario, mix in (data.get("reference_mix") or {}).items():
        name = parse_tag(ScenarioName, scenario)
        if name is ScenarioName.GWG:
            raise ValueError("reference_mix cannot define the GWG scenario")
        if not isinstance(mix, dict):
            raise ValueError(f"reference_mix.{scenario} must be a mapping")
        # a listed reference mix replaces the base one entirely
        reference[name] = {
            parse_tag(ResinVariant, r): _coerce_coefficient(f"reference_mix.{scenario}", r, v)
            for r, v in mix.items()
        }

    electricity = data.get("electricity_per_kwh", base.electricity_per_kwh)
    return EmissionFactorTable(
        resin=_enum_table("resin", data.get("resin"), ResinVariant, base.resin),
        additive=_enum_table("additive", data.get("additive"), AdditiveVariant, base.additive),
        electricity_per_kwh=_coerce_coefficient("electricity_per_kwh", "", electricity),
        process=_enum_table("process", data.get("process"), ProcessVariant, base.process),
        transport=_enum_table("transport", data.get("transport"), TransportMode, base.transport),
        disposal=_enum_table("disposal", data.get("disposal"), DisposalFamily, base.disposal),
        disposal_family=families,
        reference_mix=reference,
        default_yield_ratio=float(model.get("default_yield_ratio", base.default_yield_ratio)),
        mix_mode=parse_mix_mode(model.get("mix_mode", base.mix_mode)),
        name=str(data.get("name") or base.name),
    )


def load_factor_table(filepath: str | Path, base: EmissionFactorTable = DEFAULT_FACTORS) -> EmissionFactorTable:
    raw = read_factor_yaml(filepath)
    if raw is None:
        logger.warning("Emission factor file %s is empty; using base table", filepath)
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {filepath}, got {type(raw).__name__}")
    table = factor_table_from_dict(raw, base=base)
    logger.debug("Loaded emission factor table '%s' from %s", table.name, filepath)
    return table


def resolve_factor_table(
    factors: Optional[EmissionFactorTable] = None,
    path: Optional[str | Path] = None,
) -> EmissionFactorTable:
    """Explicit table > explicit path > $GWG_LCA_FACTORS > built-in default."""
    if factors is not None:
        return factors
    if path:
        return load_factor_table(path)
    env_path = os.environ.get(FACTORS_ENV_VAR, "").strip()
    if env_path:
        return load_factor_table(env_path)
    return DEFAULT_FACTORS


def factor_table_to_dict(table: EmissionFactorTable) -> Dict[str, Any]:
    """Plain-YAML view of a table (enum tags as strings)."""
    return {
        "name": table.name,
        "model": {
            "default_yield_ratio": table.default_yield_ratio,
            "mix_mode": table.mix_mode.value,
        },
        "electricity_per_kwh": table.electricity_per_kwh,
        "resin": {k.value: v for k, v in table.resin.items()},
        "additive": {k.value: v for k, v in table.additive.items()},
        "process": {k.value: v for k, v in table.process.items()},
        "transport": {k.value: v for k, v in table.transport.items()},
        "disposal": {k.value: v for k, v in table.disposal.items()},
        "disposal_family": {k.value: v.value for k, v in table.disposal_family.items()},
        "reference_mix": {
            scn.value: {r.value: pct for r, pct in mix.items() if pct}
            for scn, mix in table.reference_mix.items()
        },
    }


__all__ = [
    "FACTORS_ENV_VAR",
    "read_factor_yaml",
    "factor_table_from_dict",
    "load_factor_table",
    "resolve_factor_table",
    "factor_table_to_dict",
]
