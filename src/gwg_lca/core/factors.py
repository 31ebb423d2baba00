"""Emission factor table.

All coefficients the stage calculators consume live in one frozen
``EmissionFactorTable``. Calculations never read module constants directly,
so a revised coefficient vintage is a new table (or a YAML file, see
``gwg_lca.core.io.load_factor_table``), not a code change.

Units:
  resin / additive / process / disposal: kg CO2e per kg
  electricity: kg CO2e per kWh
  transport: kg CO2e per ton-km
  reference mixes: percent
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping

from gwg_lca.models import (
    AdditiveVariant,
    DisposalFamily,
    ProcessVariant,
    ResinVariant,
    ScenarioName,
    complete_mix,
)


class MixMode(str, Enum):
    PERCENT = "percent"   # ratio = value / 100
    SUM = "sum"           # ratio = value / sum(values)


class TransportMode(str, Enum):
    SEA = "sea"
    LAND = "land"


# ===================================================================
#                     Default coefficient vintage
# ===================================================================
RESIN_EMISSION_PER_KG: Dict[ResinVariant, float] = {
    ResinVariant.TPS: -3.12,
    ResinVariant.PLA: 0.5,
    ResinVariant.PBAT: 3.5,
    ResinVariant.HDPE_VIRGIN: 1.9,
    ResinVariant.HDPE_RECYCLE: 0.89,
    ResinVariant.HDPE_BIO: -2.15,
    ResinVariant.LDPE_VIRGIN: 1.71,
    ResinVariant.LDPE_RECYCLE: 0.81,
    ResinVariant.LDPE_BIO: -2.15,
    ResinVariant.PP_VIRGIN: 1.47,
    ResinVariant.PP_RECYCLE: 0.84,
    ResinVariant.PP_BIO: 0.3,
}

ADDITIVE_EMISSION_PER_KG: Dict[AdditiveVariant, float] = {
    AdditiveVariant.BIOMASS_1: 2.6,
    AdditiveVariant.BIOMASS_2: 6.99,
    AdditiveVariant.ADDITIVE_1: 0.86,
    AdditiveVariant.ADDITIVE_2: 18.9,
    AdditiveVariant.ADDITIVE_3: 3.52,
}

ELECTRICITY_EMISSION_PER_KWH = 0.478

# ELECTRICITY is priced through the electricity coefficient, never this table
PROCESS_EMISSION_PER_KG: Dict[ProcessVariant, float] = {
    ProcessVariant.INJECTION: 0.29,
    ProcessVariant.EXTRUSION: 0.219,
    ProcessVariant.FILM: 0.219,
    ProcessVariant.SHEET: 0.192,
}

TRANSPORT_EMISSION_PER_TON_KM: Dict[TransportMode, float] = {
    TransportMode.SEA: 0.0085,
    TransportMode.LAND: 0.15,
}

DISPOSAL_EMISSION_PER_KG: Dict[DisposalFamily, float] = {
    DisposalFamily.TPS: 1.63,
    DisposalFamily.PLA: 1.83,
    DisposalFamily.PBAT: 2.4,
    DisposalFamily.PETROLEUM: 3.1,
}

RESIN_DISPOSAL_FAMILY: Dict[ResinVariant, DisposalFamily] = {
    ResinVariant.TPS: DisposalFamily.TPS,
    ResinVariant.PLA: DisposalFamily.PLA,
    ResinVariant.PBAT: DisposalFamily.PBAT,
    ResinVariant.HDPE_VIRGIN: DisposalFamily.PETROLEUM,
    ResinVariant.HDPE_RECYCLE: DisposalFamily.PETROLEUM,
    ResinVariant.HDPE_BIO: DisposalFamily.PETROLEUM,
    ResinVariant.LDPE_VIRGIN: DisposalFamily.PETROLEUM,
    ResinVariant.LDPE_RECYCLE: DisposalFamily.PETROLEUM,
    ResinVariant.LDPE_BIO: DisposalFamily.PETROLEUM,
    ResinVariant.PP_VIRGIN: DisposalFamily.PETROLEUM,
    ResinVariant.PP_RECYCLE: DisposalFamily.PETROLEUM,
    ResinVariant.PP_BIO: DisposalFamily.PETROLEUM,
}

# Baseline compositions for the conventional plastics: 65 % virgin,
# 25 % recycled, 10 % bio grade, no additives.
REFERENCE_RESIN_MIX: Dict[ScenarioName, Dict[ResinVariant, float]] = {
    ScenarioName.HDPE: {
        ResinVariant.HDPE_VIRGIN: 65.0,
        ResinVariant.HDPE_RECYCLE: 25.0,
        ResinVariant.HDPE_BIO: 10.0,
    },
    ScenarioName.LDPE: {
        ResinVariant.LDPE_VIRGIN: 65.0,
        ResinVariant.LDPE_RECYCLE: 25.0,
        ResinVariant.LDPE_BIO: 10.0,
    },
    ScenarioName.PP: {
        ResinVariant.PP_VIRGIN: 65.0,
        ResinVariant.PP_RECYCLE: 25.0,
        ResinVariant.PP_BIO: 10.0,
    },
}

DEFAULT_YIELD_RATIO = 0.95


def parse_mix_mode(value) -> MixMode:
    if isinstance(value, MixMode):
        return value
    text = str(value or "").strip().lower()
    try:
        return MixMode(text)
    except ValueError:
        raise ValueError(f"Unknown mix mode '{value}' (expected 'percent' or 'sum')") from None


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


def _require_complete(name: str, table: Mapping, members) -> None:
    missing = [m.value for m in members if m not in table]
    if missing:
        raise ValueError(f"Emission factor table '{name}' is missing: {', '.join(missing)}")


# ===================================================================
#                              Table
# ===================================================================
@dataclass(frozen=True)
class EmissionFactorTable:
    """Every coefficient and model option used by the stage calculators.

    Construction validates that each closed enum is fully covered, so a new
    resin variant without a disposal family fails here rather than silently
    pricing at zero.
    """
    resin: Mapping[ResinVariant, float]
    additive: Mapping[AdditiveVariant, float]
    electricity_per_kwh: float
    process: Mapping[ProcessVariant, float]
    transport: Mapping[TransportMode, float]
    disposal: Mapping[DisposalFamily, float]
    disposal_family: Mapping[ResinVariant, DisposalFamily]
    reference_mix: Mapping[ScenarioName, Mapping[ResinVariant, float]]
    default_yield_ratio: float = DEFAULT_YIELD_RATIO
    mix_mode: MixMode = MixMode.PERCENT
    name: str = "default"

    def __post_init__(self):
        object.__setattr__(self, "mix_mode", parse_mix_mode(self.mix_mode))
        _require_complete("resin", self.resin, ResinVariant)
        _require_complete("additive", self.additive, AdditiveVariant)
        _require_complete("process", self.process, [p for p in ProcessVariant if p is not ProcessVariant.ELECTRICITY])
        _require_complete("transport", self.transport, TransportMode)
        _require_complete("disposal", self.disposal, DisposalFamily)
        _require_complete("disposal_family", self.disposal_family, ResinVariant)
        refs = [s for s in ScenarioName if s is not ScenarioName.GWG]
        _require_complete("reference_mix", self.reference_mix, refs)
        if not 0.0 < float(self.default_yield_ratio) <= 1.0:
            raise ValueError(f"default_yield_ratio must be in (0, 1], got {self.default_yield_ratio}")

        object.__setattr__(self, "resin", _frozen(self.resin))
        object.__setattr__(self, "additive", _frozen(self.additive))
        object.__setattr__(self, "process", _frozen(self.process))
        object.__setattr__(self, "transport", _frozen(self.transport))
        object.__setattr__(self, "disposal", _frozen(self.disposal))
        object.__setattr__(self, "disposal_family", _frozen(self.disposal_family))
        object.__setattr__(
            self,
            "reference_mix",
            _frozen({k: complete_mix(ResinVariant, v) for k, v in self.reference_mix.items()}),
        )

    def disposal_coefficient(self, resin: ResinVariant) -> float:
        return self.disposal[self.disposal_family[resin]]


def default_factor_table() -> EmissionFactorTable:
    return EmissionFactorTable(
        resin=RESIN_EMISSION_PER_KG,
        additive=ADDITIVE_EMISSION_PER_KG,
        electricity_per_kwh=ELECTRICITY_EMISSION_PER_KWH,
        process=PROCESS_EMISSION_PER_KG,
        transport=TRANSPORT_EMISSION_PER_TON_KM,
        disposal=DISPOSAL_EMISSION_PER_KG,
        disposal_family=RESIN_DISPOSAL_FAMILY,
        reference_mix=REFERENCE_RESIN_MIX,
        default_yield_ratio=DEFAULT_YIELD_RATIO,
        mix_mode=MixMode.PERCENT,
        name="default",
    )


DEFAULT_FACTORS = default_factor_table()

__all__ = [
    "MixMode",
    "TransportMode",
    "parse_mix_mode",
    "EmissionFactorTable",
    "default_factor_table",
    "DEFAULT_FACTORS",
    "RESIN_EMISSION_PER_KG",
    "ADDITIVE_EMISSION_PER_KG",
    "ELECTRICITY_EMISSION_PER_KWH",
    "PROCESS_EMISSION_PER_KG",
    "TRANSPORT_EMISSION_PER_TON_KM",
    "DISPOSAL_EMISSION_PER_KG",
    "RESIN_DISPOSAL_FAMILY",
    "REFERENCE_RESIN_MIX",
    "DEFAULT_YIELD_RATIO",
]
