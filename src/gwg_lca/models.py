"""Shared domain models for GWG LCA.

Compositions are keyed by closed enums and completed over every member, so a
missing key is always an explicit 0.0 rather than an absent entry.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Type, TypeVar


# ===================================================================
#                              Enums
# ===================================================================
class ResinVariant(str, Enum):
    TPS = "TPS"                    # thermoplastic starch (cassava)
    PLA = "PLA"
    PBAT = "PBAT"
    HDPE_VIRGIN = "HDPE_VIRGIN"
    HDPE_RECYCLE = "HDPE_RECYCLE"
    HDPE_BIO = "HDPE_BIO"
    LDPE_VIRGIN = "LDPE_VIRGIN"
    LDPE_RECYCLE = "LDPE_RECYCLE"
    LDPE_BIO = "LDPE_BIO"
    PP_VIRGIN = "PP_VIRGIN"
    PP_RECYCLE = "PP_RECYCLE"
    PP_BIO = "PP_BIO"


class AdditiveVariant(str, Enum):
    BIOMASS_1 = "BIOMASS_1"        # talc
    BIOMASS_2 = "BIOMASS_2"        # coconut
    ADDITIVE_1 = "ADDITIVE_1"      # bamboo
    ADDITIVE_2 = "ADDITIVE_2"      # castor oil
    ADDITIVE_3 = "ADDITIVE_3"      # HAA (TAB-363)


class ProcessVariant(str, Enum):
    ELECTRICITY = "ELECTRICITY"    # total electricity use, kWh
    INJECTION = "INJECTION"        # feed mass, kg
    EXTRUSION = "EXTRUSION"        # feed mass, kg
    FILM = "FILM"                  # kg
    SHEET = "SHEET"                # kg


class DisposalMode(str, Enum):
    PELLET_ONLY = "PELLET_ONLY"
    TO_PRODUCT = "TO_PRODUCT"
    COMPOST = "COMPOST"
    INCINERATION = "INCINERATION"


class DisposalFamily(str, Enum):
    TPS = "TPS"
    PLA = "PLA"
    PBAT = "PBAT"
    PETROLEUM = "PETROLEUM"        # every PE/PP variant, virgin, recycled or bio


class ScenarioName(str, Enum):
    GWG = "GWG"
    HDPE = "HDPE"
    LDPE = "LDPE"
    PP = "PP"


REFERENCE_SCENARIOS = (ScenarioName.HDPE, ScenarioName.LDPE, ScenarioName.PP)

E = TypeVar("E", bound=Enum)


def parse_tag(enum_cls: Type[E], tag) -> E:
    """Return the enum member for ``tag``; unknown tags raise ValueError."""
    if isinstance(tag, enum_cls):
        return tag
    text = str(tag).strip().upper() if tag is not None else ""
    try:
        return enum_cls(text)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Unknown {enum_cls.__name__} '{tag}' (expected one of: {allowed})") from None


def complete_mix(enum_cls: Type[E], mix: Mapping | None) -> Mapping[E, float]:
    """Key ``mix`` by ``enum_cls`` members, filling absent members with 0.0.

    Returns a read-only mapping ordered by enum declaration.
    """
    given: Dict[E, float] = {}
    for key, value in (mix or {}).items():
        given[parse_tag(enum_cls, key)] = float(value)
    full = {member: given.get(member, 0.0) for member in enum_cls}
    return MappingProxyType(full)


def empty_mix(enum_cls: Type[E]) -> Mapping[E, float]:
    return complete_mix(enum_cls, {})


# ===================================================================
#                           Data Models
# ===================================================================
@dataclass(frozen=True)
class LcaInput:
    """One request to the calculation core.

    Args:
        total_production_kg: target output mass (kg)
        yield_rate: pelletizing yield in percent, (0, 100]; out-of-range
            values fall back to the table's default ratio
        gwg_resin_mix: resin composition of the GWG pellet (percent)
        gwg_additive_mix: additive composition of the GWG pellet (percent)
        pellet_electricity_kwh: electricity used for pelletizing (kWh)
        gwg_sea_km / gwg_land_km: origin leg, pellet maker -> customer
        customer_sea_km / customer_land_km: customer leg, product -> destination
        process_type: the single active customer process
        process_value: kWh for ELECTRICITY, kg for every other process
        disposal_mode: life-cycle boundary / end-of-life route
    """
    total_production_kg: float
    yield_rate: float
    gwg_resin_mix: Mapping[ResinVariant, float]
    gwg_additive_mix: Mapping[AdditiveVariant, float]
    pellet_electricity_kwh: float = 0.0
    gwg_sea_km: float = 0.0
    gwg_land_km: float = 0.0
    customer_sea_km: float = 0.0
    customer_land_km: float = 0.0
    process_type: ProcessVariant = ProcessVariant.ELECTRICITY
    process_value: float = 0.0
    disposal_mode: DisposalMode = DisposalMode.PELLET_ONLY

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "gwg_resin_mix", complete_mix(ResinVariant, self.gwg_resin_mix))
        object.__setattr__(self, "gwg_additive_mix", complete_mix(AdditiveVariant, self.gwg_additive_mix))
        object.__setattr__(self, "process_type", parse_tag(ProcessVariant, self.process_type))
        object.__setattr__(self, "disposal_mode", parse_tag(DisposalMode, self.disposal_mode))


def default_input() -> LcaInput:
    """Fresh default request: 1000 kg of the reference GWG recipe."""
    return LcaInput(
        total_production_kg=1000.0,
        yield_rate=95.0,
        gwg_resin_mix={
            ResinVariant.TPS: 60.0,
            ResinVariant.HDPE_RECYCLE: 20.0,
            ResinVariant.LDPE_RECYCLE: 10.0,
        },
        gwg_additive_mix={variant: 2.0 for variant in AdditiveVariant},
        pellet_electricity_kwh=600.0,
        gwg_sea_km=3200.0,
        gwg_land_km=200.0,
        customer_sea_km=0.0,
        customer_land_km=0.0,
        process_type=ProcessVariant.ELECTRICITY,
        process_value=0.0,
        disposal_mode=DisposalMode.PELLET_ONLY,
    )


@dataclass(frozen=True)
class ScenarioResult:
    """Per-scenario emissions (kg CO2e). The total is always derived."""
    name: ScenarioName
    pellet_stage_emission: float
    gwg_transport_emission: float
    product_stage_emission: float
    customer_transport_emission: float
    disposal_added_emission: float

    @property
    def total_emission(self) -> float:
        return (
            self.pellet_stage_emission
            + self.gwg_transport_emission
            + self.product_stage_emission
            + self.customer_transport_emission
            + self.disposal_added_emission
        )


@dataclass(frozen=True)
class ResultSummary:
    gwg: ScenarioResult
    hdpe: ScenarioResult
    ldpe: ScenarioResult
    pp: ScenarioResult
    meta: Dict[str, object] = field(default_factory=dict, compare=False)

    @property
    def scenarios(self) -> List[ScenarioResult]:
        return [self.gwg, self.hdpe, self.ldpe, self.pp]

    def by_name(self, name) -> ScenarioResult:
        key = parse_tag(ScenarioName, name)
        return {s.name: s for s in self.scenarios}[key]


__all__ = [
    "ResinVariant",
    "AdditiveVariant",
    "ProcessVariant",
    "DisposalMode",
    "DisposalFamily",
    "ScenarioName",
    "REFERENCE_SCENARIOS",
    "parse_tag",
    "complete_mix",
    "empty_mix",
    "LcaInput",
    "default_input",
    "ScenarioResult",
    "ResultSummary",
]
