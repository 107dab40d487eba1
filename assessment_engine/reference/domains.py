"""
Domain-level reference ranges: industry ranges, TRL expectations and sanity bounds.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Optional

KNOWN_DOMAINS = (
    "hydrogen",
    "energy-storage",
    "clean-energy",
    "industrial",
    "transportation",
    "agriculture",
    "materials",
    "biotech",
    "computing",
    "waste-to-fuel",
    "general",
)

# Keyword -> domain, checked in order against the lower-cased input
DOMAIN_ALIASES = (
    ("electroly", "hydrogen"),
    ("fuel cell", "hydrogen"),
    ("h2", "hydrogen"),
    ("battery", "energy-storage"),
    ("storage", "energy-storage"),
    ("solar", "clean-energy"),
    ("pv", "clean-energy"),
    ("wind", "clean-energy"),
    ("renewable", "clean-energy"),
    ("carbon capture", "industrial"),
    ("ccs", "industrial"),
    ("direct air", "industrial"),
    ("htl", "waste-to-fuel"),
    ("hydrothermal", "waste-to-fuel"),
    ("waste", "waste-to-fuel"),
    ("vehicle", "transportation"),
)


@dataclass(frozen=True)
class IndustryRange:
    min: float
    max: float
    unit: str
    median: Optional[float] = None

    @property
    def midpoint(self) -> float:
        return self.median if self.median is not None else (self.min + self.max) / 2.0


@dataclass(frozen=True)
class TRLBenchmark:
    min: int
    max: int
    typical: int


@dataclass(frozen=True)
class SanityRange:
    min: float
    max: float
    unit: str
    fail_action: Literal["warn", "reject"]
    description: str


INDUSTRY_RANGES = MappingProxyType({
    "hydrogen": MappingProxyType({
        "lcoh": IndustryRange(3.0, 8.0, "$/kg", 5.5),
        "efficiency": IndustryRange(55.0, 80.0, "%", 68.0),
        "specific_consumption": IndustryRange(4.0, 6.0, "kWh/Nm3", 4.8),
        "capex": IndustryRange(400.0, 1500.0, "$/kW", 850.0),
        "lifetime": IndustryRange(40000.0, 100000.0, "hours", 80000.0),
        "trl": IndustryRange(7.0, 9.0, "", 8.0),
    }),
    "energy-storage": MappingProxyType({
        "lcos": IndustryRange(0.1, 0.5, "$/kWh", 0.2),
        "efficiency": IndustryRange(80.0, 95.0, "%", 88.0),
        "cycle_life": IndustryRange(3000.0, 10000.0, "cycles", 6000.0),
        "energy_density": IndustryRange(150.0, 500.0, "Wh/kg", 270.0),
        "capex": IndustryRange(100.0, 400.0, "$/kWh", 185.0),
    }),
    "clean-energy": MappingProxyType({
        "lcoe": IndustryRange(20.0, 100.0, "$/MWh", 40.0),
        "efficiency": IndustryRange(15.0, 25.0, "%", 21.0),
        "capacity_factor": IndustryRange(15.0, 35.0, "%", 25.0),
        "capex": IndustryRange(800.0, 2000.0, "$/kW", 1200.0),
    }),
    "industrial": MappingProxyType({
        "lcoc": IndustryRange(100.0, 800.0, "$/tonne", 400.0),
        "capture_rate": IndustryRange(85.0, 99.0, "%", 90.0),
        "energy_penalty": IndustryRange(10.0, 40.0, "%", 25.0),
        "capex": IndustryRange(500.0, 2000.0, "$/kW", 1000.0),
    }),
})

TRL_BENCHMARKS = MappingProxyType({
    "hydrogen": MappingProxyType({
        "alkaline": TRLBenchmark(8, 9, 9),
        "pem": TRLBenchmark(7, 9, 8),
        "soec": TRLBenchmark(5, 7, 6),
        "generic": TRLBenchmark(6, 8, 7),
    }),
    "energy-storage": MappingProxyType({
        "lithium-ion": TRLBenchmark(9, 9, 9),
        "flow": TRLBenchmark(7, 8, 8),
        "solid-state": TRLBenchmark(4, 6, 5),
        "generic": TRLBenchmark(6, 8, 7),
    }),
    "clean-energy": MappingProxyType({
        "silicon": TRLBenchmark(9, 9, 9),
        "perovskite": TRLBenchmark(4, 6, 5),
        "onshore wind": TRLBenchmark(9, 9, 9),
        "offshore wind": TRLBenchmark(8, 9, 9),
        "generic": TRLBenchmark(6, 9, 8),
    }),
    "industrial": MappingProxyType({
        "point source": TRLBenchmark(7, 9, 8),
        "direct air capture": TRLBenchmark(6, 7, 6),
        "generic": TRLBenchmark(5, 8, 6),
    }),
    "waste-to-fuel": MappingProxyType({
        "htl": TRLBenchmark(5, 7, 6),
        "pyrolysis": TRLBenchmark(7, 8, 7),
        "gasification": TRLBenchmark(7, 9, 8),
        "generic": TRLBenchmark(5, 7, 6),
    }),
    "general": MappingProxyType({
        "generic": TRLBenchmark(5, 8, 6),
    }),
})

COMMON_SANITY_RANGES = MappingProxyType({
    "trl": SanityRange(1, 9, "", "reject", "Technology readiness level"),
    "irr": SanityRange(-50, 100, "%", "warn", "Internal rate of return"),
    "payback_period": SanityRange(0.5, 30, "years", "warn", "Simple payback period"),
})

SANITY_RANGES = MappingProxyType({
    "hydrogen": MappingProxyType({
        "lcoh": SanityRange(1, 50, "$/kg", "warn", "Levelized cost of hydrogen"),
        "efficiency": SanityRange(50, 95, "%", "warn", "Electrolyzer system efficiency (LHV)"),
        "specific_consumption": SanityRange(3.5, 8, "kWh/Nm3", "warn", "Specific energy consumption"),
        "lifetime": SanityRange(20000, 150000, "hours", "warn", "Stack lifetime"),
        "capex": SanityRange(200, 3000, "$/kW", "warn", "Installed system capex"),
    }),
    "energy-storage": MappingProxyType({
        "lcos": SanityRange(0.05, 1.0, "$/kWh", "warn", "Levelized cost of storage"),
        "efficiency": SanityRange(60, 98, "%", "warn", "Round-trip efficiency"),
        "cycle_life": SanityRange(500, 50000, "cycles", "warn", "Cycle life"),
        "energy_density": SanityRange(20, 500, "Wh/kg", "warn", "Gravimetric energy density"),
        "capex": SanityRange(50, 1000, "$/kWh", "warn", "Installed storage capex"),
    }),
    "clean-energy": MappingProxyType({
        "lcoe": SanityRange(10, 300, "$/MWh", "warn", "Levelized cost of electricity"),
        "efficiency": SanityRange(5, 50, "%", "warn", "Conversion efficiency"),
        "capacity_factor": SanityRange(5, 70, "%", "warn", "Annual capacity factor"),
    }),
    "industrial": MappingProxyType({
        "lcoc": SanityRange(20, 1500, "$/tonne", "warn", "Levelized cost of capture"),
        "capture_rate": SanityRange(50, 99.9, "%", "warn", "CO2 capture rate"),
    }),
})


def resolve_domain(name: Optional[str]) -> str:
    """Map a free-form domain or technology label onto a known domain, defaulting to 'general'."""
    if not name:
        return "general"
    label = name.strip().lower()
    if label in KNOWN_DOMAINS:
        return label
    for domain in KNOWN_DOMAINS:
        if domain in label:
            return domain
    for keyword, domain in DOMAIN_ALIASES:
        if keyword in label:
            return domain
    return "general"


def get_trl_benchmark(domain: Optional[str], technology: Optional[str] = None) -> TRLBenchmark:
    table = TRL_BENCHMARKS.get(resolve_domain(domain), TRL_BENCHMARKS["general"])
    if technology:
        tech = technology.lower()
        for key, benchmark in table.items():
            if key != "generic" and key in tech:
                return benchmark
    return table["generic"]


def get_industry_range(domain: Optional[str], metric_id: str) -> Optional[IndustryRange]:
    table = INDUSTRY_RANGES.get(resolve_domain(domain))
    if table is None:
        return None
    return table.get(metric_id)


def get_sanity_range(domain: Optional[str], metric_id: str) -> Optional[SanityRange]:
    if metric_id in COMMON_SANITY_RANGES:
        return COMMON_SANITY_RANGES[metric_id]
    table = SANITY_RANGES.get(resolve_domain(domain))
    if table is None:
        return None
    return table.get(metric_id)
