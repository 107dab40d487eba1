"""
Technology performance and cost benchmarks.

Values are published industry ranges (min / median / max) for commercially
relevant clean-energy technologies, plus learning-curve cost projections.
Everything here is read-only; lookups return the shared frozen records.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple

import pandas as pd


@dataclass(frozen=True)
class Benchmark:
    metric: str
    technology: str
    domain: str
    min: float
    median: float
    max: float
    unit: str
    source: str
    year: int
    commercial: Optional[float] = None
    demonstration: Optional[float] = None
    lab: Optional[float] = None
    theoretical: Optional[float] = None
    learning_rate: Optional[float] = None  # % cost decline per doubling
    notes: str = ""


@dataclass(frozen=True)
class CostProjection:
    low: float
    mid: float
    high: float


@dataclass(frozen=True)
class TechnologyProjection:
    technology: str
    metric: str
    unit: str
    current: float
    learning_rate: float
    projections: MappingProxyType  # year -> CostProjection
    source: str


BENCHMARKS: Tuple[Benchmark, ...] = (
    # Solar
    Benchmark("efficiency", "crystalline silicon pv", "clean-energy", 20.0, 22.5, 26.8, "%",
              "NREL Best Research-Cell Efficiency Chart", 2025,
              commercial=22.5, lab=26.8, theoretical=33.7,
              notes="Module efficiency; lab value is record cell"),
    Benchmark("efficiency", "perovskite pv", "clean-energy", 18.0, 23.0, 26.1, "%",
              "NREL Best Research-Cell Efficiency Chart", 2025,
              demonstration=23.0, lab=26.1, theoretical=33.7,
              notes="Stability remains the main commercial barrier"),
    Benchmark("efficiency", "perovskite-silicon tandem pv", "clean-energy", 25.0, 30.0, 33.9, "%",
              "NREL Best Research-Cell Efficiency Chart", 2025,
              demonstration=28.0, lab=33.9, theoretical=45.0),
    Benchmark("lcoe", "utility pv", "clean-energy", 24.0, 36.0, 96.0, "$/MWh",
              "Lazard LCOE+ 2024", 2024, learning_rate=23.0),
    Benchmark("capex", "utility pv", "clean-energy", 700.0, 900.0, 1200.0, "$/kW",
              "NREL ATB 2024", 2024),
    Benchmark("degradation_rate", "crystalline silicon pv", "clean-energy", 0.3, 0.5, 0.8, "%/year",
              "NREL PV Degradation Study", 2024),
    # Wind
    Benchmark("capacity_factor", "onshore wind", "clean-energy", 25.0, 35.0, 52.0, "%",
              "NREL ATB 2024", 2024),
    Benchmark("capacity_factor", "offshore wind", "clean-energy", 35.0, 45.0, 60.0, "%",
              "NREL ATB 2024", 2024),
    Benchmark("lcoe", "onshore wind", "clean-energy", 24.0, 37.0, 75.0, "$/MWh",
              "Lazard LCOE+ 2024", 2024, learning_rate=12.0),
    Benchmark("lcoe", "offshore wind", "clean-energy", 72.0, 114.0, 140.0, "$/MWh",
              "Lazard LCOE+ 2024", 2024),
    Benchmark("capex", "onshore wind", "clean-energy", 1000.0, 1400.0, 1800.0, "$/kW",
              "NREL ATB 2024", 2024),
    Benchmark("capex", "offshore wind", "clean-energy", 2800.0, 3500.0, 5500.0, "$/kW",
              "NREL ATB 2024", 2024),
    # Batteries
    Benchmark("efficiency", "lithium-ion battery", "energy-storage", 85.0, 90.0, 95.0, "%",
              "PNNL Energy Storage Cost and Performance Database", 2024,
              notes="AC-AC round-trip efficiency"),
    Benchmark("efficiency", "vanadium flow battery", "energy-storage", 65.0, 75.0, 80.0, "%",
              "PNNL Energy Storage Cost and Performance Database", 2024),
    Benchmark("cycle_life", "lithium-ion battery", "energy-storage", 3000.0, 6000.0, 10000.0, "cycles",
              "PNNL Energy Storage Cost and Performance Database", 2024),
    Benchmark("cycle_life", "vanadium flow battery", "energy-storage", 10000.0, 20000.0, 25000.0, "cycles",
              "PNNL Energy Storage Cost and Performance Database", 2024),
    Benchmark("energy_density", "lithium-ion battery", "energy-storage", 200.0, 270.0, 350.0, "Wh/kg",
              "BNEF Battery Price Survey 2024", 2024, theoretical=500.0),
    Benchmark("capex", "lithium-ion battery", "energy-storage", 150.0, 185.0, 250.0, "$/kWh",
              "BNEF Battery Price Survey 2024", 2024, learning_rate=18.0),
    Benchmark("lcos", "lithium-ion battery", "energy-storage", 80.0, 140.0, 210.0, "$/MWh",
              "Lazard LCOS 2024", 2024),
    # Hydrogen
    Benchmark("efficiency", "pem electrolyzer", "hydrogen", 60.0, 70.0, 80.0, "%",
              "IEA Global Hydrogen Review 2024", 2024, notes="LHV basis, system level"),
    Benchmark("efficiency", "alkaline electrolyzer", "hydrogen", 63.0, 68.0, 75.0, "%",
              "IEA Global Hydrogen Review 2024", 2024),
    Benchmark("efficiency", "soec electrolyzer", "hydrogen", 80.0, 85.0, 95.0, "%",
              "IEA Global Hydrogen Review 2024", 2024,
              notes="Excludes external heat input"),
    Benchmark("specific_consumption", "pem electrolyzer", "hydrogen", 50.0, 55.0, 65.0, "kWh/kg",
              "DOE Hydrogen Program Record 24005", 2024),
    Benchmark("capex", "pem electrolyzer", "hydrogen", 400.0, 700.0, 1400.0, "$/kW",
              "IEA Global Hydrogen Review 2024", 2024, learning_rate=16.0),
    Benchmark("capex", "alkaline electrolyzer", "hydrogen", 300.0, 500.0, 800.0, "$/kW",
              "IEA Global Hydrogen Review 2024", 2024),
    Benchmark("lcoh", "green hydrogen", "hydrogen", 3.0, 5.5, 10.0, "$/kg",
              "IEA Global Hydrogen Review 2024", 2024),
    Benchmark("lifetime", "pem electrolyzer", "hydrogen", 60000.0, 80000.0, 100000.0, "hours",
              "DOE Hydrogen Program Record 24005", 2024, notes="Stack lifetime"),
    # Fuel cells
    Benchmark("efficiency", "pem fuel cell", "hydrogen", 50.0, 60.0, 68.0, "%",
              "DOE Fuel Cell Technologies Office", 2024, theoretical=83.0),
    Benchmark("efficiency", "solid oxide fuel cell", "hydrogen", 55.0, 65.0, 70.0, "%",
              "DOE Fuel Cell Technologies Office", 2024, theoretical=90.0),
    Benchmark("lifetime", "pem fuel cell", "hydrogen", 5000.0, 8000.0, 25000.0, "hours",
              "DOE Fuel Cell Technologies Office", 2024),
    Benchmark("capex", "pem fuel cell", "hydrogen", 800.0, 1200.0, 2000.0, "$/kW",
              "DOE Fuel Cell Technologies Office", 2024),
    # Carbon capture
    Benchmark("energy_consumption", "direct air capture", "industrial", 1500.0, 2500.0, 4000.0, "kWh/tonne",
              "IEA Direct Air Capture 2022", 2022, theoretical=178.0,
              notes="Thermodynamic minimum at 400 ppm is ~178 kWh/tonne"),
    Benchmark("lcoc", "direct air capture", "industrial", 250.0, 600.0, 1000.0, "$/tonne",
              "IEA Direct Air Capture 2022", 2022),
    Benchmark("capture_rate", "point source capture", "industrial", 85.0, 90.0, 95.0, "%",
              "Global CCS Institute 2024", 2024),
)


def _projection(*rows: Tuple[int, float, float, float]) -> MappingProxyType:
    return MappingProxyType({year: CostProjection(low, mid, high) for year, low, mid, high in rows})


COST_PROJECTIONS: Tuple[TechnologyProjection, ...] = (
    TechnologyProjection(
        "utility pv", "lcoe", "$/MWh", 36.0, 23.0,
        _projection((2025, 28, 33, 40), (2030, 18, 25, 35), (2040, 12, 18, 28), (2050, 8, 14, 22)),
        "NREL ATB 2024",
    ),
    TechnologyProjection(
        "onshore wind", "lcoe", "$/MWh", 37.0, 12.0,
        _projection((2025, 30, 35, 42), (2030, 24, 30, 38), (2040, 20, 26, 34), (2050, 18, 24, 32)),
        "NREL ATB 2024",
    ),
    TechnologyProjection(
        "lithium-ion battery", "capex", "$/kWh", 185.0, 18.0,
        _projection((2025, 140, 160, 185), (2030, 80, 100, 130), (2040, 50, 70, 100), (2050, 40, 55, 80)),
        "BNEF Battery Price Survey 2024",
    ),
    TechnologyProjection(
        "pem electrolyzer", "capex", "$/kW", 700.0, 16.0,
        _projection((2025, 500, 600, 750), (2030, 200, 350, 500), (2040, 100, 200, 350), (2050, 75, 150, 280)),
        "IEA Global Hydrogen Review 2024",
    ),
    TechnologyProjection(
        "green hydrogen", "lcoh", "$/kg", 5.5, 15.0,
        _projection((2025, 3.5, 4.5, 6.0), (2030, 1.5, 2.5, 4.0), (2040, 1.0, 1.8, 3.0), (2050, 0.8, 1.4, 2.5)),
        "IEA Global Hydrogen Review 2024",
    ),
)


def _technology_matches(candidate: str, query: str) -> bool:
    candidate = candidate.lower()
    query = query.lower().strip()
    return bool(query) and (query in candidate or candidate in query)


def get_benchmark(technology: str, metric: str) -> Optional[Benchmark]:
    """First benchmark whose technology overlaps the query and whose metric matches exactly."""
    for benchmark in BENCHMARKS:
        if benchmark.metric == metric and _technology_matches(benchmark.technology, technology):
            return benchmark
    return None


def benchmarks_for_technology(technology: str) -> List[Benchmark]:
    return [b for b in BENCHMARKS if _technology_matches(b.technology, technology)]


def benchmarks_for_domain(domain: str) -> List[Benchmark]:
    return [b for b in BENCHMARKS if b.domain == domain]


def get_cost_projection(technology: str, year: int) -> Optional[CostProjection]:
    """Cost projection for the nearest tabulated year at or after `year`."""
    for projection in COST_PROJECTIONS:
        if not _technology_matches(projection.technology, technology):
            continue
        years = sorted(projection.projections)
        for tabulated in years:
            if tabulated >= year:
                return projection.projections[tabulated]
        return projection.projections[years[-1]]
    return None


def compare_to_benchmark(value: float, benchmark: Benchmark) -> Dict[str, object]:
    """
    Position a value within a benchmark range.

    Returns:
        Dictionary with percentile (0-100 within min..max), position
        ("leading", "competitive", "lagging" or "unknown") and a
        human-readable gap to the median.
    """
    span = benchmark.max - benchmark.min
    if span > 0:
        percentile = (value - benchmark.min) / span * 100.0
    else:
        percentile = 50.0
    percentile = max(0.0, min(100.0, percentile))

    if value >= benchmark.median * 1.1:
        position = "leading"
    elif value >= benchmark.median * 0.9:
        position = "competitive"
    elif value >= benchmark.min:
        position = "lagging"
    else:
        position = "unknown"

    diff = value - benchmark.median
    if benchmark.median:
        gap = f"{diff:+.1f} {benchmark.unit} ({diff / benchmark.median * 100:+.0f}%) vs median"
    else:
        gap = f"{diff:+.1f} {benchmark.unit} vs median"

    return {
        "percentile": round(percentile, 1),
        "position": position,
        "gap": gap,
        "benchmark": benchmark,
    }


def benchmarks_frame() -> pd.DataFrame:
    """All benchmarks as a DataFrame, one row per (technology, metric)."""
    rows = [
        {
            "technology": b.technology,
            "metric": b.metric,
            "domain": b.domain,
            "min": b.min,
            "median": b.median,
            "max": b.max,
            "unit": b.unit,
            "theoretical": b.theoretical,
            "source": b.source,
            "year": b.year,
        }
        for b in BENCHMARKS
    ]
    return pd.DataFrame(rows)
