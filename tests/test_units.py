"""
Tests for unit conversion.
"""

import pytest

from assessment_engine.units import (
    convert_unit,
    efficiency_to_specific_consumption,
    find_rule,
    kwh_per_kg_to_efficiency,
    lcoe_to_lcoh,
    normalize_unit,
    parse_value_with_unit,
    specific_consumption_to_efficiency,
    units_equivalent,
    calculate_lcos,
)


def test_identical_units_return_value():
    """Converting to the same unit is the identity, including spelling variants."""
    assert convert_unit(42.0, "%", "%") == 42.0
    assert convert_unit(42.0, "%", "percent") == 42.0
    assert convert_unit(5.0, "$/MWh", "$ / mwh") == 5.0


def test_factor_conversion_and_reverse():
    """Factor rules apply forward and divide in reverse."""
    assert convert_unit(10, "years", "hours") == pytest.approx(87600.0)
    assert convert_unit(87600, "hours", "years") == pytest.approx(10.0)
    assert convert_unit(50, "$/MWh", "$/kWh") == pytest.approx(0.05)
    assert convert_unit(0.05, "$/kWh", "$/MWh") == pytest.approx(50.0)


def test_formula_conversion_with_explicit_inverse():
    """Temperature rules are formulas with their own inverse."""
    assert convert_unit(25, "C", "K") == pytest.approx(298.15)
    assert convert_unit(298.15, "K", "C") == pytest.approx(25.0)
    assert convert_unit(212, "F", "C") == pytest.approx(100.0)
    assert convert_unit(100, "C", "F") == pytest.approx(212.0)


def test_unknown_pair_raises():
    """Unknown unit pairs fail loudly."""
    assert find_rule("furlongs", "hours") is None
    with pytest.raises(ValueError, match="No conversion rule"):
        convert_unit(1.0, "furlongs", "hours")


def test_lcoe_to_lcoh_uses_specific_consumption():
    """Electricity at $50/MWh and 50 kWh/kg contributes $2.50/kg."""
    assert lcoe_to_lcoh(50.0) == pytest.approx(2.5)
    assert lcoe_to_lcoh(50.0, kwh_per_kg=55.0) == pytest.approx(2.75)
    assert convert_unit(2.5, "$/kg", "$/MWh") == pytest.approx(50.0)


def test_specific_consumption_efficiency_helpers():
    """Efficiency and specific consumption are reciprocal on an LHV basis."""
    eff = specific_consumption_to_efficiency(4.5)
    assert eff == pytest.approx(2.54 / 4.5 * 100)
    assert efficiency_to_specific_consumption(eff) == pytest.approx(4.5)
    assert kwh_per_kg_to_efficiency(50.0) == pytest.approx(66.66, rel=1e-3)
    with pytest.raises(ValueError):
        specific_consumption_to_efficiency(0)


def test_parse_value_with_unit():
    """Values with thousands separators and trailing units split cleanly."""
    assert parse_value_with_unit("1,200 $/kW") == (1200.0, "$/kW")
    assert parse_value_with_unit("55 kWh/kg") == (55.0, "kWh/kg")
    assert parse_value_with_unit("about fifty") is None


def test_normalize_and_equivalence():
    """Normalization folds case, whitespace and superscripts."""
    assert normalize_unit(" kWh / Nm³ ") == "kwh/nm3"
    assert units_equivalent("kWh/Nm3", "kwh/m3")
    assert units_equivalent("yr", "years")
    assert not units_equivalent("kg", "tonne")


def test_calculate_lcos():
    """LCOS is capital per cycle plus charging cost grossed up by losses."""
    lcos = calculate_lcos(capex_per_kwh=200.0, cycle_life=4000, round_trip_efficiency=0.9,
                          electricity_cost_per_kwh=0.045)
    assert lcos == pytest.approx(0.05 + 0.05)
    with pytest.raises(ValueError):
        calculate_lcos(200.0, 0, 0.9)
