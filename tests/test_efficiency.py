"""
Tests for physics-bounded efficiency models.
"""

import pytest

from assessment_engine.physics import (
    battery_round_trip_efficiency,
    betz_limit,
    brayton_efficiency,
    caes_efficiency,
    carnot_efficiency,
    carnot_from_celsius_or_kelvin,
    combined_cycle_efficiency,
    orc_efficiency,
    pumped_hydro_efficiency,
    rankine_efficiency,
    shockley_queisser_limit,
    solar_pv_efficiency,
    validate_efficiency_claim,
    validate_electrolyzer_efficiency,
    wind_turbine_efficiency,
)


def test_carnot_efficiency_value():
    """Carnot between 600 K and 300 K is 50%."""
    result = carnot_efficiency(600.0, 300.0)
    assert result.value == pytest.approx(0.5)
    assert result.theoretical_max == pytest.approx(0.5)
    assert result.components[0].name == "carnot"


@pytest.mark.parametrize("hot, cold", [(300.0, 300.0), (300.0, 600.0), (600.0, 0.0), (-10.0, 300.0)])
def test_carnot_rejects_invalid_temperatures(hot, cold):
    """Hot <= cold or non-positive temperatures fail loudly instead of returning a number."""
    with pytest.raises(ValueError):
        carnot_efficiency(hot, cold)


def test_carnot_error_is_descriptive():
    """The error names both temperatures."""
    with pytest.raises(ValueError, match="must be greater than cold temperature"):
        carnot_efficiency(350.0, 400.0)


def test_carnot_from_celsius_or_kelvin():
    """Small values are read as Celsius, large ones as Kelvin."""
    from_celsius = carnot_from_celsius_or_kelvin(150.0, 25.0)
    assert from_celsius.value == pytest.approx(1.0 - 298.15 / 423.15)
    from_kelvin = carnot_from_celsius_or_kelvin(873.15, 313.0)
    assert from_kelvin.value == pytest.approx(1.0 - 313.0 / 873.15)


def test_heat_engine_cycles_stay_below_carnot():
    """Rankine, Brayton and ORC never exceed the Carnot limit of their reservoirs."""
    rankine = rankine_efficiency(823.0, 313.0, reheat_stages=1)
    brayton = brayton_efficiency(1600.0, 288.0, pressure_ratio=20.0)
    orc = orc_efficiency(423.0, 303.0, working_fluid="pentane")
    for result in (rankine, brayton, orc):
        assert 0 < result.value < result.theoretical_max, f"{result} should be below Carnot"

    combined = combined_cycle_efficiency(brayton.value, rankine.value)
    assert combined.value > brayton.value, "Bottoming cycle must add efficiency"

    with pytest.raises(ValueError):
        brayton_efficiency(1600.0, 288.0, pressure_ratio=1.0)
    with pytest.raises(ValueError):
        orc_efficiency(423.0, 303.0, working_fluid="water")


def test_shockley_queisser_peak_and_concentration():
    """The limit peaks at the optimal band gap and rises with concentration."""
    peak = shockley_queisser_limit(1.34)
    assert peak.value == pytest.approx(0.337)
    assert shockley_queisser_limit(1.1).value < peak.value
    assert shockley_queisser_limit(1.34, concentration=100).value > peak.value
    with pytest.raises(ValueError):
        shockley_queisser_limit(1.34, concentration=0.5)


def test_solar_pv_rejects_stc_above_detailed_balance():
    """A mono-Si module cannot be rated above its detailed-balance limit."""
    result = solar_pv_efficiency(0.22, cell_temp_c=45.0)
    assert result.value < 0.22, "Hot cells lose efficiency"
    with pytest.raises(ValueError, match="detailed-balance"):
        solar_pv_efficiency(0.40)


def test_wind_turbine_respects_betz():
    """Power coefficients never exceed 16/27."""
    assert betz_limit() == pytest.approx(16.0 / 27.0)
    result = wind_turbine_efficiency(8.0, rated_power_kw=3000.0, rotor_diameter_m=120.0)
    assert 0 < result.value <= betz_limit()
    assert wind_turbine_efficiency(2.0, 3000.0, 120.0).value == 0.0, "Below cut-in produces nothing"
    with pytest.raises(ValueError, match="Betz"):
        wind_turbine_efficiency(12.0, rated_power_kw=50000.0, rotor_diameter_m=50.0)
    with pytest.raises(ValueError):
        wind_turbine_efficiency(8.0, 3000.0, 120.0, cp_max=0.7)


def test_storage_models():
    """Round-trip models decay with storage time and respect their ceilings."""
    fresh = battery_round_trip_efficiency("li-ion")
    stored = battery_round_trip_efficiency("li-ion", storage_duration_h=720.0)
    assert fresh.value == pytest.approx(0.98 * 0.98)
    assert stored.value < fresh.value
    with pytest.raises(ValueError, match="Unknown battery chemistry"):
        battery_round_trip_efficiency("unobtainium")

    assert 0.7 < pumped_hydro_efficiency().value < 0.9
    assert caes_efficiency(adiabatic=True).value > caes_efficiency().value


def test_claim_at_theoretical_max_is_accepted():
    """A claim exactly at the ceiling is accepted; beyond the margin it is rejected."""
    result = carnot_efficiency(600.0, 300.0)
    at_limit = validate_efficiency_claim(0.5, result)
    assert at_limit.valid, at_limit.reason
    assert at_limit.max_plausible == pytest.approx(0.55)

    beyond = validate_efficiency_claim(0.56, result)
    assert not beyond.valid
    assert "exceeds theoretical maximum" in beyond.reason


def test_claim_far_above_typical_is_rejected():
    """Claims more than 50% above the computed value are implausible even below the ceiling."""
    result = rankine_efficiency(823.0, 313.0)
    check = validate_efficiency_claim(result.value * 1.6, result, margin_of_error=0.5)
    assert not check.valid
    assert "higher than typical" in check.reason

    with pytest.raises(ValueError):
        validate_efficiency_claim(0.3, result, margin_of_error=-0.1)


def test_electrolyzer_efficiency_ceiling():
    """PEM is capped at 100% HHV, SOEC may exceed it with external heat."""
    assert validate_electrolyzer_efficiency(75.0).valid
    assert not validate_electrolyzer_efficiency(105.0, "pem electrolyzer").valid
    assert validate_electrolyzer_efficiency(105.0, "soec").valid
    high = validate_electrolyzer_efficiency(97.0)
    assert high.valid and "very high" in high.reason
