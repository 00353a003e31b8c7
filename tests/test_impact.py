"""Tests for environmental impact figures."""

import pytest

from fiesta.domain.impact import ImpactSummary, calculate_impact, format_impact


def test_calculate_impact_scales_per_meal() -> None:
    assert calculate_impact(4) == ImpactSummary(10.0, 400.0, 12.0)


def test_calculate_impact_ignores_negative_counts() -> None:
    assert calculate_impact(-3) == ImpactSummary(0.0, 0.0, 0.0)


@pytest.mark.parametrize(
    ("meals", "water"),
    [(1, "100 L"), (9, "900 L"), (10, "1.0 m³"), (25, "2.5 m³")],
)
def test_format_impact_switches_water_units(meals: int, water: str) -> None:
    formatted = format_impact(calculate_impact(meals))

    assert formatted["water"] == water


def test_format_impact_units() -> None:
    assert format_impact(calculate_impact(12)) == {
        "co2": "30.0 kg",
        "water": "1.2 m³",
        "energy": "36.0 kWh",
    }
