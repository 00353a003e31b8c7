"""Environmental impact of meals saved from waste."""

from dataclasses import dataclass

KG_CO2_PER_MEAL = 2.5
LITERS_WATER_PER_MEAL = 100.0
KWH_ENERGY_PER_MEAL = 3.0
_LITERS_PER_CUBIC_METER = 1000.0


@dataclass(frozen=True)
class ImpactSummary:
    """Resources saved by not wasting meals."""

    co2_kg: float
    water_liters: float
    energy_kwh: float


def calculate_impact(meal_count: int) -> ImpactSummary:
    """Return the resources saved for a number of rescued meals."""
    count = max(meal_count, 0)
    return ImpactSummary(
        co2_kg=count * KG_CO2_PER_MEAL,
        water_liters=count * LITERS_WATER_PER_MEAL,
        energy_kwh=count * KWH_ENERGY_PER_MEAL,
    )


def format_impact(summary: ImpactSummary) -> dict[str, str]:
    """Format impact values with display units."""
    if summary.water_liters >= _LITERS_PER_CUBIC_METER:
        water = f"{summary.water_liters / _LITERS_PER_CUBIC_METER:.1f} m³"
    else:
        water = f"{summary.water_liters:.0f} L"
    return {
        "co2": f"{summary.co2_kg:.1f} kg",
        "water": water,
        "energy": f"{summary.energy_kwh:.1f} kWh",
    }
