"""
Fare calculation against the FareConfig rate table.

All amounts are Decimals. Lookup failures never block a ride: when the
rate table is missing or unreadable the hardcoded defaults are used.
"""

import logging
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_FLOOR
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import DatabaseError

logger = logging.getLogger(__name__)


DEFAULT_FARE_SETTINGS: Dict[str, str] = {
    "minimum_fare": "1250",
    "starting_fare": "300",
    "fare_per_kilometer": "350",
    "fare_per_minute_driving": "60",
    "fare_per_minute_waiting": "60",
    "commission_rate": "0.20",
    "rounding_increment": "500",
    "currency": "TZS",
}

ZERO = Decimal("0")
CENT = Decimal("0.01")


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class FareSettings:
    """Rates used to price a trip."""
    starting_fare: Decimal
    fare_per_kilometer: Decimal
    fare_per_minute_driving: Decimal
    fare_per_minute_waiting: Decimal
    minimum_fare: Decimal
    rounding_increment: Decimal
    commission_rate: Decimal
    currency: str = "TZS"

    @classmethod
    def defaults(cls) -> "FareSettings":
        values = dict(DEFAULT_FARE_SETTINGS)
        values.update(getattr(settings, "DEFAULT_FARE_SETTINGS", {}) or {})
        return cls.from_mapping(values)

    @classmethod
    def from_mapping(cls, values: Dict[str, Any]) -> "FareSettings":
        return cls(
            starting_fare=_to_decimal(values.get("starting_fare")),
            fare_per_kilometer=_to_decimal(values.get("fare_per_kilometer")),
            fare_per_minute_driving=_to_decimal(values.get("fare_per_minute_driving")),
            fare_per_minute_waiting=_to_decimal(values.get("fare_per_minute_waiting")),
            minimum_fare=_to_decimal(values.get("minimum_fare")),
            rounding_increment=_to_decimal(values.get("rounding_increment")),
            commission_rate=_to_decimal(values.get("commission_rate")),
            currency=values.get("currency") or "TZS",
        )

    def as_dict(self) -> Dict[str, str]:
        """JSON-safe copy, stored on completed rides as ``fare_config_used``."""
        return {key: str(value) for key, value in asdict(self).items()}


@dataclass
class FareBreakdown:
    """Figures recorded on a ride when it completes."""
    subtotal: Decimal
    fare_before_commission: Decimal
    fare: Decimal
    commission_amount: Decimal
    driver_earnings: Decimal
    distance_km: Decimal
    driving_minutes: Decimal
    waiting_minutes: Decimal
    source: str


def load_fare_settings() -> FareSettings:
    """
    Read the FareConfig singleton.

    Returns:
        FareSettings built from the stored row, or the defaults when the
        row does not exist or the database cannot be read.
    """
    from rides.models import FareConfig

    try:
        config = FareConfig.objects.filter(pk=FareConfig.SINGLETON_ID).first()
    except DatabaseError:
        logger.exception("Failed to load fare configuration, using defaults")
        return FareSettings.defaults()

    if config is None:
        logger.warning("Fare configuration not found, using defaults")
        return FareSettings.defaults()

    return FareSettings(
        starting_fare=config.starting_fare,
        fare_per_kilometer=config.fare_per_kilometer,
        fare_per_minute_driving=config.fare_per_minute_driving,
        fare_per_minute_waiting=config.fare_per_minute_waiting,
        minimum_fare=config.minimum_fare,
        rounding_increment=config.rounding_increment,
        commission_rate=config.commission_rate,
        currency=config.currency,
    )


def calculate_subtotal(
    fare_settings: FareSettings,
    distance_km: Any,
    driving_minutes: Any,
    waiting_minutes: Any = 0,
) -> Decimal:
    """Starting fare plus distance, driving time and waiting time charges."""
    return (
        fare_settings.starting_fare
        + _to_decimal(distance_km) * fare_settings.fare_per_kilometer
        + _to_decimal(driving_minutes) * fare_settings.fare_per_minute_driving
        + _to_decimal(waiting_minutes) * fare_settings.fare_per_minute_waiting
    )


def round_fare(fare: Any, increment: Any) -> Decimal:
    """
    Round a fare to the increment grid, midpoint rounding up.

    A fare already on the grid is kept; a remainder up to half the
    increment goes to the half step, anything above to the next step.
    """
    fare = _to_decimal(fare)
    increment = _to_decimal(increment)
    if increment <= 0:
        return fare

    base = (fare / increment).to_integral_value(rounding=ROUND_FLOOR) * increment
    diff = fare - base
    half = increment / 2
    if diff == 0:
        return fare
    if diff <= half:
        return base + half
    return base + increment


def estimate_fare(fare_settings: FareSettings, distance_km: Any, duration_minutes: Any) -> Decimal:
    """Pre-trip estimate: no waiting charge, floored at the minimum, rounded."""
    subtotal = calculate_subtotal(fare_settings, distance_km, duration_minutes)
    return round_fare(max(subtotal, fare_settings.minimum_fare), fare_settings.rounding_increment)


def finalize_fare(
    fare_settings: FareSettings,
    ride,
    actual_distance_km: Optional[Any] = None,
    actual_driving_minutes: Optional[Any] = None,
    actual_waiting_minutes: Optional[Any] = None,
) -> FareBreakdown:
    """
    Compute the final fare of a completed ride.

    Args:
        fare_settings: Rate table in force
        ride: RideRequest being completed
        actual_distance_km: Distance tracked by the driver app
        actual_driving_minutes: Driving time tracked by the driver app
        actual_waiting_minutes: Waiting time tracked by the driver app

    Returns:
        FareBreakdown. Commission and driver earnings are taken from the
        fare before rounding; the rounded figure is what the customer pays.
    """
    if actual_distance_km is not None and actual_driving_minutes is not None:
        subtotal = calculate_subtotal(
            fare_settings,
            actual_distance_km,
            actual_driving_minutes,
            actual_waiting_minutes or 0,
        )
        fare_before_commission = max(subtotal, fare_settings.minimum_fare)
        source = "actuals"
    elif ride.customer_calculated_estimated_fare is not None:
        fare_before_commission = _to_decimal(ride.customer_calculated_estimated_fare)
        subtotal = fare_before_commission
        source = "customer_estimate"
    else:
        subtotal = calculate_subtotal(
            fare_settings,
            ride.estimated_distance_km or 0,
            ride.estimated_duration_minutes or 0,
        )
        fare_before_commission = max(subtotal, fare_settings.minimum_fare)
        source = "stored_estimate"

    commission = (fare_before_commission * fare_settings.commission_rate).quantize(CENT)
    earnings = (fare_before_commission - commission).quantize(CENT)
    fare = round_fare(fare_before_commission, fare_settings.rounding_increment)

    def _recorded(actual, estimate):
        if actual is not None:
            return _to_decimal(actual)
        return _to_decimal(estimate)

    return FareBreakdown(
        subtotal=subtotal,
        fare_before_commission=fare_before_commission,
        fare=fare,
        commission_amount=commission,
        driver_earnings=earnings,
        distance_km=_recorded(actual_distance_km, ride.estimated_distance_km),
        driving_minutes=_recorded(actual_driving_minutes, ride.estimated_duration_minutes),
        waiting_minutes=_to_decimal(actual_waiting_minutes),
        source=source,
    )
