"""
Fare service - trip pricing against the shared rate table.

This module handles:
    - Loading the FareConfig rate table (with hardcoded fallback)
    - Pre-trip estimates
    - Final fare, commission and driver earnings on completion
"""

from .calculator import (
    FareSettings,
    FareBreakdown,
    DEFAULT_FARE_SETTINGS,
    load_fare_settings,
    calculate_subtotal,
    round_fare,
    estimate_fare,
    finalize_fare,
)

__all__ = [
    "FareSettings",
    "FareBreakdown",
    "DEFAULT_FARE_SETTINGS",
    "load_fare_settings",
    "calculate_subtotal",
    "round_fare",
    "estimate_fare",
    "finalize_fare",
]
