"""
Display fields copied from user profiles onto ride requests.

Rides carry the customer's and driver's name, photo and a short profile
summary so the apps can render a ride without reading the user records.
Every copy is computed here; ``refresh_ride_projections`` re-applies them
to open rides after a profile changes so the copies do not drift.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
NOT_AVAILABLE = "N/A"

CUSTOMER_FIELDS = (
    "customer_name",
    "customer_profile_image_url",
    "customer_age_range",
    "customer_average_rating",
    "customer_details",
)
DRIVER_FIELDS = (
    "driver_name",
    "driver_profile_image_url",
    "driver_gender",
    "driver_age_group",
    "driver_license_number",
    "driver_vehicle_type",
)


def age_bracket(dob: Optional[date], today: Optional[date] = None, minimum_age: int = 0) -> str:
    """
    Decade bracket of an age, e.g. ``"20s"``.

    Returns ``"Unknown"`` when the date of birth is missing or in the
    future, or the age is below ``minimum_age``.
    """
    if dob is None:
        return UNKNOWN
    today = today or timezone.localdate()
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    if age < 0 or age < minimum_age:
        return UNKNOWN
    return f"{(age // 10) * 10}s"


def customer_projection(user, today: Optional[date] = None) -> Dict[str, Any]:
    """Customer fields copied onto a ride when it is dispatched."""
    if user is None:
        return {
            "customer_name": "Customer",
            "customer_profile_image_url": None,
            "customer_age_range": UNKNOWN,
            "customer_average_rating": 0.0,
            "customer_details": "Customer details not available.",
        }

    gender = user.gender or UNKNOWN
    age_range = age_bracket(user.dob, today)
    profile = getattr(user, "customer_profile", None)
    rating = profile.average_rating if profile is not None else 0.0

    parts = []
    if gender != UNKNOWN:
        parts.append(gender)
    if age_range != UNKNOWN:
        parts.append(age_range)
    if rating > 0:
        parts.append(f"Rating: {rating:.1f}")

    return {
        "customer_name": user.name or "Customer",
        "customer_profile_image_url": user.profile_image_url or None,
        "customer_age_range": age_range,
        "customer_average_rating": rating,
        "customer_details": ", ".join(parts) if parts else "Customer details not available.",
    }


def driver_projection(user, today: Optional[date] = None) -> Dict[str, Any]:
    """Driver fields copied onto a ride when the driver accepts it."""
    profile = getattr(user, "driver_profile", None)
    return {
        "driver_name": user.name or "Driver",
        "driver_profile_image_url": user.profile_image_url or None,
        "driver_gender": user.gender or UNKNOWN,
        # Only shown for adult drivers
        "driver_age_group": age_bracket(user.dob, today, minimum_age=18),
        "driver_license_number": (profile.license_number if profile else "") or NOT_AVAILABLE,
        "driver_vehicle_type": (profile.vehicle_type if profile else "") or NOT_AVAILABLE,
    }


def apply_projection(ride, values: Dict[str, Any]) -> list:
    """Set projected values on a ride instance; returns the changed field names."""
    changed = []
    for field, value in values.items():
        if getattr(ride, field) != value:
            setattr(ride, field, value)
            changed.append(field)
    return changed


@transaction.atomic
def refresh_ride_projections(user_id: int) -> int:
    """
    Re-apply display fields to every open ride the user is party to.

    Args:
        user_id: User whose profile changed

    Returns:
        Number of rides updated
    """
    from django.contrib.auth import get_user_model
    from django.db.models import Q
    from rides.models import RideRequest

    User = get_user_model()
    user = (
        User.objects
        .select_related("customer_profile", "driver_profile")
        .filter(id=user_id)
        .first()
    )
    if user is None:
        logger.info("Projection refresh skipped: user %s no longer exists", user_id)
        return 0

    rides = (
        RideRequest.objects
        .select_for_update()
        .filter(Q(customer_id=user_id) | Q(driver_id=user_id))
        .filter(status__in=RideRequest.ACTIVE_STATUSES)
    )

    updated = 0
    for ride in rides:
        changed = []
        if ride.customer_id == user_id:
            changed += apply_projection(ride, customer_projection(user))
        # Driver fields are only copied once the driver has accepted
        if ride.driver_id == user_id and ride.status not in (
            RideRequest.STATUS_PENDING_MATCH,
            RideRequest.STATUS_PENDING_ACCEPTANCE,
        ):
            changed += apply_projection(ride, driver_projection(user))
        if changed:
            ride.save(update_fields=changed)
            updated += 1

    if updated:
        logger.info("Refreshed display fields of %s ride(s) for user %s", updated, user_id)
    return updated
