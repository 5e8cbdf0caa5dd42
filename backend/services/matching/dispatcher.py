"""
Kijiwe dispatch for new ride requests.

A new ride is offered to the first available driver found by walking the
queues of the kijiwes nearest to the pickup point:

1. Copy the customer's display fields onto the ride
2. Rank kijiwes with a position by distance from the pickup
3. Walk the queues of the nearest few, oldest entry first
4. Claim the first online driver who is waiting for a ride
5. Push the offer to that driver, or tell the customer nobody is free
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from django.conf import settings
from django.db import DatabaseError, transaction

from common.utils.geo import calculate_distance
from drivers.models import DriverProfile
from kijiwe.models import Kijiwe
from kijiwe.services import queue_driver_ids
from notifications.messages import NoDriversAvailableNotification, RideOfferNotification
from notifications.relay import PushRelay, get_relay
from realtime.broadcast import broadcast_ride_status
from rides.models import RideRequest
from services.fares import estimate_fare, load_fare_settings
from services.projections import customer_projection

logger = logging.getLogger(__name__)

DEFAULT_MAX_KIJIWES = 7


@dataclass
class DispatchResult:
    """Outcome of one dispatch run."""
    ride_id: int
    status: Optional[str] = None
    driver_id: Optional[int] = None
    kijiwe_id: Optional[int] = None
    kijiwes_scanned: List[int] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.driver_id is not None


class RideDispatcher:
    """
    Offers new ride requests to drivers waiting at nearby kijiwes.

    Args:
        relay: Push relay; the process default when omitted
        max_kijiwes: How many of the nearest kijiwes to scan
    """

    def __init__(self, relay: Optional[PushRelay] = None, max_kijiwes: Optional[int] = None):
        self.relay = relay or get_relay()
        self.max_kijiwes = max_kijiwes or getattr(settings, "DISPATCH_MAX_KIJIWES", DEFAULT_MAX_KIJIWES)

    def dispatch(self, ride_id: int) -> DispatchResult:
        """
        Match one ride request.

        Never raises: the trigger has no caller to report to, so failures
        end in a terminal ride status or a log entry.
        """
        result = DispatchResult(ride_id=ride_id)
        try:
            return self._dispatch(ride_id, result)
        except Exception:
            logger.exception("Dispatch failed for ride %s", ride_id)
            return result

    # ---------------------- Steps ----------------------

    def _dispatch(self, ride_id: int, result: DispatchResult) -> DispatchResult:
        ride = (
            RideRequest.objects
            .select_related("customer__customer_profile")
            .filter(id=ride_id)
            .first()
        )
        if ride is None:
            logger.warning("Ride request %s not found for dispatch", ride_id)
            return result

        if ride.status != RideRequest.STATUS_PENDING_MATCH:
            logger.info("Ride request %s is '%s', not pending a match; skipping", ride_id, ride.status)
            result.status = ride.status
            return result

        projection = customer_projection(ride.customer)
        RideRequest.objects.filter(id=ride_id).update(**projection)
        for name, value in projection.items():
            setattr(ride, name, value)

        if not ride.has_pickup:
            logger.error("Ride request %s is missing its pickup location", ride_id)
            return self._finish(ride, result, RideRequest.STATUS_MISSING_PICKUP)

        try:
            ranked = self._rank_kijiwes(ride)
        except DatabaseError:
            logger.exception("Error fetching kijiwes for ride %s", ride_id)
            return self._finish(ride, result, RideRequest.STATUS_KIJIWE_FETCH_ERROR)

        if not ranked:
            logger.info("No kijiwes with a position found for ride %s", ride_id)
            return self._finish(ride, result, RideRequest.STATUS_NO_KIJIWES)

        for distance, kijiwe in ranked[:self.max_kijiwes]:
            result.kijiwes_scanned.append(kijiwe.id)
            logger.info("Checking kijiwe %s (%s) at %.2f km for ride %s", kijiwe.name, kijiwe.id, distance, ride_id)

            driver_ids = queue_driver_ids(kijiwe)
            if not driver_ids:
                logger.debug("Kijiwe %s queue is empty", kijiwe.id)
                continue

            for driver_id in driver_ids:
                claimed = self._claim(ride_id, driver_id, kijiwe)
                if claimed is None:
                    # Ride left pending_match while we were scanning
                    result.status = RideRequest.objects.filter(id=ride_id).values_list("status", flat=True).first()
                    return result
                if claimed:
                    result.status = RideRequest.STATUS_PENDING_ACCEPTANCE
                    result.driver_id = driver_id
                    result.kijiwe_id = kijiwe.id
                    logger.info("Assigned ride %s to driver %s from kijiwe %s", ride_id, driver_id, kijiwe.id)
                    transaction.on_commit(lambda: self._after_match(ride, driver_id), robust=True)
                    return result

        nearest = ranked[0][1]
        logger.info(
            "No available driver found for ride %s after checking %s kijiwe(s)",
            ride_id, len(result.kijiwes_scanned),
        )
        return self._finish(ride, result, RideRequest.STATUS_NO_DRIVERS, kijiwe=nearest)

    def _rank_kijiwes(self, ride: RideRequest) -> List[Tuple[float, Kijiwe]]:
        pickup_lat = float(ride.pickup_latitude)
        pickup_lng = float(ride.pickup_longitude)

        ranked = []
        for kijiwe in Kijiwe.objects.all():
            if not kijiwe.has_position:
                logger.warning("Kijiwe %s is missing a valid position", kijiwe.id)
                continue
            distance = calculate_distance(
                pickup_lat, pickup_lng, float(kijiwe.latitude), float(kijiwe.longitude)
            )
            ranked.append((distance, kijiwe))

        ranked.sort(key=lambda item: (item[0], item[1].id))
        return ranked

    @transaction.atomic
    def _claim(self, ride_id: int, driver_id: int, kijiwe: Kijiwe) -> Optional[bool]:
        """
        Offer the ride to one driver if they are still free.

        The driver is claimed with a conditional update on their current
        status, so two dispatch runs can never both take the same driver.

        Returns:
            True when claimed, False when the driver is not available,
            None when the ride is no longer pending a match
        """
        ride = RideRequest.objects.select_for_update().filter(id=ride_id).first()
        if ride is None or ride.status != RideRequest.STATUS_PENDING_MATCH:
            return None

        claimed = (
            DriverProfile.objects
            .filter(user_id=driver_id, is_online=True, status=DriverProfile.STATUS_WAITING)
            .update(status=DriverProfile.STATUS_PENDING_ACCEPTANCE)
        )
        if not claimed:
            logger.debug("Driver %s in kijiwe %s queue is not available", driver_id, kijiwe.id)
            return False

        ride.status = RideRequest.STATUS_PENDING_ACCEPTANCE
        ride.driver_id = driver_id
        ride.kijiwe = kijiwe
        ride.save(update_fields=["status", "driver", "kijiwe"])
        return True

    def _finish(self, ride: RideRequest, result: DispatchResult, status: str, kijiwe: Optional[Kijiwe] = None):
        updates = {"status": status}
        if kijiwe is not None:
            updates["kijiwe"] = kijiwe
            result.kijiwe_id = kijiwe.id

        updated = (
            RideRequest.objects
            .filter(id=ride.id, status=RideRequest.STATUS_PENDING_MATCH)
            .update(**updates)
        )
        if not updated:
            logger.info("Ride %s changed during dispatch; terminal status not recorded", ride.id)
            result.status = RideRequest.objects.filter(id=ride.id).values_list("status", flat=True).first()
            return result

        result.status = status
        transaction.on_commit(lambda: self._after_terminal(ride, status, result.kijiwe_id), robust=True)
        return result

    # ---------------------- Notifications ----------------------

    def _offer_fare(self, ride: RideRequest) -> str:
        if ride.customer_calculated_estimated_fare is not None:
            fare = ride.customer_calculated_estimated_fare
        else:
            fare = estimate_fare(
                load_fare_settings(),
                ride.estimated_distance_km or 0,
                ride.estimated_duration_minutes or 0,
            )
        return f"{float(fare):.2f}"

    def _after_terminal(self, ride: RideRequest, status: str, kijiwe_id: Optional[int]):
        broadcast_ride_status(ride.id, status, RideRequest.STATUS_PENDING_MATCH)
        if status == RideRequest.STATUS_NO_DRIVERS:
            self.relay.notify(
                ride.customer_id,
                NoDriversAvailableNotification(ride_request_id=ride.id, kijiwe_id=kijiwe_id),
            )

    def _after_match(self, ride: RideRequest, driver_id: int):
        broadcast_ride_status(
            ride.id,
            RideRequest.STATUS_PENDING_ACCEPTANCE,
            RideRequest.STATUS_PENDING_MATCH,
            extra={"driver_id": driver_id},
        )
        offer = RideOfferNotification(
            ride_request_id=ride.id,
            customer_id=ride.customer_id,
            customer_name=ride.customer_name,
            customer_profile_image_url=ride.customer_profile_image_url,
            customer_details=ride.customer_details,
            pickup_address_name=ride.pickup_address_name,
            dropoff_address_name=ride.dropoff_address_name,
            pickup_lat=ride.pickup_latitude,
            pickup_lng=ride.pickup_longitude,
            dropoff_lat=ride.dropoff_latitude,
            dropoff_lng=ride.dropoff_longitude,
            customer_note_to_driver=ride.customer_note_to_driver,
            estimated_fare=self._offer_fare(ride),
            stops=ride.stops or [],
        )
        self.relay.notify(driver_id, offer)


def dispatch_ride_request(ride_id: int, relay: Optional[PushRelay] = None) -> DispatchResult:
    """Entry point used by the ride creation task."""
    return RideDispatcher(relay=relay).dispatch(ride_id)
