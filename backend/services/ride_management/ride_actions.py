"""
Driver ride actions.

The assigned driver moves a ride through its lifecycle:

    pending_driver_acceptance -> accepted -> arrivedAtPickup -> onRide -> completed

with ``decline`` and ``cancelRideByDriver`` as side exits and
``rateCustomer`` once the ride is completed. Each action locks the ride,
applies every correlated write (ride, driver profile, customer profile,
kijiwe queue) in one transaction, and only after commit broadcasts the
new status and pushes a notification to the customer.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Mapping, Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import CustomerProfile
from common.exceptions import (
    InternalError,
    InvalidArgumentError,
    ServiceError,
    UnauthenticatedError,
)
from drivers.models import DriverProfile
from kijiwe.services import leave_queues, return_to_queue
from notifications.messages import (
    DriverArrivedNotification,
    PushNotification,
    RideAcceptedNotification,
    RideCancelledByDriverNotification,
    RideCompletedNotification,
    RideDeclinedNotification,
    RideStartedNotification,
)
from notifications.relay import PushRelay, get_relay
from realtime.broadcast import broadcast_ride_status
from rides.models import RideRequest
from services.fares import FareSettings, finalize_fare, load_fare_settings
from services.projections import apply_projection, driver_projection

from .exceptions import (
    NotADriverError,
    RideActionNotAllowedError,
    RideNotFoundError,
    UnknownRideActionError,
)

logger = logging.getLogger(__name__)

ACTION_ACCEPT = "accept"
ACTION_DECLINE = "decline"
ACTION_ARRIVED = "arrivedAtPickup"
ACTION_START = "startRide"
ACTION_COMPLETE = "completeRide"
ACTION_CANCEL = "cancelRideByDriver"
ACTION_RATE = "rateCustomer"

KILOMETRES = Decimal("0.001")
MINUTES = Decimal("0.01")
RATING_STEP = Decimal("0.01")


@dataclass
class RideActionRequest:
    """One driver action on a ride."""
    ride_request_id: Any
    action: Optional[str]
    rating: Optional[Any] = None
    comment: Optional[str] = None
    actual_distance_km: Optional[Any] = None
    actual_driving_minutes: Optional[Any] = None
    actual_waiting_minutes: Optional[Any] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "RideActionRequest":
        """Build from the app's camelCase request body."""
        return cls(
            ride_request_id=data.get("rideRequestId"),
            action=data.get("action"),
            rating=data.get("rating"),
            comment=data.get("comment"),
            actual_distance_km=data.get("actualDistanceKm"),
            actual_driving_minutes=data.get("actualDrivingDurationMinutes"),
            actual_waiting_minutes=data.get("actualTotalWaitingTimeMinutes"),
        )


@dataclass
class RideActionResult:
    """Result object for ride actions."""
    success: bool
    message: str = ""
    ride: Optional[RideRequest] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message}


class RideActionHandler:
    """
    Applies driver actions to rides.

    Args:
        relay: Push relay for customer notifications
        fare_settings_loader: Returns the FareSettings used on completion
        clock: Returns the current time
    """

    def __init__(
        self,
        relay: Optional[PushRelay] = None,
        fare_settings_loader: Callable[[], FareSettings] = load_fare_settings,
        clock: Callable[[], Any] = timezone.now,
    ):
        self.relay = relay or get_relay()
        self.fare_settings_loader = fare_settings_loader
        self.clock = clock
        self.actions = {
            ACTION_ACCEPT: self._accept,
            ACTION_DECLINE: self._decline,
            ACTION_ARRIVED: self._arrived,
            ACTION_START: self._start,
            ACTION_COMPLETE: self._complete,
            ACTION_CANCEL: self._cancel,
            ACTION_RATE: self._rate,
        }

    def handle(self, caller, request: RideActionRequest) -> RideActionResult:
        """
        Perform one action for the calling driver.

        Raises:
            UnauthenticatedError: no caller
            InvalidArgumentError: missing ride id or action, unknown action, bad rating
            PermissionDeniedError: caller is not a driver
            NotFoundError: ride does not exist
            FailedPreconditionError: ride status or assigned driver forbids the action
            InternalError: anything unexpected, with the original message in ``details``
        """
        self.authorize(caller, request)

        perform = self.actions.get(request.action)
        if perform is None:
            raise UnknownRideActionError("Unknown action specified.")

        ride_id = self._parse_ride_id(request.ride_request_id)
        try:
            with transaction.atomic():
                ride = RideRequest.objects.select_for_update().filter(id=ride_id).first()
                if ride is None:
                    raise RideNotFoundError(f"Ride request {request.ride_request_id} not found.")
                profile = DriverProfile.objects.select_for_update().get(user=caller)

                previous_status = ride.status
                notification = perform(ride, caller, profile, request)
                self._after_commit(ride, previous_status, notification)
        except ServiceError:
            raise
        except Exception as exc:
            logger.exception(
                "Error performing action '%s' for driver %s on ride %s",
                request.action, caller.pk, request.ride_request_id,
            )
            raise InternalError("An internal error occurred.", details=str(exc)) from exc

        logger.info("Driver %s performed action '%s' on ride %s", caller.pk, request.action, ride.id)
        return RideActionResult(
            success=True,
            message=f"Action '{request.action}' successful.",
            ride=ride,
        )

    @staticmethod
    def authorize(caller, request: RideActionRequest):
        """Caller checks that run before anything about the ride is read."""
        if caller is None or not caller.is_authenticated:
            raise UnauthenticatedError("The function must be called while authenticated.")
        if not request.ride_request_id or not request.action:
            raise InvalidArgumentError("Missing rideRequestId or action.")
        if not caller.is_driver or not DriverProfile.objects.filter(user=caller).exists():
            raise NotADriverError("User is not authorized to perform this action (not a Driver).")

    # ---------------------- Helpers ----------------------

    @staticmethod
    def _parse_ride_id(value) -> int:
        try:
            return int(str(value))
        except ValueError:
            raise RideNotFoundError(f"Ride request {value} not found.")

    @staticmethod
    def _require(ride: RideRequest, caller, statuses, message: str):
        if ride.driver_id != caller.pk or ride.status not in statuses:
            raise RideActionNotAllowedError(message)

    def _after_commit(self, ride: RideRequest, previous_status: str, notification: Optional[PushNotification]):
        ride_id, status, customer_id = ride.id, ride.status, ride.customer_id
        if status != previous_status:
            transaction.on_commit(lambda: broadcast_ride_status(ride_id, status, previous_status), robust=True)
        if notification is not None and customer_id:
            transaction.on_commit(lambda: self.relay.notify(customer_id, notification), robust=True)

    @staticmethod
    def _bump_customer(ride: RideRequest, **increments):
        if not ride.customer_id:
            return
        profile, _ = CustomerProfile.objects.get_or_create(user_id=ride.customer_id)
        CustomerProfile.objects.filter(pk=profile.pk).update(
            **{name: F(name) + amount for name, amount in increments.items()}
        )

    @staticmethod
    def _return_driver(caller, profile: DriverProfile, ride: RideRequest):
        # Home kijiwe first, else the kijiwe the ride was matched from
        return_to_queue(caller, profile.kijiwe_id or ride.kijiwe_id)

    # ---------------------- Actions ----------------------

    def _accept(self, ride, caller, profile, request):
        self._require(
            ride, caller, (RideRequest.STATUS_PENDING_ACCEPTANCE,),
            "Ride cannot be accepted by this driver or is not in the correct state.",
        )
        projection = driver_projection(caller)
        apply_projection(ride, projection)
        ride.status = RideRequest.STATUS_ACCEPTED
        ride.accepted_at = self.clock()
        ride.save(update_fields=["status", "accepted_at", *projection.keys()])

        profile.status = DriverProfile.STATUS_GOING_TO_PICKUP
        profile.save(update_fields=["status"])
        leave_queues(caller)

        return RideAcceptedNotification(
            ride_request_id=ride.id,
            driver_name=projection["driver_name"],
            driver_profile_image_url=projection["driver_profile_image_url"],
            driver_gender=projection["driver_gender"],
            driver_age_group=projection["driver_age_group"],
            driver_license_number=projection["driver_license_number"],
            driver_vehicle_type=projection["driver_vehicle_type"],
            customer_note_to_driver=ride.customer_note_to_driver,
            pickup_address_name=ride.pickup_address_name,
            dropoff_address_name=ride.dropoff_address_name,
        )

    def _decline(self, ride, caller, profile, request):
        self._require(ride, caller, (RideRequest.STATUS_PENDING_ACCEPTANCE,), "Ride cannot be declined.")
        # The driver reference is kept to record who declined
        ride.status = RideRequest.STATUS_DECLINED
        ride.save(update_fields=["status"])

        profile.status = DriverProfile.STATUS_WAITING
        profile.declined_by_driver_count = F("declined_by_driver_count") + 1
        profile.save(update_fields=["status", "declined_by_driver_count"])

        return RideDeclinedNotification(ride_request_id=ride.id)

    def _arrived(self, ride, caller, profile, request):
        self._require(
            ride, caller, (RideRequest.STATUS_ACCEPTED,),
            "Cannot confirm arrival. Ride not accepted by this driver or not in 'accepted' state.",
        )
        ride.status = RideRequest.STATUS_ARRIVED
        ride.save(update_fields=["status"])

        profile.status = DriverProfile.STATUS_ARRIVED
        profile.save(update_fields=["status"])

        return DriverArrivedNotification(ride_request_id=ride.id, driver_name=caller.name or "Your driver")

    def _start(self, ride, caller, profile, request):
        self._require(
            ride, caller, (RideRequest.STATUS_ARRIVED,),
            "Cannot start ride. Ride not at pickup or not assigned to this driver.",
        )
        ride.status = RideRequest.STATUS_ON_RIDE
        ride.save(update_fields=["status"])

        profile.status = DriverProfile.STATUS_ON_RIDE
        profile.save(update_fields=["status"])

        return RideStartedNotification(ride_request_id=ride.id, driver_name=caller.name or "Your driver")

    def _complete(self, ride, caller, profile, request):
        self._require(ride, caller, (RideRequest.STATUS_ON_RIDE,), "Cannot complete ride.")

        fare_settings = self.fare_settings_loader()
        breakdown = finalize_fare(
            fare_settings,
            ride,
            request.actual_distance_km,
            request.actual_driving_minutes,
            request.actual_waiting_minutes,
        )
        logger.info(
            "Ride %s fare (%s): subtotal=%s before_commission=%s fare=%s commission=%s earnings=%s",
            ride.id, breakdown.source, breakdown.subtotal, breakdown.fare_before_commission,
            breakdown.fare, breakdown.commission_amount, breakdown.driver_earnings,
        )

        ride.status = RideRequest.STATUS_COMPLETED
        ride.completed_at = self.clock()
        ride.fare = breakdown.fare
        ride.commission_amount = breakdown.commission_amount
        ride.driver_earnings = breakdown.driver_earnings
        ride.fare_config_used = fare_settings.as_dict()
        ride.actual_distance_km = breakdown.distance_km.quantize(KILOMETRES)
        ride.actual_driving_duration_minutes = breakdown.driving_minutes.quantize(MINUTES)
        ride.actual_total_waiting_time_minutes = breakdown.waiting_minutes.quantize(MINUTES)
        ride.save(update_fields=[
            "status", "completed_at", "fare", "commission_amount", "driver_earnings",
            "fare_config_used", "actual_distance_km", "actual_driving_duration_minutes",
            "actual_total_waiting_time_minutes",
        ])

        profile.status = DriverProfile.STATUS_WAITING
        profile.completed_rides_count = F("completed_rides_count") + 1
        profile.save(update_fields=["status", "completed_rides_count"])
        self._bump_customer(ride, completed_rides_count=1)
        self._return_driver(caller, profile, ride)

        return RideCompletedNotification(
            ride_request_id=ride.id,
            fare=breakdown.fare,
            currency=fare_settings.currency,
        )

    def _cancel(self, ride, caller, profile, request):
        self._require(
            ride, caller, (RideRequest.STATUS_ACCEPTED, RideRequest.STATUS_ARRIVED),
            "Ride cannot be cancelled by driver at this stage.",
        )
        ride.status = RideRequest.STATUS_CANCELLED_BY_DRIVER
        ride.save(update_fields=["status"])

        profile.status = DriverProfile.STATUS_WAITING
        profile.cancelled_by_driver_count = F("cancelled_by_driver_count") + 1
        profile.save(update_fields=["status", "cancelled_by_driver_count"])
        self._bump_customer(ride, rides_cancelled_by_driver_count=1)
        self._return_driver(caller, profile, ride)

        return RideCancelledByDriverNotification(ride_request_id=ride.id, driver_name=caller.name or "The driver")

    def _rate(self, ride, caller, profile, request):
        self._require(ride, caller, (RideRequest.STATUS_COMPLETED,), "Cannot rate customer for this ride.")

        rating = request.rating
        if isinstance(rating, bool) or not isinstance(rating, (int, float, Decimal)):
            raise InvalidArgumentError("Rating must be a number between 1 and 5.")
        rating = Decimal(str(rating))
        if not rating.is_finite() or not 1 <= rating <= 5:
            raise InvalidArgumentError("Rating must be a number between 1 and 5.")
        if ride.driver_rating_to_customer is not None:
            raise RideActionNotAllowedError("Customer has already been rated for this ride.")

        rating = rating.quantize(RATING_STEP, rounding=ROUND_HALF_UP)
        ride.driver_rating_to_customer = rating
        ride.driver_comment_to_customer = request.comment or None
        ride.save(update_fields=["driver_rating_to_customer", "driver_comment_to_customer"])
        self._bump_customer(ride, sum_of_ratings_received=rating, total_ratings_received_count=1)

        return None


def handle_driver_ride_action(caller, payload: Mapping[str, Any], relay: Optional[PushRelay] = None) -> RideActionResult:
    """Entry point for the driver action endpoint."""
    return RideActionHandler(relay=relay).handle(caller, RideActionRequest.from_payload(payload))
