"""
Push notification kinds.

Each kind is a small dataclass with a fixed set of typed fields. The
relay turns it into a title, a body and a string-only data map whose
``type`` entry is the kind tag the mobile apps switch on.
"""

import json
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, List, Optional


@dataclass
class PushNotification:
    """Base class; subclasses set ``kind`` and implement title/body."""
    kind: ClassVar[str] = "generic"

    # Fields listed here are not copied into the data map
    exclude_from_data: ClassVar[tuple] = ()

    @property
    def title(self) -> str:
        raise NotImplementedError

    @property
    def body(self) -> str:
        raise NotImplementedError

    def data(self) -> Dict[str, Any]:
        payload = {
            _camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if f.name not in self.exclude_from_data
        }
        payload["type"] = self.kind
        return payload


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass
class RideOfferNotification(PushNotification):
    """Sent to the driver a ride has just been offered to."""
    kind: ClassVar[str] = "ride_offer"

    ride_request_id: int
    customer_id: Optional[int]
    customer_name: str
    customer_profile_image_url: Optional[str]
    customer_details: str
    pickup_address_name: str
    dropoff_address_name: str
    pickup_lat: Any
    pickup_lng: Any
    dropoff_lat: Any
    dropoff_lng: Any
    customer_note_to_driver: str
    estimated_fare: str
    stops: List[Dict[str, Any]] = field(default_factory=list)
    status: str = "pending_driver_acceptance"

    title = "New Ride Request!"
    body = "You have a new ride assignment."

    def data(self) -> Dict[str, Any]:
        payload = super().data()
        # Push data values must be strings; the app decodes the list
        payload["stops"] = json.dumps(self.stops)
        return payload


@dataclass
class RideAcceptedNotification(PushNotification):
    """Sent to the customer once a driver accepts."""
    kind: ClassVar[str] = "ride_accepted"

    ride_request_id: int
    driver_name: str
    driver_profile_image_url: Optional[str]
    driver_gender: str
    driver_age_group: str
    driver_license_number: str
    driver_vehicle_type: str
    customer_note_to_driver: str
    pickup_address_name: str
    dropoff_address_name: str
    status: str = "accepted"

    title = "Driver Found!"

    @property
    def body(self) -> str:
        return f"{self.driver_name} is on the way to pick you up."


@dataclass
class RideDeclinedNotification(PushNotification):
    kind: ClassVar[str] = "ride_declined"

    ride_request_id: int
    status: str = "declined_by_driver"

    title = "Ride Update"
    body = "The driver declined the ride. Please try requesting again."


@dataclass
class DriverArrivedNotification(PushNotification):
    kind: ClassVar[str] = "driver_arrived"

    ride_request_id: int
    driver_name: str
    status: str = "arrivedAtPickup"

    title = "Driver Arrived!"

    @property
    def body(self) -> str:
        return f"{self.driver_name} has arrived at your pickup location."


@dataclass
class RideStartedNotification(PushNotification):
    kind: ClassVar[str] = "ride_started"
    exclude_from_data: ClassVar[tuple] = ("driver_name",)

    ride_request_id: int
    driver_name: str
    status: str = "onRide"

    title = "Ride Started"

    @property
    def body(self) -> str:
        return f"Your ride with {self.driver_name} has started."


@dataclass
class RideCompletedNotification(PushNotification):
    kind: ClassVar[str] = "ride_completed"

    ride_request_id: int
    fare: Any
    currency: str = "TZS"
    status: str = "completed"

    title = "Ride Completed!"
    body = "Your ride has been completed. Thank you!"


@dataclass
class RideCancelledByDriverNotification(PushNotification):
    kind: ClassVar[str] = "ride_cancelled_by_driver"
    exclude_from_data: ClassVar[tuple] = ("driver_name",)

    ride_request_id: int
    driver_name: str
    status: str = "cancelled_by_driver"

    title = "Ride Cancelled"

    @property
    def body(self) -> str:
        return f"Your ride has been cancelled by {self.driver_name}."


@dataclass
class NoDriversAvailableNotification(PushNotification):
    """Sent to the customer when dispatch finds nobody."""
    kind: ClassVar[str] = "no_drivers_available"

    ride_request_id: int
    kijiwe_id: Optional[int] = None
    status: str = "no_drivers_available"

    title = "No Drivers Available"
    body = "No drivers are available near you right now. Please try again shortly."


@dataclass
class ChatMessageNotification(PushNotification):
    kind: ClassVar[str] = "chat_message"
    exclude_from_data: ClassVar[tuple] = ("sender_name", "text")

    ride_request_id: int
    sender_id: int
    sender_name: str
    text: str

    @property
    def title(self) -> str:
        return f"New message from {self.sender_name}"

    @property
    def body(self) -> str:
        return self.text


@dataclass
class UserNotification(PushNotification):
    """Inbox notification created for a user by staff or other services."""
    kind: ClassVar[str] = "user_management_notification"
    exclude_from_data: ClassVar[tuple] = ("notification_title", "notification_body")

    notification_id: int
    notification_title: str
    notification_body: str

    @property
    def title(self) -> str:
        return self.notification_title

    @property
    def body(self) -> str:
        return self.notification_body
