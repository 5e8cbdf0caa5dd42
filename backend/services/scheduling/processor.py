"""
Periodic sweep over scheduled rides.

Each run makes two passes inside one transaction:

1. Activation - one-off rides due within the activation window become
   ride requests (the creation trigger then dispatches them)
2. Recurrence - recurring masters are expanded into dated one-off
   instances up to a rolling cutoff, and their watermark is advanced
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from rides.models import RideRequest
from scheduled_rides.models import ScheduledRide

logger = logging.getLogger(__name__)

# Copied onto ride requests and generated instances
TRIP_FIELDS = (
    "title",
    "pickup_latitude",
    "pickup_longitude",
    "pickup_address_name",
    "dropoff_latitude",
    "dropoff_longitude",
    "dropoff_address_name",
    "stops",
    "customer_note_to_driver",
)


@dataclass
class SweepResult:
    activated: int = 0
    generated: int = 0
    masters_advanced: int = 0


class ScheduledRideProcessor:
    """
    Activates due scheduled rides and materializes recurring ones.

    Args:
        activation_window: How far ahead one-off rides are activated
        generation_horizon: How far ahead recurring instances are generated
    """

    def __init__(self, activation_window: Optional[timedelta] = None,
                 generation_horizon: Optional[timedelta] = None):
        self.activation_window = activation_window or timedelta(
            minutes=getattr(settings, "SCHEDULED_RIDE_ACTIVATION_WINDOW_MINUTES", 15)
        )
        self.generation_horizon = generation_horizon or timedelta(
            days=getattr(settings, "SCHEDULED_RIDE_GENERATION_DAYS", 7)
        )

    def run(self, now: Optional[datetime] = None) -> SweepResult:
        now = now or timezone.now()
        result = SweepResult()

        with transaction.atomic():
            result.activated = self._activate_due(now)
            for master in self._recurring_masters():
                generated = self._expand(master, now)
                if generated is None:
                    continue
                result.generated += generated
                result.masters_advanced += 1

        if result.activated or result.generated:
            logger.info(
                "Scheduled ride sweep: activated %s ride(s), generated %s recurring instance(s)",
                result.activated, result.generated,
            )
        else:
            logger.info("Scheduled ride sweep: nothing to activate or generate")
        return result

    # ---------------------- Activation ----------------------

    def _activate_due(self, now: datetime) -> int:
        due = (
            ScheduledRide.objects
            .select_for_update(skip_locked=True)
            .filter(
                status=ScheduledRide.STATUS_SCHEDULED,
                is_recurring=False,
                scheduled_date_time__gte=now,
                scheduled_date_time__lte=now + self.activation_window,
            )
        )

        count = 0
        for scheduled in due:
            ride = RideRequest.objects.create(
                customer_id=scheduled.customer_id,
                scheduled_ride=scheduled,
                status=RideRequest.STATUS_PENDING_MATCH,
                **{name: getattr(scheduled, name) for name in TRIP_FIELDS},
            )
            scheduled.status = ScheduledRide.STATUS_ACTIVATED
            scheduled.save(update_fields=["status", "updated_at"])
            logger.info("Activated scheduled ride %s as ride request %s", scheduled.id, ride.id)
            count += 1
        return count

    # ---------------------- Recurrence ----------------------

    def _recurring_masters(self):
        return (
            ScheduledRide.objects
            .select_for_update(skip_locked=True)
            .filter(status=ScheduledRide.STATUS_SCHEDULED, is_recurring=True)
        )

    def _expand(self, master: ScheduledRide, now: datetime) -> Optional[int]:
        """
        Generate the instances of one master.

        Returns the number generated, or None when the master was skipped
        and its watermark left alone.
        """
        if not master.recurrence_type or not master.recurrence_end_date:
            logger.info("Recurring ride %s is misconfigured; skipping", master.id)
            return None
        if master.recurrence_end_date < now:
            logger.info("Recurring ride %s has ended; skipping", master.id)
            return None

        limit = min(now + self.generation_horizon, master.recurrence_end_date)

        count = 0
        for occurrence in self.occurrences(master, now, limit):
            ScheduledRide.objects.create(
                customer_id=master.customer_id,
                master=master,
                scheduled_date_time=occurrence,
                status=ScheduledRide.STATUS_SCHEDULED,
                is_recurring=False,
                **{name: getattr(master, name) for name in TRIP_FIELDS},
            )
            logger.info("Generated instance for recurring ride %s at %s", master.id, occurrence.isoformat())
            count += 1

        master.last_instance_generated_up_to = limit
        master.save(update_fields=["last_instance_generated_up_to", "updated_at"])
        return count

    @staticmethod
    def occurrences(master: ScheduledRide, now: datetime, limit: datetime) -> Iterator[datetime]:
        """
        Yield the master's occurrences up to ``limit``.

        Occurrences fall at the master's local time of day. They must be
        later than the watermark and no earlier than both the master's
        first occurrence and ``now``.
        """
        tz = timezone.get_current_timezone()
        first = master.scheduled_date_time
        watermark = master.last_instance_generated_up_to
        time_of_day = timezone.localtime(first, tz).time()
        days = set(master.recurrence_days_of_week or [])

        start = max(first, now)
        day = timezone.localtime(start, tz).date()
        last_day = timezone.localtime(limit, tz).date()

        while day <= last_day:
            weekday = ScheduledRide.WEEKDAY_ABBREVIATIONS[day.weekday()]
            candidate = timezone.make_aware(datetime.combine(day, time_of_day), tz)
            day += timedelta(days=1)

            if candidate < start or candidate > limit:
                continue
            if watermark is not None and candidate <= watermark:
                continue
            if master.recurrence_type == ScheduledRide.RECURRENCE_WEEKLY:
                if weekday not in days:
                    continue
            elif master.recurrence_type != ScheduledRide.RECURRENCE_DAILY:
                continue
            yield candidate


def process_scheduled_rides(now: Optional[datetime] = None) -> SweepResult:
    """Entry point used by the periodic task and the management command."""
    return ScheduledRideProcessor().run(now=now)

