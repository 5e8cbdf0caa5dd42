from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.contrib.auth.models import AnonymousUser
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework.test import APIRequestFactory, force_authenticate

from common.exceptions import (
	InvalidArgumentError,
	NotFoundError,
	PermissionDeniedError,
	UnauthenticatedError,
)
from rides.models import RideRequest
from rides.tests.helpers import make_customer, make_driver
from services.scheduling import ScheduledRideProcessor, manage_scheduled_ride

from .models import ScheduledRide
from .tasks import process_scheduled_rides_task
from .views import manage_ride, scheduled_rides

EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)
# A Monday
NOW = datetime(2026, 1, 5, 6, 0, tzinfo=dt_timezone.utc)


def make_scheduled(customer, when, **extra):
	values = {
		'title': 'Kazini',
		'pickup_latitude': Decimal('-6.816100'),
		'pickup_longitude': Decimal('39.280300'),
		'pickup_address_name': 'Mikocheni',
		'dropoff_address_name': 'Posta',
		'scheduled_date_time': when,
	}
	values.update(extra)
	return ScheduledRide.objects.create(customer=customer, **values)


def make_recurring(customer, first, end, recurrence_type=ScheduledRide.RECURRENCE_DAILY, days=None, **extra):
	return make_scheduled(
		customer,
		first,
		is_recurring=True,
		recurrence_type=recurrence_type,
		recurrence_days_of_week=days,
		recurrence_end_date=end,
		**extra
	)


class ActivationTests(TestCase):
	def setUp(self):
		self.customer = make_customer()
		self.processor = ScheduledRideProcessor()

	def test_due_ride_becomes_ride_request(self):
		due = make_scheduled(self.customer, NOW + timedelta(minutes=10))

		result = self.processor.run(now=NOW)

		self.assertEqual(result.activated, 1)
		due.refresh_from_db()
		self.assertEqual(due.status, ScheduledRide.STATUS_ACTIVATED)

		ride = RideRequest.objects.get(scheduled_ride=due)
		self.assertEqual(ride.customer, self.customer)
		self.assertEqual(ride.status, RideRequest.STATUS_PENDING_MATCH)
		self.assertEqual(ride.title, 'Kazini')
		self.assertEqual(ride.pickup_address_name, 'Mikocheni')
		self.assertEqual(ride.pickup_latitude, Decimal('-6.816100'))

	def test_rides_outside_the_window_are_left(self):
		later = make_scheduled(self.customer, NOW + timedelta(minutes=20))
		past = make_scheduled(self.customer, NOW - timedelta(minutes=1))
		cancelled = make_scheduled(self.customer, NOW + timedelta(minutes=5), status=ScheduledRide.STATUS_CANCELLED)

		result = self.processor.run(now=NOW)

		self.assertEqual(result.activated, 0)
		for scheduled in (later, past, cancelled):
			scheduled.refresh_from_db()
		self.assertEqual(later.status, ScheduledRide.STATUS_SCHEDULED)
		self.assertEqual(past.status, ScheduledRide.STATUS_SCHEDULED)
		self.assertFalse(RideRequest.objects.exists())

	def test_activation_is_not_repeated(self):
		make_scheduled(self.customer, NOW + timedelta(minutes=10))

		self.processor.run(now=NOW)
		self.processor.run(now=NOW + timedelta(minutes=5))

		self.assertEqual(RideRequest.objects.count(), 1)

	@patch('services.matching.dispatch_ride_request')
	def test_activated_ride_is_dispatched(self, mock_dispatch):
		make_scheduled(self.customer, NOW + timedelta(minutes=10))

		with self.captureOnCommitCallbacks(execute=True):
			self.processor.run(now=NOW)

		mock_dispatch.assert_called_once_with(RideRequest.objects.get().id)


class RecurrenceTests(TestCase):
	def setUp(self):
		self.customer = make_customer()
		self.processor = ScheduledRideProcessor()

	def instance_times(self, master):
		return list(master.instances.order_by('scheduled_date_time').values_list('scheduled_date_time', flat=True))

	def test_weekly_generates_configured_weekdays_within_horizon(self):
		master = make_recurring(
			self.customer,
			NOW.replace(hour=8),
			NOW + timedelta(days=10),
			recurrence_type=ScheduledRide.RECURRENCE_WEEKLY,
			days=['Mon', 'Wed'],
			last_instance_generated_up_to=EPOCH,
		)

		result = self.processor.run(now=NOW)

		self.assertEqual(result.generated, 2)
		self.assertEqual(result.masters_advanced, 1)
		self.assertEqual(self.instance_times(master), [
			datetime(2026, 1, 5, 8, 0, tzinfo=dt_timezone.utc),
			datetime(2026, 1, 7, 8, 0, tzinfo=dt_timezone.utc),
		])
		master.refresh_from_db()
		self.assertEqual(master.last_instance_generated_up_to, NOW + timedelta(days=7))

		instance = master.instances.first()
		self.assertFalse(instance.is_recurring)
		self.assertIsNone(instance.recurrence_type)
		self.assertEqual(instance.status, ScheduledRide.STATUS_SCHEDULED)
		self.assertEqual(instance.title, 'Kazini')

	def test_watermark_advances_to_end_date_without_new_instances(self):
		master = make_recurring(
			self.customer,
			NOW.replace(hour=8),
			NOW + timedelta(days=10),
			recurrence_type=ScheduledRide.RECURRENCE_WEEKLY,
			days=['Mon', 'Wed'],
			last_instance_generated_up_to=NOW + timedelta(days=7),
		)
		later = NOW + timedelta(days=9, hours=3)

		result = self.processor.run(now=later)

		self.assertEqual(result.generated, 0)
		self.assertEqual(result.masters_advanced, 1)
		master.refresh_from_db()
		self.assertEqual(master.last_instance_generated_up_to, NOW + timedelta(days=10))

	def test_daily_generates_one_per_day(self):
		master = make_recurring(self.customer, NOW.replace(hour=8), NOW + timedelta(days=30))

		result = self.processor.run(now=NOW)

		self.assertEqual(result.generated, 7)
		times = self.instance_times(master)
		self.assertEqual(times[0], datetime(2026, 1, 5, 8, 0, tzinfo=dt_timezone.utc))
		self.assertEqual(times[-1], datetime(2026, 1, 11, 8, 0, tzinfo=dt_timezone.utc))

	def test_repeated_sweeps_do_not_duplicate(self):
		master = make_recurring(self.customer, NOW.replace(hour=8), NOW + timedelta(days=30))

		self.processor.run(now=NOW)
		result = self.processor.run(now=NOW + timedelta(minutes=5))

		self.assertEqual(master.instances.count(), 7)
		self.assertEqual(result.generated, 0)

	def test_next_sweep_extends_the_horizon(self):
		master = make_recurring(self.customer, NOW.replace(hour=8), NOW + timedelta(days=30))

		self.processor.run(now=NOW)
		self.processor.run(now=NOW + timedelta(days=1))

		self.assertEqual(master.instances.count(), 8)

	def test_first_occurrence_in_the_future_is_respected(self):
		master = make_recurring(self.customer, NOW + timedelta(days=3, hours=2), NOW + timedelta(days=30))

		self.processor.run(now=NOW)

		times = self.instance_times(master)
		self.assertEqual(times[0], NOW + timedelta(days=3, hours=2))
		self.assertEqual(len(times), 4)

	def test_misconfigured_and_ended_masters_are_skipped(self):
		missing_type = make_recurring(self.customer, NOW.replace(hour=8), NOW + timedelta(days=30), recurrence_type=None)
		missing_end = make_recurring(self.customer, NOW.replace(hour=8), None)
		ended = make_recurring(
			self.customer,
			NOW - timedelta(days=20),
			NOW - timedelta(days=1),
			last_instance_generated_up_to=EPOCH,
		)

		result = self.processor.run(now=NOW)

		self.assertEqual(result.generated, 0)
		self.assertEqual(result.masters_advanced, 0)
		for master in (missing_type, missing_end, ended):
			master.refresh_from_db()
			self.assertFalse(master.instances.exists())
		self.assertEqual(ended.last_instance_generated_up_to, EPOCH)
		self.assertIsNone(missing_type.last_instance_generated_up_to)

	@override_settings(TIME_ZONE='Africa/Dar_es_Salaam')
	def test_weekdays_follow_local_time(self):
		# Monday 22:30 UTC is Tuesday 01:30 in Dar es Salaam
		first = datetime(2026, 1, 5, 22, 30, tzinfo=dt_timezone.utc)
		master = make_recurring(
			self.customer,
			first,
			first + timedelta(days=10),
			recurrence_type=ScheduledRide.RECURRENCE_WEEKLY,
			days=['Tue'],
		)

		self.processor.run(now=datetime(2026, 1, 5, 20, 0, tzinfo=dt_timezone.utc))

		self.assertEqual(self.instance_times(master), [first])


class ManageScheduledRideTests(TestCase):
	def setUp(self):
		self.customer = make_customer()
		self.ride = make_scheduled(self.customer, NOW + timedelta(days=1))

	def test_owner_edits_ride(self):
		result = manage_scheduled_ride(self.customer, 'edit', str(self.ride.id), {
			'title': 'Shule',
			'scheduled_date_time': '2026-01-07T07:15:00Z',
		})

		self.assertEqual(result, {'success': True, 'message': 'Scheduled ride updated successfully.'})
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.title, 'Shule')
		self.assertEqual(self.ride.scheduled_date_time, datetime(2026, 1, 7, 7, 15, tzinfo=dt_timezone.utc))

	def test_invalid_datetime_is_rejected(self):
		with self.assertRaises(InvalidArgumentError):
			manage_scheduled_ride(self.customer, 'edit', self.ride.id, {'scheduled_date_time': 'tomorrow-ish'})

	def test_edit_requires_ride_data(self):
		with self.assertRaises(InvalidArgumentError):
			manage_scheduled_ride(self.customer, 'edit', self.ride.id)

	def test_owner_deletes_ride(self):
		result = manage_scheduled_ride(self.customer, 'delete', self.ride.id)

		self.assertTrue(result['success'])
		self.assertFalse(ScheduledRide.objects.filter(id=self.ride.id).exists())

	def test_deleting_master_removes_pending_instances_only(self):
		master = make_recurring(self.customer, NOW.replace(hour=8), NOW + timedelta(days=30))
		pending = make_scheduled(self.customer, NOW + timedelta(days=2), master=master)
		activated = make_scheduled(
			self.customer, NOW - timedelta(days=1), master=master, status=ScheduledRide.STATUS_ACTIVATED
		)

		manage_scheduled_ride(self.customer, 'delete', master.id)

		self.assertFalse(ScheduledRide.objects.filter(id__in=[master.id, pending.id]).exists())
		activated.refresh_from_db()
		self.assertIsNone(activated.master)

	def test_other_user_is_refused(self):
		with self.assertRaises(PermissionDeniedError):
			manage_scheduled_ride(make_customer('other'), 'delete', self.ride.id)
		self.assertTrue(ScheduledRide.objects.filter(id=self.ride.id).exists())

	def test_unknown_ride(self):
		with self.assertRaises(NotFoundError):
			manage_scheduled_ride(self.customer, 'delete', 999999)

	def test_missing_arguments_and_unknown_action(self):
		with self.assertRaises(InvalidArgumentError):
			manage_scheduled_ride(self.customer, None, self.ride.id)
		with self.assertRaises(InvalidArgumentError):
			manage_scheduled_ride(self.customer, 'archive', self.ride.id)

	def test_anonymous_caller(self):
		with self.assertRaises(UnauthenticatedError):
			manage_scheduled_ride(AnonymousUser(), 'delete', self.ride.id)


class ScheduledRideViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.customer = make_customer()

	def _post(self, view, path, user, data):
		request = self.factory.post(path, data, format='json')
		force_authenticate(request, user=user)
		return view(request)

	def test_customer_schedules_recurring_ride(self):
		response = self._post(scheduled_rides, '/api/scheduled-rides/', self.customer, {
			'title': 'Kazini',
			'pickup_latitude': -6.8161,
			'pickup_longitude': 39.2803,
			'scheduled_date_time': '2026-01-05T08:00:00Z',
			'is_recurring': True,
			'recurrence_type': 'Weekly',
			'recurrence_days_of_week': ['Mon', 'Wed'],
			'recurrence_end_date': '2026-02-05T08:00:00Z',
		})

		self.assertEqual(response.status_code, 201)
		scheduled = ScheduledRide.objects.get(id=response.data['id'])
		self.assertEqual(scheduled.customer, self.customer)
		self.assertEqual(scheduled.recurrence_days_of_week, ['Mon', 'Wed'])

	def test_recurring_ride_needs_end_date(self):
		response = self._post(scheduled_rides, '/api/scheduled-rides/', self.customer, {
			'pickup_latitude': 0,
			'pickup_longitude': 0,
			'scheduled_date_time': '2026-01-05T08:00:00Z',
			'is_recurring': True,
			'recurrence_type': 'Daily',
		})

		self.assertEqual(response.status_code, 400)

	def test_unknown_weekday_is_rejected(self):
		response = self._post(scheduled_rides, '/api/scheduled-rides/', self.customer, {
			'pickup_latitude': 0,
			'pickup_longitude': 0,
			'scheduled_date_time': '2026-01-05T08:00:00Z',
			'is_recurring': True,
			'recurrence_type': 'Weekly',
			'recurrence_days_of_week': ['Funday'],
			'recurrence_end_date': '2026-02-05T08:00:00Z',
		})

		self.assertEqual(response.status_code, 400)

	def test_driver_cannot_schedule(self):
		response = self._post(scheduled_rides, '/api/scheduled-rides/', make_driver(), {
			'pickup_latitude': 0,
			'pickup_longitude': 0,
			'scheduled_date_time': '2026-01-05T08:00:00Z',
		})
		self.assertEqual(response.status_code, 403)

	def test_list_shows_only_own_rides(self):
		make_scheduled(self.customer, NOW)
		make_scheduled(make_customer('other'), NOW)

		request = self.factory.get('/api/scheduled-rides/')
		force_authenticate(request, user=self.customer)
		response = scheduled_rides(request)

		self.assertEqual(len(response.data), 1)

	def test_manage_endpoint_maps_errors(self):
		ride = make_scheduled(make_customer('other'), NOW)

		response = self._post(manage_ride, '/api/scheduled-rides/manage/', self.customer, {
			'action': 'delete',
			'rideId': str(ride.id),
		})

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['error'], 'permission-denied')


class SweepEntryPointTests(TestCase):
	def test_task_reports_counts(self):
		make_scheduled(make_customer(), NOW + timedelta(minutes=10))

		with patch('django.utils.timezone.now', return_value=NOW):
			result = process_scheduled_rides_task()

		self.assertEqual(result, {'activated': 1, 'generated': 0, 'masters_advanced': 0})

	def test_management_command(self):
		out = StringIO()
		call_command('process_scheduled_rides', stdout=out)
		self.assertIn('Activated 0 ride(s)', out.getvalue())
