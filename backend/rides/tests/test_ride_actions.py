from decimal import Decimal
from unittest.mock import Mock, patch

from django.contrib.auth.models import AnonymousUser
from django.test import TestCase, TransactionTestCase

from accounts.models import CustomerProfile
from common.exceptions import (
	FailedPreconditionError,
	InternalError,
	InvalidArgumentError,
	NotFoundError,
	PermissionDeniedError,
	UnauthenticatedError,
)
from drivers.models import DriverProfile
from kijiwe.models import QueueEntry
from notifications.messages import (
	RideAcceptedNotification,
	RideCancelledByDriverNotification,
	RideCompletedNotification,
	RideDeclinedNotification,
)
from rides.models import RideRequest
from notifications.relay import PushRelay
from services.ride_management import RideActionHandler, RideActionRequest

from .helpers import make_customer, make_driver, make_fare_config, make_kijiwe, make_ride


class RideActionTestCase(TestCase):
	def setUp(self):
		self.relay = Mock()
		self.handler = RideActionHandler(relay=self.relay)
		self.customer = make_customer()
		self.kijiwe = make_kijiwe('Posta', 1)
		self.driver = make_driver(kijiwe=self.kijiwe, status=DriverProfile.STATUS_PENDING_ACCEPTANCE)
		QueueEntry.objects.create(kijiwe=self.kijiwe, driver=self.driver)
		self.ride = make_ride(
			self.customer,
			driver=self.driver,
			kijiwe=self.kijiwe,
			status=RideRequest.STATUS_PENDING_ACCEPTANCE,
		)

	def act(self, action, user=None, **fields):
		request = RideActionRequest(ride_request_id=str(self.ride.id), action=action, **fields)
		with self.captureOnCommitCallbacks(execute=True):
			result = self.handler.handle(user or self.driver, request)
		self.ride.refresh_from_db()
		return result

	def profile(self):
		return DriverProfile.objects.get(user=self.driver)

	def customer_profile(self):
		return CustomerProfile.objects.get(user=self.customer)

	def last_notification(self):
		user_id, message = self.relay.notify.call_args[0]
		self.assertEqual(user_id, self.customer.id)
		return message


class RideLifecycleTests(RideActionTestCase):
	def test_full_lifecycle_with_actuals(self):
		make_fare_config()

		result = self.act('accept')
		self.assertTrue(result.success)
		self.assertEqual(result.message, "Action 'accept' successful.")
		self.assertEqual(self.ride.status, RideRequest.STATUS_ACCEPTED)

		self.act('arrivedAtPickup')
		self.assertEqual(self.ride.status, RideRequest.STATUS_ARRIVED)
		self.assertEqual(self.profile().status, DriverProfile.STATUS_ARRIVED)

		self.act('startRide')
		self.assertEqual(self.ride.status, RideRequest.STATUS_ON_RIDE)
		self.assertEqual(self.profile().status, DriverProfile.STATUS_ON_RIDE)

		self.act(
			'completeRide',
			actual_distance_km=10,
			actual_driving_minutes=20,
			actual_waiting_minutes=2,
		)

		self.assertEqual(self.ride.status, RideRequest.STATUS_COMPLETED)
		self.assertIsNotNone(self.ride.completed_at)
		self.assertEqual(self.ride.fare, Decimal('5250'))
		self.assertEqual(self.ride.commission_amount, Decimal('1024'))
		self.assertEqual(self.ride.driver_earnings, Decimal('4096'))
		self.assertEqual(self.ride.actual_distance_km, Decimal('10'))
		self.assertEqual(self.ride.actual_total_waiting_time_minutes, Decimal('2'))
		self.assertEqual(self.ride.fare_config_used['currency'], 'TZS')

		profile = self.profile()
		self.assertEqual(profile.status, DriverProfile.STATUS_WAITING)
		self.assertEqual(profile.completed_rides_count, 1)
		self.assertEqual(self.customer_profile().completed_rides_count, 1)
		# Back at the end of the home kijiwe queue
		self.assertTrue(QueueEntry.objects.filter(driver=self.driver, kijiwe=self.kijiwe).exists())

		message = self.last_notification()
		self.assertIsInstance(message, RideCompletedNotification)
		self.assertEqual(message.fare, Decimal('5250'))

	def test_accept_copies_driver_fields_and_leaves_queue(self):
		self.act('accept')

		self.assertIsNotNone(self.ride.accepted_at)
		self.assertEqual(self.ride.driver_name, 'Juma')
		self.assertEqual(self.ride.driver_license_number, 'DL-driver')
		self.assertEqual(self.ride.driver_vehicle_type, 'Bajaji')
		self.assertEqual(self.ride.driver_age_group, 'Unknown')
		self.assertEqual(self.profile().status, DriverProfile.STATUS_GOING_TO_PICKUP)
		self.assertFalse(QueueEntry.objects.filter(driver=self.driver).exists())

		message = self.last_notification()
		self.assertIsInstance(message, RideAcceptedNotification)
		self.assertEqual(message.body, 'Juma is on the way to pick you up.')

	def test_decline_returns_driver_to_waiting(self):
		self.act('decline')

		self.assertEqual(self.ride.status, RideRequest.STATUS_DECLINED)
		self.assertEqual(self.ride.driver, self.driver)
		profile = self.profile()
		self.assertEqual(profile.status, DriverProfile.STATUS_WAITING)
		self.assertEqual(profile.declined_by_driver_count, 1)
		self.assertIsInstance(self.last_notification(), RideDeclinedNotification)

	def test_cancel_after_accept(self):
		self.act('accept')
		self.act('cancelRideByDriver')

		self.assertEqual(self.ride.status, RideRequest.STATUS_CANCELLED_BY_DRIVER)
		profile = self.profile()
		self.assertEqual(profile.status, DriverProfile.STATUS_WAITING)
		self.assertEqual(profile.cancelled_by_driver_count, 1)
		self.assertEqual(self.customer_profile().rides_cancelled_by_driver_count, 1)
		self.assertTrue(QueueEntry.objects.filter(driver=self.driver, kijiwe=self.kijiwe).exists())
		self.assertIsInstance(self.last_notification(), RideCancelledByDriverNotification)

	def test_complete_falls_back_to_ride_kijiwe(self):
		DriverProfile.objects.filter(user=self.driver).update(kijiwe=None)
		RideRequest.objects.filter(id=self.ride.id).update(status=RideRequest.STATUS_ON_RIDE)
		DriverProfile.objects.filter(user=self.driver).update(status=DriverProfile.STATUS_ON_RIDE)
		QueueEntry.objects.filter(driver=self.driver).delete()

		self.act('completeRide')

		self.assertTrue(QueueEntry.objects.filter(driver=self.driver, kijiwe=self.kijiwe).exists())

	def test_complete_uses_customer_estimate_without_actuals(self):
		RideRequest.objects.filter(id=self.ride.id).update(
			status=RideRequest.STATUS_ON_RIDE,
			customer_calculated_estimated_fare=Decimal('3100'),
		)

		self.act('completeRide')

		self.assertEqual(self.ride.fare, Decimal('3250'))
		self.assertEqual(self.ride.commission_amount, Decimal('620'))
		self.assertEqual(self.ride.driver_earnings, Decimal('2480'))

	@patch('services.ride_management.ride_actions.broadcast_ride_status')
	def test_status_change_is_broadcast_after_commit(self, mock_broadcast):
		self.act('accept')

		mock_broadcast.assert_called_once_with(
			self.ride.id, RideRequest.STATUS_ACCEPTED, RideRequest.STATUS_PENDING_ACCEPTANCE
		)


class RideActionGuardTests(RideActionTestCase):
	def test_start_before_arrival_is_refused(self):
		self.act('accept')

		with self.assertRaises(FailedPreconditionError):
			self.act('startRide')

		self.assertEqual(self.ride.status, RideRequest.STATUS_ACCEPTED)

	def test_each_action_is_refused_in_the_wrong_state(self):
		RideRequest.objects.filter(id=self.ride.id).update(status=RideRequest.STATUS_COMPLETED)
		for action in ('accept', 'decline', 'arrivedAtPickup', 'startRide', 'completeRide', 'cancelRideByDriver'):
			with self.subTest(action=action):
				with self.assertRaises(FailedPreconditionError):
					self.act(action)

	def test_other_driver_is_refused(self):
		other = make_driver('other')

		with self.assertRaises(FailedPreconditionError):
			self.act('accept', user=other)

		self.assertEqual(self.ride.status, RideRequest.STATUS_PENDING_ACCEPTANCE)

	def test_cancel_refused_once_on_ride(self):
		RideRequest.objects.filter(id=self.ride.id).update(status=RideRequest.STATUS_ON_RIDE)

		with self.assertRaises(FailedPreconditionError):
			self.act('cancelRideByDriver')

	def test_refused_action_does_not_notify(self):
		with self.assertRaises(FailedPreconditionError):
			self.act('startRide')

		self.relay.notify.assert_not_called()


class RideActionValidationTests(RideActionTestCase):
	def test_anonymous_caller(self):
		with self.assertRaises(UnauthenticatedError):
			self.handler.handle(AnonymousUser(), RideActionRequest(ride_request_id='1', action='accept'))

	def test_missing_fields(self):
		with self.assertRaises(InvalidArgumentError):
			self.handler.handle(self.driver, RideActionRequest(ride_request_id='', action='accept'))
		with self.assertRaises(InvalidArgumentError):
			self.handler.handle(self.driver, RideActionRequest(ride_request_id='1', action=None))

	def test_customer_caller_is_refused_before_reading_ride(self):
		with self.assertRaises(PermissionDeniedError):
			self.handler.handle(self.customer, RideActionRequest(ride_request_id='999', action='accept'))

	def test_unknown_action(self):
		with self.assertRaises(InvalidArgumentError):
			self.act('teleport')

	def test_unknown_ride(self):
		with self.assertRaises(NotFoundError):
			self.handler.handle(self.driver, RideActionRequest(ride_request_id='999999', action='accept'))
		with self.assertRaises(NotFoundError):
			self.handler.handle(self.driver, RideActionRequest(ride_request_id='abc', action='accept'))

	def test_unexpected_error_is_wrapped(self):
		with patch('services.ride_management.ride_actions.leave_queues', side_effect=RuntimeError('boom')):
			with self.assertRaises(InternalError) as ctx:
				self.act('accept')

		self.assertEqual(ctx.exception.details, 'boom')
		# Nothing from the failed transaction is kept
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideRequest.STATUS_PENDING_ACCEPTANCE)

	def test_payload_uses_camel_case(self):
		request = RideActionRequest.from_payload({
			'rideRequestId': '7',
			'action': 'completeRide',
			'actualDistanceKm': 3,
			'actualDrivingDurationMinutes': 9,
			'actualTotalWaitingTimeMinutes': 1,
		})

		self.assertEqual(request.ride_request_id, '7')
		self.assertEqual(request.actual_distance_km, 3)
		self.assertEqual(request.actual_driving_minutes, 9)
		self.assertEqual(request.actual_waiting_minutes, 1)


class RateCustomerTests(RideActionTestCase):
	def setUp(self):
		super().setUp()
		RideRequest.objects.filter(id=self.ride.id).update(status=RideRequest.STATUS_COMPLETED)

	def test_rating_is_accumulated(self):
		self.act('rateCustomer', rating=4, comment='Polite')

		self.assertEqual(self.ride.driver_rating_to_customer, 4)
		self.assertEqual(self.ride.driver_comment_to_customer, 'Polite')
		profile = self.customer_profile()
		self.assertEqual(profile.sum_of_ratings_received, 4)
		self.assertEqual(profile.total_ratings_received_count, 1)
		self.assertEqual(profile.average_rating, 4.0)

	def test_integer_valued_float_is_accepted(self):
		self.act('rateCustomer', rating=5.0)
		self.assertEqual(self.ride.driver_rating_to_customer, 5)

	def test_fractional_rating_is_accepted(self):
		self.act('rateCustomer', rating=4.5)

		self.assertEqual(self.ride.driver_rating_to_customer, Decimal('4.50'))
		profile = self.customer_profile()
		self.assertEqual(profile.sum_of_ratings_received, Decimal('4.50'))
		self.assertEqual(profile.average_rating, 4.5)

	def test_fractional_ratings_average(self):
		self.act('rateCustomer', rating=3.5)
		other = make_ride(
			self.customer,
			driver=self.driver,
			kijiwe=self.kijiwe,
			status=RideRequest.STATUS_COMPLETED,
		)
		request = RideActionRequest(ride_request_id=str(other.id), action='rateCustomer', rating=4.75)
		with self.captureOnCommitCallbacks(execute=True):
			self.handler.handle(self.driver, request)

		profile = self.customer_profile()
		self.assertEqual(profile.sum_of_ratings_received, Decimal('8.25'))
		self.assertEqual(profile.total_ratings_received_count, 2)
		self.assertAlmostEqual(profile.average_rating, 4.125)

	def test_out_of_range_ratings_are_refused(self):
		for rating in (0, 0.99, 5.01, 6, float('nan'), float('inf'), None, '5', True):
			with self.subTest(rating=rating):
				with self.assertRaises(InvalidArgumentError):
					self.act('rateCustomer', rating=rating)

		self.assertEqual(self.customer_profile().total_ratings_received_count, 0)

	def test_second_rating_is_refused(self):
		self.act('rateCustomer', rating=3)

		with self.assertRaises(FailedPreconditionError):
			self.act('rateCustomer', rating=5)

		self.assertEqual(self.customer_profile().sum_of_ratings_received, 3)

	def test_rating_before_completion_is_refused(self):
		RideRequest.objects.filter(id=self.ride.id).update(status=RideRequest.STATUS_ON_RIDE)

		with self.assertRaises(FailedPreconditionError):
			self.act('rateCustomer', rating=5)


class DeliveryFailureTests(TransactionTestCase):
	def setUp(self):
		self.customer = make_customer(fcm_token='customer-device')
		self.kijiwe = make_kijiwe('Posta', 1)
		self.driver = make_driver(kijiwe=self.kijiwe, status=DriverProfile.STATUS_PENDING_ACCEPTANCE)
		self.ride = make_ride(
			self.customer,
			driver=self.driver,
			kijiwe=self.kijiwe,
			status=RideRequest.STATUS_PENDING_ACCEPTANCE,
		)

	def accept(self, relay):
		handler = RideActionHandler(relay=relay)
		return handler.handle(self.driver, RideActionRequest(ride_request_id=str(self.ride.id), action='accept'))

	def test_push_client_error_does_not_fail_committed_action(self):
		client = Mock()
		client.send.side_effect = RuntimeError('fcm credentials expired')

		result = self.accept(PushRelay(client=client))

		self.assertTrue(result.success)
		client.send.assert_called_once()
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideRequest.STATUS_ACCEPTED)

	def test_relay_error_does_not_fail_committed_action(self):
		relay = Mock()
		relay.notify.side_effect = RuntimeError('relay down')

		result = self.accept(relay)

		self.assertTrue(result.success)
		relay.notify.assert_called_once()
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideRequest.STATUS_ACCEPTED)
