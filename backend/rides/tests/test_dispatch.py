from unittest.mock import Mock, patch

from django.db import DatabaseError
from django.test import TestCase

from drivers.models import DriverProfile
from notifications.messages import NoDriversAvailableNotification, RideOfferNotification
from rides.models import RideRequest
from services.matching import RideDispatcher

from .helpers import make_customer, make_driver, make_kijiwe, make_ride


class DispatchTests(TestCase):
	def setUp(self):
		self.relay = Mock()
		self.dispatcher = RideDispatcher(relay=self.relay)
		self.customer = make_customer(gender='Female')
		self.ride = make_ride(self.customer, customer_calculated_estimated_fare='4500.00')

	def _dispatch(self):
		with self.captureOnCommitCallbacks(execute=True):
			result = self.dispatcher.dispatch(self.ride.id)
		self.ride.refresh_from_db()
		return result

	def test_assigns_driver_from_nearest_kijiwe(self):
		near_driver = make_driver('near')
		far_driver = make_driver('far')
		near = make_kijiwe('Near', 1, queue=[near_driver])
		far = make_kijiwe('Far', 5, queue=[far_driver])

		result = self._dispatch()

		self.assertTrue(result.matched)
		self.assertEqual(result.kijiwes_scanned, [near.id])
		self.assertEqual(self.ride.status, RideRequest.STATUS_PENDING_ACCEPTANCE)
		self.assertEqual(self.ride.driver, near_driver)
		self.assertEqual(self.ride.kijiwe, near)

		near_driver.driver_profile.refresh_from_db()
		far_driver.driver_profile.refresh_from_db()
		self.assertEqual(near_driver.driver_profile.status, DriverProfile.STATUS_PENDING_ACCEPTANCE)
		self.assertEqual(far_driver.driver_profile.status, DriverProfile.STATUS_WAITING)
		self.assertNotEqual(self.ride.kijiwe, far)

	def test_offer_is_pushed_to_matched_driver(self):
		driver = make_driver()
		make_kijiwe('Near', 1, queue=[driver])

		self._dispatch()

		self.relay.notify.assert_called_once()
		user_id, offer = self.relay.notify.call_args[0]
		self.assertEqual(user_id, driver.id)
		self.assertIsInstance(offer, RideOfferNotification)
		self.assertEqual(offer.estimated_fare, '4500.00')
		self.assertEqual(offer.data()['type'], 'ride_offer')

	def test_offer_falls_back_to_server_estimate(self):
		self.ride.customer_calculated_estimated_fare = None
		self.ride.estimated_distance_km = 10
		self.ride.estimated_duration_minutes = 20
		self.ride.save()
		driver = make_driver()
		make_kijiwe('Near', 1, queue=[driver])

		self._dispatch()

		offer = self.relay.notify.call_args[0][1]
		# 300 + 3500 + 1200 = 5000
		self.assertEqual(offer.estimated_fare, '5000.00')

	def test_customer_fields_are_copied_before_matching(self):
		self._dispatch()

		self.assertEqual(self.ride.customer_name, 'Amina')
		self.assertEqual(self.ride.customer_details, 'Female')

	def test_skips_offline_and_busy_drivers(self):
		offline = make_driver('offline', status=DriverProfile.STATUS_OFFLINE, is_online=False)
		busy = make_driver('busy', status=DriverProfile.STATUS_GOING_TO_PICKUP)
		free = make_driver('free')
		make_kijiwe('Near', 1, queue=[offline, busy, free])

		result = self._dispatch()

		self.assertEqual(result.driver_id, free.id)
		self.assertEqual(self.ride.driver, free)
		busy.driver_profile.refresh_from_db()
		self.assertEqual(busy.driver_profile.status, DriverProfile.STATUS_GOING_TO_PICKUP)

	def test_queue_entry_without_driver_profile_is_skipped(self):
		customer_in_queue = make_customer('stray')
		free = make_driver('free')
		make_kijiwe('Near', 1, queue=[customer_in_queue, free])

		result = self._dispatch()

		self.assertEqual(result.driver_id, free.id)

	def test_no_drivers_records_nearest_kijiwe(self):
		nearest = make_kijiwe('Near', 1)
		make_kijiwe('Far', 5)

		result = self._dispatch()

		self.assertFalse(result.matched)
		self.assertEqual(self.ride.status, RideRequest.STATUS_NO_DRIVERS)
		self.assertEqual(self.ride.kijiwe, nearest)
		self.assertIsNone(self.ride.driver)

		user_id, message = self.relay.notify.call_args[0]
		self.assertEqual(user_id, self.customer.id)
		self.assertIsInstance(message, NoDriversAvailableNotification)
		self.assertEqual(message.kijiwe_id, nearest.id)

	def test_scans_at_most_seven_kijiwes(self):
		for km in range(1, 8):
			make_kijiwe('K%d' % km, km)
		driver = make_driver()
		make_kijiwe('Eighth', 8, queue=[driver])

		result = self._dispatch()

		self.assertEqual(len(result.kijiwes_scanned), 7)
		self.assertEqual(self.ride.status, RideRequest.STATUS_NO_DRIVERS)
		driver.driver_profile.refresh_from_db()
		self.assertEqual(driver.driver_profile.status, DriverProfile.STATUS_WAITING)

	def test_kijiwe_without_position_is_ignored(self):
		unplaced = make_kijiwe('Nowhere', 1, queue=[make_driver()])
		unplaced.latitude = None
		unplaced.save()

		result = self._dispatch()

		self.assertEqual(self.ride.status, RideRequest.STATUS_NO_KIJIWES)
		self.assertEqual(result.kijiwes_scanned, [])

	def test_missing_pickup_short_circuits(self):
		self.ride.pickup_latitude = None
		self.ride.save()
		make_kijiwe('Near', 1, queue=[make_driver()])

		result = self._dispatch()

		self.assertEqual(self.ride.status, RideRequest.STATUS_MISSING_PICKUP)
		self.assertEqual(result.kijiwes_scanned, [])
		self.relay.notify.assert_not_called()

	def test_kijiwe_fetch_error_is_recorded(self):
		with patch.object(RideDispatcher, '_rank_kijiwes', side_effect=DatabaseError('down')):
			self._dispatch()

		self.assertEqual(self.ride.status, RideRequest.STATUS_KIJIWE_FETCH_ERROR)

	def test_ride_not_pending_match_is_left_alone(self):
		self.ride.status = RideRequest.STATUS_COMPLETED
		self.ride.save()
		make_kijiwe('Near', 1, queue=[make_driver()])

		result = self._dispatch()

		self.assertEqual(result.status, RideRequest.STATUS_COMPLETED)
		self.assertEqual(self.ride.status, RideRequest.STATUS_COMPLETED)
		self.relay.notify.assert_not_called()


class RideCreationTriggerTests(TestCase):
	@patch('services.matching.dispatch_ride_request')
	def test_new_ride_is_dispatched_after_commit(self, mock_dispatch):
		customer = make_customer()

		with self.captureOnCommitCallbacks(execute=True):
			ride = make_ride(customer)

		mock_dispatch.assert_called_once_with(ride.id)

	@patch('services.matching.dispatch_ride_request')
	def test_saving_an_existing_ride_does_not_dispatch(self, mock_dispatch):
		ride = make_ride(make_customer())

		with self.captureOnCommitCallbacks(execute=True):
			ride.pickup_address_name = 'Mnazi Mmoja'
			ride.save()

		mock_dispatch.assert_not_called()
