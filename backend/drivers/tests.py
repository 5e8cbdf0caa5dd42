from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from common.exceptions import FailedPreconditionError, InvalidArgumentError
from kijiwe.models import QueueEntry
from rides.models import RideRequest
from rides.tests.helpers import make_customer, make_driver, make_kijiwe, make_ride

from . import services
from .models import DriverProfile
from .views import DriverAvailabilityView, DriverCurrentRideView, DriverProfileView, DriverRideHistoryView


class AvailabilityServiceTests(TestCase):
	def setUp(self):
		self.kijiwe = make_kijiwe('Posta', 1)
		self.driver = make_driver(status=DriverProfile.STATUS_OFFLINE, is_online=False)
		self.profile = self.driver.driver_profile

	def test_go_online_joins_queue(self):
		profile = services.go_online(self.profile, self.kijiwe)

		self.assertTrue(profile.is_online)
		self.assertEqual(profile.status, DriverProfile.STATUS_WAITING)
		self.assertEqual(profile.kijiwe, self.kijiwe)
		self.assertTrue(QueueEntry.objects.filter(driver=self.driver, kijiwe=self.kijiwe).exists())

	def test_go_online_defaults_to_home_kijiwe(self):
		DriverProfile.objects.filter(pk=self.profile.pk).update(kijiwe=self.kijiwe)

		services.go_online(self.profile)

		self.assertTrue(QueueEntry.objects.filter(driver=self.driver, kijiwe=self.kijiwe).exists())

	def test_go_online_without_kijiwe_is_invalid(self):
		with self.assertRaises(InvalidArgumentError):
			services.go_online(self.profile)

	def test_go_offline_leaves_queue(self):
		services.go_online(self.profile, self.kijiwe)
		profile = services.go_offline(self.profile)

		self.assertFalse(profile.is_online)
		self.assertEqual(profile.status, DriverProfile.STATUS_OFFLINE)
		self.assertFalse(QueueEntry.objects.filter(driver=self.driver).exists())

	def test_busy_driver_cannot_change_availability(self):
		DriverProfile.objects.filter(pk=self.profile.pk).update(status=DriverProfile.STATUS_ON_RIDE)

		with self.assertRaises(FailedPreconditionError):
			services.go_offline(self.profile)
		with self.assertRaises(FailedPreconditionError):
			services.go_online(self.profile, self.kijiwe)

	def test_switching_kijiwe_moves_driver(self):
		other = make_kijiwe('Kariakoo', 2)
		services.go_online(self.profile, self.kijiwe)
		services.go_online(self.profile, other)

		self.assertEqual(QueueEntry.objects.get(driver=self.driver).kijiwe, other)


class DriverViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.kijiwe = make_kijiwe('Posta', 1)
		self.driver = make_driver(status=DriverProfile.STATUS_OFFLINE, is_online=False)

	def _call(self, view, method, user, data=None):
		request = getattr(self.factory, method)('/api/driver/', data, format='json')
		force_authenticate(request, user=user)
		return view.as_view()(request)

	def test_customer_is_refused(self):
		response = self._call(DriverProfileView, 'get', make_customer())
		self.assertEqual(response.status_code, 403)

	def test_profile_update(self):
		response = self._call(DriverProfileView, 'post', self.driver, {'vehicle_number': 'T-999'})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['vehicle_number'], 'T-999')

	def test_go_online_through_api(self):
		response = self._call(DriverAvailabilityView, 'post', self.driver, {
			'is_online': True,
			'kijiwe_id': self.kijiwe.id,
		})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['status'], DriverProfile.STATUS_WAITING)
		self.assertTrue(QueueEntry.objects.filter(driver=self.driver).exists())

	def test_unknown_kijiwe_is_not_found(self):
		response = self._call(DriverAvailabilityView, 'post', self.driver, {'is_online': True, 'kijiwe_id': 9999})
		self.assertEqual(response.status_code, 404)

	def test_busy_driver_gets_conflict(self):
		DriverProfile.objects.filter(user=self.driver).update(status=DriverProfile.STATUS_ON_RIDE)

		response = self._call(DriverAvailabilityView, 'post', self.driver, {'is_online': False})

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'failed-precondition')

	def test_current_ride_and_history(self):
		customer = make_customer()
		make_ride(customer, driver=self.driver, status=RideRequest.STATUS_COMPLETED)
		current = make_ride(customer, driver=self.driver, status=RideRequest.STATUS_ON_RIDE)

		response = self._call(DriverCurrentRideView, 'get', self.driver)
		self.assertEqual(response.data['id'], current.id)

		response = self._call(DriverRideHistoryView, 'get', self.driver)
		self.assertEqual(response.data['count'], 1)

	def test_no_current_ride(self):
		response = self._call(DriverCurrentRideView, 'get', self.driver)
		self.assertEqual(response.status_code, 404)
