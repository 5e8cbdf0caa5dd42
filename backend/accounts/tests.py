from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from drivers.models import DriverProfile
from kijiwe.models import QueueEntry
from rides.models import RideRequest
from rides.tests.helpers import make_customer, make_driver, make_kijiwe, make_ride

from .models import CustomerProfile, User
from .views import DeleteAccountView, DeviceTokenView, MeView, RegisterView


class RegisterTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def _register(self, data):
		request = self.factory.post('/api/auth/register/', data, format='json')
		return RegisterView.as_view()(request)

	def test_customer_registration_creates_customer_profile(self):
		response = self._register({
			'username': 'amina',
			'password': 'pass1234',
			'role': 'customer',
			'name': 'Amina',
		})

		self.assertEqual(response.status_code, 201)
		self.assertIn('access', response.data['tokens'])
		user = User.objects.get(username='amina')
		self.assertTrue(CustomerProfile.objects.filter(user=user).exists())

	def test_driver_registration_needs_license(self):
		response = self._register({'username': 'juma', 'password': 'pass1234', 'role': 'driver'})

		self.assertEqual(response.status_code, 400)
		self.assertFalse(User.objects.filter(username='juma').exists())

	def test_driver_registration_creates_driver_profile(self):
		response = self._register({
			'username': 'juma',
			'password': 'pass1234',
			'role': 'driver',
			'license_number': 'DL-1',
			'vehicle_type': 'Bajaji',
		})

		self.assertEqual(response.status_code, 201)
		profile = DriverProfile.objects.get(user__username='juma')
		self.assertEqual(profile.license_number, 'DL-1')
		self.assertEqual(profile.status, DriverProfile.STATUS_OFFLINE)


class DeviceTokenTests(TestCase):
	def test_token_is_stored_and_cleared(self):
		user = make_customer()
		factory = APIRequestFactory()

		request = factory.put('/api/auth/device-token/', {'fcm_token': 'abc123'}, format='json')
		force_authenticate(request, user=user)
		response = DeviceTokenView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		user.refresh_from_db()
		self.assertEqual(user.fcm_token, 'abc123')

		request = factory.put('/api/auth/device-token/', {'fcm_token': ''}, format='json')
		force_authenticate(request, user=user)
		DeviceTokenView.as_view()(request)

		user.refresh_from_db()
		self.assertIsNone(user.fcm_token)


class DeleteAccountTests(TestCase):
	def test_delete_removes_user_and_keeps_ride_history(self):
		driver = make_driver()
		make_kijiwe('Posta', 1, queue=[driver])
		ride = make_ride(make_customer(), driver=driver, status=RideRequest.STATUS_COMPLETED)

		request = APIRequestFactory().post('/api/auth/delete-account/')
		force_authenticate(request, user=driver)
		response = DeleteAccountView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data, {'success': True, 'message': 'Account deleted successfully.'})
		self.assertFalse(User.objects.filter(id=driver.id).exists())
		self.assertFalse(DriverProfile.objects.exists())
		self.assertFalse(QueueEntry.objects.exists())
		ride.refresh_from_db()
		self.assertIsNone(ride.driver)

	def test_anonymous_delete_is_refused(self):
		request = APIRequestFactory().post('/api/auth/delete-account/')
		response = DeleteAccountView.as_view()(request)
		self.assertEqual(response.status_code, 401)


class ProjectionRefreshTests(TestCase):
	def test_customer_edit_reaches_active_rides(self):
		customer = make_customer()
		active = make_ride(customer, status=RideRequest.STATUS_ON_RIDE)
		finished = make_ride(customer, status=RideRequest.STATUS_COMPLETED)

		request = APIRequestFactory().patch('/api/auth/me/', {'name': 'Amina Said'}, format='json')
		force_authenticate(request, user=customer)
		with self.captureOnCommitCallbacks(execute=True):
			response = MeView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		active.refresh_from_db()
		finished.refresh_from_db()
		self.assertEqual(active.customer_name, 'Amina Said')
		self.assertEqual(finished.customer_name, '')

	def test_driver_license_change_reaches_accepted_ride(self):
		driver = make_driver()
		accepted = make_ride(make_customer(), driver=driver, status=RideRequest.STATUS_ACCEPTED)
		offered = make_ride(make_customer('other'), driver=driver, status=RideRequest.STATUS_PENDING_ACCEPTANCE)

		profile = driver.driver_profile
		profile.license_number = 'DL-NEW'
		with self.captureOnCommitCallbacks(execute=True):
			profile.save(update_fields=['license_number'])

		accepted.refresh_from_db()
		offered.refresh_from_db()
		self.assertEqual(accepted.driver_license_number, 'DL-NEW')
		self.assertEqual(offered.driver_license_number, '')

	def test_token_update_does_not_schedule_refresh(self):
		customer = make_customer()
		ride = make_ride(customer, status=RideRequest.STATUS_ON_RIDE)

		customer.fcm_token = 'abc'
		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			customer.save(update_fields=['fcm_token'])

		self.assertEqual(callbacks, [])
		ride.refresh_from_db()
		self.assertEqual(ride.customer_name, '')
