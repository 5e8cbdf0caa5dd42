from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from drivers.models import DriverProfile
from rides.models import ChatMessage, RideRequest
from rides.views import create_ride_request, driver_ride_action, get_ride, ride_messages

from .helpers import make_customer, make_driver, make_ride


class CreateRideRequestViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.customer = make_customer()

	def _post(self, user, data):
		request = self.factory.post('/api/rides/request/', data, format='json')
		force_authenticate(request, user=user)
		return create_ride_request(request)

	@patch('services.matching.dispatch_ride_request')
	def test_customer_creates_ride_and_dispatch_is_queued(self, mock_dispatch):
		with self.captureOnCommitCallbacks(execute=True):
			response = self._post(self.customer, {
				'pickup_latitude': -6.8161,
				'pickup_longitude': 39.2803,
				'pickup_address_name': 'Posta',
				'dropoff_latitude': -6.8200,
				'dropoff_longitude': 39.2700,
				'stops': [{'latitude': -6.818, 'longitude': 39.275, 'address_name': 'Kariakoo'}],
				'customer_calculated_estimated_fare': 3120.456,
			})

		self.assertEqual(response.status_code, 201)
		ride = RideRequest.objects.get(id=response.data['id'])
		self.assertEqual(ride.customer, self.customer)
		self.assertEqual(ride.status, RideRequest.STATUS_PENDING_MATCH)
		self.assertEqual(ride.stops[0]['address_name'], 'Kariakoo')
		mock_dispatch.assert_called_once_with(ride.id)

	def test_driver_cannot_create_ride(self):
		response = self._post(make_driver(), {'pickup_latitude': 0, 'pickup_longitude': 0})
		self.assertEqual(response.status_code, 403)

	def test_half_a_dropoff_is_rejected(self):
		response = self._post(self.customer, {
			'pickup_latitude': 0,
			'pickup_longitude': 0,
			'dropoff_latitude': 1,
		})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid-argument')


class RideDetailViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.customer = make_customer()
		self.driver = make_driver()
		self.ride = make_ride(self.customer, driver=self.driver)

	def _get(self, user):
		request = self.factory.get('/api/rides/%d/' % self.ride.id)
		force_authenticate(request, user=user)
		return get_ride(request, ride_id=self.ride.id)

	def test_participants_can_read_ride(self):
		self.assertEqual(self._get(self.customer).status_code, 200)
		self.assertEqual(self._get(self.driver).data['id'], self.ride.id)

	def test_stranger_cannot_read_ride(self):
		self.assertEqual(self._get(make_customer('stranger')).status_code, 404)


class DriverRideActionViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.customer = make_customer()
		self.driver = make_driver(status=DriverProfile.STATUS_PENDING_ACCEPTANCE)
		self.ride = make_ride(self.customer, driver=self.driver, status=RideRequest.STATUS_PENDING_ACCEPTANCE)

	def _post(self, user, data):
		request = self.factory.post('/api/rides/driver-action/', data, format='json')
		force_authenticate(request, user=user)
		return driver_ride_action(request)

	def test_accept_returns_success_shape(self):
		response = self._post(self.driver, {'rideRequestId': str(self.ride.id), 'action': 'accept'})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data, {'success': True, 'message': "Action 'accept' successful."})

	def test_guard_violation_maps_to_failed_precondition(self):
		response = self._post(self.driver, {'rideRequestId': str(self.ride.id), 'action': 'completeRide'})

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'failed-precondition')
		self.assertFalse(response.data['success'])

	def test_customer_gets_permission_denied(self):
		response = self._post(self.customer, {'rideRequestId': str(self.ride.id), 'action': 'accept'})

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['error'], 'permission-denied')

	def test_customer_with_malformed_body_gets_permission_denied(self):
		response = self._post(self.customer, {
			'rideRequestId': str(self.ride.id),
			'action': 'completeRide',
			'actualDistanceKm': -1,
		})

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['error'], 'permission-denied')

	def test_driver_with_malformed_body_gets_invalid_argument(self):
		response = self._post(self.driver, {
			'rideRequestId': str(self.ride.id),
			'action': 'completeRide',
			'actualDistanceKm': -1,
		})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid-argument')
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideRequest.STATUS_PENDING_ACCEPTANCE)

	def test_fractional_rating_is_accepted(self):
		RideRequest.objects.filter(id=self.ride.id).update(status=RideRequest.STATUS_COMPLETED)

		response = self._post(self.driver, {
			'rideRequestId': str(self.ride.id),
			'action': 'rateCustomer',
			'rating': 4.5,
		})

		self.assertEqual(response.status_code, 200)
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.driver_rating_to_customer, Decimal('4.50'))

	def test_missing_action_is_invalid(self):
		response = self._post(self.driver, {'rideRequestId': str(self.ride.id)})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['message'], 'Missing rideRequestId or action.')

	def test_unknown_ride_is_not_found(self):
		response = self._post(self.driver, {'rideRequestId': '424242', 'action': 'accept'})
		self.assertEqual(response.status_code, 404)

	def test_anonymous_is_unauthenticated(self):
		request = self.factory.post('/api/rides/driver-action/', {'action': 'accept'}, format='json')
		response = driver_ride_action(request)

		self.assertEqual(response.status_code, 401)
		self.assertEqual(response.data['error'], 'unauthenticated')


class RideChatTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.customer = make_customer()
		self.driver = make_driver()
		self.ride = make_ride(
			self.customer,
			driver=self.driver,
			status=RideRequest.STATUS_ACCEPTED,
			customer_name='Amina',
			driver_name='Juma',
		)

	def _post(self, user, text):
		request = self.factory.post('/api/rides/%d/messages/' % self.ride.id, {'text': text}, format='json')
		force_authenticate(request, user=user)
		return ride_messages(request, ride_id=self.ride.id)

	@patch('rides.signals.get_relay')
	def test_customer_message_is_pushed_to_driver(self, mock_get_relay):
		with self.captureOnCommitCallbacks(execute=True):
			response = self._post(self.customer, 'Niko getini')

		self.assertEqual(response.status_code, 201)
		user_id, message = mock_get_relay.return_value.notify.call_args[0]
		self.assertEqual(user_id, self.driver.id)
		self.assertEqual(message.title, 'New message from Amina')
		self.assertEqual(message.body, 'Niko getini')
		self.assertEqual(message.data()['type'], 'chat_message')

	@patch('rides.signals.get_relay')
	def test_driver_message_is_pushed_to_customer(self, mock_get_relay):
		with self.captureOnCommitCallbacks(execute=True):
			self._post(self.driver, 'Nimefika')

		user_id, message = mock_get_relay.return_value.notify.call_args[0]
		self.assertEqual(user_id, self.customer.id)
		self.assertEqual(message.sender_name, 'Juma')

	@patch('rides.signals.get_relay')
	def test_message_from_unknown_sender_is_ignored(self, mock_get_relay):
		stranger = make_customer('stranger')

		with self.captureOnCommitCallbacks(execute=True):
			ChatMessage.objects.create(ride=self.ride, sender=stranger, text='Hello')

		mock_get_relay.return_value.notify.assert_not_called()

	def test_messages_are_listed_in_order(self):
		self._post(self.customer, 'First')
		self._post(self.driver, 'Second')

		request = self.factory.get('/api/rides/%d/messages/' % self.ride.id)
		force_authenticate(request, user=self.customer)
		response = ride_messages(request, ride_id=self.ride.id)

		self.assertEqual([item['text'] for item in response.data], ['First', 'Second'])

	def test_stranger_cannot_post(self):
		response = self._post(make_customer('stranger'), 'Hi')
		self.assertEqual(response.status_code, 404)
