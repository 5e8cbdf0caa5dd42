from unittest.mock import Mock, patch

import requests
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase

from rides.tests.helpers import make_customer

from .fcm import FCMClient
from .messages import (
	ChatMessageNotification,
	RideCompletedNotification,
	RideOfferNotification,
	RideStartedNotification,
)
from .models import Notification
from .relay import CLICK_ACTION, PushRelay, stringify_data


class MessageKindTests(SimpleTestCase):
	def test_data_uses_camel_case_and_type_tag(self):
		data = RideCompletedNotification(ride_request_id=7, fare='5250.00').data()

		self.assertEqual(data, {
			'rideRequestId': 7,
			'fare': '5250.00',
			'currency': 'TZS',
			'status': 'completed',
			'type': 'ride_completed',
		})

	def test_excluded_fields_stay_out_of_data(self):
		message = RideStartedNotification(ride_request_id=7, driver_name='Juma')

		self.assertNotIn('driverName', message.data())
		self.assertEqual(message.body, 'Your ride with Juma has started.')

	def test_offer_stops_are_encoded_as_text(self):
		offer = RideOfferNotification(
			ride_request_id=1,
			customer_id=2,
			customer_name='Amina',
			customer_profile_image_url=None,
			customer_details='Female',
			pickup_address_name='Posta',
			dropoff_address_name='Kariakoo',
			pickup_lat=0,
			pickup_lng=0,
			dropoff_lat=None,
			dropoff_lng=None,
			customer_note_to_driver='',
			estimated_fare='1250.00',
			stops=[{'latitude': 1.0, 'longitude': 2.0}],
		)

		data = offer.data()
		self.assertEqual(data['stops'], '[{"latitude": 1.0, "longitude": 2.0}]')
		self.assertEqual(data['type'], 'ride_offer')
		self.assertEqual(offer.title, 'New Ride Request!')


class StringifyDataTests(SimpleTestCase):
	def test_values_become_strings(self):
		data = stringify_data({'rideRequestId': 5, 'dropoffLat': None, 'fare': 12.5})

		self.assertEqual(data, {
			'rideRequestId': '5',
			'dropoffLat': '',
			'fare': '12.5',
			'click_action': CLICK_ACTION,
		})


class FCMClientTests(SimpleTestCase):
	def test_disabled_without_project(self):
		session = Mock()
		client = FCMClient(project_id='', session=session)

		self.assertFalse(client.enabled)
		self.assertEqual(client.send('token', 'Title', 'Body', {}), {})
		session.post.assert_not_called()

	def test_disabled_without_credentials(self):
		client = FCMClient(project_id='kijiwe-app', credentials_file='')

		self.assertFalse(client.enabled)
		self.assertEqual(client.send('token', 'Title', 'Body', {}), {})

	def test_posts_v1_message(self):
		session = Mock()
		session.post.return_value.content = b'{"name": "projects/kijiwe-app/messages/1"}'
		session.post.return_value.json.return_value = {'name': 'projects/kijiwe-app/messages/1'}
		client = FCMClient(project_id='kijiwe-app', session=session, timeout=3)

		result = client.send('token', 'Title', 'Body', {'type': 'ride_started', 'click_action': CLICK_ACTION})

		self.assertEqual(result, {'name': 'projects/kijiwe-app/messages/1'})
		args, kwargs = session.post.call_args
		self.assertEqual(args[0], 'https://fcm.googleapis.com/v1/projects/kijiwe-app/messages:send')
		self.assertEqual(kwargs['timeout'], 3)
		message = kwargs['json']['message']
		self.assertEqual(message['token'], 'token')
		self.assertEqual(message['notification'], {'title': 'Title', 'body': 'Body'})
		self.assertEqual(message['data']['type'], 'ride_started')
		self.assertEqual(message['android']['priority'], 'high')
		self.assertEqual(message['android']['notification']['click_action'], CLICK_ACTION)
		self.assertEqual(message['apns']['payload']['aps']['sound'], 'default')
		session.post.return_value.raise_for_status.assert_called_once()

	@patch('notifications.fcm.AuthorizedSession')
	@patch('notifications.fcm.service_account.Credentials.from_service_account_file')
	def test_session_is_signed_with_service_account(self, mock_from_file, mock_session):
		client = FCMClient(project_id='kijiwe-app', credentials_file='/secrets/firebase.json')

		self.assertTrue(client.enabled)
		self.assertIs(client.session, mock_session.return_value)
		mock_from_file.assert_called_once_with(
			'/secrets/firebase.json', scopes=['https://www.googleapis.com/auth/firebase.messaging']
		)
		mock_session.assert_called_once_with(mock_from_file.return_value)


class PushRelayTests(TestCase):
	def setUp(self):
		self.client = Mock()
		self.relay = PushRelay(client=self.client)
		self.user = make_customer(fcm_token='device-token')

	def test_sends_to_registered_token(self):
		sent = self.relay.send(self.user.id, 'Hello', 'World', {'rideRequestId': 3})

		self.assertTrue(sent)
		self.client.send.assert_called_once_with(
			'device-token', 'Hello', 'World', {'rideRequestId': '3', 'click_action': CLICK_ACTION}
		)

	def test_missing_token_is_skipped(self):
		user = make_customer('no-token')

		self.assertFalse(self.relay.send(user.id, 'Hello', 'World'))
		self.client.send.assert_not_called()

	def test_unknown_user_is_skipped(self):
		self.assertFalse(self.relay.send(999999, 'Hello', 'World'))
		self.client.send.assert_not_called()

	def test_delivery_errors_are_swallowed(self):
		self.client.send.side_effect = requests.ConnectionError('unreachable')

		self.assertFalse(self.relay.send(self.user.id, 'Hello', 'World'))

	def test_unexpected_client_errors_are_swallowed(self):
		self.client.send.side_effect = RuntimeError('fcm credentials expired')

		self.assertFalse(self.relay.send(self.user.id, 'Hello', 'World'))

	def test_token_lookup_errors_are_swallowed(self):
		with patch.object(PushRelay, '_device_token', side_effect=DatabaseError('gone')):
			self.assertFalse(self.relay.send(self.user.id, 'Hello', 'World'))
		self.client.send.assert_not_called()

	def test_notify_includes_type_tag(self):
		self.relay.notify(self.user.id, ChatMessageNotification(
			ride_request_id=4, sender_id=9, sender_name='Juma', text='Nimefika'
		))

		token, title, body, data = self.client.send.call_args[0]
		self.assertEqual(title, 'New message from Juma')
		self.assertEqual(body, 'Nimefika')
		self.assertEqual(data['type'], 'chat_message')
		self.assertEqual(data['senderId'], '9')
		self.assertNotIn('text', data)


class NotificationSignalTests(TestCase):
	@patch('notifications.signals.get_relay')
	def test_new_notification_is_pushed_after_commit(self, mock_get_relay):
		user = make_customer()

		with self.captureOnCommitCallbacks(execute=True):
			notification = Notification.objects.create(user=user, title='Karibu', body='Welcome aboard')

		user_id, message = mock_get_relay.return_value.notify.call_args[0]
		self.assertEqual(user_id, user.id)
		self.assertEqual(message.title, 'Karibu')
		self.assertEqual(message.data(), {
			'notificationId': notification.id,
			'type': 'user_management_notification',
		})

	@patch('notifications.signals.get_relay')
	def test_updates_are_not_pushed(self, mock_get_relay):
		notification = Notification.objects.create(user=make_customer(), title='Karibu')

		with self.captureOnCommitCallbacks(execute=True):
			notification.is_read = True
			notification.save()

		mock_get_relay.return_value.notify.assert_not_called()
