from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.test import SimpleTestCase
from unittest.mock import AsyncMock, patch

from .broadcast import broadcast_ride_status, ride_group_name


class BroadcastTests(SimpleTestCase):
	def test_event_reaches_ride_group(self):
		layer = get_channel_layer()
		channel = async_to_sync(layer.new_channel)()
		async_to_sync(layer.group_add)(ride_group_name(12), channel)

		sent = broadcast_ride_status(12, 'accepted', 'pending_driver_acceptance', extra={'driver_id': 3})

		self.assertTrue(sent)
		event = async_to_sync(layer.receive)(channel)
		self.assertEqual(event, {
			'type': 'ride_status',
			'ride_id': 12,
			'status': 'accepted',
			'previous_status': 'pending_driver_acceptance',
			'driver_id': 3,
		})

	def test_layer_failure_is_swallowed(self):
		with patch('realtime.broadcast.get_channel_layer') as mock_layer:
			mock_layer.return_value.group_send = AsyncMock(side_effect=RuntimeError('down'))
			self.assertFalse(broadcast_ride_status(12, 'accepted'))

	def test_missing_layer(self):
		with patch('realtime.broadcast.get_channel_layer', return_value=None):
			self.assertFalse(broadcast_ride_status(12, 'accepted'))



class RideConsumerTests(SimpleTestCase):
	def make_consumer(self):
		from .consumers.ride_consumer import RideConsumer

		consumer = RideConsumer()
		consumer.user_id = 5
		consumer.role = 'customer'
		consumer.joined_groups = set()
		consumer.channel_layer = get_channel_layer()
		consumer.channel_name = async_to_sync(consumer.channel_layer.new_channel)()
		consumer.send_json = AsyncMock()
		return consumer

	def test_subscribe_joins_ride_group(self):
		consumer = self.make_consumer()
		consumer._participant_ride_status = AsyncMock(return_value='accepted')

		async_to_sync(consumer.handle_message)('subscribe', {'type': 'subscribe', 'ride_id': 12})

		self.assertIn(ride_group_name(12), consumer.joined_groups)
		consumer.send_json.assert_awaited_with({'type': 'subscribed', 'ride_id': 12, 'status': 'accepted'})

	def test_subscribe_refused_for_outsiders(self):
		consumer = self.make_consumer()
		consumer._participant_ride_status = AsyncMock(return_value=None)

		async_to_sync(consumer.handle_message)('subscribe', {'type': 'subscribe', 'ride_id': 12})

		self.assertEqual(consumer.joined_groups, set())
		consumer.send_json.assert_awaited_with({
			'type': 'error',
			'message': 'You are not authorized to follow this ride',
		})

	def test_unsubscribe_leaves_group(self):
		consumer = self.make_consumer()
		consumer._participant_ride_status = AsyncMock(return_value='accepted')
		async_to_sync(consumer.handle_message)('subscribe', {'type': 'subscribe', 'ride_id': 12})

		async_to_sync(consumer.handle_message)('unsubscribe', {'type': 'unsubscribe', 'ride_id': 12})

		self.assertEqual(consumer.joined_groups, set())

	def test_status_event_is_forwarded(self):
		consumer = self.make_consumer()
		event = {'type': 'ride_status', 'ride_id': 12, 'status': 'completed'}

		async_to_sync(consumer.ride_status)(event)

		consumer.send_json.assert_awaited_once_with(event)
