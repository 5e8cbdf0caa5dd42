from django.test import TestCase

from rides.tests.helpers import make_driver, make_kijiwe

from .models import QueueEntry
from .services import join_queue, leave_queues, queue_driver_ids, return_to_queue


class QueueTests(TestCase):
	def setUp(self):
		self.posta = make_kijiwe('Posta', 1)
		self.kariakoo = make_kijiwe('Kariakoo', 2)
		self.first = make_driver('first')
		self.second = make_driver('second')

	def test_queue_is_in_join_order(self):
		join_queue(self.first, self.posta)
		join_queue(self.second, self.posta)

		self.assertEqual(queue_driver_ids(self.posta), [self.first.id, self.second.id])

	def test_rejoining_same_kijiwe_keeps_place(self):
		join_queue(self.first, self.posta)
		join_queue(self.second, self.posta)
		join_queue(self.first, self.posta)

		self.assertEqual(queue_driver_ids(self.posta), [self.first.id, self.second.id])

	def test_driver_is_in_one_queue_only(self):
		join_queue(self.first, self.posta)
		join_queue(self.first, self.kariakoo)

		self.assertEqual(queue_driver_ids(self.posta), [])
		self.assertEqual(queue_driver_ids(self.kariakoo), [self.first.id])

	def test_leave_queues(self):
		join_queue(self.first, self.posta)

		self.assertEqual(leave_queues(self.first), 1)
		self.assertEqual(leave_queues(self.first), 0)
		self.assertFalse(QueueEntry.objects.exists())

	def test_return_to_queue_appends_at_the_end(self):
		join_queue(self.second, self.posta)

		return_to_queue(self.first, self.posta.id)

		self.assertEqual(queue_driver_ids(self.posta), [self.second.id, self.first.id])

	def test_return_without_kijiwe_is_a_no_op(self):
		self.assertIsNone(return_to_queue(self.first, None))
		self.assertIsNone(return_to_queue(self.first, 999999))
		self.assertFalse(QueueEntry.objects.exists())
