from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase

from services.fares import (
	FareSettings,
	calculate_subtotal,
	estimate_fare,
	finalize_fare,
	load_fare_settings,
	round_fare,
)

from .helpers import make_fare_config


def _ride(**extra):
	values = {
		'customer_calculated_estimated_fare': None,
		'estimated_distance_km': None,
		'estimated_duration_minutes': None,
	}
	values.update(extra)
	return SimpleNamespace(**values)


class RoundFareTests(SimpleTestCase):
	def test_fare_on_the_grid_is_kept(self):
		self.assertEqual(round_fare(Decimal('5000'), Decimal('500')), Decimal('5000'))

	def test_small_remainder_rounds_to_half_step(self):
		self.assertEqual(round_fare(Decimal('5120'), Decimal('500')), Decimal('5250'))

	def test_exact_midpoint_stays_on_half_step(self):
		self.assertEqual(round_fare(Decimal('5250'), Decimal('500')), Decimal('5250'))

	def test_large_remainder_rounds_up(self):
		self.assertEqual(round_fare(Decimal('5251'), Decimal('500')), Decimal('5500'))

	def test_result_is_within_half_an_increment(self):
		increment = Decimal('500')
		for fare in (Decimal('1'), Decimal('249.99'), Decimal('1250'), Decimal('7777.77'), Decimal('9999')):
			rounded = round_fare(fare, increment)
			self.assertLessEqual(abs(rounded - fare), increment / 2)
			self.assertEqual(rounded % (increment / 2), 0)

	def test_non_positive_increment_leaves_fare_alone(self):
		self.assertEqual(round_fare(Decimal('1234.5'), Decimal('0')), Decimal('1234.5'))


class FareCalculationTests(SimpleTestCase):
	def setUp(self):
		self.fare_settings = FareSettings.defaults()

	def test_subtotal_adds_every_charge(self):
		subtotal = calculate_subtotal(self.fare_settings, 10, 20, 2)
		self.assertEqual(subtotal, Decimal('5120'))

	def test_estimate_is_floored_at_minimum_fare(self):
		self.assertEqual(estimate_fare(self.fare_settings, 0, 0), Decimal('1250'))

	def test_finalize_uses_actuals_when_given(self):
		breakdown = finalize_fare(self.fare_settings, _ride(customer_calculated_estimated_fare=Decimal('9000')), 10, 20, 2)

		self.assertEqual(breakdown.source, 'actuals')
		self.assertEqual(breakdown.fare_before_commission, Decimal('5120'))
		self.assertEqual(breakdown.fare, Decimal('5250'))
		self.assertEqual(breakdown.commission_amount, Decimal('1024.00'))
		self.assertEqual(breakdown.driver_earnings, Decimal('4096.00'))
		self.assertEqual(breakdown.waiting_minutes, Decimal('2'))

	def test_finalize_prefers_customer_estimate_without_actuals(self):
		breakdown = finalize_fare(self.fare_settings, _ride(customer_calculated_estimated_fare=Decimal('3000')), 10, None)

		self.assertEqual(breakdown.source, 'customer_estimate')
		self.assertEqual(breakdown.fare_before_commission, Decimal('3000'))
		self.assertEqual(breakdown.fare, Decimal('3000'))
		self.assertEqual(breakdown.commission_amount, Decimal('600.00'))

	def test_finalize_falls_back_to_stored_estimate(self):
		ride = _ride(estimated_distance_km=Decimal('2'), estimated_duration_minutes=Decimal('5'))
		breakdown = finalize_fare(self.fare_settings, ride)

		# 300 + 700 + 300 = 1300, no waiting charge
		self.assertEqual(breakdown.source, 'stored_estimate')
		self.assertEqual(breakdown.fare_before_commission, Decimal('1300'))
		self.assertEqual(breakdown.fare, Decimal('1500'))
		self.assertEqual(breakdown.distance_km, Decimal('2'))
		self.assertEqual(breakdown.waiting_minutes, Decimal('0'))

	def test_finalize_without_any_figures_charges_minimum(self):
		breakdown = finalize_fare(self.fare_settings, _ride())
		self.assertEqual(breakdown.fare, Decimal('1250'))


class LoadFareSettingsTests(TestCase):
	def test_missing_row_falls_back_to_defaults(self):
		self.assertEqual(load_fare_settings(), FareSettings.defaults())

	def test_stored_row_is_used(self):
		make_fare_config(starting_fare=Decimal('500'), currency='KES')

		fare_settings = load_fare_settings()

		self.assertEqual(fare_settings.starting_fare, Decimal('500'))
		self.assertEqual(fare_settings.currency, 'KES')

	def test_database_error_falls_back_to_defaults(self):
		with patch('rides.models.FareConfig.objects.filter', side_effect=DatabaseError('down')):
			self.assertEqual(load_fare_settings(), FareSettings.defaults())
