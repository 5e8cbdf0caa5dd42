import math
from decimal import Decimal

from django.test import SimpleTestCase

from .utils.geo import EARTH_RADIUS_KM, calculate_distance

POINTS = [
	(0.0, 0.0),
	(-6.8161, 39.2804),
	(-6.1722, 35.7395),
	(-3.3869, 36.6830),
	(51.5074, -0.1278),
	(-33.8688, 151.2093),
	(89.9, 179.9),
]


class CalculateDistanceTests(SimpleTestCase):
	def test_distance_is_symmetric(self):
		for lat1, lng1 in POINTS:
			for lat2, lng2 in POINTS:
				with self.subTest(a=(lat1, lng1), b=(lat2, lng2)):
					self.assertAlmostEqual(
						calculate_distance(lat1, lng1, lat2, lng2),
						calculate_distance(lat2, lng2, lat1, lng1),
						places=9,
					)

	def test_same_point_is_zero(self):
		for lat, lng in POINTS:
			with self.subTest(point=(lat, lng)):
				self.assertEqual(calculate_distance(lat, lng, lat, lng), 0.0)

	def test_distinct_points_are_apart(self):
		for i, (lat1, lng1) in enumerate(POINTS):
			for lat2, lng2 in POINTS[i + 1:]:
				with self.subTest(a=(lat1, lng1), b=(lat2, lng2)):
					self.assertGreater(calculate_distance(lat1, lng1, lat2, lng2), 0)

	def test_known_distances(self):
		one_degree = EARTH_RADIUS_KM * math.pi / 180
		self.assertAlmostEqual(calculate_distance(0, 0, 1, 0), one_degree, places=6)
		self.assertAlmostEqual(calculate_distance(0, 0, 1, 0), 111.195, places=3)
		self.assertAlmostEqual(calculate_distance(0, 0, 0, 90), EARTH_RADIUS_KM * math.pi / 2, places=6)

	def test_accepts_decimal_and_string_coordinates(self):
		self.assertAlmostEqual(
			calculate_distance(Decimal('0'), '0', Decimal('1'), '0'),
			calculate_distance(0, 0, 1, 0),
			places=9,
		)
