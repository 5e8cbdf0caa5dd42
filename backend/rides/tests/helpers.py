"""Shared builders for ride tests."""

from decimal import Decimal

from accounts.models import CustomerProfile, User
from drivers.models import DriverProfile
from kijiwe.models import Kijiwe, QueueEntry
from rides.models import FareConfig, RideRequest

# Roughly one kilometre of latitude
KM_IN_DEGREES = Decimal('0.008993')


def make_customer(username='customer', **extra):
	extra.setdefault('name', 'Amina')
	user = User.objects.create_user(
		username=username,
		password='pass1234',
		role=User.ROLE_CUSTOMER,
		**extra
	)
	CustomerProfile.objects.create(user=user)
	return user


def make_driver(username='driver', status=DriverProfile.STATUS_WAITING, is_online=True, kijiwe=None, **extra):
	extra.setdefault('name', 'Juma')
	user = User.objects.create_user(
		username=username,
		password='driver1234',
		role=User.ROLE_DRIVER,
		**extra
	)
	DriverProfile.objects.create(
		user=user,
		license_number='DL-%s' % username,
		vehicle_type='Bajaji',
		vehicle_number='T-100',
		status=status,
		is_online=is_online,
		kijiwe=kijiwe,
	)
	return user


def make_kijiwe(name, km_north, queue=()):
	"""Kijiwe ``km_north`` kilometres north of (0, 0) with drivers queued in order"""
	kijiwe = Kijiwe.objects.create(
		name=name,
		latitude=(KM_IN_DEGREES * Decimal(km_north)).quantize(Decimal('0.000001')),
		longitude=Decimal('0'),
	)
	for driver in queue:
		QueueEntry.objects.create(kijiwe=kijiwe, driver=driver)
	return kijiwe


def make_ride(customer, **extra):
	values = {
		'pickup_latitude': Decimal('0'),
		'pickup_longitude': Decimal('0'),
		'pickup_address_name': 'Posta',
		'dropoff_latitude': Decimal('0.05'),
		'dropoff_longitude': Decimal('0.05'),
		'dropoff_address_name': 'Kariakoo',
	}
	values.update(extra)
	return RideRequest.objects.create(customer=customer, **values)


def make_fare_config(**extra):
	values = {
		'starting_fare': Decimal('300'),
		'fare_per_kilometer': Decimal('350'),
		'fare_per_minute_driving': Decimal('60'),
		'fare_per_minute_waiting': Decimal('60'),
		'minimum_fare': Decimal('1250'),
		'rounding_increment': Decimal('500'),
		'commission_rate': Decimal('0.20'),
		'currency': 'TZS',
	}
	values.update(extra)
	config = FareConfig(**values)
	config.save()
	return config
