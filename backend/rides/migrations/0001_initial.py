import decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('kijiwe', '0001_initial'),
        ('scheduled_rides', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='FareConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('starting_fare', models.DecimalField(decimal_places=2, default=300, max_digits=12)),
                ('fare_per_kilometer', models.DecimalField(decimal_places=2, default=350, max_digits=12)),
                ('fare_per_minute_driving', models.DecimalField(decimal_places=2, default=60, max_digits=12)),
                ('fare_per_minute_waiting', models.DecimalField(decimal_places=2, default=60, max_digits=12)),
                ('minimum_fare', models.DecimalField(decimal_places=2, default=1250, max_digits=12)),
                ('rounding_increment', models.DecimalField(decimal_places=2, default=500, max_digits=12)),
                ('commission_rate', models.DecimalField(decimal_places=4, default=decimal.Decimal('0.20'), max_digits=5)),
                ('currency', models.CharField(default='TZS', max_length=3)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'fare_config',
            },
        ),
        migrations.CreateModel(
            name='RideRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(blank=True, max_length=120)),
                ('pickup_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('pickup_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('pickup_address_name', models.CharField(blank=True, max_length=255)),
                ('dropoff_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('dropoff_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('dropoff_address_name', models.CharField(blank=True, max_length=255)),
                ('stops', models.JSONField(blank=True, default=list)),
                ('customer_note_to_driver', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending_match', 'Pending match'), ('pending_driver_acceptance', 'Pending driver acceptance'), ('accepted', 'Accepted'), ('arrivedAtPickup', 'Driver arrived at pickup'), ('onRide', 'On ride'), ('completed', 'Completed'), ('declined_by_driver', 'Declined by driver'), ('cancelled_by_driver', 'Cancelled by driver'), ('no_drivers_available', 'No drivers available'), ('no_kijiwes_nearby', 'No kijiwes nearby'), ('matching_error_missing_pickup', 'Matching error: missing pickup'), ('matching_error_kijiwe_fetch', 'Matching error: kijiwe fetch failed')], default='pending_match', max_length=40)),
                ('estimated_distance_km', models.DecimalField(blank=True, decimal_places=3, max_digits=9, null=True)),
                ('estimated_duration_minutes', models.DecimalField(blank=True, decimal_places=2, max_digits=9, null=True)),
                ('customer_calculated_estimated_fare', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('fare', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('commission_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('driver_earnings', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('fare_config_used', models.JSONField(blank=True, null=True)),
                ('actual_distance_km', models.DecimalField(blank=True, decimal_places=3, max_digits=9, null=True)),
                ('actual_driving_duration_minutes', models.DecimalField(blank=True, decimal_places=2, max_digits=9, null=True)),
                ('actual_total_waiting_time_minutes', models.DecimalField(blank=True, decimal_places=2, max_digits=9, null=True)),
                ('requested_at', models.DateTimeField(auto_now_add=True)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('customer_name', models.CharField(blank=True, max_length=150)),
                ('customer_profile_image_url', models.URLField(blank=True, max_length=500, null=True)),
                ('customer_age_range', models.CharField(blank=True, max_length=20)),
                ('customer_average_rating', models.FloatField(default=0.0)),
                ('customer_details', models.CharField(blank=True, max_length=255)),
                ('driver_name', models.CharField(blank=True, max_length=150)),
                ('driver_profile_image_url', models.URLField(blank=True, max_length=500, null=True)),
                ('driver_gender', models.CharField(blank=True, max_length=20)),
                ('driver_age_group', models.CharField(blank=True, max_length=20)),
                ('driver_license_number', models.CharField(blank=True, max_length=50)),
                ('driver_vehicle_type', models.CharField(blank=True, max_length=50)),
                ('driver_rating_to_customer', models.DecimalField(blank=True, decimal_places=2, max_digits=3, null=True)),
                ('driver_comment_to_customer', models.TextField(blank=True, null=True)),
                ('customer', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ride_requests', to=settings.AUTH_USER_MODEL)),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='driver_rides', to=settings.AUTH_USER_MODEL)),
                ('kijiwe', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ride_requests', to='kijiwe.kijiwe')),
                ('scheduled_ride', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ride_requests', to='scheduled_rides.scheduledride')),
            ],
            options={
                'db_table': 'ride_requests',
                'ordering': ['-requested_at'],
            },
        ),
        migrations.CreateModel(
            name='ChatMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('text', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('ride', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='rides.riderequest')),
                ('sender', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ride_messages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'ride_chat_messages',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
