import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('kijiwe', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='DriverProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vehicle_number', models.CharField(blank=True, max_length=20)),
                ('vehicle_type', models.CharField(blank=True, max_length=50)),
                ('license_number', models.CharField(blank=True, max_length=50)),
                ('is_online', models.BooleanField(default=False)),
                ('status', models.CharField(choices=[('offline', 'Offline'), ('waitingForRide', 'Waiting for ride'), ('pending_ride_acceptance', 'Pending ride acceptance'), ('goingToPickup', 'Going to pickup'), ('arrivedAtPickup', 'Arrived at pickup'), ('onRide', 'On ride')], default='offline', max_length=30)),
                ('completed_rides_count', models.PositiveIntegerField(default=0)),
                ('declined_by_driver_count', models.PositiveIntegerField(default=0)),
                ('cancelled_by_driver_count', models.PositiveIntegerField(default=0)),
                ('kijiwe', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='home_drivers', to='kijiwe.kijiwe')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='driver_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'driver_profiles',
            },
        ),
    ]
