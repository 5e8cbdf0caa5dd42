import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ScheduledRide',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(blank=True, max_length=120)),
                ('pickup_latitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('pickup_longitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('pickup_address_name', models.CharField(blank=True, max_length=255)),
                ('dropoff_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('dropoff_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('dropoff_address_name', models.CharField(blank=True, max_length=255)),
                ('stops', models.JSONField(blank=True, default=list)),
                ('customer_note_to_driver', models.TextField(blank=True)),
                ('scheduled_date_time', models.DateTimeField()),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('activated', 'Activated'), ('cancelled', 'Cancelled')], default='scheduled', max_length=20)),
                ('is_recurring', models.BooleanField(default=False)),
                ('recurrence_type', models.CharField(blank=True, choices=[('Daily', 'Daily'), ('Weekly', 'Weekly')], max_length=10, null=True)),
                ('recurrence_days_of_week', models.JSONField(blank=True, null=True)),
                ('recurrence_end_date', models.DateTimeField(blank=True, null=True)),
                ('last_instance_generated_up_to', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scheduled_rides', to=settings.AUTH_USER_MODEL)),
                ('master', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='instances', to='scheduled_rides.scheduledride')),
            ],
            options={
                'db_table': 'scheduled_rides',
                'ordering': ['scheduled_date_time'],
                'indexes': [models.Index(fields=['status', 'is_recurring', 'scheduled_date_time'], name='scheduled_r_status_5c1f2e_idx')],
            },
        ),
    ]
