from rest_framework import serializers

from rides.serializers import StopSerializer
from .models import ScheduledRide


class ScheduledRideSerializer(serializers.ModelSerializer):
    """Serializer for scheduled rides and recurring templates"""
    pickup_latitude = serializers.FloatField(min_value=-90, max_value=90)
    pickup_longitude = serializers.FloatField(min_value=-180, max_value=180)
    dropoff_latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    dropoff_longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    stops = StopSerializer(many=True, required=False)
    recurrence_days_of_week = serializers.ListField(
        child=serializers.ChoiceField(choices=ScheduledRide.WEEKDAY_ABBREVIATIONS),
        required=False,
        allow_null=True,
    )

    class Meta:
        model = ScheduledRide
        fields = [
            'id', 'customer', 'title',
            'pickup_latitude', 'pickup_longitude', 'pickup_address_name',
            'dropoff_latitude', 'dropoff_longitude', 'dropoff_address_name',
            'stops', 'customer_note_to_driver',
            'scheduled_date_time', 'status',
            'is_recurring', 'recurrence_type', 'recurrence_days_of_week',
            'recurrence_end_date', 'last_instance_generated_up_to', 'master',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'customer', 'status', 'last_instance_generated_up_to',
            'master', 'created_at', 'updated_at',
        ]

    def _current(self, data, name):
        if name in data:
            return data[name]
        return getattr(self.instance, name, None)

    def validate(self, data):
        has_lat = self._current(data, 'dropoff_latitude') is not None
        has_lng = self._current(data, 'dropoff_longitude') is not None
        if has_lat != has_lng:
            raise serializers.ValidationError('Dropoff needs both latitude and longitude.')

        if self._current(data, 'is_recurring'):
            if self.instance is not None and self.instance.master_id:
                raise serializers.ValidationError('Generated instances cannot themselves be recurring.')
            if not self._current(data, 'recurrence_type'):
                raise serializers.ValidationError({'recurrence_type': 'Required for recurring rides.'})
            end_date = self._current(data, 'recurrence_end_date')
            if not end_date:
                raise serializers.ValidationError({'recurrence_end_date': 'Required for recurring rides.'})
            if end_date < self._current(data, 'scheduled_date_time'):
                raise serializers.ValidationError({'recurrence_end_date': 'Must not be before the first ride.'})
            if (self._current(data, 'recurrence_type') == ScheduledRide.RECURRENCE_WEEKLY
                    and not self._current(data, 'recurrence_days_of_week')):
                raise serializers.ValidationError({'recurrence_days_of_week': 'Pick at least one day.'})
        return data

    def _plain_stops(self, validated_data):
        if 'stops' in validated_data:
            validated_data['stops'] = [dict(stop) for stop in validated_data['stops']]
        return validated_data

    def create(self, validated_data):
        return ScheduledRide.objects.create(**self._plain_stops(validated_data))

    def update(self, instance, validated_data):
        for name, value in self._plain_stops(validated_data).items():
            setattr(instance, name, value)
        instance.save()
        return instance
