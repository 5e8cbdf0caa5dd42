from rest_framework import serializers

from .models import RideRequest, ChatMessage


class StopSerializer(serializers.Serializer):
    """Intermediate stop on a ride"""
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    address_name = serializers.CharField(required=False, allow_blank=True, default="")


class RideRequestSerializer(serializers.ModelSerializer):
    """Serializer for Ride Requests"""

    class Meta:
        model = RideRequest
        fields = [
            'id', 'customer', 'driver', 'kijiwe', 'scheduled_ride', 'title',
            'pickup_latitude', 'pickup_longitude', 'pickup_address_name',
            'dropoff_latitude', 'dropoff_longitude', 'dropoff_address_name',
            'stops', 'customer_note_to_driver', 'status',
            'estimated_distance_km', 'estimated_duration_minutes',
            'customer_calculated_estimated_fare',
            'fare', 'commission_amount', 'driver_earnings',
            'actual_distance_km', 'actual_driving_duration_minutes',
            'actual_total_waiting_time_minutes',
            'requested_at', 'accepted_at', 'completed_at',
            'customer_name', 'customer_profile_image_url', 'customer_age_range',
            'customer_average_rating', 'customer_details',
            'driver_name', 'driver_profile_image_url', 'driver_gender',
            'driver_age_group', 'driver_license_number', 'driver_vehicle_type',
            'driver_rating_to_customer', 'driver_comment_to_customer',
        ]
        read_only_fields = fields


class RideRequestCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating ride requests"""
    pickup_latitude = serializers.FloatField(min_value=-90, max_value=90)
    pickup_longitude = serializers.FloatField(min_value=-180, max_value=180)
    dropoff_latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    dropoff_longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    stops = StopSerializer(many=True, required=False)
    # Client-side figures arrive as floats with arbitrary precision
    estimated_distance_km = serializers.FloatField(required=False, allow_null=True, min_value=0)
    estimated_duration_minutes = serializers.FloatField(required=False, allow_null=True, min_value=0)
    customer_calculated_estimated_fare = serializers.FloatField(required=False, allow_null=True, min_value=0)

    class Meta:
        model = RideRequest
        fields = [
            'title',
            'pickup_latitude', 'pickup_longitude', 'pickup_address_name',
            'dropoff_latitude', 'dropoff_longitude', 'dropoff_address_name',
            'stops', 'customer_note_to_driver',
            'estimated_distance_km', 'estimated_duration_minutes',
            'customer_calculated_estimated_fare',
        ]

    def validate(self, data):
        has_lat = data.get('dropoff_latitude') is not None
        has_lng = data.get('dropoff_longitude') is not None
        if has_lat != has_lng:
            raise serializers.ValidationError('Dropoff needs both latitude and longitude.')
        return data

    def create(self, validated_data):
        # Stops are stored as a plain JSON list
        validated_data['stops'] = [dict(stop) for stop in validated_data.get('stops', [])]
        return RideRequest.objects.create(**validated_data)


class DriverRideActionSerializer(serializers.Serializer):
    """
    Request body of the driver ride action endpoint.

    Field names follow the mobile app's camelCase payload.
    """
    rideRequestId = serializers.CharField(required=False, allow_blank=True)
    action = serializers.CharField(required=False, allow_blank=True)
    rating = serializers.FloatField(required=False, allow_null=True)
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    actualDistanceKm = serializers.FloatField(required=False, allow_null=True, min_value=0)
    actualDrivingDurationMinutes = serializers.FloatField(required=False, allow_null=True, min_value=0)
    actualTotalWaitingTimeMinutes = serializers.FloatField(required=False, allow_null=True, min_value=0)


class ChatMessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.CharField(source='sender.name', read_only=True, default=None)

    class Meta:
        model = ChatMessage
        fields = ['id', 'ride', 'sender', 'sender_name', 'text', 'created_at']
        read_only_fields = ['id', 'ride', 'sender', 'sender_name', 'created_at']
