from rest_framework import serializers
from drivers.models import DriverProfile
from accounts.serializers import UserSerializer


class DriverProfileSerializer(serializers.ModelSerializer):
    """
    Full driver profile serializer
    """
    user = UserSerializer(read_only=True)
    kijiwe_name = serializers.CharField(source="kijiwe.name", read_only=True, default=None)

    class Meta:
        model = DriverProfile
        fields = [
            "id",
            "user",
            "vehicle_number",
            "vehicle_type",
            "license_number",
            "is_online",
            "status",
            "kijiwe",
            "kijiwe_name",
            "completed_rides_count",
            "declined_by_driver_count",
            "cancelled_by_driver_count",
        ]
        read_only_fields = [
            "id",
            "is_online",
            "status",
            "kijiwe",
            "completed_rides_count",
            "declined_by_driver_count",
            "cancelled_by_driver_count",
        ]


class DriverAvailabilitySerializer(serializers.Serializer):
    """
    Serializer for switching a driver online (at a kijiwe) or offline.
    """
    is_online = serializers.BooleanField()
    kijiwe_id = serializers.IntegerField(required=False, allow_null=True)
