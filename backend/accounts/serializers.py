from rest_framework import serializers
from django.contrib.auth import authenticate
from .models import User, CustomerProfile
from drivers.models import DriverProfile


class UserSerializer(serializers.ModelSerializer):
    average_rating = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "role",
            "name",
            "phone_number",
            "gender",
            "dob",
            "profile_image_url",
            "average_rating",
        ]
        read_only_fields = ["id", "username", "role", "average_rating"]

    def get_average_rating(self, obj):
        """Customer rating given by drivers; None for users without a customer profile."""
        profile = getattr(obj, "customer_profile", None)
        if profile is None:
            return None
        return round(profile.average_rating, 2)


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError("Invalid username or password")
        return user


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)
    license_number = serializers.CharField(required=False)
    vehicle_type = serializers.CharField(required=False)
    vehicle_number = serializers.CharField(required=False)

    class Meta:
        model = User
        fields = [
            'username', 'password', 'email', 'role', 'name', 'phone_number',
            'gender', 'dob', 'license_number', 'vehicle_type', 'vehicle_number',
        ]
        extra_kwargs = {
            'email': {'required': False},
        }

    def validate(self, data):
        # Drivers must register with a license number
        if data.get('role') == User.ROLE_DRIVER and not data.get('license_number'):
            raise serializers.ValidationError({
                'license_number': 'License number is required for drivers'
            })
        return data

    def create(self, validated_data):
        driver_fields = {
            key: validated_data.pop(key, '')
            for key in ('license_number', 'vehicle_type', 'vehicle_number')
        }
        password = validated_data.pop('password')

        user = User.objects.create_user(password=password, **validated_data)

        if user.role == User.ROLE_DRIVER:
            DriverProfile.objects.create(user=user, **driver_fields)
        else:
            CustomerProfile.objects.create(user=user)

        return user


class DeviceTokenSerializer(serializers.Serializer):
    """Push token registered by the mobile app; blank clears it."""
    fcm_token = serializers.CharField(max_length=512, allow_blank=True)
