from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.models import User
from common.exceptions import NotFoundError
from drivers.models import DriverProfile
from drivers.serializers import (
    DriverProfileSerializer,
    DriverAvailabilitySerializer,
)
from kijiwe.models import Kijiwe
from rides.serializers import RideRequestSerializer
from rides.models import RideRequest

from drivers import services

# Utility: Ensure request.user is a driver
def require_driver(user):
    if user.role != User.ROLE_DRIVER:
        return False, Response({"error": "Only drivers allowed"}, status=403)
    try:
        profile = user.driver_profile
        return True, profile
    except DriverProfile.DoesNotExist:
        return False, Response({"error": "Driver profile not found"}, status=404)


class DriverProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile  # Response object

        serializer = DriverProfileSerializer(profile, context={"request": request})
        return Response(serializer.data)

    def post(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        serializer = DriverProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response(serializer.data, status=200)


class DriverAvailabilityView(APIView):
    """
    Go online at a kijiwe or go offline

    POST Body:
    {
        "is_online": true,
        "kijiwe_id": 3  // optional; defaults to the driver's home kijiwe
    }
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        return Response({
            "is_online": profile.is_online,
            "status": profile.status,
            "kijiwe_id": profile.kijiwe_id,
        })

    def post(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        serializer = DriverAvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if serializer.validated_data["is_online"]:
            kijiwe = None
            kijiwe_id = serializer.validated_data.get("kijiwe_id")
            if kijiwe_id is not None:
                kijiwe = Kijiwe.objects.filter(pk=kijiwe_id).first()
                if kijiwe is None:
                    raise NotFoundError("Kijiwe not found.")
            profile = services.go_online(profile, kijiwe)
        else:
            profile = services.go_offline(profile)

        return Response({
            "message": f"Status updated to {profile.status}",
            "is_online": profile.is_online,
            "status": profile.status,
            "kijiwe_id": profile.kijiwe_id,
        })


class DriverCurrentRideView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        ride = services.get_current_driver_ride(request.user)
        if not ride:
            return Response({"message": "No active ride"}, status=404)

        serializer = RideRequestSerializer(ride, context={"request": request})
        return Response(serializer.data)


class DriverRideHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        completed = RideRequest.objects.filter(driver=request.user, status=RideRequest.STATUS_COMPLETED)
        serializer = RideRequestSerializer(completed, many=True, context={"request": request})

        return Response({"count": completed.count(), "rides": serializer.data})
