from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.models import User
from services.ride_management import RideActionHandler, RideActionRequest, handle_driver_ride_action
from .models import RideRequest, ChatMessage
from .serializers import (
    RideRequestSerializer,
    RideRequestCreateSerializer,
    DriverRideActionSerializer,
    ChatMessageSerializer,
)


def _participant_ride(user, ride_id):
    """Ride the user is customer or driver of, or None"""
    return (
        RideRequest.objects
        .filter(id=ride_id)
        .filter(Q(customer=user) | Q(driver=user))
        .first()
    )


# ==================== Customer Ride APIs ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_ride_request(request):
    """Create a new ride request; dispatch starts once it is saved"""
    if request.user.role != User.ROLE_CUSTOMER:
        return Response(
            {'error': 'Only customers can create ride requests'},
            status=status.HTTP_403_FORBIDDEN
        )

    serializer = RideRequestCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    ride = serializer.save(customer=request.user)

    return Response(RideRequestSerializer(ride).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_ride(request, ride_id):
    """Read a ride the caller takes part in"""
    ride = _participant_ride(request.user, ride_id)
    if ride is None:
        return Response({'error': 'Ride not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(RideRequestSerializer(ride).data)


# ==================== Driver Ride Actions ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def driver_ride_action(request):
    """
    Advance a ride as its assigned driver

    POST Body:
    {
        "rideRequestId": "42",
        "action": "completeRide",
        "actualDistanceKm": 10,
        "actualDrivingDurationMinutes": 20,
        "actualTotalWaitingTimeMinutes": 2
    }
    """
    # Caller checks come before body validation, as in the handler
    payload = request.data if hasattr(request.data, "get") else {}
    RideActionHandler.authorize(request.user, RideActionRequest.from_payload(payload))

    serializer = DriverRideActionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = handle_driver_ride_action(request.user, serializer.validated_data)
    return Response(result.as_dict())


# ==================== Ride Chat ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def ride_messages(request, ride_id):
    """List or post chat messages between the ride's customer and driver"""
    ride = _participant_ride(request.user, ride_id)
    if ride is None:
        return Response({'error': 'Ride not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        messages = ChatMessage.objects.filter(ride=ride).select_related('sender')
        return Response(ChatMessageSerializer(messages, many=True).data)

    serializer = ChatMessageSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    message = serializer.save(ride=ride, sender=request.user)
    return Response(ChatMessageSerializer(message).data, status=status.HTTP_201_CREATED)
