from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.models import User
from services.scheduling import manage_scheduled_ride
from .models import ScheduledRide
from .serializers import ScheduledRideSerializer


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def scheduled_rides(request):
    """List the caller's scheduled rides, or schedule a new one"""
    if request.method == 'GET':
        rides = ScheduledRide.objects.filter(customer=request.user)
        return Response(ScheduledRideSerializer(rides, many=True).data)

    if request.user.role != User.ROLE_CUSTOMER:
        return Response(
            {'error': 'Only customers can schedule rides'},
            status=status.HTTP_403_FORBIDDEN
        )

    serializer = ScheduledRideSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    scheduled = serializer.save(customer=request.user)
    return Response(ScheduledRideSerializer(scheduled).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def manage_ride(request):
    """Edit or delete a scheduled ride (body: action, rideId, rideData)"""
    result = manage_scheduled_ride(
        request.user,
        request.data.get('action'),
        request.data.get('rideId'),
        request.data.get('rideData'),
    )
    return Response(result)
