from django.urls import path
from .views import (
    DriverProfileView,
    DriverAvailabilityView,
    DriverCurrentRideView,
    DriverRideHistoryView,
)

urlpatterns = [
    path("profile/", DriverProfileView.as_view(), name="driver-profile"),
    path("availability/", DriverAvailabilityView.as_view(), name="driver-availability"),
    path("current-ride/", DriverCurrentRideView.as_view(), name="driver-current-ride"),
    path("history/", DriverRideHistoryView.as_view(), name="driver-history"),
]
