from django.contrib import admin
from django.urls import path, include

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # register, login, JWT, device token, account deletion

    # Driver APIs (profile, availability, current ride, history)
    path('api/driver/', include('drivers.urls')),

    # Rides endpoints (at /api/rides/)
    path('api/rides/', include('rides.urls')),      # ride requests, driver actions, chat

    # Scheduled and recurring rides
    path('api/scheduled-rides/', include('scheduled_rides.urls')),
]
