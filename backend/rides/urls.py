from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    # Customer APIs
    path('request/', views.create_ride_request, name='create-ride'),
    path('<int:ride_id>/', views.get_ride, name='ride-detail'),

    # Driver Ride Actions
    path('driver-action/', views.driver_ride_action, name='driver-ride-action'),

    # Chat
    path('<int:ride_id>/messages/', views.ride_messages, name='ride-messages'),
]
