from django.urls import path
from . import views

app_name = 'scheduled_rides'

urlpatterns = [
    path('', views.scheduled_rides, name='scheduled-rides'),
    path('manage/', views.manage_ride, name='manage-scheduled-ride'),
]
