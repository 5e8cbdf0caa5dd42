"""
Realtime app for live ride status over WebSockets.

Key Components:
    - broadcast.py: ``ride_<id>`` group fan-out of status transitions
    - consumers/: RideConsumer for customers and drivers
    - middleware.py: JWT authentication for WebSocket connections

Usage:
    from realtime.broadcast import broadcast_ride_status
"""
