"""
Push notifications to customers and drivers.

Usage:
    from notifications.relay import get_relay
    from notifications.messages import RideAcceptedNotification

    get_relay().notify(user_id, RideAcceptedNotification(...))
"""
