"""Realtime consumers for WebSocket communication."""

from .base import BaseConsumer
from .ride_consumer import RideConsumer

__all__ = [
    "BaseConsumer",
    "RideConsumer",
]
