"""Utility helpers."""

from .events import EventBus, Subscription

__all__ = ["EventBus", "Subscription"]
