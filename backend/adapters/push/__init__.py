"""Push notification adapters."""

from .expo_adapter import ExpoPushAdapter

__all__ = ["ExpoPushAdapter"]
