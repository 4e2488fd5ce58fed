"""Notification channel delivery and overview broadcasts."""
from flagkeeper.notification.broadcaster import Broadcaster

__all__ = ["Broadcaster"]
