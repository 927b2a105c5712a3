"""Desktop notifications for ctxmenu"""

import logging

from plyer import notification

logger = logging.getLogger(__name__)

APP_NAME = "PowerToys Context Menu Edit"


def notify(title: str, message: str, timeout: int = 5):
    """Show desktop notification"""
    try:
        notification.notify(title=title, message=message, app_name=APP_NAME, timeout=timeout)
    except Exception as e:
        logger.debug(f"Notification failed: {e}")  # Notifications are optional
