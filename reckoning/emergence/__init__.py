from .notifications import EmergenceNotificationRepository, EmergenceNotificationService
from .observer import EmergenceObserver, EmergenceThresholds

__all__ = [
    "EmergenceNotificationRepository",
    "EmergenceNotificationService",
    "EmergenceObserver",
    "EmergenceThresholds",
]
