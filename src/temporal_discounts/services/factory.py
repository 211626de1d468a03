"""
Simple factory for service singletons.

Activities call `ServiceFactory.get_*()` instead of instantiating services
themselves, so tests can swap implementations by replacing the class-level
cache (see `reset()`).
"""

from temporal_discounts.services.notify import NotificationService
from temporal_discounts.services.payment import PaymentService


class ServiceFactory:
    """Lazily creates and caches service instances (class-level singletons)."""

    _payment: PaymentService | None = None
    _notification: NotificationService | None = None

    @classmethod
    def get_payment_service(cls) -> PaymentService:
        if cls._payment is None:
            cls._payment = PaymentService()
        return cls._payment

    @classmethod
    def get_notification_service(cls) -> NotificationService:
        if cls._notification is None:
            cls._notification = NotificationService()
        return cls._notification

    @classmethod
    def reset(cls) -> None:
        cls._payment = None
        cls._notification = None
