"""Pre-order status choices and state machine."""

from django.db import models


class PreOrderStatus(models.TextChoices):
    WAITING = "WAITING", "Waiting for stock"
    AVAILABLE = "AVAILABLE", "Available"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    PreOrderStatus.WAITING: {PreOrderStatus.AVAILABLE, PreOrderStatus.CANCELLED},
    PreOrderStatus.AVAILABLE: {PreOrderStatus.DELIVERED, PreOrderStatus.CANCELLED},
    PreOrderStatus.DELIVERED: set(),
    PreOrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {PreOrderStatus.DELIVERED, PreOrderStatus.CANCELLED}
