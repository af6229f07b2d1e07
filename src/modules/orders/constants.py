"""Order domain constants.

Defines status and payment choices and the valid status transitions of the
order state machine.  ``VALID_TRANSITIONS`` is the only place the allowed
moves are written down.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    CREATED = "CREATED", "Created"
    PAID = "PAID", "Paid"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentStatus(models.TextChoices):
    UNPAID = "UNPAID", "Unpaid"
    PAID = "PAID", "Paid"
    PARTIALLY_PAID = "PARTIALLY_PAID", "Partially paid"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"
    CARD = "CARD", "Card"
    OTHER = "OTHER", "Other"


class HomeOrAway(models.TextChoices):
    HOME = "HOME", "Home"
    AWAY = "AWAY", "Away"


class AgeGroup(models.TextChoices):
    ADULT = "ADULT", "Adult"
    KID = "KID", "Kid"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.CREATED: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def can_transition(current: str, new: str) -> bool:
    return new in VALID_TRANSITIONS.get(current, set())
