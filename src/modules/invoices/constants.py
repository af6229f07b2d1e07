from django.db import models


class InvoiceStatus(models.TextChoices):
    ISSUED = "ISSUED", "Issued"
    PAID = "PAID", "Paid"
    OVERDUE = "OVERDUE", "Overdue"
    CANCELLED = "CANCELLED", "Cancelled"


# Invoices in these states can no longer be edited.
LOCKED_STATES: set[str] = {InvoiceStatus.PAID, InvoiceStatus.CANCELLED}

# Issued but not yet settled.
UNPAID_STATES: set[str] = {InvoiceStatus.ISSUED, InvoiceStatus.OVERDUE}
