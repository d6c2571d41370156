"""
Payments ledger services.

Only credit creation lives here; it is called by the meal refund batch
inside the caller's transaction.
"""

import logging
from decimal import Decimal
from uuid import UUID

from django.utils import timezone

from .models import Payment, PaymentStatus

logger = logging.getLogger(__name__)


def create_payment_credit(*, child_id: UUID, amount: Decimal, reason: str) -> Payment:
    """
    Record money returned to a child's family.

    The credit is settled immediately: it is stored as an already PAID entry
    with a negative amount, due and paid today.

    Args:
        child_id: Child the credit belongs to
        amount: Positive amount being returned
        reason: Human readable description shown on the family's statement

    Returns:
        Created Payment instance

    Raises:
        ValueError: If amount is not positive
    """
    if amount <= 0:
        raise ValueError(f"Credit amount must be positive, got {amount}")

    today = timezone.localdate()
    payment = Payment.objects.create(
        child_id=child_id,
        amount=-amount,
        description=reason,
        due_date=today,
        status=PaymentStatus.PAID,
        paid_date=today,
    )
    logger.info("Created payment credit %s of %s for child %s", payment.id, amount, child_id)
    return payment
