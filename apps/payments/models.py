from django.db import models
import uuid


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'
    OVERDUE = 'OVERDUE', 'Overdue'
    CANCELLED = 'CANCELLED', 'Cancelled'


class Payment(models.Model):
    """
    Ledger entry for a child.

    Positive amounts are charges owed by the family; negative amounts are
    credits returned to it (e.g. refunds for cancelled meals).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    child = models.ForeignKey(
        'roster.Child',
        on_delete=models.CASCADE,
        related_name='payments'
    )

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    description = models.CharField(max_length=255)
    due_date = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    paid_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payments'
        indexes = [
            models.Index(fields=['child', 'status'], name='payments_child_status_idx'),
            models.Index(fields=['due_date'], name='payments_due_date_idx'),
        ]
        ordering = ['-due_date', '-created_at']

    def __str__(self):
        return f"{self.child} {self.amount} ({self.status})"

    @property
    def is_credit(self):
        return self.amount < 0
