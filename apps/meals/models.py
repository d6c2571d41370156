from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class MealType(models.TextChoices):
    BREAKFAST = 'BREAKFAST', 'Breakfast'
    LUNCH = 'LUNCH', 'Lunch'
    SNACK = 'SNACK', 'Snack'


class MealCancellation(models.Model):
    """A guardian's cancellation of one meal (child, day, meal type)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    child = models.ForeignKey(
        'roster.Child',
        on_delete=models.CASCADE,
        related_name='meal_cancellations'
    )
    date = models.DateField()
    meal_type = models.CharField(max_length=20, choices=MealType.choices)
    reason = models.CharField(max_length=500, blank=True)

    # Price at the time of cancellation; group price changes never alter it
    meal_price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        editable=False,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    # Refund tracking (false -> true only)
    refunded = models.BooleanField(default=False)
    refunded_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'meal_cancellations'
        constraints = [
            models.UniqueConstraint(
                fields=['child', 'date', 'meal_type'],
                name='unique_meal_cancellation_slot',
            ),
        ]
        indexes = [
            models.Index(fields=['date'], name='meal_cancel_date_idx'),
            models.Index(fields=['refunded', 'date'], name='meal_cancel_refunded_idx'),
        ]
        ordering = ['-date', 'meal_type']

    def __str__(self):
        state = 'refunded' if self.refunded else 'unrefunded'
        return f"{self.child} - {self.meal_type} {self.date} ({self.meal_price}, {state})"
