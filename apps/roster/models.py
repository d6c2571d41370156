# ==========================================
# apps/roster/models.py
# ==========================================

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
import uuid


class Group(models.Model):
    """Kindergarten group with its daily meal prices."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    age_range = models.CharField(max_length=50, blank=True)
    max_capacity = models.PositiveIntegerField(null=True, blank=True)

    # Meal pricing
    breakfast_price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    lunch_price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    snack_price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    PRICE_FIELDS = {
        'BREAKFAST': 'breakfast_price',
        'LUNCH': 'lunch_price',
        'SNACK': 'snack_price',
    }

    class Meta:
        db_table = 'kindergarten_groups'
        ordering = ['name']

    def __str__(self):
        return self.name

    def price_for(self, meal_type):
        """Current price of one meal of the given type."""
        try:
            return getattr(self, self.PRICE_FIELDS[meal_type])
        except KeyError:
            raise ValueError(f"Unknown meal type: {meal_type}")


class Child(models.Model):
    """Child enrolled in the kindergarten."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    surname = models.CharField(max_length=100)
    group = models.ForeignKey(
        Group,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='children'
    )
    parent = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='children'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'children'
        indexes = [
            models.Index(fields=['group', 'surname'], name='children_group_surname_idx'),
            models.Index(fields=['parent'], name='children_parent_idx'),
        ]
        ordering = ['surname', 'name']
        verbose_name_plural = 'children'

    def __str__(self):
        return f"{self.name} {self.surname}"
