"""
Roster read services.

Used by the meals app to resolve children, group membership and the meal
price that gets snapshotted onto a cancellation.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from .models import Child, Group


def list_children(*, group_id: Optional[UUID] = None) -> QuerySet[Child]:
    """Children on the roster, optionally limited to one group."""
    queryset = Child.objects.select_related('group')
    if group_id is not None:
        queryset = queryset.filter(group_id=group_id)
    return queryset.order_by('surname', 'name')


def get_child(*, child_id: UUID) -> Optional[Child]:
    return Child.objects.select_related('group').filter(id=child_id).first()


def resolve_meal_price(*, group_id: Optional[UUID], meal_type: str) -> Decimal:
    """
    Current price of a meal type for a group.

    Children without a group (or with a group that no longer exists) have
    no meal price, so the result is 0.00.
    """
    if group_id is None:
        return Decimal('0.00')
    group = Group.objects.filter(id=group_id).first()
    if group is None:
        return Decimal('0.00')
    return group.price_for(meal_type)
