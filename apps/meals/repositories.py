"""
Django ORM adapters for the meal reconciliation ports.

Concurrency relies on the database:
    - the ``unique_meal_cancellation_slot`` constraint decides which of two
      concurrent creates for the same slot wins (the loser gets ConflictError);
    - ``select_for_update`` locks records while undo and refund re-check
      their state, so the two paths are mutually exclusive per record.
"""

from decimal import Decimal
from typing import Collection, List, Optional
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.payments import services as payment_services
from apps.roster import services as roster_services
from apps.roster.models import Child

from .models import MealCancellation
from .services.exceptions import ConflictError
from .services.ports import (
    CancellationFilter,
    CancellationRecord,
    ChildRef,
    NewCancellation,
    PaymentCredit,
)


def child_ref(child: Child) -> ChildRef:
    group = child.group
    return ChildRef(
        id=child.id,
        name=child.name,
        surname=child.surname,
        group_id=group.id if group else None,
        group_name=group.name if group else None,
        parent_id=child.parent_id,
    )


def cancellation_record(obj: MealCancellation) -> CancellationRecord:
    return CancellationRecord(
        id=obj.id,
        child=child_ref(obj.child),
        date=obj.date,
        meal_type=obj.meal_type,
        meal_price=obj.meal_price,
        refunded=obj.refunded,
        created_at=obj.created_at,
        reason=obj.reason,
    )


class DjangoCancellationRepository:
    """Cancellation storage backed by the ``meal_cancellations`` table."""

    def _queryset(self):
        return MealCancellation.objects.select_related('child', 'child__group')

    def _locking_queryset(self):
        # Lock only the cancellation rows, not the joined child/group rows
        return self._queryset().select_for_update(of=('self',))

    def atomic(self):
        return transaction.atomic()

    def get(self, cancellation_id: UUID) -> Optional[CancellationRecord]:
        obj = self._queryset().filter(id=cancellation_id).first()
        return cancellation_record(obj) if obj else None

    def get_for_update(self, cancellation_id: UUID) -> Optional[CancellationRecord]:
        obj = self._locking_queryset().filter(id=cancellation_id).first()
        return cancellation_record(obj) if obj else None

    def find_by_ids(self, cancellation_ids: Collection[UUID], *, for_update: bool = False) -> List[CancellationRecord]:
        queryset = self._locking_queryset() if for_update else self._queryset()
        # Consistent lock order across concurrent batches
        queryset = queryset.filter(id__in=list(cancellation_ids)).order_by('id')
        return [cancellation_record(obj) for obj in queryset]

    def find(self, criteria: CancellationFilter) -> List[CancellationRecord]:
        queryset = self._queryset()

        if criteria.child_id is not None:
            queryset = queryset.filter(child_id=criteria.child_id)
        if criteria.child_ids is not None:
            queryset = queryset.filter(child_id__in=list(criteria.child_ids))
        if criteria.start_date is not None:
            queryset = queryset.filter(date__gte=criteria.start_date)
        if criteria.end_date is not None:
            queryset = queryset.filter(date__lte=criteria.end_date)
        if criteria.refunded is not None:
            queryset = queryset.filter(refunded=criteria.refunded)

        queryset = queryset.order_by(
            'child__surname',
            'child__name',
            'child_id',
            '-date',
            'meal_type',
        )
        return [cancellation_record(obj) for obj in queryset]

    def insert(self, new: NewCancellation) -> CancellationRecord:
        try:
            with transaction.atomic():
                obj = MealCancellation.objects.create(
                    child_id=new.child_id,
                    date=new.date,
                    meal_type=new.meal_type,
                    meal_price=new.meal_price,
                    reason=new.reason,
                )
        except IntegrityError:
            raise ConflictError(
                f"{new.meal_type} on {new.date.isoformat()} is already cancelled for this child"
            )
        return CancellationRecord(
            id=obj.id,
            child=new.child,
            date=obj.date,
            meal_type=obj.meal_type,
            meal_price=obj.meal_price,
            refunded=obj.refunded,
            created_at=obj.created_at,
            reason=obj.reason,
        )

    def delete(self, cancellation_id: UUID) -> None:
        MealCancellation.objects.filter(id=cancellation_id).delete()

    def mark_refunded(self, cancellation_ids: Collection[UUID]) -> int:
        return (
            MealCancellation.objects
            .filter(id__in=list(cancellation_ids), refunded=False)
            .update(refunded=True, refunded_at=timezone.now())
        )


class DjangoRosterDirectory:
    def get_child(self, child_id: UUID) -> Optional[ChildRef]:
        child = roster_services.get_child(child_id=child_id)
        return child_ref(child) if child else None

    def list_children(self, group_id: Optional[UUID] = None) -> List[ChildRef]:
        return [child_ref(c) for c in roster_services.list_children(group_id=group_id)]


class DjangoPriceResolver:
    def resolve_meal_price(self, group_id: Optional[UUID], meal_type: str) -> Decimal:
        return roster_services.resolve_meal_price(group_id=group_id, meal_type=meal_type)


class DjangoPaymentsLedger:
    def create_payment_credit(self, child_id: UUID, amount: Decimal, reason: str) -> PaymentCredit:
        payment = payment_services.create_payment_credit(
            child_id=child_id,
            amount=amount,
            reason=reason,
        )
        return PaymentCredit(
            id=payment.id,
            child_id=child_id,
            amount=amount,
            description=payment.description,
        )


def guardian_child_ids(user) -> frozenset:
    """Ids of the children a guardian is responsible for."""
    return frozenset(Child.objects.filter(parent=user).values_list('id', flat=True))
