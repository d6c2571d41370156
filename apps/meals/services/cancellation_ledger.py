"""
Cancellation ledger service.

Owns creation, removal and listing of meal cancellations. The deadline rule
and the one-cancellation-per-slot rule are enforced here, at the point of
mutation, using the server clock.
"""

import logging
from datetime import date, datetime, tzinfo
from typing import List, Optional
from uuid import UUID

from .deadline import cancellation_deadline, is_cancellable
from .exceptions import (
    AlreadyRefundedError,
    DeadlineExceededError,
    NotFoundError,
    ValidationError,
)
from .ports import (
    CancellationFilter,
    CancellationRecord,
    CancellationRepository,
    Clock,
    NewCancellation,
    PriceResolver,
    RosterDirectory,
)

logger = logging.getLogger(__name__)

MEAL_TYPES = ('BREAKFAST', 'LUNCH', 'SNACK')

MAX_REASON_LENGTH = 500


class CancellationLedger:
    """
    Guardian-facing operations on meal cancellations.

    Args:
        repository: Storage for cancellation records
        roster: Child lookup and group membership
        prices: Current meal prices, snapshotted onto new cancellations
        clock: Returns the current aware datetime (server time)
        cutoff_hour: Hour on the meal day after which the slot is closed
        tz: Institution time zone the cutoff hour is expressed in
    """

    def __init__(
        self,
        *,
        repository: CancellationRepository,
        roster: RosterDirectory,
        prices: PriceResolver,
        clock: Clock,
        cutoff_hour: int,
        tz: tzinfo,
    ):
        self.repository = repository
        self.roster = roster
        self.prices = prices
        self.clock = clock
        self.cutoff_hour = cutoff_hour
        self.tz = tz

    def deadline_for(self, meal_date: date) -> datetime:
        return cancellation_deadline(meal_date, self.cutoff_hour, self.tz)

    def is_open(self, meal_date: date) -> bool:
        """Whether the slot for ``meal_date`` is still cancellable right now."""
        return is_cancellable(meal_date, self.clock(), self.cutoff_hour, self.tz)

    def can_undo(self, record: CancellationRecord) -> bool:
        return not record.refunded and self.is_open(record.date)

    def create_cancellation(
        self,
        *,
        child_id: UUID,
        date: date,
        meal_type: str,
        reason: str = '',
    ) -> CancellationRecord:
        """
        Cancel one meal for a child.

        The meal price is resolved from the child's group and stored on the
        record; later price changes never touch it.

        Raises:
            ValidationError: If meal_type is unknown or reason is too long
            NotFoundError: If the child is not on the roster
            DeadlineExceededError: If the slot's cutoff has passed
            ConflictError: If the slot is already cancelled
        """
        if meal_type not in MEAL_TYPES:
            raise ValidationError(f"Unknown meal type: {meal_type}")
        reason = (reason or '').strip()
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters")

        child = self.roster.get_child(child_id)
        if child is None:
            raise NotFoundError(f"Child {child_id} not found")

        if not self.is_open(date):
            raise DeadlineExceededError(
                f"Meals for {date.isoformat()} can only be cancelled until "
                f"{self.cutoff_hour}:00 on the day of the meal"
            )

        with self.repository.atomic():
            price = self.prices.resolve_meal_price(child.group_id, meal_type)
            record = self.repository.insert(NewCancellation(
                child=child,
                date=date,
                meal_type=meal_type,
                meal_price=price,
                reason=reason,
            ))

        logger.info(
            "Cancelled %s on %s for child %s (price %s)",
            meal_type, date.isoformat(), child.id, price,
        )
        return record

    def remove_cancellation(self, *, cancellation_id: UUID) -> CancellationRecord:
        """
        Undo a cancellation, freeing the slot.

        The record is locked while refund state and deadline are re-checked,
        so a concurrent refund and undo cannot both succeed.

        Raises:
            NotFoundError: If the cancellation does not exist
            AlreadyRefundedError: If it has been refunded
            DeadlineExceededError: If the slot's cutoff has passed
        """
        with self.repository.atomic():
            record = self.repository.get_for_update(cancellation_id)
            if record is None:
                raise NotFoundError(f"Cancellation {cancellation_id} not found")
            if record.refunded:
                raise AlreadyRefundedError()
            if not self.is_open(record.date):
                raise DeadlineExceededError("The cancellation can no longer be undone")
            self.repository.delete(record.id)

        logger.info(
            "Removed cancellation %s (%s on %s, child %s)",
            record.id, record.meal_type, record.date.isoformat(), record.child_id,
        )
        return record

    def get_cancellation(self, *, cancellation_id: UUID) -> CancellationRecord:
        record = self.repository.get(cancellation_id)
        if record is None:
            raise NotFoundError(f"Cancellation {cancellation_id} not found")
        return record

    def list_cancellations(
        self,
        *,
        child_id: Optional[UUID] = None,
        child_ids=None,
        group_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        refunded: Optional[bool] = None,
        only_unrefunded: bool = False,
    ) -> List[CancellationRecord]:
        """
        Cancellations matching the filters, ordered by child surname then date.

        ``group_id`` is resolved to its children through the roster;
        ``child_ids`` limits the result to a set of children (a guardian's
        own). ``only_unrefunded`` overrides ``refunded``.
        """
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must not be after end_date")

        scope = None
        if child_ids is not None:
            scope = frozenset(child_ids)
        if group_id is not None:
            group_children = frozenset(c.id for c in self.roster.list_children(group_id))
            scope = group_children if scope is None else scope & group_children

        if only_unrefunded:
            refunded = False

        return self.repository.find(CancellationFilter(
            child_id=child_id,
            child_ids=scope,
            start_date=start_date,
            end_date=end_date,
            refunded=refunded,
        ))
