"""
Ports between the meal reconciliation core and its collaborators.

The cancellation ledger, settlement aggregator and refund batch processor
only talk to storage, the roster and the payments ledger through these
protocols. ``apps.meals.repositories`` provides the Django ORM adapters;
tests provide in-memory ones.

Records crossing the ports are frozen dataclasses, never ORM instances.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Collection, ContextManager, FrozenSet, List, Optional, Protocol
from uuid import UUID


@dataclass(frozen=True)
class ChildRef:
    """Roster entry as seen by the meals core."""

    id: UUID
    name: str
    surname: str
    group_id: Optional[UUID] = None
    group_name: Optional[str] = None
    parent_id: Optional[UUID] = None


@dataclass(frozen=True)
class CancellationRecord:
    """A persisted meal cancellation with its price snapshot."""

    id: UUID
    child: ChildRef
    date: date
    meal_type: str
    meal_price: Decimal
    refunded: bool
    created_at: datetime
    reason: str = ''

    @property
    def child_id(self) -> UUID:
        return self.child.id


@dataclass(frozen=True)
class NewCancellation:
    """Data for a cancellation that is about to be inserted."""

    child: ChildRef
    date: date
    meal_type: str
    meal_price: Decimal
    reason: str = ''

    @property
    def child_id(self) -> UUID:
        return self.child.id


@dataclass(frozen=True)
class CancellationFilter:
    """
    Criteria for listing cancellations.

    ``child_ids`` restricts the result to a set of children (guardian scope,
    or a group already resolved through the roster). ``refunded`` of None
    means both states.
    """

    child_id: Optional[UUID] = None
    child_ids: Optional[FrozenSet[UUID]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    refunded: Optional[bool] = None


@dataclass(frozen=True)
class PaymentCredit:
    """Credit entry created in the payments ledger for refunded meals."""

    id: UUID
    child_id: UUID
    amount: Decimal
    description: str
    cancellation_ids: tuple = ()


class CancellationRepository(Protocol):
    """Storage of cancellation records and their refund state."""

    def atomic(self) -> ContextManager[None]:
        """Unit of work; nested calls must behave like savepoints."""
        ...

    def get(self, cancellation_id: UUID) -> Optional[CancellationRecord]:
        ...

    def get_for_update(self, cancellation_id: UUID) -> Optional[CancellationRecord]:
        """Fetch and lock a record until the enclosing ``atomic()`` ends."""
        ...

    def find_by_ids(self, cancellation_ids: Collection[UUID], *, for_update: bool = False) -> List[CancellationRecord]:
        ...

    def find(self, criteria: CancellationFilter) -> List[CancellationRecord]:
        """
        Records matching ``criteria`` read in a single statement, ordered by
        child surname, child name, date (newest first) and meal type.
        """
        ...

    def insert(self, new: NewCancellation) -> CancellationRecord:
        """
        Persist a new record.

        Raises:
            ConflictError: If the (child, date, meal type) slot is taken;
                enforced by the store, not by a prior lookup.
        """
        ...

    def delete(self, cancellation_id: UUID) -> None:
        ...

    def mark_refunded(self, cancellation_ids: Collection[UUID]) -> int:
        """Flip ``refunded`` to True on unrefunded records; returns rows changed."""
        ...


class RosterDirectory(Protocol):
    def get_child(self, child_id: UUID) -> Optional[ChildRef]:
        ...

    def list_children(self, group_id: Optional[UUID] = None) -> List[ChildRef]:
        ...


class PriceResolver(Protocol):
    def resolve_meal_price(self, group_id: Optional[UUID], meal_type: str) -> Decimal:
        ...


class PaymentsLedger(Protocol):
    def create_payment_credit(self, child_id: UUID, amount: Decimal, reason: str) -> PaymentCredit:
        ...


Clock = Callable[[], datetime]
