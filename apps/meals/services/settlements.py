"""
Settlement Aggregation
======================

Read-only projection of meal cancellations into per-child settlements and
a roster-wide summary, used by staff to see which cancelled meals are still
owed to families and which have already been refunded.

Totals are always computed from the ``meal_price`` snapshots on the
records, so for every child ``total_unrefunded + total_refunded`` equals the
sum of prices of that child's cancellations in the queried range.

Example:
    Settlements for one group in January::

        aggregator = SettlementAggregator(ledger=get_cancellation_ledger())
        report = aggregator.list_settlements(
            group_id=group.id,
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 31),
        )
        for row in report.settlements:
            print(row.child_surname, row.total_unrefunded)
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from .cancellation_ledger import CancellationLedger
from .ports import CancellationRecord


@dataclass
class ChildSettlement:
    """Cancellations of one child within the queried range and their totals."""

    child_id: UUID
    child_name: str
    child_surname: str
    group_id: Optional[UUID]
    group_name: Optional[str]
    cancellations: List[CancellationRecord] = field(default_factory=list)
    total_unrefunded: Decimal = Decimal('0.00')
    total_refunded: Decimal = Decimal('0.00')

    @property
    def total(self) -> Decimal:
        return self.total_unrefunded + self.total_refunded

    def add(self, record: CancellationRecord) -> None:
        self.cancellations.append(record)
        if record.refunded:
            self.total_refunded += record.meal_price
        else:
            self.total_unrefunded += record.meal_price


@dataclass(frozen=True)
class SettlementSummary:
    total_children: int = 0
    total_cancellations: int = 0
    grand_total_unrefunded: Decimal = Decimal('0.00')
    grand_total_refunded: Decimal = Decimal('0.00')


@dataclass(frozen=True)
class SettlementReport:
    settlements: List[ChildSettlement]
    summary: SettlementSummary


def build_settlements(
    cancellations: Iterable[CancellationRecord],
) -> Tuple[List[ChildSettlement], SettlementSummary]:
    """
    Group cancellations by child and fold them into totals.

    Children appear in the order their first cancellation appears in the
    input, so an input sorted by surname yields settlements sorted by
    surname.

    Args:
        cancellations: Already filtered cancellation records

    Returns:
        tuple: A tuple containing:
            - list[ChildSettlement]: One entry per child with cancellations.
            - SettlementSummary: Roster-wide counts and grand totals.
    """
    by_child = {}
    total_cancellations = 0

    for record in cancellations:
        settlement = by_child.get(record.child_id)
        if settlement is None:
            settlement = ChildSettlement(
                child_id=record.child_id,
                child_name=record.child.name,
                child_surname=record.child.surname,
                group_id=record.child.group_id,
                group_name=record.child.group_name,
            )
            by_child[record.child_id] = settlement
        settlement.add(record)
        total_cancellations += 1

    settlements = list(by_child.values())
    summary = SettlementSummary(
        total_children=len(settlements),
        total_cancellations=total_cancellations,
        grand_total_unrefunded=sum((s.total_unrefunded for s in settlements), Decimal('0.00')),
        grand_total_refunded=sum((s.total_refunded for s in settlements), Decimal('0.00')),
    )
    return settlements, summary


class SettlementAggregator:
    """
    Staff-facing settlement queries.

    Reads go through the ledger's single-statement listing, so a report never
    contains half of a refund batch that is committing concurrently.
    """

    def __init__(self, *, ledger: CancellationLedger):
        self.ledger = ledger

    def list_settlements(
        self,
        *,
        group_id: Optional[UUID] = None,
        child_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        only_unrefunded: bool = False,
    ) -> SettlementReport:
        cancellations = self.ledger.list_cancellations(
            group_id=group_id,
            child_id=child_id,
            start_date=start_date,
            end_date=end_date,
            only_unrefunded=only_unrefunded,
        )
        settlements, summary = build_settlements(cancellations)
        return SettlementReport(settlements=settlements, summary=summary)
