"""
Refund batch processing.

Staff select cancellations from the settlements view and either mark them
as refunded (money returned outside the system) or generate payment credits
for them. Both actions are best effort over many children: every requested
id gets its own outcome and one bad id never rejects the batch.

Outcomes per id:
    succeeded - the cancellation moved to refunded
    skipped   - it was already refunded (idempotent no-op)
    error     - it could not be processed (``code`` says why: not_found,
                refund_failed or payment_failed)
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Iterable, List
from uuid import UUID

from .exceptions import ValidationError
from .ports import CancellationRepository, PaymentCredit, PaymentsLedger

logger = logging.getLogger(__name__)


class BatchAction(str, Enum):
    MARK_REFUNDED = 'mark_refunded'
    GENERATE_PAYMENT = 'generate_payment'


class ItemStatus(str, Enum):
    SUCCEEDED = 'succeeded'
    SKIPPED = 'skipped'
    ERROR = 'error'


@dataclass(frozen=True)
class BatchItemResult:
    cancellation_id: UUID
    status: ItemStatus
    code: str = ''
    detail: str = ''


@dataclass
class BatchResult:
    action: BatchAction
    succeeded: List[BatchItemResult] = field(default_factory=list)
    skipped: List[BatchItemResult] = field(default_factory=list)
    errors: List[BatchItemResult] = field(default_factory=list)
    payments: List[PaymentCredit] = field(default_factory=list)

    @property
    def counts(self):
        return {
            'succeeded': len(self.succeeded),
            'skipped': len(self.skipped),
            'errors': len(self.errors),
            'payments': len(self.payments),
        }

    def record(self, item: BatchItemResult) -> None:
        if item.status == ItemStatus.SUCCEEDED:
            self.succeeded.append(item)
        elif item.status == ItemStatus.SKIPPED:
            self.skipped.append(item)
        else:
            self.errors.append(item)


def _succeeded(cancellation_id):
    return BatchItemResult(cancellation_id, ItemStatus.SUCCEEDED)


def _already_refunded(cancellation_id):
    return BatchItemResult(
        cancellation_id,
        ItemStatus.SKIPPED,
        code='already_refunded',
        detail='Cancellation was already refunded.',
    )


def _not_found(cancellation_id):
    return BatchItemResult(
        cancellation_id,
        ItemStatus.ERROR,
        code='not_found',
        detail='Cancellation not found.',
    )


def refund_description(meal_count: int) -> str:
    noun = 'meal' if meal_count == 1 else 'meals'
    return f"Refund for cancelled meals ({meal_count} {noun})"


class RefundBatchProcessor:
    """
    Applies a refund action to a set of cancellations.

    Args:
        repository: Storage for cancellation records
        payments: Payments ledger receiving credit entries
    """

    def __init__(self, *, repository: CancellationRepository, payments: PaymentsLedger):
        self.repository = repository
        self.payments = payments

    def process_batch(self, *, cancellation_ids: Iterable[UUID], action) -> BatchResult:
        """
        Run ``action`` over ``cancellation_ids``.

        Duplicate ids are processed once, in first-seen order.

        Raises:
            ValidationError: If the id list is empty or the action is unknown
        """
        try:
            action = BatchAction(action)
        except ValueError:
            raise ValidationError(f"Unknown action: {action}")

        ids = list(OrderedDict.fromkeys(cancellation_ids))
        if not ids:
            raise ValidationError("No cancellation ids to process")

        if action == BatchAction.MARK_REFUNDED:
            result = self._mark_refunded(ids)
        else:
            result = self._generate_payment(ids)

        logger.info(
            "Refund batch %s over %d ids: %s",
            action.value, len(ids), result.counts,
        )
        return result

    def _mark_refunded(self, ids: List[UUID]) -> BatchResult:
        result = BatchResult(action=BatchAction.MARK_REFUNDED)
        for cancellation_id in ids:
            try:
                item = self._refund_one(cancellation_id)
            except Exception as exc:
                logger.exception("Marking cancellation %s refunded failed", cancellation_id)
                item = BatchItemResult(
                    cancellation_id,
                    ItemStatus.ERROR,
                    code='refund_failed',
                    detail=f"Cancellation could not be marked refunded: {exc.__class__.__name__}",
                )
            result.record(item)
        return result

    def _refund_one(self, cancellation_id: UUID) -> BatchItemResult:
        with self.repository.atomic():
            record = self.repository.get_for_update(cancellation_id)
            if record is None:
                return _not_found(cancellation_id)
            if record.refunded:
                return _already_refunded(cancellation_id)
            self.repository.mark_refunded([cancellation_id])
            return _succeeded(cancellation_id)

    def _generate_payment(self, ids: List[UUID]) -> BatchResult:
        """
        One credit per child for that child's selected, unrefunded meals.

        Each child's credit and refund flags are written in their own
        transaction; a failure rolls back that child only.
        """
        result = BatchResult(action=BatchAction.GENERATE_PAYMENT)
        found = {r.id: r for r in self.repository.find_by_ids(ids)}

        by_child = OrderedDict()
        for cancellation_id in ids:
            record = found.get(cancellation_id)
            if record is None:
                result.record(_not_found(cancellation_id))
            elif record.refunded:
                result.record(_already_refunded(cancellation_id))
            else:
                by_child.setdefault(record.child_id, []).append(cancellation_id)

        for child_id, child_ids in by_child.items():
            try:
                items, credit = self._refund_child(child_id, child_ids)
            except Exception as exc:
                logger.exception("Refund payment failed for child %s", child_id)
                for cancellation_id in child_ids:
                    result.record(BatchItemResult(
                        cancellation_id,
                        ItemStatus.ERROR,
                        code='payment_failed',
                        detail=f"Payment could not be created: {exc.__class__.__name__}",
                    ))
                continue

            for item in items:
                result.record(item)
            if credit is not None:
                result.payments.append(credit)

        return result

    def _refund_child(self, child_id: UUID, child_ids: List[UUID]):
        items = []
        credit = None
        with self.repository.atomic():
            # State may have moved since the unlocked read; decide under lock.
            locked = {r.id: r for r in self.repository.find_by_ids(child_ids, for_update=True)}
            selected = []
            for cancellation_id in child_ids:
                record = locked.get(cancellation_id)
                if record is None:
                    items.append(_not_found(cancellation_id))
                elif record.refunded:
                    items.append(_already_refunded(cancellation_id))
                else:
                    selected.append(record)

            if selected:
                total = sum((r.meal_price for r in selected), Decimal('0.00'))
                if total > 0:
                    credit = self.payments.create_payment_credit(
                        child_id,
                        total,
                        refund_description(len(selected)),
                    )
                    credit = replace(credit, cancellation_ids=tuple(r.id for r in selected))
                self.repository.mark_refunded([r.id for r in selected])
                items.extend(_succeeded(r.id) for r in selected)

        items.sort(key=lambda item: child_ids.index(item.cancellation_id))
        return items, credit
