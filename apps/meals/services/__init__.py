"""
Meals app services layer.

The reconciliation core (deadline policy, cancellation ledger, settlement
aggregator, refund batch processor) depends only on the ports in
``ports.py``. The ``get_*`` factories below wire it to the Django adapters,
the server clock and the configured cutoff hour.
"""

from django.conf import settings
from django.utils import timezone

from .exceptions import (
    MealsServiceError,
    ValidationError,
    ConflictError,
    DeadlineExceededError,
    AlreadyRefundedError,
    NotFoundError,
)

from .deadline import (
    cancellation_deadline,
    is_cancellable,
)

from .cancellation_ledger import (
    CancellationLedger,
    MEAL_TYPES,
)

from .settlements import (
    ChildSettlement,
    SettlementAggregator,
    SettlementReport,
    SettlementSummary,
    build_settlements,
)

from .refund_batch import (
    BatchAction,
    BatchItemResult,
    BatchResult,
    ItemStatus,
    RefundBatchProcessor,
)


def get_cancellation_ledger() -> CancellationLedger:
    from apps.meals.repositories import (
        DjangoCancellationRepository,
        DjangoPriceResolver,
        DjangoRosterDirectory,
    )

    return CancellationLedger(
        repository=DjangoCancellationRepository(),
        roster=DjangoRosterDirectory(),
        prices=DjangoPriceResolver(),
        clock=timezone.now,
        cutoff_hour=settings.MEAL_CANCELLATION_CUTOFF_HOUR,
        tz=timezone.get_default_timezone(),
    )


def get_settlement_aggregator() -> SettlementAggregator:
    return SettlementAggregator(ledger=get_cancellation_ledger())


def get_refund_batch_processor() -> RefundBatchProcessor:
    from apps.meals.repositories import (
        DjangoCancellationRepository,
        DjangoPaymentsLedger,
    )

    return RefundBatchProcessor(
        repository=DjangoCancellationRepository(),
        payments=DjangoPaymentsLedger(),
    )


__all__ = [
    # Exceptions
    'MealsServiceError',
    'ValidationError',
    'ConflictError',
    'DeadlineExceededError',
    'AlreadyRefundedError',
    'NotFoundError',

    # Deadline policy
    'cancellation_deadline',
    'is_cancellable',

    # Cancellation ledger
    'CancellationLedger',
    'MEAL_TYPES',

    # Settlements
    'ChildSettlement',
    'SettlementAggregator',
    'SettlementReport',
    'SettlementSummary',
    'build_settlements',

    # Refund batches
    'BatchAction',
    'BatchItemResult',
    'BatchResult',
    'ItemStatus',
    'RefundBatchProcessor',

    # Wiring
    'get_cancellation_ledger',
    'get_settlement_aggregator',
    'get_refund_batch_processor',
]
