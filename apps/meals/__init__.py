"""
Meals App - Meal Cancellations and Settlements

Guardians cancel a child's meal before the daily cutoff; staff review
per-child settlements of cancelled meals and process refunds in batches,
optionally generating credit entries in the payments ledger.

Key Features:
- Server-side cancellation deadline (configurable cutoff hour)
- One cancellation per (child, day, meal type), enforced by the database
- Meal price snapshot on every cancellation
- Per-child and roster-wide settlement totals
- Best-effort refund batches with per-item outcomes

Architecture:
- Models: MealCancellation
- Services: CancellationLedger, SettlementAggregator, RefundBatchProcessor
  (ports in services/ports.py, Django adapters in repositories.py)
- Views: cancellation ViewSet, settlement and refund batch endpoints
- Permissions: guardian scoping, manager-only settlements
"""
