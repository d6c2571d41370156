import threading
import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4
from apps.meals.models import MealType
from apps.meals.services import (
    MEAL_TYPES,
    AlreadyRefundedError,
    ConflictError,
    DeadlineExceededError,
    NotFoundError,
    ValidationError,
)
from apps.meals.services.ports import ChildRef
from apps.meals.tests.fakes import MEAL_DAY, WARSAW


def test_meal_types_match_model_choices():
    """The core and the model agree on the meal types."""
    assert set(MEAL_TYPES) == set(MealType.values)


# =============================================================================
# create_cancellation
# =============================================================================

class TestCreateCancellation:
    """Tests for CancellationLedger.create_cancellation()"""

    def test_create_snapshots_group_price(self, ledger, kid_anna):
        """The group's current lunch price is stored on the record."""
        record = ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')

        assert record.meal_price == Decimal('12.00')
        assert record.refunded is False
        assert record.child_id == kid_anna.id
        assert record.date == MEAL_DAY

    def test_price_change_does_not_alter_existing_record(self, ledger, prices, repository, kid_anna):
        """Raising the group price later leaves the snapshot untouched."""
        record = ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')
        prices.set_price(kid_anna.group_id, 'LUNCH', '20.00')

        assert repository.get(record.id).meal_price == Decimal('12.00')

    def test_reason_is_stripped_and_stored(self, ledger, kid_anna):
        record = ledger.create_cancellation(
            child_id=kid_anna.id, date=MEAL_DAY, meal_type='SNACK', reason='  fever  '
        )

        assert record.reason == 'fever'

    def test_reason_too_long(self, ledger, kid_anna):
        with pytest.raises(ValidationError):
            ledger.create_cancellation(
                child_id=kid_anna.id, date=MEAL_DAY, meal_type='SNACK', reason='x' * 501
            )

    def test_unknown_meal_type(self, ledger, kid_anna):
        """Meal types outside BREAKFAST/LUNCH/SNACK are invalid."""
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='DINNER')

        assert exc_info.value.error_code == 'invalid'

    def test_unknown_child(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.create_cancellation(child_id=uuid4(), date=MEAL_DAY, meal_type='LUNCH')

    def test_duplicate_slot_conflicts(self, ledger, repository, kid_anna):
        """A second cancellation of the same slot is a conflict; the first survives."""
        first = ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')

        with pytest.raises(ConflictError) as exc_info:
            ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')

        assert exc_info.value.error_code == 'conflict'
        assert list(repository.rows) == [first.id]

    def test_other_meal_same_day_is_allowed(self, ledger, kid_anna):
        ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')
        record = ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='SNACK')

        assert record.meal_price == Decimal('3.50')

    def test_at_cutoff_is_rejected(self, ledger, clock, repository, kid_anna):
        """At exactly 08:00 the meal day is closed and nothing is stored."""
        clock.now = datetime(2025, 1, 15, 8, 0, tzinfo=WARSAW)

        with pytest.raises(DeadlineExceededError) as exc_info:
            ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')

        assert exc_info.value.error_code == 'deadline_exceeded'
        assert repository.rows == {}

    def test_future_day_is_open_after_todays_cutoff(self, ledger, clock, kid_anna):
        clock.now = datetime(2025, 1, 15, 12, 0, tzinfo=WARSAW)

        record = ledger.create_cancellation(
            child_id=kid_anna.id, date=MEAL_DAY + timedelta(days=1), meal_type='BREAKFAST'
        )

        assert record.meal_price == Decimal('5.00')

    def test_child_without_group_gets_zero_price(self, ledger, roster):
        """A child with no group has no meal price."""
        loner = roster.add(ChildRef(id=uuid4(), name='Zosia', surname='Wolna'))

        record = ledger.create_cancellation(child_id=loner.id, date=MEAL_DAY, meal_type='LUNCH')

        assert record.meal_price == Decimal('0.00')

    def test_concurrent_creates_for_same_slot(self, ledger, prices, repository, kid_anna):
        """Two racing creates: exactly one succeeds, the other conflicts."""
        barrier = threading.Barrier(2)
        resolve = prices.resolve_meal_price

        def resolve_after_both_arrive(group_id, meal_type):
            # Both requests have passed every pre-check before either inserts
            barrier.wait(timeout=5)
            return resolve(group_id, meal_type)

        prices.resolve_meal_price = resolve_after_both_arrive
        outcomes = []

        def cancel():
            try:
                ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')
                outcomes.append('created')
            except ConflictError:
                outcomes.append('conflict')

        threads = [threading.Thread(target=cancel) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(outcomes) == ['conflict', 'created']
        assert len(repository.rows) == 1


# =============================================================================
# remove_cancellation
# =============================================================================

class TestRemoveCancellation:
    """Tests for CancellationLedger.remove_cancellation()"""

    def test_remove_before_cutoff(self, ledger, repository, kid_anna):
        record = ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')

        removed = ledger.remove_cancellation(cancellation_id=record.id)

        assert removed.id == record.id
        assert repository.rows == {}
        assert record.id in repository.locked_ids

    def test_remove_then_recreate_same_slot(self, ledger, kid_anna):
        """Undo frees the slot, so it can be cancelled again."""
        record = ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')
        ledger.remove_cancellation(cancellation_id=record.id)

        again = ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')

        assert again.id != record.id

    def test_remove_missing(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.remove_cancellation(cancellation_id=uuid4())

    def test_remove_refunded_is_rejected(self, ledger, repository, kid_anna):
        """Refunded cancellations are permanent, even before the cutoff."""
        record = repository.add(kid_anna, MEAL_DAY, 'LUNCH', '12.00', refunded=True)

        with pytest.raises(AlreadyRefundedError) as exc_info:
            ledger.remove_cancellation(cancellation_id=record.id)

        assert exc_info.value.error_code == 'already_refunded'
        assert record.id in repository.rows

    def test_remove_after_cutoff_is_rejected(self, ledger, clock, repository, kid_anna):
        record = ledger.create_cancellation(child_id=kid_anna.id, date=MEAL_DAY, meal_type='LUNCH')
        clock.now = datetime(2025, 1, 15, 8, 0, 1, tzinfo=WARSAW)

        with pytest.raises(DeadlineExceededError):
            ledger.remove_cancellation(cancellation_id=record.id)

        assert record.id in repository.rows

    def test_refund_check_precedes_deadline_check(self, ledger, repository, kid_anna):
        """A refunded past cancellation reports already_refunded."""
        record = repository.add(kid_anna, date(2025, 1, 10), 'LUNCH', '12.00', refunded=True)

        with pytest.raises(AlreadyRefundedError):
            ledger.remove_cancellation(cancellation_id=record.id)


# =============================================================================
# Queries
# =============================================================================

class TestListCancellations:
    """Tests for CancellationLedger.list_cancellations()"""

    @pytest.fixture
    def seeded(self, repository, kid_anna, kid_jan, kid_ola):
        return {
            'anna_10': repository.add(kid_anna, date(2025, 1, 10), 'LUNCH', '12.00', refunded=True),
            'anna_15': repository.add(kid_anna, date(2025, 1, 15), 'LUNCH', '12.00'),
            'jan_12': repository.add(kid_jan, date(2025, 1, 12), 'SNACK', '3.50'),
            'ola_11': repository.add(kid_ola, date(2025, 1, 11), 'LUNCH', '14.00'),
        }

    def test_ordered_by_surname_then_newest_first(self, ledger, seeded):
        records = ledger.list_cancellations()

        assert [r.id for r in records] == [
            seeded['ola_11'].id,    # Adamska
            seeded['anna_15'].id,   # Kowalska, newest first
            seeded['anna_10'].id,
            seeded['jan_12'].id,    # Nowak
        ]

    def test_filter_by_group(self, ledger, seeded, sunflowers_id):
        records = ledger.list_cancellations(group_id=sunflowers_id)

        assert {r.id for r in records} == {seeded['anna_10'].id, seeded['anna_15'].id, seeded['jan_12'].id}

    def test_group_and_child_scope_intersect(self, ledger, seeded, sunflowers_id, kid_ola, kid_jan):
        """A guardian scope outside the group yields nothing from that group."""
        records = ledger.list_cancellations(group_id=sunflowers_id, child_ids=[kid_ola.id, kid_jan.id])

        assert [r.id for r in records] == [seeded['jan_12'].id]

    def test_filter_by_date_range_is_inclusive(self, ledger, seeded):
        records = ledger.list_cancellations(start_date=date(2025, 1, 11), end_date=date(2025, 1, 12))

        assert {r.id for r in records} == {seeded['ola_11'].id, seeded['jan_12'].id}

    def test_filter_refunded(self, ledger, seeded):
        assert [r.id for r in ledger.list_cancellations(refunded=True)] == [seeded['anna_10'].id]
        assert seeded['anna_10'].id not in {r.id for r in ledger.list_cancellations(only_unrefunded=True)}

    def test_inverted_range_is_invalid(self, ledger):
        with pytest.raises(ValidationError):
            ledger.list_cancellations(start_date=date(2025, 1, 20), end_date=date(2025, 1, 1))

    def test_get_missing(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.get_cancellation(cancellation_id=uuid4())


class TestCanUndo:
    """Tests for CancellationLedger.can_undo()"""

    def test_open_unrefunded(self, ledger, repository, kid_anna):
        record = repository.add(kid_anna, MEAL_DAY, 'LUNCH', '12.00')

        assert ledger.can_undo(record) is True

    def test_refunded(self, ledger, repository, kid_anna):
        record = repository.add(kid_anna, MEAL_DAY, 'LUNCH', '12.00', refunded=True)

        assert ledger.can_undo(record) is False

    def test_after_cutoff(self, ledger, clock, repository, kid_anna):
        record = repository.add(kid_anna, MEAL_DAY, 'LUNCH', '12.00')
        clock.now = datetime(2025, 1, 15, 9, 0, tzinfo=WARSAW)

        assert ledger.can_undo(record) is False
