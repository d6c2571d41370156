import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.roster.models import Child, Group
from apps.meals.models import MealCancellation, MealType
from apps.meals.services import CancellationLedger, RefundBatchProcessor
from apps.meals.services.ports import ChildRef
from apps.meals.tests.fakes import (
    FixedClock,
    InMemoryCancellationRepository,
    InMemoryPaymentsLedger,
    InMemoryPriceResolver,
    InMemoryRoster,
    MEAL_DAY,
    WARSAW,
)


# =============================================================================
# In-memory core fixtures
# =============================================================================

@pytest.fixture
def clock():
    """Clock frozen on the meal day, well before the cutoff."""
    return FixedClock(datetime(2025, 1, 15, 6, 30, tzinfo=WARSAW))


@pytest.fixture
def sunflowers_id():
    return uuid4()


@pytest.fixture
def kid_anna(sunflowers_id):
    return ChildRef(id=uuid4(), name='Anna', surname='Kowalska', group_id=sunflowers_id, group_name='Sunflowers')


@pytest.fixture
def kid_jan(sunflowers_id):
    return ChildRef(id=uuid4(), name='Jan', surname='Nowak', group_id=sunflowers_id, group_name='Sunflowers')


@pytest.fixture
def kid_ola():
    """Child from another group."""
    return ChildRef(id=uuid4(), name='Ola', surname='Adamska', group_id=uuid4(), group_name='Ladybirds')


@pytest.fixture
def roster(kid_anna, kid_jan, kid_ola):
    return InMemoryRoster([kid_anna, kid_jan, kid_ola])


@pytest.fixture
def prices(sunflowers_id, kid_ola):
    resolver = InMemoryPriceResolver()
    resolver.set_price(sunflowers_id, 'BREAKFAST', '5.00')
    resolver.set_price(sunflowers_id, 'LUNCH', '12.00')
    resolver.set_price(sunflowers_id, 'SNACK', '3.50')
    resolver.set_price(kid_ola.group_id, 'LUNCH', '14.00')
    return resolver


@pytest.fixture
def repository(roster):
    return InMemoryCancellationRepository(roster)


@pytest.fixture
def payments():
    return InMemoryPaymentsLedger()


@pytest.fixture
def ledger(repository, roster, prices, clock):
    """Cancellation ledger over in-memory ports, cutoff at 08:00 Warsaw."""
    return CancellationLedger(
        repository=repository,
        roster=roster,
        prices=prices,
        clock=clock,
        cutoff_hour=8,
        tz=WARSAW,
    )


@pytest.fixture
def processor(repository, payments):
    return RefundBatchProcessor(repository=repository, payments=payments)


# =============================================================================
# Database fixtures
# =============================================================================

@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def parent_user(db):
    """Create and return a guardian."""
    return User.objects.create_user(
        email='parent@example.com',
        password='TestPass123!',
        first_name='Maria',
        last_name='Kowalska',
        role=UserRole.PARENT,
    )


@pytest.fixture
def other_parent(db):
    """Create and return a guardian of a different child."""
    return User.objects.create_user(
        email='other.parent@example.com',
        password='TestPass123!',
        role=UserRole.PARENT,
    )


@pytest.fixture
def teacher_user(db):
    """Create and return a teacher (staff, but not a manager)."""
    return User.objects.create_user(
        email='teacher@example.com',
        password='TestPass123!',
        role=UserRole.TEACHER,
    )


@pytest.fixture
def headteacher_user(db):
    """Create and return a head teacher."""
    return User.objects.create_user(
        email='head@example.com',
        password='TestPass123!',
        role=UserRole.HEADTEACHER,
    )


@pytest.fixture
def parent_client(parent_user):
    """Return API client authenticated as the guardian."""
    return _client_for(parent_user)


@pytest.fixture
def other_parent_client(other_parent):
    """Return API client authenticated as the other guardian."""
    return _client_for(other_parent)


@pytest.fixture
def teacher_client(teacher_user):
    """Return API client authenticated as a teacher."""
    return _client_for(teacher_user)


@pytest.fixture
def headteacher_client(headteacher_user):
    """Return API client authenticated as the head teacher."""
    return _client_for(headteacher_user)


@pytest.fixture
def sunflowers(db):
    """Create a group with breakfast 5.00, lunch 12.00 and snack 3.50."""
    return Group.objects.create(
        name='Sunflowers',
        age_range='3-4',
        breakfast_price=Decimal('5.00'),
        lunch_price=Decimal('12.00'),
        snack_price=Decimal('3.50'),
    )


@pytest.fixture
def ladybirds(db):
    """Create a second group with lunch 14.00."""
    return Group.objects.create(
        name='Ladybirds',
        age_range='5-6',
        breakfast_price=Decimal('6.00'),
        lunch_price=Decimal('14.00'),
        snack_price=Decimal('4.00'),
    )


@pytest.fixture
def child(sunflowers, parent_user):
    """Create a child in Sunflowers whose guardian is parent_user."""
    return Child.objects.create(name='Anna', surname='Kowalska', group=sunflowers, parent=parent_user)


@pytest.fixture
def sibling(sunflowers, parent_user):
    """Create a second child of parent_user."""
    return Child.objects.create(name='Piotr', surname='Kowalski', group=sunflowers, parent=parent_user)


@pytest.fixture
def other_child(ladybirds, other_parent):
    """Create a child in Ladybirds belonging to other_parent."""
    return Child.objects.create(name='Ola', surname='Adamska', group=ladybirds, parent=other_parent)


@pytest.fixture
def lunch_cancellation(child):
    """Unrefunded lunch cancellation on the meal day."""
    return MealCancellation.objects.create(
        child=child,
        date=MEAL_DAY,
        meal_type=MealType.LUNCH,
        meal_price=Decimal('12.00'),
    )


@pytest.fixture
def refunded_cancellation(child):
    """Breakfast cancellation on the meal day that was already refunded."""
    return MealCancellation.objects.create(
        child=child,
        date=MEAL_DAY,
        meal_type=MealType.BREAKFAST,
        meal_price=Decimal('5.00'),
        refunded=True,
    )


@pytest.fixture
def other_child_cancellation(other_child):
    """Lunch cancellation of the other guardian's child."""
    return MealCancellation.objects.create(
        child=other_child,
        date=MEAL_DAY,
        meal_type=MealType.LUNCH,
        meal_price=Decimal('14.00'),
    )
