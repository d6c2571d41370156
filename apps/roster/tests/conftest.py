import pytest
from decimal import Decimal
from apps.roster.models import Child, Group


@pytest.fixture
def sunflowers(db):
    """Create a group with breakfast 5.00, lunch 12.00 and snack 3.50."""
    return Group.objects.create(
        name='Sunflowers',
        breakfast_price=Decimal('5.00'),
        lunch_price=Decimal('12.00'),
        snack_price=Decimal('3.50'),
    )


@pytest.fixture
def ladybirds(db):
    """Create a second group."""
    return Group.objects.create(name='Ladybirds', lunch_price=Decimal('14.00'))


@pytest.fixture
def roster_children(sunflowers, ladybirds):
    """Two Sunflowers children and one Ladybirds child."""
    return [
        Child.objects.create(name='Jan', surname='Nowak', group=sunflowers),
        Child.objects.create(name='Anna', surname='Kowalska', group=sunflowers),
        Child.objects.create(name='Ola', surname='Adamska', group=ladybirds),
    ]
