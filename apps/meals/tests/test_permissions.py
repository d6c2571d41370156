import pytest
from rest_framework.test import APIRequestFactory
from apps.meals.permissions import CanActForChild, IsManager
from apps.meals.repositories import cancellation_record, child_ref


def _request(user):
    request = APIRequestFactory().get('/')
    request.user = user
    return request


# =============================================================================
# IsManager Tests
# =============================================================================

@pytest.mark.django_db
class TestIsManager:
    """Tests for IsManager permission class."""

    def test_headteacher_allowed(self, headteacher_user):
        """Head teachers run settlements."""
        assert IsManager().has_permission(_request(headteacher_user), None) is True

    def test_teacher_denied(self, teacher_user):
        """Teachers are staff but do not manage settlements."""
        assert IsManager().has_permission(_request(teacher_user), None) is False

    def test_parent_denied(self, parent_user):
        assert IsManager().has_permission(_request(parent_user), None) is False


# =============================================================================
# CanActForChild Tests
# =============================================================================

@pytest.mark.django_db
class TestCanActForChild:
    """Tests for CanActForChild permission class."""

    def test_guardian_can_act_for_own_child(self, parent_user, child):
        """Guardian can cancel meals of their own child."""
        permission = CanActForChild()
        assert permission.has_object_permission(_request(parent_user), None, child_ref(child)) is True

    def test_guardian_cannot_act_for_other_child(self, parent_user, other_child):
        """Guardian cannot cancel meals of someone else's child."""
        permission = CanActForChild()
        assert permission.has_object_permission(_request(parent_user), None, child_ref(other_child)) is False

    def test_teacher_can_act_for_any_child(self, teacher_user, other_child):
        permission = CanActForChild()
        assert permission.has_object_permission(_request(teacher_user), None, child_ref(other_child)) is True

    def test_works_on_cancellation_records(self, parent_user, lunch_cancellation, other_child_cancellation):
        """Records are checked through their child."""
        permission = CanActForChild()
        request = _request(parent_user)

        assert permission.has_object_permission(request, None, cancellation_record(lunch_cancellation)) is True
        assert permission.has_object_permission(
            request, None, cancellation_record(other_child_cancellation)
        ) is False
