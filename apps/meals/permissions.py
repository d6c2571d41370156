"""
Custom permission classes for the meals app.

Guardians act only for their own children; settlements and refund batches
are reserved for head teachers and administrators.
"""
from rest_framework.permissions import BasePermission


class IsManager(BasePermission):
    """
    Allows access to head teachers and administrators.

    Usage:
        @permission_classes([IsAuthenticated, IsManager])
        def settlements(request):
            ...
    """

    message = 'Only head teachers and administrators can manage settlements.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_manager)


class CanActForChild(BasePermission):
    """
    Permission to cancel meals (or undo a cancellation) for a child.

    Works on ``ChildRef`` objects and on cancellation records (via their
    ``child``). Allows if:
    - User is staff (any role other than PARENT)
    - User is a parent and the child's guardian
    """

    message = 'You can only manage meals of your own children.'

    def has_object_permission(self, request, view, obj):
        child = getattr(obj, 'child', obj)
        if not request.user.is_parent:
            return True
        return child.parent_id == request.user.id
