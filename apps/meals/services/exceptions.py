"""
Domain exceptions for the meals app.

These exceptions represent business rule violations raised by the
cancellation ledger and the refund batch processor. Views translate them
into HTTP responses; each carries a stable machine-readable ``error_code``.

Exception Hierarchy:
    MealsServiceError (base)
    ├── ValidationError - malformed identifiers, dates, meal types or actions
    ├── ConflictError - the meal slot is already cancelled
    ├── DeadlineExceededError - the cancellation cutoff has passed
    ├── AlreadyRefundedError - the cancellation was already refunded
    └── NotFoundError - cancellation or child does not exist

Usage:
    from apps.meals.services.exceptions import ConflictError

    try:
        ledger.create_cancellation(child_id=child.id, date=day, meal_type='LUNCH')
    except ConflictError as e:
        return Response(e.to_dict(), status=409)
"""


class MealsServiceError(Exception):
    """
    Base exception for all meals service errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
    """

    default_error_code = 'error'
    default_message = 'Meal cancellation request failed.'

    def __init__(self, message=None, error_code=None):
        self.message = message or self.default_message
        self.error_code = error_code or self.default_error_code
        super().__init__(self.message)

    def to_dict(self):
        return {
            'error': self.message,
            'code': self.error_code,
        }


class ValidationError(MealsServiceError):
    """Raised when an identifier, date, meal type or batch action is malformed."""

    default_error_code = 'invalid'
    default_message = 'Invalid request.'


class ConflictError(MealsServiceError):
    """Raised when a cancellation already exists for the (child, date, meal type) slot."""

    default_error_code = 'conflict'
    default_message = 'This meal has already been cancelled.'


class DeadlineExceededError(MealsServiceError):
    """Raised when the cutoff for cancelling (or un-cancelling) a meal has passed."""

    default_error_code = 'deadline_exceeded'
    default_message = 'The cancellation deadline for this meal has passed.'


class AlreadyRefundedError(MealsServiceError):
    """Raised when trying to undo a cancellation that has already been refunded."""

    default_error_code = 'already_refunded'
    default_message = 'This cancellation has already been refunded.'


class NotFoundError(MealsServiceError):
    """Raised when a cancellation or child does not exist."""

    default_error_code = 'not_found'
    default_message = 'Not found.'
