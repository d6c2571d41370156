from rest_framework import serializers

from .models import MealType
from .services import BatchAction


# =============================================================================
# Input Serializers
# =============================================================================

class DateRangeMixin:
    """Reject ranges whose end precedes their start."""

    def validate(self, attrs):
        start_date = attrs.get('start_date')
        end_date = attrs.get('end_date')

        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({
                'end_date': 'End date must be on or after start date'
            })

        return attrs


class CancellationFilterSerializer(DateRangeMixin, serializers.Serializer):
    """
    Validate query parameters for listing cancellations.

    Query Parameters:
        child (UUID): Filter by child ID
        group (UUID): Filter by kindergarten group ID
        start_date (date): Cancellations on or after this date
        end_date (date): Cancellations on or before this date
        refunded (bool): Filter by refund state
    """

    child = serializers.UUIDField(required=False)
    group = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    refunded = serializers.BooleanField(required=False, allow_null=True, default=None)


class CancellationCreateSerializer(serializers.Serializer):
    """Validate input for cancelling a meal."""

    child = serializers.UUIDField()
    date = serializers.DateField()
    meal_type = serializers.ChoiceField(choices=MealType.choices)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class SettlementFilterSerializer(DateRangeMixin, serializers.Serializer):
    """
    Validate query parameters for settlements.

    Query Parameters:
        group (UUID): Only children of this group
        child (UUID): Only this child
        start_date (date): Cancellations on or after this date
        end_date (date): Cancellations on or before this date
        only_unrefunded (bool): Skip refunded cancellations
    """

    group = serializers.UUIDField(required=False)
    child = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    only_unrefunded = serializers.BooleanField(required=False, default=False)


class RefundBatchInputSerializer(serializers.Serializer):
    """Validate input for a refund batch."""

    cancellation_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        max_length=1000,
        help_text="Cancellations to process."
    )
    action = serializers.ChoiceField(choices=[a.value for a in BatchAction])


# =============================================================================
# Output Serializers
# =============================================================================

class ChildRefSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    surname = serializers.CharField()
    group_id = serializers.UUIDField(allow_null=True)
    group_name = serializers.CharField(allow_null=True)


class CancellationSerializer(serializers.Serializer):
    """
    Cancellation record with its server-computed deadline.

    Expects the cancellation ledger in ``context['ledger']``.
    """

    id = serializers.UUIDField()
    child = ChildRefSerializer()
    date = serializers.DateField()
    meal_type = serializers.CharField()
    meal_price = serializers.DecimalField(max_digits=8, decimal_places=2)
    refunded = serializers.BooleanField()
    reason = serializers.CharField()
    created_at = serializers.DateTimeField()
    deadline = serializers.SerializerMethodField()
    can_undo = serializers.SerializerMethodField()

    def get_deadline(self, obj):
        deadline = self.context['ledger'].deadline_for(obj.date)
        return serializers.DateTimeField().to_representation(deadline)

    def get_can_undo(self, obj):
        return self.context['ledger'].can_undo(obj)


class SettlementCancellationSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    date = serializers.DateField()
    meal_type = serializers.CharField()
    meal_price = serializers.DecimalField(max_digits=8, decimal_places=2)
    refunded = serializers.BooleanField()


class ChildSettlementSerializer(serializers.Serializer):
    child_id = serializers.UUIDField()
    child_name = serializers.CharField()
    child_surname = serializers.CharField()
    group_id = serializers.UUIDField(allow_null=True)
    group_name = serializers.CharField(allow_null=True)
    cancellations = SettlementCancellationSerializer(many=True)
    total_unrefunded = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_refunded = serializers.DecimalField(max_digits=12, decimal_places=2)


class SettlementSummarySerializer(serializers.Serializer):
    total_children = serializers.IntegerField()
    total_cancellations = serializers.IntegerField()
    grand_total_unrefunded = serializers.DecimalField(max_digits=12, decimal_places=2)
    grand_total_refunded = serializers.DecimalField(max_digits=12, decimal_places=2)


class SettlementReportSerializer(serializers.Serializer):
    settlements = ChildSettlementSerializer(many=True)
    summary = SettlementSummarySerializer()


class BatchItemSerializer(serializers.Serializer):
    id = serializers.UUIDField(source='cancellation_id')
    status = serializers.CharField(source='status.value')
    code = serializers.CharField()
    detail = serializers.CharField()


class PaymentCreditSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    child_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField()
    cancellation_ids = serializers.ListField(child=serializers.UUIDField())


class BatchResultSerializer(serializers.Serializer):
    action = serializers.CharField(source='action.value')
    succeeded = BatchItemSerializer(many=True)
    skipped = BatchItemSerializer(many=True)
    errors = BatchItemSerializer(many=True)
    payments = PaymentCreditSerializer(many=True)
    counts = serializers.DictField(child=serializers.IntegerField())
