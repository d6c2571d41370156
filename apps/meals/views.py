import logging
from uuid import UUID

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .permissions import CanActForChild, IsManager
from .repositories import guardian_child_ids
from .serializers import (
    BatchResultSerializer,
    CancellationCreateSerializer,
    CancellationFilterSerializer,
    CancellationSerializer,
    RefundBatchInputSerializer,
    SettlementFilterSerializer,
    SettlementReportSerializer,
)
from .services import (
    AlreadyRefundedError,
    ConflictError,
    DeadlineExceededError,
    MealsServiceError,
    NotFoundError,
    ValidationError,
    get_cancellation_ledger,
    get_refund_batch_processor,
    get_settlement_aggregator,
)

logger = logging.getLogger(__name__)


ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    DeadlineExceededError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    AlreadyRefundedError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


def service_error_response(exc: MealsServiceError) -> Response:
    """Translate a domain exception into its stable HTTP response."""
    return Response(
        exc.to_dict(),
        status=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
    )


class MealCancellationViewSet(viewsets.ViewSet):
    """
    Meal cancellations.

    list: Cancellations visible to the user (guardians see their children only)
    create: Cancel a meal before the day's cutoff
    retrieve: Get a cancellation
    destroy: Undo a cancellation (before the cutoff, while unrefunded)

    Deadlines are always evaluated against the server clock.
    """

    permission_classes = [IsAuthenticated, CanActForChild]
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_ledger(self):
        return get_cancellation_ledger()

    def _serialize(self, ledger, records, many=False):
        return CancellationSerializer(records, many=many, context={'ledger': ledger}).data

    def _get_record(self, ledger, pk):
        try:
            cancellation_id = UUID(str(pk))
        except ValueError:
            raise ValidationError(f"Malformed cancellation id: {pk}")
        record = ledger.get_cancellation(cancellation_id=cancellation_id)
        self.check_object_permissions(self.request, record)
        return record

    @extend_schema(parameters=[CancellationFilterSerializer], responses={200: CancellationSerializer(many=True)})
    def list(self, request):
        filter_serializer = CancellationFilterSerializer(data=request.query_params.dict())
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        ledger = self.get_ledger()
        child_ids = guardian_child_ids(request.user) if request.user.is_parent else None
        try:
            records = ledger.list_cancellations(
                child_id=params.get('child'),
                child_ids=child_ids,
                group_id=params.get('group'),
                start_date=params.get('start_date'),
                end_date=params.get('end_date'),
                refunded=params.get('refunded'),
            )
        except MealsServiceError as e:
            return service_error_response(e)

        return Response(self._serialize(ledger, records, many=True))

    @extend_schema(request=CancellationCreateSerializer, responses={201: CancellationSerializer})
    def create(self, request):
        serializer = CancellationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        ledger = self.get_ledger()
        child = ledger.roster.get_child(data['child'])
        if child is None:
            return service_error_response(NotFoundError(f"Child {data['child']} not found"))
        self.check_object_permissions(request, child)

        try:
            record = ledger.create_cancellation(
                child_id=child.id,
                date=data['date'],
                meal_type=data['meal_type'],
                reason=data.get('reason', ''),
            )
        except MealsServiceError as e:
            return service_error_response(e)

        return Response(self._serialize(ledger, record), status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: CancellationSerializer})
    def retrieve(self, request, pk=None):
        ledger = self.get_ledger()
        try:
            record = self._get_record(ledger, pk)
        except MealsServiceError as e:
            return service_error_response(e)
        return Response(self._serialize(ledger, record))

    @extend_schema(responses={204: None})
    def destroy(self, request, pk=None):
        ledger = self.get_ledger()
        try:
            record = self._get_record(ledger, pk)
            ledger.remove_cancellation(cancellation_id=record.id)
        except MealsServiceError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    parameters=[SettlementFilterSerializer],
    responses={200: SettlementReportSerializer},
    description="Per-child settlements of cancelled meals with roster-wide totals.",
    tags=['settlements'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def settlements(request):
    """List settlements of cancelled meals."""
    filter_serializer = SettlementFilterSerializer(data=request.query_params.dict())
    filter_serializer.is_valid(raise_exception=True)
    params = filter_serializer.validated_data

    try:
        report = get_settlement_aggregator().list_settlements(
            group_id=params.get('group'),
            child_id=params.get('child'),
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
            only_unrefunded=params['only_unrefunded'],
        )
    except MealsServiceError as e:
        return service_error_response(e)

    return Response(SettlementReportSerializer(report).data)


@extend_schema(
    request=RefundBatchInputSerializer,
    responses={200: BatchResultSerializer},
    description=(
        "Mark cancellations as refunded or generate payment credits for them. "
        "Every id gets its own outcome; partial success is normal."
    ),
    tags=['settlements'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def process_refund_batch(request):
    """Process a refund batch."""
    serializer = RefundBatchInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = get_refund_batch_processor().process_batch(
            cancellation_ids=serializer.validated_data['cancellation_ids'],
            action=serializer.validated_data['action'],
        )
    except MealsServiceError as e:
        return service_error_response(e)

    logger.info("Refund batch by %s: %s", request.user.id, result.counts)
    return Response(BatchResultSerializer(result).data)
