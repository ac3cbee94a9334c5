# care_core/discharge/api/views.py
from __future__ import annotations

from contextlib import contextmanager

from django.core.exceptions import ValidationError as DjangoValidationError
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from care_core.circles.services import active_membership, list_active_circle_ids
from care_core.common.api.actor import actor_id_from_request
from care_core.common.api.exceptions import AccessDenied, InvalidRecord, PaymentRequired, build_error_envelope
from care_core.discharge import errors
from care_core.discharge.api.serializers import (
    ActiveRecordQuerySerializer,
    ChecklistStateSerializer,
    ConfigureTaskSerializer,
    DischargeChecklistItemSerializer,
    DischargeRecordSerializer,
    DischargeTemplateSerializer,
    GenerationOutcomeSerializer,
    MedicationChangesSerializer,
    OutputPreviewSerializer,
    ShiftAssignmentsSerializer,
    StartDischargeSerializer,
    StepSerializer,
)
from care_core.discharge.errors import DischargeError
from care_core.discharge.filters import DischargeRecordFilter
from care_core.discharge.models import DischargeChecklistItem, DischargeRecord
from care_core.discharge.orchestrator import DischargeOutputService
from care_core.discharge.selectors import get_active_record, list_active_templates, list_checklist_items, list_records
from care_core.discharge.services import DischargeWizardService

UUID_PATTERN = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"

_API_ERRORS = {
    errors.NOT_FOUND: NotFound,
    errors.INVALID_RECORD: InvalidRecord,
    errors.ACCESS_DENIED: AccessDenied,
    errors.PAYMENT_REQUIRED: PaymentRequired,
}


@contextmanager
def service_errors():
    """
    Map domain exceptions onto DRF ones so the global handler renders the envelope.
    """
    try:
        yield
    except DischargeError as e:
        raise _API_ERRORS.get(e.code, InvalidRecord)(e.message)
    except DjangoValidationError as e:
        raise DRFValidationError({"detail": e.messages[0] if e.messages else str(e)})


class DischargeRecordViewSet(viewsets.GenericViewSet):
    """
    Thin API layer:
    - input validation via serializers
    - calls selectors for reads
    - calls DischargeWizardService / DischargeOutputService for writes
    """

    permission_classes = [IsAuthenticated]
    serializer_class = DischargeRecordSerializer
    queryset = DischargeRecord.objects.none()
    lookup_value_regex = UUID_PATTERN
    filter_backends = [DjangoFilterBackend]
    filterset_class = DischargeRecordFilter

    def get_queryset(self):
        actor_id = actor_id_from_request(self.request)
        return list_records(circle_ids=list_active_circle_ids(actor_id=actor_id))

    def _get_visible(self, request, pk) -> DischargeRecord:
        actor_id = actor_id_from_request(request)
        record = DischargeRecord.objects.filter(id=pk).first()
        if record is None or active_membership(actor_id=actor_id, circle_id=record.circle_id) is None:
            raise NotFound("Discharge record not found.")
        return record

    # ----------------------------
    # Reads
    # ----------------------------
    def list(self, request):
        qs = self.filter_queryset(self.get_queryset())
        return Response(DischargeRecordSerializer(qs[:200], many=True).data)

    def retrieve(self, request, pk=None):
        return Response(DischargeRecordSerializer(self._get_visible(request, pk)).data)

    @extend_schema(
        parameters=[
            OpenApiParameter(name="circle_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(name="patient_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True),
        ],
        responses={200: DischargeRecordSerializer},
    )
    @action(detail=False, methods=["get"])
    def active(self, request):
        params = ActiveRecordQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        circle_id = params.validated_data["circle_id"]
        patient_id = params.validated_data["patient_id"]

        if active_membership(actor_id=actor_id_from_request(request), circle_id=circle_id) is None:
            raise AccessDenied()

        record = get_active_record(circle_id=circle_id, patient_id=patient_id)
        if record is None:
            raise NotFound("No discharge in progress for this patient.")
        return Response(DischargeRecordSerializer(record).data)

    @action(detail=True, methods=["get"])
    def items(self, request, pk=None):
        record = self._get_visible(request, pk)
        qs = list_checklist_items(record_id=record.id)
        return Response(DischargeChecklistItemSerializer(qs, many=True).data)

    @extend_schema(responses={200: OutputPreviewSerializer})
    @action(detail=True, methods=["get"])
    def preview(self, request, pk=None):
        with service_errors():
            preview = DischargeWizardService.preview_outputs(record_id=pk, actor_id=actor_id_from_request(request))
        return Response(OutputPreviewSerializer(preview.as_dict()).data)

    # ----------------------------
    # Wizard writes
    # ----------------------------
    @extend_schema(request=StartDischargeSerializer, responses={201: DischargeRecordSerializer})
    def create(self, request):
        s = StartDischargeSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        with service_errors():
            record = DischargeWizardService.start_discharge(actor_id=actor_id_from_request(request), **s.validated_data)
        return Response(DischargeRecordSerializer(record).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=StepSerializer, responses={200: DischargeRecordSerializer})
    @action(detail=True, methods=["post"])
    def step(self, request, pk=None):
        s = StepSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        with service_errors():
            record = DischargeWizardService.update_step(
                record_id=pk,
                actor_id=actor_id_from_request(request),
                step=s.validated_data["step"],
            )
        return Response(DischargeRecordSerializer(record).data)

    @extend_schema(request=MedicationChangesSerializer, responses={200: DischargeRecordSerializer})
    @action(detail=True, methods=["put"])
    def medications(self, request, pk=None):
        s = MedicationChangesSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        with service_errors():
            record = DischargeWizardService.save_medication_changes(
                record_id=pk,
                actor_id=actor_id_from_request(request),
                changes=s.validated_data["changes"],
            )
        return Response(DischargeRecordSerializer(record).data)

    @extend_schema(request=ShiftAssignmentsSerializer, responses={200: DischargeRecordSerializer})
    @action(detail=True, methods=["put"])
    def shifts(self, request, pk=None):
        s = ShiftAssignmentsSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        with service_errors():
            record = DischargeWizardService.save_shift_assignments(
                record_id=pk,
                actor_id=actor_id_from_request(request),
                assignments=s.validated_data["assignments"],
            )
        return Response(DischargeRecordSerializer(record).data)

    @extend_schema(request=ChecklistStateSerializer, responses={200: DischargeRecordSerializer})
    @action(detail=True, methods=["put"], url_path="checklist-state")
    def checklist_state(self, request, pk=None):
        s = ChecklistStateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        with service_errors():
            record = DischargeWizardService.save_checklist_state(
                record_id=pk,
                actor_id=actor_id_from_request(request),
                state=s.validated_data["state"],
            )
        return Response(DischargeRecordSerializer(record).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        with service_errors():
            record = DischargeWizardService.cancel_record(record_id=pk, actor_id=actor_id_from_request(request))
        return Response(DischargeRecordSerializer(record).data)

    # ----------------------------
    # Completion
    # ----------------------------
    @extend_schema(request=None, responses={200: GenerationOutcomeSerializer})
    @action(detail=True, methods=["post"])
    def generate(self, request, pk=None):
        """
        200 with created ids (partial_failure=true when some items failed).
        500 with details.partial_success when generation broke midway.
        """
        with service_errors():
            outcome = DischargeOutputService.generate_outputs(record_id=pk, actor_id=actor_id_from_request(request))

        if outcome.error_code == errors.UNEXPECTED_ERROR:
            return Response(
                build_error_envelope(
                    request=request,
                    code="unexpected_error",
                    message="Discharge outputs were only partially generated.",
                    details={"partial_success": outcome.counts()},
                ),
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(GenerationOutcomeSerializer(outcome).data, status=status.HTTP_200_OK)


class DischargeChecklistItemViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = DischargeChecklistItemSerializer
    queryset = DischargeChecklistItem.objects.none()
    lookup_value_regex = UUID_PATTERN

    @action(detail=True, methods=["post"])
    def toggle(self, request, pk=None):
        with service_errors():
            item = DischargeWizardService.toggle_item_completion(item_id=pk, actor_id=actor_id_from_request(request))
        return Response(DischargeChecklistItemSerializer(item).data)

    @extend_schema(request=ConfigureTaskSerializer, responses={200: DischargeChecklistItemSerializer})
    @action(detail=True, methods=["post"], url_path="configure-task")
    def configure_task(self, request, pk=None):
        s = ConfigureTaskSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        with service_errors():
            item = DischargeWizardService.configure_task_for_item(
                item_id=pk,
                actor_id=actor_id_from_request(request),
                create_task=s.validated_data["create_task"],
                assigned_to=s.validated_data.get("assigned_to"),
                due_date=s.validated_data.get("due_date"),
            )
        return Response(DischargeChecklistItemSerializer(item).data)


class DischargeTemplateViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = DischargeTemplateSerializer
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        return list_active_templates()
