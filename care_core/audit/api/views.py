# care_core/audit/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from care_core.audit.api.serializers import AuditEventSerializer
from care_core.audit.models import AuditEvent
from care_core.audit.selectors import list_audit_events
from care_core.circles.services import active_membership
from care_core.common.api.actor import actor_id_from_request


def _parse_uuid_param(request, name: str, *, required: bool = False) -> UUID | None:
    raw = request.query_params.get(name) or None
    if raw is None:
        if required:
            raise ValidationError({name: "This query parameter is required."})
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        raise ValidationError({name: "Invalid UUID."})


class AuditEventViewSet(viewsets.GenericViewSet):
    """
    List audit events for one circle. Caller must be an active member.
    """
    permission_classes = [IsAuthenticated]

    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()

    @extend_schema(
        tags=["Audit"],
        responses={200: AuditEventSerializer(many=True)},
        parameters=[
            OpenApiParameter(
                name="circle_id",
                type=OpenApiTypes.UUID,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Circle whose events to list.",
            ),
            OpenApiParameter(
                name="entity_type",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Filter by entity type (e.g. DischargeRecord).",
            ),
            OpenApiParameter(
                name="entity_id",
                type=OpenApiTypes.UUID,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Filter by entity UUID.",
            ),
            OpenApiParameter(
                name="event_code",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Filter by event code (e.g. discharge.outputs_generated).",
            ),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Max records to return (default 200, max 500).",
            ),
        ],
    )
    def list(self, request):
        actor_id = actor_id_from_request(request)
        circle_id = _parse_uuid_param(request, "circle_id", required=True)

        if active_membership(actor_id=actor_id, circle_id=circle_id) is None:
            raise PermissionDenied("Not a member of this circle.")

        qs = list_audit_events(
            circle_id=circle_id,
            entity_type=request.query_params.get("entity_type") or None,
            entity_id=_parse_uuid_param(request, "entity_id"),
            event_code=request.query_params.get("event_code") or None,
        )

        limit = request.query_params.get("limit")
        try:
            limit_n = int(limit) if limit else 200
        except ValueError:
            limit_n = 200
        limit_n = max(1, min(limit_n, 500))

        return Response(AuditEventSerializer(qs[:limit_n], many=True).data, status=status.HTTP_200_OK)
