# care_core/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from care_core.audit.api.views import AuditEventViewSet
from care_core.discharge.api.views import (
    DischargeChecklistItemViewSet,
    DischargeRecordViewSet,
    DischargeTemplateViewSet,
)

router = DefaultRouter()

router.register(r"discharge/records", DischargeRecordViewSet, basename="discharge-records")
router.register(r"discharge/items", DischargeChecklistItemViewSet, basename="discharge-items")
router.register(r"discharge/templates", DischargeTemplateViewSet, basename="discharge-templates")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    path("", include(router.urls)),
]
