# care_core/discharge/filters.py
import django_filters

from care_core.discharge.models import DischargeRecord, DischargeStatus, DischargeType


class DischargeRecordFilter(django_filters.FilterSet):
    circle_id = django_filters.UUIDFilter(field_name="circle_id")
    patient_id = django_filters.UUIDFilter(field_name="patient_id")
    status = django_filters.ChoiceFilter(choices=DischargeStatus.choices)
    discharge_type = django_filters.ChoiceFilter(choices=DischargeType.choices)
    discharged_after = django_filters.DateFilter(field_name="discharge_date", lookup_expr="gte")
    discharged_before = django_filters.DateFilter(field_name="discharge_date", lookup_expr="lte")

    class Meta:
        model = DischargeRecord
        fields = ["circle_id", "patient_id", "status", "discharge_type"]
