# care_core/discharge/templates.py
"""
System checklist templates and discharge-type -> template mapping.
"""
from __future__ import annotations

from typing import Optional

from care_core.discharge.models import DischargeTemplate, DischargeType


def _items(*rows: tuple[str, str, int, bool]) -> list[dict]:
    return [
        {"category": category, "item_text": text, "sort_order": order, "is_required": required}
        for category, text, order, required in rows
    ]


SYSTEM_TEMPLATES = [
    {
        "name": "General Discharge",
        "discharge_type": DischargeType.GENERAL,
        "description": "Standard discharge checklist for general hospital stays",
        "sort_order": 1,
        "items": _items(
            ("BEFORE_LEAVING", "Get written discharge instructions", 1, True),
            ("BEFORE_LEAVING", "Review medication list with nurse", 2, True),
            ("BEFORE_LEAVING", "Schedule follow-up appointments", 3, True),
            ("BEFORE_LEAVING", "Ask about warning signs to watch for", 4, True),
            ("MEDICATIONS", "Fill new prescriptions", 1, True),
            ("MEDICATIONS", "Set up medication organizer", 2, False),
            ("MEDICATIONS", "Reconcile with existing medications", 3, True),
            ("HOME_PREP", "Prepare bedroom for easy access", 1, False),
            ("HOME_PREP", "Install grab bars in bathroom", 2, False),
            ("FIRST_WEEK", "Watch for warning signs listed in discharge papers", 1, True),
            ("FIRST_WEEK", "Keep discharge papers accessible", 2, True),
        ),
    },
    {
        "name": "Post-Surgery",
        "discharge_type": DischargeType.SURGERY,
        "description": "Comprehensive checklist for surgical discharge including wound care and pain management",
        "sort_order": 2,
        "items": _items(
            ("BEFORE_LEAVING", "Get written discharge instructions", 1, True),
            ("BEFORE_LEAVING", "Review wound care instructions", 2, True),
            ("BEFORE_LEAVING", "Schedule follow-up with surgeon", 3, True),
            ("BEFORE_LEAVING", "Get pain management plan", 4, True),
            ("MEDICATIONS", "Fill pain medication prescription", 1, True),
            ("MEDICATIONS", "Fill antibiotics if prescribed", 2, False),
            ("MEDICATIONS", "Get stool softeners if needed", 3, False),
            ("EQUIPMENT", "Obtain wound care supplies", 1, True),
            ("EQUIPMENT", "Get mobility aids (walker, crutches)", 2, False),
            ("HOME_PREP", "Set up recovery area (bed, supplies within reach)", 1, True),
            ("HOME_PREP", "Install grab bars in bathroom", 2, False),
            ("HOME_PREP", "Move bedroom to first floor if needed", 3, False),
            ("HOME_PREP", "Remove area rugs and tripping hazards", 4, True),
            ("FIRST_WEEK", "Monitor incision for signs of infection", 1, True),
            ("FIRST_WEEK", "Track pain levels and medication effectiveness", 2, True),
            ("FIRST_WEEK", "Follow activity restrictions", 3, True),
            ("FIRST_WEEK", "Report any fever, increased pain, or drainage", 4, True),
        ),
    },
    {
        "name": "Stroke Recovery",
        "discharge_type": DischargeType.STROKE,
        "description": "Specialized checklist for stroke patients including rehabilitation and monitoring",
        "sort_order": 3,
        "items": _items(
            ("BEFORE_LEAVING", "Get written discharge instructions", 1, True),
            ("BEFORE_LEAVING", "Schedule rehabilitation therapy (PT/OT/Speech)", 2, True),
            ("BEFORE_LEAVING", "Schedule neurology follow-up", 3, True),
            ("BEFORE_LEAVING", "Review stroke warning signs (FAST)", 4, True),
            ("MEDICATIONS", "Fill blood thinner prescription", 1, True),
            ("MEDICATIONS", "Fill blood pressure medications", 2, True),
            ("MEDICATIONS", "Set up pill organizer with clear labeling", 3, True),
            ("EQUIPMENT", "Get mobility aids (wheelchair, walker)", 1, False),
            ("EQUIPMENT", "Get adaptive equipment (utensils, dressing aids)", 2, False),
            ("EQUIPMENT", "Get blood pressure monitor", 3, True),
            ("HOME_PREP", "Install grab bars in bathroom", 1, True),
            ("HOME_PREP", "Move bedroom to first floor if needed", 2, False),
            ("HOME_PREP", "Remove area rugs and tripping hazards", 3, True),
            ("HOME_PREP", "Arrange furniture for wheelchair/walker access", 4, False),
            ("FIRST_WEEK", "Begin home therapy exercises", 1, True),
            ("FIRST_WEEK", "Monitor blood pressure twice daily", 2, True),
            ("FIRST_WEEK", "Watch for stroke symptoms (FAST: Face, Arms, Speech, Time)", 3, True),
            ("FIRST_WEEK", "Report any new weakness, confusion, or vision changes", 4, True),
        ),
    },
    {
        "name": "Cardiac",
        "discharge_type": DischargeType.CARDIAC,
        "description": "Heart-focused discharge checklist including monitoring and cardiac rehabilitation",
        "sort_order": 4,
        "items": _items(
            ("BEFORE_LEAVING", "Get written discharge instructions", 1, True),
            ("BEFORE_LEAVING", "Schedule cardiology follow-up", 2, True),
            ("BEFORE_LEAVING", "Enroll in cardiac rehabilitation program", 3, True),
            ("BEFORE_LEAVING", "Review heart attack warning signs", 4, True),
            ("MEDICATIONS", "Fill heart medications (beta blockers, ACE inhibitors)", 1, True),
            ("MEDICATIONS", "Fill blood thinners if prescribed", 2, False),
            ("MEDICATIONS", "Get nitroglycerin if prescribed", 3, False),
            ("MEDICATIONS", "Fill cholesterol medications", 4, False),
            ("EQUIPMENT", "Get blood pressure monitor", 1, True),
            ("EQUIPMENT", "Get pulse oximeter if recommended", 2, False),
            ("EQUIPMENT", "Get digital scale for daily weights", 3, True),
            ("HOME_PREP", "Prepare heart-healthy meals", 1, True),
            ("HOME_PREP", "Set up medication reminder system", 2, True),
            ("HOME_PREP", "Create low-sodium grocery list", 3, False),
            ("FIRST_WEEK", "Monitor blood pressure twice daily", 1, True),
            ("FIRST_WEEK", "Weigh daily (watch for fluid retention)", 2, True),
            ("FIRST_WEEK", "Follow activity restrictions", 3, True),
            ("FIRST_WEEK", "Report any chest pain, shortness of breath, or swelling immediately", 4, True),
        ),
    },
]

# Types without a dedicated checklist fall back to the general one.
_GENERAL_TYPES = {DischargeType.GENERAL, DischargeType.OTHER, DischargeType.FALL, DischargeType.PSYCHIATRIC}


def template_type_for(discharge_type: str) -> str:
    if discharge_type in _GENERAL_TYPES:
        return DischargeType.GENERAL
    return discharge_type


def template_for(discharge_type: str) -> Optional[DischargeTemplate]:
    return (
        DischargeTemplate.objects.filter(
            discharge_type=template_type_for(discharge_type),
            is_active=True,
        )
        .order_by("-is_system", "sort_order")
        .first()
    )


def template_item_id(item: dict) -> str:
    return f"{item.get('category')}_{item.get('sort_order')}"


def ensure_system_templates() -> int:
    """
    Upsert the built-in templates by name. Returns how many were newly created.
    """
    created = 0
    for seed in SYSTEM_TEMPLATES:
        _, was_created = DischargeTemplate.objects.update_or_create(
            name=seed["name"],
            defaults={
                "discharge_type": seed["discharge_type"],
                "description": seed["description"],
                "items": seed["items"],
                "sort_order": seed["sort_order"],
                "is_system": True,
                "is_active": True,
            },
        )
        created += 1 if was_created else 0
    return created
