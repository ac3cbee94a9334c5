# care_core/common/api/actor.py
from __future__ import annotations

from uuid import UUID

from rest_framework.exceptions import NotAuthenticated


def actor_id_from_request(request) -> UUID:
    """
    The actor is the UUID carried by the access token (stateless JWT user).
    Services never look this up themselves; views pass it explicitly.
    """
    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated()

    raw = getattr(user, "id", None)
    try:
        return UUID(str(raw))
    except (TypeError, ValueError):
        raise NotAuthenticated("Token does not carry a valid user id.")
