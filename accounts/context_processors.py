from __future__ import annotations

from typing import Any, Dict


def user_role(request) -> Dict[str, Any]:
    """Expose the current user's role to all templates.

    Injects:
      - user_role: role value, empty for anonymous visitors
      - user_is_manager: convenience boolean for supervisors and admins
    """
    user = getattr(request, "user", None)
    role = getattr(user, "role", "") if user is not None and user.is_authenticated else ""
    return {
        "user_role": role,
        "user_is_manager": role in {"supervisor", "admin"},
    }
