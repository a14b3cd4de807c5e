from __future__ import annotations

from core.build_info import get_build_sha


def navigation(request) -> dict[str, object]:
    """Navbar state derived from the already-resolved session user."""

    build_sha = get_build_sha()
    if not hasattr(request, "user"):
        # Some template tests render with a minimal request object.
        return {"nav_role": "", "nav_is_admin": False, "nav_is_student": False, "build_sha": build_sha}

    user = request.user
    role = getattr(user, "role", "") if getattr(user, "is_authenticated", False) else ""
    return {
        "nav_role": role,
        "nav_is_admin": role == "admin",
        "nav_is_student": role == "student",
        "build_sha": build_sha,
    }
