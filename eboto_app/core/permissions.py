from __future__ import annotations

from collections.abc import Callable
from functools import wraps

from django.contrib.auth.views import redirect_to_login
from django.http import HttpRequest, HttpResponse
from django.shortcuts import redirect

ROLE_ADMIN = "admin"
ROLE_STUDENT = "student"

ROLE_DASHBOARDS: dict[str, str] = {
    ROLE_ADMIN: "dashboard",
    ROLE_STUDENT: "student-dashboard",
}


def dashboard_url_for_role(role: str) -> str | None:
    """URL name of the landing page for a role, or None for unknown roles."""

    return ROLE_DASHBOARDS.get(str(role or "").strip().lower())


def role_required(role: str, *, wrong_role_url: str = "forbidden"):
    """Gate a view on the session role.

    Unauthenticated requests go to the login page with `next` set; a signed-in
    user with another role is sent to `wrong_role_url` (a URL name).
    """

    def decorator(view_func: Callable[..., HttpResponse]) -> Callable[..., HttpResponse]:
        @wraps(view_func)
        def _wrapped(request: HttpRequest, *args, **kwargs) -> HttpResponse:
            user = request.user
            if not getattr(user, "is_authenticated", False):
                return redirect_to_login(request.get_full_path())
            if getattr(user, "role", "") != role:
                return redirect(wrong_role_url)
            return view_func(request, *args, **kwargs)

        return _wrapped

    return decorator


def admin_required(view_func=None, *, wrong_role_url: str = "forbidden"):
    decorator = role_required(ROLE_ADMIN, wrong_role_url=wrong_role_url)
    return decorator(view_func) if view_func is not None else decorator


def student_required(view_func=None, *, wrong_role_url: str = "dashboard"):
    decorator = role_required(ROLE_STUDENT, wrong_role_url=wrong_role_url)
    return decorator(view_func) if view_func is not None else decorator
