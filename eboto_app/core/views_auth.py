from __future__ import annotations

import logging

from django.contrib import messages
from django.http import HttpRequest, HttpResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_http_methods, require_POST

from core.backends import (
    EBotoAPIError,
    EBotoClient,
    EBotoUnauthorized,
    EBotoUpstreamUnavailable,
    error_message_from_payload,
)
from core.forms_auth import ChangePasswordForm, LoginForm
from core.permissions import ROLE_STUDENT, role_required
from core.views_utils import delete_token_cookie, role_home_url, safe_next, set_token_cookie

logger = logging.getLogger(__name__)


def home(request: HttpRequest) -> HttpResponse:
    user = request.user
    if getattr(user, "is_authenticated", False):
        return redirect(role_home_url(getattr(user, "role", "")))
    return redirect("login")


@require_http_methods(["GET", "POST"])
def login_view(request: HttpRequest) -> HttpResponse:
    next_url = safe_next(request.POST.get("next") or request.GET.get("next"))

    user = request.user
    if getattr(user, "is_authenticated", False) and getattr(user, "role", "") in ("admin", "student"):
        return redirect(next_url or role_home_url(user.role))

    form = LoginForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        username = form.cleaned_data["username"]
        client = EBotoClient()
        try:
            token = client.login(username, form.cleaned_data["password"])
            session_user = client.me()
        except EBotoUpstreamUnavailable as exc:
            form.add_error(None, exc.message)
        except EBotoAPIError as exc:
            form.add_error(None, error_message_from_payload(exc.payload, "Login failed"))
        else:
            if session_user is None or session_user.role not in ("admin", "student"):
                logger.warning("Login succeeded without a usable role username=%s", username)
                form.add_error(None, "Role missing")
            else:
                logger.info("Login username=%s role=%s", username, session_user.role)
                response = redirect(next_url or role_home_url(session_user.role))
                return set_token_cookie(response, token)

    return render(request, "core/login.html", {"form": form, "next": next_url})


@require_POST
def logout_view(request: HttpRequest) -> HttpResponse:
    EBotoClient.for_request(request).logout()
    response = redirect("login")
    return delete_token_cookie(response)


def forbidden(request: HttpRequest) -> HttpResponse:
    return render(request, "core/forbidden.html", status=403)


@role_required(ROLE_STUDENT, wrong_role_url="dashboard")
@require_http_methods(["GET", "POST"])
def student_change_profile(request: HttpRequest) -> HttpResponse:
    form = ChangePasswordForm(request.POST or None)
    session_expired = False

    if request.method == "POST" and form.is_valid():
        client = EBotoClient.for_request(request)
        try:
            client.change_password(form.cleaned_data["current_password"], form.cleaned_data["new_password"])
        except EBotoUnauthorized as exc:
            session_expired = True
            form.add_error(None, error_message_from_payload(exc.payload, "Your session expired. Please log in again."))
        except EBotoUpstreamUnavailable:
            form.add_error(None, "Network error. Please try again.")
        except EBotoAPIError as exc:
            form.add_error(None, error_message_from_payload(exc.payload, "Failed to update password."))
        else:
            messages.success(request, "Password updated successfully.")
            return redirect("student-change-profile")

    return render(
        request,
        "core/change_profile.html",
        {"form": form, "session_expired": session_expired},
    )
