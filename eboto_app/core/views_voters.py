from __future__ import annotations

import logging
from urllib.parse import urlencode

from django.contrib import messages
from django.http import Http404, HttpRequest, HttpResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from core.backends import (
    EBotoAPIError,
    EBotoClient,
    EBotoForbidden,
    EBotoUnauthorized,
    error_message_from_payload,
)
from core.filters import filter_voters
from core.forms_voters import VoterCreateForm, VoterEditForm, VoterFilterForm, VoterImportForm
from core.permissions import admin_required
from core.schemas import DEFAULT_LEVEL, LEVELS, Voter
from core.views_utils import _normalize_str, api_error_response, generate_temporary_password

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENT = DEFAULT_LEVEL


def _department_from(request: HttpRequest) -> str:
    department = _normalize_str(request.GET.get("department") or request.POST.get("department"))
    return department if department in LEVELS else DEFAULT_DEPARTMENT


def _voters_url(department: str) -> str:
    return f"{reverse('voters')}?{urlencode({'department': department})}"


@admin_required
@require_GET
def voters_list(request: HttpRequest) -> HttpResponse:
    filter_form = VoterFilterForm(request.GET or None, initial={"department": DEFAULT_DEPARTMENT})
    department, q, status = filter_form.criteria() if request.GET else (DEFAULT_DEPARTMENT, "", "all")

    load_error = ""
    try:
        voters = EBotoClient.for_request(request).list_voters(department)
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        voters = []
        load_error = error_message_from_payload(exc.payload, f"Failed to load voters (HTTP {exc.status})")

    visible = filter_voters(voters, q=q, status=status)
    return render(
        request,
        "core/voters.html",
        {
            "voters": visible,
            "department": department,
            "levels": LEVELS,
            "filter_form": filter_form,
            "total": len(voters),
            "total_voted": sum(1 for v in voters if v.has_voted),
            "visible_voted": sum(1 for v in visible if v.has_voted),
            "load_error": load_error,
        },
    )


@admin_required
@require_http_methods(["GET", "POST"])
def voter_create(request: HttpRequest) -> HttpResponse:
    department = _department_from(request)
    generated_password = ""

    if request.method == "POST" and "generate" in request.POST:
        # Re-render with a fresh temporary password in both fields; nothing is sent.
        generated_password = generate_temporary_password()
        keep = ("school_id", "department", "full_name", "course", "year", "status")
        initial = {key: request.POST.get(key, "") for key in keep}
        initial.update({"password": generated_password, "confirm_password": generated_password})
        form = VoterCreateForm(initial=initial)
    else:
        form = VoterCreateForm(request.POST or None, initial={"department": department, "status": "0"})

    if request.method == "POST" and not generated_password and form.is_valid():
        payload = form.api_payload()
        try:
            EBotoClient.for_request(request).create_voter(payload)
        except EBotoAPIError as exc:
            response = api_error_response(request, exc)
            if response is not None:
                return response
            form.add_error(None, error_message_from_payload(exc.payload, "Failed to create voter"))
        else:
            logger.info("Voter created school_id=%s department=%s", payload["schoolId"], payload["department"])
            messages.success(request, "Voter added.")
            return redirect(_voters_url(str(payload["department"])))

    return render(
        request,
        "core/voter_form.html",
        {"form": form, "voter": None, "department": department, "generated_password": generated_password},
    )


def _find_voter(voters: list[Voter], voter_id: str) -> Voter:
    for v in voters:
        if v.id == voter_id:
            return v
    raise Http404("Voter not found")


@admin_required
@require_http_methods(["GET", "POST"])
def voter_edit(request: HttpRequest, voter_id: str) -> HttpResponse:
    department = _department_from(request)
    client = EBotoClient.for_request(request)
    try:
        voters = client.list_voters(department)
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        messages.error(request, error_message_from_payload(exc.payload, "Failed to load voters"))
        return redirect(_voters_url(department))

    voter = _find_voter(voters, voter_id)
    form = VoterEditForm(request.POST or None, initial=VoterEditForm.initial_for(voter))

    if request.method == "POST" and form.is_valid():
        try:
            client.update_voter(voter.id, form.api_payload())
        except EBotoAPIError as exc:
            response = api_error_response(request, exc)
            if response is not None:
                return response
            form.add_error(None, error_message_from_payload(exc.payload, "Failed to save changes"))
        else:
            logger.info("Voter updated id=%s", voter.id)
            messages.success(request, "Changes saved.")
            return redirect(_voters_url(department))

    return render(
        request,
        "core/voter_form.html",
        {"form": form, "voter": voter, "department": department, "generated_password": ""},
    )


@admin_required
@require_POST
def voter_delete(request: HttpRequest, voter_id: str) -> HttpResponse:
    department = _department_from(request)
    try:
        EBotoClient.for_request(request).delete_voter(voter_id)
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        messages.error(request, error_message_from_payload(exc.payload, "Delete failed"))
    else:
        logger.info("Voter deleted id=%s", voter_id)
        messages.success(request, "Voter deleted.")
    return redirect(_voters_url(department))


@admin_required
@require_http_methods(["GET", "POST"])
def voters_import(request: HttpRequest) -> HttpResponse:
    """Bulk upload; the API parses the sheet and reports what it inserted."""

    form = VoterImportForm(request.POST or None, request.FILES or None)

    if request.method == "POST" and form.is_valid():
        level = form.cleaned_data["level"]
        upload = form.cleaned_data["file"]
        try:
            result = EBotoClient.for_request(request).import_voters(upload, level)
        except EBotoUnauthorized:
            messages.error(request, "Unauthenticated. Please log in again.")
        except EBotoForbidden:
            messages.error(request, "Forbidden: Admin only.")
        except EBotoAPIError as exc:
            messages.error(request, error_message_from_payload(exc.payload, f"Upload failed (HTTP {exc.status})"))
        else:
            logger.info(
                "Voter import level=%s inserted=%s invalid=%s duplicates=%s skipped=%s",
                level,
                result.inserted,
                result.invalid,
                result.duplicates,
                result.skipped,
            )
            messages.success(request, result.summary(level))
            return redirect("voters-import")
    elif request.method == "POST":
        for error in form.errors.get("file", []):
            messages.error(request, error)

    return render(request, "core/voters_import.html", {"form": form, "levels": LEVELS})
