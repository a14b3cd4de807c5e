from __future__ import annotations

import logging

from django.conf import settings
from django.contrib import messages
from django.http import Http404, HttpRequest, HttpResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from core.backends import EBotoAPIError, EBotoClient, error_message_from_payload
from core.filters import filter_candidates, party_options
from core.forms_candidates import CandidateFilterForm, CandidateForm
from core.permissions import admin_required
from core.schemas import DEFAULT_LEVEL, LEVELS, POSITIONS, Candidate
from core.views_utils import api_error_response

logger = logging.getLogger(__name__)


def _find_candidate(candidates: list[Candidate], candidate_id: str) -> Candidate:
    for c in candidates:
        if c.id == candidate_id:
            return c
    raise Http404("Candidate not found")


@admin_required
@require_GET
def candidates_list(request: HttpRequest) -> HttpResponse:
    client = EBotoClient.for_request(request)
    load_error = ""
    try:
        candidates = client.list_candidates()
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        candidates = []
        load_error = error_message_from_payload(exc.payload, "Failed to load candidates")

    filter_form = CandidateFilterForm(request.GET or None, parties=party_options(candidates))
    criteria = filter_form.criteria() if request.GET else {}
    visible = filter_candidates(candidates, **criteria)

    api_base = settings.EBOTO_API_BASE
    rows = [{"candidate": c, "photo_url": c.resolved_photo_url(api_base)} for c in visible]

    return render(
        request,
        "core/candidates.html",
        {
            "rows": rows,
            "total": len(candidates),
            "filter_form": filter_form,
            "levels": LEVELS,
            "positions": POSITIONS,
            "load_error": load_error,
        },
    )


def _save_candidate(
    request: HttpRequest,
    *,
    candidate: Candidate | None,
    level: str,
) -> HttpResponse:
    initial = CandidateForm.initial_for(candidate) if candidate is not None else {"level": level}
    form = CandidateForm(request.POST or None, request.FILES or None, initial=initial)

    if request.method == "POST" and form.is_valid():
        client = EBotoClient.for_request(request)
        try:
            client.save_candidate(
                candidate.id if candidate is not None else None,
                form.api_fields(),
                photo=form.cleaned_data.get("photo"),
            )
        except EBotoAPIError as exc:
            response = api_error_response(request, exc)
            if response is not None:
                return response
            form.add_error(None, error_message_from_payload(exc.payload, "Failed to save candidate"))
        else:
            logger.info(
                "Candidate %s level=%s position=%s",
                "updated" if candidate is not None else "created",
                form.cleaned_data["level"],
                form.cleaned_data["position"],
            )
            messages.success(request, "Candidate saved.")
            return redirect("candidates")

    photo_url = candidate.resolved_photo_url(settings.EBOTO_API_BASE) if candidate is not None else ""
    return render(
        request,
        "core/candidate_form.html",
        {
            "form": form,
            "candidate": candidate,
            "level": (form["level"].value() or level),
            "photo_url": photo_url,
        },
    )


@admin_required
@require_http_methods(["GET", "POST"])
def candidate_create(request: HttpRequest, level: str) -> HttpResponse:
    if level not in LEVELS:
        raise Http404("Unknown level")
    return _save_candidate(request, candidate=None, level=level)


@admin_required
@require_http_methods(["GET", "POST"])
def candidate_edit(request: HttpRequest, candidate_id: str) -> HttpResponse:
    client = EBotoClient.for_request(request)
    try:
        candidates = client.list_candidates()
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        messages.error(request, error_message_from_payload(exc.payload, "Failed to load candidates"))
        return redirect("candidates")

    candidate = _find_candidate(candidates, candidate_id)
    return _save_candidate(request, candidate=candidate, level=candidate.level or DEFAULT_LEVEL)


@admin_required
@require_POST
def candidate_delete(request: HttpRequest, candidate_id: str) -> HttpResponse:
    try:
        EBotoClient.for_request(request).delete_candidate(candidate_id)
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        messages.error(request, error_message_from_payload(exc.payload, "Failed to delete candidate"))
    else:
        logger.info("Candidate deleted id=%s", candidate_id)
        messages.success(request, "Candidate deleted.")
    return redirect("candidates")
