from __future__ import annotations

import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.shortcuts import render
from django.views.decorators.http import require_GET, require_POST

from core.backends import (
    EBotoAPIError,
    EBotoClient,
    EBotoConflict,
    EBotoForbidden,
    EBotoUnauthorized,
    EBotoUpstreamUnavailable,
    error_message_from_payload,
)
from core.permissions import ROLE_STUDENT, role_required
from core.schemas import POSITIONS, Candidate, parse_vote_conflict
from core.views_utils import _normalize_str, api_error_response

logger = logging.getLogger(__name__)


def _ballot_sections(candidates: list[Candidate], my_votes: dict[str, str], *, can_vote: bool) -> list[dict]:
    """Candidates grouped by position in ballot order; empty positions are skipped."""

    api_base = settings.EBOTO_API_BASE
    sections: list[dict] = []
    for position in POSITIONS:
        chosen_id = my_votes.get(position, "")
        cards = []
        for c in candidates:
            if c.position != position:
                continue
            is_chosen = chosen_id == c.id
            cards.append(
                {
                    "candidate": c,
                    "photo_url": c.resolved_photo_url(api_base),
                    "is_chosen": is_chosen,
                    "disabled": not can_vote or (bool(chosen_id) and not is_chosen) or is_chosen,
                }
            )
        if cards:
            sections.append({"position": position, "cards": cards, "locked": bool(chosen_id)})
    return sections


def _on_ballot(request: HttpRequest, candidates: list[Candidate]) -> list[Candidate]:
    department = getattr(request.user, "department", None)
    if not department:
        return candidates
    return [c for c in candidates if c.level == department]


def _render_ballot(
    request: HttpRequest,
    client: EBotoClient,
    *,
    candidates: list[Candidate] | None = None,
    overrides: dict[str, str] | None = None,
    error: str = "",
    notice: str = "",
) -> HttpResponse:
    try:
        if candidates is None:
            candidates = _on_ballot(request, client.list_candidates())
        my_votes = client.my_votes()
        voting_open = client.voting_status().open
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        logger.warning("Ballot load failed status=%s", exc.status)
        candidates, my_votes, voting_open = [], {}, False
        error = error or error_message_from_payload(exc.payload, "Failed to load the ballot.")

    department = getattr(request.user, "department", None)

    # The server map seeds the ballot; outcomes of this request take precedence.
    votes = {**my_votes, **(overrides or {})}
    return render(
        request,
        "core/student_dashboard.html",
        {
            "sections": _ballot_sections(candidates, votes, can_vote=voting_open),
            "my_votes": votes,
            "voting_open": voting_open,
            "department": department,
            "ballot_error": error,
            "ballot_notice": notice,
        },
    )


@role_required(ROLE_STUDENT, wrong_role_url="dashboard")
@require_GET
def student_dashboard(request: HttpRequest) -> HttpResponse:
    return _render_ballot(request, EBotoClient.for_request(request))


@role_required(ROLE_STUDENT, wrong_role_url="dashboard")
@require_POST
def student_vote(request: HttpRequest) -> HttpResponse:
    client = EBotoClient.for_request(request)
    candidate_id = _normalize_str(request.POST.get("candidate_id"))
    if not candidate_id:
        return _render_ballot(request, client, error="Invalid candidate. Please refresh.")

    try:
        ballot = _on_ballot(request, client.list_candidates())
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        message = error_message_from_payload(exc.payload, "Failed to load the ballot.")
        return _render_ballot(request, client, candidates=[], error=message)

    # The locked position is the candidate's own, whatever the form claims.
    candidate = next((c for c in ballot if c.id == candidate_id), None)
    if candidate is None:
        logger.info("Vote rejected for candidate not on ballot id=%s", candidate_id)
        return _render_ballot(request, client, candidates=ballot, error="Invalid candidate. Please refresh.")
    position = candidate.position

    try:
        client.cast_vote(candidate_id)
    except EBotoConflict as exc:
        conflict = parse_vote_conflict(exc.payload)
        existing_id = conflict.existing.candidate_id if conflict.existing else ""
        overrides = {position: existing_id} if existing_id else {}
        logger.info("Duplicate vote rejected position=%s", position)
        return _render_ballot(
            request,
            client,
            candidates=ballot,
            overrides=overrides,
            error=conflict.error or f"You already voted for {position}.",
        )
    except EBotoUnauthorized as exc:
        message = error_message_from_payload(exc.payload, "Unauthorized. Please log in again.")
        return _render_ballot(request, client, candidates=ballot, error=message)
    except EBotoForbidden as exc:
        message = error_message_from_payload(exc.payload, "Forbidden.")
        return _render_ballot(request, client, candidates=ballot, error=message)
    except EBotoUpstreamUnavailable:
        return _render_ballot(request, client, candidates=ballot, error="Network error.")
    except EBotoAPIError as exc:
        message = error_message_from_payload(exc.payload, "Failed to submit vote.")
        return _render_ballot(request, client, candidates=ballot, error=message)

    logger.info("Vote recorded position=%s", position)
    return _render_ballot(
        request,
        client,
        candidates=ballot,
        overrides={position: candidate_id},
        notice=f"Vote recorded for {position}.",
    )
