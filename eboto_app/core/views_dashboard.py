from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from django.contrib import messages
from django.http import HttpRequest, HttpResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_POST

from core.analytics import (
    ALL,
    build_races,
    candidate_breakdown,
    top_parties,
    totals_for_level,
    voter_turnout,
)
from core.backends import EBotoAPIError, EBotoClient, error_message_from_payload
from core.permissions import admin_required
from core.schemas import LEVELS, POSITIONS, VotingStatus
from core.views_utils import api_error_response

logger = logging.getLogger(__name__)

DEFAULT_POSITION = "President"


T = TypeVar("T")


def _or_default(fetch: Callable[[], T], default: T, *, what: str) -> T:
    # The dashboard renders whatever it can; a failed section shows as empty.
    try:
        return fetch()
    except EBotoAPIError as exc:
        logger.warning("Dashboard %s unavailable status=%s", what, exc.status)
        return default


def _choice(value: str | None, options: tuple[str, ...], default: str) -> str:
    value = (value or "").strip()
    if value == ALL or value in options:
        return value
    return default


@admin_required(wrong_role_url="student-dashboard")
@require_GET
def dashboard(request: HttpRequest) -> HttpResponse:
    client = EBotoClient.for_request(request)
    level = _choice(request.GET.get("level"), LEVELS, ALL)
    position = _choice(request.GET.get("position"), POSITIONS, DEFAULT_POSITION)

    voters_by_level = {
        lvl: _or_default(lambda lvl=lvl: client.list_voters(lvl), [], what=f"voters[{lvl}]") for lvl in LEVELS
    }
    voting_status = _or_default(client.voting_status, VotingStatus(), what="voting status")
    candidates = _or_default(client.list_candidates, [], what="candidates")
    tallies = _or_default(client.vote_stats, [], what="vote stats")

    overall, by_level = voter_turnout(voters_by_level)
    breakdown = candidate_breakdown(candidates, level=level)

    return render(
        request,
        "core/dashboard.html",
        {
            "admin_name": getattr(request.user, "username", "") or "Admin",
            "levels": LEVELS,
            "level_filters": (ALL, *LEVELS),
            "positions": POSITIONS,
            "level": level,
            "position": position,
            "voting_open": voting_status.open,
            "totals": totals_for_level(overall, by_level, level),
            "by_level": by_level,
            "breakdown": breakdown,
            "party_bars": top_parties(breakdown.by_party),
            "races": build_races(tallies, level=level, position=position),
        },
    )


@admin_required(wrong_role_url="student-dashboard")
@require_POST
def dashboard_voting(request: HttpRequest) -> HttpResponse:
    """Flip the global voting flag to the value the form carried."""

    open_ = str(request.POST.get("open", "")).strip().lower() in {"1", "true", "on", "yes"}
    try:
        status = EBotoClient.for_request(request).set_voting_status(open_)
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        messages.error(request, error_message_from_payload(exc.payload, "Failed to update voting status"))
    else:
        logger.info("Voting %s by %s", "opened" if status.open else "closed", request.user.get_username())
        messages.success(request, "Voting is now active." if status.open else "Voting is now inactive.")
    return redirect("dashboard")


@admin_required(wrong_role_url="student-dashboard")
@require_POST
def dashboard_reset_votes(request: HttpRequest) -> HttpResponse:
    try:
        result = EBotoClient.for_request(request).reset_votes(close=False)
    except EBotoAPIError as exc:
        response = api_error_response(request, exc)
        if response is not None:
            return response
        messages.error(request, error_message_from_payload(exc.payload, "Reset failed"))
    else:
        logger.warning(
            "Votes reset by %s deleted_votes=%s voters_reset=%s",
            request.user.get_username(),
            result.deleted_votes,
            result.voters_reset,
        )
        messages.success(
            request,
            f"Reset successful. Deleted votes: {result.deleted_votes}. Voters reset: {result.voters_reset}.",
        )
    return redirect("dashboard")
