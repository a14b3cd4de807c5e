from __future__ import annotations

from collections.abc import Iterable

from core.schemas import Candidate, Voter

ALL = "All"

VOTER_STATUS_ALL = "all"
VOTER_STATUS_VOTED = "voted"
VOTER_STATUS_NOT_VOTED = "not"


def _is_unset(value: str | None) -> bool:
    return not value or value == ALL


def party_options(candidates: Iterable[Candidate]) -> list[str]:
    """Distinct non-empty party names, sorted case-insensitively."""

    parties = {c.party_list.strip() for c in candidates if c.party_list.strip()}
    return sorted(parties, key=lambda p: (p.casefold(), p))


def _candidate_haystack(c: Candidate) -> str:
    return " ".join(
        [
            f"{c.first_name} {c.middle_name} {c.last_name}".lower().strip(),
            c.position.lower(),
            c.party_list.lower(),
            c.year.lower(),
            (c.level or "").lower(),
        ]
    )


def filter_candidates(
    candidates: Iterable[Candidate],
    *,
    q: str = "",
    level: str | None = None,
    position: str | None = None,
    gender: str | None = None,
    party: str | None = None,
) -> list[Candidate]:
    """Return the candidates matching every supplied criterion.

    Each criterion is an independent predicate, so applying filters in any
    order (or twice) yields the same list.
    """

    needle = (q or "").strip().lower()
    party_key = (party or "").strip().lower()

    out: list[Candidate] = []
    for c in candidates:
        if not _is_unset(level) and c.level != level:
            continue
        if not _is_unset(position) and c.position != position:
            continue
        if not _is_unset(gender) and c.gender != gender:
            continue
        if not _is_unset(party) and c.party_list.strip().lower() != party_key:
            continue
        if needle and needle not in _candidate_haystack(c):
            continue
        out.append(c)
    return out


def filter_voters(voters: Iterable[Voter], *, q: str = "", status: str = VOTER_STATUS_ALL) -> list[Voter]:
    needle = (q or "").strip().lower()

    out: list[Voter] = []
    for v in voters:
        if status == VOTER_STATUS_VOTED and not v.has_voted:
            continue
        if status == VOTER_STATUS_NOT_VOTED and v.has_voted:
            continue
        if needle:
            hay = f"{v.school_id} {v.full_name} {v.course or ''} {v.year} {v.department or ''}".lower()
            if needle not in hay:
                continue
        out.append(v)
    return out
