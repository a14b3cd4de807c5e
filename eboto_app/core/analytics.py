from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from core.schemas import LEVELS, POSITIONS, Candidate, Voter, VoteTally, party_label

ALL = "All"
TOP_PARTIES = 6


@dataclass(frozen=True, slots=True)
class Turnout:
    level: str
    voters: int
    voted: int
    turnout: float

    @property
    def non_voted(self) -> int:
        return self.voters - self.voted


@dataclass(frozen=True, slots=True)
class PartyCount:
    party: str
    count: int
    bar_percent: int = 0


@dataclass(frozen=True, slots=True)
class CandidateBreakdown:
    total: int
    by_position: dict[str, int]
    by_party: list[PartyCount]
    by_gender: dict[str, int]


@dataclass(frozen=True, slots=True)
class RaceEntry:
    rank: int
    tally: VoteTally
    votes: int
    share: float
    bar_percent: int
    margin: int

    @property
    def is_leader(self) -> bool:
        return self.rank == 1


@dataclass(slots=True)
class Race:
    level: str
    position: str
    entries: list[RaceEntry] = field(default_factory=list)

    @property
    def total_votes(self) -> int:
        return sum(e.votes for e in self.entries)


def _round_half_up(value: float, places: int = 1) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def turnout_percent(voted: int, voters: int) -> float:
    """Percentage of voters who voted, rounded half-up to one decimal."""

    if voters <= 0:
        return 0.0
    return _round_half_up(voted / voters * 100)


def voter_turnout(voters_by_level: Mapping[str, Sequence[Voter]]) -> tuple[Turnout, list[Turnout]]:
    """Return (overall, per-level) turnout, levels in their canonical order."""

    rows: list[Turnout] = []
    for level in LEVELS:
        voters = list(voters_by_level.get(level, ()))
        voted = sum(1 for v in voters if v.has_voted)
        rows.append(Turnout(level=level, voters=len(voters), voted=voted, turnout=turnout_percent(voted, len(voters))))

    total_voters = sum(r.voters for r in rows)
    total_voted = sum(r.voted for r in rows)
    overall = Turnout(
        level=ALL,
        voters=total_voters,
        voted=total_voted,
        turnout=turnout_percent(total_voted, total_voters),
    )
    return overall, rows


def totals_for_level(overall: Turnout, by_level: Sequence[Turnout], level: str) -> Turnout:
    if level == ALL:
        return overall
    for row in by_level:
        if row.level == level:
            return row
    return Turnout(level=level, voters=0, voted=0, turnout=0.0)


def candidate_breakdown(candidates: Iterable[Candidate], *, level: str = ALL) -> CandidateBreakdown:
    selected = [c for c in candidates if level == ALL or c.level == level]

    by_position: dict[str, int] = {p: 0 for p in POSITIONS}
    by_party: dict[str, int] = {}
    by_gender: dict[str, int] = {"Male": 0, "Female": 0}

    for c in selected:
        by_position[c.position] = by_position.get(c.position, 0) + 1
        party = party_label(c.party_list)
        by_party[party] = by_party.get(party, 0) + 1
        if c.gender in by_gender:
            by_gender[c.gender] += 1

    # sorted() is stable, so ties keep first-seen order.
    parties = sorted((PartyCount(party=p, count=n) for p, n in by_party.items()), key=lambda pc: -pc.count)
    return CandidateBreakdown(total=len(selected), by_position=by_position, by_party=parties, by_gender=by_gender)


def top_parties(by_party: Sequence[PartyCount], limit: int = TOP_PARTIES) -> list[PartyCount]:
    """The largest parties with bar widths relative to the biggest one."""

    top_count = max([1, *(p.count for p in by_party)])
    return [
        PartyCount(party=p.party, count=p.count, bar_percent=round(p.count / top_count * 100))
        for p in by_party[:limit]
    ]


def _tally_sort_key(t: VoteTally) -> tuple[int, str]:
    return (-t.votes, t.last_name)


def filter_tallies(tallies: Iterable[VoteTally], *, level: str = ALL, position: str = ALL) -> list[VoteTally]:
    rows = [
        t
        for t in tallies
        if (level == ALL or t.level == level) and (position == ALL or t.position == position)
    ]
    return sorted(rows, key=_tally_sort_key)


def _index_or_end(values: Sequence[str], value: str) -> int:
    try:
        return values.index(value)
    except ValueError:
        return len(values)


def build_races(tallies: Iterable[VoteTally], *, level: str = ALL, position: str = ALL) -> list[Race]:
    """Group tallies into races (level + position), ranked by votes.

    Races are ordered by level then position. Within a race the first entry
    is the leader; every other entry carries its (negative) margin to it.
    """

    grouped: dict[tuple[str, str], list[VoteTally]] = {}
    for t in filter_tallies(tallies, level=level, position=position):
        grouped.setdefault((t.level, t.position), []).append(t)

    races: list[Race] = []
    for (race_level, race_position), items in grouped.items():
        items.sort(key=_tally_sort_key)
        total = sum(t.votes for t in items)
        leader_votes = max(t.votes for t in items) if items else 0
        bar_base = leader_votes or 1

        race = Race(level=race_level, position=race_position)
        for idx, t in enumerate(items, start=1):
            race.entries.append(
                RaceEntry(
                    rank=idx,
                    tally=t,
                    votes=t.votes,
                    share=(t.votes / total * 100) if total else 0.0,
                    bar_percent=round(t.votes / bar_base * 100),
                    margin=t.votes - leader_votes,
                )
            )
        races.append(race)

    races.sort(key=lambda r: (_index_or_end(LEVELS, r.level), _index_or_end(POSITIONS, r.position)))
    return races

