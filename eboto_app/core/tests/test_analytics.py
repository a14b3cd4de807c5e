from __future__ import annotations

from core.analytics import (
    build_races,
    candidate_breakdown,
    filter_tallies,
    top_parties,
    totals_for_level,
    turnout_percent,
    voter_turnout,
)
from core.schemas import Candidate, Voter, VoteTally


def _voters(voted: int, not_voted: int) -> list[Voter]:
    rows = [{"id": f"v{i}", "status": 1} for i in range(voted)]
    rows += [{"id": f"n{i}", "status": 0} for i in range(not_voted)]
    return [Voter.model_validate(r) for r in rows]


def _tally(cid: str, last: str, votes: int, *, level: str = "SHS", position: str = "President") -> VoteTally:
    return VoteTally.model_validate(
        {"candidateId": cid, "lastName": last, "votes": votes, "level": level, "position": position}
    )


def test_turnout_percent_rounds_half_up_to_one_decimal():
    assert turnout_percent(0, 0) == 0.0
    assert turnout_percent(1, 3) == 33.3
    assert turnout_percent(2, 3) == 66.7
    assert turnout_percent(1, 16) == 6.3
    assert turnout_percent(4, 4) == 100.0


def test_voter_turnout_overall_and_per_level():
    overall, rows = voter_turnout({"SHS": _voters(2, 1), "College": _voters(1, 3)})

    assert [r.level for r in rows] == ["Elementary", "JHS", "SHS", "College"]
    shs = totals_for_level(overall, rows, "SHS")
    assert (shs.voters, shs.voted, shs.non_voted, shs.turnout) == (3, 2, 1, 66.7)

    assert (overall.voters, overall.voted, overall.turnout) == (7, 3, 42.9)
    assert totals_for_level(overall, rows, "All") is overall
    assert totals_for_level(overall, rows, "Nope").voters == 0

    elem = totals_for_level(overall, rows, "Elementary")
    assert elem.turnout == 0.0


def test_candidate_breakdown_counts_positions_parties_and_genders():
    candidates = [
        Candidate.model_validate(r)
        for r in [
            {"id": "1", "level": "SHS", "position": "President", "partyList": "Alpha", "gender": "Male"},
            {"id": "2", "level": "SHS", "position": "Secretary", "partyList": "", "gender": "Female"},
            {"id": "3", "level": "SHS", "position": "Auditor", "partyList": "Beta", "gender": "Female"},
            {"id": "4", "level": "SHS", "position": "Treasurer", "partyList": "Beta", "gender": "Other"},
            {"id": "5", "level": "College", "position": "President", "partyList": "Alpha", "gender": "Male"},
        ]
    ]

    shs = candidate_breakdown(candidates, level="SHS")
    assert shs.total == 4
    assert shs.by_position["President"] == 1
    assert shs.by_position["Representative"] == 0
    assert shs.by_gender == {"Male": 1, "Female": 2}
    assert [(p.party, p.count) for p in shs.by_party] == [("Beta", 2), ("Alpha", 1), ("Independent", 1)]

    everyone = candidate_breakdown(candidates)
    assert everyone.total == 5
    assert everyone.by_position["President"] == 2


def test_top_parties_limits_and_scales_bars():
    shs = candidate_breakdown(
        [
            Candidate.model_validate({"id": str(i), "partyList": f"P{i % 8}", "level": "SHS"})
            for i in range(16)
        ]
        + [Candidate.model_validate({"id": "x", "partyList": "P0", "level": "SHS"})]
    )
    top = top_parties(shs.by_party)
    assert len(top) == 6
    assert top[0].party == "P0"
    assert top[0].bar_percent == 100
    assert top[1].bar_percent == 67
    assert top_parties([]) == []


def test_filter_tallies_orders_by_votes_then_last_name():
    tallies = [
        _tally("1", "Zamora", 5),
        _tally("2", "Abad", 5),
        _tally("3", "Cruz", 9),
        _tally("4", "Dee", 1, level="College"),
    ]
    assert [t.candidate_id for t in filter_tallies(tallies, level="SHS")] == ["3", "2", "1"]
    assert [t.candidate_id for t in filter_tallies(tallies, position="Secretary")] == []


def test_build_races_groups_ranks_and_computes_margins():
    tallies = [
        _tally("1", "Santos", 4),
        _tally("2", "Reyes", 10),
        _tally("3", "Lim", 6),
        _tally("4", "Go", 3, position="Secretary"),
        _tally("5", "Uy", 0, level="College"),
        _tally("6", "Ong", 0, level="College"),
    ]

    races = build_races(tallies)
    assert [(r.level, r.position) for r in races] == [
        ("SHS", "President"),
        ("SHS", "Secretary"),
        ("College", "President"),
    ]

    president = races[0]
    assert president.total_votes == 20
    assert [e.tally.candidate_id for e in president.entries] == ["2", "3", "1"]
    assert president.entries[0].is_leader
    assert [e.margin for e in president.entries] == [0, -4, -6]
    assert [e.bar_percent for e in president.entries] == [100, 60, 40]
    assert president.entries[1].share == 30.0

    college = races[2]
    assert [e.tally.last_name for e in college.entries] == ["Ong", "Uy"]
    assert all(e.share == 0.0 and e.bar_percent == 0 and e.margin == 0 for e in college.entries)


def test_build_races_respects_filters():
    tallies = [_tally("1", "A", 1), _tally("2", "B", 2, level="College")]
    races = build_races(tallies, level="College")
    assert len(races) == 1
    assert races[0].entries[0].tally.candidate_id == "2"
