from __future__ import annotations

import requests
from django.test import TestCase

from core.tests.api_fakes import FakeAPI, student_api

CANDIDATES = [
    {"id": 1, "level": "SHS", "position": "President", "firstName": "Ana", "lastName": "Reyes", "gender": "Female"},
    {"id": 2, "level": "SHS", "position": "President", "firstName": "Ben", "lastName": "Cruz", "gender": "Male"},
    {"id": 3, "level": "College", "position": "President", "firstName": "Cy", "lastName": "Lim", "gender": "Male"},
    {"id": 4, "level": "SHS", "position": "Secretary", "firstName": "Di", "lastName": "Go", "gender": "Female"},
]


def _ballot_api(*, my_votes: object = None, open_: bool = True) -> FakeAPI:
    return (
        student_api()
        .add("GET", "/api/candidates", 200, CANDIDATES)
        .add("GET", "/api/votes/me", 200, my_votes if my_votes is not None else {})
        .add("GET", "/api/votes/status", 200, {"open": open_})
    )


def _card_ids(resp) -> dict[str, list[str]]:
    return {s["position"]: [card["candidate"].id for card in s["cards"]] for s in resp.context["sections"]}


class StudentBallotTests(TestCase):
    def setUp(self) -> None:
        self.client.cookies["token"] = "tok"

    def test_ballot_shows_only_the_students_level(self) -> None:
        with _ballot_api().patch():
            resp = self.client.get("/student-dashboard")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(_card_ids(resp), {"President": ["1", "2"], "Secretary": ["4"]})
        self.assertContains(resp, "Ana Reyes")
        self.assertNotContains(resp, "Cy Lim")

    def test_prior_votes_lock_their_position(self) -> None:
        with _ballot_api(my_votes={"votes": {"President": 2}}).patch():
            resp = self.client.get("/student-dashboard")

        president = resp.context["sections"][0]
        self.assertTrue(president["locked"])
        chosen = [c["candidate"].id for c in president["cards"] if c["is_chosen"]]
        self.assertEqual(chosen, ["2"])
        self.assertTrue(all(c["disabled"] for c in president["cards"]))

        secretary = resp.context["sections"][1]
        self.assertFalse(secretary["locked"])
        self.assertFalse(secretary["cards"][0]["disabled"])

    def test_closed_voting_disables_every_card(self) -> None:
        with _ballot_api(open_=False).patch():
            resp = self.client.get("/student-dashboard")

        self.assertFalse(resp.context["voting_open"])
        self.assertTrue(all(c["disabled"] for s in resp.context["sections"] for c in s["cards"]))

    def test_successful_vote_marks_candidate(self) -> None:
        api = _ballot_api().add("POST", "/api/votes", 201, {"ok": True})
        with api.patch():
            resp = self.client.post("/student-dashboard/vote", {"candidate_id": "1", "position": "President"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["my_votes"], {"President": "1"})
        self.assertContains(resp, "Vote recorded for President.")
        (call,) = api.calls_to("POST", "/api/votes")
        self.assertEqual(call.kwargs["json"], {"candidateId": "1"})
        self.assertEqual(call.headers["Authorization"], "Bearer tok")

    def test_locked_position_comes_from_the_candidate(self) -> None:
        api = _ballot_api().add("POST", "/api/votes", 201, {"ok": True})
        with api.patch():
            resp = self.client.post("/student-dashboard/vote", {"candidate_id": "4", "position": "President"})

        self.assertEqual(resp.context["my_votes"], {"Secretary": "4"})
        self.assertContains(resp, "Vote recorded for Secretary.")
        self.assertFalse(resp.context["sections"][0]["locked"])

    def test_candidate_outside_the_ballot_is_rejected(self) -> None:
        for candidate_id in ("3", "99"):
            with self.subTest(candidate_id=candidate_id):
                api = _ballot_api().add("POST", "/api/votes", 201, {"ok": True})
                with api.patch():
                    resp = self.client.post(
                        "/student-dashboard/vote", {"candidate_id": candidate_id, "position": "President"}
                    )

                self.assertEqual(resp.context["ballot_error"], "Invalid candidate. Please refresh.")
                self.assertEqual(resp.context["my_votes"], {})
                self.assertEqual(api.calls_to("POST", "/api/votes"), [])

    def test_vote_not_created_is_a_failure(self) -> None:
        api = _ballot_api().add("POST", "/api/votes", 200, {"ok": True})
        with api.patch():
            resp = self.client.post("/student-dashboard/vote", {"candidate_id": "1", "position": "President"})

        self.assertEqual(resp.context["ballot_error"], "Failed to submit vote.")
        self.assertEqual(resp.context["my_votes"], {})
        self.assertFalse(resp.context["sections"][0]["locked"])

    def test_conflict_marks_the_existing_choice(self) -> None:
        api = _ballot_api().add(
            "POST", "/api/votes", 409, {"error": "Already voted for this position", "existing": {"candidateId": 2}}
        )
        with api.patch():
            resp = self.client.post("/student-dashboard/vote", {"candidate_id": "1", "position": "President"})

        self.assertEqual(resp.context["my_votes"], {"President": "2"})
        self.assertEqual(resp.context["ballot_error"], "Already voted for this position")

    def test_conflict_without_message_uses_position(self) -> None:
        api = _ballot_api().add("POST", "/api/votes", 409, {})
        with api.patch():
            resp = self.client.post("/student-dashboard/vote", {"candidate_id": "1", "position": "President"})

        self.assertEqual(resp.context["ballot_error"], "You already voted for President.")
        self.assertEqual(resp.context["my_votes"], {})

    def test_vote_failures_render_inline(self) -> None:
        cases = [
            (FakeAPI().add("POST", "/api/votes", 401, {}), "Unauthorized. Please log in again."),
            (FakeAPI().add("POST", "/api/votes", 403, {}), "Forbidden."),
            (FakeAPI().add("POST", "/api/votes", 500, {}), "Failed to submit vote."),
            (FakeAPI().fail("POST", "/api/votes", requests.ConnectionError()), "Network error."),
        ]
        for failing, message in cases:
            with self.subTest(message=message):
                api = _ballot_api()
                api.routes.update(failing.routes)
                with api.patch():
                    resp = self.client.post("/student-dashboard/vote", {"candidate_id": "1", "position": "President"})
                self.assertEqual(resp.context["ballot_error"], message)

    def test_missing_candidate_id_is_rejected_without_api_call(self) -> None:
        api = _ballot_api()
        with api.patch():
            resp = self.client.post("/student-dashboard/vote", {"position": "President"})

        self.assertEqual(resp.context["ballot_error"], "Invalid candidate. Please refresh.")
        self.assertEqual(api.calls_to("POST", "/api/votes"), [])

    def test_expired_session_while_loading_ballot_redirects(self) -> None:
        api = student_api().add("GET", "/api/candidates", 401, {})
        with api.patch():
            resp = self.client.get("/student-dashboard")

        self.assertEqual(resp["Location"], "/login?next=/student-dashboard")
