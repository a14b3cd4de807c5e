from __future__ import annotations

import json

import requests
from django.test import Client, TestCase

from core.tests.api_fakes import FakeAPI


class ApiLoginProxyTests(TestCase):
    def test_missing_fields_are_rejected_locally(self) -> None:
        api = FakeAPI()
        with api.patch():
            resp = self.client.post("/api/login", data=json.dumps({"username": "a"}), content_type="application/json")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Username and password are required"})
        self.assertEqual(api.calls, [])

    def test_success_sets_cookie(self) -> None:
        api = FakeAPI().add("POST", "/auth/login", 200, {"token": "abc"})
        with api.patch():
            resp = self.client.post(
                "/api/login", data=json.dumps({"username": "admin", "password": "pw"}), content_type="application/json"
            )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": True})
        self.assertEqual(resp.cookies["token"].value, "abc")
        self.assertTrue(resp.cookies["token"]["httponly"])

    def test_form_encoded_body_is_accepted(self) -> None:
        api = FakeAPI().add("POST", "/auth/login", 200, {"token": "abc"})
        with api.patch():
            resp = self.client.post("/api/login", {"username": "admin", "password": "pw"})

        self.assertEqual(resp.status_code, 200)

    def test_backend_error_is_mirrored(self) -> None:
        api = FakeAPI().add("POST", "/auth/login", 401, {"error": "Invalid credentials"})
        with api.patch():
            resp = self.client.post(
                "/api/login", data=json.dumps({"username": "admin", "password": "x"}), content_type="application/json"
            )

        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Invalid credentials"})
        self.assertNotIn("token", resp.cookies)

    def test_missing_token_is_502(self) -> None:
        api = FakeAPI().add("POST", "/auth/login", 200, {})
        with api.patch():
            resp = self.client.post(
                "/api/login", data=json.dumps({"username": "admin", "password": "pw"}), content_type="application/json"
            )

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json(), {"error": "No token from API"})

    def test_timeout_is_502_with_detail(self) -> None:
        api = FakeAPI().fail("POST", "/auth/login", requests.Timeout())
        with api.patch():
            resp = self.client.post(
                "/api/login", data=json.dumps({"username": "admin", "password": "pw"}), content_type="application/json"
            )

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json(), {"error": "Cannot reach API", "detail": "Login request timed out"})


class VotesProxyTests(TestCase):
    def test_votes_without_cookie_is_401(self) -> None:
        api = FakeAPI()
        with api.patch():
            resp = self.client.post("/api/votes", data=json.dumps({"candidateId": 1}), content_type="application/json")
            me = self.client.get("/api/votes/me")

        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Unauthorized"})
        self.assertEqual(me.status_code, 401)
        self.assertEqual(api.calls, [])

    def test_votes_accepts_any_candidate_id_key(self) -> None:
        self.client.cookies["token"] = "tok"
        for body in ({"candidateId": 5}, {"id": "5"}, {"candidate_id": 5}):
            with self.subTest(body=body):
                api = FakeAPI().add("POST", "/api/votes", 201, {"ok": True})
                with api.patch():
                    resp = self.client.post("/api/votes", data=json.dumps(body), content_type="application/json")

                self.assertEqual(resp.status_code, 201)
                (call,) = api.calls
                self.assertEqual(call.kwargs["json"], {"candidateId": "5"})
                self.assertEqual(call.headers["Authorization"], "Bearer tok")
                self.assertEqual(call.headers["Cookie"], "token=tok")

    def test_votes_form_body(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().add("POST", "/api/votes", 201, {"ok": True})
        with api.patch():
            resp = self.client.post("/api/votes", {"candidateId": "8"})

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(api.calls[0].kwargs["json"], {"candidateId": "8"})

    def test_votes_missing_candidate_is_400(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI()
        with api.patch():
            resp = self.client.post("/api/votes", data=json.dumps({}), content_type="application/json")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "candidateId is required"})
        self.assertEqual(api.calls, [])

    def test_votes_conflict_is_mirrored(self) -> None:
        self.client.cookies["token"] = "tok"
        payload = {"error": "Already voted", "existing": {"candidateId": 2}}
        api = FakeAPI().add("POST", "/api/votes", 409, payload)
        with api.patch():
            resp = self.client.post("/api/votes", data=json.dumps({"candidateId": 1}), content_type="application/json")

        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json(), payload)

    def test_upstream_failure_is_502(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().fail("GET", "/api/votes/me", requests.ConnectionError())
        with api.patch():
            resp = self.client.get("/api/votes/me")

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json(), {"error": "Upstream unavailable"})

    def test_votes_me_is_mirrored(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().add("GET", "/api/votes/me", 200, {"votes": {"President": 3}})
        with api.patch():
            resp = self.client.get("/api/votes/me")

        self.assertEqual(resp.json(), {"votes": {"President": 3}})


class InternalProxyTests(TestCase):
    def test_internal_votes_forwards_raw_body_and_content_type(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().add("POST", "/api/votes", 400, text="bad request", content_type="text/plain")
        with api.patch():
            resp = self.client.post("/internal/votes", data='{"candidateId": 4}', content_type="application/json")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.content, b"bad request")
        self.assertEqual(resp["Content-Type"], "text/plain")
        call = api.calls[0]
        self.assertEqual(call.kwargs["data"], b'{"candidateId": 4}')
        self.assertEqual(call.headers["Content-Type"], "application/json")

    def test_internal_votes_me_requires_cookie(self) -> None:
        resp = self.client.get("/internal/votes/me")
        self.assertEqual(resp.status_code, 401)

    def test_status_read_needs_no_cookie(self) -> None:
        api = FakeAPI().add("GET", "/api/votes/status", 200, {"open": False})
        with api.patch():
            resp = self.client.get("/internal/votes/status")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"open": False})
        self.assertEqual(api.calls[0].headers, {})

    def test_status_write_requires_cookie(self) -> None:
        api = FakeAPI()
        with api.patch():
            resp = self.client.post("/internal/votes/status", data=json.dumps({"open": True}), content_type="application/json")

        self.assertEqual(resp.status_code, 401)
        self.assertEqual(api.calls, [])

    def test_status_write_is_forwarded(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().add("POST", "/api/votes/status", 200, {"open": True})
        with api.patch():
            resp = self.client.post("/internal/votes/status", data=json.dumps({"open": True}), content_type="application/json")

        self.assertEqual(resp.json(), {"open": True})
        self.assertEqual(api.calls[0].kwargs["json"], {"open": True})

    def test_reset_forwards_client_headers(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().add("POST", "/api/votes/reset", 200, {"deletedVotes": 3, "votersReset": 2})
        with api.patch():
            resp = self.client.post(
                "/internal/votes/reset",
                data=json.dumps({"close": True}),
                content_type="application/json",
                HTTP_X_FORWARDED_FOR="10.0.0.7",
                HTTP_USER_AGENT="pytest",
            )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"deletedVotes": 3, "votersReset": 2})
        call = api.calls[0]
        self.assertEqual(call.kwargs["json"], {"close": True})
        self.assertEqual(call.headers["X-Forwarded-For"], "10.0.0.7")
        self.assertEqual(call.headers["User-Agent"], "pytest")

    def test_reset_network_failure_is_500(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().fail("POST", "/api/votes/reset", requests.ConnectionError("connection refused"))
        with api.patch():
            resp = self.client.post("/internal/votes/reset", data="{}", content_type="application/json")

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "connection refused"})


class ProxyCsrfTests(TestCase):
    """JS callers authenticate with the token cookie and send no CSRF token."""

    def setUp(self) -> None:
        self.client = Client(enforce_csrf_checks=True)

    def test_login_contract_runs_without_csrf_token(self) -> None:
        api = FakeAPI()
        with api.patch():
            resp = self.client.post(
                "/api/login", data=json.dumps({"username": "", "password": ""}), content_type="application/json"
            )

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Username and password are required"})

    def test_votes_without_cookie_is_401_json(self) -> None:
        with FakeAPI().patch():
            resp = self.client.post("/api/votes", data=json.dumps({"candidateId": 1}), content_type="application/json")

        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Unauthorized"})

    def test_votes_upstream_failure_is_502_json(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().fail("POST", "/api/votes", requests.ConnectionError())
        with api.patch():
            resp = self.client.post("/api/votes", data=json.dumps({"candidateId": 1}), content_type="application/json")

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json(), {"error": "Upstream unavailable"})

    def test_internal_status_write_is_forwarded(self) -> None:
        self.client.cookies["token"] = "tok"
        api = FakeAPI().add("POST", "/api/votes/status", 200, {"open": False})
        with api.patch():
            resp = self.client.post(
                "/internal/votes/status", data=json.dumps({"open": False}), content_type="application/json"
            )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(api.calls_to("POST", "/api/votes/status")), 1)
