from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests
from django.conf import settings
from django.http import HttpRequest

from core.schemas import (
    Candidate,
    ImportResult,
    ResetResult,
    SessionUser,
    Voter,
    VoteTally,
    VotingStatus,
    parse_import_result,
    parse_list,
    parse_my_votes,
    parse_session,
)

logger = logging.getLogger(__name__)


class EBotoAPIError(RuntimeError):
    """Raised when the E-Boto API rejects a request."""

    def __init__(self, message: str, *, status: int = 0, payload: object = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload if payload is not None else {}


class EBotoUnauthorized(EBotoAPIError):
    pass


class EBotoForbidden(EBotoAPIError):
    pass


class EBotoConflict(EBotoAPIError):
    pass


class EBotoUpstreamUnavailable(EBotoAPIError):
    """The API could not be reached (connection error or timeout)."""

    def __init__(self, message: str = "Upstream unavailable", *, detail: str = "") -> None:
        super().__init__(message, status=502, payload={"error": message})
        self.detail = detail


_STATUS_ERRORS: dict[int, type[EBotoAPIError]] = {
    401: EBotoUnauthorized,
    403: EBotoForbidden,
    409: EBotoConflict,
}


def api_url(path: str) -> str:
    base = str(settings.EBOTO_API_BASE).rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def response_payload(response: requests.Response) -> object:
    """Decode a JSON body, treating anything unparseable as an empty object."""

    try:
        return response.json()
    except ValueError:
        return {}


def error_message_from_payload(payload: object, default: str) -> str:
    if isinstance(payload, Mapping):
        for key in ("error", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return default


def _raise_for_status(response: requests.Response, payload: object, *, method: str, path: str) -> None:
    if response.ok:
        return

    status = int(response.status_code)
    logger.warning("E-Boto API %s %s failed status=%s", method, path, status)
    exc_class = _STATUS_ERRORS.get(status, EBotoAPIError)
    message = error_message_from_payload(payload, f"Request failed ({status})")
    raise exc_class(message, status=status, payload=payload)


def get_request_token(request: HttpRequest) -> str:
    return str(request.COOKIES.get(settings.EBOTO_TOKEN_COOKIE_NAME, "") or "").strip()


class EBotoClient:
    """Thin requests wrapper around the E-Boto REST API.

    Every call forwards the session token both as a bearer header and as the
    `token` cookie, since the API reads either depending on the route.
    """

    def __init__(self, token: str | None = None, *, timeout: float | None = None) -> None:
        self.token = (token or "").strip()
        self.timeout = float(timeout if timeout is not None else settings.EBOTO_API_TIMEOUT_SECONDS)

    @classmethod
    def for_request(cls, request: HttpRequest) -> EBotoClient:
        return cls(get_request_token(request))

    def auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        cookie_name = settings.EBOTO_TOKEN_COOKIE_NAME
        return {
            "Authorization": f"Bearer {self.token}",
            "Cookie": f"{cookie_name}={self.token}",
        }

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Send a request and return the raw response, whatever its status.

        Only transport failures raise (as EBotoUpstreamUnavailable).
        """

        merged = self.auth_headers()
        if headers:
            merged.update({k: v for k, v in headers.items() if v})
        try:
            return requests.request(
                method,
                api_url(path),
                headers=merged,
                timeout=timeout if timeout is not None else self.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            logger.warning("E-Boto API %s %s timed out", method, path)
            raise EBotoUpstreamUnavailable("Upstream unavailable", detail=str(exc)) from exc
        except requests.RequestException as exc:
            logger.warning("E-Boto API %s %s unreachable: %s", method, path, exc)
            raise EBotoUpstreamUnavailable("Upstream unavailable", detail=str(exc)) from exc

    def call(self, method: str, path: str, **kwargs: Any) -> object:
        response = self.request(method, path, **kwargs)
        payload = response_payload(response)
        _raise_for_status(response, payload, method=method, path=path)
        return payload

    def ping(self) -> bool:
        try:
            self.request("GET", "/api/votes/status", timeout=min(self.timeout, 5.0))
        except EBotoUpstreamUnavailable:
            return False
        return True

    # Auth

    def login(self, username: str, password: str) -> str:
        """Exchange credentials for a session token."""

        path = "/auth/login"
        body = {"admin_username": username, "admin_password": password}
        try:
            response = requests.request(
                "POST",
                api_url(path),
                json=body,
                timeout=float(settings.EBOTO_LOGIN_TIMEOUT_SECONDS),
            )
        except requests.Timeout as exc:
            logger.warning("E-Boto login timed out username=%s", username)
            raise EBotoUpstreamUnavailable("Cannot reach API", detail="Login request timed out") from exc
        except requests.RequestException as exc:
            logger.warning("E-Boto login unreachable username=%s: %s", username, exc)
            raise EBotoUpstreamUnavailable("Cannot reach API", detail=str(exc)) from exc

        payload = response_payload(response)
        _raise_for_status(response, payload, method="POST", path=path)

        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token.strip():
            raise EBotoAPIError("No token from API", status=502, payload={"error": "No token from API"})
        self.token = token.strip()
        return self.token

    def me(self) -> SessionUser | None:
        if not self.token:
            return None
        try:
            payload = self.call("GET", "/api/auth/me")
        except EBotoAPIError as exc:
            logger.debug("Session lookup failed status=%s", exc.status)
            return None
        return parse_session(payload)

    def logout(self) -> None:
        # Best effort: the cookie is cleared locally regardless.
        try:
            self.request("POST", "/api/auth/logout")
        except EBotoUpstreamUnavailable:
            logger.info("Backend logout skipped; API unreachable")

    def change_password(self, current_password: str, new_password: str) -> object:
        return self.call(
            "POST",
            "/api/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    # Candidates

    def list_candidates(self) -> list[Candidate]:
        return parse_list(Candidate, self.call("GET", "/api/candidates"))

    def save_candidate(
        self,
        candidate_id: str | None,
        fields: Mapping[str, object],
        *,
        photo: Any = None,
    ) -> object:
        """Create (POST) or update (PUT) a candidate as multipart form data."""

        files: list[tuple[str, tuple[str | None, Any] | tuple[str | None, Any, str]]] = [
            (key, (None, "" if value is None else str(value))) for key, value in fields.items()
        ]
        if photo is not None:
            content_type = getattr(photo, "content_type", None) or "application/octet-stream"
            files.append(("photo", (getattr(photo, "name", "photo"), photo, content_type)))

        if candidate_id:
            return self.call("PUT", f"/api/candidates/{candidate_id}", files=files)
        return self.call("POST", "/api/candidates", files=files)

    def delete_candidate(self, candidate_id: str) -> object:
        return self.call("DELETE", f"/api/candidates/{candidate_id}")

    # Voters

    def list_voters(self, department: str | None = None) -> list[Voter]:
        params = {"department": department} if department else None
        return parse_list(Voter, self.call("GET", "/api/voters", params=params))

    def create_voter(self, fields: Mapping[str, object]) -> object:
        return self.call("POST", "/api/voters", json=dict(fields))

    def update_voter(self, voter_id: str, fields: Mapping[str, object]) -> object:
        """PATCH a voter, falling back for APIs that reject `status` in the main PATCH.

        The fallback writes the status through /status and then re-sends the
        remaining fields without it.
        """

        body = dict(fields)
        try:
            return self.call("PATCH", f"/api/voters/{voter_id}", json=dict(body))
        except (EBotoUnauthorized, EBotoForbidden, EBotoUpstreamUnavailable):
            raise
        except EBotoAPIError as exc:
            if "status" not in body:
                raise
            logger.info("Voter PATCH failed status=%s; retrying via /status voter_id=%s", exc.status, voter_id)

        status = body.pop("status")
        self.call("PATCH", f"/api/voters/{voter_id}/status", json={"status": status})
        return self.call("PATCH", f"/api/voters/{voter_id}", json=body)

    def delete_voter(self, voter_id: str) -> object:
        return self.call("DELETE", f"/api/voters/{voter_id}")

    def import_voters(self, upload: Any, level: str) -> ImportResult:
        content_type = getattr(upload, "content_type", None) or "application/octet-stream"
        files = {"file": (getattr(upload, "name", "upload"), upload, content_type)}
        payload = self.call("POST", "/api/voters/import", files=files, data={"level": level})
        return parse_import_result(payload)

    # Votes

    def cast_vote(self, candidate_id: str) -> object:
        """Record a vote; only 201 Created means the vote was stored."""

        path = "/api/votes"
        response = self.request("POST", path, json={"candidateId": candidate_id})
        payload = response_payload(response)
        _raise_for_status(response, payload, method="POST", path=path)
        if response.status_code != 201:
            logger.warning("E-Boto API POST %s answered status=%s, expected 201", path, response.status_code)
            raise EBotoAPIError("Failed to submit vote.", status=response.status_code, payload=payload)
        return payload

    def my_votes(self) -> dict[str, str]:
        return parse_my_votes(self.call("GET", "/api/votes/me"))

    def vote_stats(self) -> list[VoteTally]:
        return parse_list(VoteTally, self.call("GET", "/api/votes/stats"))

    def voting_status(self) -> VotingStatus:
        payload = self.call("GET", "/api/votes/status")
        if not isinstance(payload, dict):
            return VotingStatus()
        return VotingStatus.model_validate(payload)

    def set_voting_status(self, open_: bool) -> VotingStatus:
        payload = self.call("POST", "/api/votes/status", json={"open": bool(open_)})
        if isinstance(payload, dict) and "open" in payload:
            return VotingStatus.model_validate(payload)
        return VotingStatus(open=bool(open_))

    def reset_votes(self, *, close: bool = False) -> ResetResult:
        payload = self.call("POST", "/api/votes/reset", json={"close": close})
        if not isinstance(payload, dict):
            return ResetResult()
        return ResetResult.model_validate(payload)


class EBotoUser:
    """
    A non-persistent user object backed by the E-Boto session endpoint.
    """

    def __init__(self, session_user: SessionUser, token: str = "") -> None:
        self.session_user = session_user
        self.token = token
        self.is_authenticated = True
        self.is_anonymous = False
        self.is_active = True
        self.is_staff = False
        self.is_superuser = False

        self.id = session_user.id
        self.pk = session_user.id
        self.role = session_user.role
        self.school_id = session_user.school_id
        self.username = session_user.username or session_user.school_id
        self.department = session_user.department

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_student(self) -> bool:
        return self.role == "student"

    def get_username(self) -> str:
        return self.username

    @property
    def full_name(self) -> str:
        return self.session_user.full_name or self.username

    def get_full_name(self) -> str:
        return self.full_name

    def get_short_name(self) -> str:
        return self.username

    def has_perm(self, perm: str, obj: object | None = None) -> bool:
        return False

    def __str__(self) -> str:
        return self.username

    def __repr__(self) -> str:
        return f"<EBotoUser {self.username!r} role={self.role!r}>"
