from __future__ import annotations

import json
import logging

import requests
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from core.backends import (
    EBotoAPIError,
    EBotoClient,
    EBotoUpstreamUnavailable,
    get_request_token,
    response_payload,
)
from core.views_utils import _normalize_str, set_token_cookie

logger = logging.getLogger(__name__)

_CANDIDATE_ID_KEYS: tuple[str, ...] = ("candidateId", "id", "candidate_id")


def _json_body(request: HttpRequest) -> object:
    try:
        return json.loads(request.body or b"null")
    except ValueError:
        return None


def _unauthorized() -> JsonResponse:
    return JsonResponse({"error": "Unauthorized"}, status=401)


def _upstream_unavailable() -> JsonResponse:
    return JsonResponse({"error": "Upstream unavailable"}, status=502)


def _mirror_json(upstream: requests.Response) -> JsonResponse:
    return JsonResponse(response_payload(upstream), status=upstream.status_code, safe=False)


def _mirror_raw(upstream: requests.Response) -> HttpResponse:
    content_type = upstream.headers.get("content-type") or "application/json"
    return HttpResponse(upstream.content, status=upstream.status_code, content_type=content_type)


@csrf_exempt
@require_POST
def api_login(request: HttpRequest) -> HttpResponse:
    body = _json_body(request)
    if not isinstance(body, dict):
        body = request.POST

    username = _normalize_str(body.get("username"))
    password = body.get("password")
    password = "" if password is None else str(password)
    if not username or not password:
        return JsonResponse({"error": "Username and password are required"}, status=400)

    try:
        token = EBotoClient().login(username, password)
    except EBotoUpstreamUnavailable as exc:
        return JsonResponse({"error": "Cannot reach API", "detail": exc.detail or "Unknown error"}, status=502)
    except EBotoAPIError as exc:
        # Bubble up the API's own error body, e.g. {"error": "Invalid credentials"}.
        return JsonResponse(exc.payload, status=exc.status or 502, safe=False)

    return set_token_cookie(JsonResponse({"ok": True}), token)


def _candidate_id_from(request: HttpRequest) -> str:
    content_type = request.content_type or ""
    if "application/json" in content_type:
        body = _json_body(request)
        source = body if isinstance(body, dict) else {}
    else:
        source = request.POST

    for key in _CANDIDATE_ID_KEYS:
        value = source.get(key)
        if value is not None and value != "":
            return _normalize_str(value)
    return ""


@csrf_exempt
@require_POST
def api_votes(request: HttpRequest) -> HttpResponse:
    if not get_request_token(request):
        return _unauthorized()

    candidate_id = _candidate_id_from(request)
    if not candidate_id:
        return JsonResponse({"error": "candidateId is required"}, status=400)

    try:
        upstream = EBotoClient.for_request(request).request("POST", "/api/votes", json={"candidateId": candidate_id})
    except EBotoUpstreamUnavailable:
        return _upstream_unavailable()
    return _mirror_json(upstream)


@require_GET
def api_votes_me(request: HttpRequest) -> HttpResponse:
    if not get_request_token(request):
        return _unauthorized()

    try:
        upstream = EBotoClient.for_request(request).request("GET", "/api/votes/me")
    except EBotoUpstreamUnavailable:
        return _upstream_unavailable()
    return _mirror_json(upstream)


@csrf_exempt
@require_POST
def internal_votes(request: HttpRequest) -> HttpResponse:
    if not get_request_token(request):
        return _unauthorized()

    headers = {"Content-Type": request.META.get("CONTENT_TYPE", "")}
    try:
        upstream = EBotoClient.for_request(request).request("POST", "/api/votes", data=request.body, headers=headers)
    except EBotoUpstreamUnavailable:
        return _upstream_unavailable()
    return _mirror_raw(upstream)


@require_GET
def internal_votes_me(request: HttpRequest) -> HttpResponse:
    if not get_request_token(request):
        return _unauthorized()

    try:
        upstream = EBotoClient.for_request(request).request("GET", "/api/votes/me")
    except EBotoUpstreamUnavailable:
        return _upstream_unavailable()
    return _mirror_raw(upstream)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def internal_votes_status(request: HttpRequest) -> HttpResponse:
    client = EBotoClient.for_request(request)

    if request.method == "GET":
        # Students read the flag too, so a missing token is forwarded as-is.
        try:
            upstream = client.request("GET", "/api/votes/status")
        except EBotoUpstreamUnavailable:
            return _upstream_unavailable()
        return _mirror_json(upstream)

    if not client.token:
        return _unauthorized()

    body = _json_body(request)
    try:
        upstream = client.request("POST", "/api/votes/status", json=body if isinstance(body, dict) else {})
    except EBotoUpstreamUnavailable:
        return _upstream_unavailable()
    logger.info("Voting status change requested status=%s", upstream.status_code)
    return _mirror_json(upstream)


@csrf_exempt
@require_POST
def internal_votes_reset(request: HttpRequest) -> HttpResponse:
    body = _json_body(request)
    headers = {
        "X-Forwarded-For": request.META.get("HTTP_X_FORWARDED_FOR", ""),
        "User-Agent": request.META.get("HTTP_USER_AGENT", ""),
    }
    try:
        upstream = EBotoClient.for_request(request).request(
            "POST",
            "/api/votes/reset",
            json=body if isinstance(body, dict) else {},
            headers=headers,
        )
    except EBotoUpstreamUnavailable as exc:
        logger.warning("Vote reset proxy failed: %s", exc.detail)
        return JsonResponse({"error": exc.detail or exc.message}, status=500)

    logger.warning("Vote reset forwarded status=%s", upstream.status_code)
    return _mirror_raw(upstream)
