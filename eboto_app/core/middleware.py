from __future__ import annotations

import re

from django.contrib.auth.models import AnonymousUser
from django.contrib.auth.views import redirect_to_login
from django.utils.functional import SimpleLazyObject

from core.backends import EBotoClient, EBotoUser, get_request_token

_PUBLIC_FILE_RE = re.compile(r"\.[^/]+$")

_UNGUARDED_PREFIXES: tuple[str, ...] = ("/api", "/internal", "/static/", "/healthz", "/readyz")


def _get_eboto_or_anonymous_user(request):
    token = get_request_token(request)
    if not token:
        return AnonymousUser()

    # Backend unavailability is indistinguishable from a rejected token here.
    session_user = EBotoClient(token).me()
    if session_user is None:
        return AnonymousUser()
    return EBotoUser(session_user, token=token)


def is_protected_path(path: str) -> bool:
    return path.startswith("/dashboard") or path == "/student-dashboard" or path.startswith("/student/")


class EBotoSessionMiddleware:
    """Attach the API session user to request.user.

    The lookup against /api/auth/me is lazy and memoized, so a request hits
    the API at most once no matter how many views, templates and context
    processors read request.user.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.user = SimpleLazyObject(lambda: _get_eboto_or_anonymous_user(request))
        return self.get_response(request)


class TokenRequiredMiddleware:
    """Cheap cookie-presence check in front of the role-gated pages."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path_info
        if path.startswith(_UNGUARDED_PREFIXES) or _PUBLIC_FILE_RE.search(path):
            return self.get_response(request)

        if is_protected_path(path) and not get_request_token(request):
            return redirect_to_login(request.get_full_path())

        return self.get_response(request)
