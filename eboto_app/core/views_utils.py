from __future__ import annotations

import logging
import re
import secrets

from django.conf import settings
from django.contrib.auth.views import redirect_to_login
from django.http import HttpRequest, HttpResponse
from django.shortcuts import resolve_url

from core.backends import EBotoAPIError, EBotoForbidden, EBotoUnauthorized
from core.permissions import dashboard_url_for_role

logger = logging.getLogger(__name__)

# A single leading slash: "//host" and "/\host" are both treated as
# protocol-relative by some browsers.
_SAFE_NEXT_RE = re.compile(r"^/(?![/\\])")

TEMP_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz23456789!@#$%^&*"
TEMP_PASSWORD_LENGTH = 10


def _normalize_str(value: object) -> str:
    return str(value or "").strip()


def safe_next(value: object) -> str:
    candidate = _normalize_str(value)
    if candidate and _SAFE_NEXT_RE.match(candidate) and "\\" not in candidate:
        return candidate
    return ""


def role_home_url(role: str) -> str:
    name = dashboard_url_for_role(role)
    return resolve_url(name) if name else resolve_url(settings.LOGIN_URL)


def login_redirect(request: HttpRequest) -> HttpResponse:
    return redirect_to_login(request.get_full_path())


def api_error_response(request: HttpRequest, exc: EBotoAPIError) -> HttpResponse | None:
    """Send the browser back to login when the API rejects the session.

    Returns None for every other failure so the caller can show it inline.
    """

    if isinstance(exc, (EBotoUnauthorized, EBotoForbidden)):
        logger.info("API rejected session status=%s path=%s", exc.status, request.path)
        return login_redirect(request)
    return None


def set_token_cookie(response: HttpResponse, token: str) -> HttpResponse:
    response.set_cookie(
        settings.EBOTO_TOKEN_COOKIE_NAME,
        token,
        max_age=settings.EBOTO_TOKEN_COOKIE_MAX_AGE,
        path="/",
        secure=settings.EBOTO_TOKEN_COOKIE_SECURE,
        httponly=True,
        samesite="Lax",
    )
    return response


def delete_token_cookie(response: HttpResponse) -> HttpResponse:
    response.delete_cookie(settings.EBOTO_TOKEN_COOKIE_NAME, path="/", samesite="Lax")
    return response


def generate_temporary_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))
