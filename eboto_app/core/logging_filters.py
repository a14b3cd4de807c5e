from __future__ import annotations

import logging
import re

PROBE_PATHS: tuple[str, ...] = ("/healthz", "/readyz")

_BEARER_RE = re.compile(r"(Bearer\s+)[^\s'\",;]+", re.IGNORECASE)
_COOKIE_RE = re.compile(r"(\btoken=)[^\s'\",;]+")


def _request_path(record: logging.LogRecord) -> str | None:
    # django.request attaches the request; django.server passes it in args.
    candidates = [getattr(record, "request", None)]
    if isinstance(record.args, tuple):
        candidates.extend(record.args)

    for obj in candidates:
        if obj is None or isinstance(obj, str):
            continue
        path = getattr(obj, "path_info", None) or getattr(obj, "path", None)
        if isinstance(path, str) and path:
            return path
    return None


class SkipHealthzFilter(logging.Filter):
    """Drop access-log noise from orchestrator probes."""

    def __init__(self, prefixes: tuple[str, ...] = PROBE_PATHS) -> None:
        super().__init__()
        self.prefixes = prefixes

    def filter(self, record: logging.LogRecord) -> bool:
        path = _request_path(record)
        if path is not None:
            return not path.startswith(self.prefixes)
        message = record.getMessage()
        return not any(prefix in message for prefix in self.prefixes)


def redact_token(text: str) -> str:
    text = _BEARER_RE.sub(r"\1[redacted]", text)
    return _COOKIE_RE.sub(r"\1[redacted]", text)


class RedactTokenFilter(logging.Filter):
    """Mask session tokens (Bearer headers and token= cookies) in messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_token(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True
