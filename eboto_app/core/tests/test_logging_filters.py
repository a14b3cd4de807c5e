import logging

from core.logging_filters import RedactTokenFilter, SkipHealthzFilter, redact_token


def _record(message: str, *args) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )


class _Req:
    def __init__(self, path: str):
        self.path = path


def test_skip_healthz_filter_drops_probe_messages():
    f = SkipHealthzFilter()
    assert f.filter(_record('"GET /healthz HTTP/1.1" 200 16')) is False
    assert f.filter(_record("Service Unavailable: /readyz")) is False


def test_skip_healthz_filter_uses_request_path_when_present():
    f = SkipHealthzFilter()
    r = _record("ignored")
    r.request = _Req("/readyz/")
    assert f.filter(r) is False

    r = _record("%s %s", _Req("/healthz"), "200")
    assert f.filter(r) is False


def test_skip_healthz_filter_keeps_app_paths():
    f = SkipHealthzFilter()
    assert f.filter(_record('"GET /dashboard HTTP/1.1" 200 512')) is True
    r = _record("ignored")
    r.request = _Req("/student-dashboard")
    assert f.filter(r) is True


def test_redact_token_masks_bearer_and_cookie():
    assert redact_token("Authorization: Bearer abc.def.ghi") == "Authorization: Bearer [redacted]"
    assert redact_token("Cookie: token=abc123; other=1") == "Cookie: token=[redacted]; other=1"
    assert redact_token("nothing to hide") == "nothing to hide"


def test_redact_token_filter_rewrites_formatted_message():
    f = RedactTokenFilter()
    r = _record("headers=%s", {"Authorization": "Bearer s3cr3t"})
    assert f.filter(r) is True
    assert "s3cr3t" not in r.getMessage()
    assert "[redacted]" in r.getMessage()

    r = _record("GET %s -> %d", "/api/candidates", 200)
    assert f.filter(r) is True
    assert r.getMessage() == "GET /api/candidates -> 200"
