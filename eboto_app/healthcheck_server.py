#!/usr/bin/env python3
"""
Side-car probe server for the E-Boto front end.

Answers /healthz (process alive) and /readyz (E-Boto API reachable) on its own
port so orchestrator probes bypass ALLOWED_HOSTS and the Django middleware.
"""
import json
import logging
import os
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

import django  # noqa: E402

django.setup()

from django.conf import settings  # noqa: E402

from core.backends import EBotoClient  # noqa: E402

logger = logging.getLogger("healthcheck_server")

PROBE_PATHS = {
    "/healthz": "liveness",
    "/readyz": "readiness",
}


def liveness() -> tuple[int, dict[str, str]]:
    return 200, {"status": "ok"}


def readiness() -> tuple[int, dict[str, str]]:
    if EBotoClient().ping():
        return 200, {"status": "ready", "api": "ok"}
    logger.error("Readiness probe failed: E-Boto API unreachable at %s", settings.EBOTO_API_BASE)
    return 503, {"status": "not ready", "api": "unreachable"}


class ProbeHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        probe = PROBE_PATHS.get(self.path.rstrip("/") or "/")
        if probe is None:
            self.send_error(404)
            return

        status, body = liveness() if probe == "liveness" else readiness()
        payload = json.dumps(body).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def serve(port: int) -> None:
    with ThreadingHTTPServer(("", port), ProbeHandler) as httpd:
        logger.info("Probe server listening on :%d (api=%s)", port, settings.EBOTO_API_BASE)
        httpd.serve_forever()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    serve(int(os.environ.get("HEALTHCHECK_PORT", "9000")))
