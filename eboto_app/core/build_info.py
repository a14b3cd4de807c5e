from __future__ import annotations

import os


def get_build_sha() -> str:
    return os.environ.get("EBOTO_BUILD_SHA", "").strip()
