from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from django import template

register = template.Library()


@register.filter(name="dict_get")
def dict_get(mapping: Mapping[str, Any] | None, key: str) -> Any:  # noqa: ANN401
    """Look up a position-keyed map (e.g. the ballot's recorded votes).

    Template dot-lookup can't express keys with spaces such as
    "Vice President".
    """

    if not isinstance(mapping, Mapping):
        return ""
    return mapping.get(key, "")


@register.filter(name="percent")
def percent(value: object, places: int = 1) -> str:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        number = 0.0
    return f"{number:.{int(places)}f}%"
