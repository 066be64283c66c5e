from __future__ import annotations

from typing import Sequence

TRUE_STRINGS = {"1", "t", "T", "TRUE", "true", "True"}
FALSE_STRINGS = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(value: str) -> bool | None:
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    return None


def parse_float(value: str) -> float | None:
    # Surrounding whitespace and digit separators are not numbers on the wire.
    if not isinstance(value, str) or value != value.strip() or "_" in value:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def safe_field_at(fields: Sequence[str] | None, index: int) -> str | None:
    if fields is None or index < 0 or index >= len(fields):
        return None
    return fields[index]
