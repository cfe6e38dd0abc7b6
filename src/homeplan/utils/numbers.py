"""Free-text numeric input handling.

Inputs arrive as whatever the user typed. Parsing never raises: anything that
is not a usable number becomes ``0.0`` and the caller decides what to show.
"""
from __future__ import annotations

import math
import re
from typing import Any

_NON_NUMERIC = re.compile(r"[^0-9.]")
_NON_DIGIT = re.compile(r"[^0-9]")

ZIP_LENGTH = 5


def parse_number(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return 0.0
    # float() rejects "1.2.3"; keep the leading well-formed part like parseFloat does.
    match = re.match(r"[0-9]*\.?[0-9]*", cleaned)
    head = match.group(0) if match else ""
    if head in {"", "."}:
        return 0.0
    try:
        parsed = float(head)
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def sanitize_numeric(value: Any) -> str:
    """Keep digits and the first decimal point; later points are dropped."""
    if not value:
        return ""
    cleaned = _NON_NUMERIC.sub("", str(value))
    first_dot = cleaned.find(".")
    if first_dot == -1:
        return cleaned
    return cleaned[: first_dot + 1] + cleaned[first_dot + 1 :].replace(".", "")


def sanitize_zip(value: Any) -> str:
    if not value:
        return ""
    return _NON_DIGIT.sub("", str(value))[:ZIP_LENGTH]


def is_complete_zip(value: Any) -> bool:
    text = str(value or "").strip()
    return len(text) == ZIP_LENGTH and not _NON_DIGIT.search(text)
