from __future__ import annotations

import math
from typing import Any

import pandas as pd


def format_money(value: Any) -> str:
    """
    Whole-dollar en-US currency, e.g. ``$1,234`` / ``-$50``.
    Returns ``$0`` when the value is not a finite number.
    """
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        return "$0"
    # Half away from zero, like Intl.NumberFormat.
    whole = int(abs(float(value)) + 0.5)
    if value < 0 and whole:
        return f"-${whole:,}"
    return f"${whole:,}"


def format_percent(value: Any) -> str:
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        return "0.00%"
    return f"{float(value):.2f}%"


def format_ratio_percent(value: Any) -> str:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return format_percent(value)
    return format_percent(float(value) * 100.0)


def format_rate_date(value: Any) -> str:
    """Benchmark observation dates as ``Oct 9, 2026``; ``Unknown`` when unparseable."""
    if value is None or str(value).strip() == "":
        return "Unknown"
    ts = pd.to_datetime(str(value).strip()[:10], errors="coerce")
    if pd.isna(ts):
        return "Unknown"
    return f"{ts.strftime('%b')} {ts.day}, {ts.year}"
