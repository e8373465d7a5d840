"""Tolerant coercion of backend payloads and stored records.

Every helper here returns ``None`` (or the supplied default) instead of
raising, so a malformed field degrades to a blank value on the card rather
than dropping the whole update.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from dateutil import parser as date_parser

# Epoch values below this are treated as seconds, above as milliseconds
# (1e11 ms is March 1973; 1e11 s is far past any realistic date).
_SECONDS_CUTOFF = 100_000_000_000


@dataclass
class PayloadCheck:
    """Single field check result."""

    name: str
    passed: bool
    message: str = ""


@dataclass
class PayloadReport:
    """Aggregate result of checking a payload's required fields."""

    checks: list[PayloadCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failed_checks(self) -> list[PayloadCheck]:
        return [c for c in self.checks if not c.passed]

    @property
    def defaulted_fields(self) -> list[str]:
        return [c.name for c in self.failed_checks]


def check_payload(payload: Any, required: Mapping[str, str]) -> PayloadReport:
    """Check that ``payload`` carries each required field with the right kind.

    ``required`` maps field name to kind: ``"number"``, ``"string"`` or
    ``"timestamp"``. Missing or unparseable fields become failed checks; the
    caller still proceeds with defaults.
    """
    report = PayloadReport()
    if not isinstance(payload, Mapping):
        report.checks.append(PayloadCheck("payload", False, "Payload is not a mapping"))
        return report

    for name, kind in required.items():
        value = payload.get(name)
        if value is None:
            report.checks.append(PayloadCheck(name, False, "missing"))
            continue
        if kind == "number":
            ok = safe_float(value) is not None
        elif kind == "timestamp":
            ok = parse_timestamp_ms(value) is not None
        else:
            ok = isinstance(value, str) and bool(value.strip())
        report.checks.append(
            PayloadCheck(name, ok, "" if ok else f"unparseable {kind}: {value!r}")
        )
    return report


def get_mapping(obj: Any, key: str) -> Mapping[str, Any]:
    """Return ``obj[key]`` when it is a mapping, else an empty dict."""
    if not isinstance(obj, Mapping):
        return {}
    value = obj.get(key)
    return value if isinstance(value, Mapping) else {}


def first_present(obj: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-None value among ``keys`` (old schema names last)."""
    for key in keys:
        value = obj.get(key)
        if value is not None:
            return value
    return None


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    result = safe_float(value)
    return int(result) if result is not None else None


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def safe_bool(value: Any, default: bool | None = None) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return default


def parse_timestamp_ms(value: Any) -> int | None:
    """Parse a timestamp into epoch milliseconds.

    Numbers are accepted as epoch seconds or milliseconds; strings are parsed
    as ISO-8601 (naive values are taken as UTC). Non-positive, non-finite or
    unparseable input returns None.
    """
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        numeric = safe_float(text)
        if numeric is not None:
            return parse_timestamp_ms(numeric)
        try:
            dt = date_parser.isoparse(text)
        except (ValueError, OverflowError):
            return None
        return parse_timestamp_ms(dt)
    number = safe_float(value)
    if number is None or number <= 0:
        return None
    if number < _SECONDS_CUTOFF:
        number *= 1000
    return int(number)


def parse_date(value: Any) -> date | None:
    """Parse a "YYYY-MM-DD" (or full ISO) string into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date_parser.isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO date/datetime string into an aware datetime (UTC default)."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        dt = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def join_present(parts: Iterable[Any], sep: str = ", ") -> str | None:
    """Join the truthy string parts, or return None when nothing is left."""
    present = [str(p) for p in parts if p]
    return sep.join(present) if present else None
