"""Helpers shared by the per-type card modules."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import fields, replace
from typing import Any, Callable, TypeVar

from marketcards.errors import CardEngineError, CardEngineErrorCode
from marketcards.events import InitContext, UpdateContext
from marketcards.models.base import Card, camel_case
from marketcards.models.statements import StatementStaticData
from marketcards.payloads import (
    check_payload,
    first_present,
    parse_date,
    parse_datetime,
    parse_timestamp_ms,
    safe_bool,
    safe_float,
    safe_int,
    safe_str,
)
from marketcards.registry import CommonProps

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C", bound=Card)

# Statement periods, most authoritative first.
PERIOD_HIERARCHY = ["TTM", "FY", "H2", "H1", "Q4", "Q3", "Q2", "Q1"]

QUOTE_FIELDS = {"current_price": "number", "api_timestamp": "timestamp"}

_COERCERS: dict[str, Callable[[Any], Any]] = {
    "float | None": safe_float,
    "int | None": safe_int,
    "str | None": safe_str,
    "bool | None": safe_bool,
}


# ---------------------------------------------------------------- records


def card_kwargs(props: CommonProps) -> dict[str, Any]:
    """Constructor kwargs for the common card fields."""
    return {
        "id": props.id,
        "symbol": props.symbol,
        "created_at": props.created_at,
        "company_name": props.company_name,
        "logo_url": props.logo_url,
        "website_url": props.website_url,
        "is_flipped": props.is_flipped,
    }


def read_section(cls: type[T], raw: Any, **overrides: Any) -> T:
    """Rebuild a flat data section from a stored mapping.

    Scalar fields are read under their camelCase name, falling back to the
    snake_case name older snapshots used, and coerced by their declared type.
    Unparseable values become None. A ``timestamp`` field is normalized to
    epoch milliseconds.
    """
    source = raw if isinstance(raw, Mapping) else {}
    values: dict[str, Any] = {}
    for f in fields(cls):  # type: ignore[arg-type]
        if f.name in overrides:
            continue
        coerce = _COERCERS.get(str(f.type))
        if coerce is None:
            continue
        value = first_present(source, camel_case(f.name), f.name)
        values[f.name] = parse_timestamp_ms(value) if f.name == "timestamp" else coerce(value)
    values.update(overrides)
    return cls(**values)


def back_description(record: Mapping[str, Any], default: str) -> str:
    back = record.get("backData") or record.get("back_data")
    text = safe_str(back.get("description")) if isinstance(back, Mapping) else None
    return text or default


# ----------------------------------------------------------------- quotes


def quote_timestamp_ms(payload: Mapping[str, Any], fallback: int | None = None) -> int | None:
    """Quote time from a live quote row (``api_timestamp`` is in seconds).

    Rows without a usable time fall back to ``fallback``, normally the time
    of the event that delivered them.
    """
    timestamp = parse_timestamp_ms(first_present(payload, "api_timestamp", "timestamp", "fetched_at"))
    return timestamp if timestamp is not None else fallback


def quote_price(payload: Mapping[str, Any]) -> float | None:
    return safe_float(first_present(payload, "current_price", "price"))


def is_stale(current_ts: int | None, incoming_ts: int | None) -> bool:
    """Whether an incoming quote is older than what the card already shows."""
    return current_ts is not None and incoming_ts is not None and incoming_ts < current_ts


def same_except_timestamp(old: Any, new: Any) -> bool:
    return replace(new, timestamp=old.timestamp) == old


# ------------------------------------------------------------ identity


def apply_profile_core(card: C, payload: Mapping[str, Any]) -> C:
    """Copy company name, logo and website from a profile row onto ``card``.

    A missing company name falls back to the symbol; a missing website keeps
    the current one. Returns ``card`` itself when nothing differs.
    """
    company_name = safe_str(payload.get("company_name")) or card.symbol
    logo_url = safe_str(payload.get("image"))
    website_url = safe_str(payload.get("website")) or card.website_url
    if (company_name, logo_url, website_url) == (card.company_name, card.logo_url, card.website_url):
        return card
    return replace(card, company_name=company_name, logo_url=logo_url, website_url=website_url)


def profile_core_handler(
    describe: Callable[[Any], str] | None = None,
) -> Callable[[Card | None, Any, UpdateContext], Card | None]:
    """Build a ``static_profile`` handler that refreshes identity fields.

    ``describe`` rebuilds the back description from the updated card, for
    card types whose description embeds the company name.
    """

    def handle(current: Card | None, payload: Any, ctx: UpdateContext) -> Card | None:
        if current is None or not isinstance(payload, Mapping):
            return current
        updated = apply_profile_core(current, payload)
        if updated is current:
            return current
        if describe is not None:
            updated = replace(
                updated, back_data=replace(updated.back_data, description=describe(updated))
            )
        return updated

    return handle


async def fetch(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking source call off the event loop.

    A source that does not serve the requested table raises
    ``CardEngineError(NOT_FOUND)``, which the workspace reports to the user.
    """
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except NotImplementedError as exc:
        owner = type(getattr(func, "__self__", None)).__name__
        name = getattr(func, "__name__", repr(func))
        raise CardEngineError(
            f"{owner} does not support {name}.", code=CardEngineErrorCode.NOT_FOUND, user_visible=True,
        ) from exc


async def load_identity(ctx: InitContext) -> dict[str, Any]:
    """Company name, logo, website and currency for a new card.

    Reuses an active card of the same symbol when there is one, otherwise
    reads the profile row. A failing profile lookup is logged and the card
    falls back to the bare symbol.
    """
    identity: dict[str, Any] = {
        "company_name": ctx.symbol,
        "logo_url": None,
        "website_url": None,
        "currency": None,
        "profile_found": False,
    }
    for card in ctx.active_cards:
        if card.symbol == ctx.symbol and card.company_name:
            identity.update(
                company_name=card.company_name,
                logo_url=card.logo_url,
                website_url=card.website_url,
            )
            break

    try:
        row = await fetch(ctx.source.get_profile, ctx.symbol)
    except CardEngineError as exc:
        logger.warning("Profile lookup for %s failed: %s", ctx.symbol, exc)
        return identity
    if row:
        identity["company_name"] = safe_str(row.get("company_name")) or identity["company_name"]
        identity["logo_url"] = safe_str(row.get("image")) or identity["logo_url"]
        identity["website_url"] = safe_str(row.get("website")) or identity["website_url"]
        identity["currency"] = safe_str(row.get("currency"))
        identity["profile_found"] = True
    return identity


# ------------------------------------------------------------- statements


def period_rank(period: str | None) -> int:
    try:
        return PERIOD_HIERARCHY.index((period or "").upper())
    except ValueError:
        return len(PERIOD_HIERARCHY)


def period_label(period: str | None, fiscal_year: Any, statement_date: str | None) -> str:
    """Display label for a statement period: "FY2023", "Q3 2023" or "TTM"."""
    year = safe_str(fiscal_year)
    if not year:
        parsed = parse_date(statement_date)
        year = str(parsed.year) if parsed else None
    if period == "TTM":
        return "TTM"
    if period == "FY" and year:
        return f"FY{year}"
    if period and year:
        return f"{period} {year}"
    return f"{period or 'N/A'} {year or ''}".strip()


def is_newer_statement(
    current_date: str | None,
    current_period: str | None,
    current_accepted: str | None,
    row: Mapping[str, Any],
) -> bool:
    """Whether ``row`` supersedes the statement a card currently shows.

    A later statement date wins. On the same date the higher-ranked period
    wins (TTM > FY > H2 > H1 > Q4 > Q3 > Q2 > Q1), then the later accepted
    date.
    """
    new_date = parse_date(row.get("date"))
    if new_date is None:
        return False
    old_date = parse_date(current_date)
    if old_date is None or new_date > old_date:
        return True
    if new_date < old_date:
        return False

    new_period = safe_str(row.get("period"))
    new_rank, old_rank = period_rank(new_period), period_rank(current_period)
    if new_rank != old_rank:
        return new_rank < old_rank

    new_accepted = parse_datetime(row.get("accepted_date"))
    old_accepted = parse_datetime(current_accepted)
    if new_accepted is not None and old_accepted is not None:
        return new_accepted > old_accepted
    if new_period != current_period:
        return new_accepted is None and old_accepted is None
    return False


def statement_static(row: Mapping[str, Any]) -> StatementStaticData:
    """Statement identity from a ``financial_statements`` row."""
    statement_date = safe_str(row.get("date"))
    period = safe_str(row.get("period"))
    return StatementStaticData(
        period_label=period_label(period, row.get("fiscal_year"), statement_date),
        reported_currency=safe_str(row.get("reported_currency")),
        filing_date=safe_str(row.get("filing_date")),
        accepted_date=safe_str(row.get("accepted_date")),
        statement_date=statement_date,
        statement_period=period,
    )


def apply_statement(
    current: C,
    row: Mapping[str, Any],
    ctx: UpdateContext,
    live_data: Any,
    describe: Callable[[str, StatementStaticData], str],
) -> C:
    """Swap in a newer statement, or return ``current`` for an older one."""
    static = current.static_data  # type: ignore[attr-defined]
    if not is_newer_statement(static.statement_date, static.statement_period, static.accepted_date, row):
        logger.debug("Statement %s/%s for %s is not newer; ignoring", row.get("date"), row.get("period"), current.symbol)
        return current
    new_static = statement_static(row)
    name = current.company_name or current.symbol
    updated = replace(
        current,
        static_data=new_static,
        live_data=live_data,
        back_data=replace(current.back_data, description=describe(name, new_static)),
    )
    fiscal_year = safe_str(row.get("fiscal_year")) or ""
    ctx.notify(
        f"Financials Updated: {current.symbol}",
        f"New statement for period {new_static.statement_period} {fiscal_year}".rstrip() + " applied.",
    )
    return updated


def log_defaulted(payload: Mapping[str, Any], required: Mapping[str, str], what: str) -> None:
    """Log required fields that were missing or unparseable in ``payload``."""
    report = check_payload(payload, required)
    if not report.passed:
        logger.debug("%s missing %s; using defaults", what, ", ".join(report.defaulted_fields))
