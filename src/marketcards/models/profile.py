"""Profile card model: company reference data plus a price strip."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketcards.config import CardType
from marketcards.models.base import Card


@dataclass(frozen=True)
class ProfileStaticData:
    """Company reference fields, refreshed by static-profile patches.

    Attributes:
        db_id: Backend row id of the profile.
        sector: GICS sector.
        industry: GICS industry.
        country: Country of domicile.
        exchange_full_name: Primary exchange.
        website: Company website.
        description: Long business description.
        short_description: One-paragraph summary.
        ceo: Chief executive.
        full_address: Joined street/city/state/zip/country.
        phone: Contact phone.
        formatted_full_time_employees: Headcount with thousands separators.
        profile_last_updated: When the backend row last changed ("Jan 5, 24").
        currency: Reporting currency.
        formatted_ipo_date: IPO date ("January 5, 2024").
        is_etf: Fund flags from the backend.
        is_adr: Fund flags from the backend.
        is_fund: Fund flags from the backend.
    """

    db_id: str | None = None
    sector: str | None = None
    industry: str | None = None
    country: str | None = None
    exchange_full_name: str | None = None
    website: str | None = None
    description: str | None = None
    short_description: str | None = None
    ceo: str | None = None
    full_address: str | None = None
    phone: str | None = None
    formatted_full_time_employees: str | None = None
    profile_last_updated: str | None = None
    currency: str | None = None
    formatted_ipo_date: str | None = None
    is_etf: bool | None = None
    is_adr: bool | None = None
    is_fund: bool | None = None


@dataclass(frozen=True)
class ProfileLiveData:
    """Subset of the live quote mirrored onto the profile card."""

    timestamp: int | None = None
    price: float | None = None
    day_change: float | None = None
    change_percentage: float | None = None
    day_high: float | None = None
    day_low: float | None = None
    volume: float | None = None
    year_high: float | None = None
    year_low: float | None = None


@dataclass(frozen=True)
class ProfileCard(Card):
    card_type: ClassVar[CardType] = CardType.PROFILE

    static_data: ProfileStaticData = field(default_factory=ProfileStaticData)
    live_data: ProfileLiveData = field(default_factory=ProfileLiveData)
