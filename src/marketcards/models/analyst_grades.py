"""Analyst grades card model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketcards.config import CardType
from marketcards.models.base import Card


@dataclass(frozen=True)
class AnalystRatingDetail:
    """Analyst count for one rating bucket, with change from last period."""

    category: str
    label: str
    current_value: int
    previous_value: int | None = None
    change: int | None = None


@dataclass(frozen=True)
class AnalystGradesStaticData:
    current_period_date: str | None = None
    previous_period_date: str | None = None


@dataclass(frozen=True)
class AnalystGradesLiveData:
    ratings_distribution: tuple[AnalystRatingDetail, ...] = ()
    total_analysts_current: int = 0
    total_analysts_previous: int | None = None
    consensus_label_current: str | None = None
    last_updated: str | None = None
    # Raw "YYYY-MM-DD" of the current period, used to order incoming rows.
    current_period_raw: str | None = None


@dataclass(frozen=True)
class AnalystGradesCard(Card):
    card_type: ClassVar[CardType] = CardType.ANALYST_GRADES

    static_data: AnalystGradesStaticData = field(default_factory=AnalystGradesStaticData)
    live_data: AnalystGradesLiveData = field(default_factory=AnalystGradesLiveData)
