"""Inbound data events, handler contexts and outbound notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Sequence

from marketcards.config import EventSource, UpdateKind
from marketcards.models.base import Card, now_ms

if TYPE_CHECKING:
    from marketcards.sources.base import BaseDataSource


@dataclass(frozen=True)
class DataEvent:
    """External data event delivered by the fetch/realtime collaborators.

    Attributes:
        symbol: Instrument symbol the payload describes.
        source: Why the event arrived (fetch, realtime push, static patch).
        kind: Payload family, used to pick update handlers.
        payload: Backend row as a plain mapping.
        timestamp: Event time in epoch milliseconds.
    """

    symbol: str
    source: EventSource
    kind: UpdateKind
    payload: Mapping[str, Any]
    timestamp: int = field(default_factory=now_ms)


@dataclass(frozen=True)
class Notification:
    """User-facing toast text."""

    title: str
    description: str = ""
    variant: str = "default"


Notifier = Callable[[Notification], None]


@dataclass
class UpdateContext:
    """Context handed to update handlers.

    Handlers may append to ``notifications``; the workspace only emits them
    when the update actually changed the collection.
    """

    source: EventSource = EventSource.FETCH
    timestamp: int = field(default_factory=now_ms)
    notifications: list[Notification] = field(default_factory=list)
    announce_live: bool = True

    @property
    def is_realtime(self) -> bool:
        return self.source is EventSource.REALTIME

    def notify(self, title: str, description: str = "", variant: str = "default") -> None:
        self.notifications.append(Notification(title, description, variant))


@dataclass
class InitContext:
    """Context handed to async card initializers.

    Attributes:
        symbol: Symbol the user asked for.
        source: Backend the initializer fetches from.
        active_cards: Current collection, for reusing company name/logo.
        notifications: Notices raised during initialization.
    """

    symbol: str
    source: BaseDataSource
    active_cards: Sequence[Card] = ()
    notifications: list[Notification] = field(default_factory=list)

    def notify(self, title: str, description: str = "", variant: str = "default") -> None:
        self.notifications.append(Notification(title, description, variant))

