from __future__ import annotations

import logging
from typing import Any, Iterable

from .models import LeagueContext, LeagueEvent
from .store import ObjectStore

logger = logging.getLogger(__name__)


class UINotifier:
    """Fire-and-forget channel for view data pushed to the presentation layer."""

    def __init__(self, limit: int = 200) -> None:
        self.limit = limit
        self.messages: list[tuple[str, Any]] = []

    def notify(self, channel: str, payload: Any) -> None:
        self.messages.append((channel, payload))
        if len(self.messages) > self.limit:
            self.messages = self.messages[-self.limit :]

    def latest(self, channel: str) -> Any | None:
        for name, payload in reversed(self.messages):
            if name == channel:
                return payload
        return None


class EventLog:
    """Append-only news feed backed by the ``events`` store kind."""

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def log(
        self,
        ctx: LeagueContext,
        type: str,
        text: str,
        pids: Iterable[int] = (),
        tids: Iterable[int] = (),
        show_notification: bool = False,
    ) -> LeagueEvent:
        event = LeagueEvent(
            type=type,
            text=text,
            season=ctx.season,
            pids=list(pids),
            tids=list(tids),
            show_notification=show_notification,
        )
        self.store.add("events", event)
        return event

    def recent(self, limit: int = 80, type: str | None = None) -> list[LeagueEvent]:
        rows = [e for e in self.store.get_all("events") if type is None or e.type == type]
        rows.reverse()
        return rows[:limit]


def log_best_effort(events: EventLog | None, ctx: LeagueContext, **kwargs: Any) -> None:
    if events is None:
        return
    try:
        events.log(ctx, **kwargs)
    except Exception:
        logger.warning("Dropped %s event: %s", kwargs.get("type", "?"), kwargs.get("text", ""), exc_info=True)


def notify_best_effort(notifier: UINotifier | None, channel: str, payload: Any) -> None:
    if notifier is None:
        return
    try:
        notifier.notify(channel, payload)
    except Exception:
        logger.warning("UI notification on '%s' failed", channel, exc_info=True)


def ordinal(value: int) -> str:
    if 10 <= value % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(value % 10, "th")
    return f"{value}{suffix}"


def team_label(store: ObjectStore, tid: int) -> str:
    team = store.get("teams", tid)
    if team is None:
        return f"Team {tid}"
    return team.full_name
