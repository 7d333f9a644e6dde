"""League phase transitions and the fantasy-draft start."""
from __future__ import annotations

import logging

from .draft import advance_draft_classes, gen_order, gen_order_fantasy, gen_picks, get_order
from .events import EventLog, UINotifier, log_best_effort, notify_best_effort
from .models import LeagueContext, Phase, PlayerTid, TeamSeason
from .random_source import RandomSource
from .schedule import build_schedule, set_schedule
from .store import KeyRange, ObjectStore

logger = logging.getLogger(__name__)

CONTEXT_KEY = "context"


def save_context(store: ObjectStore, ctx: LeagueContext) -> None:
    store.put("game_attributes", {"key": CONTEXT_KEY, **ctx.to_dict()})


def load_context(store: ObjectStore) -> LeagueContext | None:
    row = store.get("game_attributes", CONTEXT_KEY)
    if row is None:
        return None
    return LeagueContext.from_dict(row)


def ensure_team_seasons(store: ObjectStore, ctx: LeagueContext) -> int:
    """Open a blank season row for every team that lacks one for ``ctx.season``."""
    added = 0
    for team in store.get_all("teams"):
        if store.index_get_all("team_seasons", "tid_season", (team.tid, ctx.season)):
            continue
        store.add("team_seasons", TeamSeason(tid=team.tid, season=ctx.season, cid=team.cid))
        added += 1
    return added


def _notify_phase(notifier: UINotifier | None, ctx: LeagueContext) -> None:
    notify_best_effort(
        notifier,
        "phase",
        {"season": ctx.season, "phase": int(ctx.phase), "text": f"{ctx.season} {ctx.phase.text}"},
    )


def new_phase(
    store: ObjectStore,
    ctx: LeagueContext,
    phase: Phase,
    rng: RandomSource,
    events: EventLog | None = None,
    notifier: UINotifier | None = None,
) -> LeagueContext:
    """Move the league into ``phase`` and return the updated context."""
    phase = Phase(phase)
    if phase == Phase.FANTASY_DRAFT:
        raise ValueError("Use start_fantasy_draft to begin a fantasy draft")

    with store.transaction():
        if phase == Phase.PRESEASON:
            ctx = ctx.evolve(phase=phase, season=ctx.season + 1)
            ensure_team_seasons(store, ctx)
            gen_picks(store, ctx, ctx.season)
            advance_draft_classes(store, ctx, rng)
        elif phase == Phase.REGULAR_SEASON:
            ctx = ctx.evolve(phase=phase)
            set_schedule(store, ctx, build_schedule(range(ctx.num_teams)), notifier)
        elif phase == Phase.DRAFT:
            if not get_order(store):
                gen_order(store, ctx, rng, events)
            ctx = ctx.evolve(phase=phase)
        else:
            ctx = ctx.evolve(phase=phase)
        save_context(store, ctx)
        log_best_effort(events, ctx, type="newPhase", text=f"Welcome to the {ctx.season} {ctx.phase.text}.")

    logger.info("League moved to %s %s", ctx.season, ctx.phase.text)
    _notify_phase(notifier, ctx)
    return ctx


def start_fantasy_draft(
    store: ObjectStore,
    ctx: LeagueContext,
    rng: RandomSource,
    position: int | None = None,
    events: EventLog | None = None,
    notifier: UINotifier | None = None,
) -> LeagueContext:
    """Throw every rostered player into one pool and redraft the league.

    The regular draft class sits out as ``UNDRAFTED_FANTASY_TEMP`` and comes
    back once the fantasy draft is over.
    """
    if ctx.phase == Phase.FANTASY_DRAFT:
        raise ValueError("A fantasy draft is already in progress")

    def _park(player):
        player.tid = int(PlayerTid.UNDRAFTED_FANTASY_TEMP)
        return player

    def _release(player):
        player.tid = int(PlayerTid.UNDRAFTED)
        return player

    with store.transaction():
        store.index_iterate("players", "tid", PlayerTid.UNDRAFTED, _park)
        released = store.index_iterate("players", "tid", KeyRange(0, ctx.num_teams - 1), _release)
        gen_order_fantasy(store, ctx, rng, position)
        ctx = ctx.evolve(phase=Phase.FANTASY_DRAFT, next_phase=ctx.phase)
        save_context(store, ctx)
        log_best_effort(events, ctx, type="newPhase", text=f"The {ctx.draft_name} is under way.")

    logger.info("Fantasy draft started with %d players in the pool", released)
    _notify_phase(notifier, ctx)
    return ctx
