from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .app import build_default_teams
from .config import DEFAULT_NUM_TEAMS, ROSTER_SIZE, UPCOMING_GAMES_LIMIT
from .contracts import free_agent_contract, set_contract
from .draft import (
    develop_player,
    draft_user_player,
    gen_order,
    gen_picks,
    gen_players,
    get_order,
    lottery_teams,
    until_user_or_end,
)
from .events import EventLog, UINotifier
from .lottery import LotteryResult, projected_chances
from .models import (
    DraftOrderEntry,
    DraftRunResult,
    LeagueContext,
    LeagueEvent,
    Phase,
    Player,
    PlayerTid,
    ScheduleEntry,
    Team,
)
from .names import NameGenerator
from .phase import ensure_team_seasons, load_context, new_phase, save_context, start_fantasy_draft
from .random_source import RandomSource
from .schedule import get_schedule, get_upcoming, set_schedule
from .store import ObjectStore

logger = logging.getLogger(__name__)


class League:
    """One league: its store, current context, dice and news feed.

    A fresh store is seeded with the default teams and their rosters, a season
    row per team, the season's draft picks and three classes of prospects. An
    existing store is picked up where it was left.
    """

    def __init__(
        self,
        state_path: str | Path | None = None,
        season: int = 2025,
        num_teams: int = DEFAULT_NUM_TEAMS,
        user_tid: int = 0,
        seed: int | None = None,
        rng: RandomSource | None = None,
        teams: list[Team] | None = None,
    ) -> None:
        self.store = ObjectStore(state_path)
        self.last_load_error = self.store.last_load_error
        self.rng = rng if rng is not None else RandomSource(seed)
        self.events = EventLog(self.store)
        self.notifier = UINotifier()

        loaded = load_context(self.store)
        if loaded is not None:
            self.context = loaded
            return
        if self.last_load_error:
            logger.warning("%s", self.last_load_error)

        if teams is None:
            teams = build_default_teams(num_teams)
        self.context = LeagueContext(
            season=season,
            num_teams=len(teams),
            user_tid=user_tid,
            user_tids=(user_tid,),
        )
        self._init_league(teams)

    def _init_league(self, teams: list[Team]) -> None:
        ctx = self.context
        names = NameGenerator(self.rng)
        with self.store.transaction():
            for team in teams:
                self.store.add("teams", team)
                # Opening rosters start as prospects aged into their careers.
                for player in gen_players(self.store, ctx, self.rng, team.tid, ROSTER_SIZE, names):
                    develop_player(player, self.rng.uniform_int(1, 10))
                    set_contract(player, free_agent_contract(ctx, player))
                    self.store.put("players", player)
            ensure_team_seasons(self.store, ctx)
            gen_picks(self.store, ctx, ctx.season)
            for tid in (PlayerTid.UNDRAFTED, PlayerTid.UNDRAFTED_2, PlayerTid.UNDRAFTED_3):
                gen_players(self.store, ctx, self.rng, tid, names=names)
            save_context(self.store, ctx)
        logger.info("Created league with %d teams for %s", len(teams), ctx.season)

    # -- reads -------------------------------------------------------------

    @property
    def teams(self) -> list[Team]:
        return self.store.get_all("teams")

    def get_team(self, tid: int) -> Team | None:
        return self.store.get("teams", tid)

    def players(self, tid: int) -> list[Player]:
        return sorted(self.store.index_get_all("players", "tid", tid), key=lambda p: p.value, reverse=True)

    def prospects(self) -> list[Player]:
        return self.players(PlayerTid.UNDRAFTED)

    def draft_order(self) -> list[DraftOrderEntry]:
        return get_order(self.store)

    def lottery_odds(self) -> list[dict[str, Any]]:
        """Current top-pick odds for the non-playoff teams, ties averaged."""
        # Display only: ties keep tid order instead of consuming dice.
        teams = sorted(
            (t for t in lottery_teams(self.store, self.context) if not t.made_playoffs),
            key=lambda t: (t.winp, t.tid),
        )
        chances = projected_chances(teams)
        return [
            {"tid": team.tid, "winp": round(team.winp, 3), "chance": round(chance, 2)}
            for team, chance in zip(teams, chances)
        ]

    def schedule(self) -> list[ScheduleEntry]:
        return get_schedule(self.store)

    def upcoming(self, tid: int | None = None, limit: int = UPCOMING_GAMES_LIMIT) -> list[dict[str, Any]]:
        return get_upcoming(self.store, self.context, self.context.user_tid if tid is None else tid, limit)

    def news(self, limit: int = 80, type: str | None = None) -> list[LeagueEvent]:
        return self.events.recent(limit=limit, type=type)

    # -- writes ------------------------------------------------------------

    def record_team_season(self, tid: int, won: int, lost: int, playoff_rounds_won: int = -1) -> None:
        rows = self.store.index_get_all("team_seasons", "tid_season", (tid, self.context.season))
        if not rows:
            raise LookupError(f"No {self.context.season} season row for team {tid}")
        row = rows[0]
        with self.store.transaction():
            row.won = won
            row.lost = lost
            row.playoff_rounds_won = playoff_rounds_won
            self.store.put("team_seasons", row)

    def new_phase(self, phase: Phase) -> LeagueContext:
        self.context = new_phase(self.store, self.context, phase, self.rng, self.events, self.notifier)
        return self.context

    def gen_order(self) -> LotteryResult:
        return gen_order(self.store, self.context, self.rng, self.events)

    def start_fantasy_draft(self, position: int | None = None) -> LeagueContext:
        self.context = start_fantasy_draft(
            self.store, self.context, self.rng, position, self.events, self.notifier
        )
        return self.context

    def until_user_or_end(self) -> DraftRunResult:
        result = until_user_or_end(self.store, self.context, self.rng, self.events, self.notifier)
        self.context = result.context
        return result

    def draft_user_player(self, pid: int) -> Player:
        return draft_user_player(self.store, self.context, pid, self.events)

    def set_schedule(self, matchups: list[tuple[int, int]]) -> list[ScheduleEntry]:
        return set_schedule(self.store, self.context, matchups, self.notifier)

    def set_auto_play(self, seasons: int) -> LeagueContext:
        if seasons < 0:
            raise ValueError("Auto play seasons cannot be negative")
        self.context = self.context.evolve(auto_play_seasons=seasons)
        with self.store.transaction():
            save_context(self.store, self.context)
        return self.context
