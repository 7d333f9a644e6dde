from __future__ import annotations

from typing import Any, Iterable

from .config import ALL_STAR_AWAY_TID, ALL_STAR_HOME_TID, UPCOMING_GAMES_LIMIT
from .events import UINotifier, notify_best_effort
from .models import LeagueContext, Phase, ScheduleEntry
from .store import ObjectStore

Matchup = tuple[int, int]


def _single_round_days(tids: list[int]) -> list[list[Matchup]]:
    """Build one full round-robin split into days."""
    if len(tids) < 2:
        return []

    # Circle method: each team plays at most once per day.
    rotating: list[int | None] = list(tids)
    if len(rotating) % 2 == 1:
        rotating.append(None)

    rounds = len(rotating) - 1
    half = len(rotating) // 2
    days: list[list[Matchup]] = []

    for round_idx in range(rounds):
        day_games: list[Matchup] = []
        for idx in range(half):
            home = rotating[idx]
            away = rotating[-(idx + 1)]
            if home is None or away is None:
                continue
            # Alternate site orientation by round to avoid long early home/away streaks.
            if round_idx % 2 == 1:
                home, away = away, home
            day_games.append((home, away))
        days.append(day_games)

        # Keep first fixed, rotate the rest.
        rotating = [rotating[0], rotating[-1], *rotating[1:-1]]

    return days


def build_round_robin_days(tids: Iterable[int], games_per_matchup: int = 2) -> list[list[Matchup]]:
    tid_list = list(tids)
    if len(tid_list) < 2 or games_per_matchup < 1:
        return []
    base_days = _single_round_days(tid_list)
    season_days: list[list[Matchup]] = []
    for matchup_index in range(games_per_matchup):
        flip_home_away = matchup_index % 2 == 1
        for day in base_days:
            season_days.append([(away, home) for home, away in day] if flip_home_away else list(day))
    return season_days


def build_schedule(tids: Iterable[int], games_per_matchup: int = 2, all_star_game: bool = False) -> list[Matchup]:
    """Flat list of home/away pairs for a season, in play order.

    With ``all_star_game`` the all-star sentinel pair is dropped in at the
    midpoint of the season.
    """
    games = [game for day in build_round_robin_days(tids, games_per_matchup) for game in day]
    if all_star_game and games:
        games.insert(len(games) // 2, (ALL_STAR_HOME_TID, ALL_STAR_AWAY_TID))
    return games


def _is_all_star(home_tid: int, away_tid: int) -> bool:
    return home_tid == ALL_STAR_HOME_TID and away_tid == ALL_STAR_AWAY_TID


def set_schedule(
    store: ObjectStore,
    ctx: LeagueContext,
    tids: Iterable[Matchup],
    notifier: UINotifier | None = None,
) -> list[ScheduleEntry]:
    """Save the schedule, replacing whatever is stored, and number its days.

    A new day starts whenever a team would play twice on the current one. The
    all-star game always gets a day to itself, and so does the game after it.
    """
    entries: list[ScheduleEntry] = []
    with store.transaction():
        store.clear("schedule")
        day_tids: set[int] = set()
        day = 1
        prev_all_star = False
        for home_tid, away_tid in tids:
            all_star = _is_all_star(home_tid, away_tid)
            if home_tid in day_tids or away_tid in day_tids or all_star or prev_all_star:
                day += 1
                day_tids.clear()

            day_tids.add(home_tid)
            day_tids.add(away_tid)

            entry = ScheduleEntry(day=day, home_tid=home_tid, away_tid=away_tid)
            store.add("schedule", entry)
            entries.append(entry)
            prev_all_star = all_star

    games = [
        {"gid": game["gid"], "teams": [{k: team[k] for k in ("ovr", "tid", "playoffs")} for team in game["teams"]]}
        for game in get_upcoming(store, ctx, ctx.user_tid)
    ]
    notify_best_effort(notifier, "mergeGames", games)
    return entries


def get_schedule(store: ObjectStore) -> list[ScheduleEntry]:
    return sorted(store.get_all("schedule"), key=lambda g: (g.day, g.gid))


def team_ovr(store: ObjectStore, tid: int, depth: int = 10) -> int:
    ratings = sorted(
        (p.current_ratings.ovr for p in store.index_get_all("players", "tid", tid) if p.ratings),
        reverse=True,
    )[:depth]
    if not ratings:
        return 0
    return round(sum(ratings) / len(ratings))


def get_upcoming(
    store: ObjectStore,
    ctx: LeagueContext,
    tid: int,
    limit: int = UPCOMING_GAMES_LIMIT,
) -> list[dict[str, Any]]:
    playoffs = ctx.phase == Phase.PLAYOFFS
    rows: list[dict[str, Any]] = []
    ovr_cache: dict[int, int] = {}
    for game in get_schedule(store):
        if tid not in game.tids:
            continue
        teams = []
        for game_tid in game.tids:
            if game_tid not in ovr_cache:
                ovr_cache[game_tid] = team_ovr(store, game_tid)
            teams.append({"tid": game_tid, "ovr": ovr_cache[game_tid], "playoffs": playoffs})
        rows.append({"gid": game.gid, "day": game.day, "teams": teams})
        if len(rows) >= limit:
            break
    return rows
