from franchise_sim.app import build_default_teams
from franchise_sim.config import ALL_STAR_AWAY_TID, ALL_STAR_HOME_TID
from franchise_sim.draft import develop_player, gen_players
from franchise_sim.events import UINotifier
from franchise_sim.models import LeagueContext, Phase
from franchise_sim.random_source import RandomSource
from franchise_sim.schedule import (
    build_round_robin_days,
    build_schedule,
    get_schedule,
    get_upcoming,
    set_schedule,
)
from franchise_sim.store import ObjectStore

ALL_STAR = (ALL_STAR_HOME_TID, ALL_STAR_AWAY_TID)


def _days(store: ObjectStore) -> list[int]:
    return [game.day for game in get_schedule(store)]


def test_round_robin_count() -> None:
    days = build_round_robin_days(range(4), games_per_matchup=2)
    games = [game for day in days for game in day]
    assert len(days) == 6
    assert len(games) == 12
    for day in days:
        tids = [tid for game in day for tid in game]
        assert len(tids) == len(set(tids))


def test_round_robin_odd_team_count_sits_one_team_out() -> None:
    days = build_round_robin_days(range(5), games_per_matchup=1)
    assert len(days) == 5
    assert all(len(day) == 2 for day in days)
    pairs = {frozenset(game) for day in days for game in day}
    assert len(pairs) == 10


def test_repeat_matchups_swap_home_and_away() -> None:
    games = build_schedule(range(4), games_per_matchup=2)
    first_half, second_half = games[:6], games[6:]
    assert second_half == [(away, home) for home, away in first_half]


def test_all_star_game_lands_mid_season() -> None:
    games = build_schedule(range(6), games_per_matchup=2, all_star_game=True)
    assert len(games) == 31
    assert games[15] == ALL_STAR


def test_days_advance_when_a_team_repeats() -> None:
    store = ObjectStore()
    set_schedule(store, LeagueContext(season=2025), [(0, 1), (2, 3), (0, 2), (1, 3)])
    assert _days(store) == [1, 1, 2, 2]


def test_all_star_game_and_next_game_get_their_own_days() -> None:
    store = ObjectStore()
    set_schedule(store, LeagueContext(season=2025), [(0, 1), (2, 3), ALL_STAR, (4, 5), (0, 4)])
    assert _days(store) == [1, 1, 2, 3, 4]


def test_leading_all_star_game_skips_day_one() -> None:
    store = ObjectStore()
    set_schedule(store, LeagueContext(season=2025), [ALL_STAR, (0, 1), (2, 3)])
    assert _days(store) == [2, 3, 3]


def test_set_schedule_replaces_previous_schedule() -> None:
    store = ObjectStore()
    ctx = LeagueContext(season=2025)
    set_schedule(store, ctx, build_schedule(range(4)))
    set_schedule(store, ctx, [(0, 1)])
    games = get_schedule(store)
    assert len(games) == 1
    assert (games[0].day, games[0].home_tid, games[0].away_tid) == (1, 0, 1)


def test_assigned_days_never_repeat_a_team() -> None:
    store = ObjectStore()
    set_schedule(store, LeagueContext(season=2025, num_teams=30), build_schedule(range(30), all_star_game=True))
    seen: dict[int, set[int]] = {}
    for game in get_schedule(store):
        day_tids = seen.setdefault(game.day, set())
        assert not day_tids & set(game.tids)
        day_tids.update(game.tids)
    assert len(get_schedule(store)) == 871


def test_upcoming_games_are_pushed_to_the_ui() -> None:
    store = ObjectStore()
    ctx = LeagueContext(season=2025, num_teams=4, user_tid=2, user_tids=(2,))
    for team in build_default_teams(4):
        store.add("teams", team)
    for player in gen_players(store, ctx, RandomSource(3), tid=2, num_players=3):
        develop_player(player, 4)
    notifier = UINotifier()

    set_schedule(store, ctx, build_schedule(range(4), games_per_matchup=3), notifier)

    games = notifier.latest("mergeGames")
    assert len(games) == 5
    for game in games:
        assert set(game) == {"gid", "teams"}
        assert 2 in [team["tid"] for team in game["teams"]]
        assert all(team["playoffs"] is False for team in game["teams"])
    user_side = next(team for team in games[0]["teams"] if team["tid"] == 2)
    assert user_side["ovr"] > 0


def test_upcoming_flags_playoff_games() -> None:
    store = ObjectStore()
    ctx = LeagueContext(season=2025, phase=Phase.PLAYOFFS, num_teams=4)
    set_schedule(store, ctx, [(0, 1), (2, 3), (1, 0)])
    upcoming = get_upcoming(store, ctx, 0, limit=5)
    assert [game["day"] for game in upcoming] == [1, 2]
    assert all(team["playoffs"] for game in upcoming for team in game["teams"])
    assert get_upcoming(store, ctx, 0, limit=1)[0]["gid"] == upcoming[0]["gid"]
