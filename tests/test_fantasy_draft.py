import pytest

from franchise_sim.app import build_default_teams
from franchise_sim.config import FANTASY_DRAFT_ROUNDS, ROSTER_SIZE
from franchise_sim.draft import gen_order_fantasy, gen_players, get_order, select_player
from franchise_sim.events import EventLog
from franchise_sim.league import League
from franchise_sim.models import DraftOrderEntry, DraftState, LeagueContext, Phase, PlayerTid
from franchise_sim.random_source import RandomSource
from franchise_sim.store import ObjectStore


def _league(seed: int = 31) -> League:
    return League(num_teams=4, seed=seed)


def test_snake_order_reverses_every_round() -> None:
    store = ObjectStore()
    ctx = LeagueContext(season=2025, num_teams=6)
    entries = gen_order_fantasy(store, ctx, RandomSource(4))

    assert len(entries) == FANTASY_DRAFT_ROUNDS * 6
    assert get_order(store) == entries
    first = [e.tid for e in entries[:6]]
    second = [e.tid for e in entries[6:12]]
    assert sorted(first) == list(range(6))
    assert second == list(reversed(first))
    assert [e.tid for e in entries[12:18]] == first
    assert all(e.tid == e.original_tid for e in entries)


def test_user_team_lands_at_requested_position() -> None:
    for position in (1, 3, 6):
        store = ObjectStore()
        ctx = LeagueContext(season=2025, num_teams=6, user_tid=2, user_tids=(2,))
        entries = gen_order_fantasy(store, ctx, RandomSource(position), position=position)
        assert entries[position - 1].tid == 2


def test_start_moves_players_into_one_pool() -> None:
    league = _league()
    draft_class = {p.pid for p in league.store.index_get_all("players", "tid", PlayerTid.UNDRAFTED)}

    ctx = league.start_fantasy_draft(position=2)

    assert ctx.phase == Phase.FANTASY_DRAFT
    assert ctx.next_phase == Phase.PRESEASON
    assert ctx.draft_name == "2025 fantasy draft"
    parked = {p.pid for p in league.store.index_get_all("players", "tid", PlayerTid.UNDRAFTED_FANTASY_TEMP)}
    assert parked == draft_class
    assert len(league.prospects()) == 4 * ROSTER_SIZE
    for tid in range(4):
        assert league.players(tid) == []
    order = league.draft_order()
    assert len(order) == FANTASY_DRAFT_ROUNDS * 4
    assert order[1].tid == 0


def test_fantasy_draft_runs_to_completion() -> None:
    league = _league()
    draft_class = {p.pid for p in league.store.index_get_all("players", "tid", PlayerTid.UNDRAFTED)}
    league.start_fantasy_draft()
    league.set_auto_play(1)

    result = league.until_user_or_end()

    assert result.state == DraftState.COMPLETE
    assert len(result.pids) == FANTASY_DRAFT_ROUNDS * 4
    assert league.context.phase == Phase.PRESEASON
    assert league.context.next_phase is None
    for tid in range(4):
        assert len(league.players(tid)) == FANTASY_DRAFT_ROUNDS
    leftovers = league.players(PlayerTid.FREE_AGENT)
    assert len(leftovers) == 4 * ROSTER_SIZE - FANTASY_DRAFT_ROUNDS * 4
    assert all(p.contract is not None for p in leftovers)
    assert {p.pid for p in league.prospects()} == draft_class
    assert league.store.index_get_all("players", "tid", PlayerTid.UNDRAFTED_FANTASY_TEMP) == []


def test_finished_fantasy_draft_cannot_run_again() -> None:
    league = _league()
    league.new_phase(Phase.REGULAR_SEASON)
    league.start_fantasy_draft()
    league.set_auto_play(1)
    assert league.until_user_or_end().state == DraftState.COMPLETE
    assert league.context.phase == Phase.REGULAR_SEASON
    rosters = {tid: [p.pid for p in league.players(tid)] for tid in range(4)}

    with pytest.raises(ValueError):
        league.until_user_or_end()
    assert league.context.phase == Phase.REGULAR_SEASON
    assert {tid: [p.pid for p in league.players(tid)] for tid in range(4)} == rosters


def test_fantasy_pick_keeps_draft_record_and_logs_fantasy_draft() -> None:
    league = _league()
    league.start_fantasy_draft()
    result = league.until_user_or_end()
    assert result.state == DraftState.PAUSED

    league.set_auto_play(1)
    league.until_user_or_end()
    news = [e.text for e in league.news(limit=400, type="draft")]
    assert any("in the 2025 fantasy draft." in text for text in news)
    rostered = [p for tid in range(4) for p in league.players(tid)]
    assert all(p.draft is None for p in rostered)


def test_mid_season_fantasy_pick_adds_stats_row() -> None:
    store = ObjectStore()
    ctx = LeagueContext(season=2025, phase=Phase.FANTASY_DRAFT, next_phase=Phase.REGULAR_SEASON, num_teams=4)
    for team in build_default_teams(4):
        store.add("teams", team)
    player = gen_players(store, ctx, RandomSource(2), num_players=1)[0]
    events = EventLog(store)

    select_player(store, ctx, DraftOrderEntry(round=3, pick=2, tid=1, original_tid=1), player.pid, events)

    stored = store.get("players", player.pid)
    assert stored.tid == 1
    assert stored.draft is None
    assert stored.contract is None
    assert stored.stats == [{"season": 2025, "tid": 1, "playoffs": False, "gp": 0}]
    assert "10th pick in the 2025 fantasy draft." in events.recent(limit=1)[0].text
