import json

import pytest

from franchise_sim.league import League
from franchise_sim.models import DraftPick, LeagueContext, Phase, Player, PlayerTid, Ratings
from franchise_sim.phase import load_context, save_context
from franchise_sim.store import KeyRange, ObjectStore, StoreError


def _player(tid: int, name: str = "Sample") -> Player:
    return Player(
        first_name=name,
        last_name="Player",
        tid=tid,
        born_year=2000,
        draft_year=2019,
        ratings=[Ratings(season=2025, ovr=50, pot=60, skills=["R"])],
    )


def test_add_assigns_keys_and_rejects_duplicates() -> None:
    store = ObjectStore()
    first = store.add("players", _player(1))
    second = store.add("players", _player(2))
    assert (first, second) == (0, 1)
    with pytest.raises(StoreError):
        store.add("players", store.get("players", 0))


def test_unknown_kind_is_an_error() -> None:
    store = ObjectStore()
    with pytest.raises(StoreError):
        store.get_all("trades")
    with pytest.raises(StoreError):
        store.index_get_all("players", "age", 20)


def test_index_range_query() -> None:
    store = ObjectStore()
    for tid in (-2, -1, 0, 3, 7):
        store.add("players", _player(tid))
    rostered = store.index_get_all("players", "tid", KeyRange(0, 29))
    assert [p.tid for p in rostered] == [0, 3, 7]


def test_index_iterate_can_move_records_out_of_the_index() -> None:
    store = ObjectStore()
    for _ in range(3):
        store.add("players", _player(int(PlayerTid.UNDRAFTED)))

    def _release(player: Player) -> Player:
        player.tid = int(PlayerTid.FREE_AGENT)
        return player

    assert store.index_iterate("players", "tid", PlayerTid.UNDRAFTED, _release) == 3
    assert store.index_get_all("players", "tid", PlayerTid.UNDRAFTED) == []
    assert len(store.index_get_all("players", "tid", PlayerTid.FREE_AGENT)) == 3


def test_transaction_rolls_back_every_kind() -> None:
    store = ObjectStore()
    store.add("draft_picks", DraftPick(tid=0, original_tid=0, round=1, season=2025))

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.add("players", _player(0))
            with store.transaction():
                pick = store.get("draft_picks", 0)
                pick.tid = 5
                store.put("draft_picks", pick)
            raise RuntimeError("boom")

    assert store.count("players") == 0
    assert store.get("draft_picks", 0).tid == 0
    assert not store.in_transaction
    # Keys handed out inside the failed transaction are reused.
    assert store.add("players", _player(0)) == 0


def test_context_round_trip() -> None:
    store = ObjectStore()
    ctx = LeagueContext(season=2030, phase=Phase.FANTASY_DRAFT, next_phase=Phase.PLAYOFFS, user_tids=(0, 4))
    save_context(store, ctx)
    assert load_context(store) == ctx


@pytest.mark.regression
def test_store_reloads_from_disk(tmp_path) -> None:
    path = tmp_path / "league_store.json"
    league = League(state_path=path, num_teams=4, seed=12)
    pids = sorted(p.pid for p in league.store.get_all("players"))

    reloaded = League(state_path=path, num_teams=4, seed=99)

    assert reloaded.last_load_error == ""
    assert reloaded.context == league.context
    assert sorted(p.pid for p in reloaded.store.get_all("players")) == pids
    assert len(reloaded.teams) == 4
    sample = reloaded.store.get("players", pids[0])
    assert sample.current_ratings.ovr == league.store.get("players", pids[0]).current_ratings.ovr
    # New records keep counting from where the saved store stopped.
    assert reloaded.store.add("players", _player(0)) == pids[-1] + 1


@pytest.mark.regression
def test_store_save_includes_save_version_and_backup(tmp_path) -> None:
    path = tmp_path / "league_store.json"
    backup_path = tmp_path / "league_store.json.bak"
    league = League(state_path=path, num_teams=4, seed=3)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["save_version"] == ObjectStore.SAVE_VERSION
    assert set(payload["kinds"]) >= {"teams", "players", "draft_picks", "game_attributes"}

    league.record_team_season(0, won=10, lost=5)
    assert backup_path.exists()


@pytest.mark.regression
def test_rejects_future_save_version_with_clear_error(tmp_path) -> None:
    path = tmp_path / "league_store.json"
    path.write_text(json.dumps({"save_version": 999, "kinds": {}}), encoding="utf-8")
    store = ObjectStore(path)
    assert store.count("players") == 0
    assert "Unsupported league store version" in store.last_load_error


@pytest.mark.regression
def test_unreadable_store_starts_empty(tmp_path) -> None:
    path = tmp_path / "league_store.json"
    path.write_text("{not json", encoding="utf-8")
    store = ObjectStore(path)
    assert store.count("teams") == 0
    assert "Failed to load league store" in store.last_load_error


@pytest.mark.regression
def test_phase_and_lottery_news_reach_the_save_file(tmp_path) -> None:
    path = tmp_path / "league_store.json"
    league = League(state_path=path, num_teams=30, seed=4)
    for tid in range(30):
        league.record_team_season(tid, won=20 + tid, lost=62 - tid, playoff_rounds_won=0 if tid >= 14 else -1)
    league.gen_order()
    lottery_news = [e.text for e in league.news(limit=200, type="draft")]
    assert lottery_news
    assert [e.text for e in League(state_path=path).news(limit=200, type="draft")] == lottery_news

    league.new_phase(Phase.DRAFT)
    assert League(state_path=path).news(limit=1)[0].text == "Welcome to the 2025 draft."
