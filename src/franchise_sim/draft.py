"""Draft order generation and pick-by-pick draft progression."""
from __future__ import annotations

import logging
import math

from .config import (
    DRAFT_ROUNDS,
    DRAFT_SELECTION_STDEV,
    FANTASY_DRAFT_ROUNDS,
    FANTASY_SHUFFLE_ATTEMPTS,
    LOTTERY_BASE_WEIGHTS,
    LOTTERY_WINNER_SLOTS,
    PROSPECT_BASE_AGE,
    PROSPECTS_PER_30_TEAMS,
)
from .contracts import add_to_free_agents, get_rookie_salaries, rookie_contract, set_contract
from .events import EventLog, UINotifier, log_best_effort, notify_best_effort, ordinal, team_label
from .lottery import LotteryResult, LotteryTeam, lottery_sort, run_lottery
from .models import (
    DraftOrder,
    DraftOrderEntry,
    DraftPick,
    DraftRecord,
    DraftRunResult,
    DraftState,
    LeagueContext,
    Phase,
    Player,
    PlayerTid,
    Ratings,
)
from .names import NameGenerator
from .random_source import RandomSource
from .store import ObjectStore

logger = logging.getLogger(__name__)

SKILL_LABELS = ("3", "A", "B", "Di", "Dp", "Po", "Ps", "R")
DRAFT_CLASS_OFFSETS = {
    PlayerTid.UNDRAFTED: 0,
    PlayerTid.UNDRAFTED_2: 1,
    PlayerTid.UNDRAFTED_3: 2,
}


def gen_picks(store: ObjectStore, ctx: LeagueContext, season: int) -> int:
    """Create the default pick set for ``season``: one pick per team per round.

    Picks that already exist (matched on original team and round) are left
    alone, so calling this twice never duplicates picks.
    """
    existing = {(dp.original_tid, dp.round) for dp in store.index_get_all("draft_picks", "season", season)}
    added = 0
    for tid in range(ctx.num_teams):
        for round_no in range(1, DRAFT_ROUNDS + 1):
            if (tid, round_no) in existing:
                continue
            store.add("draft_picks", DraftPick(tid=tid, original_tid=tid, round=round_no, season=season))
            added += 1
    return added


def get_order(store: ObjectStore) -> list[DraftOrderEntry]:
    """Remaining draft order, next pick first."""
    row = store.get("draft_order", 0)
    if row is None:
        return []
    return list(row.entries)


def set_order(store: ObjectStore, entries: list[DraftOrderEntry]) -> None:
    store.put("draft_order", DraftOrder(rid=0, entries=list(entries)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _prospect_value(ovr: int, pot: int) -> float:
    # Young players are valued mostly on what they may become.
    return round(0.3 * ovr + 0.7 * pot, 2)


def gen_players(
    store: ObjectStore,
    ctx: LeagueContext,
    rng: RandomSource,
    tid: int = PlayerTid.UNDRAFTED,
    num_players: int | None = None,
    names: NameGenerator | None = None,
) -> list[Player]:
    """Generate a class of draft prospects and add them to the store."""
    if num_players is None:
        num_players = _round_half_up(PROSPECTS_PER_30_TEAMS * ctx.num_teams / 30)
    if names is None:
        names = NameGenerator(rng)
        names.reserve([(p.first_name, p.last_name) for p in store.get_all("players")])
    offset = DRAFT_CLASS_OFFSETS.get(tid, 0)
    draft_year = ctx.season + offset

    created: list[Player] = []
    for _idx in range(num_players):
        base_rating = rng.uniform_int(8, 31)
        pot = _round_half_up(max(base_rating, min(90, rng.gaussian(48, 17))))
        aging_years = rng.uniform_int(0, 3)
        ovr = min(pot, base_rating + aging_years * rng.uniform_int(1, 4))
        skills = [rng.choice(SKILL_LABELS)] if ovr >= 40 else []
        first_name, last_name = names.next_name()
        player = Player(
            first_name=first_name,
            last_name=last_name,
            tid=int(tid),
            born_year=draft_year - PROSPECT_BASE_AGE - aging_years,
            draft_year=draft_year,
            value=_prospect_value(ovr, pot),
            ratings=[Ratings(season=ctx.season, ovr=ovr, pot=pot, skills=skills)],
        )
        store.add("players", player)
        created.append(player)
    return created


def develop_player(player: Player, years: int) -> Player:
    """Age a generated prospect ``years`` seasons, closing part of the gap to potential."""
    if years <= 0:
        return player
    ratings = player.current_ratings
    growth = min(1.0, years / 6)
    ratings.ovr = min(ratings.pot, ratings.ovr + _round_half_up((ratings.pot - ratings.ovr) * growth))
    player.born_year -= years
    player.draft_year -= years
    player.value = _prospect_value(ratings.ovr, ratings.pot)
    return player


def advance_draft_classes(store: ObjectStore, ctx: LeagueContext, rng: RandomSource) -> list[Player]:
    """Move every future draft class up a year and generate the new far class.

    Prospects left over from the last draft become free agents first. ``ctx``
    is the context of the season being entered.
    """

    def _release(player: Player) -> Player:
        return add_to_free_agents(player, ctx, ctx.phase)

    def _move_up(tid: PlayerTid):
        def _visit(player: Player) -> Player:
            player.tid = int(tid)
            return player

        return _visit

    with store.transaction():
        store.index_iterate("players", "tid", PlayerTid.UNDRAFTED, _release)
        store.index_iterate("players", "tid", PlayerTid.UNDRAFTED_2, _move_up(PlayerTid.UNDRAFTED))
        store.index_iterate("players", "tid", PlayerTid.UNDRAFTED_3, _move_up(PlayerTid.UNDRAFTED_2))
        return gen_players(store, ctx, rng, PlayerTid.UNDRAFTED_3)


def _lottery_text(store: ObjectStore, ctx: LeagueContext, tid: int, kind: str, number: float) -> str:
    team = team_label(store, tid)
    if kind == "chance":
        return f"The {team} have a {number:.2f}% chance of getting the top overall pick of the {ctx.season} draft."
    if kind == "movedup":
        return f"The {team} moved up in the lottery and will select {ordinal(int(number))} overall in the {ctx.season} draft."
    if kind == "moveddown":
        return f"The {team} moved down in the lottery and will select {ordinal(int(number))} overall in the {ctx.season} draft."
    return f"The {team} will select {ordinal(int(number))} overall in the {ctx.season} draft."


def _log_lottery(
    store: ObjectStore,
    ctx: LeagueContext,
    events: EventLog | None,
    result: LotteryResult,
    entries: list[DraftOrderEntry],
    owners: dict[tuple[int, int], int],
) -> None:
    pct = result.chance_pct
    for idx, chance in enumerate(pct):
        if idx >= len(result.teams):
            break
        tid = owners[(result.teams[idx].tid, 1)]
        log_best_effort(
            events,
            ctx,
            type="draft",
            text=_lottery_text(store, ctx, tid, "chance", chance),
            tids=[tid],
            show_notification=tid == ctx.user_tid,
        )

    position = {team.tid: idx for idx, team in enumerate(result.teams)}
    for entry in entries:
        if entry.round != 1 or entry.pick > len(pct):
            continue
        idx = position[entry.original_tid]
        kind = "normal"
        if idx < len(pct):
            if pct[idx] < pct[entry.pick - 1]:
                kind = "movedup"
            elif pct[idx] > pct[entry.pick - 1]:
                kind = "moveddown"
        log_best_effort(
            events,
            ctx,
            type="draft",
            text=_lottery_text(store, ctx, entry.tid, kind, entry.pick),
            tids=[entry.tid],
            show_notification=entry.tid == ctx.user_tid,
        )


def lottery_teams(store: ObjectStore, ctx: LeagueContext) -> list[LotteryTeam]:
    seasons = store.index_get_all("team_seasons", "season", ctx.season)
    if len(seasons) != ctx.num_teams:
        raise ValueError(f"Expected {ctx.num_teams} team seasons for {ctx.season}, found {len(seasons)}")
    return [LotteryTeam.from_season(row) for row in seasons]


def gen_order(
    store: ObjectStore,
    ctx: LeagueContext,
    rng: RandomSource,
    events: EventLog | None = None,
) -> LotteryResult:
    """Run the lottery and write the two-round draft order for ``ctx.season``.

    The top picks are drawn among non-playoff teams; the rest of round 1
    follows lottery order and round 2 is worst to best with the random
    tiebreak reversed. Every pick of the season is consumed, which is the
    point where picks stop being tradeable.
    """
    teams = lottery_teams(store, ctx)
    lottery_sort(teams, rng)
    lottery_size = min(len(LOTTERY_BASE_WEIGHTS), sum(1 for t in teams if not t.made_playoffs))
    result = run_lottery(
        teams,
        rng,
        weights=LOTTERY_BASE_WEIGHTS[:lottery_size],
        slots=min(LOTTERY_WINNER_SLOTS, lottery_size),
    )

    with store.transaction():
        draft_picks = store.index_get_all("draft_picks", "season", ctx.season)
        if not draft_picks:
            logger.info("No draft picks found for %s; generating the default set", ctx.season)
            gen_picks(store, ctx, ctx.season)
            draft_picks = store.index_get_all("draft_picks", "season", ctx.season)

        owners = {(dp.original_tid, dp.round): dp.tid for dp in draft_picks}

        def owner(original_tid: int, round_no: int) -> int:
            try:
                return owners[(original_tid, round_no)]
            except KeyError:
                raise LookupError(
                    f"No round {round_no} pick for team {original_tid} in {ctx.season}"
                ) from None

        entries: list[DraftOrderEntry] = []
        for pick_no, idx in enumerate(result.winners, start=1):
            original_tid = teams[idx].tid
            entries.append(DraftOrderEntry(round=1, pick=pick_no, tid=owner(original_tid, 1), original_tid=original_tid))

        pick_no = len(result.winners) + 1
        for idx, team in enumerate(teams):
            if idx in result.winners:
                continue
            entries.append(DraftOrderEntry(round=1, pick=pick_no, tid=owner(team.tid, 1), original_tid=team.tid))
            pick_no += 1

        # Reverse the random tiebreak so tied teams trade places in round 2.
        round_two = sorted(teams, key=lambda t: (t.winp, -t.rand_val))
        for pick_no, team in enumerate(round_two, start=1):
            entries.append(DraftOrderEntry(round=2, pick=pick_no, tid=owner(team.tid, 2), original_tid=team.tid))

        for dp in draft_picks:
            store.delete("draft_picks", dp.dpid)
        set_order(store, entries)
        _log_lottery(store, ctx, events, result, entries, owners)
    return result


def gen_order_fantasy(
    store: ObjectStore,
    ctx: LeagueContext,
    rng: RandomSource,
    position: int | None = None,
) -> list[DraftOrderEntry]:
    """Write a snake order over ``FANTASY_DRAFT_ROUNDS`` rounds.

    With ``position`` (1-based) the shuffle is redrawn until the user's team
    lands there; after ``FANTASY_SHUFFLE_ATTEMPTS`` tries the last shuffle is
    kept as is.
    """
    tids = list(range(ctx.num_teams))
    rng.shuffle(tids)
    if position is not None and 1 <= position <= ctx.num_teams:
        attempts = 0
        while tids[position - 1] != ctx.user_tid and attempts < FANTASY_SHUFFLE_ATTEMPTS:
            rng.shuffle(tids)
            attempts += 1
        if tids[position - 1] != ctx.user_tid:
            logger.info("Could not place team %s at pick %s; keeping random order", ctx.user_tid, position)

    entries: list[DraftOrderEntry] = []
    for round_no in range(1, FANTASY_DRAFT_ROUNDS + 1):
        for pick_no, tid in enumerate(tids, start=1):
            entries.append(DraftOrderEntry(round=round_no, pick=pick_no, tid=tid, original_tid=tid))
        tids.reverse()

    with store.transaction():
        set_order(store, entries)
    return entries


def select_player(
    store: ObjectStore,
    ctx: LeagueContext,
    pick: DraftOrderEntry,
    pid: int,
    events: EventLog | None = None,
    salaries: list[int] | None = None,
) -> Player:
    """Assign player ``pid`` to the team holding ``pick``."""
    player = store.get("players", pid)
    if player is None:
        raise LookupError(f"No player with pid {pid}")

    if ctx.phase != Phase.FANTASY_DRAFT and player.draft is not None:
        raise ValueError(f"{player.name} was already drafted in {player.draft.year}")

    player.tid = pick.tid
    if ctx.phase != Phase.FANTASY_DRAFT:
        ratings = player.current_ratings
        player.draft = DraftRecord(
            round=pick.round,
            pick=pick.pick,
            tid=pick.tid,
            year=ctx.season,
            original_tid=pick.original_tid,
            pot=ratings.pot,
            ovr=ratings.ovr,
            skills=list(ratings.skills),
        )
        set_contract(player, rookie_contract(ctx, pick, salaries))

    if ctx.phase == Phase.FANTASY_DRAFT and ctx.next_phase is not None and ctx.next_phase <= Phase.PLAYOFFS:
        # Fantasy draft mid-season: the player needs a stats line with the new team.
        player.stats.append(
            {"season": ctx.season, "tid": pick.tid, "playoffs": ctx.next_phase == Phase.PLAYOFFS, "gp": 0}
        )

    store.put("players", player)

    overall = pick.pick + (pick.round - 1) * ctx.num_teams
    log_best_effort(
        events,
        ctx,
        type="draft",
        text=(
            f"The {team_label(store, pick.tid)} selected {player.name} with the "
            f"{ordinal(overall)} pick in the {ctx.draft_name}."
        ),
        pids=[pid],
        tids=[pick.tid],
    )
    return player


def _require_draft_phase(ctx: LeagueContext) -> None:
    if ctx.phase not in (Phase.DRAFT, Phase.FANTASY_DRAFT):
        raise ValueError(f"No draft is running in the {ctx.season} {ctx.phase.text}; the draft is over or not started")


def draft_user_player(
    store: ObjectStore,
    ctx: LeagueContext,
    pid: int,
    events: EventLog | None = None,
) -> Player:
    """Make the pick at the head of the queue for a user-controlled team."""
    _require_draft_phase(ctx)
    order = get_order(store)
    if not order:
        raise ValueError("The draft is already over")
    pick = order[0]
    if pick.tid not in ctx.user_tids:
        raise ValueError(f"Pick {pick.pick} of round {pick.round} belongs to team {pick.tid}, not a user team")
    player = store.get("players", pid)
    if player is None:
        raise LookupError(f"No player with pid {pid}")
    if player.tid != PlayerTid.UNDRAFTED:
        raise ValueError(f"{player.name} is not available in this draft")

    with store.transaction():
        selected = select_player(store, ctx, pick, pid, events)
        set_order(store, order[1:])
    return selected


def _finish_draft(
    store: ObjectStore,
    ctx: LeagueContext,
    rng: RandomSource,
    events: EventLog | None,
    notifier: UINotifier | None,
) -> LeagueContext:
    from .phase import new_phase, save_context

    if ctx.phase != Phase.FANTASY_DRAFT:
        return new_phase(store, ctx, Phase.AFTER_DRAFT, rng, events=events, notifier=notifier)

    def _to_free_agency(player: Player) -> Player:
        return add_to_free_agents(player, ctx, Phase.FREE_AGENCY)

    def _restore_draft_class(player: Player) -> Player:
        player.tid = int(PlayerTid.UNDRAFTED)
        return player

    resume_phase = ctx.next_phase if ctx.next_phase is not None else Phase.PRESEASON
    with store.transaction():
        released = store.index_iterate("players", "tid", PlayerTid.UNDRAFTED, _to_free_agency)
        store.index_iterate("players", "tid", PlayerTid.UNDRAFTED_FANTASY_TEMP, _restore_draft_class)
        ctx = ctx.evolve(phase=resume_phase, next_phase=None)
        save_context(store, ctx)

    logger.info("Fantasy draft complete; %d undrafted players became free agents", released)
    notify_best_effort(notifier, "phase", {"season": ctx.season, "phase": int(ctx.phase), "text": f"{ctx.season} {ctx.phase.text}"})
    return ctx


def until_user_or_end(
    store: ObjectStore,
    ctx: LeagueContext,
    rng: RandomSource,
    events: EventLog | None = None,
    notifier: UINotifier | None = None,
) -> DraftRunResult:
    """Auto-draft until a user team is on the clock or the order runs out.

    The picks of one run are written together with the shortened order in a
    single transaction. A run that fails part way leaves the order as it
    found it, so calling again resumes from the first unmade pick. Outside
    a draft phase there is nothing to run and ``ValueError`` is raised.
    """
    _require_draft_phase(ctx)
    candidates = sorted(
        store.index_get_all("players", "tid", PlayerTid.UNDRAFTED),
        key=lambda p: p.value,
        reverse=True,
    )
    order = get_order(store)
    salaries = get_rookie_salaries(ctx)
    pids: list[int] = []

    with store.transaction():
        while order:
            pick = order[0]
            if pick.tid in ctx.user_tids and ctx.auto_play_seasons == 0:
                break

            if not candidates:
                logger.warning("Prospect pool ran dry with %d picks left; forfeiting them", len(order))
                order = []
                break

            # 0 = best prospect, 1 = next best, ...
            selection = int(math.floor(abs(rng.gaussian(0, DRAFT_SELECTION_STDEV))))
            selection = min(selection, len(candidates) - 1)
            player = candidates.pop(selection)
            select_player(store, ctx, pick, player.pid, events, salaries)
            order.pop(0)
            pids.append(player.pid)
        if pids or not order:
            set_order(store, order)

    if order:
        notify_best_effort(notifier, "draft", {"on_the_clock": order[0].tid, "remaining": len(order)})
        return DraftRunResult(state=DraftState.PAUSED, pids=pids, context=ctx, remaining=len(order))

    ctx = _finish_draft(store, ctx, rng, events, notifier)
    return DraftRunResult(state=DraftState.COMPLETE, pids=pids, context=ctx, remaining=0)
