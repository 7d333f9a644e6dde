from franchise_sim.config import ROOKIE_SALARY_BASE
from franchise_sim.contracts import add_to_free_agents, get_rookie_salaries, rookie_contract
from franchise_sim.models import DraftOrderEntry, LeagueContext, Phase, Player, PlayerTid, Ratings


def _player(value: float = 60.0) -> Player:
    return Player(
        first_name="Test",
        last_name="Prospect",
        tid=int(PlayerTid.UNDRAFTED),
        born_year=2005,
        draft_year=2025,
        value=value,
        ratings=[Ratings(season=2025, ovr=45, pot=70)],
    )


def test_default_scale_matches_base_table() -> None:
    salaries = get_rookie_salaries(LeagueContext(season=2025))
    assert salaries == list(ROOKIE_SALARY_BASE)
    assert len(salaries) == 60


def test_scale_pads_larger_leagues_with_minimum_deals() -> None:
    salaries = get_rookie_salaries(LeagueContext(season=2025, num_teams=32))
    assert len(salaries) == 64
    assert salaries[:60] == list(ROOKIE_SALARY_BASE)
    assert salaries[60:] == [500, 500, 500, 500]


def test_scale_trims_smaller_leagues() -> None:
    salaries = get_rookie_salaries(LeagueContext(season=2025, num_teams=20))
    assert salaries == list(ROOKIE_SALARY_BASE[:40])


def test_scale_follows_custom_contract_bounds() -> None:
    salaries = get_rookie_salaries(LeagueContext(season=2025, min_contract=750, max_contract=30000))
    assert salaries[0] == 7500
    assert salaries[1] == 6750
    assert salaries[-1] == 750


def test_rookie_contract_length_depends_on_round() -> None:
    ctx = LeagueContext(season=2025)
    first = rookie_contract(ctx, DraftOrderEntry(round=1, pick=1, tid=4, original_tid=4))
    second = rookie_contract(ctx, DraftOrderEntry(round=2, pick=1, tid=4, original_tid=4))
    assert (first.amount, first.exp, first.rookie) == (5000, 2028, True)
    assert (second.amount, second.exp, second.rookie) == (500, 2027, True)


def test_rookie_contract_indexes_by_league_size() -> None:
    ctx = LeagueContext(season=2025, num_teams=10)
    contract = rookie_contract(ctx, DraftOrderEntry(round=2, pick=3, tid=1, original_tid=1))
    assert contract.amount == ROOKIE_SALARY_BASE[12]


def test_free_agents_signed_late_get_an_extra_year() -> None:
    ctx = LeagueContext(season=2025)
    early = add_to_free_agents(_player(), ctx, Phase.REGULAR_SEASON)
    late = add_to_free_agents(_player(), ctx, Phase.FREE_AGENCY)
    assert early.tid == PlayerTid.FREE_AGENT
    assert late.contract.exp == early.contract.exp + 1
    assert ctx.min_contract <= early.contract.amount <= ctx.max_contract


def test_free_agent_asking_amount_rises_with_value() -> None:
    ctx = LeagueContext(season=2025)
    weak = add_to_free_agents(_player(value=35), ctx, Phase.PRESEASON)
    strong = add_to_free_agents(_player(value=90), ctx, Phase.PRESEASON)
    assert weak.contract.amount == ctx.min_contract
    assert strong.contract.amount > weak.contract.amount


def test_rescaled_table_stays_monotonic() -> None:
    for min_contract, max_contract in ((750, 30000), (1000, 15000), (500, 40000)):
        ctx = LeagueContext(season=2025, min_contract=min_contract, max_contract=max_contract)
        salaries = get_rookie_salaries(ctx)
        assert all(a >= b for a, b in zip(salaries, salaries[1:]))
        assert salaries[-1] == min_contract
