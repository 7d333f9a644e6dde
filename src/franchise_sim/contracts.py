from __future__ import annotations

import math

from .config import (
    DEFAULT_MAX_CONTRACT,
    DEFAULT_MIN_CONTRACT,
    DRAFT_ROUNDS,
    ROOKIE_SALARY_BASE,
    ROOKIE_SALARY_FLOOR,
    ROOKIE_SALARY_SPREAD,
)
from .models import Contract, DraftOrderEntry, LeagueContext, Phase, Player, PlayerTid


def _round_to_ten(amount: float) -> int:
    return int(math.floor(amount / 10 + 0.5)) * 10


def get_rookie_salaries(ctx: LeagueContext) -> list[int]:
    """Rookie scale for every pick of a draft, in thousands per year.

    The base table is padded with minimum deals or trimmed from the bottom to
    match ``num_teams * DRAFT_ROUNDS`` picks. Non-default contract bounds
    rescale it so the top pick earns a quarter of the max contract.
    """
    salaries = list(ROOKIE_SALARY_BASE)
    while ctx.num_teams * DRAFT_ROUNDS > len(salaries):
        salaries.append(ROOKIE_SALARY_FLOOR)
    while ctx.num_teams * DRAFT_ROUNDS < len(salaries):
        salaries.pop()

    if ctx.min_contract != DEFAULT_MIN_CONTRACT or ctx.max_contract != DEFAULT_MAX_CONTRACT:
        scale = (0.25 * ctx.max_contract - ctx.min_contract) / ROOKIE_SALARY_SPREAD
        salaries = [_round_to_ten((s - ROOKIE_SALARY_FLOOR) * scale + ctx.min_contract) for s in salaries]
    return salaries


def rookie_contract(ctx: LeagueContext, pick: DraftOrderEntry, salaries: list[int] | None = None) -> Contract:
    if salaries is None:
        salaries = get_rookie_salaries(ctx)
    idx = pick.pick - 1 + ctx.num_teams * (pick.round - 1)
    amount = salaries[idx] if 0 <= idx < len(salaries) else ctx.min_contract
    # 3 years for the 1st round, 2 for the 2nd.
    years = 4 - pick.round
    return Contract(amount=amount, exp=ctx.season + years, rookie=True)


def set_contract(player: Player, contract: Contract) -> None:
    player.contract = contract


def free_agent_contract(ctx: LeagueContext, player: Player) -> Contract:
    quality = max(0.0, min(1.0, (player.value - 40.0) / 60.0))
    amount = _round_to_ten(ctx.min_contract + quality * quality * (ctx.max_contract - ctx.min_contract))
    amount = max(ctx.min_contract, min(ctx.max_contract, amount))
    years = 1 + int(quality * 4)
    return Contract(amount=amount, exp=ctx.season + years)


def add_to_free_agents(player: Player, ctx: LeagueContext, phase: Phase) -> Player:
    contract = free_agent_contract(ctx, player)
    if phase > Phase.RESIGN_PLAYERS:
        # Deals signed after re-signing season start counting next season.
        contract.exp += 1
    player.tid = int(PlayerTid.FREE_AGENT)
    set_contract(player, contract)
    return player
