"""Weighted draft lottery.

Teams are ordered worst to best (non-playoff teams first), each lottery slot
carries a number of ping-pong-ball combinations, and tied teams share the
combinations of the slots they occupy. The top picks are then drawn without
replacement from the cumulative weight table.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from itertools import accumulate
from typing import Sequence

from .config import LOTTERY_BASE_WEIGHTS, LOTTERY_WINNER_PENALTY, LOTTERY_WINNER_SLOTS
from .models import TeamSeason
from .random_source import RandomSource


@dataclass(slots=True)
class LotteryTeam:
    tid: int
    cid: int
    winp: float
    playoff_rounds_won: int = -1
    rand_val: int = 0

    @property
    def made_playoffs(self) -> bool:
        return self.playoff_rounds_won >= 0

    @classmethod
    def from_season(cls, row: TeamSeason) -> LotteryTeam:
        return cls(tid=row.tid, cid=row.cid, winp=row.winp, playoff_rounds_won=row.playoff_rounds_won)


@dataclass(slots=True)
class LotteryResult:
    teams: list[LotteryTeam]
    chances: list[int]
    chance_pct: list[float]
    winners: list[int]

    @property
    def winner_tids(self) -> list[int]:
        return [self.teams[idx].tid for idx in self.winners]


def lottery_sort(teams: list[LotteryTeam], rng: RandomSource) -> None:
    """Sort teams in place into lottery order.

    Non-playoff teams come first, then ascending win percentage. Remaining ties
    fall to a fresh random permutation, so two calls can order tied teams
    differently.
    """
    rand_values = list(range(len(teams)))
    rng.shuffle(rand_values)
    for team, rand_val in zip(teams, rand_values):
        team.rand_val = rand_val
    teams.sort(key=lambda t: (t.made_playoffs, t.winp, t.rand_val))


def update_chances(chances: list, teams: Sequence[LotteryTeam], is_final: bool = False) -> list:
    """Split combinations evenly between teams with tied records.

    ``chances`` is modified in place and returned. With ``is_final`` the split
    stays integral: the remainder goes one combination at a time to the first
    teams of the tied group, so the group total is unchanged. Without it each
    tied team gets the exact (possibly fractional) average, for display.
    """
    winp_counts = Counter(t.winp for t in teams)
    tc = 0
    for winp in sorted(winp_counts):
        val = winp_counts[winp]
        if val > 1:
            if tc + val >= len(chances):
                # Only the lottery slots carry combinations.
                val -= tc + val - len(chances)
            total = sum(chances[tc : tc + val])
            if is_final:
                remainder = total % val
                new_val = (total - remainder) // val
            else:
                remainder = 0
                new_val = total / val
            for i in range(tc, tc + val):
                chances[i] = new_val
                if remainder > 0:
                    chances[i] += 1
                    remainder -= 1
        tc += val
        if tc >= len(chances):
            break
    return chances


def chance_percentages(chances: Sequence[float]) -> list[float]:
    total = sum(chances)
    if total <= 0:
        return [0.0 for _ in chances]
    return [c / total * 100 for c in chances]


def draw_lottery_winners(chances: Sequence[int], rng: RandomSource, slots: int = LOTTERY_WINNER_SLOTS) -> list[int]:
    """Draw ``slots`` distinct lottery positions, weighted by ``chances``."""
    if sum(1 for c in chances if c > 0) < slots:
        raise ValueError(f"Need at least {slots} weighted lottery slots, got {len(chances)}")
    cumulative = list(accumulate(chances))
    total = cumulative[-1] if cumulative else 0
    winners: list[int] = []
    while len(winners) < slots:
        draw = rng.uniform_int(0, total - 1)
        idx = next(i for i, bound in enumerate(cumulative) if bound > draw)
        if idx not in winners:
            winners.append(idx)
    return winners


def run_lottery(
    teams: list[LotteryTeam],
    rng: RandomSource,
    weights: Sequence[int] = LOTTERY_BASE_WEIGHTS,
    slots: int = LOTTERY_WINNER_SLOTS,
) -> LotteryResult:
    """Resolve tied weights and draw the lottery winners.

    ``teams`` must already be in lottery order (see :func:`lottery_sort`) and
    hold at least one team per weight. Winners are penalized in ``rand_val``
    so they fall behind tied teams in later tiebreaks.
    """
    if len(teams) < len(weights):
        raise ValueError(f"Lottery needs {len(weights)} teams, got {len(teams)}")
    chances = list(weights)
    update_chances(chances, teams[: len(chances)], is_final=True)
    chance_pct = chance_percentages(chances)
    winners = draw_lottery_winners(chances, rng, slots) if slots > 0 else []
    for idx in winners:
        teams[idx].rand_val -= LOTTERY_WINNER_PENALTY
    return LotteryResult(teams=teams, chances=chances, chance_pct=chance_pct, winners=winners)


def projected_chances(teams: Sequence[LotteryTeam], weights: Sequence[int] = LOTTERY_BASE_WEIGHTS) -> list[float]:
    """Percent odds for the top pick, averaging ties without rounding."""
    size = min(len(weights), len(teams))
    chances: list[float] = list(weights[:size])
    update_chances(chances, list(teams)[:size], is_final=False)
    return chance_percentages(chances)
