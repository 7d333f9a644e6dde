from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum, IntEnum
from typing import Any


class Phase(IntEnum):
    FANTASY_DRAFT = -1
    PRESEASON = 0
    REGULAR_SEASON = 1
    PLAYOFFS = 2
    DRAFT_LOTTERY = 3
    DRAFT = 4
    AFTER_DRAFT = 5
    RESIGN_PLAYERS = 6
    FREE_AGENCY = 7

    @property
    def text(self) -> str:
        return self.name.replace("_", " ").lower()


class PlayerTid(IntEnum):
    """Pseudo team ids for players not on a roster."""

    FREE_AGENT = -1
    UNDRAFTED = -2
    RETIRED = -3
    UNDRAFTED_2 = -4
    UNDRAFTED_3 = -5
    UNDRAFTED_FANTASY_TEMP = -6


class DraftState(Enum):
    PAUSED = "paused"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class LeagueContext:
    """League-wide parameters handed to every core call.

    Never mutated in place; operations that move the league forward return a
    new context built with :meth:`evolve`.
    """

    season: int
    phase: Phase = Phase.PRESEASON
    next_phase: Phase | None = None
    num_teams: int = 30
    user_tid: int = 0
    user_tids: tuple[int, ...] = (0,)
    auto_play_seasons: int = 0
    min_contract: int = 500
    max_contract: int = 20000

    def evolve(self, **changes: Any) -> LeagueContext:
        return replace(self, **changes)

    @property
    def draft_name(self) -> str:
        if self.phase == Phase.FANTASY_DRAFT:
            return f"{self.season} fantasy draft"
        return f"{self.season} draft"

    def to_dict(self) -> dict[str, Any]:
        return {
            "season": self.season,
            "phase": int(self.phase),
            "next_phase": int(self.next_phase) if self.next_phase is not None else None,
            "num_teams": self.num_teams,
            "user_tid": self.user_tid,
            "user_tids": list(self.user_tids),
            "auto_play_seasons": self.auto_play_seasons,
            "min_contract": self.min_contract,
            "max_contract": self.max_contract,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LeagueContext:
        next_phase = raw.get("next_phase")
        user_tid = int(raw.get("user_tid", 0))
        return cls(
            season=int(raw["season"]),
            phase=Phase(int(raw.get("phase", Phase.PRESEASON))),
            next_phase=Phase(int(next_phase)) if next_phase is not None else None,
            num_teams=int(raw.get("num_teams", 30)),
            user_tid=user_tid,
            user_tids=tuple(int(t) for t in raw.get("user_tids", [user_tid])),
            auto_play_seasons=int(raw.get("auto_play_seasons", 0)),
            min_contract=int(raw.get("min_contract", 500)),
            max_contract=int(raw.get("max_contract", 20000)),
        )


@dataclass(slots=True)
class Team:
    tid: int
    cid: int
    did: int
    region: str
    name: str
    abbrev: str

    @property
    def full_name(self) -> str:
        return f"{self.region} {self.name}"


@dataclass(slots=True)
class TeamSeason:
    tid: int
    season: int
    cid: int = 0
    won: int = 0
    lost: int = 0
    # Negative means the team missed the playoffs.
    playoff_rounds_won: int = -1
    tsid: int | None = None

    @property
    def winp(self) -> float:
        gp = self.won + self.lost
        if gp <= 0:
            return 0.0
        return self.won / gp


@dataclass(slots=True)
class DraftPick:
    tid: int
    original_tid: int
    round: int
    season: int
    dpid: int | None = None


@dataclass(slots=True)
class DraftOrderEntry:
    round: int
    pick: int
    tid: int
    original_tid: int


@dataclass(slots=True)
class DraftOrder:
    rid: int = 0
    entries: list[DraftOrderEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DraftOrder:
        return cls(
            rid=int(raw.get("rid", 0)),
            entries=[DraftOrderEntry(**row) for row in raw.get("entries", [])],
        )


@dataclass(slots=True)
class Ratings:
    season: int
    ovr: int
    pot: int
    skills: list[str] = field(default_factory=list)


@dataclass(slots=True)
class DraftRecord:
    round: int
    pick: int
    tid: int
    year: int
    original_tid: int
    pot: int
    ovr: int
    skills: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Contract:
    amount: int
    exp: int
    rookie: bool = False


@dataclass(slots=True)
class Player:
    first_name: str
    last_name: str
    tid: int
    born_year: int
    draft_year: int
    value: float = 0.0
    ratings: list[Ratings] = field(default_factory=list)
    draft: DraftRecord | None = None
    contract: Contract | None = None
    stats: list[dict[str, Any]] = field(default_factory=list)
    pid: int | None = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def current_ratings(self) -> Ratings:
        return self.ratings[-1]

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Player:
        draft = raw.get("draft")
        contract = raw.get("contract")
        return cls(
            first_name=str(raw["first_name"]),
            last_name=str(raw["last_name"]),
            tid=int(raw["tid"]),
            born_year=int(raw["born_year"]),
            draft_year=int(raw["draft_year"]),
            value=float(raw.get("value", 0.0)),
            ratings=[Ratings(**row) for row in raw.get("ratings", [])],
            draft=DraftRecord(**draft) if isinstance(draft, dict) else None,
            contract=Contract(**contract) if isinstance(contract, dict) else None,
            stats=[dict(row) for row in raw.get("stats", []) if isinstance(row, dict)],
            pid=raw.get("pid"),
        )


@dataclass(slots=True)
class ScheduleEntry:
    day: int
    home_tid: int
    away_tid: int
    gid: int | None = None

    @property
    def tids(self) -> tuple[int, int]:
        return (self.home_tid, self.away_tid)


@dataclass(slots=True)
class LeagueEvent:
    type: str
    text: str
    season: int
    pids: list[int] = field(default_factory=list)
    tids: list[int] = field(default_factory=list)
    show_notification: bool = False
    eid: int | None = None


@dataclass(slots=True)
class DraftRunResult:
    state: DraftState
    pids: list[int]
    context: LeagueContext
    remaining: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "pids": list(self.pids),
            "remaining": self.remaining,
            "phase": int(self.context.phase),
        }


def record_to_dict(record: Any) -> dict[str, Any]:
    if isinstance(record, dict):
        return dict(record)
    if hasattr(record, "to_dict"):
        return record.to_dict()
    return asdict(record)
