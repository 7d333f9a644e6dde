from __future__ import annotations

import os
from pathlib import Path
from threading import Lock
from typing import Any, Callable

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .league import League
from .models import Phase, Player, record_to_dict


class PhaseSelection(BaseModel):
    phase: int


class FantasyDraftSelection(BaseModel):
    position: int | None = None


class DraftPickSelection(BaseModel):
    pid: int


class TeamSeasonSelection(BaseModel):
    tid: int
    won: int
    lost: int
    playoff_rounds_won: int = -1


class AutoPlaySelection(BaseModel):
    seasons: int = 0


class SimService:
    def __init__(self, state_path: str | Path | None = None, seed: int | None = None) -> None:
        self.data_root = Path(__file__).resolve().parents[2]
        if state_path is None:
            state_path = os.environ.get("FRANCHISE_SIM_STATE_PATH") or self.data_root / "league_store.json"
        self.league = League(state_path=state_path, seed=seed)
        self._lock = Lock()

    def _guard(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except LookupError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    def _player_row(self, player: Player) -> dict[str, Any]:
        ratings = player.current_ratings
        return {
            "pid": player.pid,
            "name": player.name,
            "tid": player.tid,
            "age": self.league.context.season - player.born_year,
            "ovr": ratings.ovr,
            "pot": ratings.pot,
            "skills": list(ratings.skills),
            "value": player.value,
            "draft": record_to_dict(player.draft) if player.draft is not None else None,
            "contract": record_to_dict(player.contract) if player.contract is not None else None,
        }

    def meta(self) -> dict[str, Any]:
        ctx = self.league.context
        return {
            "season": ctx.season,
            "phase": int(ctx.phase),
            "phase_text": ctx.phase.text,
            "next_phase": int(ctx.next_phase) if ctx.next_phase is not None else None,
            "user_tid": ctx.user_tid,
            "num_teams": ctx.num_teams,
            "auto_play_seasons": ctx.auto_play_seasons,
            "load_error": self.league.last_load_error,
            "teams": [
                {"tid": t.tid, "cid": t.cid, "did": t.did, "abbrev": t.abbrev, "name": t.full_name}
                for t in self.league.teams
            ],
        }

    def draft_order(self) -> list[dict[str, Any]]:
        return [record_to_dict(entry) for entry in self.league.draft_order()]

    def lottery_odds(self) -> list[dict[str, Any]]:
        return self._guard(self.league.lottery_odds)

    def prospects(self, limit: int = 100) -> list[dict[str, Any]]:
        return [self._player_row(p) for p in self.league.prospects()[: max(1, limit)]]

    def gen_order(self) -> dict[str, Any]:
        if self.league.draft_order():
            raise HTTPException(status_code=400, detail="Draft order already set")
        result = self._guard(self.league.gen_order)
        return {
            "winners": result.winner_tids,
            "chances": [
                {"tid": team.tid, "chance": round(pct, 2)} for team, pct in zip(result.teams, result.chance_pct)
            ],
            "order": self.draft_order(),
        }

    def start_fantasy_draft(self, position: int | None) -> dict[str, Any]:
        self._guard(self.league.start_fantasy_draft, position)
        return {"ok": True, "meta": self.meta(), "order": self.draft_order()}

    def until_user_or_end(self) -> dict[str, Any]:
        result = self._guard(self.league.until_user_or_end)
        order = self.league.draft_order()
        payload = result.to_dict()
        payload["on_the_clock"] = order[0].tid if order else None
        return payload

    def draft_pick(self, pid: int) -> dict[str, Any]:
        player = self._guard(self.league.draft_user_player, pid)
        return {"ok": True, "player": self._player_row(player), "remaining": len(self.league.draft_order())}

    def set_team_season(self, payload: TeamSeasonSelection) -> dict[str, Any]:
        self._guard(
            self.league.record_team_season,
            payload.tid,
            payload.won,
            payload.lost,
            payload.playoff_rounds_won,
        )
        return {"ok": True}

    def set_auto_play(self, seasons: int) -> dict[str, Any]:
        ctx = self._guard(self.league.set_auto_play, seasons)
        return {"ok": True, "auto_play_seasons": ctx.auto_play_seasons}

    def new_phase(self, phase: int) -> dict[str, Any]:
        try:
            target = Phase(phase)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Unknown phase {phase}") from exc
        self._guard(self.league.new_phase, target)
        return self.meta()

    def schedule(self) -> list[dict[str, Any]]:
        return [record_to_dict(game) for game in self.league.schedule()]

    def upcoming(self, tid: int | None, limit: int) -> list[dict[str, Any]]:
        return self.league.upcoming(tid=tid, limit=max(1, limit))

    def news(self, limit: int = 80) -> list[dict[str, Any]]:
        return [record_to_dict(row) for row in self.league.news(limit=max(1, min(limit, 250)))]


service = SimService()
app = FastAPI(title="Franchise Sim API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/meta")
def meta() -> dict[str, Any]:
    with service._lock:
        return service.meta()


@app.post("/api/team-season")
def set_team_season(payload: TeamSeasonSelection) -> dict[str, Any]:
    with service._lock:
        return service.set_team_season(payload)


@app.post("/api/auto-play")
def set_auto_play(payload: AutoPlaySelection) -> dict[str, Any]:
    with service._lock:
        return service.set_auto_play(payload.seasons)


@app.get("/api/draft/order")
def draft_order() -> list[dict[str, Any]]:
    with service._lock:
        return service.draft_order()


@app.get("/api/draft/lottery-odds")
def lottery_odds() -> list[dict[str, Any]]:
    with service._lock:
        return service.lottery_odds()


@app.get("/api/draft/prospects")
def prospects(limit: int = 100) -> list[dict[str, Any]]:
    with service._lock:
        return service.prospects(limit=limit)


@app.post("/api/draft/order")
def gen_draft_order() -> dict[str, Any]:
    with service._lock:
        return service.gen_order()


@app.post("/api/draft/fantasy")
def fantasy_draft(payload: FantasyDraftSelection) -> dict[str, Any]:
    with service._lock:
        return service.start_fantasy_draft(position=payload.position)


@app.post("/api/draft/until-user-or-end")
def draft_until_user_or_end() -> dict[str, Any]:
    with service._lock:
        return service.until_user_or_end()


@app.post("/api/draft/pick")
def draft_pick(payload: DraftPickSelection) -> dict[str, Any]:
    with service._lock:
        return service.draft_pick(pid=payload.pid)


@app.post("/api/phase")
def set_phase(payload: PhaseSelection) -> dict[str, Any]:
    with service._lock:
        return service.new_phase(payload.phase)


@app.get("/api/schedule")
def schedule() -> list[dict[str, Any]]:
    with service._lock:
        return service.schedule()


@app.get("/api/upcoming")
def upcoming(tid: int | None = None, limit: int = 5) -> list[dict[str, Any]]:
    with service._lock:
        return service.upcoming(tid=tid, limit=limit)


@app.get("/api/news")
def news(limit: int = 80) -> list[dict[str, Any]]:
    with service._lock:
        return service.news(limit=limit)
