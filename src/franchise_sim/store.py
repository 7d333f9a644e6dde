"""Object store for league records.

Records are grouped by kind (``players``, ``draft_picks``, ...), keyed by a
primary key field and reachable through secondary indexes. The whole store
lives in memory and is written to a single JSON file on commit.
"""
from __future__ import annotations

import copy
import json
import logging
import shutil
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator

from .models import (
    DraftOrder,
    DraftPick,
    LeagueEvent,
    Player,
    ScheduleEntry,
    Team,
    TeamSeason,
    record_to_dict,
)

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class KeyRange:
    """Inclusive range over index keys."""

    lower: Any
    upper: Any

    def __contains__(self, value: Any) -> bool:
        return self.lower <= value <= self.upper


@dataclass(slots=True)
class StoreKind:
    name: str
    key_field: str
    record_type: type | None = None
    auto_increment: bool = False
    indexes: dict[str, Callable[[Any], Any]] = field(default_factory=dict)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name)


def _set_field(record: Any, name: str, value: Any) -> None:
    if isinstance(record, dict):
        record[name] = value
    else:
        setattr(record, name, value)


DEFAULT_KINDS: tuple[StoreKind, ...] = (
    StoreKind("teams", "tid", Team),
    StoreKind(
        "team_seasons",
        "tsid",
        TeamSeason,
        auto_increment=True,
        indexes={
            "season": lambda ts: ts.season,
            "tid_season": lambda ts: (ts.tid, ts.season),
        },
    ),
    StoreKind("players", "pid", Player, auto_increment=True, indexes={"tid": lambda p: p.tid}),
    StoreKind("draft_picks", "dpid", DraftPick, auto_increment=True, indexes={"season": lambda dp: dp.season}),
    StoreKind("draft_order", "rid", DraftOrder),
    StoreKind("schedule", "gid", ScheduleEntry, auto_increment=True),
    StoreKind("events", "eid", LeagueEvent, auto_increment=True),
    StoreKind("game_attributes", "key"),
)


class ObjectStore:
    SAVE_VERSION = 1

    def __init__(self, path: str | Path | None = None, kinds: tuple[StoreKind, ...] = DEFAULT_KINDS) -> None:
        self.path = Path(path) if path is not None else None
        self.last_load_error: str = ""
        self._kinds = {kind.name: kind for kind in kinds}
        self._records: dict[str, dict[Any, Any]] = {name: {} for name in self._kinds}
        self._next_key: dict[str, int] = {name: 0 for name in self._kinds}
        self._tx_depth = 0
        self._snapshot: tuple[dict[str, dict[Any, Any]], dict[str, int]] | None = None
        self._dirty = False
        if self.path is not None:
            self._load()

    # -- records -----------------------------------------------------------

    def _kind(self, name: str) -> StoreKind:
        kind = self._kinds.get(name)
        if kind is None:
            raise StoreError(f"Unknown record kind '{name}'")
        return kind

    def get(self, kind: str, key: Any) -> Any | None:
        self._kind(kind)
        return self._records[kind].get(key)

    def get_all(self, kind: str) -> list[Any]:
        self._kind(kind)
        rows = self._records[kind]
        return [rows[key] for key in sorted(rows)]

    def count(self, kind: str) -> int:
        self._kind(kind)
        return len(self._records[kind])

    def _assign_key(self, spec: StoreKind, record: Any) -> Any:
        key = _field(record, spec.key_field)
        if key is None:
            if not spec.auto_increment:
                raise StoreError(f"{spec.name} record is missing key field '{spec.key_field}'")
            key = self._next_key[spec.name]
            _set_field(record, spec.key_field, key)
        if isinstance(key, int) and key >= self._next_key[spec.name]:
            self._next_key[spec.name] = key + 1
        return key

    def add(self, kind: str, record: Any) -> Any:
        spec = self._kind(kind)
        key = _field(record, spec.key_field)
        if key is not None and key in self._records[kind]:
            raise StoreError(f"{kind} already holds a record with key {key!r}")
        key = self._assign_key(spec, record)
        self._records[kind][key] = record
        self._dirty = True
        return key

    def put(self, kind: str, record: Any) -> Any:
        spec = self._kind(kind)
        key = self._assign_key(spec, record)
        self._records[kind][key] = record
        self._dirty = True
        return key

    def delete(self, kind: str, key: Any) -> None:
        self._kind(kind)
        if self._records[kind].pop(key, None) is not None:
            self._dirty = True

    def clear(self, kind: str) -> None:
        self._kind(kind)
        if self._records[kind]:
            self._dirty = True
        self._records[kind] = {}

    # -- indexes -----------------------------------------------------------

    def _index_keys(self, kind: str, index: str, query: Any) -> list[Any]:
        spec = self._kind(kind)
        index_fn = spec.indexes.get(index)
        if index_fn is None:
            raise StoreError(f"{kind} has no index '{index}'")
        rows = self._records[kind]
        if isinstance(query, KeyRange):
            return [key for key in sorted(rows) if index_fn(rows[key]) in query]
        return [key for key in sorted(rows) if index_fn(rows[key]) == query]

    def index_get_all(self, kind: str, index: str, query: Any) -> list[Any]:
        keys = self._index_keys(kind, index, query)
        rows = self._records[kind]
        return [rows[key] for key in keys]

    def index_iterate(self, kind: str, index: str, query: Any, visitor: Callable[[Any], Any | None]) -> int:
        """Visit every record matching ``query``.

        Matching keys are collected before the first visit, so a visitor that
        moves a record out of the index (or deletes others) cannot disturb
        the walk. A non-None return value is written back with :meth:`put`.
        """
        visited = 0
        for key in self._index_keys(kind, index, query):
            record = self._records[kind].get(key)
            if record is None:
                continue
            updated = visitor(record)
            if updated is not None:
                self.put(kind, updated)
            visited += 1
        return visited

    # -- transactions ------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    @contextmanager
    def transaction(self) -> Iterator[ObjectStore]:
        """Group writes so they land together or not at all.

        Nested calls join the outermost transaction. Any exception restores
        every kind to its state at entry and is re-raised.
        """
        outermost = self._tx_depth == 0
        if outermost:
            self._snapshot = (copy.deepcopy(self._records), dict(self._next_key))
        self._tx_depth += 1
        try:
            yield self
        except BaseException:
            self._tx_depth -= 1
            if outermost and self._snapshot is not None:
                self._records, self._next_key = self._snapshot
                self._snapshot = None
                logger.info("Rolled back store transaction")
            raise
        self._tx_depth -= 1
        if outermost:
            self._snapshot = None
            self.flush()

    # -- persistence -------------------------------------------------------

    def flush(self) -> None:
        if self.path is None or not self._dirty or self.in_transaction:
            return
        payload = {
            "save_version": self.SAVE_VERSION,
            "next_keys": self._next_key,
            "kinds": {
                name: [record_to_dict(rows[key]) for key in sorted(rows)]
                for name, rows in self._records.items()
            },
        }
        self._write_json_with_backup(self.path, payload)
        self._dirty = False

    def _write_json_with_backup(self, path: Path, payload: Any, *, with_backup: bool = True) -> None:
        if with_backup and path.exists():
            backup = path.with_suffix(path.suffix + ".bak")
            try:
                shutil.copy2(path, backup)
            except OSError:
                logger.warning("Could not refresh backup %s", backup, exc_info=True)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _load(self) -> None:
        assert self.path is not None
        if not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            self.last_load_error = f"Failed to load league store ({exc}); starting empty."
            return
        if not isinstance(raw, dict):
            self.last_load_error = "League store file has invalid format; starting empty."
            return
        version = int(raw.get("save_version", 1) or 1)
        if version > self.SAVE_VERSION:
            self.last_load_error = (
                f"Unsupported league store version {version}; app supports up to {self.SAVE_VERSION}."
            )
            return
        kinds = raw.get("kinds", {})
        if not isinstance(kinds, dict):
            self.last_load_error = "League store payload is invalid; starting empty."
            return
        for name, rows in kinds.items():
            spec = self._kinds.get(name)
            if spec is None or not isinstance(rows, list):
                continue
            for row in rows:
                if not isinstance(row, dict):
                    continue
                record = self._decode(spec, row)
                self._records[name][_field(record, spec.key_field)] = record
        next_keys = raw.get("next_keys", {})
        if isinstance(next_keys, dict):
            for name, value in next_keys.items():
                if name in self._next_key:
                    self._next_key[name] = max(self._next_key[name], int(value))
        for name, rows in self._records.items():
            int_keys = [key for key in rows if isinstance(key, int)]
            if int_keys:
                self._next_key[name] = max(self._next_key[name], max(int_keys) + 1)

    @staticmethod
    def _decode(spec: StoreKind, row: dict[str, Any]) -> Any:
        if spec.record_type is None:
            return dict(row)
        from_dict = getattr(spec.record_type, "from_dict", None)
        if from_dict is not None:
            return from_dict(row)
        return spec.record_type(**row)
