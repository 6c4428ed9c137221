from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from billshare.config import Settings
from billshare.logging import get_logger
from billshare.models import Participant, Snapshot
from billshare.state import SessionState
from billshare.storage.db import Database
from billshare.storage.schema import dump_snapshots, load_snapshots

DEFAULT_SLOT = "savedBills"


class SnapshotStoreError(RuntimeError):
    pass


class SnapshotStore(Protocol):
    async def load(self) -> list[Snapshot]: ...

    async def save(self, snapshots: list[Snapshot]) -> None: ...

    async def close(self) -> None: ...


class KeyValueDB(Protocol):
    async def fetchval(self, query: str, *args: object) -> object: ...

    async def execute(self, query: str, *args: object) -> str: ...


def _decode(raw: Optional[str], slot: str) -> list[Snapshot]:
    if not raw:
        return []
    try:
        return load_snapshots(raw)
    except ValidationError as exc:
        raise SnapshotStoreError(f"Slot {slot!r} holds malformed snapshots") from exc


class InMemorySnapshotStore:
    def __init__(self) -> None:
        self._raw: Optional[str] = None

    async def load(self) -> list[Snapshot]:
        return _decode(self._raw, DEFAULT_SLOT)

    async def save(self, snapshots: list[Snapshot]) -> None:
        self._raw = dump_snapshots(snapshots)

    async def close(self) -> None:
        return None


class JsonFileSnapshotStore:
    """A JSON object on disk used as a key-value store; one key per slot."""

    def __init__(self, path: Path, slot: str = DEFAULT_SLOT) -> None:
        self._path = Path(path)
        self._slot = slot

    def _read_slots(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SnapshotStoreError(f"Store file {self._path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise SnapshotStoreError(f"Store file {self._path} is not a key-value object")
        return data

    def _write_slot(self, value: str) -> None:
        slots = self._read_slots()
        slots[self._slot] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(slots, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self._path)

    async def load(self) -> list[Snapshot]:
        slots = await asyncio.to_thread(self._read_slots)
        return _decode(slots.get(self._slot), self._slot)

    async def save(self, snapshots: list[Snapshot]) -> None:
        await asyncio.to_thread(self._write_slot, dump_snapshots(snapshots))

    async def close(self) -> None:
        return None


class PostgresSnapshotStore:
    def __init__(self, db: KeyValueDB, slot: str = DEFAULT_SLOT) -> None:
        self.db = db
        self._slot = slot

    async def load(self) -> list[Snapshot]:
        raw = await self.db.fetchval("SELECT value FROM kv_store WHERE key = $1", self._slot)
        return _decode(raw, self._slot)  # type: ignore[arg-type]

    async def save(self, snapshots: list[Snapshot]) -> None:
        await self.db.execute(
            """
            INSERT INTO kv_store (key, value)
            VALUES ($1, $2)
            ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = now()
            """,
            self._slot,
            dump_snapshots(snapshots),
        )

    async def close(self) -> None:
        close = getattr(self.db, "close", None)
        if close is not None:
            await close()


def snapshot_id_for(now: datetime) -> str:
    return str(int(now.timestamp() * 1000))


def build_snapshot(state: SessionState, now: datetime, snapshot_id: Optional[str] = None) -> Snapshot:
    if state.bill is None:
        raise SnapshotStoreError("There is no bill to save")
    participants = tuple(
        Participant(id=p.id, name=p.name, claims=dict(p.claims)) for p in state.participants
    )
    return Snapshot(
        id=snapshot_id or state.current_snapshot_id or snapshot_id_for(now),
        date=now,
        bill=state.bill,
        participants=participants,
        image_preview=state.image_preview,
    )


def _sort_key(snapshot: Snapshot) -> tuple[int, str]:
    return (int(snapshot.id), snapshot.id) if snapshot.id.isdigit() else (0, snapshot.id)


class SnapshotRepository:
    """Saved bills kept in one slot; every change rewrites the whole slot."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store
        self._log = get_logger(__name__)

    async def list_snapshots(self) -> list[Snapshot]:
        snapshots = await self.store.load()
        return sorted(snapshots, key=_sort_key, reverse=True)

    async def get(self, snapshot_id: str) -> Optional[Snapshot]:
        for snapshot in await self.store.load():
            if snapshot.id == snapshot_id:
                return snapshot
        return None

    async def save(self, state: SessionState, now: Optional[datetime] = None) -> Snapshot:
        now = now or datetime.now(timezone.utc)
        snapshot = build_snapshot(state, now)
        snapshots = await self.store.load()

        if any(s.id == snapshot.id for s in snapshots):
            updated = [snapshot if s.id == snapshot.id else s for s in snapshots]
            self._log.info("snapshot.updated", snapshot_id=snapshot.id)
        else:
            updated = [*snapshots, snapshot]
            self._log.info("snapshot.saved", snapshot_id=snapshot.id)

        await self.store.save(updated)
        return snapshot

    async def delete(self, snapshot_id: str) -> bool:
        snapshots = await self.store.load()
        remaining = [s for s in snapshots if s.id != snapshot_id]
        if len(remaining) == len(snapshots):
            return False
        await self.store.save(remaining)
        self._log.info("snapshot.deleted", snapshot_id=snapshot_id)
        return True


def create_store(settings: Settings) -> SnapshotStore:
    if settings.store == "memory":
        return InMemorySnapshotStore()
    if settings.store == "postgres":
        if not settings.database_url:
            raise SnapshotStoreError("DATABASE_URL is required for the postgres store")
        return PostgresSnapshotStore(Database(settings.database_url), settings.store_slot)
    return JsonFileSnapshotStore(settings.resolved_store_path, settings.store_slot)
