"""Durable store: JSON array file per collection plus an append-only log.

Layout under the data directory:
- users.json, identities.json          (persist across years)
- <year>/reservations.json, blackouts.json, events.json, holidays.json,
  teams.json, logs.txt                  (one directory per calendar year)

Reads happen once at startup and are strict: a corrupt file raises
InitializationError. Writes are best-effort: failures are logged and
reported as False, never raised into the commit path, because the in-memory
collections stay authoritative for the life of the process.
"""
import asyncio
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from field_scheduler.core.errors import InitializationError
from field_scheduler.models.base import Record
from field_scheduler.models.log_entry import log_entry_adapter
from field_scheduler.services.collections import COLLECTIONS, EntityKind, MigrationPolicy
from field_scheduler.util.timeutil import utcnow

logger = logging.getLogger(__name__)

LOGS_FILENAME = "logs.txt"


class DurableStore:
    def __init__(
        self,
        data_dir: str | Path,
        year: int,
        policy: MigrationPolicy,
        disable_writes: bool = False,
    ) -> None:
        self.data_dir = Path(data_dir).resolve()
        self.year = year
        self.policy = policy
        self.disable_writes = disable_writes

    def path_for(self, kind: EntityKind) -> Path:
        spec = COLLECTIONS[kind]
        if spec.yearly:
            return self.data_dir / str(self.year) / spec.filename
        return self.data_dir / spec.filename

    @property
    def logs_path(self) -> Path:
        return self.data_dir / str(self.year) / LOGS_FILENAME

    # ── reads ──────────────────────────────────────────────────────

    async def read_collection(self, kind: EntityKind, now: Optional[datetime] = None) -> list[Any]:
        """Load, migrate and validate one collection. Creates missing files as []."""
        spec = COLLECTIONS[kind]
        path = self.path_for(kind)
        text = await asyncio.to_thread(_read_or_create, path)

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InitializationError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(raw, list):
            raise InitializationError(f"Invalid data in {path}: expected a JSON array")

        raw = spec.migrate(raw, now or utcnow(), self.policy)
        try:
            records = spec.load(raw)
        except PydanticValidationError as exc:
            raise InitializationError(f"Invalid record in {path}: {exc}") from exc

        logger.info("Loaded %d %s from %s", len(records), kind.value, path)
        return records

    async def read_logs(self) -> list[Any]:
        """Parse this year's log. Malformed lines are skipped."""
        text = await asyncio.to_thread(_read_text, self.logs_path)
        entries = []
        for lineno, line in enumerate((text or "").splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(log_entry_adapter.validate_json(line))
            except PydanticValidationError:
                logger.warning("Skipping malformed log line %d in %s", lineno, self.logs_path)
        return entries

    # ── writes (best-effort) ───────────────────────────────────────

    async def write_collection(self, kind: EntityKind, records: list[Any]) -> bool:
        """Rewrite the collection file. Returns False if the write failed."""
        if self.disable_writes:
            return True
        path = self.path_for(kind)
        # Serialize now, on the loop, so later mutations can't leak into this write.
        payload = json.dumps(COLLECTIONS[kind].dump(records), indent=2)
        try:
            await asyncio.to_thread(_replace_file, path, payload)
        except OSError:
            logger.exception("Error writing to file %s", path)
            return False
        return True

    async def append_log(self, entry: Record) -> bool:
        """Append one JSON line to this year's log. Returns False on failure."""
        if self.disable_writes:
            return True
        line = json.dumps(entry.to_json()) + "\n"
        try:
            await asyncio.to_thread(_append_line, self.logs_path, line)
        except OSError:
            logger.exception("Error appending to logs file %s", self.logs_path)
            return False
        return True


def _read_or_create(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("[]", encoding="utf-8")
        logger.info("Created empty data file %s", path)
        return "[]"
    except OSError as exc:
        raise InitializationError(f"Cannot read {path}: {exc}") from exc


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def _replace_file(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(payload, encoding="utf-8")
    os.replace(tmp, path)


def _append_line(path: Path, line: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(line)
