# src/autopilot_desk/journal/history_store.py
"""Durable autopilot history persisted to a JSON file."""
import asyncio
import json
import logging
import os
import time
import uuid
from pathlib import Path

import aiofiles

from autopilot_desk.journal.models import AutopilotJournalEntry, HistoryStats
from autopilot_desk.journal.settings import JournalSettings
from autopilot_desk.session.models import TradingSessionState

logger = logging.getLogger(__name__)


class AutopilotHistoryStore:
    """Append-mostly history of every journaled plan.

    All rows live in a single JSON list at ``settings.history_file``. Writes
    are serialized by a lock because the journal fires them as independent
    background tasks.
    """

    def __init__(self, settings: JournalSettings) -> None:
        """Initialize the history store.

        Args:
            settings: Journal configuration settings.
        """
        self._settings = settings
        self._path = Path(settings.history_file)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        """Return the history file path."""
        return self._path

    async def load(self) -> list[dict]:
        """Read all history rows, oldest first.

        Returns:
            List of row dicts; empty if the file is missing, blank or
            unreadable. A corrupt file is replaced on the next write.
        """
        if not self._path.exists():
            return []

        async with aiofiles.open(self._path, "r") as f:
            content = await f.read()

        if not content.strip():
            return []
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt history file {self._path}, starting empty: {e}")
            return []
        return data if isinstance(data, list) else []

    async def _save(self, rows: list[dict]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        async with aiofiles.open(tmp, "w") as f:
            await f.write(json.dumps(rows, indent=2, default=str))
        os.replace(tmp, self._path)

    def _entry_to_row(self, entry: AutopilotJournalEntry, session: TradingSessionState | None) -> dict:
        """Convert a journal entry plus session snapshot to a history row."""
        return {
            "id": f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}",
            "journal_id": entry.id,
            "created_at": entry.created_at.isoformat() if entry.created_at else None,
            "instrument_symbol": entry.instrument_symbol,
            "timeframe": session.timeframe if session else None,
            "environment": entry.environment.value,
            "autopilot_mode": entry.autopilot_mode.value,
            "direction": entry.direction.value,
            "risk_percent": entry.risk_percent,
            "allowed": entry.allowed,
            "recommended": entry.recommended,
            "source": entry.source.value,
            "execution_status": entry.execution_status.value,
            "risk_reasons": list(entry.risk_reasons),
            "risk_warnings": list(entry.risk_warnings),
            "plan_summary": entry.plan_summary,
            "execution_price": entry.execution_price,
            "close_price": entry.close_price,
            "pnl": entry.pnl,
        }

    async def append(
        self, entry: AutopilotJournalEntry, session: TradingSessionState | None = None
    ) -> dict:
        """Append a new history row for a journal entry.

        Args:
            entry: The journal entry just created.
            session: Session snapshot at creation time.

        Returns:
            The stored row.
        """
        row = self._entry_to_row(entry, session)
        async with self._lock:
            rows = await self.load()
            rows.append(row)
            await self._save(rows)
        return row

    async def record_outcome(
        self, entry: AutopilotJournalEntry, session: TradingSessionState | None = None
    ) -> dict:
        """Store the final execution outcome of a journal entry.

        Updates the row with the same journal id, or appends a new row when
        the original append never made it to disk.

        Returns:
            The updated or newly stored row.
        """
        async with self._lock:
            rows = await self.load()
            for row in rows:
                if row.get("journal_id") == entry.id:
                    row["execution_status"] = entry.execution_status.value
                    row["execution_price"] = entry.execution_price
                    row["close_price"] = entry.close_price
                    row["pnl"] = entry.pnl
                    break
            else:
                row = self._entry_to_row(entry, session)
                rows.append(row)
            await self._save(rows)
        return row

    async def get_similar(
        self, session: TradingSessionState, limit: int | None = None
    ) -> list[dict]:
        """Get history rows from a context similar to the session.

        Filters on instrument, environment and autopilot mode. Timeframe is
        only compared when both sides have one.

        Args:
            session: Session to compare against.
            limit: Max rows to return; defaults to settings.

        Returns:
            Matching rows, newest first.
        """
        limit = limit or self._settings.similar_history_limit
        symbol = session.instrument.symbol
        environment = session.environment.value
        mode = session.autopilot_mode.value
        timeframe = session.timeframe

        def matches(row: dict) -> bool:
            if row.get("instrument_symbol") and row["instrument_symbol"] != symbol:
                return False
            if row.get("environment") and row["environment"] != environment:
                return False
            if row.get("autopilot_mode") and row["autopilot_mode"] != mode:
                return False
            if timeframe and row.get("timeframe") and row["timeframe"] != timeframe:
                return False
            return True

        rows = [row for row in await self.load() if matches(row)]
        rows.sort(key=lambda row: row.get("created_at") or "", reverse=True)
        return rows[:limit]

    async def get_stats(
        self, session: TradingSessionState, limit: int | None = None
    ) -> HistoryStats:
        """Compute win rate, average risk/pnl and streaks for similar history.

        Args:
            session: Session to compare against.
            limit: Max rows considered; defaults to settings.

        Returns:
            HistoryStats for the matching rows.
        """
        rows = await self.get_similar(session, limit or self._settings.stats_history_limit)
        if not rows:
            return HistoryStats()

        closed = [
            row for row in rows
            if row.get("execution_status") == "executed" and isinstance(row.get("pnl"), (int, float))
        ]
        wins = sum(1 for row in closed if row["pnl"] > 0)
        losses = sum(1 for row in closed if row["pnl"] < 0)

        losing_streak = 0
        for row in closed:
            if row["pnl"] < 0:
                losing_streak += 1
            else:
                break

        risks = [row["risk_percent"] for row in rows if isinstance(row.get("risk_percent"), (int, float))]

        recent = rows[:10]
        longs = sum(1 for row in recent if row.get("direction") == "long")
        shorts = sum(1 for row in recent if row.get("direction") == "short")
        bias = None
        if longs > shorts:
            bias = "long"
        elif shorts > longs:
            bias = "short"

        return HistoryStats(
            total=len(rows),
            closed=len(closed),
            wins=wins,
            losses=losses,
            breakeven=len(closed) - wins - losses,
            win_rate=(wins / len(closed)) * 100 if closed else 0.0,
            avg_risk=sum(risks) / len(risks) if risks else 0.0,
            avg_pnl=sum(row["pnl"] for row in closed) / len(closed) if closed else 0.0,
            losing_streak=losing_streak,
            recent_direction_bias=bias,
            entries=rows,
        )
