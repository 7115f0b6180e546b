# src/autopilot_desk/journal/autopilot_journal.py
"""In-memory autopilot journal with fire-and-forget durable history."""
import asyncio
import logging
import time
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Coroutine

from autopilot_desk.journal.history_store import AutopilotHistoryStore
from autopilot_desk.journal.models import AutopilotJournalEntry, ExecutionStatus, JournalSource
from autopilot_desk.planner.models import AutopilotPlanRequest, AutopilotPlanResponse
from autopilot_desk.session.models import TradingSessionState

logger = logging.getLogger(__name__)


class AutopilotJournal:
    """Session-scoped record of every plan and its execution outcome.

    The local entry list is authoritative. History writes run as background
    tasks; their failures are logged and never roll back or block the
    journal.
    """

    def __init__(self, history_store: AutopilotHistoryStore | None = None) -> None:
        """Initialize the journal.

        Args:
            history_store: Durable store for history writes. None disables them.
        """
        self._history = history_store
        self._entries: list[AutopilotJournalEntry] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def entries(self) -> list[AutopilotJournalEntry]:
        """Return all entries, oldest first."""
        return list(self._entries)

    def get_entry(self, entry_id: str) -> AutopilotJournalEntry | None:
        """Return the entry with the given id, if any."""
        return next((e for e in self._entries if e.id == entry_id), None)

    def add_entry(
        self,
        entry: AutopilotJournalEntry,
        session: TradingSessionState | None = None,
    ) -> str:
        """Append an entry and assign its id and timestamp.

        Args:
            entry: Entry fields; any id/created_at on it is replaced.
            session: Session snapshot sent along to the history store.

        Returns:
            The new entry id.
        """
        entry_id = f"aj_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
        stored = replace(entry, id=entry_id, created_at=datetime.now())
        self._entries.append(stored)

        if self._history is not None:
            self._spawn(self._history.append(replace(stored), session), f"append {entry_id}")

        return entry_id

    def add_plan(
        self,
        session: TradingSessionState,
        request: AutopilotPlanRequest,
        plan: AutopilotPlanResponse,
        source: JournalSource = JournalSource.OTHER,
    ) -> str:
        """Journal a planner result for the session's instrument.

        Returns:
            The new entry id.
        """
        return self.add_entry(
            AutopilotJournalEntry(
                instrument_symbol=session.instrument.symbol,
                direction=request.direction,
                risk_percent=request.risk_percent,
                environment=session.environment,
                autopilot_mode=session.autopilot_mode,
                plan_summary=plan.plan_summary,
                allowed=plan.allowed,
                recommended=plan.recommended,
                risk_reasons=list(plan.risk_reasons),
                risk_warnings=list(plan.risk_warnings),
                source=source,
            ),
            session,
        )

    def update_execution(
        self,
        entry_id: str,
        execution_status: ExecutionStatus,
        execution_price: float | None = None,
        close_price: float | None = None,
        pnl: float | None = None,
        session: TradingSessionState | None = None,
    ) -> bool:
        """Attach execution outcome to one entry.

        Rules:
        1. Unknown ids are a no-op
        2. A terminal status (executed/cancelled) never changes
        3. Entries blocked by risk rules can never become executed

        Re-sending the current terminal status is allowed, to attach a close
        price or pnl after the fact. Reaching or updating a terminal status
        triggers a history write carrying the pnl.

        Returns:
            True if the entry was updated.
        """
        entry = self.get_entry(entry_id)
        if entry is None:
            logger.debug(f"update_execution: unknown journal id {entry_id}")
            return False

        if entry.execution_status.is_terminal and execution_status != entry.execution_status:
            logger.warning(
                f"Refusing to move journal entry {entry_id} from "
                f"{entry.execution_status.value} to {execution_status.value}"
            )
            return False

        if execution_status == ExecutionStatus.EXECUTED and not entry.allowed:
            logger.warning(f"Refusing to mark risk-blocked journal entry {entry_id} as executed")
            return False

        entry.execution_status = execution_status
        if execution_price is not None:
            entry.execution_price = execution_price
        if close_price is not None:
            entry.close_price = close_price
        if pnl is not None:
            entry.pnl = pnl

        if execution_status.is_terminal and self._history is not None:
            self._spawn(
                self._history.record_outcome(replace(entry), session),
                f"outcome {entry_id}",
            )

        return True

    def clear_entries(self) -> None:
        """Reset the in-memory list. The durable history is left untouched."""
        self._entries = []

    async def drain(self) -> None:
        """Wait for all pending history writes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _spawn(self, coro: Coroutine, description: str) -> None:
        """Run a history write in the background."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning(f"No running event loop; skipped history {description}")
            return

        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_write_done(t, description))

    def _on_write_done(self, task: asyncio.Task, description: str) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"History {description} failed: {error}")
