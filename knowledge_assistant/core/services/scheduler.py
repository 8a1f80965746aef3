"""Weekly knowledge base rebuild scheduler."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from ..domain import BuildResult
from ..domain.exceptions import RebuildInProgressError
from .document_store import DocumentStore

logger = logging.getLogger(__name__)


class KnowledgeScheduler:
    """Rebuilds the document store once a week on a background timer.

    A run that finds a rebuild already in progress is skipped. Failures are
    logged and the next run is still scheduled.
    """

    def __init__(
        self,
        store: DocumentStore,
        weekday: int = 0,
        hour: int = 3,
        timezone: str = "Asia/Tokyo",
        clock: Callable[[ZoneInfo], datetime] | None = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        """Initialize the scheduler.

        Args:
            store: Document store to rebuild.
            weekday: Day of the run, Monday is 0.
            hour: Hour of the run in ``timezone``.
            timezone: IANA timezone name.
            clock: Returns the current time in a zone. Replaceable in tests.
            timer_factory: Builds the background timer. Replaceable in tests.
        """
        self.store = store
        self.weekday = weekday
        self.hour = hour
        self.tz = ZoneInfo(timezone)
        self._clock = clock or (lambda tz: datetime.now(tz))
        self._timer_factory = timer_factory
        self._timer: threading.Timer | None = None
        self._running = False
        self.last_update: datetime | None = None
        self.last_result: BuildResult | None = None
        self.next_update: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def next_run(self, now: datetime | None = None) -> datetime:
        """Compute the next scheduled run strictly after ``now``."""
        now = (now or self._clock(self.tz)).astimezone(self.tz)
        candidate = now.replace(hour=self.hour, minute=0, second=0, microsecond=0)
        candidate += timedelta(days=(self.weekday - now.weekday()) % 7)
        if candidate <= now:
            candidate += timedelta(days=7)
        return candidate

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._schedule()
        logger.info(f"Knowledge scheduler started, next rebuild at {self.next_update.isoformat()}")

    def stop(self) -> None:
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logger.info("Knowledge scheduler stopped")

    def _schedule(self) -> None:
        now = self._clock(self.tz)
        self.next_update = self.next_run(now)
        delay = (self.next_update - now).total_seconds()
        self._timer = self._timer_factory(delay, self._on_timer)
        self._timer.daemon = True
        self._timer.start()

    def _on_timer(self) -> None:
        self.run_update()
        if self._running:
            self._schedule()

    def run_update(self) -> BuildResult | None:
        """Rebuild now. Also used for manual triggers.

        Returns:
            The BuildResult, or None when the run was skipped or failed.
        """
        before = self.store.status()
        logger.info(
            f"Scheduled knowledge rebuild starting "
            f"({before.document_count} documents, {before.total_characters} chars)"
        )
        try:
            result = self.store.rebuild()
        except RebuildInProgressError:
            logger.warning("Knowledge rebuild already in progress; skipping scheduled run")
            return None
        except Exception as e:
            logger.error(f"Scheduled knowledge rebuild failed: {e}", exc_info=True)
            return None

        after = self.store.status()
        self.last_update = self._clock(self.tz)
        self.last_result = result
        logger.info(
            f"Scheduled knowledge rebuild finished in {result.duration_seconds:.2f}s: "
            f"documents {before.document_count} -> {after.document_count}, "
            f"chars {before.total_characters} -> {after.total_characters}"
        )
        return result

    def status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "next_update": self.next_update.isoformat() if self.next_update else None,
            "update_in_progress": self.store.is_rebuilding,
        }
