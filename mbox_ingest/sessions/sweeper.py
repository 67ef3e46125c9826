import time
from datetime import timedelta

from mbox_ingest.config.settings import Settings
from mbox_ingest.logging.logger import Log
from mbox_ingest.sessions.store import SessionStore


class RetentionSweeper:
    """Poll loop: sweep -> sleep. Removes sessions idle past the retention age."""

    def __init__(self, store: SessionStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings

    def run(self, max_sweeps: int | None = None) -> None:
        """Main sweep loop. Runs forever until interrupted.

        If max_sweeps is set, stop after that many sweeps (for testing).
        """
        Log.info("Retention sweeper started")
        sweeps_done = 0
        try:
            while True:
                self._try_sweep()
                sweeps_done += 1
                if max_sweeps is not None and sweeps_done >= max_sweeps:
                    break
                time.sleep(self._settings.sweep_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Retention sweeper shutting down gracefully")

    def _try_sweep(self) -> int:
        """Run one sweep. Errors are logged so the loop keeps going."""
        max_age = timedelta(seconds=self._settings.session_max_age_seconds)
        try:
            return self._store.sweep_older_than(max_age)
        except Exception as exc:
            Log.warning(f"Session sweep failed, will retry: {exc}")
            return 0
