"""Background supervisor running the image cache sweep."""

from __future__ import annotations

import signal
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List
from zoneinfo import ZoneInfo

import structlog
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .app_context import load_context, resolve_timezone
from .config import ConfigError, ConfigPaths, GlobalConfig
from .state import InventoryError

SWEEP_JOB_ID = "cache_sweep"


@dataclass
class Supervisor:
    """Supervisor process that periodically invalidates and cleans the image cache.

    Each sweep reloads configuration and inventory from disk so edits made
    while the supervisor runs are picked up on the next run.
    """

    config: GlobalConfig
    paths: ConfigPaths
    logger: structlog.stdlib.BoundLogger
    _timezone: ZoneInfo = field(init=False, repr=False)
    _timezone_source: str = field(init=False, repr=False)
    _scheduler: BackgroundScheduler = field(init=False, repr=False)
    _stop_event: threading.Event = field(init=False, repr=False)
    last_summary: Dict[str, object] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._timezone, self._timezone_source = resolve_timezone(self.config.runtime.timezone)
        self._stop_event = threading.Event()
        executors = {"default": ThreadPoolExecutor(max_workers=1)}
        self._scheduler = BackgroundScheduler(timezone=self._timezone, executors=executors)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def run(self) -> None:
        """Start the scheduler and block until interrupted."""

        interval = self.config.cache.cleanup_interval_seconds
        self.logger.info(
            "supervisor.start",
            cleanup_interval=interval,
            timezone=self._timezone_source,
        )

        if self._timezone_source != self.config.runtime.timezone:
            self.logger.warning(
                "supervisor.timezone_fallback",
                configured=self.config.runtime.timezone,
                using=self._timezone_source,
            )

        self.schedule(interval)
        self._scheduler.start()
        self._install_signal_handlers()

        try:
            while not self._stop_event.wait(timeout=1):
                pass
        except KeyboardInterrupt:
            self.logger.info("supervisor.stop", reason="keyboard_interrupt")
        finally:
            self.shutdown()

    def schedule(self, interval_seconds: int) -> None:
        self._scheduler.add_job(
            self.run_sweep,
            trigger=IntervalTrigger(seconds=interval_seconds),
            id=SWEEP_JOB_ID,
            name="cache:sweep",
            coalesce=True,
            max_instances=1,
            replace_existing=True,
            next_run_time=datetime.now(self._timezone),
        )
        self.logger.info("supervisor.sweep_scheduled", interval=interval_seconds)

    def run_sweep(self) -> Dict[str, object]:
        """Invalidate unshareable plugin renders, then delete orphaned images."""

        try:
            context = load_context(self.paths)
        except (ConfigError, InventoryError) as exc:
            self.logger.error("supervisor.sweep_load_failed", error=str(exc))
            self.last_summary = {"status": "failed", "error": str(exc)}
            return self.last_summary

        invalidator = context.invalidator(logger=self.logger)
        reset: List[str] = []
        for plugin in context.inventory.list_plugins():
            if self._stop_event.is_set():
                break
            if plugin.current_image is None:
                continue
            if invalidator.reset_if_not_cacheable(plugin):
                reset.append(plugin.id)

        report = invalidator.cleanup_folder(cancel_event=self._stop_event)
        self.last_summary = {"status": "success", "reset_plugins": reset, **report.as_dict()}
        self.logger.info("supervisor.sweep_completed", **self.last_summary)
        return self.last_summary

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------
    def _install_signal_handlers(self) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, self._signal_handler)

    def _signal_handler(self, signum, frame) -> None:  # pragma: no cover - OS signal handling
        self.logger.info("supervisor.signal", signal=signum)
        self._stop_event.set()

    def shutdown(self) -> None:
        if not self._stop_event.is_set():
            self._stop_event.set()

        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

        self.logger.info("supervisor.shutdown")
