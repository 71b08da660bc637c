# marketboard/jobs/poller.py
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from marketboard.utils.time import iso_z_from_epoch

logger = logging.getLogger("marketboard.poller")

Fetch = Callable[[], Awaitable[Any]]


def _fresh_stats() -> Dict[str, Any]:
    return {
        "ticks": 0,
        "completed_ticks": 0,
        "last_run_ts": None,
        "last_success_ts": None,
        "last_success_ms": None,
        "last_error_ts": None,
        "last_error": None,
        "consecutive_failures": 0,
    }


class Poller:
    """
    Repeats one fetch coroutine on a fixed cadence.

    start() tears down any running cycle, fetches immediately, then every
    interval. Ticks never overlap: a slow fetch delays the next tick, and ticks
    missed by more than one interval are skipped. A fetch returning False (or
    raising) counts as a failed tick; the loop keeps going either way.
    """

    def __init__(self, fetch: Fetch, name: str = "market") -> None:
        self._fetch = fetch
        self.name = name
        self.interval_ms: Optional[int] = None
        self.stats: Dict[str, Any] = _fresh_stats()
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        self.stop()

        self.interval_ms = int(interval_ms)
        self.stats = _fresh_stats()
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            self._loop(self.interval_ms / 1000.0, self._stop_event),
            name=f"poll:{self.name}",
        )
        logger.info("poller started | %s | interval_ms=%s", self.name, self.interval_ms)

    def stop(self) -> None:
        if self._task is None:
            return

        if self._stop_event is not None:
            self._stop_event.set()
        if not self._task.done():
            self._task.cancel()

        self._task = None
        self._stop_event = None
        logger.info("poller stopped | %s", self.name)

    async def aclose(self) -> None:
        task = self._task
        self.stop()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def info(self) -> Dict[str, Any]:
        s = self.stats
        return {
            "name": self.name,
            "running": self.running,
            "interval_ms": self.interval_ms,
            "ticks": s["ticks"],
            "completed_ticks": s["completed_ticks"],
            "last_run_ts": s["last_run_ts"],
            "last_run_iso": iso_z_from_epoch(s["last_run_ts"]),
            "last_success_ts": s["last_success_ts"],
            "last_success_iso": iso_z_from_epoch(s["last_success_ts"]),
            "last_success_ms": s["last_success_ms"],
            "consecutive_failures": s["consecutive_failures"],
            "last_error_ts": s["last_error_ts"],
            "last_error_iso": iso_z_from_epoch(s["last_error_ts"]),
            "last_error": s["last_error"],
        }

    # ----------------------------
    # loop
    # ----------------------------
    async def _tick(self) -> None:
        s = self.stats
        s["ticks"] += 1
        s["last_run_ts"] = time.time()
        t0 = time.perf_counter()

        try:
            ok = await self._fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            s["last_error_ts"] = time.time()
            s["last_error"] = repr(e)[:300]
            s["consecutive_failures"] += 1
            logger.exception("poll tick error | %s | %dms", self.name, int((time.perf_counter() - t0) * 1000))
            return

        dt_ms = int((time.perf_counter() - t0) * 1000)
        if ok is False:
            s["last_error_ts"] = time.time()
            s["last_error"] = "fetch reported failure"
            s["consecutive_failures"] += 1
            logger.warning("poll tick failed | %s | %dms", self.name, dt_ms)
            return

        s["last_success_ts"] = time.time()
        s["last_success_ms"] = dt_ms
        s["consecutive_failures"] = 0
        logger.debug("poll tick done | %s | %dms", self.name, dt_ms)

    async def _loop(self, interval_s: float, stop_event: asyncio.Event) -> None:
        next_tick = time.monotonic()  # run immediately once

        while not stop_event.is_set():
            now = time.monotonic()
            if now < next_tick:
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=(next_tick - now))
                except asyncio.TimeoutError:
                    pass
                continue

            try:
                await self._tick()
            finally:
                self.stats["completed_ticks"] += 1

            next_tick += interval_s
            if next_tick < time.monotonic() - interval_s:
                next_tick = time.monotonic() + interval_s
