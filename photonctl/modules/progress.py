"""Elapsed-time indicator rendered while a wait is in progress."""
import logging
import threading
from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from photonctl.config import Config

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Background thread that redraws a spinner and the elapsed time.

    The reporter only knows when it started and when it is told to stop;
    it never sees the outcome of the wait it decorates. ``stop_event`` is
    owned by the caller's wait session.
    """

    def __init__(
        self,
        stop_event: threading.Event,
        message: str = "Waiting",
        console: Optional[Console] = None,
        interval: float = None,
        enabled: Optional[bool] = None,
    ):
        self.stop_event = stop_event
        self.message = message
        self.console = console or Console(stderr=True)
        self.interval = interval if interval is not None else Config.PROGRESS_INTERVAL
        self.enabled = self.console.is_terminal if enabled is None else enabled
        self.ticks = 0
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if not self.enabled:
            return
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="photonctl-progress",
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the thread and block until it has exited."""
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join()
            logger.debug("Progress reporter stopped after %d ticks", self.ticks)

    def _run(self) -> None:
        # transient=True erases the line once the context exits
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
            auto_refresh=False,
        ) as progress:
            progress.add_task(self.message, total=None)
            while not self.stop_event.is_set():
                progress.refresh()
                self.ticks += 1
                self.stop_event.wait(self.interval)
