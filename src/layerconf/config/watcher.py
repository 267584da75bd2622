"""
Debounced change watcher.

Collapses bursts of write/create signals for one file into a single
notification once the file has been quiet for the debounce period.
"""

import logging
import queue
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from .signals import ChangeEvent, ChangeKind, ChangeSignal, ChangeSink, WatchdogSignal
from ..core.exceptions import LayerConfError, WatchError, wrap_exception

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.5

_TRIGGER_KINDS = frozenset({ChangeKind.WRITE, ChangeKind.CREATE})


class WatcherState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class _Stop:
    pass


class _Closed:
    pass


class _SignalFailure:
    def __init__(self, exc: BaseException):
        self.exc = exc


class _QueueSink(ChangeSink):
    """Puts signal output on the watcher's queue."""

    def __init__(self, inbox: "queue.Queue"):
        self.inbox = inbox

    def event(self, event: ChangeEvent) -> None:
        self.inbox.put(event)

    def error(self, exc: BaseException) -> None:
        self.inbox.put(_SignalFailure(exc))

    def closed(self) -> None:
        self.inbox.put(_Closed())


class ChangeWatcher:
    """
    Watch a single file and notify callbacks after a quiet period.

    Every write/create event resets one pending deadline; when it expires
    each registered callback runs once, with no arguments, in registration
    order, on the watcher's background thread. Other event kinds are
    ignored and signal errors are logged. The watcher goes
    STOPPED -> RUNNING -> STOPPED; restarting is not supported.
    """

    def __init__(self, path: Union[str, Path], debounce: Optional[float] = DEFAULT_DEBOUNCE,
                 signal: Optional[ChangeSignal] = None):
        """
        Initialize change watcher.

        Args:
            path: File to watch
            debounce: Quiet period in seconds (0 or None uses the default)
            signal: Change signal implementation (watchdog by default)
        """
        self.path = Path(path)
        self.debounce = float(debounce) if debounce else DEFAULT_DEBOUNCE
        self.signal = signal or WatchdogSignal()

        self._callbacks: List[Callable[[], None]] = []
        self._callbacks_lock = threading.Lock()
        self._state_lock = threading.Lock()

        self._inbox: "queue.Queue" = queue.Queue()
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state = WatcherState.STOPPED
        self._started_once = False

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is WatcherState.RUNNING

    def on_change(self, callback: Callable[[], None]) -> None:
        """Register a callback fired once per quiet period with changes."""
        with self._callbacks_lock:
            self._callbacks.append(callback)

    def start(self) -> None:
        """
        Subscribe to the change signal and start the debounce loop.

        Raises:
            WatchError: If already started or the subscription fails
        """
        with self._state_lock:
            if self._started_once:
                raise WatchError(f"watcher for {self.path} was already started")

            try:
                self.signal.subscribe(self.path, _QueueSink(self._inbox))
            except LayerConfError:
                raise
            except Exception as e:
                raise wrap_exception(e, WatchError, f"cannot subscribe to changes of {self.path}") from e

            self._started_once = True
            self._state = WatcherState.RUNNING
            self._thread = threading.Thread(
                target=self._run, name=f"layerconf-watcher:{self.path.name}", daemon=True
            )
            self._thread.start()

        logger.info(f"Watching {self.path} (debounce {self.debounce:.3f}s)")

    def stop(self, timeout: float = 5.0) -> None:
        """
        Stop the loop and release the subscription.

        No callback starts after this returns; one already running may
        finish. Waits at most ``timeout`` seconds for the loop thread.
        """
        with self._state_lock:
            if self._state is not WatcherState.RUNNING:
                return
            self._stopping.set()
            self._inbox.put(_Stop())

        try:
            self.signal.unsubscribe()
        except Exception as e:
            logger.warning(f"Error releasing change signal for {self.path}: {e}")

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Watcher thread for {self.path} still busy after {timeout}s")

        self._state = WatcherState.STOPPED
        logger.info(f"Stopped watching {self.path}")

    def _run(self) -> None:
        deadline: Optional[float] = None

        while True:
            timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                item = self._inbox.get(timeout=timeout)
            except queue.Empty:
                deadline = None
                self._fire()
                continue

            if isinstance(item, _Stop):
                break
            elif isinstance(item, _Closed):
                logger.warning(f"Change signal for {self.path} closed")
                break
            elif isinstance(item, _SignalFailure):
                logger.error(f"Change signal error for {self.path}: {item.exc}")
            elif isinstance(item, ChangeEvent) and item.kind in _TRIGGER_KINDS:
                deadline = time.monotonic() + self.debounce

        if self._stopping.is_set():
            return

        # signal closed on its own
        with self._state_lock:
            self._state = WatcherState.STOPPED
        try:
            self.signal.unsubscribe()
        except Exception as e:
            logger.warning(f"Error releasing change signal for {self.path}: {e}")

    def _fire(self) -> None:
        with self._callbacks_lock:
            callbacks = list(self._callbacks)

        for callback in callbacks:
            if self._stopping.is_set():
                return
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in change callback for {self.path}: {e}", exc_info=True)

    def __enter__(self) -> "ChangeWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
