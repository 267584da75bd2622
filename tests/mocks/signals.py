"""
In-memory change signal for deterministic watcher tests.
"""

import threading
from pathlib import Path
from typing import List, Optional, Union

from layerconf.config.signals import ChangeEvent, ChangeKind, ChangeSignal, ChangeSink
from layerconf.core.exceptions import WatchError


class ManualSignal(ChangeSignal):
    """ChangeSignal whose events are emitted explicitly by the test."""

    def __init__(self, fail_subscribe: Union[bool, BaseException] = False):
        self.fail_subscribe = fail_subscribe
        self.sink: Optional[ChangeSink] = None
        self.path: Optional[str] = None
        self.subscribed = threading.Event()
        self.unsubscribe_calls = 0

    def subscribe(self, path: Union[str, Path], sink: ChangeSink) -> None:
        if isinstance(self.fail_subscribe, BaseException):
            raise self.fail_subscribe
        if self.fail_subscribe:
            raise WatchError(f"cannot watch {path}")
        self.path = str(path)
        self.sink = sink
        self.subscribed.set()

    def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1
        self.subscribed.clear()

    def emit(self, kind: ChangeKind = ChangeKind.WRITE) -> None:
        self.sink.event(ChangeEvent(kind, self.path))

    def emit_many(self, kinds: List[ChangeKind]) -> None:
        for kind in kinds:
            self.emit(kind)

    def fail(self, exc: BaseException) -> None:
        self.sink.error(exc)

    def close(self) -> None:
        self.sink.closed()
