"""
Change signals: notifications that a watched file was modified.

A ChangeSignal delivers ChangeEvents, errors and a terminal "closed"
notification to a ChangeSink. WatchdogSignal implements the contract on
top of watchdog's filesystem observer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union
import logging
import os

from watchdog.events import (
    FileSystemEvent, FileSystemEventHandler, EVENT_TYPE_CREATED, EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED
)
from watchdog.observers import Observer

from ..core.exceptions import WatchError, wrap_exception

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Kinds of change events."""
    WRITE = "write"
    CREATE = "create"
    REMOVE = "remove"
    RENAME = "rename"
    OTHER = "other"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change notification for a path."""
    kind: ChangeKind
    path: str


class ChangeSink(ABC):
    """Receiver of change signal output."""

    @abstractmethod
    def event(self, event: ChangeEvent) -> None:
        pass

    @abstractmethod
    def error(self, exc: BaseException) -> None:
        pass

    @abstractmethod
    def closed(self) -> None:
        """The signal ended; no more events will arrive."""
        pass


class ChangeSignal(ABC):
    """Source of change notifications for one path."""

    @abstractmethod
    def subscribe(self, path: Union[str, Path], sink: ChangeSink) -> None:
        """
        Start delivering notifications for ``path`` to ``sink``.

        Raises:
            WatchError: If the subscription cannot be established
        """
        pass

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop delivering notifications and release resources."""
        pass


class _TargetFileHandler(FileSystemEventHandler):
    """Forward watchdog events that concern a single file."""

    def __init__(self, target: str, directory: str, sink: ChangeSink):
        super().__init__()
        self.target = target
        self.directory = directory
        self.sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            src = os.path.abspath(os.fsdecode(event.src_path))
            if event.is_directory:
                if event.event_type == EVENT_TYPE_DELETED and src == self.directory:
                    self.sink.closed()
                return

            if event.event_type == EVENT_TYPE_MOVED:
                dest = os.path.abspath(os.fsdecode(event.dest_path))
                if dest == self.target:
                    # atomic save: temp file renamed onto the target
                    self.sink.event(ChangeEvent(ChangeKind.CREATE, dest))
                elif src == self.target:
                    self.sink.event(ChangeEvent(ChangeKind.RENAME, src))
                return

            if src != self.target:
                return

            kind = {
                EVENT_TYPE_MODIFIED: ChangeKind.WRITE,
                EVENT_TYPE_CREATED: ChangeKind.CREATE,
                EVENT_TYPE_DELETED: ChangeKind.REMOVE,
            }.get(event.event_type, ChangeKind.OTHER)
            self.sink.event(ChangeEvent(kind, src))
        except Exception as e:
            self.sink.error(e)


class WatchdogSignal(ChangeSignal):
    """
    Change signal backed by a watchdog Observer.

    Watches the parent directory of the target file, since editors often
    replace files rather than write them in place.
    """

    def __init__(self, observer_timeout: float = 1.0):
        self.observer_timeout = observer_timeout
        self._observer: Optional[Observer] = None

    def subscribe(self, path: Union[str, Path], sink: ChangeSink) -> None:
        if self._observer is not None:
            raise WatchError("WatchdogSignal is already subscribed")

        target = os.path.abspath(os.fspath(path))
        directory = os.path.dirname(target)
        if not os.path.isdir(directory):
            raise WatchError(f"cannot watch {target}: directory {directory} does not exist")

        observer = Observer(timeout=self.observer_timeout)
        try:
            observer.schedule(_TargetFileHandler(target, directory, sink), directory, recursive=False)
            observer.start()
        except Exception as e:
            raise wrap_exception(e, WatchError, f"cannot watch {target}") from e

        self._observer = observer
        logger.debug(f"Watching {target} via {directory}")

    def unsubscribe(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=self.observer_timeout * 2)
