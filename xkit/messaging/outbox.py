"""A transactional outbox and a polling data source that feeds it."""

from __future__ import annotations

import functools
import queue
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from xkit import log
from xkit.errors import Code, Op, e, error_code
from xkit.messaging.message import Publishing
from xkit.retry import Retrier

_FAILED_QUEUE_SIZE = 10
_WAIT_TICK = 0.05

T = TypeVar("T")


def _put(target: queue.Queue[T], item: T, stop: threading.Event) -> bool:
    """Put item on the queue, giving up when stop is set."""
    while not stop.is_set():
        try:
            target.put(item, timeout=_WAIT_TICK)
            return True
        except queue.Full:
            continue
    return False


class DataStore(ABC):
    """A source of publishings not yet sent."""

    @abstractmethod
    def get_unsent_publishings(self, stop: threading.Event) -> queue.Queue[Publishing]:
        """Return a queue fed with unsent publishings until stop is set."""

    @abstractmethod
    def set_as_processed(self, message_id: str) -> None:
        """Mark the message as processed."""


class PublishingStream(ABC):
    """Sends publishings to a queue."""

    @abstractmethod
    def send(self, publishing: Publishing) -> None:
        """Send one publishing, raising on failure."""


@dataclass
class FailedPublishing:
    """A publishing that could not be dispatched, with the reason."""

    publishing: Publishing
    error: Exception


class Outbox:
    """Dispatches publishings from a data store to a stream, with retries."""

    def __init__(self, data_store: DataStore, stream: PublishingStream, retrier: Retrier) -> None:
        self._data_store = data_store
        self._stream = stream
        self._retrier = retrier
        self._failed: queue.Queue[FailedPublishing] = queue.Queue(maxsize=_FAILED_QUEUE_SIZE)

    def start(self, stop: threading.Event) -> None:
        """Start dispatching in the background until stop is set."""
        op = Op("outbox.Outbox.start")
        try:
            publishings = self._data_store.get_unsent_publishings(stop)
        except Exception as exc:
            raise e(op, exc) from exc
        threading.Thread(target=self._dispatch, args=(publishings, stop), daemon=True).start()

    def _dispatch(self, publishings: queue.Queue[Publishing], stop: threading.Event) -> None:
        op = Op("outbox.Outbox.dispatch")
        while not stop.is_set():
            try:
                publishing = publishings.get(timeout=_WAIT_TICK)
            except queue.Empty:
                continue
            try:
                self._retrier.retry(functools.partial(self._stream.send, publishing))
            except Exception as exc:
                failed = FailedPublishing(publishing=publishing, error=e(op, exc))
                if not _put(self._failed, failed, stop):
                    return
            try:
                self._data_store.set_as_processed(publishing.message.id)
            except Exception:
                pass

    def failed_publishings(self) -> queue.Queue[FailedPublishing]:
        """Return the queue of publishings that failed to be dispatched."""
        return self._failed


class PollableRepository(ABC):
    """Storage the polling data source reads unsent publishings from."""

    @abstractmethod
    def get_unsent_publishing(self, instance_id: str, max_retries: int) -> Publishing:
        """Lock and return one unsent publishing; raise a NOT_FOUND error if none."""

    @abstractmethod
    def set_as_processed(self, message_id: str) -> None:
        """Mark the message as processed."""

    @abstractmethod
    def mark_for_retry(self, message_id: str, retry_at: datetime) -> None:
        """Schedule the message to be retried at the given time."""

    @abstractmethod
    def clear_locks(self, instance_id: str, obtained_before: datetime) -> None:
        """Release this instance's locks obtained before the given time."""


@dataclass(frozen=True)
class PollingPolicy:
    """Polling, locking and retry settings; durations in seconds."""

    polling_interval: float = 1.0
    locking_interval: float = 5.0
    max_lock_age: float = 120.0
    max_retries: int = 3
    retry_interval: float = 30.0


@dataclass
class PollableDataSource(DataStore):
    """A data store that polls a repository for unsent publishings."""

    repository: PollableRepository
    policy: PollingPolicy = field(default_factory=PollingPolicy)
    instance_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def _poll(self, publishings: queue.Queue[Publishing], stop: threading.Event) -> None:
        op = Op("outbox.PollableDataSource.poll")
        while not stop.wait(self.policy.polling_interval):
            try:
                publishing = self.repository.get_unsent_publishing(
                    self.instance_id, self.policy.max_retries
                )
            except Exception as exc:
                if error_code(exc) != Code.NOT_FOUND:
                    log.infof("%s: error getting unsent publishings: %s", op, exc)
                continue
            if not _put(publishings, publishing, stop):
                return

    def _clear_locks(self, stop: threading.Event) -> None:
        op = Op("outbox.PollableDataSource.clear_locks")
        while not stop.wait(self.policy.locking_interval):
            obtained_before = datetime.now(timezone.utc) - timedelta(seconds=self.policy.max_lock_age)
            try:
                self.repository.clear_locks(self.instance_id, obtained_before)
            except Exception as exc:
                log.infof("%s, error clearing locks: %s", op, exc)

    def get_unsent_publishings(self, stop: threading.Event) -> queue.Queue[Publishing]:
        publishings: queue.Queue[Publishing] = queue.Queue(maxsize=1)
        threading.Thread(target=self._poll, args=(publishings, stop), daemon=True).start()
        threading.Thread(target=self._clear_locks, args=(stop,), daemon=True).start()
        return publishings

    def set_as_processed(self, message_id: str) -> None:
        op = Op("outbox.PollableDataSource.set_as_processed")
        try:
            self.repository.set_as_processed(message_id)
        except Exception as exc:
            raise e(op, exc) from exc

    def retry_message(self, message_id: str) -> None:
        """Schedule a failed message to be retried after the retry interval."""
        op = Op("outbox.PollableDataSource.retry_message")
        retry_at = datetime.now(timezone.utc) + timedelta(seconds=self.policy.retry_interval)
        try:
            self.repository.mark_for_retry(message_id, retry_at)
        except Exception as exc:
            raise e(op, exc) from exc