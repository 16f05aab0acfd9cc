"""An idempotent inbox: a receiver that stores deliveries and a processor that handles them."""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from xkit import log
from xkit.errors import Code, Op, error_code
from xkit.messaging.message import Delivery, Message

HandleFunc = Callable[[Message], None]


class Repository(ABC):
    """Storage for received messages and their processing state."""

    @abstractmethod
    def save_message(self, message: Message) -> None:
        """Store a message; raise an EXISTS error if it is already stored."""

    @abstractmethod
    def get_unprocessed_message(
        self, instance_id: str, max_retries: int, allowed_types: list[str]
    ) -> Message:
        """Lock and return one unprocessed message of an allowed type; raise if none."""

    @abstractmethod
    def set_as_processed(self, message_id: str) -> None:
        """Mark the message as processed."""

    @abstractmethod
    def mark_for_retry(self, message_id: str, retry_at: datetime) -> None:
        """Schedule the message to be retried at the given time."""

    @abstractmethod
    def clear_locks(self, instance_id: str, obtained_before: datetime) -> None:
        """Release this instance's locks obtained before the given time."""


@dataclass
class Processor:
    """Polls a repository for unprocessed messages and hands them to a handler.

    Intervals and ages are in seconds.
    """

    repository: Repository
    types: list[str]
    handler: HandleFunc
    polling_interval: float = 1.0
    locking_interval: float = 5.0
    max_lock_age: float = 120.0
    max_retries: int = 3
    retry_interval: float = 30.0
    instance_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def start(self, stop: threading.Event) -> None:
        """Start processing and lock clearing in the background until stop is set."""
        threading.Thread(target=self._process_messages, args=(stop,), daemon=True).start()
        threading.Thread(target=self._clear_locks, args=(stop,), daemon=True).start()

    def _process_messages(self, stop: threading.Event) -> None:
        while not stop.wait(self.polling_interval):
            try:
                message = self.repository.get_unprocessed_message(
                    self.instance_id, self.max_retries, self.types
                )
            except Exception:
                continue

            try:
                self.handler(message)
            except Exception as exc:
                log.infof("error handling message %s: %s", message.type, exc)
                retry_at = datetime.now(timezone.utc) + timedelta(seconds=self.retry_interval)
                try:
                    self.repository.mark_for_retry(message.id, retry_at)
                except Exception:
                    pass
                continue

            try:
                self.repository.set_as_processed(message.id)
            except Exception:
                pass

    def _clear_locks(self, stop: threading.Event) -> None:
        op = Op("inbox.Processor.clear_locks")
        while not stop.wait(self.locking_interval):
            obtained_before = datetime.now(timezone.utc) - timedelta(seconds=self.max_lock_age)
            try:
                self.repository.clear_locks(self.instance_id, obtained_before)
            except Exception as exc:
                log.infof("%s, error clearing locks: %s", op, exc)


class Receiver:
    """Stores incoming deliveries, acknowledging each once it is safely kept."""

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    def receive(self, deliveries: Iterable[Delivery]) -> threading.Thread:
        """Consume deliveries in a background thread and return that thread.

        A delivery already stored is acknowledged; one that fails to be
        stored for any other reason is rejected for redelivery.
        """
        thread = threading.Thread(target=self._receive, args=(deliveries,), daemon=True)
        thread.start()
        return thread

    def _receive(self, deliveries: Iterable[Delivery]) -> None:
        for delivery in deliveries:
            try:
                self.repository.save_message(delivery.message())
            except Exception as exc:
                if error_code(exc) != Code.EXISTS:
                    try:
                        delivery.nack()
                    except Exception:
                        pass
                    continue
            try:
                delivery.ack()
            except Exception:
                pass