"""Messages, publishings, deliveries and the queue interfaces that carry them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class Message:
    """A message published to a topic."""

    id: str
    type: str
    payload: bytes


@dataclass(frozen=True)
class Publishing:
    """A message addressed to a topic."""

    topic: str
    message: Message


class Delivery(ABC):
    """A received message that must be acknowledged or rejected."""

    @abstractmethod
    def message(self) -> Message:
        """Return the delivered message."""

    @abstractmethod
    def ack(self) -> None:
        """Acknowledge the delivery."""

    @abstractmethod
    def nack(self) -> None:
        """Reject the delivery so it is delivered again."""


class Publisher(ABC):
    """A producer of events."""

    @abstractmethod
    def send(self, publishing: Publishing) -> None:
        """Send a publishing to the server."""


class Consumer(ABC):
    """A consumer of events."""

    @abstractmethod
    def listen(self) -> Iterator[Delivery]:
        """Return the deliveries received from the server."""


class NoopBackbone(Publisher, Consumer):
    """A backbone that drops everything sent and delivers nothing."""

    def send(self, publishing: Publishing) -> None:
        return None

    def listen(self) -> Iterator[Delivery]:
        return iter(())