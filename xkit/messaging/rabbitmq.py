"""RabbitMQ client, producer and consumer built on pika."""

from __future__ import annotations

from collections import deque
from typing import Any, Iterator

import pika

from xkit import log
from xkit.errors import Op, e
from xkit.messaging.message import Consumer, Delivery, Message, Publisher, Publishing

RawDelivery = tuple[Any, Any, bytes]


def connect_rabbitmq(username: str, password: str, host: str, vhost: str) -> pika.BlockingConnection:
    """Open a blocking connection to a RabbitMQ server."""
    op = Op("queue.connect_rabbitmq")
    parameters = pika.URLParameters(f"amqp://{username}:{password}@{host}/{vhost}")
    try:
        connection = pika.BlockingConnection(parameters)
    except Exception as exc:
        raise e(op, exc) from exc
    log.debug_string("Connected to RabbitMQ")
    return connection


class RabbitClient:
    """A channel in publisher-confirm mode over a shared connection."""

    def __init__(self, connection: pika.BlockingConnection) -> None:
        op = Op("queue.RabbitClient")
        self.connection = connection
        try:
            self.channel = connection.channel()
            self.channel.confirm_delivery()
        except Exception as exc:
            raise e(op, exc) from exc

    def close(self) -> None:
        """Close the channel; the connection stays open."""
        self.channel.close()

    def create_queue(self, queue_name: str, durable: bool, auto_delete: bool) -> Any:
        """Declare a queue and return the server's declare-ok reply."""
        op = Op("queue.RabbitClient.create_queue")
        try:
            result = self.channel.queue_declare(
                queue=queue_name, durable=durable, auto_delete=auto_delete, exclusive=False
            )
        except Exception as exc:
            raise e(op, exc) from exc
        return result.method

    def create_binding(self, name: str, binding: str, exchange: str) -> None:
        """Bind a queue to an exchange with the given routing rule."""
        self.channel.queue_bind(queue=name, exchange=exchange, routing_key=binding)

    def send(
        self, exchange: str, routing_key: str, body: bytes, properties: pika.BasicProperties
    ) -> None:
        """Publish a mandatory message and wait for the server to confirm it."""
        self.channel.basic_publish(
            exchange=exchange,
            routing_key=routing_key,
            body=body,
            properties=properties,
            mandatory=True,
        )

    def consume(self, queue: str, consumer: str, auto_ack: bool) -> Iterator[RawDelivery]:
        """Start consuming a queue and return its (method, properties, body) deliveries."""
        pending: deque[RawDelivery] = deque()

        def on_message(channel: Any, method: Any, properties: Any, body: bytes) -> None:
            pending.append((method, properties, body))

        self.channel.basic_consume(
            queue=queue,
            on_message_callback=on_message,
            auto_ack=auto_ack,
            exclusive=False,
            consumer_tag=consumer,
        )
        return self._deliveries(pending)

    def _deliveries(self, pending: deque[RawDelivery]) -> Iterator[RawDelivery]:
        while True:
            while pending:
                yield pending.popleft()
            if not self.channel.is_open:
                return
            self.channel.connection.process_data_events(time_limit=None)


class RabbitDelivery(Delivery):
    """A message received from RabbitMQ."""

    def __init__(self, channel: Any, method: Any, properties: Any, body: bytes) -> None:
        self._channel = channel
        self._method = method
        self._properties = properties
        self._body = body

    def message(self) -> Message:
        return Message(
            id=self._properties.message_id or "",
            type=self._properties.type or "",
            payload=self._body,
        )

    def ack(self) -> None:
        self._channel.basic_ack(delivery_tag=self._method.delivery_tag, multiple=False)

    def nack(self) -> None:
        self._channel.basic_nack(
            delivery_tag=self._method.delivery_tag, multiple=False, requeue=True
        )


class RabbitConsumer(Consumer):
    """Listens to one queue, consuming under the queue's own name."""

    def __init__(self, client: RabbitClient, queue: str) -> None:
        self.client = client
        self.queue = queue

    def listen(self) -> Iterator[Delivery]:
        op = Op("queue.RabbitConsumer.listen")
        try:
            raw = self.client.consume(self.queue, self.queue, False)
        except Exception as exc:
            raise e(op, exc) from exc
        channel = self.client.channel
        return (RabbitDelivery(channel, method, properties, body) for method, properties, body in raw)


class RabbitProducer(Publisher):
    """Sends publishings to one exchange, routed by topic."""

    def __init__(self, client: RabbitClient, exchange: str) -> None:
        self.client = client
        self.exchange = exchange

    def send(self, publishing: Publishing) -> None:
        op = Op("queue.RabbitProducer.send")
        log.debugf(
            "sending message to exchange %s with topic %s: %s",
            self.exchange,
            publishing.topic,
            publishing.message,
        )
        properties = pika.BasicProperties(
            type=publishing.message.type, message_id=publishing.message.id
        )
        try:
            self.client.send(self.exchange, publishing.topic, publishing.message.payload, properties)
        except Exception as exc:
            raise e(op, exc) from exc