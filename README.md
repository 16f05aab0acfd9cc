# xkit

A small toolkit of building blocks for backend services:

- **`xkit.errors`**: structured errors (`XError`) carrying an operation
  name (`Op`), a machine-readable `Code` and a human-readable `Message`,
  with wrapping and conversion to gRPC status errors.
- **`xkit.log`**: a process-wide logger with `info`, `warn`, `error` and
  `debug` helpers, each in a `LogMessage`, plain-string and printf-style
  variant.
- **`xkit.retry`**: a `Retrier` driven by a `RetryPolicy`: a number of
  immediate retries followed by retries with exponential backoff.
- **`xkit.hashing`**: bcrypt password hashing and verification.
- **`xkit.tokens`**: symmetric PASETO v2.local session tokens.
- **`xkit.randomdata`**: random integers, strings, e-mail addresses,
  passwords, URLs and dates for tests and fixtures.
- **`xkit.messaging`**: messages and publishings, a transactional outbox,
  an idempotent inbox, and a RabbitMQ client.

## Installation

```
pip install xkit
```

To run the test suite:

```
pip install "xkit[test]"
pytest
```

## Errors

```python
from xkit.errors import Code, Message, Op, e, error_code, error_message, grpc_error

op = Op("users.create")
err = e(op, Code.EXISTS, Message("That e-mail address is already registered."))

error_message(err)   # the outermost non-empty message on the chain
error_code(err)      # the outermost code other than OTHER; INTERNAL if none
grpc_error(err)      # logs the error and returns a GrpcStatusError
```

`e` accepts `Op`, `Message`, `Code` and exception arguments in any order;
a later argument of the same kind replaces an earlier one, and any other
argument raises `TypeError`. Calling it with no arguments raises
`ValueError`. When it wraps another `XError` (which it copies), the inner
code is pulled up to the outer error if the outer one has none, so each
code appears once in the rendered text. `error_code(None)` is
`Code.OTHER`; `error_message` falls back to a generic "internal error"
message for errors that carry none.

`Code.grpc_code()` maps codes to `grpc.StatusCode`: `INTERNAL` to
`INTERNAL`, `INVALID` to `INVALID_ARGUMENT`, `NOT_FOUND` to `NOT_FOUND`,
`EXISTS` to `ALREADY_EXISTS`, `EXPIRED` to `DEADLINE_EXCEEDED` and
`OTHER` to `UNKNOWN`. `GrpcStatusError` is a `grpc.RpcError` with `code()`
and `details()`.

## Logging

```python
from xkit import log

log.info_string("service started")
log.warnf("queue %s is %d%% full", "orders", 85)
log.error(log.LogMessage(title="payment failed", details="card declined"))
```

`current_logger()` returns the process-wide logger, created on first use:
a `PrettyLogger` writing through the standard `logging` module (logger
`xkit`, to standard error, at debug level), or a `NoopLogger` if that
cannot be set up. Both implement the `Logger` interface.

## Retrying

```python
from xkit.retry import Retrier, RetryPolicy

policy = RetryPolicy(immediate_retries=2, retries_with_backoff=3, delay=0.5, backoff_factor=2.0)
result = Retrier(policy).retry(lambda: fetch_rates())
```

`retry` calls the function until it returns, and returns its value. The
function fails by raising. After the immediate retries are used up, the
backoff stage makes one more attempt and then its own retries, sleeping
`delay` seconds and multiplying the delay by `backoff_factor` each time.
When all attempts fail it raises an `XError` wrapping the last failure.
`RetryPolicy.no_retries()` gives a policy with no retries in either stage.

## Passwords

```python
from xkit.hashing import compare_password, hash_password

password = "password"
hashed = hash_password(password)
compare_password(hashed, password)   # raises an INVALID XError on mismatch
```

Hashing uses bcrypt with cost 10; passwords longer than 72 bytes are
rejected with an `INTERNAL` error.

## Session tokens

```python
from datetime import timedelta

from xkit.randomdata import random_string
from xkit.tokens import PasetoMaker

symmetric_key = random_string(32)          # must be exactly 32 characters
maker = PasetoMaker(symmetric_key)

token, payload = maker.create_token("user-42", "alice@example.com", timedelta(minutes=15))
verified = maker.verify_token(token)
```

A `Payload` holds `token_id`, `user_id`, `email`, `issued_at` and
`expired_at`. `verify_token` raises an `INVALID` `XError` for a token that
cannot be decrypted or has expired. A key of the wrong length raises an
`INVALID` error from the constructor. `Maker` is the abstract interface.

## Messaging

`xkit.messaging.message` defines the `Message` (`id`, `type`, `payload`)
and `Publishing` (`topic`, `message`) data classes, and the `Publisher`,
`Consumer` and `Delivery` interfaces. `NoopBackbone` is a publisher and
consumer that drops everything sent and delivers nothing.

`xkit.messaging.outbox` provides the transactional outbox. An `Outbox`
takes a `DataStore`, a `PublishingStream` and a `Retrier`. `start(stop)`,
given a `threading.Event`, dispatches in a background thread until the
event is set: each publishing from the data store is sent through the
stream under the retrier, then marked as processed whether or not it was
sent. Publishings that could not be sent are put, as `FailedPublishing`
objects, on the queue returned by `failed_publishings()` (it holds ten).

`PollableDataSource` is a `DataStore` that polls a `PollableRepository`
you implement, configured by a `PollingPolicy` (`polling_interval`,
`locking_interval`, `max_lock_age`, `max_retries`, `retry_interval`, in
seconds). It also clears its own locks older than `max_lock_age`, and
`retry_message` schedules a message for retry after `retry_interval`.

`xkit.messaging.inbox` provides the idempotent inbox. A `Receiver` stores
deliveries in a `Repository` from a background thread, acknowledging
each stored delivery and each one the repository reports as already
existing (`Code.EXISTS`), and rejecting the rest for redelivery. A
`Processor` polls the repository for messages of its `types`, hands each
to your handler, and marks it processed or, if the handler raises,
schedules a retry; it also clears its stale locks.

`xkit.messaging.rabbitmq` connects these to RabbitMQ through pika:

```python
from xkit.messaging.rabbitmq import (
    RabbitClient, RabbitConsumer, RabbitProducer, connect_rabbitmq,
)

password = "password"
connection = connect_rabbitmq("user", password, "localhost:5672", "")
client = RabbitClient(connection)            # a channel in confirm mode
client.create_queue("orders", durable=True, auto_delete=False)
client.create_binding("orders", "orders.*", "events")

RabbitProducer(client, "events").send(publishing)
for delivery in RabbitConsumer(client, "orders").listen():
    delivery.ack()
```

`RabbitProducer` publishes mandatory messages to its exchange with the
publishing's topic as routing key. `RabbitConsumer.listen()` consumes its
queue without auto-acknowledgement and yields `RabbitDelivery` objects;
`nack()` requeues the message.

## What is not included

The outbox and inbox need storage, but `xkit` ships no implementation of
`PollableRepository`, `DataStore` or the inbox `Repository`: you provide
them over your own database. There is no command-line tool and no server.