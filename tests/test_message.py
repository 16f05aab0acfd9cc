import pytest

from xkit.messaging.message import Delivery, Message, NoopBackbone, Publisher, Publishing


class _RecordingDelivery(Delivery):
    def __init__(self, message: Message) -> None:
        self._message = message
        self.acks = 0
        self.nacks = 0

    def message(self) -> Message:
        return self._message

    def ack(self) -> None:
        self.acks += 1

    def nack(self) -> None:
        self.nacks += 1


def test_messages_with_equal_fields_are_equal():
    first = Message(id="m1", type="created", payload=b"body")
    second = Message(id="m1", type="created", payload=b"body")
    assert first == second
    assert hash(first) == hash(second)


def test_message_is_immutable():
    message = Message(id="m1", type="created", payload=b"body")
    with pytest.raises(AttributeError):
        message.id = "m2"
    assert message.id == "m1"
    assert message == Message(id="m1", type="created", payload=b"body")


def test_publishing_holds_topic_and_message():
    message = Message(id="m1", type="created", payload=b"body")
    publishing = Publishing(topic="users", message=message)
    assert publishing.topic == "users"
    assert publishing.message.payload == b"body"


def test_noop_backbone_listen_yields_nothing():
    assert list(NoopBackbone().listen()) == []


def test_noop_backbone_send_leaves_publishing_untouched():
    publishing = Publishing(topic="users", message=Message(id="m1", type="t", payload=b"x"))
    before = Publishing(topic="users", message=Message(id="m1", type="t", payload=b"x"))
    assert NoopBackbone().send(publishing) is None
    assert publishing == before


def test_abstract_interfaces_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Delivery()
    with pytest.raises(TypeError):
        Publisher()


def test_concrete_delivery_tracks_acks():
    message = Message(id="m1", type="t", payload=b"x")
    delivery = _RecordingDelivery(message)
    delivery.ack()
    delivery.nack()
    delivery.nack()
    assert delivery.message() == message
    assert (delivery.acks, delivery.nacks) == (1, 2)