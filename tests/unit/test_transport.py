"""
Messaging Transport Unit Tests
Tests for core/transport/memory.py and core/transport/http_relay.py
"""
import pytest
import requests

from core.schemas.errors import (
    AuthorizationException,
    ErrorCodes,
    TransportException,
    ValidationException,
)
from core.schemas.transport import LegPayload, TransportMessage
from core.transport import (
    RELAYER_TOKEN_HEADER,
    HttpRelayTransport,
    InMemoryTransport,
    MessagingTransport,
)

from fixtures.common import ALICE, BOB, CHAIN_A, CHAIN_B, ROUTER_A, ROUTER_B, TOKEN, make_commitment


class RecordingReceiver:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def on_message_received(self, payload, *, caller, source_chain, source_address, nonce):
        self.calls.append((payload, caller, source_chain, source_address, nonce))
        if self.error is not None:
            raise self.error


def send(transport, payload=b"{}", fee=0, destination=ROUTER_B, destination_chain=CHAIN_B):
    transport.send(
        destination_chain, destination, payload, ALICE, fee,
        source_chain=CHAIN_A, sender=ROUTER_A,
    )


class TestInMemoryTransport:
    """Tests for the in-process hub."""

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryTransport(), MessagingTransport)

    def test_queue_and_deliver(self):
        hub = InMemoryTransport()
        receiver = RecordingReceiver()
        hub.register_receiver(CHAIN_B, ROUTER_B, receiver)

        send(hub, b"hello")
        assert len(hub.pending) == 1
        assert receiver.calls == []

        assert hub.deliver_pending() == 1
        assert receiver.calls == [(b"hello", hub.address, CHAIN_A, ROUTER_A, 1)]
        assert hub.pending == []

    def test_nonces_per_path(self):
        hub = InMemoryTransport()
        send(hub)
        send(hub)
        send(hub, destination_chain=3)
        assert [m.nonce for m in hub.pending] == [1, 2, 1]

    def test_fee_below_quote_rejected(self):
        hub = InMemoryTransport(fee_per_message=5)
        assert hub.estimate_fee(CHAIN_B, b"x") == 5
        with pytest.raises(ValidationException) as exc_info:
            send(hub, fee=4)
        assert exc_info.value.code == ErrorCodes.INSUFFICIENT_MESSAGING_FEE
        assert hub.pending == []

    def test_missing_receiver_recorded(self):
        hub = InMemoryTransport()
        send(hub)
        assert hub.deliver_pending() == 0
        (failure,) = hub.failed
        assert failure.error_code == ErrorCodes.TRANSPORT_ERROR

    def test_receiver_error_recorded_not_raised(self):
        hub = InMemoryTransport()
        hub.register_receiver(CHAIN_B, ROUTER_B, RecordingReceiver(error=ValidationException("bad")))
        send(hub)
        assert hub.deliver_pending() == 0
        assert hub.failed[0].error_message == "bad"
        assert hub.delivered == []

    def test_auto_deliver(self):
        hub = InMemoryTransport(auto_deliver=True)
        receiver = RecordingReceiver()
        hub.register_receiver(CHAIN_B, ROUTER_B, receiver)
        send(hub)
        assert len(receiver.calls) == 1
        assert hub.pending == []

    def test_delivery_limit(self):
        hub = InMemoryTransport()
        hub.register_receiver(CHAIN_B, ROUTER_B, RecordingReceiver())
        for _ in range(3):
            send(hub)
        assert hub.deliver_pending(limit=2) == 2
        assert len(hub.pending) == 1


class StubResponse:
    def __init__(self, status_code):
        self.status_code = status_code


class StubSession:
    def __init__(self, status_code=202, error=None):
        self.status_code = status_code
        self.error = error
        self.posts = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return StubResponse(self.status_code)


def make_relay(session=None, **kwargs):
    return HttpRelayTransport(
        address="0x" + "00" * 18 + "e4d0",
        relayer_url="https://relayer.example/",
        relayer_token="s3cret",
        session=session or StubSession(),
        **kwargs,
    )


class TestHttpRelayTransport:
    """Tests for the HTTP relayer transport."""

    def test_posts_envelope(self):
        session = StubSession()
        relay = make_relay(session)
        payload = LegPayload(commitment=make_commitment(1), amount=7, token=TOKEN).encode()
        send(relay, payload)

        (post,) = session.posts
        assert post["url"] == "https://relayer.example/messages"
        assert post["headers"][RELAYER_TOKEN_HEADER] == "s3cret"
        envelope = TransportMessage.model_validate(post["json"])
        assert envelope.payload_bytes == payload
        assert envelope.nonce == 1
        assert envelope.source_address == ROUTER_A

    def test_unreachable_relayer(self):
        relay = make_relay(StubSession(error=requests.ConnectionError("refused")))
        with pytest.raises(TransportException) as exc_info:
            send(relay)
        assert exc_info.value.retryable

    def test_relayer_error_status(self):
        relay = make_relay(StubSession(status_code=503))
        with pytest.raises(TransportException) as exc_info:
            send(relay)
        assert exc_info.value.details["status_code"] == 503

    def test_requires_url_and_token(self):
        with pytest.raises(ValidationException):
            HttpRelayTransport(address=ROUTER_A, relayer_url="", relayer_token="x")
        with pytest.raises(ValidationException):
            HttpRelayTransport(address=ROUTER_A, relayer_url="http://r", relayer_token="")

    def message(self):
        return TransportMessage(
            source_chain=CHAIN_A,
            source_address=ROUTER_A,
            destination_chain=CHAIN_B,
            destination_address=ROUTER_B,
            nonce=4,
            payload="0x7b7d",
            refund_address=BOB,
        )

    def test_accept_dispatches_with_transport_as_caller(self):
        relay = make_relay()
        receiver = RecordingReceiver()
        relay.register_receiver(CHAIN_B, ROUTER_B, receiver)
        relay.accept(self.message(), "s3cret")
        assert receiver.calls == [(b"{}", relay.address, CHAIN_A, ROUTER_A, 4)]

    @pytest.mark.parametrize("token", [None, "", "wrong"])
    def test_accept_rejects_bad_token(self, token):
        relay = make_relay()
        receiver = RecordingReceiver()
        relay.register_receiver(CHAIN_B, ROUTER_B, receiver)
        with pytest.raises(AuthorizationException):
            relay.accept(self.message(), token)
        assert receiver.calls == []

    def test_accept_unknown_destination(self):
        relay = make_relay()
        with pytest.raises(ValidationException):
            relay.accept(self.message(), "s3cret")
