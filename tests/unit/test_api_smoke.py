"""
API Smoke Tests

Tests for the FastAPI endpoints:
1. GET /health returns ok and the chain id
2. Deposit, state, roots and events round through the ledger
3. POST /withdraw pays out once and maps domain errors to status codes
4. Splits: allocation, initiate, fetch, execute
5. POST /bridge/receive authenticates the relayer token
"""

import pytest
from fastapi.testclient import TestClient

from api.app import app
from api.deps import set_node
from core.config.runtime import RemoteRouteConfig
from core.node import ChainNode
from core.schemas.transport import LegPayload
from core.transport import HttpRelayTransport, RELAYER_TOKEN_HEADER
from core.verifier import MockVerifier

from fixtures.common import (
    ALICE,
    BOB,
    CHAIN_A,
    CHAIN_B,
    FEE_SINK,
    LEDGER_A,
    LEDGER_B,
    ROUTER_A,
    ROUTER_B,
    TOKEN,
    make_commitment,
    make_node_config,
    make_nullifier,
    make_two_chains,
)


client = TestClient(app)


@pytest.fixture
def chains():
    node_a, node_b, hub = make_two_chains()
    set_node(node_a)
    yield node_a, node_b, hub
    set_node(None)


@pytest.fixture
def relay_node():
    """Chain B node fed by an HTTP relayer; router B holds liquidity."""
    transport = HttpRelayTransport(
        address="0x" + "00" * 18 + "e4d0",
        relayer_url="https://relayer.example",
        relayer_token="s3cret",
    )
    config = make_node_config(
        CHAIN_B, LEDGER_B, ROUTER_B,
        remote=RemoteRouteConfig(
            chain_id=CHAIN_A, transport_chain_id=CHAIN_A,
            ledger_address=LEDGER_A, router_address=ROUTER_A,
        ),
    )
    node = ChainNode.from_config(config, transport=transport, verifier=MockVerifier())
    node.balances.mint(TOKEN, ROUTER_B, 10_000)
    set_node(node)
    yield node
    set_node(None)


def deposit(commitment_seed=1, amount=1000):
    return client.post(
        "/ledger/deposit",
        json={"commitment": make_commitment(commitment_seed), "amount": amount, "depositor": ALICE},
    )


def withdraw_body(root, nullifier_seed=1, amount=1000):
    nullifier = make_nullifier(nullifier_seed)
    return {
        "proof": {"pi_a": ["1", "2"]},
        "public_inputs": {"root": root, "nullifier": nullifier, "recipient": BOB, "amount": amount},
        "nullifier": nullifier,
        "recipient": BOB,
        "amount": amount,
    }


# =============================================================================
# Health
# =============================================================================

class TestHealth:
    """Tests for GET /health."""

    def test_health(self, chains):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["service"] == "privpay-api"
        assert data["chain_id"] == CHAIN_A


# =============================================================================
# Ledger
# =============================================================================

class TestLedgerEndpoints:
    """Tests for /ledger."""

    def test_deposit_and_state(self, chains):
        response = deposit()
        assert response.status_code == 200
        event = response.json()
        assert event["leaf_index"] == 0
        assert event["amount"] == 1000

        state = client.get("/ledger/state").json()
        assert state["root"] == event["new_root"]
        assert state["leaf_count"] == 1
        assert state["pool_balance"] == 1000

    def test_root_status(self, chains):
        first = deposit(1).json()["new_root"]
        second = deposit(2).json()["new_root"]

        assert client.get(f"/ledger/roots/{second}").json() == {
            "root": second, "known": True, "current": True,
        }
        old = client.get(f"/ledger/roots/{first}").json()
        assert old["known"] is True
        assert old["current"] is False
        assert client.get("/ledger/roots/0x" + "00" * 32).json()["known"] is False
        assert client.get("/ledger/roots/garbage").json()["known"] is False

    def test_events_paging(self, chains):
        for seed in range(3):
            deposit(seed)
        page = client.get("/ledger/events", params={"from_index": 1, "limit": 1}).json()
        assert [e["leaf_index"] for e in page["events"]] == [1]
        assert page["next_index"] == 2
        tail = client.get("/ledger/events", params={"from_index": 3}).json()
        assert tail == {"events": [], "next_index": 3}

    def test_duplicate_commitment_is_409(self, chains):
        deposit(1)
        response = deposit(1)
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "DUPLICATE_COMMITMENT"
        assert error["category"] == "state_conflict"

    def test_unfunded_depositor_is_402(self, chains):
        response = client.post(
            "/ledger/deposit",
            json={"commitment": make_commitment(9), "amount": 5, "depositor": BOB},
        )
        assert response.status_code == 402
        assert response.json()["error"]["code"] == "INSUFFICIENT_BALANCE"

    def test_zero_commitment_is_400(self, chains):
        response = client.post(
            "/ledger/deposit",
            json={"commitment": "0x" + "00" * 32, "amount": 5, "depositor": ALICE},
        )
        assert response.status_code == 400
        assert response.json()["ok"] is False


# =============================================================================
# Withdrawal
# =============================================================================

class TestWithdrawEndpoints:
    """Tests for /withdraw and /nullifiers."""

    def test_withdraw_once(self, chains):
        node_a, _, _ = chains
        root = deposit().json()["new_root"]

        response = client.post("/withdraw", json=withdraw_body(root))
        assert response.status_code == 200
        receipt = response.json()
        assert receipt["payout"] == 999
        assert receipt["fee"] == 1
        assert node_a.balances.balance_of(TOKEN, BOB) == 999

        status = client.get(f"/nullifiers/{make_nullifier(1)}").json()
        assert status["used"] is True
        assert status["spent_at"] is not None

        again = client.post("/withdraw", json=withdraw_body(root))
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "NULLIFIER_REUSED"

    def test_unused_nullifier(self, chains):
        status = client.get(f"/nullifiers/{make_nullifier(5)}").json()
        assert status == {"nullifier": make_nullifier(5), "used": False, "spent_at": None}

    def test_unknown_root_is_422(self, chains):
        deposit()
        response = client.post("/withdraw", json=withdraw_body("0x" + "12" * 31 + "00"))
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "UNKNOWN_ROOT"

    def test_rejected_proof_is_422(self, chains):
        node_a, _, _ = chains
        root = deposit().json()["new_root"]
        node_a.withdrawal.verifier = MockVerifier(result=False)
        response = client.post("/withdraw", json=withdraw_body(root))
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "PROOF_REJECTED"

    def test_mismatched_inputs_are_400(self, chains):
        root = deposit().json()["new_root"]
        body = withdraw_body(root)
        body["amount"] = 500
        response = client.post("/withdraw", json=body)
        assert response.status_code == 400
        assert response.json()["error"]["details"]["mismatched"] == ["amount"]


# =============================================================================
# Splits
# =============================================================================

class TestSplitEndpoints:
    """Tests for /splits."""

    def test_allocation(self, chains):
        node_a, _, _ = chains
        node_a.router.update_gas_price(CHAIN_A, 10, caller=node_a.router.owner)
        node_a.router.update_gas_price(CHAIN_B, 30, caller=node_a.router.owner)
        response = client.post("/splits/allocation", json={"total": 1000, "destinations": [CHAIN_A, CHAIN_B]})
        assert response.status_code == 200
        assert response.json()["amounts"] == [750, 250]

    def test_unregistered_destination_is_400(self, chains):
        response = client.post("/splits/allocation", json={"total": 1000, "destinations": [99]})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UNREGISTERED_DESTINATION"

    def test_split_lifecycle(self, chains):
        node_a, node_b, hub = chains
        created = client.post("/splits", json={
            "destinations": [CHAIN_A, CHAIN_B],
            "amounts": [600, 400],
            "commitments": [make_commitment("a"), make_commitment("b")],
            "token": TOKEN,
            "initiator": ALICE,
            "total": 1000,
        })
        assert created.status_code == 200
        split_id = created.json()["split_id"]
        assert created.json()["split"]["status"] == "pending"

        fetched = client.get(f"/splits/{split_id}").json()
        assert fetched["total"] == 1000

        executed = client.post(f"/splits/{split_id}/execute", json={"caller": ALICE})
        assert executed.status_code == 200
        assert executed.json()["messages_sent"] == 1
        assert len(executed.json()["local_deposits"]) == 1

        hub.deliver_pending()
        assert node_b.ledger.pool_balance() == 400

        again = client.post(f"/splits/{split_id}/execute", json={"caller": ALICE})
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "ALREADY_EXECUTED"

    def test_unknown_split_is_400(self, chains):
        response = client.get("/splits/0x" + "ab" * 32)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UNKNOWN_SPLIT"


# =============================================================================
# Bridge
# =============================================================================

def relayed_message(nonce=1, source_address=ROUTER_A, amount=250):
    payload = LegPayload(commitment=make_commitment("relayed"), amount=amount, token=TOKEN).encode()
    return {
        "source_chain": CHAIN_A,
        "source_address": source_address,
        "destination_chain": CHAIN_B,
        "destination_address": ROUTER_B,
        "nonce": nonce,
        "payload": "0x" + payload.hex(),
        "fee": 0,
        "refund_address": ALICE,
    }


class TestBridgeEndpoint:
    """Tests for POST /bridge/receive."""

    def test_relayed_deposit(self, relay_node):
        response = client.post(
            "/bridge/receive",
            json=relayed_message(),
            headers={RELAYER_TOKEN_HEADER: "s3cret"},
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True, "source_chain": CHAIN_A, "nonce": 1}
        assert relay_node.ledger.pool_balance() == 250
        assert relay_node.ledger.contains(make_commitment("relayed"))

    def test_replay_is_409(self, relay_node):
        headers = {RELAYER_TOKEN_HEADER: "s3cret"}
        client.post("/bridge/receive", json=relayed_message(), headers=headers)
        response = client.post("/bridge/receive", json=relayed_message(), headers=headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "MESSAGE_REPLAYED"

    @pytest.mark.parametrize("headers", [{}, {RELAYER_TOKEN_HEADER: "wrong"}])
    def test_bad_token_is_403(self, relay_node, headers):
        response = client.post("/bridge/receive", json=relayed_message(), headers=headers)
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "UNTRUSTED_TRANSPORT"
        assert relay_node.ledger.pool_balance() == 0

    def test_untrusted_source_is_403(self, relay_node):
        response = client.post(
            "/bridge/receive",
            json=relayed_message(source_address=FEE_SINK),
            headers={RELAYER_TOKEN_HEADER: "s3cret"},
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "UNTRUSTED_SOURCE"

    def test_memory_node_refuses_relay(self, chains):
        response = client.post(
            "/bridge/receive",
            json=relayed_message(),
            headers={RELAYER_TOKEN_HEADER: "s3cret"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"
