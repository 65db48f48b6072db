"""HTTP surface tests: auth, status codes and error payloads."""

import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import load_fields
from dockdirect.database import get_db
from dockdirect.main import app
from dockdirect.middleware.auth import create_access_token


def auth(user_id: str, role: str) -> dict:
    token = create_access_token({"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


SHIPPER = auth("shipper-1", "shipper")
DRIVER_1 = auth("driver-1", "driver")
DRIVER_2 = auth("driver-2", "driver")
ADMIN = auth("admin-1", "admin")


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def posted_load(client):
    resp = client.post("/api/loads", json=load_fields(), headers=SHIPPER)
    assert resp.status_code == 201
    return resp.json()


class TestLoadsApi:

    def test_post_load(self, posted_load):
        assert posted_load["status"] == "open"
        assert posted_load["shipper_id"] == "shipper-1"
        assert posted_load["rate_cents"] == 240000

    def test_validation_lists_every_violation(self, client):
        resp = client.post(
            "/api/loads",
            json=load_fields(pallet_count=30, rate_cents=0),
            headers=SHIPPER,
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "ValidationError"
        assert len(body["violations"]) == 2
        assert body["retryable"] is False

    def test_driver_cannot_post(self, client):
        resp = client.post("/api/loads", json=load_fields(), headers=DRIVER_1)
        assert resp.status_code == 403

    def test_missing_load(self, client):
        resp = client.get("/api/loads/does-not-exist", headers=ADMIN)
        assert resp.status_code == 404
        assert resp.json()["error"] == "NotFoundError"

    def test_illegal_transition(self, client, posted_load):
        resp = client.patch(
            f"/api/loads/{posted_load['id']}/status",
            json={"status": "completed"},
            headers=SHIPPER,
        )
        assert resp.status_code == 409
        body = resp.json()
        assert body["error"] == "InvalidTransitionError"
        assert body["transition"] == {"entity_type": "load", "from": "open", "to": "completed"}

    def test_open_board(self, client, posted_load):
        resp = client.get("/api/loads/open", headers=DRIVER_1)
        assert resp.status_code == 200
        assert resp.json()["total"] == 1
        assert client.get("/api/loads/open", headers=SHIPPER).status_code == 403


class TestBiddingApi:

    def test_bid_accept_and_lose_race(self, client, posted_load):
        load_id = posted_load["id"]
        bid1 = client.post(f"/api/loads/{load_id}/bids", json={"amount_cents": 235000}, headers=DRIVER_1)
        bid2 = client.post(f"/api/loads/{load_id}/bids", json={"amount_cents": 245000}, headers=DRIVER_2)
        assert bid1.status_code == 201
        assert bid2.status_code == 201

        accepted = client.post(f"/api/bids/{bid2.json()['id']}/accept", headers=SHIPPER)
        assert accepted.status_code == 200
        body = accepted.json()
        assert body["load"]["status"] == "assigned"
        assert body["load"]["assigned_driver_id"] == "driver-2"
        assert body["bid"]["status"] == "accepted"

        late = client.post(f"/api/bids/{bid1.json()['id']}/accept", headers=SHIPPER)
        assert late.status_code == 409
        assert late.json()["error"] == "LoadNoLongerOpenError"
        assert late.json()["retryable"] is True

        docs = client.get(f"/api/loads/{load_id}/documents", headers=SHIPPER)
        assert [d["doc_type"] for d in docs.json()] == ["rate_confirm"]

    def test_duplicate_bid(self, client, posted_load):
        url = f"/api/loads/{posted_load['id']}/bids"
        client.post(url, json={"amount_cents": 235000}, headers=DRIVER_1)
        resp = client.post(url, json={"amount_cents": 230000}, headers=DRIVER_1)
        assert resp.status_code == 409
        assert resp.json()["error"] == "DuplicateBidError"


class TestContractsApi:

    def test_sign_both_parties(self, client, posted_load):
        load_id = posted_load["id"]
        bid = client.post(f"/api/loads/{load_id}/bids", json={"amount_cents": 235000}, headers=DRIVER_1)
        client.post(f"/api/bids/{bid.json()['id']}/accept", headers=SHIPPER)

        created = client.post(
            "/api/contracts",
            json={"load_id": load_id, "driver_id": "driver-1", "terms": "Standard terms"},
            headers=SHIPPER,
        )
        assert created.status_code == 201
        contract_id = created.json()["id"]

        client.post(f"/api/contracts/{contract_id}/sign", json={"signature": "Acme Freight"}, headers=SHIPPER)
        signed = client.post(
            f"/api/contracts/{contract_id}/sign", json={"signature": "Sarah Chen"}, headers=DRIVER_1
        )
        assert signed.status_code == 200
        assert signed.json()["status"] == "signed"

        load = client.get(f"/api/loads/{load_id}", headers=SHIPPER).json()
        assert load["status"] == "in_transit"


class TestAuthAndAudit:

    def test_invalid_token(self, client):
        resp = client.get("/api/loads", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_token_without_role(self, client):
        token = create_access_token({"sub": "someone"})
        resp = client.get("/api/loads", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_unknown_role_is_forbidden(self, client):
        resp = client.get("/api/loads", headers=auth("someone", "broker"))
        assert resp.status_code == 403

    def test_audit_trail_admin_only(self, client, posted_load):
        url = f"/api/audit/load/{posted_load['id']}"
        assert client.get(url, headers=SHIPPER).status_code == 403

        resp = client.get(url, headers=ADMIN)
        assert resp.status_code == 200
        entries = resp.json()
        assert [e["action"] for e in entries] == ["LOAD_CREATED"]
        assert entries[0]["actor_user_id"] == "shipper-1"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
