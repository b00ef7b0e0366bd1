import pytest
from fastapi.testclient import TestClient

from homefax.main import create_app

from conftest import ALICE, BOB, CAROL, FakeLedgerClient, MemoryContentStore


def bearer(client, wallet):
    r = client.post("/api/v1/auth/wallet-login", json={"walletAddress": wallet})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def fake_ledger():
    return FakeLedgerClient()


@pytest.fixture
def client(db, fake_ledger):
    return TestClient(create_app(ledger=fake_ledger))


def list_report(client, headers, price="0.5", content_ref="cid:abc"):
    r = client.post(
        "/api/v1/blockchain/property",
        json={"propertyAddress": "1 Main St", "city": "Springfield", "state": "IL", "zipCode": "62704"},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    property_id = r.json()["propertyId"]

    r = client.post(
        "/api/v1/blockchain/report",
        json={
            "propertyId": property_id,
            "reportType": "inspection",
            "reportHash": content_ref,
            "authorAddress": ALICE,
            "ownerAddress": ALICE,
            "price": price,
        },
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return property_id, r.json()["reportId"]


def test_create_purchase_and_read_flow(client, fake_ledger):
    alice = bearer(client, ALICE)
    bob = bearer(client, BOB)
    carol = bearer(client, CAROL)

    property_id, report_id = list_report(client, alice)
    assert fake_ledger.reports[report_id].price_wei == 500000000000000000

    r = client.get(f"/api/v1/blockchain/report/{report_id}/content", headers=bob)
    assert r.status_code == 403
    assert r.json()["code"] == "ACCESS_DENIED"

    r = client.post(f"/api/v1/blockchain/report/{report_id}/purchase", json={"price": "0.5"}, headers=bob)
    assert r.status_code == 200, r.text
    assert r.json()["txHash"].startswith("0x")

    r = client.post(f"/api/v1/blockchain/report/{report_id}/purchase", json={"price": "0.5"}, headers=bob)
    assert r.status_code == 409
    assert r.json()["code"] == "ALREADY_PURCHASED"
    assert len(fake_ledger.transfers) == 1

    r = client.get(f"/api/v1/blockchain/report/{report_id}/content", headers=bob)
    assert r.status_code == 200
    assert r.json()["reportHash"] == "cid:abc"
    assert r.json()["content"] is None

    assert client.get(f"/api/v1/blockchain/report/{report_id}/content", headers=carol).status_code == 403

    r = client.get(f"/api/v1/blockchain/report/{report_id}/purchased", params={"buyer": BOB.lower()}, headers=carol)
    assert r.json() == {"reportId": report_id, "buyer": BOB, "purchased": True}
    r = client.get(f"/api/v1/blockchain/report/{report_id}/purchased", headers=carol)
    assert r.json()["purchased"] is False

    report = client.get(f"/api/v1/blockchain/report/{report_id}", headers=bob).json()["report"]
    assert report["price"] == "0.5"
    assert report["creator"] == ALICE
    assert report["propertyId"] == property_id

    prop = client.get(f"/api/v1/blockchain/property/{property_id}", headers=alice).json()["property"]
    assert prop["owner"] == ALICE
    assert prop["zipCode"] == "62704"

    assert client.get("/api/v1/blockchain/user/properties", headers=alice).json()["propertyIds"] == [property_id]
    assert client.get("/api/v1/blockchain/user/properties", headers=bob).json()["propertyIds"] == []
    assert client.get(f"/api/v1/blockchain/property/{property_id}/reports", headers=bob).json()["reportIds"] == [report_id]


def test_missing_entities_are_404(client):
    alice = bearer(client, ALICE)

    r = client.get("/api/v1/blockchain/property/999", headers=alice)
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"
    assert client.get("/api/v1/blockchain/report/999", headers=alice).status_code == 404


def test_bad_price_is_400_and_sends_nothing(client, fake_ledger):
    alice = bearer(client, ALICE)
    fake_ledger.authorized.add(ALICE)

    r = client.post(
        "/api/v1/blockchain/report",
        json={
            "propertyId": 1,
            "reportType": "inspection",
            "reportHash": "cid:x",
            "authorAddress": ALICE,
            "ownerAddress": ALICE,
            "price": "0.0000000000000000001",
        },
        headers=alice,
    )
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_AMOUNT"
    assert fake_ledger.submissions == []


def test_confirmation_timeout_is_504_with_tx_hash(client, fake_ledger):
    alice = bearer(client, ALICE)
    fake_ledger.authorized.add(ALICE)
    fake_ledger.timeout_ops.add("create_property")

    r = client.post(
        "/api/v1/blockchain/property",
        json={"propertyAddress": "1 Main St", "city": "Springfield", "state": "IL", "zipCode": "62704"},
        headers=alice,
    )
    assert r.status_code == 504
    assert r.json()["code"] == "TRANSACTION_TIMED_OUT"
    assert r.json()["txHash"].startswith("0x")


def test_failed_authorization_is_403(client, fake_ledger):
    alice = bearer(client, ALICE)
    fake_ledger.fail_ops.add("authorize")

    r = client.get("/api/v1/blockchain/user/properties", headers=alice)
    assert r.status_code == 403
    assert r.json()["code"] == "AUTHORIZATION_FAILED"


def test_identity_without_wallet_is_400(client):
    r = client.post("/api/v1/auth/register", json={"email": "nowallet@example.com", "password": "password123"})
    headers = {"Authorization": f"Bearer {r.json()['access_token']}"}

    r = client.get("/api/v1/blockchain/user/properties", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "User wallet address is required"


def test_bad_buyer_query_is_400(client):
    alice = bearer(client, ALICE)

    r = client.get("/api/v1/blockchain/report/1/purchased", params={"buyer": "0x123"}, headers=alice)
    assert r.status_code == 400


def test_unconfigured_ledger_is_503(db):
    client = TestClient(create_app())
    alice = bearer(client, ALICE)

    r = client.get("/api/v1/blockchain/user/properties", headers=alice)
    assert r.status_code == 503


def test_content_resolved_through_store(db, fake_ledger):
    store = MemoryContentStore({"cid:text": "inspection notes".encode("utf-8"), "cid:bin": b"\xff\xfe\x00"})
    client = TestClient(create_app(ledger=fake_ledger, content_store=store))
    alice = bearer(client, ALICE)

    _, text_report = list_report(client, alice, content_ref="cid:text")
    _, bin_report = list_report(client, alice, content_ref="cid:bin")

    r = client.get(f"/api/v1/blockchain/report/{text_report}/content", headers=alice).json()
    assert r["content"] == "inspection notes"
    assert r["contentEncoding"] == "utf-8"

    r = client.get(f"/api/v1/blockchain/report/{bin_report}/content", headers=alice).json()
    assert r["content"] == "//4A"
    assert r["contentEncoding"] == "base64"


def test_authorization_status_and_revoke(client, fake_ledger):
    alice = bearer(client, ALICE)

    r = client.get("/api/v1/blockchain/authorization", headers=alice)
    assert r.status_code == 200
    assert r.json()["authorized"] is False

    list_report(client, alice)
    assert client.get("/api/v1/blockchain/authorization", headers=alice).json()["authorized"] is True

    r = client.delete("/api/v1/blockchain/authorization", headers=alice)
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "address": ALICE, "authorized": False, "changed": True}
    assert ALICE not in fake_ledger.authorized

    r = client.delete("/api/v1/blockchain/authorization", headers=alice)
    assert r.json()["changed"] is False
    assert fake_ledger.submission_count("deauthorize") == 1
