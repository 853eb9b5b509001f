"""
test_api_payments_kyc.py - Payment transactions, KYC review and KYC fees.
"""


class TestTransactions:

    def test_payment_for_subscription(self, client, admin_headers, alice, subscribe):
        headers, miner_id = alice
        sub_id = subscribe(headers, paid=False)
        resp = client.post("/api/transactions", headers=headers, json={
            "entity": "subscription", "entityId": sub_id, "amountUsd": 1000,
        })
        assert resp.status_code == 201
        tx = resp.json()["data"]
        assert tx["status"] == "initialized"

        resp = client.patch(f"/api/transactions/{tx['id']}/status", headers=admin_headers,
                            json={"status": "pending"})
        assert resp.json()["data"]["status"] == "pending"
        client.patch(f"/api/transactions/{tx['id']}/status", headers=admin_headers,
                     json={"status": "successful"})
        sub = client.get(f"/api/subscriptions/{sub_id}", headers=headers).json()["data"]
        assert sub["status"] == "active"

        mine = client.get(f"/api/transactions/miner/{miner_id}", headers=headers).json()["data"]
        assert len(mine) == 2

    def test_terminal_status(self, client, admin_headers, alice, subscribe):
        headers, _ = alice
        sub_id = subscribe(headers, paid=False)
        tx_id = client.post("/api/transactions", headers=headers, json={
            "entity": "subscription", "entityId": sub_id, "amountUsd": 5,
        }).json()["data"]["id"]
        client.patch(f"/api/transactions/{tx_id}/status", headers=admin_headers,
                     json={"status": "failed"})
        resp = client.patch(f"/api/transactions/{tx_id}/status", headers=admin_headers,
                            json={"status": "successful"})
        assert resp.status_code == 400

    def test_by_status_and_stats(self, client, admin_headers, alice, subscribe):
        subscribe(alice[0], amount=300)
        subscribe(alice[0], amount=200, paid=False)
        resp = client.get("/api/transactions/status/successful", headers=admin_headers)
        assert resp.json()["pagination"]["total"] == 1
        stats = client.get("/api/transactions/stats", headers=admin_headers).json()["data"]
        assert stats["total_volume"] == 500.0
        assert stats["successful_volume"] == 300.0

    def test_other_miner_hidden(self, client, alice, bob, subscribe):
        sub_id = subscribe(alice[0], paid=False)
        resp = client.post("/api/transactions", headers=bob[0], json={
            "entity": "subscription", "entityId": sub_id, "amountUsd": 5,
        })
        assert resp.status_code == 404


class TestKYC:

    def test_submit_and_review(self, client, admin_headers, alice):
        headers, miner_id = alice
        resp = client.post("/api/kyc", headers=headers, json={"idCard": "uploads/alice-id.png"})
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["kyc"]["status"] == "pending"
        assert data["fee"]["amount"] == 10.0
        assert data["fee"]["is_paid"] is False

        kyc_id = data["kyc"]["id"]
        resp = client.patch(f"/api/kyc/{kyc_id}/status", headers=admin_headers,
                            json={"status": "successful"})
        assert resp.json()["data"]["status"] == "successful"
        mine = client.get(f"/api/kyc/miner/{miner_id}", headers=headers).json()["data"]
        assert mine["id"] == kyc_id

    def test_resubmission_conflict(self, client, alice):
        headers, _ = alice
        client.post("/api/kyc", headers=headers, json={"idCard": "a.png"})
        resp = client.post("/api/kyc", headers=headers, json={"idCard": "b.png"})
        assert resp.status_code == 409

    def test_failure_needs_reason(self, client, admin_headers, alice):
        kyc_id = client.post("/api/kyc", headers=alice[0], json={"idCard": "a.png"}).json()["data"]["kyc"]["id"]
        resp = client.patch(f"/api/kyc/{kyc_id}/status", headers=admin_headers, json={"status": "failed"})
        assert resp.status_code == 400

    def test_admin_key_cannot_submit(self, client, admin_headers):
        resp = client.post("/api/kyc", headers=admin_headers, json={"idCard": "a.png"})
        assert resp.status_code == 403

    def test_stats(self, client, admin_headers, alice, bob):
        kyc_id = client.post("/api/kyc", headers=alice[0], json={"idCard": "a.png"}).json()["data"]["kyc"]["id"]
        client.post("/api/kyc", headers=bob[0], json={"idCard": "b.png"})
        client.patch(f"/api/kyc/{kyc_id}/status", headers=admin_headers,
                     json={"status": "failed", "rejectionReason": "Expired document"})
        stats = client.get("/api/kyc/stats", headers=admin_headers).json()["data"]
        assert stats["pending"] == 1
        assert stats["failed"] == 1
        assert stats["approval_rate"] == 0.0


class TestKYCFees:

    def test_fee_paid_by_transaction(self, client, admin_headers, alice):
        headers, miner_id = alice
        fee_id = client.post("/api/kyc", headers=headers, json={"idCard": "a.png"}).json()["data"]["fee"]["id"]
        tx_id = client.post("/api/transactions", headers=headers, json={
            "entity": "kyc", "entityId": fee_id, "amountUsd": 10,
        }).json()["data"]["id"]
        client.patch(f"/api/transactions/{tx_id}/status", headers=admin_headers,
                     json={"status": "successful"})
        fee = client.get(f"/api/kyc-fees/{fee_id}", headers=headers).json()["data"]
        assert fee["is_paid"] is True
        paid = client.get("/api/kyc-fees/paid", headers=admin_headers).json()["data"]
        assert [f["id"] for f in paid] == [fee_id]

    def test_mark_paid_directly(self, client, admin_headers, alice):
        headers, miner_id = alice
        fee_id = client.post("/api/kyc", headers=headers, json={"idCard": "a.png"}).json()["data"]["fee"]["id"]
        assert len(client.get("/api/kyc-fees/unpaid", headers=admin_headers).json()["data"]) == 1
        resp = client.patch(f"/api/kyc-fees/{fee_id}/pay", headers=admin_headers)
        assert resp.json()["data"]["is_paid"] is True
        assert client.patch(f"/api/kyc-fees/{fee_id}/pay", headers=admin_headers).status_code == 400
        stats = client.get("/api/kyc-fees/stats", headers=admin_headers).json()["data"]
        assert stats["collected"] == 10.0
        mine = client.get(f"/api/kyc-fees/miner/{miner_id}", headers=headers).json()["data"]
        assert len(mine) == 1

    def test_fee_hidden_from_other_miner(self, client, alice, bob):
        fee_id = client.post("/api/kyc", headers=alice[0], json={"idCard": "a.png"}).json()["data"]["fee"]["id"]
        assert client.get(f"/api/kyc-fees/{fee_id}", headers=bob[0]).status_code == 404
