"""
test_api_subscriptions.py - Subscription lifecycle and ledger endpoints.

A 3% weekly contract on a 1000 deposit earns 30.00 per 7 days.
"""


class TestLifecycle:

    def test_subscribe_pending_until_paid(self, client, admin_headers, alice, contract_id):
        headers, miner_id = alice
        resp = client.post("/api/subscriptions", headers=headers, json={
            "miningContractId": contract_id, "amount": 1000,
        })
        assert resp.status_code == 201
        data = resp.json()["data"]
        sub = data["subscription"]
        assert sub["status"] == "pending"
        assert sub["miner_id"] == miner_id

        client.patch(f"/api/transactions/{data['transaction_id']}/status",
                     headers=admin_headers, json={"status": "successful"})
        sub = client.get(f"/api/subscriptions/{sub['id']}", headers=headers).json()["data"]
        assert sub["status"] == "active"
        assert sub["deposit_status"] == "complete"

    def test_unknown_contract(self, client, alice):
        headers, _ = alice
        resp = client.post("/api/subscriptions", headers=headers, json={
            "miningContractId": 999, "amount": 10,
        })
        assert resp.status_code == 404

    def test_other_miner_cannot_see(self, client, alice, bob, subscribe):
        sub_id = subscribe(alice[0])
        assert client.get(f"/api/subscriptions/{sub_id}", headers=bob[0]).status_code == 404
        resp = client.get(f"/api/subscriptions/miner/{alice[1]}", headers=bob[0])
        assert resp.status_code == 403

    def test_cancel(self, client, alice, subscribe):
        headers, _ = alice
        sub_id = subscribe(headers)
        resp = client.post(f"/api/subscriptions/{sub_id}/cancel", headers=headers)
        assert resp.json()["data"]["status"] == "cancelled"
        resp = client.post(f"/api/subscriptions/{sub_id}/cancel", headers=headers)
        assert resp.status_code == 400

    def test_dashboard(self, client, alice, subscribe):
        headers, _ = alice
        subscribe(headers, amount=1000, earnings=100)
        subscribe(headers, amount=1000, paid=False)
        summary = client.get("/api/subscriptions/dashboard", headers=headers).json()["data"]["summary"]
        assert summary["total_deposits"] == 2000.0
        assert summary["total_earnings"] == 100.0
        assert summary["roi"] == 5.0
        assert summary["active_subscriptions"] == 1
        assert summary["pending_subscriptions"] == 1

    def test_dashboard_needs_miner(self, client, admin_headers):
        assert client.get("/api/subscriptions/dashboard", headers=admin_headers).status_code == 403


class TestEarningsEndpoint:

    def test_add_set_subtract(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0])
        url = f"/api/subscriptions/{sub_id}/earnings"
        resp = client.patch(url, headers=admin_headers, json={"earnings": 50, "actionType": "add"})
        assert resp.json()["data"]["earnings"] == 50.0
        resp = client.patch(url, headers=admin_headers, json={"amount": 20.25, "actionType": "subtract"})
        assert resp.json()["data"]["earnings"] == 29.75
        resp = client.patch(url, headers=admin_headers, json={"earnings": 0, "actionType": "set"})
        assert resp.json()["data"]["earnings"] == 0.0

    def test_subtract_below_zero(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0], earnings=10)
        resp = client.patch(f"/api/subscriptions/{sub_id}/earnings", headers=admin_headers,
                            json={"earnings": 10.01, "actionType": "subtract"})
        assert resp.status_code == 409
        assert resp.json()["details"]["field"] == "earnings"

    def test_unknown_action(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0])
        resp = client.patch(f"/api/subscriptions/{sub_id}/earnings", headers=admin_headers,
                            json={"earnings": 1, "actionType": "multiply"})
        assert resp.status_code == 400

    def test_missing_amount(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0])
        resp = client.patch(f"/api/subscriptions/{sub_id}/earnings", headers=admin_headers,
                            json={"actionType": "add"})
        assert resp.status_code == 400

    def test_miner_cannot_adjust(self, client, alice, subscribe):
        headers, _ = alice
        sub_id = subscribe(headers)
        resp = client.patch(f"/api/subscriptions/{sub_id}/earnings", headers=headers,
                            json={"earnings": 1000, "actionType": "set"})
        assert resp.status_code == 403


class TestDepositEndpoint:

    def test_credit_and_debit(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0], amount=1000)
        url = f"/api/subscriptions/{sub_id}/deposit"
        resp = client.patch(url, headers=admin_headers, json={"amount": 250, "actionType": "credit"})
        assert resp.json()["data"]["amount_deposited"] == 1250.0
        resp = client.patch(url, headers=admin_headers, json={"amount": 1250, "actionType": "debit"})
        assert resp.json()["data"]["amount_deposited"] == 0.0

    def test_debit_overdraw(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0], amount=100)
        resp = client.patch(f"/api/subscriptions/{sub_id}/deposit", headers=admin_headers,
                            json={"amount": 101, "actionType": "debit"})
        assert resp.status_code == 409

    def test_history_records_mutations(self, client, admin_headers, alice, subscribe):
        headers, _ = alice
        sub_id = subscribe(headers, amount=1000)
        client.patch(f"/api/subscriptions/{sub_id}/deposit", headers=admin_headers,
                     json={"amount": 5, "actionType": "credit"})
        history = client.get(f"/api/subscriptions/{sub_id}/history", headers=headers).json()["data"]
        entry = history["ledger"][-1]
        assert entry["field"] == "deposit"
        assert entry["mode"] == "increase"
        assert entry["balance_after"] == 1005.0


class TestAccrual:

    def test_calculate_preview(self, client, alice, subscribe):
        headers, _ = alice
        sub_id = subscribe(headers, amount=1000)
        data = client.get(f"/api/subscriptions/{sub_id}/calculate?days=7", headers=headers).json()["data"]
        assert data["projected_earnings"] == 30.0
        assert data["current_earnings"] == 0.0

    def test_accrue(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0], amount=1000)
        resp = client.post(f"/api/subscriptions/{sub_id}/accrue", headers=admin_headers, json={"days": 7})
        assert resp.status_code == 200
        assert resp.json()["data"]["earnings"] == 30.0

    def test_accrue_pending_subscription(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0], paid=False)
        resp = client.post(f"/api/subscriptions/{sub_id}/accrue", headers=admin_headers, json={"days": 1})
        assert resp.status_code == 404

    def test_process_earnings(self, client, admin_headers, alice, subscribe):
        subscribe(alice[0], amount=1000)
        subscribe(alice[0], amount=500, paid=False)
        resp = client.post("/api/subscriptions/process-earnings", headers=admin_headers, json={"days": 7})
        assert resp.json()["data"] == {"processed": 1, "failed": 0, "total": 1}

    def test_days_out_of_range(self, client, admin_headers, alice, subscribe):
        sub_id = subscribe(alice[0])
        resp = client.post(f"/api/subscriptions/{sub_id}/accrue", headers=admin_headers, json={"days": 0})
        assert resp.status_code == 400
