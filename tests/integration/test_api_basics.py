"""
test_api_basics.py - Response envelope, error mapping and access control.
"""


class TestEnvelope:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["status"] == "ok"

    def test_unknown_route(self, client):
        resp = client.get("/api/nowhere")
        assert resp.status_code == 404
        assert resp.json()["success"] is False

    def test_validation_error_shape(self, client, alice):
        headers, _ = alice
        resp = client.post("/api/withdrawals", headers=headers, json={"amount": "lots"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        fields = {d["field"] for d in body["details"]}
        assert "body.subscriptionId" in fields
        assert "body.amount" in fields

    def test_not_found_message(self, client, admin_headers):
        resp = client.get("/api/servers/999", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Mining server not found"

    def test_paginated(self, client, admin_headers, alice, subscribe):
        headers, _ = alice
        for amount in (100, 200, 300):
            subscribe(headers, amount=amount, paid=False)
        resp = client.get("/api/subscriptions?page=2&limit=2", headers=admin_headers)
        body = resp.json()
        assert resp.status_code == 200
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}

    def test_page_size_capped(self, client, admin_headers):
        resp = client.get("/api/subscriptions?limit=500", headers=admin_headers)
        assert resp.status_code == 400


class TestAccessControl:

    def test_missing_credentials(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    def test_garbage_bearer(self, client):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_wrong_admin_key(self, client):
        resp = client.get("/api/withdrawals", headers={"X-API-Key": "guess"})
        assert resp.status_code == 401

    def test_miner_on_admin_route(self, client, alice):
        headers, _ = alice
        resp = client.get("/api/withdrawals", headers=headers)
        assert resp.status_code == 403

    def test_catalog_reads_are_public(self, client, contract_id):
        assert client.get("/api/servers").status_code == 200
        assert client.get(f"/api/contracts/{contract_id}").status_code == 200

    def test_catalog_writes_need_admin(self, client, alice):
        headers, _ = alice
        resp = client.post("/api/servers", headers=headers, json={
            "name": "Rogue", "hash_rate": "1", "power_consumption_kwh": "1",
        })
        assert resp.status_code == 403
