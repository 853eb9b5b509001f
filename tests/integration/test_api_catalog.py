"""
test_api_catalog.py - Mining servers, contracts and payout destinations.
"""


def _server(client, admin_headers, name="Whatsminer M50"):
    resp = client.post("/api/servers", headers=admin_headers, json={
        "name": name, "hash_rate": "120 TH/s", "power_consumption_kwh": "3.3",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


class TestServers:

    def test_create_and_list(self, client, admin_headers):
        server_id = _server(client, admin_headers)
        resp = client.get("/api/servers")
        assert [s["id"] for s in resp.json()["data"]] == [server_id]

    def test_duplicate_name(self, client, admin_headers):
        _server(client, admin_headers)
        resp = client.post("/api/servers", headers=admin_headers, json={
            "name": "Whatsminer M50", "hash_rate": "1", "power_consumption_kwh": "1",
        })
        assert resp.status_code == 409

    def test_update(self, client, admin_headers):
        server_id = _server(client, admin_headers)
        resp = client.patch(f"/api/servers/{server_id}", headers=admin_headers,
                            json={"hash_rate": "126 TH/s"})
        assert resp.status_code == 200
        assert resp.json()["data"]["hash_rate"] == "126 TH/s"

    def test_delete_deactivates(self, client, admin_headers):
        server_id = _server(client, admin_headers)
        resp = client.delete(f"/api/servers/{server_id}", headers=admin_headers)
        assert resp.status_code == 204
        active = client.get("/api/servers?active_only=true").json()["data"]
        assert active == []
        assert client.get(f"/api/servers/{server_id}").json()["data"]["is_active"] is False

    def test_with_contracts(self, client, contract_id):
        data = client.get("/api/servers/with-contracts").json()["data"]
        assert data[0]["contracts"][0]["id"] == contract_id


class TestContracts:

    def test_create_uses_camel_case(self, client, contract_id):
        data = client.get(f"/api/contracts/{contract_id}").json()["data"]
        assert data["period"] == "weekly"
        assert data["period_return"] == 3.0
        assert data["server_name"] == "Antminer S19"

    def test_invalid_period(self, client, admin_headers):
        server_id = _server(client, admin_headers)
        resp = client.post("/api/contracts", headers=admin_headers, json={
            "miningServerId": server_id, "periodReturn": 3, "period": "hourly",
        })
        assert resp.status_code == 400

    def test_missing_server(self, client, admin_headers):
        resp = client.post("/api/contracts", headers=admin_headers, json={
            "miningServerId": 999, "periodReturn": 3, "period": "daily",
        })
        assert resp.status_code == 404

    def test_filters(self, client, admin_headers, contract_id):
        server_id = _server(client, admin_headers)
        client.post("/api/contracts", headers=admin_headers, json={
            "miningServerId": server_id, "periodReturn": 1, "period": "daily",
        })
        weekly = client.get("/api/contracts/period/weekly").json()["data"]
        assert [c["id"] for c in weekly] == [contract_id]
        on_server = client.get(f"/api/contracts/server/{server_id}").json()["data"]
        assert [c["period"] for c in on_server] == ["daily"]


class TestPayoutDestinations:

    def test_bank_lifecycle(self, client, admin_headers, alice):
        headers, _ = alice
        resp = client.post("/api/banks", headers=admin_headers, json={
            "name": "First Bank", "account_number": "0012345678", "account_name": "HashYield Ltd",
        })
        assert resp.status_code == 201
        bank_id = resp.json()["data"]["id"]
        assert client.get("/api/banks/active").status_code == 401
        assert len(client.get("/api/banks/active", headers=headers).json()["data"]) == 1
        assert client.get("/api/banks", headers=headers).status_code == 403
        assert client.delete(f"/api/banks/{bank_id}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/banks/{bank_id}", headers=headers).status_code == 404

    def test_wallet_address_unique(self, client, admin_headers):
        wallet = {"currency": "Tether", "currency_abbreviation": "USDT", "address": "TXyz123"}
        assert client.post("/api/wallets", headers=admin_headers, json=wallet).status_code == 201
        assert client.post("/api/wallets", headers=admin_headers, json=wallet).status_code == 409
