"""Integration tests for the FastAPI endpoints."""

from urllib.parse import quote

import pytest


def _payload(**overrides):
    payload = {
        "amount": 50000.0,
        "currency": "INR",
        "from_account": "ACC-8892-IN (Amit Sharma)",
        "to_account": "ACC-1123-IN (Local Vendors)",
        "receiver_country": "India",
        "type": "NEFT",
        "location": "Delhi Branch",
        "timestamp": "2026-02-22T10:00:00Z",
    }
    payload.update(overrides)
    return payload


def _mule_batch():
    return [
        _payload(
            from_account="ACC-MULE-01",
            to_account="ACC-COLLECT-99",
            amount=950000.0,
            type="IMPS",
            timestamp=f"2026-02-22T10:00:{i * 5:02d}Z",
        )
        for i in range(5)
    ]


class TestHealthEndpoint:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}


class TestScreeningEndpoint:
    def test_routine_transaction(self, client):
        resp = client.post("/api/screening", json=_payload())
        assert resp.status_code == 200
        data = resp.json()
        assert data["transaction"]["id"].startswith("TX-")
        assert data["transaction"]["status"] == "Processed"
        assert data["risk_score"]["score"] == 11
        assert data["risk_score"]["risk_level"] == "Low"
        assert data["risk_score"]["is_high_risk"] is False
        assert data["report"]["is_filed"] is False

    def test_tax_haven_flagged(self, client):
        resp = client.post("/api/screening", json=_payload(amount=500000.0, receiver_country="Cayman"))
        data = resp.json()
        assert data["transaction"]["status"] == "Flagged"
        assert data["risk_score"]["score"] == 50
        assert data["risk_score"]["risk_level"] == "High"
        assert data["risk_score"]["breakdown"]["rules"] == 95
        assert data["report"]["is_filed"] is True
        assert data["report"]["narrative_source"] == "deterministic"
        assert data["report"]["xml_payload"].startswith("<STR")

    def test_ids_assigned_in_arrival_order(self, client):
        first = client.post("/api/screening", json=_payload()).json()
        second = client.post("/api/screening", json=_payload()).json()
        assert first["transaction"]["id"] == "TX-1001"
        assert second["transaction"]["id"] == "TX-1002"
        assert second["risk_score"]["velocity_count"] == 2

    @pytest.mark.parametrize(
        "overrides",
        [
            {"amount": -5},
            {"amount": 0},
            {"amount": "a lot"},
            {"from_account": "  "},
            {"currency": "RUPEES"},
        ],
    )
    def test_invalid_payload(self, client, overrides):
        resp = client.post("/api/screening", json=_payload(**overrides))
        assert resp.status_code == 422

    def test_missing_field(self, client):
        payload = _payload()
        del payload["receiver_country"]
        assert client.post("/api/screening", json=payload).status_code == 422

    def test_rejected_input_leaves_no_trace(self, client):
        client.post("/api/screening", json=_payload(amount=-1))
        assert client.get("/api/audit").json() == []


class TestBatchEndpoint:
    def test_mule_batch(self, client):
        resp = client.post("/api/screening/batch", json={"transactions": _mule_batch()})
        assert resp.status_code == 200
        data = resp.json()
        results = data["results"]
        assert [r["risk_score"]["velocity_count"] for r in results] == [1, 2, 3, 4, 5]
        assert results[-1]["risk_score"]["risk_level"] == "Critical"
        assert results[-1]["risk_score"]["score"] == 90
        assert results[-1]["risk_score"]["typology"] == "Structuring/Smurfing"

    def test_summary(self, client):
        batch = _mule_batch() + [_payload(from_account="ACC-RETAIL")]
        summary = client.post("/api/screening/batch", json={"transactions": batch}).json()["summary"]
        assert summary["total"] == 6
        assert summary["flagged"] + summary["processed"] == 6
        assert summary["risk_levels"]["Critical"] >= 1
        assert len(summary["common_risk_factors"]) <= 5

    def test_empty_batch(self, client):
        data = client.post("/api/screening/batch", json={"transactions": []}).json()
        assert data["results"] == []
        assert data["summary"]["total"] == 0

    def test_one_invalid_record_rejects_batch(self, client):
        batch = [_payload(), _payload(amount=-1)]
        assert client.post("/api/screening/batch", json={"transactions": batch}).status_code == 422


class TestLookupEndpoints:
    def _screen(self, client, **overrides):
        return client.post("/api/screening", json=_payload(**overrides)).json()

    def test_risk_score(self, client):
        outcome = self._screen(client)
        tx_id = outcome["transaction"]["id"]
        resp = client.get(f"/api/risk-scores/{tx_id}")
        assert resp.status_code == 200
        assert resp.json() == outcome["risk_score"]

    def test_report(self, client):
        tx_id = self._screen(client, receiver_country="Seychelles", amount=500000.0)["transaction"]["id"]
        report = client.get(f"/api/reports/{tx_id}").json()
        assert report["id"] == f"STR-{tx_id}"
        assert report["is_filed"] is True

    def test_transaction(self, client):
        tx_id = self._screen(client)["transaction"]["id"]
        data = client.get(f"/api/transactions/{tx_id}").json()
        assert data["status"] == "Processed"
        assert data["amount"] == 50000.0

    @pytest.mark.parametrize("path", ["/api/risk-scores/TX-9999", "/api/reports/TX-9999", "/api/transactions/TX-9999"])
    def test_unknown_id_is_404(self, client, path):
        assert client.get(path).status_code == 404

    def test_account_transactions(self, client):
        self._screen(client)
        self._screen(client, from_account="ACC-OTHER")
        self._screen(client)
        account = quote("ACC-8892-IN (Amit Sharma)", safe="")
        data = client.get(f"/api/accounts/{account}/transactions").json()
        assert [t["id"] for t in data] == ["TX-1001", "TX-1003"]

    def test_unknown_account_is_empty(self, client):
        assert client.get("/api/accounts/ACC-NOBODY/transactions").json() == []

    def test_filed_reports_only(self, client):
        self._screen(client)
        flagged = self._screen(client, from_account="ACC-HAVEN", receiver_country="Cayman", amount=500000.0)
        all_reports = client.get("/api/reports").json()
        filed = client.get("/api/reports", params={"filed": "true"}).json()
        assert len(all_reports) == 2
        assert [r["transaction_id"] for r in filed] == [flagged["transaction"]["id"]]


class TestRulesAndSession:
    def test_rules(self, client):
        data = client.get("/api/rules").json()
        assert data["high_risk_threshold"] == 45
        assert "Cayman" in data["high_risk_jurisdictions"]

    def test_session_reset(self, client):
        client.post("/api/screening", json=_payload())
        resp = client.post("/api/session/reset")
        assert resp.json() == {"status": "reset"}
        after = client.post("/api/screening", json=_payload()).json()
        assert after["risk_score"]["velocity_count"] == 1
        # Stored outcomes survive the reset
        assert len(client.get("/api/audit").json()) == 2


class TestAuditEndpoint:
    def test_audit_entries(self, client):
        outcome = client.post("/api/screening", json=_payload()).json()
        entries = client.get("/api/audit").json()
        assert len(entries) == 1
        assert entries[0]["transaction_id"] == outcome["transaction"]["id"]
        assert entries[0]["risk_score"] == 11

    def test_filter_by_transaction(self, client):
        client.post("/api/screening", json=_payload())
        second = client.post("/api/screening", json=_payload(from_account="ACC-2")).json()
        entries = client.get("/api/audit", params={"transaction_id": second["transaction"]["id"]}).json()
        assert len(entries) == 1

    def test_filter_by_date(self, client):
        client.post("/api/screening", json=_payload(timestamp="2026-02-20T10:00:00Z"))
        client.post("/api/screening", json=_payload(from_account="ACC-2", timestamp="2026-02-22T10:00:00Z"))
        entries = client.get("/api/audit", params={"from_date": "2026-02-21T00:00:00Z"}).json()
        assert len(entries) == 1

    def test_filter_by_account_and_filed(self, client):
        client.post("/api/screening", json=_payload())
        client.post("/api/screening", json=_payload(from_account="ACC-HAVEN", receiver_country="Panama", amount=500000.0))
        by_account = client.get("/api/audit", params={"account_id": "ACC-HAVEN"}).json()
        filed = client.get("/api/audit", params={"filed": "true"}).json()
        assert [e["transaction"]["from_account"] for e in by_account] == ["ACC-HAVEN"]
        assert [e["is_filed"] for e in filed] == [True]

    def test_limit_keeps_latest(self, client):
        for i in range(3):
            client.post("/api/screening", json=_payload(from_account=f"ACC-{i}"))
        entries = client.get("/api/audit", params={"limit": 2}).json()
        assert [e["transaction_id"] for e in entries] == ["TX-1002", "TX-1003"]

    def test_inverted_date_range(self, client):
        resp = client.get(
            "/api/audit",
            params={"from_date": "2026-02-23T00:00:00Z", "to_date": "2026-02-21T00:00:00Z"},
        )
        assert resp.status_code == 400

    def test_naive_timestamps_compare_with_aware_filters(self, client):
        client.post("/api/screening", json=_payload(timestamp="2026-02-22T10:00:00"))
        client.post("/api/screening", json=_payload(from_account="ACC-2", timestamp="2026-02-22T12:00:00Z"))

        resp = client.get("/api/audit", params={"from_date": "2026-01-01T00:00:00Z"})
        assert resp.status_code == 200
        assert len(resp.json()) == 2

        later = client.get("/api/audit", params={"from_date": "2026-02-22T11:00:00"}).json()
        assert [e["transaction"]["from_account"] for e in later] == ["ACC-2"]

    def test_mixed_naive_and_aware_range(self, client):
        resp = client.get(
            "/api/audit",
            params={"from_date": "2026-02-21T00:00:00", "to_date": "2026-02-23T00:00:00Z"},
        )
        assert resp.status_code == 200
