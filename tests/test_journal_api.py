"""
Tests for the finance HTTP endpoints.

The app runs against an in-memory fake of the ERP backend, so each test can
inspect exactly which backend calls were made.
"""
from datetime import date

import httpx
from fastapi.testclient import TestClient

from main import create_app


def _line(account_id="2", description="Kas masuk", debit=0, credit=0):
    return {"account_id": account_id, "description": description, "debit": debit, "credit": credit}


class TestSystemEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_metrics_track_requests(self, client):
        client.get("/health")
        data = client.get("/metrics").json()

        assert data["requests"]["total"] >= 1
        assert "cache_entries" in data


class TestAccounts:
    def test_only_postable_accounts_by_code(self, client, backend):
        response = client.get("/finance/accounts")

        assert response.status_code == 200
        data = response.json()
        assert [acc["code"] for acc in data["accounts"]] == ["1101", "4101"]
        assert data["accounts"][0]["label"] == "1101 - Kas"
        assert data["count"] == 2

        client.get("/finance/accounts")
        assert backend.calls("GET", "/accounts") == 1

    def test_include_headers(self, client):
        data = client.get("/finance/accounts", params={"include_headers": True}).json()
        assert [acc["code"] for acc in data["accounts"]] == ["1000", "1101", "1102", "4101"]
        assert data["accounts"][0]["selectable"] is False

    def test_backend_down(self, client, backend):
        backend.fail_reads = 503
        response = client.get("/finance/accounts")

        assert response.status_code == 502
        assert response.json()["error"] == "BACKEND_UNAVAILABLE"


class TestJournalList:
    def test_list_is_formatted_for_display(self, client, backend):
        backend.add_journal(total_debit=5000000, total_credit=5000000, status="approved")
        backend.add_journal()

        response = client.get("/finance/journals")

        assert response.status_code == 200
        data = response.json()
        first = data["journals"][0]
        assert first["status_badge"] == {"value": "approved", "label": "Disetujui", "variant": "success"}
        assert first["display"]["total_debit"] == "Rp 5.000.000"
        assert first["display"]["journal_date"] == "19 Oktober 2026"
        assert first["display"]["created_at"] == "19 Oktober 2026 pukul 08.15"
        assert data["pagination"] == {"total": 2, "page": 1, "page_size": 20, "total_pages": 1}

    def test_status_filter_and_page_size_clamp(self, client, backend):
        client.get("/finance/journals", params={"status": "all"})
        client.get("/finance/journals", params={"status": "pending", "page_size": 500})

        first, second = backend.requests
        assert first["route"] == "/journals"
        assert second["route"] == "/journals/status/pending"
        assert second["params"]["page_size"] == "100"

    def test_detail_and_not_found(self, client, backend):
        backend.add_journal(description="Setoran bank")

        assert client.get("/finance/journals/1").json()["journal"]["description"] == "Setoran bank"

        response = client.get("/finance/journals/99")
        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"


class TestJournalForm:
    def test_new_form(self, client):
        data = client.get("/finance/journals/new").json()

        assert data["form_id"]
        assert data["draft"]["journal_date"] == date.today().isoformat()
        assert len(data["draft"]["items"]) == 2
        assert [line["removable"] for line in data["lines"]] == [False, False]
        assert data["can_submit"] is False
        assert data["pending"] is False

    def test_preview_balanced(self, client, draft_json):
        data = client.post("/finance/journals/preview", json=draft_json()).json()

        assert data["can_submit"] is True
        assert data["field_errors"] == {}
        assert data["balance"]["message"] == "Debit and credit are balanced"
        assert data["balance"]["total_debit_display"] == "Rp 5.000.000"

    def test_preview_unbalanced(self, client, draft_json):
        draft = draft_json([_line(debit=5000000), _line("3", "SPP Oktober", credit=3000000)])
        data = client.post("/finance/journals/preview", json=draft).json()

        assert data["can_submit"] is False
        assert data["balance"]["is_balanced"] is False
        assert data["balance"]["difference"] == 2000000.0
        assert data["balance"]["message"] == "Difference: Rp 2.000.000"

    def test_preview_flags_header_account(self, client, draft_json):
        draft = draft_json([_line("1", debit=100), _line("3", "SPP Oktober", credit=100)])
        data = client.post("/finance/journals/preview", json=draft).json()

        assert data["field_errors"]["items.0.account_id"] == "This account cannot receive postings"

    def test_preview_without_account_list(self, client, backend, draft_json):
        backend.fail_reads = 503
        response = client.post("/finance/journals/preview", json=draft_json())

        assert response.status_code == 200
        assert response.json()["can_submit"] is True

    def test_add_line(self, client, draft_json):
        data = client.post("/finance/journals/form/add-line", json={"draft": draft_json()}).json()

        assert len(data["draft"]["items"]) == 3
        assert data["draft"]["items"][2] == {"account_id": "", "description": "", "debit": 0.0, "credit": 0.0}
        assert all(line["removable"] for line in data["lines"])

    def test_remove_line_keeps_minimum(self, client, draft_json):
        data = client.post("/finance/journals/form/remove-line", json={"draft": draft_json(), "index": 0}).json()

        assert data["removed"] is False
        assert len(data["draft"]["items"]) == 2

    def test_remove_extra_line(self, client, draft_json):
        items = draft_json()["items"] + [_line("3", "Lain-lain")]
        data = client.post(
            "/finance/journals/form/remove-line", json={"draft": draft_json(items), "index": 2}
        ).json()

        assert data["removed"] is True
        assert [item["description"] for item in data["draft"]["items"]] == ["Kas masuk", "SPP Oktober"]

    def test_remove_line_out_of_range(self, client, draft_json):
        items = draft_json()["items"] + [_line("3", "Lain-lain")]
        response = client.post(
            "/finance/journals/form/remove-line", json={"draft": draft_json(items), "index": 7}
        )
        assert response.status_code == 422


class TestSaveJournal:
    def test_save_invalidates_cached_lists(self, client, backend, draft_json):
        client.get("/finance/journals")
        client.get("/finance/journals")
        assert backend.calls("GET", "/journals") == 1

        response = client.post("/finance/journals", json=draft_json())

        assert response.status_code == 201
        data = response.json()
        assert data["form_id"] == "form-1"
        assert data["journal"]["id"] == "1"
        assert data["journal"]["display"]["total_debit"] == "Rp 5.000.000"
        assert backend.calls("POST", "/journals") == 1

        listing = client.get("/finance/journals").json()
        assert backend.calls("GET", "/journals") == 2
        assert [j["id"] for j in listing["journals"]] == ["1"]

        metrics = client.get("/metrics").json()
        assert metrics["journal_submissions"] == {"created": 1}

    def test_unbalanced_draft_is_refused(self, client, backend, draft_json):
        draft = draft_json([_line(debit=5000000), _line("3", "SPP Oktober", credit=3000000)])
        response = client.post("/finance/journals", json=draft)

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "UNBALANCED_JOURNAL"
        assert body["detail"] == "Difference: Rp 2.000.000"
        assert body["context"]["report"]["can_submit"] is False
        assert body["context"]["draft"] == draft
        assert backend.calls("POST", "/journals") == 0

    def test_invalid_draft_is_refused(self, client, backend, draft_json):
        draft = draft_json([_line("1", debit=100), _line("3", "SPP Oktober", credit=100)])
        response = client.post("/finance/journals", json=draft)

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "INVALID_JOURNAL"
        assert "items.0.account_id" in body["context"]["report"]["field_errors"]
        assert backend.calls("POST", "/journals") == 0

    def test_backend_outage_returns_draft(self, client, backend, draft_json):
        backend.fail_writes = 503
        draft = draft_json()
        response = client.post("/finance/journals", json=draft)

        assert response.status_code == 502
        body = response.json()
        assert body["error"] == "BACKEND_UNAVAILABLE"
        assert body["context"]["backend_status"] == 503
        assert body["context"]["draft"] == draft

        # same draft goes through once the backend recovers
        backend.fail_writes = None
        assert client.post("/finance/journals", json=draft).status_code == 201

    def test_backend_rejection_message_is_surfaced(self, client, backend, draft_json):
        backend.fail_writes = 400
        response = client.post("/finance/journals", json=draft_json())

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "BACKEND_REJECTED"
        assert body["message"] == "Journal could not be saved"
        assert body["context"]["draft"]["description"] == "Penerimaan SPP Oktober"

    def test_duplicate_submission_is_refused(self, client, backend, draft_json):
        guard = client.app.state.container.submissions()
        guard._inflight.add("form-1")

        response = client.post("/finance/journals", json=draft_json())

        assert response.status_code == 409
        assert response.json()["error"] == "SUBMISSION_IN_PROGRESS"
        assert backend.calls("POST", "/journals") == 0

        guard._inflight.discard("form-1")
        assert client.post("/finance/journals", json=draft_json()).status_code == 201


class TestJournalWorkflow:
    def test_submit_review_post_unpost_delete(self, client, backend):
        backend.add_journal()
        assert client.get("/finance/journals/1").json()["journal"]["status"] == "draft"

        response = client.post("/finance/journals/1/submit", json={"notes": "Mohon dicek"})
        assert response.json()["journal"]["status_badge"]["label"] == "Pending"
        assert backend.requests[-1]["json"] == {"notes": "Mohon dicek"}

        response = client.post("/finance/journals/1/review", json={"action": "approve"})
        assert response.json()["journal"]["status"] == "approved"

        response = client.post("/finance/journals/1/post", json={"post_date": "2026-10-31"})
        assert response.json()["journal"]["status_badge"]["label"] == "Diposting"
        assert backend.requests[-1]["json"] == {"post_date": "2026-10-31"}

        # the cached detail was dropped by the writes above
        assert client.get("/finance/journals/1").json()["journal"]["status"] == "posted"

        response = client.post("/finance/journals/1/unpost")
        assert response.json()["journal"]["status"] == "approved"

        assert client.delete("/finance/journals/1").json() == {"deleted": True, "id": "1"}
        assert client.get("/finance/journals/1").status_code == 404

    def test_review_requires_known_action(self, client, backend):
        backend.add_journal()
        response = client.post("/finance/journals/1/review", json={"action": "maybe"})

        assert response.status_code == 422
        assert not any(r["route"] == "/journals/1/review" for r in backend.requests)

    def test_post_defaults_to_today(self, client, backend):
        backend.add_journal(status="approved")
        client.post("/finance/journals/1/post", json={})

        assert backend.requests[-1]["json"] == {"post_date": date.today().isoformat()}


class TestUnexpectedErrors:
    def test_unhandled_error_returns_json_500(self, settings):
        def broken(request):
            raise RuntimeError("decoder crashed")

        app = create_app(settings=settings, transport=httpx.MockTransport(broken))
        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get("/finance/accounts")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert "decoder crashed" not in body["message"]
