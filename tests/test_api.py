"""
HTTP surface: status codes, error bodies and the end-to-end credit flow.
Run from project root: python -m pytest tests/test_api.py -v
"""
import uuid


def _create_program(client, bank, **overrides):
    body = {
        "name": "Campanha Agrícola",
        "projectTypes": ["corn", "cassava"],
        "minAmount": 100000,
        "maxAmount": 1000000,
        "minTerm": 6,
        "maxTerm": 24,
        "interestRate": 12,
        "effortRate": 35,
        "processingFee": 2,
    }
    body.update(overrides)
    response = client.post("/api/credit-programs", json=body, headers=bank)
    assert response.status_code == 201, response.text
    return response.json()


def _submit(client, farmer, **overrides):
    body = {
        "projectName": "Milho Cuanza Sul",
        "projectType": "corn",
        "description": "Cultivo de milho em 5 hectares",
        "amount": 500000,
        "termMonths": 12,
    }
    body.update(overrides)
    return client.post("/api/credit-applications", json=body, headers=farmer)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_simulation_with_program(client, bank):
    program = _create_program(client, bank)
    response = client.post(
        "/api/simulate-credit",
        json={"amount": 500000, "termMonths": 12, "projectType": "corn",
              "monthlyIncome": 100000, "creditProgramId": program["id"]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["monthlyPayment"] == 44424
    assert data["totalAmount"] == 533088
    assert data["totalInterest"] == 33088
    assert data["processingFee"] == 10000
    assert data["maxMonthlyPayment"] == 35000
    assert data["isEffortRateViolated"] is True


def test_simulation_uses_project_type_rate(client):
    data = client.post(
        "/api/simulate-credit", json={"amount": 1000000, "termMonths": 10, "projectType": "cattle"}
    ).json()
    assert data["interestRate"] == 13
    assert data["totalAmount"] == data["monthlyPayment"] * 10
    assert data["creditProgramId"] is None
    assert "isEffortRateViolated" not in data


def test_simulation_outside_program_bounds(client, bank):
    program = _create_program(client, bank)
    response = client.post(
        "/api/simulate-credit",
        json={"amount": 5000000, "termMonths": 12, "projectType": "corn", "creditProgramId": program["id"]},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_simulation_rejects_bad_input(client):
    assert client.post("/api/simulate-credit", json={"amount": 0, "termMonths": 12}).status_code == 422
    assert client.post("/api/simulate-credit", json={"amount": 1000}).status_code == 422


def test_identity_is_required(client):
    assert client.get("/api/credit-applications/user").status_code == 401
    response = client.get("/api/credit-applications/user", headers={"X-User-Id": "u1", "X-User-Type": "pirate"})
    assert response.status_code == 401


def test_program_management(client, bank, farmer):
    assert client.post("/api/credit-programs", json={}, headers=farmer).status_code == 403
    invalid = client.post(
        "/api/credit-programs",
        json={"name": "X", "projectTypes": ["corn"], "minAmount": 500, "maxAmount": 100,
              "minTerm": 1, "maxTerm": 12, "interestRate": 10, "effortRate": 30},
        headers=bank,
    )
    assert invalid.status_code == 422

    program = _create_program(client, bank)
    assert program["financialInstitutionId"] == bank["X-User-Id"]
    public_ids = [p["id"] for p in client.get("/api/credit-programs").json()]
    assert program["id"] in public_ids

    other_bank = {"X-User-Id": f"bank-{uuid.uuid4().hex[:8]}", "X-User-Type": "financial_institution"}
    response = client.patch(f"/api/credit-programs/{program['id']}", json={"name": "Y"}, headers=other_bank)
    assert response.status_code == 403

    response = client.patch(f"/api/credit-programs/{program['id']}", json={"minAmount": 2000000}, headers=bank)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"

    toggled = client.patch(f"/api/credit-programs/{program['id']}/toggle-status", headers=bank).json()
    assert toggled["isActive"] is False
    public_ids = [p["id"] for p in client.get("/api/credit-programs").json()]
    assert program["id"] not in public_ids

    assert client.delete(f"/api/credit-programs/{program['id']}", headers=bank).status_code == 204
    assert client.get(f"/api/credit-programs/{program['id']}").status_code == 404


def test_application_over_program_max_is_not_stored(client, bank, farmer):
    program = _create_program(client, bank)
    response = _submit(client, farmer, amount=2000000, creditProgramId=program["id"])
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert body["details"]["problems"]
    assert client.get("/api/credit-applications/user", headers=farmer).json() == []


def test_staff_cannot_submit(client, bank):
    assert _submit(client, bank).status_code == 403


def test_approval_flow(client, bank, farmer):
    program = _create_program(client, bank)
    app = _submit(client, farmer, creditProgramId=program["id"]).json()
    assert app["status"] == "pending"

    assert client.patch(
        f"/api/credit-applications/{app['id']}/status", json={"status": "approved"}, headers=farmer
    ).status_code == 403

    response = client.patch(f"/api/credit-applications/{app['id']}/status", json={"status": "approved"}, headers=bank)
    assert response.status_code == 200, response.text
    approved = response.json()
    assert approved["status"] == "approved"
    assert approved["previousStatus"] == "pending"
    assert approved["account"]["monthlyPayment"] == 44424
    assert approved["account"]["outstandingBalance"] == 533088

    again = client.patch(f"/api/credit-applications/{app['id']}/status", json={"status": "rejected",
                         "rejectionReason": "tarde demais"}, headers=bank)
    assert again.status_code == 409
    assert again.json()["error"] == "invalid_state_transition"

    accounts = client.get("/api/accounts", headers=farmer).json()
    assert len(accounts) == 1
    account_id = accounts[0]["id"]
    assert [a["id"] for a in client.get("/api/accounts", headers=bank).json()] == [account_id]

    schedule = client.get(f"/api/accounts/{account_id}/schedule", headers=farmer).json()
    assert len(schedule) == 12
    assert sum(row["payment"] for row in schedule) == 533088
    assert schedule[-1]["balance"] == 0

    paid = client.post(f"/api/accounts/{account_id}/payments", json={"amount": 44424}, headers=farmer)
    assert paid.status_code == 201
    account = client.get(f"/api/accounts/{account_id}", headers=farmer).json()
    assert account["outstandingBalance"] == 488664

    too_much = client.post(f"/api/accounts/{account_id}/payments", json={"amount": 9999999}, headers=farmer)
    assert too_much.status_code == 400
    assert len(client.get(f"/api/accounts/{account_id}/payments", headers=farmer).json()) == 1

    stranger = {"X-User-Id": f"farmer-{uuid.uuid4().hex[:8]}", "X-User-Type": "farmer"}
    assert client.get(f"/api/accounts/{account_id}", headers=stranger).status_code == 404


def test_rejection_needs_reason(client, bank, farmer):
    app = _submit(client, farmer).json()
    response = client.patch(f"/api/credit-applications/{app['id']}/status", json={"status": "rejected"}, headers=bank)
    assert response.status_code == 400
    assert client.get(f"/api/credit-applications/{app['id']}", headers=farmer).json()["status"] == "pending"

    response = client.patch(
        f"/api/credit-applications/{app['id']}/status",
        json={"status": "rejected", "rejectionReason": "Rendimento insuficiente"},
        headers=bank,
    )
    assert response.json()["rejectionReason"] == "Rendimento insuficiente"
    assert response.json()["account"] is None


def test_other_institution_cannot_review_program_application(client, bank, farmer):
    program = _create_program(client, bank)
    app = _submit(client, farmer, creditProgramId=program["id"]).json()
    other_bank = {"X-User-Id": f"bank-{uuid.uuid4().hex[:8]}", "X-User-Type": "financial_institution"}
    response = client.patch(
        f"/api/credit-applications/{app['id']}/status", json={"status": "under_review"}, headers=other_bank
    )
    assert response.status_code == 404
    listed = client.get("/api/credit-applications", headers=other_bank).json()
    assert app["id"] not in [a["id"] for a in listed]


def test_other_institution_cannot_read_program_application(client, bank, farmer, pdf_bytes):
    program = _create_program(client, bank)
    app = _submit(client, farmer, creditProgramId=program["id"]).json()
    url = f"/api/credit-applications/{app['id']}/documents"
    uploaded = client.post(
        url,
        files={"file": ("bilhete.pdf", pdf_bytes, "application/pdf")},
        data={"documentType": "bilhete_identidade"},
        headers=farmer,
    ).json()
    download_url = f"/api/documents/{uploaded['id']}/download"

    other_bank = {"X-User-Id": f"bank-{uuid.uuid4().hex[:8]}", "X-User-Type": "financial_institution"}
    assert client.get(f"/api/credit-applications/{app['id']}", headers=other_bank).status_code == 404
    assert client.get(url, headers=other_bank).status_code == 404
    assert client.get(download_url, headers=other_bank).status_code == 404
    upload = client.post(
        url,
        files={"file": ("extrato.pdf", pdf_bytes, "application/pdf")},
        data={"documentType": "outros"},
        headers=other_bank,
    )
    assert upload.status_code == 404

    assert client.get(f"/api/credit-applications/{app['id']}", headers=bank).status_code == 200
    assert [d["id"] for d in client.get(url, headers=bank).json()] == [uploaded["id"]]
    assert client.get(download_url, headers=bank).content == pdf_bytes


def test_amounts_and_rates_beyond_two_decimals_are_refused(client, bank, farmer):
    assert _submit(client, farmer, amount=500000.005).status_code == 422

    app = _submit(client, farmer).json()
    status_url = f"/api/credit-applications/{app['id']}/status"
    response = client.patch(status_url, json={"status": "approved", "interestRate": 12.345}, headers=bank)
    assert response.status_code == 422
    assert client.get(f"/api/credit-applications/{app['id']}", headers=farmer).json()["status"] == "pending"

    approved = client.patch(status_url, json={"status": "approved", "interestRate": 12.35}, headers=bank).json()
    account_id = approved["account"]["id"]
    assert approved["account"]["interestRate"] == 12.35
    paid = client.post(f"/api/accounts/{account_id}/payments", json={"amount": 10.555}, headers=farmer)
    assert paid.status_code == 422
    assert client.get(f"/api/accounts/{account_id}/payments", headers=farmer).json() == []


def test_unknown_application(client, bank):
    response = client.patch("/api/credit-applications/app-missing/status", json={"status": "approved"}, headers=bank)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_documents(client, farmer, pdf_bytes):
    app = _submit(client, farmer).json()
    url = f"/api/credit-applications/{app['id']}/documents"
    for _ in range(2):
        response = client.post(
            url,
            files={"file": ("bilhete.pdf", pdf_bytes, "application/pdf")},
            data={"documentType": "bilhete_identidade"},
            headers=farmer,
        )
        assert response.status_code == 201, response.text
    assert response.json()["version"] == 2

    latest = client.get(url, headers=farmer).json()
    assert [d["version"] for d in latest] == [2]
    assert len(client.get(url, params={"all_versions": True}, headers=farmer).json()) == 2

    download = client.get(f"/api/documents/{latest[0]['id']}/download", headers=farmer)
    assert download.status_code == 200
    assert download.content == pdf_bytes

    rejected = client.post(
        url, files={"file": ("notes.txt", b"hello", "text/plain")}, data={"documentType": "outros"}, headers=farmer
    )
    assert rejected.status_code == 400

    stranger = {"X-User-Id": f"farmer-{uuid.uuid4().hex[:8]}", "X-User-Type": "farmer"}
    assert client.get(url, headers=stranger).status_code == 404

    details = client.get(f"/api/credit-applications/{app['id']}", headers=farmer).json()
    assert [d["documentType"] for d in details["documents"]] == ["bilhete_identidade"]


def test_notifications(client, farmer):
    app = _submit(client, farmer).json()
    notes = client.get("/api/notifications", headers=farmer).json()
    assert [n["type"] for n in notes] == ["application_submitted"]
    assert notes[0]["relatedId"] == app["id"]
    assert notes[0]["isRead"] is False

    assert client.patch(f"/api/notifications/{notes[0]['id']}/read", headers=farmer).status_code == 200
    assert client.get("/api/notifications", params={"unread_only": True}, headers=farmer).json() == []
    assert client.patch("/api/notifications/ntf-missing/read", headers=farmer).status_code == 404


def test_reports(client, bank, admin, farmer):
    assert client.get("/api/reports/summary", headers=farmer).status_code == 403
    summary = client.get("/api/reports/summary", headers=admin).json()
    assert set(summary) == {"window", "applications", "accounts", "payments"}
    response = client.get(
        "/api/reports/summary",
        params={"since": "2026-02-01T00:00:00", "until": "2026-01-01T00:00:00"},
        headers=bank,
    )
    assert response.status_code == 400
