import pytest

from conftest import FakeQuery, FakeResult


@pytest.fixture
def march_rows(fake_db):
    fake_db.tables["expenses"] = [
        {"id": "e1", "description": "Super", "total_amount": 200, "installments": 1, "current_installment": 1,
         "owner": "Andrés", "user_id": "u1", "share_type": "shared2", "shared_with": '["Pablo"]',
         "date": "2025-03-05", "month": "2025-03", "section": "family", "status": "active", "category": "Supermercado"},
        {"id": "e2", "description": "Heladera", "total_amount": 900, "installments": 3, "current_installment": 2,
         "owner": "Pablo", "user_id": "u2", "share_type": "shared2", "shared_with": '["Andrés"]',
         "date": "2025-01-10", "month": "2025-01", "section": "family", "status": "active", "category": "Hogar"},
        {"id": "p1", "description": "Gym", "total_amount": 120, "installments": 1, "current_installment": 1,
         "owner": "Andrés", "user_id": "u1", "share_type": "personal", "shared_with": None,
         "date": "2025-03-01", "month": "2025-03", "section": "personal", "status": "active"},
        {"id": "x1", "description": "Other family", "total_amount": 50, "installments": 1, "current_installment": 1,
         "owner": "Eva", "user_id": "u9", "share_type": "personal", "date": "2025-03-02", "month": "2025-03",
         "section": "family"},
    ]
    return fake_db


def test_health_and_root(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").status_code == 200


def test_family_balances_for_month(client, march_rows):
    r = client.get("/family/balances", params={"month": "2025-03", "view": "history"})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 500
    assert body["owed"] == {"Andrés": 250, "Pablo": 250}
    assert body["balances"] == {"Andrés": -50, "Pablo": 50}
    assert body["settlements"] == [{"from": "Andrés", "to": "Pablo", "amount": 50}]
    assert body["labelled_settlements"] == [{"from": "Yo", "to": "Pablo", "amount": 50}]
    assert body["display_names"]["Andrés"] == "Yo"


def test_family_expenses_include_carried_installments(client, march_rows):
    body = client.get("/family/expenses", params={"month": "2025-03", "view": "history"}).json()
    charges = {c["expense"]["id"]: c for c in body["charges"]}
    assert set(charges) == {"e1", "e2"}
    assert charges["e2"]["installment"] == 3
    assert charges["e2"]["carried_over"] is True
    assert body["total"] == 500
    assert body["label"] == "marzo de 2025"


def test_bad_month_is_rejected(client, march_rows):
    assert client.get("/family/balances", params={"month": "03-2025"}).status_code == 422


def test_subscription_is_required(client, fake_db):
    fake_db.tables["user_subscriptions"] = [{"user_id": "u1", "status": "expired"}]
    assert client.get("/family/balances", params={"month": "2025-03"}).status_code == 403


def test_person_summary_accepts_placeholder(client, march_rows):
    body = client.get("/family/people/Yo/summary", params={"month": "2025-03"}).json()
    assert body["person"] == "Andrés"
    assert body["total"] == 250


def test_paying_installments_until_completion(client, march_rows):
    r = client.post("/family/expenses/e2/installments/pay")
    assert r.json() == {"expense_id": "e2", "current_installment": 3, "status": "active"}
    r = client.post("/family/expenses/e2/installments/pay")
    assert r.json()["status"] == "completed"
    row = next(e for e in march_rows.tables["expenses"] if e["id"] == "e2")
    assert row["status"] == "completed" and row["current_installment"] == 3


def test_expense_outside_family_is_not_found(client, march_rows):
    assert client.post("/family/expenses/x1/installments/pay").status_code == 404


def test_financial_health_uses_stored_month(client, march_rows):
    body = client.post("/family/health", params={"month": "2025-03"}, json={"income": 1000}).json()
    assert body["personal"] == 120
    assert body["family_share"] == 250
    assert body["free_margin"] == 630


def test_summary_csv_download(client, march_rows):
    r = client.get("/reports/family/summary.csv", params={"month": "2025-03"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "settlement,Yo -> Pablo,50.0" in r.text


@pytest.fixture
def asado(fake_db):
    fake_db.tables["group_participants"] = [
        {"id": "p1", "group_id": "g1", "name": "X"},
        {"id": "p2", "group_id": "g1", "name": "Y"},
        {"id": "p3", "group_id": "g1", "name": "Z"},
    ]
    fake_db.tables["group_expenses"] = [
        {"id": "ge1", "group_id": "g1", "description": "Carne", "amount": 90, "paid_by": "X", "split_with": ["X", "Y", "Z"]},
        {"id": "ge2", "group_id": "g1", "description": "Hielo", "amount": 10, "paid_by": "Z", "split_with": ["Z"]},
    ]
    return fake_db


def test_group_balances(client, asado):
    body = client.get("/groups/g1/balances").json()
    assert body["balances"] == {"X": 60, "Y": -30, "Z": -30}
    assert body["settlements"] == [{"from": "Y", "to": "X", "amount": 30}, {"from": "Z", "to": "X", "amount": 30}]
    assert body["total"] == 100


def test_group_owned_by_someone_else_is_forbidden(client, asado):
    asado.tables["groups"][0]["user_id"] = "u2"
    assert client.get("/groups/g1/balances").status_code == 403


def test_deleting_participant_rewrites_and_deletes_expenses(client, asado):
    r = client.delete("/groups/g1/participants/p3", params={"reassign_to": "Y"})
    assert r.status_code == 200
    assert r.json()["updated"] == ["ge1"]
    assert r.json()["deleted"] == ["ge2"]
    assert [p["name"] for p in asado.tables["group_participants"]] == ["X", "Y"]
    [carne] = asado.tables["group_expenses"]
    assert carne["split_with"] == ["X", "Y"]


def test_failed_expense_rewrite_keeps_participant(client, asado, monkeypatch):
    class RejectingUpdates(FakeQuery):
        def execute(self):
            if self.name == "group_expenses" and self.action == "update":
                return FakeResult([])
            return super().execute()

    monkeypatch.setattr(asado, "table", lambda name: RejectingUpdates(asado.tables, name))
    r = client.delete("/groups/g1/participants/p3")
    assert r.status_code == 500
    assert len(asado.tables["group_participants"]) == 3
    assert len(asado.tables["group_expenses"]) == 2


def test_deleting_payer_with_invalid_reassignment_is_rejected(client, asado):
    r = client.delete("/groups/g1/participants/p1", params={"reassign_to": "Nobody"})
    assert r.status_code == 422
    assert len(asado.tables["group_participants"]) == 3


def test_months_listing(client):
    body = client.get("/family/months").json()
    assert body["current"]["key"] == body["first_charge_options"][0]["key"]
    assert len(body["first_charge_options"]) == 4
    assert len(body["history"]) == 12
    assert body["history"][0]["key"] < body["current"]["key"]


def test_summary_text_download(client, march_rows):
    r = client.get("/reports/family/summary.txt", params={"month": "2025-03"})
    assert r.status_code == 200
    assert "MARZO DE 2025" in r.text
    assert "Yo → Pablo: $ 50" in r.text
    assert "• Heladera (3/3)" in r.text


def test_summary_pdf_download(client, march_rows):
    r = client.get("/reports/family/summary.pdf", params={"month": "2025-03"})
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")
