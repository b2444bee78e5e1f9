"""End-to-end tests for /api/vacation-requests."""

from datetime import date, datetime

from hris.models import VacationRequest

URL = "/api/vacation-requests"
PAYLOAD = {"start_date": "2024-01-01", "end_date": "2024-01-05", "status": "pending", "employee_id": "E1"}


def test_create_then_approve(client, employee):
    created = client.post(URL, json=PAYLOAD)
    assert created.status_code == 200
    body = created.json()
    assert body["id"]
    assert {k: body[k] for k in PAYLOAD} == PAYLOAD

    updated = client.put(f"{URL}/{body['id']}", json={"status": "approved"})
    assert updated.status_code == 200
    after = updated.json()
    assert after["status"] == "approved"
    for key in ("id", "start_date", "end_date", "employee_id", "created_at"):
        assert after[key] == body[key]
    assert datetime.fromisoformat(after["updated_at"]) > datetime.fromisoformat(body["updated_at"])


def test_fetch_by_id_round_trip(client, employee):
    created = client.post(URL, json=PAYLOAD).json()
    fetched = client.get(f"{URL}/{created['id']}", params={"relations": "employee"})
    assert fetched.status_code == 200
    body = fetched.json()
    assert {k: body[k] for k in PAYLOAD} == PAYLOAD
    assert body["employee"]["id"] == "E1"


def test_get_unknown_id_is_404(client):
    resp = client.get(f"{URL}/missing")
    assert resp.status_code == 404
    assert resp.json()["message"]


def test_search_returns_only_matches_with_full_total(client, session, employee):
    session.add_all(
        [VacationRequest(start_date=date(2024, 3, 1), end_date=date(2024, 3, 2), status="pending", employee_id="E1")
         for _ in range(12)]
        + [VacationRequest(start_date=date(2024, 3, 1), end_date=date(2024, 3, 2), status="approved")
           for _ in range(3)]
    )
    session.commit()

    resp = client.get(
        URL,
        params={"searchTerm": "pend", "searchTermKeys": "status.contains", "limit": 10, "offset": 0},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["data"]) == 10
    assert body["totalCount"] == 12
    assert all("pend" in r["status"] for r in body["data"])


def test_list_with_filter_relation_and_order(client, session, employee):
    session.add_all([
        VacationRequest(id="A", start_date=date(2024, 1, 1), end_date=date(2024, 1, 2), status="pending", employee_id="E1"),
        VacationRequest(id="B", start_date=date(2024, 2, 1), end_date=date(2024, 2, 2), status="pending", employee_id="E1"),
        VacationRequest(id="C", start_date=date(2024, 3, 1), end_date=date(2024, 3, 2), status="rejected"),
    ])
    session.commit()

    resp = client.get(
        URL,
        params=[
            ("status", "pending"),
            ("relations[]", "employee"),
            ("order[]", '{"id": "start_date", "desc": true}'),
        ],
    )
    body = resp.json()
    assert [r["id"] for r in body["data"]] == ["B", "A"]
    assert body["totalCount"] == 2
    assert body["data"][0]["employee"]["last_name"] == "Lee"


def test_unlimited_list_counts_everything(client, session):
    session.add_all([
        VacationRequest(start_date=date(2024, 1, 1), end_date=date(2024, 1, 2), status="pending") for _ in range(4)
    ])
    session.commit()
    body = client.get(URL, params={"offset": 0, "limit": 100}).json()
    assert body["totalCount"] == len(body["data"]) == 4


def test_validation_error_names_field(client):
    payload = {k: v for k, v in PAYLOAD.items() if k != "status"}
    resp = client.post(URL, json=payload)
    assert resp.status_code == 400
    assert resp.json()["details"] == [{"field": "status", "reason": "required"}]


def test_unknown_employee_is_404(client):
    resp = client.post(URL, json={**PAYLOAD, "employee_id": "nobody"})
    assert resp.status_code == 404


def test_delete_returns_prior_state_then_404(client, employee):
    created = client.post(URL, json=PAYLOAD).json()
    deleted = client.delete(f"{URL}/{created['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["id"] == created["id"]
    assert client.delete(f"{URL}/{created['id']}").status_code == 404


def test_update_unknown_id_is_404(client):
    assert client.put(f"{URL}/missing", json={"status": "approved"}).status_code == 404


def test_unsupported_verb_is_405(client):
    resp = client.patch(f"{URL}/anything", json={"status": "approved"})
    assert resp.status_code == 405
    assert resp.json() == {"message": "Method PATCH not allowed"}


def test_unknown_filter_field_fails_in_storage(client):
    resp = client.get(URL, params={"no_such_field": "x"})
    assert resp.status_code == 500


def test_denied_create_never_writes(client, checker, session, employee):
    checker.denied.add(("vacation_request", "create"))
    resp = client.post(URL, json=PAYLOAD)
    assert resp.status_code == 403
    assert session.query(VacationRequest).count() == 0


def test_authorization_precedes_validation(client, checker):
    checker.allow = False
    resp = client.post(URL, json={"status": None})
    assert resp.status_code == 403


def test_denied_update_and_delete_leave_row_untouched(client, checker, session, employee):
    created = client.post(URL, json=PAYLOAD).json()
    checker.denied.update({("vacation_request", "update"), ("vacation_request", "delete")})

    assert client.put(f"{URL}/{created['id']}", json={"status": "approved"}).status_code == 403
    assert client.delete(f"{URL}/{created['id']}").status_code == 403

    session.expire_all()
    row = session.get(VacationRequest, created["id"])
    assert row is not None and row.status == "pending"
    assert ("vacation_request", "delete", created["id"]) in checker.calls


def test_missing_identity_is_401(client):
    resp = client.get(URL, headers={"X-User-Id": ""})
    assert resp.status_code == 401
