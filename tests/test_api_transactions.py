import pytest


def _create(client, headers, body):
    resp = client.post("/transactions", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def seeded(client, auth_headers, make_tx):
    rows = [
        make_tx(type="income", amount=500, description="Invoice #12", category="Consulting", date="2024-01-05"),
        make_tx(amount=40, description="Lunch", category="Meals", date="2024-01-10", notes="with ACME team"),
        make_tx(amount=1200, description="Laptop", category="Equipment", date="2024-02-01", tags=["hardware"]),
        make_tx(amount=15, description="Snacks", category="Meals", date="2024-03-03"),
    ]
    return [_create(client, auth_headers, body) for body in rows]


def _descriptions(resp):
    return [t["description"] for t in resp.json()["transactions"]]


def test_create_transaction(client, auth_headers, user_id, make_tx):
    tx = _create(client, auth_headers, make_tx(tags=["food"], notes="weekly"))
    assert tx["id"] > 0
    assert tx["userId"] == user_id
    assert tx["amount"] == 10.0
    assert tx["date"] == "2024-01-15"
    assert tx["tags"] == ["food"]
    assert tx["notes"] == "weekly"
    assert tx["createdAt"]


def test_create_defaults_notes_and_tags(client, auth_headers, make_tx):
    tx = _create(client, auth_headers, make_tx())
    assert tx["notes"] == ""
    assert tx["tags"] == []


@pytest.mark.parametrize(
    "override",
    [{"amount": -1}, {"type": "transfer"}, {"description": ""}, {"date": "yesterday"}, {"category": ""}],
)
def test_create_validation_errors(client, auth_headers, make_tx, override):
    resp = client.post("/transactions", json=make_tx(**override), headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["fields"]


def test_list_default_order_and_pagination(client, auth_headers, seeded):
    resp = client.get("/transactions", headers=auth_headers)
    assert resp.status_code == 200
    assert _descriptions(resp) == ["Snacks", "Laptop", "Lunch", "Invoice #12"]
    assert resp.json()["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "totalItems": 4,
        "itemsPerPage": 10,
    }


def test_list_pages(client, auth_headers, make_tx):
    for day in range(1, 13):
        _create(client, auth_headers, make_tx(description=f"day {day}", date=f"2024-01-{day:02d}"))

    resp = client.get("/transactions", params={"page": 2, "limit": 5}, headers=auth_headers)
    body = resp.json()
    assert _descriptions(resp) == [f"day {d}" for d in range(7, 2, -1)]
    assert body["pagination"]["totalPages"] == 3
    assert body["pagination"]["totalItems"] == 12

    resp = client.get("/transactions", params={"page": 9, "limit": 5}, headers=auth_headers)
    assert resp.json()["transactions"] == []


def test_invalid_paging_values_fall_back_to_defaults(client, auth_headers, seeded):
    resp = client.get("/transactions", params={"page": "abc", "limit": "-3"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["pagination"]["currentPage"] == 1
    assert resp.json()["pagination"]["itemsPerPage"] == 10


@pytest.mark.parametrize(
    "params, expected",
    [
        ({"type": "income"}, ["Invoice #12"]),
        ({"type": "bogus"}, ["Snacks", "Laptop", "Lunch", "Invoice #12"]),
        ({"category": "meal"}, ["Snacks", "Lunch"]),
        ({"search": "acme"}, ["Lunch"]),
        ({"search": "LAPTOP"}, ["Laptop"]),
        ({"startDate": "2024-01-10", "endDate": "2024-02-01"}, ["Laptop", "Lunch"]),
        ({"endDate": "2024-01-05"}, ["Invoice #12"]),
        ({"sortBy": "amount", "sortOrder": "asc"}, ["Snacks", "Lunch", "Invoice #12", "Laptop"]),
        ({"sortBy": "nonsense"}, ["Snacks", "Laptop", "Lunch", "Invoice #12"]),
    ],
)
def test_list_filters(client, auth_headers, seeded, params, expected):
    resp = client.get("/transactions", params=params, headers=auth_headers)
    assert resp.status_code == 200
    assert _descriptions(resp) == expected


def test_owner_isolation(client, auth_headers, other_headers, seeded):
    resp = client.get("/transactions", headers=other_headers)
    assert resp.json()["transactions"] == []
    assert resp.json()["pagination"]["totalItems"] == 0

    target = seeded[0]["id"]
    assert client.put(f"/transactions/{target}", json={"amount": 1}, headers=other_headers).status_code == 404
    assert client.delete(f"/transactions/{target}", headers=other_headers).status_code == 404

    # untouched for the owner
    mine = client.get("/transactions", params={"type": "income"}, headers=auth_headers).json()
    assert mine["transactions"][0]["amount"] == 500.0


def test_update_is_partial(client, auth_headers, seeded):
    target = seeded[1]
    resp = client.put(f"/transactions/{target['id']}", json={"amount": 25.5}, headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["amount"] == 25.5
    for field in ("type", "description", "category", "date", "notes", "tags"):
        assert body[field] == target[field]


def test_update_is_idempotent(client, auth_headers, seeded):
    target = seeded[2]["id"]
    patch = {"description": "Laptop stand", "tags": ["desk"]}
    first = client.put(f"/transactions/{target}", json=patch, headers=auth_headers).json()
    second = client.put(f"/transactions/{target}", json=patch, headers=auth_headers).json()
    first.pop("updatedAt")
    second.pop("updatedAt")
    assert first == second


def test_update_rejects_null_for_required_fields(client, auth_headers, seeded):
    resp = client.put(f"/transactions/{seeded[0]['id']}", json={"type": None}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "type cannot be null"


def test_update_null_notes_clears_them(client, auth_headers, seeded):
    resp = client.put(f"/transactions/{seeded[1]['id']}", json={"notes": None}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["notes"] == ""


def test_update_missing_transaction(client, auth_headers):
    resp = client.put("/transactions/999", json={"amount": 1}, headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Transaction not found"


def test_delete(client, auth_headers, seeded):
    target = seeded[0]["id"]
    resp = client.delete(f"/transactions/{target}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Transaction deleted successfully"}

    assert client.delete(f"/transactions/{target}", headers=auth_headers).status_code == 404
    remaining = client.get("/transactions", headers=auth_headers).json()
    assert remaining["pagination"]["totalItems"] == 3


def test_stats(client, auth_headers, seeded):
    resp = client.get("/transactions/stats", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()

    stats = {s["type"]: s for s in body["stats"]}
    assert stats["income"] == {"type": "income", "total": 500.0, "count": 1, "avgAmount": 500.0}
    assert stats["expense"]["total"] == 1255.0
    assert stats["expense"]["count"] == 3

    expense_categories = next(c for c in body["categoryStats"] if c["type"] == "expense")["categories"]
    assert {c["name"]: c["total"] for c in expense_categories} == {"Meals": 55.0, "Equipment": 1200.0}


def test_stats_respects_date_range(client, auth_headers, seeded):
    resp = client.get("/transactions/stats", params={"startDate": "2024-02-01"}, headers=auth_headers)
    stats = resp.json()["stats"]
    assert [s["type"] for s in stats] == ["expense"]
    assert stats[0]["total"] == 1215.0


def test_sample_needs_no_auth(client):
    resp = client.get("/transactions/sample")
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["totalItems"] == 24
    assert len(body["transactions"]) == 10
    assert body["transactions"][0]["date"] == "2024-06-28"


def test_sample_filters(client):
    resp = client.get("/transactions/sample", params={"type": "income", "limit": 50})
    body = resp.json()
    assert body["pagination"]["totalItems"] == 11
    assert {t["type"] for t in body["transactions"]} == {"income"}


def _raw_json(headers):
    return {**headers, "Content-Type": "application/json"}


@pytest.mark.parametrize("amount", ["Infinity", "-Infinity", "NaN", "1e20", "10000000000000000"])
def test_create_rejects_non_finite_or_oversized_amount(client, auth_headers, amount):
    body = (
        '{"type": "income", "amount": %s, "description": "Bad", '
        '"category": "Misc", "date": "2024-01-15"}' % amount
    )
    resp = client.post("/transactions", content=body, headers=_raw_json(auth_headers))
    assert resp.status_code == 400
    assert resp.json()["fields"][0]["field"] == "amount"

    listed = client.get("/transactions", headers=auth_headers).json()
    assert listed["transactions"] == []


@pytest.mark.parametrize("amount", ["Infinity", "NaN", "1e20"])
def test_update_rejects_non_finite_or_oversized_amount(client, auth_headers, seeded, amount):
    target = seeded[0]
    resp = client.put(
        f"/transactions/{target['id']}",
        content='{"amount": %s}' % amount,
        headers=_raw_json(auth_headers),
    )
    assert resp.status_code == 400

    listed = client.get("/transactions", params={"type": "income"}, headers=auth_headers).json()
    assert listed["transactions"][0]["amount"] == target["amount"]


def test_large_amount_with_cents_is_stored_exactly(client, auth_headers, make_tx):
    tx = _create(client, auth_headers, make_tx(amount=123456789012.34))
    assert tx["amount"] == 123456789012.34


def test_huge_page_is_empty_not_an_error(client, auth_headers, seeded):
    resp = client.get("/transactions", params={"page": "99999999999999999999"}, headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["transactions"] == []
    assert body["pagination"]["currentPage"] == 2**31 - 1
    assert body["pagination"]["totalItems"] == 4


def test_huge_limit_returns_everything(client, auth_headers, seeded):
    resp = client.get("/transactions", params={"limit": "99999999999999999999"}, headers=auth_headers)
    assert resp.status_code == 200
    assert len(resp.json()["transactions"]) == 4
    assert resp.json()["pagination"]["totalPages"] == 1


def test_text_sort_ignores_case(client, auth_headers, make_tx):
    for category in ("banana", "Cherry", "apple", "Banana split"):
        _create(client, auth_headers, make_tx(category=category, description=category))

    resp = client.get("/transactions", params={"sortBy": "category", "sortOrder": "asc"}, headers=auth_headers)
    assert [t["category"] for t in resp.json()["transactions"]] == ["apple", "banana", "Banana split", "Cherry"]

    resp = client.get("/transactions", params={"sortBy": "description", "sortOrder": "desc"}, headers=auth_headers)
    assert _descriptions(resp) == ["Cherry", "Banana split", "banana", "apple"]
