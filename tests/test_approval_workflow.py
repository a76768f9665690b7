def _submit(client, asset_id, qty, email="alice@example.com", **extra):
    r = client.post(
        "/assets-request",
        json={"asset_id": asset_id, "user_email": email, "quantity": qty, **extra},
    )
    assert r.status_code == 201, r.text
    return r.json()


def test_submit_creates_pending_request_without_touching_stock(client, make_asset, asset_quantity):
    a = make_asset("Laptop", quantity=10, unit="pcs", category="IT")

    req = _submit(client, a["id"], 3, email="  Alice@Example.com ")

    assert req["status"] == "pending"
    assert req["user_email"] == "alice@example.com"
    assert req["product_name"] == "Laptop"
    assert req["unit"] == "pcs"
    assert req["category"] == "IT"
    assert asset_quantity(a["id"]) == 10


def test_submit_for_unknown_asset_is_404(client):
    r = client.post("/assets-request", json={"asset_id": "nope", "user_email": "a@b.c", "quantity": 1})
    assert r.status_code == 404


def test_approve_debits_stock_and_notifies_requester(client, make_asset, make_user, mailer, asset_quantity):
    make_user(name="Alice", email="alice@example.com")
    a = make_asset("Laptop", quantity=10, category="IT", subcategory="Notebook")
    req = _submit(client, a["id"], 3)

    r = client.patch(f"/assets-request/approve/{req['id']}", json={"approved_by": "Boss@Example.com"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "approved"
    assert body["approved_by"] == "boss@example.com"
    assert body["approved_at"] is not None

    assert asset_quantity(a["id"]) == 7

    assert len(mailer.sent) == 1
    sent = mailer.sent[0]
    assert sent["to"] == "alice@example.com"
    assert sent["subject"] == "Asset Request Approved"
    assert "Dear Alice" in sent["html"]
    assert "IT - Notebook" in sent["html"]


def test_second_approve_is_rejected_and_does_not_debit_twice(client, make_asset, mailer, asset_quantity):
    a = make_asset("Laptop", quantity=10)
    req = _submit(client, a["id"], 3)

    r = client.patch(f"/assets-request/approve/{req['id']}", json={"approved_by": "boss@example.com"})
    assert r.status_code == 200, r.text

    r = client.patch(f"/assets-request/approve/{req['id']}", json={"approved_by": "boss@example.com"})
    assert r.status_code == 409, r.text
    assert r.json()["detail"] == "Request already approved"

    assert asset_quantity(a["id"]) == 7


def test_approve_without_enough_stock_keeps_request_pending(client, make_asset, asset_quantity):
    a = make_asset("Laptop", quantity=2)
    req = _submit(client, a["id"], 5)

    r = client.patch(f"/assets-request/approve/{req['id']}", json={"approved_by": "boss@example.com"})
    assert r.status_code == 400, r.text

    assert asset_quantity(a["id"]) == 2
    assert client.get(f"/assets-request/{req['id']}").json()["status"] == "pending"


def test_approve_missing_request_or_asset_is_404(client, make_asset):
    r = client.patch("/assets-request/approve/nope", json={"approved_by": "boss@example.com"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Request not found"

    a = make_asset("Laptop", quantity=5)
    req = _submit(client, a["id"], 1)
    assert client.delete(f"/assets/{a['id']}").status_code == 204

    r = client.patch(f"/assets-request/approve/{req['id']}", json={"approved_by": "boss@example.com"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Asset not found"


def test_approve_for_requester_without_account_skips_mail(client, make_asset, mailer):
    a = make_asset("Laptop", quantity=5)
    req = _submit(client, a["id"], 1, email="ghost@example.com")

    r = client.patch(f"/assets-request/approve/{req['id']}", json={"approved_by": "boss@example.com"})
    assert r.status_code == 200, r.text
    assert mailer.sent == []


def test_mail_failure_does_not_undo_approval(client, make_asset, make_user, mailer, asset_quantity):
    make_user(email="alice@example.com")
    a = make_asset("Laptop", quantity=10)
    req = _submit(client, a["id"], 4)
    mailer.fail_times = 100

    r = client.patch(f"/assets-request/approve/{req['id']}", json={"approved_by": "boss@example.com"})
    assert r.status_code == 200, r.text

    assert mailer.sent == []
    assert asset_quantity(a["id"]) == 6
    assert client.get(f"/assets-request/{req['id']}").json()["status"] == "approved"


def test_mail_is_retried_after_transient_failure(client, make_asset, make_user, mailer):
    make_user(email="alice@example.com")
    a = make_asset("Laptop", quantity=10)
    req = _submit(client, a["id"], 1)
    mailer.fail_times = 1

    r = client.patch(f"/assets-request/approve/{req['id']}", json={"approved_by": "boss@example.com"})
    assert r.status_code == 200, r.text
    assert len(mailer.sent) == 1


def _admin_create(client, **body):
    return client.post("/assets-request/admin/create-and-approve", json=body)


def test_create_and_approve_debits_and_notifies(client, make_asset, make_user, mailer, asset_quantity):
    make_user(name="Bob", email="bob@example.com")
    a = make_asset("Monitor", quantity=5)

    r = _admin_create(
        client,
        asset_id=a["id"],
        user_email="BOB@example.com",
        quantity=2,
        unit="pcs",
        approved_by=" Admin@Example.com ",
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "approved"
    assert body["sent_by_admin"] is True
    assert body["user_email"] == "bob@example.com"
    assert body["approved_by"] == "admin@example.com"
    assert body["product_name"] == "Monitor"

    assert asset_quantity(a["id"]) == 3
    assert [m["subject"] for m in mailer.sent] == ["Asset Sent by Admin"]
    assert "Monitor" in mailer.sent[0]["html"]


def test_create_and_approve_with_insufficient_stock_changes_nothing(client, make_asset, make_user, mailer, asset_quantity):
    make_user(email="bob@example.com")
    a = make_asset("Monitor", quantity=2)

    r = _admin_create(
        client,
        asset_id=a["id"],
        user_email="bob@example.com",
        quantity=5,
        approved_by="admin@example.com",
    )
    assert r.status_code == 400, r.text
    assert r.json()["detail"] == "Insufficient quantity available"

    assert asset_quantity(a["id"]) == 2
    assert client.get("/assets-request/user/bob@example.com").json() == []
    assert mailer.sent == []


def test_create_and_approve_requires_fields(client, make_asset):
    a = make_asset("Monitor", quantity=2)

    r = _admin_create(client, asset_id=a["id"], quantity=1)
    assert r.status_code == 400
    assert "user_email" in r.json()["detail"]
    assert "approved_by" in r.json()["detail"]


def test_create_and_approve_unknown_user_or_asset_is_404(client, make_asset, make_user):
    a = make_asset("Monitor", quantity=2)

    r = _admin_create(client, asset_id=a["id"], user_email="nobody@example.com", quantity=1, approved_by="admin@example.com")
    assert r.status_code == 404
    assert r.json()["detail"] == "User not found"

    make_user(email="bob@example.com")
    r = _admin_create(client, asset_id="nope", user_email="bob@example.com", quantity=1, approved_by="admin@example.com")
    assert r.status_code == 404
    assert r.json()["detail"] == "Asset not found"


def test_list_requests_by_user(client, make_asset):
    a = make_asset("Laptop", quantity=10)
    _submit(client, a["id"], 1, email="alice@example.com")
    _submit(client, a["id"], 2, email="alice@example.com")
    _submit(client, a["id"], 3, email="carol@example.com")

    r = client.get("/assets-request/user/ALICE@example.com")
    assert r.status_code == 200
    assert sorted(x["quantity"] for x in r.json()) == [1, 2]
