def _create_purchase(client, items, **extra):
    r = client.post("/purchases", json={"items": items, **extra})
    assert r.status_code == 201, r.text
    return r.json()


def test_create_purchase_adds_each_line_item(client, make_asset, asset_quantity):
    a1 = make_asset("Toner", quantity=1)
    a2 = make_asset("Stapler", quantity=0)

    p = _create_purchase(
        client,
        [{"asset_id": a1["id"], "qty": 4}, {"asset_id": a2["id"], "qty": 7}],
    )

    assert asset_quantity(a1["id"]) == 5
    assert asset_quantity(a2["id"]) == 7
    assert [(i["asset_name"], i["qty"]) for i in p["items"]] == [("Toner", 4), ("Stapler", 7)]
    assert p["created_by"] == "unknown"
    assert p["updated_by"] == "unknown"


def test_create_purchase_drops_incomplete_items(client, make_asset, asset_quantity):
    a = make_asset("Toner", quantity=2)

    p = _create_purchase(
        client,
        [
            {"asset_id": a["id"], "qty": 3},
            {"asset_id": a["id"]},
            {"qty": 9},
            {"asset_id": a["id"], "qty": 0},
        ],
        created_by="buyer@example.com",
    )

    assert asset_quantity(a["id"]) == 5
    assert len(p["items"]) == 1
    assert p["created_by"] == "buyer@example.com"
    assert p["updated_by"] == "buyer@example.com"


def test_create_purchase_unknown_asset_has_no_side_effects(client, make_asset, asset_quantity):
    a = make_asset("Toner", quantity=2)

    r = client.post(
        "/purchases",
        json={"items": [{"asset_id": a["id"], "qty": 3}, {"asset_id": "missing", "qty": 1}]},
    )
    assert r.status_code == 404, r.text

    assert asset_quantity(a["id"]) == 2
    assert client.get("/purchases").json() == []


def test_update_purchase_replaces_items(client, make_asset, asset_quantity):
    a = make_asset("Toner", quantity=10)
    p = _create_purchase(client, [{"asset_id": a["id"], "qty": 5}])
    assert asset_quantity(a["id"]) == 15

    r = client.patch(f"/purchases/{p['id']}", json={"items": [{"asset_id": a["id"], "qty": 3}]})
    assert r.status_code == 200, r.text

    # net -2 relative to before the update
    assert asset_quantity(a["id"]) == 13
    assert [i["qty"] for i in r.json()["items"]] == [3]


def test_update_purchase_moves_stock_between_assets(client, make_asset, asset_quantity):
    a = make_asset("Toner", quantity=0)
    b = make_asset("Ink", quantity=0)
    p = _create_purchase(client, [{"asset_id": a["id"], "qty": 6}])

    r = client.patch(f"/purchases/{p['id']}", json={"items": [{"asset_id": b["id"], "qty": 2}]})
    assert r.status_code == 200, r.text

    assert asset_quantity(a["id"]) == 0
    assert asset_quantity(b["id"]) == 2


def test_update_purchase_without_items_leaves_ledger_alone(client, make_asset, asset_quantity):
    a = make_asset("Toner", quantity=1)
    p = _create_purchase(client, [{"asset_id": a["id"], "qty": 5}], purchase_price=100.0)

    r = client.patch(
        f"/purchases/{p['id']}",
        json={"purchase_price": 120.0, "due_amount": 20.0, "updated_by": "boss@example.com"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["purchase_price"] == 120.0
    assert body["due_amount"] == 20.0
    assert body["updated_by"] == "boss@example.com"
    assert body["created_by"] == "unknown"
    assert asset_quantity(a["id"]) == 6


def test_delete_purchase_reverses_items(client, make_asset, asset_quantity):
    a = make_asset("Toner", quantity=0)
    p = _create_purchase(client, [{"asset_id": a["id"], "qty": 5}])
    assert asset_quantity(a["id"]) == 5

    r = client.delete(f"/purchases/{p['id']}")
    assert r.status_code == 204

    assert asset_quantity(a["id"]) == 0
    assert client.get(f"/purchases/{p['id']}").status_code == 404


def test_purchase_lifecycle_scenario(client, make_asset, asset_quantity):
    a1 = make_asset("A1", quantity=20)

    p = _create_purchase(client, [{"asset_id": a1["id"], "qty": 10}])
    assert asset_quantity(a1["id"]) == 30

    r = client.patch(f"/purchases/{p['id']}", json={"items": [{"asset_id": a1["id"], "qty": 4}]})
    assert r.status_code == 200, r.text
    assert asset_quantity(a1["id"]) == 24

    r = client.delete(f"/purchases/{p['id']}")
    assert r.status_code == 204
    assert asset_quantity(a1["id"]) == 20


def test_missing_purchase_is_404(client):
    assert client.patch("/purchases/nope", json={"items": []}).status_code == 404
    assert client.delete("/purchases/nope").status_code == 404
    assert client.get("/purchases/nope").status_code == 404


def _consume(client, make_user, asset_id, qty):
    make_user(email="worker@example.com")
    r = client.post(
        "/assets-request/admin/create-and-approve",
        json={
            "asset_id": asset_id,
            "user_email": "worker@example.com",
            "quantity": qty,
            "approved_by": "admin@example.com",
        },
    )
    assert r.status_code == 201, r.text


def test_delete_purchase_refused_when_stock_already_issued(client, make_asset, make_user, asset_quantity):
    a = make_asset("Toner", quantity=0)
    p = _create_purchase(client, [{"asset_id": a["id"], "qty": 10}])
    _consume(client, make_user, a["id"], 8)
    assert asset_quantity(a["id"]) == 2

    r = client.delete(f"/purchases/{p['id']}")
    assert r.status_code == 400, r.text

    assert asset_quantity(a["id"]) == 2
    assert client.get(f"/purchases/{p['id']}").status_code == 200


def test_update_purchase_checks_floor_after_both_passes(client, make_asset, make_user, asset_quantity):
    a = make_asset("Toner", quantity=0)
    p = _create_purchase(client, [{"asset_id": a["id"], "qty": 10}])
    _consume(client, make_user, a["id"], 8)

    # reversal alone would reach -8, the replacement brings it back to 4
    r = client.patch(f"/purchases/{p['id']}", json={"items": [{"asset_id": a["id"], "qty": 12}]})
    assert r.status_code == 200, r.text
    assert asset_quantity(a["id"]) == 4

    # 4 - 12 + 5 < 0: rejected, nothing changes
    r = client.patch(f"/purchases/{p['id']}", json={"items": [{"asset_id": a["id"], "qty": 5}]})
    assert r.status_code == 400, r.text
    assert asset_quantity(a["id"]) == 4
    assert [i["qty"] for i in client.get(f"/purchases/{p['id']}").json()["items"]] == [12]


def test_vendor_contact_is_snapshotted(client, make_asset):
    a = make_asset("Toner")
    v = client.post("/vendors", json={"name": "Acme", "phone": "0123", "address": "1 Main St"}).json()

    p = _create_purchase(client, [{"asset_id": a["id"], "qty": 1}], vendor_id=v["id"])
    assert p["vendor_phone"] == "0123"
    assert p["vendor_address"] == "1 Main St"

    r = client.patch(f"/vendors/{v['id']}", json={"phone": "9999"})
    assert r.status_code == 200

    stored = client.get(f"/purchases/{p['id']}").json()
    assert stored["vendor_phone"] == "0123"


def test_vendor_without_contact_snapshots_placeholder(client, make_asset):
    a = make_asset("Toner")
    v = client.post("/vendors", json={"name": "Quiet Supplier"}).json()

    p = _create_purchase(client, [{"asset_id": a["id"], "qty": 1}], vendor_id=v["id"])
    assert p["vendor_phone"] == "-"
    assert p["vendor_address"] == "-"


def test_unknown_vendor_is_rejected(client, make_asset, asset_quantity):
    a = make_asset("Toner", quantity=0)

    r = client.post("/purchases", json={"items": [{"asset_id": a["id"], "qty": 1}], "vendor_id": "nope"})
    assert r.status_code == 404, r.text
    assert asset_quantity(a["id"]) == 0
