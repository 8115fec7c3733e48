from types import SimpleNamespace

from schemas.menu import MenuItemRead


async def test_menu_lists_categories_in_display_order(client, menu):
    resp = await client.get("/menu/")
    assert resp.status_code == 200
    cats = resp.json()
    assert [c["name"] for c in cats] == ["Combos", "Entrees", "Sides", "Drinks"]
    sides = next(c for c in cats if c["name"] == "Sides")
    assert sides["kind"] == "SIDE"
    assert [i["name"] for i in sides["items"]] == ["Chow Mein", "Fried Rice", "Super Greens"]


async def test_create_kiosk_order_prices_server_side(client, menu):
    ids = menu["items"]
    resp = await client.post(
        "/orders/",
        json={
            "dine_option": "dine_in",
            "items": [
                {
                    "menu_item_id": ids["Plate"],
                    "quantity": 2,
                    "options": [
                        {"menu_item_id": ids["Fried Rice"]},
                        {"menu_item_id": ids["Super Greens"]},
                        {"menu_item_id": ids["Honey Walnut Shrimp"]},
                    ],
                },
                {"menu_item_id": ids["Fountain Drink"], "quantity": 1},
            ],
            "notes": "  extra napkins ",
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    # (9.80 + 1.50) * 2 + 2.10 = 24.70 ; tax 8.25% = 2.04
    assert body["subtotal"] == 24.70
    assert body["tax_amount"] == 2.04
    assert body["total"] == 26.74

    order = (await client.get(f"/orders/{body['order_id']}")).json()
    assert order["status"] == "queued"
    assert order["dine_option"] == "dine_in"
    assert order["notes"] == "extra napkins"
    assert order["is_consumed"] is False
    assert order["items"][0]["unit_price"] == 11.30
    assert [o["name"] for o in order["items"][0]["options"]] == [
        "Fried Rice",
        "Super Greens",
        "Honey Walnut Shrimp",
    ]


async def test_create_kiosk_order_rejects_bad_input(client, menu):
    ids = menu["items"]

    unknown = await client.post("/orders/", json={"items": [{"menu_item_id": 9999}]})
    assert unknown.status_code == 400
    assert unknown.json()["detail"] == "Unknown menu item 9999"

    empty = await client.post("/orders/", json={"items": []})
    assert empty.status_code == 422

    mismatch = await client.post(
        "/orders/",
        json={"items": [{"menu_item_id": ids["Fountain Drink"]}], "pay_amount": 1.00},
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["detail"].startswith("Mismatched total")


async def test_get_unknown_order(client, menu):
    resp = await client.get("/orders/12345")
    assert resp.status_code == 404


def test_menu_item_read_from_attributes():
    row = SimpleNamespace(id=7, name="Fried Rice", price=4.4, option_surcharge=0)

    item = MenuItemRead.model_validate(row)

    assert item.name == "Fried Rice"
    assert item.price == 4.4
