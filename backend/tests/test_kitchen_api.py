from datetime import datetime, timedelta, timezone
from decimal import Decimal

from db.prepared import PreparedStock


async def _stock_by_name(client):
    resp = await client.get("/prepared-stock/")
    assert resp.status_code == 200
    return {row["name"]: row for row in resp.json()}


async def test_cook_batch_endpoint(client, menu):
    resp = await client.post(
        "/prepared-stock/batches",
        json={"menu_item_id": menu["items"]["Fried Rice"], "servings": 4},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["menu_item_name"] == "Fried Rice"
    assert body["servings_available"] == 4.0

    stock = await _stock_by_name(client)
    assert stock["Fried Rice"]["servings_available"] == 4.0
    assert stock["Fried Rice"]["level"] == "low"


async def test_cook_batch_endpoint_shortage(client, menu):
    resp = await client.post(
        "/prepared-stock/batches",
        json={"menu_item_id": menu["items"]["Orange Chicken"], "servings": 10},
    )
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["message"].startswith("Not enough inventory to cook 10 x Orange Chicken")
    assert detail["shortages"] == [
        {"id": menu["inventory"]["chicken"], "name": "Chicken", "have": 3.0, "need": 5.0}
    ]


async def test_cook_batch_endpoint_errors(client, menu):
    no_recipe = await client.post(
        "/prepared-stock/batches", json={"menu_item_id": menu["items"]["Chow Mein"], "servings": 1}
    )
    assert no_recipe.status_code == 409
    assert "No recipe configured for Chow Mein" in no_recipe.json()["detail"]["message"]

    unknown = await client.post("/prepared-stock/batches", json={"menu_item_id": 9999, "servings": 1})
    assert unknown.status_code == 404

    bad = await client.post(
        "/prepared-stock/batches", json={"menu_item_id": menu["items"]["Fried Rice"], "servings": 0}
    )
    assert bad.status_code == 422


async def test_status_transition_consumes_once(client, session_maker, menu, make_order):
    ids = menu["items"]
    await client.post("/prepared-stock/batches", json={"menu_item_id": ids["Fried Rice"], "servings": 2})
    await client.post("/prepared-stock/batches", json={"menu_item_id": ids["Super Greens"], "servings": 2})
    order_id = await make_order((ids["Plate"], 1, [(ids["Fried Rice"], 1), (ids["Super Greens"], 1)]))

    queued = await client.post(f"/kitchen/orders/{order_id}/status", json={"status": "queued"})
    assert queued.status_code == 200
    assert queued.json()["consumed"] is False
    assert (await _stock_by_name(client))["Fried Rice"]["servings_available"] == 2.0

    prepping = await client.post(f"/kitchen/orders/{order_id}/status", json={"status": "prepping"})
    assert prepping.status_code == 200
    assert prepping.json()["consumed"] is True

    done = await client.post(f"/kitchen/orders/{order_id}/complete")
    assert done.status_code == 200
    assert done.json()["status"] == "done"
    completed_at = datetime.fromisoformat(done.json()["completed_at"])
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    assert completed_at.tzinfo is None
    assert now - timedelta(minutes=1) <= completed_at <= now
    assert done.json()["consumed"] is False

    stock = await _stock_by_name(client)
    assert stock["Fried Rice"]["servings_available"] == 1.5
    assert stock["Super Greens"]["servings_available"] == 1.5

    order = (await client.get(f"/orders/{order_id}")).json()
    assert order["status"] == "done"
    assert order["is_consumed"] is True


async def test_status_transition_rejected_on_shortage(client, session_maker, menu, make_order):
    ids = menu["items"]
    async with session_maker() as s:
        s.add(PreparedStock(menu_item_id=ids["Orange Chicken"], servings_available=Decimal("1")))
        await s.commit()
    order_id = await make_order((ids["Plate"], 2, [(ids["Orange Chicken"], 1)]))

    resp = await client.post(f"/kitchen/orders/{order_id}/status", json={"status": "prepping"})

    assert resp.status_code == 409
    assert resp.json()["detail"]["message"] == "Not enough prepared stock: Orange Chicken (have 1, need 2)"
    order = (await client.get(f"/orders/{order_id}")).json()
    assert order["status"] == "queued"
    assert order["is_consumed"] is False
    assert (await _stock_by_name(client))["Orange Chicken"]["servings_available"] == 1.0


async def test_invalid_status_and_unknown_order(client, menu, make_order):
    order_id = await make_order((menu["items"]["Fountain Drink"], 1, []))

    bad = await client.post(f"/kitchen/orders/{order_id}/status", json={"status": "eaten"})
    assert bad.status_code == 400

    missing = await client.post("/kitchen/orders/999/status", json={"status": "prepping"})
    assert missing.status_code == 404


async def test_queue_and_clear_done(client, menu, make_order):
    ids = menu["items"]
    first = await make_order((ids["Fountain Drink"], 1, []))
    second = await make_order((ids["Plate"], 1, [(ids["Fountain Drink"], 1)]))

    await client.post(f"/kitchen/orders/{first}/complete")
    queue = (await client.get("/kitchen/queue")).json()
    assert [o["order_id"] for o in queue] == [first, second]
    assert queue[1]["items"][0]["options"] == ["Fountain Drink"]

    cleared = await client.post("/kitchen/clear-done")
    assert cleared.json() == {"cleared": 1}

    queue = (await client.get("/kitchen/queue")).json()
    assert [o["order_id"] for o in queue] == [second]


async def test_discard_endpoint(client, menu):
    await client.post("/prepared-stock/batches", json={"menu_item_id": menu["items"]["Fried Rice"], "servings": 4})

    resp = await client.post("/prepared-stock/discard")

    assert resp.status_code == 200
    assert resp.json() == {"cleared": 1}
    stock = await _stock_by_name(client)
    assert stock["Fried Rice"]["servings_available"] == 0.0
    assert stock["Fried Rice"]["level"] == "out"
