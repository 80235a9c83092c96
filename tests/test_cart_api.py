import pytest

from conftest import ADDRESS

from services.cart_service.repository import CartRepository
from shared.exceptions import Internal


@pytest.fixture
async def cart(client):
    resp = await client.post("/cart")
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
async def other_restaurant(client, admin_headers):
    resp = await client.post(
        "/restaurants",
        json={"name": "Dragon Wok", "cuisine": ["chinese"], "address": ADDRESS, "phone": "+91-80-5550199"},
        headers=admin_headers,
    )
    restaurant = resp.json()
    resp = await client.post(
        f"/restaurants/{restaurant['id']}/menu",
        json={"name": "Hakka Noodles", "price": 120},
        headers=admin_headers,
    )
    restaurant["menu"] = [resp.json()]
    return restaurant


async def test_new_cart_is_empty(cart):
    assert cart["items"] == []
    assert cart["restaurantId"] is None
    assert cart["subtotal"] == 0
    assert cart["deliveryFee"] == 0
    assert cart["total"] == 0
    assert cart["itemCount"] == 0


async def test_unknown_session(client, database):
    resp = await client.get("/cart/not-a-session")
    assert resp.status_code == 404


async def test_add_items_merges_and_totals(client, cart, restaurant):
    tikka, chai = restaurant["menu"]
    url = f"/cart/{cart['sessionId']}/items"

    await client.post(url, json={"itemId": tikka["id"]})
    await client.post(url, json={"itemId": chai["id"], "quantity": 1})
    resp = await client.post(url, json={"itemId": tikka["id"]})

    body = resp.json()
    assert resp.status_code == 200
    assert body["restaurantId"] == restaurant["id"]
    assert [(line["name"], line["quantity"], line["lineTotal"]) for line in body["items"]] == [
        ("Paneer Tikka", 2, 200),
        ("Masala Chai", 1, 50),
    ]
    assert body["subtotal"] == 250
    assert body["deliveryFee"] == 50
    assert body["total"] == 300
    assert body["itemCount"] == 3

    # Persisted across requests
    resp = await client.get(f"/cart/{cart['sessionId']}")
    assert resp.json()["total"] == 300


async def test_add_unknown_menu_item(client, cart, database):
    resp = await client.post(f"/cart/{cart['sessionId']}/items", json={"itemId": 999})
    assert resp.status_code == 404


async def test_add_rejects_zero_quantity(client, cart, restaurant):
    tikka = restaurant["menu"][0]
    resp = await client.post(f"/cart/{cart['sessionId']}/items", json={"itemId": tikka["id"], "quantity": 0})
    assert resp.status_code == 400


async def test_cart_holds_one_restaurant(client, cart, restaurant, other_restaurant):
    url = f"/cart/{cart['sessionId']}/items"
    await client.post(url, json={"itemId": restaurant["menu"][0]["id"]})

    resp = await client.post(url, json={"itemId": other_restaurant["menu"][0]["id"]})
    assert resp.status_code == 400

    resp = await client.get(f"/cart/{cart['sessionId']}")
    assert len(resp.json()["items"]) == 1


async def test_unavailable_item_cannot_be_added(client, cart, restaurant, admin_headers):
    chai = restaurant["menu"][1]
    await client.patch(
        f"/restaurants/{restaurant['id']}/menu/{chai['id']}",
        json={"isAvailable": False},
        headers=admin_headers,
    )
    resp = await client.post(f"/cart/{cart['sessionId']}/items", json={"itemId": chai["id"]})
    assert resp.status_code == 400


async def test_update_quantity_and_remove(client, cart, restaurant):
    tikka, chai = restaurant["menu"]
    sid = cart["sessionId"]
    await client.post(f"/cart/{sid}/items", json={"itemId": tikka["id"]})
    await client.post(f"/cart/{sid}/items", json={"itemId": chai["id"]})

    resp = await client.put(f"/cart/{sid}/items/{tikka['id']}", json={"quantity": 3})
    assert resp.json()["subtotal"] == 350

    resp = await client.put(f"/cart/{sid}/items/{chai['id']}", json={"quantity": 0})
    assert [line["itemId"] for line in resp.json()["items"]] == [tikka["id"]]

    resp = await client.put(f"/cart/{sid}/items/{chai['id']}", json={"quantity": 2})
    assert resp.status_code == 404

    resp = await client.delete(f"/cart/{sid}/items/{tikka['id']}")
    assert resp.json()["items"] == []
    assert resp.json()["total"] == 0


async def test_clear_cart(client, cart, restaurant):
    sid = cart["sessionId"]
    for item in restaurant["menu"]:
        await client.post(f"/cart/{sid}/items", json={"itemId": item["id"]})

    resp = await client.delete(f"/cart/{sid}/items")
    assert resp.status_code == 200
    assert resp.json()["itemCount"] == 0


async def _fill(client, sid, restaurant):
    tikka, chai = restaurant["menu"]
    await client.post(f"/cart/{sid}/items", json={"itemId": tikka["id"], "quantity": 2})
    await client.post(f"/cart/{sid}/items", json={"itemId": chai["id"]})


async def test_checkout_places_order_and_empties_cart(client, cart, restaurant, customer_headers):
    sid = cart["sessionId"]
    await _fill(client, sid, restaurant)

    resp = await client.post(
        f"/cart/{sid}/checkout",
        json={"deliveryAddress": ADDRESS, "paymentMethod": "card"},
        headers=customer_headers,
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["order"]["totalAmount"] == 300
    assert body["order"]["status"] == "pending"
    assert body["order"]["paymentMethod"] == "card"
    assert body["cart"]["items"] == []

    resp = await client.get("/orders", headers=customer_headers)
    assert [o["id"] for o in resp.json()] == [body["order"]["id"]]

    resp = await client.get(f"/cart/{sid}")
    assert resp.json()["itemCount"] == 0


async def test_checkout_empty_cart(client, cart, customer_headers):
    resp = await client.post(
        f"/cart/{cart['sessionId']}/checkout",
        json={"deliveryAddress": ADDRESS},
        headers=customer_headers,
    )
    assert resp.status_code == 400


async def test_checkout_requires_auth(client, cart, restaurant):
    await _fill(client, cart["sessionId"], restaurant)
    resp = await client.post(f"/cart/{cart['sessionId']}/checkout", json={"deliveryAddress": ADDRESS})
    assert resp.status_code == 401


async def test_checkout_replay_returns_same_order(client, cart, restaurant, customer_headers):
    sid = cart["sessionId"]
    await _fill(client, sid, restaurant)
    headers = {**customer_headers, "Idempotency-Key": "cart-retry-1"}

    first = await client.post(f"/cart/{sid}/checkout", json={"deliveryAddress": ADDRESS}, headers=headers)
    second = await client.post(f"/cart/{sid}/checkout", json={"deliveryAddress": ADDRESS}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["order"]["id"] == first.json()["order"]["id"]

    resp = await client.get("/orders", headers=customer_headers)
    assert len(resp.json()) == 1


async def test_failed_cart_clear_rolls_back_the_order(client, cart, restaurant, customer_headers, monkeypatch):
    sid = cart["sessionId"]
    await _fill(client, sid, restaurant)

    async def broken_save(db, session_id, lines):
        raise Internal("cart store unavailable")

    monkeypatch.setattr(CartRepository, "save_lines", staticmethod(broken_save))

    resp = await client.post(f"/cart/{sid}/checkout", json={"deliveryAddress": ADDRESS}, headers=customer_headers)
    assert resp.status_code == 500

    resp = await client.get("/orders", headers=customer_headers)
    assert resp.json() == []

    # The cart is untouched and can be checked out again
    resp = await client.get(f"/cart/{sid}")
    assert resp.json()["itemCount"] == 3
