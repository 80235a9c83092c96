async def test_reviews_update_average_rating(client, restaurant, customer_headers, other_headers):
    url = f"/restaurants/{restaurant['id']}/reviews"

    resp = await client.post(url, json={"rating": 4, "comment": "Great tikka"}, headers=customer_headers)
    assert resp.status_code == 201
    review = resp.json()
    assert review["userName"] == "Asha"
    assert review["restaurantId"] == restaurant["id"]

    resp = await client.post(url, json={"rating": 5}, headers=other_headers)
    assert resp.status_code == 201
    assert resp.json()["comment"] == ""

    resp = await client.get(f"/restaurants/{restaurant['id']}")
    assert resp.json()["rating"] == 4.5

    resp = await client.get(url)
    assert [(r["userName"], r["rating"]) for r in resp.json()] == [("Ravi", 5), ("Asha", 4)]


async def test_review_validation_and_auth(client, restaurant, customer_headers):
    url = f"/restaurants/{restaurant['id']}/reviews"

    resp = await client.post(url, json={"rating": 6}, headers=customer_headers)
    assert resp.status_code == 400

    resp = await client.post(url, json={"rating": 0}, headers=customer_headers)
    assert resp.status_code == 400

    resp = await client.post(url, json={"rating": 3})
    assert resp.status_code == 401

    resp = await client.post("/restaurants/999/reviews", json={"rating": 3}, headers=customer_headers)
    assert resp.status_code == 404

    assert (await client.get("/restaurants/999/reviews")).status_code == 404

    # Rejected reviews leave the rating untouched
    resp = await client.get(f"/restaurants/{restaurant['id']}")
    assert resp.json()["rating"] == 0
