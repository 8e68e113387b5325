"""
Destination endpoints and the cache-aside read path
"""
import pytest

from tourbook.services.destination_cache import DestinationCacheService
from tourbook.utils.seed_data import SAMPLE_DESTINATIONS


async def test_list_destinations_returns_seeded_tours(client):
    response = await client.get("/api/destinations")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == len(SAMPLE_DESTINATIONS)
    assert body["limit"] is None
    assert len(body["destinations"]) == body["total"]
    assert body["offset"] == 0
    assert {d["name"] for d in body["destinations"]} == {d["name"] for d in SAMPLE_DESTINATIONS}


async def test_list_destinations_paginates(client):
    response = await client.get("/api/destinations", params={"limit": 2, "offset": 2})

    body = response.json()
    assert body["total"] == 3
    assert len(body["destinations"]) == 1


async def test_create_destination(client):
    payload = {
        "name": "Cañón del Pato",
        "location": "Huallanca, Ancash",
        "description": "Road through 35 tunnels",
        "price": 320.5,
        "duration_days": 2,
        "includes": ["Transport", "Guide"],
    }

    response = await client.post("/api/destinations", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert body["id"] > 0
    assert body["price"] == 320.5
    assert body["includes"] == ["Transport", "Guide"]
    assert body["created_at"] is not None

    listing = await client.get("/api/destinations")
    assert listing.json()["total"] == 4


@pytest.mark.parametrize("payload", [
    {"location": "Chimbote", "price": 100, "duration_days": 1},
    {"name": "Tour", "price": 100, "duration_days": 1},
    {"name": "Tour", "location": "Chimbote", "duration_days": 1},
    {"name": "Tour", "location": "Chimbote", "price": 100},
    {"name": "Tour", "location": "Chimbote", "price": 0, "duration_days": 1},
    {"name": "Tour", "location": "Chimbote", "price": 100, "duration_days": 0},
    {"name": "", "location": "Chimbote", "price": 100, "duration_days": 1},
])
async def test_create_destination_rejects_missing_fields(client, payload):
    response = await client.post("/api/destinations", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing or invalid fields"


async def test_get_unknown_destination_returns_404(client):
    response = await client.get("/api/destinations/9999")

    assert response.status_code == 404


async def test_first_read_populates_cache_and_second_read_is_identical(client, context, cassandra):
    first = await client.get("/api/destinations/1")
    assert first.status_code == 200
    assert first.headers["X-Data-Source"] == "database"

    await context.tasks.drain()
    assert "1" in cassandra.cache
    assert cassandra.cache["1"]["ttl"] == context.settings.CACHE_TTL_DESTINATIONS

    second = await client.get("/api/destinations/1")
    assert second.status_code == 200
    assert second.headers["X-Data-Source"] == "cache"
    assert second.json() == first.json()


async def test_cache_read_failure_falls_back_to_database(client, context, cassandra):
    cassandra.fail_reads = True

    response = await client.get("/api/destinations/2")

    assert response.status_code == 200
    assert response.headers["X-Data-Source"] == "database"
    assert response.json()["name"] == "Isla Blanca"


async def test_cassandra_down_skips_the_cache(client, context, cassandra):
    context.status.mark_down("cassandra", "connection refused")

    response = await client.get("/api/destinations/1")
    await context.tasks.drain()

    assert response.headers["X-Data-Source"] == "database"
    assert cassandra.cache_writes == 0


async def test_cache_write_failure_is_recorded_not_raised(client, context, cassandra):
    async def broken_write(destination, ttl):
        raise RuntimeError("Cassandra write timeout")

    cassandra.cache_destination = broken_write

    response = await client.get("/api/destinations/3")
    await context.tasks.drain()

    assert response.status_code == 200
    failures = context.tasks.failures("cache_destination")
    assert [failure.name for failure in failures] == ["cache_destination:3"]


async def test_view_is_logged_and_counted(client, context, mongodb):
    await client.get("/api/destinations/1")
    await client.get("/api/destinations/1")
    await context.tasks.drain()

    views = [log for log in mongodb.activity_logs if log["action"] == "view_destination"]
    assert len(views) == 2
    assert views[0]["resource_id"] == "1"

    (today,) = mongodb.analytics.values()
    assert today["destination_views"] == 2
    assert today["page_views"] == 2


async def test_cache_service_returns_none_for_missing_rows(context):
    service = DestinationCacheService(context.cassandra, context.tasks, ttl=60)

    async with context.postgres.session_factory() as db:
        destination, source = await service.get_destination(db, 404)

    assert destination is None
    assert source == "database"
    assert context.tasks.pending == 0


async def test_overview_statistics(client):
    response = await client.get("/api/destinations/analytics/overview")

    assert response.status_code == 200
    body = response.json()
    assert body["total_destinations"] == 3
    assert body["min_price"] == 80.0
    assert body["max_price"] == 200.0
    assert body["average_price"] == pytest.approx(143.33, abs=0.01)


async def test_reviews_round_trip(client):
    review = {"client_name": "Ana", "client_email": "ana@example.com", "rating": 5, "comment": "Excellent"}

    created = await client.post("/api/destinations/1/reviews", json=review)
    assert created.status_code == 201
    assert created.json()["destination_id"] == "1"
    assert created.json()["is_verified"] is False

    listed = await client.get("/api/destinations/1/reviews")
    assert [r["comment"] for r in listed.json()] == ["Excellent"]


async def test_review_rejected_for_unknown_destination_or_bad_rating(client):
    review = {"client_name": "Ana", "client_email": "ana@example.com", "rating": 5, "comment": "Excellent"}

    assert (await client.post("/api/destinations/999/reviews", json=review)).status_code == 404
    assert (await client.post("/api/destinations/1/reviews", json={**review, "rating": 6})).status_code == 400


async def test_gallery_lists_featured_images(client, mongodb):
    mongodb.gallery.append({
        "id": "g1",
        "destination_id": "2",
        "image_url": "/img/isla-blanca.jpg",
        "image_title": "Isla Blanca",
        "is_featured": True,
        "tags": ["beach"],
    })

    response = await client.get("/api/destinations/2/gallery")

    assert response.status_code == 200
    assert response.json()[0]["image_title"] == "Isla Blanca"
