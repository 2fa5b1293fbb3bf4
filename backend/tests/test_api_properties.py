import uuid


def _payload(**overrides):
    payload = {
        "title": "Marina Apartment",
        "description": "Two bedroom apartment with marina views",
        "price": 1_500_000,
        "location": {"address": "12 Marina Walk", "city": "Dubai", "state": "Dubai", "zipCode": "00000"},
        "type": "apartment",
        "listingType": "sale",
        "bedrooms": 2,
        "bathrooms": 2,
        "area": 1400,
        "amenities": ["pool", "gym"],
        "images": ["https://img.example.com/1.jpg"],
    }
    payload.update(overrides)
    return payload


class TestPropertyEndpoints:
    """Listing CRUD and ownership"""

    def test_create_property(self, client, auth_headers, agent):
        response = client.post("/api/properties", json=_payload(), headers=auth_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["agent"] == str(agent.id)
        assert data["type"] == "apartment"
        assert data["formattedPrice"] == "AED 1,500,000.00"
        assert data["primaryImage"] == "https://img.example.com/1.jpg"
        assert data["amenities"] == ["gym", "pool"]
        assert data["status"] == "active"

    def test_create_requires_token(self, client):
        response = client.post("/api/properties", json=_payload())
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_create_validation_error_is_400(self, client, auth_headers):
        response = client.post("/api/properties", json=_payload(bedrooms=50), headers=auth_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "bedrooms" in body["error"]

    def test_get_property(self, client, make_property):
        prop = make_property()
        response = client.get(f"/api/properties/{prop.id}")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == str(prop.id)

    def test_get_unknown_property_is_404(self, client):
        response = client.get(f"/api/properties/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Property not found"}

    def test_malformed_id_is_400(self, client):
        response = client.get("/api/properties/not-an-id")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid ID format"

    def test_update_by_owner(self, client, auth_headers, make_property):
        prop = make_property()
        response = client.put(
            f"/api/properties/{prop.id}",
            json={"price": 950000, "amenities": ["balcony"]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["price"] == 950000
        assert data["amenities"] == ["balcony"]

    def test_update_by_other_agent_is_forbidden(self, client, other_auth_headers, make_property):
        prop = make_property()
        response = client.put(f"/api/properties/{prop.id}", json={"price": 1}, headers=other_auth_headers)
        assert response.status_code == 403

    def test_delete_by_owner(self, client, auth_headers, make_property):
        prop = make_property()
        response = client.delete(f"/api/properties/{prop.id}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/api/properties/{prop.id}").status_code == 404

    def test_delete_with_inquiries_is_refused(self, client, auth_headers, make_property, make_client):
        prop = make_property()
        make_client(prop)
        response = client.delete(f"/api/properties/{prop.id}", headers=auth_headers)
        assert response.status_code == 400
        assert "archive" in response.json()["message"]

    def test_archive_restore_and_feature(self, client, auth_headers, make_property):
        prop = make_property()

        archived = client.patch(f"/api/properties/{prop.id}/archive", headers=auth_headers)
        assert archived.json()["data"]["status"] == "archived"

        restored = client.patch(f"/api/properties/{prop.id}/restore", headers=auth_headers)
        assert restored.json()["data"]["status"] == "active"

        featured = client.patch(f"/api/properties/{prop.id}/featured", headers=auth_headers)
        assert featured.json()["data"]["featured"] is True
        unfeatured = client.patch(f"/api/properties/{prop.id}/featured", headers=auth_headers)
        assert unfeatured.json()["data"]["featured"] is False


class TestPropertyListing:
    """List, featured, similar and stats endpoints"""

    def test_list_with_filters_and_pagination(self, client, make_property):
        for i in range(5):
            make_property(price=100_000 * (i + 1), city="Dubai Marina")
        make_property(price=2_000_000, city="Abu Dhabi")

        response = client.get(
            "/api/properties",
            params={"city": "marina", "minPrice": 200000, "sort": "price", "limit": 2, "page": 1},
        )

        assert response.status_code == 200
        body = response.json()
        assert [p["price"] for p in body["data"]] == [200000, 300000]
        assert body["pagination"] == {
            "currentPage": 1,
            "totalPages": 2,
            "totalProperties": 4,
            "hasNextPage": True,
            "hasPrevPage": False,
        }
        assert body["filters"]["city"] == "marina"

    def test_invalid_type_filter_is_400(self, client):
        response = client.get("/api/properties", params={"type": "castle"})
        assert response.status_code == 400

    def test_featured_list(self, client, make_property):
        make_property(featured=True)
        make_property(featured=True, status="sold")
        make_property()

        response = client.get("/api/properties/featured/list")
        assert response.status_code == 200
        assert len(response.json()["data"]) == 1

    def test_similar(self, client, make_property):
        reference = make_property()
        match = make_property()
        make_property(property_type="office")

        response = client.get(f"/api/properties/{reference.id}/similar", params={"limit": 4})
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["data"]] == [str(match.id)]

    def test_similar_unknown_reference_is_404(self, client):
        response = client.get(f"/api/properties/{uuid.uuid4()}/similar")
        assert response.status_code == 404

    def test_stats_require_auth(self, client, auth_headers, make_property):
        make_property(price=1_000_000, featured=True)
        make_property(price=3_000_000, status="sold")

        assert client.get("/api/properties/stats/overview").status_code == 401

        response = client.get("/api/properties/stats/overview", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert data["active"] == 1
        assert data["featured"] == 1
        assert data["averagePrice"] == 2_000_000
