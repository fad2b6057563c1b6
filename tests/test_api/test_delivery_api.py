"""
配送接口测试
"""

import pytest

STORE = {"latitude": -0.570582, "longitude": 37.315697}


@pytest.mark.asyncio
class TestDeliveryApi:

    async def test_quote_inside_free_radius(self, api_client):
        response = await api_client.post("/delivery/quote", json=STORE)

        assert response.status_code == 200
        data = response.json()
        assert data["delivery_fee"] == 0
        assert data["is_free_delivery"] is True
        assert data["distance_km"] == 0

    async def test_quote_paid_distance(self, api_client):
        response = await api_client.post("/delivery/quote", json={"latitude": -0.558082, "longitude": 37.315697})

        data = response.json()
        assert data["delivery_fee"] == 5000
        assert data["is_free_delivery"] is False
        assert data["distance_km"] == pytest.approx(1.39, abs=0.01)
        assert data["message"] == "Delivery: KES 50 (1.39 km from store)"

    async def test_quote_rejects_invalid_coordinates(self, api_client):
        response = await api_client.post("/delivery/quote", json={"latitude": 95, "longitude": 37.3})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"

    async def test_zone_lifecycle(self, api_client):
        inner = {**STORE, "name": "Nduini", "radius_km": 1.0, "free_delivery": True, "sort_order": 1}
        outer = {**STORE, "name": "Town", "radius_km": 5.0, "delivery_fee": 8000, "sort_order": 2}

        created = await api_client.post("/delivery/zones", json=outer)
        assert created.status_code == 201
        await api_client.post("/delivery/zones", json=inner)

        zones = (await api_client.get("/delivery/zones")).json()
        assert [zone["name"] for zone in zones] == ["Nduini", "Town"]

        matched = (await api_client.post("/delivery/zones/match", json=STORE)).json()
        assert matched["zone_name"] == "Nduini"
        assert matched["is_free_delivery"] is True

        inner_id = zones[0]["zone_id"]
        deactivated = await api_client.post(f"/delivery/zones/{inner_id}/deactivate")
        assert deactivated.status_code == 200

        matched = (await api_client.post("/delivery/zones/match", json=STORE)).json()
        assert matched["zone_name"] == "Town"
        assert matched["delivery_fee"] == 8000

    async def test_match_outside_service_area(self, api_client):
        response = await api_client.post("/delivery/zones/match", json={"latitude": 10.0, "longitude": 10.0})

        assert response.status_code == 200
        data = response.json()
        assert data["in_service_area"] is False
        assert data["zone_name"] == "Outside service area"

    async def test_deactivate_missing_zone(self, api_client):
        response = await api_client.post("/delivery/zones/ZONE_NONE/deactivate")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
