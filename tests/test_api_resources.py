"""
Tests for the supporting endpoints
Version: 1.0

Vehicles, maintenance, activities, notifications, reports and dashboard.
"""

from datetime import date

import pytest

from conftest import auth

NEW_VEHICLE = {
    "make": "Skoda",
    "model": "Octavia",
    "year": 2023,
    "type": "wagon",
    "rental_price": 55.5,
    "license_plate": "ZG-7777-XY",
    "color": "Grey",
    "fuel_type": "diesel",
    "transmission": "manual",
    "seats": 5,
}


async def _book(client, vehicle_id, start, end, role="customer"):
    response = await client.post(
        "/bookings",
        json={"vehicle_id": vehicle_id, "start_date": start.isoformat(), "end_date": end.isoformat()},
        headers=auth(role),
    )
    return response.json()["data"]["id"]


# ============================================================================
# VEHICLES
# ============================================================================

class TestVehicles:

    @pytest.mark.asyncio
    async def test_create_requires_staff(self, client):
        response = await client.post("/vehicles", json=NEW_VEHICLE, headers=auth("customer"))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_update_delete(self, client):
        created = await client.post("/vehicles", json=NEW_VEHICLE, headers=auth("staff"))
        assert created.status_code == 201
        vehicle_id = created.json()["data"]["id"]
        assert created.json()["data"]["status"] == "available"

        updated = await client.put(
            f"/vehicles/{vehicle_id}", json={"rental_price": 60, "status": "maintenance"}, headers=auth("admin")
        )
        assert updated.json()["data"]["rental_price"] == 60.0
        assert updated.json()["data"]["status"] == "maintenance"
        assert updated.json()["data"]["model"] == "Octavia"

        deleted = await client.delete(f"/vehicles/{vehicle_id}", headers=auth("admin"))
        assert deleted.json() == {"success": True, "message": "Vehicle deleted successfully"}
        assert (await client.get(f"/vehicles/{vehicle_id}", headers=auth("admin"))).status_code == 404

        activity = await client.get(f"/activities/entity/vehicle/{vehicle_id}", headers=auth("admin"))
        assert [a["action"] for a in activity.json()["data"]["items"]] == ["deleted", "updated", "created"]

    @pytest.mark.asyncio
    async def test_duplicate_plate(self, client, vehicle):
        response = await client.post(
            "/vehicles", json={**NEW_VEHICLE, "license_plate": vehicle.license_plate}, headers=auth("staff")
        )

        assert response.status_code == 422
        assert "license_plate" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_future_model_year_rejected(self, client):
        response = await client.post(
            "/vehicles", json={**NEW_VEHICLE, "year": date.today().year + 2}, headers=auth("staff")
        )
        assert response.status_code == 422
        assert "year" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_delete_with_held_booking(self, client, vehicle, future):
        booking_id = await _book(client, vehicle.id, future(5), future(6))
        await client.put(f"/bookings/{booking_id}", json={"status": "approved"}, headers=auth("staff"))

        response = await client.delete(f"/vehicles/{vehicle.id}", headers=auth("staff"))

        assert response.status_code == 422
        assert response.json()["message"] == "Cannot delete vehicle with active bookings"

    @pytest.mark.asyncio
    async def test_list_filters(self, client, vehicle):
        await client.post("/vehicles", json=NEW_VEHICLE, headers=auth("staff"))

        everything = (await client.get("/vehicles", headers=auth("customer"))).json()["data"]
        search = (await client.get("/vehicles?search=octa", headers=auth("customer"))).json()["data"]
        cheap = (await client.get("/vehicles?max_price=50", headers=auth("customer"))).json()["data"]

        assert everything["total"] == 2
        assert [v["license_plate"] for v in search["items"]] == ["ZG-7777-XY"]
        assert [v["license_plate"] for v in cheap["items"]] == ["ZG-1000-AA"]

    @pytest.mark.asyncio
    async def test_available_for_range(self, client, vehicle, future):
        booking_id = await _book(client, vehicle.id, future(5), future(7))
        await client.put(f"/bookings/{booking_id}", json={"status": "approved"}, headers=auth("staff"))

        params = {"start_date": future(6).isoformat(), "end_date": future(8).isoformat()}
        busy = await client.get("/vehicles-available", params=params, headers=auth("customer"))
        assert busy.json()["data"] == []

        params = {"start_date": future(8).isoformat(), "end_date": future(9).isoformat()}
        free = await client.get("/vehicles-available", params=params, headers=auth("customer"))
        assert [v["id"] for v in free.json()["data"]] == [vehicle.id]


# ============================================================================
# MAINTENANCE
# ============================================================================

class TestMaintenance:

    @pytest.mark.asyncio
    async def test_record_lifecycle(self, client, vehicle):
        payload = {
            "vehicle_id": vehicle.id,
            "date": "2024-03-01",
            "type": "oil change",
            "description": "5W-30, filter replaced",
            "cost": 89.9,
            "performed_by": "QuickLube",
        }
        created = await client.post("/maintenance", json=payload, headers=auth("staff"))
        assert created.status_code == 201
        record_id = created.json()["data"]["id"]

        history = await client.get(f"/maintenance/vehicle/{vehicle.id}", headers=auth("customer"))
        assert [r["id"] for r in history.json()["data"]] == [record_id]

        updated = await client.put(f"/maintenance/{record_id}", json={"cost": 99.0}, headers=auth("staff"))
        assert updated.json()["data"]["cost"] == 99.0
        assert updated.json()["data"]["type"] == "oil change"

        assert (await client.delete(f"/maintenance/{record_id}", headers=auth("staff"))).status_code == 200
        assert (await client.get(f"/maintenance/{record_id}", headers=auth("staff"))).status_code == 404

    @pytest.mark.asyncio
    async def test_customer_cannot_write(self, client, vehicle):
        payload = {
            "vehicle_id": vehicle.id,
            "date": "2024-03-01",
            "type": "tyres",
            "description": "Winter set",
            "cost": 300,
            "performed_by": "Garage",
        }
        response = await client.post("/maintenance", json=payload, headers=auth("customer"))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_vehicle(self, client):
        payload = {
            "vehicle_id": 999,
            "date": "2024-03-01",
            "type": "tyres",
            "description": "Winter set",
            "cost": 300,
            "performed_by": "Garage",
        }
        response = await client.post("/maintenance", json=payload, headers=auth("staff"))
        assert response.status_code == 404


# ============================================================================
# ACTIVITIES
# ============================================================================

class TestActivities:

    @pytest.mark.asyncio
    async def test_customers_see_their_own(self, client, vehicle, future):
        await _book(client, vehicle.id, future(5), future(6))
        await _book(client, vehicle.id, future(15), future(16), role="other")

        own = (await client.get("/activities", headers=auth("customer"))).json()["data"]
        everyone = (await client.get("/activities", headers=auth("staff"))).json()["data"]

        assert own["total"] == 1
        assert own["items"][0]["details"] == "Created booking for vehicle: Toyota Corolla"
        assert everyone["total"] == 2
        assert everyone["per_page"] == 20

    @pytest.mark.asyncio
    async def test_other_users_trail(self, client, users, vehicle, future):
        await _book(client, vehicle.id, future(5), future(6), role="other")
        other_id = users["other"].id

        assert (await client.get(f"/activities/user/{other_id}", headers=auth("customer"))).status_code == 403
        trail = await client.get(f"/activities/user/{other_id}", headers=auth("admin"))
        assert trail.json()["data"]["total"] == 1

        activity_id = trail.json()["data"]["items"][0]["id"]
        assert (await client.get(f"/activities/{activity_id}", headers=auth("customer"))).status_code == 403
        assert (await client.get(f"/activities/{activity_id}", headers=auth("other"))).status_code == 200


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class TestNotifications:

    @pytest.mark.asyncio
    async def test_staff_inbox_after_booking(self, client, vehicle, future):
        await _book(client, vehicle.id, future(5), future(6))

        count = await client.get("/notifications/unread/count", headers=auth("staff"))
        assert count.json()["data"] == {"count": 1}

        inbox = (await client.get("/notifications", headers=auth("staff"))).json()["data"]
        notification_id = inbox["items"][0]["id"]
        assert inbox["items"][0]["title"] == "New Booking Request"

        # Another user's notification is invisible
        assert (await client.get(f"/notifications/{notification_id}", headers=auth("admin"))).status_code == 404

        marked = await client.patch(f"/notifications/{notification_id}/read", headers=auth("staff"))
        assert marked.json()["data"]["read"] is True
        assert marked.json()["data"]["read_at"] is not None

        count = await client.get("/notifications/unread/count", headers=auth("staff"))
        assert count.json()["data"] == {"count": 0}

    @pytest.mark.asyncio
    async def test_mark_all_read_and_delete(self, client, vehicle, future):
        await _book(client, vehicle.id, future(5), future(6))
        await _book(client, vehicle.id, future(8), future(9))

        response = await client.post("/notifications/mark-all-read", headers=auth("admin"))
        assert response.json()["data"] == {"updated": 2}

        unread = (await client.get("/notifications?read=false", headers=auth("admin"))).json()["data"]
        assert unread["total"] == 0

        inbox = (await client.get("/notifications", headers=auth("admin"))).json()["data"]
        notification_id = inbox["items"][0]["id"]
        assert (await client.delete(f"/notifications/{notification_id}", headers=auth("admin"))).status_code == 200
        assert (await client.get(f"/notifications/{notification_id}", headers=auth("admin"))).status_code == 404

    @pytest.mark.asyncio
    async def test_send(self, client, users):
        payload = {"user_id": users["customer"].id, "title": "Reminder", "message": "Pickup at 9", "type": "warning"}

        assert (await client.post("/notifications", json=payload, headers=auth("other"))).status_code == 403

        sent = await client.post("/notifications", json=payload, headers=auth("staff"))
        assert sent.status_code == 201

        inbox = (await client.get("/notifications?type=warning", headers=auth("customer"))).json()["data"]
        assert [n["title"] for n in inbox["items"]] == ["Reminder"]

    @pytest.mark.asyncio
    async def test_send_to_unknown_user(self, client):
        payload = {"user_id": 999, "title": "Reminder", "message": "Pickup at 9", "type": "info"}

        response = await client.post("/notifications", json=payload, headers=auth("staff"))

        assert response.status_code == 422
        assert "user_id" in response.json()["errors"]


# ============================================================================
# REPORTS
# ============================================================================

class TestReports:

    RANGE = {"start_date": "2024-02-01", "end_date": "2024-02-29"}

    @pytest.mark.asyncio
    async def test_customers_refused(self, client):
        response = await client.post("/reports/revenue", json=self.RANGE, headers=auth("customer"))
        assert response.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind,key", [
        ("revenue", "total_revenue"),
        ("utilization", "utilization_rate"),
        ("booking-trends", "success_rate"),
    ])
    async def test_adhoc(self, client, vehicle, kind, key):
        response = await client.post(f"/reports/{kind}", json=self.RANGE, headers=auth("staff"))

        assert response.status_code == 200
        assert key in response.json()["data"]

    @pytest.mark.asyncio
    async def test_range_must_increase(self, client):
        payload = {"start_date": "2024-02-01", "end_date": "2024-02-01"}
        response = await client.post("/reports/revenue", json=payload, headers=auth("staff"))

        assert response.status_code == 422
        assert "end_date" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_stored_report(self, client, vehicle):
        created = await client.post(
            "/reports", json={**self.RANGE, "title": "Feb utilization", "type": "utilization"}, headers=auth("admin")
        )
        assert created.status_code == 201
        report = created.json()["data"]
        assert report["date_range"] == {"start": "2024-02-01", "end": "2024-02-29"}
        assert report["data"]["total_vehicles"] == 1
        assert report["generated_by_user"]["role"] == "admin"

        listing = (await client.get("/reports?type=utilization", headers=auth("staff"))).json()["data"]
        assert listing["total"] == 1

        assert (await client.get(f"/reports/{report['id']}", headers=auth("staff"))).status_code == 200
        assert (await client.delete(f"/reports/{report['id']}", headers=auth("staff"))).status_code == 200
        assert (await client.get(f"/reports/{report['id']}", headers=auth("staff"))).status_code == 404


# ============================================================================
# DASHBOARD
# ============================================================================

class TestDashboard:

    @pytest.mark.asyncio
    async def test_staff_overview(self, client, vehicle, future):
        await _book(client, vehicle.id, future(5), future(6))

        data = (await client.get("/dashboard", headers=auth("staff"))).json()["data"]

        assert data["stats"]["total_vehicles"] == 1
        assert data["stats"]["available_vehicles"] == 1
        assert data["stats"]["pending_bookings"] == 1
        assert data["stats"]["total_users"] == 2
        assert len(data["recent_bookings"]) == 1
        assert data["vehicle_types"] == [{"type": "sedan", "count": 1}]
        assert len(data["booking_trends"]) == 7
        assert data["booking_trends"][-1]["date"] == date.today().isoformat()

    @pytest.mark.asyncio
    async def test_customer_overview(self, client, vehicle, future):
        await _book(client, vehicle.id, future(5), future(6))

        data = (await client.get("/dashboard", headers=auth("customer"))).json()["data"]

        assert data["stats"]["total_bookings"] == 1
        assert data["stats"]["pending_bookings"] == 1
        assert data["current_booking"] is None
        assert [v["id"] for v in data["available_vehicles"]] == [vehicle.id]
        assert len(data["recent_activities"]) == 1

    @pytest.mark.asyncio
    async def test_stats(self, client, vehicle):
        data = (await client.get("/stats", headers=auth("admin"))).json()["data"]

        assert data["vehicles"]["total"] == 1
        assert data["vehicles"]["available"] == 1
        assert data["users"] == {"total": 4, "customers": 2, "staff": 1, "admins": 1}
        assert data["revenue"]["total"] == 0.0
