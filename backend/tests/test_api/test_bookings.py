"""Tests for booking endpoints and the acceptance rules they enforce."""

import uuid
from datetime import date, timedelta

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _future_dates(offset_start: int = 30, nights: int = 2) -> tuple[str, str]:
    """Return a (check_in, check_out) pair safely in the future as ISO strings."""
    check_in = date.today() + timedelta(days=offset_start)
    check_out = check_in + timedelta(days=nights)
    return check_in.isoformat(), check_out.isoformat()


async def _book(client: AsyncClient, area: dict, offset_start: int, nights: int, **extra):
    ci, co = _future_dates(offset_start, nights)
    return await client.post(
        "/api/v1/bookings",
        json={
            "area_id": area["id"],
            "guest_name": "Maria Silva",
            "check_in": ci,
            "check_out": co,
            **extra,
        },
    )


# ---------------------------------------------------------------------------
# POST /api/v1/bookings
# ---------------------------------------------------------------------------


class TestCreateBooking:
    """Tests for creating bookings."""

    async def test_create_success(self, client: AsyncClient, test_area: dict) -> None:
        ci, co = _future_dates(30, 2)
        response = await client.post(
            "/api/v1/bookings",
            json={
                "area_id": test_area["id"],
                "guest_name": "  Maria Silva  ",
                "guest_phone": "+55 11 99999-0000",
                "check_in": ci,
                "check_out": co,
                "num_guests": 4,
                "status": "confirmed",
                "notes": "Birthday party",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["area_id"] == test_area["id"]
        assert data["guest_name"] == "Maria Silva"
        assert data["check_in"] == ci
        assert data["check_out"] == co
        assert data["num_guests"] == 4
        assert data["status"] == "confirmed"
        # Inclusive counting: three days at the base price.
        assert float(data["total_price"]) == 300.0
        assert "id" in data

    async def test_explicit_total_kept(self, client: AsyncClient, test_area: dict) -> None:
        response = await _book(client, test_area, 30, 2, total_price=250)
        assert response.status_code == 201
        assert float(response.json()["total_price"]) == 250.0

    async def test_default_status_pending(self, client: AsyncClient, test_area: dict) -> None:
        response = await _book(client, test_area, 30, 1)
        assert response.status_code == 201
        assert response.json()["status"] == "pending"

    async def test_weekend_rule_applied(self, client: AsyncClient, test_area: dict) -> None:
        await client.post(
            f"/api/v1/areas/{test_area['id']}/special-prices",
            json={"type": "day_of_week", "name": "Every day", "price": 180, "days_of_week": [0, 1, 2, 3, 4, 5, 6]},
        )
        response = await _book(client, test_area, 30, 1)
        assert response.status_code == 201
        assert float(response.json()["total_price"]) == 360.0

    async def test_unknown_area(self, client: AsyncClient) -> None:
        response = await _book(client, {"id": str(uuid.uuid4())}, 30, 2)
        assert response.status_code == 404

    async def test_inactive_area(self, client: AsyncClient, test_area: dict) -> None:
        await client.put(f"/api/v1/areas/{test_area['id']}", json={"active": False})
        response = await _book(client, test_area, 30, 2)
        assert response.status_code == 409
        assert response.json()["detail"] == "Area is not accepting bookings"

    async def test_too_many_guests(self, client: AsyncClient, test_area: dict) -> None:
        response = await _book(client, test_area, 30, 2, num_guests=11)
        assert response.status_code == 422

    async def test_check_out_before_check_in(self, client: AsyncClient, test_area: dict) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json={
                "area_id": test_area["id"],
                "guest_name": "Maria Silva",
                "check_in": _future_dates(30)[0],
                "check_out": _future_dates(28)[0],
            },
        )
        assert response.status_code == 422

    async def test_same_day_rejected(self, client: AsyncClient, test_area: dict) -> None:
        response = await _book(client, test_area, 30, 0)
        assert response.status_code == 422

    async def test_past_check_in_rejected(self, client: AsyncClient, test_area: dict) -> None:
        response = await _book(client, test_area, -5, 2)
        assert response.status_code == 422

    async def test_short_guest_name_rejected(self, client: AsyncClient, test_area: dict) -> None:
        response = await _book(client, test_area, 30, 2, guest_name=" A ")
        assert response.status_code == 422

    async def test_invalid_status_rejected(self, client: AsyncClient, test_area: dict) -> None:
        response = await _book(client, test_area, 30, 2, status="completed")
        assert response.status_code == 422


class TestBookingConflicts:
    """Overlap rules between bookings of the same area."""

    async def test_overlap_rejected(self, client: AsyncClient, test_area: dict) -> None:
        first = await _book(client, test_area, 30, 3)
        assert first.status_code == 201

        response = await _book(client, test_area, 31, 3)
        assert response.status_code == 409
        assert "conflict" in response.json()["detail"]

    async def test_back_to_back_allowed(self, client: AsyncClient, test_area: dict) -> None:
        first = await _book(client, test_area, 30, 3)
        assert first.status_code == 201

        response = await _book(client, test_area, 33, 2)
        assert response.status_code == 201

    async def test_cancelled_booking_ignored(self, client: AsyncClient, test_area: dict) -> None:
        first = await _book(client, test_area, 30, 3)
        await client.patch(f"/api/v1/bookings/{first.json()['id']}/cancel")

        response = await _book(client, test_area, 30, 3)
        assert response.status_code == 201

    async def test_other_area_not_blocking(self, client: AsyncClient, test_area: dict, package_area: dict) -> None:
        first = await _book(client, test_area, 30, 3)
        assert first.status_code == 201

        response = await _book(client, package_area, 30, 3)
        assert response.status_code == 201


class TestPackageBookings:
    """Package periods (Carnaval, days 60..64, flat 900) must be booked whole."""

    async def test_exact_package_priced_flat(self, client: AsyncClient, package_area: dict) -> None:
        response = await _book(client, package_area, 60, 4)
        assert response.status_code == 201
        assert float(response.json()["total_price"]) == 900.0

    async def test_partial_package_rejected(self, client: AsyncClient, package_area: dict) -> None:
        response = await _book(client, package_area, 61, 2)
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert "complete package" in detail
        assert "Carnaval" in detail

    async def test_stay_extending_past_package_rejected(self, client: AsyncClient, package_area: dict) -> None:
        response = await _book(client, package_area, 58, 8)
        assert response.status_code == 422

    async def test_package_booked_once(self, client: AsyncClient, package_area: dict) -> None:
        first = await _book(client, package_area, 60, 4)
        assert first.status_code == 201

        response = await _book(client, package_area, 60, 4)
        assert response.status_code == 409
        assert "Packages do not allow multiple bookings" in response.json()["detail"]

    async def test_package_free_again_after_cancel(self, client: AsyncClient, package_area: dict) -> None:
        first = await _book(client, package_area, 60, 4)
        await client.patch(f"/api/v1/bookings/{first.json()['id']}/cancel")

        response = await _book(client, package_area, 60, 4)
        assert response.status_code == 201

    async def test_inactive_package_not_enforced(self, client: AsyncClient, package_area: dict) -> None:
        rule_id = package_area["special_prices"][0]["id"]
        await client.put(
            f"/api/v1/areas/{package_area['id']}/special-prices/{rule_id}",
            json={"active": False},
        )

        response = await _book(client, package_area, 61, 2)
        assert response.status_code == 201
        assert float(response.json()["total_price"]) == 300.0


# ---------------------------------------------------------------------------
# GET /api/v1/bookings
# ---------------------------------------------------------------------------


class TestListBookings:
    async def test_list(self, client: AsyncClient, test_area: dict) -> None:
        await _book(client, test_area, 30, 2)
        await _book(client, test_area, 40, 2)

        response = await client.get("/api/v1/bookings")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        # Latest check-in first.
        assert data["items"][0]["check_in"] > data["items"][1]["check_in"]

    async def test_filter_by_area(self, client: AsyncClient, test_area: dict, package_area: dict) -> None:
        await _book(client, test_area, 30, 2)
        await _book(client, package_area, 30, 2)

        response = await client.get("/api/v1/bookings", params={"area_id": test_area["id"]})
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["area_id"] == test_area["id"]

    async def test_filter_by_status(self, client: AsyncClient, test_area: dict) -> None:
        await _book(client, test_area, 30, 2, status="confirmed")
        await _book(client, test_area, 40, 2)

        response = await client.get("/api/v1/bookings", params={"status": "confirmed"})
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["status"] == "confirmed"

    async def test_filter_by_check_in_window(self, client: AsyncClient, test_area: dict) -> None:
        await _book(client, test_area, 30, 2)
        await _book(client, test_area, 40, 2)

        response = await client.get(
            "/api/v1/bookings",
            params={"check_in_from": _future_dates(35)[0], "check_in_to": _future_dates(45)[0]},
        )
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["check_in"] == _future_dates(40)[0]


# ---------------------------------------------------------------------------
# Single booking
# ---------------------------------------------------------------------------


class TestSingleBooking:
    async def test_get_detail_includes_area(self, client: AsyncClient, test_area: dict) -> None:
        created = await _book(client, test_area, 30, 2)

        response = await client.get(f"/api/v1/bookings/{created.json()['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["area"]["id"] == test_area["id"]
        assert data["area"]["name"] == "Test Chácara"

    async def test_get_not_found(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/v1/bookings/{uuid.uuid4()}")
        assert response.status_code == 404

    async def test_update_status(self, client: AsyncClient, test_area: dict) -> None:
        created = await _book(client, test_area, 30, 2)

        response = await client.patch(
            f"/api/v1/bookings/{created.json()['id']}/status",
            json={"status": "completed"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    async def test_update_status_invalid(self, client: AsyncClient, test_area: dict) -> None:
        created = await _book(client, test_area, 30, 2)

        response = await client.patch(
            f"/api/v1/bookings/{created.json()['id']}/status",
            json={"status": "archived"},
        )
        assert response.status_code == 422

    async def test_revive_cancelled_rechecks_conflicts(self, client: AsyncClient, test_area: dict) -> None:
        first = await _book(client, test_area, 30, 3)
        first_id = first.json()["id"]
        await client.patch(f"/api/v1/bookings/{first_id}/cancel")
        second = await _book(client, test_area, 31, 3)
        assert second.status_code == 201

        response = await client.patch(f"/api/v1/bookings/{first_id}/status", json={"status": "confirmed"})
        assert response.status_code == 409

    async def test_revive_cancelled_when_free(self, client: AsyncClient, test_area: dict) -> None:
        first = await _book(client, test_area, 30, 3)
        first_id = first.json()["id"]
        await client.patch(f"/api/v1/bookings/{first_id}/cancel")

        response = await client.patch(f"/api/v1/bookings/{first_id}/status", json={"status": "confirmed"})
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

    async def test_cancel(self, client: AsyncClient, test_area: dict) -> None:
        created = await _book(client, test_area, 30, 2)

        response = await client.patch(f"/api/v1/bookings/{created.json()['id']}/cancel")
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    async def test_delete(self, client: AsyncClient, test_area: dict) -> None:
        created = await _book(client, test_area, 30, 2)
        booking_id = created.json()["id"]

        response = await client.delete(f"/api/v1/bookings/{booking_id}")
        assert response.status_code == 200
        assert response.json()["message"] == "Booking deleted"

        response = await client.get(f"/api/v1/bookings/{booking_id}")
        assert response.status_code == 404

    async def test_delete_not_found(self, client: AsyncClient) -> None:
        response = await client.delete(f"/api/v1/bookings/{uuid.uuid4()}")
        assert response.status_code == 404
