from datetime import datetime, timedelta, timezone

import httpx

from src.dispatch.services.matching import assign_scheduled_drivers, scheduled

NOW = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


def _at(minutes: int) -> str:
    return (NOW + timedelta(minutes=minutes)).isoformat()


def test_sweep_without_due_deliveries(fake_db) -> None:
    fake_db.add_delivery("later", is_scheduled=True, scheduled_pickup_time=_at(30))

    result = assign_scheduled_drivers(now=NOW)

    assert result["processed"] == 0
    assert result["message"] == "No deliveries to assign"
    assert result["checked_at"] == NOW.isoformat()


def test_sweep_pairs_only_due_scheduled_deliveries(fake_db) -> None:
    fake_db.add_vehicle()
    fake_db.add_driver("near", 14.6005, 120.9842)
    fake_db.add_delivery("due", is_scheduled=True, scheduled_pickup_time=_at(5))
    fake_db.add_delivery("later", is_scheduled=True, scheduled_pickup_time=_at(30))
    fake_db.add_delivery("asap")
    fake_db.add_delivery("taken", is_scheduled=True, scheduled_pickup_time=_at(5), status="driver_assigned", driver_id="x")

    result = assign_scheduled_drivers(now=NOW)

    assert result["processed"] == 1
    assert result["successful"] == 1
    assert result["results"][0]["deliveryId"] == "due"
    assert result["results"][0]["driverId"] == "near"
    assert fake_db.row("deliveries", "due")["status"] == "driver_offered"
    assert fake_db.row("deliveries", "later")["status"] == "pending"
    assert fake_db.row("deliveries", "asap")["status"] == "pending"


def test_sweep_reports_per_delivery_failures(fake_db) -> None:
    fake_db.add_vehicle()
    fake_db.add_delivery("due", is_scheduled=True, scheduled_pickup_time=_at(5))

    result = assign_scheduled_drivers(now=NOW)

    assert result["processed"] == 1
    assert result["failed"] == 1
    assert result["results"][0]["success"] is False
    assert result["results"][0]["error"] == "no_drivers"


def test_sweep_continues_after_unexpected_error(fake_db, monkeypatch) -> None:
    fake_db.add_delivery("d1", is_scheduled=True, scheduled_pickup_time=_at(2))
    fake_db.add_delivery("d2", is_scheduled=True, scheduled_pickup_time=_at(4))
    attempted = []

    def flaky_pairing(delivery_id, *, now):
        attempted.append(delivery_id)
        if delivery_id == "d1":
            raise httpx.ReadTimeout("read timed out")
        return {"ok": True, "offered_driver_id": "near"}

    monkeypatch.setattr(scheduled, "pair_driver", flaky_pairing)

    result = assign_scheduled_drivers(now=NOW)

    assert sorted(attempted) == ["d1", "d2"]
    assert result["processed"] == 2
    assert result["successful"] == 1
    assert result["failed"] == 1
    failed = next(item for item in result["results"] if item["deliveryId"] == "d1")
    assert failed["success"] is False
    assert failed["error"] == "internal_error"
