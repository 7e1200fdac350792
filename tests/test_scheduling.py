from datetime import datetime, timedelta, timezone

from src.dispatch.models.domain import Coordinate, Delivery
from src.dispatch.services.matching.scheduling import check_schedule

NOW = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


def _delivery(pickup_time: datetime | None, scheduled: bool = True) -> Delivery:
    return Delivery(
        id="del-1",
        status="pending",
        pickup=Coordinate(14.5995, 120.9842),
        dropoff=Coordinate(14.6095, 120.9842),
        vehicle_type_id="motorcycle",
        is_scheduled=scheduled,
        scheduled_pickup_time=pickup_time,
    )


def test_unscheduled_delivery_is_never_held() -> None:
    assert check_schedule(_delivery(None, scheduled=False), NOW) is None


def test_pickup_in_twenty_minutes_waits_five_minutes() -> None:
    hold = check_schedule(_delivery(NOW + timedelta(minutes=20)), NOW)

    assert hold is not None
    assert hold.minutes_until_assignment == 5
    assert hold.assignment_time == NOW + timedelta(minutes=5)


def test_pickup_in_ten_minutes_proceeds() -> None:
    assert check_schedule(_delivery(NOW + timedelta(minutes=10)), NOW) is None


def test_exactly_at_assignment_time_proceeds() -> None:
    assert check_schedule(_delivery(NOW + timedelta(minutes=15)), NOW) is None


def test_partial_minutes_round_up() -> None:
    hold = check_schedule(_delivery(NOW + timedelta(minutes=15, seconds=1)), NOW)

    assert hold is not None
    assert hold.minutes_until_assignment == 1


def test_lead_time_is_configurable() -> None:
    hold = check_schedule(_delivery(NOW + timedelta(minutes=20)), NOW, lead_minutes=0)
    assert hold is not None
    assert hold.minutes_until_assignment == 20


def test_hold_payload_shape() -> None:
    payload = check_schedule(_delivery(NOW + timedelta(minutes=20)), NOW).as_payload("del-1")

    assert payload["ok"] is False
    assert payload["scheduled"] is True
    assert payload["minutes_until_assignment"] == 5
    assert payload["assignment_time"] == "2026-10-17T09:05:00+00:00"
