"""Gate that holds scheduled deliveries back until shortly before pickup."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from ...config import settings
from ...data.rows import isoformat
from ...models.domain import Delivery


@dataclass(slots=True)
class ScheduleHold:
    """Matching is suppressed until ``assignment_time``."""

    scheduled_pickup_time: datetime
    assignment_time: datetime
    minutes_until_assignment: int

    def as_payload(self, delivery_id: str) -> dict:
        return {
            "ok": False,
            "delivery_id": delivery_id,
            "scheduled": True,
            "message": (
                f"Scheduled delivery will be matched in {self.minutes_until_assignment} minute(s)"
            ),
            "minutes_until_assignment": self.minutes_until_assignment,
            "scheduled_pickup_time": isoformat(self.scheduled_pickup_time),
            "assignment_time": isoformat(self.assignment_time),
        }


def check_schedule(delivery: Delivery, now: datetime, *, lead_minutes: int | None = None) -> ScheduleHold | None:
    """Return a hold while it is too early to match, otherwise None."""
    if not delivery.is_scheduled or delivery.scheduled_pickup_time is None:
        return None

    lead = settings.scheduled_lead_minutes if lead_minutes is None else lead_minutes
    assignment_time = delivery.scheduled_pickup_time - timedelta(minutes=lead)
    if now >= assignment_time:
        return None

    remaining_ms = (assignment_time - now).total_seconds() * 1000
    return ScheduleHold(
        scheduled_pickup_time=delivery.scheduled_pickup_time,
        assignment_time=assignment_time,
        minutes_until_assignment=max(1, math.ceil(remaining_ms / 60000)),
    )
