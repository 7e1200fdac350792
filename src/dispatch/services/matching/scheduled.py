"""Sweep that pairs scheduled deliveries as their pickup approaches."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from ...config import settings
from ...data.rows import isoformat
from ...errors import DispatchError
from ...persistence.deliveries import find_due_scheduled_deliveries
from .pairing import pair_driver

logger = logging.getLogger(__name__)


def assign_scheduled_drivers(*, now: datetime | None = None, window_minutes: int | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    window = settings.scheduled_window_minutes if window_minutes is None else window_minutes
    window_end = now + timedelta(minutes=window)

    logger.info(f"Checking scheduled deliveries between {isoformat(now)} and {isoformat(window_end)}")
    due = find_due_scheduled_deliveries(now, window_end)
    if not due:
        return {
            "message": "No deliveries to assign",
            "processed": 0,
            "successful": 0,
            "failed": 0,
            "results": [],
            "checked_at": isoformat(now),
        }

    results: list[dict] = []
    for row in due:
        delivery_id = str(row["id"])
        entry = {"deliveryId": delivery_id, "scheduledTime": row.get("scheduled_pickup_time")}
        try:
            outcome = pair_driver(delivery_id, now=now)
        except DispatchError as exc:
            logger.warning(f"Pairing failed for scheduled delivery {delivery_id}: {exc.code} {exc.message}")
            entry.update(success=False, error=exc.code, message=exc.message)
        except Exception as exc:
            logger.exception(f"Unexpected error pairing scheduled delivery {delivery_id}")
            entry.update(success=False, error="internal_error", message=str(exc))
        else:
            entry.update(
                success=bool(outcome.get("ok")),
                message=outcome.get("message"),
                driverId=outcome.get("offered_driver_id"),
            )
        results.append(entry)

    successful = sum(1 for item in results if item["success"])
    logger.info(f"Scheduled assignment complete: {successful} successful, {len(results) - successful} failed")
    return {
        "processed": len(results),
        "successful": successful,
        "failed": len(results) - successful,
        "results": results,
        "checked_at": isoformat(now),
    }
