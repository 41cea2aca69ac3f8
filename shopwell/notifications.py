"""Nearby-shop alerts and shopping trip reminders."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .location import ShopDistance
from .models import Schedule, Shop
from .pricing.formatting import format_distance

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(minutes=30)
DEFAULT_HISTORY_LIMIT = 50

_TIME_RE = re.compile(r"(\d+):(\d+)\s*(AM|PM)?", re.IGNORECASE)


@dataclass
class ShopNotification:
    id: str
    shop_id: str
    shop_name: str
    title: str
    body: str
    timestamp: datetime
    distance: float | None = None


def _log_delivery(notification: ShopNotification) -> None:
    logger.info("%s: %s", notification.title, notification.body)


class NotificationCenter:
    """Creates nearby-shop notifications and rate-limits them per shop.

    A shop that was notified less than ``cooldown`` ago is not notified
    again. The most recent ``history_limit`` notifications are kept, newest
    first.
    """

    def __init__(
        self,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = datetime.now,
        deliver: Callable[[ShopNotification], None] | None = None,
    ) -> None:
        self._cooldown = cooldown
        self._history_limit = history_limit
        self._clock = clock
        self._deliver = deliver or _log_delivery
        self._history: list[ShopNotification] = []
        self._last_notified: dict[str, datetime] = {}

    def should_notify(self, shop_id: str) -> bool:
        last = self._last_notified.get(shop_id)
        if last is None:
            return True
        return self._clock() - last > self._cooldown

    def record(self, shop_id: str) -> None:
        self._last_notified[shop_id] = self._clock()

    def create_shop_notification(self, shop: Shop, distance: float) -> ShopNotification:
        now = self._clock()
        notification = ShopNotification(
            id=f"shop-{shop.id}-{int(now.timestamp() * 1000)}",
            shop_id=shop.id,
            shop_name=shop.name,
            title=f"{shop.name} is nearby!",
            body=f"You're {format_distance(distance)} away. Check your shopping list!",
            timestamp=now,
            distance=distance,
        )
        self._history.insert(0, notification)
        del self._history[self._history_limit:]
        return notification

    def show(self, notification: ShopNotification) -> None:
        """Record the shop and hand the notification to the delivery callback."""
        self.record(notification.shop_id)
        try:
            self._deliver(notification)
        except Exception:
            logger.exception("Failed to deliver notification %s", notification.id)

    def notify_nearby(
        self, shops_in_range: Iterable[ShopDistance]
    ) -> list[ShopNotification]:
        """Notify every shop in range that is outside its cooldown.

        Returns:
            The notifications that were delivered.
        """
        sent: list[ShopNotification] = []
        for item in shops_in_range:
            if not self.should_notify(item.shop.id):
                continue
            notification = self.create_shop_notification(item.shop, item.distance)
            self.show(notification)
            sent.append(notification)
        return sent

    def send_reminder(
        self, schedule: Schedule, shop_name: str | None = None
    ) -> ShopNotification:
        """Deliver a trip reminder. Reminders are not subject to the cooldown."""
        notification = ShopNotification(
            id=f"schedule-{schedule.id}",
            shop_id=schedule.shop_id or "",
            shop_name=shop_name or "",
            title="Shopping Reminder",
            body=reminder_body(schedule, shop_name),
            timestamp=self._clock(),
        )
        self._history.insert(0, notification)
        del self._history[self._history_limit:]
        try:
            self._deliver(notification)
        except Exception:
            logger.exception("Failed to deliver reminder %s", notification.id)
        return notification

    def history(self) -> list[ShopNotification]:
        return list(self._history)

    def clear(self) -> None:
        self._history.clear()
        self._last_notified.clear()


def reminder_trigger_time(schedule: Schedule) -> datetime | None:
    """When to fire the reminder for a scheduled trip.

    The trip starts at ``schedule.date`` plus ``schedule.time`` (24-hour or
    with an AM/PM suffix; midnight when absent). The reminder fires
    ``reminder_minutes`` earlier.

    Returns:
        None if the schedule has no reminder or its date cannot be parsed.
    """
    if not schedule.reminder or not schedule.reminder_minutes:
        return None

    try:
        day = date.fromisoformat(schedule.date[:10])
    except (ValueError, TypeError):
        logger.warning("Schedule %s has an invalid date: %r", schedule.id, schedule.date)
        return None

    start = datetime(day.year, day.month, day.day)
    if schedule.time:
        m = _TIME_RE.search(schedule.time)
        if m:
            hours, minutes = int(m.group(1)), int(m.group(2))
            period = (m.group(3) or "").upper()
            if period == "PM" and hours < 12:
                hours += 12
            if period == "AM" and hours == 12:
                hours = 0
            try:
                start = start.replace(hour=hours, minute=minutes)
            except ValueError:
                logger.warning(
                    "Schedule %s has an invalid time: %r", schedule.id, schedule.time
                )
                return None

    return start - timedelta(minutes=schedule.reminder_minutes)


def reminder_body(schedule: Schedule, shop_name: str | None = None) -> str:
    body = f"Shopping trip: {schedule.title}"
    if shop_name:
        body += f" at {shop_name}"
    minutes = schedule.reminder_minutes or 0
    if minutes >= 60:
        plural = "s" if minutes > 60 else ""
        body += f" in {minutes / 60:g} hour{plural}"
    else:
        body += f" in {minutes} minutes"
    return body
