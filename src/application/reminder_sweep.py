import logging
import threading
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session, sessionmaker

from src.domain.exceptions import SendError
from src.infrastructure.db.session import session_scope
from src.infrastructure.repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "Payment Reminder"


@dataclass(frozen=True)
class _ReminderTarget:
    booking_id: str
    email: str
    name: str
    remaining: Decimal


@dataclass
class SweepResult:
    sent: int = 0
    failed: int = 0
    skipped: bool = False


class PaymentReminderSweep:
    """
    Finds bookings that ended with only the advance paid and reminds the
    customer once about the balance.

    The notification goes out before reminder_sent is committed; a crash in
    between means the customer gets a second reminder on the next run.
    Failed sends leave the flag unset so the next run retries them.

    Overlapping runs are skipped: within a process by a thread lock, across
    workers and schedulers by the shared lock passed in (a RedisLock in
    production).
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        notifier,
        currency: str = "INR",
        today: Callable[[], date] = date.today,
        lock=None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.currency = currency
        self._today = today
        self._running = threading.Lock()
        self.lock = lock

    def run(self) -> SweepResult:
        if not self._running.acquire(blocking=False):
            logger.warning("Payment reminder sweep already running; skipping this run.")
            return SweepResult(skipped=True)
        try:
            with self._shared_lock() as acquired:
                if not acquired:
                    logger.warning("Payment reminder sweep held by another worker; skipping this run.")
                    return SweepResult(skipped=True)
                return self._sweep()
        finally:
            self._running.release()

    def _shared_lock(self):
        if self.lock is None:
            return nullcontext(True)
        return self.lock.held()

    def _sweep(self) -> SweepResult:
        today = self._today()
        logger.info("Checking for bookings with pending payments (ended before %s)...", today)

        with session_scope(self.session_factory) as db:
            targets = [
                _ReminderTarget(
                    booking_id=booking.id,
                    email=booking.customer.email,
                    name=booking.customer.name,
                    remaining=booking.remaining_amount,
                )
                for booking in BookingRepository(db).list_overdue_partial(today)
            ]

        result = SweepResult()
        for target in targets:
            try:
                self.notifier.send(target.email, REMINDER_SUBJECT, self._body(target))
            except SendError:
                logger.warning(
                    "Reminder for booking %s could not be sent; will retry next run",
                    target.booking_id,
                    exc_info=True,
                )
                result.failed += 1
                continue

            with session_scope(self.session_factory) as db:
                booking = BookingRepository(db).get_by_id(target.booking_id, for_update=True)
                if booking is not None:
                    booking.reminder_sent = True

            result.sent += 1
            logger.info("Reminder sent for booking %s", target.booking_id)

        logger.info("Payment reminder sweep done: sent=%s failed=%s", result.sent, result.failed)
        return result

    def _body(self, target: _ReminderTarget) -> str:
        return (
            f"Hi {target.name}, your booking has ended. "
            f"Please pay the remaining {self.currency} {target.remaining}."
        )
