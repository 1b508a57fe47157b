from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from src.domain.availability import DateRange
from src.domain.exceptions import NotFoundError
from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import Booking
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.vendor_repository import VendorRepository


@dataclass(frozen=True)
class CommittedRange:
    booking_id: str
    start_date: date
    end_date: date
    venue_unit_id: str | None
    status: BookingStatus


@dataclass(frozen=True)
class VendorCommitments:
    vendor_id: str
    booked_ranges: list[CommittedRange]
    blocked_dates: list[date]


class AvailabilityChecker:
    """
    Decides whether a date range collides with a vendor's active bookings.

    Callers that go on to insert a booking must hold the vendor row lock
    (VendorRepository.lock_vendor) across the check and the insert.
    """

    def __init__(self, db: Session):
        self.booking_repository = BookingRepository(db)
        self.vendor_repository = VendorRepository(db)

    def find_conflicts(
        self,
        vendor_id: str,
        unit_id: str | None,
        start_date: date,
        end_date: date,
    ) -> list[Booking]:
        requested = DateRange(start_date, end_date)
        candidates = self.booking_repository.find_overlapping_active(
            vendor_id=vendor_id,
            unit_id=unit_id,
            start=requested.start,
            end=requested.end,
        )
        return [
            booking
            for booking in candidates
            if requested.overlaps(DateRange(booking.start_date, booking.end_date))
        ]

    def has_conflict(
        self,
        vendor_id: str,
        unit_id: str | None,
        start_date: date,
        end_date: date,
    ) -> bool:
        return bool(self.find_conflicts(vendor_id, unit_id, start_date, end_date))

    def committed_ranges(
        self,
        vendor_id: str,
        unit_id: str | None = None,
    ) -> VendorCommitments:
        vendor = self.vendor_repository.get_by_id(vendor_id)
        if not vendor:
            raise NotFoundError("Vendor not found")

        bookings = self.booking_repository.list_active_for_vendor(vendor_id, unit_id=unit_id)
        return VendorCommitments(
            vendor_id=vendor.id,
            booked_ranges=[
                CommittedRange(
                    booking_id=booking.id,
                    start_date=booking.start_date,
                    end_date=booking.end_date,
                    venue_unit_id=booking.venue_unit_id,
                    status=booking.booking_status,
                )
                for booking in bookings
            ],
            blocked_dates=[date.fromisoformat(day) for day in vendor.booked_dates or []],
        )
