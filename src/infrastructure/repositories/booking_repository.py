# src/infrastructure/repositories/booking_repository.py

from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session, joinedload
from sqlalchemy import select

from src.infrastructure.db.models import Booking, Vendor
from src.domain.state_machine import (
    ACTIVE_BOOKING_STATUSES,
    BookingStatus,
    PaymentStatus,
)
from src.domain.vendor import VendorType


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
        for_update: bool = False,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def find_overlapping_active(
        self,
        vendor_id: str,
        start: date,
        end: date,
        unit_id: str | None = None,
    ) -> list[Booking]:
        """
        Active bookings whose range overlaps [start, end) under the
        half-open rule: existing.start < end AND existing.end > start.
        """
        stmt = (
            select(Booking)
            .where(Booking.vendor_id == vendor_id)
            .where(Booking.booking_status.in_(ACTIVE_BOOKING_STATUSES))
            .where(Booking.start_date < end)
            .where(Booking.end_date > start)
        )
        if unit_id is not None:
            stmt = stmt.where(Booking.venue_unit_id == unit_id)
        return list(self.db.execute(stmt).scalars().all())

    def list_active_for_vendor(
        self,
        vendor_id: str,
        unit_id: str | None = None,
    ) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.vendor_id == vendor_id)
            .where(Booking.booking_status.in_(ACTIVE_BOOKING_STATUSES))
            .order_by(Booking.start_date)
        )
        if unit_id is not None:
            stmt = stmt.where(Booking.venue_unit_id == unit_id)
        return list(self.db.execute(stmt).scalars().all())

    def list_for_customer(self, customer_id: str) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.customer_id == customer_id)
            .order_by(Booking.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_for_vendor_owner(self, user_id: str) -> list[Booking]:
        stmt = (
            select(Booking)
            .join(Vendor, Vendor.id == Booking.vendor_id)
            .where(Vendor.user_id == user_id)
            .order_by(Booking.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_all(self) -> list[Booking]:
        stmt = select(Booking).order_by(Booking.created_at.desc())
        return list(self.db.execute(stmt).scalars().all())

    def list_overdue_partial(self, today: date) -> list[Booking]:
        stmt = (
            select(Booking)
            .options(joinedload(Booking.customer))
            .where(Booking.end_date < today)
            .where(Booking.payment_status == PaymentStatus.PARTIAL)
            .where(Booking.reminder_sent.is_(False))
            .order_by(Booking.end_date)
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_booking(
        self,
        vendor_id: str,
        customer_id: str,
        booking_type: VendorType,
        start_date: date,
        end_date: date,
        total_amount: Decimal,
        advance_amount: Decimal,
        payment_status: PaymentStatus,
        venue_unit_id: str | None = None,
        package_id: str | None = None,
        notes: str | None = None,
    ) -> Booking:

        booking = Booking(
            vendor_id=vendor_id,
            customer_id=customer_id,
            venue_unit_id=venue_unit_id,
            package_id=package_id,
            booking_type=booking_type,
            start_date=start_date,
            end_date=end_date,
            total_amount=total_amount,
            advance_amount=advance_amount,
            notes=notes,
            payment_status=payment_status,
            booking_status=BookingStatus.PENDING,
            reminder_sent=False,
        )

        self.db.add(booking)
        return booking

    def update_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
    ) -> None:

        booking.booking_status = new_status

    def update_payment_status(
        self,
        booking: Booking,
        new_status: PaymentStatus,
    ) -> None:

        booking.payment_status = new_status
