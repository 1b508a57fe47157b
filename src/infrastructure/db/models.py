# src/infrastructure/db/models.py

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from src.infrastructure.db.session import Base
from src.domain.identity import Role
from src.domain.state_machine import BookingStatus, PaymentStatus
from src.domain.vendor import FreelancerCategory, VendorType


def _enum(enum_cls, name: str) -> Enum:
    # Persist the lowercase values, not the member names.
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


Money = Numeric(12, 2)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    role: Mapped[Role] = mapped_column(
        _enum(Role, "user_role"),
        nullable=False,
        default=Role.CUSTOMER,
    )
    profile_photo: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
    )


class Vendor(Base):
    """
    Vendor record. The type column selects which of the type-specific
    payloads (units, packages, freelancer category) is meaningful.
    """

    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )
    type: Mapped[VendorType] = mapped_column(
        _enum(VendorType, "vendor_type"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    profile_photo: Mapped[str | None] = mapped_column(String(512), nullable=True)
    base_price: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="INR")
    freelancer_category: Mapped[FreelancerCategory | None] = mapped_column(
        _enum(FreelancerCategory, "freelancer_category"),
        nullable=True,
    )
    event_types_covered: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    event_team_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    booked_dates: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    units: Mapped[list["VenueUnit"]] = relationship(
        back_populates="vendor",
        order_by="VenueUnit.position",
        cascade="all, delete-orphan",
    )
    packages: Mapped[list["EventPackage"]] = relationship(
        back_populates="vendor",
        order_by="EventPackage.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_vendor_user"),
        CheckConstraint("base_price IS NULL OR base_price >= 0", name="ck_vendor_base_price_nonnegative"),
    )


class VenueUnit(Base):
    __tablename__ = "venue_units"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    vendor_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vendors.id"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_per_day: Mapped[Decimal] = mapped_column(Money, nullable=False, default=0)
    price_per_hour: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    min_booking_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    amenities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verified_by: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    vendor: Mapped[Vendor] = relationship(back_populates="units")

    __table_args__ = (
        UniqueConstraint("vendor_id", "position", name="uq_venue_unit_position"),
        CheckConstraint("capacity > 0", name="ck_unit_capacity_positive"),
        CheckConstraint("price_per_day >= 0", name="ck_unit_price_per_day_nonnegative"),
    )


class EventPackage(Base):
    __tablename__ = "event_packages"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    vendor_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vendors.id"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    included_services: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    excluded_services: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    max_guests: Mapped[int | None] = mapped_column(Integer, nullable=True)

    vendor: Mapped[Vendor] = relationship(back_populates="packages")

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_package_price_nonnegative"),
    )


class Booking(Base):
    """
    Booking table reflecting domain state.
    Domain controls transitions.
    DB stores current state safely.
    """

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    vendor_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vendors.id"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    venue_unit_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("venue_units.id"),
        nullable=True,
    )
    package_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("event_packages.id"),
        nullable=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    advance_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    booking_type: Mapped[VendorType] = mapped_column(
        _enum(VendorType, "booking_type"),
        nullable=False,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        _enum(PaymentStatus, "payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    booking_status: Mapped[BookingStatus] = mapped_column(
        _enum(BookingStatus, "booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    advance_paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reminder_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    customer: Mapped[User] = relationship(foreign_keys=[customer_id])

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_booking_date_order"),
        CheckConstraint(
            "advance_amount >= 0 AND advance_amount <= total_amount",
            name="ck_booking_advance_within_total",
        ),
        CheckConstraint(
            "(booking_type = 'venue' AND venue_unit_id IS NOT NULL)"
            " OR (booking_type <> 'venue' AND venue_unit_id IS NULL)",
            name="ck_booking_unit_matches_type",
        ),
    )

    @property
    def remaining_amount(self) -> Decimal:
        return self.total_amount - self.advance_amount
