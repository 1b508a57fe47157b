from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.domain.state_machine import BookingStatus, PaymentStatus
from src.domain.vendor import (
    MAX_VENUE_UNITS,
    EventPackageData,
    EventTeamKind,
    EventTeamOffering,
    FreelancerCategory,
    FreelancerKind,
    Pricing,
    VendorKind,
    VendorProfile,
    VendorType,
    VenueKind,
    VenueUnitData,
)


# -----------------------------
# Vendor catalog
# -----------------------------
class VenueUnitCreate(BaseModel):
    title: str
    capacity: int = Field(gt=0)
    price_per_day: Decimal = Field(ge=0)
    price_per_hour: Decimal | None = Field(default=None, ge=0)
    min_booking_hours: int = Field(default=0, ge=0)
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    def to_data(self) -> VenueUnitData:
        return VenueUnitData(
            title=self.title,
            capacity=self.capacity,
            price_per_day=self.price_per_day,
            price_per_hour=self.price_per_hour,
            min_booking_hours=self.min_booking_hours,
            amenities=tuple(self.amenities),
            images=tuple(self.images),
        )


class VenueUnitBatchCreate(BaseModel):
    units: list[VenueUnitCreate] = Field(min_length=1, max_length=MAX_VENUE_UNITS)


class EventPackageCreate(BaseModel):
    name: str
    price: Decimal = Field(ge=0)
    description: str | None = None
    included_services: list[str] = Field(default_factory=list)
    excluded_services: list[str] = Field(default_factory=list)
    max_guests: int | None = Field(default=None, gt=0)

    def to_data(self) -> EventPackageData:
        return EventPackageData(
            name=self.name,
            price=self.price,
            description=self.description,
            included_services=tuple(self.included_services),
            excluded_services=tuple(self.excluded_services),
            max_guests=self.max_guests,
        )


class VendorCreate(BaseModel):
    type: VendorType
    name: str
    city: str
    description: str | None = None
    contact_number: str | None = None
    base_price: Decimal | None = Field(default=None, ge=0)
    currency: str = "INR"
    freelancer_category: FreelancerCategory | None = None
    event_types_covered: list[str] = Field(default_factory=list)
    event_team_note: str | None = None
    venue_units: list[VenueUnitCreate] = Field(default_factory=list, max_length=MAX_VENUE_UNITS)
    packages: list[EventPackageCreate] = Field(default_factory=list)

    def _kind(self) -> VendorKind:
        if self.type == VendorType.VENUE:
            return VenueKind(units=tuple(unit.to_data() for unit in self.venue_units))
        if self.type == VendorType.FREELANCER:
            return FreelancerKind(
                category=self.freelancer_category,
                pricing=Pricing(base_price=self.base_price, currency=self.currency),
            )
        return EventTeamKind(
            offering=EventTeamOffering(
                packages=tuple(package.to_data() for package in self.packages),
                event_types_covered=tuple(self.event_types_covered),
                note=self.event_team_note,
            )
        )

    def to_profile(self, user_id: str) -> VendorProfile:
        return VendorProfile(
            user_id=user_id,
            name=self.name,
            city=self.city,
            kind=self._kind(),
            description=self.description,
            contact_number=self.contact_number,
        )


class VendorUpdate(BaseModel):
    name: str | None = None
    city: str | None = None
    description: str | None = None
    contact_number: str | None = None
    base_price: Decimal | None = Field(default=None, ge=0)
    currency: str | None = None
    freelancer_category: FreelancerCategory | None = None
    event_types_covered: list[str] | None = None
    event_team_note: str | None = None


class AvailabilityUpdate(BaseModel):
    booked_dates: list[date]


class VenueUnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    capacity: int
    price_per_day: Decimal
    price_per_hour: Decimal | None = None
    min_booking_hours: int
    amenities: list[str]
    images: list[str]
    verified: bool
    verified_at: datetime | None = None
    verified_by: str | None = None
    is_active: bool


class EventPackageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    price: Decimal
    included_services: list[str]
    excluded_services: list[str]
    max_guests: int | None = None


class VendorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: VendorType
    name: str
    city: str
    description: str | None = None
    contact_number: str | None = None
    profile_photo: str | None = None
    base_price: Decimal | None = None
    currency: str
    freelancer_category: FreelancerCategory | None = None
    event_types_covered: list[str]
    event_team_note: str | None = None
    booked_dates: list[str]
    units: list[VenueUnitResponse]
    packages: list[EventPackageResponse]


class VendorListResponse(BaseModel):
    count: int
    vendors: list[VendorResponse]


class UnitVerificationResponse(BaseModel):
    message: str
    unit: VenueUnitResponse


class CommittedRangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: str
    start_date: date
    end_date: date
    venue_unit_id: str | None = None
    status: BookingStatus


class BookedDatesResponse(BaseModel):
    vendor_id: str
    name: str
    type: VendorType
    city: str
    booked_ranges: list[CommittedRangeResponse]
    blocked_dates: list[date]


# -----------------------------
# Bookings
# -----------------------------
class BookingCreate(BaseModel):
    vendor_id: str
    start_date: date
    end_date: date
    venue_unit_id: str | None = None
    package_id: str | None = None
    notes: str | None = None
    total_amount: Decimal | None = None
    customer_id: str | None = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    vendor_id: str
    customer_id: str
    venue_unit_id: str | None = None
    package_id: str | None = None
    start_date: date
    end_date: date
    total_amount: Decimal
    advance_amount: Decimal
    remaining_amount: Decimal
    notes: str | None = None
    booking_type: VendorType
    payment_status: PaymentStatus
    booking_status: BookingStatus
    reminder_sent: bool
    advance_paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PaymentBreakdownResponse(BaseModel):
    total_amount: Decimal
    advance_amount: Decimal
    remaining_amount: Decimal
    percentage: str
    note: str


class BookingCreateResponse(BaseModel):
    message: str
    booking: BookingResponse
    payment_breakdown: PaymentBreakdownResponse


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]


class BookingStatusUpdate(BaseModel):
    status: str


class BookingMessageResponse(BaseModel):
    message: str
    booking: BookingResponse


class CheckoutSessionResponse(BaseModel):
    url: str
    amount: Decimal
    currency: str


class PaymentCallbackRequest(BaseModel):
    payment_link_id: str
    payment_link_reference_id: str
    payment_link_status: str
    razorpay_payment_id: str
    razorpay_signature: str


# -----------------------------
# Customers
# -----------------------------
class CustomerProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str | None = None
    city: str | None = None
    profile_photo: str | None = None
    created_at: datetime


class CustomerProfileUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    city: str | None = None


class CustomerProfileMessageResponse(BaseModel):
    message: str
    customer: CustomerProfileResponse
