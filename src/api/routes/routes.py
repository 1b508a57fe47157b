import logging

from fastapi import APIRouter, Depends, File, UploadFile, status

from src.api.dependencies import (
    get_availability_checker,
    get_booking_service,
    get_catalog_service,
    get_customer_service,
    get_principal,
)
from src.api.schemas.schemas import (
    AvailabilityUpdate,
    BookedDatesResponse,
    BookingCreate,
    BookingCreateResponse,
    BookingListResponse,
    BookingMessageResponse,
    BookingResponse,
    BookingStatusUpdate,
    CheckoutSessionResponse,
    CommittedRangeResponse,
    CustomerProfileMessageResponse,
    CustomerProfileResponse,
    CustomerProfileUpdate,
    EventPackageCreate,
    EventPackageResponse,
    PaymentBreakdownResponse,
    PaymentCallbackRequest,
    UnitVerificationResponse,
    VendorCreate,
    VendorListResponse,
    VendorResponse,
    VendorUpdate,
    VenueUnitBatchCreate,
    VenueUnitResponse,
)
from src.application.availability_service import AvailabilityChecker
from src.application.booking_service import BookingService
from src.application.catalog_service import CatalogService
from src.application.customer_service import CustomerService
from src.application.policy import ensure_admin
from src.domain.identity import Principal


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    return {"message": "Event Booking Engine is running"}


# -----------------------------
# Vendors
# -----------------------------
@router.get("/vendors", response_model=VendorListResponse)
def list_vendors(
    type: str | None = None,
    city: str | None = None,
    category: str | None = None,
    catalog: CatalogService = Depends(get_catalog_service),
):
    vendors = catalog.list_vendors(vendor_type=type, city=city, category=category)
    return VendorListResponse(
        count=len(vendors),
        vendors=[VendorResponse.model_validate(vendor) for vendor in vendors],
    )


@router.post("/vendors", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
def register_vendor(
    request: VendorCreate,
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    vendor = catalog.register_vendor(principal, request.to_profile(principal.subject_id))
    return VendorResponse.model_validate(vendor)


@router.get("/vendors/me", response_model=VendorResponse)
def get_my_vendor_profile(
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return VendorResponse.model_validate(catalog.get_vendor_for_user(principal.subject_id))


@router.get("/vendors/{vendor_id}", response_model=VendorResponse)
def get_vendor(
    vendor_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
):
    return VendorResponse.model_validate(catalog.get_vendor(vendor_id))


@router.put("/vendors/{vendor_id}", response_model=VendorResponse)
def update_vendor(
    vendor_id: str,
    request: VendorUpdate,
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    vendor = catalog.update_vendor(
        principal,
        vendor_id,
        request.model_dump(exclude_unset=True),
    )
    return VendorResponse.model_validate(vendor)


@router.patch("/vendors/{vendor_id}/availability", response_model=VendorResponse)
def update_availability(
    vendor_id: str,
    request: AvailabilityUpdate,
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    vendor = catalog.set_availability_overrides(principal, vendor_id, request.booked_dates)
    return VendorResponse.model_validate(vendor)


@router.get("/vendors/{vendor_id}/booked-dates", response_model=BookedDatesResponse)
def get_booked_dates(
    vendor_id: str,
    unit_id: str | None = None,
    catalog: CatalogService = Depends(get_catalog_service),
    availability: AvailabilityChecker = Depends(get_availability_checker),
):
    vendor = catalog.get_vendor(vendor_id)
    commitments = availability.committed_ranges(vendor_id, unit_id=unit_id)
    return BookedDatesResponse(
        vendor_id=vendor.id,
        name=vendor.name,
        type=vendor.type,
        city=vendor.city,
        booked_ranges=[
            CommittedRangeResponse.model_validate(item) for item in commitments.booked_ranges
        ],
        blocked_dates=commitments.blocked_dates,
    )


@router.post(
    "/vendors/{vendor_id}/units",
    response_model=list[VenueUnitResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_venue_units(
    vendor_id: str,
    request: VenueUnitBatchCreate,
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    units = catalog.add_venue_units(
        principal,
        vendor_id,
        [unit.to_data() for unit in request.units],
    )
    return [VenueUnitResponse.model_validate(unit) for unit in units]


@router.post(
    "/vendors/{vendor_id}/packages",
    response_model=EventPackageResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_event_package(
    vendor_id: str,
    request: EventPackageCreate,
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    package = catalog.add_event_package(principal, vendor_id, request.to_data())
    return EventPackageResponse.model_validate(package)


@router.post("/vendors/{vendor_id}/units/{unit_id}/images", response_model=VenueUnitResponse)
def upload_unit_image(
    vendor_id: str,
    unit_id: str,
    file: UploadFile = File(...),
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    unit = catalog.attach_unit_image(
        principal,
        vendor_id,
        unit_id,
        file.file.read(),
        file.filename or "image",
    )
    return VenueUnitResponse.model_validate(unit)


@router.post("/vendors/{vendor_id}/profile-photo", response_model=VendorResponse)
def upload_profile_photo(
    vendor_id: str,
    file: UploadFile = File(...),
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    vendor = catalog.attach_profile_photo(
        principal,
        vendor_id,
        file.file.read(),
        file.filename or "profile",
    )
    return VendorResponse.model_validate(vendor)


# -----------------------------
# Admin
# -----------------------------
@router.get("/admin/vendors", response_model=VendorListResponse)
def admin_list_vendors(
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    ensure_admin(principal)
    vendors = catalog.list_vendors()
    return VendorListResponse(
        count=len(vendors),
        vendors=[VendorResponse.model_validate(vendor) for vendor in vendors],
    )


@router.put(
    "/admin/vendors/{vendor_id}/units/{unit_id}/verify",
    response_model=UnitVerificationResponse,
)
def verify_venue_unit(
    vendor_id: str,
    unit_id: str,
    principal: Principal = Depends(get_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    unit = catalog.mark_unit_verified(principal, vendor_id, unit_id)
    return UnitVerificationResponse(
        message=f'Venue "{unit.title}" verified successfully',
        unit=VenueUnitResponse.model_validate(unit),
    )


# -----------------------------
# Bookings
# -----------------------------
@router.post(
    "/bookings",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    request: BookingCreate,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service),
):
    result = service.create_booking(
        principal,
        vendor_id=request.vendor_id,
        start_date=request.start_date,
        end_date=request.end_date,
        unit_id=request.venue_unit_id,
        package_id=request.package_id,
        notes=request.notes,
        explicit_total=request.total_amount,
        customer_id=request.customer_id,
    )
    price = result.price
    booking_type = result.booking.booking_type.value
    return BookingCreateResponse(
        message="Booking created successfully",
        booking=BookingResponse.model_validate(result.booking),
        payment_breakdown=PaymentBreakdownResponse(
            total_amount=price.total,
            advance_amount=price.advance,
            remaining_amount=price.remaining,
            percentage=price.advance_percent_label,
            note=f"An advance of {price.advance_percent_label} is required for {booking_type} bookings.",
        ),
    )


@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_bookings(principal)
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(booking) for booking in bookings],
    )


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.model_validate(service.get_booking(principal, booking_id))


@router.put("/bookings/{booking_id}/status", response_model=BookingMessageResponse)
def update_booking_status(
    booking_id: str,
    request: BookingStatusUpdate,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_booking_status(principal, booking_id, request.status)
    return BookingMessageResponse(
        message="Booking status updated successfully",
        booking=BookingResponse.model_validate(booking),
    )


@router.put("/bookings/{booking_id}/mark-paid", response_model=BookingMessageResponse)
def mark_booking_paid(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.mark_paid(principal, booking_id)
    return BookingMessageResponse(
        message="Payment marked as completed",
        booking=BookingResponse.model_validate(booking),
    )


@router.post("/bookings/{booking_id}/pay-advance", response_model=CheckoutSessionResponse)
def pay_advance(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service),
):
    session = service.pay_advance(principal, booking_id)
    return CheckoutSessionResponse(url=session.url, amount=session.amount, currency=session.currency)


@router.post("/bookings/{booking_id}/pay-remaining", response_model=CheckoutSessionResponse)
def pay_remaining(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service),
):
    session = service.pay_remaining(principal, booking_id)
    return CheckoutSessionResponse(url=session.url, amount=session.amount, currency=session.currency)


@router.post("/bookings/{booking_id}/payment-callback", response_model=BookingMessageResponse)
def payment_callback(
    booking_id: str,
    request: PaymentCallbackRequest,
    service: BookingService = Depends(get_booking_service),
):
    booking = service.confirm_gateway_payment(booking_id, request.model_dump())
    return BookingMessageResponse(
        message="Payment confirmed",
        booking=BookingResponse.model_validate(booking),
    )


@router.post("/bookings/{booking_id}/refund", response_model=BookingMessageResponse)
def refund_booking(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.refund_booking(principal, booking_id)
    return BookingMessageResponse(
        message="Booking refunded",
        booking=BookingResponse.model_validate(booking),
    )


# -----------------------------
# Customers
# -----------------------------
@router.get("/customers/me", response_model=CustomerProfileResponse)
def get_my_profile(
    principal: Principal = Depends(get_principal),
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerProfileResponse.model_validate(service.get_profile(principal))


@router.put("/customers/me", response_model=CustomerProfileMessageResponse)
def update_my_profile(
    request: CustomerProfileUpdate,
    principal: Principal = Depends(get_principal),
    service: CustomerService = Depends(get_customer_service),
):
    customer = service.update_profile(principal, request.model_dump(exclude_unset=True))
    return CustomerProfileMessageResponse(
        message="Profile updated successfully",
        customer=CustomerProfileResponse.model_validate(customer),
    )
