import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from src.application.availability_service import AvailabilityChecker
from src.application.catalog_service import vendor_to_profile
from src.application.policy import (
    can_view_booking,
    ensure_admin,
    ensure_booking_customer_or_admin,
    ensure_vendor_owner_or_admin,
)
from src.domain.availability import DateRange
from src.domain.exceptions import (
    BookingConflictError,
    ForbiddenError,
    GatewayError,
    InvalidInputError,
    NotFoundError,
)
from src.domain.identity import Principal, Role
from src.domain.pricing import CENT, PriceBreakdown, compute_price, to_minor_units
from src.domain.state_machine import (
    ACTIVE_BOOKING_STATUSES,
    BookingStateMachine,
    BookingStatus,
    PaymentStateMachine,
    PaymentStatus,
    initial_payment_status,
)
from src.domain.vendor import (
    EventPackageData,
    EventTeamKind,
    VendorProfile,
    VenueKind,
    VenueUnitData,
)
from src.infrastructure.db.models import Booking, Vendor
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.repositories.vendor_repository import VendorRepository

logger = logging.getLogger(__name__)

ADVANCE_PAYMENT = "adv"
BALANCE_PAYMENT = "bal"


def payment_reference(booking_id: str, purpose: str) -> str:
    # Razorpay caps reference_id at 40 characters: a uuid plus four.
    return f"{booking_id}.{purpose}"


def parse_payment_reference(reference: str) -> tuple[str, str]:
    booking_id, _, purpose = reference.rpartition(".")
    if purpose not in (ADVANCE_PAYMENT, BALANCE_PAYMENT):
        raise InvalidInputError("Unknown payment reference")
    return booking_id, purpose


@dataclass(frozen=True)
class BookingResult:
    booking: Booking
    price: PriceBreakdown


@dataclass(frozen=True)
class CheckoutSession:
    url: str
    amount: Decimal
    currency: str


class BookingService:
    """Application service coordinating booking workflow."""

    def __init__(
        self,
        db: Session,
        gateway=None,
        currency: str = "INR",
        frontend_url: str = "http://localhost:5173",
    ):
        self.db = db
        self.gateway = gateway
        self.currency = currency
        self.frontend_url = frontend_url.rstrip("/")
        self.booking_repository = BookingRepository(db)
        self.vendor_repository = VendorRepository(db)
        self.user_repository = UserRepository(db)
        self.availability = AvailabilityChecker(db)

    # -----------------------------
    # Creation
    # -----------------------------
    def create_booking(
        self,
        principal: Principal,
        vendor_id: str,
        start_date: date,
        end_date: date,
        unit_id: str | None = None,
        package_id: str | None = None,
        notes: str | None = None,
        explicit_total: Decimal | None = None,
        customer_id: str | None = None,
    ) -> BookingResult:
        customer_id = self._resolve_customer(principal, customer_id)
        if not vendor_id:
            raise InvalidInputError("Missing required fields: vendor_id")
        requested = DateRange(start_date, end_date)

        # Held until the request transaction commits; serializes
        # check + insert for every booking against this vendor.
        vendor = self.vendor_repository.lock_vendor(vendor_id)
        if not vendor:
            raise NotFoundError("Vendor not found")

        profile = vendor_to_profile(vendor)
        unit = self._select_unit(profile, unit_id)
        package = self._select_package(profile, package_id)

        if self.availability.has_conflict(
            vendor.id,
            unit.id if unit else None,
            requested.start,
            requested.end,
        ):
            raise BookingConflictError(
                "Vendor or venue is already booked for the selected dates"
            )

        price = self._price(principal, profile, requested, unit, package, explicit_total)

        booking = self.booking_repository.create_booking(
            vendor_id=vendor.id,
            customer_id=customer_id,
            booking_type=profile.vendor_type,
            start_date=requested.start,
            end_date=requested.end,
            total_amount=price.total,
            advance_amount=price.advance,
            payment_status=initial_payment_status(price.advance),
            venue_unit_id=unit.id if unit else None,
            package_id=package.id if package else None,
            notes=notes,
        )
        self.db.flush()
        self.db.refresh(booking)

        logger.info(
            "Booking %s created for vendor %s (%s to %s), total=%s advance=%s",
            booking.id,
            vendor.id,
            booking.start_date,
            booking.end_date,
            price.total,
            price.advance,
        )
        return BookingResult(booking=booking, price=price)

    def _resolve_customer(self, principal: Principal, customer_id: str | None) -> str:
        if principal.role == Role.CUSTOMER:
            if customer_id and customer_id != principal.subject_id:
                raise ForbiddenError("Customers can only book for themselves")
            customer_id = principal.subject_id
        elif principal.is_admin:
            if not customer_id:
                raise InvalidInputError("customer_id is required when an admin creates a booking")
        else:
            raise ForbiddenError("Only customers can create bookings")

        if not self.user_repository.get_by_id(customer_id):
            raise NotFoundError("Customer not found")
        return customer_id

    @staticmethod
    def _select_unit(profile: VendorProfile, unit_id: str | None) -> VenueUnitData | None:
        if not isinstance(profile.kind, VenueKind):
            if unit_id:
                raise InvalidInputError("venue_unit_id is only valid for venue bookings")
            return None

        if not unit_id:
            raise InvalidInputError("venue_unit_id is required for venue bookings")
        unit = profile.find_unit(unit_id)
        if unit is None:
            raise NotFoundError("Venue unit not found")
        if not unit.is_active:
            raise InvalidInputError("Venue unit is not accepting bookings")
        return unit

    @staticmethod
    def _select_package(profile: VendorProfile, package_id: str | None) -> EventPackageData | None:
        if not isinstance(profile.kind, EventTeamKind):
            if package_id:
                raise InvalidInputError("package_id is only valid for event team bookings")
            return None

        if not package_id:
            raise InvalidInputError("package_id is required for event team bookings")
        package = profile.find_package(package_id)
        if package is None:
            raise NotFoundError("Package not found")
        return package

    @staticmethod
    def _price(
        principal: Principal,
        profile: VendorProfile,
        requested: DateRange,
        unit: VenueUnitData | None,
        package: EventPackageData | None,
        explicit_total: Decimal | None,
    ) -> PriceBreakdown:
        # Only an admin quote may override the catalog price.
        if principal.is_admin and explicit_total is not None:
            return compute_price(
                profile.kind,
                requested.start,
                requested.end,
                unit=unit,
                package=package,
                explicit_total=explicit_total,
            )

        price = compute_price(
            profile.kind,
            requested.start,
            requested.end,
            unit=unit,
            package=package,
        )
        if explicit_total is not None and explicit_total > 0:
            if Decimal(explicit_total).quantize(CENT) != price.total:
                raise InvalidInputError(
                    f"Submitted total {explicit_total} does not match the price {price.total}"
                )
        return price

    # -----------------------------
    # Queries
    # -----------------------------
    def list_bookings(self, principal: Principal) -> list[Booking]:
        if principal.is_admin:
            return self.booking_repository.list_all()
        if principal.role == Role.CUSTOMER:
            return self.booking_repository.list_for_customer(principal.subject_id)
        if principal.role == Role.VENDOR:
            if not self.vendor_repository.get_by_user_id(principal.subject_id):
                raise NotFoundError("Vendor profile not found for this user")
            return self.booking_repository.list_for_vendor_owner(principal.subject_id)
        raise ForbiddenError("Unauthorized role")

    def get_booking(self, principal: Principal, booking_id: str) -> Booking:
        booking = self._get_or_404(booking_id)
        vendor = self._vendor_of(booking)
        if not can_view_booking(principal, booking, vendor):
            raise ForbiddenError("Not authorized to view this booking")
        return booking

    # -----------------------------
    # Transitions
    # -----------------------------
    def update_booking_status(
        self,
        principal: Principal,
        booking_id: str,
        new_status: BookingStatus | str,
    ) -> Booking:
        try:
            new_status = BookingStatus(new_status)
        except ValueError as exc:
            raise InvalidInputError("Invalid booking status") from exc

        booking = self._get_or_404(booking_id, for_update=True)
        vendor = self._vendor_of(booking)
        ensure_vendor_owner_or_admin(principal, vendor)

        previous = booking.booking_status
        self._transition(booking, new_status)

        self.db.flush()
        self.db.refresh(booking)
        logger.info(
            "Booking %s status %s -> %s by %s",
            booking.id,
            previous.value,
            new_status.value,
            principal.subject_id,
        )
        return booking

    def mark_paid(self, principal: Principal, booking_id: str) -> Booking:
        booking = self._get_or_404(booking_id, for_update=True)
        ensure_booking_customer_or_admin(principal, booking)
        return self._apply_full_payment(booking)

    def confirm_gateway_payment(self, booking_id: str, callback: dict) -> Booking:
        """
        Gateway return path: the signed callback stands in for the caller's
        identity, so no principal is needed. The reference tells an advance
        apart from the balance.
        """
        if self.gateway is None:
            raise GatewayError("Payment gateway not configured")
        self.gateway.verify_callback(callback)
        reference_booking, purpose = parse_payment_reference(callback.get("payment_link_reference_id") or "")
        if reference_booking != booking_id:
            raise InvalidInputError("Payment reference does not match this booking")

        booking = self._get_or_404(booking_id, for_update=True)
        if purpose == ADVANCE_PAYMENT:
            return self._record_advance(booking)
        return self._apply_full_payment(booking)

    def _record_advance(self, booking: Booking) -> Booking:
        if booking.advance_paid_at is not None:
            return booking
        if booking.booking_status == BookingStatus.CANCELLED or booking.payment_status == PaymentStatus.REFUNDED:
            raise InvalidInputError("Booking is no longer payable")

        booking.advance_paid_at = datetime.now(timezone.utc)
        self.db.flush()
        self.db.refresh(booking)
        logger.info("Advance of %s received for booking %s", booking.advance_amount, booking.id)
        return booking

    def _apply_full_payment(self, booking: Booking) -> Booking:
        if (
            booking.payment_status == PaymentStatus.PAID
            and booking.booking_status == BookingStatus.COMPLETED
        ):
            return booking

        BookingStateMachine.validate_completion_by_payment(booking.booking_status)
        if booking.payment_status != PaymentStatus.PAID:
            PaymentStateMachine.validate_transition(booking.payment_status, PaymentStatus.PAID)

        self.booking_repository.update_payment_status(booking, PaymentStatus.PAID)
        self.booking_repository.update_status(booking, BookingStatus.COMPLETED)
        self.db.flush()
        self.db.refresh(booking)
        logger.info("Booking %s marked paid and completed", booking.id)
        return booking

    def refund_booking(self, principal: Principal, booking_id: str) -> Booking:
        ensure_admin(principal)
        booking = self._get_or_404(booking_id, for_update=True)

        PaymentStateMachine.validate_transition(booking.payment_status, PaymentStatus.REFUNDED)
        self.booking_repository.update_payment_status(booking, PaymentStatus.REFUNDED)
        if booking.booking_status in ACTIVE_BOOKING_STATUSES:
            self._transition(booking, BookingStatus.CANCELLED)

        self.db.flush()
        self.db.refresh(booking)
        logger.info("Booking %s refunded by %s", booking.id, principal.subject_id)
        return booking

    # -----------------------------
    # Payments
    # -----------------------------
    def pay_advance(self, principal: Principal, booking_id: str) -> CheckoutSession:
        """
        Opens a checkout session for the advance. The booking already counts
        as partially paid; the gateway callback records when the advance
        actually arrived.
        """
        booking = self._get_or_404(booking_id)
        ensure_booking_customer_or_admin(principal, booking)
        self._ensure_payable(booking)

        if booking.advance_paid_at is not None:
            raise InvalidInputError("Advance already paid for this booking")
        if booking.advance_amount <= 0:
            raise InvalidInputError("No advance is due on this booking")

        vendor = self._vendor_of(booking)
        return self._open_checkout(
            booking,
            amount=booking.advance_amount,
            purpose=ADVANCE_PAYMENT,
            description=f"Advance Payment - {vendor.name}",
            success_url=f"{self.frontend_url}/payment-success?bookingId={booking.id}",
            cancel_url=f"{self.frontend_url}/payment-cancel?bookingId={booking.id}",
        )

    def pay_remaining(self, principal: Principal, booking_id: str) -> CheckoutSession:
        """
        Opens a checkout session for the outstanding balance. Booking state
        only changes when the gateway confirms the payment.
        """
        booking = self._get_or_404(booking_id)
        ensure_booking_customer_or_admin(principal, booking)
        self._ensure_payable(booking)

        remaining = booking.remaining_amount
        if remaining <= 0:
            raise InvalidInputError("Nothing left to pay on this booking")

        return self._open_checkout(
            booking,
            amount=remaining,
            purpose=BALANCE_PAYMENT,
            description=f"Remaining payment for booking {booking.id}",
            success_url=f"{self.frontend_url}/payment-success?bookingId={booking.id}&final=true",
            cancel_url=f"{self.frontend_url}/payment-failed?bookingId={booking.id}",
        )

    @staticmethod
    def _ensure_payable(booking: Booking) -> None:
        if booking.booking_status == BookingStatus.CANCELLED or booking.payment_status in (
            PaymentStatus.PAID,
            PaymentStatus.REFUNDED,
        ):
            raise InvalidInputError("Nothing left to pay on this booking")

    def _open_checkout(
        self,
        booking: Booking,
        amount: Decimal,
        purpose: str,
        description: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        if self.gateway is None:
            raise GatewayError("Payment gateway not configured")

        url = self.gateway.create_checkout_session(
            amount_minor_units=to_minor_units(amount),
            currency=self.currency,
            description=description,
            success_url=success_url,
            cancel_url=cancel_url,
            reference_id=payment_reference(booking.id, purpose),
        )
        logger.info(
            "Checkout session (%s) opened for booking %s (%s %s)",
            purpose,
            booking.id,
            amount,
            self.currency,
        )
        return CheckoutSession(url=url, amount=amount, currency=self.currency)

    # -----------------------------
    # Helpers
    # -----------------------------
    def _get_or_404(self, booking_id: str, for_update: bool = False) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id, for_update=for_update)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _vendor_of(self, booking: Booking) -> Vendor:
        vendor = self.vendor_repository.get_by_id(booking.vendor_id)
        if not vendor:
            raise NotFoundError("Vendor not found")
        return vendor

    def _transition(self, booking: Booking, to_status: BookingStatus) -> None:
        BookingStateMachine.validate_transition(booking.booking_status, to_status)
        self.booking_repository.update_status(booking, to_status)
