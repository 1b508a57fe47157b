# src/domain/state_machine.py

from enum import Enum
from typing import Dict, Set, Type

from src.domain.exceptions import InvalidStateTransitionError


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class _StateMachine:
    _STATUS_TYPE: Type[Enum]
    _ALLOWED_TRANSITIONS: Dict[Enum, Set[Enum]]

    @classmethod
    def can_transition(cls, from_status, to_status) -> bool:
        """
        Returns True if transition is allowed.
        """
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)

        return to_status in cls._ALLOWED_TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status, to_status) -> None:
        """
        Raises InvalidStateTransitionError if transition is illegal.
        """
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(
                from_state=from_status.value,
                to_state=to_status.value,
            )

    @classmethod
    def is_terminal(cls, status) -> bool:
        """
        Returns True if the state is terminal (no further transitions allowed).
        """
        cls._ensure_valid_status(status)
        return len(cls._ALLOWED_TRANSITIONS.get(status, set())) == 0

    @classmethod
    def get_allowed_transitions(cls, status) -> Set:
        """
        Returns allowed next states from current state.
        """
        cls._ensure_valid_status(status)
        return set(cls._ALLOWED_TRANSITIONS.get(status, set()))

    @classmethod
    def _ensure_valid_status(cls, status) -> None:
        if not isinstance(status, cls._STATUS_TYPE):
            raise TypeError(
                f"Expected {cls._STATUS_TYPE.__name__}, got {type(status)}"
            )


class BookingStateMachine(_StateMachine):
    """
    Lifecycle of a booking as driven by the vendor (or an admin).
    completed and cancelled are terminal.
    """

    _STATUS_TYPE = BookingStatus
    _ALLOWED_TRANSITIONS: Dict[BookingStatus, Set[BookingStatus]] = {
        BookingStatus.PENDING: {
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
        },
        BookingStatus.CONFIRMED: {
            BookingStatus.COMPLETED,
            BookingStatus.CANCELLED,
        },
        BookingStatus.COMPLETED: set(),
        BookingStatus.CANCELLED: set(),
    }

    @classmethod
    def validate_completion_by_payment(cls, from_status: BookingStatus) -> None:
        """
        Full payment completes a booking straight from pending or confirmed.
        Already-completed bookings are accepted so repeated confirmations
        stay idempotent.
        """
        cls._ensure_valid_status(from_status)
        if from_status == BookingStatus.CANCELLED:
            raise InvalidStateTransitionError(
                from_state=from_status.value,
                to_state=BookingStatus.COMPLETED.value,
            )


class PaymentStateMachine(_StateMachine):
    """
    Payment progression. Only payment confirmations advance it;
    refunded is an explicit override from any state except itself.
    """

    _STATUS_TYPE = PaymentStatus
    _ALLOWED_TRANSITIONS: Dict[PaymentStatus, Set[PaymentStatus]] = {
        PaymentStatus.PENDING: {
            PaymentStatus.PARTIAL,
            PaymentStatus.PAID,
            PaymentStatus.REFUNDED,
        },
        PaymentStatus.PARTIAL: {
            PaymentStatus.PAID,
            PaymentStatus.REFUNDED,
        },
        PaymentStatus.PAID: {
            PaymentStatus.REFUNDED,
        },
        PaymentStatus.REFUNDED: set(),
    }


def initial_payment_status(advance_amount) -> PaymentStatus:
    return PaymentStatus.PARTIAL if advance_amount > 0 else PaymentStatus.PENDING
