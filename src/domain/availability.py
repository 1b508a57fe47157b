from dataclasses import dataclass
from datetime import date

from src.domain.exceptions import InvalidInputError


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive calendar range as stored on a booking.

    Conflict testing treats it as half-open, so a booking may start on
    the day another one ends.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start is None or self.end is None:
            raise InvalidInputError("startDate and endDate are required")
        if self.start > self.end:
            raise InvalidInputError("startDate must be on or before endDate")

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1

    def overlaps(self, other: "DateRange") -> bool:
        # Same predicate as BookingRepository.find_overlapping_active.
        return other.start < self.end and other.end > self.start
