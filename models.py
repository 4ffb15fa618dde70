"""Value types shared by the booking engine and its adapters."""

from dataclasses import dataclass, asdict
from typing import Dict
import enum


class Outcome(str, enum.Enum):
    """Enumerated result kinds reported by every engine operation."""
    INITIALIZED = 'initialized'
    AVAILABILITY = 'availability'
    RESERVED = 'reserved'
    WAITLISTED = 'waitlisted'
    CANCELLED = 'cancelled'
    SEATS_ADDED = 'seats_added'
    WAITLIST_EXITED = 'waitlist_exited'
    PRIORITY_UPDATED = 'priority_updated'
    SEATS_RELEASED = 'seats_released'
    NOTHING_TO_RELEASE = 'nothing_to_release'
    RESERVATIONS = 'reservations'

    INVALID_ARGUMENT = 'invalid_argument'
    NOT_FOUND = 'not_found'
    MISMATCH = 'mismatch'
    DUPLICATE_REQUEST = 'duplicate_request'


@dataclass
class WaitlistEntry:
    user_id: int
    priority: int
    sequence: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class Assignment:
    """A seat handed to a user, either directly or from the waitlist."""
    user_id: int
    seat_id: int

    def to_dict(self) -> Dict[str, int]:
        return {"user_id": self.user_id, "seat_id": self.seat_id}
