"""Booking engine coordinating seats, reservations and the waitlist."""

from contextlib import contextmanager
from typing import Dict, List, Tuple, Any
import logging
import threading

from models import Assignment, Outcome
from reservation_index import ReservationIndex
from seat_pool import SeatPool
from waitlist_queue import WaitlistQueue

logger = logging.getLogger(__name__)

Result = Tuple[bool, Dict[str, Any]]


class BookingOrchestrator:
    """Thread-safe façade over the three seat structures and their state transitions."""

    def __init__(self):
        self._lock = threading.RLock()
        self.total_seats = 0
        self.initialized = False
        self.reservations = ReservationIndex()
        self.waitlist_queue = WaitlistQueue()
        self.seat_pool = SeatPool()

    @contextmanager
    def transaction(self):
        """Run a multi-structure state change under the engine lock."""
        with self._lock:
            try:
                yield
            except Exception as e:
                logger.error(f"Booking engine error: {e}")
                raise

    def initialize(self, seat_count: int) -> Result:
        """Reset every structure and open seats 1..seat_count."""
        if seat_count <= 0:
            logger.warning(f"Rejected initialize with seat count {seat_count}")
            return False, {"outcome": Outcome.INVALID_ARGUMENT, "error": "seat count must be positive"}

        with self.transaction():
            self.total_seats = seat_count
            self.reservations = ReservationIndex()
            self.waitlist_queue = WaitlistQueue()
            self.seat_pool = SeatPool(range(1, seat_count + 1))
            self.initialized = True

        logger.info(f"Initialized engine with {seat_count} seats")
        return True, {"outcome": Outcome.INITIALIZED, "seat_count": seat_count}

    def available(self) -> Result:
        with self.transaction():
            return True, {
                "outcome": Outcome.AVAILABILITY,
                "available_seats": self.seat_pool.size(),
                "waitlist": self.waitlist_queue.size(),
            }

    def reserve(self, user_id: int, priority: int) -> Result:
        """Hand the lowest free seat to the user, or queue them when none is free."""
        with self.transaction():
            if user_id in self.reservations or user_id in self.waitlist_queue:
                logger.warning(f"User {user_id} already holds a reservation or waitlist entry")
                return False, {
                    "outcome": Outcome.DUPLICATE_REQUEST,
                    "user_id": user_id,
                    "error": "user already has a reservation or waitlist entry",
                }

            if not self.seat_pool.is_empty():
                seat_id = self.seat_pool.extract_min()
                self.reservations.insert(user_id, seat_id)
                return True, {"outcome": Outcome.RESERVED, "user_id": user_id, "seat_id": seat_id}

            self.waitlist_queue.insert(user_id, priority)
            return True, {"outcome": Outcome.WAITLISTED, "user_id": user_id, "priority": priority}

    def cancel(self, seat_id: int, user_id: int) -> Result:
        """Cancel a reservation and pass the freed seat to the next waiting user."""
        with self.transaction():
            held = self.reservations.search(user_id)
            if held is None:
                return False, {
                    "outcome": Outcome.NOT_FOUND,
                    "user_id": user_id,
                    "seat_id": seat_id,
                    "error": "user has no reservation",
                }
            if held != seat_id:
                return False, {
                    "outcome": Outcome.MISMATCH,
                    "user_id": user_id,
                    "seat_id": seat_id,
                    "error": "user's reservation is for a different seat",
                }

            self.reservations.delete(user_id)
            reassigned = None
            next_user = self.waitlist_queue.extract_top()
            if next_user is not None:
                self.reservations.insert(next_user.user_id, seat_id)
                reassigned = Assignment(next_user.user_id, seat_id)
                logger.info(f"Seat {seat_id} reassigned from user {user_id} to user {next_user.user_id}")
            else:
                self.seat_pool.insert(seat_id)

            return True, {
                "outcome": Outcome.CANCELLED,
                "user_id": user_id,
                "seat_id": seat_id,
                "reassigned": reassigned,
            }

    def add_seats(self, count: int) -> Result:
        """
        Grow the venue by ``count`` seats.

        The new seats are offered to the waitlist first: the highest priority
        waiter receives the lowest new seat number. Seats nobody is waiting for
        go to the free pool.
        """
        if count <= 0:
            logger.warning(f"Rejected add_seats with count {count}")
            return False, {"outcome": Outcome.INVALID_ARGUMENT, "error": "seat count must be positive"}

        with self.transaction():
            first_new = self.total_seats + 1
            self.total_seats += count

            assignments: List[Assignment] = []
            seat_id = first_new
            while seat_id <= self.total_seats and not self.waitlist_queue.is_empty():
                entry = self.waitlist_queue.extract_top()
                self.reservations.insert(entry.user_id, seat_id)
                assignments.append(Assignment(entry.user_id, seat_id))
                seat_id += 1

            for leftover in range(seat_id, self.total_seats + 1):
                self.seat_pool.insert(leftover)

            logger.info(
                f"Added seats {first_new}-{self.total_seats}; {len(assignments)} assigned from waitlist"
            )
            return True, {
                "outcome": Outcome.SEATS_ADDED,
                "count": count,
                "total_seats": self.total_seats,
                "assignments": assignments,
            }

    def exit_waitlist(self, user_id: int) -> Result:
        with self.transaction():
            if self.waitlist_queue.remove(user_id) is None:
                return False, {"outcome": Outcome.NOT_FOUND, "user_id": user_id, "error": "user is not in waitlist"}
            return True, {"outcome": Outcome.WAITLIST_EXITED, "user_id": user_id}

    def update_priority(self, user_id: int, priority: int) -> Result:
        with self.transaction():
            if self.waitlist_queue.update_priority(user_id, priority) is None:
                return False, {"outcome": Outcome.NOT_FOUND, "user_id": user_id, "error": "user is not in waitlist"}
            return True, {"outcome": Outcome.PRIORITY_UPDATED, "user_id": user_id, "priority": priority}

    def release_seats(self, lo: int, hi: int) -> Result:
        """
        Drop every reservation and waitlist entry of users ``lo..hi`` inclusive.

        Freed seats are sorted ascending and paired one by one with the top of
        the waitlist, so the lowest freed seat goes to the highest priority
        waiter (who may be outside the range). Unpaired seats return to the
        free pool.
        """
        if lo > hi:
            logger.warning(f"Rejected release_seats with range [{lo}, {hi}]")
            return False, {"outcome": Outcome.INVALID_ARGUMENT, "error": "range start exceeds range end"}

        with self.transaction():
            released: List[int] = []
            for user_id, seat_id in self.reservations.entries_in_range(lo, hi):
                self.reservations.delete(user_id)
                released.append(seat_id)

            waiting = [e.user_id for e in self.waitlist_queue.entries() if lo <= e.user_id <= hi]
            for user_id in waiting:
                self.waitlist_queue.remove(user_id)

            if not released and not waiting:
                return True, {"outcome": Outcome.NOTHING_TO_RELEASE, "lo": lo, "hi": hi}

            released.sort()
            assignments: List[Assignment] = []
            pending = iter(released)
            for seat_id in pending:
                entry = self.waitlist_queue.extract_top()
                if entry is None:
                    self.seat_pool.insert(seat_id)
                    break
                self.reservations.insert(entry.user_id, seat_id)
                assignments.append(Assignment(entry.user_id, seat_id))
            for seat_id in pending:
                self.seat_pool.insert(seat_id)

            logger.info(
                f"Released users [{lo}, {hi}]: {len(released)} seats freed, "
                f"{len(waiting)} waitlist entries dropped, {len(assignments)} reassigned"
            )
            return True, {
                "outcome": Outcome.SEATS_RELEASED,
                "lo": lo,
                "hi": hi,
                "released_seats": released,
                "assignments": assignments,
            }

    def print_reservations(self) -> Result:
        """Return every reservation ordered by seat number."""
        with self.transaction():
            by_seat = sorted(self.reservations, key=lambda pair: pair[1])
        return True, {
            "outcome": Outcome.RESERVATIONS,
            "reservations": [Assignment(user_id, seat_id) for user_id, seat_id in by_seat],
        }

    def waitlist(self) -> List[Dict[str, int]]:
        with self.transaction():
            return [entry.to_dict() for entry in self.waitlist_queue.entries()]

    def verify_invariants(self) -> List[str]:
        """Cross-check all structures; an empty list means the engine is consistent."""
        with self.transaction():
            problems = self.reservations.validate()

            reserved_seats = [seat_id for _, seat_id in self.reservations]
            free_seats = self.seat_pool.seats()
            held = reserved_seats + free_seats
            if sorted(held) != list(range(1, self.total_seats + 1)):
                problems.append("seats are not partitioned between reservations and the free pool")

            for entry in self.waitlist_queue.entries():
                if entry.user_id in self.reservations:
                    problems.append(f"user {entry.user_id} is both reserved and waiting")

            if not self.waitlist_queue.is_heap_ordered():
                problems.append("waitlist heap order violated")
            if not self.seat_pool.is_heap_ordered():
                problems.append("seat pool heap order violated")
            return problems

    def status(self) -> Dict[str, Any]:
        """Return aggregate counts together with the invariant check result."""
        with self.transaction():
            problems = self.verify_invariants()
            return {
                "initialized": self.initialized,
                "total_seats": self.total_seats,
                "available_seats": self.seat_pool.size(),
                "reserved_seats": self.reservations.size(),
                "waitlist": self.waitlist_queue.size(),
                "invariants_valid": not problems,
                "violations": problems,
            }

    def health_check(self) -> Dict[str, Any]:
        """Report liveness; used by the /health endpoint."""
        with self.transaction():
            return {
                "status": "healthy",
                "initialized": self.initialized,
                "total_seats": self.total_seats,
            }
