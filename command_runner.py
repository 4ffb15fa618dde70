"""Line-oriented command adapter: parses ``Name(args)`` commands and renders result lines."""

from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple
import argparse
import logging
import re
import sys

from booking_orchestrator import BookingOrchestrator, Result
from models import Outcome

logger = logging.getLogger(__name__)

COMMAND_PATTERN = re.compile(r'^(?P<name>[A-Za-z]+)\s*\((?P<args>[^)]*)\)$')

QUIT_LINE = "Program Terminated!!"

# command name -> (arity, engine call)
COMMANDS: Dict[str, Tuple[int, Callable[..., Result]]] = {
    "Initialize": (1, BookingOrchestrator.initialize),
    "Available": (0, BookingOrchestrator.available),
    "Reserve": (2, BookingOrchestrator.reserve),
    "Cancel": (2, BookingOrchestrator.cancel),
    "ExitWaitlist": (1, BookingOrchestrator.exit_waitlist),
    "UpdatePriority": (2, BookingOrchestrator.update_priority),
    "AddSeats": (1, BookingOrchestrator.add_seats),
    "PrintReservations": (0, BookingOrchestrator.print_reservations),
    "ReleaseSeats": (2, BookingOrchestrator.release_seats),
}


class CommandError(ValueError):
    """Raised for a line that cannot be turned into an engine call."""


def parse_command(line: str) -> Tuple[str, List[int]]:
    """Split ``Reserve(3, 7)`` into ``("Reserve", [3, 7])``."""
    match = COMMAND_PATTERN.match(line.strip())
    if not match:
        raise CommandError(f"malformed command: {line!r}")

    name = match.group("name")
    raw_args = match.group("args").strip()
    try:
        args = [int(part.strip()) for part in raw_args.split(",")] if raw_args else []
    except ValueError:
        raise CommandError(f"non-integer argument in: {line!r}")

    arity = 0 if name == "Quit" else COMMANDS[name][0] if name in COMMANDS else None
    if arity is not None and len(args) != arity:
        raise CommandError(f"{name} expects {arity} argument(s), got {len(args)}")
    return name, args


def _reservation_line(assignment) -> str:
    return f"User {assignment.user_id} reserved seat {assignment.seat_id}"


NOT_FOUND_LINES = {
    "Cancel": "User {user_id} has no reservation to cancel",
    "ExitWaitlist": "User {user_id} is not in waitlist",
    "UpdatePriority": "User {user_id} priority is not updated",
}


def render(name: str, result: Dict) -> List[str]:
    """Turn the engine result of command ``name`` into output lines."""
    outcome = result["outcome"]

    if outcome == Outcome.NOT_FOUND:
        return [NOT_FOUND_LINES[name].format(user_id=result["user_id"])]
    if outcome == Outcome.INVALID_ARGUMENT and name == "ReleaseSeats":
        return ["Invalid input. Please provide a valid range of users."]
    if outcome == Outcome.INVALID_ARGUMENT:
        return ["Invalid input. Please provide a valid number of seats."]
    if outcome == Outcome.INITIALIZED:
        return [f"{result['seat_count']} Seats are made available for reservation"]
    if outcome == Outcome.AVAILABILITY:
        return [f"Total Seats Available : {result['available_seats']}, Waitlist : {result['waitlist']}"]
    if outcome == Outcome.RESERVED:
        return [f"User {result['user_id']} reserved seat {result['seat_id']}"]
    if outcome == Outcome.WAITLISTED:
        return [f"User {result['user_id']} is added to the waiting list"]
    if outcome == Outcome.DUPLICATE_REQUEST:
        return [f"User {result['user_id']} already has a reservation or waitlist entry"]
    if outcome == Outcome.CANCELLED:
        lines = [f"User {result['user_id']} canceled their reservation"]
        if result["reassigned"] is not None:
            lines.append(_reservation_line(result["reassigned"]))
        return lines
    if outcome == Outcome.MISMATCH:
        return [f"User {result['user_id']} has no reservation for seat {result['seat_id']} to cancel"]
    if outcome == Outcome.SEATS_ADDED:
        return [f"Additional {result['count']} Seats are made available for reservation"] + [
            _reservation_line(a) for a in result["assignments"]
        ]
    if outcome == Outcome.WAITLIST_EXITED:
        return [f"User {result['user_id']} is removed from the waiting list"]
    if outcome == Outcome.PRIORITY_UPDATED:
        return [f"User {result['user_id']} priority has been updated to {result['priority']}"]
    if outcome == Outcome.SEATS_RELEASED:
        return [f"Reservations of the Users in the range [{result['lo']}, {result['hi']}] are released"] + [
            _reservation_line(a) for a in result["assignments"]
        ]
    if outcome == Outcome.NOTHING_TO_RELEASE:
        return [
            f"Reservations/waitlist of the users in the range [{result['lo']}, {result['hi']}] have been released"
        ]
    if outcome == Outcome.RESERVATIONS:
        return [f"Seat {a.seat_id}, User {a.user_id}" for a in result["reservations"]]
    raise ValueError(f"no rendering for outcome {outcome!r}")


class CommandRunner:
    """Feeds command lines to a booking engine and yields the rendered output."""

    def __init__(self, engine: Optional[BookingOrchestrator] = None):
        self.engine = engine or BookingOrchestrator()
        self.terminated = False

    def execute(self, line: str) -> List[str]:
        """Run one command line; blank and unknown lines produce no output."""
        if not line.strip():
            return []

        name, args = parse_command(line)
        if name == "Quit":
            self.terminated = True
            return [QUIT_LINE]

        spec = COMMANDS.get(name)
        if spec is None:
            logger.warning(f"Ignoring unknown command: {name}")
            return []

        _, call = spec
        _, result = call(self.engine, *args)
        return render(name, result)

    def run(self, lines: Iterable[str]) -> Iterator[str]:
        """Process lines until exhausted or ``Quit()`` is seen."""
        for line in lines:
            try:
                output = self.execute(line)
            except CommandError as e:
                logger.error(f"Error processing command {line.strip()!r}: {e}")
                continue
            yield from output
            if self.terminated:
                return


def default_output_path(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}_output_file.txt")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a seat booking command file.")
    parser.add_argument("input_file", type=Path)
    parser.add_argument("--output", type=Path, default=None,
                        help="output file (default: <input stem>_output_file.txt)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    if not args.input_file.exists():
        logger.error(f"Input file not found: {args.input_file}")
        return 1

    output_path = args.output or default_output_path(args.input_file)
    runner = CommandRunner()
    with args.input_file.open() as source, output_path.open("w") as sink:
        for out_line in runner.run(source):
            sink.write(out_line + "\n")

    logger.info(f"Wrote results to {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
