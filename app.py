"""HTTP entrypoint for the seat booking engine."""

from flask import Flask, request, jsonify
from flask_cors import CORS
import logging
import os
from dotenv import load_dotenv
from typing import Any, Dict, List, Optional, Tuple

load_dotenv()
from booking_orchestrator import BookingOrchestrator
from models import Outcome

logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO').upper())
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app, origins=os.getenv('CORS_ORIGINS', '*'))

# One engine per process; every operation takes the engine lock, so threaded requests are safe
engine = BookingOrchestrator()

FAILURE_STATUS = {
    Outcome.INVALID_ARGUMENT: 400,
    Outcome.NOT_FOUND: 404,
    Outcome.MISMATCH: 409,
    Outcome.DUPLICATE_REQUEST: 409,
}


def bad_request(message: str, *, details: Optional[Dict[str, Any]] = None):
    """Return a uniform 400 payload, optionally including field-level details."""
    payload: Dict[str, Any] = {"error": message}
    if details:
        payload["details"] = details
    return jsonify(payload), 400


def require_json_object() -> Tuple[Optional[Dict[str, Any]], Optional[Tuple[str, int]]]:
    """Ensure the request body is a JSON object before proceeding."""
    if not request.is_json:
        return None, bad_request("request body must be a JSON object")

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, bad_request("request body must be a JSON object")

    return data, None


def require_int_fields(data: Dict[str, Any], *names: str) -> Tuple[Optional[List[int]], Optional[Tuple[str, int]]]:
    """Pull the named integer fields out of a JSON body, rejecting booleans and strings."""
    values: List[int] = []
    for name in names:
        value = data.get(name)
        if isinstance(value, bool) or not isinstance(value, int):
            return None, bad_request(f"{name} must be an integer", details={"field": name})
        values.append(value)
    return values, None


def to_json(result: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten assignment objects so the engine result can be serialized."""
    payload = dict(result)
    payload["outcome"] = result["outcome"].value
    for key in ("assignments", "reservations"):
        if key in payload:
            payload[key] = [a.to_dict() for a in payload[key]]
    if payload.get("reassigned") is not None:
        payload["reassigned"] = payload["reassigned"].to_dict()
    return payload


def respond(outcome: Tuple[bool, Dict[str, Any]], success_status: int = 200):
    success, result = outcome
    if success:
        return jsonify(to_json(result)), success_status
    return jsonify(to_json(result)), FAILURE_STATUS.get(result["outcome"], 400)


def initialize_from_environment():
    """Open the venue at import time when INITIAL_SEATS is configured."""
    raw = os.getenv('INITIAL_SEATS')
    if not raw:
        return
    try:
        seat_count = int(raw)
    except ValueError:
        logger.error(f"INITIAL_SEATS must be an integer, got {raw!r}")
        return

    success, result = engine.initialize(seat_count)
    if success:
        logger.info(f"Pre-initialized engine with {seat_count} seats")
    else:
        logger.error(f"Failed to pre-initialize engine: {result['error']}")


# Initialize on module load (works with Gunicorn)
initialize_from_environment()


# API Endpoints

@app.route('/initialize', methods=['POST'])
def initialize():
    """Reset the engine and open the requested number of seats."""
    data, error_response = require_json_object()
    if error_response:
        return error_response

    values, field_error = require_int_fields(data, 'seat_count')
    if field_error:
        return field_error

    return respond(engine.initialize(values[0]), 201)


@app.route('/available', methods=['GET'])
def available():
    """Free seat and waitlist counts."""
    return respond(engine.available())


@app.route('/reservations', methods=['POST'])
def reserve():
    """Reserve the lowest free seat or join the waitlist."""
    data, error_response = require_json_object()
    if error_response:
        return error_response

    values, field_error = require_int_fields(data, 'user_id', 'priority')
    if field_error:
        return field_error

    user_id, priority = values
    success, result = engine.reserve(user_id, priority)
    if success:
        logger.info(f"Reserve request for user {user_id}: {result['outcome'].value}")
    return respond((success, result), 201)


@app.route('/reservations', methods=['GET'])
def list_reservations():
    """All reservations ordered by seat number."""
    return respond(engine.print_reservations())


@app.route('/reservations/cancel', methods=['POST'])
def cancel():
    """Cancel a user's reservation of a specific seat."""
    data, error_response = require_json_object()
    if error_response:
        return error_response

    values, field_error = require_int_fields(data, 'seat_id', 'user_id')
    if field_error:
        return field_error

    seat_id, user_id = values
    return respond(engine.cancel(seat_id, user_id))


@app.route('/seats', methods=['POST'])
def add_seats():
    """Grow the venue, seating waitlisted users first."""
    data, error_response = require_json_object()
    if error_response:
        return error_response

    values, field_error = require_int_fields(data, 'count')
    if field_error:
        return field_error

    return respond(engine.add_seats(values[0]))


@app.route('/waitlist', methods=['GET'])
def list_waitlist():
    """Waiting users in the order they will be served."""
    return jsonify({"waitlist": engine.waitlist()})


@app.route('/waitlist/<int(signed=True):user_id>', methods=['DELETE'])
def exit_waitlist(user_id):
    return respond(engine.exit_waitlist(user_id))


@app.route('/waitlist/<int(signed=True):user_id>/priority', methods=['PUT'])
def update_priority(user_id):
    data, error_response = require_json_object()
    if error_response:
        return error_response

    values, field_error = require_int_fields(data, 'priority')
    if field_error:
        return field_error

    return respond(engine.update_priority(user_id, values[0]))


@app.route('/release', methods=['POST'])
def release_seats():
    """Release reservations and waitlist entries for a user id range."""
    data, error_response = require_json_object()
    if error_response:
        return error_response

    values, field_error = require_int_fields(data, 'lo', 'hi')
    if field_error:
        return field_error

    return respond(engine.release_seats(*values))


@app.route('/status', methods=['GET'])
def status():
    """Aggregate counts plus the result of the invariant check."""
    return jsonify(engine.status())


@app.route('/health', methods=['GET'])
def health_check():
    return jsonify(engine.health_check())


if __name__ == '__main__':
    logger.info("""
    ================================
    SEAT BOOKING ENGINE (IN-MEMORY)
    ================================
    Concurrency: single engine lock per operation
    ================================
    """)

    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=False, threaded=True)
