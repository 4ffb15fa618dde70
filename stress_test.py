import requests
import sys
import threading
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed

BASE_URL = "http://localhost:5000"

TOTAL_SEATS = 50
TOTAL_USERS = 200        # concurrent users
CANCEL_PROBABILITY = 0.4  # share of seated users who give their seat back
MAX_RETRIES = 2

lock = threading.Lock()

results = {
    "reserved": 0,
    "waitlisted": 0,
    "reserve_failed": 0,
    "cancelled": 0,
    "cancel_failed": 0,
    "priority_updates": 0,
}


def get_status():
    r = requests.get(f"{BASE_URL}/status")
    r.raise_for_status()
    return r.json()


def user_flow(user_id):
    """
    Simulates a single user:
    1. Reserves with a random priority
    2. If seated, may cancel after a short delay
    3. If waitlisted, may bump their priority
    """
    for attempt in range(MAX_RETRIES):
        try:
            resp = requests.post(
                f"{BASE_URL}/reservations",
                json={"user_id": user_id, "priority": random.randint(1, 10)},
                timeout=5
            )

            if resp.status_code != 201:
                with lock:
                    results["reserve_failed"] += 1
                return

            body = resp.json()

            # Simulate user thinking
            time.sleep(random.uniform(0.05, 0.5))

            if body["outcome"] == "reserved":
                with lock:
                    results["reserved"] += 1
                if random.random() < CANCEL_PROBABILITY:
                    cancel_resp = requests.post(
                        f"{BASE_URL}/reservations/cancel",
                        json={"seat_id": body["seat_id"], "user_id": user_id},
                        timeout=5
                    )
                    with lock:
                        if cancel_resp.status_code == 200:
                            results["cancelled"] += 1
                        else:
                            # seat may already be gone through a concurrent release
                            results["cancel_failed"] += 1
            else:
                with lock:
                    results["waitlisted"] += 1
                update_resp = requests.put(
                    f"{BASE_URL}/waitlist/{user_id}/priority",
                    json={"priority": random.randint(1, 10)},
                    timeout=5
                )
                if update_resp.status_code == 200:
                    with lock:
                        results["priority_updates"] += 1

            return

        except requests.RequestException:
            time.sleep(0.2)

    with lock:
        results["reserve_failed"] += 1


def check_status(status):
    """Return the names of failed end-of-run checks; empty when the engine is consistent."""
    failures = []
    if status["available_seats"] + status["reserved_seats"] != status["total_seats"]:
        failures.append("seat count mismatch")
    if not status["invariants_valid"]:
        failures.append(f"invariants violated: {status['violations']}")
    if status["available_seats"] > 0 and status["waitlist"] > 0:
        failures.append("free seats left while users are waiting")
    return failures


def run_stress_test():
    print(f"\n🚀 Starting stress test with {TOTAL_USERS} concurrent users\n")

    requests.post(f"{BASE_URL}/initialize", json={"seat_count": TOTAL_SEATS}, timeout=5).raise_for_status()

    start_time = time.time()

    with ThreadPoolExecutor(max_workers=TOTAL_USERS) as executor:
        futures = [executor.submit(user_flow, i) for i in range(1, TOTAL_USERS + 1)]
        for _ in as_completed(futures):
            pass

    # Grow the venue and release a slice of users while the waitlist is non-empty
    requests.post(f"{BASE_URL}/seats", json={"count": 10}, timeout=5)
    requests.post(f"{BASE_URL}/release", json={"lo": 1, "hi": 25}, timeout=5)

    duration = time.time() - start_time

    print("\n✅ Stress Test Completed")
    print(f"⏱  Duration: {duration:.2f}s\n")

    for k, v in results.items():
        print(f"{k:17}: {v}")

    print("\n📊 Final Engine Status:")
    status = get_status()
    for k, v in status.items():
        print(f"{k:17}: {v}")

    # Critical invariant check
    total = status["available_seats"] + status["reserved_seats"]
    print(f"\n🧮 Seat Count Check: {total} total seats")

    failures = check_status(status)
    for failure in failures:
        print(f"❌ ERROR: {failure}")
    if not failures:
        print("✅ Seat count consistent, invariants hold, no idle seats while users wait")

    return not failures


if __name__ == "__main__":
    sys.exit(0 if run_stress_test() else 1)
