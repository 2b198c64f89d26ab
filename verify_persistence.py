"""
Persistence smoke test.

Starts the API, submits and approves a request, restarts the API and
checks that the request and its trip are still there.
"""

import time
import subprocess
import httpx
import sys
import os
import signal

from svr_backend.app.core.jwt import create_access_token

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
SERVER_CMD = [sys.executable, "-m", "uvicorn", "svr_backend.app.main:app", "--host", "127.0.0.1", "--port", "8000"]

ADMIN_HEADERS = {
    "Authorization": "Bearer " + create_access_token(
        {"sub": "persist-admin", "email": "persist_admin@test.com", "admin": True}
    )
}


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def run_verification():
    # 1. Start Server (First Run)
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = subprocess.Popen(
        SERVER_CMD,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env={**os.environ, "DB_ECHO": "True"}  # Enable echo to see SQL
    )

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        # 2. Submit and approve a request
        print("\n--- [Step 2] Submitting Request (Persistence Test) ---")
        submission = {
            "requester_name": "Persist Tester",
            "department": "EOD",
            "is_driver_requested": "No",
            "purpose": "Persistence check",
            "destination": "Main Office",
            "requested_date_time": "2025-01-01T08:00:00+08:00",
        }
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/requests", json=submission, headers=ADMIN_HEADERS)
        if resp.status_code != 201:
            print(f"❌ Submission Failed: {resp.status_code} {resp.text}")
            raise Exception("Submission failed")
        request_id = resp.json()["id"]
        print(f"✅ Request {request_id} submitted")

        code = httpx.get(f"{BASE_URL}{API_PREFIX}/trips/next-code", headers=ADMIN_HEADERS).json()["trip_code"]
        resp = httpx.post(
            f"{BASE_URL}{API_PREFIX}/requests/{request_id}/approve",
            json={"mode": "new", "trip_code": code},
            headers=ADMIN_HEADERS
        )
        if resp.status_code != 200:
            print(f"❌ Approval Failed: {resp.status_code} {resp.text}")
            raise Exception("Approval failed")
        print(f"✅ {resp.json()['message']}")

    finally:
        print("\n--- [Step 3] Stopping Server ---")
        proc.send_signal(signal.SIGTERM)
        proc.wait()

    time.sleep(2)  # Wait for port release

    # 3. Restart Server
    print("\n--- [Step 4] Restarting Server (Verification) ---")
    proc2 = subprocess.Popen(SERVER_CMD, stdout=subprocess.PIPE, stderr=subprocess.PIPE)

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        print("\n--- [Step 5] Looking Up Trip (Post-Restart) ---")
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/trips/by-code/{code}", headers=ADMIN_HEADERS)
        if resp.status_code == 200 and request_id in resp.json()["request_ids"]:
            print("✅ Trip Persisted")
            print(resp.json())
        else:
            print(f"❌ Trip Lookup Failed (Persistence Issue?): {resp.status_code} {resp.text}")
            raise Exception("Trip missing after restart")

    finally:
        print("\n--- [Step 6] Stopping Server ---")
        proc2.send_signal(signal.SIGTERM)
        proc2.wait()


if __name__ == "__main__":
    run_verification()
