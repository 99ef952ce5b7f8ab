import time
import subprocess
import httpx
import sys
import os
import signal
import uuid

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
ADMIN_SECRET = os.environ.get("ADMIN_SECRET", "adminpw")

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

def start_server():
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "postal_ledger.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )

def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()

def expect(resp, status_code, label):
    if resp.status_code != status_code:
        print(f"❌ {label}: expected {status_code}, got {resp.status_code} {resp.text}")
        raise Exception(f"{label} failed")
    print(f"✅ {label}")
    return resp.json()

def run_verification():
    parcel_id = f"PKG-{uuid.uuid4().hex[:8]}"
    worker = f"worker-{uuid.uuid4().hex[:6]}"

    # 1. Start Server (First Run)
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server()

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        # 2. Identities
        print("\n--- [Step 2] Enrolling Identities ---")
        admin = expect(httpx.post(f"{BASE_URL}{API_PREFIX}/identities/admin/enroll",
                                  json={"username": "admin", "secret": ADMIN_SECRET}), 200, "Admin enrolled")
        admin_headers = {"Authorization": f"Bearer {admin['access_token']}"}
        reg = expect(httpx.post(f"{BASE_URL}{API_PREFIX}/identities",
                                json={"username": worker, "role": "employee"}, headers=admin_headers),
                     201, "Employee registered")
        enrollment = expect(httpx.post(f"{BASE_URL}{API_PREFIX}/identities/enroll",
                                       json={"username": worker, "secret": reg["enrollment_secret"]}),
                            200, "Employee enrolled")
        headers = {"Authorization": f"Bearer {enrollment['access_token']}"}

        # 3. Parcel lifecycle
        print("\n--- [Step 3] Parcel Lifecycle ---")
        parcels = f"{BASE_URL}{API_PREFIX}/parcels"
        expect(httpx.post(parcels, json={"id": parcel_id, "destination": "Atlanta"}, headers=headers),
               201, f"Created {parcel_id}")
        expect(httpx.post(f"{parcels}/{parcel_id}/transport", json={"new_address": "Nairobi"}, headers=headers),
               200, "Transported to Nairobi")
        resp = httpx.post(f"{parcels}/{parcel_id}/transport", json={"new_address": "Atlanta"}, headers=headers)
        expect(resp, 200, "Transported to Atlanta")
        tx_id = resp.headers.get("X-Transaction-ID")
        events = expect(httpx.get(f"{BASE_URL}{API_PREFIX}/events", params={"tx_id": tx_id}, headers=headers),
                        200, "Events fetched")
        if not events["events"] or events["events"][0]["event_name"] != "Distribution":
            raise Exception("Distribution event missing")
        print("✅ Distribution event recorded")
        expect(httpx.post(f"{parcels}/{parcel_id}/status", json={"status": "DAMAGED"}, headers=headers),
               200, "Marked DAMAGED")
        expect(httpx.post(f"{parcels}/{parcel_id}/status", json={"status": "GOOD"}, headers=headers),
               409, "DAMAGED -> GOOD rejected")
        expect(httpx.post(f"{parcels}/{parcel_id}/status", json={"status": "DESTROYED"}, headers=headers),
               200, "Marked DESTROYED")

    finally:
        print("\n--- [Step 4] Stopping Server ---")
        stop_server(proc)

    time.sleep(2) # Wait for port release

    # 5. Restart Server
    print("\n--- [Step 5] Restarting Server (Verification) ---")
    proc2 = start_server()

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        print("\n--- [Step 6] Querying Parcel (Post-Restart) ---")
        parcel = expect(httpx.get(f"{BASE_URL}{API_PREFIX}/parcels/{parcel_id}", headers=headers),
                        200, "Parcel persisted")
        print(parcel)
        if parcel["status"] != "DESTROYED" or parcel["currentAddress"] != "Atlanta":
            raise Exception("Persisted parcel has unexpected state")
        expect(httpx.post(f"{BASE_URL}{API_PREFIX}/parcels/{parcel_id}/status",
                          json={"status": "GOOD"}, headers=headers),
               409, "DESTROYED stays terminal")

    finally:
        print("\n--- [Step 7] Stopping Server ---")
        stop_server(proc2)

if __name__ == "__main__":
    run_verification()
