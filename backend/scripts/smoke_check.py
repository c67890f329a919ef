import sys
import uuid
import httpx

base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

resp = httpx.get(f"{base_url}/health", timeout=5)
resp.raise_for_status()
print("health:", resp.json())

with httpx.Client(base_url=base_url, timeout=10) as client:
    suffix = uuid.uuid4().hex[:8]
    resp = client.post(
        "/api/auth/register",
        json={"username": f"smoke_{suffix}", "email": f"smoke_{suffix}@example.com", "password": "smoke-pass"},
    )
    resp.raise_for_status()
    print("register:", resp.json()["user"]["username"])
    resp = client.get("/api/stats")
    resp.raise_for_status()
    print("stats:", resp.json()["stats"])
