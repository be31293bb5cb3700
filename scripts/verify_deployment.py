#!/usr/bin/env python3
"""Run after deployment to verify the quota gate answers correctly."""

import sys

import httpx

API_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"


def check_health():
    """Verify health endpoint returns 200."""
    r = httpx.get(f"{API_URL}/health")
    assert r.status_code == 200, f"Health check failed: {r.status_code}"
    data = r.json()
    assert data.get("status") == "healthy", f"Unexpected health response: {data}"
    print("✓ Health check passed")


def check_ready():
    """Verify the profile store is reachable."""
    r = httpx.get(f"{API_URL}/health/ready")
    assert r.status_code == 200, f"Readiness check failed: {r.status_code} {r.text}"
    print("✓ Profile store reachable")


def check_preflight():
    """Verify OPTIONS is answered with permissive CORS headers."""
    r = httpx.options(f"{API_URL}/track-ai")
    assert r.status_code == 200, f"Preflight failed: {r.status_code}"
    assert r.headers.get("access-control-allow-origin") == "*", "Missing CORS origin header"
    allowed = r.headers.get("access-control-allow-headers", "").lower()
    for header in ("authorization", "apikey", "content-type"):
        assert header in allowed, f"CORS does not allow {header}"
    print("✓ CORS preflight answered")


def check_unauthorized():
    """Verify an anonymous gate call is rejected without touching any profile."""
    r = httpx.post(f"{API_URL}/track-ai", json={})
    data = r.json()
    assert data.get("status") == "unauthorized", f"Expected unauthorized, got {data}"
    print("✓ Anonymous calls rejected")


if __name__ == "__main__":
    print(f"\nVerifying deployment at: {API_URL}\n")

    try:
        check_health()
        check_ready()
        check_preflight()
        check_unauthorized()
        print("\n✅ All checks passed!\n")
    except AssertionError as e:
        print(f"\n❌ Check failed: {e}\n")
        sys.exit(1)
    except httpx.ConnectError:
        print(f"\n❌ Could not connect to {API_URL}\n")
        sys.exit(1)
