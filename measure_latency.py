#!/usr/bin/env python3
"""
Latency measurement script for the inspection API
Measures GET /health, GET /checklist, PUT and GET /ovm-storage
"""
import time
import requests
import statistics
import sys

API_BASE = "http://127.0.0.1:8000/api"
USER = "latency-test"
OBJECT_ID = "LATENCY-1"
NUM_ITERATIONS = 10

SAMPLE_RECORD = {
    "schemaVersion": "ms-2024.1",
    "subjectId": OBJECT_ID,
    "lastModified": "2024-01-01T00:00:00+00:00",
    "answers": {"OVM-5": {"answer": "yes"}, "OVM-6": {"value": 4.5}},
}


def measure_endpoint(name: str, method: str, url: str, json_body=None):
    """Measure latency for a single endpoint"""
    times = []
    errors = 0

    print(f"\nMeasuring {name}...")

    for i in range(NUM_ITERATIONS):
        start = time.time()
        try:
            response = requests.request(method, url, json=json_body, timeout=5)
            duration = (time.time() - start) * 1000  # Convert to ms
            times.append(duration)
            if not response.ok:
                errors += 1
                print(f"  Iteration {i+1}: {response.status_code} - {duration:.2f}ms")
            else:
                print(f"  Iteration {i+1}: {duration:.2f}ms")
        except requests.RequestException as e:
            errors += 1
            duration = (time.time() - start) * 1000
            print(f"  Iteration {i+1}: ERROR - {e} ({duration:.2f}ms)")

    if times:
        avg = statistics.mean(times)
        median = statistics.median(times)
        print(f"  avg={avg:.2f}ms median={median:.2f}ms min={min(times):.2f}ms max={max(times):.2f}ms errors={errors}")
        return avg
    print(f"  No successful requests ({errors} errors)")
    return None


def main():
    storage_url = f"{API_BASE}/ovm-storage/{USER}/{OBJECT_ID}"
    results = {
        "GET /health": measure_endpoint("GET /health", "GET", f"{API_BASE}/health"),
        "GET /checklist": measure_endpoint("GET /checklist", "GET", f"{API_BASE}/checklist"),
        "PUT /ovm-storage": measure_endpoint("PUT /ovm-storage", "PUT", storage_url, SAMPLE_RECORD),
        "GET /ovm-storage": measure_endpoint("GET /ovm-storage", "GET", storage_url),
    }

    # Clean up the sample record
    try:
        requests.delete(storage_url, timeout=5)
    except requests.RequestException as e:
        print(f"\nCleanup failed: {e}")

    print("\nSummary:")
    for name, avg in results.items():
        print(f"  {name}: {'n/a' if avg is None else f'{avg:.2f}ms'}")

    if any(avg is None for avg in results.values()):
        sys.exit(1)


if __name__ == "__main__":
    main()
