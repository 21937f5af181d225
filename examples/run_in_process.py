#!/usr/bin/env python3
"""In-process walkthrough - list, inspect and run tasks without a server.

Uses FastAPI's TestClient against the standalone app, the same way an
orchestrator would call it over HTTP.

Run: python examples/run_in_process.py
"""
from pathlib import Path

from fastapi.testclient import TestClient

from onu import OnuClient

SIGNED = {"onu-signature": "example"}


def main():
    client = OnuClient(onu_path=Path(__file__).parent / "tasks", api_key="example-key")
    http = TestClient(client.create_app())

    print("=" * 60)
    print("Onu gateway walkthrough")
    print("=" * 60)

    # === 1. Healthcheck ===
    print("\n[1] Healthcheck")
    print(f"  {http.get('/healthcheck').text}")

    # === 2. List ===
    print("\n[2] List tasks")
    for task in http.get("/?action=list", headers=SIGNED).json()["tasks"]:
        print(f"  {task['slug']:<16} {task['name']}")

    # === 3. Info ===
    print("\n[3] Task info")
    info = http.get("/?action=info&slug=say-hello", headers=SIGNED).json()["task"]
    print(f"  Inputs: {list(info['input'])}")

    # === 4. Run ===
    print("\n[4] Run")
    body = {"_onu__executionId": "exec-1", "_onu__input": {"name": "Ada"}}
    response = http.post("/?action=run&slug=say-hello", json=body, headers=SIGNED)
    print(f"  {response.status_code} {response.json()['response']}")

    # === 5. Rejected input ===
    print("\n[5] Validation failure")
    body = {"_onu__executionId": "exec-2", "_onu__input": {"name": ""}}
    response = http.post("/?action=run&slug=say-hello", json=body, headers=SIGNED)
    print(f"  {response.status_code} {response.json()['errors']}")


if __name__ == "__main__":
    main()
