#!/usr/bin/env python3
"""Standalone gateway - serve ./tasks on its own HTTP server.

Requests must carry ``Authorization: Bearer $ONU_API_KEY``; the
healthcheck is open.

Run: ONU_API_KEY=secret python examples/standalone_server.py
Then:
    curl localhost:8080/healthcheck
    curl -H 'onu-signature: x' -H 'Authorization: Bearer secret' 'localhost:8080/api/onu?action=list'
"""
from pathlib import Path

from onu import OnuClient, OnuSettings
from onu.logging import configure_logging

TASKS_DIR = Path(__file__).parent / "tasks"


def main():
    settings = OnuSettings(onu_path=TASKS_DIR, server_path="api/onu")
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    def bearer_token(request) -> bool:
        return request.headers.get("authorization") == f"Bearer {settings.api_key}"

    client = OnuClient.from_settings(settings, authenticator=bearer_token)
    client.init()
    client.initialize_http_server(configure_logs=False)


if __name__ == "__main__":
    main()
