#!/usr/bin/env python3
"""Embedded gateway - mount the task endpoint inside an existing FastAPI app.

The host app owns routing and authentication; the gateway answers any
request handed to it.

Run: uvicorn examples.embedded_fastapi:app --port 8000
Then:
    curl -H 'onu-signature: x' 'localhost:8000/api/onu?action=list'
"""
from pathlib import Path

from fastapi import FastAPI, Request

from onu import OnuClient

onu = OnuClient(onu_path=Path(__file__).parent / "tasks")
app = FastAPI(title="host-app")


@app.get("/")
async def index():
    return {"service": "host-app", "tasks": "/api/onu"}


@app.api_route("/api/onu", methods=["GET", "POST"])
async def onu_entrypoint(request: Request):
    return await onu.handle_request(request)
