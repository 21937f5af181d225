"""
Tests for onu.client — the OnuClient facade.

Covers embedding inside a host FastAPI app, construction from settings,
explicit registration and hot reload.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

import onu
from conftest import TEST_TASK_SLUGS, TEST_TASKS_DIR
from onu import OnuClient, Task
from onu.errors import DiscoveryError
from onu.pipeline import EXECUTION_ID_KEY, INPUT_KEY
from onu.registry import TaskRegistry
from onu.router import ServerMode
from onu.settings import OnuSettings

SIGNED = {"onu-signature": "test"}


@pytest.fixture
def host_app(client):
    """A host application mounting the gateway on one of its own routes."""
    app = FastAPI()

    @app.get("/status")
    async def status():
        return {"ok": True}

    @app.api_route("/api/onu", methods=["GET", "POST"])
    async def onu_entrypoint(request: Request):
        return await client.handle_request(request)

    return TestClient(app)


class TestConstruction:
    def test_defaults(self):
        client = OnuClient(onu_path=TEST_TASKS_DIR)
        assert client.api_key is None
        assert client.port == 8080
        assert client.host == "0.0.0.0"
        assert client.server_path == ""
        assert client.debug is False
        assert len(client.tasks) == 0
        assert client.router.mode is ServerMode.EMBEDDED

    def test_leading_slash_stripped(self):
        client = OnuClient(onu_path=TEST_TASKS_DIR, server_path="/api/onu")
        assert client.server_path == "api/onu"

    def test_shared_registry(self, registry):
        client = OnuClient(onu_path=TEST_TASKS_DIR, registry=registry)
        assert client.tasks is registry

    def test_from_settings(self):
        settings = OnuSettings(
            onu_path=TEST_TASKS_DIR, api_key="k", server_port=9000, server_path="/hooks", debug=True
        )
        client = OnuClient.from_settings(settings)
        assert client.onu_path == TEST_TASKS_DIR
        assert client.api_key == "k"
        assert client.port == 9000
        assert client.server_path == "hooks"
        assert client.debug is True

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("ONU_ONU_PATH", str(TEST_TASKS_DIR))
        monkeypatch.setenv("ONU_SERVER_PORT", "9100")
        client = OnuClient.from_settings()
        assert client.onu_path == TEST_TASKS_DIR
        assert client.port == 9100


class TestTaskManagement:
    def test_init(self, client):
        assert client.init() == len(TEST_TASK_SLUGS)
        assert set(client.tasks.slugs()) == TEST_TASK_SLUGS

    def test_init_without_path(self):
        client = OnuClient(onu_path=None)
        with pytest.raises(DiscoveryError, match="onu_path is not configured"):
            client.init()

    def test_init_missing_directory(self, tmp_path):
        client = OnuClient(onu_path=tmp_path / "missing")
        with pytest.raises(DiscoveryError):
            client.init()

    def test_register(self):
        client = OnuClient(onu_path=None)
        task = client.register(Task(name="Inline", slug="inline", run=lambda input, ctx: "inline"))
        assert client.tasks.get("inline") is task

    def test_reload_drops_stale_registrations(self, client):
        client.register(Task(name="Inline", slug="inline", run=lambda input, ctx: "inline"))
        client.reload()
        assert "inline" not in client.tasks
        assert set(client.tasks.slugs()) == TEST_TASK_SLUGS

    @pytest.mark.asyncio
    async def test_registered_task_skips_discovery(self, make_request):
        client = OnuClient(onu_path=TEST_TASKS_DIR)
        client.register(Task(name="Inline", slug="inline", run=lambda input, ctx: "inline"))
        await client.handle_request(make_request("/?action=list"))
        assert client.tasks.slugs() == ["inline"]

    @pytest.mark.asyncio
    async def test_registered_task_is_served(self, make_request):
        client = OnuClient(onu_path=None)
        client.register(Task(name="Inline", slug="inline", run=lambda input, ctx: "inline"))

        info = await client.handle_request(make_request("/?action=info&slug=inline"))
        assert info.status_code == 200

        run = await client.handle_request(
            make_request("/?action=run&slug=inline", method="POST", body={EXECUTION_ID_KEY: "exec-1"})
        )
        assert run.status_code == 200
        assert json.loads(run.body)["response"] == "inline"

    def test_registration_goes_through_a_client(self):
        assert not hasattr(onu, "register_task")
        assert not hasattr(onu, "get_default_registry")


class TestEmbedded:
    def test_host_routes_unaffected(self, host_app):
        assert host_app.get("/status").json() == {"ok": True}

    def test_list_through_host(self, host_app):
        response = host_app.get("/api/onu?action=list", headers=SIGNED)
        assert response.status_code == 200
        assert {task["slug"] for task in response.json()["tasks"]} == TEST_TASK_SLUGS

    def test_run_through_host(self, host_app):
        response = host_app.post(
            "/api/onu?action=run&slug=shout",
            json={EXECUTION_ID_KEY: "exec-1", INPUT_KEY: {"text": "quiet"}},
            headers=SIGNED,
        )
        assert response.status_code == 200
        assert response.json()["response"] == "QUIET"

    def test_signature_still_required(self, host_app):
        assert host_app.get("/api/onu?action=list").status_code == 401

    def test_unsigned_request_without_action(self, host_app):
        response = host_app.get("/api/onu")
        assert response.status_code == 401


class TestServer:
    def test_initialize_http_server(self, client):
        with patch("uvicorn.run") as run:
            client.initialize_http_server(configure_logs=False)
        run.assert_called_once()
        args, kwargs = run.call_args
        assert args[0].state.onu_router.mode is ServerMode.STANDALONE
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 8080

    def test_registry_shared_with_app(self):
        registry = TaskRegistry()
        client = OnuClient(onu_path=TEST_TASKS_DIR, registry=registry)
        app = client.create_app()
        assert app.state.onu_router.registry is registry
