"""
Tests for admin API functionality.

These tests verify that the admin API:
- Exposes the resolved options and capability flags
- Routes option changes through the mutation gateway
- Reports bootstrap flag problems as conflicts
- Handles errors gracefully
"""

import asyncio
import inspect
import tempfile
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from cacheconf.sdk.storage import conf_name
from cacheconf.server.admin.app import create_admin_app
from cacheconf.server.admin.runner import AdminAPIRunner
from cacheconf.server.admin.service import AdminService
from cacheconf.server.core.config import SettingsModel, create_config_service
from cacheconf.server.core.config.schema import (
    O_CACHE_BROWSER,
    O_CACHE_MOBILE,
    O_CACHE_TTL_PUB,
    SCHEMA_VERSION,
)


@pytest.fixture
def bootstrap_file(tmp_path: Path) -> Path:
    path = tmp_path / "wp-config.php"
    path.write_text("<?php\n$table_prefix = 'wp_';\n")
    return path


@pytest.fixture
def config_service(tmp_path: Path, store, bootstrap_file: Path):
    settings = SettingsModel.model_validate(
        {
            "deployment": {"tenant_id": 1, "server_allowed": True},
            "bootstrap": {"path": str(bootstrap_file)},
        },
        context={"root": tmp_path},
    )
    return create_config_service(settings, store=store, environ={})


@pytest.fixture
def client(config_service) -> TestClient:
    return TestClient(create_admin_app(AdminService(config_service)))


class TestAdminAPI:
    """Test suite for Admin API endpoints."""

    def test_health_endpoint(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "cacheconf-admin"

    def test_config_endpoint(self, client, config_service):
        response = client.get("/config")

        assert response.status_code == 200
        data = response.json()
        assert data["tenant_id"] == 1
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["multisite"] is False
        assert data["options"] == config_service.options()
        assert set(data["flags"]) == {
            "cache_enabled",
            "cache_on_in_setting",
            "network_enabled",
            "adv_cache_bypass",
            "allowed",
            "ready",
        }
        assert data["flags"]["allowed"] is True

    def test_single_option(self, client):
        response = client.get(f"/config/{O_CACHE_TTL_PUB}")
        assert response.status_code == 200
        assert response.json() == {"key": O_CACHE_TTL_PUB, "value": 604800}

    def test_unknown_option_is_404(self, client):
        assert client.get("/config/no-such-option").status_code == 404

    def test_change_options(self, client, store):
        response = client.post("/config", json={"type": "set", "changes": {O_CACHE_MOBILE: "1"}})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "changed"
        assert data["changed"] == {O_CACHE_MOBILE: True}
        assert store.get(conf_name(O_CACHE_MOBILE)) == 1

    def test_sequential_changes_all_persist(self, client, store):
        first = client.post("/config", json={"changes": {O_CACHE_MOBILE: True}})
        second = client.post("/config", json={"changes": {O_CACHE_BROWSER: True}})

        assert first.json()["changed"] == {O_CACHE_MOBILE: True}
        assert second.json()["changed"] == {O_CACHE_BROWSER: True}
        assert store.get(conf_name(O_CACHE_MOBILE)) == 1
        assert store.get(conf_name(O_CACHE_BROWSER)) == 1

    def test_unchanged_request(self, client, store):
        store.writes.clear()
        response = client.post("/config", json={"changes": {O_CACHE_TTL_PUB: 604800}})

        assert response.json()["status"] == "unchanged"
        assert store.writes == []

    def test_ignored_request_type(self, client):
        response = client.post("/config", json={"type": "purge", "changes": {O_CACHE_TTL_PUB: 1}})
        assert response.json()["status"] == "ignored"

    def test_invalid_change_is_422(self, client):
        response = client.post("/config", json={"changes": {"cache": 9}})

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "invalid_options"
        assert data["detail"][0].startswith("cache:")

    def test_bootstrap_enable(self, client, bootstrap_file):
        response = client.post("/bootstrap", json={"enable": True})

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "enabled": True}
        assert "define('WP_CACHE', true);" in bootstrap_file.read_text()

    def test_bootstrap_conflict(self, client, bootstrap_file):
        bootstrap_file.write_text("no php here\n")
        response = client.post("/bootstrap", json={"enable": True})

        assert response.status_code == 409
        assert "insertion_point_not_found" in response.json()["detail"]

    def test_unexpected_errors_are_500(self):
        service = MagicMock()
        service.debug = True
        service.get_config_snapshot.side_effect = RuntimeError("boom")
        client = TestClient(create_admin_app(service), raise_server_exceptions=False)

        response = client.get("/config")

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"
        assert response.json()["detail"] == "boom"

    def test_blocking_endpoints_run_in_threadpool(self, client):
        endpoints = {
            (route.path, method): route.endpoint
            for route in client.app.routes
            for method in getattr(route, "methods", ())
        }

        for key in [("/config", "GET"), ("/config/{key}", "GET"), ("/config", "POST"), ("/bootstrap", "POST")]:
            assert not inspect.iscoroutinefunction(endpoints[key])

    def test_concurrent_changes_all_persist(self, config_service, store):
        admin_service = AdminService(config_service)
        keys = [O_CACHE_MOBILE, O_CACHE_BROWSER, O_CACHE_TTL_PUB]
        values = {O_CACHE_MOBILE: True, O_CACHE_BROWSER: True, O_CACHE_TTL_PUB: 3600}

        with ThreadPoolExecutor(max_workers=3) as pool:
            results = list(pool.map(lambda key: admin_service.change_options("set", {key: values[key]}), keys))

        assert all(result.status == "changed" for result in results)
        assert store.get(conf_name(O_CACHE_MOBILE)) == 1
        assert store.get(conf_name(O_CACHE_BROWSER)) == 1
        assert store.get(conf_name(O_CACHE_TTL_PUB)) == 3600

    def test_openapi_docs_available(self, client):
        response = client.get("/openapi.json")
        assert response.status_code == 200
        paths = response.json()["paths"]
        assert {"/health", "/config", "/config/{key}", "/bootstrap"} <= set(paths)


class TestAdminAPIRunner:
    """Test suite for AdminAPIRunner lifecycle."""

    def test_stale_socket_removal(self, config_service):
        # Short path to stay under the Unix socket path length limit
        socket_path = Path(tempfile.gettempdir()) / "cacheconf_test.sock"

        try:
            socket_path.touch()
            runner = AdminAPIRunner(AdminService(config_service), socket_path=socket_path)

            async def run():
                await runner.start()
                assert socket_path.exists()
                assert socket_path.stat().st_mode & 0o777 == 0o600
                await runner.stop()

            asyncio.run(run())
            assert not socket_path.exists()
        finally:
            if socket_path.exists():
                socket_path.unlink()

    def test_stop_without_start(self, config_service, tmp_path):
        runner = AdminAPIRunner(AdminService(config_service), socket_path=tmp_path / "a.sock")
        asyncio.run(runner.stop())
