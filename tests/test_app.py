"""Tests for the admin UI."""

from collections import deque
from unittest.mock import MagicMock

import pytest

from livesync_app import create_app


@pytest.fixture
def watcher():
    watcher = MagicMock()
    watcher.clients = 2
    watcher.history = deque([{"time": "t", "path": "index.html", "changed": ["index.html"], "clients": 2}])
    return watcher


@pytest.fixture
def client(config, watcher):
    return create_app(config, watcher).test_client()


def test_dashboard(client, config):
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert config.root in body
    assert "http://localhost:3000" in body
    assert "index.html" in body


def test_config(client):
    data = client.get("/api/config").get_json()
    assert data["port"] == 3000
    assert data["ui_port"] == 3001
    assert data["reload_debounce"] == 500


def test_clients(client):
    assert client.get("/api/clients").get_json() == {"clients": 2}


def test_history(client):
    reloads = client.get("/api/history").get_json()["reloads"]
    assert [r["path"] for r in reloads] == ["index.html"]


class TestReload:

    def test_reload_everything(self, client, watcher):
        resp = client.post("/api/reload")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "ok", "clients": 2}
        watcher.reload.assert_called_once_with("*")

    def test_reload_one_path(self, client, watcher):
        resp = client.post("/api/reload", json={"path": "css/site.css"})
        assert resp.status_code == 200
        watcher.reload.assert_called_once_with("css/site.css")

    def test_bad_path(self, client, watcher):
        resp = client.post("/api/reload", json={"path": 3})
        assert resp.status_code == 400
        assert resp.get_json()["status"] == "error"
        watcher.reload.assert_not_called()

    def test_get_not_allowed(self, client):
        assert client.get("/api/reload").status_code == 405
