import json

import requests

from cli import device_cli


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def json(self):
        return self._payload


def test_check_calls_public_endpoint(monkeypatch, capsys):
    calls = {}

    def fake_get(url, params=None, timeout=None):
        calls.update(url=url, params=params, timeout=timeout)
        return FakeResponse({"ok": True, "device_code": "ABC01", "status": "active"})

    monkeypatch.setattr(device_cli.requests, "get", fake_get)
    rc = device_cli.main(["--url", "http://example.test/", "check", "abc01"])
    assert rc == 0
    assert calls["url"] == "http://example.test/check"
    assert calls["params"] == {"device": "abc01"}
    assert json.loads(capsys.readouterr().out)["status"] == "active"


def test_set_sends_bearer_key(monkeypatch):
    calls = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.update(url=url, json=json, headers=headers)
        return FakeResponse({"ok": True, "device_code": "ABC01", "data": json})

    monkeypatch.setattr(device_cli.requests, "post", fake_post)
    rc = device_cli.main([
        "--url", "http://example.test",
        "set", "abc01",
        "--status", "inactive",
        "--plan", "Monthly",
        "--expiry", "2026-12-31T00:00:00Z",
        "--key", "k3y",
    ])
    assert rc == 0
    assert calls["url"] == "http://example.test/update"
    assert calls["headers"] == {"Authorization": "Bearer k3y"}
    assert calls["json"] == {
        "device": "abc01",
        "status": "inactive",
        "plan": "Monthly",
        "expiry": "2026-12-31T00:00:00Z",
        "notes": "",
    }


def test_set_without_key_fails(monkeypatch, capsys):
    monkeypatch.delenv("ADMIN_KEY", raising=False)
    rc = device_cli.main(["set", "abc01"])
    assert rc == 1
    assert "admin key required" in capsys.readouterr().err


def test_rejected_update_exits_nonzero(monkeypatch):
    monkeypatch.setattr(
        device_cli.requests, "post",
        lambda url, json=None, headers=None, timeout=None: FakeResponse({"ok": False, "error": "unauthorized"}),
    )
    assert device_cli.main(["set", "abc01", "--key", "bad"]) == 1


def test_connection_error_exits_nonzero(monkeypatch, capsys):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(device_cli.requests, "get", boom)
    assert device_cli.main(["check", "abc01"]) == 1
    assert "request failed" in capsys.readouterr().err
