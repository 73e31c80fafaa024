from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from agenda.config import Settings, parse_networks, settings
from agenda.middleware import BlockListMiddleware


def _build_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(BlockListMiddleware)

    @app.get("/ping")
    def ping() -> dict[str, str]:
        return {"status": "ok"}

    return app


def _ping(monkeypatch, block_ips: list[str], forwarded_for: str):
    monkeypatch.setattr(settings, "block_ips", block_ips)
    monkeypatch.setattr(settings, "behind_proxy", True)
    with TestClient(_build_app()) as client:
        return client.get("/ping", headers={"X-Forwarded-For": forwarded_for})


def test_blocked_range_returns_forbidden(monkeypatch) -> None:
    response = _ping(monkeypatch, ["192.0.2.0/24"], "192.0.2.25")
    assert response.status_code == 403
    assert response.json() == {"error": "Access denied"}


def test_unlisted_ip_is_permitted(monkeypatch) -> None:
    response = _ping(monkeypatch, ["198.51.100.0/24"], "192.0.2.25")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_single_host_entry_is_supported(monkeypatch) -> None:
    response = _ping(monkeypatch, ["192.0.2.40"], "192.0.2.40, 10.0.0.1")
    assert response.status_code == 403


def test_forwarded_header_ignored_without_proxy(monkeypatch) -> None:
    monkeypatch.setattr(settings, "block_ips", ["192.0.2.0/24"])
    monkeypatch.setattr(settings, "behind_proxy", False)
    with TestClient(_build_app()) as client:
        response = client.get("/ping", headers={"X-Forwarded-For": "192.0.2.25"})
    assert response.status_code == 200


def test_block_ips_parsed_from_comma_list() -> None:
    parsed = Settings(block_ips="10.0.0.0/8, 192.0.2.40,")
    assert parsed.block_ips == ["10.0.0.0/8", "192.0.2.40"]
    assert [str(network) for network in parsed.block_networks] == ["10.0.0.0/8", "192.0.2.40/32"]


def test_explicit_networks_override_settings(monkeypatch) -> None:
    monkeypatch.setattr(settings, "block_ips", [])
    app = FastAPI()
    app.add_middleware(BlockListMiddleware, networks=parse_networks(["127.0.0.0/8"]))

    @app.get("/ping")
    def ping() -> dict[str, str]:
        return {"status": "ok"}

    with TestClient(app) as client:
        assert client.get("/ping").status_code == 403
