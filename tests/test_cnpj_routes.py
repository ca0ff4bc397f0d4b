"""End-to-end tests for GET /api/cnpj through the full middleware stack."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from cnpj_finder.core.app_factory import create_app
from cnpj_finder.core.errors import (
    RegistryStatusError,
    RegistryTimeoutError,
    RegistryTransportError,
)
from cnpj_finder.core.rate_limit import RATE_LIMIT_MESSAGE
from conftest import OTHER_VALID_CNPJ, VALID_CNPJ, FakeRegistryClient


def _client_for(registry: FakeRegistryClient) -> TestClient:
    return TestClient(create_app(registry_client=registry))


@pytest.fixture
def client(fake_registry: FakeRegistryClient) -> TestClient:
    return _client_for(fake_registry)


class TestLookupSuccess:
    def test_returns_normalized_record(self, client: TestClient):
        response = client.get("/api/cnpj", params={"cnpj": "12.345.678/0001-95"})

        assert response.status_code == 200
        body = response.json()
        assert body["error"] is False
        assert body["cached"] is False
        data = body["data"]
        assert data["taxId"] == VALID_CNPJ
        assert data["alias"] == "EXEMPLO"
        assert data["mainActivity"]["id"] == "6201501"
        assert len(data["sideActivities"]) == 2
        assert data["company"]["equity"] == 150000.0
        assert data["address"]["state"] == "SP"

    def test_second_request_is_served_from_cache(
        self, client: TestClient, fake_registry: FakeRegistryClient
    ):
        first = client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})
        second = client.get("/api/cnpj", params={"cnpj": "12.345.678/0001-95"})

        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        assert second.json()["data"] == first.json()["data"]
        assert fake_registry.calls == [VALID_CNPJ]

    def test_response_carries_cors_and_security_headers(self, client: TestClient):
        response = client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Allow-Methods"] == "GET, OPTIONS"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


class TestLookupValidation:
    @pytest.mark.parametrize("params", [{}, {"cnpj": ""}])
    def test_missing_cnpj_returns_400(self, client: TestClient, params: dict):
        response = client.get("/api/cnpj", params=params)

        assert response.status_code == 400
        assert response.json() == {"error": True, "message": "CNPJ não informado"}

    @pytest.mark.parametrize(
        "cnpj, message",
        [
            ("123", "CNPJ deve conter 14 dígitos"),
            ("123456780001950", "CNPJ deve conter 14 dígitos"),
            ("11.111.111/1111-11", "CNPJ com dígitos repetidos é inválido"),
            ("12345678000196", "Dígito verificador inválido"),
        ],
    )
    def test_invalid_cnpj_returns_400(self, client: TestClient, cnpj: str, message: str):
        response = client.get("/api/cnpj", params={"cnpj": cnpj})

        assert response.status_code == 400
        assert response.json()["message"] == message

    def test_invalid_cnpj_never_reaches_registry(
        self, client: TestClient, fake_registry: FakeRegistryClient
    ):
        client.get("/api/cnpj", params={"cnpj": "12345678000196"})

        assert fake_registry.calls == []


class TestUpstreamFailures:
    @pytest.mark.parametrize(
        "error, status_code, message",
        [
            (
                RegistryStatusError(code="s", message="status 404", details={"upstream_status": 404}),
                404,
                "Empresa não encontrada",
            ),
            (
                RegistryStatusError(code="s", message="status 429", details={"upstream_status": 429}),
                429,
                "API externa com limite excedido",
            ),
            (
                RegistryStatusError(code="s", message="status 500", details={"upstream_status": 500}),
                500,
                "Erro interno do servidor",
            ),
            (RegistryTimeoutError(code="t", message="timeout"), 408, "Timeout na consulta externa"),
            (
                RegistryTransportError(code="n", message="connection refused"),
                503,
                "Serviço temporariamente indisponível",
            ),
            (RuntimeError("unexpected"), 500, "Erro interno do servidor"),
        ],
    )
    def test_failures_are_mapped(self, error: Exception, status_code: int, message: str):
        client = _client_for(FakeRegistryClient(error=error))

        response = client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        assert response.status_code == status_code
        assert response.json() == {"error": True, "message": message}

    def test_payload_without_cnpj_returns_500(self):
        client = _client_for(FakeRegistryClient(payload={"razao_social": "X"}))

        response = client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        assert response.status_code == 500
        assert response.json()["message"] == "Erro interno do servidor"

    def test_failures_are_not_cached(self):
        registry = FakeRegistryClient(error=RegistryTimeoutError(code="t", message="timeout"))
        client = _client_for(registry)

        client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})
        client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        assert len(registry.calls) == 2


class TestRateLimiting:
    def test_fourth_request_for_same_cnpj_is_rejected(self, client: TestClient):
        for _ in range(3):
            assert client.get("/api/cnpj", params={"cnpj": VALID_CNPJ}).status_code == 200

        response = client.get("/api/cnpj", params={"cnpj": "12.345.678/0001-95"})

        assert response.status_code == 429
        assert response.json() == {"error": True, "message": RATE_LIMIT_MESSAGE}
        assert 1 <= int(response.headers["Retry-After"]) <= 60
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_other_cnpj_is_still_allowed(self, client: TestClient):
        for _ in range(4):
            client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        response = client.get("/api/cnpj", params={"cnpj": OTHER_VALID_CNPJ})

        assert response.status_code == 200

    def test_eleventh_request_from_same_client_is_rejected(self, client: TestClient):
        # Invalid requests count against the client quota as well
        for _ in range(10):
            assert client.get("/api/cnpj").status_code == 400

        response = client.get("/api/cnpj")

        assert response.status_code == 429
        assert response.headers["X-RateLimit-Limit"] == "10"

    def test_clients_are_told_apart_by_forwarded_address(self, client: TestClient):
        for _ in range(10):
            client.get("/api/cnpj", headers={"X-Forwarded-For": "203.0.113.1, 10.0.0.1"})

        blocked = client.get("/api/cnpj", headers={"X-Forwarded-For": "203.0.113.1"})
        other = client.get("/api/cnpj", headers={"X-Forwarded-For": "203.0.113.2"})

        assert blocked.status_code == 429
        assert other.status_code == 400

    def test_rejected_requests_do_not_consume_quota(self, client: TestClient):
        for _ in range(3):
            client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})
        for _ in range(5):
            assert client.get("/api/cnpj", params={"cnpj": VALID_CNPJ}).status_code == 429

        # Only the 3 admitted requests count against the client
        for _ in range(7):
            assert client.get("/api/cnpj").status_code == 400
        assert client.get("/api/cnpj").status_code == 429

    def test_rate_limit_response_has_security_headers(self, client: TestClient):
        for _ in range(3):
            client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        response = client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        assert response.status_code == 429
        assert response.headers["Access-Control-Allow-Origin"] == "*"


class TestMethodsAndRouting:
    def test_preflight_returns_empty_200(self, client: TestClient):
        response = client.options("/api/cnpj")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Max-Age"] == "86400"

    def test_preflight_is_not_rate_limited(self, client: TestClient):
        for _ in range(15):
            client.options("/api/cnpj", params={"cnpj": VALID_CNPJ})

        response = client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        assert response.status_code == 200

    @pytest.mark.parametrize("method", ["post", "put", "delete"])
    def test_other_methods_return_405(self, client: TestClient, method: str):
        response = client.request(method.upper(), "/api/cnpj")

        assert response.status_code == 405
        assert response.json() == {"error": True, "message": "Método não permitido"}

    def test_unknown_route_returns_404_envelope(self, client: TestClient):
        response = client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json() == {"error": True, "message": "Recurso não encontrado"}


class TestHealthAndLifespan:
    def test_health_reports_cache_counters(self, client: TestClient):
        client.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["cache"]["entries"] == 1
        assert body["cache"]["misses"] == 1

    def test_lifespan_runs_sweeper_and_closes_registry(self, fake_registry: FakeRegistryClient):
        app = create_app(registry_client=fake_registry)

        with TestClient(app) as client:
            assert app.state.sweeper.running is True
            assert client.get("/health").status_code == 200

        assert app.state.sweeper.running is False
        assert fake_registry.closed is True

    def test_each_app_has_isolated_state(self):
        first = _client_for(FakeRegistryClient())
        second = _client_for(FakeRegistryClient())

        for _ in range(3):
            first.get("/api/cnpj", params={"cnpj": VALID_CNPJ})

        assert first.get("/api/cnpj", params={"cnpj": VALID_CNPJ}).status_code == 429
        assert second.get("/api/cnpj", params={"cnpj": VALID_CNPJ}).status_code == 200
