"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It selects the testing environment before any settings are imported, so no
developer .env file leaks into the tests and error details stay hidden.
"""

import copy
import os
from typing import Any

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("APP_RATE_LIMIT_REQUESTS_PER_CLIENT", "10")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS_PER_CNPJ", "3")
os.environ.setdefault("REGISTRY_BASE_URL", "https://registry.test")
os.environ.setdefault("REGISTRY_MAX_RETRIES", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from cnpj_finder.adapters.registry.base import AbstractRegistryClient

VALID_CNPJ = "12345678000195"
OTHER_VALID_CNPJ = "11222333000181"


SAMPLE_REGISTRY_PAYLOAD: dict[str, Any] = {
    "cnpj_raiz": "12345678",
    "razao_social": "EMPRESA EXEMPLO LTDA",
    "capital_social": "150000.00",
    "atualizado_em": "2024-05-10T03:00:00.000Z",
    "porte": {"id": "05", "descricao": "Demais"},
    "natureza_juridica": {"id": "2062", "descricao": "Sociedade Empresária Limitada"},
    "simples": {
        "simples": "SIM",
        "data_opcao_simples": "2010-01-01",
        "mei": "NÃO",
        "data_opcao_mei": None,
    },
    "socios": [
        {
            "nome": "MARIA DA SILVA",
            "tipo": "Pessoa Física",
            "faixa_etaria": "Entre 41 a 50 anos",
            "data_entrada": "2005-03-01",
            "qualificacao_socio": {"id": 49, "descricao": "Sócio-Administrador"},
        },
        {
            "nome": None,
            "tipo": "Pessoa Física",
            "data_entrada": "2006-01-01",
        },
    ],
    "estabelecimento": {
        "cnpj": "12345678000195",
        "tipo": "MATRIZ",
        "nome_fantasia": "EXEMPLO",
        "situacao_cadastral": "Ativa",
        "data_situacao_cadastral": "2005-03-01",
        "data_inicio_atividade": "2005-03-01",
        "tipo_logradouro": "RUA",
        "logradouro": "DAS FLORES",
        "numero": "100",
        "complemento": "SALA 2",
        "bairro": "CENTRO",
        "cep": "01001000",
        "ddd1": "11",
        "telefone1": "33334444",
        "ddd2": None,
        "telefone2": "55556666",
        "email": "contato@exemplo.com.br",
        "cidade": {"id": 3550308, "nome": "São Paulo"},
        "estado": {"id": 35, "nome": "São Paulo", "sigla": "SP"},
        "pais": {"id": "1058", "nome": "Brasil"},
        "atividade_principal": {"id": "6201501", "descricao": "Desenvolvimento de programas"},
        "atividades_secundarias": [
            {"id": "6202300", "descricao": "Desenvolvimento e licenciamento"},
            {"id": "6204000", "descricao": "Consultoria em tecnologia da informação"},
        ],
        "inscricoes_estaduais": [
            {"inscricao_estadual": "123456789", "ativo": True, "estado": {"sigla": "SP"}},
            {"inscricao_estadual": "987654321", "ativo": False, "estado": {"sigla": "RJ"}},
        ],
    },
}


class FakeRegistryClient(AbstractRegistryClient):
    """Registry double recording every fetch."""

    def __init__(self, payload: dict[str, Any] | None = None, error: Exception | None = None) -> None:
        self.payload = payload if payload is not None else copy.deepcopy(SAMPLE_REGISTRY_PAYLOAD)
        self.error = error
        self.calls: list[str] = []
        self.closed = False

    async def fetch(self, cnpj: str) -> dict[str, Any]:
        self.calls.append(cnpj)
        if self.error is not None:
            raise self.error
        return self.payload

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_REGISTRY_PAYLOAD)


@pytest.fixture
def fake_registry() -> FakeRegistryClient:
    return FakeRegistryClient()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
