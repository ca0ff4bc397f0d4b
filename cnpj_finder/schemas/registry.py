"""Pydantic schemas for the publica.cnpj.ws payload.

Only the fields the mapper consumes are declared. Every field is optional and
unknown fields are ignored, so a sparse or evolving upstream payload parses
into typed defaults instead of failing on a missing nested key. Numeric codes
are coerced to strings because the registry is not consistent about them, and
a value of an unexpected type falls back to ``None``.
"""

from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

_TRUTHY_FLAGS = frozenset({"sim", "s", "true", "1", "yes", "ativo", "ativa"})


class _RegistryModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @field_validator("*", mode="wrap")
    @classmethod
    def _none_on_bad_type(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return None


class RegistryCode(_RegistryModel):
    """``{"id": ..., "descricao": ...}`` pairs (nature, size, activities)."""

    id: str | None = None
    descricao: str | None = None


class RegistryNamed(_RegistryModel):
    nome: str | None = None


class RegistryState(_RegistryModel):
    sigla: str | None = None
    nome: str | None = None


class RegistryPartnerRole(_RegistryModel):
    descricao: str | None = None


class RegistryPartner(_RegistryModel):
    nome: str | None = None
    tipo: str | None = None
    faixa_etaria: str | None = None
    data_entrada: str | None = None
    qualificacao_socio: RegistryPartnerRole | None = None


class RegistryStateRegistration(_RegistryModel):
    inscricao_estadual: str | None = None
    ativo: bool | None = None
    estado: RegistryState | None = None

    @field_validator("ativo", mode="before")
    @classmethod
    def _parse_flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY_FLAGS
        return value


class RegistrySimples(_RegistryModel):
    simples: str | None = None
    data_opcao_simples: str | None = None
    mei: str | None = None
    data_opcao_mei: str | None = None


class RegistryEstablishment(_RegistryModel):
    cnpj: str | None = None
    tipo: str | None = None
    nome_fantasia: str | None = None
    situacao_cadastral: str | None = None
    data_situacao_cadastral: str | None = None
    data_inicio_atividade: str | None = None
    tipo_logradouro: str | None = None
    logradouro: str | None = None
    numero: str | None = None
    complemento: str | None = None
    bairro: str | None = None
    cep: str | None = None
    ddd1: str | None = None
    telefone1: str | None = None
    ddd2: str | None = None
    telefone2: str | None = None
    email: str | None = None
    cidade: RegistryNamed | None = None
    estado: RegistryState | None = None
    pais: RegistryNamed | None = None
    atividade_principal: RegistryCode | None = None
    atividades_secundarias: list[RegistryCode] | None = None
    inscricoes_estaduais: list[RegistryStateRegistration] | None = None


class RegistryCompany(_RegistryModel):
    """Top-level ``GET /cnpj/{cnpj}`` body."""

    cnpj_raiz: str | None = None
    razao_social: str | None = None
    capital_social: str | None = None
    atualizado_em: str | None = None
    natureza_juridica: RegistryCode | None = None
    porte: RegistryCode | None = None
    simples: RegistrySimples | None = None
    socios: list[RegistryPartner] | None = None
    estabelecimento: RegistryEstablishment | None = None
