"""Projection of registry payloads onto :class:`CompanyRecord`.

Pure functions only: no I/O, no logging side effects beyond a debug line for
unparseable currency values.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, TypeVar

from cnpj_finder.schemas.company import (
    Address,
    CodeText,
    Company,
    CompanyRecord,
    CompanySize,
    Email,
    Member,
    Person,
    Phone,
    Registration,
    StatusText,
    TaxRegimeOption,
)
from cnpj_finder.schemas.registry import (
    RegistryCode,
    RegistryCompany,
    RegistryEstablishment,
    RegistryPartner,
    RegistryStateRegistration,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 100
DEFAULT_MEMBER_ROLE = "Sócio"

T = TypeVar("T")


def parse_currency(value: Any) -> float:
    """Parse a Brazilian currency amount, defaulting to ``0.0``.

    ``"R$ 1.234,56"`` uses dots as thousands separators and a decimal comma.
    Values without a comma are read as plain decimals (``"1000.00"``), unless
    they carry several dots, which can only be thousands separators.

    Examples:
        >>> parse_currency("R$ 1.234,56")
        1234.56
        >>> parse_currency("1000.00")
        1000.0
        >>> parse_currency(None)
        0.0
    """

    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).replace("R$", "").strip().replace(" ", "")
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    elif text.count(".") > 1:
        text = text.replace(".", "")

    try:
        return float(text)
    except ValueError:
        logger.debug("mapper.currency_unparseable", extra={"raw_value": str(value)[:32]})
        return 0.0


def _capped(items: Iterable[T] | None, max_items: int) -> list[T]:
    return list(items or [])[:max_items]


def _code_text(code: RegistryCode | None) -> CodeText | None:
    if code is None:
        return None
    return CodeText(id=code.id, text=code.descricao)


def _map_members(partners: list[RegistryPartner] | None, max_items: int) -> list[Member]:
    members = []
    for partner in partners or []:
        if not partner.nome:
            continue
        role = (partner.qualificacao_socio and partner.qualificacao_socio.descricao) or partner.tipo
        members.append(
            Member(
                person=Person(name=partner.nome, age=partner.faixa_etaria),
                role=StatusText(text=role or DEFAULT_MEMBER_ROLE),
                since=partner.data_entrada,
            )
        )
    return members[:max_items]


def _map_address(est: RegistryEstablishment) -> Address:
    city = est.cidade.nome if est.cidade else None
    return Address(
        street=f"{est.tipo_logradouro or ''} {est.logradouro or ''}".strip(),
        number=est.numero,
        details=est.complemento,
        district=est.bairro,
        city=city,
        state=est.estado.sigla if est.estado else None,
        zip=est.cep,
        country=est.pais.nome if est.pais else None,
        municipality=city,
    )


def _map_phones(est: RegistryEstablishment) -> list[Phone]:
    pairs = ((est.ddd1, est.telefone1), (est.ddd2, est.telefone2))
    return [Phone(area=area, number=number) for area, number in pairs if area and number]


def _map_emails(est: RegistryEstablishment) -> list[Email]:
    return [Email(address=est.email)] if est.email else []


def _map_registration(item: RegistryStateRegistration) -> Registration:
    enabled = bool(item.ativo)
    return Registration(
        number=item.inscricao_estadual,
        state=item.estado.sigla if item.estado else None,
        enabled=enabled,
        status=StatusText(text="Ativa" if enabled else "Inativa"),
    )


def map_company(raw: dict[str, Any], *, max_items: int = DEFAULT_MAX_ITEMS) -> CompanyRecord:
    """Map a raw registry payload to the internal company record.

    Args:
        raw: Decoded JSON body returned by the registry.
        max_items: Cap for side activities, registrations and members.

    Returns:
        CompanyRecord. ``tax_id`` is empty when the payload carries no CNPJ;
        callers must treat such a record as invalid.
    """

    payload = RegistryCompany.model_validate(raw or {})
    est = payload.estabelecimento or RegistryEstablishment()
    simples = payload.simples

    company = Company(
        name=payload.razao_social,
        nature=_code_text(payload.natureza_juridica),
        size=(
            CompanySize(text=payload.porte.descricao, acronym=payload.porte.id)
            if payload.porte
            else None
        ),
        equity=parse_currency(payload.capital_social),
        simples=TaxRegimeOption(
            optant=bool(simples and simples.simples == "SIM"),
            since=simples.data_opcao_simples if simples else None,
        ),
        simei=TaxRegimeOption(
            optant=bool(simples and simples.mei == "SIM"),
            since=simples.data_opcao_mei if simples else None,
        ),
        members=_map_members(payload.socios, max_items),
    )

    return CompanyRecord(
        tax_id=est.cnpj or payload.cnpj_raiz or "",
        alias=est.nome_fantasia or None,
        founded=est.data_inicio_atividade,
        updated=payload.atualizado_em,
        status=StatusText(text=est.situacao_cadastral),
        status_date=est.data_situacao_cadastral,
        head=est.tipo == "MATRIZ",
        company=company,
        address=_map_address(est),
        phones=_map_phones(est),
        emails=_map_emails(est),
        main_activity=_code_text(est.atividade_principal),
        side_activities=[
            _code_text(code) for code in _capped(est.atividades_secundarias, max_items)
        ],
        registrations=[
            _map_registration(item) for item in _capped(est.inscricoes_estaduais, max_items)
        ],
    )
