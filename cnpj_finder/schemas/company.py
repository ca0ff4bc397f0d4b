"""Pydantic schemas for the normalized company record returned to clients.

Field names are snake_case in Python and serialized as camelCase
(``tax_id`` -> ``taxId``), the shape the browser UI consumes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CodeText(_CamelModel):
    """A coded value with its description (activities, legal nature)."""

    id: str | None = None
    text: str | None = None


class StatusText(_CamelModel):
    text: str | None = None


class CompanySize(_CamelModel):
    text: str | None = None
    acronym: str | None = None


class TaxRegimeOption(_CamelModel):
    """Simples Nacional / SIMEI opt-in."""

    optant: bool = False
    since: str | None = None


class Person(_CamelModel):
    name: str | None = None
    age: str | None = None


class Member(_CamelModel):
    """A partner listed in the company's QSA."""

    person: Person
    role: StatusText
    since: str | None = None


class Company(_CamelModel):
    name: str | None = None
    nature: CodeText | None = None
    size: CompanySize | None = None
    equity: float = 0.0
    simples: TaxRegimeOption = Field(default_factory=TaxRegimeOption)
    simei: TaxRegimeOption = Field(default_factory=TaxRegimeOption)
    members: list[Member] = Field(default_factory=list)


class Address(_CamelModel):
    street: str = ""
    number: str | None = None
    details: str | None = None
    district: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None
    municipality: str | None = None


class Phone(_CamelModel):
    area: str
    number: str
    type: Literal["LANDLINE", "MOBILE"] = "LANDLINE"


class Email(_CamelModel):
    address: str
    ownership: Literal["CORPORATE", "PERSONAL"] = "CORPORATE"


class RegistrationType(_CamelModel):
    id: int = 1
    text: str = "Normal"


class Registration(_CamelModel):
    """A state tax registration (inscrição estadual)."""

    type: RegistrationType = Field(default_factory=RegistrationType)
    number: str | None = None
    state: str | None = None
    enabled: bool = False
    status: StatusText = Field(default_factory=StatusText)


class CompanyRecord(_CamelModel):
    """Normalized company record served by ``GET /api/cnpj``."""

    tax_id: str = Field(..., description="14-digit CNPJ of the establishment.")
    alias: str | None = Field(None, description="Trade name (nome fantasia).")
    founded: str | None = None
    updated: str | None = None
    status: StatusText = Field(default_factory=StatusText)
    status_date: str | None = None
    head: bool = Field(False, description="True for the head office (matriz).")
    company: Company = Field(default_factory=Company)
    address: Address | None = None
    phones: list[Phone] = Field(default_factory=list)
    emails: list[Email] = Field(default_factory=list)
    main_activity: CodeText | None = None
    side_activities: list[CodeText] = Field(default_factory=list)
    registrations: list[Registration] = Field(default_factory=list)
    suframa: list[dict] = Field(default_factory=list)


class CnpjLookupResponse(BaseModel):
    """Success envelope of the lookup endpoint."""

    error: Literal[False] = False
    data: CompanyRecord
    cached: bool = Field(
        default=False,
        description="True if the record was served from the in-process cache.",
    )


class ErrorResponse(BaseModel):
    """Failure envelope shared by every error response."""

    error: Literal[True] = True
    message: str
    details: str | None = None
