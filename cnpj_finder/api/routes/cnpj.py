from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from cnpj_finder.core.errors import ValidationAppError
from cnpj_finder.core.rate_limit import enforce_rate_limit
from cnpj_finder.schemas.company import CnpjLookupResponse, ErrorResponse
from cnpj_finder.services.lookup_service import CnpjLookupService
from cnpj_finder.utils.cnpj_validator import validate_cnpj

logger = logging.getLogger(__name__)

router = APIRouter(tags=["CNPJ"])


def get_lookup_service(request: Request) -> CnpjLookupService:
    """Return the lookup service owned by the running application."""
    return request.app.state.lookup_service


@router.get(
    "/cnpj",
    response_model=CnpjLookupResponse,
    responses={
        status_code: {"model": ErrorResponse}
        for status_code in (400, 404, 405, 408, 429, 500, 503)
    },
    dependencies=[Depends(enforce_rate_limit)],
)
async def lookup_cnpj(
    service: Annotated[CnpjLookupService, Depends(get_lookup_service)],
    cnpj: Annotated[
        str | None,
        Query(description="CNPJ with or without punctuation, e.g. 12.345.678/0001-95"),
    ] = None,
) -> CnpjLookupResponse:
    """Look up a company by CNPJ.

    Rate limiting runs first (per client address and per CNPJ), then the
    CNPJ check digits are validated before the cache or the registry are
    consulted.

    Args:
        service: Lookup service injected from application state.
        cnpj: Raw ``cnpj`` query parameter.

    Returns:
        CnpjLookupResponse: ``{"error": false, "data": ..., "cached": ...}``.

    Raises:
        ValidationAppError: 400 when the CNPJ is missing or invalid.
        AppError: Classified upstream failures (404, 408, 429, 500, 503).
    """
    if not cnpj:
        raise ValidationAppError(code="cnpj_missing", message="CNPJ não informado")

    validation = validate_cnpj(cnpj)
    if not validation.valid:
        raise ValidationAppError(
            code=f"cnpj_{validation.reason.value}",
            message=validation.message,
            details={"reason": validation.reason.value},
        )

    logger.info("lookup.requested", extra={"cnpj": validation.cleaned})
    result = await service.lookup(validation.cleaned)
    return CnpjLookupResponse(data=result.record, cached=result.cached)
