"""CNPJ cleaning, formatting and check-digit validation.

A CNPJ is 14 digits: an 8-digit root, a 4-digit branch number and two check
digits, each computed with the modulo-11 rule over the preceding digits.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

CNPJ_LENGTH = 14

_NON_DIGITS = re.compile(r"\D", re.ASCII)
_FORMAT_PATTERN = re.compile(r"^(\d{2})(\d{3})(\d{3})(\d{4})(\d{2})$")

# Weights cycle 9..2 and start at 5 (first digit) or 6 (second digit).
_FIRST_DIGIT_WEIGHTS = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_SECOND_DIGIT_WEIGHTS = (6,) + _FIRST_DIGIT_WEIGHTS


class CnpjInvalidReason(str, Enum):
    """Why a CNPJ was rejected."""

    WRONG_LENGTH = "wrong_length"
    REPEATED_DIGIT = "repeated_digit"
    BAD_CHECK_DIGIT = "bad_check_digit"

    @property
    def message(self) -> str:
        return _REASON_MESSAGES[self]


_REASON_MESSAGES = {
    CnpjInvalidReason.WRONG_LENGTH: "CNPJ deve conter 14 dígitos",
    CnpjInvalidReason.REPEATED_DIGIT: "CNPJ com dígitos repetidos é inválido",
    CnpjInvalidReason.BAD_CHECK_DIGIT: "Dígito verificador inválido",
}


@dataclass(frozen=True)
class CnpjValidationResult:
    """Outcome of :func:`validate_cnpj`.

    ``cleaned`` is set only when ``valid``; ``reason`` only when not.
    """

    valid: bool
    cleaned: str | None = None
    reason: CnpjInvalidReason | None = None

    @property
    def message(self) -> str | None:
        return self.reason.message if self.reason else None


def clean_cnpj(raw: str) -> str:
    """Strip every non-digit character.

    Examples:
        >>> clean_cnpj("12.345.678/0001-95")
        '12345678000195'
        >>> clean_cnpj("abc123")
        '123'
    """

    return _NON_DIGITS.sub("", raw or "")


def format_cnpj(raw: str) -> str:
    """Render a CNPJ as ``NN.NNN.NNN/NNNN-NN``.

    Inputs that do not hold exactly 14 digits are returned unchanged.

    Examples:
        >>> format_cnpj("12345678000195")
        '12.345.678/0001-95'
        >>> format_cnpj("123")
        '123'
    """

    match = _FORMAT_PATTERN.match(clean_cnpj(raw))
    if not match:
        return raw
    return "{}.{}.{}/{}-{}".format(*match.groups())


def compute_check_digit(digits: str, weights: tuple[int, ...]) -> int:
    """Modulo-11 check digit of ``digits`` under ``weights``."""

    total = sum(int(d) * w for d, w in zip(digits, weights))
    digit = 11 - (total % 11)
    return 0 if digit > 9 else digit


def validate_cnpj(raw: str) -> CnpjValidationResult:
    """Validate a free-form CNPJ string.

    Args:
        raw: User input; punctuation and whitespace are ignored.

    Returns:
        CnpjValidationResult with the 14-digit ``cleaned`` value on success,
        or the rejection ``reason`` otherwise.
    """

    cleaned = clean_cnpj(raw)

    if len(cleaned) != CNPJ_LENGTH:
        return CnpjValidationResult(valid=False, reason=CnpjInvalidReason.WRONG_LENGTH)

    if len(set(cleaned)) == 1:
        return CnpjValidationResult(valid=False, reason=CnpjInvalidReason.REPEATED_DIGIT)

    if compute_check_digit(cleaned[:12], _FIRST_DIGIT_WEIGHTS) != int(cleaned[12]):
        return CnpjValidationResult(valid=False, reason=CnpjInvalidReason.BAD_CHECK_DIGIT)

    if compute_check_digit(cleaned[:13], _SECOND_DIGIT_WEIGHTS) != int(cleaned[13]):
        return CnpjValidationResult(valid=False, reason=CnpjInvalidReason.BAD_CHECK_DIGIT)

    return CnpjValidationResult(valid=True, cleaned=cleaned)
