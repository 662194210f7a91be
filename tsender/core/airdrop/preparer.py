"""
Transaction Data Preparer

Turns the raw recipients/amounts text from the airdrop form into a
PreparedBatch. Malformed tokens are dropped rather than reported one by one;
the counts of what survives are what the rest of the pipeline trusts.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import List, Optional

from ...services.address import is_valid_evm_address
from .models import (
    DEFAULT_TOKEN_DECIMALS,
    MAX_UINT256,
    PreparedBatch,
    TransactionDetails,
    ValidationError,
    ValidationErrorCode,
)

_SEPARATORS = re.compile(r"[,\n]")
# Plain decimal numerals; exponents and a leading "+" are rejected
_NUMERAL = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")

# 2**256 has 78 decimal digits
_MAX_UINT256_DIGITS = 78
_SUM_PRECISION = 200


def split_tokens(text: str) -> List[str]:
    """Split on commas or newlines, trim, drop empty tokens."""
    if not text:
        return []
    tokens = (token.strip() for token in _SEPARATORS.split(text))
    return [token for token in tokens if token]


def _to_decimal(token: str) -> Optional[Decimal]:
    if not _NUMERAL.fullmatch(token):
        return None
    try:
        return Decimal(token)
    except InvalidOperation:
        return None


def parse_units(token: str, decimals: int = DEFAULT_TOKEN_DECIMALS) -> Optional[int]:
    """
    Convert a human-readable amount into base units.

    Returns None for anything that is not a plain decimal numeral, and for
    zero or negative amounts. Fractions finer than ``decimals`` are rounded
    half-up.

    Raises:
        ValidationError: if the result does not fit in a uint256
    """
    value = _to_decimal(token)
    if value is None or value <= 0:
        return None

    if value.adjusted() + decimals >= _MAX_UINT256_DIGITS:
        raise ValidationError(
            f"Amount {token} exceeds the maximum uint256 value",
            code=ValidationErrorCode.AMOUNT_OVERFLOW,
        )

    with localcontext() as ctx:
        ctx.prec = max(len(value.as_tuple().digits), _MAX_UINT256_DIGITS) + 2
        scaled = value.scaleb(decimals).to_integral_value(rounding=ROUND_HALF_UP)

    base_units = int(scaled)
    if base_units > MAX_UINT256:
        raise ValidationError(
            f"Amount {token} exceeds the maximum uint256 value",
            code=ValidationErrorCode.AMOUNT_OVERFLOW,
        )
    return base_units


def format_units(value: int, decimals: int = DEFAULT_TOKEN_DECIMALS) -> str:
    """Render base units as a human-readable decimal string."""
    with localcontext() as ctx:
        ctx.prec = _MAX_UINT256_DIGITS + decimals + 2
        human = Decimal(value).scaleb(-decimals)
        return _plain(human)


def _plain(value: Decimal) -> str:
    if value == 0:
        return "0"
    with localcontext() as ctx:
        ctx.prec = max(len(value.as_tuple().digits), 1)
        return format(value.normalize(), "f")


def parse_recipients(recipients_text: str) -> List[str]:
    """Well-formed addresses in input order; anything else is dropped."""
    return [token for token in split_tokens(recipients_text) if is_valid_evm_address(token)]


def parse_amounts(amounts_text: str, decimals: int = DEFAULT_TOKEN_DECIMALS) -> List[int]:
    """Positive base-unit amounts in input order; unparseable tokens are dropped."""
    amounts = []
    for token in split_tokens(amounts_text):
        base_units = parse_units(token, decimals)
        if base_units is None or base_units <= 0:
            continue
        amounts.append(base_units)
    return amounts


def prepare_transaction_data(
    recipients_text: str,
    amounts_text: str,
    decimals: Optional[int] = None,
) -> PreparedBatch:
    """
    Build a PreparedBatch from form text.

    Args:
        recipients_text: Addresses separated by commas or newlines
        amounts_text: Amounts separated by commas or newlines
        decimals: Token decimals (18 when not known)

    Raises:
        ValidationError: EMPTY, LENGTH_MISMATCH or AMOUNT_OVERFLOW
    """
    if decimals is None:
        decimals = DEFAULT_TOKEN_DECIMALS

    recipients = parse_recipients(recipients_text)
    amounts = parse_amounts(amounts_text, decimals)

    if not recipients or not amounts:
        raise ValidationError(
            "No valid recipients or amounts provided",
            code=ValidationErrorCode.EMPTY,
        )

    if len(recipients) != len(amounts):
        raise ValidationError(
            f"Number of recipients ({len(recipients)}) must match "
            f"number of amounts ({len(amounts)})",
            code=ValidationErrorCode.LENGTH_MISMATCH,
        )

    total = sum(amounts)
    if total > MAX_UINT256:
        raise ValidationError(
            "Total amount exceeds the maximum uint256 value",
            code=ValidationErrorCode.AMOUNT_OVERFLOW,
        )

    return PreparedBatch(
        recipients=tuple(recipients),
        amounts=tuple(amounts),
        total=total,
    )


def calculate_total(amounts_text: str) -> Decimal:
    """
    Sum every numeric token in human units, ignoring the rest.

    Values too large for any uint256 amount are ignored as well.
    """
    total = Decimal(0)
    with localcontext() as ctx:
        ctx.prec = _SUM_PRECISION
        for token in split_tokens(amounts_text):
            value = _to_decimal(token)
            if value is None or value.adjusted() >= _MAX_UINT256_DIGITS:
                continue
            total += value
    return total


def summarize_transaction(recipients_text: str, amounts_text: str) -> TransactionDetails:
    """Preview totals for display before the user submits."""
    return TransactionDetails(
        total_tokens=_plain(calculate_total(amounts_text)),
        total_recipients=len(parse_recipients(recipients_text)),
    )
