"""
Amount Parsing Module

Converts textual amounts into fixed-precision Decimal values and renders
them back for display. NEVER uses float for monetary values.
"""

from decimal import (
    Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow, Rounded, getcontext
)
from enum import Enum
from typing import Optional
import re

# Set global decimal context for financial precision
getcontext().prec = 28  # High precision for financial calculations

AMOUNT_SCALE = 4
AMOUNT_QUANTUM = Decimal('0.1') ** AMOUNT_SCALE

# 28 significant digits in total, AMOUNT_SCALE of them fractional
AMOUNT_PRECISION = 28
MAX_INTEGER_DIGITS = AMOUNT_PRECISION - AMOUNT_SCALE

# Balance arithmetic must be exact: any rounding raises instead
LEDGER_CONTEXT = Context(
    prec=AMOUNT_PRECISION,
    traps=[InvalidOperation, DivisionByZero, Overflow, Inexact, Rounded]
)

_AMOUNT_PATTERN = re.compile(r'[+-]?([0-9]+)(\.[0-9]+)?')


class AmountErrorKind(Enum):
    """Reasons an amount can be rejected"""
    EMPTY = "empty"                # Nothing but whitespace
    MALFORMED = "malformed"        # Not a plain decimal numeral
    NON_POSITIVE = "non_positive"  # Zero or negative
    TOO_PRECISE = "too_precise"    # More than AMOUNT_SCALE fractional digits


class AmountParseError(ValueError):
    """Raised when an amount string cannot be accepted"""

    def __init__(self, kind: AmountErrorKind, text: Optional[str]):
        self.kind = kind
        self.text = text
        super().__init__(f"Invalid amount {text!r}: {kind.value}")


def parse_amount(text: Optional[str]) -> Decimal:
    """
    Parse an amount string into a positive Decimal with AMOUNT_SCALE places

    Args:
        text: Raw amount text, surrounding whitespace allowed

    Returns:
        Decimal quantized to exactly AMOUNT_SCALE fractional digits

    Raises:
        AmountParseError: If the text is empty, malformed (including more
            than MAX_INTEGER_DIGITS integer digits), not positive, or
            carries more than AMOUNT_SCALE fractional digits
    """
    clean_value = (text or '').strip()
    if not clean_value:
        raise AmountParseError(AmountErrorKind.EMPTY, text)

    match = _AMOUNT_PATTERN.fullmatch(clean_value)
    if not match:
        raise AmountParseError(AmountErrorKind.MALFORMED, text)

    if len(match.group(1).lstrip('0')) > MAX_INTEGER_DIGITS:
        raise AmountParseError(AmountErrorKind.MALFORMED, text)

    value = Decimal(clean_value)

    if value <= Decimal('0'):
        raise AmountParseError(AmountErrorKind.NON_POSITIVE, text)

    # Trailing zeros count towards the scale: "1.00000" is rejected
    if -value.as_tuple().exponent > AMOUNT_SCALE:
        raise AmountParseError(AmountErrorKind.TOO_PRECISE, text)

    try:
        return value.quantize(AMOUNT_QUANTUM, context=LEDGER_CONTEXT)
    except InvalidOperation as e:
        raise AmountParseError(AmountErrorKind.MALFORMED, text) from e


def format_amount(value: Decimal) -> str:
    """Format for display: at most AMOUNT_SCALE places, no trailing zeros"""
    rendered = format(value.quantize(AMOUNT_QUANTUM), 'f')
    if '.' in rendered:
        rendered = rendered.rstrip('0').rstrip('.')
    if rendered == '-0':
        rendered = '0'
    return rendered
