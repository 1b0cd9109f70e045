"""
Test suite for currency module

Tests amount parsing and display formatting.
All monetary calculations must use Decimal precision.
"""

import pytest
from decimal import Decimal

from payment_ledger.currency import (
    AMOUNT_QUANTUM, AmountErrorKind, AmountParseError,
    format_amount, parse_amount
)


class TestParseAmount:
    """Test amount parsing and validation"""

    def test_valid_amounts(self):
        """Test that plain decimal numerals are accepted"""
        assert parse_amount("1.2345") == Decimal('1.2345')
        assert parse_amount("10") == Decimal('10')
        assert parse_amount("0.0001") == Decimal('0.0001')
        assert parse_amount("+3.5") == Decimal('3.5')

    def test_result_has_four_places(self):
        """Test that parsed values are padded to four fractional digits"""
        value = parse_amount("2")
        assert value.as_tuple().exponent == -4
        assert str(value) == "2.0000"
        assert str(parse_amount("1.5")) == "1.5000"
        assert parse_amount("7.25") == parse_amount("7.25").quantize(AMOUNT_QUANTUM)

    def test_whitespace_is_trimmed(self):
        """Test surrounding whitespace is ignored"""
        assert parse_amount("  42.1 \t") == Decimal('42.1')

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty(self, text):
        """Test that empty input is rejected"""
        with pytest.raises(AmountParseError) as exc_info:
            parse_amount(text)
        assert exc_info.value.kind == AmountErrorKind.EMPTY

    @pytest.mark.parametrize("text", ["abc", "1.2.3", "1,000", "1e3", "NaN", "Infinity", ".5", "5.", "--1", "$10", "١٠", "1\n2"])
    def test_malformed(self, text):
        """Test that anything other than a plain numeral is rejected"""
        with pytest.raises(AmountParseError) as exc_info:
            parse_amount(text)
        assert exc_info.value.kind == AmountErrorKind.MALFORMED
        assert exc_info.value.text == text

    @pytest.mark.parametrize("text", ["0", "-1", "0.0000", "-0.5"])
    def test_non_positive(self, text):
        """Test that zero and negative amounts are rejected"""
        with pytest.raises(AmountParseError) as exc_info:
            parse_amount(text)
        assert exc_info.value.kind == AmountErrorKind.NON_POSITIVE

    @pytest.mark.parametrize("text", ["1.23456", "0.00001", "1.00000"])
    def test_too_precise(self, text):
        """Test that more than four fractional digits are rejected, not rounded"""
        with pytest.raises(AmountParseError) as exc_info:
            parse_amount(text)
        assert exc_info.value.kind == AmountErrorKind.TOO_PRECISE

    def test_largest_amount_accepted(self):
        """Test 24 integer digits plus 4 places fit in 28 significant digits"""
        text = "9" * 24 + ".9999"
        value = parse_amount(text)
        assert value == Decimal(text)
        assert str(value) == text

    def test_leading_zeros_do_not_count(self):
        """Test the integer digit bound ignores leading zeros"""
        assert parse_amount("0" * 10 + "1" * 24) == Decimal("1" * 24)

    @pytest.mark.parametrize("text", ["1" + "0" * 24, "1" + "0" * 25, "9" * 40 + ".5", "-" + "1" * 30])
    def test_too_large_is_malformed(self, text):
        """Test amounts beyond 28 significant digits are rejected, never raised raw"""
        with pytest.raises(AmountParseError) as exc_info:
            parse_amount(text)
        assert exc_info.value.kind == AmountErrorKind.MALFORMED

    def test_error_is_value_error(self):
        """Test AmountParseError can be caught as ValueError"""
        with pytest.raises(ValueError, match="non_positive"):
            parse_amount("-1")


class TestFormatAmount:
    """Test display formatting"""

    def test_trailing_zeros_stripped(self):
        """Test that trailing fractional zeros are not forced"""
        assert format_amount(Decimal('2.0000')) == "2"
        assert format_amount(Decimal('1.5000')) == "1.5"
        assert format_amount(Decimal('1.2345')) == "1.2345"

    def test_no_exponent_notation(self):
        """Test large round values render as plain digits"""
        assert format_amount(Decimal('100.0000')) == "100"
        assert format_amount(Decimal('1E+3')) == "1000"

    def test_zero_and_negative(self):
        """Test zero and negative balances"""
        assert format_amount(Decimal('0')) == "0"
        assert format_amount(Decimal('0.0000')) == "0"
        assert format_amount(Decimal('-0.0000')) == "0"
        assert format_amount(Decimal('-2.5000')) == "-2.5"
