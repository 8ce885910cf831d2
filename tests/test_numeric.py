"""Tests for localized number parsing."""

import pytest

from edinet_engine.numeric import (
    ShareUnit,
    apply_scale_and_sign,
    detect_share_unit,
    parse_decimal,
    parse_number,
    parse_ratio,
    to_ascii_digits,
)


class TestParseNumber:
    def test_fullwidth_with_thousand_unit(self):
        assert parse_number("１，２３４千株") == 1_234_000

    def test_triangle_minus(self):
        assert parse_number("△500") == -500

    def test_black_triangle_minus(self):
        assert parse_number("▲1,000") == -1000

    def test_garbage(self):
        assert parse_number("garbage") is None

    def test_empty(self):
        assert parse_number("") is None
        assert parse_number(None) is None

    def test_plain_shares_suffix(self):
        assert parse_number("1,000株") == 1000

    def test_million_unit(self):
        assert parse_number("2百万株") == 2_000_000

    def test_ten_thousand_unit(self):
        assert parse_number("35万株") == 350_000

    def test_ideographic_comma_and_spaces(self):
        assert parse_number(" 12、345 ") == 12345


class TestParseRatio:
    def test_percent(self):
        assert parse_ratio("12.5%") == pytest.approx(12.5)

    def test_fullwidth(self):
        assert parse_ratio("１２．５％") == pytest.approx(12.5)

    def test_missing_is_zero(self):
        assert parse_ratio("") == 0.0
        assert parse_ratio(None) == 0.0
        assert parse_ratio("－") == 0.0


class TestParseDecimal:
    def test_negative_fraction(self):
        assert parse_decimal("△1,234.5") == pytest.approx(-1234.5)

    def test_plain(self):
        assert parse_decimal("2500000000000") == pytest.approx(2.5e12)

    def test_fullwidth_decimal_point(self):
        assert parse_decimal("５０．００") == pytest.approx(50.0)

    def test_none(self):
        assert parse_decimal(None) is None
        assert parse_decimal("N/A") is None


class TestScaleAndSign:
    def test_scale(self):
        assert apply_scale_and_sign(1234, "6") == 1_234_000_000

    def test_negative_scale(self):
        assert apply_scale_and_sign(1234, "-2") == pytest.approx(12.34)

    def test_sign_negates_positive(self):
        assert apply_scale_and_sign(100, None, "-") == -100

    def test_sign_keeps_negative(self):
        assert apply_scale_and_sign(-100, None, "-") == -100

    def test_invalid_scale_ignored(self):
        assert apply_scale_and_sign(5, "abc") == 5


class TestShareUnit:
    def test_detect_header_unit(self):
        assert detect_share_unit("所有株式数（千株）") is ShareUnit.THOUSAND

    def test_million_before_ten_thousand(self):
        assert detect_share_unit("所有株式数(百万株)") is ShareUnit.MILLION

    def test_bare_shares_is_not_a_scale(self):
        assert detect_share_unit("所有株式数（株）") is None

    def test_to_ascii_digits(self):
        assert to_ascii_digits("７２０３") == "7203"
