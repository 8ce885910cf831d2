"""Tests for shared dependencies and validators."""

import pytest
from fastapi import HTTPException

from edinet_engine.deps import get_edinet_client, normalize_symbol, validate_symbol
from edinet_engine.edinet import edinet_client


class TestNormalizeSymbol:
    def test_four_digit(self):
        assert normalize_symbol("7203") == "7203"

    def test_tse_suffix(self):
        assert normalize_symbol("7203.T") == "7203"

    def test_five_digit_strips_check(self):
        assert normalize_symbol("72030") == "7203"

    def test_alphanumeric_code(self):
        assert normalize_symbol("130a.t") == "130A"

    def test_none(self):
        assert normalize_symbol(None) is None

    def test_empty(self):
        assert normalize_symbol("") is None

    def test_whitespace(self):
        assert normalize_symbol("  7203  ") == "7203"

    def test_letters_only(self):
        assert normalize_symbol("ABCD") is None

    def test_too_short(self):
        assert normalize_symbol("123") is None

    def test_too_long(self):
        assert normalize_symbol("123456") is None

    def test_five_digit_without_check_zero(self):
        assert normalize_symbol("72031") is None


class TestValidateSymbol:
    def test_valid(self):
        assert validate_symbol("7203.T") == "7203"

    def test_invalid_raises(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_symbol("abc")
        assert exc_info.value.status_code == 400


class TestGetEdinetClient:
    def test_returns_shared_client(self):
        assert get_edinet_client() is edinet_client
