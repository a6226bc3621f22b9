"""
core/utils/money.py 테스트
"""

from decimal import Decimal

import pytest

from core.errors import ValidationError
from core.utils.money import from_db, parse_amount, quantize, to_db


class TestParseAmount:
    """parse_amount 테스트"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("100", Decimal("100.00")),
            ("40.5", Decimal("40.50")),
            (" 12.345 ", Decimal("12.35")),
            (7, Decimal("7.00")),
            (0.1, Decimal("0.10")),
            (Decimal("2.005"), Decimal("2.01")),
        ],
    )
    def test_valid(self, value, expected) -> None:
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["0", "-5", "0.004", -1, 0])
    def test_not_positive(self, value) -> None:
        """0 이하 (반올림 후 0 포함)"""
        with pytest.raises(ValidationError, match="greater than zero"):
            parse_amount(value)

    @pytest.mark.parametrize("value", ["abc", "", None, "1,000"])
    def test_not_a_number(self, value) -> None:
        with pytest.raises(ValidationError):
            parse_amount(value)

    @pytest.mark.parametrize("value", ["NaN", "Infinity", float("inf")])
    def test_not_finite(self, value) -> None:
        with pytest.raises(ValidationError):
            parse_amount(value)

    @pytest.mark.parametrize("value", ["1e30", Decimal("1E+40")])
    def test_out_of_range(self, value) -> None:
        with pytest.raises(ValidationError, match="out of range"):
            parse_amount(value)

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_amount(True)


class TestDbConversion:
    """DB 변환 테스트"""

    def test_quantize_half_up(self) -> None:
        assert quantize(Decimal("0.125")) == Decimal("0.13")

    def test_to_db(self) -> None:
        assert to_db(Decimal("100")) == "100.00"
        assert to_db(Decimal("-40.5")) == "-40.50"

    def test_from_db(self) -> None:
        assert from_db("60.00") == Decimal("60.00")

    def test_from_db_null(self) -> None:
        assert from_db(None) == Decimal("0.00")
