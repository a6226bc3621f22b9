"""
금액 유틸리티

모든 금액은 Decimal, 소수점 2자리로 정규화하여 TEXT로 저장.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from core.constants import Money
from core.errors import ValidationError


def parse_amount(value: Decimal | int | float | str) -> Decimal:
    """입력 금액을 양수 Decimal로 정규화

    Args:
        value: 금액 (Decimal, int, float, 숫자 문자열)

    Returns:
        소수점 2자리로 반올림된 Decimal

    Raises:
        ValidationError: 숫자가 아님, 유한하지 않음, 범위 초과, 0 이하
    """
    if isinstance(value, bool):
        raise ValidationError("Amount must be a number")

    try:
        if isinstance(value, float):
            # float 이진 오차 방지
            amount = Decimal(str(value))
        else:
            amount = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValidationError(f"Amount is not a valid number: {value!r}") from e

    if not amount.is_finite():
        raise ValidationError(f"Amount must be finite: {value!r}")

    try:
        amount = quantize(amount)
    except InvalidOperation as e:
        # 28자리 정밀도를 넘는 값 (예: 1e30)
        raise ValidationError(f"Amount is out of range: {value!r}") from e

    if amount <= Money.ZERO:
        raise ValidationError("Amount must be greater than zero")

    return amount


def quantize(amount: Decimal) -> Decimal:
    """소수점 2자리 반올림 (ROUND_HALF_UP)"""
    return amount.quantize(Money.QUANTUM, rounding=ROUND_HALF_UP)


def to_db(amount: Decimal) -> str:
    """DB 저장용 문자열"""
    return str(quantize(amount))


def from_db(value: str | None) -> Decimal:
    """DB 문자열 → Decimal (NULL은 0)"""
    if value is None:
        return Money.ZERO
    return quantize(Decimal(value))
