"""
유틸리티 패키지

타임존 처리, 금액 정규화 등 공통 유틸리티
"""

from core.utils.money import from_db, parse_amount, quantize, to_db
from core.utils.timezone import (
    now_utc,
    parse_iso,
    parse_iso_or_none,
    to_iso,
)

__all__ = [
    "now_utc",
    "parse_iso",
    "parse_iso_or_none",
    "to_iso",
    "parse_amount",
    "quantize",
    "to_db",
    "from_db",
]
