"""
SQL 헬퍼
"""


def escape_like(value: str) -> str:
    """LIKE 패턴용 이스케이프 (ESCAPE '\\' 와 함께 사용)"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def like_pattern(text: str) -> str:
    """부분 일치 패턴 (소문자, 이스케이프 적용)"""
    return f"%{escape_like(text.strip().lower())}%"
