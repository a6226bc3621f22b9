"""
DB 스키마 초기화

사용법:
    python -m scripts.init_db --mode development
    python -m scripts.init_db --db-path data/custom.db
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path, init_schema
from core.logging import setup_logging
from core.types import AppMode

logger = logging.getLogger(__name__)


async def init_db(db_path: Path) -> None:
    """스키마 생성 (이미 있으면 변경 없음)"""
    db_path.parent.mkdir(parents=True, exist_ok=True)

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        for table in ("customer", "ledger_transaction", "ledger_audit_log", "system_audit_log"):
            row = await db.fetchone(f"SELECT COUNT(*) FROM {table}")
            logger.info(f"  {table}: {row[0] if row else 0} rows")

    logger.info(f"스키마 초기화 완료: {db_path}")


def main() -> None:
    parser = argparse.ArgumentParser(description="DebitLedger DB 스키마 초기화")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in AppMode],
        default=AppMode.DEVELOPMENT.value,
        help="실행 모드 (기본 DB 경로 결정)",
    )
    parser.add_argument("--db-path", type=Path, default=None, help="DB 파일 경로 (mode보다 우선)")
    args = parser.parse_args()

    setup_logging("scripts")
    db_path = args.db_path or get_db_path(args.mode)
    asyncio.run(init_db(db_path))


if __name__ == "__main__":
    main()
