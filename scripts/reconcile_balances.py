"""
잔액 재계산

저장된 고객 잔액을 승인된 거래 합계와 비교해 drift를 복구.
복구 결과는 balance_reconciled 감사 로그로 남음.

사용법:
    python -m scripts.reconcile_balances --actor-id admin-1
    python -m scripts.reconcile_balances --actor-id admin-1 --mode production
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path, init_schema
from core.audit.recorder import AuditRecorder
from core.ledger.service import LedgerService
from core.logging import setup_logging
from core.storage.audit_store import AuditStore
from core.types import Actor, AppMode, Role

logger = logging.getLogger(__name__)


async def reconcile(db_path: Path, actor_id: str) -> int:
    """재계산 실행

    Returns:
        복구된 고객 수
    """
    actor = Actor.create(actor_id, Role.ADMIN)

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        recorder = AuditRecorder(AuditStore(db))
        ledger = LedgerService.build(db, recorder)

        drifts = await ledger.reconcile_balances(actor)

    if not drifts:
        logger.info("잔액 drift 없음")
    for drift in drifts:
        logger.warning(
            f"잔액 복구: {drift.customer_id} {drift.stored} → {drift.computed}",
            extra=drift.to_dict(),
        )
    return len(drifts)


def main() -> None:
    parser = argparse.ArgumentParser(description="DebitLedger 잔액 재계산")
    parser.add_argument("--actor-id", required=True, help="감사 로그에 기록할 admin ID")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in AppMode],
        default=AppMode.DEVELOPMENT.value,
    )
    parser.add_argument("--db-path", type=Path, default=None, help="DB 파일 경로 (mode보다 우선)")
    args = parser.parse_args()

    setup_logging("scripts")
    db_path = args.db_path or get_db_path(args.mode)
    repaired = asyncio.run(reconcile(db_path, args.actor_id))
    print(f"Repaired: {repaired}")


if __name__ == "__main__":
    main()
