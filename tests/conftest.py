"""
pytest 공통 fixture 정의

인메모리 SQLite + 스키마 초기화 + 서비스 구성.
"""

from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import MEMORY_DB, SQLiteAdapter, init_schema
from adapters.mock.notifier import MockNotifier
from core.audit.query import AuditQueryService
from core.audit.recorder import AuditRecorder
from core.ledger.service import LedgerService
from core.storage.audit_store import AuditStore
from core.storage.user_store import UserStore
from core.types import Actor, Role


@pytest_asyncio.fixture
async def db() -> SQLiteAdapter:
    """스키마가 초기화된 인메모리 DB"""
    adapter = SQLiteAdapter(MEMORY_DB)
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def file_db(tmp_path: Path) -> SQLiteAdapter:
    """스키마가 초기화된 파일 DB (WAL)"""
    adapter = SQLiteAdapter(tmp_path / "ledger.db")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


# -------------------------------------------------------------------------
# Actor
# -------------------------------------------------------------------------


@pytest.fixture
def staff() -> Actor:
    return Actor.create("u-staff", Role.STAFF)


@pytest.fixture
def manager() -> Actor:
    return Actor.create("u-manager", Role.MANAGER)


@pytest.fixture
def admin() -> Actor:
    return Actor.create("u-admin", Role.ADMIN)


# -------------------------------------------------------------------------
# 서비스
# -------------------------------------------------------------------------


@pytest.fixture
def notifier() -> MockNotifier:
    return MockNotifier()


@pytest.fixture
def audit_store(db: SQLiteAdapter) -> AuditStore:
    return AuditStore(db)


@pytest.fixture
def recorder(audit_store: AuditStore, notifier: MockNotifier) -> AuditRecorder:
    return AuditRecorder(audit_store, notifier=notifier)


@pytest.fixture
def ledger(db: SQLiteAdapter, recorder: AuditRecorder) -> LedgerService:
    return LedgerService.build(db, recorder)


@pytest.fixture
def audit_query(audit_store: AuditStore) -> AuditQueryService:
    return AuditQueryService(audit_store, page_size=50, max_page_size=200)


@pytest_asyncio.fixture
async def directory(db: SQLiteAdapter) -> UserStore:
    """표시 이름 조인용 사용자 디렉토리"""
    users = UserStore(db)
    await users.upsert("u-staff", "Sam Staff", "sam@example.com", Role.STAFF)
    await users.upsert("u-manager", "Mia Manager", "mia@example.com", Role.MANAGER)
    await users.upsert("u-admin", "Ari Admin", "ari@example.com", Role.ADMIN)
    return users
