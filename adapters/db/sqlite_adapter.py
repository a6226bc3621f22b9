"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web 프로세스와 운영 스크립트가 동시에 접근 가능하도록 설정.

쓰기 트랜잭션 규칙:
- 연결은 autocommit 모드로 열고, 쓰기는 transaction() 안에서 BEGIN IMMEDIATE로 시작
- 같은 연결을 공유하는 코루틴끼리는 asyncio.Lock으로 직렬화
- 다른 연결(다른 프로세스)과는 SQLite 쓰기 잠금 + busy_timeout으로 직렬화
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Paths
from core.errors import StorageError
from core.types import AppMode

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def get_db_path(mode: AppMode | str) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        mode: 실행 모드 (PRODUCTION/DEVELOPMENT)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if isinstance(mode, str):
        mode = AppMode(mode.lower())

    if mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드, autocommit)

    Args:
        db_path: DB 파일 경로 (":memory:" 허용)
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체

    Raises:
        StorageError: 연결 실패
    """
    db_path_str = str(db_path)

    try:
        if db_path_str == MEMORY_DB:
            conn = await aiosqlite.connect(MEMORY_DB, isolation_level=None)
        elif readonly:
            conn = await aiosqlite.connect(
                f"file:{db_path_str}?mode=ro", uri=True, isolation_level=None
            )
        else:
            # 디렉토리가 없으면 생성
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(db_path_str, isolation_level=None)

        if not readonly:
            await conn.execute("PRAGMA journal_mode=WAL")

        # 동시 접근 설정
        await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

        # 외래 키 제약 활성화
        await conn.execute("PRAGMA foreign_keys=ON")
    except aiosqlite.OperationalError as e:
        raise StorageError(f"Cannot open database {db_path_str}: {e}") from e

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    쓰기 트랜잭션 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction() as conn:
        await conn.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = db_path if str(db_path) == MEMORY_DB else Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StorageError("Not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 단건 실행 (autocommit)

        트랜잭션 안에서는 transaction()이 넘겨준 conn을 사용할 것.
        """
        conn = self._require_conn()

        async with self._lock:
            try:
                return await conn.execute(sql, parameters or ())
            except aiosqlite.OperationalError as e:
                raise StorageError(f"Database operation failed: {e}") from e

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        conn = self._require_conn()

        async with self._lock:
            try:
                cursor = await conn.execute(sql, parameters or ())
                row = await cursor.fetchone()
                await cursor.close()
                return row
            except aiosqlite.OperationalError as e:
                raise StorageError(f"Database query failed: {e}") from e

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        conn = self._require_conn()

        async with self._lock:
            try:
                cursor = await conn.execute(sql, parameters or ())
                rows = await cursor.fetchall()
                await cursor.close()
                return list(rows)
            except aiosqlite.OperationalError as e:
                raise StorageError(f"Database query failed: {e}") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """쓰기 트랜잭션 컨텍스트 매니저

        BEGIN IMMEDIATE로 쓰기 잠금을 먼저 획득.
        성공 시 COMMIT, 예외(취소 포함) 시 ROLLBACK.

        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("UPDATE ...")
            # 성공 시 자동 커밋
        ```

        Raises:
            StorageError: 잠금 획득/커밋 실패 또는 OperationalError
        """
        conn = self._require_conn()

        async with self._lock:
            try:
                await conn.execute("BEGIN IMMEDIATE")
            except aiosqlite.OperationalError as e:
                raise StorageError(f"Cannot begin write transaction: {e}") from e

            try:
                yield conn
            except aiosqlite.OperationalError as e:
                await self._rollback(conn)
                raise StorageError(f"Database operation failed: {e}") from e
            except BaseException:
                await self._rollback(conn)
                raise

            try:
                await conn.execute("COMMIT")
            except aiosqlite.OperationalError as e:
                await self._rollback(conn)
                raise StorageError(f"Commit failed: {e}") from e

    async def _rollback(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.execute("ROLLBACK")
        except aiosqlite.Error as e:
            logger.error("ROLLBACK 실패", extra={"error": str(e)})

    async def object_exists(self, name: str, kind: str = "table") -> bool:
        """테이블/뷰/인덱스 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type = ? AND name = ?",
            (kind, name),
        )
        return result is not None

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        return await self.object_exists(table_name, "table")

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


# 감사 로그 스트림별 조회 (View와 View 없는 경우의 직접 조회가 공유)
LEDGER_AUDIT_SELECT = """
    SELECT
        l.seq, l.entry_id, 'ledger' AS log_type, l.actor_id, l.action,
        l.target_type, l.target_id, l.customer_id, l.description,
        l.old_values_json, l.new_values_json, l.metadata_json, l.ts,
        u.full_name AS actor_name, u.email AS actor_email, u.role AS actor_role,
        c.name AS customer_name
    FROM ledger_audit_log l
    LEFT JOIN app_user u ON u.id = l.actor_id
    LEFT JOIN customer c ON c.id = l.customer_id
"""

SYSTEM_AUDIT_SELECT = """
    SELECT
        s.seq, s.entry_id, 'system' AS log_type, s.actor_id, s.action,
        s.target_type, s.target_id, NULL AS customer_id, s.description,
        s.old_values_json, s.new_values_json, s.metadata_json, s.ts,
        u.full_name AS actor_name, u.email AS actor_email, u.role AS actor_role,
        NULL AS customer_name
    FROM system_audit_log s
    LEFT JOIN app_user u ON u.id = s.actor_id
"""

AUDIT_VIEW = "v_audit_log"


SCHEMA_STATEMENTS: list[str] = [
    # 사용자 디렉토리 (identity provider 읽기 모델)
    """
    CREATE TABLE IF NOT EXISTS app_user (
        id           TEXT PRIMARY KEY,
        full_name    TEXT NOT NULL,
        email        TEXT,
        role         TEXT NOT NULL CHECK (role IN ('admin', 'manager', 'staff')),
        is_active    INTEGER NOT NULL DEFAULT 1,
        created_at   TEXT NOT NULL,
        updated_at   TEXT NOT NULL
    )
    """,
    # 고객
    """
    CREATE TABLE IF NOT EXISTS customer (
        id           TEXT PRIMARY KEY,
        name         TEXT NOT NULL CHECK (length(trim(name)) > 0),
        email        TEXT,
        phone        TEXT,
        address      TEXT,
        is_active    INTEGER NOT NULL DEFAULT 1,
        created_by   TEXT NOT NULL,
        created_at   TEXT NOT NULL,
        updated_at   TEXT NOT NULL
    )
    """,
    # 활성 고객 이름 유일성 (비활성 고객은 제외)
    """
    CREATE UNIQUE INDEX IF NOT EXISTS ux_customer_active_name
    ON customer(name COLLATE NOCASE) WHERE is_active = 1
    """,
    # 외상/상환 거래
    """
    CREATE TABLE IF NOT EXISTS ledger_transaction (
        id               TEXT PRIMARY KEY,
        customer_id      TEXT NOT NULL REFERENCES customer(id),
        type             TEXT NOT NULL CHECK (type IN ('debit', 'payment')),
        amount           TEXT NOT NULL CHECK (CAST(amount AS REAL) > 0),
        description      TEXT NOT NULL CHECK (length(trim(description)) > 0),
        status           TEXT NOT NULL DEFAULT 'pending'
                         CHECK (status IN ('pending', 'approved', 'rejected')),
        payment_method   TEXT,
        notes            TEXT,
        rejection_reason TEXT,

        created_by       TEXT NOT NULL,
        created_at       TEXT NOT NULL,
        approved_by      TEXT,
        approved_at      TEXT,
        updated_at       TEXT NOT NULL,

        CHECK ((status = 'rejected') = (rejection_reason IS NOT NULL))
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_ledger_transaction_customer
    ON ledger_transaction(customer_id, status)
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_ledger_transaction_created_at
    ON ledger_transaction(created_at)
    """,
    # 고객 잔액 Projection (승인된 거래만 반영)
    """
    CREATE TABLE IF NOT EXISTS customer_balance (
        customer_id         TEXT PRIMARY KEY REFERENCES customer(id),
        balance             TEXT NOT NULL DEFAULT '0.00',
        approved_count      INTEGER NOT NULL DEFAULT 0,
        last_transaction_id TEXT,
        updated_at          TEXT NOT NULL
    )
    """,
    # 감사 로그 공유 시퀀스 (두 스트림의 전체 순서)
    """
    CREATE TABLE IF NOT EXISTS audit_sequence (
        seq          INTEGER PRIMARY KEY AUTOINCREMENT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ledger_audit_log (
        seq              INTEGER PRIMARY KEY,
        entry_id         TEXT NOT NULL UNIQUE,
        actor_id         TEXT NOT NULL,
        action           TEXT NOT NULL,
        target_type      TEXT NOT NULL,
        target_id        TEXT,
        customer_id      TEXT,
        description      TEXT NOT NULL,
        old_values_json  TEXT,
        new_values_json  TEXT,
        metadata_json    TEXT,
        ts               TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS system_audit_log (
        seq              INTEGER PRIMARY KEY,
        entry_id         TEXT NOT NULL UNIQUE,
        actor_id         TEXT NOT NULL,
        action           TEXT NOT NULL,
        target_type      TEXT NOT NULL,
        target_id        TEXT,
        description      TEXT NOT NULL,
        old_values_json  TEXT,
        new_values_json  TEXT,
        metadata_json    TEXT,
        ts               TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_ledger_audit_log_ts ON ledger_audit_log(ts, seq)",
    "CREATE INDEX IF NOT EXISTS ix_system_audit_log_ts ON system_audit_log(ts, seq)",
    "CREATE INDEX IF NOT EXISTS ix_ledger_audit_log_target ON ledger_audit_log(target_type, target_id)",
    # 감사 로그는 append-only
    """
    CREATE TRIGGER IF NOT EXISTS trg_ledger_audit_log_no_update
    BEFORE UPDATE ON ledger_audit_log
    BEGIN SELECT RAISE(ABORT, 'audit log is append-only'); END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_ledger_audit_log_no_delete
    BEFORE DELETE ON ledger_audit_log
    BEGIN SELECT RAISE(ABORT, 'audit log is append-only'); END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_system_audit_log_no_update
    BEFORE UPDATE ON system_audit_log
    BEGIN SELECT RAISE(ABORT, 'audit log is append-only'); END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_system_audit_log_no_delete
    BEFORE DELETE ON system_audit_log
    BEGIN SELECT RAISE(ABORT, 'audit log is append-only'); END
    """,
    # 통합 감사 로그 View (이름은 조회 시점에 조인)
    f"CREATE VIEW IF NOT EXISTS {AUDIT_VIEW} AS {LEDGER_AUDIT_SELECT} UNION ALL {SYSTEM_AUDIT_SELECT}",
]


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    Args:
        adapter: 연결된 SQLiteAdapter

    여러 번 호출해도 안전 (IF NOT EXISTS).
    """
    async with adapter.transaction() as conn:
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(statement)

    logger.info("스키마 초기화 완료")
