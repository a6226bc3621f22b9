"""
AuditStore 테스트
"""

import aiosqlite
import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.audit.types import AuditAction, AuditFilter, AuditLogType
from core.storage.audit_store import AuditStore


async def _append_ledger(store: AuditStore, target_id: str = "t-1", **kwargs):
    return await store.append(
        log_type=AuditLogType.LEDGER,
        actor_id="u-1",
        action=AuditAction.TRANSACTION_CREATED,
        target_type="transaction",
        target_id=target_id,
        description="Transaction created",
        **kwargs,
    )


async def _append_system(store: AuditStore, target_id: str = "u-1"):
    return await store.append(
        log_type=AuditLogType.SYSTEM,
        actor_id="u-admin",
        action=AuditAction.USER_CREATED,
        target_type="user",
        target_id=target_id,
        description="User created",
    )


class TestAppend:
    """append 테스트"""

    @pytest.mark.asyncio
    async def test_append_and_load(self, audit_store: AuditStore) -> None:
        entry = await _append_ledger(
            audit_store,
            customer_id="c-1",
            old_values={"amount": "10.00"},
            new_values={"amount": "12.50"},
            metadata={"source": "web"},
        )

        loaded = await audit_store.get_by_id(entry.id)

        assert loaded is not None
        assert loaded.seq == entry.seq
        assert loaded.customer_id == "c-1"
        assert loaded.old_values == {"amount": "10.00"}
        assert loaded.new_values == {"amount": "12.50"}
        assert loaded.metadata == {"source": "web"}
        assert loaded.timestamp == entry.timestamp

    @pytest.mark.asyncio
    async def test_shared_sequence_across_streams(self, audit_store: AuditStore) -> None:
        first = await _append_ledger(audit_store)
        second = await _append_system(audit_store)
        third = await _append_ledger(audit_store, target_id="t-2")

        assert first.seq < second.seq < third.seq

    @pytest.mark.asyncio
    async def test_system_entry_drops_customer(self, audit_store: AuditStore) -> None:
        entry = await audit_store.append(
            log_type=AuditLogType.SYSTEM,
            actor_id="u-admin",
            action=AuditAction.LOGIN,
            target_type="user",
            target_id="u-admin",
            description="Login",
            customer_id="c-1",
        )

        assert entry.customer_id is None

    @pytest.mark.asyncio
    async def test_wrong_stream(self, audit_store: AuditStore) -> None:
        with pytest.raises(ValueError, match="ledger stream"):
            await audit_store.append(
                log_type=AuditLogType.SYSTEM,
                actor_id="u-1",
                action=AuditAction.TRANSACTION_APPROVED,
                target_type="transaction",
                target_id="t-1",
                description="Approved",
            )

    @pytest.mark.asyncio
    async def test_count(self, audit_store: AuditStore) -> None:
        await _append_ledger(audit_store)
        await _append_ledger(audit_store, target_id="t-2")
        await _append_system(audit_store)

        assert await audit_store.count() == 3
        assert await audit_store.count(AuditLogType.LEDGER) == 2
        assert await audit_store.count(AuditLogType.SYSTEM) == 1


class TestAppendOnly:
    """수정/삭제 차단 트리거"""

    @pytest.mark.parametrize("table", ["ledger_audit_log", "system_audit_log"])
    @pytest.mark.asyncio
    async def test_update_rejected(
        self, db: SQLiteAdapter, audit_store: AuditStore, table: str
    ) -> None:
        await _append_ledger(audit_store)
        await _append_system(audit_store)

        with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
            await db.execute(f"UPDATE {table} SET description = 'tampered'")

    @pytest.mark.parametrize("table", ["ledger_audit_log", "system_audit_log"])
    @pytest.mark.asyncio
    async def test_delete_rejected(
        self, db: SQLiteAdapter, audit_store: AuditStore, table: str
    ) -> None:
        await _append_ledger(audit_store)
        await _append_system(audit_store)

        with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
            await db.execute(f"DELETE FROM {table}")

        assert await audit_store.count() == 2


class TestLookup:
    """조회 테스트"""

    @pytest.mark.asyncio
    async def test_missing_entry(self, audit_store: AuditStore) -> None:
        assert await audit_store.get_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_unknown_names(self, audit_store: AuditStore) -> None:
        """디렉토리/고객 테이블에 없는 ID는 Unknown으로 표시"""
        await _append_ledger(audit_store, customer_id="c-gone")

        entries = await audit_store.search(AuditFilter(), limit=10)

        assert entries[0].actor_name == "Unknown"
        assert entries[0].customer_name == "Unknown"

    @pytest.mark.asyncio
    async def test_free_text_escapes_wildcards(self, audit_store: AuditStore) -> None:
        await audit_store.append(
            log_type=AuditLogType.SYSTEM,
            actor_id="u-admin",
            action=AuditAction.SYSTEM_SETTINGS_CHANGED,
            target_type="system",
            target_id=None,
            description="Discount set to 10%",
        )
        await _append_system(audit_store)

        percent = await audit_store.search(AuditFilter(free_text="10%"), limit=10)
        underscore = await audit_store.search(AuditFilter(free_text="_"), limit=10)

        assert [e.description for e in percent] == ["Discount set to 10%"]
        # action 값의 밑줄은 실제 문자로만 일치
        assert {e.action for e in underscore} == {
            AuditAction.SYSTEM_SETTINGS_CHANGED,
            AuditAction.USER_CREATED,
        }
