"""
AuditQueryService 테스트

두 스트림 병합 순서, 필터, 키셋 페이지네이션, View 없는 경우의 조회.
"""

import base64
from datetime import timedelta

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.audit.query import AuditQueryService, decode_cursor, encode_cursor
from core.audit.recorder import AuditRecorder
from core.audit.types import AuditAction, AuditFilter, AuditLogType
from core.errors import NotFoundError, ValidationError
from core.storage.user_store import UserStore
from core.utils.timezone import now_utc


async def _seed(recorder: AuditRecorder) -> list[str]:
    """ledger/system 스트림을 번갈아 기록, 기록 순서대로 entry id 반환"""
    ids: list[str] = []
    for i in range(3):
        ledger_entry = await recorder.record(
            actor_id="u-staff",
            action=AuditAction.TRANSACTION_CREATED,
            target_type="transaction",
            target_id=f"t-{i}",
            description=f"Pending debit #{i}",
        )
        system_entry = await recorder.record_system(
            actor_id="u-admin",
            action=AuditAction.USER_UPDATED,
            target_type="user",
            target_id=f"u-{i}",
            description=f"Profile #{i} updated",
        )
        assert ledger_entry is not None and system_entry is not None
        ids.extend([ledger_entry.id, system_entry.id])
    return ids


class TestCursor:
    """커서 인코딩 테스트"""

    @pytest.mark.asyncio
    async def test_roundtrip(self, recorder: AuditRecorder) -> None:
        entry = await recorder.record(
            actor_id="u-1",
            action=AuditAction.CUSTOMER_CREATED,
            target_type="customer",
            target_id="c-1",
        )
        assert entry is not None

        ts, seq = decode_cursor(encode_cursor(entry))

        assert seq == entry.seq
        assert ts.startswith(entry.timestamp.strftime("%Y-%m-%dT%H:%M:%S"))

    @pytest.mark.parametrize(
        "cursor",
        [
            "not-base64!",
            base64.urlsafe_b64encode(b"[1, 2]").decode(),
            base64.urlsafe_b64encode(b'{"ts": "yesterday", "seq": 1}').decode(),
            base64.urlsafe_b64encode(b'{"seq": 1}').decode(),
        ],
    )
    def test_invalid(self, cursor: str) -> None:
        with pytest.raises(ValidationError, match="cursor"):
            decode_cursor(cursor)


class TestSearch:
    """검색 테스트"""

    @pytest.mark.asyncio
    async def test_merged_newest_first(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        ids = await _seed(recorder)

        page = await audit_query.search()

        assert [e.id for e in page.entries] == list(reversed(ids))
        assert page.has_more is False
        seqs = [e.seq for e in page.entries]
        assert seqs == sorted(seqs, reverse=True)

    @pytest.mark.asyncio
    async def test_filter_by_stream(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        await _seed(recorder)

        page = await audit_query.search(AuditFilter(log_type=AuditLogType.SYSTEM))

        assert len(page.entries) == 3
        assert {e.log_type for e in page.entries} == {AuditLogType.SYSTEM}

    @pytest.mark.asyncio
    async def test_filter_by_actor_action_target(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        await _seed(recorder)

        by_actor = await audit_query.search(AuditFilter(actor_id="u-admin"))
        by_action = await audit_query.search(AuditFilter(action=AuditAction.TRANSACTION_CREATED))
        by_target = await audit_query.search(
            AuditFilter(target_type="transaction", target_id="t-1")
        )

        assert len(by_actor.entries) == 3
        assert len(by_action.entries) == 3
        assert [e.target_id for e in by_target.entries] == ["t-1"]

    @pytest.mark.asyncio
    async def test_free_text(
        self, recorder: AuditRecorder, audit_query: AuditQueryService, directory: UserStore
    ) -> None:
        await _seed(recorder)

        by_description = await audit_query.search(AuditFilter(free_text="PROFILE #2"))
        by_actor_name = await audit_query.search(AuditFilter(free_text="sam staff"))

        assert len(by_description.entries) == 1
        assert by_description.entries[0].target_id == "u-2"
        assert len(by_actor_name.entries) == 3
        assert by_actor_name.entries[0].actor_name == "Sam Staff"

    @pytest.mark.asyncio
    async def test_date_range(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        await _seed(recorder)
        now = now_utc()

        inside = await audit_query.search(
            AuditFilter(start=now - timedelta(hours=1), end=now + timedelta(hours=1))
        )
        future = await audit_query.search(AuditFilter(start=now + timedelta(hours=1)))

        assert len(inside.entries) == 6
        assert future.entries == []

    @pytest.mark.asyncio
    async def test_mixed_naive_and_aware_bounds(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        """offset 없는 경계는 UTC로 해석"""
        await _seed(recorder)
        naive_now = now_utc().replace(tzinfo=None)

        page = await audit_query.search(
            AuditFilter(start=naive_now - timedelta(hours=1), end=now_utc() + timedelta(hours=1))
        )
        assert len(page.entries) == 6

        with pytest.raises(ValidationError):
            await audit_query.search(
                AuditFilter(start=naive_now + timedelta(days=1), end=now_utc())
            )

    @pytest.mark.asyncio
    async def test_inverted_range(self, audit_query: AuditQueryService) -> None:
        now = now_utc()

        with pytest.raises(ValidationError):
            await audit_query.search(AuditFilter(start=now, end=now - timedelta(days=1)))

    @pytest.mark.asyncio
    async def test_unknown_actor_name(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        """디렉토리에 없는 사용자는 Unknown"""
        await recorder.record_system(
            actor_id="u-ghost", action=AuditAction.LOGIN, target_type="user", target_id="u-ghost"
        )

        page = await audit_query.search()

        assert page.entries[0].actor_name == "Unknown"
        assert page.entries[0].customer_name is None


class TestPagination:
    """키셋 페이지네이션 테스트"""

    @pytest.mark.asyncio
    async def test_each_entry_exactly_once(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        ids = await _seed(recorder)

        seen: list[str] = []
        page = await audit_query.search(limit=4)
        seen.extend(e.id for e in page.entries)
        while page.has_more:
            page = await audit_query.search(limit=4, cursor=page.next_cursor)
            seen.extend(e.id for e in page.entries)

        assert seen == list(reversed(ids))

    @pytest.mark.asyncio
    async def test_new_entries_do_not_shift_pages(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        ids = await _seed(recorder)
        first = await audit_query.search(limit=3)

        # 첫 페이지 이후 새 항목 추가
        await recorder.record(
            actor_id="u-staff",
            action=AuditAction.CUSTOMER_CREATED,
            target_type="customer",
            target_id="c-new",
        )
        second = await audit_query.search(limit=3, cursor=first.next_cursor)

        assert [e.id for e in first.entries + second.entries] == list(reversed(ids))
        assert second.has_more is False

    @pytest.mark.asyncio
    async def test_limit_validation(
        self, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        await _seed(recorder)

        with pytest.raises(ValidationError):
            await audit_query.search(limit=0)

        small = AuditQueryService(audit_query.store, page_size=2, max_page_size=3)
        assert len((await small.search()).entries) == 2
        assert len((await small.search(limit=100)).entries) == 3


class TestViewFallback:
    """View를 사용할 수 없는 경우"""

    @pytest.mark.asyncio
    async def test_search_without_view(
        self, db: SQLiteAdapter, recorder: AuditRecorder, audit_query: AuditQueryService
    ) -> None:
        ids = await _seed(recorder)
        with_view = await audit_query.search(limit=4)

        await db.execute("DROP VIEW v_audit_log")

        without_view = await audit_query.search(limit=4)
        rest = await audit_query.search(limit=4, cursor=without_view.next_cursor)
        system_only = await audit_query.search(AuditFilter(log_type=AuditLogType.SYSTEM))

        assert [e.id for e in without_view.entries] == [e.id for e in with_view.entries]
        assert [e.id for e in without_view.entries + rest.entries] == list(reversed(ids))
        assert len(system_only.entries) == 3


class TestGetEntry:
    """단건 조회 테스트"""

    @pytest.mark.asyncio
    async def test_get_entry(self, recorder: AuditRecorder, audit_query: AuditQueryService) -> None:
        entry = await recorder.record_system(
            actor_id="u-1", action=AuditAction.LOGOUT, target_type="user", target_id="u-1"
        )
        assert entry is not None

        loaded = await audit_query.get_entry(entry.id)

        assert loaded.seq == entry.seq
        assert loaded.action == AuditAction.LOGOUT

    @pytest.mark.asyncio
    async def test_missing(self, audit_query: AuditQueryService) -> None:
        with pytest.raises(NotFoundError):
            await audit_query.get_entry("missing")
